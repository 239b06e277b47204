"""Password hashing (bcrypt) and strength policy."""

from __future__ import annotations

import re

import bcrypt

from workforce.common.constants import COMMON_PASSWORDS, MIN_PASSWORD_LENGTH
from workforce.common.exceptions import ValidationException
from workforce.config import settings


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def password_policy_errors(password: str) -> list[str]:
    """Return every rule *password* breaks (empty list means acceptable)."""
    errors: list[str] = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one digit")
    if not re.search(r"[^A-Za-z0-9]", password):
        errors.append("Password must contain at least one special character")
    if password.lower() in COMMON_PASSWORDS:
        errors.append("Password is too common")
    return errors


def validate_password_strength(password: str) -> None:
    errors = password_policy_errors(password)
    if errors:
        raise ValidationException(errors[0], errors={"password": errors})
