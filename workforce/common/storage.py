"""Local-disk storage for multipart uploads (documents, photos, proofs, attachments)."""

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import UploadFile

from workforce.common.exceptions import ValidationException
from workforce.config import settings

IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/webp"})
PROOF_TYPES = IMAGE_TYPES | {"application/pdf"}
DOCUMENT_TYPES = PROOF_TYPES | {
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
}


@dataclass
class StoredFile:
    url: str
    file_name: str
    original_name: str
    mime_type: str
    size: int


async def save_upload(
    file: UploadFile,
    kind: str,
    *,
    allowed_types: Optional[Iterable[str]] = None,
    max_size_mb: Optional[int] = None,
) -> StoredFile:
    """Validate and write *file* under ``UPLOAD_DIR/<kind>/``.

    Raises ValidationException for a disallowed MIME type, an empty file
    or one over the size cap.
    """
    if allowed_types is not None and file.content_type not in set(allowed_types):
        raise ValidationException(
            f"File type '{file.content_type}' not allowed.",
            errors={"file": [f"Unsupported type {file.content_type}"]},
        )

    contents = await file.read()
    if not contents:
        raise ValidationException("Uploaded file is empty.")

    limit_mb = max_size_mb or settings.MAX_UPLOAD_SIZE_MB
    if len(contents) > limit_mb * 1024 * 1024:
        raise ValidationException(f"File too large. Maximum size is {limit_mb} MB.")

    upload_dir = os.path.join(settings.UPLOAD_DIR, kind)
    os.makedirs(upload_dir, exist_ok=True)

    # UUID-only filename; the client name is kept as metadata only
    ext = os.path.splitext(file.filename or "")[1].lower()
    safe_name = f"{uuid.uuid4().hex}{ext}"
    with open(os.path.join(upload_dir, safe_name), "wb") as f:
        f.write(contents)

    return StoredFile(
        url=f"/uploads/{kind}/{safe_name}",
        file_name=safe_name,
        original_name=file.filename or safe_name,
        mime_type=file.content_type or "application/octet-stream",
        size=len(contents),
    )
