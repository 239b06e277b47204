"""Common module: shared utilities for the workforce platform."""

from workforce.common.audit import AuditLog, create_audit_entry
from workforce.common.constants import (
    PERMISSIONS,
    ROLE_HIERARCHY,
    LeaveStatus,
    NotificationType,
    UserRole,
)
from workforce.common.exceptions import (
    AppException,
    ConflictError,
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)
from workforce.common.filters import apply_filters, apply_search
from workforce.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)

__all__ = [
    # Audit
    "AuditLog",
    "create_audit_entry",
    # Constants / Enums
    "LeaveStatus",
    "NotificationType",
    "UserRole",
    "PERMISSIONS",
    "ROLE_HIERARCHY",
    # Exceptions
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "NotFoundException",
    "UnauthorizedException",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    "apply_search",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
