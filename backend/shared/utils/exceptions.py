"""
Centralized HTTP exceptions for consistent error handling.

Every exception logs itself with structured context on construction and
carries the status code and detail that the API renders as
``{"error": detail}``.

Usage:
    from shared.utils.exceptions import NotFoundError, PermissionDeniedError

    raise NotFoundError("Menu", menu_id)
    raise PermissionDeniedError("menu.delete")
    raise ValidationError("Parent line not found or is not a section")
"""

from typing import Any

from fastapi import HTTPException, status

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions inherit from this class so that logging and the
    response format stay consistent.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)

    def to_body(self) -> dict[str, str]:
        """Response body for this error."""
        return {"error": self.detail}


# =============================================================================
# 401 Unauthenticated
# =============================================================================


class UnauthenticatedError(AppException):
    """No resolvable principal for the request (401)."""

    def __init__(self, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            log_level="info",
            **log_context,
        )


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Menu", 123)
        raise NotFoundError("Line", line_id, tenant_id=tenant_id)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class ResourceNotFoundError(AppException):
    """
    Resource belongs to another tenant (404).

    Deliberately indistinguishable from a true not-found so that a
    principal cannot probe for other tenants' resources.
    """

    def __init__(self, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Access denied: Resource not found",
            log_level="warning",
            **log_context,
        )


# =============================================================================
# 403 Forbidden Errors
# =============================================================================


class ForbiddenError(AppException):
    """
    Authorization error (403).

    Usage:
        raise ForbiddenError("Owners cannot demote themselves")
    """

    def __init__(self, detail: str = "Access denied", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class PermissionDeniedError(ForbiddenError):
    """Principal lacks a permission key. The key is named in the message."""

    def __init__(self, permission: str, **log_context: Any):
        self.permission = permission
        super().__init__(
            f"Insufficient permissions: requires '{permission}'",
            permission=permission,
            **log_context,
        )


class RoleHierarchyError(ForbiddenError):
    """Attempt to manage a user whose role is equal to or above the principal's."""

    def __init__(self, target_role: str | None = None, **log_context: Any):
        super().__init__(
            "Cannot manage users with equal or higher role",
            target_role=target_role,
            **log_context,
        )


class RoleAssignmentError(ForbiddenError):
    """Attempt to grant a role equal to or above the principal's."""

    def __init__(self, target_role: str | None = None, **log_context: Any):
        super().__init__(
            "Cannot assign a role equal to or higher than your own",
            target_role=target_role,
            **log_context,
        )


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Raised before any persistence write.

    Usage:
        raise ValidationError("Line cannot be its own parent", line_id=7)
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class InvalidTransitionError(ValidationError):
    """Invalid status transition."""

    def __init__(self, entity: str, from_status: str, to_status: str, **log_context: Any):
        detail = f"Invalid transition from '{from_status}' to '{to_status}' for {entity}"
        super().__init__(detail, entity=entity, from_status=from_status, to_status=to_status, **log_context)


# =============================================================================
# 409 Conflict Errors
# =============================================================================


class ConflictError(AppException):
    """Resource conflict error (409)."""

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            log_level="warning",
            **log_context,
        )


# =============================================================================
# 500 Internal Server Errors
# =============================================================================


class InternalError(AppException):
    """Internal server error (500)."""

    def __init__(self, detail: str = "Internal server error", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            log_level="error",
            **log_context,
        )


class TransactionError(InternalError):
    """
    A multi-step mutation failed partway and was rolled back.

    Prior state is intact; no partial success is reported.
    """

    def __init__(self, operation: str, **log_context: Any):
        detail = f"Failed to {operation}. No changes were applied."
        super().__init__(detail, operation=operation, **log_context)


class CatalogError(RuntimeError):
    """The permission catalog is inconsistent. Raised at startup, never per request."""
