"""
Utilities module: Exceptions, validators, schemas.
"""

from shared.utils.exceptions import (
    AppException,
    NotFoundError,
    ForbiddenError,
    ValidationError,
    ConflictError,
    TransactionError,
)
from shared.utils.validators import (
    validate_currency_code,
    validate_locale,
)
from shared.utils.schemas import ErrorResponse

__all__ = [
    # exceptions
    "AppException",
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "ConflictError",
    "TransactionError",
    # validators
    "validate_currency_code",
    "validate_locale",
    # schemas
    "ErrorResponse",
]
