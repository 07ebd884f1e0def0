"""
Base Service for domain operations.

Architecture:
    Router (thin) → Service (business logic) → Repository (data access) → Model

Every multi-step mutation runs inside ``self._atomic(...)``: the block
commits as one unit, and a persistence failure rolls everything back and
surfaces as TransactionError (500) with prior state intact.

Usage:
    class ItemService(DomainService):
        def set_item_visibility(self, tenant_id, item_id, is_visible):
            with self._atomic("update item visibility", item_id=item_id):
                ...
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shared.config.logging import get_logger
from shared.infrastructure.db import transaction
from shared.utils.exceptions import TransactionError

logger = get_logger(__name__)


class DomainService:
    """Common infrastructure for domain services."""

    def __init__(self, db: Session):
        self._db = db

    @property
    def db(self) -> Session:
        """Database session."""
        return self._db

    @contextmanager
    def _atomic(self, operation: str, **log_context: Any) -> Iterator[Session]:
        """
        Run a block as one transaction.

        Domain errors (AppException) raised inside the block roll back and
        propagate unchanged; persistence errors become TransactionError.
        """
        try:
            with transaction(self._db):
                yield self._db
        except SQLAlchemyError as e:
            logger.error(
                f"Transaction failed: {operation}",
                exc_info=True,
                error_type=type(e).__name__,
                **log_context,
            )
            raise TransactionError(operation, **log_context) from e
