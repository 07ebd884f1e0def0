"""
Base Repository implementation.
Provides common data access patterns with tenant isolation.
"""

from typing import Generic, Sequence, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

ModelT = TypeVar("ModelT")


class TenantRepository(Generic[ModelT]):
    """
    Repository for tenant-scoped models.

    ``get`` is deliberately unscoped: it lets the guard layer load a row and
    then decide tenant access itself, so that a foreign-tenant id yields the
    same 404 as a missing one. Every other finder filters by tenant.
    """

    def __init__(self, model: type[ModelT], db: Session):
        self._model = model
        self._db = db

    @property
    def model(self) -> type[ModelT]:
        return self._model

    def _base_query(self, tenant_id: int) -> Select:
        return select(self._model).where(self._model.tenant_id == tenant_id)

    def get(self, entity_id: int) -> ModelT | None:
        """Load by primary key without tenant filtering (guard use only)."""
        return self._db.get(self._model, entity_id)

    def find_by_id(
        self,
        entity_id: int,
        tenant_id: int,
        include_inactive: bool = False,
    ) -> ModelT | None:
        """
        Find entity by ID within a tenant.

        Args:
            entity_id: Entity ID
            tenant_id: Tenant ID for isolation
            include_inactive: Include deactivated entities

        Returns:
            Entity or None
        """
        query = self._base_query(tenant_id).where(self._model.id == entity_id)
        if not include_inactive and hasattr(self._model, "is_active"):
            query = query.where(self._model.is_active.is_(True))
        return self._db.scalar(query)

    def find_by_ids(self, entity_ids: list[int], tenant_id: int) -> Sequence[ModelT]:
        """Find entities by IDs within a tenant (inactive rows included)."""
        if not entity_ids:
            return []
        query = self._base_query(tenant_id).where(self._model.id.in_(entity_ids))
        return self._db.scalars(query).all()

    def find_all(self, tenant_id: int, *order_by) -> Sequence[ModelT]:
        """All active entities of a tenant."""
        query = self._base_query(tenant_id)
        if hasattr(self._model, "is_active"):
            query = query.where(self._model.is_active.is_(True))
        if order_by:
            query = query.order_by(*order_by)
        return self._db.scalars(query).all()
