"""
Staff User Model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import JSON, BigInteger, ForeignKey, Index, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import Roles

from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .tenant import Tenant


class User(AuditMixin, Base):
    """
    Represents an admin-side staff member.

    Each user holds exactly one role plus an optional permission override.
    ``permissions`` is NULL when unset (role defaults apply); an empty list
    is an explicit revocation of every permission.
    ``location_ids`` optionally restricts below-manager roles to specific
    locations.
    """

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id"), nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(Text, nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(Text)
    last_name: Mapped[Optional[str]] = mapped_column(Text)
    role: Mapped[str] = mapped_column(Text, nullable=False, default=Roles.MENU_EDITOR)
    permissions: Mapped[Optional[list[str]]] = mapped_column(
        JSON(none_as_null=True), nullable=True
    )
    location_ids: Mapped[Optional[list[int]]] = mapped_column(
        JSON(none_as_null=True), nullable=True
    )

    # Email is unique per tenant
    __table_args__ = (
        UniqueConstraint("tenant_id", "email", name="uq_user_tenant_email"),
        Index("ix_user_email", "email"),
    )

    # Relationships
    tenant: Mapped["Tenant"] = relationship(back_populates="users")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
