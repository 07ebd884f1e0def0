"""
Permission catalog mirror tables.

Written only by the permission sync command so that admin screens can list
roles and permissions. Authorization decisions never read these tables.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, Boolean, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, BigIntPK, TimestampMixin


class SystemPermission(AuditMixin, Base):
    """One registered ``<resource>.<action>`` key."""

    __tablename__ = "system_permission"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    key: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    label: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class SystemRole(AuditMixin, Base):
    """A role record with its explicit hierarchy level."""

    __tablename__ = "system_role"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    slug: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    permission_links: Mapped[list["SystemRolePermission"]] = relationship(
        back_populates="role", cascade="all, delete-orphan"
    )


class SystemRolePermission(TimestampMixin, Base):
    """Default grant of a permission to a role."""

    __tablename__ = "system_role_permission"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    role_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("system_role.id"), nullable=False, index=True
    )
    permission_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("system_permission.id"), nullable=False, index=True
    )

    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
    )

    # Relationships
    role: Mapped["SystemRole"] = relationship(back_populates="permission_links")
    permission: Mapped["SystemPermission"] = relationship()
