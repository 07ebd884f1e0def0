"""
Multi-Tenancy Models: Tenant, Brand and Location.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.settings import settings

from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .user import User
    from .menu import Menu


class Tenant(AuditMixin, Base):
    """
    Represents a restaurant group (top-level tenant).
    All other entities belong to a tenant for complete data isolation.
    """

    __tablename__ = "tenant"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    default_currency: Mapped[str] = mapped_column(Text, default=settings.default_currency, nullable=False)
    default_locale: Mapped[str] = mapped_column(Text, default=settings.default_locale, nullable=False)

    # Relationships
    brands: Mapped[list["Brand"]] = relationship(back_populates="tenant")
    users: Mapped[list["User"]] = relationship(back_populates="tenant")

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, slug='{self.slug}')>"


class Brand(AuditMixin, Base):
    """
    A concept operated by a tenant. Menus are authored per brand.
    """

    __tablename__ = "brand"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "slug", name="uq_brand_tenant_slug"),
    )

    # Relationships
    tenant: Mapped["Tenant"] = relationship(back_populates="brands")
    locations: Mapped[list["Location"]] = relationship(back_populates="brand")
    menus: Mapped[list["Menu"]] = relationship(back_populates="brand")


class Location(AuditMixin, Base):
    """
    A physical venue of a brand. Menus are published to locations.
    """

    __tablename__ = "location"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id"), nullable=False, index=True
    )
    brand_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("brand.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, nullable=False)
    timezone: Mapped[str] = mapped_column(Text, default="UTC")
    address: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint("brand_id", "slug", name="uq_location_brand_slug"),
    )

    # Relationships
    brand: Mapped["Brand"] = relationship(back_populates="locations")

    def __repr__(self) -> str:
        return f"<Location(id={self.id}, name='{self.name}')>"
