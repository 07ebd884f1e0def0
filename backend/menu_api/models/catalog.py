"""
Catalog Models: reusable Sections and Items with translations, prices and
allergen/dietary tags.

Sections and items are tenant-scoped and not owned by any menu; menus
reference them through MenuLine rows.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, BigIntPK, TimestampMixin


class Section(AuditMixin, Base):
    """
    A reusable group heading ("Starters", "Cocktails").
    """

    __tablename__ = "section"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id"), nullable=False, index=True
    )
    code: Mapped[Optional[str]] = mapped_column(Text)

    # Relationships
    translations: Mapped[list["SectionTranslation"]] = relationship(
        back_populates="section", cascade="all, delete-orphan"
    )
    items: Mapped[list["Item"]] = relationship(back_populates="section")


class SectionTranslation(TimestampMixin, Base):
    """Localized title/description of a section."""

    __tablename__ = "section_translation"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    section_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("section.id"), nullable=False, index=True
    )
    locale: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint("section_id", "locale", name="uq_section_translation_locale"),
    )

    section: Mapped["Section"] = relationship(back_populates="translations")


class Item(AuditMixin, Base):
    """
    A sellable dish or drink.

    ``is_visible`` is the global visibility switch; changing it cascades to
    ``MenuLine.is_enabled`` on every line referencing the item.
    """

    __tablename__ = "item"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id"), nullable=False, index=True
    )
    # Home section, used by authoring screens; menus may place the item anywhere
    section_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("section.id"), index=True
    )
    sku: Mapped[Optional[str]] = mapped_column(Text)
    is_visible: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("ix_item_tenant_sku", "tenant_id", "sku"),
    )

    # Relationships
    section: Mapped[Optional["Section"]] = relationship(back_populates="items")
    translations: Mapped[list["ItemTranslation"]] = relationship(
        back_populates="item", cascade="all, delete-orphan"
    )
    prices: Mapped[list["ItemPrice"]] = relationship(
        back_populates="item", cascade="all, delete-orphan"
    )
    allergens: Mapped[list["ItemAllergen"]] = relationship(
        back_populates="item", cascade="all, delete-orphan"
    )
    dietary_flags: Mapped[list["ItemDietaryFlag"]] = relationship(
        back_populates="item", cascade="all, delete-orphan"
    )


class ItemTranslation(TimestampMixin, Base):
    """Localized name/description of an item."""

    __tablename__ = "item_translation"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("item.id"), nullable=False, index=True
    )
    locale: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint("item_id", "locale", name="uq_item_translation_locale"),
    )

    item: Mapped["Item"] = relationship(back_populates="translations")


class ItemPrice(TimestampMixin, Base):
    """
    Base price of an item in one currency.
    Amount is an integer in minor units (cents), never a float.
    """

    __tablename__ = "item_price"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("item.id"), nullable=False, index=True
    )
    currency: Mapped[str] = mapped_column(Text, nullable=False)
    amount_minor: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        UniqueConstraint("item_id", "currency", name="uq_item_price_currency"),
    )

    item: Mapped["Item"] = relationship(back_populates="prices")


class ItemAllergen(TimestampMixin, Base):
    """Allergen declared on an item, by reference code ("gluten", "nuts")."""

    __tablename__ = "item_allergen"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("item.id"), nullable=False, index=True
    )
    allergen_code: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        UniqueConstraint("item_id", "allergen_code", name="uq_item_allergen"),
    )

    item: Mapped["Item"] = relationship(back_populates="allergens")


class ItemDietaryFlag(TimestampMixin, Base):
    """Dietary flag on an item ("vegan", "halal")."""

    __tablename__ = "item_dietary_flag"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("item.id"), nullable=False, index=True
    )
    flag_code: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        UniqueConstraint("item_id", "flag_code", name="uq_item_dietary_flag"),
    )

    item: Mapped["Item"] = relationship(back_populates="dietary_flags")
