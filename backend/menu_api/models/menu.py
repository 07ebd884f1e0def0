"""
Menu Models: Menu, MenuTranslation, MenuLine and MenuPublication.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, BigIntPK, TimestampMixin

if TYPE_CHECKING:
    from .tenant import Brand, Location
    from .catalog import Section, Item


class Menu(AuditMixin, Base):
    """
    A named container for an ordered section/item tree, scoped to one brand.

    Status lifecycle: draft -> published, published -> draft (unpublish),
    any -> archived (terminal).
    """

    __tablename__ = "menu"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id"), nullable=False, index=True
    )
    brand_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("brand.id"), nullable=False, index=True
    )
    code: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, default="draft", nullable=False, index=True)
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint("brand_id", "code", name="uq_menu_brand_code"),
    )

    # Relationships
    brand: Mapped["Brand"] = relationship(back_populates="menus")
    translations: Mapped[list["MenuTranslation"]] = relationship(
        back_populates="menu", cascade="all, delete-orphan"
    )
    lines: Mapped[list["MenuLine"]] = relationship(back_populates="menu")
    publications: Mapped[list["MenuPublication"]] = relationship(back_populates="menu")

    def __repr__(self) -> str:
        return f"<Menu(id={self.id}, code='{self.code}', status='{self.status}')>"


class MenuTranslation(TimestampMixin, Base):
    """Localized name/description of a menu."""

    __tablename__ = "menu_translation"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    menu_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("menu.id"), nullable=False, index=True
    )
    locale: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint("menu_id", "locale", name="uq_menu_translation_locale"),
    )

    menu: Mapped["Menu"] = relationship(back_populates="translations")


class MenuLine(TimestampMixin, Base):
    """
    Places a Section or an Item into a menu at a position.

    Section lines are top-level (``parent_line_id`` NULL) or nested under
    another section line; item lines always hang under a section line of the
    same menu. Sibling order is ``display_order`` with ties broken by ``id``,
    which is assigned in insertion order.
    """

    __tablename__ = "menu_line"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id"), nullable=False, index=True
    )
    menu_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("menu.id"), nullable=False, index=True
    )
    line_type: Mapped[str] = mapped_column(Text, nullable=False)  # section, item
    section_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("section.id"), index=True
    )
    item_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("item.id"), index=True
    )
    parent_line_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("menu_line.id")
    )
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("ix_menu_line_menu_parent", "menu_id", "parent_line_id"),
    )

    # Relationships
    menu: Mapped["Menu"] = relationship(back_populates="lines")
    section: Mapped[Optional["Section"]] = relationship()
    item: Mapped[Optional["Item"]] = relationship()

    def __repr__(self) -> str:
        return (
            f"<MenuLine(id={self.id}, menu_id={self.menu_id}, type='{self.line_type}', "
            f"parent={self.parent_line_id}, order={self.display_order})>"
        )


class MenuPublication(TimestampMixin, Base):
    """
    Records that a menu is (or was) live at a location.

    One row per (location, menu) pair; activation flips ``is_current`` on the
    existing row. Several menus may be current at one location at once.
    """

    __tablename__ = "menu_publication"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id"), nullable=False, index=True
    )
    menu_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("menu.id"), nullable=False, index=True
    )
    location_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("location.id"), nullable=False, index=True
    )
    is_current: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    activated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    deactivated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint("location_id", "menu_id", name="uq_publication_location_menu"),
    )

    # Relationships
    menu: Mapped["Menu"] = relationship(back_populates="publications")
    location: Mapped["Location"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<MenuPublication(id={self.id}, location_id={self.location_id}, "
            f"menu_id={self.menu_id}, current={self.is_current})>"
        )
