"""
Pydantic schemas for admin API endpoints.

Request bodies are validated here for shape only; business rules
(parent rules, state transitions, hierarchy) live in the services.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.utils.schemas import LineTypeLiteral, MenuStatusLiteral


# =============================================================================
# Auth Schemas
# =============================================================================


class MeOutput(BaseModel):
    id: int
    email: str
    role: str
    tenant_id: int
    permissions: list[str]
    has_override: bool
    location_ids: list[int]
    is_superuser: bool


# =============================================================================
# Menu Schemas
# =============================================================================


class MenuTranslationInput(BaseModel):
    locale: str
    name: str
    description: str | None = None


class MenuTranslationOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    locale: str
    name: str
    description: str | None = None


class MenuOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    brand_id: int
    code: str
    status: MenuStatusLiteral
    published_at: Optional[datetime] = None
    is_active: bool
    created_at: datetime
    translations: list[MenuTranslationOutput] = []


class MenuCreate(BaseModel):
    brand_id: int
    code: str
    translations: list[MenuTranslationInput] = []


# =============================================================================
# Menu Line Schemas
# =============================================================================


class MenuLineOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    menu_id: int
    line_type: LineTypeLiteral
    section_id: int | None = None
    item_id: int | None = None
    parent_line_id: int | None = None
    display_order: int
    is_enabled: bool


class LineNodeOutput(MenuLineOutput):
    children: list["LineNodeOutput"] = []

    @classmethod
    def from_node(cls, node) -> "LineNodeOutput":
        """Build from a service ``LineNode``, recursing into its children."""
        return cls(
            **MenuLineOutput.model_validate(node.line).model_dump(),
            children=[cls.from_node(child) for child in node.children],
        )


class PublishedMenuOutput(MenuOutput):
    """A live menu and the lines guests see."""

    lines: list[LineNodeOutput] = []


class LineCreate(BaseModel):
    line_type: LineTypeLiteral
    section_id: int | None = None
    item_id: int | None = None
    parent_line_id: int | None = None
    display_order: int | None = None
    is_enabled: bool | None = None


class LineUpdate(BaseModel):
    """Only fields present in the body are applied."""

    parent_line_id: int | None = None
    display_order: int | None = None
    is_enabled: bool | None = None


class LineDeleteOutput(BaseModel):
    line_id: int
    reparented_ids: list[int]
    new_parent_id: int | None = None


class ReorderEntry(BaseModel):
    id: int
    display_order: int
    parent_line_id: int | None = None


class ReorderRequest(BaseModel):
    lines: list[ReorderEntry]


# =============================================================================
# Item Schemas
# =============================================================================


class VisibilityUpdate(BaseModel):
    is_visible: bool


class ItemVisibilityOutput(BaseModel):
    item_id: int
    is_visible: bool
    lines_updated: int


class PriceUpdate(BaseModel):
    currency: str
    amount_minor: int


class ItemPriceOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    currency: str
    amount_minor: int


# =============================================================================
# Publication Schemas
# =============================================================================


class PublicationOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    menu_id: int
    location_id: int
    is_current: bool
    activated_at: Optional[datetime] = None
    deactivated_at: Optional[datetime] = None


class PublicationCreate(BaseModel):
    location_id: int
    menu_id: int


class PublicationBatch(BaseModel):
    location_id: int
    menu_ids: list[int] = Field(min_length=1)


class PublicationUpdate(BaseModel):
    is_current: bool


class ActivationOutcomeOutput(BaseModel):
    menu_id: int
    ok: bool
    publication_id: int | None = None
    error: str | None = None


class BatchActivationOutput(BaseModel):
    location_id: int
    succeeded: list[int]
    failed: list[int]
    outcomes: list[ActivationOutcomeOutput]


# =============================================================================
# Staff Schemas
# =============================================================================


class StaffOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role: str
    permissions: Optional[list[str]] = None
    location_ids: Optional[list[int]] = None
    is_active: bool


class RoleUpdate(BaseModel):
    role: str


class PermissionsUpdate(BaseModel):
    """``keys: null`` restores role defaults; ``[]`` revokes everything."""

    keys: Optional[list[str]] = None
