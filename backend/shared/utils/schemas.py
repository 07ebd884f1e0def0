"""
Shared Pydantic schemas used across the application.
"""

from typing import Literal

from pydantic import BaseModel


# =============================================================================
# Common Types
# =============================================================================

MenuStatusLiteral = Literal["draft", "published", "archived"]
LineTypeLiteral = Literal["section", "item"]


# =============================================================================
# Error Schemas
# =============================================================================


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str
