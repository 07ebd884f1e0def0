"""
Application wiring: lifespan and CORS.
"""

from .cors import configure_cors
from .lifespan import lifespan

__all__ = ["configure_cors", "lifespan"]
