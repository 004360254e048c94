"""DB-API adapter layer."""

from .database import Database

__all__ = ["Database"]
