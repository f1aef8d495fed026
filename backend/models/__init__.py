"""SQLAlchemy ORM models for the Creepy Cards database."""

from backend.models.base import Base
from backend.models.stored_value import StoredValue

__all__ = ["Base", "StoredValue"]
