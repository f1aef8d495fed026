from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.models.base import Base, TimestampMixin


class StoredValue(Base, TimestampMixin):
    """A string value under a fixed key, the server-side stand-in for browser local storage."""

    __tablename__ = "stored_values"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)  # JSON document
