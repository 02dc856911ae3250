from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pitchdesk.db.base import Base, TimestampMixin


class StorageItem(TimestampMixin, Base):
    """One durable key, holding a string value (JSON or plain text)."""

    __tablename__ = "storage_items"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, default="", nullable=False)
