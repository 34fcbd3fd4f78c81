"""ORM model for the ``videos`` table."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from db.database import Base
from models import TITLE_MAX_LENGTH


class VideoRecord(Base):
    """A stored video. Rows are soft-deleted through ``deleted``, never removed."""

    __tablename__ = "videos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    duration: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    author: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    published_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    channel_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    # Fields overwritten together by a full update
    MUTABLE_FIELDS = ("title", "duration", "author", "published_at", "description", "channel_name")

    def __repr__(self) -> str:
        return f"VideoRecord(id={self.id!r}, title={self.title!r}, deleted={self.deleted!r})"
