"""
Repository for the ``videos`` table.

Every mutating method commits exactly once, so each create, update, delete
and import batch is a single atomic write. Lookups that return ``None`` for
soft-deleted rows leave the NotFound decision to the caller.
"""

from typing import Iterable, List, Optional

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from db.filters import build_predicates, not_deleted
from db.models import VideoRecord
from logging_config import StructuredLogger
from models import VideoCreate, VideoFilter

logger = StructuredLogger(__name__)


class VideoRepository:
    """Data access object encapsulating video persistence."""

    def __init__(self, session: Session):
        self.session = session

    def insert(self, video: VideoCreate) -> VideoRecord:
        """Insert one video and return the stored row with its new id."""
        record = VideoRecord(**video.model_dump(), deleted=False)
        self.session.add(record)
        self._commit()
        logger.debug("Video inserted.", video_id=record.id)
        return record

    def insert_many(self, videos: Iterable[VideoCreate]) -> List[VideoRecord]:
        """Insert all ``videos`` in a single transaction."""
        records = [VideoRecord(**video.model_dump(), deleted=False) for video in videos]
        self.session.add_all(records)
        self._commit()
        logger.debug("Video batch inserted.", count=len(records))
        return records

    def find_by_id(self, video_id: int, include_deleted: bool = False) -> Optional[VideoRecord]:
        """Return the row for ``video_id``; soft-deleted rows only when asked for."""
        record = self.session.get(VideoRecord, video_id)
        if record is None or (record.deleted and not include_deleted):
            return None
        return record

    def find_all(self, filters: Optional[VideoFilter] = None) -> List[VideoRecord]:
        """Return every non-deleted row matching ``filters``, ordered by id."""
        stmt = select(VideoRecord).where(*build_predicates(filters)).order_by(VideoRecord.id)
        return list(self.session.scalars(stmt).all())

    def exists_active(self, video_id: int) -> bool:
        """Check the store directly for a non-deleted row with ``video_id``."""
        stmt = select(exists().where(VideoRecord.id == video_id, not_deleted()))
        return bool(self.session.scalar(stmt))

    def update(self, record: VideoRecord, changes: VideoCreate) -> VideoRecord:
        """Overwrite every mutable field of ``record`` with ``changes``.

        The ``deleted`` flag and the id are never touched.
        """
        data = changes.model_dump(include=set(VideoRecord.MUTABLE_FIELDS))
        for field_name in VideoRecord.MUTABLE_FIELDS:
            setattr(record, field_name, data.get(field_name))
        self._commit()
        return record

    def soft_delete(self, record: VideoRecord) -> VideoRecord:
        """Flag ``record`` as deleted. No other column changes."""
        record.deleted = True
        self._commit()
        return record

    def _commit(self) -> None:
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
