"""
Filter builder for video listings.

Each optional filter is a (field, builder) pair applied in order; a filter is
skipped when its value is absent (None or empty string). The "not deleted"
predicate is always first, and all predicates are combined with AND.
"""

from typing import Any, Callable, List, Optional, Sequence, Tuple

from sqlalchemy import ColumnElement, false, or_

from db.models import VideoRecord
from models import VideoFilter

PredicateBuilder = Callable[[Any], ColumnElement[bool]]


def _contains(column) -> PredicateBuilder:
    # autoescape makes % and _ in user input match literally
    return lambda value: column.contains(value, autoescape=True)


def _general_search(value: str) -> ColumnElement[bool]:
    return or_(
        VideoRecord.title.contains(value, autoescape=True),
        VideoRecord.description.contains(value, autoescape=True),
        VideoRecord.channel_name.contains(value, autoescape=True),
    )


def _published_after(value) -> ColumnElement[bool]:
    return VideoRecord.published_at > value


FILTER_BUILDERS: Sequence[Tuple[str, PredicateBuilder]] = (
    ("title", _contains(VideoRecord.title)),
    ("duration", _contains(VideoRecord.duration)),
    ("author", _contains(VideoRecord.author)),
    ("published_after", _published_after),
    ("q", _general_search),
)


def is_active(value: Any) -> bool:
    """A filter value counts only when it is neither None nor an empty string."""
    return value is not None and value != ""


def not_deleted() -> ColumnElement[bool]:
    return VideoRecord.deleted == false()


def build_predicates(filters: Optional[VideoFilter] = None) -> List[ColumnElement[bool]]:
    """Build the WHERE predicates for ``filters``.

    Args:
        filters: Caller-supplied filters, or None for "everything not deleted".

    Returns:
        list: ``[deleted == false, <active filters in declaration order>...]``
    """
    predicates = [not_deleted()]
    if filters is None:
        return predicates

    for field_name, builder in FILTER_BUILDERS:
        value = getattr(filters, field_name)
        if is_active(value):
            predicates.append(builder(value))
    return predicates
