"""Invalid STRM list query: optional filters, keyword search, date window, pagination."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from enum import Enum

from sqlalchemy import ColumnElement, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import InstrumentedAttribute, Query, Session

from strm_triage.config import get_settings
from strm_triage.models.invalid_strm_file import InvalidStrmFile
from strm_triage.schemas.invalid_strm import (
    DetectionType,
    InvalidStrmFilePage,
    InvalidStrmFilter,
    InvalidStrmReason,
    InvalidStrmStatus,
)
from strm_triage.services.errors import StoreError, ValidationError
from strm_triage.services.invalid_strm_records import model_to_read

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


# ── Date window ──────────────────────────────────────────────────────


def parse_date_bound(value: str | None, *, field: str) -> datetime | None:
    """Parse a YYYY-MM-DD bound to UTC midnight.

    Returns None for missing, blank or malformed input; the caller then skips
    the constraint instead of rejecting the request.
    """
    if value is None or not value.strip():
        return None
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).replace(tzinfo=UTC)
    except ValueError:
        logger.warning("Ignoring malformed %s=%r (expected YYYY-MM-DD)", field, value)
        return None


def detection_window(
    date_start: str | None,
    date_end: str | None,
) -> tuple[datetime | None, datetime | None]:
    """Parse both bounds once; malformed ones come back as None."""
    return (
        parse_date_bound(date_start, field="date_start"),
        parse_date_bound(date_end, field="date_end"),
    )


def apply_detection_window(
    query: Query,
    start: datetime | None,
    end: datetime | None,
) -> Query:
    """Constrain query to detection_time within [start 00:00, end + 1 day)."""
    if start is not None:
        query = query.filter(InvalidStrmFile.detection_time >= start)
    if end is not None:
        query = query.filter(InvalidStrmFile.detection_time < end + timedelta(days=1))
    return query


# ── Predicates ───────────────────────────────────────────────────────


def _escape_like(keyword: str) -> str:
    return keyword.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _enum_filter(
    column: InstrumentedAttribute[str],
    value: Enum,
    known: tuple[Enum, ...],
) -> ColumnElement[bool]:
    """Equality on a known member; ``unknown`` matches any unrecognised stored value."""
    if value.value == "unknown":
        return column.not_in([member.value for member in known])
    return column == value.value


def apply_filters(query: Query, filters: InvalidStrmFilter) -> Query:
    """AND-compose every present filter onto query."""
    if filters.status is not None:
        query = query.filter(
            _enum_filter(InvalidStrmFile.status, filters.status, InvalidStrmStatus.known())
        )
    if filters.reason is not None:
        query = query.filter(
            _enum_filter(InvalidStrmFile.reason, filters.reason, InvalidStrmReason.known())
        )
    if filters.detection_type is not None:
        query = query.filter(
            _enum_filter(
                InvalidStrmFile.detection_type, filters.detection_type, DetectionType.known()
            )
        )

    keyword = (filters.keyword or "").strip()
    if keyword:
        pattern = f"%{_escape_like(keyword)}%"
        query = query.filter(
            or_(
                InvalidStrmFile.file_name.ilike(pattern, escape="\\"),
                InvalidStrmFile.source_path.ilike(pattern, escape="\\"),
                InvalidStrmFile.target_file_path.ilike(pattern, escape="\\"),
            )
        )

    start, end = detection_window(filters.detection_time_start, filters.detection_time_end)
    return apply_detection_window(query, start, end)


def effective_page_size(page_size: int) -> int:
    """Clamp page_size to the configured maximum."""
    return min(page_size, get_settings().max_page_size)


# ── Listing ──────────────────────────────────────────────────────────


def list_invalid_records(
    db: Session,
    filters: InvalidStrmFilter | None = None,
    *,
    page: int = 1,
    page_size: int = 20,
) -> InvalidStrmFilePage:
    """Return one page of matching records (detection_time DESC) and the total count.

    page and page_size must be >= 1; page_size above the maximum is clamped.
    Store failures raise StoreError; no partial page is returned.
    """
    if page < 1:
        raise ValidationError("page must be >= 1")
    if page_size < 1:
        raise ValidationError("page_size must be >= 1")

    filters = filters or InvalidStrmFilter()
    page_size = effective_page_size(page_size)
    offset = (page - 1) * page_size
    logger.debug(
        "Listing invalid STRM records page=%d page_size=%d keyword=%r",
        page,
        page_size,
        filters.keyword,
    )

    base_query = apply_filters(db.query(InvalidStrmFile), filters)
    try:
        total = base_query.count()
        rows = (
            base_query.order_by(
                InvalidStrmFile.detection_time.desc(), InvalidStrmFile.id.desc()
            )
            .offset(offset)
            .limit(page_size)
            .all()
        )
    except SQLAlchemyError as exc:
        logger.exception("Failed to list invalid STRM records")
        raise StoreError("Failed to list invalid STRM records") from exc

    logger.debug("Listed invalid STRM records total=%d count=%d", total, len(rows))
    return InvalidStrmFilePage(
        items=[model_to_read(r) for r in rows],
        total=total,
        page=page,
        page_size=page_size,
    )
