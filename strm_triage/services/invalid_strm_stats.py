"""Invalid STRM statistics: totals per status and per reason over a detection window."""

from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from strm_triage.models.invalid_strm_file import InvalidStrmFile
from strm_triage.schemas.invalid_strm import (
    InvalidStrmStatistics,
    InvalidStrmStatus,
    ReasonCount,
    StatusCounts,
    describe_reason,
)
from strm_triage.services.errors import StoreError
from strm_triage.services.invalid_strm_query import (
    apply_detection_window,
    detection_window,
)

logger = logging.getLogger(__name__)


def get_statistics(
    db: Session,
    date_start: str | None = None,
    date_end: str | None = None,
) -> InvalidStrmStatistics:
    """Count records in the window by status and by reason.

    Status buckets are one grouped pass, zero-filled afterwards so all four are
    always reported. Reason buckets list only reasons present in the window.
    Both sum to total.
    """
    logger.debug("Computing invalid STRM statistics start=%s end=%s", date_start, date_end)
    start, end = detection_window(date_start, date_end)
    try:
        status_rows = apply_detection_window(
            db.query(InvalidStrmFile.status, func.count(InvalidStrmFile.id)),
            start,
            end,
        ).group_by(InvalidStrmFile.status).all()
        reason_rows = apply_detection_window(
            db.query(InvalidStrmFile.reason, func.count(InvalidStrmFile.id)),
            start,
            end,
        ).group_by(InvalidStrmFile.reason).all()
    except SQLAlchemyError as exc:
        logger.exception("Failed to compute invalid STRM statistics")
        raise StoreError("Failed to compute invalid STRM statistics") from exc

    buckets = {status.value: 0 for status in InvalidStrmStatus.known()}
    unknown_status = 0
    for status, count in status_rows:
        if status in buckets:
            buckets[status] += count
        else:
            unknown_status += count
    total = sum(buckets.values()) + unknown_status

    reason_counts = [
        ReasonCount(reason=reason, description=describe_reason(reason), count=count)
        for reason, count in sorted(reason_rows, key=lambda r: (-r[1], r[0]))
        if count > 0
    ]

    return InvalidStrmStatistics(
        total=total,
        status_counts=StatusCounts(**buckets, unknown_status=unknown_status),
        reason_counts=reason_counts,
    )
