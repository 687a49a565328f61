"""Invalid STRM statistics tests."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from strm_triage.models import InvalidStrmFile
from strm_triage.services.errors import StoreError
from strm_triage.services.invalid_strm_stats import get_statistics
from strm_triage.services.invalid_strm_transition import batch_transition, begin_processing


def _status_sum(stats) -> int:
    counts = stats.status_counts
    return (
        counts.pending
        + counts.confirmed
        + counts.ignored
        + counts.processing
        + counts.unknown_status
    )


@pytest.fixture
def seeded(db: Session, record_factory) -> dict:
    """Five records across two days, three reasons and all four statuses."""
    jan5 = datetime(2024, 1, 5, 10, tzinfo=UTC)
    jan6 = datetime(2024, 1, 6, 10, tzinfo=UTC)
    rows = {
        "pending_a": record_factory(detection_time=jan5, reason="file_not_found"),
        "pending_b": record_factory(detection_time=jan6, reason="url_invalid"),
        "confirmed": record_factory(detection_time=jan5, reason="file_not_found"),
        "ignored": record_factory(detection_time=jan6, reason="server_error"),
        "processing": record_factory(detection_time=jan6, reason="url_invalid"),
    }
    batch_transition(db, [rows["confirmed"].id], "confirmed", "admin")
    batch_transition(db, [rows["ignored"].id], "ignored", "admin")
    begin_processing(db, [rows["processing"].id], "resolver")
    return rows


def test_empty_store_reports_all_four_statuses_at_zero(db: Session) -> None:
    stats = get_statistics(db)
    assert stats.total == 0
    assert stats.status_counts.model_dump() == {
        "pending": 0,
        "confirmed": 0,
        "ignored": 0,
        "processing": 0,
        "unknown_status": 0,
    }
    assert stats.reason_counts == []


def test_counts_without_window(db: Session, seeded: dict) -> None:
    stats = get_statistics(db)

    assert stats.total == 5
    assert stats.status_counts.pending == 2
    assert stats.status_counts.confirmed == 1
    assert stats.status_counts.ignored == 1
    assert stats.status_counts.processing == 1
    assert _status_sum(stats) == stats.total

    by_reason = {r.reason: r.count for r in stats.reason_counts}
    assert by_reason == {"file_not_found": 2, "url_invalid": 2, "server_error": 1}
    assert sum(by_reason.values()) == stats.total


def test_window_applies_to_status_and_reason_counts(db: Session, seeded: dict) -> None:
    stats = get_statistics(db, date_start="2024-01-05", date_end="2024-01-05")

    assert stats.total == 2
    assert stats.status_counts.pending == 1
    assert stats.status_counts.confirmed == 1
    assert stats.status_counts.ignored == 0
    assert stats.status_counts.processing == 0
    assert _status_sum(stats) == stats.total
    assert [(r.reason, r.count) for r in stats.reason_counts] == [("file_not_found", 2)]


def test_reasons_with_zero_matches_are_omitted(db: Session, seeded: dict) -> None:
    stats = get_statistics(db, date_start="2024-01-06")
    reasons = {r.reason for r in stats.reason_counts}
    assert "file_not_found" not in reasons
    assert all(r.count > 0 for r in stats.reason_counts)
    assert sum(r.count for r in stats.reason_counts) == stats.total == 3


def test_reason_counts_ordered_by_count_then_name(db: Session, seeded: dict) -> None:
    stats = get_statistics(db)
    assert [r.reason for r in stats.reason_counts] == [
        "file_not_found",
        "url_invalid",
        "server_error",
    ]
    assert stats.reason_counts[-1].description == "Server error"


def test_malformed_window_is_ignored(db: Session, seeded: dict) -> None:
    stats = get_statistics(db, date_start="01/05/2024", date_end="soon")
    assert stats.total == 5


def test_malformed_window_warns_once_per_bound(db: Session, seeded: dict, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="strm_triage.services.invalid_strm_query"):
        get_statistics(db, date_start="01/05/2024", date_end="soon")

    warnings = [r.getMessage() for r in caplog.records if "Ignoring malformed" in r.getMessage()]
    assert len(warnings) == 2
    assert any("date_start" in w for w in warnings)
    assert any("date_end" in w for w in warnings)


def test_unrecognised_stored_values_keep_sums_consistent(db: Session, seeded: dict) -> None:
    db.add(
        InvalidStrmFile(
            source_history_id=4242,
            detection_time=datetime(2024, 1, 5, 11, tzinfo=UTC),
            detection_type="auto",
            reason="dns_failure",
            status="archived",
            file_name="future.strm",
            source_path="/a/future.mkv",
            target_file_path="/t/future.strm",
            file_size=0,
        )
    )
    db.commit()

    stats = get_statistics(db)

    assert stats.total == 6
    assert stats.status_counts.unknown_status == 1
    assert _status_sum(stats) == stats.total
    future = [r for r in stats.reason_counts if r.reason == "dns_failure"]
    assert future and future[0].description == "Unknown error"
    assert sum(r.count for r in stats.reason_counts) == stats.total


def test_store_failure_raises_store_error() -> None:
    mock_db = MagicMock()
    mock_db.query.side_effect = OperationalError("SELECT", {}, Exception("down"))
    with pytest.raises(StoreError):
        get_statistics(mock_db)
