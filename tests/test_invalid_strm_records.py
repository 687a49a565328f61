"""Invalid STRM record gateway tests: get, create, bulk insert, update, delete."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from strm_triage.models import InvalidStrmFile
from strm_triage.services.errors import RecordNotFoundError, StoreError, ValidationError
from strm_triage.services.invalid_strm_records import (
    create_record,
    create_records,
    delete_records,
    get_by_source_history_id,
    get_record,
    model_to_read,
    update_record,
)
from strm_triage.services.invalid_strm_transition import batch_transition, begin_processing


def test_create_then_get_round_trips_snapshot_fields(db: Session, make_create) -> None:
    payload = make_create(
        file_name="Série Ünïcode (2024).strm",
        source_path="/alist/tv/Série/S01E01.mkv",
        target_file_path="/media/tv/Série/S01E01.strm",
        file_size=4096,
        strm_url="https://alist.local/d/tv/S%C3%A9rie/S01E01.mkv?sign=abc",
        http_status_code=404,
        reason="url_invalid",
        detection_type="manual",
    )
    created = create_record(db, payload)

    fetched = get_record(db, created.id)
    assert fetched.file_name == payload.file_name
    assert fetched.source_path == payload.source_path
    assert fetched.target_file_path == payload.target_file_path
    assert fetched.file_size == payload.file_size
    assert fetched.strm_url == payload.strm_url
    assert fetched.http_status_code == 404
    assert fetched.reason == "url_invalid"
    assert fetched.detection_type == "manual"
    assert fetched.status == "pending"


def test_get_record_missing_raises_not_found(db: Session) -> None:
    with pytest.raises(RecordNotFoundError) as exc_info:
        get_record(db, 424242)
    assert exc_info.value.record_id == 424242


def test_model_to_read_adds_descriptions(db: Session, record_factory) -> None:
    row = record_factory(reason="access_denied")
    read = model_to_read(row)
    assert read.reason_description == "Access denied"
    assert read.status_description == "Pending review"


def test_duplicate_history_and_detection_time_raises_store_error(
    db: Session, make_create
) -> None:
    detected = datetime(2024, 3, 1, 8, 0, tzinfo=UTC)
    create_record(db, make_create(source_history_id=7, detection_time=detected))
    with pytest.raises(StoreError):
        create_record(db, make_create(source_history_id=7, detection_time=detected))
    assert db.query(InvalidStrmFile).count() == 1


def test_same_history_can_be_flagged_again_later(db: Session, make_create) -> None:
    first = datetime(2024, 3, 1, 8, 0, tzinfo=UTC)
    create_record(db, make_create(source_history_id=7, detection_time=first))
    create_record(
        db, make_create(source_history_id=7, detection_time=first + timedelta(days=1))
    )
    assert db.query(InvalidStrmFile).filter(InvalidStrmFile.source_history_id == 7).count() == 2


def test_create_records_empty_is_noop(db: Session) -> None:
    assert create_records(db, []) == []
    assert db.query(InvalidStrmFile).count() == 0


def test_create_records_flushes_in_chunks_of_100(db: Session, make_create) -> None:
    base = datetime(2024, 1, 1, tzinfo=UTC)
    items = [
        make_create(source_history_id=i + 1, detection_time=base + timedelta(minutes=i))
        for i in range(250)
    ]
    with patch.object(db, "flush", wraps=db.flush) as mock_flush:
        rows = create_records(db, items)

    assert mock_flush.call_count == 3
    assert len(rows) == 250
    assert all(r.id is not None for r in rows)
    assert db.query(InvalidStrmFile).count() == 250


def test_create_records_failure_rolls_back_everything(db: Session, make_create) -> None:
    detected = datetime(2024, 2, 2, tzinfo=UTC)
    items = [
        make_create(source_history_id=1, detection_time=detected),
        make_create(source_history_id=2, detection_time=detected),
        make_create(source_history_id=1, detection_time=detected),
    ]
    with pytest.raises(StoreError):
        create_records(db, items)
    assert db.query(InvalidStrmFile).count() == 0


def test_get_by_source_history_id_returns_latest(db: Session, record_factory) -> None:
    record_factory(source_history_id=55, detection_time=datetime(2024, 1, 1, tzinfo=UTC))
    latest = record_factory(
        source_history_id=55, detection_time=datetime(2024, 2, 1, tzinfo=UTC)
    )
    found = get_by_source_history_id(db, 55)
    assert found is not None
    assert found.id == latest.id


def test_get_by_source_history_id_none_when_absent(db: Session) -> None:
    assert get_by_source_history_id(db, 999) is None


def test_get_by_source_history_id_open_only_skips_resolved(
    db: Session, record_factory
) -> None:
    older = record_factory(
        source_history_id=56, detection_time=datetime(2024, 1, 1, tzinfo=UTC)
    )
    newer = record_factory(
        source_history_id=56, detection_time=datetime(2024, 2, 1, tzinfo=UTC)
    )
    batch_transition(db, [newer.id], "ignored", "admin")

    assert get_by_source_history_id(db, 56).id == newer.id
    assert get_by_source_history_id(db, 56, open_only=True).id == older.id

    batch_transition(db, [older.id], "confirmed", "admin")
    assert get_by_source_history_id(db, 56, open_only=True) is None


def test_update_record_sets_process_result(db: Session, record_factory) -> None:
    row = record_factory()
    batch_transition(db, [row.id], "confirmed", "admin", "dead link")
    updated = update_record(db, row.id, {"process_result": "waiting on upstream fix"})
    assert updated.process_result == "waiting on upstream fix"
    assert updated.status == "confirmed"


@pytest.mark.parametrize("claim", [False, True])
def test_update_record_rejects_unresolved_records(
    db: Session, record_factory, claim: bool
) -> None:
    """Processing notes stay unset until the record is confirmed or ignored."""
    row = record_factory()
    if claim:
        begin_processing(db, [row.id], "resolver")

    with pytest.raises(ValidationError):
        update_record(db, row.id, {"process_result": "note", "processed_by": "mallory"})

    stored = get_record(db, row.id)
    assert stored.status == ("processing" if claim else "pending")
    assert stored.process_result is None
    assert stored.processed_by is None
    assert stored.processed_at is None


def test_update_record_rejects_write_once_fields(db: Session, record_factory) -> None:
    row = record_factory()
    with pytest.raises(ValidationError):
        update_record(db, row.id, {"file_name": "other.strm"})
    with pytest.raises(ValidationError):
        update_record(db, row.id, {"status": "confirmed"})
    assert get_record(db, row.id).file_name == "Movie2024.strm"


def test_update_record_missing_raises_not_found(db: Session) -> None:
    with pytest.raises(RecordNotFoundError):
        update_record(db, 31337, {"process_result": "x"})


def test_delete_records(db: Session, record_factory) -> None:
    a = record_factory()
    b = record_factory()
    keep = record_factory()

    deleted = delete_records(db, [a.id, b.id, 98765])

    assert deleted == 2
    remaining = [r.id for r in db.query(InvalidStrmFile).all()]
    assert remaining == [keep.id]


def test_delete_records_empty_is_noop(db: Session, record_factory) -> None:
    record_factory()
    assert delete_records(db, []) == 0
    assert db.query(InvalidStrmFile).count() == 1


def test_get_record_store_failure_raises_store_error() -> None:
    mock_db = MagicMock()
    mock_db.query.side_effect = OperationalError("SELECT", {}, Exception("server closed"))
    with pytest.raises(StoreError) as exc_info:
        get_record(mock_db, 1)
    assert isinstance(exc_info.value.__cause__, OperationalError)


def test_delete_store_failure_rolls_back() -> None:
    mock_db = MagicMock()
    mock_db.execute.side_effect = OperationalError("DELETE", {}, Exception("timeout"))
    with pytest.raises(StoreError):
        delete_records(mock_db, [1, 2])
    mock_db.rollback.assert_called_once()
    mock_db.commit.assert_not_called()
