"""Invalid STRM record gateway: lookup, create, bulk insert, delete.

Used by the detector to persist results and by admin tooling to prune records.
Status changes go through ``invalid_strm_transition``, never through here.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from strm_triage.config import get_settings
from strm_triage.models.invalid_strm_file import InvalidStrmFile
from strm_triage.schemas.invalid_strm import (
    InvalidStrmFileCreate,
    InvalidStrmFileRead,
    InvalidStrmStatus,
    describe_reason,
    describe_status,
)
from strm_triage.services.errors import RecordNotFoundError, StoreError, ValidationError

logger = logging.getLogger(__name__)

# Fields update_record may touch; detection and snapshot facts are write-once
UPDATABLE_FIELDS = frozenset({"process_result", "processed_by"})


# ── Field mapping helpers ────────────────────────────────────────────


def _schema_to_model(data: InvalidStrmFileCreate) -> InvalidStrmFile:
    raw = data.model_dump()
    raw["detection_type"] = data.detection_type.value
    raw["reason"] = data.reason.value
    return InvalidStrmFile(**raw, status=InvalidStrmStatus.pending.value)


def model_to_read(row: InvalidStrmFile) -> InvalidStrmFileRead:
    """Map an InvalidStrmFile row to its API schema, adding descriptions."""
    return InvalidStrmFileRead(
        id=row.id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        source_history_id=row.source_history_id,
        detection_time=row.detection_time,
        detection_type=row.detection_type,
        reason=row.reason,
        reason_description=describe_reason(row.reason),
        error_message=row.error_message,
        http_status_code=row.http_status_code,
        status=row.status,
        status_description=describe_status(row.status),
        file_name=row.file_name,
        source_path=row.source_path,
        target_file_path=row.target_file_path,
        file_size=row.file_size,
        strm_url=row.strm_url,
        processed_at=row.processed_at,
        processed_by=row.processed_by,
        process_result=row.process_result,
    )


def _chunks(items: list[InvalidStrmFile], size: int) -> Iterator[list[InvalidStrmFile]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


# ── Reads ────────────────────────────────────────────────────────────


def get_record(db: Session, record_id: int) -> InvalidStrmFile:
    """Return one record by ID. Raises RecordNotFoundError if absent."""
    logger.debug("Fetching invalid STRM record id=%s", record_id)
    try:
        row = db.query(InvalidStrmFile).filter(InvalidStrmFile.id == record_id).first()
    except SQLAlchemyError as exc:
        logger.exception("Failed to fetch invalid STRM record id=%s", record_id)
        raise StoreError(f"Failed to fetch invalid STRM record {record_id}") from exc
    if row is None:
        raise RecordNotFoundError(record_id)
    return row


def get_by_source_history_id(
    db: Session,
    source_history_id: int,
    *,
    open_only: bool = False,
) -> InvalidStrmFile | None:
    """Return the most recently detected record for a history entry, or None.

    With open_only, confirmed and ignored records are not considered, so the
    detector can tell whether an unresolved record already exists.
    """
    query = db.query(InvalidStrmFile).filter(
        InvalidStrmFile.source_history_id == source_history_id
    )
    if open_only:
        query = query.filter(
            InvalidStrmFile.status.not_in(
                [InvalidStrmStatus.confirmed.value, InvalidStrmStatus.ignored.value]
            )
        )
    try:
        return query.order_by(
            InvalidStrmFile.detection_time.desc(), InvalidStrmFile.id.desc()
        ).first()
    except SQLAlchemyError as exc:
        logger.exception("Failed to fetch invalid STRM record for history %s", source_history_id)
        raise StoreError(
            f"Failed to fetch invalid STRM record for history {source_history_id}"
        ) from exc


# ── Writes ───────────────────────────────────────────────────────────


def create_record(db: Session, data: InvalidStrmFileCreate) -> InvalidStrmFile:
    """Insert one pending record."""
    row = _schema_to_model(data)
    db.add(row)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(
            "Failed to create invalid STRM record for history %s", data.source_history_id
        )
        raise StoreError("Failed to create invalid STRM record") from exc
    db.refresh(row)
    logger.info(
        "Created invalid STRM record id=%s file=%s reason=%s", row.id, row.file_name, row.reason
    )
    return row


def create_records(db: Session, items: list[InvalidStrmFileCreate]) -> list[InvalidStrmFile]:
    """Insert many pending records in chunks, committing once.

    Each chunk is flushed as its own INSERT batch (batch_insert_chunk_size rows)
    to bound statement size. Any failure rolls back the whole call.
    """
    if not items:
        return []

    chunk_size = max(1, get_settings().batch_insert_chunk_size)
    rows = [_schema_to_model(item) for item in items]
    try:
        for chunk in _chunks(rows, chunk_size):
            db.add_all(chunk)
            db.flush()
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to bulk insert %d invalid STRM records", len(rows))
        raise StoreError(f"Failed to bulk insert {len(rows)} invalid STRM records") from exc

    logger.info("Bulk inserted %d invalid STRM records", len(rows))
    return rows


def update_record(db: Session, record_id: int, fields: dict) -> InvalidStrmFile:
    """Update processing notes on one record.

    Only process_result and processed_by may change here; anything else raises
    ValidationError. Notes belong to a resolved record, so a record that is not
    yet confirmed or ignored also raises ValidationError. Raises
    RecordNotFoundError if the record is absent.
    """
    rejected = sorted(set(fields) - UPDATABLE_FIELDS)
    if rejected:
        raise ValidationError(f"Fields cannot be updated: {', '.join(rejected)}")

    row = get_record(db, record_id)
    if not InvalidStrmStatus(row.status).is_terminal:
        raise ValidationError(
            f"Record {record_id} is {row.status}; notes can only be set once it is confirmed or ignored"
        )
    if not fields:
        return row
    for key, value in fields.items():
        setattr(row, key, value)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to update invalid STRM record id=%s", record_id)
        raise StoreError(f"Failed to update invalid STRM record {record_id}") from exc
    db.refresh(row)
    return row


def delete_records(db: Session, ids: list[int]) -> int:
    """Delete records by ID. Returns the number of rows removed.

    Empty input is a no-op. The source history entries are not touched.
    """
    unique_ids = sorted(set(ids))
    if not unique_ids:
        return 0

    logger.info("Deleting %d invalid STRM records", len(unique_ids))
    try:
        result = db.execute(
            delete(InvalidStrmFile)
            .where(InvalidStrmFile.id.in_(unique_ids))
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to delete %d invalid STRM records", len(unique_ids))
        raise StoreError(f"Failed to delete {len(unique_ids)} invalid STRM records") from exc

    deleted = result.rowcount or 0
    logger.info("Deleted %d invalid STRM records", deleted)
    return deleted
