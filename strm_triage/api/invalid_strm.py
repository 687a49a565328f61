"""Invalid STRM file API routes: list, statistics, detail, batch processing, detector writes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from strm_triage.api.deps import get_db, get_operator
from strm_triage.config import get_settings
from strm_triage.schemas.invalid_strm import (
    BatchProcessRequest,
    BatchTransitionResult,
    BulkCreateResponse,
    DeleteRequest,
    DeleteResponse,
    DetectionType,
    InvalidStrmFileCreate,
    InvalidStrmFilePage,
    InvalidStrmFileRead,
    InvalidStrmFilter,
    InvalidStrmReason,
    InvalidStrmStatistics,
    InvalidStrmStatus,
)
from strm_triage.services.errors import RecordNotFoundError, StoreError, ValidationError
from strm_triage.services.invalid_strm_query import list_invalid_records
from strm_triage.services.invalid_strm_records import (
    create_record,
    create_records,
    delete_records,
    get_by_source_history_id,
    get_record,
    model_to_read,
)
from strm_triage.services.invalid_strm_stats import get_statistics
from strm_triage.services.invalid_strm_transition import batch_transition

logger = logging.getLogger(__name__)

router = APIRouter()


def _store_failure(message: str, exc: StoreError) -> HTTPException:
    logger.error("%s: %s", message, exc)
    return HTTPException(status_code=500, detail=message)


@router.get("", response_model=InvalidStrmFilePage)
def api_list_invalid_strm_files(
    page: int = Query(1, ge=1, description="Page number (1-based)."),
    page_size: int | None = Query(
        None, ge=1, description="Records per page. Values above the maximum are clamped."
    ),
    status: InvalidStrmStatus | None = Query(None),
    reason: InvalidStrmReason | None = Query(None),
    detection_type: DetectionType | None = Query(None),
    keyword: str | None = Query(None, description="Substring of file name, source or target path."),
    detection_time_start: str | None = Query(None, description="YYYY-MM-DD, inclusive."),
    detection_time_end: str | None = Query(None, description="YYYY-MM-DD, inclusive."),
    db: Session = Depends(get_db),
) -> InvalidStrmFilePage:
    """List invalid STRM files, newest detection first."""
    filters = InvalidStrmFilter(
        status=status,
        reason=reason,
        detection_type=detection_type,
        keyword=keyword,
        detection_time_start=detection_time_start,
        detection_time_end=detection_time_end,
    )
    try:
        return list_invalid_records(
            db,
            filters,
            page=page,
            page_size=page_size or get_settings().default_page_size,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from None
    except StoreError as exc:
        raise _store_failure("Failed to list invalid STRM files", exc) from None


@router.get("/statistics", response_model=InvalidStrmStatistics)
def api_invalid_strm_statistics(
    date_start: str | None = Query(None, description="YYYY-MM-DD, inclusive."),
    date_end: str | None = Query(None, description="YYYY-MM-DD, inclusive."),
    db: Session = Depends(get_db),
) -> InvalidStrmStatistics:
    """Counts by status (all four always present) and by reason (present only)."""
    try:
        return get_statistics(db, date_start, date_end)
    except StoreError as exc:
        raise _store_failure("Failed to compute statistics", exc) from None


@router.post("/batch-process", response_model=BatchTransitionResult)
def api_batch_process(
    data: BatchProcessRequest,
    db: Session = Depends(get_db),
    operator: str = Depends(get_operator),
) -> BatchTransitionResult:
    """Confirm or ignore a set of records. Already resolved records are reported as skipped."""
    try:
        result = batch_transition(db, data.ids, data.action, operator, data.reason)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from None
    except StoreError as exc:
        raise _store_failure("Batch processing failed", exc) from None
    logger.info(
        "Batch processed %d ids action=%s operator=%s", len(data.ids), data.action.value, operator
    )
    return result


@router.post("", response_model=InvalidStrmFileRead, status_code=201)
def api_create_invalid_strm_file(
    data: InvalidStrmFileCreate,
    db: Session = Depends(get_db),
) -> InvalidStrmFileRead:
    """Record one invalid STRM file (detector write)."""
    try:
        return model_to_read(create_record(db, data))
    except StoreError as exc:
        raise _store_failure("Failed to create invalid STRM record", exc) from None


@router.post("/bulk", response_model=BulkCreateResponse, status_code=201)
def api_bulk_create_invalid_strm_files(
    data: list[InvalidStrmFileCreate],
    db: Session = Depends(get_db),
) -> BulkCreateResponse:
    """Record many invalid STRM files in one call (detector write)."""
    try:
        rows = create_records(db, data)
    except StoreError as exc:
        raise _store_failure("Failed to bulk create invalid STRM records", exc) from None
    return BulkCreateResponse(created=len(rows), ids=[r.id for r in rows])


@router.post("/delete", response_model=DeleteResponse)
def api_delete_invalid_strm_files(
    data: DeleteRequest,
    db: Session = Depends(get_db),
) -> DeleteResponse:
    """Delete records by ID. Unknown IDs are ignored; the STRM files themselves are untouched."""
    try:
        return DeleteResponse(deleted=delete_records(db, data.ids))
    except StoreError as exc:
        raise _store_failure("Failed to delete invalid STRM records", exc) from None


@router.get("/by-source-history/{source_history_id}", response_model=InvalidStrmFileRead)
def api_get_by_source_history(
    source_history_id: int,
    open_only: bool = Query(False, description="Only consider unresolved records."),
    db: Session = Depends(get_db),
) -> InvalidStrmFileRead:
    """Latest invalid record for a source history entry."""
    try:
        row = get_by_source_history_id(db, source_history_id, open_only=open_only)
    except StoreError as exc:
        raise _store_failure("Failed to fetch invalid STRM record", exc) from None
    if row is None:
        raise HTTPException(status_code=404, detail="No invalid record for this history entry")
    return model_to_read(row)


@router.get("/{record_id}", response_model=InvalidStrmFileRead)
def api_get_invalid_strm_file(
    record_id: int,
    db: Session = Depends(get_db),
) -> InvalidStrmFileRead:
    """Invalid STRM file detail."""
    try:
        return model_to_read(get_record(db, record_id))
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Invalid STRM record not found") from None
    except StoreError as exc:
        raise _store_failure("Failed to fetch invalid STRM record", exc) from None
