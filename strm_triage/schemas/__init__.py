"""Pydantic schemas for request/response validation."""

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
    ReasonCount,
    StatusCounts,
)

__all__ = [
    "BatchProcessRequest",
    "BatchTransitionResult",
    "BulkCreateResponse",
    "DeleteRequest",
    "DeleteResponse",
    "DetectionType",
    "InvalidStrmFileCreate",
    "InvalidStrmFilePage",
    "InvalidStrmFileRead",
    "InvalidStrmFilter",
    "InvalidStrmReason",
    "InvalidStrmStatistics",
    "InvalidStrmStatus",
    "ReasonCount",
    "StatusCounts",
]
