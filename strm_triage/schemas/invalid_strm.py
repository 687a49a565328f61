"""Invalid STRM file schemas and enumerations for request/response validation."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class InvalidStrmStatus(str, Enum):
    """Processing status of an invalid STRM record.

    ``unknown`` is never written by this service; it stands in for stored values
    written by a newer detector that this version does not recognise.
    """

    pending = "pending"
    confirmed = "confirmed"
    ignored = "ignored"
    processing = "processing"
    unknown = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> "InvalidStrmStatus":
        return cls.unknown

    @classmethod
    def known(cls) -> tuple["InvalidStrmStatus", ...]:
        """The four statuses a record can actually hold."""
        return (cls.pending, cls.confirmed, cls.ignored, cls.processing)

    @property
    def is_terminal(self) -> bool:
        return self in (InvalidStrmStatus.confirmed, InvalidStrmStatus.ignored)

    def describe(self) -> str:
        return _STATUS_DESCRIPTIONS[self]


class InvalidStrmReason(str, Enum):
    """Why the detector flagged the STRM file."""

    file_not_found = "file_not_found"
    strm_file_not_found = "strm_file_not_found"
    url_invalid = "url_invalid"
    access_denied = "access_denied"
    server_error = "server_error"
    network_error = "network_error"
    unknown = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> "InvalidStrmReason":
        return cls.unknown

    @classmethod
    def known(cls) -> tuple["InvalidStrmReason", ...]:
        return tuple(r for r in cls if r is not cls.unknown)

    def describe(self) -> str:
        return _REASON_DESCRIPTIONS[self]


class DetectionType(str, Enum):
    """Whether invalidity came from a scheduled scan or an operator check."""

    auto = "auto"
    manual = "manual"
    unknown = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> "DetectionType":
        return cls.unknown

    @classmethod
    def known(cls) -> tuple["DetectionType", ...]:
        return (cls.auto, cls.manual)


_STATUS_DESCRIPTIONS: dict[InvalidStrmStatus, str] = {
    InvalidStrmStatus.pending: "Pending review",
    InvalidStrmStatus.confirmed: "Confirmed for deletion",
    InvalidStrmStatus.ignored: "Ignored",
    InvalidStrmStatus.processing: "Processing",
    InvalidStrmStatus.unknown: "Unknown status",
}

_REASON_DESCRIPTIONS: dict[InvalidStrmReason, str] = {
    InvalidStrmReason.file_not_found: "Source file not found",
    InvalidStrmReason.strm_file_not_found: "STRM file not found",
    InvalidStrmReason.url_invalid: "Invalid URL format",
    InvalidStrmReason.access_denied: "Access denied",
    InvalidStrmReason.server_error: "Server error",
    InvalidStrmReason.network_error: "Network connection error",
    InvalidStrmReason.unknown: "Unknown error",
}

# Operator-initiated terminal transitions
BATCH_ACTIONS = frozenset({InvalidStrmStatus.confirmed, InvalidStrmStatus.ignored})


def describe_status(value: str | None) -> str:
    """Human-readable status; unrecognised values get the unknown description."""
    return InvalidStrmStatus(value).describe()


def describe_reason(value: str | None) -> str:
    """Human-readable reason; unrecognised values get the unknown description."""
    return InvalidStrmReason(value).describe()


# ── Records ──────────────────────────────────────────────────────────


class InvalidStrmFileCreate(BaseModel):
    """Detector payload for a new invalid record. Records always start pending."""

    source_history_id: int = Field(..., gt=0)
    detection_time: datetime
    detection_type: DetectionType = DetectionType.auto
    reason: InvalidStrmReason
    error_message: str | None = None
    http_status_code: int | None = Field(None, ge=100, le=599)
    file_name: str = Field(..., min_length=1, max_length=200)
    source_path: str = Field(..., min_length=1, max_length=500)
    target_file_path: str = Field(..., min_length=1, max_length=500)
    file_size: int = Field(0, ge=0)
    strm_url: str | None = None

    @model_validator(mode="after")
    def known_detection_values(self) -> InvalidStrmFileCreate:
        """Reject the catch-all variants; they only describe values read back from storage."""
        if self.reason is InvalidStrmReason.unknown:
            allowed = ", ".join(r.value for r in InvalidStrmReason.known())
            raise ValueError(f"reason must be one of: {allowed}")
        if self.detection_type is DetectionType.unknown:
            raise ValueError("detection_type must be auto or manual")
        return self


class InvalidStrmFileRead(BaseModel):
    """Single invalid record for API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime
    source_history_id: int
    detection_time: datetime
    detection_type: str
    reason: str
    reason_description: str
    error_message: str | None = None
    http_status_code: int | None = None
    status: str
    status_description: str
    file_name: str
    source_path: str
    target_file_path: str
    file_size: int
    strm_url: str | None = None
    processed_at: datetime | None = None
    processed_by: str | None = None
    process_result: str | None = None


# ── Listing ──────────────────────────────────────────────────────────


class InvalidStrmFilter(BaseModel):
    """Optional list filters; absent fields impose no constraint.

    Dates are ``YYYY-MM-DD`` strings. Malformed dates are skipped, not rejected.
    """

    status: InvalidStrmStatus | None = None
    reason: InvalidStrmReason | None = None
    detection_type: DetectionType | None = None
    keyword: str | None = None
    detection_time_start: str | None = None
    detection_time_end: str | None = None


class InvalidStrmFilePage(BaseModel):
    """One page of invalid records plus the total matching count."""

    items: list[InvalidStrmFileRead]
    total: int
    page: int
    page_size: int


# ── Statistics ───────────────────────────────────────────────────────


class StatusCounts(BaseModel):
    """Per-status counts; all four statuses are always present."""

    pending: int = 0
    confirmed: int = 0
    ignored: int = 0
    processing: int = 0
    # Rows whose stored status is outside the four above (zero in normal operation)
    unknown_status: int = 0


class ReasonCount(BaseModel):
    reason: str
    description: str
    count: int


class InvalidStrmStatistics(BaseModel):
    """Response for GET /api/invalid-strm-files/statistics."""

    total: int
    status_counts: StatusCounts
    reason_counts: list[ReasonCount]


# ── Batch processing ─────────────────────────────────────────────────


class BatchProcessRequest(BaseModel):
    """POST body for batch confirm/ignore."""

    ids: list[int] = Field(..., min_length=1)
    action: InvalidStrmStatus
    reason: str | None = Field(None, max_length=2000)


class BatchTransitionResult(BaseModel):
    """Outcome of a batch transition; every requested ID lands in exactly one list."""

    updated: list[int] = Field(default_factory=list)
    skipped: list[int] = Field(default_factory=list)  # present but not in an eligible status
    missing: list[int] = Field(default_factory=list)


# ── Gateway ──────────────────────────────────────────────────────────


class BulkCreateResponse(BaseModel):
    created: int
    ids: list[int]


class DeleteRequest(BaseModel):
    ids: list[int] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    deleted: int
