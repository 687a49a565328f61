"""InvalidStrmFile model — one row per detected invalid STRM file."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from strm_triage.db.session import Base


class InvalidStrmFile(Base):
    """Invalid STRM file record.

    Detection facts (detection_*, reason, error_message, http_status_code) and the
    file snapshot (file_name, source_path, target_file_path, file_size, strm_url)
    are written once by the detector. Only status and processed_* change afterwards.
    """

    __tablename__ = "invalid_strm_files"

    __table_args__ = (
        UniqueConstraint(
            "source_history_id",
            "detection_time",
            name="uq_invalid_strm_files_history_detection",
        ),
        Index("ix_invalid_strm_files_status", "status"),
        Index("ix_invalid_strm_files_detection_time", "detection_time"),
        Index("ix_invalid_strm_files_file_name", "file_name"),
        Index("ix_invalid_strm_files_source_path", "source_path"),
        Index("ix_invalid_strm_files_target_file_path", "target_file_path"),
        Index("ix_invalid_strm_files_http_status_code", "http_status_code"),
        Index("ix_invalid_strm_files_processed_at", "processed_at"),
        Index("ix_invalid_strm_files_source_history_id", "source_history_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Originating scan/history entry; not a foreign key, history lives elsewhere
    source_history_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Detection
    detection_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    detection_type: Mapped[str] = mapped_column(String(50), nullable=False)  # auto | manual
    reason: Mapped[str] = mapped_column(String(50), nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", server_default="pending"
    )

    # File snapshot, denormalized for display
    file_name: Mapped[str] = mapped_column(String(200), nullable=False)
    source_path: Mapped[str] = mapped_column(String(500), nullable=False)
    target_file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # STRM payload
    strm_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    http_status_code: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Processing
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    processed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    process_result: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<InvalidStrmFile id={self.id} file_name={self.file_name!r} status={self.status}>"
