"""SQLAlchemy models."""

from strm_triage.models.invalid_strm_file import InvalidStrmFile

__all__ = [
    "InvalidStrmFile",
]
