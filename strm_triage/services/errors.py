"""Errors raised by the invalid STRM services.

The API layer maps these to HTTP status codes; scripts map them to exit codes.
"""

from __future__ import annotations


class InvalidStrmError(Exception):
    """Base class for invalid STRM service errors."""


class ValidationError(InvalidStrmError, ValueError):
    """Raised for malformed or missing arguments (bad action, empty actor, bad page)."""


class RecordNotFoundError(InvalidStrmError, LookupError):
    """Raised when a single-record lookup misses."""

    def __init__(self, record_id: int) -> None:
        super().__init__(f"Invalid STRM record {record_id} not found")
        self.record_id = record_id


class StoreError(InvalidStrmError):
    """Raised when the underlying store fails (connectivity, constraint, timeout).

    The original SQLAlchemy exception is chained as ``__cause__``.
    """
