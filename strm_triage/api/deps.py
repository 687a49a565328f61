"""Shared FastAPI dependencies for API routes."""

from __future__ import annotations

from fastapi import Header

from strm_triage.config import get_settings
from strm_triage.db.session import get_db  # re-export

__all__ = [
    "get_db",
    "get_operator",
]

# Header naming the operator who issues a batch action
OPERATOR_HEADER = "X-Operator"


def get_operator(x_operator: str | None = Header(None)) -> str:
    """Return the acting operator for audit stamping.

    Authentication happens upstream; this only reads the identity it forwards.
    Falls back to the configured default operator when the header is absent or blank.
    """
    if x_operator and x_operator.strip():
        return x_operator.strip()[:100]
    return get_settings().default_operator
