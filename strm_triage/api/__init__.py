"""API routes."""

from strm_triage.api.invalid_strm import router as invalid_strm_router

__all__ = ["invalid_strm_router"]
