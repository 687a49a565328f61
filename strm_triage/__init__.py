"""strm-triage: lifecycle and query service for invalid STRM file records."""

__version__ = "0.1.0"
