"""
Application configuration. Loads from environment variables.
Secrets and sensitive config must never be hardcoded.
"""

import os

from dotenv import load_dotenv

load_dotenv()
from functools import lru_cache


@lru_cache(maxsize=1)
def get_settings() -> "Settings":
    """Return cached settings instance."""
    return Settings()


class Settings:
    """Application settings loaded from environment."""

    # App
    app_name: str = "strm-triage"
    debug: bool = False

    # Database (postgresql+psycopg for psycopg3; sqlite:/// URLs are accepted for local runs)
    database_url: str = "postgresql+psycopg://localhost:5432/strm_triage_dev"
    db_connect_timeout: int = 10  # seconds

    # Listing
    max_page_size: int = 100  # larger requests are clamped, not rejected
    default_page_size: int = 20

    # Detector writes: rows per INSERT statement in create_records
    batch_insert_chunk_size: int = 100

    # Actor stamped on batch transitions when the caller names none
    default_operator: str = "admin"

    def __init__(self) -> None:
        self.app_name = os.getenv("APP_NAME", self.app_name)
        self.debug = os.getenv("DEBUG", "false").lower() == "true"

        default_user = os.getenv("PGUSER") or os.getenv("USER") or "postgres"
        default_url = (
            f"postgresql+psycopg://{default_user}:"
            f"{os.getenv('PGPASSWORD', '')}@"
            f"{os.getenv('PGHOST', 'localhost')}:"
            f"{os.getenv('PGPORT', '5432')}/"
            f"{os.getenv('PGDATABASE', 'strm_triage_dev')}"
        )
        raw_url = os.getenv("DATABASE_URL", default_url)
        # Ensure psycopg3 driver if URL uses generic postgresql://
        if raw_url.startswith("postgresql://") and not raw_url.startswith("postgresql+psycopg"):
            raw_url = raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
        self.database_url = raw_url
        self.db_connect_timeout = int(os.getenv("DB_CONNECT_TIMEOUT", str(self.db_connect_timeout)))

        self.max_page_size = int(os.getenv("MAX_PAGE_SIZE", str(self.max_page_size)))
        self.default_page_size = int(
            os.getenv("DEFAULT_PAGE_SIZE", str(self.default_page_size))
        )
        self.batch_insert_chunk_size = int(
            os.getenv("BATCH_INSERT_CHUNK_SIZE", str(self.batch_insert_chunk_size))
        )
        self.default_operator = os.getenv("DEFAULT_OPERATOR", self.default_operator).strip() or "admin"
