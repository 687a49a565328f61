"""add invalid_strm_files table

Revision ID: 001
Revises:
Create Date: 2026-10-19

One row per detected invalid STRM file. Unique per (source_history_id,
detection_time) so a history entry can be re-flagged after a later scan but
not twice for the same detection.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_INDEXED_COLUMNS = (
    "status",
    "detection_time",
    "file_name",
    "source_path",
    "target_file_path",
    "http_status_code",
    "processed_at",
    "source_history_id",
)


def upgrade() -> None:
    op.create_table(
        "invalid_strm_files",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("source_history_id", sa.Integer(), nullable=False),
        sa.Column("detection_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("detection_type", sa.String(length=50), nullable=False),
        sa.Column("reason", sa.String(length=50), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.String(length=20),
            server_default="pending",
            nullable=False,
        ),
        sa.Column("file_name", sa.String(length=200), nullable=False),
        sa.Column("source_path", sa.String(length=500), nullable=False),
        sa.Column("target_file_path", sa.String(length=500), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("strm_url", sa.Text(), nullable=True),
        sa.Column("http_status_code", sa.Integer(), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processed_by", sa.String(length=100), nullable=True),
        sa.Column("process_result", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "source_history_id",
            "detection_time",
            name="uq_invalid_strm_files_history_detection",
        ),
    )
    for column in _INDEXED_COLUMNS:
        op.create_index(
            f"ix_invalid_strm_files_{column}",
            "invalid_strm_files",
            [column],
        )


def downgrade() -> None:
    for column in reversed(_INDEXED_COLUMNS):
        op.drop_index(
            f"ix_invalid_strm_files_{column}",
            table_name="invalid_strm_files",
            if_exists=True,
        )
    op.drop_table("invalid_strm_files", if_exists=True)
