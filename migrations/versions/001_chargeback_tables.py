"""Create processed_webhooks and error_records.

Revision ID: 001_chargeback_tables
Revises:
Create Date: 2026-10-17
"""
from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "001_chargeback_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    sql_path = (
        Path(__file__).resolve().parents[1] / "sql" / "001_chargeback_tables.sql"
    )
    conn = op.get_bind()
    conn.exec_driver_sql(sql_path.read_text(encoding="utf-8"))


def downgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql("DROP TABLE IF EXISTS error_records")
    conn.exec_driver_sql("DROP TABLE IF EXISTS processed_webhooks")
