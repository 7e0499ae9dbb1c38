"""Remote tables synchronized from remote servers

Revision ID: 002_remote_tables
Revises: 001_remote_servers
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002_remote_tables"
down_revision: Union[str, None] = "001_remote_servers"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "remote_tables",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("workspace_id", sa.String(36), nullable=False),
        sa.Column(
            "remote_server_id",
            sa.String(36),
            sa.ForeignKey("remote_servers.id"),
            nullable=False,
        ),
        sa.Column("distant_table_name", sa.String(255), nullable=False),
        sa.Column("local_table_name", sa.String(255), nullable=False),
        sa.Column("schema_name", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_remote_tables_workspace_id", "remote_tables", ["workspace_id"])
    op.create_index("ix_remote_tables_remote_server_id", "remote_tables", ["remote_server_id"])


def downgrade() -> None:
    op.drop_index("ix_remote_tables_remote_server_id", table_name="remote_tables")
    op.drop_index("ix_remote_tables_workspace_id", table_name="remote_tables")
    op.drop_table("remote_tables")
