"""Remote servers table

Revision ID: 001_remote_servers
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_remote_servers"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "remote_servers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("workspace_id", sa.String(36), nullable=False),
        sa.Column("foreign_data_wrapper_id", sa.String(36), nullable=False, unique=True),
        sa.Column("foreign_data_wrapper_type", sa.String(32), nullable=False),
        sa.Column("foreign_data_wrapper_options", sa.JSON, nullable=False),
        sa.Column("user_mapping_options", sa.JSON, nullable=True),
        sa.Column("label", sa.String(255), nullable=True),
        sa.Column("schema_name", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_remote_servers_workspace_id", "remote_servers", ["workspace_id"])


def downgrade() -> None:
    op.drop_index("ix_remote_servers_workspace_id", table_name="remote_servers")
    op.drop_table("remote_servers")
