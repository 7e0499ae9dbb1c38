"""
Remote Table Model
==================

A local foreign table synchronized from a remote server. While any row
references a server, that server cannot be updated, and it can only be
deleted after the rows are unsynced.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class RemoteTable(SQLModel, table=True):
    __tablename__ = "remote_tables"

    id: str = Field(primary_key=True, max_length=36)
    workspace_id: str = Field(index=True, max_length=36)
    remote_server_id: str = Field(foreign_key="remote_servers.id", index=True, max_length=36)
    distant_table_name: str = Field(max_length=255)
    local_table_name: str = Field(max_length=255)
    schema_name: Optional[str] = Field(default=None, max_length=255)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
