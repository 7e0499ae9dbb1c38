"""
Remote Server Model
===================

SQLModel table for remote server catalog records. Each record names one
foreign server object (``foreign_data_wrapper_id``) on the catalog database.
The user mapping password is stored Fernet-encrypted, never in plaintext.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column, Enum as SAEnum
from sqlmodel import Field, SQLModel


class RemoteServerType(str, Enum):
    """Supported foreign data wrappers. Rendered verbatim into CREATE SERVER."""

    POSTGRES_FDW = "postgres_fdw"
    STRIPE_FDW = "stripe_fdw"


# Options a server of each type cannot be created without
REQUIRED_OPTIONS: Dict[RemoteServerType, frozenset] = {
    RemoteServerType.POSTGRES_FDW: frozenset({"host", "port", "dbname"}),
    RemoteServerType.STRIPE_FDW: frozenset({"api_key"}),
}


class RemoteServer(SQLModel, table=True):
    """Persistent record of a provisioned foreign server."""

    __tablename__ = "remote_servers"

    id: str = Field(primary_key=True, max_length=36)
    workspace_id: str = Field(index=True, max_length=36)
    foreign_data_wrapper_id: str = Field(unique=True, max_length=36)
    foreign_data_wrapper_type: RemoteServerType = Field(
        sa_column=Column(
            SAEnum(
                RemoteServerType,
                name="remoteservertype",
                values_callable=lambda enum: [e.value for e in enum],
                native_enum=False,
                length=32,
            ),
            nullable=False,
        )
    )
    foreign_data_wrapper_options: Dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    # {"username": ..., "password": <fernet token>}
    user_mapping_options: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=Column(JSON, nullable=True)
    )

    label: Optional[str] = Field(default=None, max_length=255)
    schema_name: Optional[str] = Field(default=None, max_length=255)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
