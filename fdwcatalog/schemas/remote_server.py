"""
Remote Server Schemas
=====================

Pydantic input and output models for remote server operations.

Update inputs list every mutable attribute as its own optional field; an
attribute is changed only when the caller supplied it. The wrapper type,
foreign server name and workspace are not updatable and are not fields here.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from fdwcatalog.core.redaction import redact_options
from fdwcatalog.models.remote_server import RemoteServer, RemoteServerType


class UserMappingOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, repr=False)


class UserMappingOptionsUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: Optional[str] = Field(default=None, min_length=1, max_length=255)
    password: Optional[str] = Field(default=None, min_length=1, repr=False)

    def as_options(self) -> Dict[str, str]:
        """Only the credentials the caller supplied."""
        return self.model_dump(exclude_none=True)


class CreateRemoteServerInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    foreign_data_wrapper_type: RemoteServerType
    foreign_data_wrapper_options: Dict[str, Any]
    user_mapping_options: Optional[UserMappingOptions] = None
    label: Optional[str] = Field(default=None, max_length=255)
    schema_name: Optional[str] = Field(default=None, max_length=255)


class UpdateRemoteServerInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    foreign_data_wrapper_options: Optional[Dict[str, Any]] = None
    user_mapping_options: Optional[UserMappingOptionsUpdate] = None
    label: Optional[str] = Field(default=None, max_length=255)
    schema_name: Optional[str] = Field(default=None, max_length=255)

    def has_foreign_data_wrapper_options(self) -> bool:
        return bool(self.foreign_data_wrapper_options)

    def has_user_mapping_options(self) -> bool:
        return self.user_mapping_options is not None and bool(self.user_mapping_options.as_options())

    def descriptive_updates(self) -> Dict[str, Optional[str]]:
        """label/schema_name values the caller explicitly set, including None."""
        return {
            name: getattr(self, name)
            for name in ("label", "schema_name")
            if name in self.model_fields_set
        }


class RemoteServerUpdateBody(BaseModel):
    """HTTP body for PATCH; the id comes from the path."""

    model_config = ConfigDict(extra="forbid")

    foreign_data_wrapper_options: Optional[Dict[str, Any]] = None
    user_mapping_options: Optional[UserMappingOptionsUpdate] = None
    label: Optional[str] = Field(default=None, max_length=255)
    schema_name: Optional[str] = Field(default=None, max_length=255)

    def to_input(self, remote_server_id: str) -> UpdateRemoteServerInput:
        return UpdateRemoteServerInput(
            id=remote_server_id,
            **self.model_dump(exclude_unset=True),
        )


class UserMappingRead(BaseModel):
    username: Optional[str] = None


class RemoteServerRead(BaseModel):
    """API view of a remote server. Passwords and API keys are never included."""

    id: str
    workspace_id: str
    foreign_data_wrapper_id: str
    foreign_data_wrapper_type: RemoteServerType
    foreign_data_wrapper_options: Dict[str, Any]
    user_mapping_options: Optional[UserMappingRead] = None
    label: Optional[str] = None
    schema_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: RemoteServer) -> "RemoteServerRead":
        mapping = None
        if record.user_mapping_options is not None:
            mapping = UserMappingRead(username=record.user_mapping_options.get("username"))
        return cls(
            id=record.id,
            workspace_id=record.workspace_id,
            foreign_data_wrapper_id=record.foreign_data_wrapper_id,
            foreign_data_wrapper_type=record.foreign_data_wrapper_type,
            foreign_data_wrapper_options=redact_options(record.foreign_data_wrapper_options),
            user_mapping_options=mapping,
            label=record.label,
            schema_name=record.schema_name,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
