"""
Remote Servers Router
=====================

HTTP surface over RemoteServerService. Errors are FdwCatalogError subclasses
and are rendered by the registry-backed exception handler.

Caller authentication is handled upstream; the workspace comes from the path.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query

from fdwcatalog.core.structured_logging import workspace_id_var
from fdwcatalog.core.errors import NotFound
from fdwcatalog.models.remote_server import RemoteServerType
from fdwcatalog.schemas.remote_server import (
    CreateRemoteServerInput,
    RemoteServerRead,
    RemoteServerUpdateBody,
)
from fdwcatalog.services.remote_server_service import RemoteServerService

logger = logging.getLogger(__name__)
router = APIRouter()


def get_remote_server_service() -> RemoteServerService:
    return RemoteServerService()


def _bind_workspace(workspace_id: str) -> str:
    workspace_id_var.set(workspace_id)
    return workspace_id


@router.post(
    "/workspaces/{workspace_id}/remote-servers",
    status_code=201,
    summary="Create remote server",
)
def create_remote_server(
    body: CreateRemoteServerInput,
    workspace_id: str = Depends(_bind_workspace),
    service: RemoteServerService = Depends(get_remote_server_service),
) -> RemoteServerRead:
    remote_server = service.create_one_remote_server(body, workspace_id)
    return RemoteServerRead.from_record(remote_server)


@router.get(
    "/workspaces/{workspace_id}/remote-servers",
    summary="List remote servers of one wrapper type",
)
def list_remote_servers(
    foreign_data_wrapper_type: RemoteServerType = Query(..., alias="type"),
    workspace_id: str = Depends(_bind_workspace),
    service: RemoteServerService = Depends(get_remote_server_service),
) -> List[RemoteServerRead]:
    rows = service.find_many_by_type_within_workspace(foreign_data_wrapper_type, workspace_id)
    return [RemoteServerRead.from_record(r) for r in rows]


@router.get(
    "/workspaces/{workspace_id}/remote-servers/{remote_server_id}",
    summary="Get remote server",
)
def get_remote_server(
    remote_server_id: str,
    workspace_id: str = Depends(_bind_workspace),
    service: RemoteServerService = Depends(get_remote_server_service),
) -> RemoteServerRead:
    remote_server = service.find_one_by_id_within_workspace(remote_server_id, workspace_id)
    if remote_server is None:
        raise NotFound("Remote server does not exist", context={"remote_server_id": remote_server_id})
    return RemoteServerRead.from_record(remote_server)


@router.patch(
    "/workspaces/{workspace_id}/remote-servers/{remote_server_id}",
    summary="Update remote server",
)
def update_remote_server(
    remote_server_id: str,
    body: RemoteServerUpdateBody,
    workspace_id: str = Depends(_bind_workspace),
    service: RemoteServerService = Depends(get_remote_server_service),
) -> RemoteServerRead:
    remote_server = service.update_one_remote_server(body.to_input(remote_server_id), workspace_id)
    return RemoteServerRead.from_record(remote_server)


@router.delete(
    "/workspaces/{workspace_id}/remote-servers/{remote_server_id}",
    summary="Delete remote server",
)
def delete_remote_server(
    remote_server_id: str,
    workspace_id: str = Depends(_bind_workspace),
    service: RemoteServerService = Depends(get_remote_server_service),
) -> RemoteServerRead:
    remote_server = service.delete_one_remote_server(remote_server_id, workspace_id)
    return RemoteServerRead.from_record(remote_server)
