"""
Remote Table Service
====================

Tracks the foreign tables synchronized from each remote server and detaches
them. The remote server service depends only on RemoteTableGatekeeper, so a
different dependent store can be plugged in.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from fdwcatalog.core.database import get_session_context
from fdwcatalog.core.errors import TransactionFailure
from fdwcatalog.core.injection_guard import validate_string_against_injections
from fdwcatalog.models.remote_server import RemoteServer
from fdwcatalog.models.remote_table import RemoteTable
from fdwcatalog.services.foreign_data_wrapper_queries import drop_foreign_table
from fdwcatalog.services.statement_executor import ForeignObjectExecutor

logger = logging.getLogger(__name__)


class RemoteTableGatekeeper(ABC):
    """Dependents of a remote server, as seen by the remote server service."""

    @abstractmethod
    def find_current_remote_tables_by_server_id(
        self, remote_server_id: str, workspace_id: str
    ) -> Sequence[RemoteTable]:
        """Remote tables currently synchronized from the server (may be empty)."""

    @abstractmethod
    def unsync_all(self, workspace_id: str, remote_server: RemoteServer) -> None:
        """Detach every remote table of *remote_server*. Raises on failure."""


class RemoteTableService(RemoteTableGatekeeper):
    """Catalog-backed gatekeeper over the remote_tables table."""

    def __init__(
        self,
        session_factory: Callable = get_session_context,
        executor: Optional[ForeignObjectExecutor] = None,
    ):
        self._session_factory = session_factory
        self._executor = executor or ForeignObjectExecutor()

    def find_current_remote_tables_by_server_id(
        self, remote_server_id: str, workspace_id: str
    ) -> List[RemoteTable]:
        with self._session_factory() as session:
            stmt = (
                select(RemoteTable)
                .where(RemoteTable.remote_server_id == remote_server_id)
                .where(RemoteTable.workspace_id == workspace_id)
            )
            rows = session.exec(stmt).all()
            for row in rows:
                session.expunge(row)
            return list(rows)

    def unsync_remote_table(self, remote_table: RemoteTable) -> None:
        """Drop the local foreign table and forget it, in one transaction."""
        statement = drop_foreign_table(
            validate_string_against_injections(remote_table.local_table_name, "local_table_name"),
            validate_string_against_injections(remote_table.schema_name, "schema_name")
            if remote_table.schema_name
            else None,
        )

        with self._session_factory() as session:
            try:
                self._executor.execute(session, statement)
                row = session.exec(
                    select(RemoteTable)
                    .where(RemoteTable.id == remote_table.id)
                    .where(RemoteTable.workspace_id == remote_table.workspace_id)
                ).first()
                if row is not None:
                    session.delete(row)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise TransactionFailure(
                    "Failed to unsync remote table",
                    context={
                        "remote_table_id": remote_table.id,
                        "remote_server_id": remote_table.remote_server_id,
                    },
                ) from exc

        logger.info(
            "remote_table_unsynced",
            extra={
                "remote_table_id": remote_table.id,
                "remote_server_id": remote_table.remote_server_id,
                "workspace_id": remote_table.workspace_id,
            },
        )

    def unsync_all(self, workspace_id: str, remote_server: RemoteServer) -> None:
        remote_tables = self.find_current_remote_tables_by_server_id(remote_server.id, workspace_id)
        for remote_table in remote_tables:
            self.unsync_remote_table(remote_table)

        if remote_tables:
            logger.info(
                "remote_tables_unsynced_for_server",
                extra={
                    "remote_server_id": remote_server.id,
                    "workspace_id": workspace_id,
                    "count": len(remote_tables),
                },
            )
