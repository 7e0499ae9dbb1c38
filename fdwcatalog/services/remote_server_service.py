"""
Remote Server Service
=====================

Provisions, updates and deletes remote servers. Each write changes the
catalog record and the foreign server object together:

    validate -> encrypt -> render statements -> transaction {
        execute statements + write catalog row
    } -> commit

Nothing is written before validation, existence and dependent checks pass.

With transactional DDL (PostgreSQL), a failure anywhere in the transaction
rolls back the catalog row and the foreign server alike and surfaces as
TransactionFailure. Without it, statements run before the catalog write, and
a catalog failure after a statement succeeded surfaces as
ReconciliationRequired.
"""

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterable, Iterator, List, Optional

from sqlmodel import Session, select

from fdwcatalog.core.credential_crypto import encrypt_password
from fdwcatalog.core.database import get_session_context, supports_transactional_ddl
from fdwcatalog.core.errors import (
    FdwCatalogError,
    Forbidden,
    NotFound,
    ReconciliationRequired,
    TransactionFailure,
    ValidationError,
)
from fdwcatalog.core.injection_guard import (
    ValidatedOptions,
    validate_object_against_injections,
    validate_string_against_injections,
)
from fdwcatalog.core.redaction import redact_options
from fdwcatalog.models.remote_server import REQUIRED_OPTIONS, RemoteServer, RemoteServerType
from fdwcatalog.schemas.remote_server import CreateRemoteServerInput, UpdateRemoteServerInput
from fdwcatalog.services.foreign_data_wrapper_queries import (
    ForeignObjectStatement,
    create_foreign_server,
    create_user_mapping,
    drop_server_cascade,
    update_foreign_server,
    update_user_mapping,
)
from fdwcatalog.services.remote_table_service import RemoteTableGatekeeper, RemoteTableService
from fdwcatalog.services.statement_executor import ForeignObjectExecutor

logger = logging.getLogger(__name__)


class _RemoteServerTransaction:
    """State of one open transaction: which foreign objects were touched,
    and which records to hand back detached after commit."""

    def __init__(self, session: Session, executor: ForeignObjectExecutor, transactional_ddl: bool):
        self.session = session
        self.transactional_ddl = transactional_ddl
        self.executed: List[str] = []
        self._executor = executor
        self._kept: List[RemoteServer] = []

    @property
    def foreign_objects_changed(self) -> bool:
        return bool(self.executed)

    def execute(self, statement: ForeignObjectStatement) -> None:
        self._executor.execute(self.session, statement)
        self.executed.append(statement.kind)

    def execute_all(self, statements: Iterable[ForeignObjectStatement]) -> None:
        for statement in statements:
            self.execute(statement)

    def keep(self, record: RemoteServer) -> None:
        self._kept.append(record)

    def detach_kept(self) -> None:
        for record in self._kept:
            self.session.refresh(record)
            self.session.expunge(record)


class RemoteServerService:
    """Transactional create/update/delete/find for remote servers."""

    def __init__(
        self,
        session_factory: Callable = get_session_context,
        remote_table_service: Optional[RemoteTableGatekeeper] = None,
        executor: Optional[ForeignObjectExecutor] = None,
        transactional_ddl: Optional[bool] = None,
    ):
        self._session_factory = session_factory
        self._executor = executor or ForeignObjectExecutor()
        self._remote_table_service = remote_table_service or RemoteTableService(
            session_factory=session_factory, executor=self._executor
        )
        self._transactional_ddl = transactional_ddl

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_one_remote_server(
        self,
        remote_server_input: CreateRemoteServerInput,
        workspace_id: str,
    ) -> RemoteServer:
        foreign_data_wrapper_options = self._validate_foreign_data_wrapper_options(
            remote_server_input.foreign_data_wrapper_options
        )
        self._check_required_options(
            remote_server_input.foreign_data_wrapper_type, foreign_data_wrapper_options
        )
        user_mapping_options = None
        if remote_server_input.user_mapping_options is not None:
            user_mapping_options = validate_object_against_injections(
                remote_server_input.user_mapping_options.model_dump(), "user_mapping_options"
            )
        if remote_server_input.schema_name:
            validate_string_against_injections(remote_server_input.schema_name, "schema_name")

        foreign_data_wrapper_id = validate_string_against_injections(
            str(uuid.uuid4()), "foreign_data_wrapper_id"
        )

        stored_user_mapping = None
        if user_mapping_options is not None:
            stored_user_mapping = {
                "username": user_mapping_options["username"],
                "password": encrypt_password(user_mapping_options["password"]),
            }

        remote_server = RemoteServer(
            id=str(uuid.uuid4()),
            workspace_id=workspace_id,
            foreign_data_wrapper_id=str(foreign_data_wrapper_id),
            foreign_data_wrapper_type=remote_server_input.foreign_data_wrapper_type,
            foreign_data_wrapper_options=dict(foreign_data_wrapper_options),
            user_mapping_options=stored_user_mapping,
            label=remote_server_input.label,
            schema_name=remote_server_input.schema_name,
        )

        statements = [
            create_foreign_server(
                foreign_data_wrapper_id,
                remote_server_input.foreign_data_wrapper_type,
                foreign_data_wrapper_options,
            )
        ]
        if user_mapping_options is not None:
            statements.append(create_user_mapping(foreign_data_wrapper_id, user_mapping_options))

        with self._transaction("create", remote_server.id, workspace_id) as tx:
            tx.execute_all(statements)
            tx.session.add(remote_server)
            tx.session.flush()
            tx.keep(remote_server)

        logger.info(
            "remote_server_created",
            extra={
                "remote_server_id": remote_server.id,
                "workspace_id": workspace_id,
                "foreign_data_wrapper_id": remote_server.foreign_data_wrapper_id,
                "foreign_data_wrapper_type": remote_server.foreign_data_wrapper_type.value,
                "foreign_data_wrapper_options": redact_options(remote_server.foreign_data_wrapper_options),
                "has_user_mapping": stored_user_mapping is not None,
            },
        )
        return remote_server

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_one_remote_server(
        self,
        remote_server_input: UpdateRemoteServerInput,
        workspace_id: str,
    ) -> RemoteServer:
        foreign_data_wrapper_options = None
        if remote_server_input.has_foreign_data_wrapper_options():
            foreign_data_wrapper_options = self._validate_foreign_data_wrapper_options(
                remote_server_input.foreign_data_wrapper_options
            )
        user_mapping_options = None
        if remote_server_input.has_user_mapping_options():
            user_mapping_options = validate_object_against_injections(
                remote_server_input.user_mapping_options.as_options(), "user_mapping_options"
            )
        descriptive_updates = remote_server_input.descriptive_updates()
        if descriptive_updates.get("schema_name"):
            validate_string_against_injections(descriptive_updates["schema_name"], "schema_name")

        remote_server = self.find_one_by_id_within_workspace(remote_server_input.id, workspace_id)
        if remote_server is None:
            raise NotFound(
                "Remote server does not exist",
                context={"remote_server_id": remote_server_input.id},
            )

        current_remote_tables = self._remote_table_service.find_current_remote_tables_by_server_id(
            remote_server.id, workspace_id
        )
        if current_remote_tables:
            raise Forbidden(
                "Cannot update remote server with synchronized tables",
                context={
                    "remote_server_id": remote_server.id,
                    "remote_table_count": len(current_remote_tables),
                },
            )

        foreign_data_wrapper_id = validate_string_against_injections(
            remote_server.foreign_data_wrapper_id, "foreign_data_wrapper_id"
        )

        statements: List[ForeignObjectStatement] = []
        if foreign_data_wrapper_options is not None:
            statements.append(
                update_foreign_server(
                    foreign_data_wrapper_id,
                    foreign_data_wrapper_options,
                    existing_option_names=frozenset(
                        name.lower() for name in remote_server.foreign_data_wrapper_options
                    ),
                )
            )

        encrypted_password = None
        if user_mapping_options is not None:
            if remote_server.user_mapping_options is None:
                # No mapping on the server yet: it has to be created whole
                if {"username", "password"} - set(user_mapping_options):
                    raise ValidationError(
                        "username and password are both required to add a user mapping",
                        context={"field": "user_mapping_options", "rule": "incomplete_user_mapping"},
                    )
                statements.append(create_user_mapping(foreign_data_wrapper_id, user_mapping_options))
            else:
                statements.append(update_user_mapping(foreign_data_wrapper_id, user_mapping_options))
            if "password" in user_mapping_options:
                encrypted_password = encrypt_password(user_mapping_options["password"])

        with self._transaction("update", remote_server.id, workspace_id) as tx:
            if not tx.transactional_ddl:
                tx.execute_all(statements)

            row = self._select_within_workspace(tx.session, remote_server.id, workspace_id)
            if row is None:
                raise NotFound(
                    "Remote server does not exist",
                    context={"remote_server_id": remote_server.id},
                )
            if foreign_data_wrapper_options is not None:
                row.foreign_data_wrapper_options = {
                    **{k.lower(): v for k, v in row.foreign_data_wrapper_options.items()},
                    **dict(foreign_data_wrapper_options),
                }
            if user_mapping_options is not None:
                merged = dict(row.user_mapping_options or {})
                if "username" in user_mapping_options:
                    merged["username"] = user_mapping_options["username"]
                if encrypted_password is not None:
                    merged["password"] = encrypted_password
                row.user_mapping_options = merged
            for name, value in descriptive_updates.items():
                setattr(row, name, value)
            row.updated_at = datetime.now(timezone.utc)
            tx.session.add(row)
            tx.session.flush()
            tx.keep(row)

            if tx.transactional_ddl:
                tx.execute_all(statements)

        logger.info(
            "remote_server_updated",
            extra={
                "remote_server_id": row.id,
                "workspace_id": workspace_id,
                "foreign_data_wrapper_id": row.foreign_data_wrapper_id,
                "statements": [s.kind for s in statements],
                "updated_fields": sorted(
                    remote_server_input.model_fields_set - {"id"}
                ),
            },
        )
        return row

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_one_remote_server(self, id: str, workspace_id: str) -> RemoteServer:
        """Unsync dependents, then drop the server and its catalog row.

        The unsync runs in its own transactions before the drop. If it fails
        the drop never starts; if it succeeds and the drop fails, retrying the
        delete is safe.
        """
        validate_string_against_injections(id, "id")

        remote_server = self.find_one_by_id_within_workspace(id, workspace_id)
        if remote_server is None:
            raise NotFound("Remote server does not exist", context={"remote_server_id": id})

        self._remote_table_service.unsync_all(workspace_id, remote_server)

        statement = drop_server_cascade(
            validate_string_against_injections(
                remote_server.foreign_data_wrapper_id, "foreign_data_wrapper_id"
            )
        )

        with self._transaction("delete", remote_server.id, workspace_id) as tx:
            tx.execute(statement)
            row = self._select_within_workspace(tx.session, remote_server.id, workspace_id)
            if row is not None:
                tx.session.delete(row)
                tx.session.flush()

        logger.info(
            "remote_server_deleted",
            extra={
                "remote_server_id": remote_server.id,
                "workspace_id": workspace_id,
                "foreign_data_wrapper_id": remote_server.foreign_data_wrapper_id,
            },
        )
        return remote_server

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_one_by_id_within_workspace(self, id: str, workspace_id: str) -> Optional[RemoteServer]:
        with self._session_factory() as session:
            row = self._select_within_workspace(session, id, workspace_id)
            if row is not None:
                session.expunge(row)
            return row

    def find_many_by_type_within_workspace(
        self,
        foreign_data_wrapper_type: RemoteServerType,
        workspace_id: str,
    ) -> List[RemoteServer]:
        with self._session_factory() as session:
            stmt = (
                select(RemoteServer)
                .where(RemoteServer.foreign_data_wrapper_type == RemoteServerType(foreign_data_wrapper_type))
                .where(RemoteServer.workspace_id == workspace_id)
                .order_by(RemoteServer.created_at)
            )
            rows = session.exec(stmt).all()
            for row in rows:
                session.expunge(row)
            return list(rows)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _select_within_workspace(session: Session, id: str, workspace_id: str) -> Optional[RemoteServer]:
        stmt = (
            select(RemoteServer)
            .where(RemoteServer.id == id)
            .where(RemoteServer.workspace_id == workspace_id)
        )
        return session.exec(stmt).first()

    @staticmethod
    def _validate_foreign_data_wrapper_options(options) -> ValidatedOptions:
        return validate_object_against_injections(options, "foreign_data_wrapper_options")

    @staticmethod
    def _check_required_options(
        foreign_data_wrapper_type: RemoteServerType,
        options: ValidatedOptions,
    ) -> None:
        missing = REQUIRED_OPTIONS.get(foreign_data_wrapper_type, frozenset()) - set(options)
        if missing:
            raise ValidationError(
                f"Missing options for {foreign_data_wrapper_type.value}: {sorted(missing)}",
                context={
                    "field": "foreign_data_wrapper_options",
                    "rule": "missing_required_option",
                    "missing": sorted(missing),
                },
            )

    @contextmanager
    def _transaction(
        self,
        operation: str,
        remote_server_id: str,
        workspace_id: str,
    ) -> Iterator[_RemoteServerTransaction]:
        with self._session_factory() as session:
            transactional_ddl = (
                self._transactional_ddl
                if self._transactional_ddl is not None
                else supports_transactional_ddl(session.get_bind())
            )
            tx = _RemoteServerTransaction(session, self._executor, transactional_ddl)
            context = {
                "operation": operation,
                "remote_server_id": remote_server_id,
                "workspace_id": workspace_id,
            }
            try:
                yield tx
                session.commit()
            except Exception as exc:
                session.rollback()
                context["executed_statements"] = list(tx.executed)
                if tx.foreign_objects_changed and not tx.transactional_ddl:
                    logger.critical("remote_server_reconciliation_required", extra=context)
                    raise ReconciliationRequired(
                        f"Foreign server changed during {operation} but the catalog was not updated",
                        context=context,
                    ) from exc
                if isinstance(exc, FdwCatalogError):
                    raise
                logger.error(
                    "remote_server_transaction_failed",
                    extra={**context, "error_type": type(exc).__name__},
                )
                raise TransactionFailure(
                    f"Remote server {operation} failed and was rolled back",
                    context=context,
                ) from exc
            tx.detach_kept()
