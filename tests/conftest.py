"""
Pytest configuration for fdw-catalog tests.

Environment variables are set before any fdwcatalog import so the settings
singleton picks them up.
"""

import os
import tempfile

_test_data_dir = tempfile.mkdtemp(prefix="fdwcatalog_test_")
os.environ.setdefault("FDWCATALOG_DATA_DIRECTORY", _test_data_dir)
os.environ.setdefault("FDWCATALOG_LOG_DIR", os.path.join(_test_data_dir, "logs"))
os.environ.setdefault("FDWCATALOG_CREDENTIAL_SECRET", "test-credential-secret-0123456789")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_test_data_dir}/test.db")

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from fdwcatalog.core.database import install_sqlite_pragmas
from fdwcatalog.core.errors.registry import error_registry
from fdwcatalog.models import RemoteServer, RemoteTable  # noqa: F401
from fdwcatalog.services.statement_executor import ForeignObjectExecutor

error_registry.load()


class RecordingExecutor(ForeignObjectExecutor):
    """Captures rendered statements instead of running them on SQLite.

    Set ``fail_on`` to a statement kind to raise a database error when that
    statement is reached.
    """

    def __init__(self):
        self.statements = []
        self.fail_on = None

    def execute(self, session, statement):
        if statement.kind == self.fail_on:
            raise OperationalError(statement.kind, {}, Exception("injected failure"))
        self.statements.append(statement)

    @property
    def kinds(self):
        return [s.kind for s in self.statements]


class FailingCommitSession(Session):
    """Session whose commit always fails, after every statement succeeded."""

    def commit(self):
        raise OperationalError("COMMIT", {}, Exception("injected commit failure"))


@pytest.fixture
def catalog_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    install_sqlite_pragmas(engine)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(catalog_engine):
    return lambda: Session(catalog_engine)


@pytest.fixture
def executor():
    return RecordingExecutor()


@pytest.fixture
def failing_commit_factory(catalog_engine):
    return lambda: FailingCommitSession(catalog_engine)
