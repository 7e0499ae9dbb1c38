"""
Catalog Database
================

SQL catalog holding remote server and remote table records. The same
connection executes the foreign server DDL, so the catalog must be the
PostgreSQL database that has the wrapper extensions installed. SQLite is
supported for local development and tests only.

Backend selection (see Settings.get_database_url):
  - FDWCATALOG_DATABASE_URL or DATABASE_URL
  - SQLite fallback: sqlite:///<data_directory>/fdwcatalog.db
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from fdwcatalog.config import settings

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None


def _build_engine(url: str) -> Engine:
    """Create an engine appropriate for the catalog backend."""
    if url.startswith("sqlite"):
        db_path = url.replace("sqlite:///", "")
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        engine = create_engine(
            url,
            echo=settings.debug,
            connect_args={"check_same_thread": False},
        )
        install_sqlite_pragmas(engine)
        return engine

    return create_engine(
        url,
        echo=settings.debug,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )


def install_sqlite_pragmas(engine: Engine) -> None:
    """Enable WAL and foreign keys on every new SQLite connection."""

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_conn, _connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()


def get_engine() -> Engine:
    """Get or create the catalog engine."""
    global _engine
    if _engine is None:
        url = settings.get_database_url()
        _engine = _build_engine(url)
        logger.info("Database engine created: %s", url.split("@")[-1] if "@" in url else url)
    return _engine


def supports_transactional_ddl(engine: Engine) -> bool:
    """Whether a rollback on *engine* also undoes CREATE/ALTER/DROP SERVER.

    An explicit FDWCATALOG_TRANSACTIONAL_DDL wins; otherwise only PostgreSQL
    is trusted to roll back DDL.
    """
    if settings.transactional_ddl is not None:
        return settings.transactional_ddl
    return engine.dialect.name == "postgresql"


# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------

def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency: yields a catalog session."""
    with Session(get_engine()) as session:
        yield session


@contextmanager
def get_session_context():
    """
    Context manager for non-FastAPI code.

    Usage::

        with get_session_context() as session:
            session.exec(...)
    """
    with Session(get_engine()) as session:
        yield session


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------

def init_db() -> None:
    """Bring the catalog schema up to date at startup."""
    from fdwcatalog.models import RemoteServer, RemoteTable  # noqa: F401

    alembic_ini = Path(__file__).resolve().parent.parent.parent / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("alembic.ini not found at %s, creating tables from metadata", alembic_ini)
        SQLModel.metadata.create_all(get_engine())
        return

    _run_alembic_upgrade(alembic_ini)


def _run_alembic_upgrade(alembic_ini: Path) -> None:
    """Run ``alembic upgrade head`` programmatically."""
    from alembic import command
    from alembic.config import Config

    try:
        cfg = Config(str(alembic_ini))
        cfg.set_main_option("sqlalchemy.url", settings.get_database_url())
        command.upgrade(cfg, "head")
        logger.info("Alembic migrations applied (upgrade head)")
    except Exception as exc:
        logger.error("Alembic migration failed: %s", exc)
        raise


def close_db() -> None:
    """Dispose the engine at shutdown."""
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None
    logger.info("Database connections closed")
