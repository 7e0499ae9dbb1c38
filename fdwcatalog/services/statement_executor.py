"""
Runs rendered foreign-object statements on the caller's catalog session, so
they share its transaction.
"""

import logging

from sqlalchemy import text
from sqlmodel import Session

from fdwcatalog.services.foreign_data_wrapper_queries import ForeignObjectStatement

logger = logging.getLogger(__name__)


class ForeignObjectExecutor:
    """Executes ForeignObjectStatement objects inside an open session."""

    def execute(self, session: Session, statement: ForeignObjectStatement) -> None:
        logger.debug(
            "foreign_object_statement",
            extra={"kind": statement.kind, "server_name": statement.server_name},
        )
        # text() treats ":name" as a bind parameter; the statement has none
        session.connection().execute(text(statement.sql.replace(":", "\\:")))
