"""
Foreign Data Wrapper Query Builder
==================================

Renders the administrative statements that create, alter and drop foreign
server objects and their user mappings.

DDL cannot be parameterized, so values are interpolated into the statement
text. Every function here only accepts ValidatedIdentifier / ValidatedOptions
from the injection guard and raises TypeError for anything else; no validation
happens in this module.

Rendered SQL can contain a plaintext user mapping password. Log ``kind`` and
``server_name``, never ``sql``.
"""

from dataclasses import dataclass, field
from typing import AbstractSet, Optional

from fdwcatalog.core.injection_guard import ValidatedIdentifier, ValidatedOptions
from fdwcatalog.models.remote_server import RemoteServerType

# Catalog field name -> postgres user mapping option name
_USER_MAPPING_OPTION_NAMES = {"username": "user", "password": "password"}


@dataclass(frozen=True)
class ForeignObjectStatement:
    kind: str
    server_name: str
    sql: str = field(repr=False)

    def __str__(self) -> str:
        return self.sql


def _require_identifier(value: object, argument: str) -> ValidatedIdentifier:
    if not isinstance(value, ValidatedIdentifier):
        raise TypeError(f"{argument} must be a ValidatedIdentifier, got {type(value).__name__}")
    return value


def _require_options(value: object, argument: str) -> ValidatedOptions:
    if not isinstance(value, ValidatedOptions):
        raise TypeError(f"{argument} must be ValidatedOptions, got {type(value).__name__}")
    return value


def _render_options(options: ValidatedOptions, action: Optional[str] = None) -> str:
    prefix = f"{action} " if action else ""
    return ", ".join(f"{prefix}{key} '{value}'" for key, value in options.items())


def _render_user_mapping_options(options: ValidatedOptions, action: Optional[str] = None) -> str:
    prefix = f"{action} " if action else ""
    parts = []
    for name in ("username", "password"):
        if name in options:
            parts.append(f"{prefix}{_USER_MAPPING_OPTION_NAMES[name]} '{options[name]}'")
    return ", ".join(parts)


def create_foreign_server(
    foreign_data_wrapper_id: ValidatedIdentifier,
    foreign_data_wrapper_type: RemoteServerType,
    foreign_data_wrapper_options: ValidatedOptions,
) -> ForeignObjectStatement:
    server = _require_identifier(foreign_data_wrapper_id, "foreign_data_wrapper_id")
    options = _require_options(foreign_data_wrapper_options, "foreign_data_wrapper_options")
    wrapper = RemoteServerType(foreign_data_wrapper_type).value

    sql = f'CREATE SERVER "{server}" FOREIGN DATA WRAPPER {wrapper}'
    if options:
        sql += f" OPTIONS ({_render_options(options)})"
    return ForeignObjectStatement("create_server", server, sql)


def create_user_mapping(
    foreign_data_wrapper_id: ValidatedIdentifier,
    user_mapping_options: ValidatedOptions,
) -> ForeignObjectStatement:
    """Both username and password must be present."""
    server = _require_identifier(foreign_data_wrapper_id, "foreign_data_wrapper_id")
    options = _require_options(user_mapping_options, "user_mapping_options")
    missing = {"username", "password"} - set(options)
    if missing:
        raise ValueError(f"user mapping options missing {sorted(missing)}")

    sql = (
        f'CREATE USER MAPPING IF NOT EXISTS FOR CURRENT_USER SERVER "{server}" '
        f"OPTIONS ({_render_user_mapping_options(options)})"
    )
    return ForeignObjectStatement("create_user_mapping", server, sql)


def update_foreign_server(
    foreign_data_wrapper_id: ValidatedIdentifier,
    foreign_data_wrapper_options: ValidatedOptions,
    existing_option_names: AbstractSet[str] = frozenset(),
) -> ForeignObjectStatement:
    """ALTER SERVER ... OPTIONS, using SET for options the server already has
    and ADD for new ones (PostgreSQL rejects SET on an absent option)."""
    server = _require_identifier(foreign_data_wrapper_id, "foreign_data_wrapper_id")
    options = _require_options(foreign_data_wrapper_options, "foreign_data_wrapper_options")
    if not options:
        raise ValueError("update_foreign_server needs at least one option")

    rendered = ", ".join(
        f"{'SET' if key in existing_option_names else 'ADD'} {key} '{value}'"
        for key, value in options.items()
    )
    return ForeignObjectStatement("alter_server", server, f'ALTER SERVER "{server}" OPTIONS ({rendered})')


def update_user_mapping(
    foreign_data_wrapper_id: ValidatedIdentifier,
    user_mapping_options: ValidatedOptions,
) -> ForeignObjectStatement:
    server = _require_identifier(foreign_data_wrapper_id, "foreign_data_wrapper_id")
    options = _require_options(user_mapping_options, "user_mapping_options")
    rendered = _render_user_mapping_options(options, action="SET")
    if not rendered:
        raise ValueError("update_user_mapping needs a username or password")

    sql = f'ALTER USER MAPPING FOR CURRENT_USER SERVER "{server}" OPTIONS ({rendered})'
    return ForeignObjectStatement("alter_user_mapping", server, sql)


def drop_server_cascade(foreign_data_wrapper_id: ValidatedIdentifier) -> ForeignObjectStatement:
    """Drops the server with its user mappings and foreign tables.

    IF EXISTS keeps a retried delete from failing on an already dropped server.
    """
    server = _require_identifier(foreign_data_wrapper_id, "foreign_data_wrapper_id")
    return ForeignObjectStatement("drop_server", server, f'DROP SERVER IF EXISTS "{server}" CASCADE')


def drop_foreign_table(
    local_table_name: ValidatedIdentifier,
    schema_name: Optional[ValidatedIdentifier] = None,
) -> ForeignObjectStatement:
    table = _require_identifier(local_table_name, "local_table_name")
    target = f'"{table}"'
    if schema_name is not None:
        target = f'"{_require_identifier(schema_name, "schema_name")}".{target}'
    return ForeignObjectStatement("drop_foreign_table", table, f"DROP FOREIGN TABLE IF EXISTS {target}")
