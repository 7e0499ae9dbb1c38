"""Tests for foreign server / user mapping statement rendering."""

import pytest

from fdwcatalog.core.injection_guard import (
    validate_object_against_injections,
    validate_string_against_injections,
)
from fdwcatalog.models.remote_server import RemoteServerType
from fdwcatalog.services import foreign_data_wrapper_queries as queries

SERVER_ID = "0b8a7c2e-1f3d-4e5a-9b6c-7d8e9f0a1b2c"


@pytest.fixture
def server():
    return validate_string_against_injections(SERVER_ID, "foreign_data_wrapper_id")


def _options(**values):
    return validate_object_against_injections(values)


class TestCreateForeignServer:
    def test_postgres(self, server):
        statement = queries.create_foreign_server(
            server, RemoteServerType.POSTGRES_FDW, _options(host="db1", port="5432", dbname="sales")
        )
        assert statement.kind == "create_server"
        assert statement.server_name == SERVER_ID
        assert statement.sql == (
            f'CREATE SERVER "{SERVER_ID}" FOREIGN DATA WRAPPER postgres_fdw '
            "OPTIONS (host 'db1', port '5432', dbname 'sales')"
        )

    def test_without_options(self, server):
        statement = queries.create_foreign_server(server, RemoteServerType.STRIPE_FDW, _options())
        assert statement.sql == f'CREATE SERVER "{SERVER_ID}" FOREIGN DATA WRAPPER stripe_fdw'

    def test_refuses_unvalidated_identifier(self):
        with pytest.raises(TypeError):
            queries.create_foreign_server(SERVER_ID, RemoteServerType.POSTGRES_FDW, _options(host="db1"))

    def test_refuses_unvalidated_options(self, server):
        with pytest.raises(TypeError):
            queries.create_foreign_server(server, RemoteServerType.POSTGRES_FDW, {"host": "db1"})


class TestUserMapping:
    def test_create(self, server):
        statement = queries.create_user_mapping(server, _options(username="ro_user", password="secret123"))
        assert statement.sql == (
            f'CREATE USER MAPPING IF NOT EXISTS FOR CURRENT_USER SERVER "{SERVER_ID}" '
            "OPTIONS (user 'ro_user', password 'secret123')"
        )

    def test_create_requires_both_credentials(self, server):
        with pytest.raises(ValueError):
            queries.create_user_mapping(server, _options(username="ro_user"))

    def test_update_password_only(self, server):
        statement = queries.update_user_mapping(server, _options(password="rotated"))
        assert statement.kind == "alter_user_mapping"
        assert statement.sql == (
            f'ALTER USER MAPPING FOR CURRENT_USER SERVER "{SERVER_ID}" '
            "OPTIONS (SET password 'rotated')"
        )

    def test_update_both(self, server):
        statement = queries.update_user_mapping(server, _options(username="rw_user", password="pw"))
        assert "SET user 'rw_user', SET password 'pw'" in statement.sql

    def test_repr_hides_sql(self, server):
        statement = queries.create_user_mapping(server, _options(username="ro_user", password="secret123"))
        assert "secret123" not in repr(statement)


class TestUpdateForeignServer:
    def test_set_existing_add_new(self, server):
        statement = queries.update_foreign_server(
            server,
            _options(host="db2", fetch_size="500"),
            existing_option_names={"host", "port", "dbname"},
        )
        assert statement.sql == (
            f'ALTER SERVER "{SERVER_ID}" OPTIONS (SET host \'db2\', ADD fetch_size \'500\')'
        )

    def test_requires_options(self, server):
        with pytest.raises(ValueError):
            queries.update_foreign_server(server, _options())


class TestDrop:
    def test_drop_server_cascade(self, server):
        statement = queries.drop_server_cascade(server)
        assert statement.kind == "drop_server"
        assert statement.sql == f'DROP SERVER IF EXISTS "{SERVER_ID}" CASCADE'

    def test_drop_foreign_table_with_schema(self):
        statement = queries.drop_foreign_table(
            validate_string_against_injections("orders"),
            validate_string_against_injections("workspace_abc"),
        )
        assert statement.sql == 'DROP FOREIGN TABLE IF EXISTS "workspace_abc"."orders"'

    def test_drop_foreign_table_without_schema(self):
        statement = queries.drop_foreign_table(validate_string_against_injections("orders"))
        assert statement.sql == 'DROP FOREIGN TABLE IF EXISTS "orders"'
