"""
tests/test_schema_readers.py
Tests for modelgen.schema.

The SQLite reader runs against real database files.  MySQL and PostgreSQL
normalisation is exercised through the pure row -> record functions, so no
server is needed.
"""

from __future__ import annotations

import pathlib
import sqlite3
from typing import Any, Dict, List, Tuple

import pytest
from sqlalchemy import event, text

from modelgen.exceptions import ConfigurationError, SchemaError
from modelgen.models import (
    Column,
    ConnectionSettings,
    DatabaseDriver,
    GeneratorConfig,
    IndexType,
)
from modelgen.schema import (
    ConnectionManager,
    MySqlSchemaReader,
    PostgreSqlSchemaReader,
    SqliteSchemaReader,
    build_indexes,
    create_schema_reader,
    filter_tables,
    reader_for_connection,
)
from modelgen.schema.connections import build_url, sqlite_file_path
from modelgen.schema.mysql import (
    group_mysql_indexes,
    normalize_index_type,
    normalize_mysql_column,
)
from modelgen.schema.postgres import (
    group_pgsql_indexes,
    normalize_pg_type,
    normalize_pgsql_column,
    pg_index_type,
    strip_pg_default,
)
from modelgen.schema.sqlite import normalize_sqlite_column
from modelgen.scopes import ScopeGenerator


BLOG_TABLES: List[str] = ["comments", "post_tag", "posts", "users"]


def _by_name(columns: List[Column]) -> Dict[str, Column]:
    return {c.name: c for c in columns}


@pytest.fixture()
def manager(sqlite_config: GeneratorConfig):
    mgr = ConnectionManager(sqlite_config.connections)
    yield mgr
    mgr.dispose()


@pytest.fixture()
def reader(manager: ConnectionManager) -> SqliteSchemaReader:
    return SqliteSchemaReader(manager)


# ===========================================================================
# Reader registry
# ===========================================================================


class TestReaderRegistry:

    def test_create_by_driver(self, manager: ConnectionManager) -> None:
        assert isinstance(create_schema_reader("sqlite", manager), SqliteSchemaReader)
        assert isinstance(create_schema_reader("mysql", manager), MySqlSchemaReader)
        assert isinstance(
            create_schema_reader(DatabaseDriver.PGSQL, manager), PostgreSqlSchemaReader
        )

    def test_unknown_driver(self, manager: ConnectionManager) -> None:
        with pytest.raises(ConfigurationError):
            create_schema_reader("oracle", manager)

    def test_reader_for_connection(self, manager: ConnectionManager) -> None:
        assert isinstance(reader_for_connection(manager, "main"), SqliteSchemaReader)

    def test_unknown_connection(self, manager: ConnectionManager) -> None:
        with pytest.raises(ConfigurationError, match="Unknown connection"):
            reader_for_connection(manager, "nope")


# ===========================================================================
# SQLite: tables
# ===========================================================================


class TestSqliteTables:

    def test_excludes_system_and_default_tables(
        self, reader: SqliteSchemaReader, sqlite_config: GeneratorConfig
    ) -> None:
        tables = reader.get_tables("main", sqlite_config.excluded_tables)
        assert [t.name for t in tables] == BLOG_TABLES

    def test_custom_exclusions(self, reader: SqliteSchemaReader) -> None:
        names = [t.name for t in reader.get_tables("main", ["users"])]
        assert "users" not in names
        assert "migrations" in names
        assert "sqlite_sequence" not in names

    def test_missing_database_file(self, tmp_path: pathlib.Path) -> None:
        missing = tmp_path / "missing.sqlite"
        mgr = ConnectionManager({"gone": ConnectionSettings(driver="sqlite", database=str(missing))})
        with pytest.raises(SchemaError) as excinfo:
            SqliteSchemaReader(mgr).get_tables("gone")
        assert excinfo.value.path == str(missing)
        assert str(missing) in str(excinfo.value)
        assert not missing.exists()

    def test_memory_database(self) -> None:
        mgr = ConnectionManager({"mem": ConnectionSettings(driver="sqlite", database=":memory:")})
        with mgr.engine("mem").connect() as conn:
            conn.execute(text("CREATE TABLE notes (id INTEGER PRIMARY KEY, body TEXT)"))
            conn.commit()
        try:
            tables = SqliteSchemaReader(mgr).get_tables("mem")
            assert [t.name for t in tables] == ["notes"]
        finally:
            mgr.dispose()

    def test_connection_is_read_only(self) -> None:
        mgr = ConnectionManager({"mem": ConnectionSettings(driver="sqlite")})
        try:
            SqliteSchemaReader(mgr).get_tables("mem")
            with pytest.raises(SchemaError, match="mem"):
                with mgr.connect("mem") as conn:
                    conn.execute(text("CREATE TABLE t (id INTEGER)"))
        finally:
            mgr.dispose()

    def test_read_only_statement_opens_the_query_transaction(
        self, manager: ConnectionManager, reader: SqliteSchemaReader
    ) -> None:
        seen: List[Tuple[str, bool]] = []

        def _record(conn: Any, cursor: Any, statement: str, *args: Any) -> None:
            seen.append((statement, conn.in_transaction()))

        engine = manager.engine("main")
        reader.get_tables("main")
        event.listen(engine, "before_cursor_execute", _record)
        try:
            reader.get_tables("main")
        finally:
            event.remove(engine, "before_cursor_execute", _record)
        assert seen[0] == (SqliteSchemaReader.read_only_statement, True)
        assert len(seen) >= 2
        assert all(in_transaction for _, in_transaction in seen)

    def test_users_scenario_gives_boolean_scope_pair(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "scenario.sqlite"
        conn = sqlite3.connect(str(path))
        try:
            conn.execute(
                "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, "
                "email TEXT UNIQUE, is_active INTEGER, created_at DATETIME, updated_at DATETIME)"
            )
            conn.commit()
        finally:
            conn.close()

        mgr = ConnectionManager({"main": ConnectionSettings(driver="sqlite", database=str(path))})
        try:
            columns = SqliteSchemaReader(mgr).get_table_columns("main", "users")
        finally:
            mgr.dispose()

        by_name = _by_name(columns)
        assert [c.name for c in columns if c.primary] == ["id"]
        assert by_name["id"].extra == "auto_increment"
        assert by_name["is_active"].type == "integer"

        scopes = ScopeGenerator().classify(by_name["is_active"])
        assert [s.name for s in scopes] == ["Active", "Inactive"]
        assert "return $query->where('is_active', true);" in scopes[0].code


# ===========================================================================
# SQLite: columns
# ===========================================================================


class TestSqliteColumns:

    def test_users_columns(self, reader: SqliteSchemaReader) -> None:
        columns = reader.get_table_columns("main", "users")
        assert [c.name for c in columns] == [
            "id", "name", "email", "password", "is_active", "created_at", "updated_at",
        ]
        by_name = _by_name(columns)
        assert by_name["id"].primary is True
        assert by_name["id"].is_auto_increment is True
        assert by_name["id"].nullable is False
        assert by_name["name"].type == "varchar"
        assert by_name["name"].type_extra == "VARCHAR(255)"
        assert by_name["name"].length == 255
        assert by_name["name"].nullable is False
        assert by_name["is_active"].type == "boolean"
        assert by_name["created_at"].nullable is True

    def test_rowid_alias_is_auto_increment(self, reader: SqliteSchemaReader) -> None:
        by_name = _by_name(reader.get_table_columns("main", "posts"))
        assert by_name["id"].is_auto_increment is True
        assert by_name["user_id"].is_auto_increment is False

    def test_defaults_and_precision(self, reader: SqliteSchemaReader) -> None:
        by_name = _by_name(reader.get_table_columns("main", "posts"))
        assert by_name["status"].default == "draft"
        assert by_name["views"].default == "0"
        assert by_name["price"].precision == 10
        assert by_name["price"].scale == 2

    def test_compound_key_is_not_auto_increment(self, reader: SqliteSchemaReader) -> None:
        columns = reader.get_table_columns("main", "post_tag")
        assert all(c.primary for c in columns)
        assert not any(c.is_auto_increment for c in columns)

    def test_missing_table_gives_empty_list(self, reader: SqliteSchemaReader) -> None:
        assert reader.get_table_columns("main", "no_such_table") == []

    def test_normalize_row(self) -> None:
        row = {"cid": 0, "name": "id", "type": "integer", "notnull": 0, "dflt_value": None, "pk": 1}
        column = normalize_sqlite_column(row, pk_count=1, has_autoincrement=False)
        assert column.primary is True
        assert column.nullable is False
        assert column.is_auto_increment is True

    def test_normalize_row_unquotes_default(self) -> None:
        row = {"name": "s", "type": "TEXT", "notnull": 1, "dflt_value": "'it''s'", "pk": 0}
        assert normalize_sqlite_column(row, 0, False).default == "it's"


# ===========================================================================
# SQLite: foreign keys & indexes
# ===========================================================================


class TestSqliteRelations:

    def test_foreign_keys(self, reader: SqliteSchemaReader) -> None:
        fks = reader.get_foreign_keys("main", "posts")
        assert len(fks) == 1
        assert fks[0].from_column == "user_id"
        assert fks[0].table == "users"
        assert fks[0].to == "id"
        assert fks[0].on_delete == "CASCADE"

    def test_implicit_target_resolves_to_primary_key(self, reader: SqliteSchemaReader) -> None:
        fks = reader.get_foreign_keys("main", "comments")
        assert [(fk.from_column, fk.table, fk.to) for fk in fks] == [("post_id", "posts", "id")]

    def test_no_foreign_keys(self, reader: SqliteSchemaReader) -> None:
        assert reader.get_foreign_keys("main", "users") == []

    def test_users_indexes(self, reader: SqliteSchemaReader) -> None:
        indexes = reader.get_table_indexes("main", "users")
        assert indexes[0].type is IndexType.PRIMARY
        assert indexes[0].columns == ("id",)
        unique = [i for i in indexes if i.type is IndexType.UNIQUE]
        assert [i.columns for i in unique] == [("email",)]

    def test_plain_index(self, reader: SqliteSchemaReader) -> None:
        indexes = reader.get_table_indexes("main", "posts")
        assert [(i.name, i.type) for i in indexes] == [
            ("PRIMARY", IndexType.PRIMARY),
            ("posts_status_index", IndexType.INDEX),
        ]

    def test_compound_primary_index(self, reader: SqliteSchemaReader) -> None:
        indexes = reader.get_table_indexes("main", "post_tag")
        assert len(indexes) == 1
        assert indexes[0].type is IndexType.PRIMARY
        assert indexes[0].columns == ("post_id", "tag_id")


# ===========================================================================
# Shared helpers
# ===========================================================================


class TestSharedHelpers:

    def test_build_indexes_orders_columns_and_types(self) -> None:
        indexes = build_indexes([
            ("b_index", IndexType.INDEX, "b", 1),
            ("a_unique", IndexType.UNIQUE, "y", 2),
            ("a_unique", IndexType.UNIQUE, "x", 1),
            ("PRIMARY", IndexType.PRIMARY, "id", 1),
        ])
        assert [i.name for i in indexes] == ["PRIMARY", "a_unique", "b_index"]
        assert indexes[1].columns == ("x", "y")

    def test_filter_tables(self) -> None:
        rows = [{"name": "users"}, {"name": "pma_history"}, {"name": "jobs"}, {"name": "a"}]
        tables = filter_tables(rows, ["jobs"], system_prefix="pma")
        assert [t.name for t in tables] == ["a", "users"]

    def test_build_url(self) -> None:
        url = build_url(ConnectionSettings(driver="mysql", database="shop", username="root"))
        assert url.drivername == "mysql+pymysql"
        assert url.port == 3306
        assert url.database == "shop"
        pg = build_url(ConnectionSettings(driver="pgsql", host="db", port=6543))
        assert pg.drivername == "postgresql+psycopg2"
        assert pg.host == "db"
        assert pg.port == 6543

    def test_build_url_explicit(self) -> None:
        url = build_url(ConnectionSettings(driver="pgsql", url="postgresql://u@h/app"))
        assert url.database == "app"

    def test_build_url_invalid(self) -> None:
        with pytest.raises(ConfigurationError):
            build_url(ConnectionSettings(driver="pgsql", url="not a url"))

    def test_sqlite_file_path(self) -> None:
        assert sqlite_file_path(ConnectionSettings(driver="sqlite")) is None
        assert sqlite_file_path(ConnectionSettings(driver="sqlite", database="a.db")) == "a.db"
        assert sqlite_file_path(ConnectionSettings(driver="mysql", database="a")) is None


# ===========================================================================
# MySQL normalisation
# ===========================================================================


class TestMySqlNormalisation:

    def test_schema_from_database_setting(self) -> None:
        mgr = ConnectionManager({"m": ConnectionSettings(driver="mysql", database="shop")})
        assert MySqlSchemaReader(mgr)._schema("m") == "shop"

    def test_schema_from_url_only_connection(self) -> None:
        settings = ConnectionSettings(driver="mysql", url="mysql+pymysql://u:p@h/shop")
        mgr = ConnectionManager({"m": settings})
        assert MySqlSchemaReader(mgr)._schema("m") == "shop"

    def test_url_wins_over_database_setting(self) -> None:
        settings = ConnectionSettings(
            driver="mysql", database="legacy", url="mysql+pymysql://u:p@h/shop"
        )
        mgr = ConnectionManager({"m": settings})
        assert MySqlSchemaReader(mgr)._schema("m") == "shop"

    def test_schema_required(self) -> None:
        mgr = ConnectionManager({"m": ConnectionSettings(driver="mysql", url="mysql+pymysql://u@h")})
        with pytest.raises(ConfigurationError, match="MySQL database"):
            MySqlSchemaReader(mgr)._schema("m")

    def test_boolean_column(self) -> None:
        column = normalize_mysql_column({
            "name": "is_active",
            "type": "tinyint",
            "type_extra": "tinyint(1)",
            "is_nullable": "NO",
            "column_default": "1",
            "column_key": "",
            "extra": "",
        })
        assert column.nullable is False
        assert column.type == "tinyint"
        assert column.type_extra == "tinyint(1)"
        assert column.primary is False

    def test_primary_auto_increment(self) -> None:
        column = normalize_mysql_column({
            "name": "id",
            "type": "bigint",
            "type_extra": "bigint unsigned",
            "is_nullable": "NO",
            "column_key": "PRI",
            "extra": "auto_increment",
        })
        assert column.primary is True
        assert column.is_auto_increment is True

    def test_fulltext_and_comment(self) -> None:
        column = normalize_mysql_column(
            {
                "name": "body",
                "type": "text",
                "type_extra": "text",
                "is_nullable": "YES",
                "comment": "Post body",
            },
            fulltext_columns=["body"],
        )
        assert column.fulltext is True
        assert column.nullable is True
        assert column.comment == "Post body"

    def test_enum_column(self) -> None:
        column = normalize_mysql_column({
            "name": "status",
            "type": "enum",
            "type_extra": "enum('draft','published')",
            "is_nullable": "NO",
            "length": 9,
        })
        assert column.type == "enum"
        assert column.length == 9

    def test_index_type(self) -> None:
        assert normalize_index_type("PRIMARY", "BTREE", 0) is IndexType.PRIMARY
        assert normalize_index_type("ft", "FULLTEXT", 1) is IndexType.FULLTEXT
        assert normalize_index_type("u", "BTREE", 0) is IndexType.UNIQUE
        assert normalize_index_type("i", "BTREE", 1) is IndexType.INDEX

    def test_group_indexes(self) -> None:
        indexes = group_mysql_indexes([
            {"name": "posts_slug_unique", "index_type": "BTREE", "non_unique": 0,
             "column_name": "slug", "position": 1},
            {"name": "PRIMARY", "index_type": "BTREE", "non_unique": 0,
             "column_name": "id", "position": 1},
            {"name": "posts_fulltext", "index_type": "FULLTEXT", "non_unique": 1,
             "column_name": "body", "position": 2},
            {"name": "posts_fulltext", "index_type": "FULLTEXT", "non_unique": 1,
             "column_name": "title", "position": 1},
        ])
        assert [(i.name, i.type) for i in indexes] == [
            ("PRIMARY", IndexType.PRIMARY),
            ("posts_fulltext", IndexType.FULLTEXT),
            ("posts_slug_unique", IndexType.UNIQUE),
        ]
        assert indexes[1].columns == ("title", "body")


# ===========================================================================
# PostgreSQL normalisation
# ===========================================================================


class TestPostgresNormalisation:

    def test_read_only_applies_to_the_current_transaction(self) -> None:
        assert PostgreSqlSchemaReader.read_only_statement == "SET TRANSACTION READ ONLY"

    def test_type_aliases(self) -> None:
        assert normalize_pg_type("character varying") == "varchar"
        assert normalize_pg_type("timestamp without time zone") == "timestamp"
        assert normalize_pg_type("double precision") == "double"
        assert normalize_pg_type("integer") == "integer"

    def test_varchar_column(self) -> None:
        column = normalize_pgsql_column({
            "name": "name",
            "data_type": "character varying",
            "udt_name": "varchar",
            "is_nullable": "NO",
            "column_default": "'guest'::character varying",
            "length": 100,
            "is_identity": "NO",
            "is_primary": False,
        })
        assert column.type == "varchar"
        assert column.type_extra == "varchar(100)"
        assert column.length == 100
        assert column.default == "guest"
        assert column.nullable is False
        assert column.fulltext is False

    def test_serial_primary_key(self) -> None:
        column = normalize_pgsql_column({
            "name": "id",
            "data_type": "bigint",
            "udt_name": "int8",
            "is_nullable": "NO",
            "column_default": "nextval('users_id_seq'::regclass)",
            "is_identity": "NO",
            "is_primary": True,
        })
        assert column.primary is True
        assert column.is_auto_increment is True

    def test_identity_column(self) -> None:
        column = normalize_pgsql_column({
            "name": "id", "data_type": "integer", "udt_name": "int4", "is_identity": "YES",
        })
        assert column.is_auto_increment is True

    def test_enum_column(self) -> None:
        column = normalize_pgsql_column(
            {"name": "mood", "data_type": "USER-DEFINED", "udt_name": "mood", "is_nullable": "YES"},
            enum_types={"mood": ["happy", "sad"]},
        )
        assert column.type == "enum"
        assert column.type_extra == "enum('happy','sad')"

    def test_numeric_column(self) -> None:
        column = normalize_pgsql_column({
            "name": "price",
            "data_type": "numeric",
            "udt_name": "numeric",
            "numeric_precision": 10,
            "numeric_scale": 2,
        })
        assert column.type_extra == "numeric(10,2)"
        assert column.precision == 10
        assert column.scale == 2

    def test_strip_default(self) -> None:
        assert strip_pg_default("'it''s'::text") == "it's"
        assert strip_pg_default("0::integer") == "0"
        assert strip_pg_default("now()") == "now()"
        assert strip_pg_default(None) is None

    def test_index_type_checks_primary_first(self) -> None:
        assert pg_index_type(True, True) is IndexType.PRIMARY
        assert pg_index_type(False, True) is IndexType.UNIQUE
        assert pg_index_type(False, False) is IndexType.INDEX

    def test_group_indexes(self) -> None:
        indexes = group_pgsql_indexes([
            {"name": "users_pkey", "is_primary": True, "is_unique": True,
             "column_name": "id", "position": 1},
            {"name": "users_email_key", "is_primary": False, "is_unique": True,
             "column_name": "email", "position": 1},
        ])
        assert [(i.name, i.type) for i in indexes] == [
            ("users_pkey", IndexType.PRIMARY),
            ("users_email_key", IndexType.UNIQUE),
        ]
