# File: modelgen/schema/mysql.py
"""
ModelGen - MySQL Schema Reader
===============================
Reads ``information_schema`` (TABLES, COLUMNS, KEY_COLUMN_USAGE,
REFERENTIAL_CONSTRAINTS, STATISTICS) for the connection's database.

``COLUMN_TYPE`` becomes ``type_extra`` so ``tinyint(1)`` and
``enum('a','b')`` stay visible to inference; columns that belong to any
FULLTEXT index are flagged ``fulltext``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from modelgen.exceptions import ConfigurationError
from modelgen.models import Column, DatabaseDriver, ForeignKey, Index, IndexType, Table
from modelgen.schema.base import SchemaReader, build_indexes, filter_tables
from modelgen.schema.connections import build_url

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.schema.mysql")

_TABLES_SQL: str = """
    SELECT TABLE_NAME AS name, TABLE_COMMENT AS comment
    FROM information_schema.TABLES
    WHERE TABLE_SCHEMA = :schema
    AND TABLE_TYPE = 'BASE TABLE'
    ORDER BY TABLE_NAME
"""

_COLUMNS_SQL: str = """
    SELECT
        COLUMN_NAME AS name,
        DATA_TYPE AS type,
        COLUMN_TYPE AS type_extra,
        IS_NULLABLE AS is_nullable,
        COLUMN_DEFAULT AS column_default,
        CHARACTER_MAXIMUM_LENGTH AS length,
        NUMERIC_PRECISION AS numeric_precision,
        NUMERIC_SCALE AS numeric_scale,
        COLUMN_KEY AS column_key,
        EXTRA AS extra,
        COLUMN_COMMENT AS comment
    FROM information_schema.COLUMNS
    WHERE TABLE_SCHEMA = :schema
    AND TABLE_NAME = :table
    ORDER BY ORDINAL_POSITION
"""

_FULLTEXT_SQL: str = """
    SELECT DISTINCT COLUMN_NAME AS name
    FROM information_schema.STATISTICS
    WHERE TABLE_SCHEMA = :schema
    AND TABLE_NAME = :table
    AND INDEX_TYPE = 'FULLTEXT'
"""

_FOREIGN_KEYS_SQL: str = """
    SELECT
        k.COLUMN_NAME AS from_column,
        k.REFERENCED_TABLE_NAME AS referenced_table,
        k.REFERENCED_COLUMN_NAME AS referenced_column,
        r.DELETE_RULE AS on_delete,
        r.UPDATE_RULE AS on_update
    FROM information_schema.KEY_COLUMN_USAGE k
    JOIN information_schema.REFERENTIAL_CONSTRAINTS r
        ON k.CONSTRAINT_NAME = r.CONSTRAINT_NAME
        AND k.CONSTRAINT_SCHEMA = r.CONSTRAINT_SCHEMA
    WHERE k.TABLE_SCHEMA = :schema
    AND k.TABLE_NAME = :table
    AND k.REFERENCED_TABLE_NAME IS NOT NULL
    ORDER BY k.CONSTRAINT_NAME, k.ORDINAL_POSITION
"""

_INDEXES_SQL: str = """
    SELECT
        INDEX_NAME AS name,
        INDEX_TYPE AS index_type,
        NON_UNIQUE AS non_unique,
        COLUMN_NAME AS column_name,
        SEQ_IN_INDEX AS position
    FROM information_schema.STATISTICS
    WHERE TABLE_SCHEMA = :schema
    AND TABLE_NAME = :table
    ORDER BY INDEX_NAME, SEQ_IN_INDEX
"""


def normalize_index_type(name: str, index_type: str, non_unique: Any) -> IndexType:
    """PRIMARY by name, FULLTEXT by type, UNIQUE when ``NON_UNIQUE = 0``."""
    if name == "PRIMARY":
        return IndexType.PRIMARY
    if str(index_type or "").upper() == "FULLTEXT":
        return IndexType.FULLTEXT
    if int(non_unique or 0) == 0:
        return IndexType.UNIQUE
    return IndexType.INDEX


def normalize_mysql_column(
    row: Mapping[str, Any],
    fulltext_columns: Iterable[str] = (),
) -> Column:
    """Turn one ``information_schema.COLUMNS`` row into a canonical ``Column``."""
    extra: str = str(row.get("extra") or "")
    return Column.model_validate({
        "name": row["name"],
        "type": str(row.get("type") or ""),
        "type_extra": str(row.get("type_extra") or ""),
        "is_nullable": row.get("is_nullable", "YES"),
        "default": row.get("column_default"),
        "length": row.get("length"),
        "precision": row.get("numeric_precision"),
        "scale": row.get("numeric_scale"),
        "primary": str(row.get("column_key") or "").upper() == "PRI",
        "extra": "auto_increment" if "auto_increment" in extra.lower() else "",
        "fulltext": row["name"] in set(fulltext_columns),
        "comment": row.get("comment") or None,
    })


def group_mysql_indexes(rows: Iterable[Mapping[str, Any]]) -> List[Index]:
    """Group ``STATISTICS`` rows (one per index column) into ``Index`` records."""
    entries: List[Tuple[str, IndexType, str, int]] = [
        (
            row["name"],
            normalize_index_type(row["name"], row.get("index_type"), row.get("non_unique")),
            row["column_name"],
            int(row.get("position") or 0),
        )
        for row in rows
        if row.get("column_name") is not None
    ]
    return build_indexes(entries)


class MySqlSchemaReader(SchemaReader):
    """MySQL / MariaDB implementation of ``SchemaReader``."""

    driver = DatabaseDriver.MYSQL
    read_only_statement = "SET SESSION TRANSACTION READ ONLY"

    def _schema(self, connection: str) -> str:
        """Database name from the connection URL (a configured ``url`` wins)."""
        database: Optional[str] = build_url(self._connections.settings(connection)).database
        if not database:
            raise ConfigurationError(
                f"Connection {connection!r} does not name a MySQL database."
            )
        return database

    def get_tables(
        self,
        connection: str,
        excluded_tables: Sequence[str] = (),
    ) -> List[Table]:
        rows: List[Dict[str, Any]] = self._fetch(
            connection, _TABLES_SQL, {"schema": self._schema(connection)}
        )
        tables: List[Table] = filter_tables(rows, excluded_tables, system_prefix="pma")
        logger.info("[%s] %d table(s) found.", connection, len(tables))
        return tables

    def get_table_columns(self, connection: str, table_name: str) -> List[Column]:
        params: Dict[str, str] = {"schema": self._schema(connection), "table": table_name}
        rows: List[Dict[str, Any]] = self._fetch(connection, _COLUMNS_SQL, params)
        if not rows:
            return []
        fulltext: Set[str] = {
            r["name"] for r in self._fetch(connection, _FULLTEXT_SQL, params)
        }
        return [normalize_mysql_column(row, fulltext) for row in rows]

    def get_foreign_keys(self, connection: str, table_name: str) -> List[ForeignKey]:
        rows: List[Dict[str, Any]] = self._fetch(
            connection,
            _FOREIGN_KEYS_SQL,
            {"schema": self._schema(connection), "table": table_name},
        )
        return [_foreign_key(row) for row in rows]

    def get_table_indexes(self, connection: str, table_name: str) -> List[Index]:
        rows: List[Dict[str, Any]] = self._fetch(
            connection,
            _INDEXES_SQL,
            {"schema": self._schema(connection), "table": table_name},
        )
        return group_mysql_indexes(rows)


def _foreign_key(row: Mapping[str, Any]) -> ForeignKey:
    target: Optional[str] = row.get("referenced_column")
    return ForeignKey.model_validate({
        "from": row["from_column"],
        "table": row["referenced_table"],
        "to": target or "id",
        "on_delete": row.get("on_delete"),
        "on_update": row.get("on_update"),
    })


__all__: List[str] = [
    "MySqlSchemaReader",
    "normalize_mysql_column",
    "normalize_index_type",
    "group_mysql_indexes",
]

logger.debug("modelgen.schema.mysql loaded.")
