# File: modelgen/schema/sqlite.py
"""
ModelGen - SQLite Schema Reader
================================
Reads ``sqlite_master`` and the ``PRAGMA table_info`` / ``foreign_key_list``
/ ``index_list`` / ``index_info`` pseudo-tables.

Auto-increment follows SQLite's own rules: a single-column ``INTEGER``
primary key is an alias for the rowid, and an ``AUTOINCREMENT`` keyword in
the stored ``CREATE TABLE`` statement marks the primary key explicitly.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from modelgen.models import Column, DatabaseDriver, ForeignKey, Index, IndexType, Table
from modelgen.schema.base import SchemaReader, build_indexes, filter_tables

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.schema.sqlite")

_AUTOINCREMENT_RE: re.Pattern[str] = re.compile(r"\bAUTOINCREMENT\b", re.IGNORECASE)

_TABLES_SQL: str = """
    SELECT name
    FROM sqlite_master
    WHERE type = 'table'
    ORDER BY name
"""

_TABLE_SQL_SQL: str = """
    SELECT sql
    FROM sqlite_master
    WHERE type = 'table' AND name = :name
"""


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def _unquote_default(value: Any) -> Any:
    """``'draft'`` -> ``draft``; numbers and expressions are left alone."""
    if not isinstance(value, str):
        return value
    stripped: str = value.strip()
    if len(stripped) >= 2 and stripped[0] == stripped[-1] and stripped[0] in "'\"":
        return stripped[1:-1].replace(stripped[0] * 2, stripped[0])
    return stripped


def normalize_sqlite_column(
    row: Mapping[str, Any],
    pk_count: int,
    has_autoincrement: bool,
) -> Column:
    """
    Turn one ``PRAGMA table_info`` row into a canonical ``Column``.

    *pk_count* is the number of primary-key columns in the table and
    *has_autoincrement* whether the stored DDL contains ``AUTOINCREMENT``.
    """
    declared: str = (row.get("type") or "").strip()
    is_primary: bool = int(row.get("pk") or 0) > 0
    rowid_alias: bool = is_primary and pk_count == 1 and declared.upper() == "INTEGER"
    auto_increment: bool = rowid_alias or (is_primary and has_autoincrement)

    return Column.model_validate({
        "name": row["name"],
        "type": declared,
        "type_extra": declared,
        "notnull": True if rowid_alias else row.get("notnull", 0),
        "pk": is_primary,
        "default": _unquote_default(row.get("dflt_value")),
        "extra": "auto_increment" if auto_increment else "",
    })


class SqliteSchemaReader(SchemaReader):
    """SQLite implementation of ``SchemaReader``."""

    driver = DatabaseDriver.SQLITE
    read_only_statement = "PRAGMA query_only = 1"

    def get_tables(
        self,
        connection: str,
        excluded_tables: Sequence[str] = (),
    ) -> List[Table]:
        self._connections.ensure_database_exists(connection)
        rows: List[Dict[str, Any]] = self._fetch(connection, _TABLES_SQL)
        tables: List[Table] = filter_tables(rows, excluded_tables, system_prefix="sqlite_")
        logger.info("[%s] %d table(s) found.", connection, len(tables))
        return tables

    def get_table_columns(self, connection: str, table_name: str) -> List[Column]:
        self._connections.ensure_database_exists(connection)
        rows: List[Dict[str, Any]] = self._fetch(
            connection, f"PRAGMA table_info({_quote(table_name)})"
        )
        if not rows:
            return []

        ddl_rows: List[Dict[str, Any]] = self._fetch(
            connection, _TABLE_SQL_SQL, {"name": table_name}
        )
        ddl: str = (ddl_rows[0].get("sql") or "") if ddl_rows else ""
        has_autoincrement: bool = bool(_AUTOINCREMENT_RE.search(ddl))
        pk_count: int = sum(1 for row in rows if int(row.get("pk") or 0) > 0)

        return [normalize_sqlite_column(row, pk_count, has_autoincrement) for row in rows]

    def get_foreign_keys(self, connection: str, table_name: str) -> List[ForeignKey]:
        self._connections.ensure_database_exists(connection)
        rows: List[Dict[str, Any]] = self._fetch(
            connection, f"PRAGMA foreign_key_list({_quote(table_name)})"
        )
        rows.sort(key=lambda r: (int(r.get("id") or 0), int(r.get("seq") or 0)))

        foreign_keys: List[ForeignKey] = []
        for row in rows:
            target: Optional[str] = row.get("to")
            if not target:
                target = self._referenced_primary_key(connection, row["table"])
            foreign_keys.append(ForeignKey.model_validate({
                "from": row["from"],
                "table": row["table"],
                "to": target,
                "on_delete": row.get("on_delete"),
                "on_update": row.get("on_update"),
            }))
        return foreign_keys

    def get_table_indexes(self, connection: str, table_name: str) -> List[Index]:
        self._connections.ensure_database_exists(connection)
        entries: List[Tuple[str, IndexType, str, int]] = []
        has_primary_index: bool = False

        for index_row in self._fetch(
            connection, f"PRAGMA index_list({_quote(table_name)})"
        ):
            name: str = index_row["name"]
            origin: str = (index_row.get("origin") or "c").lower()
            if origin == "pk":
                index_type: IndexType = IndexType.PRIMARY
                has_primary_index = True
            elif int(index_row.get("unique") or 0):
                index_type = IndexType.UNIQUE
            else:
                index_type = IndexType.INDEX

            for info in self._fetch(connection, f"PRAGMA index_info({_quote(name)})"):
                if info.get("name") is None:
                    # expression index member
                    continue
                entries.append((name, index_type, info["name"], int(info["seqno"])))

        if not has_primary_index:
            for row in self._fetch(connection, f"PRAGMA table_info({_quote(table_name)})"):
                ordinal: int = int(row.get("pk") or 0)
                if ordinal > 0:
                    entries.append(("PRIMARY", IndexType.PRIMARY, row["name"], ordinal))

        return build_indexes(entries)

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    def _referenced_primary_key(self, connection: str, table_name: str) -> str:
        """Column a foreign key without an explicit target points at."""
        rows: List[Dict[str, Any]] = self._fetch(
            connection, f"PRAGMA table_info({_quote(table_name)})"
        )
        keys: List[Dict[str, Any]] = sorted(
            (r for r in rows if int(r.get("pk") or 0) > 0),
            key=lambda r: int(r["pk"]),
        )
        return keys[0]["name"] if keys else "id"


__all__: List[str] = ["SqliteSchemaReader", "normalize_sqlite_column"]

logger.debug("modelgen.schema.sqlite loaded.")
