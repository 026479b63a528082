# File: modelgen/schema/postgres.py
"""
ModelGen - PostgreSQL Schema Reader
====================================
Reads ``information_schema`` plus ``pg_catalog`` (``pg_index`` for index
membership, ``pg_enum`` for user-defined enum labels) within the
connection's configured schema (``public`` by default).

Auto-increment is a ``nextval(...)`` default or an identity column.  There
is no MySQL-style FULLTEXT index, so ``fulltext`` is always false.
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
logger: logging.Logger = logging.getLogger("modelgen.schema.postgres")

# information_schema data_type -> canonical base type
PG_TYPE_ALIASES: Dict[str, str] = {
    "character varying": "varchar",
    "character": "char",
    "timestamp without time zone": "timestamp",
    "timestamp with time zone": "timestamptz",
    "time without time zone": "time",
    "time with time zone": "timetz",
    "double precision": "double",
    "bit varying": "varbit",
}

_CAST_LITERAL_RE: re.Pattern[str] = re.compile(
    r"^\(?('(?:[^']|'')*'|-?\d+(?:\.\d+)?)\)?::[\w\s\".\[\]]+$"
)
_NEXTVAL_RE: re.Pattern[str] = re.compile(r"^nextval\(", re.IGNORECASE)

_TABLES_SQL: str = """
    SELECT
        t.table_name AS name,
        obj_description(
            format('%I.%I', t.table_schema, t.table_name)::regclass, 'pg_class'
        ) AS comment
    FROM information_schema.tables t
    WHERE t.table_schema = :schema
    AND t.table_type = 'BASE TABLE'
    ORDER BY t.table_name
"""

_COLUMNS_SQL: str = """
    SELECT
        c.column_name AS name,
        c.data_type AS data_type,
        c.udt_name AS udt_name,
        c.is_nullable AS is_nullable,
        c.column_default AS column_default,
        c.character_maximum_length AS length,
        c.numeric_precision AS numeric_precision,
        c.numeric_scale AS numeric_scale,
        c.is_identity AS is_identity,
        EXISTS (
            SELECT 1
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage kcu
                ON tc.constraint_name = kcu.constraint_name
                AND tc.table_schema = kcu.table_schema
                AND tc.table_name = kcu.table_name
            WHERE tc.constraint_type = 'PRIMARY KEY'
            AND tc.table_schema = c.table_schema
            AND tc.table_name = c.table_name
            AND kcu.column_name = c.column_name
        ) AS is_primary,
        col_description(
            format('%I.%I', c.table_schema, c.table_name)::regclass,
            c.ordinal_position
        ) AS comment
    FROM information_schema.columns c
    WHERE c.table_schema = :schema
    AND c.table_name = :table
    ORDER BY c.ordinal_position
"""

_ENUMS_SQL: str = """
    SELECT t.typname AS type_name, e.enumlabel AS label
    FROM pg_type t
    JOIN pg_enum e ON e.enumtypid = t.oid
    JOIN pg_namespace n ON n.oid = t.typnamespace
    WHERE n.nspname = :schema
    ORDER BY t.typname, e.enumsortorder
"""

_FOREIGN_KEYS_SQL: str = """
    SELECT
        kcu.column_name AS from_column,
        ccu.table_name AS referenced_table,
        ccu.column_name AS referenced_column,
        rc.delete_rule AS on_delete,
        rc.update_rule AS on_update
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage kcu
        ON tc.constraint_name = kcu.constraint_name
        AND tc.table_schema = kcu.table_schema
    JOIN information_schema.constraint_column_usage ccu
        ON ccu.constraint_name = tc.constraint_name
        AND ccu.table_schema = tc.table_schema
    JOIN information_schema.referential_constraints rc
        ON tc.constraint_name = rc.constraint_name
        AND tc.table_schema = rc.constraint_schema
    WHERE tc.constraint_type = 'FOREIGN KEY'
    AND tc.table_schema = :schema
    AND tc.table_name = :table
    ORDER BY tc.constraint_name, kcu.ordinal_position
"""

_INDEXES_SQL: str = """
    SELECT
        i.relname AS name,
        ix.indisprimary AS is_primary,
        ix.indisunique AS is_unique,
        a.attname AS column_name,
        array_position(ix.indkey::int2[], a.attnum) AS position
    FROM pg_class t
    JOIN pg_index ix ON t.oid = ix.indrelid
    JOIN pg_class i ON i.oid = ix.indexrelid
    JOIN pg_attribute a ON t.oid = a.attrelid
    JOIN pg_namespace n ON t.relnamespace = n.oid
    WHERE n.nspname = :schema
    AND t.relname = :table
    AND a.attnum = ANY(ix.indkey)
    AND t.relkind = 'r'
    ORDER BY i.relname, position
"""


def normalize_pg_type(data_type: str) -> str:
    lowered: str = (data_type or "").strip().lower()
    return PG_TYPE_ALIASES.get(lowered, lowered)


def strip_pg_default(value: Any) -> Any:
    """
    Remove ``::type`` casts from literal defaults and unquote strings:
    ``'draft'::character varying`` -> ``draft``, ``0::integer`` -> ``0``.
    Expressions such as ``nextval(...)`` or ``now()`` are returned as-is.
    """
    if not isinstance(value, str):
        return value
    match: Optional[re.Match[str]] = _CAST_LITERAL_RE.match(value.strip())
    if match is None:
        return value
    literal: str = match.group(1)
    if literal.startswith("'"):
        return literal[1:-1].replace("''", "'")
    return literal


def _type_extra(base: str, row: Mapping[str, Any], enum_values: Optional[List[str]]) -> str:
    if enum_values is not None:
        quoted: str = ",".join("'" + v.replace("'", "''") + "'" for v in enum_values)
        return f"enum({quoted})"
    length: Any = row.get("length")
    if length is not None and base in ("varchar", "char"):
        return f"{base}({length})"
    precision: Any = row.get("numeric_precision")
    if base == "numeric" and precision is not None:
        scale: Any = row.get("numeric_scale") or 0
        return f"numeric({precision},{scale})"
    return str(row.get("udt_name") or base)


def normalize_pgsql_column(
    row: Mapping[str, Any],
    enum_types: Optional[Mapping[str, List[str]]] = None,
) -> Column:
    """Turn one ``information_schema.columns`` row into a canonical ``Column``."""
    enum_types = enum_types or {}
    data_type: str = normalize_pg_type(str(row.get("data_type") or ""))
    udt_name: str = str(row.get("udt_name") or "")

    enum_values: Optional[List[str]] = None
    if data_type == "user-defined" and udt_name in enum_types:
        enum_values = list(enum_types[udt_name])
        data_type = "enum"
    elif data_type == "user-defined":
        data_type = udt_name.lower()

    raw_default: Any = row.get("column_default")
    auto_increment: bool = (
        isinstance(raw_default, str) and bool(_NEXTVAL_RE.match(raw_default.strip()))
    ) or str(row.get("is_identity") or "").upper() == "YES"

    is_numeric: bool = data_type in ("numeric", "decimal", "real", "double")

    return Column.model_validate({
        "name": row["name"],
        "type": data_type,
        "type_extra": _type_extra(data_type, row, enum_values),
        "is_nullable": row.get("is_nullable", "YES"),
        "default": strip_pg_default(raw_default),
        "length": row.get("length"),
        "precision": row.get("numeric_precision") if is_numeric else None,
        "scale": row.get("numeric_scale") if is_numeric else None,
        "primary": bool(row.get("is_primary")),
        "extra": "auto_increment" if auto_increment else "",
        "fulltext": False,
        "comment": row.get("comment") or None,
    })


class PostgreSqlSchemaReader(SchemaReader):
    """PostgreSQL implementation of ``SchemaReader``."""

    driver = DatabaseDriver.PGSQL
    read_only_statement = "SET TRANSACTION READ ONLY"

    def _schema(self, connection: str) -> str:
        return self._connections.settings(connection).schema_name or "public"

    def get_tables(
        self,
        connection: str,
        excluded_tables: Sequence[str] = (),
    ) -> List[Table]:
        rows: List[Dict[str, Any]] = self._fetch(
            connection, _TABLES_SQL, {"schema": self._schema(connection)}
        )
        tables: List[Table] = filter_tables(rows, excluded_tables)
        logger.info("[%s] %d table(s) found.", connection, len(tables))
        return tables

    def get_table_columns(self, connection: str, table_name: str) -> List[Column]:
        schema: str = self._schema(connection)
        rows: List[Dict[str, Any]] = self._fetch(
            connection, _COLUMNS_SQL, {"schema": schema, "table": table_name}
        )
        if not rows:
            return []

        enum_types: Dict[str, List[str]] = {}
        if any(str(r.get("data_type") or "").upper() == "USER-DEFINED" for r in rows):
            for enum_row in self._fetch(connection, _ENUMS_SQL, {"schema": schema}):
                enum_types.setdefault(enum_row["type_name"], []).append(enum_row["label"])

        return [normalize_pgsql_column(row, enum_types) for row in rows]

    def get_foreign_keys(self, connection: str, table_name: str) -> List[ForeignKey]:
        rows: List[Dict[str, Any]] = self._fetch(
            connection,
            _FOREIGN_KEYS_SQL,
            {"schema": self._schema(connection), "table": table_name},
        )
        return [
            ForeignKey.model_validate({
                "from": row["from_column"],
                "table": row["referenced_table"],
                "to": row.get("referenced_column") or "id",
                "on_delete": row.get("on_delete"),
                "on_update": row.get("on_update"),
            })
            for row in rows
        ]

    def get_table_indexes(self, connection: str, table_name: str) -> List[Index]:
        rows: List[Dict[str, Any]] = self._fetch(
            connection,
            _INDEXES_SQL,
            {"schema": self._schema(connection), "table": table_name},
        )
        return group_pgsql_indexes(rows)


def pg_index_type(is_primary: Any, is_unique: Any) -> IndexType:
    """Primary is checked before unique: a primary index is also unique."""
    if is_primary:
        return IndexType.PRIMARY
    if is_unique:
        return IndexType.UNIQUE
    return IndexType.INDEX


def group_pgsql_indexes(rows: Sequence[Mapping[str, Any]]) -> List[Index]:
    entries: List[Tuple[str, IndexType, str, int]] = [
        (
            row["name"],
            pg_index_type(row.get("is_primary"), row.get("is_unique")),
            row["column_name"],
            int(row.get("position") or 0),
        )
        for row in rows
    ]
    return build_indexes(entries)


__all__: List[str] = [
    "PostgreSqlSchemaReader",
    "PG_TYPE_ALIASES",
    "normalize_pg_type",
    "normalize_pgsql_column",
    "strip_pg_default",
    "pg_index_type",
    "group_pgsql_indexes",
]

logger.debug("modelgen.schema.postgres loaded.")
