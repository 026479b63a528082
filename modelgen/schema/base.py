# File: modelgen/schema/base.py
"""
ModelGen - Schema Reader Contract
==================================
Every backend implements the same four read-only operations and returns
canonical records only:

    get_tables(connection, excluded_tables)     -> List[Table]
    get_table_columns(connection, table_name)   -> List[Column]
    get_foreign_keys(connection, table_name)    -> List[ForeignKey]
    get_table_indexes(connection, table_name)   -> List[Index]

The connection is switched to read-only mode before any catalog query.
"""

from __future__ import annotations

import abc
import logging
from typing import Any, ClassVar, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import text

from modelgen.models import Column, DatabaseDriver, ForeignKey, Index, IndexType, Table
from modelgen.schema.connections import ConnectionManager

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.schema")

_INDEX_TYPE_ORDER: Dict[IndexType, int] = {
    IndexType.PRIMARY: 0,
    IndexType.UNIQUE: 1,
    IndexType.INDEX: 1,
    IndexType.FULLTEXT: 1,
}


def build_indexes(
    entries: Iterable[Tuple[str, IndexType, str, int]],
) -> List[Index]:
    """
    Group ``(index_name, type, column, position)`` rows into ``Index``
    records with columns in position order.  PRIMARY comes first, the rest
    follow in name order.
    """
    grouped: Dict[str, Tuple[IndexType, List[Tuple[int, str]]]] = {}
    for name, index_type, column, position in entries:
        if name not in grouped:
            grouped[name] = (index_type, [])
        grouped[name][1].append((int(position), column))

    indexes: List[Index] = [
        Index(
            name=name,
            type=index_type,
            columns=tuple(col for _, col in sorted(members)),
        )
        for name, (index_type, members) in grouped.items()
    ]
    indexes.sort(key=lambda idx: (_INDEX_TYPE_ORDER[idx.type], idx.name))
    return indexes


def filter_tables(
    rows: Iterable[Mapping[str, Any]],
    excluded_tables: Iterable[str],
    system_prefix: Optional[str] = None,
) -> List[Table]:
    """Drop system and excluded tables and return the rest sorted by name."""
    excluded = frozenset(excluded_tables)
    tables: List[Table] = []
    for row in rows:
        name: str = row["name"]
        if name in excluded:
            continue
        if system_prefix and name.lower().startswith(system_prefix):
            continue
        tables.append(Table(name=name, comment=row.get("comment") or None))
    tables.sort(key=lambda t: t.name)
    return tables


class SchemaReader(abc.ABC):
    """Abstract base for the backend schema readers."""

    driver: ClassVar[DatabaseDriver]
    read_only_statement: ClassVar[str]

    def __init__(self, connections: ConnectionManager) -> None:
        self._connections: ConnectionManager = connections

    # -----------------------------------------------------------------
    # Contract
    # -----------------------------------------------------------------

    @abc.abstractmethod
    def get_tables(
        self,
        connection: str,
        excluded_tables: Sequence[str] = (),
    ) -> List[Table]:
        """Base tables in the connection's default schema."""

    @abc.abstractmethod
    def get_table_columns(self, connection: str, table_name: str) -> List[Column]:
        """Columns of *table_name* in declaration order."""

    @abc.abstractmethod
    def get_foreign_keys(self, connection: str, table_name: str) -> List[ForeignKey]:
        """Foreign keys declared on *table_name*."""

    @abc.abstractmethod
    def get_table_indexes(self, connection: str, table_name: str) -> List[Index]:
        """Indexes of *table_name*, PRIMARY first."""

    # -----------------------------------------------------------------
    # Query helpers
    # -----------------------------------------------------------------

    def _fetch(
        self,
        connection: str,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Run one catalog query in read-only mode and return plain dicts.

        The read-only statement is the first statement of the transaction
        the query runs in.
        """
        with self._connections.connect(connection) as conn, conn.begin():
            conn.execute(text(self.read_only_statement))
            result = conn.execute(text(sql), dict(params or {}))
            rows: List[Dict[str, Any]] = [dict(row) for row in result.mappings()]
        logger.debug(
            "[%s] %d row(s) from: %s",
            connection,
            len(rows),
            " ".join(sql.split())[:80],
        )
        return rows


__all__: List[str] = ["SchemaReader", "build_indexes", "filter_tables"]
