# File: modelgen/schema/__init__.py
"""
ModelGen - Schema Readers
==========================
Driver-agnostic schema introspection.  The reader class is chosen once per
connection from its ``DatabaseDriver``:

    sqlite  -> SqliteSchemaReader
    mysql   -> MySqlSchemaReader
    pgsql   -> PostgreSqlSchemaReader
"""

from __future__ import annotations

import logging
from typing import Dict, List, Type, Union

from modelgen.exceptions import ConfigurationError
from modelgen.models import DatabaseDriver
from modelgen.schema.base import SchemaReader, build_indexes, filter_tables
from modelgen.schema.connections import ConnectionManager
from modelgen.schema.mysql import MySqlSchemaReader
from modelgen.schema.postgres import PostgreSqlSchemaReader
from modelgen.schema.sqlite import SqliteSchemaReader

logger: logging.Logger = logging.getLogger("modelgen.schema")

READERS: Dict[DatabaseDriver, Type[SchemaReader]] = {
    DatabaseDriver.SQLITE: SqliteSchemaReader,
    DatabaseDriver.MYSQL: MySqlSchemaReader,
    DatabaseDriver.PGSQL: PostgreSqlSchemaReader,
}


def create_schema_reader(
    driver: Union[str, DatabaseDriver],
    connections: ConnectionManager,
) -> SchemaReader:
    """
    Instantiate the reader for *driver*.

    Raises:
        ConfigurationError: If the driver is not one of sqlite/mysql/pgsql.
    """
    resolved: DatabaseDriver = DatabaseDriver.parse(driver)
    try:
        reader_cls: Type[SchemaReader] = READERS[resolved]
    except KeyError:
        raise ConfigurationError(f"No schema reader for driver {resolved.value!r}.") from None
    logger.debug("Selected %s for driver '%s'.", reader_cls.__name__, resolved.value)
    return reader_cls(connections)


def reader_for_connection(connections: ConnectionManager, name: str) -> SchemaReader:
    """Reader matching the configured driver of connection *name*."""
    return create_schema_reader(connections.driver(name), connections)


__all__: List[str] = [
    "ConnectionManager",
    "DatabaseDriver",
    "SchemaReader",
    "SqliteSchemaReader",
    "MySqlSchemaReader",
    "PostgreSqlSchemaReader",
    "READERS",
    "build_indexes",
    "create_schema_reader",
    "filter_tables",
    "reader_for_connection",
]
