# File: modelgen/schema/connections.py
"""
ModelGen - Connection Manager
==============================
Owns one SQLAlchemy ``Engine`` per named connection.  Engines are created
lazily on first use from ``ConnectionSettings`` (``URL.create`` from the
individual parts, or ``make_url`` when an explicit URL is configured) and
disposed together at the end of a run.

An in-memory SQLite database uses a ``StaticPool`` so that every checkout
sees the same database.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Dict, Iterator, List, Mapping, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Connection, Engine, make_url
from sqlalchemy.exc import ArgumentError, DBAPIError
from sqlalchemy.pool import StaticPool

from modelgen.exceptions import ConfigurationError, SchemaError
from modelgen.models import ConnectionSettings, DatabaseDriver

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.schema.connections")

MEMORY_DATABASE: str = ":memory:"

_DRIVER_NAMES: Dict[DatabaseDriver, str] = {
    DatabaseDriver.SQLITE: "sqlite",
    DatabaseDriver.MYSQL: "mysql+pymysql",
    DatabaseDriver.PGSQL: "postgresql+psycopg2",
}

_DEFAULT_PORTS: Dict[DatabaseDriver, int] = {
    DatabaseDriver.MYSQL: 3306,
    DatabaseDriver.PGSQL: 5432,
}


def build_url(settings: ConnectionSettings) -> URL:
    """Build the SQLAlchemy URL for *settings*."""
    if settings.url:
        try:
            return make_url(settings.url)
        except ArgumentError as exc:
            raise ConfigurationError(f"Invalid database URL: {exc}") from exc

    if settings.driver is DatabaseDriver.SQLITE:
        return URL.create("sqlite", database=settings.database or MEMORY_DATABASE)

    return URL.create(
        drivername=_DRIVER_NAMES[settings.driver],
        username=settings.username,
        password=settings.password,
        host=settings.host or "localhost",
        port=settings.port or _DEFAULT_PORTS[settings.driver],
        database=settings.database or None,
    )


def sqlite_file_path(settings: ConnectionSettings) -> Optional[str]:
    """
    The on-disk path of a SQLite database, or ``None`` for ``:memory:``.
    """
    if settings.driver is not DatabaseDriver.SQLITE:
        return None
    database: Optional[str] = build_url(settings).database
    if not database or database == MEMORY_DATABASE or database.startswith("file:"):
        return None
    return database


class ConnectionManager:
    """
    Registry of named connections and their lazily created engines.

    Usage::

        manager = ConnectionManager(config.connections)
        with manager.connect("sqlite") as conn:
            rows = conn.execute(text("SELECT 1")).all()
        manager.dispose()
    """

    def __init__(self, connections: Mapping[str, ConnectionSettings]) -> None:
        self._settings: Dict[str, ConnectionSettings] = dict(connections)
        self._engines: Dict[str, Engine] = {}
        logger.debug(
            "ConnectionManager initialised with %d connection(s): %s.",
            len(self._settings),
            ", ".join(sorted(self._settings)) or "none",
        )

    # -----------------------------------------------------------------
    # Lookup
    # -----------------------------------------------------------------

    @property
    def names(self) -> List[str]:
        return sorted(self._settings)

    def settings(self, name: str) -> ConnectionSettings:
        try:
            return self._settings[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown connection {name!r} "
                f"(configured: {', '.join(self.names) or 'none'})."
            ) from None

    def driver(self, name: str) -> DatabaseDriver:
        return self.settings(name).driver

    # -----------------------------------------------------------------
    # Engines
    # -----------------------------------------------------------------

    def engine(self, name: str) -> Engine:
        """Return the engine for *name*, creating it on first use."""
        if name in self._engines:
            return self._engines[name]

        settings: ConnectionSettings = self.settings(name)
        url: URL = build_url(settings)

        try:
            if settings.driver is DatabaseDriver.SQLITE and sqlite_file_path(settings) is None:
                engine: Engine = create_engine(
                    url,
                    poolclass=StaticPool,
                    connect_args={"check_same_thread": False},
                )
            else:
                engine = create_engine(url, pool_pre_ping=True)
        except ImportError as exc:
            raise ConfigurationError(
                f"Database driver for connection {name!r} is not installed "
                f"({exc.name or exc}). Install the matching extra, e.g. "
                f"'pip install modelgen[{settings.driver.value}]'."
            ) from exc
        except ArgumentError as exc:
            raise ConfigurationError(
                f"Cannot create engine for connection {name!r}: {exc}"
            ) from exc

        self._engines[name] = engine
        logger.info(
            "Created %s engine for connection '%s'.",
            settings.driver.value,
            name,
        )
        return engine

    @contextmanager
    def connect(self, name: str) -> Iterator[Connection]:
        """
        Yield a connection for *name*.

        Driver errors raised while the connection is open surface as
        ``SchemaError`` naming the connection.
        """
        engine: Engine = self.engine(name)
        try:
            with engine.connect() as conn:
                yield conn
        except DBAPIError as exc:
            raise SchemaError(
                f"Schema query failed on connection {name!r}: {exc.orig}"
            ) from exc

    def ensure_database_exists(self, name: str) -> None:
        """
        Raise ``SchemaError`` when a SQLite connection points at a file that
        does not exist.  No engine is created by this check.
        """
        path: Optional[str] = sqlite_file_path(self.settings(name))
        if path is not None and not os.path.exists(path):
            raise SchemaError(
                f"SQLite database file does not exist: {path}",
                path=path,
            )

    def dispose(self) -> None:
        """Dispose every engine created so far."""
        for name, engine in self._engines.items():
            engine.dispose()
            logger.debug("Disposed engine for connection '%s'.", name)
        self._engines.clear()


__all__: List[str] = [
    "ConnectionManager",
    "MEMORY_DATABASE",
    "build_url",
    "sqlite_file_path",
]

logger.debug("modelgen.schema.connections loaded.")
