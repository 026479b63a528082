# File: modelgen/models.py
"""
ModelGen - Core Data Models
============================
Pydantic V2 models for the canonical schema representation and for the
generator configuration.  Every schema reader normalises its driver output
into these records, and every inference rule and artifact generator reads
only these records.

    Column / ForeignKey / Index / Table    canonical schema records
    RelationshipInfo                       resource relationship descriptor
    ConnectionSettings                     one named database connection
    GeneratorConfig                        immutable configuration snapshot

All records are frozen after construction.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from modelgen.exceptions import ConfigurationError

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.models")

# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_VALUE_CONFIG: ConfigDict = ConfigDict(
    frozen=True,
    populate_by_name=True,
    extra="forbid",
    str_strip_whitespace=True,
)

# ``VARCHAR(255)``, ``decimal(10, 2)``, ``int(10) unsigned``, ``enum('a','b')``
_TYPE_DECLARATION_RE: re.Pattern[str] = re.compile(
    r"^(?P<base>[^(]+?)\s*(?:\((?P<args>.*)\)(?P<tail>.*))?$"
)

_LENGTH_TYPES: Tuple[str, ...] = (
    "varchar", "char", "character", "character varying", "nvarchar",
    "nchar", "varbinary", "binary", "string",
)

_PRECISION_TYPES: Tuple[str, ...] = (
    "decimal", "numeric", "float", "double", "real",
)

_TRUTHY_STRINGS: Tuple[str, ...] = ("1", "yes", "y", "true", "t", "on")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class DatabaseDriver(str, Enum):
    """The closed set of supported database backends."""

    SQLITE = "sqlite"
    MYSQL = "mysql"
    PGSQL = "pgsql"

    @classmethod
    def parse(cls, value: Union[str, "DatabaseDriver"]) -> "DatabaseDriver":
        """
        Resolve a driver name (``sqlite``, ``mysql``, ``pgsql``) or one of
        its common aliases.  Anything else raises ``ConfigurationError``.
        """
        if isinstance(value, cls):
            return value
        key: str = str(value or "").strip().lower()
        aliases: Dict[str, str] = {
            "sqlite3": "sqlite",
            "mariadb": "mysql",
            "postgres": "pgsql",
            "postgresql": "pgsql",
        }
        key = aliases.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ConfigurationError(
                f"Unsupported database driver: {value!r}. "
                f"Expected one of: {', '.join(d.value for d in cls)}."
            ) from None


class IndexType(str, Enum):
    """Normalised index kinds shared by every backend."""

    PRIMARY = "primary"
    UNIQUE = "unique"
    INDEX = "index"
    FULLTEXT = "fulltext"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _truthy(value: Any) -> bool:
    """Interpret driver flags (0/1, bools, ``"YES"``/``"NO"``, ``"t"``)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if value is None:
        return False
    text: str = str(value).strip().lower()
    if text.isdigit():
        return int(text) != 0
    return text in _TRUTHY_STRINGS


def _int_or_none(value: str) -> Optional[int]:
    value = value.strip()
    return int(value) if value.isdigit() else None


# ---------------------------------------------------------------------------
# Canonical schema records
# ---------------------------------------------------------------------------


class Column(BaseModel):
    """
    One column in canonical form, identical for every backend.

    Raw driver keys are accepted at construction time and folded into the
    canonical fields by a single before-validator:

        notnull (0/1)          -> nullable = not notnull
        is_nullable (YES/NO)   -> nullable
        pk (0/1 or ordinal)    -> primary

    A declared type such as ``VARCHAR(255)`` is split into ``type="varchar"``
    and ``type_extra="VARCHAR(255)"`` with ``length`` filled when absent.
    """

    model_config = _VALUE_CONFIG

    name: str = Field(..., min_length=1, description="Column name.")
    type: str = Field(default="", description="Normalised lowercase base type.")
    type_extra: str = Field(default="", description="Raw driver type string.")
    nullable: bool = Field(default=True, description="NULL values permitted.")
    default: Any = Field(default=None, description="Raw default value.")
    length: Optional[int] = Field(default=None, ge=0)
    precision: Optional[int] = Field(default=None, ge=0)
    scale: Optional[int] = Field(default=None, ge=0)
    primary: bool = Field(default=False, description="Part of the primary key.")
    extra: str = Field(default="", description="'auto_increment' when auto-incrementing.")
    fulltext: bool = Field(default=False, description="Member of a FULLTEXT index.")
    comment: Optional[str] = Field(default=None)

    @model_validator(mode="before")
    @classmethod
    def _reconcile_driver_keys(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data

        values: Dict[str, Any] = dict(data)

        if "notnull" in values:
            not_null: bool = _truthy(values.pop("notnull"))
            values.setdefault("nullable", not not_null)
        if "is_nullable" in values:
            is_nullable: bool = _truthy(values.pop("is_nullable"))
            values.setdefault("nullable", is_nullable)
        if "pk" in values:
            values.setdefault("primary", _truthy(values.pop("pk")))

        raw_type: str = str(values.get("type") or "").strip()
        match: Optional[re.Match[str]] = _TYPE_DECLARATION_RE.match(raw_type)
        if not raw_type or match is None:
            values["type"] = raw_type.lower()
            return values

        base: str = match.group("base").strip().lower()
        if base.endswith(" unsigned"):
            base = base[: -len(" unsigned")].strip()
        args: Optional[str] = match.group("args")
        values["type"] = base

        if args is None:
            return values

        if not values.get("type_extra"):
            values["type_extra"] = raw_type

        parts: List[str] = args.split(",")
        if base in _LENGTH_TYPES and len(parts) == 1:
            if values.get("length") is None:
                values["length"] = _int_or_none(parts[0])
        elif base in _PRECISION_TYPES:
            if values.get("precision") is None:
                values["precision"] = _int_or_none(parts[0])
            if len(parts) > 1 and values.get("scale") is None:
                values["scale"] = _int_or_none(parts[1])

        return values

    @property
    def is_auto_increment(self) -> bool:
        return "auto_increment" in self.extra.lower()


class ForeignKey(BaseModel):
    """A single-column foreign key reference."""

    model_config = _VALUE_CONFIG

    from_column: str = Field(..., alias="from", min_length=1)
    table: str = Field(..., min_length=1, description="Referenced table.")
    to: str = Field(default="id", description="Referenced column.")
    on_delete: Optional[str] = Field(default=None)
    on_update: Optional[str] = Field(default=None)


class Index(BaseModel):
    """An index with its ordered column list."""

    model_config = _VALUE_CONFIG

    name: str = Field(..., min_length=1)
    type: IndexType = Field(default=IndexType.INDEX)
    columns: Tuple[str, ...] = Field(default_factory=tuple)


class Table(BaseModel):
    """A base table in the inspected schema."""

    model_config = _VALUE_CONFIG

    name: str = Field(..., min_length=1)
    comment: Optional[str] = Field(default=None)


class RelationshipInfo(BaseModel):
    """
    Relationship descriptor consumed by the resource generator.

    ``type`` is one of ``belongsto``, ``hasmany``, ``belongstomany`` or
    ``hasone``; ``related_model`` is the fully qualified class name.
    """

    model_config = _VALUE_CONFIG

    name: str = Field(..., min_length=1)
    type: str = Field(default="belongsto")
    related_model: str = Field(..., min_length=1)

    @field_validator("type", mode="before")
    @classmethod
    def _normalise_type(cls, value: Any) -> str:
        return str(value or "").replace("_", "").replace("-", "").lower()

    @property
    def is_collection(self) -> bool:
        return self.type in ("hasmany", "belongstomany")


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------


class ConnectionSettings(BaseModel):
    """
    Settings for one named connection.

    ``url`` (a full SQLAlchemy URL) takes precedence over the individual
    parts.  ``schema_name`` is only consulted by PostgreSQL.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    driver: DatabaseDriver = Field(..., description="Backend driver.")
    database: str = Field(default="", description="Database name or SQLite file path.")
    host: Optional[str] = Field(default=None)
    port: Optional[int] = Field(default=None, ge=1, le=65535)
    username: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None)
    schema_name: str = Field(default="public")
    url: Optional[str] = Field(default=None)

    @model_validator(mode="before")
    @classmethod
    def _accept_aliases(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        values: Dict[str, Any] = dict(data)
        if "user" in values:
            values.setdefault("username", values.pop("user"))
        for key in ("schema", "search_path"):
            if key in values:
                values.setdefault("schema_name", values.pop(key))
        return values

    @field_validator("driver", mode="before")
    @classmethod
    def _parse_driver(cls, value: Any) -> DatabaseDriver:
        return DatabaseDriver.parse(value)


# ---------------------------------------------------------------------------
# Generator configuration
# ---------------------------------------------------------------------------

DEFAULT_EXCLUDED_TABLES: Tuple[str, ...] = (
    "migrations",
    "failed_jobs",
    "password_reset_tokens",
    "personal_access_tokens",
    "sessions",
    "cache",
    "jobs",
    "cache_locks",
    "job_batches",
)

DEFAULT_MODEL_EVENTS: Tuple[str, ...] = (
    "creating", "created", "updating", "updated",
    "deleting", "deleted", "saving", "saved",
)

DEFAULT_MODEL_PROPERTIES: Dict[str, Any] = {
    "auto_detect_primary_key": True,
    "auto_hidden_fields": True,
    "hidden_field_patterns": ["password", "token", "secret", "key", "hash"],
    "use_guarded_instead_of_fillable": False,
    "guarded_fields": ["id", "created_at", "updated_at"],
    "per_page": None,
    "date_format": "Y-m-d H:i:s",
    "auto_default_attributes": True,
    "auto_eager_load": False,
    "eager_load_relationships": [],
    "auto_touches": False,
    "auto_detect_soft_deletes": True,
    "use_visible_instead_of_hidden": False,
    "auto_generate_scopes": False,
    "auto_generate_timestamp_scopes": True,
    "boolean_scope_patterns": {
        "is_active": ["active", "inactive"],
        "is_published": ["published", "unpublished"],
        "is_featured": ["featured", "notFeatured"],
        "is_enabled": ["enabled", "disabled"],
        "is_verified": ["verified", "unverified"],
        "is_approved": ["approved", "unapproved"],
        "is_visible": ["visible", "hidden"],
        "is_archived": ["archived", "notArchived"],
    },
    "boolean_column_patterns": [
        "is_", "has_", "can_", "should_", "will_", "active", "enabled",
        "published", "featured", "verified", "approved", "visible", "archived",
    ],
    "status_column_patterns": ["status", "state", "type", "category", "kind", "mode"],
    "searchable_column_patterns": [
        "name", "title", "description", "content", "body", "summary",
        "subject", "message", "comment", "note", "email", "username", "slug",
    ],
    "generate_event_methods": False,
    "generate_boot_method": False,
    "model_events": list(DEFAULT_MODEL_EVENTS),
    "exclude_model_events": [],
    "include_retrieved_event": False,
    "include_booted_event": False,
    "event_method_stubs": True,
}

DEFAULT_OBSERVER_PROPERTIES: Dict[str, Any] = {
    "generate_observers": False,
    "observer_events": list(DEFAULT_MODEL_EVENTS),
    "exclude_events": [],
    "include_retrieved": False,
    "include_booted": False,
    "observer_method_stubs": True,
    "observer_connection_based": True,
}


def _matches_shape(value: Any, reference: Any) -> bool:
    """Check that an override has the same shape as its hard-coded default."""
    if isinstance(reference, bool):
        return isinstance(value, bool)
    if reference is None:
        return value is None or (isinstance(value, int) and not isinstance(value, bool))
    if isinstance(reference, str):
        return isinstance(value, str)
    if isinstance(reference, list):
        return isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value)
    if isinstance(reference, dict):
        if not isinstance(value, Mapping):
            return False
        return all(
            isinstance(k, str)
            and isinstance(v, (list, tuple))
            and len(v) == 2
            and all(isinstance(item, str) for item in v)
            for k, v in value.items()
        )
    return isinstance(value, type(reference))


def _merge_properties(
    value: Any,
    defaults: Dict[str, Any],
    label: str,
) -> Dict[str, Any]:
    merged: Dict[str, Any] = copy.deepcopy(defaults)
    if value is None:
        return merged
    if not isinstance(value, Mapping):
        logger.warning(
            "Ignoring %s override of type %s; using defaults.",
            label,
            type(value).__name__,
        )
        return merged
    merged.update(value)
    return merged


def _read_property(
    values: Mapping[str, Any],
    defaults: Mapping[str, Any],
    key: str,
    default: Any,
) -> Any:
    fallback: Any = copy.deepcopy(defaults[key]) if key in defaults else default
    if key not in values:
        return fallback
    value: Any = values[key]
    if key in defaults and not _matches_shape(value, defaults[key]):
        logger.warning(
            "Property %r has an unexpected value %r; falling back to default.",
            key,
            value,
        )
        return fallback
    return value


class GeneratorConfig(BaseModel):
    """
    Immutable configuration snapshot combining defaults with overrides.

    ``model_properties`` and ``observer_properties`` overrides are merged key
    by key over the defaults, so a partial override never loses the rest.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        protected_namespaces=(),
    )

    # -- Connections --------------------------------------------------------
    default_connection: str = Field(default="sqlite", min_length=1)
    connections: Dict[str, ConnectionSettings] = Field(default_factory=dict)
    excluded_tables: Tuple[str, ...] = Field(default=DEFAULT_EXCLUDED_TABLES)

    # -- Namespaces ---------------------------------------------------------
    model_namespace: str = Field(default="App\\Models")
    factory_namespace: str = Field(default="Database\\Factories")
    observer_namespace: str = Field(default="App\\Observers")
    resource_namespace: str = Field(default="App\\Http\\Resources")
    policy_namespace: str = Field(default="App\\Policies")

    # -- Output paths (relative to the output directory) --------------------
    model_path: str = Field(default="app/Models")
    factory_path: str = Field(default="database/factories")
    observer_path: str = Field(default="app/Observers")
    resource_path: str = Field(default="app/Http/Resources")
    policy_path: str = Field(default="app/Policies")

    # -- Templates ----------------------------------------------------------
    stub_path: Optional[str] = Field(
        default=None,
        description="Directory of .stub overrides; built-in stubs when unset.",
    )

    # -- Behaviour ----------------------------------------------------------
    model_properties: Dict[str, Any] = Field(
        default_factory=lambda: copy.deepcopy(DEFAULT_MODEL_PROPERTIES)
    )
    observer_properties: Dict[str, Any] = Field(
        default_factory=lambda: copy.deepcopy(DEFAULT_OBSERVER_PROPERTIES)
    )

    @field_validator("model_properties", mode="before")
    @classmethod
    def _merge_model_properties(cls, value: Any) -> Dict[str, Any]:
        return _merge_properties(value, DEFAULT_MODEL_PROPERTIES, "model_properties")

    @field_validator("observer_properties", mode="before")
    @classmethod
    def _merge_observer_properties(cls, value: Any) -> Dict[str, Any]:
        return _merge_properties(
            value, DEFAULT_OBSERVER_PROPERTIES, "observer_properties"
        )

    @field_validator("excluded_tables", mode="before")
    @classmethod
    def _coerce_excluded(cls, value: Any) -> Tuple[str, ...]:
        if value is None:
            return DEFAULT_EXCLUDED_TABLES
        if isinstance(value, str):
            return (value,)
        return tuple(str(v) for v in value)

    @field_validator(
        "model_namespace",
        "factory_namespace",
        "observer_namespace",
        "resource_namespace",
        "policy_namespace",
        mode="before",
    )
    @classmethod
    def _strip_namespace(cls, value: Any) -> str:
        return str(value).replace("/", "\\").strip("\\")

    # -- Accessors ----------------------------------------------------------

    def get_model_property(self, key: str, default: Any = None) -> Any:
        """Read a model property; wrong-shaped values fall back to defaults."""
        return _read_property(self.model_properties, DEFAULT_MODEL_PROPERTIES, key, default)

    def get_observer_property(self, key: str, default: Any = None) -> Any:
        """Read an observer property; wrong-shaped values fall back to defaults."""
        return _read_property(
            self.observer_properties, DEFAULT_OBSERVER_PROPERTIES, key, default
        )

    def resolve_connection(self, name: Optional[str] = None) -> ConnectionSettings:
        """Return the settings for *name* (default connection when omitted)."""
        key: str = name or self.default_connection
        try:
            return self.connections[key]
        except KeyError:
            known: str = ", ".join(sorted(self.connections)) or "none"
            raise ConfigurationError(
                f"Unknown connection {key!r} (configured: {known})."
            ) from None

    def with_overrides(self, **overrides: Any) -> "GeneratorConfig":
        """Return a new snapshot with *overrides* applied (validated)."""
        data: Dict[str, Any] = self.model_dump()
        data.update(overrides)
        return GeneratorConfig.from_mapping(data)

    # -- Loading ------------------------------------------------------------

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "GeneratorConfig":
        """
        Build a config from a plain mapping (parsed JSON/YAML).

        A top-level ``modelgen`` key is unwrapped when present.
        """
        raw: Dict[str, Any] = dict(data or {})
        if isinstance(raw.get("modelgen"), Mapping):
            raw = dict(raw["modelgen"])
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "GeneratorConfig":
        """Load a JSON or YAML config file, dispatching on its extension."""
        return cls.from_mapping(load_config_file(Path(path)))


# ---------------------------------------------------------------------------
# Config file loading
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a JSON object at top level, got {type(data).__name__}."
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}."
        )
    return data


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    Load a configuration file (JSON or YAML).

    Raises:
        ConfigurationError: If the file is missing or cannot be parsed.
    """
    if not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    logger.info("Unknown extension '%s'; trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except ConfigurationError:
        return _load_yaml_file(path)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DatabaseDriver",
    "IndexType",
    "Column",
    "ForeignKey",
    "Index",
    "Table",
    "RelationshipInfo",
    "ConnectionSettings",
    "GeneratorConfig",
    "DEFAULT_EXCLUDED_TABLES",
    "DEFAULT_MODEL_EVENTS",
    "DEFAULT_MODEL_PROPERTIES",
    "DEFAULT_OBSERVER_PROPERTIES",
    "load_config_file",
]

logger.debug("modelgen.models loaded.")
