# File: modelgen/inference.py
"""
ModelGen - Column Type & Semantic Inference
============================================
Pure, stateless functions that derive semantic facts from canonical
``Column`` records:

- target-language type names for ``@property`` annotations
- primary key detection (compound aware), key type and incrementing
- boolean / foreign-key / status / searchable / date classification
- enum literal extraction and maximum string length
- cast directives, validation rules and literal default values

None of these functions raise on configuration problems: a missing or
malformed property always falls back to the hard-coded default.
"""

from __future__ import annotations

import logging
import re
from typing import Any, FrozenSet, List, Optional, Sequence

from modelgen.models import (
    DEFAULT_MODEL_PROPERTIES,
    Column,
    GeneratorConfig,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.inference")

# ---------------------------------------------------------------------------
# Type families
# ---------------------------------------------------------------------------

INTEGER_TYPES: FrozenSet[str] = frozenset({
    "integer", "int", "bigint", "smallint", "tinyint", "mediumint",
    "serial", "bigserial", "smallserial", "int2", "int4", "int8",
})

FLOAT_TYPES: FrozenSet[str] = frozenset({
    "real", "float", "double", "decimal", "numeric", "double precision",
    "money", "float4", "float8",
})

NUMERIC_TYPES: FrozenSet[str] = frozenset({
    "integer", "int", "bigint", "smallint", "tinyint", "mediumint",
    "real", "float", "double", "decimal", "numeric",
})

BOOLEAN_TYPES: FrozenSet[str] = frozenset({"boolean", "bool"})

DATE_SCOPE_TYPES: FrozenSet[str] = frozenset({"date", "datetime", "timestamp"})

DATETIME_TYPES: FrozenSet[str] = frozenset({
    "datetime", "timestamp", "timestamptz", "date", "time", "timetz", "year",
})

JSON_TYPES: FrozenSet[str] = frozenset({"json", "jsonb"})

BINARY_TYPES: FrozenSet[str] = frozenset({
    "blob", "tinyblob", "mediumblob", "longblob", "binary", "varbinary",
    "bytea",
})

SEARCHABLE_TYPES: FrozenSet[str] = frozenset({
    "varchar", "char", "text", "longtext", "mediumtext", "tinytext", "string",
})

STRING_TYPES: FrozenSet[str] = frozenset({
    "varchar", "char", "character", "character varying", "nvarchar", "nchar",
    "text", "longtext", "mediumtext", "tinytext", "string", "citext",
    "enum", "set", "uuid",
})

STRING_KEY_TYPES: FrozenSet[str] = frozenset({
    "string", "char", "character", "varchar", "character varying", "text",
    "uuid", "nvarchar", "nchar",
})

TIMESTAMP_COLUMNS: FrozenSet[str] = frozenset({"created_at", "updated_at"})

SOFT_DELETE_COLUMN: str = "deleted_at"

DATE_TYPE_HINT: str = "\\Illuminate\\Support\\Carbon"

_ENUM_DECLARATION_RE: re.Pattern[str] = re.compile(
    r"(?:enum|set)\s*\((.+)\)", re.IGNORECASE | re.DOTALL
)
_QUOTED_LITERAL_RE: re.Pattern[str] = re.compile(r"'((?:[^'\\]|\\.|'')*)'")
_LENGTH_RE: re.Pattern[str] = re.compile(r"\(\s*(\d+)\s*\)")
_PG_CAST_RE: re.Pattern[str] = re.compile(r"^(.*?)::[a-z_ ]+(?:\[\])?$", re.IGNORECASE)
_NUMBER_RE: re.Pattern[str] = re.compile(r"^-?\d+(\.\d+)?$")

_DATETIME_NAME_PATTERNS: Sequence[re.Pattern[str]] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"_at$", r"_date$", r"_time$", r"date_", r"time_",
        r"^created_at$", r"^updated_at$", r"^deleted_at$",
        r"^timestamp$", r"^created$", r"^updated$",
    )
)

_SQL_EXPRESSION_DEFAULTS: FrozenSet[str] = frozenset({
    "current_timestamp", "current_date", "current_time", "localtimestamp",
    "localtime", "now()", "null",
})


# ---------------------------------------------------------------------------
# Config helpers
# ---------------------------------------------------------------------------


def _property(config: Optional[GeneratorConfig], key: str) -> Any:
    if config is None:
        return DEFAULT_MODEL_PROPERTIES[key]
    return config.get_model_property(key, DEFAULT_MODEL_PROPERTIES.get(key))


def _patterns(
    patterns: Optional[Sequence[str]],
    key: str,
) -> Sequence[str]:
    if patterns is None:
        return DEFAULT_MODEL_PROPERTIES[key]
    if isinstance(patterns, str) or not all(isinstance(p, str) for p in patterns):
        logger.warning("Ignoring malformed %s %r; using defaults.", key, patterns)
        return DEFAULT_MODEL_PROPERTIES[key]
    return patterns


# ---------------------------------------------------------------------------
# Type mapping
# ---------------------------------------------------------------------------


def is_boolean_type(column: Column) -> bool:
    """``boolean``/``bool`` or ``tinyint(1)`` (or a bare ``1`` extra)."""
    if column.type in BOOLEAN_TYPES:
        return True
    if column.type == "tinyint":
        extra: str = column.type_extra.strip().lower()
        return "(1)" in extra or extra == "1"
    return False


def map_to_language_type(column: Column) -> str:
    """Map a canonical column to the type used in ``@property`` annotations."""
    base: str = column.type
    if is_boolean_type(column):
        return "bool"
    if base in INTEGER_TYPES:
        return "int"
    if base in FLOAT_TYPES:
        return "float"
    if base in DATETIME_TYPES or base.startswith("timestamp"):
        return DATE_TYPE_HINT
    if base in JSON_TYPES:
        return "array"
    if base in BINARY_TYPES:
        return "resource"
    if base in STRING_TYPES:
        return "string"
    return "mixed"


# ---------------------------------------------------------------------------
# Primary keys
# ---------------------------------------------------------------------------


def detect_all_primary_keys(
    columns: Sequence[Column],
    config: Optional[GeneratorConfig] = None,
) -> List[str]:
    """
    Names of all primary-key columns in declaration order.

    Falls back to ``["id"]`` when detection is disabled or no column is
    flagged.
    """
    if not _property(config, "auto_detect_primary_key"):
        return ["id"]
    flagged: List[str] = [c.name for c in columns if c.primary]
    return flagged or ["id"]


def detect_primary_key(
    columns: Sequence[Column],
    config: Optional[GeneratorConfig] = None,
) -> str:
    """The first primary-key column (``"id"`` when none is detected)."""
    return detect_all_primary_keys(columns, config)[0]


def _find(columns: Sequence[Column], name: str) -> Optional[Column]:
    for column in columns:
        if column.name == name:
            return column
    return None


def detect_key_type(columns: Sequence[Column], primary_key: str) -> str:
    """``"string"`` for text-like or uuid keys, otherwise ``"int"``."""
    column: Optional[Column] = _find(columns, primary_key)
    if column is not None and column.type in STRING_KEY_TYPES:
        return "string"
    return "int"


def is_incrementing(columns: Sequence[Column], primary_keys: Sequence[str]) -> bool:
    """Only a single integer key increments; compound and string keys never do."""
    if len(primary_keys) != 1:
        return False
    return detect_key_type(columns, primary_keys[0]) == "int"


# ---------------------------------------------------------------------------
# Name classification
# ---------------------------------------------------------------------------


def is_boolean_column(name: str, patterns: Optional[Sequence[str]] = None) -> bool:
    """
    Prefix patterns (ending in ``_``) match by prefix; word patterns match
    the exact name or ``<word>_...``, but never a name ending in ``_at``.
    """
    for pattern in _patterns(patterns, "boolean_column_patterns"):
        if pattern.endswith("_"):
            if name.startswith(pattern):
                return True
        elif name == pattern or (
            name.startswith(pattern + "_") and not name.endswith("_at")
        ):
            return True
    return False


def is_boolean_like(
    column: Column, config: Optional[GeneratorConfig] = None
) -> bool:
    """
    Boolean-typed, or an integer (or untyped) column whose name matches the
    configured boolean patterns.  Casts, rules, scopes and factories share
    this test.
    """
    if is_boolean_type(column):
        return True
    return (column.type in INTEGER_TYPES or column.type == "") and is_boolean_column(
        column.name, _property(config, "boolean_column_patterns")
    )


def is_foreign_key_column(name: str) -> bool:
    return name.endswith("_id") and name != "id"


def is_status_column(name: str, patterns: Optional[Sequence[str]] = None) -> bool:
    return any(p in name for p in _patterns(patterns, "status_column_patterns"))


def is_searchable_column(
    name: str,
    type_: str,
    patterns: Optional[Sequence[str]] = None,
) -> bool:
    """Text-like type AND a name containing one of the searchable keywords."""
    if type_.lower() not in SEARCHABLE_TYPES:
        return False
    return any(p in name for p in _patterns(patterns, "searchable_column_patterns"))


def is_numeric_type(type_: str) -> bool:
    return type_.lower() in NUMERIC_TYPES


def is_date_type(type_: str) -> bool:
    """Types that receive per-column date range scopes."""
    return type_.lower() in DATE_SCOPE_TYPES


def is_datetime_type(type_: str) -> bool:
    lowered: str = type_.lower()
    return lowered in DATETIME_TYPES or lowered.startswith("timestamp")


def is_datetime_column_name(name: str) -> bool:
    return any(p.search(name) for p in _DATETIME_NAME_PATTERNS)


def is_timestamp_column(name: str) -> bool:
    return name in TIMESTAMP_COLUMNS


def has_soft_deletes(columns: Sequence[Column]) -> bool:
    return any(c.name == SOFT_DELETE_COLUMN for c in columns)


def is_hidden_field(name: str, patterns: Optional[Sequence[str]] = None) -> bool:
    """Name contains any sensitive keyword (password, token, secret, ...)."""
    lowered: str = name.lower()
    return any(p.lower() in lowered for p in _patterns(patterns, "hidden_field_patterns"))


# ---------------------------------------------------------------------------
# Declaration parsing
# ---------------------------------------------------------------------------


def extract_enum_values(type_extra: str) -> List[str]:
    """
    Parse ``enum('a','b')`` / ``set('a','b')`` into ``["a", "b"]``.

    Declaration order is preserved; anything else yields ``[]``.
    """
    match: Optional[re.Match[str]] = _ENUM_DECLARATION_RE.search(type_extra or "")
    if match is None:
        return []
    inner: str = match.group(1)
    quoted: List[str] = _QUOTED_LITERAL_RE.findall(inner)
    if quoted:
        return [v.replace("''", "'").replace("\\'", "'") for v in quoted]
    return [v.strip().strip("'\"") for v in inner.split(",") if v.strip()]


def extract_max_length(column: Column) -> Optional[int]:
    """Driver-reported length first, then ``(n)`` in the raw declaration."""
    if column.length is not None:
        return column.length
    match: Optional[re.Match[str]] = _LENGTH_RE.search(column.type_extra or "")
    return int(match.group(1)) if match else None


# ---------------------------------------------------------------------------
# Casts, rules and defaults
# ---------------------------------------------------------------------------


def infer_cast(column: Column, config: Optional[GeneratorConfig] = None) -> Optional[str]:
    """
    Eloquent cast for a column, or ``None``.

    json -> array; boolean -> boolean; datetime/timestamp type or an ``_at``
    name -> datetime; date -> date.  ``created_at``/``updated_at`` are
    handled by the timestamps flag and never cast here.
    """
    if is_timestamp_column(column.name):
        return None
    if column.type in JSON_TYPES:
        return "array"
    if is_boolean_like(column, config):
        return "boolean"
    if column.type == "date":
        return "date"
    if is_datetime_type(column.type) and column.type not in ("time", "timetz", "year"):
        return "datetime"
    if column.name.endswith("_at"):
        return "datetime"
    return None


def infer_validation_rules(
    column: Column,
    config: Optional[GeneratorConfig] = None,
    table_name: Optional[str] = None,
    *,
    unique: bool = False,
) -> List[str]:
    """
    Laravel validation rules for one column.

    ``nullable`` or ``required`` first, then one type rule, then ``email``
    for e-mail named strings and ``unique:<table>,<column>`` when requested.
    """
    rules: List[str] = ["nullable" if column.nullable else "required"]
    base: str = column.type

    if is_boolean_like(column, config):
        rules.append("boolean")
    elif base == "enum":
        values: List[str] = extract_enum_values(column.type_extra)
        rules.append("string")
        if values:
            rules.append("in:" + ",".join(values))
    elif base in INTEGER_TYPES:
        rules.append("integer")
    elif base in FLOAT_TYPES:
        rules.append("numeric")
    elif base in JSON_TYPES:
        rules.append("array")
    elif base == "date":
        rules.append("date")
    elif is_datetime_type(base):
        rules.append(f"date_format:{_property(config, 'date_format')}")
    elif base in STRING_TYPES:
        rules.append("string")
        max_length: Optional[int] = extract_max_length(column)
        if max_length:
            rules.append(f"max:{max_length}")
        if "email" in column.name.lower():
            rules.append("email")

    if unique and table_name:
        rules.append(f"unique:{table_name},{column.name}")

    return rules


def infer_default_value(column: Column, config: Optional[GeneratorConfig] = None) -> Any:
    """
    Literal default as a Python scalar, or ``None`` for SQL expressions.

    ``'draft'`` -> ``"draft"``, ``0`` -> ``0``, ``CURRENT_TIMESTAMP`` ->
    ``None``.  Only numeric columns yield numbers and only boolean columns
    yield ``True``/``False``; text columns keep the literal (``'01234'``).
    """
    raw: Any = column.default
    if raw is None:
        return None
    boolean: bool = is_boolean_like(column, config)
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return bool(raw) if boolean else raw

    text: str = str(raw).strip()
    while text.startswith("(") and text.endswith(")"):
        text = text[1:-1].strip()

    cast_match: Optional[re.Match[str]] = _PG_CAST_RE.match(text)
    if cast_match:
        text = cast_match.group(1).strip()

    if not text or text.lower() in _SQL_EXPRESSION_DEFAULTS:
        return None

    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"":
        unquoted: str = text[1:-1].replace("''", "'")
        if not boolean:
            return unquoted
        text = unquoted

    if "(" in text:
        # nextval('seq'), gen_random_uuid(), datetime('now') ...
        return None

    if boolean:
        lowered: str = text.lower()
        if lowered in ("true", "false", "t", "f"):
            return lowered in ("true", "t")
        if text in ("0", "1"):
            return text == "1"

    if _NUMBER_RE.match(text) and (
        column.type in INTEGER_TYPES or column.type in FLOAT_TYPES or column.type == ""
    ):
        return float(text) if "." in text else int(text)

    return text


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DATE_TYPE_HINT",
    "map_to_language_type",
    "detect_primary_key",
    "detect_all_primary_keys",
    "detect_key_type",
    "is_incrementing",
    "is_boolean_column",
    "is_boolean_like",
    "is_boolean_type",
    "is_foreign_key_column",
    "is_status_column",
    "is_searchable_column",
    "is_numeric_type",
    "is_date_type",
    "is_datetime_type",
    "is_datetime_column_name",
    "is_timestamp_column",
    "has_soft_deletes",
    "is_hidden_field",
    "extract_enum_values",
    "extract_max_length",
    "infer_cast",
    "infer_validation_rules",
    "infer_default_value",
]

logger.debug("modelgen.inference loaded.")
