# File: modelgen/scopes.py
"""
ModelGen - Query Scope Generator
=================================
Derives Eloquent local scopes (``scopeActive($query)`` ...) from column
names and types.

Per-column classification is an ordered rule list; the first rule that
matches decides the scopes for that column:

    boolean -> enum -> status -> date -> foreign key -> searchable -> numeric

An independent timestamp pass adds Recently / Today / Latest / Oldest
scopes for every datetime column.  Scopes are de-duplicated by method name,
the first definition wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from modelgen.inference import (
    SOFT_DELETE_COLUMN,
    TIMESTAMP_COLUMNS,
    detect_all_primary_keys,
    extract_enum_values,
    is_boolean_like,
    is_date_type,
    is_datetime_column_name,
    is_datetime_type,
    is_foreign_key_column,
    is_numeric_type,
    is_searchable_column,
    is_status_column,
)
from modelgen.models import Column, GeneratorConfig
from modelgen.utils import to_studly_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.scopes")

_SCOPE_NAME_SPECIAL_CASES: Dict[str, str] = {
    "created_at": "Created",
    "created": "Created",
    "updated_at": "Updated",
    "updated": "Updated",
    "deleted_at": "Deleted",
    "deleted": "Deleted",
    "timestamp": "Timestamp",
}

_SCOPE_NAME_SUFFIXES: Tuple[str, ...] = ("_at", "_date", "_time")

_Rule = Tuple[str, Callable[[Column], bool], Callable[[Column], List["ScopeMethod"]]]


@dataclass(slots=True, frozen=True)
class ScopeMethod:
    """One generated scope: PHP method name, source column, rule kind and code."""

    name: str
    column: str
    kind: str
    code: str


def _scope_method(
    name: str,
    column: str,
    kind: str,
    summary: str,
    params: str,
    body: str,
) -> ScopeMethod:
    """Wrap a one-line query body into a documented ``scope<Name>`` method."""
    signature: str = "$query" + (f", {params}" if params else "")
    lines: List[str] = [
        "    /**",
        f"     * {summary}",
        "     */",
        f"    public function scope{name}({signature})",
        "    {",
        f"        return {body};",
        "    }",
    ]
    return ScopeMethod(name=name, column=column, kind=kind, code="\n".join(lines))


def scope_name_from_column(column_name: str) -> str:
    """
    ``published_at`` -> ``Published``, ``expiry_date`` -> ``Expiry``;
    the common timestamp names map to fixed words.
    """
    special: Optional[str] = _SCOPE_NAME_SPECIAL_CASES.get(column_name.lower())
    if special is not None:
        return special
    stem: str = column_name
    for suffix in _SCOPE_NAME_SUFFIXES:
        stem = stem.replace(suffix, "")
    return to_studly_case(stem) or "Date"


class ScopeGenerator:
    """
    Builds scope methods for one table's columns.

    Args:
        config: Generator configuration (pattern lists, toggles).
    """

    def __init__(self, config: Optional[GeneratorConfig] = None) -> None:
        self._config: GeneratorConfig = config or GeneratorConfig()
        self._rules: List[_Rule] = [
            ("boolean", self._is_boolean, self._boolean_scopes),
            ("enum", self._is_enum, self._enum_scopes),
            ("status", self._is_status, self._status_scopes),
            ("date", self._is_date, self._date_scopes),
            ("foreign_key", self._is_foreign_key, self._foreign_key_scopes),
            ("searchable", self._is_searchable, self._search_scopes),
            ("numeric", self._is_numeric, self._numeric_scopes),
        ]
        logger.debug("ScopeGenerator initialised.")

    # =================================================================
    # Public API
    # =================================================================

    def generate_scopes(
        self,
        columns: Sequence[Column],
        enabled: Optional[bool] = None,
        primary_keys: Optional[Sequence[str]] = None,
    ) -> List[ScopeMethod]:
        """
        Column scopes followed by timestamp scopes, de-duplicated by name.

        *enabled* overrides the ``auto_generate_scopes`` property; when
        scopes are disabled nothing is returned.
        """
        if enabled is None:
            enabled = bool(self._config.get_model_property("auto_generate_scopes", False))
        if not enabled:
            return []

        scopes: List[ScopeMethod] = self.generate_column_scopes(columns, primary_keys)
        scopes.extend(self.generate_timestamp_scopes(columns))
        unique: List[ScopeMethod] = _dedupe(scopes)
        logger.debug(
            "Generated %d scope(s) for %d column(s).", len(unique), len(columns)
        )
        return unique

    def generate_column_scopes(
        self,
        columns: Sequence[Column],
        primary_keys: Optional[Sequence[str]] = None,
    ) -> List[ScopeMethod]:
        """Per-column scopes; timestamp and primary-key columns are skipped."""
        keys: Set[str] = set(
            primary_keys
            if primary_keys is not None
            else detect_all_primary_keys(columns, self._config)
        )
        scopes: List[ScopeMethod] = []
        for column in columns:
            if column.name in TIMESTAMP_COLUMNS or column.name == SOFT_DELETE_COLUMN:
                continue
            if column.name in keys:
                continue
            scopes.extend(self.classify(column))
        return scopes

    def classify(self, column: Column) -> List[ScopeMethod]:
        """Apply the first matching rule to *column*."""
        for kind, matches, build in self._rules:
            if matches(column):
                logger.debug("Column '%s' classified as %s.", column.name, kind)
                return build(column)
        return []

    def generate_timestamp_scopes(self, columns: Sequence[Column]) -> List[ScopeMethod]:
        """Recently / Today / Latest / Oldest scopes for each datetime column."""
        if not self._config.get_model_property("auto_generate_timestamp_scopes", True):
            return []

        scopes: List[ScopeMethod] = []
        for column in columns:
            if not (is_datetime_type(column.type) or is_datetime_column_name(column.name)):
                continue
            col: str = column.name
            label: str = scope_name_from_column(col)
            scopes.extend([
                _scope_method(
                    f"{label}Recently", col, "timestamp",
                    f"Scope a query to only include recent records based on {col}.",
                    "$days = 7",
                    f"$query->where('{col}', '>=', now()->subDays($days))",
                ),
                _scope_method(
                    f"{label}Today", col, "timestamp",
                    f"Scope a query to only include records from today based on {col}.",
                    "",
                    f"$query->whereDate('{col}', today())",
                ),
                _scope_method(
                    f"Latest{label}", col, "timestamp",
                    f"Scope a query to order by {col} newest first.",
                    "",
                    f"$query->orderBy('{col}', 'desc')",
                ),
                _scope_method(
                    f"Oldest{label}", col, "timestamp",
                    f"Scope a query to order by {col} oldest first.",
                    "",
                    f"$query->orderBy('{col}', 'asc')",
                ),
            ])
        return scopes

    # =================================================================
    # Rule predicates
    # =================================================================

    def _property(self, key: str) -> object:
        return self._config.get_model_property(key)

    def _is_boolean(self, column: Column) -> bool:
        return is_boolean_like(column, self._config)

    def _is_enum(self, column: Column) -> bool:
        return column.type in ("enum", "set") and bool(extract_enum_values(column.type_extra))

    def _is_status(self, column: Column) -> bool:
        return is_status_column(column.name, self._property("status_column_patterns"))

    def _is_date(self, column: Column) -> bool:
        return is_date_type(column.type)

    def _is_foreign_key(self, column: Column) -> bool:
        return is_foreign_key_column(column.name)

    def _is_searchable(self, column: Column) -> bool:
        return is_searchable_column(
            column.name, column.type, self._property("searchable_column_patterns")
        )

    def _is_numeric(self, column: Column) -> bool:
        return is_numeric_type(column.type)

    # =================================================================
    # Scope builders
    # =================================================================

    def _boolean_scopes(self, column: Column) -> List[ScopeMethod]:
        col: str = column.name
        patterns: Dict[str, List[str]] = self._property("boolean_scope_patterns") or {}
        names: Optional[Tuple[str, str]] = None
        for pattern, pair in patterns.items():
            keyword: str = pattern[3:] if pattern.startswith("is_") else pattern
            if keyword and keyword in col:
                names = (to_studly_case(pair[0]), to_studly_case(pair[1]))
                break

        if names is None:
            base: str = to_studly_case(col[3:] if col.startswith("is_") else col)
            names = (base, f"Not{base}")

        return [
            _scope_method(
                names[0], col, "boolean",
                f"Scope a query to only include records where {col} is true.",
                "",
                f"$query->where('{col}', true)",
            ),
            _scope_method(
                names[1], col, "boolean",
                f"Scope a query to only include records where {col} is false.",
                "",
                f"$query->where('{col}', false)",
            ),
        ]

    def _enum_scopes(self, column: Column) -> List[ScopeMethod]:
        col: str = column.name
        scopes: List[ScopeMethod] = []
        for value in extract_enum_values(column.type_extra):
            name: str = to_studly_case(value)
            if not name:
                continue
            literal: str = value.replace("\\", "\\\\").replace("'", "\\'")
            scopes.append(_scope_method(
                name, col, "enum",
                f"Scope a query to only include {value} records.",
                "",
                f"$query->where('{col}', '{literal}')",
            ))
        return scopes

    def _status_scopes(self, column: Column) -> List[ScopeMethod]:
        col: str = column.name
        return [_scope_method(
            f"By{to_studly_case(col)}", col, "status",
            f"Scope a query to filter by {col}.",
            "$status",
            f"$query->where('{col}', $status)",
        )]

    def _date_scopes(self, column: Column) -> List[ScopeMethod]:
        col: str = column.name
        studly: str = to_studly_case(col)
        return [
            _scope_method(
                "Recent", col, "date",
                f"Scope a query to only include recent records based on {col}.",
                "$days = 30",
                f"$query->where('{col}', '>=', now()->subDays($days))",
            ),
            _scope_method(
                f"{studly}Between", col, "date",
                f"Scope a query to filter by {col} date range.",
                "$startDate, $endDate",
                f"$query->whereBetween('{col}', [$startDate, $endDate])",
            ),
            _scope_method(
                f"{studly}After", col, "date",
                f"Scope a query to only include records after a specific {col}.",
                "$date",
                f"$query->where('{col}', '>', $date)",
            ),
            _scope_method(
                f"{studly}Before", col, "date",
                f"Scope a query to only include records before a specific {col}.",
                "$date",
                f"$query->where('{col}', '<', $date)",
            ),
        ]

    def _foreign_key_scopes(self, column: Column) -> List[ScopeMethod]:
        col: str = column.name
        relation: str = col[: -len("_id")]
        return [_scope_method(
            f"By{to_studly_case(relation)}", col, "foreign_key",
            f"Scope a query to filter by {relation}.",
            "$id",
            f"$query->where('{col}', $id)",
        )]

    def _search_scopes(self, column: Column) -> List[ScopeMethod]:
        col: str = column.name
        return [_scope_method(
            f"Search{to_studly_case(col)}", col, "searchable",
            f"Scope a query to search in {col}.",
            "$search",
            f"$query->where('{col}', 'LIKE', '%' . $search . '%')",
        )]

    def _numeric_scopes(self, column: Column) -> List[ScopeMethod]:
        col: str = column.name
        studly: str = to_studly_case(col)
        return [
            _scope_method(
                f"{studly}GreaterThan", col, "numeric",
                f"Scope a query to filter {col} greater than value.",
                "$value",
                f"$query->where('{col}', '>', $value)",
            ),
            _scope_method(
                f"{studly}LessThan", col, "numeric",
                f"Scope a query to filter {col} less than value.",
                "$value",
                f"$query->where('{col}', '<', $value)",
            ),
            _scope_method(
                f"{studly}Between", col, "numeric",
                f"Scope a query to filter {col} between values.",
                "$min, $max",
                f"$query->whereBetween('{col}', [$min, $max])",
            ),
        ]


def _dedupe(scopes: Sequence[ScopeMethod]) -> List[ScopeMethod]:
    seen: Set[str] = set()
    unique: List[ScopeMethod] = []
    for scope in scopes:
        if scope.name in seen:
            logger.debug(
                "Dropping duplicate scope '%s' from column '%s'.", scope.name, scope.column
            )
            continue
        seen.add(scope.name)
        unique.append(scope)
    return unique


__all__: List[str] = ["ScopeGenerator", "ScopeMethod", "scope_name_from_column"]

logger.debug("modelgen.scopes loaded.")
