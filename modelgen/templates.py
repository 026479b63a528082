# File: modelgen/templates.py
"""
ModelGen - Artifact Generators
===============================
Turns canonical schema records into Laravel source files:

    1. Eloquent models         (``ModelGenerator``)
    2. Model factories         (``FactoryGenerator``)
    3. Model observers         (``ObserverGenerator``)
    4. API resources           (``ResourceGenerator``, single + collection)
    5. Authorization policies  (``PolicyGenerator``)

Every generator validates its inputs first, then fills a placeholder map
and renders the matching ``.stub``.  Fragments are assembled with the
``List[str]`` + ``"\\n".join()`` pattern; output is deterministic for a
given input.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from modelgen.events import EventsGenerator, build_event_list, event_comment
from modelgen.exceptions import InvalidInputError
from modelgen.inference import (
    FLOAT_TYPES,
    INTEGER_TYPES,
    JSON_TYPES,
    SOFT_DELETE_COLUMN,
    STRING_TYPES,
    TIMESTAMP_COLUMNS,
    detect_all_primary_keys,
    detect_key_type,
    extract_enum_values,
    extract_max_length,
    has_soft_deletes as table_has_soft_deletes,
    infer_cast,
    infer_default_value,
    infer_validation_rules,
    is_boolean_like,
    is_hidden_field,
    is_incrementing,
    map_to_language_type,
)
from modelgen.models import (
    DEFAULT_MODEL_EVENTS,
    DEFAULT_MODEL_PROPERTIES,
    Column,
    ForeignKey,
    GeneratorConfig,
    Index,
    IndexType,
    RelationshipInfo,
)
from modelgen.scopes import ScopeGenerator, ScopeMethod
from modelgen.stubs import StubLoader, render
from modelgen.utils import (
    class_basename,
    class_namespace,
    count_lines,
    join_namespace,
    php_array_block,
    php_list,
    php_string,
    php_value,
    to_camel_case,
    to_singular,
    to_studly_case,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_INDENT: str = "    "

# Columns a factory never fills in.
_FACTORY_SKIPPED_COLUMNS: Tuple[str, ...] = ("created_at", "updated_at", "deleted_at")

# Columns rendered as ISO-8601 strings by API resources.
_RESOURCE_TIMESTAMP_COLUMNS: Tuple[str, ...] = ("created_at", "updated_at", "deleted_at")

# (substring in column name, faker call), checked in order.
_FAKER_NAME_PATTERNS: Tuple[Tuple[str, str], ...] = (
    ("email", "safeEmail()"),
    ("name", "name()"),
    ("phone", "phoneNumber()"),
    ("address", "address()"),
    ("city", "city()"),
    ("country", "country()"),
    ("zip", "postcode()"),
    ("password", "password()"),
    ("url", "url()"),
    ("description", "text()"),
    ("title", "sentence()"),
)

_COLLECTION_RELATIONSHIPS: Tuple[str, ...] = ("hasmany", "belongstomany")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _require(value: Optional[str], label: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidInputError(f"{label} is required.")
    return str(value).strip()


def related_model_name(table_name: str) -> str:
    """``blog_posts`` -> ``BlogPost``."""
    return to_studly_case(to_singular(table_name))


def relationship_method_name(foreign_key: ForeignKey) -> str:
    """
    ``user_id`` -> ``user``; a local column without an ``_id`` suffix
    falls back to the referenced column name.
    """
    local: str = foreign_key.from_column
    if local.endswith("_id") and len(local) > 3:
        return to_camel_case(local[: -len("_id")])
    return to_camel_case(foreign_key.to)


def relationships_from_foreign_keys(
    foreign_keys: Iterable[ForeignKey],
    model_namespace: str,
) -> List[RelationshipInfo]:
    """Belongs-to relationship descriptors for the resource generator."""
    seen: Set[str] = set()
    relationships: List[RelationshipInfo] = []
    for fk in foreign_keys:
        name: str = relationship_method_name(fk)
        if name in seen:
            continue
        seen.add(name)
        relationships.append(RelationshipInfo(
            name=name,
            type="belongsto",
            related_model=join_namespace(model_namespace, related_model_name(fk.table)),
        ))
    return relationships


def _split_model_name(model_name: str, base_namespace: str) -> Tuple[str, str]:
    """``Blog\\Post`` -> (``<base>\\Blog``, ``Post``)."""
    normalized: str = model_name.replace("/", "\\").strip("\\")
    return (
        join_namespace(base_namespace, class_namespace(normalized)),
        class_basename(normalized),
    )


def _property_block(description: str, var_type: str, declaration: str) -> str:
    lines: List[str] = [
        f"{_INDENT}/**",
        f"{_INDENT} * {description}",
        f"{_INDENT} *",
        f"{_INDENT} * @var {var_type}",
        f"{_INDENT} */",
        f"{_INDENT}{declaration}",
    ]
    return "\n".join(lines)


def _as_string_list(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return []


class ArtifactGenerator:
    """
    Base for all artifact generators: holds the config snapshot and the
    stub loader, and renders a named stub from a placeholder map.
    """

    stub_name: str = ""

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        loader: Optional[StubLoader] = None,
    ) -> None:
        self._config: GeneratorConfig = config or GeneratorConfig()
        self._loader: StubLoader = loader or StubLoader(self._config.stub_path)
        logger.debug("%s initialised.", type(self).__name__)

    def _render(self, values: Dict[str, str], stub_name: Optional[str] = None) -> str:
        return render(self._loader.load(stub_name or self.stub_name), values)

    def _prop(self, key: str) -> Any:
        return self._config.get_model_property(key, DEFAULT_MODEL_PROPERTIES.get(key))


# ===========================================================================
# Model
# ===========================================================================


class ModelGenerator(ArtifactGenerator):
    """Generates an Eloquent model class for one table."""

    stub_name = "model"

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        loader: Optional[StubLoader] = None,
    ) -> None:
        super().__init__(config, loader)
        self._scopes: ScopeGenerator = ScopeGenerator(self._config)
        self._events: EventsGenerator = EventsGenerator(self._config)

    def generate(
        self,
        model_name: str,
        table_name: str,
        connection: str,
        columns: Sequence[Column],
        foreign_keys: Sequence[ForeignKey] = (),
        with_relationships: bool = False,
        with_rules: bool = False,
        with_scopes: Optional[bool] = None,
        with_events: Optional[bool] = None,
        indexes: Sequence[Index] = (),
    ) -> str:
        """
        Render the model source for *table_name*.

        ``with_scopes`` / ``with_events`` default to the
        ``auto_generate_scopes`` / ``generate_event_methods`` properties.

        Raises:
            InvalidInputError: On an empty model or table name or no columns.
            ArtifactError: If the model stub cannot be loaded.
        """
        model_name = _require(model_name, "Model name")
        table_name = _require(table_name, "Table name")
        connection = _require(connection, "Connection name")
        if not columns:
            raise InvalidInputError(f"Table '{table_name}' has no columns.")

        namespace, class_name = _split_model_name(model_name, self._config.model_namespace)
        primary_keys: List[str] = detect_all_primary_keys(columns, self._config)
        soft_deletes: bool = bool(
            self._prop("auto_detect_soft_deletes")
        ) and table_has_soft_deletes(columns)
        timestamps: bool = any(c.name in TIMESTAMP_COLUMNS for c in columns)

        relations: List[Tuple[str, str, ForeignKey]] = (
            self._relations(foreign_keys) if with_relationships else []
        )

        events_enabled: bool = (
            bool(self._prop("generate_event_methods")) if with_events is None else with_events
        )
        scopes: List[ScopeMethod] = self._scopes.generate_scopes(
            columns, enabled=with_scopes, primary_keys=primary_keys
        )

        values: Dict[str, str] = {
            "namespace": namespace,
            "modelName": class_name,
            "tableName": table_name,
            "connection": connection,
            "imports": self._imports(soft_deletes, bool(relations)),
            "traits": f"{_INDENT}use HasFactory, SoftDeletes;"
            if soft_deletes
            else f"{_INDENT}use HasFactory;",
            "properties": self._docblock_properties(columns),
            "keyProperties": self._key_properties(columns, primary_keys),
            "timestamps": "true" if timestamps else "false",
            "attributes": self._attribute_blocks(columns, primary_keys, soft_deletes, relations),
            "rules": self._rules(columns, primary_keys, table_name, indexes)
            if with_rules
            else "",
            "relationships": "\n\n".join(code for _, code, _ in relations),
            "scopes": "\n\n".join(scope.code for scope in scopes),
            "boot": self._events.generate_boot_method(class_name, soft_deletes)
            if events_enabled and self._prop("generate_boot_method")
            else "",
            "events": "\n\n".join(self._events.generate_event_methods(class_name, soft_deletes))
            if events_enabled
            else "",
        }

        content: str = self._render(values)
        logger.debug(
            "Generated model for '%s': %d lines.", table_name, count_lines(content)
        )
        return content

    # =================================================================
    # Header pieces
    # =================================================================

    @staticmethod
    def _imports(soft_deletes: bool, has_relations: bool) -> str:
        imports: List[str] = [
            "use Illuminate\\Database\\Eloquent\\Factories\\HasFactory;",
            "use Illuminate\\Database\\Eloquent\\Model;",
        ]
        if has_relations:
            imports.append("use Illuminate\\Database\\Eloquent\\Relations\\BelongsTo;")
        if soft_deletes:
            imports.append("use Illuminate\\Database\\Eloquent\\SoftDeletes;")
        return "\n".join(sorted(imports))

    @staticmethod
    def _docblock_properties(columns: Sequence[Column]) -> str:
        lines: List[str] = []
        for column in columns:
            if column.name in TIMESTAMP_COLUMNS:
                continue
            php_type: str = map_to_language_type(column)
            if column.nullable and php_type != "mixed":
                php_type += "|null"
            lines.append(f" * @property {php_type} ${column.name}")
        return "\n".join(lines)

    def _key_properties(self, columns: Sequence[Column], primary_keys: List[str]) -> str:
        blocks: List[str] = []
        if len(primary_keys) > 1:
            blocks.append(_property_block(
                "The primary key columns of the model.",
                "array<int, string>",
                f"protected $primaryKey = {php_list(primary_keys)};",
            ))
        elif primary_keys[0] != "id":
            blocks.append(_property_block(
                "The primary key for the model.",
                "string",
                f"protected $primaryKey = {php_string(primary_keys[0])};",
            ))

        if len(primary_keys) == 1 and detect_key_type(columns, primary_keys[0]) == "string":
            blocks.append(_property_block(
                "The data type of the primary key.",
                "string",
                "protected $keyType = 'string';",
            ))

        if not is_incrementing(columns, primary_keys):
            blocks.append(_property_block(
                "Indicates if the IDs are auto-incrementing.",
                "bool",
                "public $incrementing = false;",
            ))
        return "\n\n".join(blocks)

    # =================================================================
    # Attribute lists
    # =================================================================

    def _attribute_blocks(
        self,
        columns: Sequence[Column],
        primary_keys: List[str],
        soft_deletes: bool,
        relations: List[Tuple[str, str, ForeignKey]],
    ) -> str:
        keys: Set[str] = set(primary_keys)
        blocks: List[str] = []

        # -- fillable / guarded -------------------------------------------
        if self._prop("use_guarded_instead_of_fillable"):
            guarded: List[str] = []
            for name in [*primary_keys, *_as_string_list(self._prop("guarded_fields"))]:
                if name not in guarded:
                    guarded.append(name)
            blocks.append(_property_block(
                "The attributes that aren't mass assignable.",
                "list<string>",
                "protected $guarded = "
                + php_array_block([php_string(n) for n in guarded])
                + ";",
            ))
        else:
            fillable: List[str] = [
                c.name
                for c in columns
                if c.name not in keys
                and c.name not in TIMESTAMP_COLUMNS
                and not (soft_deletes and c.name == SOFT_DELETE_COLUMN)
            ]
            blocks.append(_property_block(
                "The attributes that are mass assignable.",
                "list<string>",
                "protected $fillable = "
                + php_array_block([php_string(n) for n in fillable])
                + ";",
            ))

        # -- hidden / visible ---------------------------------------------
        hidden: List[str] = []
        if self._prop("auto_hidden_fields"):
            patterns: Sequence[str] = self._prop("hidden_field_patterns")
            hidden = [c.name for c in columns if is_hidden_field(c.name, patterns)]
        if self._prop("use_visible_instead_of_hidden"):
            visible: List[str] = [c.name for c in columns if c.name not in hidden]
            blocks.append(_property_block(
                "The attributes that should be visible in serialization.",
                "list<string>",
                "protected $visible = "
                + php_array_block([php_string(n) for n in visible])
                + ";",
            ))
        elif hidden:
            blocks.append(_property_block(
                "The attributes that should be hidden for serialization.",
                "list<string>",
                "protected $hidden = " + php_array_block([php_string(n) for n in hidden]) + ";",
            ))

        # -- casts --------------------------------------------------------
        casts: List[str] = []
        for column in columns:
            cast: Optional[str] = infer_cast(column, self._config)
            if cast is None and soft_deletes and column.name == SOFT_DELETE_COLUMN:
                cast = "datetime"
            if cast is not None:
                casts.append(f"{php_string(column.name)} => {php_string(cast)}")
        if casts:
            blocks.append(_property_block(
                "The attributes that should be cast.",
                "array<string, string>",
                "protected $casts = " + php_array_block(casts) + ";",
            ))

        # -- default attribute values -------------------------------------
        if self._prop("auto_default_attributes"):
            defaults: List[str] = []
            for column in columns:
                if column.name in keys or column.name in TIMESTAMP_COLUMNS:
                    continue
                value: Any = infer_default_value(column, self._config)
                if value is not None:
                    defaults.append(f"{php_string(column.name)} => {php_value(value)}")
            if defaults:
                blocks.append(_property_block(
                    "The model's default values for attributes.",
                    "array<string, mixed>",
                    "protected $attributes = " + php_array_block(defaults) + ";",
                ))

        # -- date format / pagination -------------------------------------
        date_format: Any = self._prop("date_format")
        if isinstance(date_format, str) and date_format != DEFAULT_MODEL_PROPERTIES["date_format"]:
            blocks.append(_property_block(
                "The storage format of the model's date columns.",
                "string",
                f"protected $dateFormat = {php_string(date_format)};",
            ))

        per_page: Any = self._prop("per_page")
        if isinstance(per_page, int) and not isinstance(per_page, bool) and per_page > 0:
            blocks.append(_property_block(
                "The number of models to return for pagination.",
                "int",
                f"protected $perPage = {per_page};",
            ))

        # -- eager loads / touches ----------------------------------------
        relation_names: List[str] = [name for name, _, _ in relations]
        if self._prop("auto_eager_load"):
            eager: List[str] = _as_string_list(self._prop("eager_load_relationships"))
            if not eager:
                eager = relation_names
            if eager:
                blocks.append(_property_block(
                    "The relationships that should always be loaded.",
                    "array<int, string>",
                    "protected $with = " + php_array_block([php_string(n) for n in eager]) + ";",
                ))

        if self._prop("auto_touches") and relation_names:
            blocks.append(_property_block(
                "All of the relationships to be touched.",
                "array<int, string>",
                "protected $touches = "
                + php_array_block([php_string(n) for n in relation_names])
                + ";",
            ))

        return "\n\n".join(blocks)

    # =================================================================
    # Rules & relationships
    # =================================================================

    def _rules(
        self,
        columns: Sequence[Column],
        primary_keys: List[str],
        table_name: str,
        indexes: Sequence[Index],
    ) -> str:
        keys: Set[str] = set(primary_keys)
        unique_columns: Set[str] = {
            index.columns[0]
            for index in indexes
            if index.type == IndexType.UNIQUE and len(index.columns) == 1
        }
        entries: List[str] = []
        for column in columns:
            if column.name in keys or column.name in TIMESTAMP_COLUMNS:
                continue
            if column.name == SOFT_DELETE_COLUMN:
                continue
            rules: List[str] = infer_validation_rules(
                column, self._config, table_name, unique=column.name in unique_columns
            )
            entries.append(f"{php_string(column.name)} => {php_list(rules)}")

        lines: List[str] = [
            f"{_INDENT}/**",
            f"{_INDENT} * Validation rules for the model's attributes.",
            f"{_INDENT} *",
            f"{_INDENT} * @return array<string, array<int, string>>",
            f"{_INDENT} */",
            f"{_INDENT}public static function rules(): array",
            f"{_INDENT}{{",
            f"{_INDENT * 2}return " + php_array_block(entries, level=2) + ";",
            f"{_INDENT}}}",
        ]
        return "\n".join(lines)

    def _relations(self, foreign_keys: Sequence[ForeignKey]) -> List[Tuple[str, str, ForeignKey]]:
        """``(method name, code, foreign key)`` per distinct belongs-to relation."""
        relations: List[Tuple[str, str, ForeignKey]] = []
        seen: Set[str] = set()
        for fk in foreign_keys:
            name: str = relationship_method_name(fk)
            if name in seen:
                logger.debug("Skipping duplicate relationship '%s'.", name)
                continue
            seen.add(name)
            related: str = related_model_name(fk.table)
            lines: List[str] = [
                f"{_INDENT}/**",
                f"{_INDENT} * Get the {related} this record belongs to.",
                f"{_INDENT} */",
                f"{_INDENT}public function {name}(): BelongsTo",
                f"{_INDENT}{{",
                f"{_INDENT * 2}return $this->belongsTo({related}::class, "
                f"{php_string(fk.from_column)}, {php_string(fk.to)});",
                f"{_INDENT}}}",
            ]
            relations.append((name, "\n".join(lines), fk))
        return relations


# ===========================================================================
# Factory
# ===========================================================================


class FactoryGenerator(ArtifactGenerator):
    """Generates a model factory with a faker call per fillable column."""

    stub_name = "factory"

    def generate(self, model_name: str, table_name: str, columns: Sequence[Column]) -> str:
        """
        Raises:
            InvalidInputError: On an empty model or table name.
            ArtifactError: If the factory stub cannot be loaded.
        """
        model_name = _require(model_name, "Model name")
        table_name = _require(table_name, "Table name")

        model_namespace, class_name = _split_model_name(model_name, self._config.model_namespace)
        primary_keys: Set[str] = set(detect_all_primary_keys(columns, self._config))

        definitions: List[str] = []
        for column in columns:
            if column.name in _FACTORY_SKIPPED_COLUMNS:
                continue
            if column.name in primary_keys or column.primary or column.is_auto_increment:
                continue
            definitions.append(
                f"{_INDENT * 3}{php_string(column.name)} => fake()->{self.faker_method(column)},"
            )

        values: Dict[str, str] = {
            "namespace": self._config.factory_namespace,
            "modelNamespace": model_namespace,
            "modelName": class_name,
            "tableName": table_name,
            "definitions": "\n".join(definitions),
        }
        content: str = self._render(values)
        logger.debug(
            "Generated factory for '%s': %d definition(s).", class_name, len(definitions)
        )
        return content

    def faker_method(self, column: Column) -> str:
        """Faker call for *column*: boolean, name pattern, enum, then type."""
        name: str = column.name.lower()
        base: str = column.type

        if is_boolean_like(column, self._config):
            return "boolean()"

        if base not in INTEGER_TYPES and base not in FLOAT_TYPES:
            for needle, method in _FAKER_NAME_PATTERNS:
                if needle in name:
                    return method

        enum_values: List[str] = extract_enum_values(column.type_extra)
        if base in ("enum", "set") and enum_values:
            return f"randomElement({php_list(enum_values)})"

        if base in INTEGER_TYPES:
            return "randomNumber()"
        if base in FLOAT_TYPES:
            return "randomFloat(2)"
        if base == "date":
            return "date()"
        if base in ("time", "timetz"):
            return "time()"
        if base in ("datetime", "timestamp", "timestamptz"):
            return "dateTime()"
        if base in JSON_TYPES:
            return "words(3)"
        if base == "uuid":
            return "uuid()"
        if base in STRING_TYPES:
            max_length: Optional[int] = extract_max_length(column)
            if max_length is not None and 5 <= max_length < 200:
                return f"text({max_length})"
        return "text()"


# ===========================================================================
# Observer
# ===========================================================================


class ObserverGenerator(ArtifactGenerator):
    """Generates a standalone observer class for one model."""

    stub_name = "observer"

    def generate(
        self,
        model_name: str,
        model_namespace: str,
        connection: str,
        columns: Sequence[Column] = (),
        has_soft_deletes: Optional[bool] = None,
    ) -> str:
        """
        Raises:
            InvalidInputError: On an empty model name.
            ArtifactError: If the observer stub cannot be loaded.
        """
        model_name = _require(model_name, "Model name")
        if has_soft_deletes is None:
            has_soft_deletes = bool(
                self._prop("auto_detect_soft_deletes")
            ) and table_has_soft_deletes(columns)

        class_name: str = class_basename(model_name)
        model_var: str = to_camel_case(class_name)
        events: List[str] = self.get_observer_events(has_soft_deletes)
        methods: List[str] = [
            self._observer_method(event, class_name, model_var) for event in events
        ]

        values: Dict[str, str] = {
            "namespace": self.observer_namespace(connection),
            "modelNamespace": join_namespace(model_namespace, class_namespace(model_name))
            or self._config.model_namespace,
            "modelName": class_name,
            "observerName": f"{class_name}Observer",
            "methods": "\n\n".join(methods),
        }
        content: str = self._render(values)
        logger.debug(
            "Generated observer for '%s': %d event method(s).", class_name, len(methods)
        )
        return content

    def observer_namespace(self, connection: str) -> str:
        """Base namespace, plus ``\\<Studly(connection)>`` when connection based."""
        base: str = self._config.observer_namespace
        if connection and self._config.get_observer_property("observer_connection_based", True):
            return join_namespace(base, to_studly_case(connection))
        return base

    def get_observer_events(self, has_soft_deletes: bool = False) -> List[str]:
        prop = self._config.get_observer_property
        return build_event_list(
            _as_string_list(prop("observer_events")) or list(DEFAULT_MODEL_EVENTS),
            _as_string_list(prop("exclude_events")),
            has_soft_deletes,
            bool(prop("include_retrieved", False)),
            bool(prop("include_booted", False)),
        )

    def _observer_method(self, event: str, class_name: str, model_var: str) -> str:
        use_stubs: bool = bool(
            self._config.get_observer_property("observer_method_stubs", True)
        )
        body: str = f"// TODO: Implement {event} logic" if use_stubs else "//"
        lines: List[str] = [
            f"{_INDENT}/**",
            f"{_INDENT} * {event_comment(event)}",
            f"{_INDENT} */",
            f"{_INDENT}public function {to_camel_case(event)}({class_name} ${model_var}): void",
            f"{_INDENT}{{",
            f"{_INDENT * 2}{body}",
            f"{_INDENT}}}",
        ]
        return "\n".join(lines)


# ===========================================================================
# Resource
# ===========================================================================


class ResourceGenerator(ArtifactGenerator):
    """Generates ``JsonResource`` / ``ResourceCollection`` classes."""

    stub_name = "resource"

    def generate(
        self,
        model_class: str,
        columns: Sequence[Union[Column, str]],
        relationships: Sequence[RelationshipInfo] = (),
        is_collection: bool = False,
    ) -> str:
        """
        Raises:
            InvalidInputError: On an empty model class.
            ArtifactError: If the resource or collection stub cannot be loaded.
        """
        model_class = _require(model_class, "Model class").replace("/", "\\").strip("\\")
        if "\\" not in model_class:
            model_class = join_namespace(self._config.model_namespace, model_class)
        base_name: str = class_basename(model_class)

        if is_collection:
            values: Dict[str, str] = {
                "namespace": self._config.resource_namespace,
                "class": f"{base_name}Collection",
                "resource": f"{base_name}Resource",
            }
            content: str = self._render(values, "collection")
            logger.debug("Generated collection for '%s'.", base_name)
            return content

        fields: List[str] = self._fields(columns)
        fields.extend(self._relationship_fields(relationships))

        values = {
            "namespace": self._config.resource_namespace,
            "class": f"{base_name}Resource",
            "modelName": base_name,
            "imports": self._imports(model_class, relationships),
            "fields": "\n".join(f"{_INDENT * 3}{field}," for field in fields),
        }
        content = self._render(values)
        logger.debug("Generated resource for '%s': %d field(s).", base_name, len(fields))
        return content

    def _fields(self, columns: Sequence[Union[Column, str]]) -> List[str]:
        hide: bool = bool(self._prop("auto_hidden_fields"))
        patterns: Sequence[str] = self._prop("hidden_field_patterns")
        seen: Set[str] = set()
        fields: List[str] = []
        for column in columns:
            name: str = column.name if isinstance(column, Column) else str(column)
            if name in seen:
                continue
            seen.add(name)
            if hide and is_hidden_field(name, patterns):
                continue
            if name in _RESOURCE_TIMESTAMP_COLUMNS:
                fields.append(f"{php_string(name)} => $this->{name}?->toISOString()")
            else:
                fields.append(f"{php_string(name)} => $this->{name}")
        return fields

    @staticmethod
    def _relationship_fields(relationships: Sequence[RelationshipInfo]) -> List[str]:
        fields: List[str] = []
        for relation in relationships:
            resource: str = class_basename(relation.related_model) + "Resource"
            loaded: str = f"$this->whenLoaded({php_string(relation.name)})"
            if relation.type in _COLLECTION_RELATIONSHIPS:
                fields.append(f"{php_string(relation.name)} => {resource}::collection({loaded})")
            else:
                fields.append(f"{php_string(relation.name)} => new {resource}({loaded})")
        return fields

    @staticmethod
    def _imports(model_class: str, relationships: Sequence[RelationshipInfo]) -> str:
        statements: List[str] = [f"use {model_class};"]
        for relation in relationships:
            statement: str = f"use {relation.related_model};"
            if statement not in statements and class_basename(
                relation.related_model
            ) != class_basename(model_class):
                statements.append(statement)
        return "\n".join(statements)


# ===========================================================================
# Policy
# ===========================================================================


class PolicyGenerator(ArtifactGenerator):
    """Generates an authorization policy with the standard abilities."""

    stub_name = "policy"

    def generate(self, model_name: str) -> str:
        """
        Raises:
            InvalidInputError: On an empty model name.
            ArtifactError: If the policy stub cannot be loaded.
        """
        model_name = _require(model_name, "Model name")
        model_namespace, class_name = _split_model_name(model_name, self._config.model_namespace)

        model_var: str = to_camel_case(class_name)
        if model_var == "user":
            model_var = "model"

        user_class: str = join_namespace(self._config.model_namespace, "User")
        model_class: str = join_namespace(model_namespace, class_name)
        imports: List[str] = [f"use {model_class};"]
        if user_class != model_class:
            imports.append(f"use {user_class};")

        values: Dict[str, str] = {
            "namespace": self._config.policy_namespace,
            "modelNamespace": model_namespace,
            "model": class_name,
            "modelVariable": model_var,
            "imports": "\n".join(sorted(imports)),
        }
        content: str = self._render(values)
        logger.debug("Generated policy for '%s'.", class_name)
        return content


__all__: List[str] = [
    "ArtifactGenerator",
    "FactoryGenerator",
    "ModelGenerator",
    "ObserverGenerator",
    "PolicyGenerator",
    "ResourceGenerator",
    "related_model_name",
    "relationship_method_name",
    "relationships_from_foreign_keys",
]

logger.debug("modelgen.templates loaded.")
