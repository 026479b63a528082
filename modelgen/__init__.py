"""
ModelGen - Eloquent Model Generator
====================================

Reads the schema of a SQLite, MySQL or PostgreSQL database and writes the
matching Laravel artifacts: models (casts, rules, relations, scopes, events),
factories, observers, API resources and collections, and policies.

Architecture overview::

    +--------------+     +--------------------+     +-----------------+
    |  CLI / Entry |---->| GenerationPipeline |---->| ModelGenerator  |
    |   (cli.py)   |     |   (generator.py)   |     | & friends       |
    +--------------+     +---------+----------+     | (templates.py)  |
                                   |                +--------+--------+
                      +------------+------------+            |
                      v            v            v            v
                +----------+ +-----------+ +-----------+ +---------+
                |  schema  | |  models   | | inference | |  stubs  |
                | readers  | |  (.py)    | |  (.py)    | |  (.py)  |
                +----------+ +-----------+ +-----------+ +---------+

Usage::

    # As a library
    from modelgen import GenerationOptions, GenerationPipeline, GeneratorConfig
    config = GeneratorConfig.from_file("modelgen.yaml")
    report = GenerationPipeline(config).run(GenerationOptions(output_dir=Path("app")))

    # From the command line
    python -m modelgen --config modelgen.yaml --output ./app --with-factories
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from modelgen.exceptions import (
    ArtifactError,
    ConfigurationError,
    InvalidInputError,
    ModelGenError,
    SchemaError,
)
from modelgen.models import (
    Column,
    ConnectionSettings,
    DatabaseDriver,
    ForeignKey,
    GeneratorConfig,
    Index,
    IndexType,
    RelationshipInfo,
    Table,
)
from modelgen.schema import (
    ConnectionManager,
    SchemaReader,
    create_schema_reader,
    reader_for_connection,
)
from modelgen.stubs import StubLoader, render
from modelgen.scopes import ScopeGenerator, ScopeMethod
from modelgen.events import EventsGenerator
from modelgen.templates import (
    FactoryGenerator,
    ModelGenerator,
    ObserverGenerator,
    PolicyGenerator,
    ResourceGenerator,
    relationships_from_foreign_keys,
)
from modelgen.generator import (
    GeneratedFile,
    GenerationOptions,
    GenerationPipeline,
    GenerationReport,
)

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Orchestrator
    "GenerationPipeline",
    "GenerationOptions",
    "GenerationReport",
    "GeneratedFile",
    # Errors
    "ModelGenError",
    "ConfigurationError",
    "SchemaError",
    "InvalidInputError",
    "ArtifactError",
    # Models
    "Column",
    "ConnectionSettings",
    "DatabaseDriver",
    "ForeignKey",
    "GeneratorConfig",
    "Index",
    "IndexType",
    "RelationshipInfo",
    "Table",
    # Schema
    "ConnectionManager",
    "SchemaReader",
    "create_schema_reader",
    "reader_for_connection",
    # Generators
    "ModelGenerator",
    "FactoryGenerator",
    "ObserverGenerator",
    "ResourceGenerator",
    "PolicyGenerator",
    "ScopeGenerator",
    "ScopeMethod",
    "EventsGenerator",
    "relationships_from_foreign_keys",
    # Templates
    "StubLoader",
    "render",
]
