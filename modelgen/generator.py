# File: modelgen/generator.py
"""
ModelGen - Generation Pipeline (Orchestrator)
==============================================
Connects the schema readers to the artifact generators and the filesystem:

    connection -> get_tables -> per table (columns, foreign keys, indexes)
               -> model / factory / observer / resource / policy text
               -> files under the output directory

``GenerationPipeline`` holds no inference logic of its own; it iterates
tables, calls readers and generators, writes files and records a
``GenerationReport``.

Error policy:
    - By default the run aborts on the first error; the error is logged and
      re-raised so callers (the CLI) can map it to an exit code.
    - With ``skip_failed_tables`` the failing table is recorded in the
      report and the run continues with the next one.
    - Engines are always disposed at the end of a run.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from modelgen.exceptions import ArtifactError, ModelGenError, SchemaError
from modelgen.models import Column, ForeignKey, GeneratorConfig, Index, Table
from modelgen.schema import ConnectionManager, SchemaReader, reader_for_connection
from modelgen.templates import (
    FactoryGenerator,
    ModelGenerator,
    ObserverGenerator,
    PolicyGenerator,
    ResourceGenerator,
    relationships_from_foreign_keys,
)
from modelgen.utils import Timer, count_lines, table_to_model_name, to_studly_case, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.generator")


# ---------------------------------------------------------------------------
# Options & report
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class GenerationOptions:
    """
    What to generate and where.

    ``with_scopes``, ``with_events`` and ``with_observers`` default to the
    matching config properties when left as ``None``.
    """

    connection: Optional[str] = None
    output_dir: Path = field(default_factory=lambda: Path("."))
    tables: Tuple[str, ...] = ()
    with_relationships: bool = False
    with_factories: bool = False
    with_rules: bool = False
    with_scopes: Optional[bool] = None
    with_events: Optional[bool] = None
    with_observers: Optional[bool] = None
    with_resources: bool = False
    with_collections: bool = False
    with_policies: bool = False
    dry_run: bool = False
    skip_failed_tables: bool = False


@dataclass(slots=True)
class GeneratedFile:
    """One artifact produced for a table."""

    kind: str
    table: str
    path: Path
    lines: int = 0
    bytes_written: int = 0


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Outcome of ``GenerationPipeline.run()``."""

    success: bool = False
    connection: str = ""
    output_directory: str = ""
    dry_run: bool = False

    tables_processed: List[str] = field(default_factory=list)
    files: List[GeneratedFile] = field(default_factory=list)
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    skipped_tables: List[str] = field(default_factory=list)
    total_elapsed_seconds: float = 0.0

    @property
    def total_files(self) -> int:
        return len(self.files)

    @property
    def total_lines(self) -> int:
        return sum(f.lines for f in self.files)

    def files_of_kind(self, kind: str) -> List[GeneratedFile]:
        return [f for f in self.files if f.kind == kind]

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "SUCCESS" if self.success else "FAILED"
        if self.dry_run:
            status += " (dry run)"
        lines.append("=" * 60)
        lines.append("  ModelGen - Generation Report")
        lines.append("=" * 60)
        lines.append(f"  Status:           {status}")
        lines.append(f"  Connection:       {self.connection}")
        lines.append(f"  Output:           {self.output_directory}")
        lines.append(f"  Tables processed: {len(self.tables_processed)}")
        lines.append(f"  Files generated:  {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")

        if self.step_metrics:
            lines.append("-" * 60)
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                mark: str = "+" if step.success else "x"
                lines.append(
                    f"    {mark} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        if self.errors:
            lines.append("-" * 60)
            lines.append(f"  Errors ({len(self.errors)}):")
            for err in self.errors:
                lines.append(f"    x {err}")

        if self.skipped_tables:
            lines.append("-" * 60)
            lines.append(f"  Skipped Tables ({len(self.skipped_tables)}):")
            for name in self.skipped_tables:
                lines.append(f"    - {name}")

        lines.append("=" * 60)
        return "\n".join(lines)


@dataclass(slots=True)
class _TableSchema:
    table: Table
    columns: List[Column]
    foreign_keys: List[ForeignKey]
    indexes: List[Index]


# ---------------------------------------------------------------------------
# GenerationPipeline
# ---------------------------------------------------------------------------


class GenerationPipeline:
    """
    Orchestrates schema reading and artifact generation for one connection.

    Usage::

        pipeline = GenerationPipeline(GeneratorConfig.from_file("modelgen.yaml"))
        report = pipeline.run(GenerationOptions(output_dir=Path("out"),
                                                with_factories=True))
        print(report.summary())
    """

    def __init__(
        self,
        config: GeneratorConfig,
        connections: Optional[ConnectionManager] = None,
    ) -> None:
        self._config: GeneratorConfig = config
        self._connections: ConnectionManager = connections or ConnectionManager(
            config.connections
        )
        self._models: ModelGenerator = ModelGenerator(config)
        self._factories: FactoryGenerator = FactoryGenerator(config)
        self._observers: ObserverGenerator = ObserverGenerator(config)
        self._resources: ResourceGenerator = ResourceGenerator(config)
        self._policies: PolicyGenerator = PolicyGenerator(config)
        logger.debug(
            "GenerationPipeline initialised: %d connection(s).",
            len(self._connections.names),
        )

    # -----------------------------------------------------------------
    # Public
    # -----------------------------------------------------------------

    def run(self, options: GenerationOptions) -> GenerationReport:
        """
        Generate every requested artifact for every table of the connection.

        Raises:
            ConfigurationError: Unknown connection or missing driver package.
            SchemaError: Unreadable schema (unless skipped per table).
            ModelGenError: Any other generation failure (unless skipped).
        """
        connection: str = options.connection or self._config.default_connection
        report: GenerationReport = GenerationReport(
            connection=connection,
            output_directory=str(Path(options.output_dir).resolve()),
            dry_run=options.dry_run,
        )
        pipeline_start: float = time.perf_counter()

        try:
            reader: SchemaReader = reader_for_connection(self._connections, connection)
            tables: List[Table] = self._step_list_tables(reader, connection, options, report)
            with_observers: bool = (
                bool(self._config.get_observer_property("generate_observers", False))
                if options.with_observers is None
                else options.with_observers
            )
            for table in tables:
                self._process_table(reader, connection, table, options, with_observers, report)
        except ModelGenError as exc:
            report.errors.append(str(exc))
            logger.error("Generation aborted: %s", exc, exc_info=True)
            self._finalise_report(report, time.perf_counter() - pipeline_start)
            raise
        finally:
            self._connections.dispose()

        return self._finalise_report(report, time.perf_counter() - pipeline_start)

    # -----------------------------------------------------------------
    # Pipeline steps
    # -----------------------------------------------------------------

    def _step_list_tables(
        self,
        reader: SchemaReader,
        connection: str,
        options: GenerationOptions,
        report: GenerationReport,
    ) -> List[Table]:
        with Timer("list_tables") as t:
            tables: List[Table] = reader.get_tables(connection, self._config.excluded_tables)
            if options.tables:
                wanted = set(options.tables)
                unknown: List[str] = sorted(wanted - {tbl.name for tbl in tables})
                if unknown:
                    raise SchemaError(
                        f"Table(s) not found on connection '{connection}': {', '.join(unknown)}"
                    )
                tables = [tbl for tbl in tables if tbl.name in wanted]

        report.step_metrics.append(GenerationStepMetric(
            step_name="List Tables",
            success=bool(tables),
            elapsed_seconds=t.elapsed,
            detail=f"{len(tables)} table(s)",
        ))
        if not tables:
            raise SchemaError(f"No tables found on connection '{connection}'.")
        logger.info("[%s] Processing %d table(s).", connection, len(tables))
        return tables

    def _process_table(
        self,
        reader: SchemaReader,
        connection: str,
        table: Table,
        options: GenerationOptions,
        with_observers: bool,
        report: GenerationReport,
    ) -> None:
        failure: Optional[ModelGenError] = None
        files: List[GeneratedFile] = []
        with Timer(f"table:{table.name}") as t:
            try:
                schema: _TableSchema = self._read_table(reader, connection, table)
                files = self._generate_table(connection, schema, options, with_observers)
            except ModelGenError as exc:
                if not options.skip_failed_tables:
                    raise
                failure = exc

        if failure is not None:
            report.errors.append(f"{table.name}: {failure}")
            report.skipped_tables.append(table.name)
            report.step_metrics.append(GenerationStepMetric(
                step_name=f"Table {table.name}",
                success=False,
                elapsed_seconds=t.elapsed,
                detail=str(failure),
            ))
            logger.error("Skipping table '%s': %s", table.name, failure)
            return

        report.files.extend(files)
        report.tables_processed.append(table.name)
        report.step_metrics.append(GenerationStepMetric(
            step_name=f"Table {table.name}",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=f"{len(files)} file(s)",
        ))
        logger.info(
            "Table '%s': %d file(s) in %.3fs.", table.name, len(files), t.elapsed
        )

    def _read_table(self, reader: SchemaReader, connection: str, table: Table) -> _TableSchema:
        columns: List[Column] = reader.get_table_columns(connection, table.name)
        if not columns:
            raise SchemaError(f"Table '{table.name}' has no columns or does not exist.")
        return _TableSchema(
            table=table,
            columns=columns,
            foreign_keys=reader.get_foreign_keys(connection, table.name),
            indexes=reader.get_table_indexes(connection, table.name),
        )

    def _generate_table(
        self,
        connection: str,
        schema: _TableSchema,
        options: GenerationOptions,
        with_observers: bool,
    ) -> List[GeneratedFile]:
        cfg: GeneratorConfig = self._config
        root: Path = Path(options.output_dir)
        table_name: str = schema.table.name
        model_name: str = table_to_model_name(table_name)
        outputs: List[Tuple[str, Path, str]] = []

        outputs.append((
            "model",
            root / cfg.model_path / f"{model_name}.php",
            self._models.generate(
                model_name,
                table_name,
                connection,
                schema.columns,
                schema.foreign_keys,
                with_relationships=options.with_relationships,
                with_rules=options.with_rules,
                with_scopes=options.with_scopes,
                with_events=options.with_events,
                indexes=schema.indexes,
            ),
        ))

        if options.with_factories:
            outputs.append((
                "factory",
                root / cfg.factory_path / f"{model_name}Factory.php",
                self._factories.generate(model_name, table_name, schema.columns),
            ))

        if with_observers:
            observer_dir: Path = root / cfg.observer_path
            if cfg.get_observer_property("observer_connection_based", True):
                observer_dir = observer_dir / to_studly_case(connection)
            outputs.append((
                "observer",
                observer_dir / f"{model_name}Observer.php",
                self._observers.generate(
                    model_name,
                    cfg.model_namespace,
                    connection,
                    schema.columns,
                ),
            ))

        if options.with_resources or options.with_collections:
            relationships = (
                relationships_from_foreign_keys(schema.foreign_keys, cfg.model_namespace)
                if options.with_relationships
                else []
            )
            model_class: str = f"{cfg.model_namespace}\\{model_name}"
            if options.with_resources:
                outputs.append((
                    "resource",
                    root / cfg.resource_path / f"{model_name}Resource.php",
                    self._resources.generate(model_class, schema.columns, relationships),
                ))
            if options.with_collections:
                outputs.append((
                    "collection",
                    root / cfg.resource_path / f"{model_name}Collection.php",
                    self._resources.generate(
                        model_class, schema.columns, relationships, is_collection=True
                    ),
                ))

        if options.with_policies:
            outputs.append((
                "policy",
                root / cfg.policy_path / f"{model_name}Policy.php",
                self._policies.generate(model_name),
            ))

        return [
            self._emit(kind, table_name, path, content, options.dry_run)
            for kind, path, content in outputs
        ]

    def _emit(
        self,
        kind: str,
        table_name: str,
        path: Path,
        content: str,
        dry_run: bool,
    ) -> GeneratedFile:
        written: int = 0
        if dry_run:
            logger.info("[dry-run] Would write %s", path)
        else:
            try:
                written = write_file(path, content)
            except OSError as exc:
                raise ArtifactError(f"Cannot write {path}: {exc}") from exc
        return GeneratedFile(
            kind=kind,
            table=table_name,
            path=path,
            lines=count_lines(content),
            bytes_written=written,
        )

    # -----------------------------------------------------------------
    # Internal: finalise report
    # -----------------------------------------------------------------

    def _finalise_report(
        self,
        report: GenerationReport,
        total_elapsed: float,
    ) -> GenerationReport:
        """Set final status and timing on the report."""
        report.total_elapsed_seconds = total_elapsed
        report.success = not report.errors

        if report.success:
            logger.info(
                "Generation complete: %d file(s) for %d table(s) in %.3fs.",
                report.total_files,
                len(report.tables_processed),
                total_elapsed,
            )
        else:
            logger.warning(
                "Generation finished with %d error(s) in %.3fs.",
                len(report.errors),
                total_elapsed,
            )
        return report


__all__: List[str] = [
    "GeneratedFile",
    "GenerationOptions",
    "GenerationPipeline",
    "GenerationReport",
    "GenerationStepMetric",
]

logger.debug("modelgen.generator loaded.")
