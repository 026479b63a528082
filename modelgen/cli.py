# File: modelgen/cli.py
"""
ModelGen - Command-Line Interface
==================================

Thin ``argparse`` front end over :class:`modelgen.generator.GenerationPipeline`.

Usage examples::

    # Models for every table of the default connection
    python -m modelgen --config modelgen.yaml --output ./app

    # One SQLite file, no config file needed
    python -m modelgen --driver sqlite --database ./database.sqlite -o ./out \\
        --with-factories --with-relationships --with-rules

    # Only two tables, everything, without touching the disk
    python -m modelgen -c modelgen.yaml -o ./out -t users -t posts \\
        --all --dry-run -v

Exit codes:
    0 - success
    1 - configuration error
    2 - schema error
    3 - generation error
    4 - input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from modelgen.exceptions import (
    ConfigurationError,
    InvalidInputError,
    ModelGenError,
    SchemaError,
)

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_CONFIGURATION_ERROR: int = 1
EXIT_SCHEMA_ERROR: int = 2
EXIT_GENERATION_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root modelgen logger based on verbosity level.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("modelgen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from modelgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="modelgen",
        description=(
            "ModelGen - Eloquent model generator.\n\n"
            "Reads the schema of a SQLite, MySQL or PostgreSQL database and "
            "writes models, factories, observers, resources and policies."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -c modelgen.yaml -o ./app\n"
            "  %(prog)s --driver sqlite --database db.sqlite -o ./out --with-factories\n"
            "  %(prog)s -c modelgen.yaml -o ./out -t users --all --dry-run\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"ModelGen v{__version__}",
    )

    # --- Source ---
    source_group = parser.add_argument_group("schema source")
    source_group.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Configuration file (JSON or YAML).",
    )
    source_group.add_argument(
        "--connection",
        type=str,
        default=None,
        metavar="NAME",
        help="Connection to inspect (defaults to default_connection).",
    )
    source_group.add_argument(
        "--driver",
        type=str,
        default=None,
        choices=["sqlite", "mysql", "pgsql"],
        help="Override the driver of the selected connection.",
    )
    source_group.add_argument(
        "--database",
        type=str,
        default=None,
        metavar="NAME",
        help="Override the database name (or SQLite file) of the selected connection.",
    )
    source_group.add_argument(
        "-t", "--table",
        dest="tables",
        action="append",
        default=[],
        metavar="TABLE",
        help="Only generate for this table (repeatable).",
    )

    # --- Output ---
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Project root the artifact paths are resolved against.",
    )

    # --- Artifacts ---
    artifact_group = parser.add_argument_group("artifacts")
    for flag, help_text in (
        ("--with-relationships", "Add belongsTo relations (and resource relations)."),
        ("--with-factories", "Generate model factories."),
        ("--with-rules", "Add a static rules() method to models."),
        ("--with-resources", "Generate API resources."),
        ("--with-collections", "Generate resource collections."),
        ("--with-policies", "Generate authorization policies."),
    ):
        artifact_group.add_argument(flag, action="store_true", default=False, help=help_text)

    # Tri-state: unset means "use the config property".
    for flag, help_text in (
        ("--with-scopes", "Add query scopes (default: auto_generate_scopes)."),
        ("--with-events", "Add event handlers (default: generate_event_methods)."),
        ("--with-observers", "Generate observers (default: generate_observers)."),
    ):
        artifact_group.add_argument(flag, action="store_true", default=None, help=help_text)

    artifact_group.add_argument(
        "--all",
        dest="with_all",
        action="store_true",
        default=False,
        help="Enable every artifact and model section.",
    )

    # --- Behaviour ---
    behaviour_group = parser.add_argument_group("behaviour flags")
    behaviour_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Run the full pipeline but don't write files to disk.",
    )
    behaviour_group.add_argument(
        "--skip-failed-tables",
        action="store_true",
        default=False,
        help="Record failing tables and continue instead of aborting.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress the summary report.",
    )

    return parser


# ---------------------------------------------------------------------------
# Config assembly
# ---------------------------------------------------------------------------


def _load_config(args: argparse.Namespace) -> "GeneratorConfig":
    """Load the config file (if any) and apply --connection/--driver/--database."""
    from modelgen.models import GeneratorConfig

    config: GeneratorConfig = (
        GeneratorConfig.from_file(Path(args.config).resolve())
        if args.config
        else GeneratorConfig()
    )

    if args.driver is None and args.database is None:
        return config

    name: str = args.connection or config.default_connection
    connections: Dict[str, Dict[str, Any]] = {
        key: settings.model_dump() for key, settings in config.connections.items()
    }
    entry: Dict[str, Any] = connections.get(name, {})
    if args.driver is not None:
        entry["driver"] = args.driver
    if args.database is not None:
        entry["database"] = args.database
    if "driver" not in entry:
        raise ConfigurationError(
            f"Connection '{name}' is not configured; pass --driver to define it."
        )
    connections[name] = entry
    logger.info("Connection '%s' overridden from the command line.", name)
    return config.with_overrides(connections=connections, default_connection=name)


def _build_options(args: argparse.Namespace, output_dir: Path) -> "GenerationOptions":
    from modelgen.generator import GenerationOptions

    everything: bool = args.with_all
    return GenerationOptions(
        connection=args.connection,
        output_dir=output_dir,
        tables=tuple(args.tables),
        with_relationships=args.with_relationships or everything,
        with_factories=args.with_factories or everything,
        with_rules=args.with_rules or everything,
        with_scopes=True if everything else args.with_scopes,
        with_events=True if everything else args.with_events,
        with_observers=True if everything else args.with_observers,
        with_resources=args.with_resources or everything,
        with_collections=args.with_collections or everything,
        with_policies=args.with_policies or everything,
        dry_run=args.dry_run,
        skip_failed_tables=args.skip_failed_tables,
    )


def _exit_code_for(exc: ModelGenError) -> int:
    if isinstance(exc, ConfigurationError):
        return EXIT_CONFIGURATION_ERROR
    if isinstance(exc, SchemaError):
        return EXIT_SCHEMA_ERROR
    if isinstance(exc, InvalidInputError):
        return EXIT_INPUT_ERROR
    return EXIT_GENERATION_ERROR


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def _run_generation(args: argparse.Namespace, output_dir: Path) -> int:
    """
    Run the full generation pipeline.

    Returns the appropriate exit code.
    """
    from modelgen.generator import GenerationPipeline, GenerationReport

    try:
        config = _load_config(args)
        pipeline: GenerationPipeline = GenerationPipeline(config)
        if args.dry_run:
            logger.info("Dry-run mode: files will not be written to disk.")
        report: GenerationReport = pipeline.run(_build_options(args, output_dir))
    except ModelGenError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return _exit_code_for(exc)

    if not args.quiet:
        print(report.summary())

    return EXIT_SUCCESS if report.success else EXIT_GENERATION_ERROR


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if args.output is None:
        logger.error("Output directory is required. Use -o/--output.")
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_INPUT_ERROR)

    if args.config is None and args.driver is None:
        logger.error("Nothing to inspect. Use -c/--config or --driver/--database.")
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_INPUT_ERROR)

    output_dir: Path = Path(args.output).resolve()

    logger.info("Config:  %s", args.config or "<command line>")
    logger.info("Output:  %s", output_dir)
    logger.info("Tables:  %s", ", ".join(args.tables) or "<all>")

    exit_code: int = _run_generation(args, output_dir)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)

    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_CONFIGURATION_ERROR",
    "EXIT_SCHEMA_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("modelgen.cli loaded.")
