# File: modelgen/exceptions.py
"""
ModelGen - Error Taxonomy
==========================
Every failure the generation core reports is one of four typed errors.

    ConfigurationError  unknown/unsupported connection or driver, bad config file
    SchemaError         missing database, unreadable catalog, unknown table
    InvalidInputError   structurally invalid generator input (empty names)
    ArtifactError       a required template resource is missing

Schema readers and artifact generators raise these immediately.  Inference
helpers never raise for configuration problems; they fall back to defaults.
"""

from __future__ import annotations

from typing import List, Optional


class ModelGenError(Exception):
    """Base class for all modelgen errors."""


class ConfigurationError(ModelGenError):
    """Raised when a connection, driver or config file cannot be used."""


class SchemaError(ModelGenError):
    """
    Raised when the inspected database or one of its tables cannot be read.

    ``path`` is set when the failure is a missing SQLite database file so the
    caller can report the exact location.
    """

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path: Optional[str] = path


class InvalidInputError(ModelGenError):
    """Raised by a generator when its input is structurally invalid."""


class ArtifactError(ModelGenError):
    """Raised when a template (stub) resource cannot be found."""


__all__: List[str] = [
    "ModelGenError",
    "ConfigurationError",
    "SchemaError",
    "InvalidInputError",
    "ArtifactError",
]
