# File: modelgen/utils.py
"""
ModelGen - Utility Functions & Helpers
=======================================
Naming transformations, PHP literal formatting, file I/O and timing helpers
used throughout the generation pipeline.

- Every string-conversion function is wrapped in ``@lru_cache(maxsize=None)``;
  the same column and table names are converted many times per run.
- File writes go through a temporary file and an atomic rename.
"""

from __future__ import annotations

import functools
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_SPLIT_WORDS_RE: re.Pattern[str] = re.compile(
    r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]|\d+"
)
_BLANK_LINES_RE: re.Pattern[str] = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")

# Words that read the same in singular and plural form
_UNCOUNTABLE: FrozenSet[str] = frozenset({
    "data", "equipment", "information", "media", "metadata", "money",
    "news", "series", "species", "feedback", "software", "audio",
})

_IRREGULAR_PLURALS: Dict[str, str] = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "tooth": "teeth",
    "foot": "feet",
    "index": "indices",
    "matrix": "matrices",
    "vertex": "vertices",
    "axis": "axes",
    "crisis": "crises",
    "analysis": "analyses",
    "status": "statuses",
    "address": "addresses",
}

_IRREGULAR_SINGULARS: Dict[str, str] = {v: k for k, v in _IRREGULAR_PLURALS.items()}


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def _extract_words(name: str) -> Tuple[str, ...]:
    """Split any casing style into a tuple of lowercase words."""
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", name)
    words: List[str] = _SPLIT_WORDS_RE.findall(cleaned)
    return tuple(w.lower() for w in words if w)


@functools.lru_cache(maxsize=None)
def to_studly_case(name: str) -> str:
    """
    Convert any string to StudlyCase (PascalCase).

    Examples:
        >>> to_studly_case("is_published")
        'IsPublished'
        >>> to_studly_case("notFeatured")
        'NotFeatured'
    """
    if not name:
        return ""
    return "".join(word.capitalize() for word in _extract_words(name))


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """
    Convert any string to camelCase.

    Examples:
        >>> to_camel_case("author_id")
        'authorId'
        >>> to_camel_case("BlogPost")
        'blogPost'
    """
    words: Tuple[str, ...] = _extract_words(name) if name else ()
    if not words:
        return ""
    return words[0] + "".join(w.capitalize() for w in words[1:])


def _match_case(original: str, replacement: str) -> str:
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


@functools.lru_cache(maxsize=None)
def to_singular(name: str) -> str:
    """
    Naive English singularisation, applied to the last word only
    (``blog_posts`` -> ``blog_post``, ``categories`` -> ``category``).
    """
    if not name:
        return ""

    head, sep, word = name.rpartition("_")
    lower: str = word.lower()

    if lower in _UNCOUNTABLE:
        singular: str = word
    elif lower in _IRREGULAR_SINGULARS:
        singular = _match_case(word, _IRREGULAR_SINGULARS[lower])
    elif lower.endswith("ies") and len(word) > 3:
        singular = word[:-3] + "y"
    elif lower.endswith(("sses", "shes", "ches", "xes", "zes")):
        singular = word[:-2]
    elif lower.endswith("oes") and len(word) > 3:
        singular = word[:-2]
    elif lower.endswith("s") and not lower.endswith(("ss", "us", "is")):
        singular = word[:-1]
    else:
        singular = word

    return f"{head}{sep}{singular}"


@functools.lru_cache(maxsize=None)
def table_to_model_name(table_name: str) -> str:
    """``blog_posts`` -> ``BlogPost``."""
    return to_studly_case(to_singular(table_name))


def class_basename(class_name: str) -> str:
    """``App\\Models\\Blog\\Post`` -> ``Post``."""
    return class_name.replace("/", "\\").rsplit("\\", 1)[-1]


def class_namespace(class_name: str) -> str:
    """``Blog\\Post`` -> ``Blog``; an unqualified name has no namespace."""
    normalised: str = class_name.replace("/", "\\")
    return normalised.rsplit("\\", 1)[0] if "\\" in normalised else ""


def join_namespace(*parts: str) -> str:
    """Join namespace segments, ignoring empty ones."""
    return "\\".join(p.strip("\\") for p in parts if p and p.strip("\\"))


# ---------------------------------------------------------------------------
# PHP literal formatting
# ---------------------------------------------------------------------------


def php_string(value: Any) -> str:
    """Single-quoted PHP string literal with ``\\`` and ``'`` escaped."""
    escaped: str = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def php_value(value: Any) -> str:
    """Render a Python scalar as a PHP literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    return php_string(value)


def php_list(items: Sequence[Any]) -> str:
    """Inline PHP array literal: ``['a', 'b']``."""
    return "[" + ", ".join(php_value(item) for item in items) + "]"


def php_array_block(
    entries: Sequence[str],
    level: int = 1,
    size: int = 4,
) -> str:
    """
    Multi-line PHP array whose *entries* are already rendered, e.g.
    ``["'name'", "'email'"]`` or ``["'active' => 'boolean'"]``.
    """
    if not entries:
        return "[]"
    inner: str = " " * (size * (level + 1))
    closing: str = " " * (size * level)
    body: str = "\n".join(f"{inner}{entry}," for entry in entries)
    return f"[\n{body}\n{closing}]"


def collapse_blank_lines(text: str) -> str:
    """Squash runs of blank lines into one and end with a single newline."""
    collapsed: str = _BLANK_LINES_RE.sub("\n\n", text)
    return collapsed.rstrip() + "\n"


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*.

    When *atomic* is True the content goes to a temporary sibling file first
    and is then renamed into place.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")

    if atomic:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(encoded)
            os.replace(tmp_path, str(path))
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("read schema") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "to_studly_case",
    "to_camel_case",
    "to_singular",
    "table_to_model_name",
    "class_basename",
    "class_namespace",
    "join_namespace",
    "php_string",
    "php_value",
    "php_list",
    "php_array_block",
    "collapse_blank_lines",
    "ensure_directory",
    "write_file",
    "count_lines",
    "Timer",
]

logger.debug("modelgen.utils loaded.")
