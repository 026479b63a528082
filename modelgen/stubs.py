# File: modelgen/stubs.py
"""
ModelGen - Stub Loading & Rendering
====================================
Every artifact is rendered from a ``.stub`` template holding
``{{ placeholder }}`` markers.  Generators build a plain ``dict`` of
placeholder -> text and call :func:`render`; they never format the outer
document themselves.

Lookup order for ``<name>.stub``:
    1. the configured ``stub_path`` directory (project overrides)
    2. the templates bundled in ``modelgen/resources``
"""

from __future__ import annotations

import functools
import logging
import re
from importlib import resources
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from modelgen.exceptions import ArtifactError
from modelgen.utils import collapse_blank_lines

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.stubs")

_PLACEHOLDER_RE: re.Pattern[str] = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")
_BLANK_AFTER_BRACE_RE: re.Pattern[str] = re.compile(r"([{\[]\n)(?:[ \t]*\n)+")
_BLANK_BEFORE_BRACE_RE: re.Pattern[str] = re.compile(r"\n(?:[ \t]*\n)+([ \t]*[}\]])")

STUB_SUFFIX: str = ".stub"
_RESOURCE_PACKAGE: str = "modelgen"
_RESOURCE_DIR: str = "resources"


@functools.lru_cache(maxsize=None)
def _builtin_stub(name: str) -> Optional[str]:
    entry = (
        resources.files(_RESOURCE_PACKAGE).joinpath(_RESOURCE_DIR).joinpath(name + STUB_SUFFIX)
    )
    if not entry.is_file():
        return None
    return entry.read_text(encoding="utf-8")


class StubLoader:
    """
    Resolve stub templates by name.

    Args:
        stub_path: Optional directory of project overrides.
        fallback_to_builtin: When False only *stub_path* is searched.
    """

    def __init__(
        self,
        stub_path: Optional[Union[str, Path]] = None,
        fallback_to_builtin: bool = True,
    ) -> None:
        self._stub_path: Optional[Path] = Path(stub_path) if stub_path else None
        self._fallback: bool = fallback_to_builtin
        logger.debug(
            "StubLoader initialised (stub_path=%s, fallback=%s).",
            self._stub_path,
            self._fallback,
        )

    def load(self, name: str) -> str:
        """
        Return the raw template text for *name* (without the suffix).

        Raises:
            ArtifactError: If no template with that name can be found.
        """
        if self._stub_path is not None:
            candidate: Path = self._stub_path / f"{name}{STUB_SUFFIX}"
            if candidate.is_file():
                logger.debug("Using stub override %s", candidate)
                try:
                    return candidate.read_text(encoding="utf-8")
                except OSError as exc:
                    raise ArtifactError(f"Cannot read stub {candidate}: {exc}") from exc

        if self._fallback:
            content: Optional[str] = _builtin_stub(name)
            if content is not None:
                return content

        searched: str = str(self._stub_path) if self._stub_path else "built-in stubs"
        raise ArtifactError(f"Stub '{name}{STUB_SUFFIX}' not found in {searched}.")


def render(template: str, values: Mapping[str, str]) -> str:
    """
    Substitute ``{{ key }}`` markers with *values* and tidy blank lines.

    Unknown placeholders are left untouched so project stubs can carry
    markers of their own.
    """
    missing: List[str] = []

    def _replace(match: re.Match[str]) -> str:
        key: str = match.group(1)
        if key in values:
            return str(values[key])
        missing.append(key)
        return match.group(0)

    output: str = _PLACEHOLDER_RE.sub(_replace, template)
    if missing:
        logger.debug("Unresolved placeholders left in output: %s", sorted(set(missing)))
    output = _BLANK_AFTER_BRACE_RE.sub(r"\1", output)
    output = _BLANK_BEFORE_BRACE_RE.sub(r"\n\1", output)
    return collapse_blank_lines(output)


def render_stub(loader: StubLoader, name: str, values: Dict[str, str]) -> str:
    """Load stub *name* through *loader* and render it."""
    return render(loader.load(name), values)


__all__: List[str] = ["StubLoader", "STUB_SUFFIX", "render", "render_stub"]

logger.debug("modelgen.stubs loaded.")
