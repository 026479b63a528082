# File: modelgen/events.py
"""
ModelGen - Model Event Generator
=================================
Inline lifecycle hooks for generated models: one ``handle<Event>()`` stub
per event and an optional ``boot()`` method wiring each stub to
``static::<event>(...)``.

The same event-list rules drive observers (see ``ObserverGenerator``),
only the property names differ.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence

from modelgen.models import DEFAULT_MODEL_EVENTS, GeneratorConfig
from modelgen.utils import to_camel_case, to_studly_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.events")

SOFT_DELETE_EVENTS: Sequence[str] = ("restoring", "restored")

EVENT_COMMENTS: Dict[str, str] = {
    "creating": 'Handle the model "creating" event.',
    "created": 'Handle the model "created" event.',
    "updating": 'Handle the model "updating" event.',
    "updated": 'Handle the model "updated" event.',
    "saving": 'Handle the model "saving" event.',
    "saved": 'Handle the model "saved" event.',
    "deleting": 'Handle the model "deleting" event.',
    "deleted": 'Handle the model "deleted" event.',
    "restoring": 'Handle the model "restoring" event.',
    "restored": 'Handle the model "restored" event.',
    "force_deleting": 'Handle the model "force deleting" event.',
    "force_deleted": 'Handle the model "force deleted" event.',
    "retrieved": 'Handle the model "retrieved" event.',
    "booted": 'Handle the model "booted" event.',
}

# Events that have no static::<event>() registrar on the model.
_UNREGISTRABLE_EVENTS: FrozenSet[str] = frozenset({"booted"})


def event_comment(event: str) -> str:
    """Docblock line for *event*; unknown events get the generic wording."""
    return EVENT_COMMENTS.get(event, f'Handle the model "{event}" event.')


def event_method_name(event: str) -> str:
    """``force_deleting`` -> ``handleForceDeleting``."""
    return "handle" + to_studly_case(event)


def build_event_list(
    base_events: Iterable[str],
    excluded: Iterable[str],
    has_soft_deletes: bool,
    include_retrieved: bool,
    include_booted: bool,
) -> List[str]:
    """
    Base events minus exclusions, then restoring/restored for soft-delete
    models, then the optional events.  Order is kept and every event
    appears once.
    """
    skip = set(excluded)
    events: List[str] = [e for e in base_events if e not in skip]
    if has_soft_deletes:
        events.extend(SOFT_DELETE_EVENTS)
    if include_retrieved:
        events.append("retrieved")
    if include_booted:
        events.append("booted")

    unique: List[str] = []
    for event in events:
        if event not in unique:
            unique.append(event)
    return unique


def _string_list(value: Any, fallback: Sequence[str]) -> List[str]:
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return list(value)
    return list(fallback)


class EventsGenerator:
    """
    Generates inline event-handling code for models.

    Args:
        config: Generator configuration (``model_events`` and friends).
    """

    def __init__(self, config: Optional[GeneratorConfig] = None) -> None:
        self._config: GeneratorConfig = config or GeneratorConfig()
        logger.debug("EventsGenerator initialised.")

    def get_model_events(self, has_soft_deletes: bool = False) -> List[str]:
        """Events the model should handle, honouring the configured toggles."""
        return build_event_list(
            _string_list(self._config.get_model_property("model_events"), DEFAULT_MODEL_EVENTS),
            _string_list(self._config.get_model_property("exclude_model_events"), ()),
            has_soft_deletes,
            bool(self._config.get_model_property("include_retrieved_event", False)),
            bool(self._config.get_model_property("include_booted_event", False)),
        )

    def generate_event_methods(
        self,
        model_name: str,
        has_soft_deletes: bool = False,
    ) -> List[str]:
        """One ``handle<Event>()`` method per event."""
        use_stubs: bool = bool(self._config.get_model_property("event_method_stubs", True))
        methods: List[str] = [
            self._event_method(event, use_stubs)
            for event in self.get_model_events(has_soft_deletes)
        ]
        logger.debug("Generated %d event method(s) for '%s'.", len(methods), model_name)
        return methods

    def generate_boot_method(
        self,
        model_name: str,
        has_soft_deletes: bool = False,
    ) -> str:
        """``boot()`` registering each handler; empty when there is nothing to wire."""
        registrations: List[str] = []
        for event in self.get_model_events(has_soft_deletes):
            if event in _UNREGISTRABLE_EVENTS:
                continue
            registrations.extend([
                f"        static::{to_camel_case(event)}(function ($model) {{",
                f"            $model->{event_method_name(event)}();",
                "        });",
            ])
        if not registrations:
            return ""

        lines: List[str] = [
            "    /**",
            '     * The "booting" method of the model.',
            "     */",
            "    protected static function boot(): void",
            "    {",
            "        parent::boot();",
            "",
            *registrations,
            "    }",
        ]
        logger.debug("Generated boot() for '%s'.", model_name)
        return "\n".join(lines)

    def _event_method(self, event: str, use_stubs: bool) -> str:
        body: str = f"// TODO: Implement {event} event logic" if use_stubs else "//"
        lines: List[str] = [
            "    /**",
            f"     * {event_comment(event)}",
            "     */",
            f"    public function {event_method_name(event)}(): void",
            "    {",
            f"        {body}",
            "    }",
        ]
        return "\n".join(lines)


__all__: List[str] = [
    "EVENT_COMMENTS",
    "EventsGenerator",
    "SOFT_DELETE_EVENTS",
    "build_event_list",
    "event_comment",
    "event_method_name",
]

logger.debug("modelgen.events loaded.")
