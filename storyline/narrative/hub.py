"""Handlebars rendering of the hub fragment."""

import logging
from collections.abc import Callable, Iterable
from typing import Any

import pybars

from .fragments import END_STORY_LABEL, THREADS

logger = logging.getLogger(__name__)

# Triple-stash: labels are authored markup text and must reach the parser verbatim.
HUB_TEMPLATE = """<character name="NARRATOR">
  <say>Who do you sit with?</say>
</character>

<choices>
{{#each choices}}  <choice id="{{{id}}}"{{#if disabled}} disabled="true"{{/if}}>{{{text}}}</choice>
{{/each}}  <choice id="end_story">{{{end_label}}}</choice>
</choices>"""

COMPLETED_SUFFIX = " ✅ (Completed)"

_compiler = pybars.Compiler()
_template: Callable | None = None


def _compiled() -> Callable:
    global _template
    if _template is None:
        _template = _compiler.compile(HUB_TEMPLATE)
    return _template


def hub_entries(completed_threads: Iterable[str]) -> list[dict[str, Any]]:
    """One entry per thread in authored order; completed ones are disabled in place."""
    done = set(completed_threads)
    entries: list[dict[str, Any]] = []
    for thread in THREADS:
        if thread.character in done:
            entries.append({
                "id": f"completed_{thread.character}",
                "text": thread.hub_label + COMPLETED_SUFFIX,
                "disabled": True,
            })
        else:
            entries.append({"id": thread.talk_id, "text": thread.hub_label, "disabled": False})
    return entries


def render_hub(completed_threads: Iterable[str] = ()) -> str:
    """Render the hub fragment with finished threads shown as disabled entries."""
    entries = hub_entries(completed_threads)
    logger.debug("Rendering hub, disabled: %s", [e["id"] for e in entries if e["disabled"]])
    return str(_compiled()({"choices": entries, "end_label": END_STORY_LABEL}))
