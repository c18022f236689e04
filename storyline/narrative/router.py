"""Choice → next fragment routing.

route() is a pure function of (choice id, completed threads, character
progress): it never mutates its inputs and returns the fragment together with
the state the caller should carry into the next call.

Thread state per character: UNSET → L1 → L2 → CLOSE, never regressing.
Opening a thread ("talk_<c>") only reads progress; answering a stage-one
option moves the character to L2, a stage-two option to CLOSE. Returning to
the hub after a closing fragment marks the thread completed (once).
"""

import logging
from collections.abc import Iterable, Mapping

from storyline.models import STAGE_ORDER, Route

from .choices import ChoiceKind, parse_choice
from .fragments import END, get_fragment
from .hub import render_hub

logger = logging.getLogger(__name__)


def _advance(progress: dict[str, str], character: str, stage: str) -> None:
    """Move a character forward to `stage`; never moves backwards."""
    current = progress.get(character, "UNSET")
    if current not in STAGE_ORDER:
        current = "UNSET"
    if STAGE_ORDER.index(stage) > STAGE_ORDER.index(current):
        progress[character] = stage


def route(
    choice_id: str,
    completed_threads: Iterable[str] = (),
    character_progress: Mapping[str, str] | None = None,
) -> Route:
    """Resolve a selected choice into the next fragment and the updated session state."""
    completed: list[str] = []
    for character in completed_threads:
        if character not in completed:
            completed.append(character)
    progress = {
        c: s for c, s in (character_progress or {}).items() if s in STAGE_ORDER
    }

    parsed = parse_choice(choice_id)
    character = parsed.character
    final = False

    if parsed.kind is ChoiceKind.TALK:
        fragment = get_fragment(character, progress.get(character, "UNSET"))
    elif parsed.kind is ChoiceKind.STAGE_ONE:
        _advance(progress, character, "L2")
        fragment = get_fragment(character, "L2")
    elif parsed.kind is ChoiceKind.STAGE_TWO:
        _advance(progress, character, "CLOSE")
        fragment = get_fragment(character, "CLOSE")
    elif parsed.kind is ChoiceKind.RETURN_TO_HUB:
        if character not in completed:
            completed.append(character)
        fragment = render_hub(completed)
    elif parsed.kind is ChoiceKind.CHOOSE_OTHER:
        fragment = render_hub(completed)
    elif parsed.kind is ChoiceKind.END_STORY:
        fragment = END
        final = True
    else:
        logger.warning(f"Unknown choice id {choice_id!r}, returning hub")
        fragment = render_hub(completed)

    logger.info(f"Routed {choice_id!r} ({parsed.kind.value}) progress={progress} completed={completed}")
    return Route(
        fragment=fragment,
        completed_threads=completed,
        character_progress=progress,
        final=final,
    )
