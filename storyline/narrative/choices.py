"""Classification of choice ids into a closed set of routing kinds.

Every id the router may see maps to exactly one ChoiceKind. Character-scoped
kinds carry the character id; ids that fit no pattern (including the disabled
"completed_<character>" hub entries) are UNRECOGNIZED.
"""

from dataclasses import dataclass
from enum import Enum

from .fragments import CHARACTERS


class ChoiceKind(Enum):
    TALK = "talk"
    STAGE_ONE = "stage_one"
    STAGE_TWO = "stage_two"
    RETURN_TO_HUB = "return_to_hub"
    CHOOSE_OTHER = "choose_other"
    END_STORY = "end_story"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class ParsedChoice:
    kind: ChoiceKind
    character: str | None = None


CHOOSE_OTHER_ID = "hub_choose_other"
END_STORY_ID = "end_story"

# Exact ids, built once from the character table.
_EXACT: dict[str, ParsedChoice] = {
    CHOOSE_OTHER_ID: ParsedChoice(ChoiceKind.CHOOSE_OTHER),
    END_STORY_ID: ParsedChoice(ChoiceKind.END_STORY),
}
for _c in CHARACTERS:
    _EXACT[f"talk_{_c}"] = ParsedChoice(ChoiceKind.TALK, _c)
    _EXACT[f"hub_return_after_{_c}"] = ParsedChoice(ChoiceKind.RETURN_TO_HUB, _c)

# Prefix-scoped stage options, e.g. "lumine_l1_honest".
_PREFIXES: list[tuple[str, ParsedChoice]] = []
for _c in CHARACTERS:
    _PREFIXES.append((f"{_c}_l1_", ParsedChoice(ChoiceKind.STAGE_ONE, _c)))
    _PREFIXES.append((f"{_c}_l2_", ParsedChoice(ChoiceKind.STAGE_TWO, _c)))


def parse_choice(choice_id: str) -> ParsedChoice:
    """Classify a choice id. Never raises."""
    exact = _EXACT.get(choice_id)
    if exact is not None:
        return exact
    for prefix, parsed in _PREFIXES:
        if choice_id.startswith(prefix):
            return parsed
    return ParsedChoice(ChoiceKind.UNRECOGNIZED)
