"""Branching narrative: authored fragments, hub generation and choice routing.

Flow for one step:
  1. The player picks a Choice id.
  2. route() classifies it (parse_choice) and picks the next fragment from
     FRAGMENTS, the END epilogue, or a freshly rendered hub.
  3. The fragment is fed to a StoryParser, which yields segments and the
     next set of choices.

StorySession bundles a parser with the router state for one playthrough.
"""

from .choices import ChoiceKind, ParsedChoice, parse_choice  # noqa: F401
from .fragments import CHARACTERS, END, FRAGMENTS, THREADS, get_fragment  # noqa: F401
from .hub import render_hub  # noqa: F401
from .router import route  # noqa: F401
from .session import StorySession  # noqa: F401
