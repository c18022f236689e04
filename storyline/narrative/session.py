"""Per-playthrough session context.

A StorySession owns one parser plus the router state for a single
playthrough. It is constructed by whoever drives the story (an HTTP handler,
the terminal player, a test) and passed around explicitly.
"""

import logging
from typing import Any

from storyline.models import Choice, Segment, Turn
from storyline.parser import FALLBACK_TAIL_LIMIT, StoryParser

from .router import route

logger = logging.getLogger(__name__)


class StorySession:
    def __init__(
        self,
        completed_threads: list[str] | None = None,
        character_progress: dict[str, str] | None = None,
        fallback_tail_limit: int | None = FALLBACK_TAIL_LIMIT,
        chunk_size: int | None = None,
    ) -> None:
        self.parser = StoryParser(fallback_tail_limit=fallback_tail_limit)
        self.completed_threads: list[str] = list(completed_threads or [])
        self.character_progress: dict[str, str] = dict(character_progress or {})
        self.fallback_tail_limit = fallback_tail_limit
        self.chunk_size = chunk_size
        self.finished = False

    def begin(self, fragment: str, final: bool = False) -> Turn:
        """Start a fresh story step from raw fragment text.

        A final step (the epilogue) is parsed without default choices.
        """
        self.parser.reset()
        self.parser.fallback_tail_limit = None if final else self.fallback_tail_limit
        self.finished = final
        segments = self.feed(fragment)
        return Turn(
            segments=segments,
            choices=self.parser.get_choices(),
            complete=self.parser.is_complete(),
        )

    def feed(self, text: str) -> list[Segment]:
        """Feed text into the current parser, in chunk_size pieces when set."""
        if not self.chunk_size or self.chunk_size <= 0:
            return self.parser.process_chunk(text)
        segments: list[Segment] = []
        for i in range(0, len(text), self.chunk_size):
            segments.extend(self.parser.process_chunk(text[i:i + self.chunk_size]))
        return segments

    def choose(self, choice_id: str) -> Turn:
        """Route a selected choice, adopt the new state and parse the next fragment."""
        result = route(choice_id, self.completed_threads, self.character_progress)
        self.completed_threads = result.completed_threads
        self.character_progress = dict(result.character_progress)
        if result.final:
            logger.info("Story reached its epilogue")
        return self.begin(result.fragment, final=result.final)

    @property
    def choices(self) -> list[Choice]:
        return self.parser.get_choices()

    def snapshot(self) -> dict[str, Any]:
        """Serialisable router state; parser state belongs to the current step only."""
        return {
            "completed_threads": list(self.completed_threads),
            "character_progress": dict(self.character_progress),
        }

    @classmethod
    def from_snapshot(cls, data: dict[str, Any], **kwargs: Any) -> "StorySession":
        return cls(
            completed_threads=data.get("completed_threads", []),
            character_progress=data.get("character_progress", {}),
            **kwargs,
        )
