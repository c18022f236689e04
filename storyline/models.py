"""Core domain models.

The parser, the narrative router and storage all exchange these types.
Pydantic is used for validation and serialisation at every data boundary.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Emotion = Literal[
    "neutral",
    "happy",
    "sad",
    "angry",
    "surprised",
    "thinking",
    "confident",
    "concern",
    "annoyed",
    "blushing",
    "crying",
    "disgusted",
    "fear",
    "very happy",
    "deeply in love",
]

Stage = Literal["UNSET", "L1", "L2", "CLOSE"]

STAGE_ORDER: tuple[str, ...] = ("UNSET", "L1", "L2", "CLOSE")

NARRATOR = "NARRATOR"


class Segment(BaseModel):
    """One displayed unit of narration, action or dialogue."""

    model_config = ConfigDict(frozen=True)

    speaker: str  # "NARRATOR" | upper-cased character id
    emotion: Emotion = "neutral"
    text: str


class Choice(BaseModel):
    """A selectable option; `id` is what the router dispatches on."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    disabled: bool = False


class Route(BaseModel):
    """Router output: the next fragment plus the session state to carry forward."""

    fragment: str
    completed_threads: list[str] = Field(default_factory=list)
    character_progress: dict[str, Stage] = Field(default_factory=dict)
    final: bool = False  # epilogue; nothing follows


class Turn(BaseModel):
    """What one story step produced for the renderer."""

    segments: list[Segment] = Field(default_factory=list)
    choices: list[Choice] = Field(default_factory=list)
    complete: bool = False


class Conversation(BaseModel):
    """A stored playthrough, scoped to one user session."""

    id: str
    title: str
    initial_prompt: str
    user_session: str
    created_at: str
    updated_at: str
    segments: list[Segment] = Field(default_factory=list)
    choices: list[Choice] = Field(default_factory=list)
    selected_choices: list[str] = Field(default_factory=list)
    completed_threads: list[str] = Field(default_factory=list)
    character_progress: dict[str, Stage] = Field(default_factory=dict)
    finished: bool = False  # the epilogue has been played
