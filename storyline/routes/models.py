"""Pydantic request/response models for API endpoints.

Field aliases accept the camelCase names browser clients send.
"""

from pydantic import BaseModel, ConfigDict, Field

from storyline.models import Choice, Segment


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class StoryChoiceBody(_Body):
    choice: str = ""
    completed_threads: list[str] = Field(default_factory=list, alias="completedThreads")
    character_progress: dict[str, str] = Field(default_factory=dict, alias="characterProgress")


class CreateConversation(_Body):
    initial_prompt: str = Field("", alias="initialPrompt")
    user_session: str = Field("", alias="userSession")
    title: str | None = None


class UpdateConversation(_Body):
    segments: list[Segment] | None = None
    choices: list[Choice] | None = None
    selected_choice_id: str | None = Field(None, alias="selectedChoiceId")


class ChooseBody(_Body):
    choice: str = ""
