"""Conversation CRUD, one JSON file per conversation, grouped by user session."""

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from storyline.models import Choice, Conversation, Segment

from .core import sessions_dir, validate_key

logger = logging.getLogger(__name__)


def _session_dir(user_session: str) -> Path:
    return sessions_dir() / validate_key(user_session)


def _conversation_path(user_session: str, conversation_id: str) -> Path:
    return _session_dir(user_session) / f"{validate_key(conversation_id, 'conversation id')}.json"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _save(conversation: Conversation) -> None:
    path = _conversation_path(conversation.user_session, conversation.id)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(conversation.model_dump_json(indent=2))


def generate_title(prompt: str) -> str:
    """First three words longer than two letters, title-cased.

    "a lone wanderer discovers a library" → "Lone Wanderer Discovers"
    """
    words = [w for w in re.sub(r"[^\w\s]", " ", prompt.lower()).split() if len(w) > 2][:3]
    if not words:
        return "New Story"
    return " ".join(w[:1].upper() + w[1:] for w in words)


def create_conversation(
    user_session: str, initial_prompt: str, title: str | None = None
) -> Conversation:
    now = _now()
    conversation = Conversation(
        id=str(uuid.uuid4()),
        title=title or generate_title(initial_prompt),
        initial_prompt=initial_prompt,
        user_session=validate_key(user_session),
        created_at=now,
        updated_at=now,
    )
    _save(conversation)
    logger.info(f"Created conversation {conversation.id} for session {user_session}")
    return conversation


def get_conversation(user_session: str, conversation_id: str) -> Conversation | None:
    path = _conversation_path(user_session, conversation_id)
    if not path.is_file():
        return None
    return Conversation.model_validate_json(path.read_text())


def list_conversations(user_session: str) -> list[Conversation]:
    """All conversations for a session, most recently updated first."""
    directory = _session_dir(user_session)
    if not directory.is_dir():
        return []
    results = [Conversation.model_validate_json(p.read_text()) for p in directory.glob("*.json")]
    results.sort(key=lambda c: c.updated_at, reverse=True)
    return results


def update_conversation(
    user_session: str,
    conversation_id: str,
    segments: list[Segment] | None = None,
    choices: list[Choice] | None = None,
    selected_choice_id: str | None = None,
    completed_threads: list[str] | None = None,
    character_progress: dict[str, str] | None = None,
    finished: bool | None = None,
) -> Conversation | None:
    """Apply a story step to a stored conversation. Returns None if not found.

    Segments are appended; a choices list (even an empty one, as after the
    epilogue) replaces the stored one, None keeps it. A selected choice is
    recorded only if it is among the stored choices (checked before
    replacement, i.e. against what the player was offered).
    """
    conversation = get_conversation(user_session, conversation_id)
    if conversation is None:
        return None

    if selected_choice_id:
        if any(c.id == selected_choice_id for c in conversation.choices):
            conversation.selected_choices.append(selected_choice_id)
        else:
            logger.warning(f"Choice {selected_choice_id!r} was not offered in {conversation_id}")
    if segments:
        conversation.segments.extend(segments)
    if choices is not None:
        conversation.choices = list(choices)
    if completed_threads is not None:
        conversation.completed_threads = list(completed_threads)
    if character_progress is not None:
        conversation.character_progress = dict(character_progress)
    if finished is not None:
        conversation.finished = finished
    conversation.updated_at = _now()
    _save(conversation)
    return conversation


def delete_conversation(user_session: str, conversation_id: str) -> bool:
    path = _conversation_path(user_session, conversation_id)
    if not path.is_file():
        return False
    path.unlink()
    logger.info(f"Deleted conversation {conversation_id}")
    return True


def clear_conversations(user_session: str) -> int:
    """Delete every conversation of a session. Returns how many were removed."""
    removed = 0
    for conversation in list_conversations(user_session):
        if delete_conversation(user_session, conversation.id):
            removed += 1
    return removed


def get_conversation_context(
    user_session: str, conversation_id: str, max_segments: int = 5
) -> list[Segment]:
    """The last few segments of a conversation, oldest first."""
    conversation = get_conversation(user_session, conversation_id)
    if conversation is None or max_segments <= 0:
        return []
    return conversation.segments[-max_segments:]


def export_conversations(user_session: str) -> str:
    """All conversations of a session as an indented JSON document."""
    data: dict[str, Any] = {
        "user_session": user_session,
        "conversations": [c.model_dump() for c in list_conversations(user_session)],
    }
    return json.dumps(data, indent=2, ensure_ascii=False)
