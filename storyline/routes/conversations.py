"""Conversation CRUD + server-side story turns, scoped by ?userSession=."""

import logging

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse

from storyline import storage
from storyline.models import Conversation, Turn
from storyline.narrative import StorySession

from .models import ChooseBody, CreateConversation, UpdateConversation

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_key(user_session: str | None) -> str:
    if not user_session:
        raise HTTPException(400, "User session is required")
    try:
        return storage.validate_key(user_session)
    except ValueError as e:
        raise HTTPException(400, str(e))


def _load(user_session: str | None, conversation_id: str) -> tuple[str, Conversation]:
    key = _session_key(user_session)
    try:
        conversation = storage.get_conversation(key, conversation_id)
    except ValueError:
        conversation = None
    if conversation is None:
        raise HTTPException(404, "Conversation not found")
    return key, conversation


def _new_session(conversation: Conversation) -> StorySession:
    config = storage.get_config()
    return StorySession(
        completed_threads=conversation.completed_threads,
        character_progress=conversation.character_progress,
        fallback_tail_limit=config.get("fallback_tail_limit"),
    )


@router.get("/conversations")
async def list_conversations(user_session: str | None = Query(None, alias="userSession")):
    """List a session's conversations, most recently updated first."""
    key = _session_key(user_session)
    return {"conversations": storage.list_conversations(key)}


@router.post("/conversations")
async def create_conversation(body: CreateConversation):
    """Create an empty conversation for a user session."""
    if not body.initial_prompt.strip() or not body.user_session:
        raise HTTPException(400, "Initial prompt and user session are required")
    key = _session_key(body.user_session)
    return storage.create_conversation(key, body.initial_prompt, title=body.title)


@router.delete("/conversations")
async def clear_conversations(user_session: str | None = Query(None, alias="userSession")):
    """Delete every conversation of a session."""
    key = _session_key(user_session)
    return {"deleted": storage.clear_conversations(key)}


@router.get("/conversations/export")
async def export_conversations(user_session: str | None = Query(None, alias="userSession")):
    """Download all of a session's conversations as JSON."""
    key = _session_key(user_session)
    return PlainTextResponse(storage.export_conversations(key), media_type="application/json")


@router.get("/conversations/{conversation_id}")
async def get_conversation(
    conversation_id: str, user_session: str | None = Query(None, alias="userSession")
):
    """Get one conversation with its segments, choices and progress."""
    _, conversation = _load(user_session, conversation_id)
    return conversation


@router.put("/conversations/{conversation_id}")
async def update_conversation(
    conversation_id: str,
    body: UpdateConversation,
    user_session: str | None = Query(None, alias="userSession"),
):
    """Append segments, replace choices when non-empty, record a selected choice."""
    key, _ = _load(user_session, conversation_id)
    return storage.update_conversation(
        key, conversation_id,
        segments=body.segments,
        choices=body.choices or None,
        selected_choice_id=body.selected_choice_id,
    )


@router.delete("/conversations/{conversation_id}")
async def delete_conversation(
    conversation_id: str, user_session: str | None = Query(None, alias="userSession")
):
    """Delete a conversation."""
    key, _ = _load(user_session, conversation_id)
    storage.delete_conversation(key, conversation_id)
    return {"success": True}


@router.get("/conversations/{conversation_id}/context")
async def get_conversation_context(
    conversation_id: str,
    user_session: str | None = Query(None, alias="userSession"),
    max_segments: int = Query(5, alias="maxSegments", ge=0),
):
    """The most recent segments of a conversation, oldest first."""
    key, _ = _load(user_session, conversation_id)
    return {"segments": storage.get_conversation_context(key, conversation_id, max_segments=max_segments)}


@router.post("/conversations/{conversation_id}/start")
async def start_conversation(
    conversation_id: str, user_session: str | None = Query(None, alias="userSession")
) -> Turn:
    """Parse the opening fragment into a stored conversation."""
    key, conversation = _load(user_session, conversation_id)
    if conversation.segments or conversation.choices or conversation.finished:
        raise HTTPException(400, "Conversation already started")
    session = _new_session(conversation)
    turn = session.begin(storage.get_opening_fragment())
    storage.update_conversation(key, conversation_id, segments=turn.segments, choices=turn.choices)
    return turn


@router.post("/conversations/{conversation_id}/choose")
async def choose(
    conversation_id: str,
    body: ChooseBody,
    user_session: str | None = Query(None, alias="userSession"),
) -> Turn:
    """Route an offered choice server-side, parse the next fragment and persist the step."""
    key, conversation = _load(user_session, conversation_id)
    if not body.choice.strip():
        raise HTTPException(400, "Choice is required")
    if conversation.finished:
        raise HTTPException(400, "Story has ended")
    offered = {c.id: c for c in conversation.choices}
    if not offered:
        raise HTTPException(400, "Conversation has not started")
    if body.choice not in offered:
        raise HTTPException(400, "Choice was not offered")
    if offered[body.choice].disabled:
        raise HTTPException(400, "Choice is disabled")

    session = _new_session(conversation)
    turn = session.choose(body.choice)
    storage.update_conversation(
        key, conversation_id,
        segments=turn.segments,
        choices=turn.choices,
        selected_choice_id=body.choice,
        completed_threads=session.completed_threads,
        character_progress=session.character_progress,
        finished=session.finished,
    )
    logger.info(f"Conversation {conversation_id}: {body.choice} → {len(turn.segments)} segments")
    return turn
