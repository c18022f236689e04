"""Story fragment endpoints: opening fragment and choice routing."""

import json
import logging
from collections.abc import Iterator

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from storyline import storage
from storyline.models import Route
from storyline.narrative import route

from .models import StoryChoiceBody

logger = logging.getLogger(__name__)

router = APIRouter()


def _chunks(text: str, size: int) -> Iterator[str]:
    if size <= 0:
        yield text
        return
    for i in range(0, len(text), size):
        yield text[i:i + size]


def _stream(text: str, headers: dict[str, str] | None = None) -> StreamingResponse:
    size = int(storage.get_config().get("stream_chunk_size", 0) or 0)
    return StreamingResponse(
        _chunks(text, size),
        media_type="text/plain; charset=utf-8",
        headers={"Cache-Control": "no-cache", **(headers or {})},
    )


def _route(body: StoryChoiceBody) -> Route:
    if not body.choice.strip():
        raise HTTPException(400, "Choice is required")
    return route(body.choice, body.completed_threads, body.character_progress)


@router.get("/story")
async def get_story():
    """Stream the opening fragment."""
    try:
        content = storage.get_opening_fragment()
    except OSError as e:
        logger.error(f"Cannot read opening fragment: {e}")
        raise HTTPException(500, "Failed to load story")
    return _stream(content)


@router.post("/story")
async def post_story(body: StoryChoiceBody):
    """Stream the fragment for a choice; updated thread state rides in headers."""
    result = _route(body)
    return _stream(result.fragment, {
        "X-Completed-Threads": json.dumps(result.completed_threads),
        "X-Character-Progress": json.dumps(result.character_progress),
        "X-Story-Final": "true" if result.final else "false",
    })


@router.post("/story/route")
async def route_story(body: StoryChoiceBody) -> Route:
    """Resolve a choice to its fragment and updated thread state as JSON."""
    return _route(body)
