"""Streaming story client.

Fetches fragments from a running server and feeds them into a StoryParser
as the response body arrives, yielding segments as soon as each construct
closes:

    async with StoryClient("http://localhost:13013") as client:
        parser = StoryParser()
        async for segment in client.stream_opening(parser):
            show(segment)
        choices = parser.get_choices()

Thread state comes back from the server in the X-Completed-Threads and
X-Character-Progress headers and is stored on the client after each choice.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator

import httpx

from storyline.models import Segment
from storyline.parser import StoryParser

logger = logging.getLogger(__name__)


class StoryClientError(Exception):
    """Raised when the story server cannot be reached or answers with an error."""


class StoryClient:
    def __init__(
        self,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"), transport=transport, timeout=timeout,
        )
        self.completed_threads: list[str] = []
        self.character_progress: dict[str, str] = {}
        self.final = False

    async def __aenter__(self) -> StoryClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def stream_opening(self, parser: StoryParser) -> AsyncIterator[Segment]:
        """Stream the opening fragment into a freshly reset parser."""
        parser.reset()
        async for segment in self._stream("GET", "/api/story", parser, fallback=True):
            yield segment

    async def stream_choice(self, parser: StoryParser, choice: str) -> AsyncIterator[Segment]:
        """Send a choice with the current thread state and stream the next fragment."""
        parser.reset()
        body = {
            "choice": choice,
            "completed_threads": self.completed_threads,
            "character_progress": self.character_progress,
        }
        async for segment in self._stream("POST", "/api/story", parser, fallback=False, json=body):
            yield segment

    async def _stream(
        self, method: str, url: str, parser: StoryParser, fallback: bool, **kwargs
    ) -> AsyncIterator[Segment]:
        limit = parser.fallback_tail_limit
        try:
            async with self._client.stream(method, url, **kwargs) as resp:
                resp.raise_for_status()
                self._adopt_state(resp.headers)
                if self.final or not fallback:
                    # Routed fragments carry their own <choices>; the epilogue has none.
                    parser.fallback_tail_limit = None
                async for chunk in resp.aiter_text():
                    for segment in parser.process_chunk(chunk):
                        yield segment
        except httpx.HTTPStatusError as e:
            raise StoryClientError(f"Story server returned {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise StoryClientError("Story server timed out") from e
        except httpx.TransportError as e:
            raise StoryClientError(f"Cannot connect to story server: {e}") from e
        finally:
            parser.fallback_tail_limit = limit

    def _adopt_state(self, headers: httpx.Headers) -> None:
        if "x-completed-threads" in headers:
            self.completed_threads = json.loads(headers["x-completed-threads"])
        if "x-character-progress" in headers:
            self.character_progress = json.loads(headers["x-character-progress"])
        self.final = headers.get("x-story-final") == "true"
        logger.debug(f"Thread state: completed={self.completed_threads} progress={self.character_progress}")
