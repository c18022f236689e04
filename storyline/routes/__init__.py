"""FastAPI API endpoints under /api.

Endpoint groups: health + settings, story (opening fragment and choice
routing, streamed as text/plain), conversations (CRUD keyed by the
?userSession= query parameter, plus server-side start/choose turns).
"""

from fastapi import APIRouter

from .conversations import router as conversations_router
from .settings import router as settings_router
from .story import router as story_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(story_router)
router.include_router(conversations_router)
