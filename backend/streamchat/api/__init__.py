"""API routers."""

from streamchat.api.chat import router as chat_router
from streamchat.api.health import router as health_router
from streamchat.api.settings import router as settings_router

__all__ = [
    "chat_router",
    "health_router",
    "settings_router",
]
