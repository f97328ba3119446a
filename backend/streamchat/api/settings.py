"""Provider settings and preset catalog endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, Field

from streamchat.api.deps import get_chat_service
from streamchat.services import ChatService

router = APIRouter(prefix="/api", tags=["settings"])


class SettingsRequest(BaseModel):
    provider: str = ""
    model: str = Field(..., min_length=1)
    base_url: str = Field(..., min_length=1)
    api_key: str = Field(..., min_length=1)


@router.get("/settings")
def get_settings_route(chat_service: ChatService = Depends(get_chat_service)) -> dict[str, str]:
    """Active provider settings; the API key is masked."""
    return chat_service.get_settings().to_dict()


@router.post("/settings")
async def update_settings_route(
    body: SettingsRequest = Body(...),
    chat_service: ChatService = Depends(get_chat_service),
) -> dict[str, str]:
    await chat_service.update_settings(body.provider, body.model, body.base_url, body.api_key)
    return {"message": "Settings updated"}


@router.get("/providers")
def list_providers_route(
    chat_service: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    return {"providers": [preset.to_dict() for preset in chat_service.list_provider_presets()]}
