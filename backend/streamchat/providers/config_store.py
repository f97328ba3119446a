"""
Holder of the active provider binding.

Readers take a snapshot under a short lock; writers build and verify the
replacement outside that lock and only then swap the reference, so a
settings update never blocks a generation that is already streaming.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from streamchat.config import Settings
from streamchat.core import AppError, ProviderInitError, get_logger
from streamchat.providers.base import BaseProvider, ProviderSettings
from streamchat.providers.factory import build_provider, validate_provider_settings
from streamchat.providers.http_client import create_http_client

logger = get_logger(__name__)

ProviderFactory = Callable[[ProviderSettings, httpx.AsyncClient], BaseProvider]


@dataclass(frozen=True)
class ProviderBinding:
    """Settings paired with the provider built from them."""

    settings: ProviderSettings
    provider: BaseProvider


class ProviderConfigStore:
    """Atomically replaceable provider binding shared by all chat streams."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        initial: ProviderSettings,
        *,
        verify: bool = False,
        factory: ProviderFactory = build_provider,
    ):
        self._client = client
        self._factory = factory
        self._verify = verify
        self._lock = threading.Lock()
        self._write_lock = asyncio.Lock()
        self._binding = ProviderBinding(initial, factory(initial, client))

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ProviderConfigStore:
        """Build the store from application settings (raises ProviderInitError)."""
        initial = ProviderSettings(
            provider=settings.ai_provider,
            model=settings.ai_model,
            base_url=settings.ai_base_url,
            api_key=settings.ai_api_key,
        )
        validate_provider_settings(initial)
        client = create_http_client(settings.provider_timeout_seconds, transport=transport)
        store = cls(client, initial, verify=settings.provider_verify_on_update)
        logger.info(
            "Provider binding initialized",
            data={"provider": initial.provider, "model": initial.model, "base_url": initial.base_url},
        )
        return store

    def read(self) -> ProviderBinding:
        """Snapshot of the active binding."""
        with self._lock:
            return self._binding

    @property
    def settings(self) -> ProviderSettings:
        return self.read().settings

    async def replace(self, new_settings: ProviderSettings) -> ProviderBinding:
        """
        Validate ``new_settings`` and make them the active binding.

        On failure the previous binding stays active and ProviderInitError
        is raised. Concurrent calls are serialized; the last one to finish
        wins.
        """
        async with self._write_lock:
            try:
                provider = self._factory(new_settings, self._client)
                if self._verify:
                    await provider.healthcheck()
            except ProviderInitError as exc:
                logger.warning(
                    "Rejected provider settings",
                    data={"provider": new_settings.provider, "model": new_settings.model, "reason": exc.message},
                )
                raise
            except AppError as exc:
                logger.warning(
                    "Provider verification failed",
                    data={"provider": new_settings.provider, "code": exc.code.value},
                )
                raise ProviderInitError(
                    f"Failed to verify provider: {exc.message}",
                    details={"code": exc.code.value},
                ) from exc

            binding = ProviderBinding(new_settings, provider)
            with self._lock:
                self._binding = binding

        logger.info(
            "Provider binding replaced",
            data={
                "provider": new_settings.provider,
                "model": new_settings.model,
                "base_url": new_settings.base_url,
            },
        )
        return binding

    async def aclose(self) -> None:
        """Close the shared HTTP client."""
        await self._client.aclose()
