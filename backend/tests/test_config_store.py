"""Tests for the replaceable provider binding."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from conftest import TEST_SETTINGS
from streamchat.config import Settings
from streamchat.core import ErrorCode, ProviderInitError
from streamchat.providers import OpenAICompatProvider, ProviderConfigStore, ProviderSettings


def make_store(handler=None, verify: bool = False) -> ProviderConfigStore:
    handler = handler or (lambda request: httpx.Response(200, json={"data": [{"id": "m"}]}))
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ProviderConfigStore(client, TEST_SETTINGS, verify=verify)


def new_settings(**overrides: str) -> ProviderSettings:
    values = {
        "provider": "deepseek",
        "model": "deepseek-chat",
        "base_url": "https://api.deepseek.com/v1",
        "api_key": "sk-deepseek-12345678",
    }
    values.update(overrides)
    return ProviderSettings(**values)


def test_read_returns_initial_binding() -> None:
    store = make_store()

    binding = store.read()

    assert binding.settings == TEST_SETTINGS
    assert isinstance(binding.provider, OpenAICompatProvider)
    assert binding.provider.settings is binding.settings


@pytest.mark.asyncio
async def test_replace_swaps_binding() -> None:
    store = make_store()
    before = store.read()

    after = await store.replace(new_settings())

    assert store.read() is after
    assert after.settings.model == "deepseek-chat"
    assert after.provider.base_url == "https://api.deepseek.com/v1"
    # snapshots taken earlier are unchanged
    assert before.settings == TEST_SETTINGS
    assert before.provider.model == "gpt-test"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [{"api_key": ""}, {"model": "  "}, {"base_url": "localhost:11434"}],
)
async def test_invalid_replace_keeps_previous(overrides: dict[str, str]) -> None:
    store = make_store()
    before = store.read()

    with pytest.raises(ProviderInitError) as exc_info:
        await store.replace(new_settings(**overrides))

    assert exc_info.value.code == ErrorCode.PROVIDER_INIT_FAILED
    assert exc_info.value.status_code == 400
    assert store.read() is before


@pytest.mark.asyncio
async def test_verify_rejects_unreachable_provider() -> None:
    store = make_store(lambda request: httpx.Response(401, json={"error": "bad key"}), verify=True)
    before = store.read()

    with pytest.raises(ProviderInitError) as exc_info:
        await store.replace(new_settings())

    assert exc_info.value.message.startswith("Failed to verify provider")
    assert exc_info.value.details == {"code": ErrorCode.PROVIDER_AUTH_FAILED.value}
    assert store.read() is before


@pytest.mark.asyncio
async def test_verify_accepts_healthy_provider() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"data": [{"id": "deepseek-chat"}]})

    store = make_store(handler, verify=True)

    await store.replace(new_settings())

    assert seen == ["https://api.deepseek.com/v1/models"]
    assert store.settings.provider == "deepseek"


@pytest.mark.asyncio
async def test_concurrent_replace_leaves_consistent_binding() -> None:
    store = make_store()
    candidates = [new_settings(model=f"model-{i}") for i in range(10)]

    await asyncio.gather(*(store.replace(settings) for settings in candidates))

    binding = store.read()
    assert binding.settings in candidates
    assert binding.provider.settings is binding.settings


@pytest.mark.asyncio
async def test_from_settings_builds_store(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AI_API_KEY", "sk-from-settings-0001")
    settings = Settings(
        ai_provider="openai",
        ai_model="gpt-4o-mini",
        ai_base_url="http://llm.test/v1",
        provider_timeout_seconds=5,
        _env_file=None,
    )

    store = ProviderConfigStore.from_settings(
        settings, transport=httpx.MockTransport(lambda request: httpx.Response(200))
    )

    assert store.settings.model == "gpt-4o-mini"
    assert store.settings.masked_api_key() == "sk-f****0001"
    await store.aclose()


def test_from_settings_without_api_key_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AI_API_KEY", "")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    settings = Settings(_env_file=None)

    with pytest.raises(ProviderInitError):
        ProviderConfigStore.from_settings(settings)
