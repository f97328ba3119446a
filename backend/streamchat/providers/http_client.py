"""
HTTP plumbing shared by provider bindings.

Transport failures and error statuses are translated into stable AppError
types here, so adapters never leak httpx exceptions. Nothing is retried:
a failed call is surfaced to the caller as-is.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from streamchat.core import (
    AppError,
    ModelNotFoundError,
    ProviderAuthError,
    ProviderBadResponseError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitError,
    request_id_ctx,
)

# Failures where the provider could not be reached or hung up on us
_UNREACHABLE = (
    httpx.ConnectError,
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


def create_http_client(
    timeout_seconds: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Client shared by every binding of one config store.

    It carries no base URL or credential; each binding supplies its own per
    request. ``transport`` lets tests plug in ``httpx.MockTransport``.
    """
    return httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds), transport=transport)


def request_headers(api_key: str | None, extra: dict[str, str] | None = None) -> dict[str, str]:
    """JSON headers with bearer auth, tagged with the current request id."""
    headers = {"Content-Type": "application/json", **(extra or {})}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    request_id = request_id_ctx.get()
    if request_id:
        headers.setdefault("X-Request-ID", request_id)
    return headers


def map_transport_error(exc: httpx.HTTPError) -> AppError:
    details = {"reason": str(exc) or type(exc).__name__}
    if isinstance(exc, _UNREACHABLE):
        return ProviderUnavailableError(details=details)
    return ProviderError("Provider request failed", details=details)


async def send_request(client: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> httpx.Response:
    """One non-streaming request; transport failures become AppErrors."""
    try:
        return await client.request(method, url, **kwargs)
    except httpx.HTTPError as exc:
        raise map_transport_error(exc) from exc


def raise_for_status(response: httpx.Response) -> None:
    """
    Raise the AppError matching an error status; no-op below 400.

    A streamed response must be read (``await response.aread()``) first so
    the body can be included in the details.
    """
    status = response.status_code
    if status < 400:
        return
    details = {"status": status, "url": str(response.url), "body": response.text[:300]}
    if status in (401, 403):
        raise ProviderAuthError(status_code=status, details=details)
    if status == 404:
        raise ModelNotFoundError(details=details)
    if status == 429:
        raise RateLimitError(details=details)
    if status >= 500:
        raise ProviderUnavailableError(details=details)
    raise ProviderError(details=details)


def parse_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except json.JSONDecodeError as exc:
        raise ProviderBadResponseError(details={"body": response.text[:500]}) from exc
