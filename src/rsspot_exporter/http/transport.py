"""HTTP transport for Spot API calls."""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import httpx

from rsspot_exporter.constants import DEFAULT_REQUEST_TIMEOUT_SECONDS
from rsspot_exporter.errors import ApiError, RequestError

TokenProvider = Callable[[], Awaitable[str]]


def _decode_error_body(response: httpx.Response) -> Any:
    text = response.text.strip()
    if not text:
        return None
    try:
        return response.json()
    except (ValueError, json.JSONDecodeError):
        return text


class SpotTransport:
    """Async transport issuing single-shot JSON requests, optionally authenticated."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        token_provider: TokenProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._token_provider = token_provider
        self._owns_http_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        )

    def bind_token_provider(self, token_provider: TokenProvider) -> None:
        self._token_provider = token_provider

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._client.aclose()

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        form_data: Mapping[str, Any] | None = None,
        content_type: str | None = None,
        authenticated: bool = True,
        error_message: str = "request failed",
    ) -> dict[str, Any]:
        headers: dict[str, str] = {"Accept": "application/json"}
        if content_type:
            headers["Content-Type"] = content_type
        if authenticated:
            if self._token_provider is None:
                raise RequestError("authenticated request issued without a token provider")
            token = await self._token_provider()
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._client.request(
                method.upper(),
                path,
                data=dict(form_data) if form_data is not None else None,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise RequestError(f"{error_message}: {exc.__class__.__name__}: {exc}") from exc

        if not response.is_success:
            raise ApiError(
                status_code=response.status_code,
                message=error_message,
                body=_decode_error_body(response),
            )

        if response.status_code == 204 or not response.text.strip():
            return {}

        try:
            decoded = response.json()
        except ValueError as exc:
            raise RequestError(f"{error_message}: response was not valid JSON") from exc

        if not isinstance(decoded, dict):
            raise RequestError(f"{error_message}: response payload must be a JSON object")

        return decoded
