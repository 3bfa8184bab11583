from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest

from rsspot_exporter.models import (
    CloudspaceItem,
    CloudspaceListResponse,
    OnDemandNodePoolItem,
    OnDemandNodePoolListResponse,
    SpotNodePoolItem,
    SpotNodePoolListResponse,
)

API_URL = "https://spot.rackspace.com"
AUTH_URL = "https://login.spot.rackspace.com"

ENV_VARS = (
    "RACKSPACE_REFRESH_TOKEN",
    "RSSPOT_EXPORTER_REFRESH_TOKEN",
    "RSSPOT_REFRESH_TOKEN",
    "RACKSPACE_NAMESPACE",
    "RSSPOT_EXPORTER_NAMESPACE",
    "RACKSPACE_ORG_ID",
    "RACKSPACE_ORGANIZATION",
    "RACKSPACE_API_URL",
    "RACKSPACE_AUTH_URL",
    "RACKSPACE_CLIENT_ID",
    "HOST",
    "PORT",
    "METRICS_PATH",
    "SCRAPE_INTERVAL",
    "REQUEST_TIMEOUT_SECONDS",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class SpotApiStub:
    """Routes requests for the token endpoint and the three list endpoints."""

    def __init__(self) -> None:
        self.token_status = 200
        self.token_payload: dict[str, object] = {
            "id_token": "mock-id-token",
            "access_token": "mock-access-token",
            "token_type": "Bearer",
            "expires_in": 86400,
            "scope": "openid",
        }
        self.lists: dict[str, tuple[int, object]] = {}
        self.token_requests: list[httpx.Request] = []
        self.list_requests: list[httpx.Request] = []

    def set_items(self, kind: str, items: list[object] | None, status: int = 200) -> None:
        payload: dict[str, object] = {} if items is None else {"items": items}
        self.lists[kind] = (status, payload)

    def set_error(self, kind: str, status: int, payload: object) -> None:
        self.lists[kind] = (status, payload)

    def token_form(self, index: int = 0) -> dict[str, str]:
        parsed = parse_qs(self.token_requests[index].content.decode("utf-8"))
        return {key: values[0] for key, values in parsed.items()}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/oauth/token":
            self.token_requests.append(request)
            if self.token_status >= 400:
                return httpx.Response(self.token_status, json={"error": "Invalid refresh token"})
            return httpx.Response(self.token_status, json=self.token_payload)

        prefix = "/apis/ngpc.rxt.io/v1/namespaces/"
        if request.url.path.startswith(prefix):
            self.list_requests.append(request)
            kind = request.url.path.rsplit("/", 1)[-1]
            status, payload = self.lists.get(kind, (200, {"items": []}))
            return httpx.Response(status, json=payload)

        return httpx.Response(404, json={"message": "not found"})


class FakeSource:
    def __init__(self) -> None:
        self.cloudspaces: list[dict[str, Any]] | None = []
        self.spot_pools: list[dict[str, Any]] | None = []
        self.ondemand_pools: list[dict[str, Any]] | None = []
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, str]] = []

    def _check(self, kind: str, organization_id: str) -> None:
        self.calls.append((kind, organization_id))
        if kind in self.failures:
            raise self.failures[kind]

    async def list_cloudspaces(self, organization_id: str) -> list[CloudspaceItem] | None:
        self._check("cloudspaces", organization_id)
        if self.cloudspaces is None:
            return None
        return CloudspaceListResponse.model_validate({"items": self.cloudspaces}).items

    async def list_spot_nodepools(self, organization_id: str) -> list[SpotNodePoolItem] | None:
        self._check("spotnodepools", organization_id)
        if self.spot_pools is None:
            return None
        return SpotNodePoolListResponse.model_validate({"items": self.spot_pools}).items

    async def list_ondemand_nodepools(self, organization_id: str) -> list[OnDemandNodePoolItem] | None:
        self._check("ondemandnodepools", organization_id)
        if self.ondemand_pools is None:
            return None
        return OnDemandNodePoolListResponse.model_validate({"items": self.ondemand_pools}).items


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def spot_api() -> SpotApiStub:
    return SpotApiStub()


@pytest.fixture()
def make_http_client(spot_api: SpotApiStub) -> Callable[[], httpx.AsyncClient]:
    def factory() -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=API_URL, transport=httpx.MockTransport(spot_api))

    return factory


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[pytest.MonkeyPatch]:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield monkeypatch
