from __future__ import annotations

from collections.abc import Mapping
from contextlib import asynccontextmanager
from typing import Any

import httpx

from rsspot_exporter.auth import Clock, Credentials, TokenAuthenticator, utc_now
from rsspot_exporter.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_AUTH_BASE_URL,
    DEFAULT_CLIENT_ID,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)
from rsspot_exporter.http import SpotTransport
from rsspot_exporter.models import CloudspaceItem, OnDemandNodePoolItem, SpotNodePoolItem
from rsspot_exporter.services import CloudspacesService, OnDemandNodePoolsService, SpotNodePoolsService

JsonObject = dict[str, Any]


class SpotApiClient:
    """Authenticated, read-only accessor for Rackspace Spot capacity resources.

    Every request obtains a bearer token from the :class:`TokenAuthenticator`
    first, so callers never deal with token lifetimes. There is no caching,
    pagination or retrying: a failed request raises immediately.
    """

    def __init__(
        self,
        *,
        refresh_token: str,
        api_base_url: str = DEFAULT_API_BASE_URL,
        auth_base_url: str = DEFAULT_AUTH_BASE_URL,
        client_id: str = DEFAULT_CLIENT_ID,
        request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.api_base_url = api_base_url
        self._transport = SpotTransport(
            base_url=api_base_url,
            timeout=request_timeout_seconds,
            http_client=http_client,
        )
        self.authenticator = TokenAuthenticator(
            Credentials(refresh_token=refresh_token, auth_base_url=auth_base_url, client_id=client_id),
            transport=self._transport,
            clock=clock,
        )
        self._transport.bind_token_provider(self.authenticator.ensure_valid_token)

        self._cloudspaces: CloudspacesService | None = None
        self._spot_nodepools: SpotNodePoolsService | None = None
        self._ondemand_nodepools: OnDemandNodePoolsService | None = None

    @property
    def cloudspaces(self) -> CloudspacesService:
        if self._cloudspaces is None:
            self._cloudspaces = CloudspacesService(self)
        return self._cloudspaces

    @property
    def spot_nodepools(self) -> SpotNodePoolsService:
        if self._spot_nodepools is None:
            self._spot_nodepools = SpotNodePoolsService(self)
        return self._spot_nodepools

    @property
    def ondemand_nodepools(self) -> OnDemandNodePoolsService:
        if self._ondemand_nodepools is None:
            self._ondemand_nodepools = OnDemandNodePoolsService(self)
        return self._ondemand_nodepools

    async def __aenter__(self) -> SpotApiClient:
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self.authenticator.invalidate()
        await self._transport.aclose()

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        form_data: Mapping[str, Any] | None = None,
        error_message: str = "request failed",
    ) -> JsonObject:
        return await self._transport.request_json(
            method,
            path,
            form_data=form_data,
            authenticated=True,
            error_message=error_message,
        )

    async def list_cloudspaces(self, organization_id: str) -> list[CloudspaceItem]:
        response = await self.cloudspaces.list(organization_id)
        return response.items

    async def list_spot_nodepools(self, organization_id: str) -> list[SpotNodePoolItem]:
        response = await self.spot_nodepools.list(organization_id)
        return response.items

    async def list_ondemand_nodepools(self, organization_id: str) -> list[OnDemandNodePoolItem]:
        response = await self.ondemand_nodepools.list(organization_id)
        return response.items


@asynccontextmanager
async def connect(*args: Any, **kwargs: Any):
    client = SpotApiClient(*args, **kwargs)
    try:
        yield client
    finally:
        await client.aclose()
