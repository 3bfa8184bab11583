from __future__ import annotations

from rsspot_exporter.models.nodepools import OnDemandNodePoolListResponse, SpotNodePoolListResponse
from rsspot_exporter.services.base import NamespacedListService


class SpotNodePoolsService(NamespacedListService):
    """Bid-based node pools; nodes are won at auction."""

    resource = "spotnodepools"
    error_message = "Failed to list spot node pools"

    async def list(self, org_id: str) -> SpotNodePoolListResponse:
        return await self._list(org_id, SpotNodePoolListResponse)


class OnDemandNodePoolsService(NamespacedListService):
    resource = "ondemandnodepools"
    error_message = "Failed to list on-demand node pools"

    async def list(self, org_id: str) -> OnDemandNodePoolListResponse:
        return await self._list(org_id, OnDemandNodePoolListResponse)
