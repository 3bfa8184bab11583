from __future__ import annotations

from rsspot_exporter.models.cloudspaces import CloudspaceListResponse
from rsspot_exporter.services.base import NamespacedListService


class CloudspacesService(NamespacedListService):
    """Cloudspaces of an organization."""

    resource = "cloudspaces"
    error_message = "Failed to list cloudspaces"

    async def list(self, org_id: str) -> CloudspaceListResponse:
        return await self._list(org_id, CloudspaceListResponse)
