from __future__ import annotations

from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from rsspot_exporter.models.common import (
    ItemList,
    OptionalMetadata,
    OptionalStr,
    ResourceList,
    SpotModel,
    _lenient_mapping,
)


class CloudspaceSpec(SpotModel):
    region: OptionalStr = None
    cloud: OptionalStr = None
    kubernetesVersion: OptionalStr = None


class CloudspaceStatus(SpotModel):
    assignedServers: Annotated[dict[str, Any] | None, BeforeValidator(_lenient_mapping)] = None
    health: OptionalStr = None
    phase: OptionalStr = None


class CloudspaceItem(SpotModel):
    apiVersion: OptionalStr = None
    kind: OptionalStr = None
    metadata: OptionalMetadata = None
    spec: Annotated[CloudspaceSpec | None, BeforeValidator(_lenient_mapping)] = None
    status: Annotated[CloudspaceStatus | None, BeforeValidator(_lenient_mapping)] = None

    @property
    def node_count(self) -> int:
        """Number of distinct servers assigned to the cloudspace."""

        if self.status is None or not self.status.assignedServers:
            return 0
        return len(self.status.assignedServers)


class CloudspaceListResponse(ResourceList):
    items: Annotated[list[CloudspaceItem], ItemList] = Field(default_factory=list)
