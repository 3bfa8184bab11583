from __future__ import annotations

from typing import Annotated

from pydantic import BeforeValidator, Field

from rsspot_exporter.models.common import (
    ItemList,
    OptionalInt,
    OptionalMetadata,
    OptionalStr,
    ResourceList,
    SpotModel,
    _lenient_mapping,
)


class NodePoolSpec(SpotModel):
    serverClass: OptionalStr = None
    desired: OptionalInt = None
    cloudSpace: OptionalStr = None


class SpotNodePoolSpec(NodePoolSpec):
    bidPrice: OptionalStr = None


class SpotNodePoolStatus(SpotModel):
    bidStatus: OptionalStr = None
    wonCount: OptionalInt = None


class SpotNodePoolItem(SpotModel):
    apiVersion: OptionalStr = None
    kind: OptionalStr = None
    metadata: OptionalMetadata = None
    spec: Annotated[SpotNodePoolSpec | None, BeforeValidator(_lenient_mapping)] = None
    status: Annotated[SpotNodePoolStatus | None, BeforeValidator(_lenient_mapping)] = None


class SpotNodePoolListResponse(ResourceList):
    items: Annotated[list[SpotNodePoolItem], ItemList] = Field(default_factory=list)


class OnDemandNodePoolStatus(SpotModel):
    reservedStatus: OptionalStr = None
    reservedCount: OptionalInt = None


class OnDemandNodePoolItem(SpotModel):
    apiVersion: OptionalStr = None
    kind: OptionalStr = None
    metadata: OptionalMetadata = None
    spec: Annotated[NodePoolSpec | None, BeforeValidator(_lenient_mapping)] = None
    status: Annotated[OnDemandNodePoolStatus | None, BeforeValidator(_lenient_mapping)] = None


class OnDemandNodePoolListResponse(ResourceList):
    items: Annotated[list[OnDemandNodePoolItem], ItemList] = Field(default_factory=list)
