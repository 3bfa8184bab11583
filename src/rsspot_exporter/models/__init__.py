from rsspot_exporter.models.cloudspaces import CloudspaceItem, CloudspaceListResponse
from rsspot_exporter.models.common import Metadata, ResourceList, SpotModel
from rsspot_exporter.models.nodepools import (
    OnDemandNodePoolItem,
    OnDemandNodePoolListResponse,
    SpotNodePoolItem,
    SpotNodePoolListResponse,
)

__all__ = [
    "CloudspaceItem",
    "CloudspaceListResponse",
    "Metadata",
    "OnDemandNodePoolItem",
    "OnDemandNodePoolListResponse",
    "ResourceList",
    "SpotModel",
    "SpotNodePoolItem",
    "SpotNodePoolListResponse",
]
