from rsspot_exporter.services.cloudspaces import CloudspacesService
from rsspot_exporter.services.nodepools import OnDemandNodePoolsService, SpotNodePoolsService

__all__ = [
    "CloudspacesService",
    "OnDemandNodePoolsService",
    "SpotNodePoolsService",
]
