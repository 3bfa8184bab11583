"""Translate Spot API resources into Prometheus gauges."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol

from prometheus_client import CollectorRegistry, Gauge

from rsspot_exporter.constants import UNKNOWN_LABEL
from rsspot_exporter.errors import CollectionError
from rsspot_exporter.models import CloudspaceItem, OnDemandNodePoolItem, SpotNodePoolItem

logger = logging.getLogger(__name__)

METRIC_PREFIX = "rackspace_spot_"

NODEPOOL_LABELS = ("namespace", "cloudspace", "nodepool", "serverclass")


class SpotResourceSource(Protocol):
    async def list_cloudspaces(self, organization_id: str) -> Sequence[CloudspaceItem]: ...

    async def list_spot_nodepools(self, organization_id: str) -> Sequence[SpotNodePoolItem]: ...

    async def list_ondemand_nodepools(self, organization_id: str) -> Sequence[OnDemandNodePoolItem]: ...


def _label(value: str | None) -> str:
    return value or UNKNOWN_LABEL


def _count(value: int | None) -> int:
    return value or 0


def _name(item: CloudspaceItem | SpotNodePoolItem | OnDemandNodePoolItem) -> str:
    return _label(item.metadata.name if item.metadata else None)


class SpotMetricsCollector:
    """Own the exporter's gauge families and refresh them from the Spot API.

    Gauges are registered once, in the injected registry. A pass only sets
    values for the label combinations it observes; combinations seen in an
    earlier pass keep their last value until overwritten.
    """

    def __init__(
        self,
        client: SpotResourceSource,
        organization: str,
        registry: CollectorRegistry | None = None,
    ) -> None:
        self.client = client
        self.organization = organization
        self.registry = registry if registry is not None else CollectorRegistry()

        self.cloudspace_nodes = Gauge(
            "rackspace_spot_cloudspace_nodes_total",
            "Total number of nodes in a cloudspace",
            ["namespace", "cloudspace", "cloudspace_region"],
            registry=self.registry,
        )
        self.spot_nodepool_desired = Gauge(
            "rackspace_spot_spotnodepool_desired",
            "Desired number of nodes in a spot node pool",
            list(NODEPOOL_LABELS),
            registry=self.registry,
        )
        self.spot_nodepool_won_count = Gauge(
            "rackspace_spot_spotnodepool_won_count",
            "Number of nodes won in a spot node pool",
            [*NODEPOOL_LABELS, "bid_status"],
            registry=self.registry,
        )
        self.ondemand_nodepool_desired = Gauge(
            "rackspace_spot_ondemandnodepool_desired",
            "Desired number of nodes in an on-demand node pool",
            list(NODEPOOL_LABELS),
            registry=self.registry,
        )
        self.ondemand_nodepool_reserved_count = Gauge(
            "rackspace_spot_ondemandnodepool_reserved_count",
            "Number of reserved nodes in an on-demand node pool",
            [*NODEPOOL_LABELS, "reserved_status"],
            registry=self.registry,
        )

    async def collect(self) -> None:
        """Run one collection pass over all resource kinds.

        Families whose fetch succeeded are written even when another family
        fails; the failures are then raised together as a CollectionError.
        """

        families: list[tuple[str, Callable[[], Awaitable[int]]]] = [
            ("cloudspaces", self.collect_cloudspaces),
            ("spotnodepools", self.collect_spot_nodepools),
            ("ondemandnodepools", self.collect_ondemand_nodepools),
        ]
        results: list[Any] = await asyncio.gather(
            *(collect() for _, collect in families),
            return_exceptions=True,
        )

        errors: list[Exception] = []
        counts: dict[str, int] = {}
        for (family, _), result in zip(families, results, strict=True):
            if isinstance(result, Exception):
                logger.error("failed to collect %s: %s", family, result)
                errors.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                counts[family] = result

        if errors:
            raise CollectionError(errors)

        logger.info("collected Spot metrics", extra={"namespace": self.organization, "items": counts})

    async def collect_cloudspaces(self) -> int:
        cloudspaces = await self.client.list_cloudspaces(self.organization) or []
        for cloudspace in cloudspaces:
            region = cloudspace.spec.region if cloudspace.spec else None
            self.cloudspace_nodes.labels(
                namespace=self.organization,
                cloudspace=_name(cloudspace),
                cloudspace_region=_label(region),
            ).set(cloudspace.node_count)
        return len(cloudspaces)

    async def collect_spot_nodepools(self) -> int:
        pools = await self.client.list_spot_nodepools(self.organization) or []
        for pool in pools:
            spec = pool.spec
            status = pool.status
            labels = {
                "namespace": self.organization,
                "cloudspace": _label(spec.cloudSpace if spec else None),
                "nodepool": _name(pool),
                "serverclass": _label(spec.serverClass if spec else None),
            }
            self.spot_nodepool_desired.labels(**labels).set(_count(spec.desired if spec else None))
            self.spot_nodepool_won_count.labels(
                **labels,
                bid_status=_label(status.bidStatus if status else None),
            ).set(_count(status.wonCount if status else None))
        return len(pools)

    async def collect_ondemand_nodepools(self) -> int:
        pools = await self.client.list_ondemand_nodepools(self.organization) or []
        for pool in pools:
            spec = pool.spec
            status = pool.status
            labels = {
                "namespace": self.organization,
                "cloudspace": _label(spec.cloudSpace if spec else None),
                "nodepool": _name(pool),
                "serverclass": _label(spec.serverClass if spec else None),
            }
            self.ondemand_nodepool_desired.labels(**labels).set(_count(spec.desired if spec else None))
            self.ondemand_nodepool_reserved_count.labels(
                **labels,
                reserved_status=_label(status.reservedStatus if status else None),
            ).set(_count(status.reservedCount if status else None))
        return len(pools)

    def samples(self) -> list[dict[str, Any]]:
        """Flatten the exporter's own gauge samples into plain rows."""

        rows: list[dict[str, Any]] = []
        for family in self.registry.collect():
            if not family.name.startswith(METRIC_PREFIX):
                continue
            for sample in family.samples:
                rows.append({"name": sample.name, "labels": dict(sample.labels), "value": sample.value})
        return rows
