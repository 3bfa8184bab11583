from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _lenient_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _lenient_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _lenient_mapping(value: Any) -> Any:
    return value if isinstance(value, Mapping) else None


def _lenient_items(value: Any) -> list[Any]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


# Upstream payloads are loosely typed; malformed values degrade to None.
OptionalStr = Annotated[str | None, BeforeValidator(_lenient_str)]
OptionalInt = Annotated[int | None, BeforeValidator(_lenient_int)]


class SpotModel(BaseModel):
    """Base model with permissive extra handling for upstream compatibility."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Metadata(SpotModel):
    name: OptionalStr = None
    namespace: OptionalStr = None
    uid: OptionalStr = None
    labels: Annotated[dict[str, Any] | None, BeforeValidator(_lenient_mapping)] = None


OptionalMetadata = Annotated[Metadata | None, BeforeValidator(_lenient_mapping)]
ItemList = BeforeValidator(_lenient_items)


class ResourceList(SpotModel):
    """Kubernetes-style list envelope; only ``items`` is read."""

    kind: OptionalStr = None
    apiVersion: OptionalStr = None
    items: Annotated[list[Any], ItemList] = Field(default_factory=list)
