from __future__ import annotations

from collections.abc import Awaitable
from typing import Any, Protocol, TypeVar

from rsspot_exporter.constants import API_GROUP_PATH
from rsspot_exporter.models.common import ResourceList

ListT = TypeVar("ListT", bound=ResourceList)


class RequestsJson(Protocol):
    def _request_json(self, method: str, path: str, *, error_message: str = ...) -> Awaitable[dict[str, Any]]: ...


class NamespacedListService:
    """List one resource kind under an organization namespace of the ngpc API group."""

    resource: str
    error_message: str

    def __init__(self, client: RequestsJson) -> None:
        self._client = client

    def path(self, org_id: str) -> str:
        return f"{API_GROUP_PATH}/namespaces/{org_id}/{self.resource}"

    async def _list(self, org_id: str, model: type[ListT]) -> ListT:
        data = await self._client._request_json("GET", self.path(org_id), error_message=self.error_message)
        return model.model_validate(data)
