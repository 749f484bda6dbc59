"""REST adapter for the twin graph management API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any
from uuid import UUID

import httpx
from pydantic import TypeAdapter

from twinreflector.adapters.http_resilience import ResilientClient
from twinreflector.domain.errors import (
    GraphConflict,
    GraphError,
    GraphNotFound,
    GraphRequestRejected,
    TransientGraphError,
)
from twinreflector.domain.model import (
    Category,
    DeviceRecord,
    ProvisionedResource,
    ResourceKind,
    SensorRecord,
    SpaceRecord,
    TypeDescriptor,
)

from .schema import (
    GraphDevice,
    GraphEndpoint,
    GraphResource,
    GraphSensor,
    GraphSpace,
    GraphType,
    normalize_status,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from types import TracebackType

    from twinreflector.config.graph import GraphConfig
    from twinreflector.config.http_resilience import ResilienceConfig
    from twinreflector.domain.model import (
        DeviceCreate,
        DeviceUpdate,
        ResourceRequest,
        SensorCreate,
        SpaceCreate,
        TypeId,
    )

log = getLogger(__name__)

_TRANSIENT_STATUS = frozenset({408, 429})
_REJECTED_STATUS = frozenset({400, 422})

_RESOURCE_PATHS: dict[ResourceKind, str] = {
    ResourceKind.IOTHUB: "resources",
    ResourceKind.EVENTHUB_ENDPOINT: "endpoints",
}

_spaces = TypeAdapter(list[GraphSpace])
_devices = TypeAdapter(list[GraphDevice])
_sensors = TypeAdapter(list[GraphSensor])
_types = TypeAdapter(list[GraphType])
_resources = TypeAdapter(list[GraphResource])
_endpoints = TypeAdapter(list[GraphEndpoint])


def raise_for_graph_status(response: httpx.Response) -> None:
    """Map an unsuccessful response onto the ``GraphError`` hierarchy."""

    if response.is_success:
        return
    status = response.status_code
    message = f"{response.request.method} {response.request.url.path} -> {status}"
    text = response.text.strip()
    if text:
        message = f"{message}: {text[:200]}"

    if status == 404:
        raise GraphNotFound(message, status_code=status)
    if status == 409:
        raise GraphConflict(message, status_code=status)
    if status in _REJECTED_STATUS:
        raise GraphRequestRejected(message, status_code=status)
    if status in _TRANSIENT_STATUS or status >= 500:
        raise TransientGraphError(message, status_code=status)
    raise GraphError(message, status_code=status)


def _compact(payload: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def _str(value: UUID | None) -> str | None:
    return str(value) if value is not None else None


class GraphClient:
    """``TwinGraph`` implementation over the management REST API.

    One ``ResilientClient`` is opened lazily and shared by every call so the
    rate limit applies across the whole process. Close it with ``aclose`` or
    by using the client as an async context manager.
    """

    def __init__(
        self,
        *,
        config: GraphConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        if config.base_url is None:
            raise ValueError("GraphConfig requires a base_url")
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> GraphClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # types

    async def find_types(
        self, *, tenant_id: UUID, name: str, category: Category
    ) -> Sequence[TypeDescriptor]:
        payload = await self._get_json(
            "types",
            params={"spaceId": str(tenant_id), "names": name, "categories": str(category)},
        )
        return [
            TypeDescriptor(
                id=item.id,
                name=item.name,
                category=Category(item.category),
                tenant_id=item.space_id or tenant_id,
            )
            for item in _types.validate_python(payload)
        ]

    async def create_type(self, *, tenant_id: UUID, name: str, category: Category) -> TypeId:
        created = await self._create(
            "types", {"name": name, "category": str(category), "spaceId": str(tenant_id)}
        )
        return int(created)

    # spaces

    async def get_space(self, space_id: UUID) -> SpaceRecord | None:
        try:
            payload = await self._get_json(f"spaces/{space_id}")
        except GraphNotFound:
            return None
        return _space_record(GraphSpace.model_validate(payload))

    async def find_spaces(
        self, *, name: str | None = None, parent_id: UUID | None = None
    ) -> Sequence[SpaceRecord]:
        params = _compact({"names": name, "spaceId": _str(parent_id)})
        payload = await self._get_json("spaces", params=params)
        return [_space_record(item) for item in _spaces.validate_python(payload)]

    async def create_space(self, space: SpaceCreate) -> UUID:
        created = await self._create(
            "spaces",
            {
                "name": space.name,
                "parentSpaceId": _str(space.parent_id),
                "type": space.type_name,
                "typeId": space.type_id,
                "subtypeId": space.subtype_id,
                "statusId": space.status_id,
                "friendlyName": space.friendly_name,
                "description": space.description,
            },
        )
        return UUID(str(created))

    async def delete_space(self, space_id: UUID) -> None:
        await self._request("DELETE", f"spaces/{space_id}")

    async def set_space_properties(self, space_id: UUID, properties: Mapping[str, str]) -> None:
        for name, value in properties.items():
            await self._request(
                "PUT", f"spaces/{space_id}/properties", json={"name": name, "value": value}
            )

    # devices

    async def find_device(self, hardware_id: str) -> DeviceRecord | None:
        payload = await self._get_json("devices", params={"hardwareIds": hardware_id})
        for item in _devices.validate_python(payload):
            if item.hardware_id == hardware_id:
                return DeviceRecord(
                    id=item.id,
                    hardware_id=item.hardware_id,
                    space_id=item.space_id,
                    name=item.name,
                    gateway_id=item.gateway_id,
                    type_id=item.type_id,
                    subtype_id=item.subtype_id,
                )
        return None

    async def create_device(self, device: DeviceCreate) -> UUID:
        created = await self._create(
            "devices",
            {
                "hardwareId": device.hardware_id,
                "spaceId": str(device.space_id),
                "typeId": device.type_id,
                "subtypeId": device.subtype_id,
                "name": device.name,
                "gatewayId": _str(device.gateway_id),
                "friendlyName": device.friendly_name,
                "description": device.description,
                "createIoTHubDevice": device.create_iot_hub_device,
            },
        )
        return UUID(str(created))

    async def update_device(self, device_id: UUID, update: DeviceUpdate) -> None:
        body = _compact(
            {
                "name": update.name,
                "friendlyName": update.friendly_name,
                "description": update.description,
                "typeId": update.type_id,
                "subtypeId": update.subtype_id,
            }
        )
        await self._request("PATCH", f"devices/{device_id}", json=body)

    async def delete_device(self, device_id: UUID) -> None:
        await self._request("DELETE", f"devices/{device_id}")

    async def set_device_properties(
        self, device_id: UUID, properties: Mapping[str, str]
    ) -> None:
        for name, value in properties.items():
            await self._request(
                "PUT", f"devices/{device_id}/properties", json={"name": name, "value": value}
            )

    # sensors

    async def find_sensor(self, hardware_id: str) -> SensorRecord | None:
        payload = await self._get_json("sensors", params={"hardwareIds": hardware_id})
        for item in _sensors.validate_python(payload):
            if item.hardware_id == hardware_id:
                return SensorRecord(
                    id=item.id,
                    hardware_id=item.hardware_id,
                    device_id=item.device_id,
                    space_id=item.space_id,
                    type_id=item.type_id,
                    data_type_id=item.data_type_id,
                )
        return None

    async def create_sensor(self, sensor: SensorCreate) -> UUID:
        created = await self._create(
            "sensors",
            {
                "hardwareId": sensor.hardware_id,
                "deviceId": str(sensor.device_id),
                "spaceId": _str(sensor.space_id),
                "typeId": sensor.type_id,
                "dataTypeId": sensor.data_type_id,
            },
        )
        return UUID(str(created))

    async def delete_sensor(self, sensor_id: UUID) -> None:
        await self._request("DELETE", f"sensors/{sensor_id}")

    # resources and endpoints

    async def find_resources(
        self, *, kind: ResourceKind, tenant_id: UUID | None
    ) -> Sequence[ProvisionedResource]:
        if kind is ResourceKind.EVENTHUB_ENDPOINT:
            # endpoints are global; the tenant does not scope them
            payload = await self._get_json("endpoints", params={"types": str(kind)})
            return [_endpoint_resource(item) for item in _endpoints.validate_python(payload)]

        params = _compact({"spaceId": _str(tenant_id)})
        payload = await self._get_json("resources", params=params)
        return [
            _hub_resource(item)
            for item in _resources.validate_python(payload)
            if (item.type or "").casefold() == str(kind).casefold()
        ]

    async def create_resource(self, request: ResourceRequest) -> UUID:
        if request.kind is ResourceKind.EVENTHUB_ENDPOINT:
            body: dict[str, Any] = {
                "type": str(request.kind),
                "eventTypes": [str(event_type) for event_type in request.event_types],
                "path": request.path,
                "connectionString": request.connection_string,
                "secondaryConnectionString": request.secondary_connection_string,
            }
        else:
            body = {"type": str(request.kind), "spaceId": _str(request.tenant_id)}
        created = await self._create(_RESOURCE_PATHS[request.kind], body)
        return UUID(str(created))

    async def get_resource(self, kind: ResourceKind, resource_id: UUID) -> ProvisionedResource:
        payload = await self._get_json(f"{_RESOURCE_PATHS[kind]}/{resource_id}")
        if kind is ResourceKind.EVENTHUB_ENDPOINT:
            return _endpoint_resource(GraphEndpoint.model_validate(payload))
        return _hub_resource(GraphResource.model_validate(payload))

    # plumbing

    def _http(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self._resilience)
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json: object = None,
    ) -> httpx.Response:
        try:
            if json is None:
                response = await self._http().request(method, path, params=params)
            else:
                response = await self._http().request(method, path, params=params, json=json)
        except httpx.TransportError as exc:
            raise TransientGraphError(f"{method} {path} failed: {exc}") from exc
        raise_for_graph_status(response)
        return response

    async def _get_json(self, path: str, *, params: Mapping[str, str] | None = None) -> Any:
        response = await self._request("GET", path, params=params)
        try:
            return response.json()
        except ValueError as exc:
            raise GraphError(f"GET {path} returned invalid JSON") from exc

    async def _create(self, path: str, body: Mapping[str, Any]) -> object:
        response = await self._request("POST", path, json=_compact(body))
        try:
            created = response.json()
        except ValueError:
            created = response.text.strip().strip('"')
        if isinstance(created, dict) and "id" in created:
            created = created["id"]
        if created in (None, ""):
            raise GraphError(f"POST {path} did not return an id")
        log.debug("POST %s created %s", path, created)
        return created


def _space_record(item: GraphSpace) -> SpaceRecord:
    return SpaceRecord(
        id=item.id,
        name=item.name,
        parent_id=item.parent_space_id,
        type_id=item.type_id,
        subtype_id=item.subtype_id,
        status_id=item.status_id,
    )


def _hub_resource(item: GraphResource) -> ProvisionedResource:
    return ProvisionedResource(
        id=item.id,
        kind=ResourceKind.IOTHUB,
        status=normalize_status(item.status),
        tenant_id=item.space_id,
    )


def _endpoint_resource(item: GraphEndpoint) -> ProvisionedResource:
    return ProvisionedResource(
        id=item.id,
        kind=ResourceKind.EVENTHUB_ENDPOINT,
        status=normalize_status(item.status),
        path=item.path,
        connection_string=item.connection_string,
        secondary_connection_string=item.secondary_connection_string,
    )
