"""Port for the external digital twin graph."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from uuid import UUID

    from twinreflector.domain.model import (
        Category,
        DeviceCreate,
        DeviceRecord,
        DeviceUpdate,
        ProvisionedResource,
        ResourceKind,
        ResourceRequest,
        SensorCreate,
        SensorRecord,
        SpaceCreate,
        SpaceRecord,
        TypeDescriptor,
        TypeId,
    )


@runtime_checkable
class TwinGraph(Protocol):
    """CRUD contract the reflector needs from the twin graph.

    Lookups return empty sequences or ``None`` when nothing matches; failing
    calls raise ``GraphError`` subclasses. Creates return the newly minted id.
    Uniqueness of hardware ids and of ``(name, category, tenant)`` types is
    enforced by the graph, not by callers.
    """

    async def find_types(
        self, *, tenant_id: UUID, name: str, category: Category
    ) -> Sequence[TypeDescriptor]: ...

    async def create_type(self, *, tenant_id: UUID, name: str, category: Category) -> TypeId: ...

    async def get_space(self, space_id: UUID) -> SpaceRecord | None: ...

    async def find_spaces(
        self, *, name: str | None = None, parent_id: UUID | None = None
    ) -> Sequence[SpaceRecord]: ...

    async def create_space(self, space: SpaceCreate) -> UUID: ...

    async def delete_space(self, space_id: UUID) -> None: ...

    async def find_device(self, hardware_id: str) -> DeviceRecord | None: ...

    async def create_device(self, device: DeviceCreate) -> UUID: ...

    async def update_device(self, device_id: UUID, update: DeviceUpdate) -> None: ...

    async def delete_device(self, device_id: UUID) -> None: ...

    async def find_sensor(self, hardware_id: str) -> SensorRecord | None: ...

    async def create_sensor(self, sensor: SensorCreate) -> UUID: ...

    async def delete_sensor(self, sensor_id: UUID) -> None: ...

    async def set_space_properties(
        self, space_id: UUID, properties: Mapping[str, str]
    ) -> None: ...

    async def set_device_properties(
        self, device_id: UUID, properties: Mapping[str, str]
    ) -> None: ...

    async def find_resources(
        self, *, kind: ResourceKind, tenant_id: UUID | None
    ) -> Sequence[ProvisionedResource]: ...

    async def create_resource(self, request: ResourceRequest) -> UUID: ...

    async def get_resource(self, kind: ResourceKind, resource_id: UUID) -> ProvisionedResource: ...
