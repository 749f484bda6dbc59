"""Records and create specs exchanged with the twin graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from twinreflector.domain.model.enums import EventType, ResourceKind, ResourceStatus

if TYPE_CHECKING:
    from uuid import UUID

    from twinreflector.domain.model.enums import Category

type TypeId = int


@dataclass(frozen=True, slots=True)
class TypeDescriptor:
    id: TypeId
    name: str
    category: Category
    tenant_id: UUID


@dataclass(frozen=True, slots=True)
class SpaceRecord:
    id: UUID
    name: str
    parent_id: UUID | None = None
    type_id: TypeId | None = None
    subtype_id: TypeId | None = None
    status_id: TypeId | None = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


@dataclass(frozen=True, slots=True)
class DeviceRecord:
    id: UUID
    hardware_id: str
    space_id: UUID
    name: str | None = None
    gateway_id: UUID | None = None
    type_id: TypeId | None = None
    subtype_id: TypeId | None = None


@dataclass(frozen=True, slots=True)
class SensorRecord:
    id: UUID
    hardware_id: str
    device_id: UUID
    space_id: UUID | None = None
    type_id: TypeId | None = None
    data_type_id: TypeId | None = None


@dataclass(frozen=True, slots=True)
class SpaceCreate:
    name: str
    parent_id: UUID | None = None
    type_name: str | None = None
    type_id: TypeId | None = None
    subtype_id: TypeId | None = None
    status_id: TypeId | None = None
    friendly_name: str | None = None
    description: str | None = None


@dataclass(frozen=True, slots=True)
class DeviceCreate:
    hardware_id: str
    space_id: UUID
    type_id: TypeId
    name: str | None = None
    gateway_id: UUID | None = None
    subtype_id: TypeId | None = None
    friendly_name: str | None = None
    description: str | None = None
    create_iot_hub_device: bool = False


@dataclass(frozen=True, slots=True)
class DeviceUpdate:
    name: str | None = None
    friendly_name: str | None = None
    description: str | None = None
    type_id: TypeId | None = None
    subtype_id: TypeId | None = None

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.name,
                self.friendly_name,
                self.description,
                self.type_id,
                self.subtype_id,
            )
        )


@dataclass(frozen=True, slots=True)
class SensorCreate:
    hardware_id: str
    device_id: UUID
    type_id: TypeId
    space_id: UUID | None = None
    data_type_id: TypeId | None = None


@dataclass(frozen=True, slots=True)
class ProvisionedResource:
    id: UUID
    kind: ResourceKind
    status: ResourceStatus
    tenant_id: UUID | None = None
    path: str | None = None
    connection_string: str | None = None
    secondary_connection_string: str | None = None

    @property
    def is_ready(self) -> bool:
        return self.status is self.kind.ready_status


@dataclass(frozen=True, slots=True)
class ResourceRequest:
    kind: ResourceKind
    tenant_id: UUID | None = None
    path: str | None = None
    connection_string: str | None = None
    secondary_connection_string: str | None = None
    event_types: tuple[EventType, ...] = field(default_factory=tuple)
