"""One handler per lifecycle message type.

Each handler checks every precondition it can before touching the graph, so
a rejected message leaves no devices, sensors, spaces or types behind. Types
are resolved only after the checks pass.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from twinreflector.domain.errors import GraphConflict, IngressValidationError
from twinreflector.domain.model import (
    Category,
    DeviceCreate,
    DeviceUpdate,
    ErrorCode,
    MessageType,
    SensorCreate,
    SpaceCreate,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from twinreflector.domain.model import (
        DeviceRecord,
        IngressMessage,
        SpaceRecord,
        TenantContext,
    )
    from twinreflector.domain.ports import TwinGraph
    from twinreflector.domain.type_registry import TypeRegistry

log = getLogger(__name__)


class TypesResolved(Protocol):
    def __call__(self) -> None: ...


class MessageHandler(Protocol):
    async def __call__(
        self,
        message: IngressMessage,
        context: TenantContext,
        *,
        on_types_resolved: TypesResolved,
    ) -> None: ...


def require_hardware_id(message: IngressMessage) -> str:
    hardware_id = (message.hardware_id or "").strip()
    if not hardware_id:
        raise IngressValidationError(ErrorCode.MISSING_ATTRIBUTE, "hardwareId is required")
    return hardware_id


def require_attribute(message: IngressMessage, name: str) -> str:
    value = message.attribute(name)
    if value is None:
        raise IngressValidationError(ErrorCode.MISSING_ATTRIBUTE, f"attribute {name!r} is required")
    return value


class LifecycleHandlers:
    """Apply lifecycle messages to the twin graph within a tenant."""

    def __init__(self, graph: TwinGraph, registry: TypeRegistry) -> None:
        self._graph = graph
        self._registry = registry

    def table(self) -> Mapping[MessageType, MessageHandler]:
        return {
            MessageType.DEVICE_CREATE: self.create_device,
            MessageType.DEVICE_UPDATE: self.update_device,
            MessageType.DEVICE_DELETE: self.delete_device,
            MessageType.SENSOR_CREATE: self.create_sensor,
            MessageType.SENSOR_DELETE: self.delete_sensor,
            MessageType.SPACE_CREATE: self.create_space,
            MessageType.SPACE_DELETE: self.delete_space,
            MessageType.PROPERTY_UPDATE: self.update_properties,
        }

    # devices

    async def create_device(
        self,
        message: IngressMessage,
        context: TenantContext,
        *,
        on_types_resolved: TypesResolved,
    ) -> None:
        hardware_id = require_hardware_id(message)
        type_name = require_attribute(message, "type")
        if await self._graph.find_device(hardware_id) is not None:
            raise IngressValidationError(
                ErrorCode.DUPLICATE_HARDWARE_ID, f"device {hardware_id!r} already exists"
            )
        space_id = await self._parent_space(message, context)

        type_id = await self._registry.get_or_create(
            type_name, Category.DEVICE_TYPE, context.tenant_id
        )
        subtype_id = await self._registry.get_or_create_optional(
            message.attribute("subtype"), Category.DEVICE_SUBTYPE, context.tenant_id
        )
        on_types_resolved()

        request = DeviceCreate(
            hardware_id=hardware_id,
            space_id=space_id,
            type_id=type_id,
            subtype_id=subtype_id,
            name=message.attribute("name") or hardware_id,
            friendly_name=message.attribute("friendlyName"),
            description=message.attribute("description"),
            gateway_id=context.gateway_id,
        )
        try:
            device_id = await self._graph.create_device(request)
        except GraphConflict as exc:
            raise IngressValidationError(
                ErrorCode.DUPLICATE_HARDWARE_ID, f"device {hardware_id!r} already exists"
            ) from exc
        log.info("Created device %s (%s) in space %s", hardware_id, device_id, space_id)

    async def update_device(
        self,
        message: IngressMessage,
        context: TenantContext,
        *,
        on_types_resolved: TypesResolved,
    ) -> None:
        device = await self._existing_device(require_hardware_id(message))

        type_id = await self._registry.get_or_create_optional(
            message.attribute("type"), Category.DEVICE_TYPE, context.tenant_id
        )
        subtype_id = await self._registry.get_or_create_optional(
            message.attribute("subtype"), Category.DEVICE_SUBTYPE, context.tenant_id
        )
        on_types_resolved()

        update = DeviceUpdate(
            name=message.attribute("name"),
            friendly_name=message.attribute("friendlyName"),
            description=message.attribute("description"),
            type_id=type_id,
            subtype_id=subtype_id,
        )
        if update.is_empty:
            log.debug("Nothing to update on device %s", device.hardware_id)
            return
        await self._graph.update_device(device.id, update)
        log.info("Updated device %s", device.hardware_id)

    async def delete_device(
        self,
        message: IngressMessage,
        context: TenantContext,
        *,
        on_types_resolved: TypesResolved,
    ) -> None:
        device = await self._existing_device(require_hardware_id(message))
        await self._graph.delete_device(device.id)
        log.info("Deleted device %s", device.hardware_id)

    # sensors

    async def create_sensor(
        self,
        message: IngressMessage,
        context: TenantContext,
        *,
        on_types_resolved: TypesResolved,
    ) -> None:
        hardware_id = require_hardware_id(message)
        device_hardware_id = (message.device_id or "").strip()
        if not device_hardware_id:
            raise IngressValidationError(ErrorCode.MISSING_ATTRIBUTE, "deviceId is required")
        type_name = require_attribute(message, "type")
        if await self._graph.find_sensor(hardware_id) is not None:
            raise IngressValidationError(
                ErrorCode.DUPLICATE_HARDWARE_ID, f"sensor {hardware_id!r} already exists"
            )
        device = await self._existing_device(device_hardware_id)

        type_id = await self._registry.get_or_create(
            type_name, Category.SENSOR_TYPE, context.tenant_id
        )
        data_type_id = await self._registry.get_or_create_optional(
            message.attribute("dataType"), Category.SENSOR_DATA_TYPE, context.tenant_id
        )
        on_types_resolved()

        request = SensorCreate(
            hardware_id=hardware_id,
            device_id=device.id,
            space_id=device.space_id,
            type_id=type_id,
            data_type_id=data_type_id,
        )
        try:
            sensor_id = await self._graph.create_sensor(request)
        except GraphConflict as exc:
            raise IngressValidationError(
                ErrorCode.DUPLICATE_HARDWARE_ID, f"sensor {hardware_id!r} already exists"
            ) from exc
        log.info("Created sensor %s (%s) on device %s", hardware_id, sensor_id, device.hardware_id)

    async def delete_sensor(
        self,
        message: IngressMessage,
        context: TenantContext,
        *,
        on_types_resolved: TypesResolved,
    ) -> None:
        hardware_id = require_hardware_id(message)
        sensor = await self._graph.find_sensor(hardware_id)
        if sensor is None:
            raise IngressValidationError(
                ErrorCode.SENSOR_NOT_FOUND, f"no sensor with hardware id {hardware_id!r}"
            )
        await self._graph.delete_sensor(sensor.id)
        log.info("Deleted sensor %s", hardware_id)

    # spaces

    async def create_space(
        self,
        message: IngressMessage,
        context: TenantContext,
        *,
        on_types_resolved: TypesResolved,
    ) -> None:
        name = require_attribute(message, "name")
        type_name = require_attribute(message, "type")
        parent_id = await self._parent_space(message, context)

        type_id = await self._registry.get_or_create(
            type_name, Category.SPACE_TYPE, context.tenant_id
        )
        subtype_id = await self._registry.get_or_create_optional(
            message.attribute("subtype"), Category.SPACE_SUBTYPE, context.tenant_id
        )
        status_id = await self._registry.get_or_create_optional(
            message.attribute("status"), Category.SPACE_STATUS, context.tenant_id
        )
        on_types_resolved()

        space_id = await self._graph.create_space(
            SpaceCreate(
                name=name,
                parent_id=parent_id,
                type_name=type_name,
                type_id=type_id,
                subtype_id=subtype_id,
                status_id=status_id,
                friendly_name=message.attribute("friendlyName"),
                description=message.attribute("description"),
            )
        )
        log.info("Created space %r (%s) under %s", name, space_id, parent_id)

    async def delete_space(
        self,
        message: IngressMessage,
        context: TenantContext,
        *,
        on_types_resolved: TypesResolved,
    ) -> None:
        if message.id is None:
            raise IngressValidationError(ErrorCode.MISSING_ATTRIBUTE, "id is required")
        space = await self._existing_space(message.id)
        await self._graph.delete_space(space.id)
        log.info("Deleted space %r (%s)", space.name, space.id)

    # properties

    async def update_properties(
        self,
        message: IngressMessage,
        context: TenantContext,
        *,
        on_types_resolved: TypesResolved,
    ) -> None:
        if not message.properties:
            raise IngressValidationError(
                ErrorCode.MISSING_ATTRIBUTE, "properties must not be empty"
            )
        if message.id is not None:
            space = await self._existing_space(message.id)
            await self._graph.set_space_properties(space.id, message.properties)
            log.info("Set %d properties on space %s", len(message.properties), space.id)
            return
        if (message.hardware_id or "").strip():
            device = await self._existing_device(require_hardware_id(message))
            await self._graph.set_device_properties(device.id, message.properties)
            log.info("Set %d properties on device %s", len(message.properties), device.hardware_id)
            return
        raise IngressValidationError(
            ErrorCode.MISSING_ATTRIBUTE, "a space id or device hardwareId is required"
        )

    # lookups

    async def _existing_device(self, hardware_id: str) -> DeviceRecord:
        device = await self._graph.find_device(hardware_id)
        if device is None:
            raise IngressValidationError(
                ErrorCode.DEVICE_NOT_FOUND, f"no device with hardware id {hardware_id!r}"
            )
        return device

    async def _existing_space(self, space_id: UUID) -> SpaceRecord:
        space = await self._graph.get_space(space_id)
        if space is None:
            raise IngressValidationError(ErrorCode.SPACE_NOT_FOUND, f"no space {space_id}")
        return space

    async def _parent_space(self, message: IngressMessage, context: TenantContext) -> UUID:
        if message.space_id is None:
            return context.tenant_id
        return (await self._existing_space(message.space_id)).id
