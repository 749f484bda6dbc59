"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class MessageType(StrEnum):
    """Closed set of inbound lifecycle messages; each member has exactly one handler."""

    DEVICE_CREATE = "DEVICE_CREATE"
    DEVICE_UPDATE = "DEVICE_UPDATE"
    DEVICE_DELETE = "DEVICE_DELETE"
    SENSOR_CREATE = "SENSOR_CREATE"
    SENSOR_DELETE = "SENSOR_DELETE"
    SPACE_CREATE = "SPACE_CREATE"
    SPACE_DELETE = "SPACE_DELETE"
    PROPERTY_UPDATE = "PROPERTY_UPDATE"


class Status(StrEnum):
    PROCESSED = "PROCESSED"
    ERROR = "ERROR"


class ErrorKind(StrEnum):
    TENANT = "tenant"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TRANSIENT = "transient"
    INTERNAL = "internal"


class ErrorCode(StrEnum):
    TENANT_NOT_FOUND = "TENANT_NOT_FOUND"

    MALFORMED_PAYLOAD = "MALFORMED_PAYLOAD"
    UNSUPPORTED_MESSAGE_TYPE = "UNSUPPORTED_MESSAGE_TYPE"
    MISSING_ATTRIBUTE = "MISSING_ATTRIBUTE"
    INVALID_ATTRIBUTE = "INVALID_ATTRIBUTE"

    DEVICE_NOT_FOUND = "DEVICE_NOT_FOUND"
    SENSOR_NOT_FOUND = "SENSOR_NOT_FOUND"
    SPACE_NOT_FOUND = "SPACE_NOT_FOUND"
    ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"

    DUPLICATE_HARDWARE_ID = "DUPLICATE_HARDWARE_ID"
    CONFLICT = "CONFLICT"

    GRAPH_UNAVAILABLE = "GRAPH_UNAVAILABLE"

    INTERNAL_ERROR = "INTERNAL_ERROR"

    @property
    def kind(self) -> ErrorKind:
        return _ERROR_KINDS[self]


_ERROR_KINDS: dict[ErrorCode, ErrorKind] = {
    ErrorCode.TENANT_NOT_FOUND: ErrorKind.TENANT,
    ErrorCode.MALFORMED_PAYLOAD: ErrorKind.VALIDATION,
    ErrorCode.UNSUPPORTED_MESSAGE_TYPE: ErrorKind.VALIDATION,
    ErrorCode.MISSING_ATTRIBUTE: ErrorKind.VALIDATION,
    ErrorCode.INVALID_ATTRIBUTE: ErrorKind.VALIDATION,
    ErrorCode.DEVICE_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.SENSOR_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.SPACE_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.ENTITY_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.DUPLICATE_HARDWARE_ID: ErrorKind.CONFLICT,
    ErrorCode.CONFLICT: ErrorKind.CONFLICT,
    ErrorCode.GRAPH_UNAVAILABLE: ErrorKind.TRANSIENT,
    ErrorCode.INTERNAL_ERROR: ErrorKind.INTERNAL,
}


class Category(StrEnum):
    """Type registry categories as named by the graph API."""

    SENSOR_TYPE = "SensorType"
    SENSOR_DATA_TYPE = "SensorDataType"
    SENSOR_DATA_UNIT_TYPE = "SensorDataUnitType"
    DEVICE_TYPE = "DeviceType"
    DEVICE_SUBTYPE = "DeviceSubtype"
    SPACE_TYPE = "SpaceType"
    SPACE_SUBTYPE = "SpaceSubtype"
    SPACE_STATUS = "SpaceStatus"


class ResourceStatus(StrEnum):
    PROVISIONING = "provisioning"
    RUNNING = "running"
    READY = "ready"
    FAILED = "failed"
    UNKNOWN = "unknown"


class ResourceKind(StrEnum):
    IOTHUB = "IotHub"
    EVENTHUB_ENDPOINT = "EventHub"

    @property
    def ready_status(self) -> ResourceStatus:
        """Status the graph reports once a resource of this kind is usable."""
        if self is ResourceKind.IOTHUB:
            return ResourceStatus.RUNNING
        return ResourceStatus.READY


class EventType(StrEnum):
    DEVICE_MESSAGE = "DeviceMessage"
    SENSOR_CHANGE = "SensorChange"
    SPACE_CHANGE = "SpaceChange"
    TOPOLOGY_OPERATION = "TopologyOperation"
