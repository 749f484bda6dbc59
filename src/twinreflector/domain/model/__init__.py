"""Public domain model surface."""

from __future__ import annotations

from twinreflector.domain.model.context import TenantContext
from twinreflector.domain.model.enums import (
    Category,
    ErrorCode,
    ErrorKind,
    EventType,
    MessageType,
    ResourceKind,
    ResourceStatus,
    Status,
)
from twinreflector.domain.model.graph import (
    DeviceCreate,
    DeviceRecord,
    DeviceUpdate,
    ProvisionedResource,
    ResourceRequest,
    SensorCreate,
    SensorRecord,
    SpaceCreate,
    SpaceRecord,
    TypeDescriptor,
    TypeId,
)
from twinreflector.domain.model.messages import FeedbackMessage, IngressMessage

__all__ = [
    "Category",
    "DeviceCreate",
    "DeviceRecord",
    "DeviceUpdate",
    "ErrorCode",
    "ErrorKind",
    "EventType",
    "FeedbackMessage",
    "IngressMessage",
    "MessageType",
    "ProvisionedResource",
    "ResourceKind",
    "ResourceRequest",
    "ResourceStatus",
    "SensorCreate",
    "SensorRecord",
    "SpaceCreate",
    "SpaceRecord",
    "Status",
    "TenantContext",
    "TypeDescriptor",
    "TypeId",
]
