"""Response and request schemas for the twin graph management API."""

from __future__ import annotations

import logging
from typing import ClassVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from twinreflector.domain.model import ResourceStatus

log = logging.getLogger(__name__)

_STATUS_NAMES: dict[str, ResourceStatus] = {
    "provisioning": ResourceStatus.PROVISIONING,
    "running": ResourceStatus.RUNNING,
    "ready": ResourceStatus.READY,
    "failed": ResourceStatus.FAILED,
}


def normalize_status(raw: str | None) -> ResourceStatus:
    if raw is None:
        return ResourceStatus.UNKNOWN
    return _STATUS_NAMES.get(raw.strip().casefold(), ResourceStatus.UNKNOWN)


class GraphBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug("Graph %s: unmodeled keys: %s", type(self).__name__, ", ".join(sorted(new_keys)))


class GraphType(GraphBaseModel):
    id: int
    name: str
    category: str
    space_id: UUID | None = Field(default=None, alias="spaceId")


class GraphSpace(GraphBaseModel):
    id: UUID
    name: str
    parent_space_id: UUID | None = Field(default=None, alias="parentSpaceId")
    type_id: int | None = Field(default=None, alias="typeId")
    subtype_id: int | None = Field(default=None, alias="subtypeId")
    status_id: int | None = Field(default=None, alias="statusId")


class GraphDevice(GraphBaseModel):
    id: UUID
    hardware_id: str = Field(alias="hardwareId")
    space_id: UUID = Field(alias="spaceId")
    name: str | None = None
    gateway_id: UUID | None = Field(default=None, alias="gatewayId")
    type_id: int | None = Field(default=None, alias="typeId")
    subtype_id: int | None = Field(default=None, alias="subtypeId")


class GraphSensor(GraphBaseModel):
    id: UUID
    hardware_id: str = Field(alias="hardwareId")
    device_id: UUID = Field(alias="deviceId")
    space_id: UUID | None = Field(default=None, alias="spaceId")
    type_id: int | None = Field(default=None, alias="typeId")
    data_type_id: int | None = Field(default=None, alias="dataTypeId")


class GraphResource(GraphBaseModel):
    """A space resource such as an IoT hub."""

    id: UUID
    type: str | None = None
    status: str | None = None
    space_id: UUID | None = Field(default=None, alias="spaceId")


class GraphEndpoint(GraphBaseModel):
    id: UUID
    type: str | None = None
    status: str | None = None
    path: str | None = None
    event_types: list[str] = Field(default_factory=list, alias="eventTypes")
    connection_string: str | None = Field(default=None, alias="connectionString")
    secondary_connection_string: str | None = Field(
        default=None, alias="secondaryConnectionString"
    )
