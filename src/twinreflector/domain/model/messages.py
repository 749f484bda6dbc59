"""Wire payloads for the ingress and feedback channels."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from twinreflector.domain.model.enums import ErrorCode, Status

type AttributeValue = str | bool | int | float


class WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")


class IngressMessage(WireModel):
    """Lifecycle message as received from the bus.

    The correlation id and the message type travel as headers next to this
    payload, so neither appears here.
    """

    id: UUID | None = None
    hardware_id: str | None = Field(default=None, alias="hardwareId")
    attributes: dict[str, AttributeValue] = Field(default_factory=dict)
    properties: dict[str, str] = Field(default_factory=dict)
    space_id: UUID | None = Field(default=None, alias="spaceId")
    gateway_id: str | None = Field(default=None, alias="gatewayId")
    device_id: str | None = Field(default=None, alias="deviceId")

    def attribute(self, name: str) -> str | None:
        """Attribute as text; JSON booleans read as ``true``/``false``."""
        value = self.attributes.get(name)
        if value is None:
            return None
        text = str(value).lower() if isinstance(value, bool) else str(value).strip()
        return text or None


class FeedbackMessage(WireModel):
    correlation_id: UUID = Field(alias="correlationId")
    status: Status
    error_code: ErrorCode | None = Field(default=None, alias="errorCode")
    detail: str | None = None

    @model_validator(mode="after")
    def _error_code_matches_status(self) -> FeedbackMessage:
        if self.status is Status.ERROR and self.error_code is None:
            raise ValueError("ERROR feedback requires an error code")
        if self.status is Status.PROCESSED and self.error_code is not None:
            raise ValueError("PROCESSED feedback must not carry an error code")
        return self

    @property
    def is_error(self) -> bool:
        return self.status is Status.ERROR

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def processed(cls, correlation_id: UUID) -> FeedbackMessage:
        return cls(correlation_id=correlation_id, status=Status.PROCESSED)

    @classmethod
    def error(
        cls, correlation_id: UUID, error_code: ErrorCode, detail: str | None = None
    ) -> FeedbackMessage:
        return cls(
            correlation_id=correlation_id,
            status=Status.ERROR,
            error_code=error_code,
            detail=detail,
        )
