"""Failure taxonomy shared by the pipeline, provisioning and adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING

from twinreflector.domain.model.enums import ErrorCode

if TYPE_CHECKING:
    from uuid import UUID

    from twinreflector.domain.model.enums import ResourceKind, ResourceStatus


class ReflectorError(RuntimeError):
    """Base class for errors raised by the reflector."""


class TenantNotFound(ReflectorError):
    """Raised when an inbound message cannot be mapped to a tenant."""


class IngressValidationError(ReflectorError):
    """Raised by handlers when a message violates a precondition."""

    def __init__(self, code: ErrorCode, detail: str) -> None:
        super().__init__(detail)
        self.code = code
        self.detail = detail


class GraphError(ReflectorError):
    """Raised when the twin graph API rejects or fails a call."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def error_code(self) -> ErrorCode:
        return ErrorCode.INTERNAL_ERROR


class GraphNotFound(GraphError):
    @property
    def error_code(self) -> ErrorCode:
        return ErrorCode.ENTITY_NOT_FOUND


class GraphConflict(GraphError):
    @property
    def error_code(self) -> ErrorCode:
        return ErrorCode.CONFLICT


class GraphRequestRejected(GraphError):
    @property
    def error_code(self) -> ErrorCode:
        return ErrorCode.INVALID_ATTRIBUTE


class TransientGraphError(GraphError):
    """Temporary unavailability. Never retried here; redelivery is the recovery path."""

    @property
    def error_code(self) -> ErrorCode:
        return ErrorCode.GRAPH_UNAVAILABLE


class ProvisioningError(ReflectorError):
    def __init__(self, message: str, *, kind: ResourceKind, resource_id: UUID) -> None:
        super().__init__(message)
        self.kind = kind
        self.resource_id = resource_id


class ProvisioningTimeout(ProvisioningError):
    """Raised when a created resource does not become ready within the maximum wait."""

    def __init__(
        self,
        *,
        kind: ResourceKind,
        resource_id: UUID,
        waited: float,
        last_status: ResourceStatus | None,
    ) -> None:
        super().__init__(
            f"{kind} {resource_id} not ready after {waited:.1f}s (last status: {last_status})",
            kind=kind,
            resource_id=resource_id,
        )
        self.waited = waited
        self.last_status = last_status


class ProvisioningFailed(ProvisioningError):
    """Raised when the graph reports a terminal failure for a created resource."""


class FeedbackLost(ReflectorError):
    """Publishing a feedback message failed.

    A lost feedback looks like a hang to whoever waits on it, so this is fatal
    for the consumer rather than something to log and move past.
    """

    def __init__(self, correlation_id: UUID, cause: BaseException) -> None:
        super().__init__(f"Failed to publish feedback for {correlation_id}: {cause}")
        self.correlation_id = correlation_id


class CorrelationTimeout(ReflectorError):
    """Raised when no recorded feedback matched before the wait ceiling."""

    def __init__(self, waited: float, description: str = "feedback") -> None:
        super().__init__(f"No matching {description} after {waited:.2f}s")
        self.waited = waited
