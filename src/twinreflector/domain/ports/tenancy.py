"""Port for mapping inbound messages to a tenant scope."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from twinreflector.domain.model import IngressMessage, TenantContext


@runtime_checkable
class TenantResolver(Protocol):
    async def resolve(self, message: IngressMessage) -> TenantContext:
        """Return the message's tenant scope or raise ``TenantNotFound``."""
        ...
