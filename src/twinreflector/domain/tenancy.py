"""Tenant context resolvers."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from twinreflector.domain.errors import TenantNotFound
from twinreflector.domain.model import TenantContext

if TYPE_CHECKING:
    from uuid import UUID

    from twinreflector.domain.model import IngressMessage
    from twinreflector.domain.ports import TwinGraph

log = getLogger(__name__)

DEFAULT_MAX_SPACE_DEPTH = 16


@dataclass(frozen=True, slots=True)
class FixedTenantResolver:
    """Resolve every message to one configured tenant (and optional gateway)."""

    tenant_id: UUID
    gateway_id: UUID | None = None

    async def resolve(self, message: IngressMessage) -> TenantContext:
        del message
        return TenantContext(tenant_id=self.tenant_id, gateway_id=self.gateway_id)


class GraphTenantResolver:
    """Resolve the tenant from the sending gateway's registration in the graph.

    The message's ``gatewayId`` is the gateway's hardware id. Its device record
    places it in a space; walking that space's ancestry up to the root yields
    the tenant.
    """

    def __init__(self, graph: TwinGraph, *, max_depth: int = DEFAULT_MAX_SPACE_DEPTH) -> None:
        self._graph = graph
        self._max_depth = max_depth

    async def resolve(self, message: IngressMessage) -> TenantContext:
        hardware_id = message.gateway_id
        if not hardware_id:
            raise TenantNotFound("Message carries no gateway reference")

        gateway = await self._graph.find_device(hardware_id)
        if gateway is None:
            raise TenantNotFound(f"No gateway registered with hardware id {hardware_id!r}")

        tenant_id = await self._root_space(gateway.space_id)
        return TenantContext(tenant_id=tenant_id, gateway_id=gateway.id)

    async def _root_space(self, space_id: UUID) -> UUID:
        current = space_id
        for _ in range(self._max_depth):
            space = await self._graph.get_space(current)
            if space is None:
                raise TenantNotFound(f"Space {current} in gateway ancestry does not exist")
            if space.parent_id is None:
                return space.id
            current = space.parent_id
        raise TenantNotFound(f"Space ancestry of {space_id} exceeds {self._max_depth} levels")
