"""Resolve human readable type names to graph type ids, creating them on first use."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from twinreflector.domain.errors import GraphConflict

if TYPE_CHECKING:
    from uuid import UUID

    from twinreflector.domain.model import Category, TypeId
    from twinreflector.domain.ports import TwinGraph

log = getLogger(__name__)


class TypeRegistry:
    """Get-or-create over the graph's type registry.

    There is no local lock: two first-time callers racing for the same
    ``(name, category, tenant)`` rely on the graph's uniqueness constraint,
    and the loser of that race reads back the winner's type.
    """

    def __init__(self, graph: TwinGraph) -> None:
        self._graph = graph

    async def get_or_create(self, name: str, category: Category, tenant_id: UUID) -> TypeId:
        found = await self._find(name, category, tenant_id)
        if found is not None:
            return found

        try:
            type_id = await self._graph.create_type(
                tenant_id=tenant_id, name=name, category=category
            )
        except GraphConflict:
            found = await self._find(name, category, tenant_id)
            if found is None:
                raise
            log.debug("Lost the race to register %s %r; reusing type %s", category, name, found)
            return found
        log.info("Registered %s %r as type %s in tenant %s", category, name, type_id, tenant_id)
        return type_id

    async def _find(self, name: str, category: Category, tenant_id: UUID) -> TypeId | None:
        found = await self._graph.find_types(tenant_id=tenant_id, name=name, category=category)
        if found:
            if len(found) > 1:
                log.warning(
                    "Type registry returned %d entries for %s/%s in tenant %s; using %s",
                    len(found),
                    category,
                    name,
                    tenant_id,
                    found[0].id,
                )
            return found[0].id
        return None

    async def get_or_create_optional(
        self, name: str | None, category: Category, tenant_id: UUID
    ) -> TypeId | None:
        if name is None:
            return None
        return await self.get_or_create(name, category, tenant_id)
