"""Idempotent create-and-wait for infrastructure resources under a tenant."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from twinreflector.domain.errors import ProvisioningFailed, ProvisioningTimeout
from twinreflector.domain.model import (
    EventType,
    ResourceKind,
    ResourceRequest,
    ResourceStatus,
    SpaceCreate,
)
from twinreflector.domain.polling import PollSettings, poll_until

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from twinreflector.domain.model import ProvisionedResource
    from twinreflector.domain.ports import TwinGraph

    type ResourceMatch = Callable[[ProvisionedResource], bool]

log = getLogger(__name__)

TENANT_SPACE_TYPE = "Tenant"
ENTITY_PATH_SUFFIX = ";EntityPath="


@dataclass(frozen=True, slots=True)
class TenantSetup:
    tenant_id: UUID
    hub: ProvisionedResource
    endpoint: ProvisionedResource | None = None


def with_entity_path(connection_string: str, hub_name: str) -> str:
    return f"{connection_string}{ENTITY_PATH_SUFFIX}{hub_name}"


def _same(left: str | None, right: str | None) -> bool:
    if left is None or right is None:
        return left is right
    return left.casefold() == right.casefold()


class ResourceProvisioner:
    """Ensure a resource exists and is usable, creating it at most once.

    Existence is checked before creating, so repeated calls with the same
    criteria return the existing resource. A created resource, or an existing
    one that is not ready yet, is polled until the graph reports its kind's
    ready status or a terminal failure, or until the configured maximum wait
    runs out. A later call after a timeout polls the same resource again.
    """

    def __init__(self, graph: TwinGraph, *, polling: PollSettings) -> None:
        self._graph = graph
        self._polling = polling

    async def ensure_resource(
        self,
        kind: ResourceKind,
        tenant_id: UUID | None,
        match: ResourceMatch,
        request: ResourceRequest,
    ) -> ProvisionedResource:
        existing = await self._graph.find_resources(kind=kind, tenant_id=tenant_id)
        for resource in existing:
            if not match(resource):
                continue
            log.info("Reusing %s %s (status %s)", kind, resource.id, resource.status)
            if resource.is_ready:
                return resource
            if resource.status is ResourceStatus.FAILED:
                raise ProvisioningFailed(
                    f"{kind} {resource.id} failed to provision",
                    kind=kind,
                    resource_id=resource.id,
                )
            return await self._await_ready(kind, resource.id)

        resource_id = await self._graph.create_resource(request)
        log.info("Created %s %s, waiting for %s", kind, resource_id, kind.ready_status)
        return await self._await_ready(kind, resource_id)

    async def _await_ready(self, kind: ResourceKind, resource_id: UUID) -> ProvisionedResource:
        async def check() -> ProvisionedResource:
            return await self._graph.get_resource(kind, resource_id)

        def settled(resource: ProvisionedResource) -> bool:
            return resource.is_ready or resource.status is ResourceStatus.FAILED

        result = await poll_until(check, settled, settings=self._polling)
        resource = result.value
        if result.timed_out or resource is None:
            raise ProvisioningTimeout(
                kind=kind,
                resource_id=resource_id,
                waited=result.elapsed,
                last_status=resource.status if resource is not None else None,
            )
        if resource.status is ResourceStatus.FAILED:
            raise ProvisioningFailed(
                f"{kind} {resource_id} failed to provision",
                kind=kind,
                resource_id=resource_id,
            )
        log.info("%s %s ready after %d polls", kind, resource_id, result.attempts)
        return resource

    async def ensure_hub(self, tenant_id: UUID) -> ProvisionedResource:
        """Any IoT hub resource under the tenant counts as a match."""

        return await self.ensure_resource(
            ResourceKind.IOTHUB,
            tenant_id,
            lambda resource: resource.kind is ResourceKind.IOTHUB,
            ResourceRequest(kind=ResourceKind.IOTHUB, tenant_id=tenant_id),
        )

    async def ensure_event_endpoint(
        self,
        tenant_id: UUID | None,
        *,
        connection_string: str,
        secondary_connection_string: str,
        hub_name: str,
    ) -> ProvisionedResource:
        primary = with_entity_path(connection_string, hub_name)
        secondary = with_entity_path(secondary_connection_string, hub_name)

        def same_endpoint(resource: ProvisionedResource) -> bool:
            return (
                _same(resource.path, hub_name)
                and _same(resource.connection_string, primary)
                and _same(resource.secondary_connection_string, secondary)
            )

        return await self.ensure_resource(
            ResourceKind.EVENTHUB_ENDPOINT,
            tenant_id,
            same_endpoint,
            ResourceRequest(
                kind=ResourceKind.EVENTHUB_ENDPOINT,
                tenant_id=tenant_id,
                path=hub_name,
                connection_string=primary,
                secondary_connection_string=secondary,
                event_types=(EventType.DEVICE_MESSAGE,),
            ),
        )

    async def ensure_tenant_space(self, name: str) -> UUID:
        for space in await self._graph.find_spaces(name=name):
            if space.is_root:
                return space.id

        tenant_id = await self._graph.create_space(
            SpaceCreate(
                name=name,
                type_name=TENANT_SPACE_TYPE,
                friendly_name=name,
                description=f"Tenant space {name}",
            )
        )
        log.info("Created tenant space %r as %s", name, tenant_id)
        return tenant_id

    async def provision_tenant(
        self,
        tenant_name: str,
        *,
        connection_string: str | None = None,
        secondary_connection_string: str | None = None,
        hub_name: str | None = None,
    ) -> TenantSetup:
        """Tenant space, then its hub, then (when configured) the device event endpoint."""

        tenant_id = await self.ensure_tenant_space(tenant_name)
        hub = await self.ensure_hub(tenant_id)

        endpoint: ProvisionedResource | None = None
        if connection_string and secondary_connection_string and hub_name:
            endpoint = await self.ensure_event_endpoint(
                tenant_id,
                connection_string=connection_string,
                secondary_connection_string=secondary_connection_string,
                hub_name=hub_name,
            )
        return TenantSetup(tenant_id=tenant_id, hub=hub, endpoint=endpoint)
