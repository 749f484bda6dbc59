from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from twinreflector.domain.errors import TenantNotFound
from twinreflector.domain.model import IngressMessage, SpaceRecord
from twinreflector.domain.tenancy import FixedTenantResolver, GraphTenantResolver

if TYPE_CHECKING:
    from tests.support.graph import FakeTwinGraph


def test_fixed_resolver_returns_configured_identity() -> None:
    tenant_id, gateway_id = uuid4(), uuid4()
    resolver = FixedTenantResolver(tenant_id=tenant_id, gateway_id=gateway_id)

    context = asyncio.run(resolver.resolve(IngressMessage()))

    assert context.tenant_id == tenant_id
    assert context.gateway_id == gateway_id


def test_graph_resolver_walks_to_root_space(graph: FakeTwinGraph, tenant: SpaceRecord) -> None:
    building = graph.add_space("building-1", parent_id=tenant.id)
    floor = graph.add_space("floor-2", parent_id=building.id)
    gateway = graph.add_device("gw-01", floor.id)

    context = asyncio.run(GraphTenantResolver(graph).resolve(IngressMessage(gatewayId="gw-01")))

    assert context.tenant_id == tenant.id
    assert context.gateway_id == gateway.id


def test_graph_resolver_requires_gateway_reference(graph: FakeTwinGraph) -> None:
    with pytest.raises(TenantNotFound):
        asyncio.run(GraphTenantResolver(graph).resolve(IngressMessage(hardwareId="dev-1")))


def test_graph_resolver_rejects_unknown_gateway(graph: FakeTwinGraph) -> None:
    with pytest.raises(TenantNotFound):
        asyncio.run(GraphTenantResolver(graph).resolve(IngressMessage(gatewayId="nope")))


def test_graph_resolver_gives_up_on_cyclic_ancestry(graph: FakeTwinGraph) -> None:
    first_id, second_id = uuid4(), uuid4()
    graph.spaces[first_id] = SpaceRecord(id=first_id, name="a", parent_id=second_id)
    graph.spaces[second_id] = SpaceRecord(id=second_id, name="b", parent_id=first_id)
    graph.add_device("gw-loop", first_id)

    with pytest.raises(TenantNotFound):
        asyncio.run(
            GraphTenantResolver(graph, max_depth=4).resolve(IngressMessage(gatewayId="gw-loop"))
        )
