from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from twinreflector.domain.errors import GraphConflict
from twinreflector.domain.model import Category
from twinreflector.domain.type_registry import TypeRegistry

if TYPE_CHECKING:
    from tests.support.graph import FakeTwinGraph
    from twinreflector.domain.model import SpaceRecord


def test_get_or_create_creates_once_and_reuses(graph: FakeTwinGraph, tenant: SpaceRecord) -> None:
    registry = TypeRegistry(graph)

    async def resolve_twice() -> tuple[int, int]:
        first = await registry.get_or_create("Thermostat", Category.DEVICE_TYPE, tenant.id)
        second = await registry.get_or_create("Thermostat", Category.DEVICE_TYPE, tenant.id)
        return first, second

    first, second = asyncio.run(resolve_twice())

    assert first == second
    assert graph.mutations == ["create_type"]
    assert len(graph.types) == 1


def test_get_or_create_returns_existing_id(graph: FakeTwinGraph, tenant: SpaceRecord) -> None:
    existing = graph.add_type("Room", Category.SPACE_TYPE, tenant.id)

    type_id = asyncio.run(TypeRegistry(graph).get_or_create("Room", Category.SPACE_TYPE, tenant.id))

    assert type_id == existing.id
    assert graph.mutations == []


def test_get_or_create_takes_first_of_duplicates(
    graph: FakeTwinGraph, tenant: SpaceRecord
) -> None:
    first = graph.add_type("Room", Category.SPACE_TYPE, tenant.id)
    graph.add_type("Room", Category.SPACE_TYPE, tenant.id)

    type_id = asyncio.run(TypeRegistry(graph).get_or_create("Room", Category.SPACE_TYPE, tenant.id))

    assert type_id == first.id


def test_same_name_in_other_category_or_tenant_is_distinct(
    graph: FakeTwinGraph, tenant: SpaceRecord
) -> None:
    other_tenant = graph.add_space("fabrikam")
    registry = TypeRegistry(graph)

    async def resolve() -> set[int]:
        return {
            await registry.get_or_create("Generic", Category.DEVICE_TYPE, tenant.id),
            await registry.get_or_create("Generic", Category.SENSOR_TYPE, tenant.id),
            await registry.get_or_create("Generic", Category.DEVICE_TYPE, other_tenant.id),
        }

    assert len(asyncio.run(resolve())) == 3


def test_get_or_create_optional_skips_missing_names(
    graph: FakeTwinGraph, tenant: SpaceRecord
) -> None:
    result = asyncio.run(
        TypeRegistry(graph).get_or_create_optional(None, Category.DEVICE_SUBTYPE, tenant.id)
    )

    assert result is None
    assert graph.calls == []


def test_concurrent_first_use_resolves_to_one_type(
    graph: FakeTwinGraph, tenant: SpaceRecord
) -> None:
    registry = TypeRegistry(graph)

    async def race() -> list[int]:
        return list(
            await asyncio.gather(
                registry.get_or_create("Boiler", Category.DEVICE_TYPE, tenant.id),
                registry.get_or_create("Boiler", Category.DEVICE_TYPE, tenant.id),
            )
        )

    ids = asyncio.run(race())

    assert ids[0] == ids[1] == graph.types[0].id
    assert len(graph.types) == 1
    assert graph.conflicts == ["create_type"]


def test_conflict_without_a_readable_type_propagates(
    graph: FakeTwinGraph, tenant: SpaceRecord
) -> None:
    graph.failures["create_type"] = GraphConflict("exists", status_code=409)

    with pytest.raises(GraphConflict):
        asyncio.run(TypeRegistry(graph).get_or_create("Ghost", Category.DEVICE_TYPE, tenant.id))
