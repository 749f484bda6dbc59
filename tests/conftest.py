from __future__ import annotations

import pytest

from tests.support.graph import FakeTwinGraph
from twinreflector.adapters.memory_bus import TrackerFeedbackPublisher
from twinreflector.domain.correlation import CorrelationTracker
from twinreflector.domain.feedback import FeedbackEmitter
from twinreflector.domain.ingress import IngressPipeline
from twinreflector.domain.model import SpaceRecord
from twinreflector.domain.tenancy import FixedTenantResolver
from twinreflector.domain.type_registry import TypeRegistry


@pytest.fixture
def graph() -> FakeTwinGraph:
    return FakeTwinGraph()


@pytest.fixture
def tenant(graph: FakeTwinGraph) -> SpaceRecord:
    return graph.add_space("contoso")


@pytest.fixture
def tracker() -> CorrelationTracker:
    return CorrelationTracker()


@pytest.fixture
def pipeline(
    graph: FakeTwinGraph, tenant: SpaceRecord, tracker: CorrelationTracker
) -> IngressPipeline:
    return IngressPipeline(
        graph,
        FixedTenantResolver(tenant_id=tenant.id),
        FeedbackEmitter(TrackerFeedbackPublisher(tracker)),
        TypeRegistry(graph),
    )
