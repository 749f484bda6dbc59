"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
import signal
from logging import getLogger
from typing import TYPE_CHECKING

from twinreflector.adapters.graph import GraphClient
from twinreflector.adapters.redis_bus import (
    RedisFeedbackListener,
    RedisFeedbackPublisher,
    RedisIngressSender,
    RedisIngressSource,
    connect,
)
from twinreflector.config import (
    get_bus_config,
    get_graph_config,
    get_provisioning_config,
    get_tenant_config,
)
from twinreflector.domain.correlation import CorrelationTracker, ReflectorClient
from twinreflector.domain.feedback import FeedbackEmitter
from twinreflector.domain.ingress import IngressConsumer, IngressPipeline
from twinreflector.domain.provisioning import ResourceProvisioner
from twinreflector.domain.tenancy import FixedTenantResolver, GraphTenantResolver
from twinreflector.domain.type_registry import TypeRegistry

if TYPE_CHECKING:
    from collections.abc import Callable

    from redis.asyncio import Redis

    from twinreflector.adapters.http_resilience import ResilientClient
    from twinreflector.config import (
        BusConfig,
        GraphConfig,
        ProvisioningConfig,
        ResilienceConfig,
        TenantConfig,
    )
    from twinreflector.domain.correlation import SentMessage
    from twinreflector.domain.model import IngressMessage, MessageType
    from twinreflector.domain.ports import FeedbackPublisher, TenantResolver, TwinGraph
    from twinreflector.domain.provisioning import TenantSetup

    type ClientFactory = Callable[[ResilienceConfig], ResilientClient]

log = getLogger(__name__)


def build_resolver(graph: TwinGraph, tenant_config: TenantConfig) -> TenantResolver:
    if tenant_config.tenant_id is not None:
        log.info("Using fixed tenant %s", tenant_config.tenant_id)
        return FixedTenantResolver(
            tenant_id=tenant_config.tenant_id, gateway_id=tenant_config.gateway_id
        )
    return GraphTenantResolver(graph)


def build_pipeline(
    graph: TwinGraph,
    publisher: FeedbackPublisher,
    *,
    tenant_config: TenantConfig,
) -> IngressPipeline:
    return IngressPipeline(
        graph,
        build_resolver(graph, tenant_config),
        FeedbackEmitter(publisher),
        TypeRegistry(graph),
    )


async def serve_async(
    *,
    graph_config: GraphConfig,
    bus_config: BusConfig,
    tenant_config: TenantConfig,
    redis_client: Redis | None = None,
    client_factory: ClientFactory | None = None,
    handle_signals: bool = True,
) -> None:
    redis = redis_client or connect(bus_config)
    async with GraphClient(config=graph_config, client_factory=client_factory) as graph:
        pipeline = build_pipeline(
            graph, RedisFeedbackPublisher(redis, bus_config), tenant_config=tenant_config
        )
        consumer = IngressConsumer(
            RedisIngressSource(redis, bus_config),
            pipeline,
            max_in_flight=bus_config.max_in_flight,
        )
        if handle_signals:
            loop = asyncio.get_running_loop()
            for signum in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(signum, consumer.stop)

        log.info(
            "Serving %s as %s/%s (max in flight %d)",
            bus_config.ingress_stream,
            bus_config.consumer_group,
            bus_config.consumer_name,
            bus_config.max_in_flight,
        )
        try:
            await consumer.run()
        finally:
            if redis_client is None:
                await redis.aclose()


def serve(
    *,
    graph_config: GraphConfig | None = None,
    bus_config: BusConfig | None = None,
    tenant_config: TenantConfig | None = None,
) -> None:
    """Consume the ingress stream until interrupted."""

    asyncio.run(
        serve_async(
            graph_config=graph_config or get_graph_config(),
            bus_config=bus_config or get_bus_config(),
            tenant_config=tenant_config or get_tenant_config(),
        )
    )


async def provision_tenant_async(
    *,
    graph_config: GraphConfig,
    provisioning_config: ProvisioningConfig,
    client_factory: ClientFactory | None = None,
) -> TenantSetup:
    event_hub = provisioning_config.event_hub
    async with GraphClient(config=graph_config, client_factory=client_factory) as graph:
        provisioner = ResourceProvisioner(graph, polling=provisioning_config.polling)
        setup = await provisioner.provision_tenant(
            provisioning_config.tenant_name,
            connection_string=event_hub.primary_connection_string if event_hub else None,
            secondary_connection_string=(
                event_hub.secondary_connection_string if event_hub else None
            ),
            hub_name=event_hub.hub_name if event_hub else None,
        )
    log.info(
        "Tenant %r ready: space=%s hub=%s endpoint=%s",
        provisioning_config.tenant_name,
        setup.tenant_id,
        setup.hub.id,
        setup.endpoint.id if setup.endpoint else None,
    )
    return setup


def provision_tenant(
    *,
    graph_config: GraphConfig | None = None,
    provisioning_config: ProvisioningConfig | None = None,
) -> TenantSetup:
    """Create (or reuse) the tenant space, its hub and the device event endpoint."""

    return asyncio.run(
        provision_tenant_async(
            graph_config=graph_config or get_graph_config(),
            provisioning_config=provisioning_config or get_provisioning_config(),
        )
    )


async def send_message_async(
    message: IngressMessage,
    message_type: MessageType,
    *,
    bus_config: BusConfig,
    redis_client: Redis | None = None,
    max_wait: float = 60.0,
) -> SentMessage:
    redis = redis_client or connect(bus_config)
    tracker = CorrelationTracker()
    listener = RedisFeedbackListener(redis, bus_config, tracker)
    listening: asyncio.Task[None] | None = None
    try:
        await listener.prime()
        listening = asyncio.create_task(listener.run(), name="feedback-listener")
        client = ReflectorClient(RedisIngressSender(redis, bus_config), tracker, max_wait=max_wait)
        return await client.send_and_await(message, message_type, status=None)
    finally:
        listener.stop()
        if listening is not None:
            listening.cancel()
            await asyncio.gather(listening, return_exceptions=True)
        if redis_client is None:
            await redis.aclose()


def send_message(
    message: IngressMessage,
    message_type: MessageType,
    *,
    bus_config: BusConfig | None = None,
    max_wait: float = 60.0,
) -> SentMessage:
    """Publish one message with a fresh correlation id and wait for its feedback."""

    return asyncio.run(
        send_message_async(
            message,
            message_type,
            bus_config=bus_config or get_bus_config(),
            max_wait=max_wait,
        )
    )
