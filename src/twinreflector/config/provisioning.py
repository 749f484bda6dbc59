"""Provisioning and tenant configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from twinreflector.domain.polling import PollSettings

from .env import env_float, env_uuid, optional_env_var, require_env_vars

if TYPE_CHECKING:
    from uuid import UUID

# hub and endpoint provisioning takes minutes
RESOURCE_INITIAL_DELAY_SECONDS = 10.0
RESOURCE_POLL_INTERVAL_SECONDS = 1.0
RESOURCE_MAX_WAIT_SECONDS = 15 * 60.0


def default_resource_polling() -> PollSettings:
    return PollSettings(
        initial_delay=RESOURCE_INITIAL_DELAY_SECONDS,
        interval=RESOURCE_POLL_INTERVAL_SECONDS,
        max_wait=RESOURCE_MAX_WAIT_SECONDS,
    )


@dataclass(frozen=True, slots=True)
class EventHubConfig:
    primary_connection_string: str
    secondary_connection_string: str
    hub_name: str


@dataclass(frozen=True, slots=True)
class ProvisioningConfig:
    tenant_name: str
    event_hub: EventHubConfig | None = None
    polling: PollSettings = field(default_factory=default_resource_polling)


@dataclass(frozen=True, slots=True)
class TenantConfig:
    """Fixed tenant identity; when ``tenant_id`` is unset the graph lookup is used."""

    tenant_id: UUID | None = None
    gateway_id: UUID | None = None


def get_provisioning_config() -> ProvisioningConfig:
    values = require_env_vars(("TWIN_TENANT_NAME",))

    event_hub: EventHubConfig | None = None
    primary = optional_env_var("EVENTHUB_PRIMARY_CONNECTION_STRING")
    if primary:
        hub_values = require_env_vars(
            ("EVENTHUB_SECONDARY_CONNECTION_STRING", "EVENTHUB_DEVICES_HUB_NAME")
        )
        event_hub = EventHubConfig(
            primary_connection_string=primary,
            secondary_connection_string=hub_values["EVENTHUB_SECONDARY_CONNECTION_STRING"],
            hub_name=hub_values["EVENTHUB_DEVICES_HUB_NAME"],
        )

    polling = PollSettings(
        initial_delay=env_float(
            "PROVISIONING_INITIAL_DELAY_SECONDS", RESOURCE_INITIAL_DELAY_SECONDS
        ),
        interval=env_float("PROVISIONING_POLL_INTERVAL_SECONDS", RESOURCE_POLL_INTERVAL_SECONDS),
        max_wait=env_float("PROVISIONING_MAX_WAIT_SECONDS", RESOURCE_MAX_WAIT_SECONDS),
    )
    return ProvisioningConfig(
        tenant_name=values["TWIN_TENANT_NAME"],
        event_hub=event_hub,
        polling=polling,
    )


def get_tenant_config() -> TenantConfig:
    return TenantConfig(
        tenant_id=env_uuid("TWIN_TENANT_ID"),
        gateway_id=env_uuid("TWIN_GATEWAY_ID"),
    )
