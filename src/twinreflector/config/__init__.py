"""Application configuration helpers."""

from __future__ import annotations

from .bus import BusConfig, get_bus_config
from .env import optional_env_var, require_env_var, require_env_vars
from .errors import (
    ConfigurationError,
    InvalidConfigurationError,
    MissingConfigurationError,
)
from .graph import GraphConfig, get_graph_config
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .provisioning import (
    EventHubConfig,
    ProvisioningConfig,
    TenantConfig,
    get_provisioning_config,
    get_tenant_config,
)

__all__ = [
    "BusConfig",
    "ConfigurationError",
    "EventHubConfig",
    "GraphConfig",
    "InvalidConfigurationError",
    "MissingConfigurationError",
    "ProvisioningConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "TenantConfig",
    "configure_logging",
    "get_bus_config",
    "get_graph_config",
    "get_provisioning_config",
    "get_tenant_config",
    "optional_env_var",
    "require_env_var",
    "require_env_vars",
]
