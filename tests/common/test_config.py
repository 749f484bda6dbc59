from __future__ import annotations

import logging
import os
from uuid import uuid4

import pytest

from twinreflector.config import (
    ConfigurationError,
    InvalidConfigurationError,
    MissingConfigurationError,
    RateLimit,
    RetryPolicy,
    configure_logging,
    get_bus_config,
    get_graph_config,
    get_provisioning_config,
    get_tenant_config,
    require_env_var,
    require_env_vars,
)
from twinreflector.config.provisioning import RESOURCE_MAX_WAIT_SECONDS


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    assert require_env_vars(["EXAMPLE_VAR"])["EXAMPLE_VAR"] == "value"


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_A", raising=False)
    monkeypatch.setenv("MISSING_B", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_A", "MISSING_B"])

    assert "MISSING_A" in str(exc.value)
    assert "MISSING_B" in str(exc.value)


def test_require_env_var_reads_single_value(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEMP_VAR", "123")

    assert os.getenv("TEMP_VAR") == "123"
    assert require_env_var("TEMP_VAR") == "123"


def test_graph_config_requires_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TWIN_GRAPH_URL", raising=False)

    with pytest.raises(MissingConfigurationError):
        get_graph_config()


def test_graph_config_builds_resilience(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TWIN_GRAPH_URL", "https://twins.example.net/api/v1.0")
    monkeypatch.setenv("TWIN_GRAPH_TOKEN", "secret")
    monkeypatch.setenv("TWIN_GRAPH_MAX_CALLS_PER_SECOND", "5")
    monkeypatch.setenv("TWIN_GRAPH_TIMEOUT_SECONDS", "12.5")

    config = get_graph_config()

    assert config.base_url == "https://twins.example.net/api/v1.0/"
    assert config.resilience.timeout_seconds == 12.5
    assert config.resilience.ratelimit is not None
    assert config.resilience.ratelimit.max_calls == 5
    assert config.resilience.default_headers is not None
    assert config.resilience.default_headers["Authorization"] == "Bearer secret"
    assert "POST" not in config.resilience.retry.allowed_methods


def test_graph_config_rejects_non_numeric_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TWIN_GRAPH_URL", "https://twins.example.net")
    monkeypatch.setenv("TWIN_GRAPH_TIMEOUT_SECONDS", "soon")

    with pytest.raises(ConfigurationError):
        get_graph_config()


def test_bus_config_defaults_and_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("REFLECTOR_MAX_IN_FLIGHT", "4")
    monkeypatch.setenv("REFLECTOR_CONSUMER_NAME", "reflector-b")

    config = get_bus_config()

    assert config.redis_url == "redis://localhost:6379/0"
    assert config.max_in_flight == 4
    assert config.consumer_name == "reflector-b"


def test_provisioning_config_needs_complete_event_hub(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TWIN_TENANT_NAME", "contoso")
    monkeypatch.setenv("EVENTHUB_PRIMARY_CONNECTION_STRING", "Endpoint=sb://a/")
    monkeypatch.delenv("EVENTHUB_SECONDARY_CONNECTION_STRING", raising=False)
    monkeypatch.delenv("EVENTHUB_DEVICES_HUB_NAME", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        get_provisioning_config()

    assert "EVENTHUB_DEVICES_HUB_NAME" in str(exc.value)


def test_provisioning_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TWIN_TENANT_NAME", "contoso")
    monkeypatch.delenv("EVENTHUB_PRIMARY_CONNECTION_STRING", raising=False)
    monkeypatch.delenv("PROVISIONING_MAX_WAIT_SECONDS", raising=False)

    config = get_provisioning_config()

    assert config.event_hub is None
    assert config.polling.max_wait == RESOURCE_MAX_WAIT_SECONDS


def test_tenant_config_parses_ids(monkeypatch: pytest.MonkeyPatch) -> None:
    tenant_id = uuid4()
    monkeypatch.setenv("TWIN_TENANT_ID", str(tenant_id))
    monkeypatch.delenv("TWIN_GATEWAY_ID", raising=False)

    config = get_tenant_config()

    assert config.tenant_id == tenant_id
    assert config.gateway_id is None


def test_tenant_config_rejects_bad_uuid(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TWIN_TENANT_ID", "tenant-one")

    with pytest.raises(InvalidConfigurationError) as exc:
        get_tenant_config()

    assert exc.value.name == "TWIN_TENANT_ID"


def test_configure_logging_quiets_httpx() -> None:
    configure_logging(level=logging.DEBUG, force=True)

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING


def test_rate_limit_rejects_empty_budget() -> None:
    with pytest.raises(ValueError, match="rate limit"):
        RateLimit(max_calls=0, per_seconds=1.0)


def test_retry_policy_refuses_mutations() -> None:
    with pytest.raises(ValueError, match="POST"):
        RetryPolicy(allowed_methods=frozenset({"GET", "POST"}))
