"""Digital twin graph API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, env_int, optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

GRAPH_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class GraphConfig:
    """Holds the management API location and its client resilience settings."""

    resilience: ResilienceConfig

    @property
    def base_url(self) -> str | None:
        return self.resilience.base_url


def get_graph_config(*, resilience: ResilienceConfig | None = None) -> GraphConfig:
    values = require_env_vars(("TWIN_GRAPH_URL",))
    if resilience is not None:
        return GraphConfig(resilience=resilience)

    headers: dict[str, str] = {"Accept": "application/json"}
    token = optional_env_var("TWIN_GRAPH_TOKEN")
    if token:
        headers["Authorization"] = f"Bearer {token}"

    max_calls = env_int("TWIN_GRAPH_MAX_CALLS_PER_SECOND", 0)
    ratelimit = RateLimit(max_calls=max_calls, per_seconds=1.0) if max_calls > 0 else None

    return GraphConfig(
        resilience=ResilienceConfig(
            name="twin-graph",
            base_url=values["TWIN_GRAPH_URL"].rstrip("/") + "/",
            timeout_seconds=env_float("TWIN_GRAPH_TIMEOUT_SECONDS", GRAPH_TIMEOUT_SECONDS),
            retry=RetryPolicy(),
            ratelimit=ratelimit,
            default_headers=headers,
        )
    )
