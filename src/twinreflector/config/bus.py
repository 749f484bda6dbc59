"""Message bus configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import env_int, optional_env_var

DEFAULT_REDIS_URL: Final[str] = "redis://localhost:6379/0"
DEFAULT_INGRESS_STREAM: Final[str] = "twins:ingress"
DEFAULT_FEEDBACK_STREAM: Final[str] = "twins:feedback"
DEFAULT_CONSUMER_GROUP: Final[str] = "reflector"
DEFAULT_MAX_IN_FLIGHT: Final[int] = 16


@dataclass(frozen=True, slots=True)
class BusConfig:
    redis_url: str = DEFAULT_REDIS_URL
    ingress_stream: str = DEFAULT_INGRESS_STREAM
    feedback_stream: str = DEFAULT_FEEDBACK_STREAM
    consumer_group: str = DEFAULT_CONSUMER_GROUP
    consumer_name: str = "reflector-1"
    max_in_flight: int = DEFAULT_MAX_IN_FLIGHT
    block_ms: int = 1000
    batch_size: int = 32
    feedback_max_len: int = 100_000


def get_bus_config() -> BusConfig:
    return BusConfig(
        redis_url=optional_env_var("REDIS_URL") or DEFAULT_REDIS_URL,
        ingress_stream=optional_env_var("REFLECTOR_INGRESS_STREAM") or DEFAULT_INGRESS_STREAM,
        feedback_stream=optional_env_var("REFLECTOR_FEEDBACK_STREAM") or DEFAULT_FEEDBACK_STREAM,
        consumer_group=optional_env_var("REFLECTOR_CONSUMER_GROUP") or DEFAULT_CONSUMER_GROUP,
        consumer_name=optional_env_var("REFLECTOR_CONSUMER_NAME") or "reflector-1",
        max_in_flight=env_int("REFLECTOR_MAX_IN_FLIGHT", DEFAULT_MAX_IN_FLIGHT),
    )
