"""Inbound lifecycle message handling.

``IngressPipeline`` applies one message to the twin graph and publishes its
feedback; ``IngressConsumer`` feeds it from a bus with bounded concurrency.
"""

from __future__ import annotations

from .consumer import IngressConsumer
from .envelope import parse_message, read_correlation_id, read_message_type
from .handlers import LifecycleHandlers, MessageHandler
from .pipeline import IngressPipeline, PipelineState, check_dispatch_table

__all__ = [
    "IngressConsumer",
    "IngressPipeline",
    "LifecycleHandlers",
    "MessageHandler",
    "PipelineState",
    "check_dispatch_table",
    "parse_message",
    "read_correlation_id",
    "read_message_type",
]
