"""Domain port definitions for adapters."""

from __future__ import annotations

from .graph import TwinGraph
from .messaging import (
    HEADER_CORRELATION_ID,
    HEADER_MESSAGE_TYPE,
    Delivery,
    FeedbackPublisher,
    IngressSender,
    IngressSource,
)
from .tenancy import TenantResolver

__all__ = [
    "HEADER_CORRELATION_ID",
    "HEADER_MESSAGE_TYPE",
    "Delivery",
    "FeedbackPublisher",
    "IngressSender",
    "IngressSource",
    "TenantResolver",
    "TwinGraph",
]
