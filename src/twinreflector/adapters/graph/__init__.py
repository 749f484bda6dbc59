"""Twin graph management API adapter."""

from __future__ import annotations

from .client import GraphClient, raise_for_graph_status
from .schema import normalize_status

__all__ = ["GraphClient", "normalize_status", "raise_for_graph_status"]
