"""Per-message tenant scope."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


@dataclass(frozen=True, slots=True)
class TenantContext:
    """Resolved once per inbound message and passed by value through the pipeline."""

    tenant_id: UUID
    gateway_id: UUID | None = None
