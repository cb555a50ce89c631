"""Per-buffer metadata: ingress information, timestamps and lifecycle state."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


class BufferState(enum.Enum):
    """Lifecycle stage of a packet buffer."""

    FREE = "free"
    ALLOCATED = "allocated"
    IN_USE = "in_use"
    RELEASED = "released"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BufferMetadata:
    """Layer-2 receive information and bookkeeping attached to a packet buffer."""

    ingress_port: int = 0
    vlan_id: int = 0
    rx_timestamp: datetime = field(default_factory=_now)
    custom_metadata: Any = None
    state: BufferState = BufferState.FREE