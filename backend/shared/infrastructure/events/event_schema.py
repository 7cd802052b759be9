"""
Event Schema.

Defines the Event dataclass published for every order, payment and table
change.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from typing import Any

from .event_types import ALL_EVENT_TYPES


@dataclass
class Event:
    """
    Unified event schema.

    'entity' carries the event-specific data (ids, status, totals as
    strings). 'actor' identifies who triggered the event.
    """

    type: str
    order_id: int | None = None
    table_id: int | None = None
    entity: dict[str, Any] = field(default_factory=dict)
    actor: dict[str, Any] = field(default_factory=dict)
    ts: str | None = None
    v: int = 1

    def __post_init__(self) -> None:
        if self.type not in ALL_EVENT_TYPES:
            raise ValueError(f"Unknown event type: {self.type!r}")

        for name in ("order_id", "table_id"):
            value = getattr(self, name)
            if value is not None and (not isinstance(value, int) or value <= 0):
                raise ValueError(f"Event {name} must be a positive integer or None")

        if not isinstance(self.entity, dict):
            raise ValueError("Event entity must be a dict")
        if not isinstance(self.actor, dict):
            raise ValueError("Event actor must be a dict")

    def to_json(self) -> str:
        data = asdict(self)
        data["ts"] = data["ts"] or datetime.now(timezone.utc).isoformat()
        return json.dumps(data, ensure_ascii=False, default=str)

    @classmethod
    def from_json(cls, json_str: str) -> "Event":
        data = json.loads(json_str)
        return cls(**data)
