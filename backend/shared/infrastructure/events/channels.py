"""
Redis Channel Naming.

Single-restaurant deployment: one broadcast channel every screen listens
to, one kitchen channel for the kitchen display, and a per-table channel.
"""

from __future__ import annotations

from .event_types import KITCHEN_EVENTS

CHANNEL_BROADCAST = "pos:broadcast"
CHANNEL_KITCHEN = "pos:kitchen"


def channel_table(table_id: int) -> str:
    """Channel for notifications about one table."""
    if not isinstance(table_id, int) or table_id <= 0:
        raise ValueError(f"table_id must be a positive integer, got {table_id}")
    return f"pos:table:{table_id}"


def channels_for_event(event_type: str, table_id: int | None = None) -> list[str]:
    """All channels an event of this type is published to."""
    channels = [CHANNEL_BROADCAST]
    if event_type in KITCHEN_EVENTS:
        channels.append(CHANNEL_KITCHEN)
    if table_id is not None:
        channels.append(channel_table(table_id))
    return channels
