"""
Utilities module: money helpers and API schemas.

Import schemas from shared.utils.schemas directly.
"""

from shared.utils.money import format_cents, to_cents

__all__ = [
    "format_cents",
    "to_cents",
]
