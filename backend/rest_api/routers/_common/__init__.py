"""
Common dependencies shared across routers.
"""

from .dependencies import actor_from_context, get_settlement_service, get_user_id
from .pagination import Pagination, get_pagination, get_payment_pagination

__all__ = [
    "actor_from_context",
    "get_settlement_service",
    "get_user_id",
    "Pagination",
    "get_pagination",
    "get_payment_pagination",
]
