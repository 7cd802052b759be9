"""
FastAPI dependencies used by every POS router.

Usage:
    @router.put("/{order_id}/close")
    def close(
        order_id: int,
        service: SettlementService = Depends(get_settlement_service),
        ctx: dict = Depends(current_user_context),
    ):
        return service.close_order(order_id, actor=actor_from_context(ctx))
"""

from typing import Any

from fastapi import Depends
from sqlalchemy.orm import Session

from shared.infrastructure.cache import ReadCache, get_read_cache
from shared.infrastructure.db import get_db
from rest_api.services.domain import SettlementService


def get_settlement_service(
    db: Session = Depends(get_db),
    cache: ReadCache = Depends(get_read_cache),
) -> SettlementService:
    return SettlementService(db, cache=cache)


def get_user_id(ctx: dict[str, Any]) -> int:
    return int(ctx["sub"])


def actor_from_context(ctx: dict[str, Any]) -> dict[str, Any]:
    """Actor block attached to outbox events."""
    return {"user_id": get_user_id(ctx), "name": ctx.get("name"), "role": ctx.get("role")}
