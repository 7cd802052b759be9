"""
Stock router.
Stock levels of tracked products, low-stock alerts and manual adjustments.

Products without tracking (stock_quantity NULL) are never listed and never
block an order. Enabling tracking seeds the quantity and minimum.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from shared.config.constants import FLOOR_ROLES, SUPERVISOR_ROLES
from shared.config.logging import stock_logger as logger
from shared.security.auth import current_user_context, require_roles
from shared.security.rate_limit import WRITE_LIMIT, limiter
from shared.utils.schemas import StockAdjustRequest, StockEnableRequest, StockOutput
from rest_api.routers._common import get_settlement_service, get_user_id
from rest_api.services.domain import SettlementService


router = APIRouter(prefix="/api/stock", tags=["stock"])


@router.get("", response_model=list[StockOutput])
def list_stock(
    low_only: bool = Query(default=False),
    search: str | None = Query(default=None, max_length=100),
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[StockOutput]:
    require_roles(ctx, FLOOR_ROLES)
    products = service.list_stock(low_only=low_only, search=search)
    return [StockOutput.from_model(p) for p in products]


@router.get("/alerts", response_model=list[StockOutput])
def stock_alerts(
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[StockOutput]:
    """Tracked products at or below their minimum, lowest first."""
    require_roles(ctx, FLOOR_ROLES)
    return [StockOutput.from_model(p) for p in service.stock_alerts()]


@router.put("/{product_id}", response_model=StockOutput)
@limiter.limit(WRITE_LIMIT)
def adjust_stock(
    request: Request,
    product_id: int,
    body: StockAdjustRequest,
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> StockOutput:
    require_roles(ctx, SUPERVISOR_ROLES)
    product = service.adjust_stock(product_id, quantity=body.quantity, minimum=body.minimum)
    logger.info("Stock adjusted via API", product_id=product_id, user_id=get_user_id(ctx))
    return StockOutput.from_model(product)


@router.post("/{product_id}/enable", response_model=StockOutput)
@limiter.limit(WRITE_LIMIT)
def enable_stock_tracking(
    request: Request,
    product_id: int,
    body: StockEnableRequest,
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> StockOutput:
    require_roles(ctx, SUPERVISOR_ROLES)
    product = service.enable_stock_tracking(product_id, quantity=body.quantity, minimum=body.minimum)
    return StockOutput.from_model(product)


@router.post("/{product_id}/disable", response_model=StockOutput)
@limiter.limit(WRITE_LIMIT)
def disable_stock_tracking(
    request: Request,
    product_id: int,
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> StockOutput:
    require_roles(ctx, SUPERVISOR_ROLES)
    return StockOutput.from_model(service.disable_stock_tracking(product_id))
