"""
Orders router.
Order entry for waiters, item status for the kitchen, closing and
cancellation for cashiers and supervisors.

Every mutation goes through SettlementService, which commits one
transaction and queues the outbox events for it. Domain rejections are
turned into 400/404/403/409 responses by the registered exception handler.
"""

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query, Request, status

from shared.config.constants import CASHIER_ROLES, FLOOR_ROLES, KITCHEN_ACCESS_ROLES
from shared.config.logging import orders_logger as logger
from shared.security.auth import current_user_context, require_roles
from shared.security.rate_limit import CANCEL_LIMIT, WRITE_LIMIT, limiter
from shared.utils.schemas import (
    AddItemRequest,
    CancelOrderRequest,
    ChargesRequest,
    CreateOrderRequest,
    ItemStatusOutput,
    ItemStatusRequest,
    KitchenItemOutput,
    OrderItemOutput,
    OrderOutput,
    OrderPageOutput,
    OrderSummaryOutput,
    PageInfo,
    TransferOrderRequest,
)
from rest_api.routers._common import (
    Pagination,
    actor_from_context,
    get_pagination,
    get_settlement_service,
    get_user_id,
)
from rest_api.services.domain import SettlementService


router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", response_model=OrderOutput, status_code=status.HTTP_201_CREATED)
@limiter.limit(WRITE_LIMIT)
def create_order(
    request: Request,
    body: CreateOrderRequest,
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    """
    Open an order for a table or the counter.

    Returns 409 DuplicateOpenOrder (with pedido_id of the existing order)
    when the table already has an active order.
    """
    require_roles(ctx, FLOOR_ROLES)
    order = service.create_order(
        table_id=body.table_id,
        kind=body.kind,
        customer_name=body.customer_name,
        note=body.note,
        waiter_id=get_user_id(ctx),
        actor=actor_from_context(ctx),
    )
    return OrderOutput.from_model(order)


@router.get("", response_model=OrderPageOutput)
def list_orders(
    status_filter: str | None = Query(default=None, alias="status"),
    table_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    pagination: Pagination = Depends(get_pagination),
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderPageOutput:
    """Orders newest first, filtered by status, table and opening day (UTC, inclusive)."""
    require_roles(ctx, FLOOR_ROLES)
    orders, total = service.list_orders(
        status=status_filter,
        table_id=table_id,
        date_from=date_from,
        date_to=date_to,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return OrderPageOutput(
        data=[OrderSummaryOutput.from_model(o) for o in orders],
        pagination=PageInfo(**pagination.to_dict(total)),
    )


# Declared before /{order_id} so "kitchen" is not parsed as an id
@router.get("/kitchen", response_model=list[KitchenItemOutput])
def kitchen_queue(
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[KitchenItemOutput]:
    """Pending and preparing items of open orders, oldest first."""
    require_roles(ctx, KITCHEN_ACCESS_ROLES)
    return [KitchenItemOutput(**row) for row in service.kitchen_queue()]


@router.get("/{order_id}", response_model=OrderOutput)
def get_order(
    order_id: int,
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    return OrderOutput.from_model(service.get_order(order_id))


# =============================================================================
# Items
# =============================================================================


@router.post(
    "/{order_id}/items",
    response_model=OrderItemOutput,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(WRITE_LIMIT)
def add_item(
    request: Request,
    order_id: int,
    body: AddItemRequest,
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderItemOutput:
    """
    Add a product line. Reserves stock for tracked products; 409
    InsufficientStock leaves the order untouched.
    """
    require_roles(ctx, FLOOR_ROLES)
    item = service.add_item(
        order_id,
        body.product_id,
        body.quantity,
        note=body.note,
        actor=actor_from_context(ctx),
    )
    return OrderItemOutput.from_model(item)


@router.put("/{order_id}/items/{item_id}/status", response_model=ItemStatusOutput)
@limiter.limit(WRITE_LIMIT)
def update_item_status(
    request: Request,
    order_id: int,
    item_id: int,
    body: ItemStatusRequest,
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ItemStatusOutput:
    require_roles(ctx, KITCHEN_ACCESS_ROLES)
    result = service.update_item_status(
        order_id, item_id, body.status, actor=actor_from_context(ctx)
    )
    return ItemStatusOutput(
        item=OrderItemOutput.from_model(result.item),
        order_status=result.order.status,
        order_ready=result.order_ready,
    )


@router.delete("/{order_id}/items/{item_id}", response_model=OrderItemOutput)
@limiter.limit(WRITE_LIMIT)
def remove_item(
    request: Request,
    order_id: int,
    item_id: int,
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderItemOutput:
    require_roles(ctx, FLOOR_ROLES)
    item = service.remove_item(order_id, item_id, actor=actor_from_context(ctx))
    return OrderItemOutput.from_model(item)


# =============================================================================
# Settlement
# =============================================================================


@router.put("/{order_id}/charges", response_model=OrderOutput)
@limiter.limit(WRITE_LIMIT)
def set_charges(
    request: Request,
    order_id: int,
    body: ChargesRequest,
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    """Set the service charge and/or discount, then recompute the total."""
    require_roles(ctx, CASHIER_ROLES)
    order = service.set_charges(
        order_id,
        service_charge_cents=body.service_charge,
        discount_cents=body.discount,
        actor=actor_from_context(ctx),
    )
    return OrderOutput.from_model(order)


@router.put("/{order_id}/close", response_model=OrderOutput)
@limiter.limit(WRITE_LIMIT)
def close_order(
    request: Request,
    order_id: int,
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    """
    Mark a fully paid order as PAID and free its table.

    409 IncompletePayment carries valor_restante when money is still owed.
    """
    require_roles(ctx, CASHIER_ROLES)
    order = service.close_order(order_id, actor=actor_from_context(ctx))
    return OrderOutput.from_model(order)


@router.put("/{order_id}/cancel", response_model=OrderOutput)
@limiter.limit(CANCEL_LIMIT)
def cancel_order(
    request: Request,
    order_id: int,
    body: CancelOrderRequest,
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    """
    Cancel an order. The caller must be a supervisor and re-enter their
    password; both are checked by the domain (403 Forbidden otherwise).
    """
    order = service.cancel_order(
        order_id,
        reason=body.reason,
        actor_id=get_user_id(ctx),
        password=body.password,
    )
    logger.info("Order cancelled via API", order_id=order_id, user_id=get_user_id(ctx))
    return OrderOutput.from_model(order)


@router.put("/{order_id}/transfer", response_model=OrderOutput)
@limiter.limit(WRITE_LIMIT)
def transfer_order(
    request: Request,
    order_id: int,
    body: TransferOrderRequest,
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    require_roles(ctx, FLOOR_ROLES)
    order = service.transfer_order(
        order_id, body.destination_table_id, actor=actor_from_context(ctx)
    )
    return OrderOutput.from_model(order)
