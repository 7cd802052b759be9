"""
Payments router.
Partial payments against an order, reversals and the daily cash summary.

Recording the last payment does not close the order: the response says
whether the order is fully paid (pagamento_completo) and the cashier
screen calls PUT /api/orders/{id}/close.
"""

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query, Request, status

from shared.config.constants import CASHIER_ROLES, SUPERVISOR_ROLES
from shared.security.auth import current_user_context, require_roles
from shared.security.rate_limit import WRITE_LIMIT, limiter
from shared.utils.schemas import (
    DailySummaryOutput,
    PageInfo,
    PaymentListItemOutput,
    PaymentOutput,
    PaymentPageOutput,
    PaymentRequest,
    SettlementOutput,
)
from rest_api.routers._common import (
    Pagination,
    actor_from_context,
    get_payment_pagination,
    get_settlement_service,
)
from rest_api.services.domain import SettlementService


router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post(
    "",
    response_model=SettlementOutput,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(WRITE_LIMIT)
def record_payment(
    request: Request,
    body: PaymentRequest,
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> SettlementOutput:
    """
    Record one payment.

    409 OverpaymentRejected carries valor_restante so the screen can offer
    the corrected amount.
    """
    require_roles(ctx, CASHIER_ROLES)
    envelope = service.record_payment(
        body.order_id,
        body.method,
        body.amount,
        change_cents=body.change or 0,
        note=body.note,
        actor=actor_from_context(ctx),
    )
    return SettlementOutput.from_envelope(envelope)


@router.get("", response_model=PaymentPageOutput)
def list_payments(
    order_id: int | None = None,
    method: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    pagination: Pagination = Depends(get_payment_pagination),
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> PaymentPageOutput:
    """Payments newest first, filtered by order, method and day (UTC, inclusive)."""
    require_roles(ctx, CASHIER_ROLES)
    payments, total = service.list_payments(
        order_id=order_id,
        method=method,
        date_from=date_from,
        date_to=date_to,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return PaymentPageOutput(
        data=[PaymentListItemOutput.from_model(p) for p in payments],
        pagination=PageInfo(**pagination.to_dict(total)),
    )


@router.get("/summary", response_model=DailySummaryOutput)
def daily_summary(
    day: date | None = Query(default=None, alias="date"),
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> DailySummaryOutput:
    require_roles(ctx, CASHIER_ROLES)
    return DailySummaryOutput.from_summary(service.daily_summary(day))


@router.delete("/{payment_id}", response_model=PaymentOutput)
@limiter.limit(WRITE_LIMIT)
def reverse_payment(
    request: Request,
    payment_id: int,
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> PaymentOutput:
    """Reverse (delete) a payment of an order that is not yet PAID."""
    require_roles(ctx, SUPERVISOR_ROLES)
    payment = service.reverse_payment(payment_id, actor=actor_from_context(ctx))
    return PaymentOutput.from_model(payment)
