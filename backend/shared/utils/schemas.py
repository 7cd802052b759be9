"""
Pydantic schemas for the POS REST API.

Money travels as decimal numbers or strings on input ("20.00", 20, 19.9)
and as two-decimal strings on output. Internally everything is integer
cents; the conversion happens here and nowhere else.

Business validation (positive amounts, known methods, item transitions)
is left to the domain services so rejections carry their error code.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.config.constants import Limits
from shared.utils.money import format_cents, to_cents


# =============================================================================
# Common Types
# =============================================================================

OrderKindLiteral = Literal["TABLE", "COUNTER"]
MoneyInput = int | float | str | Decimal


def _cents(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return to_cents(value)
    except ValueError as e:
        raise ValueError(str(e)) from None


# =============================================================================
# Order Requests
# =============================================================================


class CreateOrderRequest(BaseModel):
    """Open an order. Without table_id it is a counter order."""

    table_id: int | None = None
    kind: OrderKindLiteral | None = None
    customer_name: str | None = Field(default=None, max_length=100)
    note: str | None = Field(default=None, max_length=Limits.MAX_NOTE_LENGTH)


class AddItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(default=1, le=Limits.MAX_ITEM_QUANTITY)
    note: str | None = Field(default=None, max_length=Limits.MAX_NOTE_LENGTH)


class ItemStatusRequest(BaseModel):
    status: str


class ChargesRequest(BaseModel):
    """Service charge and discount as decimal amounts. Omitted fields are kept."""

    service_charge: MoneyInput | None = None
    discount: MoneyInput | None = None

    @field_validator("service_charge", "discount", mode="before")
    @classmethod
    def _to_cents(cls, v: Any) -> int | None:
        return _cents(v)


class CancelOrderRequest(BaseModel):
    """Cancellation needs the supervisor to re-enter their password."""

    reason: str | None = Field(default=None, max_length=Limits.MAX_CANCEL_REASON_LENGTH)
    password: str = Field(max_length=Limits.MAX_PASSWORD_LENGTH)


class TransferOrderRequest(BaseModel):
    destination_table_id: int


# =============================================================================
# Payment Requests
# =============================================================================


class PaymentRequest(BaseModel):
    order_id: int
    method: str
    amount: MoneyInput
    change: MoneyInput | None = None
    note: str | None = Field(default=None, max_length=Limits.MAX_NOTE_LENGTH)

    @field_validator("amount", "change", mode="before")
    @classmethod
    def _to_cents(cls, v: Any) -> int | None:
        return _cents(v)


# =============================================================================
# Table / Stock Requests
# =============================================================================


class TableStatusRequest(BaseModel):
    status: str


class StockAdjustRequest(BaseModel):
    quantity: int | None = None
    minimum: int | None = None


class StockEnableRequest(BaseModel):
    quantity: int = 0
    minimum: int | None = None


# =============================================================================
# Outputs
# =============================================================================


class OrderItemOutput(BaseModel):
    id: int
    product_id: int | None
    product_name: str
    quantity: int
    unit_price: str
    subtotal: str
    note: str | None = None
    status: str

    @classmethod
    def from_model(cls, item) -> "OrderItemOutput":
        return cls(
            id=item.id,
            product_id=item.product_id,
            product_name=item.product_name,
            quantity=item.quantity,
            unit_price=format_cents(item.unit_price_cents),
            subtotal=format_cents(item.subtotal_cents),
            note=item.note,
            status=item.status,
        )


class PaymentOutput(BaseModel):
    id: int
    order_id: int
    method: str
    amount: str
    change: str
    note: str | None = None
    registered_by_id: int | None = None
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, payment) -> "PaymentOutput":
        return cls(
            id=payment.id,
            order_id=payment.order_id,
            method=payment.method,
            amount=format_cents(payment.amount_cents),
            change=format_cents(payment.change_cents or 0),
            note=payment.note,
            registered_by_id=payment.registered_by_id,
            created_at=payment.created_at,
        )


class OrderOutput(BaseModel):
    id: int
    table_id: int | None
    kind: str
    customer_name: str | None = None
    note: str | None = None
    status: str
    subtotal: str
    service_charge: str
    discount: str
    total: str
    paid: str
    remaining: str
    waiter_id: int | None = None
    opened_at: datetime | None = None
    closed_at: datetime | None = None
    items: list[OrderItemOutput] = []
    payments: list[PaymentOutput] = []

    @classmethod
    def from_model(cls, order) -> "OrderOutput":
        paid = sum(p.amount_cents for p in order.payments)
        return cls(
            id=order.id,
            table_id=order.table_id,
            kind=order.kind,
            customer_name=order.customer_name,
            note=order.note,
            status=order.status,
            subtotal=format_cents(order.subtotal_cents),
            service_charge=format_cents(order.service_charge_cents),
            discount=format_cents(order.discount_cents),
            total=format_cents(order.total_cents),
            paid=format_cents(paid),
            remaining=format_cents(max(order.total_cents - paid, 0)),
            waiter_id=order.waiter_id,
            opened_at=order.opened_at,
            closed_at=order.closed_at,
            items=[OrderItemOutput.from_model(i) for i in order.items],
            payments=[PaymentOutput.from_model(p) for p in order.payments],
        )


class PageInfo(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class OrderSummaryOutput(BaseModel):
    """One row of the order listing (no items or payments)."""

    id: int
    table_id: int | None
    table_number: str | None = None
    kind: str
    customer_name: str | None = None
    status: str
    total: str
    paid: str
    item_count: int
    opened_at: datetime | None = None
    closed_at: datetime | None = None

    @classmethod
    def from_model(cls, order) -> "OrderSummaryOutput":
        return cls(
            id=order.id,
            table_id=order.table_id,
            table_number=order.table.number if order.table else None,
            kind=order.kind,
            customer_name=order.customer_name,
            status=order.status,
            total=format_cents(order.total_cents),
            paid=format_cents(sum(p.amount_cents for p in order.payments)),
            item_count=len(order.items),
            opened_at=order.opened_at,
            closed_at=order.closed_at,
        )


class OrderPageOutput(BaseModel):
    data: list[OrderSummaryOutput]
    pagination: PageInfo


class ItemStatusOutput(BaseModel):
    item: OrderItemOutput
    order_status: str
    order_ready: bool


class SettlementOutput(BaseModel):
    """
    Result of recording a payment.

    Serialized with the field names the cashier screens read:
    total_pago, restante, pagamento_completo.
    """

    model_config = ConfigDict(populate_by_name=True)

    payment: PaymentOutput
    order_total: str
    paid_total: str = Field(serialization_alias="total_pago")
    remaining: str = Field(serialization_alias="restante")
    complete: bool = Field(serialization_alias="pagamento_completo")

    @classmethod
    def from_envelope(cls, envelope) -> "SettlementOutput":
        return cls(
            payment=PaymentOutput.from_model(envelope.payment),
            order_total=format_cents(envelope.order_total_cents),
            paid_total=format_cents(envelope.paid_cents),
            remaining=format_cents(envelope.remaining_cents),
            complete=envelope.complete,
        )


class MethodTotalOutput(BaseModel):
    method: str
    count: int
    total: str


class DailySummaryOutput(BaseModel):
    date: date
    by_method: list[MethodTotalOutput]
    order_count: int
    total: str

    @classmethod
    def from_summary(cls, summary: dict[str, Any]) -> "DailySummaryOutput":
        return cls(
            date=summary["date"],
            by_method=[
                MethodTotalOutput(method=m["method"], count=m["count"], total=format_cents(m["total_cents"]))
                for m in summary["by_method"]
            ],
            order_count=summary["order_count"],
            total=format_cents(summary["total_cents"]),
        )


class PaymentListItemOutput(PaymentOutput):
    """A payment with the table it was taken at."""

    table_id: int | None = None
    table_number: str | None = None

    @classmethod
    def from_model(cls, payment) -> "PaymentListItemOutput":
        order = payment.order
        table = order.table if order else None
        return cls(
            **PaymentOutput.from_model(payment).model_dump(),
            table_id=order.table_id if order else None,
            table_number=table.number if table else None,
        )


class PaymentPageOutput(BaseModel):
    data: list[PaymentListItemOutput]
    pagination: PageInfo


class TableOutput(BaseModel):
    id: int
    number: str
    capacity: int | None = None
    area: str | None = None
    status: str
    order_id: int | None = None
    order_total: str | None = None
    order_opened_at: datetime | None = None

    @classmethod
    def from_listing(cls, row: dict[str, Any]) -> "TableOutput":
        total = row.get("order_total_cents")
        return cls(
            id=row["id"],
            number=row["number"],
            capacity=row.get("capacity"),
            area=row.get("area"),
            status=row["status"],
            order_id=row.get("order_id"),
            order_total=format_cents(total) if total is not None else None,
            order_opened_at=row.get("order_opened_at"),
        )


class TableDetailOutput(BaseModel):
    """A table and its active order, if it has one."""

    id: int
    number: str
    capacity: int | None = None
    area: str | None = None
    status: str
    order: OrderOutput | None = None

    @classmethod
    def from_model(cls, table, order=None) -> "TableDetailOutput":
        return cls(
            id=table.id,
            number=table.number,
            capacity=table.capacity,
            area=table.area.name if table.area else None,
            status=table.status,
            order=OrderOutput.from_model(order) if order is not None else None,
        )


class KitchenItemOutput(BaseModel):
    item_id: int
    order_id: int
    table_number: str | None = None
    kind: str
    customer_name: str | None = None
    product_name: str
    quantity: int
    note: str | None = None
    status: str
    created_at: datetime | None = None
    wait_minutes: int


class StockOutput(BaseModel):
    product_id: int
    name: str
    code: str | None = None
    stock_quantity: int | None = None
    stock_minimum: int | None = None
    tracks_stock: bool
    low_stock: bool

    @classmethod
    def from_model(cls, product) -> "StockOutput":
        return cls(
            product_id=product.id,
            name=product.name,
            code=product.code,
            stock_quantity=product.stock_quantity,
            stock_minimum=product.stock_minimum,
            tracks_stock=product.tracks_stock,
            low_stock=product.is_low_stock,
        )


class ErrorResponse(BaseModel):
    """Body of every domain rejection: message, code and payload keys."""

    model_config = ConfigDict(extra="allow")

    detail: str
    code: str
