"""
Domain errors for the order lifecycle and settlement engine.

Every rejection raised by the domain services is a SettlementError carrying
an ErrorKind and a structured payload, so the HTTP layer (or any other
caller) can resolve the conflict without re-deriving state:

    try:
        coordinator.record_payment(order_id, "CASH", 3000)
    except OverpaymentRejectedError as exc:
        exc.payload["valor_restante"]  # "20.00"
"""

from enum import Enum
from typing import Any

from shared.utils.money import format_cents


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    STATE_CONFLICT = "state_conflict"
    RESOURCE_CONFLICT = "resource_conflict"


class ErrorKind(str, Enum):
    """Enumerated failure kinds. The value is the wire code."""

    # validation
    INVALID_QUANTITY = "InvalidQuantity"
    INVALID_AMOUNT = "InvalidAmount"
    INVALID_METHOD = "InvalidMethod"
    INVALID_STATUS = "InvalidStatus"
    INVALID_TRANSITION = "InvalidTransition"
    # not found
    ORDER_NOT_FOUND = "OrderNotFound"
    ITEM_NOT_FOUND = "ItemNotFound"
    PRODUCT_NOT_FOUND = "ProductNotFound"
    PAYMENT_NOT_FOUND = "PaymentNotFound"
    TABLE_NOT_FOUND = "TableNotFound"
    # forbidden
    FORBIDDEN = "Forbidden"
    # state conflicts
    DUPLICATE_OPEN_ORDER = "DuplicateOpenOrder"
    ORDER_NOT_PAYABLE = "OrderNotPayable"
    ALREADY_PAID = "AlreadyPaid"
    INCOMPLETE_PAYMENT = "IncompletePayment"
    OVERPAYMENT_REJECTED = "OverpaymentRejected"
    ORDER_ALREADY_CLOSED = "OrderAlreadyClosed"
    TABLE_OCCUPIED = "TableOccupied"
    # resource conflicts
    INSUFFICIENT_STOCK = "InsufficientStock"

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORIES[self]


_CATEGORIES = {
    ErrorKind.INVALID_QUANTITY: ErrorCategory.VALIDATION,
    ErrorKind.INVALID_AMOUNT: ErrorCategory.VALIDATION,
    ErrorKind.INVALID_METHOD: ErrorCategory.VALIDATION,
    ErrorKind.INVALID_STATUS: ErrorCategory.VALIDATION,
    ErrorKind.INVALID_TRANSITION: ErrorCategory.VALIDATION,
    ErrorKind.ORDER_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorKind.ITEM_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorKind.PRODUCT_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorKind.PAYMENT_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorKind.TABLE_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorKind.FORBIDDEN: ErrorCategory.FORBIDDEN,
    ErrorKind.DUPLICATE_OPEN_ORDER: ErrorCategory.STATE_CONFLICT,
    ErrorKind.ORDER_NOT_PAYABLE: ErrorCategory.STATE_CONFLICT,
    ErrorKind.ALREADY_PAID: ErrorCategory.STATE_CONFLICT,
    ErrorKind.INCOMPLETE_PAYMENT: ErrorCategory.STATE_CONFLICT,
    ErrorKind.OVERPAYMENT_REJECTED: ErrorCategory.STATE_CONFLICT,
    ErrorKind.ORDER_ALREADY_CLOSED: ErrorCategory.STATE_CONFLICT,
    ErrorKind.TABLE_OCCUPIED: ErrorCategory.STATE_CONFLICT,
    ErrorKind.INSUFFICIENT_STOCK: ErrorCategory.RESOURCE_CONFLICT,
}


class SettlementError(Exception):
    """Base class for every domain rejection."""

    kind: ErrorKind

    def __init__(self, message: str, **payload: Any):
        self.message = message
        self.payload = payload
        super().__init__(message)

    @property
    def category(self) -> ErrorCategory:
        return self.kind.category

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.kind.value, **self.payload}


# =============================================================================
# Validation
# =============================================================================


class InvalidQuantityError(SettlementError):
    kind = ErrorKind.INVALID_QUANTITY

    def __init__(self, quantity: Any, message: str | None = None):
        super().__init__(message or f"Quantity must be at least 1 (got {quantity})", quantidade=quantity)


class InvalidAmountError(SettlementError):
    kind = ErrorKind.INVALID_AMOUNT

    def __init__(self, amount_cents: Any, message: str | None = None):
        super().__init__(message or "Amount must be greater than zero", valor=amount_cents)


class InvalidMethodError(SettlementError):
    kind = ErrorKind.INVALID_METHOD

    def __init__(self, method: Any, allowed: tuple[str, ...]):
        super().__init__(
            f"Invalid payment method '{method}'. Use: {', '.join(allowed)}",
            metodo=method,
            metodos_validos=list(allowed),
        )


class InvalidStatusError(SettlementError):
    kind = ErrorKind.INVALID_STATUS

    def __init__(self, status: Any, allowed: tuple[str, ...]):
        super().__init__(
            f"Invalid status '{status}'. Use: {', '.join(allowed)}",
            status=status,
            status_validos=list(allowed),
        )


class InvalidTransitionError(SettlementError):
    kind = ErrorKind.INVALID_TRANSITION

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot move item from {current} to {target}",
            status_atual=current,
            status_destino=target,
        )


# =============================================================================
# Not found
# =============================================================================


class OrderNotFoundError(SettlementError):
    kind = ErrorKind.ORDER_NOT_FOUND

    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} not found", pedido_id=order_id)


class ItemNotFoundError(SettlementError):
    kind = ErrorKind.ITEM_NOT_FOUND

    def __init__(self, item_id: int, order_id: int | None = None):
        super().__init__(f"Item {item_id} not found in order {order_id}", item_id=item_id, pedido_id=order_id)


class ProductNotFoundError(SettlementError):
    kind = ErrorKind.PRODUCT_NOT_FOUND

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found or inactive", produto_id=product_id)


class PaymentNotFoundError(SettlementError):
    kind = ErrorKind.PAYMENT_NOT_FOUND

    def __init__(self, payment_id: int):
        super().__init__(f"Payment {payment_id} not found", pagamento_id=payment_id)


class TableNotFoundError(SettlementError):
    kind = ErrorKind.TABLE_NOT_FOUND

    def __init__(self, table_id: int):
        super().__init__(f"Table {table_id} not found", mesa_id=table_id)


# =============================================================================
# Forbidden
# =============================================================================


class ForbiddenError(SettlementError):
    """
    Authorization precondition failed.

    reason is "role" (actor lacks a supervisor role) or "password"
    (re-entered password did not match).
    """

    kind = ErrorKind.FORBIDDEN

    def __init__(self, reason: str, message: str | None = None):
        self.reason = reason
        if message is None:
            message = (
                "Only managers or administrators can do this"
                if reason == "role"
                else "Invalid password"
            )
        super().__init__(message, motivo=reason)


# =============================================================================
# State conflicts
# =============================================================================


class DuplicateOpenOrderError(SettlementError):
    kind = ErrorKind.DUPLICATE_OPEN_ORDER

    def __init__(self, existing_order_id: int, table_id: int):
        self.existing_order_id = existing_order_id
        super().__init__(
            f"Table {table_id} already has an open order",
            pedido_id=existing_order_id,
            mesa_id=table_id,
        )


class OrderNotPayableError(SettlementError):
    kind = ErrorKind.ORDER_NOT_PAYABLE

    def __init__(self, order_id: int, status: str):
        super().__init__(
            f"Order {order_id} is {status} and cannot be changed",
            pedido_id=order_id,
            status=status,
        )


class AlreadyPaidError(SettlementError):
    kind = ErrorKind.ALREADY_PAID

    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} is already paid", pedido_id=order_id)


class IncompletePaymentError(SettlementError):
    kind = ErrorKind.INCOMPLETE_PAYMENT

    def __init__(self, order_id: int, remaining_cents: int):
        self.remaining_cents = remaining_cents
        super().__init__(
            f"Order {order_id} still has {format_cents(remaining_cents)} to pay",
            pedido_id=order_id,
            valor_restante=format_cents(remaining_cents),
        )


class OverpaymentRejectedError(SettlementError):
    kind = ErrorKind.OVERPAYMENT_REJECTED

    def __init__(self, order_id: int, remaining_cents: int):
        self.remaining_cents = remaining_cents
        super().__init__(
            f"Amount exceeds the remaining {format_cents(remaining_cents)}",
            pedido_id=order_id,
            valor_restante=format_cents(remaining_cents),
        )


class OrderAlreadyClosedError(SettlementError):
    kind = ErrorKind.ORDER_ALREADY_CLOSED

    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} is closed; its payments cannot be reversed", pedido_id=order_id)


class TableOccupiedError(SettlementError):
    kind = ErrorKind.TABLE_OCCUPIED

    def __init__(self, table_id: int, status: str):
        super().__init__(f"Table {table_id} is {status}", mesa_id=table_id, status=status)


# =============================================================================
# Resource conflicts
# =============================================================================


class InsufficientStockError(SettlementError):
    kind = ErrorKind.INSUFFICIENT_STOCK

    def __init__(self, product_id: int, product_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {product_name}: {available} available",
            produto_id=product_id,
            produto=product_name,
            disponivel=available,
            solicitado=requested,
        )
