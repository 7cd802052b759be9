"""
Domain Services.

Routers talk to SettlementService only. It sequences the leaf services
under one transaction per operation:

    SettlementService (transaction, outbox events, cache invalidation)
        ├── OrderService   (order aggregate + item sub-ledger + kitchen queue)
        │     ├── StockLedger
        │     └── TableService
        ├── PaymentService (payment ledger)
        └── SupervisorVerifier (cancellation authorization)

Usage:
    from rest_api.services.domain import SettlementService

    service = SettlementService(db, cache=get_read_cache())
    envelope = service.record_payment(order_id, "PIX", 8000)
"""

from .errors import (
    ErrorCategory,
    ErrorKind,
    SettlementError,
    InvalidQuantityError,
    InvalidAmountError,
    InvalidMethodError,
    InvalidStatusError,
    InvalidTransitionError,
    OrderNotFoundError,
    ItemNotFoundError,
    ProductNotFoundError,
    PaymentNotFoundError,
    TableNotFoundError,
    ForbiddenError,
    DuplicateOpenOrderError,
    OrderNotPayableError,
    AlreadyPaidError,
    IncompletePaymentError,
    OverpaymentRejectedError,
    OrderAlreadyClosedError,
    TableOccupiedError,
    InsufficientStockError,
)
from .order_totals import OrderTotals, compute_order_totals
from .stock_ledger import StockLedger
from .table_service import TableService
from .order_service import OrderService, ItemStatusResult, TransferResult
from .payment_service import PaymentService, SettlementEnvelope
from .authorization import Actor, SupervisorVerifier
from .settlement_service import SettlementService

__all__ = [
    # Errors
    "ErrorCategory",
    "ErrorKind",
    "SettlementError",
    "InvalidQuantityError",
    "InvalidAmountError",
    "InvalidMethodError",
    "InvalidStatusError",
    "InvalidTransitionError",
    "OrderNotFoundError",
    "ItemNotFoundError",
    "ProductNotFoundError",
    "PaymentNotFoundError",
    "TableNotFoundError",
    "ForbiddenError",
    "DuplicateOpenOrderError",
    "OrderNotPayableError",
    "AlreadyPaidError",
    "IncompletePaymentError",
    "OverpaymentRejectedError",
    "OrderAlreadyClosedError",
    "TableOccupiedError",
    "InsufficientStockError",
    # Totals
    "OrderTotals",
    "compute_order_totals",
    # Services
    "StockLedger",
    "TableService",
    "OrderService",
    "ItemStatusResult",
    "TransferResult",
    "PaymentService",
    "SettlementEnvelope",
    "Actor",
    "SupervisorVerifier",
    "SettlementService",
]
