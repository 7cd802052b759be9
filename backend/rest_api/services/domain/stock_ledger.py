"""
Stock Ledger.

Per-product inventory with a tri-state policy:
- stock_quantity IS NULL: untracked, reserve/release are no-ops and never
  block an order.
- stock_quantity >= 0: tracked, reserve fails when there is not enough.

All methods run inside the caller's transaction and never commit. The
product row is locked (SELECT ... FOR UPDATE) before the availability check,
and the decrement itself is a guarded UPDATE so that two concurrent
reservations can never both pass a stale check.
"""

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from shared.config.logging import stock_logger as logger
from shared.config.settings import settings
from rest_api.models import Product
from rest_api.services.domain.errors import (
    InsufficientStockError,
    InvalidQuantityError,
    ProductNotFoundError,
)


class StockLedger:
    """Atomic reserve/release of product stock plus its admin operations."""

    def __init__(self, db: Session):
        self._db = db

    # =========================================================================
    # Reserve / release
    # =========================================================================

    def lock_product(self, product_id: int, require_active: bool = True) -> Product:
        """Load the product row under a write lock, refreshing any cached copy."""
        product = self._db.get(
            Product, product_id, with_for_update=True, populate_existing=True
        )
        if product is None or (require_active and not product.is_active):
            raise ProductNotFoundError(product_id)
        return product

    def reserve(self, product_id: int, qty: int) -> Product:
        """
        Take qty units of a product.

        Returns the locked product so the caller can snapshot its name and
        price. Raises ProductNotFoundError for missing/inactive products and
        InsufficientStockError when a tracked product has fewer than qty.
        """
        if qty < 1:
            raise InvalidQuantityError(qty)

        product = self.lock_product(product_id)
        if product.stock_quantity is None:
            return product

        if product.stock_quantity < qty:
            raise InsufficientStockError(
                product.id, product.name, product.stock_quantity, qty
            )

        result = self._db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock_quantity >= qty)
            .values(stock_quantity=Product.stock_quantity - qty)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Another transaction got there first
            self._db.refresh(product, attribute_names=["stock_quantity"])
            raise InsufficientStockError(
                product.id, product.name, product.stock_quantity or 0, qty
            )

        self._db.refresh(product, attribute_names=["stock_quantity"])
        logger.debug(
            "Stock reserved",
            product_id=product_id,
            qty=qty,
            remaining=product.stock_quantity,
        )
        return product

    def release(self, product_id: int | None, qty: int) -> None:
        """
        Credit qty units back.

        Untracked, deleted (product_id is None) and missing products are
        ignored. Exactly qty is added back; there is no floor clamp because
        debits are bounded by reserve().
        """
        if product_id is None or qty <= 0:
            return

        result = self._db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock_quantity.is_not(None))
            .values(stock_quantity=Product.stock_quantity + qty)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            cached = self._db.get(Product, product_id)
            if cached is not None:
                self._db.refresh(cached, attribute_names=["stock_quantity"])
            logger.debug("Stock released", product_id=product_id, qty=qty)

    # =========================================================================
    # Administrative operations
    # =========================================================================

    def enable_tracking(
        self,
        product_id: int,
        quantity: int = 0,
        minimum: int | None = None,
    ) -> Product:
        """Start tracking stock, seeding quantity and minimum."""
        if minimum is None:
            minimum = settings.default_stock_minimum
        self._check_non_negative(quantity, minimum)

        product = self.lock_product(product_id, require_active=False)
        product.stock_quantity = quantity
        product.stock_minimum = minimum
        self._db.flush()
        logger.info(
            "Stock tracking enabled",
            product_id=product_id,
            quantity=quantity,
            minimum=minimum,
        )
        return product

    def disable_tracking(self, product_id: int) -> Product:
        """Stop tracking stock. The product becomes unlimited."""
        product = self.lock_product(product_id, require_active=False)
        product.stock_quantity = None
        product.stock_minimum = None
        self._db.flush()
        logger.info("Stock tracking disabled", product_id=product_id)
        return product

    def adjust(
        self,
        product_id: int,
        quantity: int | None = None,
        minimum: int | None = None,
    ) -> Product:
        """
        Manually set the counted quantity and/or the alert minimum.

        Setting either value on an untracked product starts tracking it.
        """
        if quantity is None and minimum is None:
            raise InvalidQuantityError(
                None, "Provide quantity and/or minimum to adjust"
            )
        self._check_non_negative(quantity, minimum)

        product = self.lock_product(product_id, require_active=False)
        if quantity is not None:
            product.stock_quantity = quantity
        elif product.stock_quantity is None:
            product.stock_quantity = 0
        if minimum is not None:
            product.stock_minimum = minimum
        elif product.stock_minimum is None:
            product.stock_minimum = settings.default_stock_minimum
        self._db.flush()
        logger.info(
            "Stock adjusted",
            product_id=product_id,
            quantity=product.stock_quantity,
            minimum=product.stock_minimum,
        )
        return product

    def list_tracked(self, low_only: bool = False, search: str | None = None) -> list[Product]:
        stmt = select(Product).where(Product.stock_quantity.is_not(None))
        if low_only:
            stmt = stmt.where(
                Product.stock_quantity <= Product.stock_minimum
            )
        if search:
            stmt = stmt.where(Product.name.ilike(f"%{search}%"))
        stmt = stmt.order_by(Product.stock_quantity.asc(), Product.name.asc())
        return list(self._db.execute(stmt).scalars().all())

    def low_stock_alerts(self) -> list[Product]:
        """Active tracked products at or below their minimum."""
        stmt = (
            select(Product)
            .where(
                Product.is_active.is_(True),
                Product.stock_quantity.is_not(None),
                Product.stock_quantity <= Product.stock_minimum,
            )
            .order_by(Product.stock_quantity.asc(), Product.name.asc())
        )
        return list(self._db.execute(stmt).scalars().all())

    @staticmethod
    def _check_non_negative(*values: int | None) -> None:
        for value in values:
            if value is not None and value < 0:
                raise InvalidQuantityError(value, "Stock values cannot be negative")
