"""
Property-based tests with Hypothesis.

Each database-backed example rebuilds the schema, since function-scoped
fixtures are shared by every example Hypothesis generates.
"""

from dataclasses import dataclass

from hypothesis import HealthCheck, given, settings, strategies as st

from rest_api.models import Area, Base, Category, OrderItem, Product, Table
from rest_api.services.domain import (
    InsufficientStockError,
    OverpaymentRejectedError,
    SettlementService,
    compute_order_totals,
)
from shared.utils.money import format_cents, to_cents

DB_SETTINGS = settings(
    max_examples=25,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)


@dataclass
class Line:
    quantity: int
    unit_price_cents: int
    status: str


def _fresh_service(db_session, stock=None, price_cents=1000) -> SettlementService:
    db_session.rollback()
    db_session.expunge_all()
    engine = db_session.get_bind()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db_session.add(Area(id=1, name="Salão"))
    db_session.add(Table(id=1, number="1", capacity=4, area_id=1, status="FREE"))
    db_session.add(Category(id=1, name="Cardápio"))
    db_session.add(
        Product(id=1, category_id=1, code="P01", name="Prato", price_cents=price_cents,
                stock_quantity=stock, stock_minimum=0 if stock is not None else None)
    )
    db_session.commit()
    return SettlementService(db_session)


def _stock(db_session) -> int:
    db_session.expire_all()
    return db_session.get(Product, 1).stock_quantity


def _reserved(db_session, order_id) -> int:
    db_session.expire_all()
    items = db_session.query(OrderItem).filter(OrderItem.order_id == order_id).all()
    return sum(i.quantity for i in items if i.status != "CANCELLED")


line_strategy = st.builds(
    Line,
    quantity=st.integers(min_value=1, max_value=999),
    unit_price_cents=st.integers(min_value=0, max_value=500_00),
    status=st.sampled_from(["PENDING", "PREPARING", "READY", "DELIVERED", "CANCELLED"]),
)


class TestTotalsProperties:

    @given(
        lines=st.lists(line_strategy, max_size=20),
        service_charge=st.integers(min_value=0, max_value=10_000_00),
        discount=st.integers(min_value=0, max_value=10_000_00),
    )
    def test_total_formula(self, lines, service_charge, discount):
        totals = compute_order_totals(lines, service_charge, discount)

        live = sum(l.quantity * l.unit_price_cents for l in lines if l.status != "CANCELLED")
        assert totals.subtotal_cents == live
        assert totals.total_cents == max(live + service_charge - discount, 0)
        assert totals.total_cents >= 0

    @given(cents=st.integers(min_value=-10**9, max_value=10**9))
    def test_formatted_cents_parse_back(self, cents):
        assert to_cents(format_cents(cents)) == cents


class TestStockProperties:

    @DB_SETTINGS
    @given(
        initial=st.integers(min_value=0, max_value=20),
        quantities=st.lists(st.integers(min_value=1, max_value=8), min_size=1, max_size=6),
    )
    def test_stock_is_conserved(self, db_session, initial, quantities):
        """
        stock + reserved quantity stays equal to the initial stock, and
        removing every item restores it.
        """
        service = _fresh_service(db_session, stock=initial)
        order = service.create_order(table_id=1)

        item_ids = []
        for qty in quantities:
            try:
                item_ids.append(service.add_item(order.id, 1, qty).id)
            except InsufficientStockError as e:
                assert e.payload["solicitado"] == qty
                assert e.payload["disponivel"] < qty
            assert _stock(db_session) >= 0
            assert _stock(db_session) + _reserved(db_session, order.id) == initial

        for item_id in item_ids:
            service.remove_item(order.id, item_id)

        assert _stock(db_session) == initial


class TestPaymentProperties:

    @DB_SETTINGS
    @given(
        quantity=st.integers(min_value=1, max_value=10),
        amounts=st.lists(st.integers(min_value=1, max_value=5_000), min_size=1, max_size=8),
    )
    def test_paid_never_exceeds_total_plus_tolerance(self, db_session, quantity, amounts):
        service = _fresh_service(db_session, price_cents=999)
        order = service.create_order(table_id=1)
        service.add_item(order.id, 1, quantity)
        total = quantity * 999

        paid = 0
        for amount in amounts:
            try:
                envelope = service.record_payment(order.id, "CASH", amount)
            except OverpaymentRejectedError as e:
                assert amount > total - paid + 1
                assert e.remaining_cents == max(total - paid, 0)
                continue
            paid += amount
            assert envelope.paid_cents == paid
            assert envelope.complete == (paid >= total)

        assert paid <= total + 1
