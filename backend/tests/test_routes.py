"""
HTTP tests for the orders, payments, tables and stock routers.
"""

from shared.config.settings import settings
from tests.conftest import SUPERVISOR_PASSWORD


def _open_order(client, headers, table_id=1):
    response = client.post("/api/orders", json={"table_id": table_id}, headers=headers)
    assert response.status_code == 201
    return response.json()


def _add(client, headers, order_id, product_id, quantity=1):
    return client.post(
        f"/api/orders/{order_id}/items",
        json={"product_id": product_id, "quantity": quantity},
        headers=headers,
    )


class TestAuth:

    def test_missing_token(self, client, seed):
        response = client.get("/api/tables")
        assert response.status_code == 401

    def test_garbage_token(self, client, seed):
        response = client.get("/api/tables", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_kitchen_cannot_open_orders(self, client, seed, auth_headers):
        response = client.post("/api/orders", json={"table_id": 1}, headers=auth_headers("KITCHEN"))
        assert response.status_code == 403

    def test_waiter_cannot_take_payments(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))

        response = client.post(
            "/api/payments",
            json={"order_id": order["id"], "method": "CASH", "amount": "1.00"},
            headers=auth_headers("WAITER"),
        )
        assert response.status_code == 403


class TestOrderRoutes:

    def test_create_and_fetch(self, client, seed, auth_headers):
        waiter = auth_headers("WAITER")
        order = _open_order(client, waiter)

        assert order["status"] == "OPEN"
        assert order["total"] == "0.00"
        assert order["waiter_id"] == 4

        item = _add(client, waiter, order["id"], 1, 2)
        assert item.status_code == 201
        assert item.json()["subtotal"] == "50.00"

        fetched = client.get(f"/api/orders/{order['id']}", headers=auth_headers("CASHIER")).json()
        assert fetched["status"] == "IN_PRODUCTION"
        assert fetched["total"] == "50.00"
        assert fetched["remaining"] == "50.00"
        assert len(fetched["items"]) == 1

    def test_duplicate_order_conflict(self, client, seed, auth_headers):
        first = _open_order(client, auth_headers("WAITER"))

        response = client.post("/api/orders", json={"table_id": 1}, headers=auth_headers("ADMIN"))

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "DuplicateOpenOrder"
        assert body["pedido_id"] == first["id"]

    def test_insufficient_stock_conflict(self, client, seed, auth_headers):
        waiter = auth_headers("WAITER")
        order = _open_order(client, waiter)

        response = _add(client, waiter, order["id"], 3, 2)

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "InsufficientStock"
        assert body["disponivel"] == 1
        assert body["solicitado"] == 2

    def test_unknown_order(self, client, seed, auth_headers):
        response = client.get("/api/orders/999", headers=auth_headers())
        assert response.status_code == 404
        assert response.json()["code"] == "OrderNotFound"

    def test_quantity_above_limit_is_rejected(self, client, seed, auth_headers):
        waiter = auth_headers("WAITER")
        order = _open_order(client, waiter)

        response = _add(client, waiter, order["id"], 2, 1000)

        assert response.status_code == 422

    def test_list_orders_filters_and_pages(self, client, seed, auth_headers):
        waiter = auth_headers("WAITER")
        first = _open_order(client, waiter, table_id=1)
        _add(client, waiter, first["id"], 2, 2)
        second = _open_order(client, waiter, table_id=2)

        response = client.get("/api/orders", params={"status": "IN_PRODUCTION"}, headers=waiter)

        assert response.status_code == 200
        body = response.json()
        assert [o["id"] for o in body["data"]] == [first["id"]]
        assert body["data"][0]["table_number"] == "1"
        assert body["data"][0]["item_count"] == 1
        assert body["data"][0]["total"] == "10.00"
        assert body["pagination"] == {"page": 1, "limit": 20, "total": 1, "pages": 1}

        page = client.get("/api/orders", params={"page": 2, "limit": 1}, headers=waiter).json()
        assert [o["id"] for o in page["data"]] == [first["id"]]
        assert page["pagination"]["total"] == 2
        assert page["pagination"]["pages"] == 2

        latest = client.get("/api/orders", params={"limit": 1}, headers=waiter).json()
        assert [o["id"] for o in latest["data"]] == [second["id"]]

    def test_list_orders_rejects_unknown_status(self, client, seed, auth_headers):
        response = client.get("/api/orders", params={"status": "ABERTO"}, headers=auth_headers("WAITER"))

        assert response.status_code == 400
        assert response.json()["code"] == "InvalidStatus"

    def test_kitchen_flow_marks_order_ready(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))
        item = _add(client, auth_headers("WAITER"), order["id"], 2).json()
        kitchen = auth_headers("KITCHEN")

        queue = client.get("/api/orders/kitchen", headers=kitchen).json()
        assert [row["item_id"] for row in queue] == [item["id"]]

        url = f"/api/orders/{order['id']}/items/{item['id']}/status"
        client.put(url, json={"status": "PREPARING"}, headers=kitchen)
        response = client.put(url, json={"status": "READY"}, headers=kitchen)

        assert response.status_code == 200
        assert response.json()["order_ready"] is True
        assert response.json()["order_status"] == "READY"
        assert client.get("/api/orders/kitchen", headers=kitchen).json() == []

    def test_pending_item_can_go_straight_to_ready(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))
        item = _add(client, auth_headers("WAITER"), order["id"], 2).json()

        response = client.put(
            f"/api/orders/{order['id']}/items/{item['id']}/status",
            json={"status": "READY"},
            headers=auth_headers("KITCHEN"),
        )

        assert response.status_code == 200
        assert response.json()["order_ready"] is True

    def test_invalid_transition(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))
        item = _add(client, auth_headers("WAITER"), order["id"], 2).json()
        url = f"/api/orders/{order['id']}/items/{item['id']}/status"
        client.put(url, json={"status": "READY"}, headers=auth_headers("KITCHEN"))

        response = client.put(url, json={"status": "PREPARING"}, headers=auth_headers("KITCHEN"))

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "InvalidTransition"
        assert body["status_atual"] == "READY"

    def test_remove_item(self, client, seed, auth_headers):
        waiter = auth_headers("WAITER")
        order = _open_order(client, waiter)
        item = _add(client, waiter, order["id"], 1, 2).json()

        response = client.delete(f"/api/orders/{order['id']}/items/{item['id']}", headers=waiter)

        assert response.status_code == 200
        stock = client.get("/api/stock", headers=waiter).json()
        burger = next(p for p in stock if p["product_id"] == 1)
        assert burger["stock_quantity"] == 10

    def test_transfer(self, client, seed, auth_headers):
        waiter = auth_headers("WAITER")
        order = _open_order(client, waiter)

        response = client.put(
            f"/api/orders/{order['id']}/transfer",
            json={"destination_table_id": 2},
            headers=waiter,
        )

        assert response.status_code == 200
        assert response.json()["table_id"] == 2
        tables = {t["id"]: t for t in client.get("/api/tables", headers=waiter).json()}
        assert tables[1]["status"] == "FREE"
        assert tables[2]["status"] == "OCCUPIED"
        assert tables[2]["order_id"] == order["id"]


class TestCancelRoute:

    def test_manager_cancels(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))

        response = client.put(
            f"/api/orders/{order['id']}/cancel",
            json={"reason": "mesa desistiu", "password": SUPERVISOR_PASSWORD},
            headers=auth_headers("MANAGER"),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"
        assert "CANCELLED by Marta: mesa desistiu" in response.json()["note"]

    def test_waiter_is_forbidden(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))

        response = client.put(
            f"/api/orders/{order['id']}/cancel",
            json={"password": "senha123"},
            headers=auth_headers("WAITER"),
        )

        assert response.status_code == 403
        assert response.json()["code"] == "Forbidden"
        assert response.json()["motivo"] == "role"

    def test_wrong_password_is_forbidden(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))

        response = client.put(
            f"/api/orders/{order['id']}/cancel",
            json={"password": "errada"},
            headers=auth_headers("MANAGER"),
        )

        assert response.status_code == 403
        assert response.json()["motivo"] == "password"

    def test_long_password_is_forbidden_not_an_error(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))

        response = client.put(
            f"/api/orders/{order['id']}/cancel",
            json={"password": "x" * 80},
            headers=auth_headers("MANAGER"),
        )

        assert response.status_code == 403
        assert response.json()["motivo"] == "password"

    def test_oversized_password_fails_validation(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))

        response = client.put(
            f"/api/orders/{order['id']}/cancel",
            json={"password": "x" * 500},
            headers=auth_headers("MANAGER"),
        )

        assert response.status_code == 422


class TestPaymentRoutes:

    def test_list_payments_by_order(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))
        _add(client, auth_headers("WAITER"), order["id"], 2, 4)  # 20.00
        cashier = auth_headers("CASHIER")
        for method, amount in (("PIX", "5.00"), ("CASH", "10.00")):
            client.post(
                "/api/payments",
                json={"order_id": order["id"], "method": method, "amount": amount},
                headers=cashier,
            )

        response = client.get("/api/payments", params={"order_id": order["id"]}, headers=cashier)

        assert response.status_code == 200
        body = response.json()
        assert [p["method"] for p in body["data"]] == ["CASH", "PIX"]
        assert body["data"][0]["amount"] == "10.00"
        assert body["data"][0]["table_number"] == "1"
        assert body["pagination"]["limit"] == 50
        assert body["pagination"]["total"] == 2

        only_pix = client.get("/api/payments", params={"method": "PIX"}, headers=cashier).json()
        assert [p["amount"] for p in only_pix["data"]] == ["5.00"]

    def test_waiter_cannot_list_payments(self, client, seed, auth_headers):
        response = client.get("/api/payments", headers=auth_headers("WAITER"))
        assert response.status_code == 403

    def test_split_payment_flow(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))
        _add(client, auth_headers("WAITER"), order["id"], 1, 4)  # 100.00
        cashier = auth_headers("CASHIER")

        first = client.post(
            "/api/payments",
            json={"order_id": order["id"], "method": "CREDIT", "amount": "80.00"},
            headers=cashier,
        )
        assert first.status_code == 201
        body = first.json()
        assert body["total_pago"] == "80.00"
        assert body["restante"] == "20.00"
        assert body["pagamento_completo"] is False
        assert body["payment"]["registered_by_id"] == 3

        over = client.post(
            "/api/payments",
            json={"order_id": order["id"], "method": "CASH", "amount": 30},
            headers=cashier,
        )
        assert over.status_code == 409
        assert over.json()["code"] == "OverpaymentRejected"
        assert over.json()["valor_restante"] == "20.00"

        early_close = client.put(f"/api/orders/{order['id']}/close", headers=cashier)
        assert early_close.status_code == 409
        assert early_close.json()["code"] == "IncompletePayment"

        last = client.post(
            "/api/payments",
            json={"order_id": order["id"], "method": "CASH", "amount": "20.00"},
            headers=cashier,
        )
        assert last.json()["pagamento_completo"] is True

        closed = client.put(f"/api/orders/{order['id']}/close", headers=cashier)
        assert closed.status_code == 200
        assert closed.json()["status"] == "PAID"
        assert closed.json()["paid"] == "100.00"

    def test_invalid_method(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))

        response = client.post(
            "/api/payments",
            json={"order_id": order["id"], "method": "CHEQUE", "amount": "1.00"},
            headers=auth_headers("CASHIER"),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "InvalidMethod"

    def test_charges_accept_decimal_amounts(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))
        _add(client, auth_headers("WAITER"), order["id"], 2, 2)

        response = client.put(
            f"/api/orders/{order['id']}/charges",
            json={"service_charge": "1.00", "discount": 0.5},
            headers=auth_headers("CASHIER"),
        )

        assert response.status_code == 200
        assert response.json()["total"] == "10.50"

    def test_reverse_requires_supervisor(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))
        _add(client, auth_headers("WAITER"), order["id"], 2, 2)
        payment = client.post(
            "/api/payments",
            json={"order_id": order["id"], "method": "PIX", "amount": "5.00"},
            headers=auth_headers("CASHIER"),
        ).json()["payment"]

        denied = client.delete(f"/api/payments/{payment['id']}", headers=auth_headers("CASHIER"))
        assert denied.status_code == 403

        response = client.delete(f"/api/payments/{payment['id']}", headers=auth_headers("MANAGER"))
        assert response.status_code == 200
        fetched = client.get(f"/api/orders/{order['id']}", headers=auth_headers()).json()
        assert fetched["paid"] == "0.00"
        assert fetched["payments"] == []

    def test_daily_summary(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))
        _add(client, auth_headers("WAITER"), order["id"], 2, 2)
        cashier = auth_headers("CASHIER")
        client.post(
            "/api/payments",
            json={"order_id": order["id"], "method": "PIX", "amount": "10.00"},
            headers=cashier,
        )

        response = client.get("/api/payments/summary", headers=cashier)

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == "10.00"
        assert body["order_count"] == 1
        assert body["by_method"] == [{"method": "PIX", "count": 1, "total": "10.00"}]


class TestTableRoutes:

    def test_list_tables(self, client, seed, auth_headers):
        response = client.get("/api/tables", headers=auth_headers("KITCHEN"))

        assert response.status_code == 200
        assert [t["number"] for t in response.json()] == ["1", "2", "3"]

    def test_table_detail_with_active_order(self, client, seed, auth_headers):
        waiter = auth_headers("WAITER")
        order = _open_order(client, waiter, table_id=2)
        _add(client, waiter, order["id"], 2, 1)

        response = client.get("/api/tables/2", headers=waiter)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "OCCUPIED"
        assert body["area"] == "Salão"
        assert body["order"]["id"] == order["id"]
        assert [i["product_name"] for i in body["order"]["items"]] == ["Soda"]

    def test_free_table_detail_and_unknown_table(self, client, seed, auth_headers):
        free = client.get("/api/tables/3", headers=auth_headers("KITCHEN"))
        assert free.status_code == 200
        assert free.json()["order"] is None

        missing = client.get("/api/tables/99", headers=auth_headers("KITCHEN"))
        assert missing.status_code == 404

    def test_reserve_table(self, client, seed, auth_headers):
        response = client.put(
            "/api/tables/3/status", json={"status": "RESERVED"}, headers=auth_headers("WAITER")
        )

        assert response.status_code == 200
        assert response.json()["status"] == "RESERVED"

    def test_invalid_table_status(self, client, seed, auth_headers):
        response = client.put(
            "/api/tables/3/status", json={"status": "BROKEN"}, headers=auth_headers("WAITER")
        )

        assert response.status_code == 400
        assert response.json()["code"] == "InvalidStatus"


class TestStockRoutes:

    def test_alerts_list_low_products(self, client, seed, auth_headers):
        response = client.get("/api/stock/alerts", headers=auth_headers("WAITER"))

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Steak"]

    def test_adjust_requires_supervisor(self, client, seed, auth_headers):
        denied = client.put("/api/stock/1", json={"quantity": 50}, headers=auth_headers("WAITER"))
        assert denied.status_code == 403

        response = client.put("/api/stock/1", json={"quantity": 50}, headers=auth_headers("MANAGER"))
        assert response.status_code == 200
        assert response.json()["stock_quantity"] == 50

    def test_enable_and_disable_tracking(self, client, seed, auth_headers):
        admin = auth_headers("ADMIN")

        enabled = client.post("/api/stock/2/enable", json={"quantity": 12, "minimum": 4}, headers=admin)
        assert enabled.status_code == 200
        assert enabled.json()["tracks_stock"] is True
        assert enabled.json()["stock_quantity"] == 12

        disabled = client.post("/api/stock/2/disable", headers=admin)
        assert disabled.json()["tracks_stock"] is False
        assert disabled.json()["stock_quantity"] is None

    def test_unknown_product(self, client, seed, auth_headers):
        response = client.put("/api/stock/999", json={"quantity": 1}, headers=auth_headers("ADMIN"))
        assert response.status_code == 404


class TestRateLimits:

    def test_cancel_attempts_are_throttled(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))
        manager = auth_headers("MANAGER")
        allowed = int(settings.cancel_rate_limit.split("/")[0])
        url = f"/api/orders/{order['id']}/cancel"

        statuses = [
            client.put(url, json={"password": "errada"}, headers=manager).status_code
            for _ in range(allowed)
        ]
        blocked = client.put(url, json={"password": SUPERVISOR_PASSWORD}, headers=manager)

        assert statuses == [403] * allowed
        assert blocked.status_code == 429
        assert blocked.json()["code"] == "RateLimited"
        assert "Retry-After" in blocked.headers

    def test_cancel_limit_does_not_block_other_writes(self, client, seed, auth_headers):
        order = _open_order(client, auth_headers("WAITER"))
        manager = auth_headers("MANAGER")
        allowed = int(settings.cancel_rate_limit.split("/")[0])
        for _ in range(allowed + 1):
            client.put(f"/api/orders/{order['id']}/cancel", json={"password": "errada"}, headers=manager)

        response = _add(client, auth_headers("WAITER"), order["id"], 2)

        assert response.status_code == 201
