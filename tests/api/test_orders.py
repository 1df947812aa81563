import re
from datetime import datetime
from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy import event, func, select
from sqlalchemy.exc import OperationalError

from commerce.application.order_service import OrderService
from commerce.domain.models import Order, OrderItem
from commerce.infrastructure.db import SessionLocal
from commerce.main import app

ADDRESS = {"line1": "12 MG Road", "city": "Bengaluru", "pincode": "560001"}


def _place_order(client, headers, items, **fields):
    return client.post("/orders/", json={"items": items, "shipping_address": ADDRESS, **fields}, headers=headers)


def _set_status(client, admin, order_id, status, **fields):
    resp = client.put(f"/orders/{order_id}/status", json={"status": status, **fields}, headers=admin)
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_orders_require_authentication():
    client = TestClient(app)
    resp = client.get('/orders/')
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Authentication required"


def test_invalid_token_is_rejected(client):
    resp = client.get("/orders/", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_create_order_prices_from_catalog(client, customer, make_product):
    product = make_product(base_price="100.00")

    resp = _place_order(client, customer, [{"product_id": product["id"], "quantity": 3}], payment_method="online")

    assert resp.status_code == 201, resp.text
    order = resp.json()
    assert order["status"] == "pending"
    assert order["customer_id"] == "cust-1"
    assert order["currency"] == "INR"
    assert re.fullmatch(rf"ORD-{datetime.utcnow():%Y%m%d}-[0-9A-F]{{8}}", order["order_number"])
    assert Decimal(order["subtotal"]) == Decimal("300.00")
    assert Decimal(order["tax_amount"]) == Decimal("54.00")
    assert Decimal(order["shipping_amount"]) == Decimal("50.00")
    assert Decimal(order["total_amount"]) == Decimal("404.00")
    assert order["billing_address"] == ADDRESS

    [item] = order["items"]
    assert item["quantity"] == 3
    assert Decimal(item["price"]) == Decimal("100.00")
    assert Decimal(item["total"]) == Decimal("300.00")
    assert item["product"]["title"] == "Cotton Kurta"


def test_create_order_uses_variant_price(client, customer, make_product):
    product = make_product(
        base_price="100.00",
        variants=[
            {"title": "S", "price": "90.00", "sku": "K-S", "position": 0},
            {"title": "XL", "price": "130.00", "sku": "K-XL", "position": 1},
        ],
    )
    xl = product["variants"][1]

    resp = _place_order(client, customer, [{"product_id": product["id"], "variant_id": xl["id"], "quantity": 1}])

    assert resp.status_code == 201, resp.text
    [item] = resp.json()["items"]
    assert Decimal(item["price"]) == Decimal("130.00")
    assert item["variant"]["sku"] == "K-XL"


def test_order_numbers_are_unique(client, customer, make_product):
    product = make_product()
    first = _place_order(client, customer, [{"product_id": product["id"], "quantity": 1}]).json()
    second = _place_order(client, customer, [{"product_id": product["id"], "quantity": 1}]).json()
    assert first["order_number"] != second["order_number"]


def test_concurrent_sessions_get_distinct_order_numbers():
    first_session, second_session = SessionLocal(), SessionLocal()
    try:
        first = OrderService(first_session)._generate_order_number()
        second = OrderService(second_session)._generate_order_number()
    finally:
        first_session.close()
        second_session.close()
    assert first != second


def test_create_order_with_unknown_product_is_404(client, customer):
    resp = _place_order(client, customer, [{"product_id": 4242, "quantity": 1}])
    assert resp.status_code == 404


def test_create_order_without_price_is_400(client, customer, make_product):
    product = make_product(base_price=None)
    resp = _place_order(client, customer, [{"product_id": product["id"], "quantity": 1}])
    assert resp.status_code == 400
    assert "no price configured" in resp.json()["detail"]


def test_unknown_item_rejects_whole_order(client, customer, make_product):
    product = make_product()
    resp = _place_order(client, customer, [
        {"product_id": product["id"], "quantity": 1},
        {"product_id": 4242, "quantity": 1},
    ])
    assert resp.status_code == 404

    listing = client.get("/orders/", headers=customer).json()
    assert listing["total"] == 0


def test_item_write_failure_rolls_back_header(client, customer, make_product, db):
    product = make_product()

    def reject_items(session, flush_context, instances):
        if any(isinstance(obj, OrderItem) for obj in session.new):
            raise OperationalError("INSERT INTO order_items", {}, Exception("disk I/O error"))

    event.listen(SessionLocal, "before_flush", reject_items)
    try:
        resp = _place_order(client, customer, [{"product_id": product["id"], "quantity": 2}])
    finally:
        event.remove(SessionLocal, "before_flush", reject_items)

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to create order"
    assert db.scalar(select(func.count(Order.id))) == 0
    assert db.scalar(select(func.count(OrderItem.id))) == 0


def test_empty_order_is_400(client, customer):
    resp = _place_order(client, customer, [])
    assert resp.status_code == 400


def test_list_orders_newest_first(client, customer, other_customer, make_product):
    product = make_product()
    first = _place_order(client, customer, [{"product_id": product["id"], "quantity": 1}]).json()
    second = _place_order(client, customer, [{"product_id": product["id"], "quantity": 2}]).json()
    _place_order(client, other_customer, [{"product_id": product["id"], "quantity": 1}])

    listing = client.get("/orders/", headers=customer).json()

    assert listing["total"] == 2
    assert [o["id"] for o in listing["orders"]] == [second["id"], first["id"]]


def test_other_customers_order_is_hidden(client, customer, other_customer, make_product):
    product = make_product()
    order = _place_order(client, customer, [{"product_id": product["id"], "quantity": 1}]).json()

    assert client.get(f"/orders/{order['id']}", headers=customer).status_code == 200
    assert client.get(f"/orders/{order['id']}", headers=other_customer).status_code == 404
    confirmation = client.get(f"/orders/confirmation/{order['order_number']}", headers=other_customer)
    assert confirmation.status_code == 403


def test_confirmation_by_order_number(client, customer, make_product):
    product = make_product()
    order = _place_order(client, customer, [{"product_id": product["id"], "quantity": 1}]).json()

    resp = client.get(f"/orders/confirmation/{order['order_number']}", headers=customer)

    assert resp.status_code == 200
    assert resp.json()["id"] == order["id"]
    assert client.get("/orders/confirmation/ORD-19990101-00000000", headers=customer).status_code == 404


def test_status_update_is_admin_only(client, customer, make_product):
    product = make_product()
    order = _place_order(client, customer, [{"product_id": product["id"], "quantity": 1}]).json()

    resp = client.put(f"/orders/{order['id']}/status", json={"status": "confirmed"}, headers=customer)

    assert resp.status_code == 403


def test_fulfilment_flow_stamps_timestamps(client, customer, admin, make_product):
    product = make_product()
    order = _place_order(client, customer, [{"product_id": product["id"], "quantity": 1}]).json()

    _set_status(client, admin, order["id"], "confirmed")
    _set_status(client, admin, order["id"], "processing")
    shipped = _set_status(client, admin, order["id"], "shipped", internal_notes="AWB 123")
    delivered = _set_status(client, admin, order["id"], "delivered")

    assert shipped["shipped_at"] is not None
    assert shipped["internal_notes"] == "AWB 123"
    assert delivered["status"] == "delivered"
    assert delivered["delivered_at"] is not None


def test_illegal_transition_is_rejected_unless_forced(client, customer, admin, make_product):
    product = make_product()
    order = _place_order(client, customer, [{"product_id": product["id"], "quantity": 1}]).json()

    resp = client.put(f"/orders/{order['id']}/status", json={"status": "delivered"}, headers=admin)
    assert resp.status_code == 400

    forced = _set_status(client, admin, order["id"], "delivered", force=True)
    assert forced["status"] == "delivered"


def test_unknown_status_value_is_422(client, customer, admin, make_product):
    product = make_product()
    order = _place_order(client, customer, [{"product_id": product["id"], "quantity": 1}]).json()
    resp = client.put(f"/orders/{order['id']}/status", json={"status": "lost"}, headers=admin)
    assert resp.status_code == 422


def test_cancel_order(client, customer, make_product):
    product = make_product()
    order = _place_order(client, customer, [{"product_id": product["id"], "quantity": 1}]).json()

    resp = client.post(f"/orders/{order['id']}/cancel", json={"reason": "ordered twice"}, headers=customer)

    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"
    assert resp.json()["internal_notes"] == "Cancelled: ordered twice"

    again = client.post(f"/orders/{order['id']}/cancel", json={}, headers=customer)
    assert again.status_code == 400


def test_cancel_after_shipping_is_rejected(client, customer, admin, make_product):
    product = make_product()
    order = _place_order(client, customer, [{"product_id": product["id"], "quantity": 1}]).json()
    _set_status(client, admin, order["id"], "processing")
    _set_status(client, admin, order["id"], "shipped")

    resp = client.post(f"/orders/{order['id']}/cancel", json={}, headers=customer)

    assert resp.status_code == 400


def test_cancel_other_customers_order_is_404(client, customer, other_customer, make_product):
    product = make_product()
    order = _place_order(client, customer, [{"product_id": product["id"], "quantity": 1}]).json()
    resp = client.post(f"/orders/{order['id']}/cancel", json={}, headers=other_customer)
    assert resp.status_code == 404


def test_refund_delivered_order(client, customer, admin, make_product):
    product = make_product()
    order = _place_order(client, customer, [{"product_id": product["id"], "quantity": 1}]).json()
    _set_status(client, admin, order["id"], "delivered", force=True)

    too_much = client.post(
        f"/orders/{order['id']}/refund",
        json={"reason": "damaged", "refund_amount": "1000.00"},
        headers=customer,
    )
    assert too_much.status_code == 400

    resp = client.post(
        f"/orders/{order['id']}/refund",
        json={"reason": "damaged", "refund_amount": "50.00", "refund_method": "upi"},
        headers=customer,
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "refunded"
    assert resp.json()["internal_notes"].endswith("Refunded INR 50.00 via upi: damaged")


def test_refund_before_delivery_is_rejected(client, customer, make_product):
    product = make_product()
    order = _place_order(client, customer, [{"product_id": product["id"], "quantity": 1}]).json()
    resp = client.post(f"/orders/{order['id']}/refund", json={"reason": "changed mind"}, headers=customer)
    assert resp.status_code == 400


def test_summary_stats(client, customer, admin, make_product):
    product = make_product(base_price="100.00")
    orders = [
        _place_order(client, customer, [{"product_id": product["id"], "quantity": 1}]).json()
        for _ in range(3)
    ]
    _set_status(client, admin, orders[0]["id"], "delivered", force=True)
    client.post(f"/orders/{orders[1]['id']}/cancel", json={}, headers=customer)

    stats = client.get("/orders/summary/stats", headers=customer).json()

    assert stats["total_orders"] == 3
    assert stats["pending_orders"] == 1
    assert stats["completed_orders"] == 1
    assert stats["cancelled_orders"] == 1
    assert Decimal(stats["total_revenue"]) == Decimal("168.00")
