from decimal import Decimal

from commerce.domain.models import OrderItem, ProductVariant
from sqlalchemy import select

VARIANTS = [
    {"title": "Red / M", "price": "499.00", "sku": "TS-R-M", "position": 0,
     "options": [{"name": "Color", "value": "Red"}, {"name": "Size", "value": "M"}]},
    {"title": "Blue / L", "price": "549.00", "sku": "TS-B-L", "position": 1,
     "options": [{"name": "Color", "value": "Blue"}, {"name": "Size", "value": "L"}]},
]


def test_customers_cannot_create_products(client, customer):
    resp = client.post("/products/", json={"title": "Tee"}, headers=customer)
    assert resp.status_code == 403


def test_create_product_with_variants(client, supplier):
    resp = client.post("/products/", json={"title": "Tee", "base_price": "450.00", "variants": VARIANTS}, headers=supplier)

    assert resp.status_code == 201, resp.text
    product = resp.json()
    assert product["supplier_id"] == "supp-1"
    assert product["variant_count"] == 2
    assert Decimal(product["base_price"]) == Decimal("450.00")
    assert product["variants"][0]["options"] == VARIANTS[0]["options"]
    assert "option1_name" not in product["variants"][0]


def test_variant_legacy_columns_are_never_written(client, supplier, db):
    variant = dict(VARIANTS[0], option1_name="Color", option1_value="Red")
    product = client.post("/products/", json={"title": "Tee", "variants": [variant]}, headers=supplier).json()

    row = db.get(ProductVariant, product["variants"][0]["id"])
    assert row.option1_name is None
    assert row.option1_value is None
    assert row.options == VARIANTS[0]["options"]


def test_create_product_rejects_duplicate_option_names(client, supplier):
    variant = {"title": "Odd", "options": [{"name": "Size", "value": "M"}, {"name": "size", "value": "L"}]}
    resp = client.post("/products/", json={"title": "Tee", "variants": [variant]}, headers=supplier)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "duplicate option names"


def test_create_product_rejects_too_many_options(client, supplier):
    variant = {"title": "Busy", "options": [{"name": f"opt{i}", "value": "x"} for i in range(11)]}
    resp = client.post("/products/", json={"title": "Tee", "variants": [variant]}, headers=supplier)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "too many options"


def test_non_list_options_are_stored_as_empty(client, supplier):
    variant = {"title": "Plain", "price": "10.00", "options": "Color=Red"}
    product = client.post("/products/", json={"title": "Tee", "variants": [variant]}, headers=supplier).json()
    assert product["variants"][0]["options"] == []


def test_get_product_and_variants(client, make_product):
    product = make_product(variants=VARIANTS)

    fetched = client.get(f"/products/{product['id']}")
    variants = client.get(f"/products/{product['id']}/variants")

    assert fetched.status_code == 200
    assert fetched.json()["title"] == "Cotton Kurta"
    assert [v["sku"] for v in variants.json()] == ["TS-R-M", "TS-B-L"]
    assert client.get("/products/999").status_code == 404


def test_replace_variants_swaps_whole_set(client, supplier, make_product):
    product = make_product(variants=VARIANTS)
    replacement = [{"title": "Green / S", "price": "399.00", "options": [{"name": "Color", "value": "Green"}]}]

    resp = client.put(f"/products/{product['id']}/variants", json={"variants": replacement}, headers=supplier)

    assert resp.status_code == 200, resp.text
    assert [v["title"] for v in resp.json()] == ["Green / S"]
    assert client.get(f"/products/{product['id']}").json()["variant_count"] == 1


def test_replace_variants_with_invalid_options_keeps_old_set(client, supplier, make_product):
    product = make_product(variants=VARIANTS)
    bad = [{"title": "Bad", "options": [{"name": "Size", "value": "M"}, {"name": "SIZE", "value": "L"}]}]

    resp = client.put(f"/products/{product['id']}/variants", json={"variants": bad}, headers=supplier)

    assert resp.status_code == 400
    assert len(client.get(f"/products/{product['id']}/variants").json()) == 2


def test_only_owner_or_admin_can_replace_variants(client, headers_for, admin, make_product):
    product = make_product(variants=VARIANTS)
    intruder = headers_for("supp-2", role="supplier")

    denied = client.put(f"/products/{product['id']}/variants", json={"variants": []}, headers=intruder)
    allowed = client.put(f"/products/{product['id']}/variants", json={"variants": []}, headers=admin)

    assert denied.status_code == 403
    assert allowed.status_code == 200
    assert allowed.json() == []


def test_replacing_variants_keeps_order_history(client, customer, supplier, make_product, db):
    product = make_product(variants=VARIANTS)
    order = client.post(
        "/orders/",
        json={
            "items": [{"product_id": product["id"], "variant_id": product["variants"][0]["id"], "quantity": 1}],
            "shipping_address": {"city": "Pune"},
        },
        headers=customer,
    ).json()

    client.put(f"/products/{product['id']}/variants", json={"variants": VARIANTS[1:]}, headers=supplier)

    item = db.execute(select(OrderItem).where(OrderItem.order_id == order["id"])).scalar_one()
    assert item.price == Decimal("499.00")
    assert client.get(f"/orders/{order['id']}", headers=customer).status_code == 200
