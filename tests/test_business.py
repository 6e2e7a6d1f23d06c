def test_product_crud(shop):
    owner, business, products = shop()
    listed = owner.get("/api/business/products").get_json()["products"]
    assert {p["name"] for p in listed} == {"Sadza Meal", "Maheu"}
    assert all(p["business_id"] == business["id"] for p in listed)

    updated = owner.post("/api/business/products/update", json={"product_id": products[1]["id"], "price": "1.50"})
    assert updated.status_code == 200
    assert updated.get_json()["product"]["price"] == 1.5
    assert updated.get_json()["product"]["name"] == "Maheu"

    deleted = owner.post("/api/business/products/delete", json={"product_id": products[1]["id"]})
    assert deleted.status_code == 200
    assert len(owner.get("/api/business/products").get_json()["products"]) == 1


def test_product_validation(shop):
    owner, _, products = shop()
    response = owner.post("/api/business/products", json={"name": "Free lunch", "price": 0})
    assert response.status_code == 400
    assert "price" in response.get_json()["details"]["fields"]

    empty = owner.post("/api/business/products/update", json={"product_id": products[0]["id"]})
    assert empty.status_code == 400
    assert empty.get_json()["error"] == "No update data provided."


def test_product_ownership(shop):
    owner, _, products = shop()
    other, _, _ = shop()
    response = other.post("/api/business/products/update", json={"product_id": products[0]["id"], "name": "Mine now"})
    assert response.status_code == 403
    assert other.post("/api/business/products/delete", json={"product_id": 9999}).status_code == 404


def test_pending_business_cannot_manage_products(register_business):
    owner, _, _ = register_business()
    response = owner.post("/api/business/products", json={"name": "Early bird", "price": "2.00"})
    assert response.status_code == 404
    assert response.get_json()["error"] == "No active business found for this user."


def test_business_routes_require_business_role(register_user):
    buyer, _ = register_user()
    assert buyer.get("/api/business/products").status_code == 403


def test_public_products_of_active_business(shop, register_user, register_business):
    _, business, _ = shop()
    buyer, _ = register_user()
    response = buyer.get(f"/api/businesses/{business['id']}/products")
    assert response.status_code == 200
    assert len(response.get_json()["products"]) == 2

    _, _, pending = register_business()
    assert buyer.get(f"/api/businesses/{pending['id']}/products").status_code == 404


def _place(buyer, business, product, quantity=1):
    response = buyer.post("/api/orders", json={
        "business_id": business["id"],
        "items": [{"product_id": product["id"], "quantity": quantity}],
    })
    assert response.status_code == 201, response.get_json()
    return response.get_json()["order"]


def test_business_orders_pending_first(shop, register_user):
    owner, business, products = shop()
    buyer, _ = register_user()
    first = _place(buyer, business, products[0])
    second = _place(buyer, business, products[1], quantity=3)
    third = _place(buyer, business, products[0], quantity=2)

    owner.post("/api/business/orders/status", json={"order_id": first["id"], "status": "collected"})
    owner.post("/api/business/orders/status", json={"order_id": second["id"], "status": "cancelled"})

    data = owner.get("/api/business/orders").get_json()
    assert [o["id"] for o in data["orders"]] == [third["id"], first["id"], second["id"]]
    assert data["pagination"]["total"] == 3
    assert data["orders"][0]["collector"]["name"] == data["orders"][0]["buyer_name"]

    pending = owner.get("/api/business/orders?status=pending").get_json()["orders"]
    assert [o["id"] for o in pending] == [third["id"]]

    by_amount = owner.get("/api/business/orders?sort_by=total_amount&sort_order=asc&status=collected").get_json()
    assert [o["id"] for o in by_amount["orders"]] == [first["id"]]

    assert owner.get("/api/business/orders?sort_by=name").status_code == 400


def test_order_status_only_from_pending(shop, register_user, count_rows):
    owner, business, products = shop()
    buyer, user = register_user()
    order = _place(buyer, business, products[0])

    collected = owner.post("/api/business/orders/status", json={"order_id": order["id"], "status": "collected"})
    assert collected.status_code == 200
    assert collected.get_json()["order"]["status"] == "collected"
    assert collected.get_json()["order"]["completed_at"] is not None

    again = owner.post("/api/business/orders/status", json={"order_id": order["id"], "status": "cancelled"})
    assert again.status_code == 409

    assert owner.post("/api/business/orders/status", json={"order_id": order["id"], "status": "pending"}).status_code == 400
    assert count_rows("notification_table", recipient_type="user", recipient_id=user["id"], type="order_status_change") == 2


def test_order_status_for_other_business_is_404(shop, register_user):
    _, business, products = shop()
    other, _, _ = shop()
    buyer, _ = register_user()
    order = _place(buyer, business, products[0])
    response = other.post("/api/business/orders/status", json={"order_id": order["id"], "status": "collected"})
    assert response.status_code == 404


def test_verify_order_with_redemption_code(shop, register_user):
    owner, business, products = shop()
    buyer, _ = register_user()
    order = _place(buyer, business, products[0])

    wrong = owner.post("/api/business/orders/verify", json={"order_id": order["id"], "redemption_code": "WRONGCODE1"})
    assert wrong.status_code == 400

    ok = owner.post("/api/business/orders/verify", json={"order_id": order["id"], "redemption_code": order["redemption_code"].lower()})
    assert ok.status_code == 200
    assert ok.get_json()["order"]["status"] == "collected"

    again = owner.post("/api/business/orders/verify", json={"order_id": order["id"], "redemption_code": order["redemption_code"]})
    assert again.status_code == 409

    types = [n["type"] for n in buyer.get("/api/notifications").get_json()["notifications"]]
    assert "order_completed" in types


def test_bracketed_product_names_stay_text(shop):
    owner, _, _ = shop()
    created = owner.post("/api/business/products", json={"name": "[2024]", "description": "{special}", "price": "3.00"})
    assert created.status_code == 201
    assert created.get_json()["product"]["name"] == "[2024]"

    listed = owner.get("/api/business/products")
    assert listed.status_code == 200
    names = {p["name"] for p in listed.get_json()["products"]}
    assert "[2024]" in names


def test_suspended_business_can_still_close_orders(shop, register_user, admin_client):
    owner, business, products = shop()
    buyer, _ = register_user()
    first = _place(buyer, business, products[0])
    second = _place(buyer, business, products[1])
    admin_client.post("/api/admin/businesses/suspend", json={"business_id": business["id"]})

    cancelled = owner.post("/api/business/orders/status", json={"order_id": first["id"], "status": "cancelled"})
    assert cancelled.status_code == 200
    assert "redemption_code" not in cancelled.get_json()["order"]

    collected = owner.post("/api/business/orders/verify", json={"order_id": second["id"], "redemption_code": second["redemption_code"]})
    assert collected.status_code == 200
    assert collected.get_json()["order"]["status"] == "collected"
