def test_add_and_increment(shop, register_user):
    _, business, products = shop()
    buyer, _ = register_user()

    response = buyer.post("/api/cart/add", json={"product_id": products[0]["id"]})
    assert response.status_code == 201
    response = buyer.post("/api/cart/add", json={"product_id": products[0]["id"], "quantity": 2})
    cart = response.get_json()
    assert cart["item_count"] == 3
    assert cart["total"] == 13.5
    assert cart["items"][0]["line_total"] == 13.5
    assert cart["businesses"][0]["business_id"] == business["id"]

    assert buyer.get("/api/cart").get_json() == cart


def test_cart_groups_by_business(shop, register_user):
    _, first, first_products = shop()
    _, second, second_products = shop()
    buyer, _ = register_user()
    buyer.post("/api/cart/add", json={"product_id": first_products[1]["id"], "quantity": 2})
    buyer.post("/api/cart/add", json={"product_id": second_products[0]["id"]})

    cart = buyer.get("/api/cart").get_json()
    subtotals = {group["business_id"]: group["subtotal"] for group in cart["businesses"]}
    assert subtotals == {first["id"]: 2.5, second["id"]: 4.5}
    assert cart["total"] == 7.0


def test_update_remove_and_clear(shop, register_user):
    _, _, products = shop()
    buyer, _ = register_user()
    buyer.post("/api/cart/add", json={"product_id": products[0]["id"]})
    buyer.post("/api/cart/add", json={"product_id": products[1]["id"]})

    updated = buyer.post("/api/cart/update", json={"product_id": products[1]["id"], "quantity": 5}).get_json()
    assert updated["item_count"] == 6

    dropped = buyer.post("/api/cart/update", json={"product_id": products[1]["id"], "quantity": 0}).get_json()
    assert [item["product_id"] for item in dropped["items"]] == [products[0]["id"]]

    assert buyer.post("/api/cart/remove", json={"product_id": products[1]["id"]}).status_code == 404
    removed = buyer.post("/api/cart/remove", json={"product_id": products[0]["id"]}).get_json()
    assert removed["items"] == []

    buyer.post("/api/cart/add", json={"product_id": products[0]["id"]})
    cleared = buyer.post("/api/cart/clear").get_json()
    assert cleared == {"items": [], "businesses": [], "total": 0.0, "item_count": 0}


def test_cannot_add_products_of_inactive_business(shop, register_user, admin_client):
    _, business, products = shop()
    buyer, _ = register_user()
    admin_client.post("/api/admin/businesses/suspend", json={"business_id": business["id"]})
    response = buyer.post("/api/cart/add", json={"product_id": products[0]["id"]})
    assert response.status_code == 404


def test_checkout_one_business(shop, register_user):
    _, first, first_products = shop()
    _, second, second_products = shop()
    buyer, _ = register_user()
    buyer.post("/api/cart/add", json={"product_id": first_products[0]["id"], "quantity": 2})
    buyer.post("/api/cart/add", json={"product_id": second_products[1]["id"]})

    response = buyer.post("/api/cart/checkout", json={"business_id": first["id"]})
    assert response.status_code == 201
    order = response.get_json()["order"]
    assert order["business_id"] == first["id"]
    assert order["total_amount"] == 9.0

    cart = buyer.get("/api/cart").get_json()
    assert [item["product_id"] for item in cart["items"]] == [second_products[1]["id"]]

    again = buyer.post("/api/cart/checkout", json={"business_id": first["id"]})
    assert again.status_code == 400


def test_cart_requires_buyer(shop):
    owner, _, products = shop()
    assert owner.post("/api/cart/add", json={"product_id": products[0]["id"]}).status_code == 403


def test_deleted_products_leave_the_cart(shop, register_user):
    owner, _, products = shop()
    buyer, _ = register_user()
    buyer.post("/api/cart/add", json={"product_id": products[0]["id"]})
    buyer.post("/api/cart/add", json={"product_id": products[1]["id"], "quantity": 2})

    assert owner.post("/api/business/products/delete", json={"product_id": products[1]["id"]}).status_code == 200

    cart = buyer.get("/api/cart").get_json()
    assert [item["product_id"] for item in cart["items"]] == [products[0]["id"]]
    assert cart["item_count"] == 1
    with buyer.session_transaction() as sess:
        assert sess["cart"] == {str(products[0]["id"]): 1}
