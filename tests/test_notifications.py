def _order(buyer, business, product):
    return buyer.post("/api/orders", json={
        "business_id": business["id"],
        "items": [{"product_id": product["id"], "quantity": 1}],
    }).get_json()["order"]


def test_mark_all_read_only_touches_own_rows(shop, register_user, count_rows):
    _, business, products = shop()
    buyer, user = register_user()
    other, other_user = register_user()
    _order(buyer, business, products[0])
    _order(buyer, business, products[1])
    _order(other, business, products[0])

    response = buyer.post("/api/notifications/mark-read", json={"mark_all_as_read": True})
    assert response.status_code == 200
    assert response.get_json()["updated_count"] == 2

    assert buyer.get("/api/notifications").get_json()["unread_count"] == 0
    assert other.get("/api/notifications").get_json()["unread_count"] == 1
    # new_order rows for the business plus the approval notice stay unread
    assert count_rows("notification_table", recipient_type="business", recipient_id=business["id"]) == 4

    again = buyer.post("/api/notifications/mark-read", json={"mark_all_as_read": True})
    assert again.get_json()["updated_count"] == 0


def test_mark_selected_ids(shop, register_user):
    owner, business, products = shop()
    buyer, _ = register_user()
    other, _ = register_user()
    _order(buyer, business, products[0])
    _order(other, business, products[0])

    listed = owner.get("/api/notifications?filter=unread").get_json()
    new_orders = [n for n in listed["notifications"] if n["type"] == "new_order"]
    assert len(new_orders) == 2
    target = new_orders[0]["id"]

    # ids belonging to someone else are ignored
    foreign = buyer.get("/api/notifications").get_json()["notifications"][0]["id"]
    response = owner.post("/api/notifications/mark-read", json={"notification_ids": [target, foreign]})
    assert response.get_json()["updated_count"] == 1

    read = owner.get("/api/notifications?filter=read").get_json()["notifications"]
    assert [n["id"] for n in read] == [target]
    assert read[0]["is_read"] is True
    assert owner.get("/api/notifications?filter=unread").get_json()["unread_count"] == 2


def test_mark_read_needs_ids_or_all(register_user):
    buyer, _ = register_user()
    response = buyer.post("/api/notifications/mark-read", json={})
    assert response.status_code == 400


def test_list_notifications_validation(register_user):
    buyer, _ = register_user()
    assert buyer.get("/api/notifications?filter=archived").status_code == 400
    assert buyer.get("/api/notifications?limit=0").status_code == 400


def test_admin_sends_notification(register_user, admin_client):
    buyer, user = register_user()
    response = admin_client.post("/api/notifications/send", json={
        "recipient_id": user["id"],
        "recipient_type": "user",
        "type": "system_announcement",
        "title": "Maintenance",
        "message": "Wazza will be offline on Sunday night.",
        "data": {"window": "22:00-23:00"},
    })
    assert response.status_code == 201

    notification = buyer.get("/api/notifications").get_json()["notifications"][0]
    assert notification["id"] == response.get_json()["id"]
    assert notification["title"] == "Maintenance"
    assert notification["data"] == {"window": "22:00-23:00"}
    assert notification["is_read"] is False


def test_send_validates_recipient(register_user, admin_client):
    buyer, user = register_user()
    payload = {
        "recipient_id": 9999,
        "recipient_type": "user",
        "type": "system_announcement",
        "title": "Hello",
        "message": "Hi",
    }
    assert admin_client.post("/api/notifications/send", json=payload).status_code == 404
    assert admin_client.post("/api/notifications/send", json=dict(payload, type="party")).status_code == 400
    assert buyer.post("/api/notifications/send", json=dict(payload, recipient_id=user["id"])).status_code == 403


def test_notifications_require_login(client):
    assert client.get("/api/notifications").status_code == 401
