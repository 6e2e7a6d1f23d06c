import pytest

from wazza.database import db
from wazza.utils import encryption

NATIONAL_ID = "63-123456-F-42"


@pytest.fixture
def gift(shop, register_user):
    owner, business, products = shop()
    buyer, user = register_user()
    response = buyer.post("/api/orders/gift", json={
        "business_id": business["id"],
        "items": [{"product_id": products[0]["id"], "quantity": 2}],
        "recipient_name": "Chipo Moyo",
        "recipient_phone": "+263 77 000 1111",
        "recipient_national_id": NATIONAL_ID,
        "sender_name": "Tatenda Moyo",
        "sender_phone": "+44 7700 900123",
    })
    assert response.status_code == 201, response.get_json()
    data = response.get_json()
    return owner, buyer, user, business, data


def test_gift_order_created(gift, count_rows):
    _, _, user, business, data = gift
    assert data["sms_status"] == "sent"
    order = data["order"]
    assert order["is_gift"] is True
    assert order["total_amount"] == 9.0
    assert order["gift"]["recipient_name"] == "Chipo Moyo"
    assert order["gift"]["is_redeemed"] is False
    assert order["collector"] == {"name": "Chipo Moyo", "phone": "+263 77 000 1111"}
    assert "recipient_national_id" not in order["gift"]

    assert count_rows("gift_order_table", order_id=order["id"]) == 1
    assert count_rows("notification_table", recipient_type="business", recipient_id=business["id"], type="new_order") == 1


def test_national_id_encrypted_at_rest(app, gift):
    order = gift[4]["order"]
    with app.app_context():
        row = db.execute(
            "SELECT recipient_national_id, redemption_code FROM gift_order_table WHERE order_id = ?",
            (order["id"],),
            fetch="one",
        )
        assert row["recipient_national_id"] != NATIONAL_ID
        assert encryption.decrypt_data(row["recipient_national_id"]) == NATIONAL_ID
    assert row["redemption_code"] == order["redemption_code"]


def test_gift_requires_recipient_details(shop, register_user, count_rows):
    _, business, products = shop()
    buyer, _ = register_user()
    response = buyer.post("/api/orders/gift", json={
        "business_id": business["id"],
        "items": [{"product_id": products[0]["id"], "quantity": 1}],
        "recipient_name": "Chipo Moyo",
        "recipient_phone": "not a phone",
    })
    assert response.status_code == 400
    fields = response.get_json()["details"]["fields"]
    assert {"recipient_phone", "recipient_national_id", "sender_name", "sender_phone"} <= set(fields)
    assert count_rows("order_table") == 0


def test_verify_gift_does_not_change_it(gift):
    owner, _, _, _, data = gift
    order = data["order"]
    payload = {"order_id": order["id"], "redemption_code": order["redemption_code"]}

    for _ in range(2):
        response = owner.post("/api/business/orders/gift/verify", json=payload)
        assert response.status_code == 200
        verified = response.get_json()["order"]
        assert verified["status"] == "pending"
        assert verified["gift"]["is_redeemed"] is False
        assert "recipient_national_id" not in verified["gift"]


def test_redeem_gift(gift, count_rows):
    owner, buyer, user, _, data = gift
    order = data["order"]
    payload = {
        "order_id": order["id"],
        "redemption_code": order["redemption_code"],
        "recipient_national_id": NATIONAL_ID.lower(),
    }

    response = owner.post("/api/business/orders/gift/redeem", json=payload)
    assert response.status_code == 200
    body = response.get_json()
    assert body["sms_status"] == "sent"
    assert body["order"]["status"] == "collected"
    assert body["order"]["gift"]["is_redeemed"] is True
    assert body["order"]["gift"]["redeemed_at"] is not None

    again = owner.post("/api/business/orders/gift/redeem", json=payload)
    assert again.status_code == 409
    assert owner.post("/api/business/orders/gift/verify", json=payload).get_json()["order"]["status"] == "collected"

    assert count_rows("notification_table", recipient_type="user", recipient_id=user["id"], type="gift_redeemed") == 1


def test_redeem_with_wrong_national_id(gift):
    owner, _, _, _, data = gift
    order = data["order"]
    response = owner.post("/api/business/orders/gift/redeem", json={
        "order_id": order["id"],
        "redemption_code": order["redemption_code"],
        "recipient_national_id": "00-000000-X-00",
    })
    assert response.status_code == 400

    check = owner.post("/api/business/orders/gift/verify", json={
        "order_id": order["id"],
        "redemption_code": order["redemption_code"],
    }).get_json()["order"]
    assert check["status"] == "pending"
    assert check["gift"]["is_redeemed"] is False


def test_gift_belongs_to_business(gift, shop):
    _, _, _, _, data = gift
    order = data["order"]
    other, _, _ = shop()
    response = other.post("/api/business/orders/gift/verify", json={
        "order_id": order["id"],
        "redemption_code": order["redemption_code"],
    })
    assert response.status_code == 403


def test_unknown_gift_code(gift):
    owner, _, _, _, data = gift
    response = owner.post("/api/business/orders/gift/verify", json={
        "order_id": data["order"]["id"],
        "redemption_code": "NOPE000000",
    })
    assert response.status_code == 404


def test_collecting_gift_marks_it_redeemed(gift):
    owner, _, _, _, data = gift
    order = data["order"]
    response = owner.post("/api/business/orders/verify", json={
        "order_id": order["id"],
        "redemption_code": order["redemption_code"],
    })
    assert response.status_code == 200
    assert response.get_json()["order"]["gift"]["is_redeemed"] is True

    redeem = owner.post("/api/business/orders/gift/redeem", json={
        "order_id": order["id"],
        "redemption_code": order["redemption_code"],
        "recipient_national_id": NATIONAL_ID,
    })
    assert redeem.status_code == 409


def test_business_never_sees_redemption_codes(gift):
    owner, buyer, _, _, data = gift
    order = data["order"]

    listed = owner.get("/api/business/orders").get_json()["orders"]
    assert [o["id"] for o in listed] == [order["id"]]
    assert "redemption_code" not in listed[0]

    verified = owner.post("/api/business/orders/gift/verify", json={
        "order_id": order["id"],
        "redemption_code": order["redemption_code"],
    }).get_json()["order"]
    assert "redemption_code" not in verified
    assert "redemption_code" not in verified["gift"]

    mine = buyer.get("/api/orders").get_json()["orders"]
    assert mine[0]["redemption_code"] == order["redemption_code"]


def test_suspended_business_can_still_settle_gifts(gift, admin_client):
    owner, _, _, business, data = gift
    order = data["order"]
    assert admin_client.post("/api/admin/businesses/suspend", json={"business_id": business["id"]}).status_code == 200

    payload = {"order_id": order["id"], "redemption_code": order["redemption_code"]}
    verified = owner.post("/api/business/orders/gift/verify", json=payload)
    assert verified.status_code == 200
    assert verified.get_json()["order"]["status"] == "pending"

    redeemed = owner.post("/api/business/orders/gift/redeem", json={**payload, "recipient_national_id": NATIONAL_ID})
    assert redeemed.status_code == 200
    assert redeemed.get_json()["order"]["status"] == "collected"

    assert owner.post("/api/business/products", json={"name": "Late addition", "price": "1.00"}).status_code == 404
