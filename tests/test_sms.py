import requests

from wazza.processor import sms


class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} from gateway")


def test_simulated_when_no_gateway(app):
    with app.app_context():
        assert sms.send_sms("+263 77 000 1111", "hello") is True


def test_gateway_delivery(app, monkeypatch):
    calls = []

    def fake_request(self, method, url, **kwargs):
        calls.append((method, url, kwargs["json"], self.headers.get("Authorization")))
        return FakeResponse(200)

    monkeypatch.setattr(requests.Session, "request", fake_request)
    app.config.update(SMS_GATEWAY_URL="https://sms.example.test/send", SMS_GATEWAY_TOKEN="secret")
    with app.app_context():
        assert sms.send_sms("+263 77 000 1111", "hello") is True
    assert calls == [("POST", "https://sms.example.test/send", {"to": "+263 77 000 1111", "message": "hello"}, "Bearer secret")]


def test_gateway_failure_is_reported(app, monkeypatch):
    monkeypatch.setattr(requests.Session, "request", lambda self, method, url, **kwargs: FakeResponse(502))
    app.config.update(SMS_GATEWAY_URL="https://sms.example.test/send")
    with app.app_context():
        assert sms.send_sms("+263 77 000 1111", "hello") is False


def test_gift_order_reports_failed_sms(app, shop, register_user, monkeypatch):
    _, business, products = shop()
    buyer, _ = register_user()
    monkeypatch.setattr(requests.Session, "request", lambda self, method, url, **kwargs: FakeResponse(500))
    app.config.update(SMS_GATEWAY_URL="https://sms.example.test/send")

    response = buyer.post("/api/orders/gift", json={
        "business_id": business["id"],
        "items": [{"product_id": products[0]["id"], "quantity": 1}],
        "recipient_name": "Chipo Moyo",
        "recipient_phone": "+263 77 000 1111",
        "recipient_national_id": "63-123456-F-42",
        "sender_name": "Tatenda Moyo",
        "sender_phone": "+44 7700 900123",
    })
    assert response.status_code == 201
    assert response.get_json()["sms_status"] == "failed"


def test_rate_limit_waits_for_free_slot(monkeypatch):
    clock = [100.0]
    slept = []
    monkeypatch.setattr(sms.time, "monotonic", lambda: clock[0])
    monkeypatch.setattr(sms.time, "sleep", lambda seconds: slept.append(seconds))

    session = sms.GatewaySession(calls=2, period=10)
    session._wait_for_slot()
    clock[0] = 101.0
    session._wait_for_slot()
    clock[0] = 102.0
    session._wait_for_slot()
    assert slept == [8.0]
