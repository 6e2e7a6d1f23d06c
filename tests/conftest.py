import itertools

import fakeredis
import pytest
from cryptography.fernet import Fernet

from wazza import create_app
from wazza.database import db
from wazza.utils.extensions import redis_client

_counter = itertools.count(1)


@pytest.fixture
def app(tmp_path):
    app = create_app(
        "testing",
        DATABASE_URI=f"sqlite:///{tmp_path / 'wazza.db'}",
        ENCRYPTION_KEY=Fernet.generate_key().decode(),
    )
    redis_client._client = fakeredis.FakeRedis(decode_responses=True)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


def _user_payload(**overrides):
    n = next(_counter)
    payload = {
        "email": f"buyer{n}@wazza.co.zw",
        "password": "password123",
        "display_name": f"Buyer {n}",
        "phone": "+263 77 123 4567",
        "national_id": f"63-{100000 + n}-A-{n:02d}",
        "role": "user",
    }
    payload.update(overrides)
    return payload


def _business_payload(**overrides):
    n = next(_counter)
    payload = {
        "email": f"owner{n}@wazza.co.zw",
        "password": "password123",
        "display_name": f"Owner {n}",
        "phone": "+263 71 555 0000",
        "national_id": f"08-{200000 + n}-B-{n:02d}",
        "business_name": f"Shop {n}",
        "business_type": "Grocery",
        "business_description": "Fresh produce",
        "business_phone": "+263 24 270 0000",
        "business_website": "https://shop.wazza.co.zw",
        "latitude": -17.83,
        "longitude": 31.05,
        "address": "12 Samora Machel Ave, Harare",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def register_user(app):
    def _register(**overrides):
        client = app.test_client()
        payload = _user_payload(**overrides)
        response = client.post("/api/auth/register", json=payload)
        assert response.status_code == 201, response.get_json()
        return client, response.get_json()["user"]
    return _register


@pytest.fixture
def register_business(app):
    def _register(**overrides):
        client = app.test_client()
        payload = _business_payload(**overrides)
        response = client.post("/api/auth/register-business", json=payload)
        assert response.status_code == 201, response.get_json()
        data = response.get_json()
        return client, data["user"], data["business"]
    return _register


@pytest.fixture
def admin_client(app):
    client = app.test_client()
    response = client.post("/api/auth/login", json={
        "email": app.config["ADMIN_EMAIL"],
        "password": app.config["ADMIN_PASSWORD"],
    })
    assert response.status_code == 200, response.get_json()
    return client


@pytest.fixture
def shop(register_business, admin_client):
    """An approved business with two products."""
    def _shop(**overrides):
        owner, user, business = register_business(**overrides)
        response = admin_client.post("/api/admin/businesses/approve", json={"business_id": business["id"]})
        assert response.status_code == 200, response.get_json()
        products = []
        for name, price in (("Sadza Meal", "4.50"), ("Maheu", "1.25")):
            response = owner.post("/api/business/products", json={"name": name, "price": price, "category": "Food"})
            assert response.status_code == 201, response.get_json()
            products.append(response.get_json()["product"])
        return owner, _business_of(owner), products
    return _shop


def _business_of(owner):
    return owner.get("/api/business/profile").get_json()["business"]


@pytest.fixture
def user_payload():
    return _user_payload


@pytest.fixture
def business_payload():
    return _business_payload


@pytest.fixture
def count_rows(app):
    def _count(table, **where):
        with app.app_context():
            clause = " AND ".join(f"{key} = ?" for key in where)
            query = f"SELECT COUNT(*) AS total FROM {table}" + (f" WHERE {clause}" if clause else "")
            return db.execute(query, tuple(where.values()), fetch="one")["total"]
    return _count
