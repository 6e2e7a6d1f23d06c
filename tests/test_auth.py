def test_register_user_starts_active_session(client, user_payload):
    payload = user_payload()
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201
    user = response.get_json()["user"]
    assert user["email"] == payload["email"]
    assert user["role"] == "user"
    assert user["status"] == "active"
    assert user["address"] == "Harare, Zimbabwe"
    assert "password" not in user and "session_id" not in user

    session = client.get("/api/auth/session")
    assert session.status_code == 200
    assert session.get_json()["user"]["id"] == user["id"]


def test_register_duplicate_email_conflicts(client, register_user, user_payload):
    _, user = register_user()
    response = client.post("/api/auth/register", json=user_payload(email=user["email"].upper()))
    assert response.status_code == 409
    assert response.get_json()["details"]["field"] == "email"


def test_register_duplicate_national_id_conflicts(client, register_user, user_payload):
    _, user = register_user()
    response = client.post("/api/auth/register", json=user_payload(national_id=user["national_id"]))
    assert response.status_code == 409
    assert response.get_json()["details"]["field"] == "national_id"


def test_register_admin_is_forbidden(client, user_payload):
    response = client.post("/api/auth/register", json=user_payload(role="admin"))
    assert response.status_code == 403


def test_register_validation_errors(client, user_payload):
    response = client.post("/api/auth/register", json=user_payload(password="short", phone="call me"))
    assert response.status_code == 400
    fields = response.get_json()["details"]["fields"]
    assert "password" in fields
    assert "phone" in fields


def test_register_rejects_non_object_body(client):
    response = client.post("/api/auth/register", json=["not", "an", "object"])
    assert response.status_code == 400


def test_login_and_logout(app, register_user, user_payload):
    _, user = register_user(email="login@wazza.co.zw")
    client = app.test_client()

    bad = client.post("/api/auth/login", json={"email": "login@wazza.co.zw", "password": "wrong-password"})
    assert bad.status_code == 401

    ok = client.post("/api/auth/login", json={"email": "LOGIN@wazza.co.zw", "password": "password123"})
    assert ok.status_code == 200
    assert ok.get_json()["user"]["id"] == user["id"]

    assert client.post("/api/auth/logout").status_code == 200
    assert client.get("/api/auth/session").status_code == 401


def test_session_requires_login(client):
    response = client.get("/api/auth/session")
    assert response.status_code == 401
    assert response.get_json()["error"] == "Not authenticated"


def test_register_business_creates_pending_records(register_business, admin_client, count_rows):
    owner, user, business = register_business()
    assert user["role"] == "business"
    assert user["status"] == "pending"
    assert business["status"] == "pending"
    assert business["owner_id"] == user["id"]

    notifications = admin_client.get("/api/notifications").get_json()
    assert notifications["unread_count"] == 1
    assert notifications["notifications"][0]["type"] == "business_registration"

    profile = owner.get("/api/business/profile")
    assert profile.status_code == 200
    assert profile.get_json()["business"]["id"] == business["id"]


def test_register_business_validates_location(client, business_payload):
    response = client.post("/api/auth/register-business", json=business_payload(latitude=123.0, business_website="not a url"))
    assert response.status_code == 400
    fields = response.get_json()["details"]["fields"]
    assert "latitude" in fields
    assert "business_website" in fields


def test_banned_user_cannot_login(app, register_user, admin_client):
    buyer, user = register_user(email="banned@wazza.co.zw")
    assert admin_client.post("/api/admin/users/ban", json={"user_id": user["id"]}).status_code == 200

    # existing sessions end with the ban
    assert buyer.get("/api/auth/session").status_code == 401

    response = app.test_client().post("/api/auth/login", json={"email": "banned@wazza.co.zw", "password": "password123"})
    assert response.status_code == 403
