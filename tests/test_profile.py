def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok", "database": True, "cache": True}


def test_profile_update(register_user):
    buyer, user = register_user()
    assert buyer.get("/api/profile").get_json()["user"]["id"] == user["id"]

    response = buyer.post("/api/profile/update", json={"display_name": "  Rudo M  ", "address": "Bulawayo"})
    assert response.status_code == 200
    updated = response.get_json()["user"]
    assert updated["display_name"] == "Rudo M"
    assert updated["address"] == "Bulawayo"
    assert updated["email"] == user["email"]


def test_profile_update_keeps_emails_unique(register_user):
    _, first = register_user()
    buyer, _ = register_user()
    response = buyer.post("/api/profile/update", json={"email": first["email"]})
    assert response.status_code == 409
    assert response.get_json()["details"]["field"] == "email"

    invalid = buyer.post("/api/profile/update", json={"email": "not-an-email"})
    assert invalid.status_code == 400


def test_profile_requires_login(client):
    assert client.get("/api/profile").status_code == 401
