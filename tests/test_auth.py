"""Basic auth tests"""
TEST_PASSWORD = "password123"


def test_health_endpoint(client):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_login_without_credentials(client):
    """Test login endpoint without credentials"""
    response = client.post("/api/auth/login", json={})
    assert response.status_code == 422  # Validation error


def test_login_with_invalid_credentials(client):
    """Test login with invalid credentials"""
    response = client.post(
        "/api/auth/login",
        json={"email": "nonexistent@example.com", "password": "wrong"}
    )
    assert response.status_code == 401


def test_login_with_wrong_password(client, admin):
    response = client.post("/api/auth/login", json={"email": "admin@acme.test", "password": "not-it"})
    assert response.status_code == 401


def test_login_returns_token_for_single_membership(client, admin):
    response = client.post(
        "/api/auth/login",
        json={"email": "  ADMIN@acme.test ", "password": TEST_PASSWORD}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["requires_org_selection"] is False
    assert data["token_type"] == "bearer"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    body = me.json()
    assert body["email"] == "admin@acme.test"
    assert body["membership"]["role"] == "admin"
    assert body["membership"]["space"] == "internal"
    assert body["permissions"]["invitation"]["create"] is True


def test_login_with_several_orgs_requires_selection(client, db, admin, other_org):
    from app.models import Membership
    db.add(Membership(org_id=other_org.id, user_id=admin.id, role="sales", space="internal"))
    db.commit()

    response = client.post("/api/auth/login", json={"email": "admin@acme.test", "password": TEST_PASSWORD})
    assert response.status_code == 200
    data = response.json()
    assert data["requires_org_selection"] is True
    assert data["access_token"] is None
    assert {o["name"] for o in data["organizations"]} == {"Acme Ops", "Other Tenant"}

    response = client.post(
        "/api/auth/login",
        json={"email": "admin@acme.test", "password": TEST_PASSWORD, "org_id": str(other_org.id)}
    )
    assert response.status_code == 200
    token = response.json()["access_token"]
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["membership"]["org_id"] == str(other_org.id)
    assert me.json()["membership"]["role"] == "sales"


def test_login_for_foreign_org_is_forbidden(client, admin, other_org):
    response = client.post(
        "/api/auth/login",
        json={"email": "admin@acme.test", "password": TEST_PASSWORD, "org_id": str(other_org.id)}
    )
    assert response.status_code == 403


def test_me_requires_token(client, db):
    response = client.get("/api/auth/me")
    assert response.status_code in (401, 403)


def test_me_rejects_garbage_token(client, db):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
