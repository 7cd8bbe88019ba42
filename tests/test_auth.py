"""Basic auth tests"""
from conftest import make_user, auth_headers


def test_health_endpoint(client):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_root_endpoint(client):
    response = client.get("/")
    assert response.json()["message"] == "Tikiti API"


def test_login_without_credentials(client):
    """Test login endpoint without credentials"""
    response = client.post("/auth/login", json={})
    assert response.status_code == 422  # Validation error


def test_login_with_invalid_credentials(client):
    """Test login with invalid credentials"""
    response = client.post(
        "/auth/login",
        json={"email": "nonexistent@example.com", "password": "wrong"}
    )
    assert response.status_code == 401


def test_register_then_login(client):
    response = client.post(
        "/auth/register",
        json={"email": " Efua@Example.com ", "password": "longenough", "display_name": "Efua"},
    )
    assert response.status_code == 201
    assert response.json()["token_type"] == "bearer"

    response = client.post("/auth/login", json={"email": "efua@example.com", "password": "longenough"})
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "efua@example.com"
    assert me.json()["display_name"] == "Efua"


def test_register_rejects_short_password_and_duplicates(client, db):
    make_user(db, email="taken@example.com")
    short = client.post("/auth/register", json={"email": "new@example.com", "password": "short"})
    assert short.status_code == 400

    duplicate = client.post("/auth/register", json={"email": "taken@example.com", "password": "password123"})
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"] == "Email already registered"


def test_me_requires_valid_token(client):
    assert client.get("/auth/me").status_code in (401, 403)
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_update_profile(client, db):
    user = make_user(db)
    response = client.patch("/auth/me", json={"phone": "0241234567"}, headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json()["phone"] == "0241234567"
