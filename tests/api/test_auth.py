from sqlalchemy import select

from app.models.user import User
from tests.constants import TEST_PASSWORD, URLs


def test_register_success(client):
    response = client.post(
        URLs.REGISTER,
        json={"email": "test@example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["data"]["email"] == "test@example.com"
    assert "id" in data["data"]
    assert "created_at" in data["data"]


def test_register_normalizes_email_to_lowercase(client, db):
    response = client.post(
        URLs.REGISTER,
        json={"email": "Mixed.Case@Example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 201
    assert response.json()["data"]["email"] == "mixed.case@example.com"

    user = db.execute(select(User).where(User.email == "mixed.case@example.com")).scalar_one()
    assert user.hashed_password != TEST_PASSWORD


def test_register_duplicate_email(client):
    client.post(URLs.REGISTER, json={"email": "test@example.com", "password": TEST_PASSWORD})

    response = client.post(
        URLs.REGISTER,
        json={"email": "TEST@example.com", "password": "Another456?"},
    )
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "Bad Request",
        "message": "Email already exists",
    }


def test_register_password_without_complexity_rejected(client):
    response = client.post(
        URLs.REGISTER,
        json={"email": "test@example.com", "password": "password123"},
    )
    assert response.status_code == 422


def test_register_invalid_email_format(client):
    response = client.post(
        URLs.REGISTER,
        json={"email": "invalid-email", "password": TEST_PASSWORD},
    )
    assert response.status_code == 422


def test_register_missing_fields(client):
    response = client.post(URLs.REGISTER, json={"email": "test@example.com"})
    assert response.status_code == 422


# Login tests


def test_login_success(client):
    client.post(URLs.REGISTER, json={"email": "login@example.com", "password": TEST_PASSWORD})

    response = client.post(
        URLs.LOGIN,
        json={"email": "login@example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert "access_token" in data["data"]
    assert data["data"]["token_type"] == "bearer"


def test_login_invalid_password(client):
    client.post(URLs.REGISTER, json={"email": "login@example.com", "password": TEST_PASSWORD})

    response = client.post(
        URLs.LOGIN,
        json={"email": "login@example.com", "password": "WrongPass1!"},
    )
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


def test_login_unknown_email(client):
    response = client.post(
        URLs.LOGIN,
        json={"email": "nobody@example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 401


def test_login_inactive_user(client, db):
    client.post(URLs.REGISTER, json={"email": "inactive@example.com", "password": TEST_PASSWORD})
    user = db.execute(select(User).where(User.email == "inactive@example.com")).scalar_one()
    user.is_active = False
    db.commit()

    response = client.post(
        URLs.LOGIN,
        json={"email": "inactive@example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 403
    assert response.json()["error"] == "Forbidden"


# Bearer token tests


def test_protected_endpoint_requires_token(client):
    response = client.get(URLs.USERS_ME)
    assert response.status_code in (401, 403)


def test_protected_endpoint_rejects_invalid_token(client):
    response = client.get(URLs.USERS_ME, headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": "Unauthorized",
        "message": "Invalid token",
    }
