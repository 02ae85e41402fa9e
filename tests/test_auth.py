"""
Tests for signup, login and token handling.
"""
from datetime import timedelta

from app.core.security import create_access_token, decode_access_token, hash_password, verify_password


def test_signup_success(client):
    response = client.post(
        "/auth/signup",
        json={"full_name": "Jane Recruiter", "email": "Jane@Acme-Hiring.com", "password": "testpass123"},
    )

    assert response.status_code == 201
    assert response.json()["message"] == "User created successfully"


def test_signup_duplicate_email(client, owner):
    response = client.post(
        "/auth/signup",
        json={"full_name": "Again", "email": owner.email, "password": "testpass123"},
    )
    assert response.status_code == 400


def test_signup_short_password(client):
    response = client.post(
        "/auth/signup",
        json={"full_name": "Short", "email": "short@example.com", "password": "abc"},
    )
    assert response.status_code == 422


def test_login_returns_usable_token(client, owner):
    response = client.post("/auth/login", data={"username": owner.email, "password": "testpass123"})

    assert response.status_code == 200
    token = response.json()["access_token"]
    assert response.json()["token_type"] == "bearer"
    assert decode_access_token(token) == owner.email

    me = client.get("/billing/subscription", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200


def test_login_wrong_password(client, owner):
    response = client.post("/auth/login", data={"username": owner.email, "password": "wrongpass"})
    assert response.status_code == 401


def test_expired_token_rejected():
    token = create_access_token({"sub": "a@example.com"}, expires_delta=timedelta(seconds=-1))
    assert decode_access_token(token) is None


def test_password_hashing():
    hashed = hash_password("testpass123")
    assert verify_password("testpass123", hashed)
    assert not verify_password("other", hashed)
    assert not verify_password("testpass123", None)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
