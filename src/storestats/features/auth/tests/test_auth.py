from datetime import timedelta

import pytest
from fastapi import HTTPException

from storestats.features.auth.security import (
    create_access_token, get_password_hash, read_token_subject, verify_password,
)


# test password hashing and verification
def test_password_hashing():
    password = "test_password"
    hashed = get_password_hash(password)
    assert verify_password(password, hashed) is True
    assert verify_password("wrong_password", hashed) is False
    assert hashed != password  # Ensure the hash is not the same as the plain password


# test password hashing consistency
def test_password_hash_consistency():
    password = "test_password"
    hashed1 = get_password_hash(password)
    hashed2 = get_password_hash(password)
    assert hashed1 != hashed2, "Hashing the same password should yield different hash"
    assert hashed1 != password, "Ensure the hash is not the same as the plain password"


# test password hashing uniqueness
def test_password_hash_uniqueness():
    password1 = "test_password1"
    password2 = "test_password2"
    hashed1 = get_password_hash(password1)
    hashed2 = get_password_hash(password2)
    assert hashed1 != hashed2  # Different passwords should yield different hashes
    assert verify_password(password1, hashed1) is True
    assert verify_password(password2, hashed2) is True


# test password hashing with special characters
def test_password_hash_special_characters():
    password = "!@#$%^&*()_+"
    hashed = get_password_hash(password)
    assert verify_password(password, hashed) is True
    assert verify_password("wrong_password", hashed) is False


# test password hashing with empty string
def test_password_hash_empty_string():
    password = ""
    hashed = get_password_hash(password)
    assert verify_password(password, hashed) is True
    assert verify_password("non_empty_password", hashed) is False
    assert hashed != password  # Ensure the hash is not the same as the plain password


# test that self-registered accounts are customers without report access
async def test_register_creates_customer(client):
    response = await client.post("/api/v1/auth/register", json={
        "username": "newshopper", "email": "newshopper@example.com", "password": "longenough1",
    })
    assert response.status_code == 201
    assert response.json()["role"] == "customer"

    token = await client.post("/api/v1/auth/token", data={"username": "newshopper", "password": "longenough1"})
    assert token.status_code == 200
    headers = {"Authorization": f"Bearer {token.json()['access_token']}"}
    reports = await client.get("/api/v1/reports/stats", headers=headers)
    assert reports.status_code == 403


# test duplicate usernames are rejected
async def test_register_duplicate_username(client):
    response = await client.post("/api/v1/auth/register", json={
        "username": "managerfixture", "email": "other@example.com", "password": "longenough1",
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Username already registered"


# test login with the wrong password
async def test_login_wrong_password(client):
    response = await client.post("/api/v1/auth/token", data={"username": "managerfixture", "password": "nope"})
    assert response.status_code == 401


# test a forged token is refused
async def test_invalid_token_is_unauthorized(client):
    response = await client.get("/api/v1/reports/stats", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


# test an expired token is refused with its own message
async def test_expired_token_is_unauthorized(client):
    token = create_access_token({"sub": "managerfixture"}, expires_delta=timedelta(seconds=-5))
    response = await client.get("/api/v1/reports/stats", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Token has expired"


# test token subject extraction
def test_read_token_subject():
    assert read_token_subject(create_access_token({"sub": "managerfixture"})) == "managerfixture"

    with pytest.raises(HTTPException) as exc_info:
        read_token_subject(create_access_token({"role": "admin"}))
    assert exc_info.value.status_code == 401


# test a token for a deleted account is refused
async def test_token_for_unknown_user_is_unauthorized(client):
    token = create_access_token({"sub": "ghost"})
    response = await client.get("/api/v1/reports/stats", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
