"""Test bearer token authentication."""

from __future__ import annotations

import jwt

from atelier.auth import JWT_ALGORITHM, JWT_SECRET_KEY, create_access_token


def test_create_access_token_carries_user_id(alice):
    token = create_access_token(alice.id)
    payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    assert payload["user_id"] == alice.id
    assert payload["type"] == "access"


def test_missing_token_is_rejected(client):
    response = client.get("/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Authentication required"


def test_garbage_token_is_rejected(client):
    response = client.get("/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_expired_token_is_rejected(client, alice):
    token = create_access_token(alice.id, expires_in_seconds=-10)
    response = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Token expired"


def test_token_for_unknown_user_is_rejected(client):
    token = create_access_token("00000000-0000-0000-0000-000000000000")
    response = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_optional_auth_treats_bad_token_as_anonymous(client, alice, make_post):
    make_post(alice)
    response = client.get("/post", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 200
    assert response.json()[0]["liked_by_me"] is False


def test_me_returns_current_user(client, alice, auth_headers):
    response = client.get("/me", headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["id"] == alice.id
    assert response.json()["portfolio_items"] == []
