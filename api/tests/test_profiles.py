"""Test profiles and portfolios."""

from __future__ import annotations

import base64

from atelier import settings


def _data_url(size: int) -> str:
    return "data:image/png;base64," + base64.b64encode(b"\0" * size).decode()


def test_update_profile(client, alice, auth_headers):
    response = client.patch(
        "/me",
        headers=auth_headers(alice),
        json={"bio": "Illustrator", "skills": ["Inking", "Color"], "tools": ["Procreate"]},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["bio"] == "Illustrator"
    assert body["skills"] == ["Inking", "Color"]
    # Omitted fields are left alone
    assert body["name"] == "Alice"


def test_update_profile_validation(client, alice, auth_headers):
    headers = auth_headers(alice)
    assert client.patch("/me", headers=headers, json={"name": "A"}).status_code == 422
    assert client.patch("/me", headers=headers, json={"bio": "x" * 501}).status_code == 422
    assert client.patch("/me", headers=headers, json={"skills": [""]}).status_code == 422
    assert (
        client.patch("/me", headers=headers, json={"tools": [f"t{i}" for i in range(21)]}).status_code
        == 422
    )


def test_portfolio_order_defaults_to_end(client, alice, auth_headers):
    headers = auth_headers(alice)
    orders = [
        client.post(
            "/portfolio", headers=headers, json={"image_url": f"https://cdn.example.com/{i}.png"}
        ).json()["order"]
        for i in range(3)
    ]
    assert orders == [1, 2, 3]

    explicit = client.post(
        "/portfolio",
        headers=headers,
        json={"image_url": "https://cdn.example.com/x.png", "order": 0},
    ).json()
    assert explicit["order"] == 0

    items = client.get("/me", headers=headers).json()["portfolio_items"]
    assert [i["order"] for i in items] == [0, 1, 2, 3]


def test_portfolio_inline_image_size_limit(client, alice, auth_headers):
    headers = auth_headers(alice)
    limit = settings.PORTFOLIO_IMAGE_MAX_BYTES

    ok = client.post("/portfolio", headers=headers, json={"image_url": _data_url(limit)})
    assert ok.status_code == 201

    too_big = client.post("/portfolio", headers=headers, json={"image_url": _data_url(limit + 1)})
    assert too_big.status_code == 400


def test_portfolio_rejects_non_url(client, alice, auth_headers):
    response = client.post("/portfolio", headers=auth_headers(alice), json={"image_url": "hello"})
    assert response.status_code == 422


def test_portfolio_update_and_delete_owner_only(client, alice, bob, auth_headers):
    item_id = client.post(
        "/portfolio",
        headers=auth_headers(alice),
        json={"image_url": "https://cdn.example.com/a.png"},
    ).json()["id"]
    changed = {"image_url": "https://cdn.example.com/b.png", "title": "Poster"}

    assert client.patch(f"/portfolio/{item_id}", headers=auth_headers(bob), json=changed).status_code == 403
    response = client.patch(f"/portfolio/{item_id}", headers=auth_headers(alice), json=changed)
    assert response.json()["title"] == "Poster"
    assert response.json()["order"] == 1

    assert client.delete(f"/portfolio/{item_id}", headers=auth_headers(bob)).status_code == 403
    assert client.delete(f"/portfolio/{item_id}", headers=auth_headers(alice)).status_code == 204
    assert client.delete(f"/portfolio/{item_id}", headers=auth_headers(alice)).status_code == 404


def test_public_profile(client, alice, bob, make_post, auth_headers):
    make_post(alice)
    client.post(
        "/portfolio", headers=auth_headers(alice), json={"image_url": "https://cdn.example.com/a.png"}
    )
    client.post(
        "/services",
        headers=auth_headers(alice),
        json={
            "title": "Posters",
            "description": "Screen printed gig posters.",
            "price_range": "$200+",
        },
    )
    client.post(f"/user/{alice.id}/follow", headers=auth_headers(bob))

    profile = client.get(f"/user/{alice.id}/profile", headers=auth_headers(bob)).json()
    assert profile["user"]["name"] == "Alice"
    assert len(profile["portfolio_items"]) == 1
    assert [s["title"] for s in profile["services"]] == ["Posters"]
    assert profile["post_count"] == 1
    assert profile["follower_count"] == 1
    assert profile["following_count"] == 0
    assert profile["is_following"] is True

    assert client.get(f"/user/{alice.id}/profile").json()["is_following"] is False
    assert client.get("/user/missing/profile").status_code == 404
