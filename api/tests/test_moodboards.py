"""Test mood boards and saved status."""

from __future__ import annotations


def _board(client, user, auth_headers, **fields) -> dict:
    response = client.post(
        "/moodboards", headers=auth_headers(user), json={"title": "Inspiration", **fields}
    )
    assert response.status_code == 201
    return response.json()


def test_create_and_list(client, alice, bob, auth_headers):
    board = _board(client, alice, auth_headers)
    assert board["is_public"] is False
    assert board["item_count"] == 0

    assert [b["id"] for b in client.get("/moodboards", headers=auth_headers(alice)).json()] == [
        board["id"]
    ]
    assert client.get("/moodboards", headers=auth_headers(bob)).json() == []


def test_item_order_is_dense(client, alice, auth_headers):
    board = _board(client, alice, auth_headers)
    url = f"/moodboards/{board['id']}/items"

    orders = [
        client.post(
            url, headers=auth_headers(alice), json={"image_url": f"https://cdn.example.com/{i}.png"}
        ).json()["order"]
        for i in range(5)
    ]
    assert orders == [1, 2, 3, 4, 5]

    listed = client.get("/moodboards", headers=auth_headers(alice)).json()[0]
    assert listed["item_count"] == 5
    assert [i["order"] for i in listed["preview_items"]] == [1, 2, 3, 4]


def test_item_from_post_uses_post_image(client, alice, bob, make_post, auth_headers):
    post = make_post(bob, image_url="https://cdn.example.com/post.png")
    board = _board(client, alice, auth_headers)

    response = client.post(
        f"/moodboards/{board['id']}/items", headers=auth_headers(alice), json={"post_id": post.id}
    )
    assert response.status_code == 201
    assert response.json()["image_url"] == "https://cdn.example.com/post.png"

    saved = client.get(f"/post/{post.id}/saved", headers=auth_headers(alice)).json()
    assert saved == {"is_saved": True, "mood_board_ids": [board["id"]]}
    assert client.get(f"/post/{post.id}/saved", headers=auth_headers(bob)).json()["is_saved"] is False


def test_item_requires_a_source(client, alice, auth_headers):
    board = _board(client, alice, auth_headers)
    response = client.post(f"/moodboards/{board['id']}/items", headers=auth_headers(alice), json={})
    assert response.status_code == 422


def test_item_for_unknown_post(client, alice, auth_headers):
    board = _board(client, alice, auth_headers)
    response = client.post(
        f"/moodboards/{board['id']}/items", headers=auth_headers(alice), json={"post_id": "missing"}
    )
    assert response.status_code == 404


def test_only_owner_can_modify(client, alice, bob, auth_headers):
    board = _board(client, alice, auth_headers)
    item = client.post(
        f"/moodboards/{board['id']}/items",
        headers=auth_headers(alice),
        json={"image_url": "https://cdn.example.com/a.png"},
    ).json()

    assert (
        client.post(
            f"/moodboards/{board['id']}/items",
            headers=auth_headers(bob),
            json={"image_url": "https://cdn.example.com/b.png"},
        ).status_code
        == 403
    )
    assert (
        client.delete(
            f"/moodboards/{board['id']}/items/{item['id']}", headers=auth_headers(bob)
        ).status_code
        == 403
    )
    assert client.delete(f"/moodboards/{board['id']}", headers=auth_headers(bob)).status_code == 403


def test_remove_item_and_delete_board(client, alice, auth_headers):
    board = _board(client, alice, auth_headers)
    item = client.post(
        f"/moodboards/{board['id']}/items",
        headers=auth_headers(alice),
        json={"image_url": "https://cdn.example.com/a.png"},
    ).json()

    assert (
        client.delete(
            f"/moodboards/{board['id']}/items/{item['id']}", headers=auth_headers(alice)
        ).status_code
        == 204
    )
    assert client.get("/moodboards", headers=auth_headers(alice)).json()[0]["item_count"] == 0

    assert client.delete(f"/moodboards/{board['id']}", headers=auth_headers(alice)).status_code == 204
    assert client.get("/moodboards", headers=auth_headers(alice)).json() == []


def test_private_board_visibility(client, alice, bob, auth_headers):
    private = _board(client, alice, auth_headers)
    public = _board(client, alice, auth_headers, is_public=True)

    assert client.get(f"/moodboards/{private['id']}", headers=auth_headers(bob)).status_code == 404
    assert client.get(f"/moodboards/{private['id']}", headers=auth_headers(alice)).status_code == 200
    assert client.get(f"/moodboards/{public['id']}").status_code == 200
