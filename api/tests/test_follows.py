"""Test follow edges, follow statuses and the people directory."""

from __future__ import annotations

from atelier import models


def _follow_count(db, follower, target) -> int:
    return (
        db.query(models.Follow)
        .filter(models.Follow.follower_id == follower.id, models.Follow.following_id == target.id)
        .count()
    )


def test_follow_creates_edge_and_notifies(client, db, alice, bob, auth_headers):
    response = client.post(f"/user/{bob.id}/follow", headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["success"] is True

    assert _follow_count(db, alice, bob) == 1
    notifications = db.query(models.Notification).filter_by(recipient_id=bob.id).all()
    assert [(n.type, n.sender_id) for n in notifications] == [("connect", alice.id)]


def test_follow_is_idempotent(client, db, alice, bob, auth_headers):
    client.post(f"/user/{bob.id}/follow", headers=auth_headers(alice))
    response = client.post(f"/user/{bob.id}/follow", headers=auth_headers(alice))

    assert response.status_code == 200
    assert response.json()["message"] == "Already following"
    assert _follow_count(db, alice, bob) == 1
    # The repeat follow does not notify again
    assert db.query(models.Notification).filter_by(recipient_id=bob.id).count() == 1


def test_cannot_follow_yourself(client, db, alice, auth_headers):
    response = client.post(f"/user/{alice.id}/follow", headers=auth_headers(alice))
    assert response.status_code == 400
    assert db.query(models.Follow).count() == 0


def test_follow_unknown_user(client, alice, auth_headers):
    response = client.post("/user/missing/follow", headers=auth_headers(alice))
    assert response.status_code == 404


def test_follow_requires_auth(client, bob):
    assert client.post(f"/user/{bob.id}/follow").status_code == 401


def test_unfollow_removes_edge_and_is_idempotent(client, db, alice, bob, auth_headers):
    client.post(f"/user/{bob.id}/follow", headers=auth_headers(alice))

    assert client.delete(f"/user/{bob.id}/follow", headers=auth_headers(alice)).status_code == 200
    assert _follow_count(db, alice, bob) == 0
    assert client.delete(f"/user/{bob.id}/follow", headers=auth_headers(alice)).status_code == 200


def test_follow_status(client, alice, bob, auth_headers):
    url = f"/user/{bob.id}/follow"
    assert client.get(url, headers=auth_headers(alice)).json() == {"is_following": False}

    client.post(url, headers=auth_headers(alice))
    assert client.get(url, headers=auth_headers(alice)).json() == {"is_following": True}
    # Follows are directed
    assert client.get(f"/user/{alice.id}/follow", headers=auth_headers(bob)).json() == {
        "is_following": False
    }
    # Anonymous viewers follow nobody
    assert client.get(url).json() == {"is_following": False}


def test_follow_statuses_batch(client, alice, bob, carol, auth_headers):
    client.post(f"/user/{bob.id}/follow", headers=auth_headers(alice))

    response = client.post(
        "/user/follow-statuses",
        headers=auth_headers(alice),
        json={"user_ids": [bob.id, carol.id]},
    )
    assert response.status_code == 200
    assert response.json() == {bob.id: True, carol.id: False}


def test_follow_statuses_empty_cases(client, alice, bob, auth_headers):
    assert client.post("/user/follow-statuses", json={"user_ids": [bob.id]}).json() == {}
    assert (
        client.post(
            "/user/follow-statuses", headers=auth_headers(alice), json={"user_ids": []}
        ).json()
        == {}
    )


def test_people_excludes_viewer_and_has_counts(client, alice, bob, carol, make_post, auth_headers):
    make_post(bob)
    make_post(bob)
    client.post(f"/user/{bob.id}/follow", headers=auth_headers(alice))
    client.post(f"/user/{bob.id}/follow", headers=auth_headers(carol))
    client.post(f"/user/{carol.id}/follow", headers=auth_headers(bob))

    response = client.get("/user/people", headers=auth_headers(alice))
    assert response.status_code == 200
    people = {p["id"]: p for p in response.json()}

    assert alice.id not in people
    assert set(people) == {bob.id, carol.id}
    assert people[bob.id]["post_count"] == 2
    assert people[bob.id]["follower_count"] == 2
    assert people[bob.id]["following_count"] == 1
    assert people[carol.id]["follower_count"] == 1


def test_people_newest_first(client, alice, bob, carol):
    ids = [p["id"] for p in client.get("/user/people").json()]
    assert ids == [carol.id, bob.id, alice.id]
