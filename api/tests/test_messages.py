"""Test conversations, messages and unread state."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from atelier import models
from atelier.services import messaging


def _start(client, actor, other, auth_headers) -> str:
    response = client.post(
        "/conversations", headers=auth_headers(actor), json={"user_id": other.id}
    )
    assert response.status_code == 200
    return response.json()["id"]


def _send(client, actor, conversation_id, content, auth_headers):
    return client.post(
        f"/conversations/{conversation_id}/messages",
        headers=auth_headers(actor),
        json={"content": content},
    )


def test_get_or_create_is_symmetric(client, db, alice, bob, auth_headers):
    first = _start(client, alice, bob, auth_headers)
    second = _start(client, bob, alice, auth_headers)

    assert first == second
    assert db.query(models.Conversation).count() == 1


def test_cannot_converse_with_yourself(client, alice, auth_headers):
    response = client.post(
        "/conversations", headers=auth_headers(alice), json={"user_id": alice.id}
    )
    assert response.status_code == 400


def test_conversation_with_unknown_user(client, alice, auth_headers):
    response = client.post(
        "/conversations", headers=auth_headers(alice), json={"user_id": "missing"}
    )
    assert response.status_code == 404


def test_send_message_bumps_conversation(client, db, alice, bob, auth_headers):
    conversation_id = _start(client, alice, bob, auth_headers)
    before = db.get(models.Conversation, conversation_id).updated_at

    response = _send(client, alice, conversation_id, "Hi Bob", auth_headers)
    assert response.status_code == 201
    assert response.json()["read"] is False
    assert response.json()["sender_id"] == alice.id

    db.expire_all()
    assert db.get(models.Conversation, conversation_id).updated_at > before


def test_outsider_cannot_read_or_write(client, alice, bob, carol, auth_headers):
    conversation_id = _start(client, alice, bob, auth_headers)

    assert _send(client, carol, conversation_id, "hello?", auth_headers).status_code == 403
    assert (
        client.get(f"/conversations/{conversation_id}", headers=auth_headers(carol)).status_code
        == 403
    )


def test_message_validation(client, alice, bob, auth_headers):
    conversation_id = _start(client, alice, bob, auth_headers)

    response = _send(client, alice, conversation_id, "", auth_headers)
    assert response.status_code == 422
    assert "content" in response.json()["errors"]

    assert _send(client, alice, conversation_id, "x" * 2001, auth_headers).status_code == 422
    assert _send(client, alice, conversation_id, "x" * 2000, auth_headers).status_code == 201


def test_send_to_unknown_conversation(client, alice, auth_headers):
    assert _send(client, alice, "missing", "hi", auth_headers).status_code == 404


def test_unread_count_and_open_marks_read(client, alice, bob, auth_headers):
    conversation_id = _start(client, alice, bob, auth_headers)
    _send(client, alice, conversation_id, "one", auth_headers)
    _send(client, alice, conversation_id, "two", auth_headers)

    # Own messages never count as unread
    assert client.get("/conversations/unread-count", headers=auth_headers(alice)).json() == {
        "unread_count": 0
    }
    assert client.get("/conversations/unread-count", headers=auth_headers(bob)).json() == {
        "unread_count": 2
    }

    listing = client.get("/conversations", headers=auth_headers(bob)).json()
    assert listing[0]["unread_count"] == 2

    response = client.get(f"/conversations/{conversation_id}", headers=auth_headers(bob))
    assert response.status_code == 200
    thread = response.json()
    assert [m["content"] for m in thread["messages"]] == ["one", "two"]
    assert all(m["read"] for m in thread["messages"])

    assert client.get("/conversations/unread-count", headers=auth_headers(bob)).json() == {
        "unread_count": 0
    }
    listing = client.get("/conversations", headers=auth_headers(bob)).json()
    assert listing[0]["unread_count"] == 0


def test_opening_does_not_mark_own_messages(client, db, alice, bob, auth_headers):
    conversation_id = _start(client, alice, bob, auth_headers)
    _send(client, alice, conversation_id, "ping", auth_headers)

    client.get(f"/conversations/{conversation_id}", headers=auth_headers(alice))
    assert client.get("/conversations/unread-count", headers=auth_headers(bob)).json() == {
        "unread_count": 1
    }


def test_mark_conversation_read(client, alice, bob, auth_headers):
    conversation_id = _start(client, alice, bob, auth_headers)
    _send(client, alice, conversation_id, "one", auth_headers)
    _send(client, bob, conversation_id, "reply", auth_headers)

    response = client.post(f"/conversations/{conversation_id}/read", headers=auth_headers(bob))
    assert response.json() == {"updated": 1}
    # Bob's own reply is still unread for Alice
    assert client.get("/conversations/unread-count", headers=auth_headers(alice)).json() == {
        "unread_count": 1
    }


def test_mark_single_message_read_is_recipient_only(client, alice, bob, auth_headers):
    conversation_id = _start(client, alice, bob, auth_headers)
    message_id = _send(client, alice, conversation_id, "hi", auth_headers).json()["id"]

    assert client.post(f"/messages/{message_id}/read", headers=auth_headers(alice)).status_code == 403

    response = client.post(f"/messages/{message_id}/read", headers=auth_headers(bob))
    assert response.status_code == 200
    assert response.json()["read"] is True


def test_list_conversations_ordered_by_activity(client, alice, bob, carol, auth_headers):
    with_bob = _start(client, alice, bob, auth_headers)
    with_carol = _start(client, alice, carol, auth_headers)

    _send(client, alice, with_carol, "first", auth_headers)
    _send(client, bob, with_bob, "latest", auth_headers)

    listing = client.get("/conversations", headers=auth_headers(alice)).json()
    assert [c["id"] for c in listing] == [with_bob, with_carol]
    assert listing[0]["other_user"]["id"] == bob.id
    assert listing[0]["latest_message"]["content"] == "latest"
    assert listing[0]["unread_count"] == 1
    assert listing[1]["other_user"]["id"] == carol.id
    assert listing[1]["unread_count"] == 0


def test_conversation_list_is_private(client, alice, bob, carol, auth_headers):
    _start(client, alice, bob, auth_headers)
    assert client.get("/conversations", headers=auth_headers(carol)).json() == []


def test_latest_message_per_conversation(client, db, alice, bob, carol, auth_headers):
    with_bob = _start(client, alice, bob, auth_headers)
    with_carol = _start(client, alice, carol, auth_headers)
    sent_at = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)
    db.add_all(
        [
            models.Message(
                conversation_id=with_bob, sender_id=bob.id, content="old", created_at=sent_at
            ),
            models.Message(
                conversation_id=with_bob,
                sender_id=alice.id,
                content="new",
                created_at=sent_at + timedelta(minutes=5),
            ),
            # Same timestamp: the higher id wins
            models.Message(
                id="m-1", conversation_id=with_carol, sender_id=carol.id, content="a", created_at=sent_at
            ),
            models.Message(
                id="m-2", conversation_id=with_carol, sender_id=carol.id, content="b", created_at=sent_at
            ),
        ]
    )
    db.commit()

    listing = {c["id"]: c for c in client.get("/conversations", headers=auth_headers(alice)).json()}
    assert listing[with_bob]["latest_message"]["content"] == "new"
    assert listing[with_carol]["latest_message"]["content"] == "b"
    assert listing[with_carol]["unread_count"] == 2


def test_conversation_pair_is_stored_sorted(client, db, alice, bob, auth_headers):
    conversation_id = _start(client, bob, alice, auth_headers)
    conversation = db.get(models.Conversation, conversation_id)
    low, high = sorted((alice.id, bob.id))
    assert (conversation.user1_id, conversation.user2_id) == (low, high)

    db.add(models.Conversation(user1_id=high, user2_id=low))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()

    db.add(models.Conversation(user1_id=low, user2_id=high))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()
    assert db.query(models.Conversation).count() == 1


def test_concurrent_create_returns_existing(db, alice, bob, monkeypatch):
    low, high = sorted((alice.id, bob.id))
    existing = models.Conversation(user1_id=low, user2_id=high)
    db.add(existing)
    db.commit()
    existing_id = existing.id

    # The competing request commits between the lookup and the insert
    real_find = messaging._find_conversation
    calls = {"n": 0}

    def find_after_race(*args):
        calls["n"] += 1
        return None if calls["n"] == 1 else real_find(*args)

    monkeypatch.setattr(messaging, "_find_conversation", find_after_race)

    conversation = messaging.get_or_create_conversation(db, bob, alice.id)
    assert conversation.id == existing_id
    assert db.query(models.Conversation).count() == 1
