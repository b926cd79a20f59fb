"""Test notification delivery, listing, read state and display helpers."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from atelier import models
from atelier.db import utcnow
from atelier.services.notifications import (
    NotificationService,
    describe,
    group_by_recency,
    recency_label,
)


@pytest.fixture
def notify(db):
    def _notify(recipient, sender=None, type="like", **fields) -> models.Notification:
        notification = models.Notification(
            type=type,
            recipient_id=recipient.id,
            sender_id=sender.id if sender else None,
            **fields,
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        return notification

    return _notify


def test_create_notification_skips_self(db, alice):
    result = NotificationService.create_notification(
        db, notification_type="like", recipient_id=alice.id, sender_id=alice.id
    )
    assert result is None
    assert db.query(models.Notification).count() == 0


def test_create_notification(db, alice, bob):
    result = NotificationService.create_notification(
        db, notification_type="comment", recipient_id=alice.id, sender_id=bob.id
    )
    assert result is not None
    assert result.read is False
    assert NotificationService.get_unread_count(db, alice.id) == 1


def test_list_newest_first_with_summaries(client, alice, bob, notify, auth_headers):
    older = notify(alice, bob, created_at=datetime(2026, 1, 1, 12, 0))
    newer = notify(alice, bob, type="connect", created_at=datetime(2026, 1, 2, 12, 0))

    response = client.get("/notifications", headers=auth_headers(alice))
    assert response.status_code == 200
    items = response.json()["items"]

    assert [i["id"] for i in items] == [newer.id, older.id]
    assert items[0]["sender"]["name"] == "Bob"
    assert items[0]["recipient"]["id"] == alice.id
    assert items[0]["message"] == "Bob wants to keep in touch"
    assert items[1]["message"] == "Bob liked your post"


def test_list_only_own_notifications(client, alice, bob, notify, auth_headers):
    notify(bob, alice)
    response = client.get("/notifications", headers=auth_headers(alice))
    assert response.json()["items"] == []


def test_cursor_pagination(client, alice, bob, notify, auth_headers):
    base = datetime(2026, 1, 1, 12, 0)
    created = [notify(alice, bob, created_at=base + timedelta(minutes=i)) for i in range(3)]

    first = client.get("/notifications?limit=2", headers=auth_headers(alice)).json()
    assert [i["id"] for i in first["items"]] == [created[2].id, created[1].id]
    assert first["next_cursor"] is not None

    second = client.get(
        "/notifications",
        params={"limit": 2, "cursor": first["next_cursor"]},
        headers=auth_headers(alice),
    ).json()
    assert [i["id"] for i in second["items"]] == [created[0].id]
    assert second["next_cursor"] is None


def test_cursor_with_utc_offset(client, alice, bob, notify, auth_headers):
    early = notify(alice, bob, created_at=datetime(2026, 1, 1, 10, 0, tzinfo=timezone.utc))
    notify(alice, bob, created_at=datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))

    # 13:00 in UTC+2 is 11:00 UTC
    response = client.get(
        "/notifications",
        params={"cursor": "2026-01-01T13:00:00+02:00"},
        headers=auth_headers(alice),
    )
    assert [i["id"] for i in response.json()["items"]] == [early.id]


def test_invalid_cursor(client, alice, auth_headers):
    response = client.get("/notifications?cursor=yesterday", headers=auth_headers(alice))
    assert response.status_code == 400


def test_unread_only_filter(client, alice, bob, notify, auth_headers):
    notify(alice, bob, read=True)
    unread = notify(alice, bob)

    response = client.get("/notifications?unread_only=true", headers=auth_headers(alice))
    assert [i["id"] for i in response.json()["items"]] == [unread.id]


def test_mark_as_read_is_recipient_only(client, db, alice, bob, notify, auth_headers):
    notification = notify(alice, bob)

    response = client.post(f"/notifications/{notification.id}/read", headers=auth_headers(bob))
    assert response.status_code == 403

    response = client.post(f"/notifications/{notification.id}/read", headers=auth_headers(alice))
    assert response.status_code == 200
    db.expire_all()
    assert db.get(models.Notification, notification.id).read is True

    # Marking again is harmless
    response = client.post(f"/notifications/{notification.id}/read", headers=auth_headers(alice))
    assert response.status_code == 200


def test_mark_unknown_notification(client, alice, auth_headers):
    response = client.post("/notifications/missing/read", headers=auth_headers(alice))
    assert response.status_code == 404


def test_mark_all_read(client, alice, bob, notify, auth_headers):
    notify(alice, bob)
    notify(alice, bob, type="comment")
    notify(bob, alice)

    assert client.get("/notifications/unread-count", headers=auth_headers(alice)).json() == {
        "unread_count": 2
    }
    response = client.post("/notifications/mark-all-read", headers=auth_headers(alice))
    assert response.json() == {"updated": 2}
    assert client.get("/notifications/unread-count", headers=auth_headers(alice)).json() == {
        "unread_count": 0
    }
    # Other users' notifications are untouched
    assert client.get("/notifications/unread-count", headers=auth_headers(bob)).json() == {
        "unread_count": 1
    }


def test_grouped_endpoint(client, alice, bob, notify, auth_headers):
    notify(alice, bob)
    notify(alice, bob, created_at=datetime(2000, 1, 1))

    response = client.get("/notifications/grouped", headers=auth_headers(alice))
    assert response.status_code == 200
    groups = response.json()
    assert [g["label"] for g in groups] == ["Today", "Older"]
    assert all(len(g["items"]) == 1 for g in groups)


def test_recency_labels():
    now = datetime(2026, 3, 12, 9, 0)
    assert recency_label(datetime(2026, 3, 12, 0, 1), now) == "Today"
    assert recency_label(datetime(2026, 3, 11, 23, 59), now) == "Yesterday"
    assert recency_label(datetime(2026, 3, 7, 10, 0), now) == "This Week"
    assert recency_label(datetime(2026, 3, 5, 8, 0), now) == "Older"


def test_group_by_recency_keeps_order_and_drops_empty_groups():
    now = datetime(2026, 3, 12, 9, 0)
    today_a = models.Notification(id="a", created_at=datetime(2026, 3, 12, 8, 0))
    today_b = models.Notification(id="b", created_at=datetime(2026, 3, 12, 7, 0))
    old = models.Notification(id="c", created_at=datetime(2025, 1, 1))

    groups = group_by_recency([today_a, today_b, old], now=now)
    assert [(label, [n.id for n in items]) for label, items in groups] == [
        ("Today", ["a", "b"]),
        ("Older", ["c"]),
    ]


def test_describe_messages(alice):
    like = models.Notification(type="like", sender=alice)
    assert describe(like) == "Alice liked your post"

    anonymous = models.Notification(type="comment")
    assert describe(anonymous) == "Someone commented on your post"

    insight = models.Notification(type="insight", meta=json.dumps({"count": 42}))
    assert describe(insight) == "Your post got 42 impressions"

    opaque = models.Notification(type="insight", meta="not json")
    assert describe(opaque) == "You have a new insight"


def test_recency_accepts_aware_and_stored_timestamps():
    assert utcnow().tzinfo is timezone.utc
    now = datetime(2026, 3, 12, 1, 0, tzinfo=timezone.utc)
    # 23:30 the previous day in UTC-2 is 01:30 UTC on the 12th
    late_evening = datetime(2026, 3, 11, 23, 30, tzinfo=timezone(timedelta(hours=-2)))
    assert recency_label(late_evening, now + timedelta(hours=1)) == "Today"
    assert recency_label(datetime(2026, 3, 11, 23, 0), now) == "Yesterday"
