import pytest

from tests.conftest import seed_event, seed_profile

API = "/api/v1/notifications"


def seed_notification(db, recipient_id, **fields):
    fields.setdefault("type", "event_update")
    fields.setdefault("event_id", "event-1")
    fields.setdefault("event_title", "Launch Party")
    fields.setdefault("message", "Something changed")
    fields.setdefault("status", "unread")
    fields.setdefault("read", False)
    return db.seed("notifications", recipient_id=recipient_id, **fields)


@pytest.fixture
def join_request(client, db):
    seed_profile(db, "owner")
    seed_profile(db, "guest")
    event = seed_event(db, "owner", visibility="private")
    client.as_user("guest").post(f"/api/v1/events/{event['id']}/join-requests")
    notification = db.rows("notifications", type="join_request")[0]
    client.as_user("owner")
    return event, notification


class TestInbox:
    def test_newest_first_and_scoped_to_recipient(self, client, db):
        first = seed_notification(db, "alice", message="first")
        second = seed_notification(db, "alice", message="second")
        seed_notification(db, "bob")
        response = client.as_user("alice").get(API)
        assert [n["id"] for n in response.json()] == [second["id"], first["id"]]

    def test_filter_by_status(self, client, db):
        seed_notification(db, "alice", status="read", read=True)
        pending = seed_notification(db, "alice", type="join_request", status="pending")
        response = client.as_user("alice").get(API, params={"status": "pending"})
        assert [n["id"] for n in response.json()] == [pending["id"]]

    def test_unread_count(self, client, db):
        seed_notification(db, "alice")
        seed_notification(db, "alice", type="join_request", status="pending")
        seed_notification(db, "alice", status="read", read=True)
        assert client.as_user("alice").get(f"{API}/unread-count").json() == {"unread": 2}

    def test_mark_read_moves_unread_to_read(self, client, db):
        notification = seed_notification(db, "alice")
        response = client.as_user("alice").post(f"{API}/{notification['id']}/read")
        assert response.status_code == 200
        assert response.json()["status"] == "read"
        assert response.json()["read"] is True

    def test_mark_read_keeps_request_status(self, client, db):
        notification = seed_notification(db, "alice", type="join_request", status="pending")
        response = client.as_user("alice").post(f"{API}/{notification['id']}/read")
        assert response.json()["status"] == "pending"
        assert response.json()["read"] is True

    def test_cannot_touch_someone_elses_notification(self, client, db):
        notification = seed_notification(db, "bob")
        assert client.as_user("alice").post(f"{API}/{notification['id']}/read").status_code == 404

    def test_mark_all_read(self, client, db):
        seed_notification(db, "alice")
        seed_notification(db, "alice")
        request = seed_notification(db, "alice", type="join_request", status="pending")
        response = client.as_user("alice").post(f"{API}/read-all")
        assert response.json() == {"updated": 3}
        assert client.get(f"{API}/unread-count").json() == {"unread": 0}
        assert db.get("notifications", request["id"])["status"] == "pending"


class TestRequestActions:
    def test_approve_from_notification(self, client, db, join_request):
        event, notification = join_request
        response = client.post(f"{API}/{notification['id']}/approve")
        assert response.status_code == 200
        assert response.json()["invited_users"] == ["guest"]
        assert db.get("notifications", notification["id"])["status"] == "approved"

    def test_deny_from_notification(self, client, db, join_request):
        event, notification = join_request
        response = client.post(f"{API}/{notification['id']}/deny")
        assert response.status_code == 200
        assert db.get("events", event["id"])["pending_invites"] == []
        assert db.get("events", event["id"])["invited_users"] == []

    def test_settled_request_cannot_be_decided_again(self, client, join_request):
        _, notification = join_request
        client.post(f"{API}/{notification['id']}/deny")
        assert client.post(f"{API}/{notification['id']}/approve").status_code == 409

    def test_only_join_requests(self, client, db):
        notification = seed_notification(db, "alice")
        assert client.as_user("alice").post(f"{API}/{notification['id']}/approve").status_code == 400
