import pytest

API = "/api/v1/chats"


@pytest.fixture
def chat(db):
    return db.seed("chats", event_id="event-1", title="Launch Party", admins=["owner"], members=["owner", "guest"])


class TestChats:
    def test_list_my_chats(self, client, db, chat):
        db.seed("chats", event_id="event-2", title="Other", admins=["someone"], members=["someone"])
        response = client.as_user("guest").get(API)
        assert [c["id"] for c in response.json()] == [chat["id"]]

    def test_members_post_and_read(self, client, chat):
        client.as_user("guest")
        response = client.post(f"{API}/{chat['id']}/messages", json={"text": "  see you there  "})
        assert response.status_code == 201
        assert response.json()["text"] == "see you there"
        client.post(f"{API}/{chat['id']}/messages", json={"text": "bring snacks"})
        messages = client.get(f"{API}/{chat['id']}/messages").json()
        assert [m["text"] for m in messages] == ["see you there", "bring snacks"]

    def test_outsiders_are_refused(self, client, chat):
        client.as_user("outsider")
        assert client.get(f"{API}/{chat['id']}/messages").status_code == 403
        assert client.post(f"{API}/{chat['id']}/messages", json={"text": "hi"}).status_code == 403

    def test_blank_message(self, client, chat):
        response = client.as_user("guest").post(f"{API}/{chat['id']}/messages", json={"text": " "})
        assert response.status_code == 422

    def test_unknown_chat(self, client, chat):
        assert client.as_user("guest").get(f"{API}/missing/messages").status_code == 404
