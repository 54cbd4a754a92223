import pytest

from tests.conftest import seed_profile

API = "/api/v1/users"


@pytest.fixture
def people(db):
    seed_profile(db, "alice", display_name="Alice")
    seed_profile(db, "bob", display_name="Bob")


class TestProfiles:
    def test_get_my_profile(self, client, people):
        response = client.as_user("alice").get(f"{API}/me")
        assert response.status_code == 200
        assert response.json()["display_name"] == "Alice"

    def test_update_profile(self, client, db, people):
        response = client.as_user("alice").put(f"{API}/me", json={"bio": "Loves jazz", "location": "Lisbon"})
        assert response.json()["bio"] == "Loves jazz"
        assert db.get("user_profiles", "alice")["location"] == "Lisbon"

    def test_unknown_user(self, client, people):
        assert client.as_user("alice").get(f"{API}/nobody").status_code == 404

    def test_photo_upload(self, client, people):
        response = client.as_user("alice").post(
            f"{API}/me/photo", files={"file": ("me.gif", b"gif", "image/gif")}
        )
        assert response.status_code == 200
        assert response.json()["photo_url"].startswith("https://storage.test/profilePhotos/alice/")


class TestFollowing:
    def test_follow_updates_both_profiles(self, client, db, people):
        response = client.as_user("alice").post(f"{API}/bob/follow")
        assert response.json() == {"user_id": "alice", "target_id": "bob", "following": True, "followers_count": 1}
        assert db.get("user_profiles", "bob")["followers"] == ["alice"]
        assert db.get("user_profiles", "alice")["following"] == ["bob"]

    def test_follow_is_idempotent(self, client, db, people):
        client.as_user("alice").post(f"{API}/bob/follow")
        client.post(f"{API}/bob/follow")
        assert db.get("user_profiles", "bob")["followers"] == ["alice"]

    def test_unfollow(self, client, db, people):
        client.as_user("alice").post(f"{API}/bob/follow")
        response = client.delete(f"{API}/bob/follow")
        assert response.json()["following"] is False
        assert db.get("user_profiles", "bob")["followers"] == []
        assert db.get("user_profiles", "alice")["following"] == []

    def test_cannot_follow_yourself(self, client, people):
        assert client.as_user("alice").post(f"{API}/alice/follow").status_code == 400

    def test_follow_unknown_user(self, client, db, people):
        assert client.as_user("alice").post(f"{API}/nobody/follow").status_code == 404
        assert db.get("user_profiles", "alice")["following"] == []

    def test_followers_listed_with_names(self, client, people):
        client.as_user("alice").post(f"{API}/bob/follow")
        response = client.get(f"{API}/bob/followers")
        assert response.json() == [{"id": "alice", "display_name": "Alice", "photo_url": None}]
        assert [u["id"] for u in client.get(f"{API}/alice/following").json()] == ["bob"]
