import re
from unittest.mock import MagicMock, patch

import pytest
import requests

from app.config import settings
from tests.conftest import seed_profile

API = "/api/v1/event-drafts"


def unsplash_page(*descriptions):
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = {
        "results": [
            {"description": d, "urls": {"regular": f"https://images.test/{i}-{d or 'none'}"}}
            for i, d in enumerate(descriptions)
        ]
    }
    return response


@pytest.fixture
def creator(client, db):
    seed_profile(db, "alice", display_name="Alice", followers=["bob", "carol"])
    seed_profile(db, "bob", display_name="Bob")
    seed_profile(db, "carol", display_name="Carol")
    return client.as_user("alice")


def start(client) -> dict:
    response = client.post(API)
    assert response.status_code == 201
    return response.json()


def fill_details(client, draft_id, **overrides):
    body = {"title": "Rooftop Jazz", "location": "Lisbon", "date": "2099-07-14"}
    body.update(overrides)
    response = client.patch(f"{API}/{draft_id}", json=body)
    assert response.status_code == 200
    return response.json()


class TestDraftSteps:
    def test_start_draft_defaults(self, creator):
        draft = start(creator)
        assert draft["step"] == 1
        assert draft["organizers"] == ["alice"]
        assert draft["visibility"] == "public"
        assert draft["category"] == "General"

    def test_cannot_leave_step_one_without_details(self, creator):
        draft = start(creator)
        creator.patch(f"{API}/{draft['id']}", json={"title": "Rooftop Jazz"})
        response = creator.post(f"{API}/{draft['id']}/next")
        assert response.status_code == 400
        assert "location" in response.json()["detail"]
        assert "date" in response.json()["detail"]

    def test_steps_are_bounded(self, creator):
        draft = start(creator)
        fill_details(creator, draft["id"])
        for expected in (2, 3, 4, 4):
            assert creator.post(f"{API}/{draft['id']}/next").json()["step"] == expected
        for expected in (3, 2, 1, 1):
            assert creator.post(f"{API}/{draft['id']}/prev").json()["step"] == expected

    def test_draft_of_another_user_is_not_found(self, creator, db):
        draft = start(creator)
        seed_profile(db, "mallory")
        creator.as_user("mallory")
        assert creator.get(f"{API}/{draft['id']}").status_code == 404


class TestCollaborators:
    def test_candidates_are_followers(self, creator):
        response = creator.get(f"{API}/collaborators")
        assert response.status_code == 200
        assert [u["id"] for u in response.json()] == ["bob", "carol"]

    def test_creator_always_first_organizer(self, creator):
        draft = start(creator)
        response = creator.patch(f"{API}/{draft['id']}", json={"organizers": ["bob", "alice", "bob"]})
        assert response.status_code == 200
        assert response.json()["organizers"] == ["alice", "bob"]

    def test_creator_cannot_be_removed(self, creator):
        draft = start(creator)
        response = creator.patch(f"{API}/{draft['id']}", json={"organizers": []})
        assert response.json()["organizers"] == ["alice"]

    def test_non_follower_rejected(self, creator, db):
        seed_profile(db, "stranger")
        draft = start(creator)
        response = creator.patch(f"{API}/{draft['id']}", json={"organizers": ["stranger"]})
        assert response.status_code == 400


class TestImageSearch:
    def test_people_and_portraits_filtered(self, creator):
        draft = start(creator)
        pages = [
            unsplash_page("People dancing", "city skyline", "Portrait of a man", "people", "stage lights"),
            unsplash_page("empty hall", None, "beach"),
        ]
        with patch.object(settings, "unsplash_api_key", "test-key"), \
                patch("app.modules.event_wizard.image_search.requests.get", side_effect=pages) as get:
            response = creator.post(f"{API}/{draft['id']}/images/search", json={"query": "jazz"})
        assert response.status_code == 200
        images = response.json()["searched_images"]
        assert len(images) == 3
        assert not any("People" in url or "Portrait" in url or "people" in url for url in images)
        assert get.call_count == 2
        assert get.call_args_list[0].kwargs["params"]["orientation"] == "landscape"
        assert get.call_args_list[0].kwargs["params"]["per_page"] == 9

    def test_stops_after_three_pages(self, creator):
        draft = start(creator)
        pages = [unsplash_page("people"), unsplash_page("portrait"), unsplash_page("hall")]
        with patch.object(settings, "unsplash_api_key", "test-key"), \
                patch("app.modules.event_wizard.image_search.requests.get", side_effect=pages) as get:
            response = creator.post(f"{API}/{draft['id']}/images/search", json={"query": "gala"})
        assert get.call_count == 3
        assert len(response.json()["searched_images"]) == 1

    def test_results_are_cached(self, creator):
        draft = start(creator)
        with patch.object(settings, "unsplash_api_key", "test-key"), \
                patch("app.modules.event_wizard.image_search.requests.get",
                      return_value=unsplash_page("a", "b", "c")) as get:
            creator.post(f"{API}/{draft['id']}/images/search", json={"query": "picnic"})
            creator.post(f"{API}/{draft['id']}/images/search", json={"query": "picnic"})
        assert get.call_count == 1

    def test_empty_query_clears_images(self, creator, db):
        draft = start(creator)
        db.get("event_drafts", draft["id"])["searched_images"] = ["https://images.test/old"]
        with patch("app.modules.event_wizard.image_search.requests.get") as get:
            response = creator.post(f"{API}/{draft['id']}/images/search", json={"query": "   "})
        get.assert_not_called()
        assert response.json()["searched_images"] == []

    def test_failure_is_502_and_clears_images(self, creator, db):
        draft = start(creator)
        db.get("event_drafts", draft["id"])["searched_images"] = ["https://images.test/old"]
        with patch.object(settings, "unsplash_api_key", "test-key"), \
                patch("app.modules.event_wizard.image_search.requests.get",
                      side_effect=requests.ConnectionError("unreachable")):
            response = creator.post(f"{API}/{draft['id']}/images/search", json={"query": "jazz"})
        assert response.status_code == 502
        assert db.get("event_drafts", draft["id"])["searched_images"] == []


class TestShareLink:
    def test_link_format(self, creator):
        draft = start(creator)
        link = creator.post(f"{API}/{draft['id']}/share-link").json()["invite_link"]
        assert re.fullmatch(r"https://eventify\.com/invite/\d{13}-[0-9a-z]{9}", link)


class TestConfirm:
    def test_creates_exactly_one_event_with_submitted_fields(self, creator, db):
        draft = start(creator)
        fill_details(creator, draft["id"], visibility="private", category="Music", description="Bring a friend")
        creator.patch(f"{API}/{draft['id']}", json={"organizers": ["bob"], "selected_image": "https://images.test/pick"})

        response = creator.post(f"{API}/{draft['id']}/confirm")

        assert response.status_code == 201
        event = response.json()
        assert len(db.rows("events")) == 1
        stored = db.rows("events")[0]
        assert stored["id"] == event["id"]
        assert event["title"] == "Rooftop Jazz"
        assert event["location"] == "Lisbon"
        assert event["date"] == "2099-07-14"
        assert event["visibility"] == "private"
        assert event["category"] == "Music"
        assert event["description"] == "Bring a friend"
        assert event["image"] == "https://images.test/pick"
        assert event["organizers"] == ["alice", "bob"]
        assert event["user_id"] == "alice"
        assert event["creator_name"] == "Alice"
        assert event["invited_users"] == [] and event["pending_invites"] == []
        assert event["archived"] is False
        assert event["invite_link"] == f"https://eventify.com/invite/{event['id']}"

    def test_writes_chat_and_notifies_co_organizers(self, creator, db):
        draft = start(creator)
        fill_details(creator, draft["id"])
        creator.patch(f"{API}/{draft['id']}", json={"organizers": ["bob", "carol"]})
        event = creator.post(f"{API}/{draft['id']}/confirm").json()

        chats = db.rows("chats", event_id=event["id"])
        assert len(chats) == 1
        assert chats[0]["admins"] == ["alice", "bob", "carol"]
        notified = sorted(n["recipient_id"] for n in db.rows("notifications", event_id=event["id"]))
        assert notified == ["bob", "carol"]
        assert db.rows("event_drafts") == []

    def test_keeps_generated_share_link(self, creator):
        draft = start(creator)
        fill_details(creator, draft["id"])
        link = creator.post(f"{API}/{draft['id']}/share-link").json()["invite_link"]
        assert creator.post(f"{API}/{draft['id']}/confirm").json()["invite_link"] == link

    def test_image_falls_back_to_creator_photo(self, creator, db):
        db.get("user_profiles", "alice")["photo_url"] = "https://images.test/alice"
        draft = start(creator)
        fill_details(creator, draft["id"])
        db.get("event_drafts", draft["id"])["searched_images"] = ["https://images.test/searched"]
        assert creator.post(f"{API}/{draft['id']}/confirm").json()["image"] == "https://images.test/alice"

    def test_image_falls_back_to_first_search_result(self, creator, db):
        draft = start(creator)
        fill_details(creator, draft["id"])
        db.get("event_drafts", draft["id"])["searched_images"] = ["https://images.test/1", "https://images.test/2"]
        assert creator.post(f"{API}/{draft['id']}/confirm").json()["image"] == "https://images.test/1"

    def test_image_falls_back_to_default(self, creator):
        draft = start(creator)
        fill_details(creator, draft["id"])
        assert creator.post(f"{API}/{draft['id']}/confirm").json()["image"] == settings.default_event_image

    def test_requires_details(self, creator, db):
        draft = start(creator)
        fill_details(creator, draft["id"], location="")
        assert creator.post(f"{API}/{draft['id']}/confirm").status_code == 400
        assert db.rows("events") == []

    def test_rejects_past_date(self, creator, db):
        draft = start(creator)
        fill_details(creator, draft["id"], date="2000-01-01")
        response = creator.post(f"{API}/{draft['id']}/confirm")
        assert response.status_code == 400
        assert db.rows("events") == []

    def test_rejects_unparseable_date(self, creator):
        draft = start(creator)
        fill_details(creator, draft["id"], date="next friday")
        assert creator.post(f"{API}/{draft['id']}/confirm").status_code == 400

    def test_failed_chat_rolls_back_event(self, creator, db):
        draft = start(creator)
        fill_details(creator, draft["id"])
        db.fail_on("chats", "insert")
        response = creator.post(f"{API}/{draft['id']}/confirm")
        assert response.status_code == 500
        assert db.rows("events") == []
        assert len(db.rows("event_drafts")) == 1

    def test_failed_notification_rolls_back_event_and_chat(self, creator, db):
        draft = start(creator)
        fill_details(creator, draft["id"])
        creator.patch(f"{API}/{draft['id']}", json={"organizers": ["bob"]})
        db.fail_on("notifications", "insert")
        assert creator.post(f"{API}/{draft['id']}/confirm").status_code == 500
        assert db.rows("events") == []
        assert db.rows("chats") == []
