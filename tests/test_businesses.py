import pytest

from tests.conftest import seed_event, seed_profile

API = "/api/v1/businesses"


def business_body(**fields):
    body = {
        "name": "Tasty Co",
        "category": "Catering/Food",
        "services": ["catering", "refreshments"],
        "description": "Street food for any crowd",
        "contact": {"phone_number": "+351 900 000 000", "email": "hello@tastyco.com"},
        "location": "Porto",
    }
    body.update(fields)
    return body


@pytest.fixture
def business(client, db):
    seed_profile(db, "vendor")
    response = client.as_user("vendor").post(API, json=business_body())
    assert response.status_code == 201
    return response.json()


class TestCreate:
    def test_owned_by_caller(self, business):
        assert business["owner_id"] == "vendor"
        assert business["services"] == ["catering", "refreshments"]
        assert business["products"] == []

    def test_has_business(self, client, business):
        assert client.as_user("vendor").get(f"{API}/mine/exists").json() == {"has_business": True}
        assert client.as_user("someone").get(f"{API}/mine/exists").json() == {"has_business": False}

    @pytest.mark.parametrize("fields", [
        {"name": "   "},
        {"services": []},
        {"contact": {"phone_number": " "}},
    ])
    def test_required_details(self, client, fields):
        assert client.as_user("vendor").post(API, json=business_body(**fields)).status_code == 422

    def test_requires_login(self, client):
        assert client.as_user(None).post(API, json=business_body()).status_code == 401


class TestDirectory:
    def test_filters(self, client, business):
        client.as_user("planner").post(API, json=business_body(
            name="Grand Hall", category="Venue Provider", services=["venue"], location="Lisbon"
        ))
        client.as_user(None)
        assert [b["name"] for b in client.get(API).json()] == ["Grand Hall", "Tasty Co"]
        assert [b["name"] for b in client.get(API, params={"service_type": "venue"}).json()] == ["Grand Hall"]
        assert [b["name"] for b in client.get(API, params={"category": "Catering/Food"}).json()] == ["Tasty Co"]
        assert [b["name"] for b in client.get(API, params={"search": "lisb"}).json()] == ["Grand Hall"]

    def test_mine_lists_only_own(self, client, business):
        client.as_user("planner").post(API, json=business_body(name="Other"))
        assert [b["id"] for b in client.as_user("vendor").get(f"{API}/mine").json()] == [business["id"]]

    def test_unknown_business(self, client):
        assert client.get(f"{API}/nope").status_code == 404


class TestOwnerActions:
    def test_only_owner_updates(self, client, business):
        url = f"{API}/{business['id']}"
        assert client.as_user("planner").put(url, json={"name": "Stolen"}).status_code == 403
        response = client.as_user("vendor").put(url, json={"name": "Tasty & Co", "services": ["catering"]})
        assert response.status_code == 200
        assert response.json()["name"] == "Tasty & Co"
        assert response.json()["services"] == ["catering"]

    def test_only_owner_deletes(self, client, db, business):
        url = f"{API}/{business['id']}"
        assert client.as_user("planner").delete(url).status_code == 403
        assert client.as_user("vendor").delete(url).status_code == 204
        assert db.rows("businesses") == []
        assert client.get(url).status_code == 404

    def test_products(self, client, business):
        client.as_user("vendor")
        url = f"{API}/{business['id']}/products"
        response = client.post(url, json={"name": "Paella for 20"})
        assert response.status_code == 201
        product = response.json()["products"][0]
        assert product["in_stock"] is True
        response = client.put(f"{url}/{product['id']}", json={"name": "Paella for 20", "in_stock": False})
        assert response.json()["products"][0]["in_stock"] is False
        assert client.delete(f"{url}/{product['id']}").json()["products"] == []
        assert client.delete(f"{url}/{product['id']}").status_code == 404

    def test_products_owner_only(self, client, business):
        response = client.as_user("planner").post(f"{API}/{business['id']}/products", json={"name": "x"})
        assert response.status_code == 403

    def test_image_upload(self, client, business):
        response = client.as_user("vendor").post(
            f"{API}/{business['id']}/image", files={"file": ("logo.png", b"png", "image/png")}
        )
        assert response.status_code == 200
        assert response.json()["image_url"].startswith(f"https://storage.test/businesses/{business['id']}/")


class TestProviderNotifications:
    def test_booking_reaches_the_provider(self, client, db, business):
        seed_profile(db, "owner")
        event = seed_event(db, "owner", title="Summer Fair")
        response = client.as_user("owner").put(
            f"/api/v1/events/{event['id']}/service",
            json={"business_id": business["id"], "product_name": "Paella for 20"},
        )
        assert response.status_code == 200
        inbox = client.as_user("vendor").get(f"{API}/mine/notifications").json()
        assert len(inbox) == 1
        assert inbox[0]["type"] == "service_request"
        assert inbox[0]["business_id"] == business["id"]
        assert inbox[0]["event_id"] == event["id"]
        assert "Paella for 20" in inbox[0]["message"]
        assert client.as_user("owner").get(f"{API}/mine/notifications").json() == []
