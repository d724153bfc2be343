"""
Tests for marketplace API endpoints.
"""


import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.dependencies import get_container
from tests.conftest import create_test_token


@pytest.fixture
def client():
    return TestClient(create_app())


@pytest.fixture
def seller_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_test_token(user_id='seller-1')}"}


@pytest.fixture
def emote():
    return get_container().marketplace_repository.create_emote(
        "seller-1", "happy cat", "kawaii", "gpt-image-1", "https://img/cat.png"
    )


def publish(client, headers, emote_id: str, price: str = "2.50") -> dict:
    listing = client.post("/api/marketplace/listings", json={"emote_id": emote_id}, headers=headers).json()
    return client.post(
        f"/api/marketplace/listings/{listing['id']}/publish",
        json={"price": price},
        headers=headers,
    ).json()


class TestListings:
    """Tests for /api/marketplace/listings"""

    def test_search_is_public(self, client):
        response = client.get("/api/marketplace/listings")

        assert response.status_code == 200
        assert response.json() == {
            "listings": [], "total": 0, "page": 1, "page_size": 20, "has_more": False,
        }

    def test_create_and_publish(self, client, seller_headers, emote):
        created = client.post(
            "/api/marketplace/listings", json={"emote_id": emote.id}, headers=seller_headers
        )
        assert created.status_code == 201
        assert created.json()["status"] == "DRAFT"

        published = client.post(
            f"/api/marketplace/listings/{created.json()['id']}/publish",
            json={"price": "2.50"},
            headers=seller_headers,
        )
        assert published.status_code == 200
        assert published.json()["price_cents"] == 250

        search = client.get("/api/marketplace/listings", params={"search": "cat"}).json()
        assert search["total"] == 1

    def test_publish_below_minimum(self, client, seller_headers, emote):
        listing = client.post(
            "/api/marketplace/listings", json={"emote_id": emote.id}, headers=seller_headers
        ).json()

        response = client.post(
            f"/api/marketplace/listings/{listing['id']}/publish",
            json={"price": "0.50"},
            headers=seller_headers,
        )

        assert response.status_code == 400
        assert "$1.00" in response.json()["detail"]

    def test_create_for_foreign_emote(self, client, auth_headers, emote):
        response = client.post(
            "/api/marketplace/listings", json={"emote_id": emote.id}, headers=auth_headers
        )
        assert response.status_code == 403

    def test_create_requires_auth(self, client, emote):
        response = client.post("/api/marketplace/listings", json={"emote_id": emote.id})
        assert response.status_code == 401

    def test_get_unknown_listing(self, client):
        assert client.get("/api/marketplace/listings/missing").status_code == 404

    def test_draft_hidden_from_others(self, client, seller_headers, auth_headers, emote):
        draft = client.post(
            "/api/marketplace/listings", json={"emote_id": emote.id}, headers=seller_headers
        ).json()
        path = f"/api/marketplace/listings/{draft['id']}"

        assert client.get(path).status_code == 404
        assert client.get(path, headers=auth_headers).status_code == 404

        own = client.get(path, headers=seller_headers)
        assert own.status_code == 200
        assert own.json()["status"] == "DRAFT"

    def test_page_size_bounds(self, client):
        assert client.get("/api/marketplace/listings", params={"page_size": 500}).status_code == 422
        assert client.get("/api/marketplace/listings", params={"page": 0}).status_code == 422

    def test_my_listings(self, client, seller_headers, emote):
        publish(client, seller_headers, emote.id)

        response = client.get("/api/marketplace/listings/mine", headers=seller_headers)

        assert response.status_code == 200
        assert len(response.json()) == 1


class TestBundles:
    """Tests for /api/marketplace/bundles"""

    def test_create_and_publish_bundle(self, client, seller_headers, emote):
        listing = publish(client, seller_headers, emote.id)
        bundle = client.post(
            "/api/marketplace/bundles", json={"name": "Cats"}, headers=seller_headers
        )
        assert bundle.status_code == 201

        response = client.post(
            f"/api/marketplace/bundles/{bundle.json()['id']}/publish",
            json={"price": "5", "listing_ids": [listing["id"]]},
            headers=seller_headers,
        )

        assert response.status_code == 200
        assert response.json()["listing_ids"] == [listing["id"]]

        detail = client.get(f"/api/marketplace/bundles/{bundle.json()['id']}").json()
        assert [l["id"] for l in detail["listings"]] == [listing["id"]]

    def test_publish_with_draft_listing(self, client, seller_headers, emote):
        draft = client.post(
            "/api/marketplace/listings", json={"emote_id": emote.id}, headers=seller_headers
        ).json()
        bundle = client.post(
            "/api/marketplace/bundles", json={"name": "Cats"}, headers=seller_headers
        ).json()

        response = client.post(
            f"/api/marketplace/bundles/{bundle['id']}/publish",
            json={"price": "5", "listing_ids": [draft["id"]]},
            headers=seller_headers,
        )

        assert response.status_code == 400

    def test_unknown_bundle(self, client):
        assert client.get("/api/marketplace/bundles/missing").status_code == 404

    def test_draft_bundle_hidden_from_others(self, client, seller_headers, auth_headers):
        bundle = client.post(
            "/api/marketplace/bundles", json={"name": "Cats"}, headers=seller_headers
        ).json()
        path = f"/api/marketplace/bundles/{bundle['id']}"

        assert client.get(path).status_code == 404
        assert client.get(path, headers=auth_headers).status_code == 404
        assert client.get(path, headers=seller_headers).json()["bundle"]["id"] == bundle["id"]

    def test_my_bundles(self, client, seller_headers):
        client.post("/api/marketplace/bundles", json={"name": "Cats"}, headers=seller_headers)

        page = client.get("/api/marketplace/bundles/mine", headers=seller_headers).json()

        assert page["total"] == 1
        assert page["total_pages"] == 1


class TestOwnership:
    """Tests for purchases and ownership checks."""

    def test_listing_ownership(self, client, seller_headers, auth_headers, emote):
        listing = publish(client, seller_headers, emote.id)
        url = f"/api/marketplace/listings/{listing['id']}/ownership"

        assert client.get(url, headers=auth_headers).json() == {"owned": False}

        get_container().marketplace_repository.grant_emotes("test-user-123", [emote.id])

        assert client.get(url, headers=auth_headers).json() == {"owned": True}
        owned = client.get("/api/marketplace/owned", headers=auth_headers).json()
        assert [e["id"] for e in owned] == [emote.id]

    def test_bundle_ownership_unknown(self, client, auth_headers):
        response = client.get("/api/marketplace/bundles/missing/ownership", headers=auth_headers)
        assert response.status_code == 404

    def test_purchases_empty(self, client, auth_headers):
        response = client.get("/api/marketplace/purchases", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == []
