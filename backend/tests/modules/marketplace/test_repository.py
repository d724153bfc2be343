"""
Tests for the Supabase marketplace repository.

The Supabase client is a MagicMock; these tests pin the PostgREST calls and
the row mapping.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from modules.marketplace.exceptions import BundleNotFoundError, ListingNotFoundError
from modules.marketplace.models import Emote, ListingStatus
from modules.marketplace.repository import (
    InMemoryMarketplaceRepository,
    SupabaseMarketplaceRepository,
    clean_search_term,
    search_variants,
)
from shared.pagination import PageWindow

LISTING_ID = "7d1f3f8e-0c1a-4a8b-9d8e-3f1b2c4d5e61"
BUNDLE_ID = "0b6c2a54-9f3e-4d21-8a7b-5c6d7e8f9a02"
EMOTE_ID = "c3a9e7d2-1b4f-4e6a-b8c0-d2e4f6a8b0c3"
LISTING_A = "11111111-1111-4111-8111-111111111111"
LISTING_B = "22222222-2222-4222-8222-222222222222"
MISSING_ID = "99999999-9999-4999-8999-999999999999"


def listing_row(**overrides) -> dict:
    row = {
        "id": "listing-1",
        "emote_id": "emote-1",
        "seller_id": "seller-1",
        "prompt": "happy cat",
        "style": "kawaii",
        "model": "gpt-image-1",
        "image_url": "https://img/cat.png",
        "watermarked_url": None,
        "price": "2.50",
        "price_cents": 250,
        "status": "MARKETPLACE_PUBLISHED",
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-02T00:00:00+00:00",
    }
    row.update(overrides)
    return row


@pytest.fixture
def db() -> MagicMock:
    return MagicMock()


@pytest.fixture
def repo(db) -> SupabaseMarketplaceRepository:
    return SupabaseMarketplaceRepository(db)


class TestSearchVariants:
    def test_typed_lower_upper(self):
        assert search_variants("Cat") == ["Cat", "cat", "CAT"]

    def test_deduplicates(self):
        assert search_variants("cat") == ["cat", "CAT"]
        assert search_variants("123") == ["123"]


class TestListingMapping:
    def test_get_listing_maps_row(self, repo, db):
        db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [
            listing_row()
        ]

        listing = repo.get_listing(LISTING_ID)

        db.table.assert_called_with("listings")
        assert listing.price == Decimal("2.50")
        assert listing.price_cents == 250
        assert listing.status == ListingStatus.MARKETPLACE_PUBLISHED
        assert listing.created_at.tzinfo is not None

    def test_get_listing_missing(self, repo, db):
        db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = []
        assert repo.get_listing(MISSING_ID) is None

    def test_get_listings_preserves_requested_order(self, repo, db):
        db.table.return_value.select.return_value.in_.return_value.execute.return_value.data = [
            listing_row(id=LISTING_A),
            listing_row(id=LISTING_B),
        ]

        listings = repo.get_listings([LISTING_B, MISSING_ID, LISTING_A])

        assert [l.id for l in listings] == [LISTING_B, LISTING_A]

    def test_get_listings_empty_skips_query(self, repo, db):
        assert repo.get_listings([]) == []
        db.table.assert_not_called()

    def test_create_listing_defaults_prompt(self, repo, db):
        db.table.return_value.insert.return_value.execute.return_value.data = [
            listing_row(prompt="Untitled Emote", status="DRAFT", price=0, price_cents=None)
        ]
        emote = Emote(id="emote-1", user_id="seller-1", image_url="https://img/cat.png")

        listing = repo.create_listing(emote)

        inserted = db.table.return_value.insert.call_args[0][0]
        assert inserted["prompt"] == "Untitled Emote"
        assert inserted["status"] == "DRAFT"
        assert listing.status == ListingStatus.DRAFT

    def test_update_listing_serializes_values(self, repo, db):
        db.table.return_value.update.return_value.eq.return_value.execute.return_value.data = [
            listing_row()
        ]

        repo.update_listing(LISTING_ID, {
            "price": Decimal("2.50"),
            "status": ListingStatus.MARKETPLACE_PUBLISHED,
        })

        data = db.table.return_value.update.call_args[0][0]
        assert data["price"] == 2.5
        assert data["status"] == "MARKETPLACE_PUBLISHED"
        assert "updated_at" in data

    def test_update_missing_listing(self, repo, db):
        db.table.return_value.update.return_value.eq.return_value.execute.return_value.data = []
        with pytest.raises(ListingNotFoundError):
            repo.update_listing(MISSING_ID, {"price": Decimal("2")})


class TestSearchListings:
    def _query(self, db) -> MagicMock:
        """Make every builder call return the same query so the chain can be inspected."""
        query = MagicMock()
        for method in ("select", "eq", "or_", "like", "order", "range"):
            getattr(query, method).return_value = query
        query.execute.return_value.data = [listing_row()]
        query.execute.return_value.count = 41
        db.table.return_value = query
        return query

    def test_filters_and_pages(self, repo, db):
        query = self._query(db)

        listings, total = repo.search_listings(PageWindow(3, 20), search="Cat", style="pixel")

        query.select.assert_called_once_with("*", count="exact")
        query.eq.assert_called_once_with("status", "MARKETPLACE_PUBLISHED")
        query.or_.assert_called_once_with("prompt.like.*Cat*,prompt.like.*cat*,prompt.like.*CAT*")
        query.like.assert_called_once_with("style", "*pixel*")
        query.order.assert_called_once_with("created_at", desc=True)
        query.range.assert_called_once_with(40, 59)
        assert total == 41
        assert len(listings) == 1

    def test_strips_filter_syntax(self, repo, db):
        """Reserved PostgREST characters should not reach the filter string."""
        query = self._query(db)

        repo.search_listings(PageWindow(1, 20), search="cat),id.eq.(1")

        query.or_.assert_called_once_with(
            "prompt.like.*catid.eq.1*,prompt.like.*CATID.EQ.1*"
        )

    def test_no_search_no_filters(self, repo, db):
        query = self._query(db)

        repo.search_listings(PageWindow(1, 20))

        query.or_.assert_not_called()
        query.like.assert_not_called()


class TestBundles:
    def test_get_bundle_orders_items_by_position(self, repo, db):
        db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [{
            "id": "bundle-1",
            "seller_id": "seller-1",
            "name": "Pack",
            "price": "4.00",
            "price_cents": 400,
            "status": "MARKETPLACE_PUBLISHED",
            "bundle_items": [
                {"listing_id": "b", "position": 1},
                {"listing_id": "a", "position": 0},
            ],
        }]

        bundle = repo.get_bundle(BUNDLE_ID)

        assert bundle.listing_ids == ["a", "b"]
        assert bundle.price == Decimal("4.00")

    def test_update_bundle_replaces_items(self, repo, db):
        items = MagicMock()
        bundles = MagicMock()
        db.table.side_effect = lambda name: items if name == "bundle_items" else bundles
        bundles.update.return_value.eq.return_value.execute.return_value.data = [{"id": BUNDLE_ID}]
        bundles.select.return_value.eq.return_value.execute.return_value.data = [{
            "id": BUNDLE_ID,
            "seller_id": "seller-1",
            "name": "Pack",
            "bundle_items": [{"listing_id": "x", "position": 0}, {"listing_id": "y", "position": 1}],
        }]

        bundle = repo.update_bundle(BUNDLE_ID, {"listing_ids": ["x", "y"], "price": Decimal("4")})

        assert "listing_ids" not in bundles.update.call_args[0][0]
        items.delete.return_value.eq.assert_called_once_with("bundle_id", BUNDLE_ID)
        items.insert.assert_called_once_with([
            {"bundle_id": BUNDLE_ID, "listing_id": "x", "position": 0},
            {"bundle_id": BUNDLE_ID, "listing_id": "y", "position": 1},
        ])
        assert bundle.listing_ids == ["x", "y"]

    def test_update_missing_bundle(self, repo, db):
        db.table.return_value.update.return_value.eq.return_value.execute.return_value.data = []
        with pytest.raises(BundleNotFoundError):
            repo.update_bundle(MISSING_ID, {"name": "x"})


class TestEntitlements:
    def test_owns_emote(self, repo, db):
        chain = db.table.return_value.select.return_value.eq.return_value.eq.return_value.limit.return_value
        chain.execute.return_value.data = [{"emote_id": EMOTE_ID}]

        assert repo.owns_emote("buyer-1", EMOTE_ID) is True
        db.table.assert_called_with("user_emotes")

    def test_list_owned_emotes_unwraps_embedded_rows(self, repo, db):
        db.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [
            {"emotes": {"id": "emote-1", "user_id": "seller-1", "image_url": "https://img/a.png"}},
            {"emotes": None},
        ]

        emotes = repo.list_owned_emotes("buyer-1")

        assert [e.id for e in emotes] == ["emote-1"]

    def test_delete_user_content_order(self, repo, db):
        """Rows should be removed from dependents first."""
        repo.delete_user_content("user-1")

        tables = [c.args[0] for c in db.table.call_args_list]
        assert tables == ["user_emotes", "purchases", "bundles", "listings", "emotes"]


class TestMalformedIds:
    """Ids that can't be UUIDs read as missing instead of reaching Postgres."""

    @pytest.mark.parametrize("lookup", ["get_listing", "get_bundle", "get_emote", "get_listing_by_emote"])
    def test_lookup_returns_none(self, repo, db, lookup):
        assert getattr(repo, lookup)("abc") is None
        db.table.assert_not_called()

    def test_get_listings_drops_malformed(self, repo, db):
        db.table.return_value.select.return_value.in_.return_value.execute.return_value.data = [
            listing_row(id=LISTING_A),
        ]

        listings = repo.get_listings(["abc", LISTING_A])

        db.table.return_value.select.return_value.in_.assert_called_once_with("id", [LISTING_A])
        assert [l.id for l in listings] == [LISTING_A]

    def test_get_listings_all_malformed_skips_query(self, repo, db):
        assert repo.get_listings(["abc", "1; drop"]) == []
        db.table.assert_not_called()

    def test_updates_raise_not_found(self, repo, db):
        with pytest.raises(ListingNotFoundError):
            repo.update_listing("abc", {"price": Decimal("2")})
        with pytest.raises(BundleNotFoundError):
            repo.update_bundle("abc", {"name": "x"})
        db.table.assert_not_called()

    def test_ownership_checks_are_false(self, repo, db):
        assert repo.owns_emote("buyer-1", "abc") is False
        assert repo.has_purchased_bundle("buyer-1", "abc") is False
        db.table.assert_not_called()


class TestSearchTermCleaning:

    def test_underscore_is_not_a_wildcard(self):
        assert clean_search_term("pixel_cat") == "pixelcat"

    def test_supabase_underscore_removed(self, repo, db):
        query = MagicMock()
        for method in ("select", "eq", "or_", "like", "order", "range"):
            getattr(query, method).return_value = query
        query.execute.return_value.data = []
        query.execute.return_value.count = 0
        db.table.return_value = query

        repo.search_listings(PageWindow(1, 20), search="a_b", style="p_x")

        query.or_.assert_called_once_with("prompt.like.*ab*,prompt.like.*AB*")
        query.like.assert_called_once_with("style", "*px*")

    def test_in_memory_matches_supabase_cleaning(self):
        """The in-memory store should apply the same cleaning as the Supabase filter."""
        repo = InMemoryMarketplaceRepository()
        emote = repo.create_emote("seller-1", "grumpy cat", "pixel", "gpt-image-1", "https://img/a.png")
        listing = repo.create_listing(emote)
        repo.update_listing(listing.id, {"status": ListingStatus.MARKETPLACE_PUBLISHED})

        found, total = repo.search_listings(PageWindow(1, 20), search="(cat)", style="pix*el")
        none, _ = repo.search_listings(PageWindow(1, 20), search="grumpy_cat")

        assert total == 1
        assert [l.id for l in found] == [listing.id]
        assert none == []
