"""
Marketplace repositories.

Encapsulates storage for the marketplace tables:
- emotes
- listings
- bundles / bundle_items
- purchases
- user_emotes (ownership)

Provides an in-memory implementation for tests and local development and a
Supabase-backed implementation for production.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from shared.pagination import PageWindow
from shared.repository import BaseRepository
from .exceptions import BundleNotFoundError, ListingNotFoundError
from .models import Bundle, Emote, Listing, ListingStatus, Purchase

# Characters with meaning in PostgREST filter strings or LIKE patterns.
_FILTER_RESERVED = str.maketrans("", "", ",()*%_\"\\")


def clean_search_term(term: str) -> str:
    """Drop filter and wildcard characters so both stores match the same literal text."""
    return term.translate(_FILTER_RESERVED)


def search_variants(search: str) -> list[str]:
    """The three case variants a prompt is matched against, de-duplicated."""
    variants: list[str] = []
    for variant in (search, search.lower(), search.upper()):
        if variant not in variants:
            variants.append(variant)
    return variants


class InMemoryMarketplaceRepository:
    """Marketplace storage in dicts."""

    def __init__(self) -> None:
        self._emotes: dict[str, Emote] = {}
        self._listings: dict[str, Listing] = {}
        self._bundles: dict[str, Bundle] = {}
        self._purchases: list[Purchase] = []
        self._ownership: set[tuple[str, str]] = set()

    # -------------------------------------------------------------------------
    # Emotes
    # -------------------------------------------------------------------------

    def create_emote(
        self,
        user_id: str,
        prompt: str,
        style: str,
        model: str,
        image_url: str,
    ) -> Emote:
        emote = Emote(
            id=str(uuid.uuid4()),
            user_id=user_id,
            prompt=prompt,
            style=style,
            model=model,
            image_url=image_url,
            created_at=datetime.now(timezone.utc),
        )
        self._emotes[emote.id] = emote
        return emote

    def get_emote(self, emote_id: str) -> Optional[Emote]:
        return self._emotes.get(emote_id)

    def list_emotes(self, user_id: str) -> list[Emote]:
        emotes = [e for e in self._emotes.values() if e.user_id == user_id]
        return sorted(emotes, key=lambda e: e.created_at, reverse=True)

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    def create_listing(self, emote: Emote) -> Listing:
        now = datetime.now(timezone.utc)
        listing = Listing(
            id=str(uuid.uuid4()),
            emote_id=emote.id,
            seller_id=emote.user_id,
            prompt=emote.prompt or "Untitled Emote",
            style=emote.style,
            model=emote.model,
            image_url=emote.image_url,
            created_at=now,
            updated_at=now,
        )
        self._listings[listing.id] = listing
        return listing

    def get_listing(self, listing_id: str) -> Optional[Listing]:
        return self._listings.get(listing_id)

    def get_listing_by_emote(self, emote_id: str) -> Optional[Listing]:
        return next(
            (l for l in self._listings.values() if l.emote_id == emote_id),
            None,
        )

    def get_listings(self, listing_ids: list[str]) -> list[Listing]:
        return [self._listings[i] for i in listing_ids if i in self._listings]

    def update_listing(self, listing_id: str, changes: dict[str, Any]) -> Listing:
        listing = self._listings.get(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        changes = {**changes, "updated_at": datetime.now(timezone.utc)}
        updated = listing.model_copy(update=changes)
        self._listings[listing_id] = updated
        return updated

    def search_listings(
        self,
        window: PageWindow,
        search: str = "",
        style: str = "",
    ) -> tuple[list[Listing], int]:
        search = clean_search_term(search)
        style = clean_search_term(style)
        variants = search_variants(search) if search else []
        matches = [
            l for l in self._listings.values()
            if l.status == ListingStatus.MARKETPLACE_PUBLISHED
            and (not variants or any(v in l.prompt for v in variants))
            and (not style or style in l.style)
        ]
        matches.sort(key=lambda l: l.created_at, reverse=True)
        return matches[window.offset : window.offset + window.page_size], len(matches)

    def list_seller_listings(self, seller_id: str) -> list[Listing]:
        listings = [l for l in self._listings.values() if l.seller_id == seller_id]
        return sorted(listings, key=lambda l: l.updated_at, reverse=True)

    # -------------------------------------------------------------------------
    # Bundles
    # -------------------------------------------------------------------------

    def create_bundle(
        self,
        seller_id: str,
        name: str,
        description: str,
        image_url: Optional[str],
        cover_listing_id: Optional[str],
    ) -> Bundle:
        now = datetime.now(timezone.utc)
        bundle = Bundle(
            id=str(uuid.uuid4()),
            seller_id=seller_id,
            name=name,
            description=description,
            image_url=image_url,
            cover_listing_id=cover_listing_id,
            created_at=now,
            updated_at=now,
        )
        self._bundles[bundle.id] = bundle
        return bundle

    def get_bundle(self, bundle_id: str) -> Optional[Bundle]:
        return self._bundles.get(bundle_id)

    def update_bundle(self, bundle_id: str, changes: dict[str, Any]) -> Bundle:
        bundle = self._bundles.get(bundle_id)
        if bundle is None:
            raise BundleNotFoundError(bundle_id)
        changes = {**changes, "updated_at": datetime.now(timezone.utc)}
        updated = bundle.model_copy(update=changes)
        self._bundles[bundle_id] = updated
        return updated

    def list_seller_bundles(
        self,
        seller_id: str,
        window: PageWindow,
    ) -> tuple[list[Bundle], int]:
        bundles = [b for b in self._bundles.values() if b.seller_id == seller_id]
        bundles.sort(key=lambda b: b.updated_at, reverse=True)
        return bundles[window.offset : window.offset + window.page_size], len(bundles)

    # -------------------------------------------------------------------------
    # Entitlements
    # -------------------------------------------------------------------------

    def owns_emote(self, user_id: str, emote_id: str) -> bool:
        return (user_id, emote_id) in self._ownership

    def has_purchased_bundle(self, user_id: str, bundle_id: str) -> bool:
        return any(
            p.buyer_id == user_id and p.bundle_id == bundle_id
            for p in self._purchases
        )

    def list_purchases(self, user_id: str) -> list[Purchase]:
        purchases = [p for p in self._purchases if p.buyer_id == user_id]
        return sorted(purchases, key=lambda p: p.created_at, reverse=True)

    def list_owned_emotes(self, user_id: str) -> list[Emote]:
        return [
            self._emotes[emote_id]
            for owner, emote_id in sorted(self._ownership)
            if owner == user_id and emote_id in self._emotes
        ]

    def add_purchase(self, purchase: Purchase) -> None:
        self._purchases.append(purchase)

    def grant_emotes(self, user_id: str, emote_ids: list[str]) -> None:
        for emote_id in emote_ids:
            self._ownership.add((user_id, emote_id))

    # -------------------------------------------------------------------------
    # Profile deletion
    # -------------------------------------------------------------------------

    def delete_user_content(self, user_id: str) -> None:
        listing_ids = {l.id for l in self._listings.values() if l.seller_id == user_id}
        emote_ids = {e.id for e in self._emotes.values() if e.user_id == user_id}
        bundle_ids = {b.id for b in self._bundles.values() if b.seller_id == user_id}

        self._ownership = {
            (owner, emote_id) for owner, emote_id in self._ownership
            if owner != user_id and emote_id not in emote_ids
        }
        self._purchases = [
            p for p in self._purchases
            if p.buyer_id != user_id
            and p.listing_id not in listing_ids
            and p.bundle_id not in bundle_ids
        ]
        for bundle_id in bundle_ids:
            del self._bundles[bundle_id]
        for listing_id in listing_ids:
            del self._listings[listing_id]
        for emote_id in emote_ids:
            del self._emotes[emote_id]


class SupabaseMarketplaceRepository(BaseRepository[Listing]):
    """
    Repository for marketplace data access.

    All methods return Pydantic models with proper mapping from database rows.

    Note: This repository does NOT perform authorization checks.
    The service layer is responsible for verifying seller ownership.
    """

    # -------------------------------------------------------------------------
    # Emotes
    # -------------------------------------------------------------------------

    def create_emote(
        self,
        user_id: str,
        prompt: str,
        style: str,
        model: str,
        image_url: str,
    ) -> Emote:
        result = self._db.table("emotes").insert({
            "user_id": user_id,
            "prompt": prompt,
            "style": style,
            "model": model,
            "image_url": image_url,
        }).execute()
        return self._map_to_emote(result.data[0])

    def get_emote(self, emote_id: str) -> Optional[Emote]:
        if not self._is_uuid(emote_id):
            return None
        result = self._db.table("emotes").select("*").eq("id", emote_id).execute()
        if not result.data:
            return None
        return self._map_to_emote(result.data[0])

    def list_emotes(self, user_id: str) -> list[Emote]:
        result = (
            self._db.table("emotes").select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [self._map_to_emote(r) for r in result.data]

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    def create_listing(self, emote: Emote) -> Listing:
        result = self._db.table("listings").insert({
            "emote_id": emote.id,
            "seller_id": emote.user_id,
            "prompt": emote.prompt or "Untitled Emote",
            "style": emote.style,
            "model": emote.model,
            "image_url": emote.image_url,
            "price": 0,
            "status": ListingStatus.DRAFT.value,
        }).execute()
        return self._map_to_listing(result.data[0])

    def get_listing(self, listing_id: str) -> Optional[Listing]:
        if not self._is_uuid(listing_id):
            return None
        result = self._db.table("listings").select("*").eq("id", listing_id).execute()
        if not result.data:
            return None
        return self._map_to_listing(result.data[0])

    def get_listing_by_emote(self, emote_id: str) -> Optional[Listing]:
        if not self._is_uuid(emote_id):
            return None
        result = self._db.table("listings").select("*").eq("emote_id", emote_id).execute()
        if not result.data:
            return None
        return self._map_to_listing(result.data[0])

    def get_listings(self, listing_ids: list[str]) -> list[Listing]:
        valid_ids = [i for i in listing_ids if self._is_uuid(i)]
        if not valid_ids:
            return []
        result = self._db.table("listings").select("*").in_("id", valid_ids).execute()
        by_id = {str(r["id"]): self._map_to_listing(r) for r in result.data}
        return [by_id[i] for i in listing_ids if i in by_id]

    def update_listing(self, listing_id: str, changes: dict[str, Any]) -> Listing:
        if not self._is_uuid(listing_id):
            raise ListingNotFoundError(listing_id)
        data = self._serialize(changes)
        result = self._db.table("listings").update(data).eq("id", listing_id).execute()
        if not result.data:
            raise ListingNotFoundError(listing_id)
        return self._map_to_listing(result.data[0])

    def search_listings(
        self,
        window: PageWindow,
        search: str = "",
        style: str = "",
    ) -> tuple[list[Listing], int]:
        query = (
            self._db.table("listings").select("*", count="exact")
            .eq("status", ListingStatus.MARKETPLACE_PUBLISHED.value)
        )

        search = clean_search_term(search)
        if search:
            query = query.or_(",".join(
                f"prompt.like.*{variant}*" for variant in search_variants(search)
            ))

        style = clean_search_term(style)
        if style:
            query = query.like("style", f"*{style}*")

        result = (
            query.order("created_at", desc=True)
            .range(window.offset, window.end)
            .execute()
        )
        return [self._map_to_listing(r) for r in result.data], result.count or 0

    def list_seller_listings(self, seller_id: str) -> list[Listing]:
        result = (
            self._db.table("listings").select("*")
            .eq("seller_id", seller_id)
            .order("updated_at", desc=True)
            .execute()
        )
        return [self._map_to_listing(r) for r in result.data]

    # -------------------------------------------------------------------------
    # Bundles
    # -------------------------------------------------------------------------

    def create_bundle(
        self,
        seller_id: str,
        name: str,
        description: str,
        image_url: Optional[str],
        cover_listing_id: Optional[str],
    ) -> Bundle:
        data: dict[str, Any] = {
            "seller_id": seller_id,
            "name": name,
            "description": description,
            "price": 0,
            "status": ListingStatus.DRAFT.value,
        }
        if image_url:
            data["image_url"] = image_url
        if cover_listing_id:
            data["cover_listing_id"] = cover_listing_id
        result = self._db.table("bundles").insert(data).execute()
        return self._map_to_bundle(result.data[0])

    def get_bundle(self, bundle_id: str) -> Optional[Bundle]:
        if not self._is_uuid(bundle_id):
            return None
        result = (
            self._db.table("bundles").select("*, bundle_items(listing_id, position)")
            .eq("id", bundle_id)
            .execute()
        )
        if not result.data:
            return None
        return self._map_to_bundle(result.data[0])

    def update_bundle(self, bundle_id: str, changes: dict[str, Any]) -> Bundle:
        if not self._is_uuid(bundle_id):
            raise BundleNotFoundError(bundle_id)
        changes = dict(changes)
        listing_ids = changes.pop("listing_ids", None)

        data = self._serialize(changes)
        result = self._db.table("bundles").update(data).eq("id", bundle_id).execute()
        if not result.data:
            raise BundleNotFoundError(bundle_id)

        if listing_ids is not None:
            self._db.table("bundle_items").delete().eq("bundle_id", bundle_id).execute()
            self._db.table("bundle_items").insert([
                {"bundle_id": bundle_id, "listing_id": listing_id, "position": position}
                for position, listing_id in enumerate(listing_ids)
            ]).execute()

        bundle = self.get_bundle(bundle_id)
        if bundle is None:
            raise BundleNotFoundError(bundle_id)
        return bundle

    def list_seller_bundles(
        self,
        seller_id: str,
        window: PageWindow,
    ) -> tuple[list[Bundle], int]:
        result = (
            self._db.table("bundles")
            .select("*, bundle_items(listing_id, position)", count="exact")
            .eq("seller_id", seller_id)
            .order("updated_at", desc=True)
            .range(window.offset, window.end)
            .execute()
        )
        return [self._map_to_bundle(r) for r in result.data], result.count or 0

    # -------------------------------------------------------------------------
    # Entitlements
    # -------------------------------------------------------------------------

    def owns_emote(self, user_id: str, emote_id: str) -> bool:
        if not self._is_uuid(emote_id):
            return False
        result = (
            self._db.table("user_emotes").select("emote_id")
            .eq("user_id", user_id)
            .eq("emote_id", emote_id)
            .limit(1)
            .execute()
        )
        return bool(result.data)

    def has_purchased_bundle(self, user_id: str, bundle_id: str) -> bool:
        if not self._is_uuid(bundle_id):
            return False
        result = (
            self._db.table("purchases").select("id")
            .eq("buyer_id", user_id)
            .eq("bundle_id", bundle_id)
            .limit(1)
            .execute()
        )
        return bool(result.data)

    def list_purchases(self, user_id: str) -> list[Purchase]:
        result = (
            self._db.table("purchases").select("*")
            .eq("buyer_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [self._map_to_purchase(r) for r in result.data]

    def list_owned_emotes(self, user_id: str) -> list[Emote]:
        result = (
            self._db.table("user_emotes").select("emotes(*)")
            .eq("user_id", user_id)
            .execute()
        )
        return [self._map_to_emote(r["emotes"]) for r in result.data if r.get("emotes")]

    # -------------------------------------------------------------------------
    # Profile deletion
    # -------------------------------------------------------------------------

    def delete_user_content(self, user_id: str) -> None:
        """Delete in dependency order; bundle items and buyers' rows cascade in the schema."""
        self._db.table("user_emotes").delete().eq("user_id", user_id).execute()
        self._db.table("purchases").delete().eq("buyer_id", user_id).execute()
        self._db.table("bundles").delete().eq("seller_id", user_id).execute()
        self._db.table("listings").delete().eq("seller_id", user_id).execute()
        self._db.table("emotes").delete().eq("user_id", user_id).execute()

    # -------------------------------------------------------------------------
    # Private mapping methods
    # -------------------------------------------------------------------------

    @staticmethod
    def _serialize(changes: dict[str, Any]) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for key, value in changes.items():
            if isinstance(value, Decimal):
                value = float(value)
            elif isinstance(value, ListingStatus):
                value = value.value
            data[key] = value
        data["updated_at"] = datetime.now(timezone.utc).isoformat()
        return data

    def _map_to_emote(self, data: dict[str, Any]) -> Emote:
        """Map database row to Emote model."""
        return Emote(
            id=str(data["id"]),
            user_id=str(data["user_id"]),
            prompt=data.get("prompt") or "",
            style=data.get("style") or "",
            model=data.get("model") or "",
            image_url=data["image_url"],
            created_at=self._timestamp(data.get("created_at")),
        )

    def _map_to_listing(self, data: dict[str, Any]) -> Listing:
        """Map database row to Listing model."""
        return Listing(
            id=str(data["id"]),
            emote_id=str(data["emote_id"]),
            seller_id=str(data["seller_id"]),
            prompt=data.get("prompt") or "",
            style=data.get("style") or "",
            model=data.get("model") or "",
            image_url=data["image_url"],
            watermarked_url=data.get("watermarked_url"),
            price=self._decimal(data.get("price")),
            price_cents=data.get("price_cents"),
            status=ListingStatus(data.get("status") or ListingStatus.DRAFT.value),
            created_at=self._timestamp(data.get("created_at")),
            updated_at=self._timestamp(data.get("updated_at")),
        )

    def _map_to_bundle(self, data: dict[str, Any]) -> Bundle:
        """Map database row (with nested bundle_items) to Bundle model."""
        items = sorted(data.get("bundle_items") or [], key=lambda i: i.get("position", 0))
        return Bundle(
            id=str(data["id"]),
            seller_id=str(data["seller_id"]),
            name=data["name"],
            description=data.get("description") or "",
            listing_ids=[str(i["listing_id"]) for i in items],
            cover_listing_id=data.get("cover_listing_id"),
            image_url=data.get("image_url"),
            watermarked_url=data.get("watermarked_url"),
            price=self._decimal(data.get("price")),
            price_cents=data.get("price_cents"),
            status=ListingStatus(data.get("status") or ListingStatus.DRAFT.value),
            created_at=self._timestamp(data.get("created_at")),
            updated_at=self._timestamp(data.get("updated_at")),
        )

    def _map_to_purchase(self, data: dict[str, Any]) -> Purchase:
        """Map database row to Purchase model."""
        return Purchase(
            id=str(data["id"]),
            buyer_id=str(data["buyer_id"]),
            listing_id=data.get("listing_id"),
            bundle_id=data.get("bundle_id"),
            payment_intent_id=data.get("payment_intent_id"),
            event_id=data.get("event_id"),
            created_at=self._timestamp(data.get("created_at")),
        )
