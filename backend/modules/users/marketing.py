"""
Marketing-automation contact sync.

New accounts are added to an ActiveCampaign list and tagged as free
accounts. This is best effort: any failure is logged and swallowed so
that account creation never depends on the marketing provider.
"""

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

FREE_ACCOUNT_TAG = "Free Account"


class ActiveCampaignClient:
    """Minimal ActiveCampaign v3 client for contact onboarding."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        list_id: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self._api_url = api_url.rstrip("/")
        self._api_key = api_key
        self._list_id = list_id
        self._transport = transport
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self._api_url and self._api_key)

    async def subscribe_contact(self, email: str, name: Optional[str]) -> None:
        """Create the contact, add it to the list and tag it. Never raises."""
        if not self.configured:
            logger.warning("ActiveCampaign credentials not configured; skipping contact sync")
            return

        try:
            async with self._client() as client:
                contact_id = await self._create_contact(client, email, name)
                await self._add_to_list(client, contact_id)
                tag_id = await self._find_tag(client, FREE_ACCOUNT_TAG)
                if tag_id is None:
                    logger.error("ActiveCampaign tag %r not found", FREE_ACCOUNT_TAG)
                    return
                await self._tag_contact(client, contact_id, tag_id)
            logger.info("Contact %s added to ActiveCampaign", email)
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error("Failed to add %s to ActiveCampaign: %s", email, e)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._api_url,
            headers={"Api-Token": self._api_key, "Content-Type": "application/json"},
            transport=self._transport,
            timeout=self._timeout,
        )

    async def _create_contact(
        self,
        client: httpx.AsyncClient,
        email: str,
        name: Optional[str],
    ) -> str:
        contact = {"email": email}
        if name:
            contact["firstName"] = name
        response = await client.post("/api/3/contacts", json={"contact": contact})
        response.raise_for_status()
        return str(response.json()["contact"]["id"])

    async def _add_to_list(self, client: httpx.AsyncClient, contact_id: str) -> None:
        response = await client.post(
            "/api/3/contactLists",
            json={"contactList": {"list": self._list_id, "contact": contact_id, "status": 1}},
        )
        response.raise_for_status()

    async def _find_tag(self, client: httpx.AsyncClient, tag_name: str) -> Optional[str]:
        response = await client.get("/api/3/tags")
        response.raise_for_status()
        for tag in response.json().get("tags", []):
            if tag.get("tag") == tag_name:
                return str(tag["id"])
        return None

    async def _tag_contact(
        self,
        client: httpx.AsyncClient,
        contact_id: str,
        tag_id: str,
    ) -> None:
        response = await client.post(
            "/api/3/contactTags",
            json={"contactTag": {"contact": contact_id, "tag": tag_id}},
        )
        response.raise_for_status()
