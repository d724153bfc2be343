"""
Emote generation service.

Spends a credit, renders the image, stores it and records the emote. The
credit is taken before any upstream call and given back if any later step
fails; an image that was already stored is removed again.
"""

import logging
import uuid
from typing import Callable, Mapping, Optional

from modules.marketplace.interfaces import IMarketplaceRepository
from modules.marketplace.models import Emote
from modules.users.service import UserService
from .downloads import HttpImageFetcher, extension_for, require_https
from .exceptions import GeneratorNotConfiguredError, StorageError
from .interfaces import IBackgroundRemover, IImageGenerator, IObjectStorage
from .models import GenerateEmoteRequest, GenerateEmoteResponse, ImportEmoteRequest
from .prompts import build_themed_prompt

logger = logging.getLogger(__name__)

GENERATION_COST = 1


def default_key(user_id: str, extension: str) -> str:
    return f"emotes/{user_id}/{uuid.uuid4()}.{extension}"


class GenerationService:
    """
    Generates emotes for users.

    Args:
        users: Credit accounting
        marketplace: Where the emote row is recorded
        generators: Configured image models keyed by the request's model name
        storage: Public object storage
        background_remover: Optional background removal provider
        fetcher: Downloads images for import
        key_factory: Builds the storage key from user id and file extension
    """

    def __init__(
        self,
        users: UserService,
        marketplace: IMarketplaceRepository,
        generators: Mapping[str, IImageGenerator],
        storage: IObjectStorage,
        background_remover: Optional[IBackgroundRemover] = None,
        fetcher: Optional[HttpImageFetcher] = None,
        key_factory: Callable[[str, str], str] = default_key,
    ):
        self._users = users
        self._marketplace = marketplace
        self._generators = dict(generators)
        self._storage = storage
        self._background_remover = background_remover
        self._fetcher = fetcher or HttpImageFetcher()
        self._key_factory = key_factory

    @property
    def available_models(self) -> list[str]:
        return sorted(self._generators)

    async def generate_emote(
        self,
        user_id: str,
        request: GenerateEmoteRequest,
    ) -> GenerateEmoteResponse:
        """
        Generate and store one emote.

        Raises:
            GeneratorNotConfiguredError: If the requested model has no provider; no credit is spent
            InsufficientCreditsError: If the user has no credits; nothing else happens
            GenerationFailedError: If the model fails (credit refunded)
            StorageError: If the upload fails (credit refunded)
        """
        generator = self._generators.get(request.model)
        if generator is None:
            raise GeneratorNotConfiguredError(request.model)

        balance = await self._users.consume_credits(user_id, GENERATION_COST)

        themed_prompt = build_themed_prompt(request.prompt, request.style)
        try:
            image = await generator.generate(themed_prompt, request.size)
            emote = await self._store(
                user_id,
                image.data,
                image.content_type,
                request.prompt,
                request.style,
                generator.model,
            )
        except Exception as e:
            logger.error("Generation for user %s failed, refunding: %s", user_id, e)
            await self._users.refund_credits(user_id, GENERATION_COST)
            raise

        logger.info("Generated emote %s for user %s with %s", emote.id, user_id, generator.model)
        return GenerateEmoteResponse(
            emote_id=emote.id,
            image_url=emote.image_url,
            credits_remaining=balance,
        )

    async def import_emote(self, user_id: str, request: ImportEmoteRequest) -> Emote:
        """
        Copy an image from a URL into storage and record it as the user's emote.

        Costs no credit; the image was already paid for when it was rendered.

        Raises:
            InvalidImageUrlError: If the URL is not https or not an image
            ImageDownloadError: If the download fails
            StorageError: If the upload fails
        """
        data, content_type = await self._fetcher.fetch(request.image_url)
        emote = await self._store(
            user_id, data, content_type, request.prompt, request.style, request.model
        )
        logger.info("Imported emote %s for user %s", emote.id, user_id)
        return emote

    async def remove_background(self, image_url: str) -> str:
        """
        Raises:
            GeneratorNotConfiguredError: If no removal provider is configured
            InvalidImageUrlError: If the URL is not https
            GenerationFailedError: If the provider fails
        """
        if self._background_remover is None:
            raise GeneratorNotConfiguredError("fal")
        require_https(image_url)
        return await self._background_remover.remove_background(image_url)

    async def list_emotes(self, user_id: str) -> list[Emote]:
        return self._marketplace.list_emotes(user_id)

    async def _store(
        self,
        user_id: str,
        data: bytes,
        content_type: str,
        prompt: str,
        style: str,
        model: str,
    ) -> Emote:
        """Upload the image and record the emote; the object is removed if the row can't be written."""
        key = self._key_factory(user_id, extension_for(content_type))
        image_url = await self._storage.upload(key, data, content_type)
        try:
            return self._marketplace.create_emote(user_id, prompt, style, model, image_url)
        except Exception:
            await self._discard(key)
            raise

    async def _discard(self, key: str) -> None:
        try:
            await self._storage.delete(key)
        except StorageError as e:
            logger.error("Could not remove orphaned object %s: %s", key, e.message)
