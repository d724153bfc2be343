"""
Image providers: the OpenAI images API and fal.ai hosted models.
"""

import base64
import binascii
import logging
from typing import Any, Optional

import fal_client
import httpx
from fal_client.client import FalClientError
from openai import AsyncOpenAI, OpenAIError

from .downloads import HttpImageFetcher
from .exceptions import (
    GenerationFailedError,
    GeneratorNotConfiguredError,
    ImageDownloadError,
    InvalidImageUrlError,
)
from .models import GeneratedImage

logger = logging.getLogger(__name__)


class OpenAIImageGenerator:
    """
    Image generation through the OpenAI images API.

    Args:
        api_key: OpenAI API key
        model: Image model name
        client: Preconfigured client, mainly for tests
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-image-1",
        client: Optional[AsyncOpenAI] = None,
    ):
        if client is None and not api_key:
            raise GeneratorNotConfiguredError("openai")
        self._model = model
        self._client = client or AsyncOpenAI(api_key=api_key)

    @property
    def model(self) -> str:
        return self._model

    async def generate(self, prompt: str, size: str) -> GeneratedImage:
        try:
            response = await self._client.images.generate(
                model=self._model,
                prompt=prompt,
                size=size,
                n=1,
                background="transparent",
                quality="auto",
            )
        except OpenAIError as e:
            logger.error("Image generation with %s failed: %s", self._model, e)
            raise GenerationFailedError(self._model, str(e)) from e

        if not response.data or not response.data[0].b64_json:
            logger.error("Image generation with %s returned no image data", self._model)
            raise GenerationFailedError(self._model, "no image data in response")

        try:
            data = base64.b64decode(response.data[0].b64_json)
        except (binascii.Error, ValueError) as e:
            raise GenerationFailedError(self._model, "undecodable image data") from e

        return GeneratedImage(data=data, content_type="image/png", model=self._model)


def _fal_client(api_key: str, client: Optional[fal_client.AsyncClient]) -> fal_client.AsyncClient:
    if client is None and not api_key:
        raise GeneratorNotConfiguredError("fal")
    return client or fal_client.AsyncClient(key=api_key)


async def _subscribe(
    client: fal_client.AsyncClient,
    application: str,
    arguments: dict[str, Any],
) -> dict[str, Any]:
    try:
        return await client.subscribe(application, arguments=arguments)
    except (FalClientError, httpx.HTTPError) as e:
        logger.error("fal application %s failed: %s", application, e)
        raise GenerationFailedError(application, str(e), service="fal") from e


class FluxProGenerator:
    """
    Flux Pro 1.1 on fal.ai.

    fal returns image URLs, so the result is downloaded before it is handed
    back.

    Args:
        api_key: fal API key
        client: Preconfigured fal client, mainly for tests
        fetcher: Downloads the rendered image
    """

    application = "fal-ai/flux-pro/v1.1"

    def __init__(
        self,
        api_key: str,
        client: Optional[fal_client.AsyncClient] = None,
        fetcher: Optional[HttpImageFetcher] = None,
    ):
        self._client = _fal_client(api_key, client)
        self._fetcher = fetcher or HttpImageFetcher()

    @property
    def model(self) -> str:
        return self.application

    def _arguments(self, prompt: str, size: str) -> dict[str, Any]:
        width, height = (int(side) for side in size.split("x"))
        image_size: Any = "square_hd" if width == height else {"width": width, "height": height}
        return {"prompt": prompt, "image_size": image_size, "num_images": 1}

    async def generate(self, prompt: str, size: str) -> GeneratedImage:
        result = await _subscribe(self._client, self.application, self._arguments(prompt, size))
        try:
            url = result["images"][0]["url"]
        except (KeyError, IndexError, TypeError):
            logger.error("fal application %s returned no image", self.application)
            raise GenerationFailedError(self.model, "no image URL in response", service="fal")

        try:
            data, content_type = await self._fetcher.fetch(url)
        except (ImageDownloadError, InvalidImageUrlError) as e:
            raise GenerationFailedError(self.model, e.message, service="fal") from e
        return GeneratedImage(data=data, content_type=content_type, model=self.model)


class FluxProUltraGenerator(FluxProGenerator):
    """Flux Pro 1.1 Ultra on fal.ai; sized by aspect ratio rather than pixels."""

    application = "fal-ai/flux-pro/v1.1-ultra"

    ASPECT_RATIOS = {"1024x1024": "1:1", "1024x1536": "2:3", "1536x1024": "3:2"}

    def _arguments(self, prompt: str, size: str) -> dict[str, Any]:
        return {
            "prompt": prompt,
            "aspect_ratio": self.ASPECT_RATIOS.get(size, "1:1"),
            "num_images": 1,
            "enable_safety_checker": True,
            "safety_tolerance": "2",
            "output_format": "jpeg",
        }


class BiRefNetBackgroundRemover:
    """Background removal with BiRefNet v2 on fal.ai."""

    application = "fal-ai/birefnet/v2"

    def __init__(self, api_key: str, client: Optional[fal_client.AsyncClient] = None):
        self._client = _fal_client(api_key, client)

    async def remove_background(self, image_url: str) -> str:
        result = await _subscribe(self._client, self.application, {"image_url": image_url})
        try:
            return result["image"]["url"]
        except (KeyError, TypeError):
            logger.error("fal application %s returned no image", self.application)
            raise GenerationFailedError(self.application, "no image URL in response", service="fal")
