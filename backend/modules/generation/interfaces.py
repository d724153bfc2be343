"""
Generation module interfaces.

The emote generator depends on these so tests can stand in for the image
providers and S3.
"""

from typing import Protocol, runtime_checkable

from .models import GeneratedImage


@runtime_checkable
class IImageGenerator(Protocol):
    """An image model."""

    @property
    def model(self) -> str:
        ...

    async def generate(self, prompt: str, size: str) -> GeneratedImage:
        """
        Render a single image.

        Raises:
            GenerationFailedError: If the model errors or returns nothing
        """
        ...


@runtime_checkable
class IBackgroundRemover(Protocol):

    async def remove_background(self, image_url: str) -> str:
        """
        Return the URL of a copy of the image with its background removed.

        Raises:
            GenerationFailedError: If the provider fails
        """
        ...


@runtime_checkable
class IObjectStorage(Protocol):
    """Public object storage for generated images."""

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        """
        Store bytes under `key` and return the public URL.

        Raises:
            StorageError: If the upload fails
        """
        ...

    async def delete(self, key: str) -> None:
        """
        Remove the object under `key`. Missing objects are not an error.

        Raises:
            StorageError: If the delete fails
        """
        ...
