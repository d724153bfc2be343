"""
Generation module.

Turns a prompt and style into a stored emote image, paid for with a credit,
and imports images the client already has.

Public API:
- GenerationService: credit-gated generation, import and background removal
- IImageGenerator, IBackgroundRemover, IObjectStorage: upstream contracts
- build_themed_prompt: style themes
- Exceptions: GenerationFailedError, StorageError, ImageDownloadError, InvalidImageUrlError
"""

from .interfaces import IBackgroundRemover, IImageGenerator, IObjectStorage
from .models import GenerateEmoteRequest, GenerateEmoteResponse, GeneratedImage, ImportEmoteRequest
from .exceptions import (
    GenerationFailedError,
    GeneratorNotConfiguredError,
    ImageDownloadError,
    InvalidImageUrlError,
    StorageError,
)
from .prompts import build_themed_prompt
from .service import GenerationService

__all__ = [
    "IBackgroundRemover",
    "IImageGenerator",
    "IObjectStorage",
    "GenerateEmoteRequest",
    "GenerateEmoteResponse",
    "GeneratedImage",
    "ImportEmoteRequest",
    "GenerationFailedError",
    "GeneratorNotConfiguredError",
    "ImageDownloadError",
    "InvalidImageUrlError",
    "StorageError",
    "build_themed_prompt",
    "GenerationService",
]
