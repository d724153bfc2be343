"""
Generation module exceptions.
"""

from shared.exceptions import ExternalServiceError, ValidationError


class GenerationFailedError(ExternalServiceError):
    """Raised when the image model fails or returns no image."""

    def __init__(self, model: str, reason: str, service: str = "openai"):
        super().__init__(
            "Image generation failed",
            service=service,
            code="GENERATION_FAILED",
            details={"model": model, "reason": reason},
        )


class StorageError(ExternalServiceError):
    """Raised when a generated image can't be stored."""

    def __init__(self, key: str, reason: str):
        super().__init__(
            "Could not store generated image",
            service="s3",
            code="STORAGE_ERROR",
            details={"key": key, "reason": reason},
        )


class GeneratorNotConfiguredError(ExternalServiceError):
    """Raised when no API key is configured for the image model."""

    def __init__(self, service: str):
        super().__init__(
            f"{service} is not configured",
            service=service,
            code="GENERATOR_NOT_CONFIGURED",
        )


class ImageDownloadError(ExternalServiceError):
    """Raised when a remote image can't be fetched."""

    def __init__(self, url: str, reason: str):
        super().__init__(
            "Could not download image",
            service="image-host",
            code="IMAGE_DOWNLOAD_FAILED",
            details={"url": url, "reason": reason},
        )


class InvalidImageUrlError(ValidationError):
    """Raised when a URL does not point at an acceptable image."""

    def __init__(self, url: str, reason: str):
        super().__init__(
            f"Invalid image URL: {reason}",
            code="INVALID_IMAGE_URL",
            details={"url": url, "reason": reason},
        )
