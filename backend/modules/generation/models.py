"""
Generation module data models.
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

ImageSize = Literal["1024x1024", "1024x1536", "1536x1024"]

# Selectable generators; each maps to one configured provider.
ImageModel = Literal["openai", "flux-pro-1.1", "flux-pro-1.1-ultra"]


class GenerateEmoteRequest(BaseModel):
    """Request to generate one emote."""

    prompt: str = Field(..., min_length=1, max_length=1000, description="What the emote depicts")
    style: str = Field(default="", max_length=50, description="Theme, e.g. 'pixel' or 'kawaii'")
    size: ImageSize = Field(default="1024x1024")
    model: ImageModel = Field(default="openai", description="Which image model renders the emote")

    @field_validator("prompt")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Prompt is required")
        return value


class ImportEmoteRequest(BaseModel):
    """Save an already rendered image (e.g. an edited or background-free one) as an emote."""

    image_url: str = Field(..., min_length=1, max_length=2048)
    prompt: str = Field(default="", max_length=1000)
    style: str = Field(default="", max_length=50)
    model: str = Field(default="", max_length=100, description="Model that produced the image")


class RemoveBackgroundRequest(BaseModel):
    image_url: str = Field(..., min_length=1, max_length=2048)


class RemoveBackgroundResponse(BaseModel):
    image_url: str


class GeneratedImage(BaseModel):
    """Raw output of an image generator."""

    data: bytes
    content_type: str = "image/png"
    model: str


class GenerateEmoteResponse(BaseModel):
    emote_id: str
    image_url: str
    credits_remaining: int
