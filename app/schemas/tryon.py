"""Pydantic schemas for generation results and try-on endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

Quality = Literal["low", "medium", "high"]
PhotoType = Literal["face", "torso", "full-body"]


# ---------------------------------------------------------------------------
# Structured outputs returned by the generation service
# ---------------------------------------------------------------------------

class ItemMetadata(BaseModel):
    name: str
    category: str
    description: str


class PhotoValidation(BaseModel):
    """Photo validation verdict; a non-empty reason with is_valid=True is a warning."""
    is_valid: bool
    reason: str = ""


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class ApiKeyCheckRequest(BaseModel):
    api_key: str = ""


class AnalyzeItemRequest(BaseModel):
    image: str = Field(..., description="Base64 image, optionally a data URL")
    categories: list[str] | None = Field(default=None, description="Allowed categories")


class ValidatePhotoRequest(BaseModel):
    image: str = Field(..., description="Base64 image, optionally a data URL")
    photo_type: PhotoType = "full-body"


class CompositionRequest(BaseModel):
    profile_photo: str = Field(..., description="Base64 photo of the person")
    item_images: list[str] = Field(default_factory=list)
    item_descriptions: list[str] = Field(default_factory=list)
    wardrobe_item_ids: list[str] = Field(
        default_factory=list, description="Wardrobe items appended after item_images"
    )
    quality: Quality = "low"
    mode: Literal["remote", "local"] = "remote"


class WardrobeItemCreate(BaseModel):
    image: str = Field(..., description="Base64 image of the item")
    name: str
    category: str
    description: str = ""


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class ApiKeyCheckResponse(BaseModel):
    valid: bool


class ImageResponse(BaseModel):
    image: str = Field(..., description="Base64 PNG without data URL prefix")


class CompositionResponse(ImageResponse):
    mode: str


class WardrobeItemCreated(BaseModel):
    id: str


class WardrobeItemOut(BaseModel):
    id: str
    name: str
    category: str
    description: str
    image_url: str
    created_at: datetime


class UsageTotals(BaseModel):
    text_tokens: int
    image_tokens: int
    output_tokens: int
    calls: int
