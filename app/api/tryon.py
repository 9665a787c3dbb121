"""Try-on endpoints — key check, packshots, item analysis, photo validation, compositions."""

import base64

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from app.config import settings
from app.dependencies import get_api_key, get_generation_client, get_wardrobe
from app.schemas.tryon import (
    AnalyzeItemRequest,
    ApiKeyCheckRequest,
    ApiKeyCheckResponse,
    CompositionRequest,
    CompositionResponse,
    ImageResponse,
    ItemMetadata,
    PhotoValidation,
    Quality,
    ValidatePhotoRequest,
)
from app.services.compositor import compose_outfit
from app.services.generation import GenerationClient
from app.services.wardrobe import WardrobeRepository

router = APIRouter(tags=["tryon"])

ACCEPTED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp"}


# ---------------------------------------------------------------------------
# POST /v1/api-key/check
# ---------------------------------------------------------------------------
@router.post("/api-key/check", response_model=ApiKeyCheckResponse)
def check_api_key(
    body: ApiKeyCheckRequest,
    client: GenerationClient = Depends(get_generation_client),
):
    """Return whether the supplied OpenAI key is accepted.

    A blank key is always rejected. In proxy mode the listing call goes out
    with the server credential, so a non-blank key only passes the format check.
    """
    return ApiKeyCheckResponse(valid=client.check_api_key(body.api_key))


# ---------------------------------------------------------------------------
# POST /v1/packshots
# ---------------------------------------------------------------------------
@router.post("/packshots", response_model=ImageResponse)
def create_packshot(
    file: UploadFile = File(...),
    description: str = Form(...),
    quality: Quality = Form("low"),
    api_key: str = Depends(get_api_key),
    client: GenerationClient = Depends(get_generation_client),
):
    """Turn an item photo into a studio packshot on a white background."""
    if file.content_type not in ACCEPTED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}. Use JPG, PNG, or WEBP.",
        )
    data = file.file.read()
    return ImageResponse(image=client.extract_packshot(api_key, data, description, quality))


# ---------------------------------------------------------------------------
# POST /v1/items/analyze
# ---------------------------------------------------------------------------
@router.post("/items/analyze", response_model=ItemMetadata)
def analyze_item(
    body: AnalyzeItemRequest,
    api_key: str = Depends(get_api_key),
    client: GenerationClient = Depends(get_generation_client),
):
    categories = body.categories or settings.WARDROBE_CATEGORIES
    return client.analyze_item_metadata(api_key, body.image, categories)


# ---------------------------------------------------------------------------
# POST /v1/profile-photos/validate
# ---------------------------------------------------------------------------
@router.post("/profile-photos/validate", response_model=PhotoValidation)
def validate_profile_photo(
    body: ValidatePhotoRequest,
    api_key: str = Depends(get_api_key),
    client: GenerationClient = Depends(get_generation_client),
):
    return client.validate_profile_photo(api_key, body.image, body.photo_type)


# ---------------------------------------------------------------------------
# POST /v1/compositions
# ---------------------------------------------------------------------------
@router.post("/compositions", response_model=CompositionResponse)
def create_composition(
    body: CompositionRequest,
    api_key: str = Depends(get_api_key),
    client: GenerationClient = Depends(get_generation_client),
    wardrobe: WardrobeRepository = Depends(get_wardrobe),
):
    """Dress the profile photo in the given items, remotely or with the local compositor."""
    images = list(body.item_images)
    descriptions = list(body.item_descriptions)

    if body.wardrobe_item_ids:
        try:
            items = wardrobe.get_items(body.wardrobe_item_ids)
        except KeyError as e:
            raise HTTPException(status_code=404, detail=f"Wardrobe item(s) not found: {e.args[0]}")
        for item in items:
            images.append(base64.b64encode(wardrobe.load_image(item)).decode("ascii"))
            descriptions.append(item.description or item.name)

    if not images:
        raise HTTPException(status_code=400, detail="At least one clothing item is required.")

    if body.mode == "local":
        if len(images) != len(descriptions):
            raise HTTPException(
                status_code=422,
                detail=f"Got {len(images)} item images but {len(descriptions)} descriptions.",
            )
        result = compose_outfit(body.profile_photo, list(zip(images, descriptions)))
    else:
        result = client.generate_composition(
            api_key, body.profile_photo, images, descriptions, body.quality
        )
    return CompositionResponse(image=result, mode=body.mode)
