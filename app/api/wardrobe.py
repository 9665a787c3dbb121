"""Wardrobe endpoints — add, list, and serve stored item images."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from app.dependencies import get_storage, get_wardrobe
from app.schemas.tryon import WardrobeItemCreate, WardrobeItemCreated, WardrobeItemOut
from app.services.storage import StorageBackend
from app.services.wardrobe import WardrobeRepository

router = APIRouter(tags=["wardrobe"])


@router.post("/wardrobe", response_model=WardrobeItemCreated, status_code=201)
def add_wardrobe_item(
    body: WardrobeItemCreate,
    wardrobe: WardrobeRepository = Depends(get_wardrobe),
):
    item_id = wardrobe.add_item(body.image, body.name, body.category, body.description)
    return WardrobeItemCreated(id=item_id)


@router.get("/wardrobe", response_model=list[WardrobeItemOut])
def list_wardrobe_items(
    wardrobe: WardrobeRepository = Depends(get_wardrobe),
    store: StorageBackend = Depends(get_storage),
):
    return [
        WardrobeItemOut(
            id=item.id,
            name=item.name,
            category=item.category,
            description=item.description,
            image_url=store.download_url(item.image_path),
            created_at=item.created_at,
        )
        for item in wardrobe.list_items()
    ]


@router.get("/files/{path:path}")
def get_file(path: str, store: StorageBackend = Depends(get_storage)):
    """Serve a stored wardrobe image."""
    try:
        data = store.load(path)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="File not found.")
    return Response(content=data, media_type="image/png")
