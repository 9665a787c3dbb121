"""Wardrobe persistence: add and list items, and fetch their images."""

import logging

from sqlalchemy.orm import Session

from app.models.db import WardrobeItem, generate_item_id
from app.services.preprocess import b64_to_bytes, decode_image, encode_png
from app.services.storage import StorageBackend

logger = logging.getLogger(__name__)


class WardrobeRepository:
    def __init__(self, db: Session, storage: StorageBackend):
        self.db = db
        self.storage = storage

    def add_item(self, image_b64: str, name: str, category: str, description: str = "") -> str:
        """Store the image as PNG and insert a row. Returns the new item id."""
        png = encode_png(decode_image(b64_to_bytes(image_b64, "wardrobe image"), "wardrobe image"))
        item_id = generate_item_id()
        path = self.storage.save(png, f"wardrobe/{item_id}.png")

        item = WardrobeItem(
            id=item_id,
            name=name,
            category=category,
            description=description,
            image_path=path,
        )
        self.db.add(item)
        self.db.commit()

        logger.info("Wardrobe item %s added (%s)", item_id, category)
        return item_id

    def list_items(self) -> list[WardrobeItem]:
        return self.db.query(WardrobeItem).order_by(WardrobeItem.created_at.desc()).all()

    def get_items(self, item_ids: list[str]) -> list[WardrobeItem]:
        """Items in the order of ``item_ids``. Raises KeyError for unknown ids."""
        rows = self.db.query(WardrobeItem).filter(WardrobeItem.id.in_(item_ids)).all()
        by_id = {row.id: row for row in rows}
        missing = [i for i in item_ids if i not in by_id]
        if missing:
            raise KeyError(", ".join(missing))
        return [by_id[i] for i in item_ids]

    def load_image(self, item: WardrobeItem) -> bytes:
        return self.storage.load(item.image_path)
