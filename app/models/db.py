"""SQLAlchemy ORM models for the wardrobe."""

from datetime import datetime

from sqlalchemy import Column, DateTime, String
from ulid import ULID

from app.database import Base


def generate_item_id() -> str:
    """Generate a ULID prefixed with 'item_' for wardrobe items."""
    return "item_" + str(ULID())


class WardrobeItem(Base):
    __tablename__ = "wardrobe_item"

    id = Column(String, primary_key=True, default=generate_item_id)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)
    description = Column(String, nullable=False, default="")
    image_path = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
