"""Shared FastAPI dependencies."""

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.services.generation import GenerationClient
from app.services.storage import StorageBackend, storage
from app.services.transport import GenerationTransport, get_transport
from app.services.usage import UsageTracker, usage_tracker
from app.services.wardrobe import WardrobeRepository


def get_api_key(x_api_key: str | None = Header(default=None)) -> str:
    """Credential from the X-API-Key header, else the configured server key."""
    return x_api_key or settings.OPENAI_API_KEY


def get_usage_tracker() -> UsageTracker:
    return usage_tracker


def get_generation_transport() -> GenerationTransport:
    return get_transport()


def get_generation_client(
    transport: GenerationTransport = Depends(get_generation_transport),
    usage: UsageTracker = Depends(get_usage_tracker),
) -> GenerationClient:
    return GenerationClient(transport, usage)


def get_storage() -> StorageBackend:
    return storage


def get_wardrobe(
    db: Session = Depends(get_db),
    store: StorageBackend = Depends(get_storage),
) -> WardrobeRepository:
    return WardrobeRepository(db, store)
