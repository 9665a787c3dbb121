"""Storage abstraction for wardrobe images: local filesystem backend."""

from abc import ABC, abstractmethod
from pathlib import Path

from app.config import settings

# Base storage directory for local backend — driven by STORAGE_ROOT env var
STORAGE_ROOT = Path(settings.STORAGE_ROOT)


class StorageBackend(ABC):
    """Abstract base class for storage backends."""

    @abstractmethod
    def save(self, data: bytes, path: str) -> str:
        """Save data to storage and return the storage path."""
        ...

    @abstractmethod
    def load(self, path: str) -> bytes:
        """Load data from storage by path."""
        ...

    @abstractmethod
    def download_url(self, path: str) -> str:
        """Return a URL to download the file."""
        ...


class LocalStorageBackend(StorageBackend):
    """Local filesystem storage."""

    def __init__(self, root: Path | None = None):
        self.root = root or STORAGE_ROOT
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        clean_path = path.replace("local://", "")
        full_path = (self.root / clean_path).resolve()
        if not full_path.is_relative_to(self.root.resolve()):
            raise FileNotFoundError(f"Path escapes storage root: {path}")
        return full_path

    def save(self, data: bytes, path: str) -> str:
        """Save bytes to local filesystem at storage/{path}."""
        full_path = self._resolve(path)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_bytes(data)
        return f"local://{path}"

    def load(self, path: str) -> bytes:
        """Load bytes from local filesystem."""
        full_path = self._resolve(path)
        if not full_path.exists():
            raise FileNotFoundError(f"File not found: {full_path}")
        return full_path.read_bytes()

    def download_url(self, path: str) -> str:
        """Return a local URL served by FastAPI."""
        clean_path = path.replace("local://", "")
        return f"/v1/files/{clean_path}"


def get_storage_backend() -> StorageBackend:
    return LocalStorageBackend()


# Singleton instance
storage = get_storage_backend()
