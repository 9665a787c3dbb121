"""Transports to the remote generation service: direct SDK or local proxy."""

import logging
from abc import ABC, abstractmethod

import httpx
import openai

from app.config import settings

logger = logging.getLogger(__name__)


class GenerationTransport(ABC):
    """Abstract base class for generation transports.

    Every method returns the provider's JSON envelope as a plain dict and lets
    provider errors propagate for classification by the caller.
    """

    @abstractmethod
    def list_models(self, api_key: str) -> list:
        """Return the provider's model listing."""
        ...

    @abstractmethod
    def edit_images(
        self,
        api_key: str,
        prompt: str,
        images: list[bytes],
        size: str,
        quality: str,
        model: str,
    ) -> dict:
        """Submit an image edit with one or more PNG images, in order."""
        ...

    @abstractmethod
    def create_response(self, api_key: str, body: dict) -> dict:
        """Submit a responses-API request (used for structured output)."""
        ...


def _image_files(images: list[bytes]) -> list[tuple[str, bytes, str]]:
    """Multipart file tuples numbered in input order (image_0 is the base)."""
    return [(f"image_{i}.png", data, "image/png") for i, data in enumerate(images)]


class DirectTransport(GenerationTransport):
    """Calls OpenAI through the official SDK with the caller's credential."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = base_url or settings.OPENAI_BASE_URL
        self.timeout = timeout or settings.REQUEST_TIMEOUT_SECONDS

    def _client(self, api_key: str) -> openai.OpenAI:
        return openai.OpenAI(api_key=api_key, base_url=self.base_url, timeout=self.timeout, max_retries=0)

    def list_models(self, api_key: str) -> list:
        page = self._client(api_key).models.list()
        return list(page.data)

    def edit_images(self, api_key, prompt, images, size, quality, model) -> dict:
        files = _image_files(images)
        rsp = self._client(api_key).images.edit(
            model=model,
            image=files if len(files) > 1 else files[0],
            prompt=prompt,
            n=1,
            size=size,
            quality=quality,
        )
        return rsp.model_dump()

    def create_response(self, api_key: str, body: dict) -> dict:
        rsp = self._client(api_key).responses.create(**body)
        return rsp.model_dump()


class ProxyTransport(GenerationTransport):
    """Posts to the local ``/openai`` proxy, which injects the credential server-side."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        http_transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.PROXY_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.REQUEST_TIMEOUT_SECONDS
        self.http_transport = http_transport

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.http_transport)

    def list_models(self, api_key: str) -> list:
        with self._client() as client:
            resp = client.get("/models")
        resp.raise_for_status()
        return resp.json().get("data") or []

    def edit_images(self, api_key, prompt, images, size, quality, model) -> dict:
        data = {
            "model": model,
            "prompt": prompt,
            "n": "1",
            "size": size,
            "quality": quality,
            "moderation": settings.IMAGE_MODERATION,
        }
        files = [("image", f) for f in _image_files(images)]

        with self._client() as client:
            resp = client.post("/images/edits", data=data, files=files)

        if resp.status_code != 200:
            logger.error("Proxy images/edits returned %d: %s", resp.status_code, resp.text[:500])
        resp.raise_for_status()
        return resp.json()

    def create_response(self, api_key: str, body: dict) -> dict:
        with self._client() as client:
            resp = client.post("/responses", json=body)

        if resp.status_code != 200:
            logger.error("Proxy responses returned %d: %s", resp.status_code, resp.text[:500])
        resp.raise_for_status()
        return resp.json()


def get_transport(name: str | None = None) -> GenerationTransport:
    """Factory: return the transport selected by GENERATION_TRANSPORT."""
    name = name or settings.GENERATION_TRANSPORT
    if name == "proxy":
        return ProxyTransport()
    if name == "direct":
        return DirectTransport()
    raise ValueError(f"Unknown generation transport: {name}")
