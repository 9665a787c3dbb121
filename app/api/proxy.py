"""Reverse proxy to OpenAI that injects the server-side credential.

Requests to ``/openai/<path>`` are forwarded to ``OPENAI_BASE_URL/<path>``
with ``Authorization: Bearer <OPENAI_API_KEY>``, so the key never appears in
client-visible traffic.
"""

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from app.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["proxy"])

# Not forwarded in either direction
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "host",
    "content-length",
    "content-encoding",
    "authorization",
}


async def get_upstream_client():
    """Yield an async httpx client for the upstream provider."""
    async with httpx.AsyncClient(base_url=settings.OPENAI_BASE_URL, timeout=settings.REQUEST_TIMEOUT_SECONDS) as client:
        yield client


def _filter_headers(headers) -> dict:
    return {k: v for k, v in headers.items() if k.lower() not in HOP_BY_HOP_HEADERS}


@router.api_route("/openai/{path:path}", methods=["GET", "POST", "DELETE"])
async def proxy_openai(
    path: str,
    request: Request,
    client: httpx.AsyncClient = Depends(get_upstream_client),
):
    if not settings.OPENAI_API_KEY:
        raise HTTPException(status_code=503, detail="OPENAI_API_KEY is not configured.")

    headers = _filter_headers(request.headers)
    headers["Authorization"] = f"Bearer {settings.OPENAI_API_KEY}"
    body = await request.body()

    try:
        upstream = await client.request(
            request.method,
            f"/{path}",
            params=list(request.query_params.multi_items()),
            content=body,
            headers=headers,
        )
    except httpx.TransportError as e:
        logger.error("Proxy request to /%s failed: %s", path, e)
        raise HTTPException(status_code=502, detail="Upstream request failed.")

    logger.info("Proxied %s /%s -> %d", request.method, path, upstream.status_code)
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        headers=_filter_headers(upstream.headers),
    )
