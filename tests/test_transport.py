"""Tests for the direct and proxied transports and the credential-injecting proxy."""

import json

import httpx
import openai
import pytest

from app.api.proxy import get_upstream_client
from app.config import settings
from app.main import app
from app.services.decoder import first_output
from app.services.generation import GenerationClient
from app.services.transport import DirectTransport, ProxyTransport, get_transport
from app.services.usage import UsageTracker, usage_from_response

from fakes import png_b64, png_bytes


def _proxy(handler) -> ProxyTransport:
    return ProxyTransport(base_url="http://testserver/openai", http_transport=httpx.MockTransport(handler))


def test_proxy_multipart_keeps_image_order_and_fields():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = request.read()
        return httpx.Response(200, json={"data": [{"b64_json": "abc"}]})

    envelope = _proxy(handler).edit_images(
        "sk-secret", "dress them", [png_bytes(4, 4), png_bytes(5, 5), png_bytes(6, 6)], "1024x1024", "low", "gpt-image-1"
    )

    assert envelope == {"data": [{"b64_json": "abc"}]}
    assert seen["url"] == "http://testserver/openai/images/edits"
    assert "authorization" not in seen["headers"]
    body = seen["body"]
    for field in (b'name="model"', b'name="prompt"', b'name="n"', b'name="size"', b'name="quality"', b'name="moderation"'):
        assert field in body
    assert body.index(b'filename="image_0.png"') < body.index(b'filename="image_1.png"') < body.index(
        b'filename="image_2.png"'
    )
    assert body.count(b'name="image"') == 3


def test_proxy_list_models():
    def handler(request):
        assert request.url.path == "/openai/models"
        return httpx.Response(200, json={"data": [{"id": "gpt-image-1"}]})

    assert _proxy(handler).list_models("") == [{"id": "gpt-image-1"}]


def test_proxy_status_error_surfaces_for_classification():
    def handler(request):
        return httpx.Response(429, json={"error": {"message": "Rate limit reached"}})

    with pytest.raises(httpx.HTTPStatusError):
        _proxy(handler).create_response("", {"model": "x"})


def test_proxy_liveness_rejects_blank_key():
    """A blank key is rejected without a request, even though the proxy holds the credential."""
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"data": [{"id": "m"}]})

    client = GenerationClient(_proxy(handler), UsageTracker())
    assert client.check_api_key("  ") is False
    assert seen == []
    assert client.check_api_key("sk-any") is True
    assert "authorization" not in seen[0].headers


def test_proxy_structured_request_round_trip():
    def handler(request):
        body = json.loads(request.read())
        assert body["text"]["format"]["name"] == "image_validation"
        text = json.dumps({"is_valid": True, "reason": ""})
        return httpx.Response(
            200,
            json={
                "output": [{"type": "message", "content": [{"type": "output_text", "text": text}]}],
                "usage": {"input_tokens": 12, "output_tokens": 4},
            },
        )

    usage = UsageTracker()
    result = GenerationClient(_proxy(handler), usage).validate_profile_photo("", png_b64(20, 20), "face")
    assert result.is_valid is True
    assert usage.text_tokens == 12


def test_get_transport_factory():
    assert isinstance(get_transport("proxy"), ProxyTransport)
    assert isinstance(get_transport("direct"), DirectTransport)
    with pytest.raises(ValueError):
        get_transport("carrier-pigeon")


# ---------------------------------------------------------------------------
# /openai reverse proxy
# ---------------------------------------------------------------------------

def test_reverse_proxy_injects_server_credential(client, monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-server")
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json={"data": [{"id": "gpt-image-1"}]})

    async def upstream():
        async with httpx.AsyncClient(
            base_url="https://api.example.test/v1", transport=httpx.MockTransport(handler)
        ) as c:
            yield c

    app.dependency_overrides[get_upstream_client] = upstream
    resp = client.get("/openai/models?limit=1", headers={"Authorization": "Bearer sk-client"})

    assert resp.status_code == 200
    assert resp.json()["data"][0]["id"] == "gpt-image-1"
    assert seen["url"] == "https://api.example.test/v1/models?limit=1"
    assert seen["auth"] == "Bearer sk-server"


def test_reverse_proxy_requires_server_key(client, monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
    resp = client.get("/openai/models")
    assert resp.status_code == 503


# ---------------------------------------------------------------------------
# DirectTransport through the OpenAI SDK
# ---------------------------------------------------------------------------

def _direct(handler) -> DirectTransport:
    transport = DirectTransport(base_url="https://api.example.test/v1")

    def sdk_client(api_key):
        return openai.OpenAI(
            api_key=api_key,
            base_url=transport.base_url,
            max_retries=0,
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        )

    transport._client = sdk_client
    return transport


IMAGE_EDIT_RESPONSE = {
    "created": 0,
    "data": [{"b64_json": "abc"}],
    "usage": {
        "input_tokens": 5,
        "input_tokens_details": {"text_tokens": 1, "image_tokens": 4},
        "output_tokens": 3,
        "total_tokens": 8,
    },
}


def test_direct_list_models_sends_caller_key():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(
            200,
            json={"object": "list", "data": [{"id": "gpt-image-1", "object": "model", "created": 0, "owned_by": "openai"}]},
        )

    client = GenerationClient(_direct(handler), UsageTracker())
    assert client.check_api_key("sk-user") is True
    assert seen == {"path": "/v1/models", "auth": "Bearer sk-user"}


def test_direct_single_image_edit():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = request.read()
        return httpx.Response(200, json=IMAGE_EDIT_RESPONSE)

    envelope = _direct(handler).edit_images("sk", "white background", [png_bytes(4, 4)], "1024x1024", "low", "gpt-image-1")

    assert seen["path"] == "/v1/images/edits"
    assert b'name="image"; filename="image_0.png"' in seen["body"]
    assert b'name="image[]"' not in seen["body"]
    assert envelope["data"][0]["b64_json"] == "abc"


def test_direct_composition_sends_images_in_order():
    seen = []

    def handler(request):
        seen.append((request.url.path, request.read()))
        return httpx.Response(200, json=IMAGE_EDIT_RESPONSE)

    usage = UsageTracker()
    result = GenerationClient(_direct(handler), usage).generate_composition(
        "sk", png_b64(30, 60), [png_b64(10, 10), png_b64(12, 12)], ["scarf", "boots"]
    )

    assert result == "abc"
    assert len(seen) == 1
    path, body = seen[0]
    assert path == "/v1/images/edits"
    assert body.count(b'name="image[]"') == 3
    assert body.index(b'filename="image_0.png"') < body.index(b'filename="image_1.png"') < body.index(
        b'filename="image_2.png"'
    )
    assert (usage.text_tokens, usage.image_tokens, usage.output_tokens) == (1, 4, 3)


def test_direct_responses_envelope_is_readable():
    def handler(request):
        body = json.loads(request.read())
        assert request.url.path == "/v1/responses"
        assert body["store"] is False
        return httpx.Response(
            200,
            json={
                "id": "resp_1",
                "object": "response",
                "created_at": 0,
                "model": "gpt-4.1-nano",
                "status": "completed",
                "parallel_tool_calls": True,
                "tool_choice": "auto",
                "tools": [],
                "output": [
                    {
                        "id": "msg_1",
                        "type": "message",
                        "role": "assistant",
                        "status": "completed",
                        "content": [
                            {
                                "type": "output_text",
                                "text": json.dumps({"is_valid": False, "reason": "Face is cropped"}),
                                "annotations": [],
                            }
                        ],
                    }
                ],
                "usage": {
                    "input_tokens": 12,
                    "input_tokens_details": {"cached_tokens": 0},
                    "output_tokens": 4,
                    "output_tokens_details": {"reasoning_tokens": 0},
                    "total_tokens": 16,
                },
            },
        )

    envelope = _direct(handler).create_response("sk", {"model": "gpt-4.1-nano", "input": "hi", "store": False})

    assert first_output(envelope) == {"is_valid": False, "reason": "Face is cropped"}
    record = usage_from_response(envelope["usage"])
    assert (record.text_tokens, record.image_tokens, record.output_tokens) == (12, 0, 4)
