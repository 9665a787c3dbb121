"""Generation client: packshots, item analysis, photo validation and try-on images."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor

from app.config import settings
from app.schemas.tryon import ItemMetadata, PhotoValidation
from app.services import prompt as prompts
from app.services.decoder import first_output
from app.services.errors import CONTRACT, SCHEMA, GenerationError, to_generation_error
from app.services.preprocess import b64_to_bytes, resize_base64, resize_image
from app.services.transport import GenerationTransport
from app.services.usage import (
    UsageTracker,
    estimate_image_usage,
    usage_from_response,
)

logger = logging.getLogger(__name__)

# Provider-specific quality names; models not listed take low/medium/high as-is.
QUALITY_VALUES = {
    "dall-e-3": {"low": "standard", "medium": "standard", "high": "hd"},
    "dall-e-2": {"low": "standard", "medium": "standard", "high": "standard"},
}

QUALITY_TIERS = ("low", "medium", "high")


def map_quality(quality: str, model: str) -> str:
    if quality not in QUALITY_TIERS:
        raise GenerationError(
            f"Unsupported quality '{quality}'. Use one of: {', '.join(QUALITY_TIERS)}.",
            category=CONTRACT,
        )
    return QUALITY_VALUES.get(model, {}).get(quality, quality)


def _first_image(envelope: dict) -> str:
    """Return data[0].b64_json of an images envelope or raise a schema error."""
    data = envelope.get("data") or []
    b64 = data[0].get("b64_json") if data and isinstance(data[0], dict) else None
    if not b64:
        raise GenerationError("No image data received from OpenAI.", category=SCHEMA)
    return b64


def _json_schema_format(name: str, schema: dict) -> dict:
    return {"format": {"type": "json_schema", "name": name, "schema": schema, "strict": True}}


class GenerationClient:
    """Stateless wrapper over a transport; only ``usage`` is shared between calls."""

    def __init__(self, transport: GenerationTransport, usage: UsageTracker):
        self.transport = transport
        self.usage = usage

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _record_usage(self, envelope: dict) -> bool:
        record = usage_from_response(envelope.get("usage"))
        if record is None:
            return False
        self.usage.add(record)
        return True

    def _structured_request(self, system: str, user: str, image_b64: str, name: str, schema: dict) -> dict:
        return {
            "model": settings.TEXT_MODEL,
            "input": [
                {"role": "system", "content": [{"type": "input_text", "text": system}]},
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": user},
                        {
                            "type": "input_image",
                            "image_url": f"data:image/png;base64,{image_b64}",
                            "detail": "high",
                        },
                    ],
                },
            ],
            "text": _json_schema_format(name, schema),
            "temperature": settings.STRUCTURED_TEMPERATURE,
            "max_output_tokens": settings.STRUCTURED_MAX_OUTPUT_TOKENS,
            "top_p": settings.STRUCTURED_TOP_P,
            "store": False,
        }

    # ------------------------------------------------------------------
    # Liveness check
    # ------------------------------------------------------------------
    def check_api_key(self, api_key: str) -> bool:
        """True only if the provider accepts ``api_key`` and lists models. Never raises."""
        if not (api_key or "").strip():
            return False
        try:
            models = self.transport.list_models(api_key)
        except Exception as e:
            logger.warning("API key check failed: %s", e)
            return False
        return isinstance(models, list) and len(models) > 0

    # ------------------------------------------------------------------
    # Packshot extraction
    # ------------------------------------------------------------------
    def extract_packshot(
        self,
        api_key: str,
        image: bytes | str,
        description: str,
        quality: str = "low",
    ) -> str:
        """Isolate the described item on a white background; returns base64 PNG."""
        model = settings.IMAGE_MODEL
        try:
            provider_quality = map_quality(quality, model)
            data = b64_to_bytes(image, "item photo") if isinstance(image, str) else image
            png = resize_image(data, label="item photo")
            prompt_text = prompts.build_packshot_prompt(description)
            envelope = self.transport.edit_images(
                api_key, prompt_text, [png], settings.OUTPUT_IMAGE_SIZE, provider_quality, model
            )
        except GenerationError:
            raise
        except Exception as e:
            raise to_generation_error(e, "Packshot extraction", allow_policy=True) from e

        if not self._record_usage(envelope):
            self.usage.add(estimate_image_usage(prompt_text, quality))

        result = _first_image(envelope)
        logger.info("Packshot generated for '%s' (%d chars)", description, len(result))
        return result

    # ------------------------------------------------------------------
    # Metadata analysis
    # ------------------------------------------------------------------
    def analyze_item_metadata(self, api_key: str, image_b64: str, categories: list[str]) -> ItemMetadata:
        """Name, category (one of ``categories``) and description of a wardrobe item."""
        if not categories:
            raise GenerationError("At least one category is required.", category=CONTRACT)

        schema = {
            "type": "object",
            "required": ["name", "category", "description"],
            "properties": {
                "name": {"type": "string"},
                "category": {"type": "string", "enum": list(categories)},
                "description": {"type": "string"},
            },
            "additionalProperties": False,
        }
        try:
            resized = resize_base64(image_b64, label="item photo")
            system, user = prompts.build_metadata_prompts(categories)
            envelope = self.transport.create_response(
                api_key, self._structured_request(system, user, resized, "item_metadata", schema)
            )
        except GenerationError:
            raise
        except Exception as e:
            raise to_generation_error(e, "Item analysis") from e

        self._record_usage(envelope)
        metadata = first_output(envelope, ItemMetadata)
        if metadata.category not in categories:
            raise GenerationError(
                f"OpenAI: category '{metadata.category}' is not one of the allowed categories",
                category=SCHEMA,
            )
        return metadata

    # ------------------------------------------------------------------
    # Profile photo validation
    # ------------------------------------------------------------------
    def validate_profile_photo(self, api_key: str, image_b64: str, photo_type: str) -> PhotoValidation:
        schema = {
            "type": "object",
            "required": ["is_valid", "reason"],
            "properties": {
                "is_valid": {"type": "boolean"},
                "reason": {"type": "string"},
            },
            "additionalProperties": False,
        }
        try:
            resized = resize_base64(image_b64, label="profile photo")
            body = self._structured_request(
                prompts.validation_system_prompt(),
                prompts.validation_requirement(photo_type),
                resized,
                "image_validation",
                schema,
            )
            envelope = self.transport.create_response(api_key, body)
        except GenerationError:
            raise
        except Exception as e:
            raise to_generation_error(e, "Photo validation") from e

        self._record_usage(envelope)
        return first_output(envelope, PhotoValidation)

    # ------------------------------------------------------------------
    # Composite try-on generation
    # ------------------------------------------------------------------
    def generate_composition(
        self,
        api_key: str,
        profile_photo_b64: str,
        item_images_b64: list[str],
        item_descriptions: list[str],
        quality: str = "low",
    ) -> str:
        """Render the person wearing every item; returns base64 PNG."""
        if len(item_images_b64) != len(item_descriptions):
            raise GenerationError(
                f"Got {len(item_images_b64)} item images but {len(item_descriptions)} descriptions.",
                category=CONTRACT,
            )

        model = settings.IMAGE_MODEL
        start_time = time.time()
        try:
            provider_quality = map_quality(quality, model)
            labelled = [(profile_photo_b64, "profile photo")] + [
                (b64, f"clothing item {i + 1}") for i, b64 in enumerate(item_images_b64)
            ]
            # map() yields in input order, so the base photo stays first
            with ThreadPoolExecutor(max_workers=4) as pool:
                pngs = list(pool.map(lambda pair: resize_image(b64_to_bytes(*pair), label=pair[1]), labelled))

            prompt_text = prompts.build_composition_prompt(item_descriptions)
            envelope = self.transport.edit_images(
                api_key, prompt_text, pngs, settings.OUTPUT_IMAGE_SIZE, provider_quality, model
            )
        except GenerationError:
            raise
        except Exception as e:
            raise to_generation_error(e, "Outfit composition") from e

        self._record_usage(envelope)
        result = _first_image(envelope)

        logger.info(
            "Composition with %d item(s) generated in %dms",
            len(item_images_b64),
            int((time.time() - start_time) * 1000),
        )
        return result

