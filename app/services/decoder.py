"""Extract the structured JSON payload from a responses-API envelope."""

import json
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from app.services.errors import SCHEMA, GenerationError

T = TypeVar("T", bound=BaseModel)


def first_output_text(envelope: dict) -> str:
    """Return the text of ``output[0].content[0]`` or raise a schema error."""
    try:
        content = envelope["output"][0]["content"][0]
    except (KeyError, IndexError, TypeError):
        content = None

    if not isinstance(content, dict) or content.get("type") != "output_text" or not content.get("text"):
        raise GenerationError("OpenAI: invalid response structure", category=SCHEMA)
    return content["text"]


def first_output(envelope: dict, model: type[T] | None = None) -> T | Any:
    """Parse the first output text as JSON, optionally validating into ``model``."""
    text = first_output_text(envelope)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise GenerationError(f"OpenAI: response is not valid JSON ({e.msg})", category=SCHEMA) from e

    if model is None:
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise GenerationError(
            f"OpenAI: response does not match {model.__name__} schema", category=SCHEMA
        ) from e
