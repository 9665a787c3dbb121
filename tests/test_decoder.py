"""Tests for structured-output decoding."""

import pytest

from app.schemas.tryon import PhotoValidation
from app.services.decoder import first_output
from app.services.errors import SCHEMA, GenerationError

from fakes import output_envelope


def test_valid_envelope_is_parsed():
    assert first_output(output_envelope({"a": 1})) == {"a": 1}


def test_valid_envelope_into_model():
    result = first_output(output_envelope({"is_valid": False, "reason": "blurry"}), PhotoValidation)
    assert result == PhotoValidation(is_valid=False, reason="blurry")


@pytest.mark.parametrize(
    "envelope",
    [
        output_envelope({"a": 1}, content_type="refusal"),
        output_envelope(""),
        {"output": []},
        {"output": [{"content": []}]},
        {},
        {"output": "oops"},
    ],
)
def test_malformed_envelope_is_schema_error(envelope):
    with pytest.raises(GenerationError) as exc_info:
        first_output(envelope)
    assert exc_info.value.category == SCHEMA


def test_invalid_json_is_schema_error():
    with pytest.raises(GenerationError) as exc_info:
        first_output(output_envelope("{not json"))
    assert exc_info.value.category == SCHEMA


def test_shape_mismatch_is_schema_error():
    with pytest.raises(GenerationError) as exc_info:
        first_output(output_envelope({"is_valid": "maybe"}), PhotoValidation)
    assert exc_info.value.category == SCHEMA
