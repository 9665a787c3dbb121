"""Tests for prompt template loading and assembly."""

import pytest

from app.services.prompt import (
    build_composition_prompt,
    build_metadata_prompts,
    build_packshot_prompt,
    load_template,
    validation_requirement,
    validation_system_prompt,
)


def test_template_loads_correctly():
    """YAML template loads and has expected keys."""
    template = load_template("v1")
    assert template["version"] == "v1"
    for key in ("packshot", "metadata", "validation", "composition"):
        assert key in template


def test_template_has_all_rubrics():
    rubrics = load_template("v1")["validation"]["rubrics"]
    for photo_type in ("face", "torso", "full-body", "default"):
        assert rubrics[photo_type].strip(), f"Missing rubric: {photo_type}"


def test_missing_template_version():
    with pytest.raises(FileNotFoundError):
        load_template("v999")


def test_packshot_prompt_mentions_item():
    prompt = build_packshot_prompt("striped linen shirt")
    assert prompt.count("striped linen shirt") == 2
    assert "pure white background" in prompt


def test_metadata_prompt_lists_categories():
    system, user = build_metadata_prompts(["tops", "bottoms", "shoes"])
    assert "clothing items" in system
    assert "tops, bottoms, shoes" in user


def test_unknown_photo_type_falls_back_to_default_rubric():
    assert validation_requirement("side-profile") == validation_requirement("anything")
    assert validation_requirement("face") != validation_requirement("torso")
    assert "Leave reason empty" in validation_system_prompt()


def test_composition_prompt_enumerates_items():
    prompt = build_composition_prompt(["white sneakers", "", "wool coat"])
    assert "image 1" in prompt
    assert "- Image 2: white sneakers" in prompt
    assert "- Image 3: Item 2" in prompt
    assert "- Image 4: wool coat" in prompt
