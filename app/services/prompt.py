"""Prompt template loading and assembly service."""

from pathlib import Path

import yaml

from app.config import settings

# Prompt templates directory
PROMPTS_DIR = Path(__file__).resolve().parent.parent.parent / "prompts"

# Cache loaded templates
_template_cache: dict[str, dict] = {}


def load_template(version: str | None = None) -> dict:
    """Load a prompt template YAML file by version."""
    version = version or settings.PROMPT_TEMPLATE_VERSION
    if version in _template_cache:
        return _template_cache[version]

    filename = version.replace(".", "_") + ".yaml"
    filepath = PROMPTS_DIR / filename

    if not filepath.exists():
        raise FileNotFoundError(f"Prompt template not found: {filepath}")

    with open(filepath, "r", encoding="utf-8") as f:
        template = yaml.safe_load(f)

    _template_cache[version] = template
    return template


def build_packshot_prompt(description: str, version: str | None = None) -> str:
    template = load_template(version)
    return template["packshot"].format(description=description).strip()


def build_metadata_prompts(categories: list[str], version: str | None = None) -> tuple[str, str]:
    """Return (system, user) prompts for wardrobe item analysis."""
    template = load_template(version)["metadata"]
    user = template["user"].format(categories=", ".join(categories)).strip()
    return template["system"].strip(), user


def validation_system_prompt(version: str | None = None) -> str:
    return load_template(version)["validation"]["system"].strip()


def validation_requirement(photo_type: str, version: str | None = None) -> str:
    """Rubric for ``photo_type`` (face / torso / full-body), else the default one."""
    rubrics = load_template(version)["validation"]["rubrics"]
    return rubrics.get(photo_type, rubrics["default"]).strip()


def build_composition_prompt(descriptions: list[str], version: str | None = None) -> str:
    """Prompt for a multi-image try-on; item images are numbered from 2."""
    template = load_template(version)["composition"]
    lines = [
        template["item"].format(index=i + 2, description=desc or f"Item {i + 1}")
        for i, desc in enumerate(descriptions)
    ]
    items = "\n".join(lines)
    return f"""{template["intro"].strip()}

ITEMS:
{items}

{template["rules"].strip()}"""
