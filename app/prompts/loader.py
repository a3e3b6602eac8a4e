"""
Prompt loader for versioned YAML prompt files.

Prompts live under a versioned directory, one subdirectory per domain:

    v1/
    └── characters/   # Character identification and profile building

Each YAML file maps prompt names either to a template string or to a
mapping with ``template`` and ``required_variables`` keys.

Usage:
    from app.prompts.loader import render_prompt

    rendered = render_prompt("prompt_identify_characters", novel_text="...")
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment, StrictUndefined, TemplateSyntaxError

logger = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).resolve().parent
_VERSION = "v1"

_DOMAIN_DIRS = [
    "characters",
]


@lru_cache(maxsize=1)
def _jinja_env() -> Environment:
    """Create Jinja2 environment for prompt rendering."""
    return Environment(
        undefined=StrictUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _read_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must be a mapping at top level")
    return data


def _template_of(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("template"), str):
        return value["template"]
    return None


@lru_cache(maxsize=1)
def _load_prompts() -> dict[str, Any]:
    """Load every prompt in the current version, failing fast on bad templates."""
    prompts: dict[str, Any] = {}
    version_dir = _PROMPTS_DIR / _VERSION

    for domain in _DOMAIN_DIRS:
        domain_dir = version_dir / domain
        if not domain_dir.exists():
            continue

        for yaml_file in sorted(domain_dir.glob("*.yaml")):
            data = _read_yaml(yaml_file)
            for key, value in data.items():
                template = _template_of(value)
                if template is None:
                    continue
                try:
                    _jinja_env().parse(template)
                except TemplateSyntaxError as e:
                    raise ValueError(f"Invalid Jinja2 template in {yaml_file}:{key}: {e}") from e
            prompts.update(data)

    return prompts


def clear_cache() -> None:
    """Drop cached prompt files so edits on disk are picked up."""
    _load_prompts.cache_clear()


def get_prompt(name: str) -> str:
    """
    Get a prompt template by name.

    Raises:
        KeyError: If prompt not found or not a string
    """
    template = _template_of(_load_prompts().get(name))
    if template is None:
        raise KeyError(f"Prompt '{name}' not found or not a string")
    return template


def list_prompts() -> list[str]:
    return list(_load_prompts().keys())


def check_required_variables(name: str, context: dict[str, Any]) -> list[str]:
    """Return the declared required variables missing from ``context``."""
    entry = _load_prompts().get(name)
    if not isinstance(entry, dict):
        return []
    required = entry.get("required_variables") or []
    return [v for v in required if v not in context]


def render_prompt(prompt_name: str, /, **context: Any) -> str:
    """
    Render a prompt template with the given context.

    Raises:
        KeyError: If the prompt does not exist
        ValueError: If declared required variables are missing
    """
    missing = check_required_variables(prompt_name, context)
    if missing:
        raise ValueError(f"Missing required variables for '{prompt_name}': {missing}")

    template = get_prompt(prompt_name)
    return _jinja_env().from_string(template).render(**context).strip()
