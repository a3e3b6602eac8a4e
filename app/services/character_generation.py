"""
Remote character generation: name identification and profile building.

Both operations are a single Gemini round trip with a declared JSON
response schema. Identification degrades to an
empty list (the caller reports "no characters found"), while profile
building raises so the sequencer can skip that one character.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from google.genai import types
from pydantic import ValidationError

from app.core.exceptions import CharacterDetailError
from app.core.metrics import record_identification
from app.core.request_context import log_context
from app.prompts.loader import render_prompt
from app.services.json_parser import parse_json_text
from app.services.profile_store import CharacterDetail
from app.services.vertex_gemini import GeminiError

if TYPE_CHECKING:
    from app.services.vertex_gemini import GeminiClient

logger = logging.getLogger(__name__)

IDENTIFY_MAX_CHARS = 10_000
DETAIL_MAX_CHARS = 8_000

_STRING = types.Schema(type=types.Type.STRING)

NAMES_SCHEMA = types.Schema(type=types.Type.ARRAY, items=_STRING)

CHARACTER_DETAIL_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "name": _STRING,
        "genderAge": _STRING,
        "appearance": types.Schema(
            type=types.Type.OBJECT,
            properties={
                "faceAndSkin": _STRING,
                "features": _STRING,
                "hair": _STRING,
                "bodyType": _STRING,
                "clothing": _STRING,
            },
        ),
        "clothingVersions": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "title": _STRING,
                    "style": _STRING,
                    "main": _STRING,
                    "accessories": _STRING,
                    "shoes": _STRING,
                },
            ),
        ),
        "personalityKeywords": types.Schema(type=types.Type.ARRAY, items=_STRING),
        "aiPrompt": _STRING,
    },
    required=["name", "genderAge", "appearance", "clothingVersions", "personalityKeywords", "aiPrompt"],
)


class CharacterGenerationService:
    def __init__(
        self,
        gemini: GeminiClient,
        identify_max_chars: int = IDENTIFY_MAX_CHARS,
        detail_max_chars: int = DETAIL_MAX_CHARS,
    ):
        self._gemini = gemini
        self._identify_max_chars = identify_max_chars
        self._detail_max_chars = detail_max_chars

    def identify_characters(self, text: str) -> list[str]:
        """List the important character names in ``text``.

        Only the first ``identify_max_chars`` characters are sent. Request
        and parse failures are logged and reported as an empty list.
        """
        prompt = render_prompt(
            "prompt_identify_characters",
            novel_text=text[: self._identify_max_chars],
        )

        try:
            raw = self._gemini.generate_json(
                prompt,
                response_schema=NAMES_SCHEMA,
                model=self._gemini.identify_model,
                operation="identify_characters",
            )
        except GeminiError as exc:
            logger.error("character identification request failed: %s", exc)
            record_identification("request_error")
            return []

        parsed = parse_json_text(raw, expect=list)
        if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
            logger.error(
                "character identification returned unparseable output: %s",
                (raw or "")[:200],
            )
            record_identification("parse_error")
            return []

        names = [item.strip() for item in parsed if item.strip()]
        record_identification("ok" if names else "empty")
        logger.info("identified %d characters", len(names))
        return names

    def generate_character_detail(self, name: str, text: str) -> CharacterDetail:
        """Build the visual profile for one character.

        Raises:
            CharacterDetailError: On request failure, unparseable output or
                a response that does not match the profile schema
        """
        with log_context(character=name):
            prompt = render_prompt(
                "prompt_character_detail",
                name=name,
                novel_text=text[: self._detail_max_chars],
            )

            try:
                raw = self._gemini.generate_json(
                    prompt,
                    response_schema=CHARACTER_DETAIL_SCHEMA,
                    model=self._gemini.detail_model,
                    operation="generate_character_detail",
                )
            except GeminiError as exc:
                raise CharacterDetailError(name, str(exc)) from exc

            parsed = parse_json_text(raw, expect=dict)
            if not isinstance(parsed, dict):
                raise CharacterDetailError(name, "response is not a JSON object")

            try:
                detail = CharacterDetail.model_validate(parsed)
            except ValidationError as exc:
                raise CharacterDetailError(name, f"response does not match profile schema: {exc}") from exc

            logger.info("built character profile")
            return detail
