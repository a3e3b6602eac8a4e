"""Tests for character identification and profile generation."""

import json
from unittest.mock import MagicMock

import pytest

from app.core.exceptions import CharacterDetailError
from app.services.character_generation import (
    CHARACTER_DETAIL_SCHEMA,
    NAMES_SCHEMA,
    CharacterGenerationService,
)
from app.services.vertex_gemini import GeminiError, GeminiRateLimitError

from tests.helpers import make_detail


@pytest.fixture
def gemini():
    client = MagicMock()
    client.identify_model = "identify-model"
    client.detail_model = "detail-model"
    return client


def _prompt_of(gemini) -> str:
    return gemini.generate_json.call_args.args[0]


class TestIdentifyCharacters:
    def test_returns_names_in_order(self, gemini):
        gemini.generate_json.return_value = '["张三", "李四", "王五"]'
        service = CharacterGenerationService(gemini)

        assert service.identify_characters("小说内容") == ["张三", "李四", "王五"]

        kwargs = gemini.generate_json.call_args.kwargs
        assert kwargs["response_schema"] is NAMES_SCHEMA
        assert kwargs["model"] == "identify-model"

    def test_sends_only_the_first_ten_thousand_characters(self, gemini):
        gemini.generate_json.return_value = "[]"
        service = CharacterGenerationService(gemini)
        text = "a" * 10_000 + "TAIL_MARKER"

        service.identify_characters(text)

        prompt = _prompt_of(gemini)
        assert "a" * 10_000 in prompt
        assert "TAIL_MARKER" not in prompt

    def test_limit_is_configurable(self, gemini):
        gemini.generate_json.return_value = "[]"
        service = CharacterGenerationService(gemini, identify_max_chars=5)

        service.identify_characters("12345678")

        assert "12345" in _prompt_of(gemini)
        assert "678" not in _prompt_of(gemini)

    def test_request_failure_returns_empty_list(self, gemini):
        gemini.generate_json.side_effect = GeminiRateLimitError("429", request_id="r1", model="m")
        service = CharacterGenerationService(gemini)

        assert service.identify_characters("text") == []

    def test_unparseable_response_returns_empty_list(self, gemini):
        gemini.generate_json.return_value = "I could not find any characters."
        service = CharacterGenerationService(gemini)

        assert service.identify_characters("text") == []

    def test_non_string_items_return_empty_list(self, gemini):
        gemini.generate_json.return_value = '[{"name": "Alice"}]'
        service = CharacterGenerationService(gemini)

        assert service.identify_characters("text") == []

    def test_fenced_output_is_accepted(self, gemini):
        gemini.generate_json.return_value = '```json\n["Alice", "Bob",]\n```'
        service = CharacterGenerationService(gemini)

        assert service.identify_characters("text") == ["Alice", "Bob"]

    def test_blank_names_are_dropped(self, gemini):
        gemini.generate_json.return_value = '[" Alice ", "", "  "]'
        service = CharacterGenerationService(gemini)

        assert service.identify_characters("text") == ["Alice"]


class TestGenerateCharacterDetail:
    def test_parses_camel_case_response(self, gemini):
        expected = make_detail("Alice")
        gemini.generate_json.return_value = json.dumps(expected.model_dump(by_alias=True))
        service = CharacterGenerationService(gemini)

        detail = service.generate_character_detail("Alice", "novel text")

        assert detail == expected
        kwargs = gemini.generate_json.call_args.kwargs
        assert kwargs["response_schema"] is CHARACTER_DETAIL_SCHEMA
        assert kwargs["model"] == "detail-model"
        assert "Alice" in _prompt_of(gemini)

    def test_sends_only_the_first_eight_thousand_characters(self, gemini):
        gemini.generate_json.return_value = json.dumps(make_detail("Alice").model_dump(by_alias=True))
        service = CharacterGenerationService(gemini)

        service.generate_character_detail("Alice", "b" * 8_000 + "TAIL_MARKER")

        prompt = _prompt_of(gemini)
        assert "b" * 8_000 in prompt
        assert "TAIL_MARKER" not in prompt

    def test_missing_required_key_raises(self, gemini):
        payload = make_detail("Alice").model_dump(by_alias=True)
        del payload["aiPrompt"]
        gemini.generate_json.return_value = json.dumps(payload)
        service = CharacterGenerationService(gemini)

        with pytest.raises(CharacterDetailError) as exc_info:
            service.generate_character_detail("Alice", "text")
        assert exc_info.value.name == "Alice"

    def test_unparseable_response_raises(self, gemini):
        gemini.generate_json.return_value = "not json at all"
        service = CharacterGenerationService(gemini)

        with pytest.raises(CharacterDetailError):
            service.generate_character_detail("Alice", "text")

    def test_array_response_raises(self, gemini):
        gemini.generate_json.return_value = '["Alice"]'
        service = CharacterGenerationService(gemini)

        with pytest.raises(CharacterDetailError):
            service.generate_character_detail("Alice", "text")

    def test_request_failure_propagates_as_detail_error(self, gemini):
        gemini.generate_json.side_effect = GeminiError("boom")
        service = CharacterGenerationService(gemini)

        with pytest.raises(CharacterDetailError) as exc_info:
            service.generate_character_detail("Bob", "text")
        assert isinstance(exc_info.value.__cause__, GeminiError)
