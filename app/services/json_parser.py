import json
import logging
import re

from app.core.metrics import increment_json_parse_failure

logger = logging.getLogger(__name__)


def _strip_markdown_fences(text: str) -> str:
    """Remove markdown code fences from LLM output."""
    patterns = [
        r"```json\s*\n?(.*?)\n?```",
        r"```\s*\n?(.*?)\n?```",
    ]
    for pattern in patterns:
        match = re.search(pattern, text, re.DOTALL | re.IGNORECASE)
        if match:
            return match.group(1).strip()
    return text


def _clean_json_text(text: str) -> str:
    """Clean common LLM JSON output issues."""
    cleaned = text.strip()
    cleaned = _strip_markdown_fences(cleaned)

    lines = cleaned.split("\n")

    start_idx = 0
    for i, line in enumerate(lines):
        stripped = line.strip()
        if stripped.startswith("{") or stripped.startswith("["):
            start_idx = i
            break

    end_idx = len(lines) - 1
    for i in range(len(lines) - 1, -1, -1):
        stripped = lines[i].strip()
        if stripped.endswith("}") or stripped.endswith("]"):
            end_idx = i
            break

    cleaned = "\n".join(lines[start_idx : end_idx + 1])

    cleaned = re.sub(r",\s*([}\]])", r"\1", cleaned)

    return cleaned.strip()


def _extract_bracketed(text: str, opening: str, closing: str) -> str | None:
    """Extract the outermost bracketed JSON value using bracket matching."""
    start = text.find(opening)
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape_next = False

    for i, char in enumerate(text[start:], start):
        if escape_next:
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == opening:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return text[start : i + 1]

    return None


def _extract_json_object(text: str) -> str | None:
    return _extract_bracketed(text, "{", "}")


def _extract_json_array(text: str) -> str | None:
    return _extract_bracketed(text, "[", "]")


def parse_json_text(text: str | None, *, expect: type = object) -> dict | list | None:
    """
    Multi-tier JSON extraction.

    Tries the raw text first, then a cleaned variant, then the outermost
    object or array found by bracket matching. ``expect`` (``dict`` or
    ``list``) decides which bracket tier is tried first. Returns None when
    every tier fails.
    """
    if not text:
        increment_json_parse_failure("empty")
        return None

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        increment_json_parse_failure("direct")

    cleaned_text = _clean_json_text(text)
    try:
        return json.loads(cleaned_text)
    except json.JSONDecodeError:
        increment_json_parse_failure("cleaned")

    extractors = [("object", _extract_json_object), ("array", _extract_json_array)]
    if expect is list:
        extractors.reverse()

    for tier, extractor in extractors:
        candidate = extractor(text)
        if not candidate:
            continue
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            increment_json_parse_failure(tier)

    logger.warning(
        "All JSON parsing methods failed. Text preview: %s",
        text[:300],
    )
    return None
