import logging
import uuid

from app.core.metrics import track_gemini_call
from google import genai
from google.genai import types

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Custom Exception Classes for Graceful Error Handling
# ---------------------------------------------------------------------------


class GeminiError(Exception):
    """Base exception for Gemini-related errors."""

    def __init__(self, message: str, request_id: str | None = None, model: str | None = None):
        super().__init__(message)
        self.request_id = request_id
        self.model = model


class GeminiRateLimitError(GeminiError):
    """Raised when rate limit is exceeded."""

    pass


class GeminiContentFilterError(GeminiError):
    """Raised when content is blocked by safety filters."""

    def __init__(
        self,
        message: str,
        request_id: str | None = None,
        model: str | None = None,
        blocked_categories: list[str] | None = None,
    ):
        super().__init__(message, request_id, model)
        self.blocked_categories = blocked_categories or []


class GeminiTimeoutError(GeminiError):
    """Raised when request times out."""

    pass


class GeminiModelUnavailableError(GeminiError):
    """Raised when the model is unavailable."""

    pass


class GeminiEmptyResponseError(GeminiError):
    """Raised when a response carries no textual content."""

    pass


_ERROR_TYPES: dict[str, type[GeminiError]] = {
    "rate_limit": GeminiRateLimitError,
    "content_filter": GeminiContentFilterError,
    "timeout": GeminiTimeoutError,
    "model_unavailable": GeminiModelUnavailableError,
}


class GeminiClient:
    """Thin wrapper over ``genai.Client`` for structured JSON generation.

    Each call is a single request/response round trip. Failures are
    classified into ``GeminiError`` subclasses and raised to the caller;
    nothing is retried here.
    """

    def __init__(
        self,
        project: str | None,
        location: str | None,
        api_key: str | None,
        identify_model: str,
        detail_model: str,
    ):
        if not api_key and (not project or not location):
            raise RuntimeError(
                "Either GEMINI_API_KEY or both GOOGLE_CLOUD_PROJECT and GOOGLE_CLOUD_LOCATION must be configured"
            )

        self.identify_model = identify_model
        self.detail_model = detail_model

        self.last_request_id: str | None = None
        self.last_model: str | None = None
        self.last_usage: dict | None = None
        self.last_error_type: str | None = None

        if project and location:
            self._client = genai.Client(vertexai=True, project=project, location=location)
        else:
            self._client = genai.Client(api_key=api_key)

    def _classify_error(self, exc: Exception, error_text: str) -> str:
        """Classify an SDK/transport error by its message."""
        lowered = error_text.lower()
        if "RESOURCE_EXHAUSTED" in error_text or "429" in error_text:
            return "rate_limit"
        if "SAFETY" in error_text.upper() or "blocked" in lowered:
            return "content_filter"
        if "timeout" in lowered or "deadline" in lowered:
            return "timeout"
        if "unavailable" in lowered or "503" in error_text:
            return "model_unavailable"
        if "invalid" in lowered or "400" in error_text:
            return "invalid_request"
        return "unknown"

    def _check_response_safety(
        self,
        response: types.GenerateContentResponse,
        request_id: str,
        model_name: str,
    ) -> None:
        """Check if response was blocked by safety filters."""
        candidate = (response.candidates or [None])[0]
        if candidate is None:
            return

        finish_reason = getattr(candidate, "finish_reason", None)
        if finish_reason and "SAFETY" in str(finish_reason).upper():
            blocked_categories = []
            safety_ratings = getattr(candidate, "safety_ratings", None)
            if safety_ratings:
                for rating in safety_ratings:
                    if getattr(rating, "blocked", False):
                        category = getattr(rating, "category", "UNKNOWN")
                        blocked_categories.append(str(category))

            raise GeminiContentFilterError(
                f"Content blocked by safety filters: {blocked_categories}",
                request_id=request_id,
                model=model_name,
                blocked_categories=blocked_categories,
            )

    def _extract_text_from_response(
        self,
        response: types.GenerateContentResponse,
        request_id: str,
        model_name: str,
    ) -> str:
        candidate = (response.candidates or [None])[0]
        if candidate is None or not candidate.content or not candidate.content.parts:
            raise GeminiEmptyResponseError("Gemini returned empty content", request_id, model_name)

        texts: list[str] = []
        for part in candidate.content.parts:
            text = part.text
            if text:
                texts.append(text)

        if not texts:
            raise GeminiEmptyResponseError("Gemini returned no textual content", request_id, model_name)

        return "\n".join(texts).strip()

    def generate_json(
        self,
        prompt: str,
        response_schema: types.Schema,
        model: str,
        operation: str,
    ) -> str:
        """Request JSON output constrained by ``response_schema``.

        Args:
            prompt: Rendered prompt text
            response_schema: Schema the model must conform to
            model: Model name
            operation: Label used for metrics and logs

        Returns:
            The raw JSON text of the first candidate

        Raises:
            GeminiError: On failure (with specific subclass for error type)
        """
        request_id = str(uuid.uuid4())
        self.last_request_id = request_id
        self.last_model = model

        try:
            with track_gemini_call(operation):
                response = self._client.models.generate_content(
                    model=model,
                    contents=prompt,
                    config=types.GenerateContentConfig(
                        response_mime_type="application/json",
                        response_schema=response_schema,
                    ),
                )
        except Exception as exc:  # noqa: BLE001
            error_type = self._classify_error(exc, str(exc))
            self.last_error_type = error_type
            logger.warning(
                "gemini.%s failed request_id=%s model=%s type=%s error=%s",
                operation,
                request_id,
                model,
                error_type,
                repr(exc),
            )
            error_cls = _ERROR_TYPES.get(error_type, GeminiError)
            raise error_cls(
                f"Gemini {operation} failed: {exc!r}",
                request_id=request_id,
                model=model,
            ) from exc

        self.last_request_id = response.response_id or request_id
        self.last_error_type = None
        if response.usage_metadata:
            self.last_usage = response.usage_metadata.model_dump()
        else:
            self.last_usage = {"model": model}

        self._check_response_safety(response, request_id, model)
        return self._extract_text_from_response(response, request_id, model)
