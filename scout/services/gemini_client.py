"""
Gemini API client for text generation.
Thin async wrapper over the generateContent REST endpoint: one request in,
the first candidate's text out. No retries; failures surface to the caller.
"""

from typing import Any

import httpx

from scout.config import settings
from scout.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class GeminiError(Exception):
    """Raised when the Gemini API call fails or returns an unusable payload."""

    def __init__(self, message: str, status_code: int = 500, response_data: dict | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data or {}


class GeminiConfigurationError(GeminiError):
    """Raised when no usable API key is configured."""

    def __init__(self, message: str = "GEMINI_API_KEY is not configured"):
        super().__init__(message, status_code=500)


class GeminiClient:
    """
    Client for the Gemini generateContent endpoint.

    The API key travels in the x-goog-api-key header so it never shows up in
    URLs or access logs.
    """

    def __init__(self, http_client: httpx.AsyncClient | None = None):
        self._client = http_client or self._create_client()

    def _create_client(self) -> httpx.AsyncClient:
        timeout = httpx.Timeout(settings.GEMINI_TIMEOUT_SECONDS)
        limits = httpx.Limits(max_keepalive_connections=5, max_connections=10)
        return httpx.AsyncClient(timeout=timeout, limits=limits)

    async def close(self) -> None:
        await self._client.aclose()

    def _get_headers(self) -> dict:
        if not settings.gemini_configured():
            raise GeminiConfigurationError()
        return {
            "x-goog-api-key": settings.GEMINI_API_KEY,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    @staticmethod
    def build_request_body(
        system_instruction: str, prompt: str, response_schema: dict[str, Any]
    ) -> dict[str, Any]:
        return {
            "system_instruction": {"parts": [{"text": system_instruction}]},
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": settings.GEMINI_TEMPERATURE,
                "maxOutputTokens": settings.GEMINI_MAX_OUTPUT_TOKENS,
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            },
        }

    @staticmethod
    def extract_text(data: dict[str, Any]) -> str:
        """
        Pull the first candidate's first text part out of a response body.

        Raises:
            GeminiError: If the payload has no candidates or no parts
        """
        if not isinstance(data, dict):
            raise GeminiError("Invalid response format from Gemini")

        candidates = data.get("candidates")
        if not candidates or not isinstance(candidates, list):
            raise GeminiError("No response from Gemini", response_data=data)

        first = candidates[0]
        content = first.get("content") if isinstance(first, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not parts or not isinstance(parts, list) or not isinstance(parts[0], dict):
            raise GeminiError("Invalid response structure from Gemini", response_data=data)

        text = parts[0].get("text")
        return text if isinstance(text, str) else ""

    async def generate(
        self, system_instruction: str, prompt: str, response_schema: dict[str, Any]
    ) -> str:
        """
        Run one generateContent call.

        Args:
            system_instruction: System prompt
            prompt: User prompt
            response_schema: JSON schema the model is asked to follow

        Returns:
            str: Raw text of the first candidate (usually a JSON document)

        Raises:
            GeminiConfigurationError: If the API key is missing
            GeminiError: On transport errors, non-2xx responses or malformed payloads
        """
        headers = self._get_headers()
        body = self.build_request_body(system_instruction, prompt, response_schema)

        try:
            response = await self._client.post(
                settings.gemini_generate_url(), headers=headers, json=body
            )
        except httpx.RequestError as e:
            logger.error("Gemini request failed", error=str(e), model=settings.GEMINI_MODEL)
            raise GeminiError(f"Gemini request failed: {e}", status_code=502) from e

        if not response.is_success:
            logger.error(
                "Gemini API error",
                status_code=response.status_code,
                response_text=response.text[:200] if response.text else "",
            )
            raise GeminiError(
                f"Gemini API error: {response.status_code}", status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error("Failed to parse Gemini response", error=str(e))
            raise GeminiError(f"Invalid response format: {e}") from e

        text = self.extract_text(data)
        logger.debug("Gemini response received", model=settings.GEMINI_MODEL, text_length=len(text))
        return text


_gemini_client: GeminiClient | None = None


def get_gemini_client() -> GeminiClient:
    """Shared client, created on first use."""
    global _gemini_client
    if _gemini_client is None:
        _gemini_client = GeminiClient()
    return _gemini_client


async def close_gemini_client() -> None:
    global _gemini_client
    if _gemini_client is not None:
        await _gemini_client.close()
        _gemini_client = None
