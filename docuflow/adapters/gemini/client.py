"""
Gemini Client - Unified Google Gemini API client.

This is the SINGLE source of truth for all Gemini API interactions.

Authentication:
- An explicit API key (``GOOGLE_API_KEY``) when one is configured
- Otherwise OAuth/ADC (Application Default Credentials); run
  `gcloud auth application-default login` once to authenticate

Features:
- Async operations (blocking SDK calls run in a worker thread)
- Inline media parts for page images and whole documents
- Automatic retries with exponential backoff
- Tolerant JSON parsing for structured responses
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from docuflow.config import ErrorCode, LLMError

from .models import GeminiConfig, GeminiResponse, MediaPart

logger = logging.getLogger(__name__)

__all__ = ["GeminiClient", "RateLimitError", "GeminiAPIError"]


class GeminiAPIError(LLMError):
    """Gemini API error."""

    pass


class RateLimitError(GeminiAPIError):
    """Rate limit exceeded (HTTP 429 / RESOURCE_EXHAUSTED)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details, code=ErrorCode.LLM_RATE_LIMITED)


class GeminiClient:
    """
    Unified Gemini API client.

    Example:
        >>> client = GeminiClient()  # Uses OAuth/ADC automatically
        >>> response = await client.generate("Summarise this page")
        >>> print(response.text)

        >>> # With a page image
        >>> image = MediaPart(mime_type="image/jpeg", data=jpeg_bytes)
        >>> response = await client.generate_with_media("Extract the text", [image])
    """

    def __init__(
        self,
        config: GeminiConfig | None = None,
        api_key: str | None = None,
    ) -> None:
        """
        Initialize Gemini client.

        Args:
            config: Client configuration. Uses defaults if None.
            api_key: Google AI API key. ADC is used when omitted.
        """
        self.config = config or GeminiConfig()

        if api_key:
            genai.configure(api_key=api_key)

        # Model instance (lazy loaded)
        self._model: genai.GenerativeModel | None = None

        logger.info(
            "GeminiClient initialized (%s mode): model=%s",
            "api-key" if api_key else "OAuth/ADC",
            self.config.model,
        )

    def _get_model(self) -> genai.GenerativeModel:
        """Get or create model instance."""
        if self._model is None:
            generation_config: dict[str, Any] = {
                "temperature": self.config.temperature,
                "max_output_tokens": self.config.max_output_tokens,
            }
            self._model = genai.GenerativeModel(
                model_name=self.config.model,
                generation_config=generation_config,
            )
        return self._model

    async def generate(
        self,
        prompt: str,
        system_instruction: str | None = None,
        response_mime_type: str = "text/plain",
    ) -> GeminiResponse:
        """
        Generate text from prompt.

        Args:
            prompt: User prompt
            system_instruction: Optional system instruction
            response_mime_type: Response format ("text/plain" or "application/json")

        Returns:
            GeminiResponse with generated text

        Raises:
            RateLimitError: Still rate limited after retries
            GeminiAPIError: API call failed after retries
        """
        return await self.generate_with_media(
            prompt,
            media=[],
            system_instruction=system_instruction,
            response_mime_type=response_mime_type,
        )

    async def generate_with_media(
        self,
        prompt: str,
        media: list[MediaPart],
        system_instruction: str | None = None,
        response_mime_type: str = "text/plain",
    ) -> GeminiResponse:
        """
        Generate text from a prompt plus inline media parts.

        Media parts are sent before the prompt, in the order given.

        Args:
            prompt: User prompt
            media: Images or documents to attach
            system_instruction: Optional system instruction
            response_mime_type: Response format ("text/plain" or "application/json")

        Returns:
            GeminiResponse with generated text
        """
        contents = self._build_contents(prompt, media, system_instruction)

        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type((RateLimitError, GeminiAPIError, ConnectionError)),
            stop=stop_after_attempt(self.config.max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=30),
            reraise=True,
        ):
            with attempt:
                return await self._generate_once(contents, response_mime_type)

        raise GeminiAPIError("Gemini API error: no attempts were made")

    async def _generate_once(
        self,
        contents: list[dict[str, Any]],
        response_mime_type: str,
    ) -> GeminiResponse:
        """Single generate_content round trip with error classification."""
        try:
            model = self._get_model()

            response = await asyncio.to_thread(
                model.generate_content,
                contents,
                generation_config={"response_mime_type": response_mime_type},
                request_options={"timeout": self.config.timeout_seconds},
            )

            usage = getattr(response, "usage_metadata", None)
            prompt_tokens = getattr(usage, "prompt_token_count", 0) if usage else 0
            completion_tokens = (
                getattr(usage, "candidates_token_count", 0) if usage else 0
            )

            return GeminiResponse(
                text=_response_text(response),
                model=self.config.model,
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            )

        except Exception as e:
            if _is_rate_limit(e):
                raise RateLimitError(f"Rate limit exceeded: {e}") from e
            raise GeminiAPIError(f"Gemini API error: {e}") from e

    async def generate_json(
        self,
        prompt: str,
        system_instruction: str | None = None,
    ) -> dict[str, Any]:
        """
        Generate JSON response.

        Args:
            prompt: User prompt
            system_instruction: Optional system instruction

        Returns:
            Parsed JSON dict
        """
        return await self.generate_json_with_media(
            prompt, media=[], system_instruction=system_instruction
        )

    async def generate_json_with_media(
        self,
        prompt: str,
        media: list[MediaPart],
        system_instruction: str | None = None,
    ) -> dict[str, Any]:
        """
        Generate a JSON response from a prompt plus inline media parts.

        Raises:
            json.JSONDecodeError: Response held no parseable JSON object
        """
        response = await self.generate_with_media(
            prompt,
            media=media,
            system_instruction=system_instruction,
            response_mime_type="application/json",
        )
        return parse_json_object(response.text)

    def _build_contents(
        self,
        prompt: str,
        media: list[MediaPart],
        system_instruction: str | None,
    ) -> list[dict[str, Any]]:
        contents: list[dict[str, Any]] = []
        if system_instruction:
            contents.append({"role": "user", "parts": [system_instruction]})
            contents.append({"role": "model", "parts": ["Understood."]})
        parts: list[Any] = [part.to_part() for part in media]
        parts.append(prompt)
        contents.append({"role": "user", "parts": parts})
        return contents


def parse_json_object(text: str) -> dict[str, Any]:
    """
    Parse a JSON object, tolerating prose or code fences around it.

    Raises:
        json.JSONDecodeError: No JSON object could be recovered
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}") + 1
        if start >= 0 and end > start:
            return json.loads(text[start:end])
        raise


def _is_rate_limit(error: Exception) -> bool:
    if isinstance(error, google_exceptions.ResourceExhausted):
        return True
    message = str(error).lower()
    return "429" in message or "resource exhausted" in message or "resource_exhausted" in message


def _response_text(response: Any) -> str:
    # .text raises ValueError when the candidate was blocked or empty
    try:
        return response.text or ""
    except ValueError:
        logger.warning("Gemini response carried no text part")
        return ""
