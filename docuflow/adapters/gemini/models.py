"""
Gemini Models - Request/Response types for Gemini API.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from docuflow.config import Settings


class GeminiConfig(BaseModel):
    """Configuration for Gemini client."""

    model: str = Field(default="gemini-3-flash-preview")
    temperature: float = Field(default=1.0, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=8192)
    timeout_seconds: int = Field(default=300)
    max_retries: int = Field(default=3, ge=1)

    model_config = {"frozen": True}

    @classmethod
    def for_model(cls, model: str, settings: Settings) -> "GeminiConfig":
        """Build a config for ``model`` using the shared settings."""
        return cls(
            model=model,
            temperature=settings.gemini_temperature,
            timeout_seconds=settings.gemini_timeout_seconds,
            max_retries=settings.gemini_max_retries,
        )


class MediaPart(BaseModel):
    """Inline binary content (page image, PDF) sent alongside a prompt."""

    mime_type: str
    data: bytes

    model_config = {"frozen": True}

    def to_part(self) -> dict[str, object]:
        """Convert to the inline blob shape accepted by ``generate_content``."""
        return {"mime_type": self.mime_type, "data": self.data}


class GeminiResponse(BaseModel):
    """Generic Gemini API response."""

    text: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
