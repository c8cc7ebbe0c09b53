"""
Gemini Adapter - Unified Google Gemini API client.

This is the ONLY place that calls the Gemini API.
Extraction and evaluation both go through this adapter.
"""

from .client import GeminiAPIError, GeminiClient, RateLimitError, parse_json_object
from .models import GeminiConfig, GeminiResponse, MediaPart

__all__ = [
    "GeminiClient",
    "GeminiConfig",
    "GeminiResponse",
    "MediaPart",
    "GeminiAPIError",
    "RateLimitError",
    "parse_json_object",
]
