"""
Client for an OpenAI-compatible chat completions endpoint.

Works against OpenAI itself, Azure or a local server exposing the same API.
"""
from typing import Optional

import httpx

from vibe.core.config import settings
from vibe.logging import get_logger

logger = get_logger(__name__)


class AIServiceError(Exception):
    """Any failure talking to the AI provider; the message is user-facing."""


class AIClient:
    def __init__(self, api_key: str = None, api_url: str = None, model: str = None, timeout: float = None):
        self.api_key = api_key if api_key is not None else settings.AI_API_KEY
        self.api_url = api_url or settings.AI_API_URL
        self.model = model or settings.AI_MODEL
        self.timeout = timeout or settings.AI_TIMEOUT_SECONDS

    async def complete(self, prompt: str, system_prompt: Optional[str] = None, max_tokens: int = 200) -> str:
        if not self.api_key:
            raise AIServiceError("AI API key not configured. Set AI_API_KEY in your environment.")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        headers = {"Authorization": f"Bearer {self.api_key}"}
        data = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": 0.5,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.api_url, headers=headers, json=data)
        except httpx.HTTPError as e:
            logger.error("AI API connection error", error=str(e))
            raise AIServiceError("Failed to connect to AI service. Check your network connection.") from e

        if response.status_code != 200:
            raise AIServiceError(self._error_message(response.status_code))

        try:
            return response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("Unexpected AI response format", exc_info=False, body=response.text[:500])
            raise AIServiceError("Invalid AI response format") from e

    def _error_message(self, status_code: int) -> str:
        if status_code == 401:
            logger.error("AI API authentication failed", exc_info=False)
            return "AI authentication failed. Check your API key."
        if status_code == 429:
            logger.warning("AI API rate limit exceeded")
            return "AI rate limit exceeded. Please try again later."
        if status_code in (500, 503):
            logger.error("AI API server error", exc_info=False, status_code=status_code)
            return "AI service temporarily unavailable. Please try again."
        logger.error("AI API error", exc_info=False, status_code=status_code)
        return "AI request failed. Please try again."


def get_ai_client() -> AIClient:
    """FastAPI dependency; overridden in tests"""
    return AIClient()
