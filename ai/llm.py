"""Thin async wrapper over OpenAI chat completions returning JSON objects.

Every analyzer talks to the model through ``LLMClient.complete_json`` so that
tests can substitute a fake with the same coroutine signature.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from darpan.config import settings

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class LLMError(Exception):
    """Raised when the model call itself fails (network, auth, quota, config)."""
    pass


class LLMResponseError(Exception):
    """Raised when the model answered but the content is not a JSON object."""
    pass


@dataclass
class Completion:
    """Raw model answer plus token accounting."""
    content: str
    tokens_used: int = 0


class LLMClient:
    """OpenAI chat-completions client constrained to JSON-object responses."""

    def __init__(self, api_key: str | None = None, model: str | None = None, timeout: float | None = None) -> None:
        self.model = model or settings.openai.model
        try:
            self._client = AsyncOpenAI(
                api_key=api_key or settings.openai.api_key,
                timeout=timeout or settings.openai.request_timeout,
                max_retries=0,
            )
        except OpenAIError as e:
            # Missing API key surfaces here rather than on first call
            raise LLMError(f"OpenAI client could not be configured: {e}") from e

    async def complete_json(
        self,
        *,
        system: str,
        prompt: str,
        model: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> Completion:
        """Run one chat completion with ``response_format = json_object``.

        Raises:
            LLMError: If the API call fails or returns no content
        """
        model_name = model or self.model
        logger.info(f"Calling {model_name} (max_tokens={max_tokens}, temperature={temperature})")
        try:
            response = await self._client.chat.completions.create(
                model=model_name,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            raise LLMError(f"OpenAI request failed: {e}") from e

        if not response.choices:
            raise LLMError("OpenAI returned no choices")
        content = response.choices[0].message.content or ""
        tokens = response.usage.total_tokens if response.usage else 0
        logger.info(f"{model_name} responded with {len(content)} characters, {tokens} tokens")
        return Completion(content=content, tokens_used=tokens)


def parse_json_content(content: str) -> dict[str, Any]:
    """Decode model output into a dict, tolerating markdown code fences.

    Raises:
        LLMResponseError: If the content is not a JSON object
    """
    cleaned = _CODE_FENCE.sub("", (content or "").strip())
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"Model returned invalid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise LLMResponseError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


@lru_cache(maxsize=1)
def get_llm_client() -> LLMClient:
    """Shared process-wide client."""
    return LLMClient()


def provide_llm_client() -> LLMClient | None:
    """FastAPI dependency: ``None`` when the client cannot be configured.

    Analyzers treat ``None`` as "build it yourself" and turn the resulting
    ``LLMError`` into their failure placeholder instead of a 500.
    """
    try:
        return get_llm_client()
    except LLMError as e:
        logger.warning(f"LLM client unavailable: {e}")
        return None
