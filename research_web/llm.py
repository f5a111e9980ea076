"""
Client for the site-analysis model.
Calls Groq's chat completions API through the official `groq` SDK in JSON mode.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx
from groq import APIConnectionError, APIError, APIStatusError, APITimeoutError, AsyncGroq

from .errors import ConfigError, ModelError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.groq.com"
DEFAULT_MODEL = "llama-3.1-70b-versatile"
DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TIMEOUT_S = 60.0


def _extract_content(completion: Any) -> str | None:
    try:
        content = completion.choices[0].message.content
    except (AttributeError, IndexError, KeyError, TypeError):
        return None
    return content if isinstance(content, str) and content.strip() else None


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_model_content(content: str) -> Any:
    try:
        return json.loads(_strip_code_fence(content))
    except json.JSONDecodeError as e:
        raise ModelError(f"Malformed model output: {e}") from e


class ModelClient:
    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_s = timeout_s
        # Without a key there is no client at all, so the SDK never falls back
        # to a key from somewhere else.
        self._client: AsyncGroq | None = None
        if api_key:
            self._client = AsyncGroq(
                api_key=api_key,
                base_url=base_url,
                timeout=timeout_s,
                max_retries=0,
                http_client=http_client,
            )

    async def complete_json(self, messages: list[dict[str, str]]) -> Any:
        """Send the prompt and return the model's answer parsed as JSON."""
        if self._client is None:
            raise ConfigError("GROQ_API_KEY is not configured; refusing to call the model API")

        try:
            completion = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                    response_format={"type": "json_object"},
                ),
                timeout=self.timeout_s,
            )
        except (asyncio.TimeoutError, APITimeoutError):
            raise ModelError(f"Model API timed out after {self.timeout_s:g}s") from None
        except APIStatusError as e:
            raise ModelError(
                f"Model API error: {e.status_code} {e.response.reason_phrase} {e.response.text}".rstrip()
            ) from e
        except APIConnectionError as e:
            raise ModelError(f"Model API request failed: {e.__cause__ or e}") from e
        except APIError as e:
            raise ModelError(f"Model API returned an unreadable response: {e}") from e

        content = _extract_content(completion)
        if content is None:
            raise ModelError("Model API returned no content")

        logger.debug("model %s returned %d chars", self.model, len(content))
        return parse_model_content(content)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
