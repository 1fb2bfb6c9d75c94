"""
Generative-service client using Gemini, Claude or OpenAI.
Handles provider selection, the single-shot text call, and the
fence-stripping / JSON-object parsing shared by the outline and article steps.
"""
import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import anthropic
import requests

from articlr.config import (
    ANTHROPIC_API_KEY,
    CLAUDE_MODEL,
    GEMINI_API_KEY,
    GEMINI_MODEL,
    LLM_MAX_TOKENS,
    LLM_PROVIDER,
    LLM_TIMEOUT,
    OPENAI_API_KEY,
    OPENAI_MODEL,
)
from articlr.errors import LLMConfigurationError, LLMError

logger = logging.getLogger(__name__)

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
OPENAI_ENDPOINT = "https://api.openai.com/v1/chat/completions"

_FENCE_RE = re.compile(r"```(?:json)?", re.I)


@dataclass(frozen=True)
class ParseFailure:
    reason: str
    raw: str


def strip_code_fences(text: str) -> str:
    """Remove Markdown code-fence markers wrapping a JSON reply."""
    return _FENCE_RE.sub("", text or "").strip()


def parse_json_object(text: str) -> Union[Dict[str, Any], ParseFailure]:
    """Strip fences and parse; anything but a JSON object is a failure."""
    cleaned = strip_code_fences(text)
    if not cleaned:
        return ParseFailure("empty response", text or "")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        return ParseFailure(f"invalid JSON: {exc}", text)
    if not isinstance(data, dict):
        return ParseFailure(f"expected a JSON object, got {type(data).__name__}", text)
    return data


class LLMClient:
    """
    Thin wrapper over the configured text-generation provider.
    Holds no per-request state, so one instance is shared across requests.
    """

    def __init__(
        self,
        provider: str = LLM_PROVIDER,
        gemini_api_key: str = GEMINI_API_KEY,
        anthropic_api_key: str = ANTHROPIC_API_KEY,
        openai_api_key: str = OPENAI_API_KEY,
    ):
        self.gemini_api_key = gemini_api_key
        self.anthropic_api_key = anthropic_api_key
        self.openai_api_key = openai_api_key
        self.provider = (provider or "").lower()
        self._anthropic_client: Optional[anthropic.Anthropic] = None

        keys = {
            "gemini": self.gemini_api_key,
            "claude": self.anthropic_api_key,
            "openai": self.openai_api_key,
        }

        # Determine which provider to use
        if keys.get(self.provider):
            self.active_provider = self.provider
        else:
            self.active_provider = next((name for name, key in keys.items() if key), None)

    async def generate(self, prompt: str) -> str:
        """Send one prompt and return the raw text reply."""
        return await asyncio.to_thread(self.generate_sync, prompt)

    def generate_sync(self, prompt: str) -> str:
        if not self.active_provider:
            raise LLMConfigurationError(
                "No LLM API key configured. Please set GEMINI_API_KEY, ANTHROPIC_API_KEY or OPENAI_API_KEY."
            )

        logger.debug("Calling %s with %d prompt characters", self.active_provider, len(prompt))
        try:
            if self.active_provider == "gemini":
                return self._call_gemini(prompt)
            if self.active_provider == "claude":
                return self._call_claude(prompt)
            return self._call_openai(prompt)
        except anthropic.APIError as exc:
            raise LLMError(f"Claude API error: {exc}") from exc
        except requests.RequestException as exc:
            raise LLMError(f"{self.active_provider} request failed: {exc}") from exc
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise LLMError(f"Unexpected {self.active_provider} response shape: {exc}") from exc

    def _call_gemini(self, prompt: str) -> str:
        """Call Gemini generateContent"""
        response = requests.post(
            GEMINI_ENDPOINT.format(model=GEMINI_MODEL),
            headers={
                "x-goog-api-key": self.gemini_api_key,
                "Content-Type": "application/json"
            },
            json={
                "contents": [
                    {"role": "user", "parts": [{"text": prompt}]}
                ],
                "generationConfig": {"maxOutputTokens": LLM_MAX_TOKENS}
            },
            timeout=LLM_TIMEOUT
        )
        response.raise_for_status()
        result = response.json()
        parts = result["candidates"][0]["content"]["parts"]
        return "".join(part.get("text", "") for part in parts)

    def _call_claude(self, prompt: str) -> str:
        """Call Claude API"""
        if self._anthropic_client is None:
            self._anthropic_client = anthropic.Anthropic(
                api_key=self.anthropic_api_key,
                timeout=LLM_TIMEOUT,
            )

        message = self._anthropic_client.messages.create(
            model=CLAUDE_MODEL,
            max_tokens=LLM_MAX_TOKENS,
            messages=[
                {
                    "role": "user",
                    "content": prompt
                }
            ]
        )

        return message.content[0].text

    def _call_openai(self, prompt: str) -> str:
        """Call OpenAI API"""
        response = requests.post(
            OPENAI_ENDPOINT,
            headers={
                "Authorization": f"Bearer {self.openai_api_key}",
                "Content-Type": "application/json"
            },
            json={
                "model": OPENAI_MODEL,
                "messages": [
                    {"role": "system", "content": "You are an expert SEO writer. Always return valid JSON."},
                    {"role": "user", "content": prompt}
                ],
                "temperature": 0.7,
                "max_tokens": LLM_MAX_TOKENS
            },
            timeout=LLM_TIMEOUT
        )
        response.raise_for_status()
        result = response.json()
        return result["choices"][0]["message"]["content"]


# Global client instance
_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get or initialize the global LLM client instance"""
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client
