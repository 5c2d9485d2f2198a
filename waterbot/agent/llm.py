"""
Completion service client: OpenAI (primary) or Hugging Face router (fallback).
When OPENAI_API_KEY is set, uses OpenAI chat completions; otherwise uses HF router.

Agents depend only on ``CompletionService``: anything with an async
``complete(messages) -> str`` works, which is how tests plug in fakes.
"""

import logging
from typing import Any, Protocol

import httpx
from openai import AsyncOpenAI

from waterbot.core.config import (
    HF_API_KEY,
    HF_CHAT_URL,
    HF_LLM_MODEL,
    LLM_API_TIMEOUT,
    LLM_MAX_TOKENS,
    LLM_TEMPERATURE,
    OPENAI_API_KEY,
    OPENAI_LLM_MODEL,
)
from waterbot.core.errors import ServiceUnavailableError, UpstreamError
from waterbot.core.retry import retry_async

logger = logging.getLogger(__name__)

Message = dict[str, str]


class CompletionService(Protocol):
    async def complete(self, messages: list[Message], max_tokens: int | None = None) -> str: ...


class ChatCompletionClient:
    """Send role-tagged messages to a hosted chat model and return the generated text."""

    def __init__(
        self,
        openai_api_key: str = OPENAI_API_KEY,
        openai_model: str = OPENAI_LLM_MODEL,
        hf_api_key: str = HF_API_KEY,
        hf_model: str = HF_LLM_MODEL,
        timeout: float = LLM_API_TIMEOUT,
    ) -> None:
        self.openai_model = openai_model
        self.hf_api_key = hf_api_key
        self.hf_model = hf_model
        self.timeout = timeout
        self._openai = AsyncOpenAI(api_key=openai_api_key, timeout=timeout, max_retries=0) if openai_api_key else None

    @property
    def configured(self) -> bool:
        return self._openai is not None or bool(self.hf_api_key)

    async def _call_openai(self, messages: list[Message], max_tokens: int) -> str:
        """Call OpenAI chat completions. Returns generated text."""
        response = await self._openai.chat.completions.create(
            model=self.openai_model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=LLM_TEMPERATURE,
        )
        msg = response.choices[0].message if response.choices else None
        if not msg or not getattr(msg, "content", None):
            return ""
        out = (msg.content or "").strip()
        logger.info("[llm:openai] OUT response_len=%d", len(out))
        return out

    async def _call_hf(self, messages: list[Message], max_tokens: int) -> str:
        """Call Hugging Face router chat completions. Returns generated text."""
        headers = {"Authorization": f"Bearer {self.hf_api_key}", "Content-Type": "application/json"}
        payload = {
            "model": self.hf_model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": LLM_TEMPERATURE,
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(HF_CHAT_URL, json=payload, headers=headers)
        response.raise_for_status()
        data = response.json()
        choices = data.get("choices") or []
        if choices and isinstance(choices[0], dict):
            msg = choices[0].get("message") or {}
            out = (msg.get("content") or "").strip()
            logger.info("[llm:hf] OUT response_len=%d", len(out))
            return out
        return ""

    async def complete(self, messages: list[Message], max_tokens: int | None = None) -> str:
        """
        Return the model's reply to ``messages``. Uses OpenAI when configured; if
        OpenAI returns nothing and an HF key is set, falls back to Hugging Face.

        Raises ServiceUnavailableError when no provider is configured and
        UpstreamError when the provider keeps failing or answers with nothing.
        """
        tokens = max_tokens or LLM_MAX_TOKENS
        logger.info("[llm] IN  messages=%d max_tokens=%d", len(messages), tokens)
        if not self.configured:
            raise ServiceUnavailableError("No completion service configured (set OPENAI_API_KEY or HF_API_KEY).")
        try:
            out = ""
            if self._openai is not None:
                out = await retry_async(lambda: self._call_openai(messages, tokens), name="llm:openai")
                if not out and self.hf_api_key:
                    logger.info("[llm] OpenAI returned empty; falling back to Hugging Face")
            if not out and self.hf_api_key:
                out = await retry_async(lambda: self._call_hf(messages, tokens), name="llm:hf")
        except Exception as e:
            logger.warning("[llm] completion failed: %s", e)
            raise UpstreamError(f"Completion service failed: {e.__class__.__name__}") from e
        if not out:
            raise UpstreamError("Completion service returned an empty response.")
        return out


def format_history(turns: list[Any]) -> str:
    """Render ChatTurns as 'User: ...' / 'Assistant: ...' lines for inclusion in prompts."""
    lines = []
    for t in turns:
        text = (getattr(t, "text", "") or "").strip()
        if not text:
            continue
        label = {"user": "User", "assistant": "Assistant"}.get(getattr(t, "role", ""), "System")
        lines.append(f"{label}: {text}")
    if not lines:
        return ""
    return "Recent conversation:\n" + "\n".join(lines) + "\n\n"
