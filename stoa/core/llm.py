"""
Stoa Assistant — LLM Provider Abstraction.

Single public function `stream()` that routes to the configured provider
and yields the reply in text chunks as they arrive.
Provider is selected at startup via the LLM_PROVIDER env var.
Supports: gemini (default), anthropic, openai, cohere.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Callable

logger = logging.getLogger(__name__)

# A conversation turn: {"role": "user" | "assistant", "content": str}
Turn = dict[str, str]

# Type alias for provider implementations
_ProviderFn = Callable[[str, str, str, list[Turn], int], AsyncIterator[str]]

# ---------------------------------------------------------------------------
# Provider implementations
# ---------------------------------------------------------------------------


async def _stream_gemini(
    api_key: str, model: str, system: str, turns: list[Turn], max_tokens: int,
) -> AsyncIterator[str]:
    import google.generativeai as genai

    genai.configure(api_key=api_key)
    gm = genai.GenerativeModel(
        model_name=model,
        system_instruction=system,
    )
    contents = [
        {"role": "model" if t["role"] == "assistant" else "user", "parts": [t["content"]]}
        for t in turns
    ]
    response = await gm.generate_content_async(
        contents,
        generation_config=genai.types.GenerationConfig(max_output_tokens=max_tokens),
        stream=True,
    )
    async for chunk in response:
        if chunk.text:
            yield chunk.text


async def _stream_anthropic(
    api_key: str, model: str, system: str, turns: list[Turn], max_tokens: int,
) -> AsyncIterator[str]:
    import anthropic

    client = anthropic.AsyncAnthropic(api_key=api_key)
    async with client.messages.stream(
        model=model,
        max_tokens=max_tokens,
        system=system,
        messages=turns,
    ) as stream:
        async for text in stream.text_stream:
            yield text


async def _stream_openai(
    api_key: str, model: str, system: str, turns: list[Turn], max_tokens: int,
) -> AsyncIterator[str]:
    from openai import AsyncOpenAI

    client = AsyncOpenAI(api_key=api_key)
    response = await client.chat.completions.create(
        model=model,
        max_tokens=max_tokens,
        messages=[{"role": "system", "content": system}, *turns],
        stream=True,
    )
    async for chunk in response:
        if chunk.choices and chunk.choices[0].delta.content:
            yield chunk.choices[0].delta.content


async def _stream_cohere(
    api_key: str, model: str, system: str, turns: list[Turn], max_tokens: int,
) -> AsyncIterator[str]:
    import cohere

    client = cohere.AsyncClientV2(api_key=api_key)
    async for event in client.chat_stream(
        model=model,
        max_tokens=max_tokens,
        messages=[{"role": "system", "content": system}, *turns],
    ):
        if event.type == "content-delta":
            yield event.delta.message.content.text


# ---------------------------------------------------------------------------
# Provider selection (runs once at first call)
# ---------------------------------------------------------------------------

_PROVIDERS: dict[str, tuple[_ProviderFn, str]] = {
    "gemini":    (_stream_gemini,    "gemini-2.0-flash"),
    "anthropic": (_stream_anthropic, "claude-haiku-4-5-20251001"),
    "openai":    (_stream_openai,    "gpt-4o-mini"),
    "cohere":    (_stream_cohere,    "command-a-03-2025"),
}


def _select_provider() -> tuple[_ProviderFn, str, str]:
    """Read env vars and return (provider_fn, model, api_key)."""
    from stoa.config import settings

    provider_name = settings.LLM_PROVIDER.lower()
    if provider_name not in _PROVIDERS:
        raise ValueError(
            f"Unknown LLM_PROVIDER={provider_name!r}. "
            f"Supported: {', '.join(_PROVIDERS)}"
        )

    fn, default_model = _PROVIDERS[provider_name]
    model = settings.LLM_MODEL or default_model
    api_key = settings.LLM_API_KEY

    logger.info("LLM provider: %s, model: %s", provider_name, model)
    return fn, model, api_key


# Lazy singleton, populated on first call to stream()
_provider_fn: _ProviderFn | None = None
_model: str = ""
_api_key: str = ""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def stream(
    system: str, turns: list[Turn], max_tokens: int = 1024,
) -> AsyncIterator[str]:
    """Send a conversation to the configured LLM provider and yield reply chunks.

    Raises on API errors — callers should handle exceptions.
    """
    global _provider_fn, _model, _api_key

    if _provider_fn is None:
        _provider_fn, _model, _api_key = _select_provider()

    async for chunk in _provider_fn(_api_key, _model, system, turns, max_tokens):
        yield chunk
