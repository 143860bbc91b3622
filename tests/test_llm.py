"""Tests for stoa.core.llm — provider selection and chunk routing."""

import pytest
from unittest.mock import patch

import stoa.core.llm as llm


@pytest.fixture(autouse=True)
def reset_provider():
    llm._provider_fn = None
    yield
    llm._provider_fn = None


class TestSelectProvider:
    def test_default_model_per_provider(self):
        with patch("stoa.config.settings.LLM_PROVIDER", "OpenAI"), \
             patch("stoa.config.settings.LLM_MODEL", ""):
            fn, model, _ = llm._select_provider()
        assert fn is llm._stream_openai
        assert model == "gpt-4o-mini"

    def test_model_override(self):
        with patch("stoa.config.settings.LLM_PROVIDER", "anthropic"), \
             patch("stoa.config.settings.LLM_MODEL", "my-model"):
            _, model, _ = llm._select_provider()
        assert model == "my-model"

    def test_unknown_provider(self):
        with patch("stoa.config.settings.LLM_PROVIDER", "parrot"):
            with pytest.raises(ValueError, match="Unknown LLM_PROVIDER"):
                llm._select_provider()


class TestStream:
    @pytest.mark.asyncio
    async def test_yields_provider_chunks(self):
        seen = {}

        async def fake_provider(api_key, model, system, turns, max_tokens):
            seen.update(model=model, system=system, turns=turns, max_tokens=max_tokens)
            for chunk in ("Hel", "lo"):
                yield chunk

        with patch.object(llm, "_select_provider", return_value=(fake_provider, "m", "k")):
            chunks = [c async for c in llm.stream("sys", [{"role": "user", "content": "hi"}])]

        assert chunks == ["Hel", "lo"]
        assert seen["system"] == "sys"
        assert seen["max_tokens"] == 1024
