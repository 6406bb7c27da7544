# tests/unit/llm/test_unit_adapters.py — v1
"""Tests for llm/adapters — request shaping with the SDKs mocked out."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from feedforge.llm.adapters.anthropic_adapter import AnthropicAdapter
from feedforge.llm.adapters.ollama_adapter import OllamaAdapter
from feedforge.llm.adapters.openai_adapter import OpenAIAdapter
from feedforge.llm.models import Message

MESSAGES = [Message(role="user", content="Summarize")]


class TestOpenAIAdapter:
    @pytest.mark.asyncio
    async def test_json_mode_and_usage(self):
        resp = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content='{"a": 1}'))],
            usage=SimpleNamespace(prompt_tokens=12, completion_tokens=5),
        )
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=resp)
        with patch("openai.AsyncOpenAI", return_value=client) as ctor:
            adapter = OpenAIAdapter(model="gpt-4o", api_key="sk", base_url="https://proxy/v1")
            out = await adapter.complete(MESSAGES, system="Be terse", json_mode=True)

        ctor.assert_called_once_with(api_key="sk", base_url="https://proxy/v1")
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0] == {"role": "system", "content": "Be terse"}
        assert out.content == '{"a": 1}'
        assert out.total_tokens == 17
        assert out.provider == "openai"

    @pytest.mark.asyncio
    async def test_plain_mode_has_no_response_format(self):
        resp = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=None))], usage=None,
        )
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=resp)
        with patch("openai.AsyncOpenAI", return_value=client):
            out = await OpenAIAdapter(api_key="sk").complete(MESSAGES)
        assert "response_format" not in client.chat.completions.create.call_args.kwargs
        assert out.content == ""
        assert out.total_tokens == 0


class TestAnthropicAdapter:
    @pytest.mark.asyncio
    async def test_json_mode_extends_system_prompt(self):
        resp = SimpleNamespace(
            model="claude-sonnet-4-20250514",
            content=[SimpleNamespace(type="text", text="{}")],
            usage=SimpleNamespace(input_tokens=3, output_tokens=4),
        )
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=resp)
        with patch("anthropic.AsyncAnthropic", return_value=client):
            adapter = AnthropicAdapter(model="claude-sonnet-4-20250514", api_key="k")
            out = await adapter.complete(MESSAGES, system="Analyst", json_mode=True)

        system = client.messages.create.call_args.kwargs["system"]
        assert system.startswith("Analyst")
        assert "JSON" in system
        assert out.content == "{}"
        assert out.provider == "anthropic"


class TestOllamaAdapter:
    @pytest.mark.asyncio
    async def test_json_mode_sets_format(self):
        client = MagicMock()
        client.chat = AsyncMock(return_value={
            "message": {"content": '{"x": 2}'},
            "prompt_eval_count": 8,
            "eval_count": 2,
        })
        with patch("ollama.AsyncClient", return_value=client) as ctor:
            out = await OllamaAdapter(model="llama3", host="http://gpu:11434").complete(
                MESSAGES, json_mode=True,
            )
        ctor.assert_called_once_with(host="http://gpu:11434")
        assert client.chat.call_args.kwargs["format"] == "json"
        assert out.content == '{"x": 2}'
        assert out.provider == "ollama"
