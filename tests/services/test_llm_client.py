"""Tests for LLMClient structured extraction."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from anthropic import APIConnectionError
from tenacity import wait_none

from src.extraction.schemas import ExtractedProposals
from src.services.llm_client import LLMClient, LLMClientError


@pytest.fixture
def anthropic_client() -> MagicMock:
    client = MagicMock()
    client.beta.messages.parse = AsyncMock()
    return client


class TestExtract:
    async def test_returns_parsed_output(self, anthropic_client):
        parsed = ExtractedProposals()
        anthropic_client.beta.messages.parse.return_value = MagicMock(parsed_output=parsed)
        llm = LLMClient(client=anthropic_client, model="claude-test")

        result = await llm.extract("prompt text", ExtractedProposals)

        assert result is parsed
        kwargs = anthropic_client.beta.messages.parse.await_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["output_format"] is ExtractedProposals
        assert kwargs["messages"] == [{"role": "user", "content": "prompt text"}]

    async def test_no_parsed_output(self, anthropic_client):
        anthropic_client.beta.messages.parse.return_value = MagicMock(parsed_output=None)

        with pytest.raises(LLMClientError, match="no parseable output"):
            await LLMClient(client=anthropic_client).extract("p", ExtractedProposals)

    async def test_failure_wrapped(self, anthropic_client):
        anthropic_client.beta.messages.parse.side_effect = RuntimeError("boom")

        with pytest.raises(LLMClientError, match="boom"):
            await LLMClient(client=anthropic_client).extract("p", ExtractedProposals)

    async def test_missing_api_key(self, monkeypatch):
        monkeypatch.setattr("src.services.llm_client.settings.anthropic_api_key", None)

        with pytest.raises(LLMClientError, match="ANTHROPIC_API_KEY"):
            await LLMClient().extract("p", ExtractedProposals)

    async def test_transient_error_retried(self, anthropic_client, monkeypatch):
        monkeypatch.setattr(LLMClient._parse.retry, "wait", wait_none())
        parsed = ExtractedProposals()
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        anthropic_client.beta.messages.parse.side_effect = [
            APIConnectionError(request=request),
            MagicMock(parsed_output=parsed),
        ]

        result = await LLMClient(client=anthropic_client).extract("p", ExtractedProposals)

        assert result is parsed
        assert anthropic_client.beta.messages.parse.await_count == 2
