# tests/test_llm.py
"""LLM client tests."""

import json
from unittest.mock import AsyncMock, patch

import pytest
from litellm.exceptions import AuthenticationError, RateLimitError

from docsmith.llm import (
    LLMAuthenticationError,
    LLMClient,
    LLMRateLimitError,
)

MESSAGES = [
    {"role": "system", "content": "You write JSDoc."},
    {"role": "user", "content": "Document add()"},
]


@pytest.fixture
def mock_completion():
    """Mock litellm completion response."""
    with patch("docsmith.llm.client.acompletion") as mock:
        mock.return_value = AsyncMock(
            choices=[AsyncMock(message=AsyncMock(content="/** Adds. */"))]
        )
        yield mock


async def test_llm_client_generates_response(mock_completion):
    """LLM client returns the completion text."""
    client = LLMClient(provider="openai", model="gpt-4o")

    response = await client.complete(MESSAGES, temperature=0.2, max_tokens=256)

    assert response == "/** Adds. */"
    mock_completion.assert_called_once()


async def test_llm_client_passes_sampling_parameters(mock_completion):
    """Messages, temperature, token cap, stop and top_p reach litellm."""
    client = LLMClient(provider="openai", model="gpt-4o")

    await client.complete(MESSAGES, temperature=0.3, max_tokens=128, stop=["*/"], top_p=0.8)

    kwargs = mock_completion.call_args.kwargs
    assert kwargs["model"] == "gpt-4o"
    assert kwargs["messages"] == MESSAGES
    assert kwargs["temperature"] == 0.3
    assert kwargs["max_tokens"] == 128
    assert kwargs["stop"] == ["*/"]
    assert kwargs["top_p"] == 0.8


async def test_llm_client_ollama_provider_model_string(mock_completion):
    """LLM client formats ollama provider with ollama/ prefix and custom endpoint."""
    client = LLMClient(provider="ollama", model="codellama", endpoint="http://localhost:11434")

    await client.complete(MESSAGES, temperature=0.2, max_tokens=64)

    kwargs = mock_completion.call_args.kwargs
    assert kwargs["model"] == "ollama/codellama"
    assert kwargs["api_base"] == "http://localhost:11434"
    assert "api_key" not in kwargs


async def test_llm_client_google_uses_gemini_prefix(mock_completion):
    """Google models are routed through litellm's gemini provider."""
    client = LLMClient(provider="google", model="gemini-1.5-pro", api_key="key")

    await client.complete(MESSAGES, temperature=0.2, max_tokens=64)

    kwargs = mock_completion.call_args.kwargs
    assert kwargs["model"] == "gemini/gemini-1.5-pro"
    assert kwargs["api_key"] == "key"


async def test_llm_client_handles_auth_error():
    """LLM client raises LLMAuthenticationError on auth failure."""
    with patch("docsmith.llm.client.acompletion") as mock:
        mock.side_effect = AuthenticationError(
            message="Invalid API key",
            llm_provider="openai",
            model="gpt-4o",
        )
        client = LLMClient(provider="openai", model="gpt-4o")

        with pytest.raises(LLMAuthenticationError):
            await client.complete(MESSAGES, temperature=0.2, max_tokens=64)


async def test_llm_client_handles_rate_limit():
    """LLM client raises LLMRateLimitError on rate limit."""
    with patch("docsmith.llm.client.acompletion") as mock:
        mock.side_effect = RateLimitError(
            message="Rate limit exceeded",
            llm_provider="openai",
            model="gpt-4o",
        )
        client = LLMClient(provider="openai", model="gpt-4o")

        with pytest.raises(LLMRateLimitError):
            await client.complete(MESSAGES, temperature=0.2, max_tokens=64)


async def test_llm_client_logs_queries(tmp_path, mock_completion):
    """Each call is appended to the JSONL query log."""
    log_path = tmp_path / "logs" / "llm-queries.jsonl"
    client = LLMClient(provider="openai", model="gpt-4o", log_path=log_path)

    await client.complete(MESSAGES, temperature=0.2, max_tokens=64)
    await client.complete(MESSAGES, temperature=0.2, max_tokens=64)

    lines = log_path.read_text().splitlines()
    assert len(lines) == 2
    entry = json.loads(lines[0])
    assert entry["provider"] == "openai"
    assert entry["response"] == "/** Adds. */"
    assert entry["error"] is None


async def test_llm_client_logs_errors(tmp_path):
    """Failed calls are logged with the error message."""
    log_path = tmp_path / "llm-queries.jsonl"
    with patch("docsmith.llm.client.acompletion") as mock:
        mock.side_effect = RateLimitError(
            message="Rate limit exceeded",
            llm_provider="openai",
            model="gpt-4o",
        )
        client = LLMClient(provider="openai", model="gpt-4o", log_path=log_path)

        with pytest.raises(LLMRateLimitError):
            await client.complete(MESSAGES, temperature=0.2, max_tokens=64)

    entry = json.loads(log_path.read_text().splitlines()[0])
    assert entry["response"] is None
    assert "Rate limit exceeded" in entry["error"]


async def test_llm_client_embeds_texts():
    """Embedding responses are returned in input order."""
    with patch("docsmith.llm.client.aembedding") as mock:
        mock.return_value = AsyncMock(
            data=[{"embedding": [0.1, 0.2]}, {"embedding": [0.3, 0.4]}]
        )
        client = LLMClient(provider="openai", model="text-embedding-3-large")

        vectors = await client.embed(["a", "b"], dimensions=2)

    assert vectors == [[0.1, 0.2], [0.3, 0.4]]
    assert mock.call_args.kwargs["input"] == ["a", "b"]
    assert mock.call_args.kwargs["dimensions"] == 2
