# src/docsmith/llm/client.py
"""LiteLLM-based provider client."""

import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from litellm import acompletion, aembedding
from litellm.exceptions import (
    APIConnectionError,
    APIError,
    AuthenticationError,
    RateLimitError,
)


class LLMError(Exception):
    """Base exception for LLM client errors."""

    pass


class LLMConnectionError(LLMError):
    """Raised when unable to connect to the LLM provider."""

    pass


class LLMAuthenticationError(LLMError):
    """Raised when authentication with the LLM provider fails."""

    pass


class LLMRateLimitError(LLMError):
    """Raised when rate limited by the LLM provider."""

    pass


class LLMResponseError(LLMError):
    """Raised when a reply does not have the expected shape."""

    pass


class LLMClient:
    """Thin wrapper over one provider/model pair via LiteLLM."""

    def __init__(
        self,
        provider: str,
        model: str,
        api_key: str | None = None,
        endpoint: str | None = None,
        log_path: Path | None = None,
    ):
        """Initialize LLM client.

        Args:
            provider: LLM provider (openai, anthropic, google, ollama).
            model: Model name.
            api_key: Optional API key (uses env var if not provided).
            endpoint: Optional custom endpoint.
            log_path: Optional path to JSONL log file for query logging.
        """
        self.provider = provider
        self.model = model
        self.api_key = api_key
        self.endpoint = endpoint
        self.log_path = log_path

    def _log_query(
        self,
        request: dict[str, Any],
        response: Any,
        duration_ms: int,
        error: str | None,
        error_details: dict | None = None,
    ) -> None:
        """Log a query to the JSONL log file.

        Args:
            request: Request parameters (messages or inputs, sampling settings).
            response: Response payload (None if error).
            duration_ms: Request duration in milliseconds.
            error: Error message (None if success).
            error_details: Optional dict with status_code, headers, etc.
        """
        if not self.log_path:
            return

        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "provider": self.provider,
            "model": self.model,
            "request": request,
            "response": response,
            "duration_ms": duration_ms,
            "error": error,
        }

        if error_details:
            entry["error_details"] = error_details

        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, default=str) + "\n")
        except Exception:
            # Don't let logging failures break the application
            pass

    def _extract_error_details(self, e: Exception) -> dict | None:
        """Extract HTTP details from LiteLLM exceptions.

        Args:
            e: The exception to extract details from.

        Returns:
            Dict with status_code, headers, and provider if available.
        """
        details: dict = {}

        if hasattr(e, "status_code"):
            details["status_code"] = e.status_code

        resp = getattr(e, "response", None)
        if resp is not None:
            if hasattr(resp, "status_code"):
                details["status_code"] = resp.status_code
            if hasattr(resp, "headers"):
                try:
                    relevant_headers = {
                        k: v
                        for k, v in dict(resp.headers).items()
                        if k.lower()
                        in (
                            "retry-after",
                            "x-ratelimit-remaining-requests",
                            "x-ratelimit-remaining-tokens",
                            "x-ratelimit-reset-requests",
                            "x-request-id",
                        )
                    }
                    if relevant_headers:
                        details["response_headers"] = relevant_headers
                except Exception:
                    pass

        if hasattr(e, "llm_provider"):
            details["llm_provider"] = e.llm_provider

        return details if details else None

    def _get_model_string(self) -> str:
        """Get LiteLLM model string.

        Returns:
            Model string in provider/model format.
        """
        if self.provider == "openai":
            return self.model  # OpenAI is default
        elif self.provider == "google":
            return f"gemini/{self.model}"
        else:
            return f"{self.provider}/{self.model}"

    def _base_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"model": self._get_model_string()}
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.endpoint:
            kwargs["api_base"] = self.endpoint
        return kwargs

    def _translate_error(self, e: Exception) -> LLMError:
        """Map a LiteLLM exception onto the client's exception hierarchy."""
        if isinstance(e, AuthenticationError):
            return LLMAuthenticationError(f"Authentication failed: {e}")
        if isinstance(e, RateLimitError):
            return LLMRateLimitError(f"Rate limit exceeded: {e}")
        if isinstance(e, APIConnectionError):
            return LLMConnectionError(f"Connection failed: {e}")
        return LLMError(f"LLM API error: {e}")

    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
        stop: list[str] | None = None,
        top_p: float | None = None,
    ) -> str:
        """Generate a chat completion.

        Args:
            messages: Role-tagged messages.
            temperature: Sampling temperature.
            max_tokens: Maximum response tokens.
            stop: Optional stop sequences.
            top_p: Optional nucleus sampling value.

        Returns:
            Generated text response.

        Raises:
            LLMError: If the provider call fails.
        """
        kwargs = self._base_kwargs()
        kwargs.update(messages=messages, temperature=temperature, max_tokens=max_tokens)
        if stop:
            kwargs["stop"] = stop
        if top_p is not None:
            kwargs["top_p"] = top_p
        request = {"messages": messages, "temperature": temperature, "max_tokens": max_tokens}

        start_time = time.perf_counter()
        try:
            response = await acompletion(**kwargs)
            result: str = str(response.choices[0].message.content or "")
        except (AuthenticationError, RateLimitError, APIConnectionError, APIError) as e:
            duration_ms = int((time.perf_counter() - start_time) * 1000)
            self._log_query(
                request,
                response=None,
                duration_ms=duration_ms,
                error=str(e),
                error_details=self._extract_error_details(e),
            )
            raise self._translate_error(e) from e

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        self._log_query(request, response=result, duration_ms=duration_ms, error=None)
        return result

    async def embed(self, texts: list[str], dimensions: int | None = None) -> list[list[float]]:
        """Embed a batch of texts.

        Args:
            texts: Inputs to embed.
            dimensions: Optional output dimensionality.

        Returns:
            One vector per input, in input order.

        Raises:
            LLMError: If the provider call fails.
        """
        kwargs = self._base_kwargs()
        kwargs["input"] = texts
        if dimensions:
            kwargs["dimensions"] = dimensions
        request = {"input_count": len(texts)}

        start_time = time.perf_counter()
        try:
            response = await aembedding(**kwargs)
        except (AuthenticationError, RateLimitError, APIConnectionError, APIError) as e:
            duration_ms = int((time.perf_counter() - start_time) * 1000)
            self._log_query(
                request,
                response=None,
                duration_ms=duration_ms,
                error=str(e),
                error_details=self._extract_error_details(e),
            )
            raise self._translate_error(e) from e

        vectors = [
            list(item["embedding"] if isinstance(item, dict) else item.embedding)
            for item in response.data
        ]
        duration_ms = int((time.perf_counter() - start_time) * 1000)
        self._log_query(
            request,
            response={"vectors": len(vectors)},
            duration_ms=duration_ms,
            error=None,
        )
        return vectors
