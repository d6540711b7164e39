# src/docsmith/llm/service.py
"""Oracle client: model registry, concurrency gate, cache-aside and retry."""

import asyncio
import hashlib
import json
import logging
import os
import re
from collections.abc import Awaitable, Callable, Mapping
from pathlib import Path

from pydantic import ValidationError

from docsmith.cache.store import CacheStore
from docsmith.config import ClientConfig, ConfigError, ModelConfig
from docsmith.constants import SKIP_REPLY
from docsmith.extraction.models import ContextBundle
from docsmith.generation.docblock import has_inner_terminator
from docsmith.llm.client import LLMClient, LLMError, LLMResponseError
from docsmith.llm.costs import CostEstimate, estimate_cost
from docsmith.llm.gate import ConcurrencyGate
from docsmith.llm.models import GenerationResponse
from docsmith.llm.prompts import build_messages

logger = logging.getLogger(__name__)

# Providers that run locally and need no API key
KEYLESS_PROVIDERS = frozenset({"ollama"})

_FENCE_PATTERN = re.compile(r"^```[\w-]*\s*\n(.*?)\n?```\s*$", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove a Markdown code fence wrapped around the whole reply."""
    stripped = text.strip()
    match = _FENCE_PATTERN.match(stripped)
    return match.group(1).strip() if match else stripped


def validate_doc_reply(text: str) -> None:
    """Minimal shape check for a generated doc comment.

    A reply must contain at least one ``*``, either as a full ``/** ... */``
    block or as starred comment lines, which are wrapped into a block later.
    ``*/`` may only appear as the final terminator.

    Raises:
        LLMResponseError: If the reply is empty, has no comment marker, or
            would close the comment early.
    """
    if not text.strip():
        raise LLMResponseError("Empty response from oracle")
    if "*" not in text:
        raise LLMResponseError("Response does not look like a doc comment")
    if has_inner_terminator(text):
        raise LLMResponseError("Response contains '*/' before the end of the comment")


class DocClient:
    """Issues generation and embedding requests to the configured oracle.

    Every provider call passes through one shared ConcurrencyGate, so the
    number of in-flight requests never exceeds ``max_concurrent_requests``
    however many files are processed upstream. Successful generations are
    cached under ``jsdoc:<unit id>:<model id>`` and invalidated when the
    unit's snippet changes.
    """

    def __init__(
        self,
        client_config: ClientConfig,
        models: tuple[ModelConfig, ...],
        cache: CacheStore | None = None,
        log_path: Path | None = None,
        require_embedding: bool = True,
        generate_examples: bool = True,
        environ: Mapping[str, str] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Build the model registry and resolve default models.

        Args:
            client_config: Retry, concurrency and sampling settings.
            models: Candidate models. Models lacking credentials are skipped.
            cache: Optional response cache.
            log_path: Optional JSONL query log.
            require_embedding: Fail if the default embedding model is unusable.
            generate_examples: Ask for @example blocks in prompts.
            environ: Environment to read API keys from. Defaults to os.environ.
            sleep: Backoff sleep function. Injectable for tests.

        Raises:
            ConfigError: If a default model id is unknown, has the wrong type,
                or lacks credentials.
        """
        self.config = client_config
        self.cache = cache
        self.generate_examples = generate_examples
        self._sleep = sleep
        self._environ = os.environ if environ is None else environ
        self._configured = {m.id: m for m in models}
        self._models: dict[str, tuple[ModelConfig, LLMClient]] = {}
        self.gate = ConcurrencyGate(client_config.max_concurrent_requests)
        self.request_count = 0

        for model in models:
            api_key = self._environ.get(model.key_env_var)
            if not api_key and model.provider not in KEYLESS_PROVIDERS:
                logger.warning(
                    f"Skipping model {model.id}: {model.key_env_var} is not set"
                )
                continue
            self._models[model.id] = (
                model,
                LLMClient(
                    provider=model.provider,
                    model=model.model,
                    api_key=api_key,
                    endpoint=model.base_url,
                    log_path=log_path,
                ),
            )

        self.default_generation_model = self._resolve_default(
            client_config.default_generation_model, "generation"
        )
        self.default_embedding_model: str | None = None
        try:
            self.default_embedding_model = self._resolve_default(
                client_config.default_embedding_model, "embedding"
            )
        except ConfigError:
            if require_embedding:
                raise
            logger.info("No usable embedding model; embeddings are unavailable")

    def _resolve_default(self, model_id: str, model_type: str) -> str:
        if model_id not in self._configured:
            raise ConfigError(f"Default {model_type} model {model_id!r} is not configured")
        configured = self._configured[model_id]
        if configured.type != model_type:
            raise ConfigError(f"Model {model_id!r} is not a {model_type} model")
        if model_id not in self._models:
            raise ConfigError(
                f"Default {model_type} model {model_id!r} has no credentials; "
                f"set {configured.key_env_var}"
            )
        return model_id

    def _get_model(self, model_id: str | None, model_type: str) -> tuple[ModelConfig, LLMClient]:
        """Resolve an explicit model id or fall back to the default."""
        if model_id is None:
            model_id = (
                self.default_generation_model
                if model_type == "generation"
                else self.default_embedding_model
            )
            if model_id is None:
                raise LLMError(f"No default {model_type} model is available")
        if model_id not in self._models:
            raise LLMError(f"Model {model_id!r} is not available")
        model, client = self._models[model_id]
        if model.type != model_type:
            raise LLMError(f"Model {model_id!r} is not a {model_type} model")
        return model, client

    @staticmethod
    def cache_key(unit_id: str, model_id: str) -> str:
        """Deterministic cache key for a generation request."""
        return f"jsdoc:{unit_id}:{model_id}"

    async def generate(
        self,
        bundle: ContextBundle,
        *,
        model_id: str | None = None,
        force_fresh: bool = False,
        max_retries: int | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResponse:
        """Generate a doc comment for one context bundle.

        Failures never raise: they come back as an ``error`` response carrying
        the last error message.

        Args:
            bundle: Context for the declaration.
            model_id: Pin a registered generation model.
            force_fresh: Bypass the cache read.
            max_retries: Override the configured retry count.
            temperature: Override the sampling temperature.
            max_tokens: Override the reply token cap.

        Returns:
            The generation response.
        """
        try:
            model, client = self._get_model(model_id, "generation")
        except LLMError as e:
            return GenerationResponse.failed(str(e), model_id=model_id)

        key = self.cache_key(bundle.id, model.id)
        if self.cache is not None and not force_fresh:
            cached = await self.cache.get(key, content=bundle.snippet)
            if cached is not None:
                try:
                    response = GenerationResponse.model_validate(cached)
                    logger.debug(f"Cache hit for {bundle.name} ({model.id})")
                    return response.model_copy(update={"cached": True})
                except ValidationError as e:
                    logger.warning(f"Ignoring malformed cached response for {bundle.id}: {e}")

        messages = build_messages(bundle, self.generate_examples)
        retries = self.config.max_retries if max_retries is None else max_retries

        async with self.gate:
            self.request_count += 1
            response = await self._generate_with_retry(
                client,
                model,
                messages,
                label=bundle.name,
                max_retries=retries,
                temperature=temperature,
                max_tokens=max_tokens,
            )

        if response.success and self.cache is not None:
            await self.cache.set(key, response.model_dump(mode="json"), content=bundle.snippet)
        return response

    async def _generate_with_retry(
        self,
        client: LLMClient,
        model: ModelConfig,
        messages: list[dict[str, str]],
        label: str,
        max_retries: int,
        temperature: float | None,
        max_tokens: int | None,
    ) -> GenerationResponse:
        """Call the provider until a valid reply arrives or retries run out."""
        last_error: Exception | None = None
        attempts = max_retries + 1

        for attempt in range(attempts):
            try:
                text = await client.complete(
                    messages,
                    temperature=self._pick(temperature, model.temperature, self.config.temperature),
                    max_tokens=self._pick(max_tokens, model.max_tokens, self.config.max_tokens),
                    stop=list(model.stop) or None,
                    top_p=model.top_p,
                )
                text = strip_code_fences(text)
                if text == SKIP_REPLY:
                    return GenerationResponse.skipped("Oracle declined to document", model.id)
                validate_doc_reply(text)
                return GenerationResponse.ok(text, model.id)
            except Exception as e:
                last_error = e
                logger.warning(f"Attempt {attempt + 1}/{attempts} failed for {label}: {e}")
                if attempt < max_retries:
                    await self._sleep(self.config.retry_delay_ms * (2**attempt) / 1000)

        return GenerationResponse.failed(
            f"Failed after {attempts} attempts: {last_error}", model.id
        )

    @staticmethod
    def _pick(*values):
        return next(v for v in values if v is not None)

    async def embed(
        self,
        texts: list[str],
        *,
        model_id: str | None = None,
        cacheable: bool = True,
        max_retries: int | None = None,
    ) -> list[list[float]]:
        """Embed a batch of texts.

        Args:
            texts: Inputs to embed.
            model_id: Pin a registered embedding model.
            cacheable: Read and write the response cache.
            max_retries: Override the configured retry count.

        Returns:
            One vector per input.

        Raises:
            LLMError: If no embedding model is available or every attempt failed.
        """
        if not texts:
            return []
        model, client = self._get_model(model_id, "embedding")

        digest = hashlib.sha256(json.dumps(texts).encode("utf-8")).hexdigest()
        key = f"embeddings:{digest}:{model.id}"
        if cacheable and self.cache is not None:
            cached = await self.cache.get(key)
            if isinstance(cached, list) and len(cached) == len(texts):
                return cached

        retries = self.config.max_retries if max_retries is None else max_retries
        last_error: Exception | None = None

        async with self.gate:
            self.request_count += 1
            for attempt in range(retries + 1):
                try:
                    vectors = await client.embed(texts, dimensions=model.dimensions)
                    if len(vectors) != len(texts):
                        raise LLMResponseError(
                            f"Expected {len(texts)} embeddings, got {len(vectors)}"
                        )
                    break
                except Exception as e:
                    last_error = e
                    logger.warning(f"Embedding attempt {attempt + 1}/{retries + 1} failed: {e}")
                    if attempt < retries:
                        await self._sleep(self.config.retry_delay_ms * (2**attempt) / 1000)
            else:
                raise LLMError(
                    f"Embedding failed after {retries + 1} attempts: {last_error}"
                ) from last_error

        if cacheable and self.cache is not None:
            await self.cache.set(key, vectors)
        logger.debug(f"Generated {len(vectors)} embeddings with {model.id}")
        return vectors

    async def embed_one(self, text: str, **kwargs) -> list[float]:
        """Embed a single text."""
        vectors = await self.embed([text], **kwargs)
        return vectors[0]

    def estimate_cost(self, length: int, model_id: str | None = None) -> CostEstimate:
        """Advisory cost of a generation request of ``length`` characters."""
        model, _ = self._get_model(model_id, "generation")
        return estimate_cost(length, model.provider, model.model)

    def estimate_embedding_cost(self, length: int, model_id: str | None = None) -> CostEstimate:
        """Advisory cost of embedding ``length`` characters."""
        model, _ = self._get_model(model_id, "embedding")
        return estimate_cost(length, model.provider, model.model, embedding=True)

    def available_models(self, model_type: str | None = None) -> list[ModelConfig]:
        """Registered models, optionally filtered by type."""
        return [
            model
            for model, _ in self._models.values()
            if model_type is None or model.type == model_type
        ]
