# src/docsmith/config.py
"""Configuration system for docsmith.

Settings are read from an INI file (``docsmith.ini`` in the workspace root)
and validated against CONFIG_SCHEMA. Every key has a default, so an absent
file yields a fully usable configuration. Oracle models are declared in
``[model:<id>]`` sections; when none are declared the built-in DEFAULT_MODELS
registry is used.
"""

import os
from configparser import ConfigParser
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from docsmith.constants import (
    DEFAULT_EXCLUDE_KINDS,
    DEFAULT_INCLUDE_KINDS,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_P,
    MAX_CONCURRENT_FILES,
    MAX_CONCURRENT_REQUESTS,
    MAX_RETRIES,
    MAX_SNIPPET_LENGTH,
    MAX_TOKENS,
    MAX_TOKENS_PER_BATCH,
    MIN_DOC_LENGTH,
    RETRY_DELAY_MS,
    SURROUNDING_MAX_LENGTH,
)

CONFIG_FILE_NAME = "docsmith.ini"
MODEL_SECTION_PREFIX = "model:"


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# =============================================================================
# Schema
# =============================================================================

# Schema: section -> key -> (type, default, min, max, description)
# list values are comma separated in the INI file.
CONFIG_SCHEMA: dict[str, dict[str, tuple[type, Any, Any, Any, str]]] = {
    "jsdoc": {
        "prioritize_exports": (bool, True, None, None, "Always document exported declarations"),
        "include_private": (bool, False, None, None, "Document private class members"),
        "include_kinds": (list, DEFAULT_INCLUDE_KINDS, None, None, "Kinds to document"),
        "exclude_kinds": (list, DEFAULT_EXCLUDE_KINDS, None, None, "Kinds never documented"),
        "max_snippet_length": (int, MAX_SNIPPET_LENGTH, 200, 100_000, "Snippet size cap"),
        "surrounding_max_length": (
            int,
            SURROUNDING_MAX_LENGTH,
            100,
            50_000,
            "Enclosing declaration snippet cap",
        ),
        "generate_examples": (bool, True, None, None, "Ask for @example blocks"),
        "overwrite_existing": (bool, False, None, None, "Replace existing comments"),
        "merge_existing": (bool, True, None, None, "Merge into existing comments"),
        "min_doc_length": (int, MIN_DOC_LENGTH, 0, 10_000, "Reject shorter replies"),
        "include_symbol_references": (bool, True, None, None, "Send usage sites"),
        "include_related_symbols": (bool, True, None, None, "Send related declarations"),
    },
    "client": {
        "default_generation_model": (str, "openai-gpt4o", None, None, "Generation model id"),
        "default_embedding_model": (str, "openai-embedding", None, None, "Embedding model id"),
        "max_concurrent_requests": (int, MAX_CONCURRENT_REQUESTS, 1, 100, "Oracle gate size"),
        "max_retries": (int, MAX_RETRIES, 0, 20, "Additional attempts after a failure"),
        "retry_delay_ms": (int, RETRY_DELAY_MS, 0, 600_000, "Base backoff delay"),
        "temperature": (float, DEFAULT_TEMPERATURE, 0.0, 2.0, "Default sampling temperature"),
        "max_tokens": (int, MAX_TOKENS, 64, 32768, "Default max reply tokens"),
        "log_queries": (bool, False, None, None, "Append oracle calls to a JSONL log"),
    },
    "embedding": {
        "enabled": (bool, True, None, None, "Enable relationship discovery"),
        "min_relationship_score": (float, 0.75, 0.0, 1.0, "Similarity threshold"),
        "max_related_symbols": (int, 5, 0, 100, "Related symbols per declaration"),
        "batch_size": (int, 10, 1, 2048, "Texts per embedding request"),
    },
    "performance": {
        "max_concurrent_files": (int, MAX_CONCURRENT_FILES, 1, 64, "File gate size"),
        "max_tokens_per_batch": (int, MAX_TOKENS_PER_BATCH, 100, None, "Batch token budget"),
    },
    "cache": {
        "enabled": (bool, True, None, None, "Memoize oracle replies on disk"),
        "directory": (str, ".docsmith-cache", None, None, "Cache directory name"),
        "max_age_hours": (float, 24.0, 0.0, None, "Entry time-to-live"),
    },
    "paths": {
        "logs_dir": (str, ".docsmith-logs", None, None, "Logs directory name"),
    },
}

# Schema for [model:<id>] sections. None defaults mean "unset".
MODEL_SCHEMA: dict[str, tuple[type, Any, Any, Any, str]] = {
    "provider": (str, None, None, None, "openai, anthropic, google or ollama"),
    "model": (str, None, None, None, "Provider model name"),
    "type": (str, "generation", None, None, "generation or embedding"),
    "api_key_env_var": (str, None, None, None, "Environment variable holding the key"),
    "base_url": (str, None, None, None, "Custom endpoint"),
    "temperature": (float, None, 0.0, 2.0, "Model temperature"),
    "max_tokens": (int, None, 1, None, "Model max reply tokens"),
    "top_p": (float, None, 0.0, 1.0, "Nucleus sampling"),
    "stop": (list, (), None, None, "Stop sequences"),
    "dimensions": (int, None, 1, None, "Embedding dimensions"),
}

MODEL_TYPES = ("generation", "embedding")


# =============================================================================
# Section Dataclasses
# =============================================================================


@dataclass(frozen=True)
class JSDocConfig:
    """Unit selection, context and reconciliation settings."""

    prioritize_exports: bool
    include_private: bool
    include_kinds: tuple[str, ...]
    exclude_kinds: tuple[str, ...]
    max_snippet_length: int
    surrounding_max_length: int
    generate_examples: bool
    overwrite_existing: bool
    merge_existing: bool
    min_doc_length: int
    include_symbol_references: bool
    include_related_symbols: bool


@dataclass(frozen=True)
class ClientConfig:
    """Oracle client configuration."""

    default_generation_model: str
    default_embedding_model: str
    max_concurrent_requests: int
    max_retries: int
    retry_delay_ms: int
    temperature: float
    max_tokens: int
    log_queries: bool


@dataclass(frozen=True)
class EmbeddingConfig:
    """Relationship discovery configuration."""

    enabled: bool
    min_relationship_score: float
    max_related_symbols: int
    batch_size: int


@dataclass(frozen=True)
class PerformanceConfig:
    """Batching and file-level concurrency."""

    max_concurrent_files: int
    max_tokens_per_batch: int


@dataclass(frozen=True)
class CacheConfig:
    """On-disk response cache."""

    enabled: bool
    directory: str
    max_age_hours: float


@dataclass(frozen=True)
class PathsConfig:
    """Path names configuration."""

    logs_dir: str


@dataclass(frozen=True)
class ModelConfig:
    """One registered oracle model.

    Attributes:
        id: Registry identifier used in config and cache keys.
        provider: LLM provider (openai, anthropic, google, ollama).
        model: Provider model name.
        type: "generation" or "embedding".
        api_key_env_var: Environment variable holding the API key. Defaults to
            ``<PROVIDER>_API_KEY``.
        base_url: Optional custom endpoint.
    """

    id: str
    provider: str
    model: str
    type: str = "generation"
    api_key_env_var: str | None = None
    base_url: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    stop: tuple[str, ...] = ()
    dimensions: int | None = None

    @property
    def key_env_var(self) -> str:
        """Environment variable consulted for this model's credentials."""
        return self.api_key_env_var or f"{self.provider.upper()}_API_KEY"


DEFAULT_MODELS: tuple[ModelConfig, ...] = (
    ModelConfig(
        id="openai-gpt4o",
        provider="openai",
        model="gpt-4o",
        api_key_env_var="OPENAI_API_KEY",
        temperature=DEFAULT_TEMPERATURE,
        max_tokens=MAX_TOKENS,
        top_p=DEFAULT_TOP_P,
    ),
    ModelConfig(
        id="google-gemini-pro",
        provider="google",
        model="gemini-1.5-pro",
        api_key_env_var="GOOGLE_API_KEY",
        temperature=DEFAULT_TEMPERATURE,
        max_tokens=MAX_TOKENS,
        top_p=DEFAULT_TOP_P,
    ),
    ModelConfig(
        id="ollama-codellama",
        provider="ollama",
        model="codellama",
        base_url="http://localhost:11434",
        temperature=DEFAULT_TEMPERATURE,
        max_tokens=MAX_TOKENS,
        top_p=DEFAULT_TOP_P,
    ),
    ModelConfig(
        id="openai-embedding",
        provider="openai",
        model="text-embedding-3-large",
        type="embedding",
        api_key_env_var="OPENAI_API_KEY",
        dimensions=1536,
    ),
)


# =============================================================================
# Loader
# =============================================================================


def _coerce(raw_value: str, typ: type) -> Any:
    """Convert a raw INI string to the schema type."""
    if typ is bool:
        return raw_value.strip().lower() in ("true", "1", "yes", "on")
    if typ is int:
        return int(raw_value)
    if typ is float:
        return float(raw_value)
    if typ is list:
        return tuple(item.strip() for item in raw_value.split(",") if item.strip())
    return raw_value


def _load_section(
    parser: ConfigParser, section: str, schema: dict[str, tuple[type, Any, Any, Any, str]]
) -> dict[str, Any]:
    """Load and validate a configuration section.

    Args:
        parser: ConfigParser instance with loaded config
        section: Section name to load
        schema: Schema definition for the section

    Returns:
        Dictionary of validated configuration values

    Raises:
        ConfigError: If validation fails
    """
    result = {}

    for key, (typ, default, min_val, max_val, _) in schema.items():
        if parser.has_option(section, key):
            raw_value = parser.get(section, key)
            try:
                value = _coerce(raw_value, typ)
            except ValueError as e:
                raise ConfigError(
                    f"Invalid value for [{section}].{key}: {raw_value!r} (expected {typ.__name__})"
                ) from e
        else:
            value = tuple(default) if typ is list else default

        if typ in (int, float) and value is not None:
            if min_val is not None and value < min_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but minimum is {min_val}"
                )
            if max_val is not None and value > max_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but maximum is {max_val}"
                )

        result[key] = value

    return result


def _load_models(parser: ConfigParser) -> tuple[ModelConfig, ...]:
    """Load ``[model:<id>]`` sections, falling back to DEFAULT_MODELS.

    Raises:
        ConfigError: If a model section is missing required keys or has an
            unknown type.
    """
    models = []
    for section in parser.sections():
        if not section.startswith(MODEL_SECTION_PREFIX):
            continue
        model_id = section[len(MODEL_SECTION_PREFIX) :].strip()
        values = _load_section(parser, section, MODEL_SCHEMA)
        if not model_id or not values["provider"] or not values["model"]:
            raise ConfigError(f"[{section}] requires a model id, provider and model")
        if values["type"] not in MODEL_TYPES:
            raise ConfigError(
                f"[{section}].type is {values['type']!r}, expected one of {MODEL_TYPES}"
            )
        models.append(ModelConfig(id=model_id, **values))
    return tuple(models) if models else DEFAULT_MODELS


def _load_config(config_path: Optional[Path] = None) -> "Config":
    """Load configuration from an INI file (internal use only).

    Args:
        config_path: Path to config file. If None, uses defaults from schema.

    Returns:
        Config object with all sections populated (workspace_path is placeholder)

    Raises:
        ConfigError: If validation fails
    """
    parser = ConfigParser()

    if config_path and config_path.exists():
        parser.read(config_path)

    return Config(
        workspace_path=Path("."),
        jsdoc=JSDocConfig(**_load_section(parser, "jsdoc", CONFIG_SCHEMA["jsdoc"])),
        client=ClientConfig(**_load_section(parser, "client", CONFIG_SCHEMA["client"])),
        embedding=EmbeddingConfig(
            **_load_section(parser, "embedding", CONFIG_SCHEMA["embedding"])
        ),
        performance=PerformanceConfig(
            **_load_section(parser, "performance", CONFIG_SCHEMA["performance"])
        ),
        cache=CacheConfig(**_load_section(parser, "cache", CONFIG_SCHEMA["cache"])),
        paths=PathsConfig(**_load_section(parser, "paths", CONFIG_SCHEMA["paths"])),
        models=_load_models(parser),
    )


def _defaults(section: str) -> dict[str, Any]:
    return {
        key: (tuple(default) if typ is list else default)
        for key, (typ, default, _, _, _) in CONFIG_SCHEMA[section].items()
    }


# =============================================================================
# Config
# =============================================================================


@dataclass(frozen=True)
class Config:
    """Complete application configuration."""

    workspace_path: Path
    jsdoc: JSDocConfig = None  # type: ignore[assignment]
    client: ClientConfig = None  # type: ignore[assignment]
    embedding: EmbeddingConfig = None  # type: ignore[assignment]
    performance: PerformanceConfig = None  # type: ignore[assignment]
    cache: CacheConfig = None  # type: ignore[assignment]
    paths: PathsConfig = None  # type: ignore[assignment]
    models: tuple[ModelConfig, ...] = DEFAULT_MODELS

    def __post_init__(self):
        """Initialize section configs with defaults if not provided."""
        if self.jsdoc is None:
            object.__setattr__(self, "jsdoc", JSDocConfig(**_defaults("jsdoc")))
        if self.client is None:
            object.__setattr__(self, "client", ClientConfig(**_defaults("client")))
        if self.embedding is None:
            object.__setattr__(self, "embedding", EmbeddingConfig(**_defaults("embedding")))
        if self.performance is None:
            object.__setattr__(
                self, "performance", PerformanceConfig(**_defaults("performance"))
            )
        if self.cache is None:
            object.__setattr__(self, "cache", CacheConfig(**_defaults("cache")))
        if self.paths is None:
            object.__setattr__(self, "paths", PathsConfig(**_defaults("paths")))

    @property
    def cache_path(self) -> Path:
        """Path to the response cache directory."""
        return self.workspace_path / self.cache.directory

    @property
    def llm_log_path(self) -> Path:
        """Path to the oracle query log file."""
        return self.workspace_path / self.paths.logs_dir / "llm-queries.jsonl"

    def get_model(self, model_id: str) -> ModelConfig | None:
        """Look up a registered model by id."""
        return next((m for m in self.models if m.id == model_id), None)


@dataclass(frozen=True)
class RunOptions:
    """Per-invocation switches that override the file configuration.

    Attributes:
        dry_run: Count changes but never write files.
        force_overwrite: Replace existing comments regardless of config.
        no_merge_existing: Never merge; overwrite instead of merging.
        disable_embeddings: Skip relationship discovery for this run.
    """

    dry_run: bool = False
    force_overwrite: bool = False
    no_merge_existing: bool = False
    disable_embeddings: bool = False


@lru_cache(maxsize=1)
def load_settings() -> Config:
    """Load settings for the workspace named by WORKSPACE_PATH.

    Settings are cached for the lifetime of the application.
    Use load_settings.cache_clear() to reload settings.

    Returns:
        Config object populated from the workspace config file.

    Raises:
        ValueError: If WORKSPACE_PATH is not set.
        ConfigError: If the config file is invalid.
    """
    workspace_path_str = os.getenv("WORKSPACE_PATH")
    if not workspace_path_str:
        raise ValueError("WORKSPACE_PATH environment variable must be set")

    workspace_path = Path(workspace_path_str)
    config_file = workspace_path / CONFIG_FILE_NAME
    try:
        config_exists = config_file.exists()
    except PermissionError:
        config_exists = False
    base_config = _load_config(config_file if config_exists else None)

    return Config(
        workspace_path=workspace_path,
        jsdoc=base_config.jsdoc,
        client=base_config.client,
        embedding=base_config.embedding,
        performance=base_config.performance,
        cache=base_config.cache,
        paths=base_config.paths,
        models=base_config.models,
    )
