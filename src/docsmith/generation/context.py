"""Process-scoped run context and feature flags."""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum

from docsmith.config import Config, RunOptions
from docsmith.generation.hooks import HookRegistry
from docsmith.generation.stats import RunStatistics

logger = logging.getLogger(__name__)


class Feature(str, Enum):
    """Optional subsystems that can be switched off mid-run."""

    EMBEDDINGS = "embeddings"
    RELATED_SYMBOLS = "related_symbols"
    CACHE = "cache"


@dataclass(frozen=True)
class FeatureFlags:
    """Which optional subsystems are active."""

    embeddings: bool = True
    related_symbols: bool = True
    cache: bool = True

    def without(self, feature: Feature) -> "FeatureFlags":
        """Flags with feature, and anything depending on it, turned off."""
        if feature == Feature.EMBEDDINGS:
            return replace(self, embeddings=False, related_symbols=False)
        return replace(self, **{feature.value: False})


@dataclass
class RunContext:
    """State created once per run and passed to every component."""

    config: Config
    options: RunOptions
    flags: FeatureFlags
    stats: RunStatistics
    hooks: HookRegistry = field(default_factory=HookRegistry)
    degradations: list[tuple[Feature, str]] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        config: Config,
        options: RunOptions | None = None,
        hooks: HookRegistry | None = None,
    ) -> "RunContext":
        options = options or RunOptions()
        embeddings = config.embedding.enabled and not options.disable_embeddings
        flags = FeatureFlags(
            embeddings=embeddings,
            related_symbols=embeddings and config.jsdoc.include_related_symbols,
            cache=config.cache.enabled,
        )
        return cls(
            config=config,
            options=options,
            flags=flags,
            stats=RunStatistics(dry_run=options.dry_run),
            hooks=hooks or HookRegistry(),
        )

    def degrade(self, feature: Feature, reason: str) -> None:
        """Turn off an optional feature for the rest of the run."""
        self.flags = self.flags.without(feature)
        self.degradations.append((feature, reason))
        logger.warning(f"Disabling {feature.value} for this run: {reason}")
