"""Programmatic entry point for a documentation run."""

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

# Logging constants defined here (not in constants/) because logging.basicConfig()
# must run before any module imports that might create loggers.
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: int = logging.INFO) -> None:
    """Configure root logging with the application format."""
    logging.basicConfig(format=LOG_FORMAT, datefmt=DATE_FORMAT, level=level)


configure_logging()

from docsmith.cache.store import CacheStore  # noqa: E402
from docsmith.config import Config, RunOptions, load_settings  # noqa: E402
from docsmith.embeddings.relationships import RelationshipAnalyzer  # noqa: E402
from docsmith.extraction.extractor import ContextExtractor  # noqa: E402
from docsmith.extraction.models import SymbolUsage, WorkspacePackage  # noqa: E402
from docsmith.generation.context import Feature, RunContext  # noqa: E402
from docsmith.generation.file_processor import FileProcessor  # noqa: E402
from docsmith.generation.hooks import HookRegistry  # noqa: E402
from docsmith.generation.orchestrator import (  # noqa: E402
    DocumentationOrchestrator,
    ProgressCallback,
    create_batches,
)
from docsmith.generation.reconciler import ReconcilePolicy, Reconciler  # noqa: E402
from docsmith.generation.stats import RunStatistics  # noqa: E402
from docsmith.llm.service import DocClient  # noqa: E402
from docsmith.parsing.registry import ParserRegistry  # noqa: E402

logger = logging.getLogger(__name__)


async def _create_cache(context: RunContext) -> CacheStore | None:
    """Open the response cache, disabling it if the directory is unusable."""
    if not context.flags.cache:
        return None
    config = context.config
    cache = CacheStore(config.cache_path, max_age_hours=config.cache.max_age_hours)
    if not await cache.initialize():
        context.degrade(Feature.CACHE, f"cache directory {config.cache_path} is not writable")
        return None
    return cache


async def generate_documentation(
    paths: Iterable[Path],
    config: Config | None = None,
    options: RunOptions | None = None,
    packages: Iterable[WorkspacePackage] = (),
    symbol_index: Mapping[str, list[SymbolUsage]] | None = None,
    hooks: HookRegistry | None = None,
    progress_callback: ProgressCallback | None = None,
) -> RunStatistics:
    """Document every supported declaration in the given files.

    Args:
        paths: Source files to process.
        config: Configuration. Defaults to load_settings().
        options: Per-run switches.
        packages: Workspace packages, for import classification.
        symbol_index: Usage sites keyed by declaration id.
        hooks: Plugin hooks and error callbacks.
        progress_callback: Optional async callback for progress updates.

    Returns:
        Finished run statistics.

    Raises:
        ConfigError: If the default generation model cannot be used.
        FileSaveError: If a modified file could not be written.
    """
    config = config or load_settings()
    context = RunContext.create(config, options, hooks)
    packages = list(packages)
    context.stats.increment("packages_total", len(packages))

    cache = await _create_cache(context)
    client = DocClient(
        config.client,
        config.models,
        cache=cache,
        log_path=config.llm_log_path if config.client.log_queries else None,
        require_embedding=False,
        generate_examples=config.jsdoc.generate_examples,
    )
    if context.flags.embeddings and client.default_embedding_model is None:
        context.degrade(Feature.EMBEDDINGS, "no embedding model available")

    registry = ParserRegistry(config.workspace_path)
    extractor = ContextExtractor(config.jsdoc, packages=packages, symbol_index=symbol_index)
    reconciler = Reconciler(
        config.jsdoc.min_doc_length, ReconcilePolicy.from_config(config.jsdoc, context.options)
    )
    relationships = (
        RelationshipAnalyzer(config.embedding, client, registry, extractor)
        if context.flags.embeddings
        else None
    )
    processor = FileProcessor(context, registry, extractor, client, reconciler, relationships)
    orchestrator = DocumentationOrchestrator(
        context, processor, relationships=relationships, progress_callback=progress_callback
    )

    batches = create_batches(
        [Path(p) for p in paths], config.performance.max_tokens_per_batch
    )
    logger.info(
        f"Documenting {sum(len(b) for b in batches)} files in {len(batches)} batches"
        + (" (dry run)" if context.options.dry_run else "")
    )
    return await orchestrator.run(batches)
