# src/docsmith/generation/orchestrator.py
"""Batch orchestrator for a documentation run."""

import asyncio
import logging
import math
from collections.abc import Callable, Coroutine, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from docsmith.constants import CHARS_PER_TOKEN
from docsmith.embeddings.relationships import RelationshipAnalyzer
from docsmith.generation.context import Feature, RunContext
from docsmith.generation.file_processor import FileProcessor
from docsmith.generation.stats import RunStatistics
from docsmith.llm.gate import ConcurrencyGate

logger = logging.getLogger(__name__)


@dataclass
class GenerationProgress:
    """Progress update after each batch.

    Attributes:
        batch: 1-based index of the batch just completed.
        total_batches: Number of batches in the run.
        files_processed: Files processed so far.
        files_total: Files in the run.
        message: Human-readable progress message.
        timestamp: Time of progress update.
    """

    batch: int = 0
    total_batches: int = 0
    files_processed: int = 0
    files_total: int = 0
    message: str = ""
    timestamp: datetime = field(default_factory=datetime.now)


# Type alias for async progress callback
ProgressCallback = Callable[[GenerationProgress], Coroutine[Any, Any, None]]


def _file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


def create_batches(
    paths: Iterable[Path],
    max_tokens: int,
    size_of: Callable[[Path], int] = _file_size,
) -> list[list[Path]]:
    """Pack files greedily into batches under a token budget.

    Token counts are estimated from file size. A file larger than the budget
    on its own gets a batch to itself.

    Args:
        paths: Files in processing order.
        max_tokens: Token budget per batch.
        size_of: Returns a file's size in characters.

    Returns:
        Batches in input order.
    """
    batches: list[list[Path]] = []
    current: list[Path] = []
    current_tokens = 0

    for path in paths:
        path = Path(path)
        tokens = math.ceil(size_of(path) / CHARS_PER_TOKEN)
        if current and current_tokens + tokens > max_tokens:
            batches.append(current)
            current, current_tokens = [], 0
        current.append(path)
        current_tokens += tokens

    if current:
        batches.append(current)
    return batches


class DocumentationOrchestrator:
    """Runs the file loop over batches of files.

    Files in one batch run concurrently, bounded by a file-level gate that is
    independent of the oracle client's request gate. Batches run one after
    another.
    """

    def __init__(
        self,
        context: RunContext,
        processor: FileProcessor,
        relationships: RelationshipAnalyzer | None = None,
        progress_callback: ProgressCallback | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            context: Run context shared with every component.
            processor: Per-file processor.
            relationships: Relationship analyzer, if embeddings are wanted.
            progress_callback: Optional async callback for progress updates.
        """
        self.context = context
        self.processor = processor
        self.relationships = relationships
        self.progress_callback = progress_callback
        self.file_gate = ConcurrencyGate(context.config.performance.max_concurrent_files)
        self._total_batches = 0

    @property
    def stats(self) -> RunStatistics:
        return self.context.stats

    async def setup_relationship_analysis(self, paths: Sequence[Path]) -> bool:
        """Build the embedding index, disabling embeddings on failure.

        Returns:
            True if relationship analysis is available for this run.
        """
        if not self.context.flags.embeddings:
            return False
        if self.relationships is None:
            self.context.degrade(Feature.EMBEDDINGS, "no relationship analyzer configured")
            return False

        try:
            count = await self.relationships.initialize(paths, self.stats)
        except Exception as e:
            self.context.degrade(Feature.EMBEDDINGS, f"relationship analysis setup failed: {e}")
            return False

        logger.info(f"Relationship analysis ready with {count} embedded declarations")
        return True

    async def _process_gated(self, path: Path) -> bool:
        async with self.file_gate:
            return await self.processor.process_file(path, self.stats)

    async def process_batch(self, batch: Sequence[Path], index: int) -> None:
        """Process every file in a batch and wait for all of them.

        Args:
            batch: Files to process.
            index: 0-based batch index.

        Raises:
            FileSaveError: The first save failure in the batch, raised only
                after every file in the batch has finished.
        """
        logger.info(f"Processing batch {index + 1}/{self._total_batches} ({len(batch)} files)")
        results = await asyncio.gather(
            *(self._process_gated(path) for path in batch), return_exceptions=True
        )
        self.stats.increment("batches_processed")

        await self._emit_progress(
            GenerationProgress(
                batch=index + 1,
                total_batches=self._total_batches,
                files_processed=self.stats.files_processed,
                files_total=self.stats.files_total,
                message=f"Completed batch {index + 1}/{self._total_batches}",
            )
        )

        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            raise errors[0]

    async def run(self, batches: Sequence[Sequence[Path]]) -> RunStatistics:
        """Run the whole documentation pass.

        Statistics are finalized even when a save failure aborts the run.

        Args:
            batches: Batches of files, processed in order.

        Returns:
            The finished run statistics.

        Raises:
            FileSaveError: If a modified file could not be written.
        """
        self._total_batches = len(batches)
        all_paths = [Path(p) for batch in batches for p in batch]
        self.stats.increment("batches_total", len(batches))
        self.stats.increment("files_total", len(all_paths))

        try:
            await self.setup_relationship_analysis(all_paths)
            for index, batch in enumerate(batches):
                await self.process_batch(batch, index)
        finally:
            self.stats.finish()
            logger.info(
                f"Run finished in {self.stats.duration_seconds:.1f}s: "
                f"{self.stats.files_modified} files modified, "
                f"{self.stats.units_succeeded} units documented, "
                f"{self.stats.units_failed} failed, {self.stats.units_skipped} skipped"
            )

        return self.stats

    async def _emit_progress(self, progress: GenerationProgress) -> None:
        """Emit a progress update if a callback is configured."""
        if self.progress_callback:
            await self.progress_callback(progress)
