# src/docsmith/generation/file_processor.py
"""Per-file unit loop."""

import asyncio
import logging
import traceback
from pathlib import Path
from typing import TYPE_CHECKING

from docsmith.extraction.extractor import ContextExtractor
from docsmith.extraction.models import ContextBundle
from docsmith.generation.context import RunContext
from docsmith.generation.hooks import AFTER_PROCESSING, BEFORE_PROCESSING
from docsmith.generation.reconciler import ReconcileOutcome, Reconciler
from docsmith.generation.stats import RunStatistics
from docsmith.llm.client import LLMError
from docsmith.llm.models import ResponseStatus
from docsmith.llm.service import DocClient
from docsmith.parsing.models import Declaration, ParseError, SourceDocument
from docsmith.parsing.registry import ParserRegistry

if TYPE_CHECKING:
    from docsmith.embeddings.relationships import RelationshipAnalyzer

logger = logging.getLogger(__name__)


class FileSaveError(Exception):
    """Raised when a modified file cannot be written back."""

    def __init__(self, path: Path, message: str):
        super().__init__(message)
        self.path = path


class FileProcessor:
    """Documents every unit of one file and saves the result.

    A failure on one unit is recorded and the loop moves on. A failure to
    save the file is recorded and then raised, since the edits made in
    memory would otherwise be lost silently.
    """

    def __init__(
        self,
        context: RunContext,
        registry: ParserRegistry,
        extractor: ContextExtractor,
        client: DocClient,
        reconciler: Reconciler,
        relationships: "RelationshipAnalyzer | None" = None,
    ):
        self.context = context
        self.registry = registry
        self.extractor = extractor
        self.client = client
        self.reconciler = reconciler
        self.relationships = relationships

    async def process_file(self, path: Path, stats: RunStatistics | None = None) -> bool:
        """Process one file.

        Args:
            path: File to document.
            stats: Statistics to update. Defaults to the run context's.

        Returns:
            True if the file had at least one changed unit.

        Raises:
            FileSaveError: If the modified file could not be written.
        """
        stats = stats or self.context.stats
        path = Path(path)

        try:
            document = await asyncio.to_thread(self.registry.parse_file, path)
        except ParseError as e:
            logger.error(f"Cannot process {path}: {e}")
            stats.record_error(file_path=str(path), message=str(e))
            return False

        units = self.extractor.collect_units(document)
        logger.debug(f"{document.relative_path}: {len(units)} documentable units")

        for unit in units:
            stats.increment("units_considered")
            if unit.has_doc() and not self.reconciler.policy.allows_existing:
                logger.debug(f"{unit.name} already documented, skipping")
                stats.increment("units_skipped")
                continue
            await self._process_unit(unit, document, stats)

        stats.increment("files_processed")
        if not document.changed:
            return False

        stats.increment("files_modified")
        if self.context.options.dry_run:
            logger.info(f"[dry run] Would update {document.relative_path}")
            return True

        try:
            await asyncio.to_thread(document.save)
        except OSError as e:
            message = f"Failed to save {path}: {e}"
            stats.record_error(file_path=str(path), message=message, stack=traceback.format_exc())
            raise FileSaveError(path, message) from e

        logger.info(f"Updated {document.relative_path}")
        return True

    async def _process_unit(
        self, unit: Declaration, document: SourceDocument, stats: RunStatistics
    ) -> None:
        """Generate and reconcile one unit, recording any failure."""
        bundle: ContextBundle | None = None
        try:
            bundle = self.extractor.build_context(unit, document)
            bundle = await self.context.hooks.run(BEFORE_PROCESSING, bundle)

            if self.context.flags.related_symbols and self.relationships is not None:
                bundle.related = await self.relationships.find_related(bundle, stats)

            response = await self.client.generate(bundle)

            match response.status:
                case ResponseStatus.SUCCESS:
                    text = await self.context.hooks.run(AFTER_PROCESSING, response.content)
                    outcome = self.reconciler.reconcile(unit, text)
                    self._record_outcome(outcome, unit, document, stats)
                case ResponseStatus.SKIP:
                    logger.debug(f"Oracle skipped {unit.name}: {response.reason}")
                    stats.increment("units_skipped")
                case ResponseStatus.ERROR:
                    message = response.reason or "Generation failed"
                    logger.error(f"Generation failed for {unit.name}: {message}")
                    stats.increment("units_failed")
                    stats.record_error(
                        file_path=document.relative_path,
                        message=message,
                        unit_id=unit.id,
                        unit_name=unit.name,
                    )
                    await self.context.hooks.notify_error(LLMError(message), bundle)

        except Exception as e:
            logger.error(f"Error processing {unit.name} in {document.relative_path}: {e}")
            stats.increment("units_failed")
            stats.record_error(
                file_path=document.relative_path,
                message=str(e),
                unit_id=unit.id,
                unit_name=unit.name,
                stack=traceback.format_exc(),
            )
            await self.context.hooks.notify_error(e, bundle)

    def _record_outcome(
        self,
        outcome: ReconcileOutcome,
        unit: Declaration,
        document: SourceDocument,
        stats: RunStatistics,
    ) -> None:
        logger.debug(f"{unit.name}: {outcome.value}")
        if outcome.changed:
            stats.increment("units_succeeded")
        elif outcome == ReconcileOutcome.ERROR:
            stats.increment("units_failed")
            stats.record_error(
                file_path=document.relative_path,
                message="Existing documentation could not be reconciled",
                unit_id=unit.id,
                unit_name=unit.name,
            )
        else:
            stats.increment("units_skipped")
