# src/docsmith/embeddings/relationships.py
"""Relationship discovery over declaration embeddings."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from docsmith.config import EmbeddingConfig
from docsmith.extraction.extractor import ContextExtractor
from docsmith.extraction.models import ContextBundle, RelatedSymbol
from docsmith.generation.stats import RunStatistics
from docsmith.llm.client import LLMError
from docsmith.llm.service import DocClient
from docsmith.llm.similarity import rank_similar
from docsmith.parsing.models import ParseError
from docsmith.parsing.registry import ParserRegistry

logger = logging.getLogger(__name__)


class EmbeddingError(Exception):
    """Raised when the embedding index cannot be built."""

    pass


@dataclass
class EmbeddedNode:
    """A declaration with its embedding vector."""

    id: str
    name: str
    kind: str
    file_path: str
    snippet: str
    vector: list[float]


class RelationshipAnalyzer:
    """Embeds every documentable declaration once and finds similar ones."""

    def __init__(
        self,
        config: EmbeddingConfig,
        client: DocClient,
        registry: ParserRegistry,
        extractor: ContextExtractor,
    ):
        """Initialize the analyzer.

        Args:
            config: Threshold, result count and batch size.
            client: Oracle client used for embedding requests.
            registry: Parser registry for reading files.
            extractor: Extractor whose embedding index is populated.
        """
        self.config = config
        self.client = client
        self.registry = registry
        self.extractor = extractor
        self._nodes: dict[str, EmbeddedNode] = {}

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    async def _collect_bundles(self, paths: Iterable[Path]) -> list[ContextBundle]:
        bundles: list[ContextBundle] = []
        for path in paths:
            try:
                document = await asyncio.to_thread(self.registry.parse_file, Path(path))
            except ParseError as e:
                logger.debug(f"Skipping {path} for embeddings: {e}")
                continue
            for unit in self.extractor.collect_units(document):
                bundles.append(self.extractor.build_context(unit, document))
        return bundles

    async def initialize(self, paths: Iterable[Path], stats: RunStatistics) -> int:
        """Embed every documentable declaration in paths.

        Args:
            paths: Files to index.
            stats: Run statistics to update.

        Returns:
            Number of declarations embedded.

        Raises:
            EmbeddingError: If an embedding batch fails.
        """
        bundles = await self._collect_bundles(paths)
        logger.info(f"Embedding {len(bundles)} declarations for relationship analysis")

        batch_size = self.config.batch_size
        for start in range(0, len(bundles), batch_size):
            batch = bundles[start : start + batch_size]
            try:
                vectors = await self.client.embed([b.embedding_text() for b in batch])
            except LLMError as e:
                stats.increment("embeddings_failed", len(batch))
                raise EmbeddingError(f"Embedding batch failed: {e}") from e

            index: dict[str, list[float]] = {}
            for bundle, vector in zip(batch, vectors):
                self._nodes[bundle.id] = EmbeddedNode(
                    id=bundle.id,
                    name=bundle.name,
                    kind=bundle.kind,
                    file_path=bundle.relative_path,
                    snippet=bundle.signature,
                    vector=vector,
                )
                index[bundle.id] = vector
            self.extractor.update_embedding_index(index)
            stats.increment("embeddings_succeeded", len(batch))

        return len(self._nodes)

    async def find_related(
        self, bundle: ContextBundle, stats: RunStatistics | None = None
    ) -> list[RelatedSymbol]:
        """Declarations most similar to bundle, excluding itself.

        Args:
            bundle: Context of the declaration being documented.
            stats: Optional run statistics to update.

        Returns:
            Related symbols above the configured threshold, best first.
        """
        query = bundle.embedding
        if query is None:
            node = self._nodes.get(bundle.id)
            if node is None:
                return []
            query = node.vector

        ranked = rank_similar(
            query,
            ((node, node.vector) for node in self._nodes.values() if node.id != bundle.id),
            threshold=self.config.min_relationship_score,
            max_results=self.config.max_related_symbols,
        )
        related = [
            RelatedSymbol(
                id=node.id,
                name=node.name,
                kind=node.kind,
                file_path=node.file_path,
                score=score,
                snippet=node.snippet,
            )
            for node, score in ranked
        ]
        if stats is not None and related:
            stats.increment("relationships_discovered", len(related))
        return related
