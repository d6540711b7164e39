"""Relationship analyzer tests."""

import pytest

from docsmith.embeddings import EmbeddingError, RelationshipAnalyzer
from docsmith.extraction import ContextExtractor
from docsmith.generation.stats import RunStatistics
from docsmith.llm.client import LLMError
from docsmith.parsing import ParserRegistry

SOURCE = """export function add(a: number, b: number): number {
  return a + b;
}

export function sum(values: number[]): number {
  return values.reduce(add, 0);
}

export class Logger {
  log(message: string): void {}
}
"""

VECTORS = {
    "add": [1.0, 0.0, 0.0],
    "sum": [0.9, 0.1, 0.1],
    "Logger": [0.0, 0.0, 1.0],
    "log": [0.0, 0.2, 0.9],
}


class FakeEmbedder:
    """Embeds texts by looking up the declaration name."""

    def __init__(self, error=None):
        self.error = error
        self.batches: list[list[str]] = []

    async def embed(self, texts, **kwargs):
        self.batches.append(texts)
        if self.error:
            raise self.error
        return [VECTORS[text.split("\n")[0].split(" ")[1]] for text in texts]


@pytest.fixture
def source_file(config):
    path = config.workspace_path / "src" / "util.ts"
    path.parent.mkdir(parents=True)
    path.write_text(SOURCE)
    return path


@pytest.fixture
def build(configure):
    def _build(client, **embedding):
        config = configure(embedding={"batch_size": 3, **embedding})
        extractor = ContextExtractor(config.jsdoc)
        registry = ParserRegistry(config.workspace_path)
        return RelationshipAnalyzer(config.embedding, client, registry, extractor)

    return _build


async def test_initialize_embeds_in_batches(build, source_file):
    """Every documentable declaration is embedded once, in configured batch sizes."""
    client = FakeEmbedder()
    analyzer = build(client)
    stats = RunStatistics()

    count = await analyzer.initialize([source_file], stats)

    assert count == 4
    assert [len(b) for b in client.batches] == [3, 1]
    assert stats.embeddings_succeeded == 4
    assert len(analyzer.extractor.embedding_index) == 4


async def test_unparseable_files_are_skipped(build, source_file, config):
    analyzer = build(FakeEmbedder())
    missing = config.workspace_path / "gone.ts"

    count = await analyzer.initialize([missing, source_file], RunStatistics())

    assert count == 4


async def test_find_related_excludes_self_and_applies_threshold(build, source_file):
    """Only similar declarations other than the query come back, best first."""
    analyzer = build(FakeEmbedder())
    stats = RunStatistics()
    await analyzer.initialize([source_file], stats)
    document = analyzer.registry.parse_file(source_file)
    add = next(d for d in document.declarations if d.name == "add")

    bundle = analyzer.extractor.build_context(add, document)
    related = await analyzer.find_related(bundle, stats)

    assert [r.name for r in related] == ["sum"]
    assert related[0].score > 0.9
    assert related[0].file_path == "src/util.ts"
    assert stats.relationships_discovered == 1


async def test_find_related_respects_max_results(build, source_file):
    analyzer = build(FakeEmbedder(), min_relationship_score=0.0, max_related_symbols=2)
    await analyzer.initialize([source_file], RunStatistics())
    document = analyzer.registry.parse_file(source_file)
    logger = next(d for d in document.declarations if d.name == "Logger")

    related = await analyzer.find_related(analyzer.extractor.build_context(logger, document))

    assert [r.name for r in related] == ["log", "sum"]


async def test_find_related_unknown_declaration(build, source_file, parse):
    analyzer = build(FakeEmbedder())
    await analyzer.initialize([source_file], RunStatistics())
    document = parse("function other() {}\n", filename="src/other.ts")

    bundle = analyzer.extractor.build_context(document.declarations[0], document)

    assert await analyzer.find_related(bundle) == []


async def test_embedding_failure_raises(build, source_file):
    """A failed batch is counted and surfaces as EmbeddingError."""
    analyzer = build(FakeEmbedder(error=LLMError("rate limited")))
    stats = RunStatistics()

    with pytest.raises(EmbeddingError, match="rate limited"):
        await analyzer.initialize([source_file], stats)

    assert stats.embeddings_failed == 3
