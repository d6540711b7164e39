"""Shared pytest fixtures for all tests."""

from dataclasses import replace
from pathlib import Path

import pytest

from docsmith.config import Config
from docsmith.parsing.models import SourceDocument
from docsmith.parsing.typescript_parser import TypeScriptParser

# Keys the built-in model registry looks up; tests pass these explicitly.
TEST_ENV = {"OPENAI_API_KEY": "sk-test", "GOOGLE_API_KEY": "test-google"}


@pytest.fixture(scope="session")
def ts_parser() -> TypeScriptParser:
    """A single parser instance; building the languages is slow."""
    return TypeScriptParser()


@pytest.fixture
def parse(ts_parser):
    """Parse a TypeScript string into a SourceDocument."""

    def _parse(code: str, filename: str = "src/sample.ts") -> SourceDocument:
        result = ts_parser.parse_string(code, filename=filename)
        assert result.ok, result.error
        return result.document

    return _parse


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Default configuration rooted at a temporary workspace, without backoff delays."""
    base = Config(workspace_path=tmp_path)
    return replace(base, client=replace(base.client, retry_delay_ms=0))


def make_config(base: Config, **sections) -> Config:
    """Copy base, overriding fields of individual sections.

    Example:
        make_config(config, jsdoc={"min_doc_length": 10})
    """
    updates = {
        name: replace(getattr(base, name), **values) for name, values in sections.items()
    }
    return replace(base, **updates)


@pytest.fixture
def env() -> dict[str, str]:
    """Environment holding API keys for the built-in models."""
    return dict(TEST_ENV)


@pytest.fixture
def configure(config):
    """Return a function that copies the default config with section overrides."""

    def _configure(**sections) -> Config:
        return make_config(config, **sections)

    return _configure
