# tests/test_config.py
"""Configuration tests.

Tests verify behavior (types, ranges, loading) not specific values.
"""

import tempfile
from pathlib import Path

import pytest

from docsmith.config import (
    CONFIG_FILE_NAME,
    CONFIG_SCHEMA,
    DEFAULT_MODELS,
    Config,
    ConfigError,
    _load_config,
    load_settings,
)


@pytest.fixture
def temp_workspace():
    """Create temporary workspace directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        workspace = Path(tmpdir) / "workspace"
        workspace.mkdir()
        yield workspace


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear the load_settings cache before each test."""
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


def write_config(workspace: Path, content: str) -> Path:
    """Write a docsmith.ini file to the workspace and return the path."""
    config_path = workspace / CONFIG_FILE_NAME
    config_path.write_text(content)
    return config_path


# =============================================================================
# Type Validation Tests
# =============================================================================


def test_all_settings_have_correct_types():
    """Every setting matches its declared type from schema."""
    config = _load_config(None)  # Load with defaults only

    for section_name, keys in CONFIG_SCHEMA.items():
        section = getattr(config, section_name)
        for key, (expected_type, *_) in keys.items():
            value = getattr(section, key)
            if expected_type is list:
                expected_type = tuple
            assert isinstance(value, expected_type), (
                f"{section_name}.{key}: expected {expected_type.__name__}, "
                f"got {type(value).__name__}"
            )


def test_invalid_type_raises_clear_error(temp_workspace: Path):
    """Non-numeric value for int setting gives helpful message."""
    config_path = write_config(temp_workspace, "[client]\nmax_retries = not_a_number")

    with pytest.raises(ConfigError) as exc_info:
        _load_config(config_path)

    assert "client" in str(exc_info.value)
    assert "max_retries" in str(exc_info.value)
    assert "int" in str(exc_info.value)


def test_invalid_float_raises_clear_error(temp_workspace: Path):
    """Non-numeric value for float setting gives helpful message."""
    config_path = write_config(temp_workspace, "[embedding]\nmin_relationship_score = high")

    with pytest.raises(ConfigError) as exc_info:
        _load_config(config_path)

    assert "min_relationship_score" in str(exc_info.value)
    assert "float" in str(exc_info.value)


# =============================================================================
# Range Validation Tests
# =============================================================================


def test_value_below_minimum_raises_error(temp_workspace: Path):
    """Value below declared minimum raises ConfigError."""
    config_path = write_config(temp_workspace, "[client]\nmax_concurrent_requests = 0")

    with pytest.raises(ConfigError) as exc_info:
        _load_config(config_path)

    assert "max_concurrent_requests" in str(exc_info.value)
    assert "minimum" in str(exc_info.value)


def test_value_above_maximum_raises_error(temp_workspace: Path):
    """Value above declared maximum raises ConfigError."""
    config_path = write_config(temp_workspace, "[embedding]\nmin_relationship_score = 1.5")

    with pytest.raises(ConfigError) as exc_info:
        _load_config(config_path)

    assert "embedding" in str(exc_info.value)
    assert "maximum" in str(exc_info.value)


# =============================================================================
# Loading Behavior Tests
# =============================================================================


def test_partial_config_merges_with_defaults(temp_workspace: Path):
    """Config with only [jsdoc] still has defaults elsewhere."""
    config_path = write_config(
        temp_workspace,
        "[jsdoc]\noverwrite_existing = yes\ninclude_kinds = function, class\n",
    )

    config = _load_config(config_path)

    assert config.jsdoc.overwrite_existing is True
    assert config.jsdoc.include_kinds == ("function", "class")
    assert config.client.max_retries > 0
    assert config.performance.max_concurrent_files > 0


def test_default_models_when_none_configured(temp_workspace: Path):
    config = _load_config(write_config(temp_workspace, ""))

    assert config.models == DEFAULT_MODELS
    assert config.get_model("openai-embedding").type == "embedding"


def test_model_sections_replace_defaults(temp_workspace: Path):
    """[model:<id>] sections define the registry."""
    config_path = write_config(
        temp_workspace,
        "[model:claude]\n"
        "provider = anthropic\n"
        "model = claude-3-haiku\n"
        "temperature = 0.1\n"
        "stop = */, END\n"
        "\n"
        "[model:local-embed]\n"
        "provider = ollama\n"
        "model = nomic-embed-text\n"
        "type = embedding\n"
        "base_url = http://localhost:11434\n",
    )

    config = _load_config(config_path)

    assert [m.id for m in config.models] == ["claude", "local-embed"]
    claude = config.get_model("claude")
    assert claude.temperature == 0.1
    assert claude.stop == ("*/", "END")
    assert claude.key_env_var == "ANTHROPIC_API_KEY"
    assert config.get_model("local-embed").base_url == "http://localhost:11434"
    assert config.get_model("missing") is None


def test_model_section_requires_provider(temp_workspace: Path):
    config_path = write_config(temp_workspace, "[model:broken]\nmodel = x\n")

    with pytest.raises(ConfigError, match="provider"):
        _load_config(config_path)


def test_model_section_rejects_unknown_type(temp_workspace: Path):
    config_path = write_config(
        temp_workspace, "[model:odd]\nprovider = openai\nmodel = x\ntype = rerank\n"
    )

    with pytest.raises(ConfigError, match="rerank"):
        _load_config(config_path)


# =============================================================================
# Path Property Tests
# =============================================================================


def test_computed_paths_use_config_values(temp_workspace: Path):
    """Computed path properties use configured directory names."""
    config = Config(workspace_path=temp_workspace)

    assert config.cache_path == temp_workspace / ".docsmith-cache"
    assert config.llm_log_path == temp_workspace / ".docsmith-logs" / "llm-queries.jsonl"


# =============================================================================
# load_settings Tests
# =============================================================================


def test_load_settings_requires_workspace_path(monkeypatch):
    monkeypatch.delenv("WORKSPACE_PATH", raising=False)

    with pytest.raises(ValueError, match="WORKSPACE_PATH"):
        load_settings()


def test_load_settings_reads_workspace_config(monkeypatch, temp_workspace: Path):
    """Settings come from <workspace>/docsmith.ini and are cached."""
    write_config(temp_workspace, "[cache]\ndirectory = .cache-dir\nmax_age_hours = 2\n")
    monkeypatch.setenv("WORKSPACE_PATH", str(temp_workspace))

    settings = load_settings()

    assert settings.workspace_path == temp_workspace
    assert settings.cache_path == temp_workspace / ".cache-dir"
    assert settings.cache.max_age_hours == 2.0
    assert load_settings() is settings
