"""
Unit tests for configuration loading.
"""

import pytest

from dokosa.config.config_loader import build_config, load_config
from dokosa.core.exceptions import ConfigError
from dokosa.core.types import DokosaConfig, EmbedderConfig


class TestDokosaConfig:
    """Tests for DokosaConfig defaults."""

    def test_defaults(self):
        """Test the default settings."""
        config = DokosaConfig()

        assert config.index_file is None
        assert config.embedding_provider == "openai"
        assert config.chunk_window_size == 50
        assert config.chunk_step_size == 25
        assert config.search_count == 10
        assert config.similarity_threshold == 0.3
        assert config.timeout_seconds == 120

    def test_embedder_config(self):
        """Test provider settings are carried over."""
        config = DokosaConfig(
            embedding_provider="ollama",
            embedding_model="mxbai-embed-large",
            embedding_base_url="http://gpu:11434/",
            timeout_seconds=5,
        )

        embedder_config = config.embedder_config()

        assert isinstance(embedder_config, EmbedderConfig)
        assert embedder_config.provider == "ollama"
        assert embedder_config.resolved_model() == "mxbai-embed-large"
        assert embedder_config.resolved_base_url() == "http://gpu:11434"
        assert embedder_config.timeout_seconds == 5

    def test_provider_defaults(self):
        """Test model and URL fall back to the provider defaults."""
        embedder_config = EmbedderConfig(provider="ollama")

        assert embedder_config.resolved_model() == "nomic-embed-text"
        assert embedder_config.resolved_base_url() == "http://localhost:11434"


class TestLoadConfig:
    """Tests for load_config."""

    def test_no_file_no_env(self):
        """Test defaults when nothing is configured."""
        assert load_config(None, environ={}) == DokosaConfig()

    def test_yaml_file(self, tmp_path):
        """Test values are read from YAML."""
        path = tmp_path / "dokosa.yaml"
        path.write_text(
            "index_file: /data/index.dokosa\n"
            "embedding_provider: ollama\n"
            "chunk_window_size: 40\n"
            "similarity_threshold: 0.5\n",
            encoding="utf-8",
        )

        config = load_config(path, environ={})

        assert config.index_file == "/data/index.dokosa"
        assert config.embedding_provider == "ollama"
        assert config.chunk_window_size == 40
        assert config.chunk_step_size == 25
        assert config.similarity_threshold == 0.5

    def test_empty_file(self, tmp_path):
        """Test an empty YAML file means defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path, environ={}) == DokosaConfig()

    def test_env_overrides_file(self, tmp_path):
        """Test environment variables win over the file."""
        path = tmp_path / "dokosa.yaml"
        path.write_text("index_file: /from/file\n", encoding="utf-8")

        config = load_config(path, environ={
            "DOKOSA_INDEX_FILE": "/from/env",
            "OPENAI_API_KEY": "sk-env",
            "DOKOSA_EMBEDDING_MODEL": "text-embedding-3-large",
        })

        assert config.index_file == "/from/env"
        assert config.api_key == "sk-env"
        assert config.embedding_model == "text-embedding-3-large"

    def test_empty_env_ignored(self):
        """Test empty environment values do not override."""
        config = load_config(None, environ={"DOKOSA_EMBEDDING_PROVIDER": ""})

        assert config.embedding_provider == "openai"

    def test_missing_file(self, tmp_path):
        """Test a missing config file is an error."""
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yaml", environ={})

    def test_invalid_yaml(self, tmp_path):
        """Test unparseable YAML is an error."""
        path = tmp_path / "bad.yaml"
        path.write_text("index_file: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(path, environ={})

    def test_not_a_mapping(self, tmp_path):
        """Test a YAML list is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="mapping"):
            load_config(path, environ={})


class TestBuildConfig:
    """Tests for build_config validation."""

    def test_unknown_key(self):
        """Test unknown keys are rejected."""
        with pytest.raises(ConfigError, match="Unknown config keys: colour"):
            build_config({"colour": "blue"})

    def test_wrong_type(self):
        """Test a value of the wrong type is rejected."""
        with pytest.raises(ConfigError, match="chunk_window_size"):
            build_config({"chunk_window_size": "fifty"})

    def test_bool_is_not_int(self):
        """Test booleans are not accepted as numbers."""
        with pytest.raises(ConfigError):
            build_config({"search_count": True})

    def test_int_accepted_for_float(self):
        """Test an integer threshold becomes a float."""
        config = build_config({"similarity_threshold": 0})

        assert config.similarity_threshold == 0.0
        assert isinstance(config.similarity_threshold, float)

    def test_numeric_strings(self):
        """Test numeric strings (as from the environment) are converted."""
        config = build_config({"timeout_seconds": "30", "similarity_threshold": "0.25"})

        assert config.timeout_seconds == 30
        assert config.similarity_threshold == 0.25

    @pytest.mark.parametrize("key", ["chunk_window_size", "chunk_step_size", "timeout_seconds"])
    def test_non_positive_rejected(self, key):
        """Test sizes and timeout must be positive."""
        with pytest.raises(ConfigError, match="positive"):
            build_config({key: 0})

    def test_negative_count_rejected(self):
        """Test a negative result count is rejected."""
        with pytest.raises(ConfigError):
            build_config({"search_count": -1})
