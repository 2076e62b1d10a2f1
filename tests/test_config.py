"""
Tests for configuration loading.
"""

import pytest
import yaml

from statement_recon.config import (
    ReconConfig,
    _deep_merge,
    generate_default_config,
    get_default_config,
    load_config,
)
from statement_recon.utils.exceptions import ConfigurationError


class TestConfig:
    """Test suite for configuration."""

    def test_defaults(self):
        config = load_config()

        assert isinstance(config, ReconConfig)
        assert config.api.path_prefix == "/api/conciliation"
        assert config.api.endpoints.validate_path == "/validate"
        assert config.workflow.default_acknowledgement is False
        assert config.input.decisions.column_mappings["include"] == "Include"
        assert config.config_file_path is None
        assert config.logging.max_bytes == 10 * 1024 * 1024
        assert config.logging.backup_count == 5

    def test_user_file_merged_over_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "api:\n"
            "  base_url: https://recon.example.com\n"
            "  endpoints:\n"
            "    match_path: /auto-match\n"
            "workflow:\n"
            "  stages:\n"
            "    manual:\n"
            "      label: Review\n"
        )

        config = load_config(path)

        assert config.api.base_url == "https://recon.example.com"
        assert config.api.endpoints.match_path == "/auto-match"
        assert config.api.endpoints.import_path == "/import"
        assert config.workflow.stages["manual"].label == "Review"
        assert config.workflow.stages["manual"].description
        assert config.config_file_path == str(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("api: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(path)

    def test_root_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- one\n- two\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("api:\n  timeout_seconds: soon\n")

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config(path)

    def test_generate_default_config(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"

        generate_default_config(path)

        content = path.read_text()
        assert content.startswith("# Bank Statement Reconciliation Configuration")
        assert yaml.safe_load(content) == get_default_config()

    def test_deep_merge_keeps_unrelated_keys(self):
        merged = _deep_merge({"a": {"b": 1, "c": 2}, "d": 3}, {"a": {"b": 5}})

        assert merged == {"a": {"b": 5, "c": 2}, "d": 3}
