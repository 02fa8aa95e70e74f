#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test configuration loading, storage-root resolution and helpers
"""

import logging
import pytest
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from codecontext.utils.config import Config
from codecontext.utils.constants import ENV_PATTERNS_PATH
from codecontext.utils.helpers import format_timestamp, parse_timestamp, setup_logging


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No patterns env var, a throwaway home, and an executable with no data dir beside it"""
    monkeypatch.delenv(ENV_PATTERNS_PATH, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setattr(sys, "argv", [str(tmp_path / "bin" / "codecontext")])
    return tmp_path


class TestConfigFile:

    def test_defaults_without_file(self, clean_env):
        config = Config(str(clean_env / "missing.yaml"))
        assert config.server.name == "codecontext"
        assert config.server.protocol_version == "2024-11-05"
        assert config.training.default_version == "10.0"
        assert config.training.default_relevance == 0.8
        assert config.analyzer.max_file_size_mb == 10
        assert "node_modules" in config.analyzer.ignore_dirs

    def test_yaml_overrides_are_merged(self, clean_env):
        path = clean_env / "config.yaml"
        path.write_text(
            "training:\n"
            "  default_relevance: 0.6\n"
            "analyzer:\n"
            "  extract_symbols: false\n",
            encoding="utf-8",
        )
        config = Config(str(path))
        assert config.training.default_relevance == 0.6
        assert config.training.default_version == "10.0"
        assert config.analyzer.extract_symbols is False
        assert config.analyzer.max_file_size_mb == 10

    def test_malformed_yaml_uses_defaults(self, clean_env, caplog):
        path = clean_env / "config.yaml"
        path.write_text("training: [unclosed\n", encoding="utf-8")

        with caplog.at_level(logging.WARNING, logger="codecontext.config"):
            config = Config(str(path))
        assert config.training.default_relevance == 0.8
        assert "Failed to load configuration file" in caplog.text

    def test_unknown_keys_use_defaults(self, clean_env):
        path = clean_env / "config.yaml"
        path.write_text("server:\n  colour: blue\n", encoding="utf-8")
        config = Config(str(path))
        assert config.server.name == "codecontext"

    def test_config_never_writes(self, clean_env):
        Config()
        assert not (clean_env / "home").exists()


class TestPatternsPath:

    def test_default_under_home(self, clean_env):
        config = Config()
        assert config.get_patterns_path() == clean_env / "home" / ".codecontext" / "patterns"

    def test_neighbor_data_directory(self, clean_env):
        neighbor = clean_env / "bin" / "data" / "patterns"
        neighbor.mkdir(parents=True)
        assert Config().get_patterns_path() == neighbor.resolve()

    def test_yaml_setting(self, clean_env):
        path = clean_env / "config.yaml"
        path.write_text(f"storage:\n  patterns_path: {clean_env / 'from-yaml'}\n", encoding="utf-8")
        assert Config(str(path)).get_patterns_path() == clean_env / "from-yaml"

    def test_env_beats_yaml(self, clean_env, monkeypatch):
        path = clean_env / "config.yaml"
        path.write_text(f"storage:\n  patterns_path: {clean_env / 'from-yaml'}\n", encoding="utf-8")
        monkeypatch.setenv(ENV_PATTERNS_PATH, str(clean_env / "from-env"))
        assert Config(str(path)).get_patterns_path() == clean_env / "from-env"

    def test_explicit_override_beats_env(self, clean_env, monkeypatch):
        monkeypatch.setenv(ENV_PATTERNS_PATH, str(clean_env / "from-env"))
        config = Config()
        config.patterns_path = str(clean_env / "cli")
        assert config.patterns_path == clean_env / "cli"


class TestHelpers:

    def test_parse_z_suffix(self):
        assert parse_timestamp("2025-10-25T00:00:00Z") == datetime(2025, 10, 25, tzinfo=timezone.utc)

    def test_parse_nanoseconds(self):
        parsed = parse_timestamp("2025-10-25T12:30:45.123456789Z")
        assert parsed.microsecond == 123456

    def test_parse_offset_converted_to_utc(self):
        parsed = parse_timestamp("2025-10-25T02:00:00+02:00")
        assert parsed == datetime(2025, 10, 25, tzinfo=timezone.utc)

    def test_parse_empty(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")

    def test_format(self):
        assert format_timestamp(datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)) == "2025-01-02T03:04:05Z"

    def test_setup_logging_writes_to_stderr(self):
        logging.getLogger("codecontext").handlers.clear()
        logger = setup_logging(verbose=True)
        try:
            assert logger.level == logging.DEBUG
            assert all(handler.stream is sys.stderr for handler in logger.handlers)
        finally:
            logger.handlers.clear()
