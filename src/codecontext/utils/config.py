#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration management module
Handles configuration file loading and storage-root resolution for codecontext
"""

import logging
import os
import sys
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

from .constants import (
    SERVER_NAME, SERVER_VERSION, PROTOCOL_VERSION, ENV_PATTERNS_PATH,
    DEFAULT_PATTERN_VERSION, DEFAULT_TRAINED_RELEVANCE, EXCLUDED_DIRS,
)


@dataclass
class ServerConfig:
    """MCP server identity"""
    name: str = SERVER_NAME
    version: str = SERVER_VERSION
    protocol_version: str = PROTOCOL_VERSION


@dataclass
class StorageConfig:
    """Pattern storage configuration"""
    patterns_path: Optional[str] = None


@dataclass
class AnalyzerConfig:
    """Project analyzer configuration"""
    ignore_dirs: List[str] = field(default_factory=lambda: sorted(EXCLUDED_DIRS))
    max_file_size_mb: int = 10
    extract_symbols: bool = True


@dataclass
class TrainingConfig:
    """Defaults applied to patterns added through train-pattern"""
    default_version: str = DEFAULT_PATTERN_VERSION
    default_relevance: float = DEFAULT_TRAINED_RELEVANCE


class Config:
    """Main configuration class"""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration

        Args:
            config_path: Configuration file path, if None use default path
        """
        self.logger = logging.getLogger('codecontext.config')
        self.config_dir = Path.home() / '.codecontext'
        self.config_path = self._resolve_config_path(config_path)
        self._patterns_override: Optional[str] = None

        self._load_config()

    def _resolve_config_path(self, config_path: Optional[str]) -> Path:
        """Resolve configuration file path"""
        if config_path:
            return Path(config_path).expanduser()
        return self.config_dir / 'config.yaml'

    def _load_config(self):
        """Load configuration file"""
        default_config = {
            'server': {
                'name': SERVER_NAME,
                'version': SERVER_VERSION,
                'protocol_version': PROTOCOL_VERSION,
            },
            'storage': {
                'patterns_path': None,
            },
            'analyzer': {
                'ignore_dirs': sorted(EXCLUDED_DIRS),
                'max_file_size_mb': 10,
                'extract_symbols': True,
            },
            'training': {
                'default_version': DEFAULT_PATTERN_VERSION,
                'default_relevance': DEFAULT_TRAINED_RELEVANCE,
            },
        }

        self._config_data = default_config
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    user_config = yaml.safe_load(f) or {}
                if not isinstance(user_config, dict):
                    raise ValueError("top-level YAML value must be a mapping")
                self._config_data = self._deep_merge(default_config, user_config)
            except (OSError, yaml.YAMLError, ValueError) as e:
                self.logger.warning(f"Failed to load configuration file {self.config_path}: {e}")

        try:
            self.server = ServerConfig(**self._config_data['server'])
            self.storage = StorageConfig(**self._config_data['storage'])
            self.analyzer = AnalyzerConfig(**self._config_data['analyzer'])
            self.training = TrainingConfig(**self._config_data['training'])
        except TypeError as e:
            self.logger.warning(f"Unknown configuration keys in {self.config_path}: {e}")
            self._config_data = default_config
            self.server = ServerConfig()
            self.storage = StorageConfig()
            self.analyzer = AnalyzerConfig()
            self.training = TrainingConfig()

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries"""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def get_patterns_path(self) -> Path:
        """
        Resolve the pattern storage root

        Order: explicit override (``--patterns-path``), environment variable,
        configuration file, ``data/patterns`` beside the running executable,
        then ``~/.codecontext/patterns``.
        """
        if self._patterns_override:
            return Path(self._patterns_override).expanduser()

        env_path = os.environ.get(ENV_PATTERNS_PATH)
        if env_path:
            return Path(env_path).expanduser()

        if self.storage.patterns_path:
            return Path(self.storage.patterns_path).expanduser()

        if sys.argv and sys.argv[0]:
            neighbor = Path(sys.argv[0]).resolve().parent / 'data' / 'patterns'
            if neighbor.is_dir():
                return neighbor

        return self.config_dir / 'patterns'

    @property
    def patterns_path(self) -> Path:
        """Pattern storage root (see get_patterns_path)"""
        return self.get_patterns_path()

    @patterns_path.setter
    def patterns_path(self, value: str):
        """Override the pattern storage root"""
        self._patterns_override = str(value) if value else None
