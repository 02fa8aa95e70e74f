#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Constants definition module
Defines the constants shared by the pattern library, the analyzer and the MCP server
"""

from typing import Set, Tuple

# ==================== Server Identity ====================

SERVER_NAME = "codecontext"
SERVER_VERSION = "0.1.0"
PROTOCOL_VERSION = "2024-11-05"

# Environment variable pointing at the pattern storage root
ENV_PATTERNS_PATH = "CODECONTEXT_PATTERNS_PATH"

# ==================== Pattern Validation ====================

MAX_FRAMEWORK_LENGTH = 64
MAX_CATEGORY_LENGTH = 64
MAX_ID_LENGTH = 128

# Sequences that must never appear in a framework tag
FORBIDDEN_FRAMEWORK_SEQUENCES: Tuple[str, ...] = ('..', '/', '\\', ':', '\0')

# Per-framework storage file name
PATTERN_FILE_SUFFIX = "-patterns.json"

# ==================== Scoring Weights ====================

POPULARITY_WEIGHT = 0.05       # multiplied by log10(usage_count)
TITLE_MATCH_BONUS = 0.30
DESCRIPTION_MATCH_BONUS = 0.15
CODE_MATCH_BONUS = 0.05
TAG_OVERLAP_WEIGHT = 0.20      # multiplied by matched / requested tags
RECENCY_BONUS = 0.05
RECENCY_WINDOW_DAYS = 30

# ==================== Training Defaults ====================

DEFAULT_PATTERN_VERSION = "10.0"
DEFAULT_TRAINED_RELEVANCE = 0.8

# ==================== Project Analysis ====================

ANALYSIS_PATTERN_LIMIT = 10     # patterns fetched for an analysis
ANALYSIS_MIN_SCORE = 0.7        # only high-quality patterns
ANALYSIS_PATTERNS_SHOWN = 5     # patterns rendered in the report
PROD_DEPENDENCIES_SHOWN = 20
DEV_DEPENDENCIES_SHOWN = 10
LARGE_DEPENDENCY_COUNT = 50

# Directories never descended into while walking a project
EXCLUDED_DIRS: Set[str] = {
    'node_modules', 'target', 'bin', 'obj', '__pycache__',
    '.git', 'vendor', 'dist', 'build', 'venv', '.venv',
}

# Manifest files named in user-facing hints
EXPECTED_MANIFESTS: Tuple[str, ...] = (
    'Cargo.toml', 'package.json', '*.csproj', 'pyproject.toml',
    'go.mod', 'pom.xml', 'composer.json',
)
