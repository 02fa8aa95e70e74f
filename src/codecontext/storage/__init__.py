#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Storage module
Pattern model, validation, scoring and the file-backed pattern store
"""

from .models import CodePattern
from .search import SearchCriteria, score_pattern
from .validation import PatternValidationError, validate_framework, validate_pattern
from .pattern_store import (
    PatternStore, PatternStoreError, PatternFileError, PatternNotFoundError,
)

__all__ = [
    'CodePattern',
    'SearchCriteria',
    'score_pattern',
    'PatternValidationError',
    'validate_framework',
    'validate_pattern',
    'PatternStore',
    'PatternStoreError',
    'PatternFileError',
    'PatternNotFoundError',
]
