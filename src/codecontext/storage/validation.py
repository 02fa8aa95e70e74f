#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Pattern validation

Framework tags double as file name fragments, so this module is the single
gate deciding what may reach the storage directory. The same rule is
applied when a pattern is added and again when its file path is derived
at save time.
"""

import re
from pathlib import Path

from .models import CodePattern
from ..utils.constants import (
    MAX_FRAMEWORK_LENGTH, MAX_CATEGORY_LENGTH, MAX_ID_LENGTH,
    FORBIDDEN_FRAMEWORK_SEQUENCES, PATTERN_FILE_SUFFIX,
)


FRAMEWORK_RE = re.compile(r'[A-Za-z0-9_.\-]+')


class PatternValidationError(ValueError):
    """Raised when a pattern would violate the storage constraints"""


def validate_framework(framework: str) -> str:
    """
    Check a framework tag

    Args:
        framework: Framework tag such as ``blazor-server``

    Returns:
        The unchanged tag

    Raises:
        PatternValidationError: If the tag could not be used safely as a file name fragment
    """
    if not isinstance(framework, str) or not framework:
        raise PatternValidationError("Framework cannot be empty")

    for sequence in FORBIDDEN_FRAMEWORK_SEQUENCES:
        if sequence in framework:
            raise PatternValidationError(
                f"Framework contains forbidden sequence {sequence!r}: {framework!r}"
            )

    if framework.startswith('.'):
        raise PatternValidationError(f"Framework cannot start with '.': {framework!r}")

    if not FRAMEWORK_RE.fullmatch(framework):
        raise PatternValidationError(
            f"Framework may only contain letters, digits, '_', '.' and '-': {framework!r}"
        )

    if len(framework) > MAX_FRAMEWORK_LENGTH:
        raise PatternValidationError(
            f"Framework exceeds {MAX_FRAMEWORK_LENGTH} characters ({len(framework)})"
        )

    return framework


def validate_pattern(pattern: CodePattern) -> None:
    """
    Check a pattern before it enters the store

    Raises:
        PatternValidationError: Describing the first violated constraint
    """
    validate_framework(pattern.framework)

    if not pattern.id:
        raise PatternValidationError("Pattern id cannot be empty")
    if len(pattern.id) > MAX_ID_LENGTH:
        raise PatternValidationError(
            f"Pattern id exceeds {MAX_ID_LENGTH} characters ({len(pattern.id)})"
        )

    if not pattern.category:
        raise PatternValidationError("Category cannot be empty")
    if len(pattern.category) > MAX_CATEGORY_LENGTH:
        raise PatternValidationError(
            f"Category exceeds {MAX_CATEGORY_LENGTH} characters ({len(pattern.category)})"
        )

    if pattern.usage_count < 0:
        raise PatternValidationError("Usage count cannot be negative")


def pattern_filename(framework: str) -> str:
    """File name holding all patterns of one framework"""
    return f"{validate_framework(framework)}{PATTERN_FILE_SUFFIX}"


def resolve_pattern_file(trusted_root: Path, framework: str) -> Path:
    """
    Derive the output path for a framework under a canonical storage root

    Args:
        trusted_root: Storage root already passed through ``Path.resolve``
        framework: Framework tag

    Returns:
        Canonical path of ``{framework}-patterns.json`` directly under the root

    Raises:
        PatternValidationError: If the resolved path escapes the root
    """
    output = (trusted_root / pattern_filename(framework)).resolve()
    if output.parent != trusted_root or not output.is_relative_to(trusted_root):
        raise PatternValidationError(
            f"Refusing to write outside storage root: {output}"
        )
    return output
