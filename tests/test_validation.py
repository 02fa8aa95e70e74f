#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test pattern validation and storage path derivation
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from codecontext.storage import (
    CodePattern, PatternStore, PatternValidationError, validate_framework, validate_pattern,
)
from codecontext.storage.validation import pattern_filename, resolve_pattern_file


def make_pattern(**overrides) -> CodePattern:
    fields = dict(
        id="p",
        category="c",
        framework="blazor-server",
        title="t",
        description="d",
        code="c",
    )
    fields.update(overrides)
    return CodePattern(**fields)


class TestFrameworkValidation:
    """Framework tags double as file name fragments"""

    @pytest.mark.parametrize("framework", [
        "blazor-server", "aspnet-core", "vue", "next.js", "Django_4", "a" * 64,
    ])
    def test_accepts_safe_tags(self, framework):
        assert validate_framework(framework) == framework

    @pytest.mark.parametrize("framework", [
        "",
        "../etc",
        "..",
        "a/b",
        "a\\b",
        "a:b",
        "a\0b",
        ".hidden",
        "a" * 65,
        "with space",
        "semi;colon",
        "ümlaut",
    ])
    def test_rejects_unsafe_tags(self, framework):
        with pytest.raises(PatternValidationError):
            validate_framework(framework)


class TestPatternValidation:

    def test_valid_pattern(self):
        validate_pattern(make_pattern())

    def test_empty_id_rejected(self):
        with pytest.raises(PatternValidationError):
            validate_pattern(make_pattern(id=""))

    def test_long_id_rejected(self):
        validate_pattern(make_pattern(id="x" * 128))
        with pytest.raises(PatternValidationError):
            validate_pattern(make_pattern(id="x" * 129))

    def test_category_limits(self):
        validate_pattern(make_pattern(category="x" * 64))
        with pytest.raises(PatternValidationError):
            validate_pattern(make_pattern(category="x" * 65))
        with pytest.raises(PatternValidationError):
            validate_pattern(make_pattern(category=""))

    def test_negative_usage_rejected(self):
        with pytest.raises(PatternValidationError):
            validate_pattern(make_pattern(usage_count=-1))


class TestStorePathSafety:

    @pytest.mark.parametrize("framework", [
        "../etc", "a/b", "a\\b", "a:b", "a\0b", ".hidden", "f" * 65,
    ])
    def test_add_rejects_and_writes_nothing(self, tmp_path, framework):
        root = tmp_path / "patterns"
        store = PatternStore(root)

        with pytest.raises(PatternValidationError):
            store.add(make_pattern(framework=framework))

        assert len(store) == 0
        assert store.get_statistics()['frameworks'] == []
        assert not root.exists()
        assert list(tmp_path.iterdir()) == []

    def test_pattern_filename(self):
        assert pattern_filename("blazor-server") == "blazor-server-patterns.json"

    def test_resolved_path_is_directly_under_root(self, tmp_path):
        root = tmp_path.resolve()
        output = resolve_pattern_file(root, "aspnet-core")
        assert output == root / "aspnet-core-patterns.json"
        assert output.parent == root

    def test_resolve_rechecks_framework(self, tmp_path):
        with pytest.raises(PatternValidationError):
            resolve_pattern_file(tmp_path.resolve(), "../x")
