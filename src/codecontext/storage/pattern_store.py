#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Pattern Store
In-memory pattern collection with category/framework indices, persisted as
one ``{framework}-patterns.json`` file per framework under a storage root
"""

import json
import logging
import os
import tempfile
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .models import CodePattern
from .search import SearchCriteria, ScoredPattern, rank_patterns
from .validation import PatternValidationError, validate_pattern, resolve_pattern_file
from ..utils.helpers import utc_now


class PatternStoreError(Exception):
    """Base error raised by the pattern store"""


class PatternFileError(PatternStoreError):
    """A pattern file could not be read or parsed"""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load pattern file {path}: {reason}")


class PatternNotFoundError(PatternStoreError):
    """No pattern carries the requested id"""


class PatternStore:
    """
    Pattern library

    Owns the flat, insertion-ordered pattern sequence and the derived
    indices (category -> positions, framework -> positions). Every read and
    write goes through this class; the indices are never handed out.
    """

    def __init__(self, storage_root: Union[str, Path]):
        """
        Initialize an empty store (no I/O)

        Args:
            storage_root: Directory holding the pattern files
        """
        self.storage_root = Path(storage_root)
        self.logger = logging.getLogger('codecontext.pattern_store')

        self._patterns: List[CodePattern] = []
        self._category_index: Dict[str, List[int]] = {}
        self._framework_index: Dict[str, List[int]] = {}

    def __len__(self) -> int:
        return len(self._patterns)

    # ==================== Persistence ====================

    def load(self) -> int:
        """
        Replace the store contents with every pattern found under the storage root

        Walks the root recursively without following symlinks and parses each
        ``*.json`` file as a pattern file. Patterns failing validation are
        skipped with a warning.

        Returns:
            Number of patterns loaded

        Raises:
            PatternFileError: If a file cannot be read or is not a pattern file
        """
        self._patterns = []
        self._category_index = {}
        self._framework_index = {}

        if not self.storage_root.is_dir():
            self.logger.warning(f"Pattern storage path does not exist or is not a directory: {self.storage_root}")
            return 0

        loaded: List[CodePattern] = []
        for file_path in self._iter_pattern_files():
            loaded.extend(self._load_pattern_file(file_path))

        self._patterns = loaded
        self._rebuild_indexes()

        self.logger.info(f"Loaded {len(self._patterns)} patterns from {self.storage_root}")
        return len(self._patterns)

    def _iter_pattern_files(self):
        """Yield ``*.json`` files under the root in a stable order, skipping symlinks"""
        for dirpath, dirnames, filenames in os.walk(self.storage_root, followlinks=False):
            dirnames.sort()
            for filename in sorted(filenames):
                if not filename.endswith('.json'):
                    continue
                file_path = Path(dirpath) / filename
                if file_path.is_symlink():
                    self.logger.debug(f"Skipping symlinked pattern file: {file_path}")
                    continue
                yield file_path

    def _load_pattern_file(self, file_path: Path) -> List[CodePattern]:
        """Parse one pattern file"""
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError) as e:
            raise PatternFileError(file_path, f"cannot read file: {e}") from e
        except json.JSONDecodeError as e:
            raise PatternFileError(file_path, f"invalid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get('patterns'), list):
            raise PatternFileError(file_path, "expected an object with a 'patterns' array")

        patterns = []
        for position, entry in enumerate(data['patterns']):
            try:
                pattern = CodePattern.from_dict(entry)
            except ValueError as e:
                raise PatternFileError(file_path, f"entry {position}: {e}") from e

            try:
                validate_pattern(pattern)
            except PatternValidationError as e:
                self.logger.warning(f"Skipping invalid pattern '{pattern.id}' in {file_path}: {e}")
                continue

            now = utc_now()
            if pattern.created_at is None:
                pattern.created_at = now
            if pattern.updated_at is None:
                pattern.updated_at = now
            patterns.append(pattern)

        self.logger.debug(f"Read {len(patterns)} patterns from {file_path}")
        return patterns

    def save(self) -> List[Path]:
        """
        Write one ``{framework}-patterns.json`` file per framework

        The root is canonicalized first and every output path is checked to
        resolve directly under it. Each file is written to a temporary file
        and renamed into place.

        Returns:
            Paths of the files written

        Raises:
            PatternStoreError: If the root cannot be created or a file cannot be written
        """
        try:
            self.storage_root.mkdir(parents=True, exist_ok=True)
            trusted_root = self.storage_root.resolve(strict=True)
        except OSError as e:
            raise PatternStoreError(f"Failed to create storage directory {self.storage_root}: {e}") from e

        by_framework: Dict[str, List[CodePattern]] = OrderedDict()
        for pattern in self._patterns:
            by_framework.setdefault(pattern.framework, []).append(pattern)

        written = []
        for framework, patterns in by_framework.items():
            try:
                file_path = resolve_pattern_file(trusted_root, framework)
            except PatternValidationError as e:
                raise PatternStoreError(str(e)) from e

            content = json.dumps(
                {'patterns': [p.to_dict() for p in patterns]},
                ensure_ascii=False,
                indent=2,
            )
            self._write_atomic(trusted_root, file_path, content)
            written.append(file_path)

        self.logger.info(
            f"Saved {len(self._patterns)} patterns in {len(written)} files to {trusted_root}"
        )
        return written

    def _write_atomic(self, directory: Path, file_path: Path, content: str):
        """Write content beside the target, then rename over it"""
        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{file_path.name}.", suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, file_path)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise PatternStoreError(f"Failed to write pattern file {file_path}: {e}") from e

    # ==================== Mutation ====================

    def add(self, pattern: CodePattern) -> CodePattern:
        """
        Validate and append a pattern

        Duplicate ids are accepted.

        Args:
            pattern: Pattern to add

        Returns:
            The stored pattern (timestamps filled in)

        Raises:
            PatternValidationError: If the pattern is rejected; the store is unchanged
        """
        validate_pattern(pattern)

        now = utc_now()
        if pattern.created_at is None or pattern.created_at.timestamp() == 0:
            pattern.created_at = now
        pattern.updated_at = now

        position = len(self._patterns)
        self._patterns.append(pattern)
        self._category_index.setdefault(pattern.category, []).append(position)
        self._framework_index.setdefault(pattern.framework, []).append(position)

        self.logger.debug(f"Added pattern '{pattern.id}' ({pattern.framework}/{pattern.category})")
        return pattern

    def add_and_save(self, pattern: CodePattern) -> CodePattern:
        """
        Add a pattern and persist the library, keeping it only if the write succeeds

        Raises:
            PatternValidationError: If the pattern is rejected
            PatternStoreError: If saving fails; the pattern is removed again
        """
        self.add(pattern)
        try:
            self.save()
        except PatternStoreError:
            self._patterns.pop()
            self._rebuild_indexes()
            self.logger.warning(f"Discarded pattern '{pattern.id}' after failed save")
            raise
        return pattern

    def increment_usage(self, pattern_id: str) -> CodePattern:
        """
        Record one more use of a pattern

        Raises:
            PatternNotFoundError: If no pattern has this id
        """
        pattern = self.get_by_id(pattern_id)
        if pattern is None:
            raise PatternNotFoundError(f"Pattern not found: {pattern_id}")

        pattern.usage_count += 1
        pattern.updated_at = utc_now()
        return pattern

    def _rebuild_indexes(self):
        """Recompute both indices from the pattern sequence"""
        self._category_index = {}
        self._framework_index = {}

        for position, pattern in enumerate(self._patterns):
            self._category_index.setdefault(pattern.category, []).append(position)
            self._framework_index.setdefault(pattern.framework, []).append(position)

    # ==================== Queries ====================

    def get_by_id(self, pattern_id: str) -> Optional[CodePattern]:
        """First pattern with the given id, or None"""
        for pattern in self._patterns:
            if pattern.id == pattern_id:
                return pattern
        return None

    def get_all_patterns(self) -> Tuple[CodePattern, ...]:
        """All patterns in insertion order"""
        return tuple(self._patterns)

    def search(self, criteria: SearchCriteria) -> List[ScoredPattern]:
        """
        Search patterns

        Framework narrows first (an unknown framework returns immediately),
        then category; survivors are scored, filtered by ``min_score`` and
        sorted by descending score.

        Args:
            criteria: Search criteria

        Returns:
            List of (pattern, score), best first
        """
        if criteria.framework is not None:
            positions = self._framework_index.get(criteria.framework)
            if positions is None:
                return []
            candidates = list(positions)
        else:
            candidates = list(range(len(self._patterns)))

        if criteria.category is not None:
            category_positions = self._category_index.get(criteria.category)
            if category_positions is None:
                return []
            allowed = set(category_positions)
            candidates = [position for position in candidates if position in allowed]

        return rank_patterns([self._patterns[position] for position in candidates], criteria)

    def search_by_framework_and_category(self, framework: str, category: str) -> List[CodePattern]:
        """Patterns of one framework and category, best first, without scores"""
        criteria = SearchCriteria(framework=framework, category=category)
        return [pattern for pattern, _score in self.search(criteria)]

    def get_statistics(self) -> Dict[str, Any]:
        """
        Summary of the library

        Returns:
            Dictionary with total_patterns, categories, frameworks,
            total_usage and avg_relevance
        """
        total = len(self._patterns)
        avg_relevance = 0.0
        if total:
            avg_relevance = sum(p.relevance_score for p in self._patterns) / total

        return {
            'total_patterns': total,
            'categories': list(self._category_index.keys()),
            'frameworks': list(self._framework_index.keys()),
            'total_usage': sum(p.usage_count for p in self._patterns),
            'avg_relevance': avg_relevance,
        }
