#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Context Builder
Turns a scanned project into an analysis: detected framework, relevant
patterns from the library, suggestions, and a Markdown report for the AI
assistant
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .project_scanner import ProjectSummary, ProjectType
from ..storage import CodePattern, PatternStore, SearchCriteria
from ..utils.constants import (
    ANALYSIS_PATTERN_LIMIT, ANALYSIS_MIN_SCORE, ANALYSIS_PATTERNS_SHOWN,
    PROD_DEPENDENCIES_SHOWN, DEV_DEPENDENCIES_SHOWN, LARGE_DEPENDENCY_COUNT,
)


# (substring, framework) rules checked in order against dependency names
FRAMEWORK_RULES = {
    ProjectType.DOTNET: [
        ('AspNetCore.Components', 'blazor-server'),
        ('AspNetCore', 'aspnet-core'),
        ('EntityFrameworkCore', 'entity-framework'),
    ],
    ProjectType.NODE: [
        ('next', 'nextjs'),
        ('react', 'react'),
        ('vue', 'vue'),
        ('@angular/core', 'angular'),
        ('svelte', 'svelte'),
        ('express', 'express'),
    ],
    ProjectType.PYTHON: [
        ('django', 'django'),
        ('fastapi', 'fastapi'),
        ('flask', 'flask'),
    ],
    ProjectType.RUST: [
        ('actix-web', 'actix-web'),
        ('axum', 'axum'),
        ('rocket', 'rocket'),
    ],
    ProjectType.GO: [
        ('gin-gonic/gin', 'gin'),
        ('gofiber/fiber', 'fiber'),
        ('labstack/echo', 'echo'),
    ],
    ProjectType.JAVA: [
        ('springframework', 'spring'),
    ],
}

# Framework used when no rule matches
DEFAULT_FRAMEWORKS = {
    ProjectType.DOTNET: 'dotnet',
    ProjectType.NODE: 'node',
    ProjectType.PYTHON: 'python',
    ProjectType.RUST: 'rust',
    ProjectType.GO: 'go',
    ProjectType.JAVA: 'java',
    ProjectType.PHP: 'php',
    ProjectType.UNKNOWN: 'generic',
}

TEST_DIR_NAMES = ('tests', 'test', 'Tests', 'Test', '__tests__', 'spec')
README_NAMES = ('README.md', 'README.rst', 'README.txt', 'README', 'readme.md')


def detect_framework(summary: ProjectSummary) -> str:
    """
    Derive the framework tag for a project

    Pure function of the summary: project type plus dependency-name
    substring matches. The tag selects patterns and labels the report.

    Args:
        summary: Scanned project

    Returns:
        Framework tag such as ``blazor-server`` or ``express``
    """
    if summary.project_type == ProjectType.PHP:
        return summary.metadata.get('framework') or DEFAULT_FRAMEWORKS[ProjectType.PHP]

    names = [dep.name.lower() for dep in summary.dependencies]
    for needle, framework in FRAMEWORK_RULES.get(summary.project_type, []):
        if any(needle.lower() in name for name in names):
            return framework

    return DEFAULT_FRAMEWORKS[summary.project_type]


class Severity(Enum):
    """Suggestion severity"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def icon(self) -> str:
        return {'info': 'ℹ️', 'warning': '⚠️', 'error': '❌'}[self.value]


@dataclass
class Suggestion:
    """Improvement hint attached to an analysis"""
    severity: Severity
    category: str
    message: str
    file: Optional[Path] = None


@dataclass
class ProjectAnalysis:
    """Result of analyzing a project against the pattern library"""
    summary: ProjectSummary
    framework: str
    patterns: List[CodePattern] = field(default_factory=list)
    suggestions: List[Suggestion] = field(default_factory=list)
    statistics: Dict[str, Any] = field(default_factory=dict)


class ContextBuilder:
    """Builds analyses and their Markdown reports"""

    def __init__(self, store: PatternStore):
        self.store = store
        self.logger = logging.getLogger('codecontext.context_builder')

    def build_analysis(self, summary: ProjectSummary) -> ProjectAnalysis:
        """
        Analyze a scanned project

        Args:
            summary: Output of ProjectScanner.scan_project

        Returns:
            Analysis with framework, patterns, suggestions and statistics
        """
        framework = detect_framework(summary)
        self.logger.info(f"Detected framework '{framework}' for project {summary.name}")

        return ProjectAnalysis(
            summary=summary,
            framework=framework,
            patterns=self._select_patterns(summary, framework),
            suggestions=self._generate_suggestions(summary, framework),
            statistics=self._collect_statistics(summary),
        )

    def _select_patterns(self, summary: ProjectSummary, framework: str) -> List[CodePattern]:
        """High-scoring framework patterns, then category hints from the code"""
        criteria = SearchCriteria(framework=framework, min_score=ANALYSIS_MIN_SCORE)
        results = self.store.search(criteria)[:ANALYSIS_PATTERN_LIMIT]

        selected: List[CodePattern] = []
        seen = set()

        def take(pattern: CodePattern):
            if pattern.id not in seen:
                seen.add(pattern.id)
                selected.append(pattern)

        for pattern, _score in results:
            take(pattern)

        for category in self._category_hints(summary):
            for pattern in self.store.search_by_framework_and_category(framework, category):
                take(pattern)

        return selected

    def _category_hints(self, summary: ProjectSummary) -> List[str]:
        hints = []
        symbols = list(summary.iter_symbols())
        if any('OnInitialized' in symbol.name for symbol in symbols):
            hints.append('lifecycle')
        if any(symbol.is_async for symbol in symbols):
            hints.append('async-patterns')
        return hints

    # ==================== Suggestions ====================

    def _generate_suggestions(self, summary: ProjectSummary, framework: str) -> List[Suggestion]:
        suggestions: List[Suggestion] = []

        if framework == 'blazor-server':
            suggestions.extend(self._check_blazor_lifecycle(summary))
        suggestions.extend(self._check_async_void(summary))

        if not summary.files and summary.project_type != ProjectType.UNKNOWN:
            suggestions.append(Suggestion(
                severity=Severity.WARNING,
                category='structure',
                message='No source files were found for this project type.',
            ))

        if summary.project_type in (ProjectType.PYTHON, ProjectType.DOTNET) and not self._has_tests(summary):
            suggestions.append(Suggestion(
                severity=Severity.INFO,
                category='testing',
                message='No test directory found. Consider adding automated tests.',
            ))

        if not any((summary.path / name).exists() for name in README_NAMES):
            suggestions.append(Suggestion(
                severity=Severity.INFO,
                category='documentation',
                message='No README found. Document how to build and run the project.',
            ))

        production_count = len(summary.production_dependencies)
        if production_count > LARGE_DEPENDENCY_COUNT:
            suggestions.append(Suggestion(
                severity=Severity.WARNING,
                category='dependencies',
                message=(
                    f"Project declares {production_count} production dependencies. "
                    "Review them for unused or overlapping packages."
                ),
            ))

        if not suggestions:
            suggestions.append(Suggestion(
                severity=Severity.INFO,
                category='dependency-injection',
                message='Consider using dependency injection for data access and external services.',
            ))

        return suggestions

    def _check_blazor_lifecycle(self, summary: ProjectSummary) -> List[Suggestion]:
        suggestions = []
        for source_file in summary.files:
            for symbol in source_file.symbols:
                if not symbol.base or 'ComponentBase' not in symbol.base:
                    continue
                if any(m.name == 'OnInitialized' and not m.is_async for m in symbol.children):
                    suggestions.append(Suggestion(
                        severity=Severity.WARNING,
                        category='blazor-lifecycle',
                        message=(
                            f"Component '{symbol.name}' uses synchronous OnInitialized(). "
                            "Consider using OnInitializedAsync() for better performance."
                        ),
                        file=source_file.path,
                    ))
        return suggestions

    def _check_async_void(self, summary: ProjectSummary) -> List[Suggestion]:
        suggestions = []
        for source_file in summary.files:
            if source_file.language != 'cs':
                continue
            for symbol in source_file.symbols:
                for method in symbol.children:
                    if method.is_async and method.return_type == 'void':
                        suggestions.append(Suggestion(
                            severity=Severity.WARNING,
                            category='async-patterns',
                            message=(
                                f"Method '{method.name}' in class '{symbol.name}' is async void. "
                                "Use async Task instead for proper exception handling."
                            ),
                            file=source_file.path,
                        ))
        return suggestions

    def _has_tests(self, summary: ProjectSummary) -> bool:
        if any((summary.path / name).is_dir() for name in TEST_DIR_NAMES):
            return True
        # .NET test projects live in sibling folders such as App.Tests
        return any(
            entry.is_dir() and entry.name.endswith(('.Tests', '.Test'))
            for entry in summary.path.iterdir()
        )

    def _collect_statistics(self, summary: ProjectSummary) -> Dict[str, Any]:
        by_language: Dict[str, int] = {}
        for source_file in summary.files:
            by_language[source_file.language] = by_language.get(source_file.language, 0) + 1

        symbols = list(summary.iter_symbols())
        return {
            'total_files': len(summary.files),
            'total_bytes': sum(f.size_bytes for f in summary.files),
            'files_by_language': dict(sorted(by_language.items())),
            'total_symbols': len(symbols),
            'async_symbols': sum(1 for s in symbols if s.is_async),
            'total_dependencies': len(summary.dependencies),
        }


def render_markdown(analysis: ProjectAnalysis) -> str:
    """
    Render an analysis as the Markdown report returned by analyze-project

    Args:
        analysis: Analysis to render

    Returns:
        Markdown text
    """
    summary = analysis.summary
    lines = [
        "# Project Analysis",
        "",
        f"**Name:** {summary.name}",
        f"**Version:** {summary.version or 'N/A'}",
        f"**Type:** {summary.project_type.value}",
        f"**Framework:** {analysis.framework}",
        f"**Path:** {summary.path}",
        "",
    ]

    if summary.metadata:
        lines.append("## Metadata")
        lines.append("")
        for key, value in sorted(summary.metadata.items()):
            lines.append(f"- **{key}:** {value}")
        lines.append("")

    lines.append("## Dependencies")
    lines.append("")
    lines.extend(_render_dependencies("Production", summary.production_dependencies, PROD_DEPENDENCIES_SHOWN))
    lines.extend(_render_dependencies("Development", summary.dev_dependencies, DEV_DEPENDENCIES_SHOWN))
    if not summary.dependencies:
        lines.append("No dependencies declared.")
        lines.append("")

    stats = analysis.statistics
    lines.append("## File Statistics")
    lines.append("")
    lines.append(f"- Total Files: {stats.get('total_files', 0)}")
    for language, count in stats.get('files_by_language', {}).items():
        lines.append(f"- .{language}: {count}")
    if stats.get('total_symbols'):
        lines.append(f"- Symbols: {stats['total_symbols']} ({stats.get('async_symbols', 0)} async)")
    lines.append("")

    if analysis.patterns:
        lines.append("## Relevant Patterns")
        lines.append("")
        for pattern in analysis.patterns[:ANALYSIS_PATTERNS_SHOWN]:
            lines.append(f"### {pattern.title}")
            lines.append(f"**Category:** {pattern.category}")
            lines.append(pattern.description)
            lines.append("")
            lines.append("```")
            lines.append(pattern.code)
            lines.append("```")
            lines.append("")
        remaining = len(analysis.patterns) - ANALYSIS_PATTERNS_SHOWN
        if remaining > 0:
            lines.append(f"...and {remaining} more (use get-patterns with framework '{analysis.framework}')")
            lines.append("")

    if analysis.suggestions:
        lines.append("## Suggestions")
        lines.append("")
        for suggestion in analysis.suggestions:
            lines.append(f"{suggestion.severity.icon} **{suggestion.category}**: {suggestion.message}")
        lines.append("")

    return "\n".join(lines)


def _render_dependencies(label: str, dependencies, limit: int) -> List[str]:
    if not dependencies:
        return []
    lines = [f"### {label} ({len(dependencies)})", ""]
    for dep in dependencies[:limit]:
        lines.append(f"- {dep.name} ({dep.version})")
    if len(dependencies) > limit:
        lines.append(f"- ...and {len(dependencies) - limit} more")
    lines.append("")
    return lines
