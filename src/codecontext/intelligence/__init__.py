#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Intelligence module
Project scanning, framework detection and analysis reports
"""

from .project_scanner import (
    ProjectScanner, ProjectSummary, ProjectType, Dependency, SourceFile, ProjectAnalysisError,
)
from .context_builder import (
    ContextBuilder, ProjectAnalysis, Suggestion, Severity, detect_framework, render_markdown,
)

__all__ = [
    'ProjectScanner',
    'ProjectSummary',
    'ProjectType',
    'Dependency',
    'SourceFile',
    'ProjectAnalysisError',
    'ContextBuilder',
    'ProjectAnalysis',
    'Suggestion',
    'Severity',
    'detect_framework',
    'render_markdown',
]
