#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
codecontext - Context Assistance Server for Coding Assistants
Project analysis and a curated code-pattern library exposed over stdio JSON-RPC

Version: 0.1.0
"""

__version__ = "0.1.0"
__description__ = "Project analysis and code-pattern library served over MCP stdio"

from .storage.models import CodePattern
from .storage.pattern_store import PatternStore

__all__ = [
    "CodePattern",
    "PatternStore",
]
