#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Code parsers module

Provides parsers for different programming languages to extract code structure
"""

from .symbols import Symbol, SymbolKind
from .python_parser import PythonParser
from .csharp_parser import CSharpParser

__all__ = [
    'Symbol',
    'SymbolKind',
    'PythonParser',
    'CSharpParser',
]
