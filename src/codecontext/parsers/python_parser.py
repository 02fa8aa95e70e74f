#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Python code parser

Parses Python source files using the ast module to extract:
- Class definitions and their base classes
- Top-level functions
- Methods, with the async flag and return annotation
"""

import ast
import logging
from pathlib import Path
from typing import List, Optional, Union

from .symbols import Symbol, SymbolKind


FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]


class PythonParser:
    """
    Python AST parser for extracting code structure

    Uses Python's built-in ast module for zero-dependency parsing.
    """

    def __init__(self):
        self.logger = logging.getLogger('codecontext.python_parser')

    def parse_file(self, file_path: Union[str, Path]) -> List[Symbol]:
        """
        Parse a Python file and extract its symbols

        Args:
            file_path: Path to Python file

        Returns:
            Top-level symbols; empty when the file cannot be read or parsed
        """
        try:
            source = Path(file_path).read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            self.logger.debug(f"Cannot read {file_path}: {e}")
            return []

        return self.parse_source(source, str(file_path))

    def parse_source(self, source: str, file_path: str = "<string>") -> List[Symbol]:
        """
        Parse Python source code string

        Args:
            source: Python source code
            file_path: Optional file path for log messages

        Returns:
            Top-level symbols (classes carry their methods as children)
        """
        try:
            tree = ast.parse(source)
        except (SyntaxError, ValueError) as e:
            self.logger.debug(f"Syntax error in {file_path}: {e}")
            return []

        symbols = []
        for node in ast.iter_child_nodes(tree):
            if isinstance(node, ast.ClassDef):
                symbols.append(self._extract_class(node))
            elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                symbols.append(self._extract_function(node, SymbolKind.FUNCTION))

        self.logger.debug(f"Parsed {file_path}: {len(symbols)} top-level symbols")
        return symbols

    def _extract_class(self, node: ast.ClassDef) -> Symbol:
        """Extract class information from AST node"""
        bases = [self._get_annotation_string(base) for base in node.bases]

        methods = []
        for item in node.body:
            if isinstance(item, (ast.FunctionDef, ast.AsyncFunctionDef)):
                methods.append(self._extract_function(item, SymbolKind.METHOD))

        modifiers = [f"@{self._get_annotation_string(d)}" for d in node.decorator_list]

        return Symbol(
            name=node.name,
            kind=SymbolKind.CLASS,
            modifiers=modifiers,
            children=methods,
            base=bases[0] if bases else None,
            line_number=node.lineno,
        )

    def _extract_function(self, node: FunctionNode, kind: SymbolKind) -> Symbol:
        """Extract function or method information from AST node"""
        modifiers = []
        if isinstance(node, ast.AsyncFunctionDef):
            modifiers.append('async')
        for decorator in node.decorator_list:
            modifiers.append(f"@{self._get_annotation_string(decorator)}")

        return Symbol(
            name=node.name,
            kind=kind,
            modifiers=modifiers,
            return_type=self._get_annotation_string(node.returns) if node.returns else None,
            line_number=node.lineno,
        )

    def _get_annotation_string(self, node: Optional[ast.AST]) -> str:
        """Convert annotation AST node to string representation"""
        if node is None:
            return ""
        try:
            return ast.unparse(node)
        except (AttributeError, ValueError):
            return type(node).__name__
