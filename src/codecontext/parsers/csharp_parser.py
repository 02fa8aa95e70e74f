#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
C# code parser

Parses C# source files using regex patterns to extract:
- Class and interface declarations with their base types
- Methods with modifiers (async, override, ...) and return types

Note: This is a lightweight parser using regex patterns and brace matching.
It does not understand preprocessor directives or nested generics in every form.
"""

import re
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .symbols import Symbol, SymbolKind


class CSharpParser:
    """C# parser using regex patterns"""

    MODIFIERS = (
        'public', 'private', 'protected', 'internal', 'static', 'abstract',
        'sealed', 'partial', 'virtual', 'override', 'async', 'new', 'extern',
        'readonly', 'unsafe',
    )

    PATTERNS = {
        'type': re.compile(
            r'(?P<mods>(?:\b(?:public|private|protected|internal|static|abstract|sealed|partial)\s+)*)'
            r'\b(?P<keyword>class|interface|record|struct|enum)\s+(?P<name>\w+)'
            r'(?:\s*<[^>{]*>)?'
            r'(?:\s*\([^)]*\))?'
            r'(?:\s*:\s*(?P<bases>[^{;]+))?'
        ),
        'method': re.compile(
            r'(?P<mods>(?:\b(?:public|private|protected|internal|static|virtual|override|'
            r'async|abstract|sealed|new|extern|unsafe)\s+)+)'
            r'(?P<ret>[\w.]+(?:<[^(){};]*>)?(?:\[\])?\??)\s+'
            r'(?P<name>\w+)\s*(?:<[^(){};]*>)?\s*\([^)]*\)\s*(?:where\s+[^{;]+)?(?:\{|=>|;)'
        ),
    }

    KIND_BY_KEYWORD = {
        'class': SymbolKind.CLASS,
        'record': SymbolKind.CLASS,
        'interface': SymbolKind.INTERFACE,
        'struct': SymbolKind.STRUCT,
        'enum': SymbolKind.ENUM,
    }

    def __init__(self):
        self.logger = logging.getLogger('codecontext.csharp_parser')

    def parse_file(self, file_path: Union[str, Path]) -> List[Symbol]:
        """
        Parse a C# file and extract its type declarations

        Args:
            file_path: Path to C# file

        Returns:
            Type symbols with their methods as children
        """
        try:
            source = Path(file_path).read_text(encoding='utf-8', errors='ignore')
        except OSError as e:
            self.logger.debug(f"Cannot read {file_path}: {e}")
            return []

        return self.parse_source(source)

    def parse_source(self, source: str) -> List[Symbol]:
        """Parse C# source code string"""
        source = self._strip_comments(source)

        types: List[Tuple[Symbol, int, int]] = []
        for match in self.PATTERNS['type'].finditer(source):
            start = match.end()
            brace = source.find('{', start)
            semicolon = source.find(';', start)
            if brace == -1 or (semicolon != -1 and semicolon < brace):
                # Declaration without a body (e.g. positional record)
                end = start
            else:
                end = self._find_block_end(source, brace)

            bases = match.group('bases')
            symbol = Symbol(
                name=match.group('name'),
                kind=self.KIND_BY_KEYWORD[match.group('keyword')],
                modifiers=match.group('mods').split(),
                base=bases.split(',')[0].strip() if bases else None,
                line_number=source.count('\n', 0, match.start()) + 1,
            )
            types.append((symbol, start, end))

        for match in self.PATTERNS['method'].finditer(source):
            name = match.group('name')
            ret = match.group('ret')
            if ret in self.MODIFIERS:
                continue

            owner = self._innermost_type(types, match.start())
            if owner is None:
                continue

            owner.children.append(Symbol(
                name=name,
                kind=SymbolKind.METHOD,
                modifiers=match.group('mods').split(),
                return_type=ret,
                line_number=source.count('\n', 0, match.start()) + 1,
            ))

        return [symbol for symbol, _start, _end in types]

    def _innermost_type(self, types: List[Tuple[Symbol, int, int]], position: int) -> Optional[Symbol]:
        """Type whose body contains the position, preferring the narrowest span"""
        owner = None
        owner_span = None
        for symbol, start, end in types:
            if start <= position < end:
                span = end - start
                if owner_span is None or span < owner_span:
                    owner, owner_span = symbol, span
        return owner

    def _find_block_end(self, source: str, open_brace: int) -> int:
        """Index just past the brace matching the one at open_brace"""
        depth = 0
        for index in range(open_brace, len(source)):
            char = source[index]
            if char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    return index + 1
        return len(source)

    def _strip_comments(self, source: str) -> str:
        """Blank out comments and string literals, keeping offsets and line numbers"""
        def blank(match: re.Match) -> str:
            return re.sub(r'[^\n]', ' ', match.group(0))

        pattern = re.compile(r'//[^\n]*|/\*.*?\*/|@"(?:[^"]|"")*"|"(?:\\.|[^"\\\n])*"', re.S)
        return pattern.sub(blank, source)
