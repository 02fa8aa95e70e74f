#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Language-neutral symbol records produced by the source parsers
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional


class SymbolKind(Enum):
    """Symbol kinds"""
    CLASS = "class"
    INTERFACE = "interface"
    FUNCTION = "function"
    METHOD = "method"
    ENUM = "enum"
    STRUCT = "struct"


@dataclass
class Symbol:
    """Class, function or method found in a source file"""
    name: str
    kind: SymbolKind
    modifiers: List[str] = field(default_factory=list)
    children: List['Symbol'] = field(default_factory=list)
    base: Optional[str] = None
    return_type: Optional[str] = None
    line_number: int = 0

    @property
    def is_async(self) -> bool:
        return 'async' in self.modifiers

    def walk(self) -> Iterator['Symbol']:
        """Yield this symbol and all nested symbols"""
        yield self
        for child in self.children:
            yield from child.walk()
