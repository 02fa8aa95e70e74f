#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Data model definitions
Defines the code pattern record stored in the pattern library
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..utils.helpers import parse_timestamp, format_timestamp


# Keys a pattern file entry must provide
REQUIRED_PATTERN_FIELDS = ('id', 'category', 'framework', 'title', 'description', 'code')


@dataclass
class CodePattern:
    """Curated code snippet tied to a framework and category"""
    id: str
    category: str
    framework: str
    title: str
    description: str
    code: str
    version: str = ""
    tags: List[str] = field(default_factory=list)
    usage_count: int = 0
    relevance_score: float = 0.5
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the on-disk dictionary form"""
        return {
            'id': self.id,
            'category': self.category,
            'framework': self.framework,
            'version': self.version,
            'title': self.title,
            'description': self.description,
            'code': self.code,
            'tags': list(self.tags),
            'usage_count': self.usage_count,
            'relevance_score': self.relevance_score,
            'created_at': format_timestamp(self.created_at) if self.created_at else None,
            'updated_at': format_timestamp(self.updated_at) if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CodePattern':
        """
        Create a pattern from its dictionary form

        Raises:
            ValueError: If a required field is missing or a value has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"pattern entry must be an object, got {type(data).__name__}")

        missing = [key for key in REQUIRED_PATTERN_FIELDS if key not in data]
        if missing:
            raise ValueError(f"pattern entry is missing fields: {', '.join(missing)}")

        for key in REQUIRED_PATTERN_FIELDS:
            if not isinstance(data[key], str):
                raise ValueError(f"pattern field '{key}' must be a string")

        tags = data.get('tags') or []
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise ValueError("pattern field 'tags' must be a list of strings")

        usage_count = data.get('usage_count', 0)
        if isinstance(usage_count, bool) or not isinstance(usage_count, int) or usage_count < 0:
            raise ValueError("pattern field 'usage_count' must be a non-negative integer")

        relevance = data.get('relevance_score', 0.5)
        if isinstance(relevance, bool) or not isinstance(relevance, (int, float)):
            raise ValueError("pattern field 'relevance_score' must be a number")

        return cls(
            id=data['id'],
            category=data['category'],
            framework=data['framework'],
            title=data['title'],
            description=data['description'],
            code=data['code'],
            version=str(data.get('version') or ""),
            tags=list(tags),
            usage_count=usage_count,
            relevance_score=float(relevance),
            created_at=parse_timestamp(data.get('created_at')),
            updated_at=parse_timestamp(data.get('updated_at')),
        )
