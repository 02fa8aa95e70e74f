#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Pattern Relevance Scoring
Search criteria and the composite relevance score used to rank patterns
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from .models import CodePattern
from ..utils.constants import (
    POPULARITY_WEIGHT, TITLE_MATCH_BONUS, DESCRIPTION_MATCH_BONUS,
    CODE_MATCH_BONUS, TAG_OVERLAP_WEIGHT, RECENCY_BONUS, RECENCY_WINDOW_DAYS,
)
from ..utils.helpers import utc_now


# (pattern, score) pair returned by searches
ScoredPattern = Tuple[CodePattern, float]


@dataclass
class SearchCriteria:
    """Filters and ranking inputs for a pattern search"""
    query: Optional[str] = None
    category: Optional[str] = None
    framework: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    min_score: float = 0.0


def score_pattern(pattern: CodePattern, criteria: SearchCriteria,
                  now: Optional[datetime] = None) -> float:
    """
    Compute the relevance of a pattern for the given criteria

    Starts from the pattern's baseline relevance and adds popularity, query
    hits (title, description, code), tag overlap and a recency bonus. The
    result is not clamped, so strong matches stay separable from patterns
    that are merely popular.

    Args:
        pattern: Pattern to score
        criteria: Search criteria
        now: Reference time for the recency bonus (defaults to the current time)

    Returns:
        Relevance score
    """
    score = pattern.relevance_score

    if pattern.usage_count > 0:
        score += math.log10(pattern.usage_count) * POPULARITY_WEIGHT

    if criteria.query:
        query = criteria.query.lower()
        if query in pattern.title.lower():
            score += TITLE_MATCH_BONUS
        if query in pattern.description.lower():
            score += DESCRIPTION_MATCH_BONUS
        if query in pattern.code.lower():
            score += CODE_MATCH_BONUS

    if criteria.tags:
        wanted = set(criteria.tags)
        matching = len(wanted & set(pattern.tags))
        score += TAG_OVERLAP_WEIGHT * matching / len(wanted)

    if pattern.updated_at is not None:
        now = now or utc_now()
        if now - pattern.updated_at < timedelta(days=RECENCY_WINDOW_DAYS):
            score += RECENCY_BONUS

    return score


def rank_patterns(candidates: List[CodePattern], criteria: SearchCriteria,
                  now: Optional[datetime] = None) -> List[ScoredPattern]:
    """
    Score candidates, drop those under ``min_score`` and sort best first

    The sort is stable, so equally scored patterns keep insertion order.
    """
    now = now or utc_now()
    scored = [(pattern, score_pattern(pattern, criteria, now)) for pattern in candidates]
    scored = [item for item in scored if item[1] >= criteria.min_score]
    scored.sort(key=lambda item: item[1], reverse=True)
    return scored
