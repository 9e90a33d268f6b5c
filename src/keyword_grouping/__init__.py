"""
Keyword grouping module for search query performance data.

Groups near-duplicate and related search queries into topic clusters
using multi-signal string similarity (character n-grams, tokens, edit
distance) and single-linkage agglomerative clustering, classifies
search intent and aggregates clicks/impressions/CTR/position per group.

No embeddings or external services are involved.
"""

from .grouping import group_keywords, filter_groups
from .intent import classify_intent
from .models import (
    Group,
    GroupingOptions,
    GroupingResult,
    GroupMetrics,
    Intent,
    KeywordRecord,
)
from .similarity import calculate_similarity, build_similarity_matrix

__all__ = [
    'group_keywords',
    'filter_groups',
    'classify_intent',
    'calculate_similarity',
    'build_similarity_matrix',
    'Group',
    'GroupingOptions',
    'GroupingResult',
    'GroupMetrics',
    'Intent',
    'KeywordRecord',
]
