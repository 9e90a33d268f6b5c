"""
Topic labels for keyword clusters.

Three strategies, tried in order:
1. Longest substring shared by every query (whole words preferred)
2. Most frequent word tokens (character trigrams for scripts without spaces)
3. Shortest query, truncated
"""

import logging
import re
from collections import Counter
from typing import List, Sequence

from .similarity import get_ngrams, get_word_tokens, is_cjk

logger = logging.getLogger(__name__)

MAX_SUBSTRING_LENGTH = 20
MIN_SUBSTRING_LENGTH = 3
MAX_TOPIC_TOKENS = 3
MAX_TOPIC_LENGTH = 30

# Substrings made only of digits, whitespace and separators are not topics
_NOISE_RE = re.compile(r'^[\d\s\-_.]+$')


def _is_whole_word(candidate: str, queries: Sequence[str]) -> bool:
    pattern = re.compile(r'\b' + re.escape(candidate) + r'\b', re.IGNORECASE)
    return any(pattern.search(query) for query in queries)


def find_common_substrings(queries: Sequence[str]) -> List[str]:
    """
    Longest substrings of the first query contained in every query.

    Scans lengths from min(20, shortest query) down to 3 and stops at the
    first length with any hit.

    Args:
        queries: Cluster member queries

    Returns:
        Candidates ordered best first (whole-word matches, then longer);
        empty for fewer than two queries
    """
    if len(queries) < 2:
        return []

    lowered = [q.lower() for q in queries]
    first = lowered[0]
    max_length = min(MAX_SUBSTRING_LENGTH, min(len(q) for q in lowered))

    candidates: List[str] = []
    for length in range(max_length, MIN_SUBSTRING_LENGTH - 1, -1):
        for start in range(len(first) - length + 1):
            substring = first[start:start + length]
            if substring in candidates or _NOISE_RE.match(substring):
                continue
            if all(substring in q for q in lowered[1:]):
                candidates.append(substring)

        if candidates:
            break

    # Only the longest length is searched, even if all its matches are mostly whitespace
    candidates = [s for s in candidates if len(s.strip()) >= MIN_SUBSTRING_LENGTH]
    # Stable sort keeps first-occurrence order among equals
    return sorted(candidates, key=lambda s: (not _is_whole_word(s, queries), -len(s)))


def _most_frequent(counts: Counter, floor: float) -> List[str]:
    frequent = [(term, freq) for term, freq in counts.items() if freq > floor]
    frequent.sort(key=lambda item: (-item[1], -len(item[0])))
    return [term for term, _ in frequent[:MAX_TOPIC_TOKENS]]


def extract_group_topic(queries: Sequence[str]) -> str:
    """
    Short human-readable label for a cluster of queries.

    Args:
        queries: Cluster member queries, in formation order

    Returns:
        Topic label ("" for an empty cluster)
    """
    if not queries:
        return ''

    common = find_common_substrings(queries)
    if common:
        logger.debug(f"Topic from common substring: {common[0]!r}")
        return common[0]

    token_counts: Counter = Counter()
    trigram_counts: Counter = Counter()
    for query in queries:
        token_counts.update(t for t in get_word_tokens(query) if len(t) > 1)
        trigram_counts.update(
            g for g in get_ngrams(query, 3) if '#' not in g and g.strip()
        )

    floor = max(2, 0.3 * len(queries))
    terms = _most_frequent(token_counts, floor) or _most_frequent(trigram_counts, floor)
    if terms:
        separator = '' if is_cjk(queries[0]) else ' + '
        logger.debug(f"Topic from frequent terms: {terms}")
        return separator.join(terms)

    shortest = min(queries, key=len)
    if len(shortest) > MAX_TOPIC_LENGTH:
        return shortest[:MAX_TOPIC_LENGTH - 3] + '...'
    return shortest
