"""
Multi-signal string similarity for search queries.

Combines five language-agnostic signals into a bounded [0, 1] score:
- Character bigram and trigram Jaccard (boundary padded)
- Word token Jaccard
- Normalized Levenshtein similarity
- Prefix/suffix and longest-common-substring bonuses

No embeddings or external services; works on any script.
"""

import logging
import re
from typing import Iterable, List, Sequence, Set

import numpy as np

from .models import KeywordRecord

logger = logging.getLogger(__name__)

# Weights of the individual signals (sum to 1.0)
SIMILARITY_WEIGHTS = {
    'bigram': 0.25,
    'trigram': 0.20,
    'token': 0.20,
    'edit': 0.25,
    'affix': 0.05,
    'substring': 0.05,
}

PREFIX_BONUS = 0.15
SUFFIX_BONUS = 0.10

# Common substrings shorter than this earn no bonus
MIN_COMMON_SUBSTRING = 4
SUBSTRING_BONUS_SCALE = 0.2

_WHITESPACE_RE = re.compile(r'\s+')
_TOKEN_SPLIT_RE = re.compile(r'''[\s\-_,;:.!?()\[\]{}'"]+''')

# Han, Hiragana, Katakana, Hangul
_CJK_RE = re.compile('[\u4e00-\u9fff\u3040-\u309f\u30a0-\u30ff\uac00-\ud7af]')


def is_cjk(text: str) -> bool:
    """True if text contains any Chinese/Japanese/Korean character."""
    return bool(_CJK_RE.search(text))


def get_ngrams(text: str, n: int = 2) -> Set[str]:
    """
    Character n-grams of a lowercased, '#'-padded string.

    Args:
        text: Input string
        n: Gram size

    Returns:
        Set of n-grams (empty if the padded string is shorter than n)
    """
    clean = _WHITESPACE_RE.sub(' ', text.lower()).strip()
    padded = f"#{clean}#"
    return {padded[i:i + n] for i in range(len(padded) - n + 1)}


def get_word_tokens(text: str) -> List[str]:
    """Lowercased word tokens split on whitespace and common punctuation."""
    return [token for token in _TOKEN_SPLIT_RE.split(text.lower()) if token]


def extract_terms(text: str) -> List[str]:
    """
    Meaningful terms of a query.

    Drops tokens shorter than 2 characters (1 for CJK queries, where
    single characters are words) and tokens without any letter.
    """
    min_length = 1 if is_cjk(text) else 2
    return [
        token for token in get_word_tokens(text)
        if len(token) >= min_length and any(ch.isalpha() for ch in token)
    ]


def jaccard_similarity(first: Iterable[str], second: Iterable[str]) -> float:
    """|A ∩ B| / |A ∪ B|, 0.0 when both are empty."""
    set1 = set(first)
    set2 = set(second)
    union = set1 | set2
    if not union:
        return 0.0
    return len(set1 & set2) / len(union)


def levenshtein_distance(first: str, second: str) -> int:
    """Minimum number of single-character edits turning first into second."""
    if len(first) < len(second):
        first, second = second, first
    previous = list(range(len(second) + 1))
    for i, ch1 in enumerate(first, 1):
        current = [i]
        for j, ch2 in enumerate(second, 1):
            if ch1 == ch2:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j], current[j - 1], previous[j - 1]) + 1)
        previous = current
    return previous[-1]


def edit_distance_similarity(first: str, second: str) -> float:
    """1 - levenshtein / max length, case-insensitive (length of the raw strings)."""
    max_length = max(len(first), len(second))
    if max_length == 0:
        return 1.0
    distance = levenshtein_distance(first.lower(), second.lower())
    # Lowercasing can lengthen a string
    return max(0.0, 1.0 - distance / max_length)


def longest_common_substring(first: str, second: str) -> str:
    """Longest contiguous run shared by both strings (first one found on ties)."""
    best_length = 0
    best_end = 0
    previous = [0] * (len(second) + 1)
    for i, ch1 in enumerate(first, 1):
        current = [0] * (len(second) + 1)
        for j, ch2 in enumerate(second, 1):
            if ch1 == ch2:
                current[j] = previous[j - 1] + 1
                if current[j] > best_length:
                    best_length = current[j]
                    best_end = i
        previous = current
    return first[best_end - best_length:best_end]


def calculate_similarity(first: str, second: str) -> float:
    """
    Weighted multi-signal similarity between two queries.

    Args:
        first: Query string
        second: Query string

    Returns:
        Score in [0, 1]; 1.0 for case-insensitive exact matches
    """
    lower1 = first.lower()
    lower2 = second.lower()
    if lower1 == lower2:
        return 1.0

    bigram = jaccard_similarity(get_ngrams(first, 2), get_ngrams(second, 2))
    trigram = jaccard_similarity(get_ngrams(first, 3), get_ngrams(second, 3))

    tokens1 = get_word_tokens(first)
    tokens2 = get_word_tokens(second)
    token = jaccard_similarity(tokens1, tokens2) if tokens1 and tokens2 else 0.0

    edit = edit_distance_similarity(first, second)

    affix = 0.0
    if lower1.startswith(lower2) or lower2.startswith(lower1):
        affix += PREFIX_BONUS
    if lower1.endswith(lower2) or lower2.endswith(lower1):
        affix += SUFFIX_BONUS

    common = longest_common_substring(lower1, lower2)
    substring = 0.0
    if len(common) >= MIN_COMMON_SUBSTRING:
        substring = len(common) / max(len(lower1), len(lower2)) * SUBSTRING_BONUS_SCALE

    score = (
        bigram * SIMILARITY_WEIGHTS['bigram']
        + trigram * SIMILARITY_WEIGHTS['trigram']
        + token * SIMILARITY_WEIGHTS['token']
        + edit * SIMILARITY_WEIGHTS['edit']
        + affix * SIMILARITY_WEIGHTS['affix']
        + substring * SIMILARITY_WEIGHTS['substring']
    )
    return min(max(score, 0.0), 1.0)


def build_similarity_matrix(records: Sequence[KeywordRecord]) -> np.ndarray:
    """
    Pairwise similarity matrix for a list of records.

    Computes each unordered pair once and mirrors it.

    Args:
        records: Records in caller order; row i corresponds to records[i]

    Returns:
        Symmetric (n, n) float array with 1.0 on the diagonal
    """
    n = len(records)
    similarity = np.eye(n, dtype=np.float64)

    for i in range(n):
        for j in range(i + 1, n):
            score = calculate_similarity(records[i].query, records[j].query)
            similarity[i, j] = score
            similarity[j, i] = score

    logger.debug(f"Built {n}x{n} similarity matrix")
    return similarity
