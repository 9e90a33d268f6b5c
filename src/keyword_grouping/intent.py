"""
Rule-based search intent classification.

Each category has a weight and an ordered list of patterns. A query is
assigned the highest-weighted category with any matching pattern; ties
go to the category declared first, no match means informational.
Patterns cover several languages (English, Spanish, Russian, Chinese,
Japanese, Korean, Arabic).
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .models import Intent, KeywordRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntentRule:
    """One category of the intent table."""
    intent: Intent
    weight: float
    patterns: Tuple[re.Pattern, ...]

    def matches(self, query: str) -> bool:
        return any(pattern.search(query) for pattern in self.patterns)


def _compile(*patterns: str) -> Tuple[re.Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


# Declaration order is the tie-break order
INTENT_RULES: List[IntentRule] = [
    IntentRule(
        intent=Intent.INFORMATIONAL,
        weight=0.8,
        patterns=_compile(
            r'^(how|what|why|when|where|who|which|comment|qué|cómo|когда|что|как|什么|怎么|どう|何|왜|무엇)',
            r'(guide|tutorial|tips|learn|understand|учить|学习|تعلم|guía|ガイド)',
            r'\?$',
        ),
    ),
    IntentRule(
        intent=Intent.COMMERCIAL,
        weight=0.9,
        patterns=_compile(
            r'(buy|purchase|price|cost|cheap|best|review|vs|compare|купить|покупка|цена|购买|价格|شراء|سعر|comprar|precio|比較|購入)',
            r'(discount|deal|sale|offer|скидка|折扣|تخفيض|descuento|割引)',
            # $ is an end anchor: a trailing number also counts as commercial
            r'[0-9]+[.,]?[0-9]*\s*(€|$|£|¥|₽|₹|₩|﷼)',
        ),
    ),
    IntentRule(
        intent=Intent.NAVIGATIONAL,
        weight=0.7,
        patterns=_compile(
            r'(login|signin|website|homepage|contact|about|вход|登录|دخول|サインイン)',
            r'^(www\.|https?://)',
            r'(\.com|\.org|\.net|\.edu)',
        ),
    ),
    IntentRule(
        intent=Intent.TRANSACTIONAL,
        weight=0.85,
        patterns=_compile(
            r'(download|install|signup|register|subscribe|order|скачать|下载|تحميل|ダウンロード|descargar)',
            r'(free|trial|demo|бесплатно|免费|مجاني|無料|gratis)',
        ),
    ),
]


def classify_intent(query: str, rules: Sequence[IntentRule] = INTENT_RULES) -> Intent:
    """
    Classify the search intent of a query.

    Args:
        query: Search query
        rules: Ordered intent table (defaults to INTENT_RULES)

    Returns:
        Matching Intent with the highest weight, INFORMATIONAL if none match
    """
    lowered = query.lower()
    best_intent = Intent.INFORMATIONAL
    best_weight = 0.0

    for rule in rules:
        if rule.weight > best_weight and rule.matches(lowered):
            best_intent = rule.intent
            best_weight = rule.weight

    return best_intent


def group_by_search_intent(records: Sequence[KeywordRecord]) -> Dict[Intent, List[KeywordRecord]]:
    """Partition records into the four intent buckets, preserving order."""
    buckets: Dict[Intent, List[KeywordRecord]] = {intent: [] for intent in Intent}
    for record in records:
        buckets[classify_intent(record.query)].append(record)

    logger.debug(
        "Intent buckets: " + ", ".join(f"{i.value}={len(r)}" for i, r in buckets.items())
    )
    return buckets
