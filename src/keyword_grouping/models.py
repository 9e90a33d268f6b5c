"""
Data model for keyword grouping.

Defines the input record, intent categories, grouping options and the
result structures handed to rendering/export consumers.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping

logger = logging.getLogger(__name__)


class Intent(str, Enum):
    """Search intent categories."""
    INFORMATIONAL = "informational"
    COMMERCIAL = "commercial"
    NAVIGATIONAL = "navigational"
    TRANSACTIONAL = "transactional"


def _to_number(value: Any, cast=float) -> Any:
    """Coerce a raw field value to a finite number, 0 on failure."""
    if isinstance(value, bool):
        return cast(value)
    if value is None:
        return cast(0)
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Non-numeric value {value!r}, using 0")
        return cast(0)
    if math.isnan(number) or math.isinf(number):
        logger.warning(f"Non-finite value {value!r}, using 0")
        return cast(0)
    return cast(number)


@dataclass(frozen=True)
class KeywordRecord:
    """
    Search query performance record.

    Immutable. Use `from_dict` / `coerce` to build records from raw rows;
    malformed numeric fields become 0 rather than raising.
    """
    query: str
    clicks: int = 0
    impressions: int = 0
    ctr: float = 0.0
    position: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'KeywordRecord':
        """
        Build a record from a raw row (API response, JSON, CSV dict).

        Args:
            data: Mapping with query/clicks/impressions/ctr/position keys

        Returns:
            KeywordRecord with numeric fields coerced
        """
        query = data.get('query')
        if not isinstance(query, str):
            if query is not None:
                logger.warning(f"Non-string query {query!r}, using empty string")
            query = ''

        clicks = max(_to_number(data.get('clicks'), int), 0)
        impressions = max(_to_number(data.get('impressions'), int), 0)

        return cls(
            query=query,
            clicks=clicks,
            impressions=impressions,
            ctr=_to_number(data.get('ctr')),
            position=_to_number(data.get('position')),
        )

    @classmethod
    def coerce(cls, item: Any) -> 'KeywordRecord':
        """Return item as a KeywordRecord, converting mappings and records alike."""
        if isinstance(item, cls):
            return item
        if isinstance(item, Mapping):
            return cls.from_dict(item)
        logger.warning(f"Unsupported record type {type(item).__name__}, using empty record")
        return cls(query='')

    def to_dict(self) -> Dict[str, Any]:
        return {
            'query': self.query,
            'clicks': self.clicks,
            'impressions': self.impressions,
            'ctr': self.ctr,
            'position': self.position,
        }


@dataclass
class GroupMetrics:
    """Aggregated performance of a keyword group."""
    total_clicks: int = 0
    total_impressions: int = 0
    avg_ctr: float = 0.0  # percentage, 2 decimals
    avg_position: float = 0.0  # 1 decimal
    keyword_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_clicks': self.total_clicks,
            'total_impressions': self.total_impressions,
            'avg_ctr': self.avg_ctr,
            'avg_position': self.avg_position,
            'keyword_count': self.keyword_count,
        }


@dataclass
class Group:
    """A topic cluster of related keywords."""
    id: str
    topic: str
    intent: Intent
    keywords: List[KeywordRecord]
    metrics: GroupMetrics

    @property
    def size(self) -> int:
        return len(self.keywords)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'topic': self.topic,
            'intent': self.intent.value,
            'keywords': [k.to_dict() for k in self.keywords],
            'metrics': self.metrics.to_dict(),
            'size': self.size,
        }


@dataclass
class GroupingResult:
    """
    Output of a grouping run.

    Every input record appears exactly once, either inside one group's
    keywords or in `ungrouped`.
    """
    groups: List[Group] = field(default_factory=list)
    ungrouped: List[KeywordRecord] = field(default_factory=list)
    total_keywords: int = 0

    @property
    def total_groups(self) -> int:
        return len(self.groups)

    @property
    def grouped_keywords(self) -> int:
        return sum(group.size for group in self.groups)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'groups': [g.to_dict() for g in self.groups],
            'ungrouped': [k.to_dict() for k in self.ungrouped],
            'total_groups': self.total_groups,
            'total_keywords': self.total_keywords,
            'grouped_keywords': self.grouped_keywords,
        }


# camelCase names used by the browser extension UI
_OPTION_ALIASES = {
    'similarityThreshold': 'similarity_threshold',
    'minGroupSize': 'min_group_size',
    'maxGroups': 'max_groups',
    'groupByIntent': 'group_by_intent',
}


@dataclass
class GroupingOptions:
    """
    Options for a grouping run.

    Args:
        similarity_threshold: Minimum single-linkage similarity to merge (clamped to [0, 1])
        min_group_size: Smallest cluster materialized as a group (clamped to >= 1)
        max_groups: Maximum number of groups returned (clamped to >= 1)
        group_by_intent: Cluster each intent bucket separately
    """
    similarity_threshold: float = 0.5
    min_group_size: int = 2
    max_groups: int = 20
    group_by_intent: bool = True

    def __post_init__(self):
        """Clamp out-of-range values instead of failing."""
        self.similarity_threshold = self._clamp(
            'similarity_threshold', self.similarity_threshold, float, 0.5, 0.0, 1.0
        )
        self.min_group_size = self._clamp('min_group_size', self.min_group_size, int, 2, 1)
        self.max_groups = self._clamp('max_groups', self.max_groups, int, 20, 1)
        self.group_by_intent = _to_bool(self.group_by_intent)

    @staticmethod
    def _clamp(name, value, cast, default, low, high=None):
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            logger.warning(f"Invalid {name}={value!r}, using default {default}")
            return default
        if math.isnan(number) or (math.isinf(number) and number > 0 and high is None):
            logger.warning(f"Invalid {name}={value!r}, using default {default}")
            return default
        if not math.isinf(number):
            number = cast(number)

        clamped = max(number, low)
        if high is not None:
            clamped = min(clamped, high)
        if clamped != number:
            logger.warning(f"{name}={value!r} out of range, clamped to {clamped}")
        return cast(clamped)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'GroupingOptions':
        """Build options from a mapping with snake_case or camelCase keys."""
        kwargs = {}
        for key, value in data.items():
            name = _OPTION_ALIASES.get(key, key)
            if name in cls.__dataclass_fields__:
                kwargs[name] = value
            else:
                logger.warning(f"Ignoring unknown grouping option: {key}")
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'similarity_threshold': self.similarity_threshold,
            'min_group_size': self.min_group_size,
            'max_groups': self.max_groups,
            'group_by_intent': self.group_by_intent,
        }


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in ('0', 'false', 'no', 'off', '')
    return bool(value)
