"""
Keyword grouping pipeline.

Splits records into intent buckets, clusters each bucket, labels and
scores the clusters, then keeps the top groups by clicks. Records that
end up in no group are returned as ungrouped.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .clusterer import HierarchicalClusterer
from .intent import classify_intent, group_by_search_intent
from .metrics import calculate_group_metrics
from .models import Group, GroupingOptions, GroupingResult, Intent, KeywordRecord
from .topic import extract_group_topic

logger = logging.getLogger(__name__)

# Buckets smaller than this are not clustered
MIN_BUCKET_SIZE = 2


def group_keywords(
    records: Optional[Iterable[Union[KeywordRecord, Dict[str, Any]]]],
    options: Union[GroupingOptions, Dict[str, Any], None] = None,
) -> GroupingResult:
    """
    Group related search queries into topic clusters.

    Args:
        records: KeywordRecords or raw row dicts, in caller order
        options: GroupingOptions or a mapping of option values (defaults if None)

    Returns:
        GroupingResult with groups sorted by total clicks (descending)
    """
    if options is None:
        options = GroupingOptions()
    elif not isinstance(options, GroupingOptions):
        options = GroupingOptions.from_dict(options)

    keywords = [KeywordRecord.coerce(r) for r in (records or [])]
    if not keywords:
        return GroupingResult()

    logger.info(
        f"Grouping {len(keywords)} keywords (threshold={options.similarity_threshold}, "
        f"min_group_size={options.min_group_size}, max_groups={options.max_groups}, "
        f"group_by_intent={options.group_by_intent})"
    )

    if options.group_by_intent:
        buckets: Dict[Optional[Intent], List[KeywordRecord]] = group_by_search_intent(keywords)
    else:
        buckets = {None: keywords}

    groups: List[Group] = []
    ungrouped: List[KeywordRecord] = []

    for intent, bucket in buckets.items():
        if len(bucket) < MIN_BUCKET_SIZE:
            ungrouped.extend(bucket)
            continue

        clusterer = HierarchicalClusterer(similarity_threshold=options.similarity_threshold)
        for cluster in clusterer.cluster_records(bucket):
            if len(cluster) < options.min_group_size:
                ungrouped.extend(cluster)
                continue

            groups.append(Group(
                id=f"group_{len(groups) + 1}",
                topic=extract_group_topic([r.query for r in cluster]),
                intent=intent if intent is not None else classify_intent(cluster[0].query),
                keywords=cluster,
                metrics=calculate_group_metrics(cluster),
            ))

    groups.sort(key=lambda g: g.metrics.total_clicks, reverse=True)

    if len(groups) > options.max_groups:
        dissolved = groups[options.max_groups:]
        groups = groups[:options.max_groups]
        logger.warning(
            f"Found {len(groups) + len(dissolved)} groups, keeping top {options.max_groups}; "
            f"{sum(g.size for g in dissolved)} keywords moved to ungrouped"
        )
        for group in dissolved:
            ungrouped.extend(group.keywords)

    result = GroupingResult(groups=groups, ungrouped=ungrouped, total_keywords=len(keywords))
    logger.info(
        f"Grouping complete: {result.total_groups} groups, "
        f"{result.grouped_keywords} grouped, {len(ungrouped)} ungrouped"
    )
    return result


def filter_groups(
    groups: Sequence[Group],
    intent: Optional[Intent] = None,
    min_clicks: Optional[int] = None,
    min_size: Optional[int] = None,
    search_term: Optional[str] = None,
) -> List[Group]:
    """
    Select groups matching all given criteria.

    Args:
        groups: Groups to filter (order is preserved)
        intent: Keep only groups with this intent
        min_clicks: Keep groups with at least this many total clicks
        min_size: Keep groups with at least this many keywords
        search_term: Case-insensitive match against topic or any member query

    Returns:
        Matching groups
    """
    term = search_term.lower() if search_term else None
    selected = []

    for group in groups:
        if intent is not None and group.intent != Intent(intent):
            continue
        if min_clicks is not None and group.metrics.total_clicks < min_clicks:
            continue
        if min_size is not None and group.size < min_size:
            continue
        if term and not (
            term in group.topic.lower()
            or any(term in k.query.lower() for k in group.keywords)
        ):
            continue
        selected.append(group)

    return selected
