"""Aggregated performance metrics for keyword groups."""

from typing import Sequence

from .models import GroupMetrics, KeywordRecord


def calculate_group_metrics(records: Sequence[KeywordRecord]) -> GroupMetrics:
    """
    Sum clicks/impressions and average CTR/position over a group.

    CTR is recomputed from the totals as a percentage (2 decimals),
    position is the plain mean (1 decimal).
    """
    if not records:
        return GroupMetrics()

    total_clicks = sum(r.clicks for r in records)
    total_impressions = sum(r.impressions for r in records)
    avg_ctr = total_clicks / total_impressions * 100 if total_impressions > 0 else 0.0
    avg_position = sum(r.position for r in records) / len(records)

    return GroupMetrics(
        total_clicks=total_clicks,
        total_impressions=total_impressions,
        avg_ctr=round(avg_ctr, 2),
        avg_position=round(avg_position, 1),
        keyword_count=len(records),
    )
