"""
Flatten grouping results for export and clipboard copy.

Produces one row per keyword tagged with its group's topic, intent and
metrics. Keywords outside any group are tagged "Ungrouped".
"""

from typing import Any, Dict, List

from .intent import classify_intent
from .models import GroupingResult, KeywordRecord

UNGROUPED_TOPIC = 'Ungrouped'

CLIPBOARD_HEADERS = [
    'Query', 'Clicks', 'Impressions', 'CTR (%)', 'Position',
    'Group Topic', 'Group Size', 'Group Total Clicks', 'Group Avg Position',
]


def _keyword_row(record: KeywordRecord) -> Dict[str, Any]:
    return {
        'keyword': record.query,
        'clicks': record.clicks,
        'impressions': record.impressions,
        'ctr': record.ctr,
        'position': record.position,
    }


def export_grouped_data(result: GroupingResult) -> List[Dict[str, Any]]:
    """
    Flatten a grouping result into export rows.

    Args:
        result: Output of group_keywords

    Returns:
        Row dicts, grouped keywords first (in group order) then ungrouped
    """
    rows = []

    for group in result.groups:
        for record in group.keywords:
            row = _keyword_row(record)
            row.update({
                'group_topic': group.topic,
                'group_intent': group.intent.value,
                'group_size': group.size,
                'group_total_clicks': group.metrics.total_clicks,
                'group_avg_position': group.metrics.avg_position,
            })
            rows.append(row)

    for record in result.ungrouped:
        row = _keyword_row(record)
        row.update({
            'group_topic': UNGROUPED_TOPIC,
            'group_intent': classify_intent(record.query).value,
            'group_size': 1,
            'group_total_clicks': record.clicks,
            'group_avg_position': record.position,
        })
        rows.append(row)

    return rows


def _clipboard_cells(record: KeywordRecord) -> List[str]:
    return [
        record.query,
        f"{record.clicks:,}",
        f"{record.impressions:,}",
        f"{record.ctr * 100:.2f}%",
        f"{record.position:.2f}",
    ]


def format_grouped_clipboard(result: GroupingResult) -> str:
    """Tab-delimited text of a grouping result, one section per group."""
    lines = ['\t'.join(CLIPBOARD_HEADERS)]

    for group in result.groups:
        lines.append('')
        lines.append(f"--- {group.topic} ---")
        for record in group.keywords:
            lines.append('\t'.join(_clipboard_cells(record) + [
                group.topic,
                str(group.size),
                f"{group.metrics.total_clicks:,}",
                f"{group.metrics.avg_position:.2f}",
            ]))

    if result.ungrouped:
        lines.append('')
        lines.append('--- Ungrouped Keywords ---')
        for record in result.ungrouped:
            lines.append('\t'.join(_clipboard_cells(record) + [
                UNGROUPED_TOPIC,
                '1',
                f"{record.clicks:,}",
                f"{record.position:.2f}",
            ]))

    return '\n'.join(lines) + '\n'
