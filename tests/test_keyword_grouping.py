"""
Unit tests for the keyword grouping pipeline.

Tests the data model coercion, group metrics, options clamping and the
end-to-end grouping invariants (partition, size floor, ordering, cap).
"""

import unittest

from src.keyword_grouping.grouping import filter_groups, group_keywords
from src.keyword_grouping.metrics import calculate_group_metrics
from src.keyword_grouping.models import (
    Group,
    GroupingOptions,
    GroupingResult,
    GroupMetrics,
    Intent,
    KeywordRecord,
)


def make_records(queries, clicks=10):
    return [
        KeywordRecord(query=q, clicks=clicks, impressions=clicks * 10, ctr=0.1, position=3.0)
        for q in queries
    ]


SAMPLE_QUERIES = [
    "buy running shoes",
    "best running shoes",
    "running shoes price",
    "cheap running shoes",
    "how to clean running shoes",
    "how to clean suede shoes",
    "how to fix a leaky faucet",
    "how to fix a dripping faucet",
    "nike login",
    "nike.com login",
    "download shoe size chart",
    "free shoe size chart",
    "xyz123",
]


class TestKeywordRecord(unittest.TestCase):
    """Test record coercion from raw rows."""

    def test_from_dict(self):
        """Test well-formed rows are kept as-is."""
        record = KeywordRecord.from_dict(
            {'query': 'shoes', 'clicks': 5, 'impressions': 50, 'ctr': 0.1, 'position': 2.5}
        )
        self.assertEqual(record, KeywordRecord('shoes', 5, 50, 0.1, 2.5))

    def test_malformed_numbers_become_zero(self):
        """Test missing and non-numeric fields coerce to 0."""
        record = KeywordRecord.from_dict(
            {'query': 'shoes', 'clicks': 'n/a', 'impressions': None, 'ctr': 'NaN'}
        )
        self.assertEqual(record.clicks, 0)
        self.assertEqual(record.impressions, 0)
        self.assertEqual(record.ctr, 0.0)
        self.assertEqual(record.position, 0.0)

    def test_numeric_strings_parsed(self):
        """Test numeric strings are parsed."""
        record = KeywordRecord.from_dict({'query': 'shoes', 'clicks': '12', 'position': '4.5'})
        self.assertEqual(record.clicks, 12)
        self.assertEqual(record.position, 4.5)

    def test_negative_counts_clamped(self):
        """Test negative clicks/impressions clamp to 0."""
        record = KeywordRecord.from_dict({'query': 'shoes', 'clicks': -3, 'impressions': -1})
        self.assertEqual(record.clicks, 0)
        self.assertEqual(record.impressions, 0)

    def test_missing_query(self):
        """Test a missing query becomes the empty string."""
        self.assertEqual(KeywordRecord.from_dict({'clicks': 1}).query, '')

    def test_coerce_keeps_records(self):
        """Test coerce returns existing records unchanged."""
        record = KeywordRecord(query='shoes')
        self.assertIs(KeywordRecord.coerce(record), record)


class TestGroupMetrics(unittest.TestCase):
    """Test group metric aggregation."""

    def test_aggregation(self):
        """Test sums, CTR from totals and mean position."""
        records = [
            KeywordRecord('a', clicks=1, impressions=1, position=1.0),
            KeywordRecord('b', clicks=0, impressions=1, position=2.0),
            KeywordRecord('c', clicks=0, impressions=1, position=4.0),
        ]
        metrics = calculate_group_metrics(records)

        self.assertEqual(metrics.total_clicks, 1)
        self.assertEqual(metrics.total_impressions, 3)
        self.assertEqual(metrics.avg_ctr, 33.33)
        self.assertEqual(metrics.avg_position, 2.3)
        self.assertEqual(metrics.keyword_count, 3)

    def test_zero_impressions(self):
        """Test CTR is 0 without impressions."""
        metrics = calculate_group_metrics([KeywordRecord('a', clicks=0, impressions=0)])
        self.assertEqual(metrics.avg_ctr, 0.0)

    def test_empty(self):
        """Test empty input yields zero metrics."""
        self.assertEqual(calculate_group_metrics([]), GroupMetrics())


class TestGroupingOptions(unittest.TestCase):
    """Test option defaults and clamping."""

    def test_defaults(self):
        """Test default option values."""
        options = GroupingOptions()

        self.assertEqual(options.similarity_threshold, 0.5)
        self.assertEqual(options.min_group_size, 2)
        self.assertEqual(options.max_groups, 20)
        self.assertTrue(options.group_by_intent)

    def test_clamping(self):
        """Test out-of-range values are clamped with a warning."""
        with self.assertLogs('src.keyword_grouping.models', level='WARNING'):
            options = GroupingOptions(similarity_threshold=1.5, min_group_size=0, max_groups=-5)

        self.assertEqual(options.similarity_threshold, 1.0)
        self.assertEqual(options.min_group_size, 1)
        self.assertEqual(options.max_groups, 1)
        self.assertEqual(GroupingOptions(similarity_threshold=-0.2).similarity_threshold, 0.0)

    def test_invalid_value_uses_default(self):
        """Test non-numeric values fall back to defaults."""
        options = GroupingOptions(similarity_threshold='high', max_groups=None)

        self.assertEqual(options.similarity_threshold, 0.5)
        self.assertEqual(options.max_groups, 20)

    def test_infinite_values(self):
        """Test infinite values are clamped or fall back to defaults without raising."""
        with self.assertLogs('src.keyword_grouping.models', level='WARNING'):
            options = GroupingOptions(
                similarity_threshold=float('inf'), min_group_size='Infinity', max_groups=float('inf')
            )

        self.assertEqual(options.similarity_threshold, 1.0)
        self.assertEqual(options.min_group_size, 2)
        self.assertEqual(options.max_groups, 20)
        self.assertEqual(GroupingOptions(max_groups='-inf').max_groups, 1)
        self.assertEqual(GroupingOptions(min_group_size=10 ** 400).min_group_size, 2)

    def test_from_dict_camel_case(self):
        """Test camelCase option names are accepted."""
        options = GroupingOptions.from_dict(
            {'similarityThreshold': 0.4, 'minGroupSize': 3, 'maxGroups': 5, 'groupByIntent': False}
        )
        self.assertEqual(options.to_dict(), {
            'similarity_threshold': 0.4,
            'min_group_size': 3,
            'max_groups': 5,
            'group_by_intent': False,
        })

    def test_from_dict_ignores_unknown(self):
        """Test unknown keys are ignored."""
        options = GroupingOptions.from_dict({'colour': 'blue', 'max_groups': 7})
        self.assertEqual(options.max_groups, 7)


class TestGroupKeywords(unittest.TestCase):
    """Test the end-to-end grouping pipeline."""

    def assert_partition(self, records, result):
        """Every input record appears exactly once in the output."""
        placed = [r for g in result.groups for r in g.keywords] + list(result.ungrouped)

        self.assertEqual(len(placed), len(records))
        self.assertEqual({id(r) for r in placed}, {id(r) for r in records})
        self.assertEqual(result.grouped_keywords, sum(g.size for g in result.groups))
        self.assertEqual(result.grouped_keywords + len(result.ungrouped), result.total_keywords)
        self.assertEqual(result.total_keywords, len(records))

    def test_empty_input(self):
        """Test empty input returns an empty result."""
        for empty in ([], None):
            result = group_keywords(empty)

            self.assertEqual(result.groups, [])
            self.assertEqual(result.ungrouped, [])
            self.assertEqual(result.total_groups, 0)
            self.assertEqual(result.total_keywords, 0)
            self.assertEqual(result.grouped_keywords, 0)

    def test_running_shoes_scenario(self):
        """Test related shoe queries form one group labelled by their shared phrase."""
        records = make_records(["buy running shoes", "best running shoes", "running shoes price"])
        result = group_keywords(records, GroupingOptions(
            similarity_threshold=0.4, min_group_size=2, group_by_intent=False
        ))

        self.assertEqual(result.total_groups, 1)
        self.assertEqual(result.groups[0].size, 3)
        self.assertIn("running shoes", result.groups[0].topic)
        self.assertEqual(result.ungrouped, [])
        self.assert_partition(records, result)

    def test_single_record(self):
        """Test a single record is ungrouped."""
        records = make_records(["xyz123"])
        result = group_keywords(records)

        self.assertEqual(result.groups, [])
        self.assertEqual([r.query for r in result.ungrouped], ["xyz123"])
        self.assertEqual(result.total_keywords, 1)

    def test_identical_queries(self):
        """Test identical queries always group together."""
        records = make_records(["Running Shoes", "running shoes", "RUNNING SHOES"])
        result = group_keywords(records, {'similarityThreshold': 1.0})

        self.assertEqual(result.total_groups, 1)
        self.assertEqual(result.groups[0].size, 3)

    def test_infinite_max_groups_option(self):
        """Test an infinite raw option value falls back to the default cap."""
        result = group_keywords(make_records(SAMPLE_QUERIES), {'maxGroups': 'Infinity'})

        self.assertEqual(result.total_keywords, len(SAMPLE_QUERIES))
        self.assertLessEqual(result.total_groups, 20)

    def test_max_groups_cap(self):
        """Test excess groups are dissolved into ungrouped, keeping the top by clicks."""
        records = []
        for i in range(25):
            query = f"topic number {i}"
            records.extend(make_records([query, query], clicks=i + 1))

        result = group_keywords(records, GroupingOptions(
            similarity_threshold=1.0, min_group_size=2, max_groups=20, group_by_intent=False
        ))

        self.assertEqual(result.total_groups, 20)
        self.assertEqual(
            [g.metrics.total_clicks for g in result.groups],
            [2 * (i + 1) for i in range(24, 4, -1)]
        )
        self.assertEqual(len(result.ungrouped), 10)
        self.assertEqual(
            sorted({r.query for r in result.ungrouped}),
            sorted(f"topic number {i}" for i in range(5))
        )
        self.assert_partition(records, result)

    def test_invariants_with_intent_buckets(self):
        """Test partition, size floor, ordering and cap on mixed queries."""
        records = [
            KeywordRecord(query=q, clicks=i * 7 % 11, impressions=100, position=float(i % 5 + 1))
            for i, q in enumerate(SAMPLE_QUERIES)
        ]
        for min_size, max_groups in [(2, 20), (3, 20), (2, 1)]:
            result = group_keywords(records, GroupingOptions(
                similarity_threshold=0.4, min_group_size=min_size, max_groups=max_groups
            ))

            self.assert_partition(records, result)
            self.assertLessEqual(result.total_groups, max_groups)
            for group in result.groups:
                self.assertGreaterEqual(group.size, min_size)
                self.assertEqual(group.metrics.keyword_count, group.size)
            clicks = [g.metrics.total_clicks for g in result.groups]
            self.assertEqual(clicks, sorted(clicks, reverse=True))

    def test_intent_from_bucket(self):
        """Test groups take the intent of their bucket."""
        records = make_records(["buy running shoes", "best running shoes", "how to fix a leaky faucet"])
        result = group_keywords(records, GroupingOptions(similarity_threshold=0.4))

        self.assertEqual(result.total_groups, 1)
        self.assertEqual(result.groups[0].intent, Intent.COMMERCIAL)
        self.assertEqual([r.query for r in result.ungrouped], ["how to fix a leaky faucet"])

    def test_intent_from_first_keyword_without_buckets(self):
        """Test groups classify their first keyword when intent grouping is off."""
        records = make_records(["running shoes guide", "buy running shoes guide"])
        result = group_keywords(records, GroupingOptions(
            similarity_threshold=0.4, group_by_intent=False
        ))

        self.assertEqual(result.total_groups, 1)
        self.assertEqual(result.groups[0].intent, Intent.INFORMATIONAL)

    def test_raw_dict_rows(self):
        """Test raw rows with malformed numbers are accepted."""
        rows = [
            {'query': 'buy running shoes', 'clicks': 'bad', 'impressions': 10},
            {'query': 'best running shoes', 'clicks': 4, 'impressions': None},
        ]
        result = group_keywords(rows, {'similarityThreshold': 0.4})

        self.assertEqual(result.total_groups, 1)
        self.assertEqual(result.groups[0].metrics.total_clicks, 4)
        self.assertEqual(result.groups[0].metrics.total_impressions, 10)

    def test_group_ids(self):
        """Test group ids are assigned in creation order."""
        records = make_records(["alpha beta", "alpha beta", "gamma delta", "gamma delta"])
        result = group_keywords(records, GroupingOptions(similarity_threshold=1.0))

        self.assertEqual(sorted(g.id for g in result.groups), ["group_1", "group_2"])

    def test_to_dict(self):
        """Test result serializes to plain data."""
        records = make_records(["buy running shoes", "best running shoes"])
        data = group_keywords(records, {'similarityThreshold': 0.4}).to_dict()

        self.assertEqual(data['total_groups'], 1)
        self.assertEqual(data['grouped_keywords'], 2)
        self.assertEqual(data['groups'][0]['intent'], 'commercial')
        self.assertEqual(data['groups'][0]['metrics']['total_clicks'], 20)


class TestFilterGroups(unittest.TestCase):
    """Test filtering groups by criteria."""

    def setUp(self):
        def group(gid, topic, intent, queries, clicks):
            keywords = make_records(queries, clicks=clicks)
            return Group(gid, topic, intent, keywords, calculate_group_metrics(keywords))

        self.groups = [
            group("group_1", "running shoes", Intent.COMMERCIAL, ["buy running shoes", "best running shoes"], 50),
            group("group_2", "faucet", Intent.INFORMATIONAL, ["fix faucet", "leaky faucet", "faucet repair"], 5),
            group("group_3", "size chart", Intent.TRANSACTIONAL, ["shoe size chart", "size chart pdf"], 1),
        ]

    def test_no_criteria(self):
        """Test no criteria keeps everything."""
        self.assertEqual(filter_groups(self.groups), self.groups)

    def test_by_intent(self):
        """Test filtering by intent, including its string value."""
        self.assertEqual(filter_groups(self.groups, intent=Intent.COMMERCIAL), [self.groups[0]])
        self.assertEqual(filter_groups(self.groups, intent='informational'), [self.groups[1]])

    def test_by_clicks_and_size(self):
        """Test minimum clicks and size."""
        self.assertEqual(filter_groups(self.groups, min_clicks=10), [self.groups[0], self.groups[1]])
        self.assertEqual(filter_groups(self.groups, min_size=3), [self.groups[1]])

    def test_by_search_term(self):
        """Test search term matches topic or member queries."""
        self.assertEqual(filter_groups(self.groups, search_term='FAUCET'), [self.groups[1]])
        self.assertEqual(filter_groups(self.groups, search_term='shoe'), [self.groups[0], self.groups[2]])


if __name__ == '__main__':
    unittest.main()
