"""
Command line entry point for keyword grouping.

Usage:
    python3 -m src.keyword_grouping records.json [--config options.yaml]
        [--threshold 0.5] [--min-group-size 2] [--max-groups 20] [--no-intent]
        [--export rows|clipboard] [--output result.json] [--verbose]

Input is a JSON list of objects with query, clicks, impressions, ctr and
position fields (e.g. a Search Console export).
"""

import argparse
import json
import logging
import sys
import time
from typing import Any, Dict, List, Optional, Sequence

from .config import ConfigError, load_options
from .export import export_grouped_data, format_grouped_clipboard
from .grouping import group_keywords

logger = logging.getLogger(__name__)


class InputError(ValueError):
    """Records file missing or malformed."""


def load_records(path: str) -> List[Dict[str, Any]]:
    """
    Load keyword rows from a JSON file.

    Accepts either a list of rows or an object with a "rows" list
    (the Search Analytics API response shape).

    Raises:
        InputError: If the file cannot be read or does not hold a list
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise InputError(f"Cannot read records file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise InputError(f"Invalid JSON in records file {path}: {e}") from e

    if isinstance(data, dict) and isinstance(data.get('rows'), list):
        data = data['rows']
    if not isinstance(data, list):
        raise InputError(f"Records file {path} must contain a JSON list, got {type(data).__name__}")

    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Group related search queries into topic clusters'
    )
    parser.add_argument('records', help='JSON file with keyword performance rows')
    parser.add_argument('--config', help='YAML file with grouping options')
    parser.add_argument('--threshold', type=float, dest='similarity_threshold',
                        help='Similarity threshold for merging (0-1)')
    parser.add_argument('--min-group-size', type=int, dest='min_group_size',
                        help='Minimum keywords per group')
    parser.add_argument('--max-groups', type=int, dest='max_groups',
                        help='Maximum number of groups')
    parser.add_argument('--no-intent', action='store_false', dest='group_by_intent', default=None,
                        help='Cluster all keywords together instead of per intent')
    parser.add_argument('--export', choices=['rows', 'clipboard'],
                        help='Write flattened export rows or tab-delimited text instead of the result')
    parser.add_argument('--output', help='Output file (default: stdout)')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for command line grouping."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    try:
        options = load_options(args.config, overrides={
            'similarity_threshold': args.similarity_threshold,
            'min_group_size': args.min_group_size,
            'max_groups': args.max_groups,
            'group_by_intent': args.group_by_intent,
        })
        records = load_records(args.records)
    except (ConfigError, InputError) as e:
        logger.error(str(e))
        return 1

    start_time = time.time()
    result = group_keywords(records, options)
    elapsed = time.time() - start_time
    logger.info(
        f"Grouped {result.total_keywords} keywords into {result.total_groups} groups "
        f"in {elapsed:.2f} seconds"
    )

    if args.export == 'clipboard':
        output = format_grouped_clipboard(result)
    elif args.export == 'rows':
        output = json.dumps(export_grouped_data(result), ensure_ascii=False, indent=2) + '\n'
    else:
        output = json.dumps(result.to_dict(), ensure_ascii=False, indent=2) + '\n'

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(output)
        logger.info(f"Wrote output to {args.output}")
    else:
        sys.stdout.write(output)

    return 0
