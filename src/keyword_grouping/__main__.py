"""
Entry point for running keyword grouping as a module.

Usage:
    python3 -m src.keyword_grouping records.json [--config options.yaml]
"""

import sys

from .cli import main

if __name__ == '__main__':
    sys.exit(main())
