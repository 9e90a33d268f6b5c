"""
Grouping options loading.

Layers, later wins:
1. GroupingOptions defaults
2. YAML options file (optional)
3. Environment variables
4. Explicit overrides (command line flags)

Environment Variables:
    KEYWORD_GROUPING_SIMILARITY_THRESHOLD: Merge threshold (float, 0-1)
    KEYWORD_GROUPING_MIN_GROUP_SIZE: Minimum keywords per group (int)
    KEYWORD_GROUPING_MAX_GROUPS: Maximum groups returned (int)
    KEYWORD_GROUPING_BY_INTENT: Cluster per intent bucket (true/false)
"""

import logging
import os
from typing import Any, Dict, Mapping, Optional

import yaml

from .models import GroupingOptions

logger = logging.getLogger(__name__)

ENV_VARS = {
    'KEYWORD_GROUPING_SIMILARITY_THRESHOLD': 'similarity_threshold',
    'KEYWORD_GROUPING_MIN_GROUP_SIZE': 'min_group_size',
    'KEYWORD_GROUPING_MAX_GROUPS': 'max_groups',
    'KEYWORD_GROUPING_BY_INTENT': 'group_by_intent',
}


class ConfigError(ValueError):
    """Options file missing or malformed."""


def _read_yaml(path: str) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read options file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in options file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Options file {path} must contain a mapping, got {type(data).__name__}")

    # Allow the options to sit under a top-level "grouping" key
    return data.get('grouping', data)


def load_options(
    path: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> GroupingOptions:
    """
    Resolve grouping options from file, environment and overrides.

    Args:
        path: Optional YAML options file
        overrides: Values that take precedence over everything else (None values ignored)

    Returns:
        GroupingOptions (out-of-range values clamped)

    Raises:
        ConfigError: If the options file cannot be read or parsed
    """
    values: Dict[str, Any] = {}

    if path:
        values.update(_read_yaml(path))
        logger.info(f"Loaded grouping options from {path}")

    for env_var, name in ENV_VARS.items():
        value = os.environ.get(env_var)
        if value is not None:
            logger.info(f"Using {name}={value} from {env_var}")
            values[name] = value

    if overrides:
        values.update({k: v for k, v in overrides.items() if v is not None})

    return GroupingOptions.from_dict(values)
