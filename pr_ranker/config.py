"""Configuration loader for pr-ranker.

Reads YAML configuration from ~/.config/pr-ranker/config.yaml (or a custom
path) and builds the filter and scoring configuration used by the pipeline.
The file is validated against ``schemas/config.json``.

Requires PyYAML and jsonschema.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

import jsonschema
import yaml

from pr_ranker.cache import DEFAULT_TTL
from pr_ranker.filters import DEFAULT_FILTER_CONFIG, FilterConfig
from pr_ranker.scoring import DEFAULT_SCORING_CONFIG, ScoringConfig

logger = logging.getLogger("pr_ranker.config")

DEFAULT_CONFIG_PATH = os.path.expanduser("~/.config/pr-ranker/config.yaml")
DEFAULT_LIMIT = 50

# Caps on comma-separated label input
MAX_LABELS = 50
MAX_LABELS_LENGTH = 2048

_FILTER_FLAGS = (
    "exclude_drafts",
    "exclude_approved",
    "exclude_hold",
    "exclude_conflicts",
    "exclude_active_reviews",
    "exclude_skip_review",
)


class ConfigError(ValueError):
    """The configuration file is unreadable or does not match the schema."""


@dataclass
class Config:
    """Top-level application configuration."""

    default_repo: str = ""
    limit: int = DEFAULT_LIMIT
    cache_ttl: float = DEFAULT_TTL
    filters: FilterConfig = DEFAULT_FILTER_CONFIG
    weights: ScoringConfig = DEFAULT_SCORING_CONFIG


def parse_bool(value: Any) -> bool:
    """Interpret a flag value: true/1/yes (any case) are true, anything else false."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("true", "1", "yes")


def parse_labels(value: Any) -> list[str]:
    """Normalize a label list given as a comma-separated string or a list.

    Entries are trimmed and empty ones dropped. At most MAX_LABELS are kept;
    a string longer than MAX_LABELS_LENGTH yields no labels at all.
    """
    if value is None:
        return []
    if isinstance(value, str):
        if len(value) > MAX_LABELS_LENGTH:
            return []
        items = value.split(",")
    else:
        items = [str(v) for v in value]
    return [s.strip() for s in items if s.strip()][:MAX_LABELS]


def build_filter_config(raw: dict, base: FilterConfig = DEFAULT_FILTER_CONFIG) -> FilterConfig:
    """Overlay a raw ``filters`` mapping onto ``base``.

    Empty label lists fall back to the base lists rather than disabling the
    gate; use the ``exclude_*`` flags to turn a gate off.
    """
    changes: dict[str, Any] = {}
    hold = parse_labels(raw.get("hold_labels"))
    if hold:
        changes["hold_labels"] = tuple(hold)
    skip = parse_labels(raw.get("skip_labels"))
    if skip:
        changes["skip_labels"] = tuple(skip)
    for flag in _FILTER_FLAGS:
        if flag in raw:
            changes[flag] = parse_bool(raw[flag])
    return replace(base, **changes)


def check_weights(weights: ScoringConfig) -> Optional[str]:
    """Return a warning when the weights do not sum to 1.0, else None.

    Such weights are still used as given; the total is clamped to [1, 10].
    """
    if abs(weights.weight_sum - 1.0) > 1e-6:
        return f"scoring weights sum to {weights.weight_sum:.2f}, not 1.0"
    return None


def _expand_path(path: str) -> str:
    """Expand ~ and environment variables in a path."""
    return os.path.expanduser(os.path.expandvars(path))


_schema_cache: Optional[dict] = None


def _load_schema() -> dict:
    """Load and cache the config JSON schema."""
    global _schema_cache
    if _schema_cache is None:
        schema_path = Path(__file__).parent / "schemas" / "config.json"
        with open(schema_path, encoding="utf-8") as f:
            _schema_cache = json.load(f)
    return _schema_cache


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML config file. Defaults to
            ~/.config/pr-ranker/config.yaml.

    Returns:
        A Config instance. If the config file does not exist or is empty,
        returns the defaults (graceful degradation).

    Raises:
        ConfigError: If the file is not valid YAML, fails schema validation
            or names an unknown scoring dimension.
    """
    path = _expand_path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if not os.path.isfile(path):
        logger.debug("No config file at %s, using defaults", path)
        return Config()

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return Config()

    try:
        jsonschema.validate(instance=data, schema=_load_schema())
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"Invalid config {path} at {location}: {e.message}") from e

    filters = build_filter_config(data.get("filters") or {})

    try:
        weights = ScoringConfig.from_mapping(data.get("weights") or {})
    except ValueError as e:
        raise ConfigError(f"Invalid config {path}: {e}") from e

    warning = check_weights(weights)
    if warning:
        logger.debug("%s (%s)", warning, path)

    return Config(
        default_repo=data.get("default_repo", ""),
        limit=data.get("limit", DEFAULT_LIMIT),
        cache_ttl=data.get("cache_ttl", DEFAULT_TTL),
        filters=filters,
        weights=weights,
    )
