"""TOML configuration loader.

Loads process-wide defaults from defaults.toml into an AggregatorConfig
and turns them into LoadingOptions for callers that do not build their
own.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from repoctx.schemas.config import AggregatorConfig, CacheConfig
from repoctx.schemas.context import LoadingOptions

# Default config directory inside the repoctx package
CONFIG_DIR = Path(__file__).parent / "config"


def load_config(config_path: Path | None = None) -> AggregatorConfig:
    """Load aggregator defaults from a TOML file.

    Args:
        config_path: Path to a defaults file. Defaults to
            repoctx/config/defaults.toml.

    Returns:
        AggregatorConfig populated from the [aggregator] and [cache] tables.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the TOML is malformed or a value is invalid.
    """
    path = config_path or CONFIG_DIR / "defaults.toml"
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {path}: {e}") from e

    section: dict[str, Any] = dict(raw.get("aggregator", {}))
    cache_section = raw.get("cache", {})
    if not isinstance(section, dict) or not isinstance(cache_section, dict):
        raise ValueError(f"[aggregator] and [cache] must be tables in {path}")

    try:
        return AggregatorConfig(**section, cache=CacheConfig(**cache_section))
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {path}: {e}") from e


def default_options(config: AggregatorConfig, **overrides: Any) -> LoadingOptions:
    """LoadingOptions seeded from config, with explicit overrides applied.

    Overrides whose value is None are ignored so CLI flags can be passed
    through unconditionally.
    """
    values: dict[str, Any] = {
        "strategy": config.default_strategy,
        "max_tokens": config.max_tokens,
        "max_depth": config.max_depth,
        "optimization_strategy": config.optimization_strategy,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return LoadingOptions(**values)
