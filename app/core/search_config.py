from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

SEARCH_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "search.yaml"

_INT_SECTIONS = ("visibility.weights", "verification", "summary")


def _section(config: dict[str, Any], path: str) -> Any:
    current: Any = config
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def _validate(config: dict[str, Any], source: Path) -> None:
    sections = [(path, _section(config, path)) for path in _INT_SECTIONS]
    thresholds = _section(config, "visibility.thresholds") or {}
    if not isinstance(thresholds, dict):
        raise RuntimeError(f"Invalid search config '{source}': visibility.thresholds must be a mapping.")
    sections.extend((f"visibility.thresholds.{tier}", values) for tier, values in thresholds.items())

    for path, values in sections:
        if values is None:
            continue
        if not isinstance(values, dict):
            raise RuntimeError(f"Invalid search config '{source}': {path} must be a mapping.")
        for key, value in values.items():
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise RuntimeError(
                    f"Invalid search config '{source}': {path}.{key} must be a non-negative integer."
                )


def load_search_config(path: Path = SEARCH_CONFIG_PATH) -> dict[str, Any]:
    """Read and validate a search tuning file (weights, tier thresholds, verifier guards)."""
    if not path.exists():
        raise RuntimeError(f"Search config not found at '{path}'. Expected file: config/search.yaml")

    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RuntimeError(f"Failed to read search config '{path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Invalid YAML in search config '{path}': {exc}") from exc

    if not isinstance(parsed, dict):
        raise RuntimeError(f"Invalid search config '{path}': expected a top-level mapping.")
    _validate(parsed, path)
    return parsed


@lru_cache(maxsize=1)
def get_search_config() -> dict[str, Any]:
    return load_search_config()


def get_search_value(path: str, default: Any = None) -> Any:
    """Get nested config value using dot path notation, e.g. 'visibility.weights.news'."""
    if not path:
        return default
    value = _section(get_search_config(), path)
    return default if value is None else value
