from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

_CONFIG_DIR = Path(__file__).resolve().parents[3] / "config"
_SCORING_CONFIG_CACHE: dict[str, Any] | None = None
_SCORING_CONFIG_PATH = Path(os.getenv("SCORING_CONFIG_PATH") or _CONFIG_DIR / "scoring.yaml")
_ROLES_CONFIG_CACHE: dict[str, Any] | None = None
_ROLES_CONFIG_PATH = Path(os.getenv("ROLES_CONFIG_PATH") or _CONFIG_DIR / "roles.yaml")


def _load_yaml_mapping(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise RuntimeError(f"Config not found at '{path}'.")

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuntimeError(f"Failed to read config '{path}': {exc}") from exc

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Invalid YAML in config '{path}': {exc}") from exc

    if not isinstance(parsed, dict):
        raise RuntimeError(f"Invalid config '{path}': expected a top-level mapping.")
    return parsed


def get_scoring_config() -> dict[str, Any]:
    """Load scoring config from repo-level config/scoring.yaml and cache it."""
    global _SCORING_CONFIG_CACHE

    if _SCORING_CONFIG_CACHE is None:
        _SCORING_CONFIG_CACHE = _load_yaml_mapping(_SCORING_CONFIG_PATH)
    return _SCORING_CONFIG_CACHE


def get_scoring_value(path: str, default: Any = None) -> Any:
    """Get nested config value using dot path notation, e.g. 'extraction.min_confidence'."""
    if not path:
        return default

    current: Any = get_scoring_config()
    for key in path.split("."):
        if not isinstance(current, dict):
            return default
        if key not in current:
            return default
        current = current[key]
    return current


def get_roles_config() -> dict[str, Any]:
    """Role templates and learning resources from config/roles.yaml."""
    global _ROLES_CONFIG_CACHE

    if _ROLES_CONFIG_CACHE is None:
        _ROLES_CONFIG_CACHE = _load_yaml_mapping(_ROLES_CONFIG_PATH)
    return _ROLES_CONFIG_CACHE
