"""Configuration manager for RepoLens using TOML files."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import toml

logger = logging.getLogger(__name__)


DEFAULT_ANALYSIS_CONFIG: Dict[str, Any] = {
    "max_parse_file_bytes": 1024 * 1024,
    "max_line_count_bytes": 5 * 1024 * 1024,
    "parse_workers": 4,
    "profile_workers": 4,
}

DEFAULT_SEARCH_CONFIG: Dict[str, Any] = {
    "k1": 1.2,
    "b": 0.75,
    "candidate_window": 500,
    "max_cached_indexes": 0,
}


def home_dir() -> Path:
    """Return the RepoLens home directory (``$REPOLENS_HOME`` or ``~/.repolens``)."""
    return Path(os.environ.get("REPOLENS_HOME", str(Path.home() / ".repolens"))).expanduser()


def config_file() -> Path:
    return home_dir() / "config.toml"


def load_full_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the entire TOML config (all sections).

    A missing or unreadable file yields an empty dict so callers fall back
    to their defaults.
    """
    path = path or config_file()
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Could not read config %s: %s", path, exc)
        return {}


def _load_section(name: str, defaults: Dict[str, Any], path: Optional[Path] = None) -> Dict[str, Any]:
    section = load_full_config(path).get(name, {})
    merged = defaults.copy()
    if isinstance(section, dict):
        merged.update(section)
    return merged


def load_analysis_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the ``[analysis]`` section merged over defaults."""
    return _load_section("analysis", DEFAULT_ANALYSIS_CONFIG, path)


def load_search_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the ``[search]`` section merged over defaults."""
    return _load_section("search", DEFAULT_SEARCH_CONFIG, path)


def save_section(name: str, values: Dict[str, Any], path: Optional[Path] = None) -> bool:
    """Write one section to the TOML file, preserving all other sections.

    Returns:
        True if saved successfully, False otherwise
    """
    path = path or config_file()
    config = load_full_config(path)
    config[name] = dict(values)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            toml.dump(config, f)
        return True
    except OSError as exc:
        logger.warning("Could not write config %s: %s", path, exc)
        return False
