"""Configuration paths and tunables for local RepoLens analysis state."""

from __future__ import annotations

from .config_manager import home_dir, load_analysis_config, load_search_config

BASE_DIR = home_dir()
CACHE_DIR = BASE_DIR / "cache"
STATE_FILE = BASE_DIR / "state.json"
CONFIG_FILE = BASE_DIR / "config.toml"

_analysis_config = load_analysis_config()
_search_config = load_search_config()

# Extraction: files above this size contribute no symbols.
MAX_PARSE_FILE_BYTES = int(_analysis_config.get("max_parse_file_bytes", 1024 * 1024))
# Scanning: files above this size are inventoried without line count or hash.
MAX_LINE_COUNT_BYTES = int(_analysis_config.get("max_line_count_bytes", 5 * 1024 * 1024))
PARSE_WORKERS = int(_analysis_config.get("parse_workers", 4))
PROFILE_WORKERS = int(_analysis_config.get("profile_workers", 4))

BM25_K1 = float(_search_config.get("k1", 1.2))
BM25_B = float(_search_config.get("b", 0.75))
SEARCH_CANDIDATE_WINDOW = int(_search_config.get("candidate_window", 500))
# 0 keeps every repository index in memory.
MAX_CACHED_INDEXES = int(_search_config.get("max_cached_indexes", 0))
