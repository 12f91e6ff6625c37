"""Persistence of analysis results and of the CLI's repository selection.

Analyses live in memory and are mirrored to one JSON file per repository id
under :data:`~repolens.config.CACHE_DIR`, so they survive restarts. Files are
loaded lazily on first access.
"""

from __future__ import annotations

import json
import logging
import re
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import CACHE_DIR, STATE_FILE
from .models import CachedAnalysis

logger = logging.getLogger(__name__)


class AnalysisNotFoundError(LookupError):
    """Raised when a repository id has no cached analysis."""

    def __init__(self, repo_id: str) -> None:
        super().__init__(f"Repository '{repo_id}' has not been analyzed yet.")
        self.repo_id = repo_id


def sanitize_repo_id(repo_id: str) -> str:
    """File-system safe form of *repo_id*."""
    return re.sub(r'[<>:"/\\|?*\x00-\x1f]', "_", repo_id)


# ===================================================================
# AnalysisCache
# ===================================================================

class AnalysisCache:
    """Memory + JSON-on-disk store of :class:`CachedAnalysis` per repository id."""

    def __init__(self, cache_dir: Optional[Path] = None) -> None:
        self.cache_dir = Path(cache_dir) if cache_dir is not None else CACHE_DIR
        self._memory: Dict[str, CachedAnalysis] = {}
        self._lock = threading.Lock()
        self._loaded = False

    def has(self, repo_id: str) -> bool:
        self._ensure_loaded()
        with self._lock:
            return repo_id in self._memory

    def get(self, repo_id: str) -> Optional[CachedAnalysis]:
        self._ensure_loaded()
        with self._lock:
            return self._memory.get(repo_id)

    def require(self, repo_id: str) -> CachedAnalysis:
        cached = self.get(repo_id)
        if cached is None:
            raise AnalysisNotFoundError(repo_id)
        return cached

    def store(self, repo_id: str, analysis: CachedAnalysis) -> None:
        self._ensure_loaded()
        with self._lock:
            self._memory[repo_id] = analysis
        self._write(repo_id, analysis)

    def remove(self, repo_id: str) -> bool:
        self._ensure_loaded()
        with self._lock:
            existed = self._memory.pop(repo_id, None) is not None
        path = self._path(repo_id)
        try:
            if path.exists():
                path.unlink()
                existed = True
        except OSError as exc:
            logger.warning("Failed to delete cache file %s: %s", path, exc)
        return existed

    def cached_ids(self) -> List[str]:
        self._ensure_loaded()
        with self._lock:
            return sorted(self._memory)

    # ------------------------------------------------------------------
    # Disk I/O
    # ------------------------------------------------------------------

    def _path(self, repo_id: str) -> Path:
        return self.cache_dir / f"{sanitize_repo_id(repo_id)}.json"

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        with self._lock:
            if self._loaded:
                return
            self._load()
            self._loaded = True

    def _load(self) -> None:
        if not self.cache_dir.is_dir():
            return
        paths = sorted(self.cache_dir.glob("*.json"))
        logger.debug("Loading %d cached analyses from %s", len(paths), self.cache_dir)
        for path in paths:
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
                repo_id = payload.get("repository_id") or path.stem
                self._memory[repo_id] = CachedAnalysis.from_dict(payload)
            except (OSError, ValueError, KeyError, TypeError) as exc:
                logger.warning("Failed to load cache file %s, skipping: %s", path, exc)

    def _write(self, repo_id: str, analysis: CachedAnalysis) -> None:
        path = self._path(repo_id)
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            payload = analysis.to_dict()
            payload["repository_id"] = repo_id
            path.write_text(json.dumps(payload), encoding="utf-8")
        except OSError as exc:
            logger.warning("Failed to persist cache for %s: %s", repo_id, exc)
            return
        logger.debug("Persisted analysis cache for %s (%d bytes)", repo_id, path.stat().st_size)


# ===================================================================
# RepositoryManager
# ===================================================================

class RepositoryManager:
    """Track analyzed repositories (name -> path, url) and the current one."""

    def __init__(self, state_file: Optional[Path] = None) -> None:
        self.state_file = Path(state_file) if state_file is not None else STATE_FILE

    def _read(self) -> Dict[str, Any]:
        if not self.state_file.exists():
            return {"current_repository": None, "repositories": {}}
        try:
            payload = json.loads(self.state_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            return {"current_repository": None, "repositories": {}}
        payload.setdefault("current_repository", None)
        payload.setdefault("repositories", {})
        return payload

    def _write(self, payload: Dict[str, Any]) -> None:
        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        self.state_file.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def register(self, name: str, path: Path, url: str = "") -> None:
        payload = self._read()
        payload["repositories"][name] = {"path": str(Path(path).resolve()), "url": url}
        self._write(payload)

    def list_repositories(self) -> List[str]:
        return sorted(self._read()["repositories"])

    def location(self, name: str) -> Optional[Dict[str, str]]:
        return self._read()["repositories"].get(name)

    def set_current_repository(self, name: str) -> None:
        payload = self._read()
        payload["current_repository"] = name
        self._write(payload)

    def get_current_repository(self) -> Optional[str]:
        return self._read().get("current_repository")

    def forget(self, name: str) -> bool:
        payload = self._read()
        existed = payload["repositories"].pop(name, None) is not None
        if payload.get("current_repository") == name:
            payload["current_repository"] = None
        self._write(payload)
        return existed
