"""In-memory progress of running analyses, keyed by repository id."""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional


class AnalysisStage(str, Enum):
    QUEUED = "Queued"
    DOWNLOADING = "Downloading"
    SCANNING = "Scanning"
    PARSING = "Parsing"
    BUILDING_GRAPH = "BuildingGraph"
    INDEXING = "Indexing"
    COMPLETED = "Completed"
    FAILED = "Failed"


@dataclass(frozen=True)
class AnalysisProgress:
    repository_id: str
    stage: AnalysisStage = AnalysisStage.QUEUED
    stage_label: str = "Queued"
    percent_complete: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["stage"] = self.stage.value
        return data


class ProgressTracker:
    """Thread-safe store of the latest :class:`AnalysisProgress` per repository."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._progress: Dict[str, AnalysisProgress] = {}

    def _set(self, progress: AnalysisProgress) -> None:
        with self._lock:
            self._progress[progress.repository_id] = progress

    def start(self, repo_id: str) -> None:
        self._set(AnalysisProgress(repo_id))

    def update(self, repo_id: str, stage: AnalysisStage, label: str, percent: int) -> None:
        self._set(AnalysisProgress(repo_id, stage, label, min(100, max(0, percent))))

    def complete(self, repo_id: str) -> None:
        self._set(AnalysisProgress(repo_id, AnalysisStage.COMPLETED, "Completed", 100))

    def fail(self, repo_id: str, error: str) -> None:
        self._set(AnalysisProgress(repo_id, AnalysisStage.FAILED, "Failed", 0, error))

    def get(self, repo_id: str) -> Optional[AnalysisProgress]:
        with self._lock:
            return self._progress.get(repo_id)

    def remove(self, repo_id: str) -> None:
        with self._lock:
            self._progress.pop(repo_id, None)

    def is_running(self, repo_id: str) -> bool:
        progress = self.get(repo_id)
        return progress is not None and progress.stage not in (AnalysisStage.COMPLETED, AnalysisStage.FAILED)
