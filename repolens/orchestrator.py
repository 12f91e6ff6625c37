"""Coordinates analysis, caching, indexing, progress and PR impact."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence

from .analyzer import RepositoryAnalyzer
from .cancellation import CancellationToken
from .models import CachedAnalysis, RepositoryOverview, SearchPage, SearchResult, Suggestion
from .pr_impact import PrChangedFile, PrImpactAnalyzer, PrImpactResponse
from .progress import AnalysisProgress, AnalysisStage, ProgressTracker
from .search_engine import SearchEngine
from .storage import AnalysisCache, AnalysisNotFoundError

logger = logging.getLogger(__name__)


def repository_id_for(url_or_name: str) -> str:
    """Stable id for a repository URL (``owner_repo``) or a plain name.

    ``https://github.com/acme/widgets.git`` becomes ``acme_widgets``; a value
    without a ``/`` only has ``:`` replaced by ``_``.
    """
    text = url_or_name.strip().rstrip("/")
    parts = text.split("/")
    if len(parts) >= 2:
        owner = parts[-2]
        repo = re.sub(r"\.git", "", parts[-1], flags=re.IGNORECASE)
        return f"{owner}_{repo}"
    return text.replace(":", "_")


class AnalysisOrchestrator:
    """Runs the analysis job and answers queries against its cached results.

    One analysis per repository id is cached; the search index for that id is
    rebuilt from the cache on demand, for instance after a restart.
    """

    def __init__(
        self,
        analyzer: Optional[RepositoryAnalyzer] = None,
        search_engine: Optional[SearchEngine] = None,
        cache: Optional[AnalysisCache] = None,
        progress: Optional[ProgressTracker] = None,
        pr_analyzer: Optional[PrImpactAnalyzer] = None,
    ) -> None:
        self.analyzer = analyzer or RepositoryAnalyzer()
        self.search_engine = search_engine or SearchEngine()
        self.cache = cache or AnalysisCache()
        self.progress = progress or ProgressTracker()
        self.pr_analyzer = pr_analyzer or PrImpactAnalyzer()

    # ------------------------------------------------------------------
    # Analysis job
    # ------------------------------------------------------------------

    def analyze(
        self,
        repo_id: str,
        repo_root: Optional[Path],
        repo_url: str = "",
        incremental: bool = False,
        token: Optional[CancellationToken] = None,
    ) -> CachedAnalysis:
        """Analyze *repo_root*, cache the result and publish its search index.

        On any failure the progress entry is marked Failed and the error
        propagates; the cache and index keep their previous contents.
        """
        if repo_root is None:
            raise AnalysisNotFoundError(repo_id)
        root = Path(repo_root)
        self.progress.start(repo_id)
        try:
            if not root.is_dir():
                raise FileNotFoundError(f"Repository path does not exist: {root}")

            self.progress.update(repo_id, AnalysisStage.SCANNING, "Scanning files...", 30)
            previous = self.cache.get(repo_id) if incremental else None
            if previous is not None:
                logger.info("Incremental analysis of %s against %s", repo_id, previous.analyzed_at)
                result = self.analyzer.analyze_incremental(root, repo_url, previous, token=token)
            else:
                result = self.analyzer.analyze_full(root, repo_url, token=token)

            self.progress.update(repo_id, AnalysisStage.INDEXING, "Building search index...", 80)
            self.search_engine.build_index(repo_id, result.symbols, result.files)

            analysis = CachedAnalysis.from_result(result)
            self.cache.store(repo_id, analysis)
        except Exception as exc:
            logger.error("Analysis of %s failed: %s", repo_id, exc)
            self.progress.fail(repo_id, str(exc))
            raise
        self.progress.complete(repo_id)
        logger.info(
            "Analysis of %s complete: %d files, %d symbols",
            repo_id, len(analysis.files), len(analysis.symbols),
        )
        return analysis

    def get_progress(self, repo_id: str) -> Optional[AnalysisProgress]:
        return self.progress.get(repo_id)

    def get_analysis(self, repo_id: str) -> CachedAnalysis:
        return self.cache.require(repo_id)

    def overview(self, repo_id: str) -> RepositoryOverview:
        return self.cache.require(repo_id).overview

    def delete(self, repo_id: str) -> bool:
        """Forget every trace of *repo_id*; True if anything was removed."""
        removed = self.cache.remove(repo_id)
        evicted = self.search_engine.evict(repo_id)
        self.progress.remove(repo_id)
        return removed or evicted

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def ensure_index(self, repo_id: str) -> None:
        if self.search_engine.has_index(repo_id):
            return
        cached = self.cache.require(repo_id)
        logger.info("Rebuilding search index for %s from cache", repo_id)
        self.search_engine.build_index(repo_id, cached.symbols, cached.files)

    def search(self, repo_id: str, query: str, max_results: int = 20) -> List[SearchResult]:
        self.ensure_index(repo_id)
        return self.search_engine.search(repo_id, query, max_results)

    def search_page(
        self,
        repo_id: str,
        query: str,
        kinds: Optional[Sequence[str]] = None,
        skip: int = 0,
        take: int = 20,
    ) -> SearchPage:
        self.ensure_index(repo_id)
        return self.search_engine.search_page(repo_id, query, kinds, skip, take)

    def suggest(self, repo_id: str, prefix: str, max_results: int = 10) -> List[Suggestion]:
        self.ensure_index(repo_id)
        return self.search_engine.suggest(repo_id, prefix, max_results)

    def available_kinds(self, repo_id: str) -> List[str]:
        self.ensure_index(repo_id)
        return self.search_engine.get_available_kinds(repo_id)

    # ------------------------------------------------------------------
    # PR impact
    # ------------------------------------------------------------------

    def pr_impact(
        self,
        repo_id: str,
        pr_number: int,
        changed_files: Sequence[PrChangedFile],
    ) -> PrImpactResponse:
        cached = self.cache.require(repo_id)
        return self.pr_analyzer.analyze(pr_number, changed_files, cached)
