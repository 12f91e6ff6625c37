"""Repository analysis: scan, extract, assemble and summarize."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

from . import config
from .cancellation import CancellationToken, check
from .graph_assembler import build_overview, build_structure_graph, merge_parts
from .models import (
    CachedAnalysis,
    DependencyGraph,
    FileInfo,
    FullAnalysisResult,
    GraphEdge,
    GraphNode,
    RepositoryOverview,
    Symbol,
)
from .parser import LanguageParser, ParseResultCache, ProfileParser, walk_repository
from .profiles import create_default_parsers
from .scanner import RepositoryScanner

logger = logging.getLogger(__name__)

_Extraction = Tuple[List[Symbol], List[GraphNode], List[GraphEdge]]


class RepositoryAnalyzer:
    """Run every registered language parser over a repository on disk.

    Parsers run concurrently, one task per parser, and their outputs are
    merged in registration order so the first parser to claim a node id keeps
    it regardless of which finished first.
    """

    def __init__(
        self,
        parsers: Optional[Sequence[LanguageParser]] = None,
        scanner: Optional[RepositoryScanner] = None,
        cache: Optional[ParseResultCache] = None,
        workers: Optional[int] = None,
    ) -> None:
        self.parsers: List[LanguageParser] = list(parsers) if parsers is not None else create_default_parsers(cache)
        self.scanner = scanner or RepositoryScanner()
        self.workers = max(1, workers or config.PROFILE_WORKERS)

    # ------------------------------------------------------------------
    # Individual stages
    # ------------------------------------------------------------------

    def scan_files(self, repo_root: Path, token: Optional[CancellationToken] = None) -> List[FileInfo]:
        return self.scanner.scan(Path(repo_root), token=token)

    def extract_symbols(self, repo_root: Path, token: Optional[CancellationToken] = None) -> List[Symbol]:
        logger.info("Extracting symbols from %s", repo_root)
        symbols: List[Symbol] = []
        for part_symbols, _, _ in self._run_parsers(Path(repo_root), token):
            symbols.extend(part_symbols)
        logger.info("Symbol extraction complete: %d symbols", len(symbols))
        return symbols

    def build_dependency_graph(
        self,
        repo_root: Path,
        token: Optional[CancellationToken] = None,
    ) -> DependencyGraph:
        files = self.scan_files(repo_root, token)
        graph = build_structure_graph(files)
        merge_parts(graph, ((nodes, edges) for _, nodes, edges in self._run_parsers(Path(repo_root), token, files)))
        logger.info("Dependency graph built: %d nodes, %d edges", len(graph.nodes), len(graph.edges))
        return graph

    def generate_overview(
        self,
        repo_root: Path,
        repo_url: str = "",
        token: Optional[CancellationToken] = None,
    ) -> RepositoryOverview:
        return self.analyze_full(repo_root, repo_url, token).overview

    # ------------------------------------------------------------------
    # Full and incremental runs
    # ------------------------------------------------------------------

    def analyze_full(
        self,
        repo_root: Path,
        repo_url: str = "",
        token: Optional[CancellationToken] = None,
    ) -> FullAnalysisResult:
        """Scan once, parse once, and derive everything else from those results."""
        root = Path(repo_root)
        logger.info("Running full analysis for %s", root)
        files = self.scan_files(root, token)
        parts = self._run_parsers(root, token, files)

        symbols: List[Symbol] = []
        for part_symbols, _, _ in parts:
            symbols.extend(part_symbols)
        graph = build_structure_graph(files)
        merge_parts(graph, ((nodes, edges) for _, nodes, edges in parts))
        logger.info(
            "Analysis of %s: %d files, %d symbols, %d nodes, %d edges",
            root, len(files), len(symbols), len(graph.nodes), len(graph.edges),
        )
        check(token)
        overview = build_overview(root, repo_url, files, symbols, graph)
        return FullAnalysisResult(files=files, symbols=symbols, graph=graph, overview=overview)

    def analyze_incremental(
        self,
        repo_root: Path,
        repo_url: str,
        previous: CachedAnalysis,
        token: Optional[CancellationToken] = None,
    ) -> FullAnalysisResult:
        """Reuse *previous* symbols for files whose content hash is unchanged.

        The graph is always rebuilt; it is cheap compared to symbol
        extraction and cross-file edges may change when any file does.
        """
        root = Path(repo_root)
        logger.info("Running incremental analysis for %s", root)
        current = self.scan_files(root, token)

        previous_hashes: Dict[str, Optional[str]] = {
            f.relative_path.lower(): f.content_hash for f in previous.files
        }
        current_paths = {f.relative_path.lower() for f in current}
        changed: Set[str] = set()
        unchanged: Set[str] = set()
        for info in current:
            key = info.relative_path.lower()
            if key in previous_hashes and _same_hash(previous_hashes[key], info.content_hash, info.size_bytes):
                unchanged.add(key)
            else:
                changed.add(key)
        removed = {p for p in previous_hashes if p not in current_paths}
        logger.info(
            "Incremental diff: %d changed or new, %d unchanged, %d removed",
            len(changed), len(unchanged), len(removed),
        )

        if not changed and not removed:
            logger.info("No changes detected, reusing previous analysis")
            return FullAnalysisResult(
                files=current,
                symbols=list(previous.symbols),
                graph=previous.graph,
                overview=previous.overview,
            )

        parts = self._run_parsers(root, token, current)
        fresh = [s for part_symbols, _, _ in parts for s in part_symbols if s.file_path.lower() in changed]
        reused = [s for s in previous.symbols if s.file_path.lower() in unchanged]
        symbols = reused + fresh
        logger.info(
            "Symbols merged: %d reused + %d fresh = %d",
            len(reused), len(fresh), len(symbols),
        )

        graph = build_structure_graph(current)
        merge_parts(graph, ((nodes, edges) for _, nodes, edges in parts))
        check(token)
        overview = build_overview(root, repo_url, current, symbols, graph)
        return FullAnalysisResult(files=current, symbols=symbols, graph=graph, overview=overview)

    # ------------------------------------------------------------------

    def _run_parsers(
        self,
        root: Path,
        token: Optional[CancellationToken],
        files: Optional[Sequence[FileInfo]] = None,
    ) -> List[_Extraction]:
        check(token)
        repo_files = walk_repository(root, token=token)
        hashes = {f.relative_path: f.content_hash for f in files or () if f.content_hash}

        def _one(parser: LanguageParser) -> _Extraction:
            check(token)
            if isinstance(parser, ProfileParser):
                result = parser.parse(root, token=token, repo_files=repo_files, content_hashes=hashes)
                return list(result.symbols), list(result.nodes), list(result.edges)
            symbols = parser.extract_symbols(root, token=token)
            nodes, edges = parser.build_dependencies(root, token=token)
            return list(symbols), list(nodes), list(edges)

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            return list(pool.map(_one, self.parsers))


def _same_hash(old: Optional[str], new: Optional[str], size: int) -> bool:
    # Empty files carry no hash; any other file without one is re-parsed.
    if old is None or new is None:
        return old is None and new is None and size == 0
    return old.lower() == new.lower()
