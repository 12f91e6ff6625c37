"""Blast radius of a pull request against a cached analysis."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set

from .models import CachedAnalysis, EdgeRelationship, Symbol

logger = logging.getLogger(__name__)


@dataclass
class PrChangedFile:
    file_path: str
    status: str = "modified"
    additions: int = 0
    deletions: int = 0
    previous_file_path: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrChangedFile":
        return cls(
            file_path=data["file_path"],
            status=data.get("status", "modified"),
            additions=int(data.get("additions", 0)),
            deletions=int(data.get("deletions", 0)),
            previous_file_path=data.get("previous_file_path"),
        )


@dataclass
class PrFileImpact:
    file_path: str
    status: str
    additions: int
    deletions: int
    language: Optional[str]
    previous_file_path: Optional[str]
    symbol_count: int


@dataclass
class PrSymbolImpact:
    name: str
    kind: str
    file_path: str
    line: int
    parent_symbol: Optional[str] = None


@dataclass
class PrEdgeImpact:
    source: str
    target: str
    relationship: str
    impact_side: str


@dataclass
class PrImpactResponse:
    pr_number: int
    total_files_changed: int = 0
    total_additions: int = 0
    total_deletions: int = 0
    changed_files: List[PrFileImpact] = field(default_factory=list)
    affected_symbols: List[PrSymbolImpact] = field(default_factory=list)
    affected_edges: List[PrEdgeImpact] = field(default_factory=list)
    downstream_files: List[str] = field(default_factory=list)
    languages_touched: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def normalize_path(path: str) -> str:
    return path.replace("\\", "/")


class PrImpactAnalyzer:
    """Cross-reference changed files with symbols, edges and importers."""

    def analyze(
        self,
        pr_number: int,
        changed_files: Sequence[PrChangedFile],
        cached: CachedAnalysis,
    ) -> PrImpactResponse:
        # Paths compare case-insensitively; keep first-seen spelling for ordering.
        changed: Dict[str, str] = {}
        for change in changed_files:
            for path in (change.file_path, change.previous_file_path):
                if path:
                    norm = normalize_path(path)
                    changed.setdefault(norm.lower(), norm)
        logger.info("PR #%s: analyzing impact for %d changed paths", pr_number, len(changed))

        languages: Dict[str, str] = {
            normalize_path(f.relative_path).lower(): f.language for f in cached.files
        }
        by_file: Dict[str, List[Symbol]] = {}
        for sym in cached.symbols:
            by_file.setdefault(normalize_path(sym.file_path).lower(), []).append(sym)

        file_impacts = []
        for change in changed_files:
            key = normalize_path(change.file_path).lower()
            file_impacts.append(PrFileImpact(
                file_path=change.file_path,
                status=change.status,
                additions=change.additions,
                deletions=change.deletions,
                language=languages.get(key),
                previous_file_path=change.previous_file_path,
                symbol_count=len(by_file.get(key, [])),
            ))

        affected_symbols = [
            PrSymbolImpact(s.name, s.kind.value, s.file_path, s.line, s.parent_symbol)
            for key in changed
            for s in by_file.get(key, [])
        ]

        node_paths: Dict[str, str] = {}
        changed_ids: Set[str] = set(changed)
        for node in cached.graph.nodes:
            if node.file_path is None:
                continue
            node_paths[node.id.lower()] = normalize_path(node.file_path)
            if normalize_path(node.file_path).lower() in changed:
                changed_ids.add(node.id.lower())

        affected_edges: List[PrEdgeImpact] = []
        downstream: Dict[str, str] = {}
        for edge in cached.graph.edges:
            source_hit = edge.source.lower() in changed_ids
            target_hit = edge.target.lower() in changed_ids
            if not (source_hit or target_hit):
                continue
            affected_edges.append(PrEdgeImpact(
                source=edge.source,
                target=edge.target,
                relationship=edge.relationship.value,
                impact_side="source" if source_hit else "target",
            ))
            if target_hit and edge.relationship is EdgeRelationship.IMPORTS:
                # Module ids map back to the file that declares them.
                source_path = node_paths.get(edge.source.lower(), edge.source)
                if source_path.lower() not in changed:
                    downstream.setdefault(source_path.lower(), source_path)

        response = PrImpactResponse(
            pr_number=pr_number,
            total_files_changed=len(changed_files),
            total_additions=sum(c.additions for c in changed_files),
            total_deletions=sum(c.deletions for c in changed_files),
            changed_files=file_impacts,
            affected_symbols=affected_symbols,
            affected_edges=affected_edges,
            downstream_files=sorted(downstream.values()),
            languages_touched=sorted({f.language for f in file_impacts if f.language}),
        )
        logger.info(
            "PR #%s: %d files, %d affected symbols, %d affected edges, %d downstream files",
            pr_number, response.total_files_changed, len(affected_symbols),
            len(affected_edges), len(response.downstream_files),
        )
        return response
