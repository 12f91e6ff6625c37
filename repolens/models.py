"""Core data models shared by extraction, graph assembly, search and PR impact."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set


class SymbolKind(str, Enum):
    CLASS = "Class"
    INTERFACE = "Interface"
    METHOD = "Method"
    PROPERTY = "Property"
    FUNCTION = "Function"
    VARIABLE = "Variable"
    IMPORT = "Import"
    NAMESPACE = "Namespace"
    MODULE = "Module"


class NodeType(str, Enum):
    REPOSITORY = "Repository"
    FOLDER = "Folder"
    FILE = "File"
    NAMESPACE = "Namespace"
    CLASS = "Class"
    INTERFACE = "Interface"
    FUNCTION = "Function"
    MODULE = "Module"


class EdgeRelationship(str, Enum):
    CONTAINS = "Contains"
    IMPORTS = "Imports"
    CALLS = "Calls"
    INHERITS = "Inherits"
    IMPLEMENTS = "Implements"


@dataclass(frozen=True)
class Symbol:
    name: str
    kind: SymbolKind
    file_path: str
    line: int
    parent_symbol: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "file_path": self.file_path,
            "line": self.line,
            "parent_symbol": self.parent_symbol,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Symbol":
        return cls(
            name=data["name"],
            kind=SymbolKind(data["kind"]),
            file_path=data["file_path"],
            line=int(data["line"]),
            parent_symbol=data.get("parent_symbol"),
        )


@dataclass
class GraphNode:
    id: str
    name: str
    type: NodeType
    file_path: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "file_path": self.file_path,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphNode":
        return cls(
            id=data["id"],
            name=data["name"],
            type=NodeType(data["type"]),
            file_path=data.get("file_path"),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    relationship: EdgeRelationship

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "target": self.target, "relationship": self.relationship.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphEdge":
        return cls(data["source"], data["target"], EdgeRelationship(data["relationship"]))


@dataclass
class DependencyGraph:
    """Nodes keyed by unique id plus an edge list that may repeat."""

    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    _node_ids: Set[str] = field(default_factory=set, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        unique: List[GraphNode] = []
        self._node_ids = set()
        for node in self.nodes:
            if node.id not in self._node_ids:
                self._node_ids.add(node.id)
                unique.append(node)
        self.nodes = unique

    def add_node(self, node: GraphNode) -> bool:
        """Insert *node* unless its id is taken. First writer wins."""
        if node.id in self._node_ids:
            return False
        self._node_ids.add(node.id)
        self.nodes.append(node)
        return True

    def add_edge(self, edge: GraphEdge) -> None:
        self.edges.append(edge)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._node_ids

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DependencyGraph":
        return cls(
            nodes=[GraphNode.from_dict(n) for n in data.get("nodes", [])],
            edges=[GraphEdge.from_dict(e) for e in data.get("edges", [])],
        )


@dataclass
class FileInfo:
    relative_path: str
    language: str
    size_bytes: int
    line_count: int
    content_hash: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileInfo":
        return cls(
            relative_path=data["relative_path"],
            language=data["language"],
            size_bytes=int(data["size_bytes"]),
            line_count=int(data["line_count"]),
            content_hash=data.get("content_hash"),
        )


@dataclass
class KeyTypeInfo:
    name: str
    kind: str
    file_path: str
    member_count: int


@dataclass
class ConnectedModuleInfo:
    name: str
    file_path: Optional[str]
    incoming: int
    outgoing: int

    @property
    def total(self) -> int:
        return self.incoming + self.outgoing


@dataclass
class RepositoryOverview:
    name: str
    url: str = ""
    language_breakdown: Dict[str, int] = field(default_factory=dict)
    language_line_breakdown: Dict[str, int] = field(default_factory=dict)
    total_files: int = 0
    total_lines: int = 0
    detected_frameworks: List[str] = field(default_factory=list)
    entry_points: List[str] = field(default_factory=list)
    top_level_folders: List[str] = field(default_factory=list)
    symbol_counts: Dict[str, int] = field(default_factory=dict)
    key_types: List[KeyTypeInfo] = field(default_factory=list)
    most_connected_modules: List[ConnectedModuleInfo] = field(default_factory=list)
    external_dependencies: List[str] = field(default_factory=list)
    summary: str = ""
    complexity: str = "Tiny"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepositoryOverview":
        payload = dict(data)
        payload["key_types"] = [KeyTypeInfo(**k) for k in payload.get("key_types", [])]
        payload["most_connected_modules"] = [
            ConnectedModuleInfo(**m) for m in payload.get("most_connected_modules", [])
        ]
        return cls(**payload)


@dataclass
class FullAnalysisResult:
    files: List[FileInfo]
    symbols: List[Symbol]
    graph: DependencyGraph
    overview: RepositoryOverview


@dataclass
class CachedAnalysis:
    """Everything later queries need about one analyzed repository."""

    files: List[FileInfo]
    symbols: List[Symbol]
    graph: DependencyGraph
    overview: RepositoryOverview
    analyzed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @classmethod
    def from_result(cls, result: FullAnalysisResult) -> "CachedAnalysis":
        return cls(result.files, result.symbols, result.graph, result.overview)

    def to_result(self) -> FullAnalysisResult:
        return FullAnalysisResult(self.files, self.symbols, self.graph, self.overview)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": [f.to_dict() for f in self.files],
            "symbols": [s.to_dict() for s in self.symbols],
            "graph": self.graph.to_dict(),
            "overview": self.overview.to_dict(),
            "analyzed_at": self.analyzed_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CachedAnalysis":
        return cls(
            files=[FileInfo.from_dict(f) for f in data.get("files", [])],
            symbols=[Symbol.from_dict(s) for s in data.get("symbols", [])],
            graph=DependencyGraph.from_dict(data.get("graph", {})),
            overview=RepositoryOverview.from_dict(data.get("overview", {"name": ""})),
            analyzed_at=data.get("analyzed_at", ""),
        )


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IndexDocument:
    file_path: str
    symbol: str
    content: str
    line: int
    kind: str


@dataclass
class SearchResult:
    file_path: str
    symbol: str
    snippet: str
    score: float
    line: int
    kind: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Suggestion:
    text: str
    kind: str
    file_path: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SearchPage:
    query: str
    total_results: int
    skip: int
    take: int
    available_kinds: List[str]
    results: List[SearchResult]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "total_results": self.total_results,
            "skip": self.skip,
            "take": self.take,
            "available_kinds": list(self.available_kinds),
            "results": [r.to_dict() for r in self.results],
        }
