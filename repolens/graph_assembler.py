"""Assemble the dependency graph and derive the repository overview."""

from __future__ import annotations

import json
import logging
import posixpath
import re
from collections import Counter
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import toml

from .models import (
    ConnectedModuleInfo,
    DependencyGraph,
    EdgeRelationship,
    FileInfo,
    GraphEdge,
    GraphNode,
    KeyTypeInfo,
    NodeType,
    RepositoryOverview,
    Symbol,
    SymbolKind,
)
from .scanner import is_code_language

logger = logging.getLogger(__name__)

ENTRY_POINT_NAMES = (
    "Program.cs", "Startup.cs",
    "index.ts", "index.js", "index.tsx", "index.jsx",
    "main.ts", "main.js", "main.tsx", "main.jsx",
    "App.tsx", "App.jsx", "App.ts", "App.js",
    "app.py", "main.py", "manage.py", "__main__.py",
    "main.go", "Main.java", "main.rs", "main.c", "main.cpp",
    "main.kt", "main.swift", "main.dart", "Main.hs", "mix.exs",
)

_MEMBER_KINDS = (SymbolKind.METHOD, SymbolKind.PROPERTY, SymbolKind.FUNCTION)
_TYPE_KINDS = (SymbolKind.CLASS, SymbolKind.INTERFACE)
_TOP_N = 10


# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------

def build_structure_graph(files: Sequence[FileInfo]) -> DependencyGraph:
    """Folder and file nodes plus folder->file Contains edges."""
    graph = DependencyGraph()
    for info in files:
        directory = posixpath.dirname(info.relative_path)
        if directory:
            graph.add_node(GraphNode(
                id=f"folder:{directory}",
                name=directory.rsplit("/", 1)[-1],
                type=NodeType.FOLDER,
                file_path=directory,
            ))
    for info in files:
        graph.add_node(GraphNode(
            id=info.relative_path,
            name=posixpath.basename(info.relative_path),
            type=NodeType.FILE,
            file_path=info.relative_path,
            metadata={
                "language": info.language,
                "lines": str(info.line_count),
                "size": str(info.size_bytes),
            },
        ))
        directory = posixpath.dirname(info.relative_path)
        if directory:
            graph.add_edge(GraphEdge(f"folder:{directory}", info.relative_path, EdgeRelationship.CONTAINS))
    return graph


def merge_parts(
    graph: DependencyGraph,
    parts: Iterable[Tuple[Sequence[GraphNode], Sequence[GraphEdge]]],
) -> DependencyGraph:
    """Append each (nodes, edges) part in order; duplicate node ids are dropped."""
    dropped = 0
    for nodes, edges in parts:
        for node in nodes:
            if not graph.add_node(node):
                dropped += 1
        for edge in edges:
            graph.add_edge(edge)
    if dropped:
        logger.debug("Dropped %d duplicate graph nodes", dropped)
    return graph


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------

def repository_name(repo_root: Path) -> str:
    """Directory name with a ``-main``/``-master`` archive suffix trimmed."""
    name = Path(repo_root).resolve().name
    for suffix in ("-main", "-master"):
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


def build_overview(
    repo_root: Path,
    repo_url: str,
    files: Sequence[FileInfo],
    symbols: Sequence[Symbol],
    graph: DependencyGraph,
) -> RepositoryOverview:
    root = Path(repo_root)
    code_files = [f for f in files if is_code_language(f.language)]

    by_count: Counter = Counter()
    by_lines: Counter = Counter()
    for info in code_files:
        by_count[info.language] += 1
        by_lines[info.language] += info.line_count

    name = repository_name(root)
    total_lines = sum(f.line_count for f in files)
    frameworks = detect_frameworks(root, files)
    entry_points = detect_entry_points(files)
    key_types = find_key_types(symbols)
    complexity = classify_complexity(total_lines, len(files), len(symbols))
    language_breakdown = _sorted_counts(by_count)

    symbol_counts: Counter = Counter(s.kind.value for s in symbols if s.kind is not SymbolKind.IMPORT)

    overview = RepositoryOverview(
        name=name,
        url=repo_url,
        language_breakdown=language_breakdown,
        language_line_breakdown=_sorted_counts(by_lines),
        total_files=len(files),
        total_lines=total_lines,
        detected_frameworks=frameworks,
        entry_points=entry_points,
        top_level_folders=top_level_folders(files),
        symbol_counts=_sorted_counts(symbol_counts),
        key_types=key_types,
        most_connected_modules=most_connected_modules(graph),
        external_dependencies=detect_external_dependencies(root, files),
        complexity=complexity,
    )
    overview.summary = generate_summary(
        name, language_breakdown, frameworks, total_lines, len(files),
        len(symbols), key_types, entry_points, complexity,
    )
    logger.info(
        "Overview complete: %s, %d files, %d lines, %s",
        name, overview.total_files, total_lines, complexity,
    )
    return overview


def _sorted_counts(counts: Counter) -> Dict[str, int]:
    # Counter.most_common keeps first-seen order among equal counts.
    return dict(counts.most_common())


def top_level_folders(files: Sequence[FileInfo]) -> List[str]:
    return sorted({f.relative_path.split("/", 1)[0] for f in files if "/" in f.relative_path})


def detect_entry_points(files: Sequence[FileInfo]) -> List[str]:
    names = {name.lower() for name in ENTRY_POINT_NAMES}
    return [f.relative_path for f in files if posixpath.basename(f.relative_path).lower() in names]


def find_key_types(symbols: Sequence[Symbol]) -> List[KeyTypeInfo]:
    """Types (or named owners) with the most methods, properties and functions."""
    types: Dict[str, Symbol] = {}
    for sym in symbols:
        if sym.kind in _TYPE_KINDS:
            types.setdefault(sym.name, sym)
    members: Counter = Counter(
        s.parent_symbol for s in symbols if s.parent_symbol and s.kind in _MEMBER_KINDS
    )
    result = []
    for owner, count in members.most_common(_TOP_N):
        declared = types.get(owner)
        result.append(KeyTypeInfo(
            name=owner,
            kind=declared.kind.value if declared else SymbolKind.CLASS.value,
            file_path=declared.file_path if declared else "",
            member_count=count,
        ))
    return result


def most_connected_modules(graph: DependencyGraph) -> List[ConnectedModuleInfo]:
    outgoing: Counter = Counter()
    incoming: Counter = Counter()
    for edge in graph.edges:
        if edge.relationship is EdgeRelationship.IMPORTS:
            outgoing[edge.source] += 1
            incoming[edge.target] += 1
    nodes = {n.id: n for n in graph.nodes}
    ids = list(outgoing) + [i for i in incoming if i not in outgoing]
    modules = []
    for node_id in ids:
        node = nodes.get(node_id)
        modules.append(ConnectedModuleInfo(
            name=node.name if node else node_id,
            file_path=(node.file_path or "") if node else "",
            incoming=incoming[node_id],
            outgoing=outgoing[node_id],
        ))
    modules.sort(key=lambda m: m.total, reverse=True)
    return modules[:_TOP_N]


def classify_complexity(total_lines: int, total_files: int, symbol_count: int) -> str:
    score = total_lines + total_files * 10 + symbol_count * 5
    if score < 500:
        return "Tiny"
    if score < 5_000:
        return "Small"
    if score < 50_000:
        return "Medium"
    if score < 500_000:
        return "Large"
    return "Huge"


def generate_summary(
    name: str,
    language_breakdown: Dict[str, int],
    frameworks: Sequence[str],
    total_lines: int,
    total_files: int,
    symbol_count: int,
    key_types: Sequence[KeyTypeInfo],
    entry_points: Sequence[str],
    complexity: str,
) -> str:
    primary = next(iter(language_breakdown), "unknown")
    parts = [
        f"{name} is a {complexity.lower()}-sized {primary} repository "
        f"with {total_files:,} files and {total_lines:,} lines of code."
    ]
    if frameworks:
        parts.append(f"It uses {', '.join(frameworks)}.")
    if len(language_breakdown) > 1:
        langs = ", ".join(f"{lang} ({count} files)" for lang, count in language_breakdown.items())
        parts.append(f"Languages: {langs}.")
    if key_types:
        top = ", ".join(f"{t.name} ({t.member_count} members)" for t in key_types[:3])
        parts.append(f"Key types: {top}.")
    if entry_points:
        if len(entry_points) <= 3:
            parts.append(f"Entry points: {', '.join(posixpath.basename(p) for p in entry_points)}.")
        else:
            parts.append(f"{len(entry_points)} entry points detected.")
    if symbol_count and total_files:
        density = symbol_count / total_files
        parts.append(f"Symbol density: {density:.1f} symbols per file ({symbol_count:,} total).")
    return " ".join(parts)


# ---------------------------------------------------------------------------
# Marker files
# ---------------------------------------------------------------------------

def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8", errors="ignore")
    except OSError as exc:
        logger.debug("Could not read %s: %s", path, exc)
        return None


def _load_json(path: Path) -> Dict:
    text = _read_text(path)
    if not text:
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.debug("Ignoring malformed %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def _load_toml(path: Path) -> Dict:
    text = _read_text(path)
    if not text:
        return {}
    try:
        return toml.loads(text)
    except toml.TomlDecodeError as exc:
        logger.debug("Ignoring malformed %s: %s", path, exc)
        return {}


def _paths_named(files: Sequence[FileInfo], name: str) -> List[str]:
    lower = name.lower()
    return [f.relative_path for f in files if posixpath.basename(f.relative_path).lower() == lower]


def _paths_with_suffix(files: Sequence[FileInfo], suffix: str) -> List[str]:
    lower = suffix.lower()
    return [f.relative_path for f in files if f.relative_path.lower().endswith(lower)]


def _python_requirement_name(line: str) -> Optional[str]:
    line = line.split("#", 1)[0].strip()
    if not line or line.startswith("-"):
        return None
    match = re.match(r"[A-Za-z0-9][A-Za-z0-9._-]*", line)
    return match.group(0) if match else None


def _python_dependencies(root: Path) -> List[str]:
    names: List[str] = []
    requirements = _read_text(root / "requirements.txt") if (root / "requirements.txt").is_file() else None
    for line in (requirements or "").splitlines():
        name = _python_requirement_name(line)
        if name:
            names.append(name)
    if (root / "pyproject.toml").is_file():
        data = _load_toml(root / "pyproject.toml")
        for spec in data.get("project", {}).get("dependencies", []) or []:
            name = _python_requirement_name(str(spec))
            if name:
                names.append(name)
        poetry = data.get("tool", {}).get("poetry", {}).get("dependencies", {}) or {}
        names.extend(k for k in poetry if k.lower() != "python")
    return names


def detect_frameworks(repo_root: Path, files: Sequence[FileInfo]) -> List[str]:
    root = Path(repo_root)
    frameworks: List[str] = []

    def add(name: str) -> None:
        if name not in frameworks:
            frameworks.append(name)

    csprojs = _paths_with_suffix(files, ".csproj")
    if csprojs:
        add(".NET")
    package_jsons = _paths_named(files, "package.json")
    if package_jsons:
        add("Node.js")
    if (root / "tsconfig.json").is_file():
        add("TypeScript")
    if "package.json" in package_jsons:
        text = (_read_text(root / "package.json") or "").lower()
        for marker, label in (('"react"', "React"), ('"vue"', "Vue"), ('"@angular/core"', "Angular")):
            if marker in text:
                add(label)
                break
    for rel in csprojs:
        if "microsoft.net.sdk.web" in (_read_text(root / rel) or "").lower():
            add("ASP.NET Core")
            break
    if (root / "go.mod").is_file():
        add("Go Modules")
    if (root / "Cargo.toml").is_file():
        add("Cargo")
    python_deps = {d.lower() for d in _python_dependencies(root)}
    for package, label in (("django", "Django"), ("flask", "Flask"), ("fastapi", "FastAPI")):
        if package in python_deps:
            add(label)
    if _paths_named(files, "pom.xml"):
        add("Maven")
    if _paths_named(files, "build.gradle") or _paths_named(files, "build.gradle.kts"):
        add("Gradle")
    gemfile = root / "Gemfile"
    if gemfile.is_file() and re.search(r"""^\s*gem\s+['"]rails['"]""", _read_text(gemfile) or "", re.MULTILINE):
        add("Rails")
    if _paths_named(files, "Dockerfile"):
        add("Docker")
    return frameworks


def detect_external_dependencies(repo_root: Path, files: Sequence[FileInfo]) -> List[str]:
    """Declared third-party packages from the common manifest formats, sorted."""
    root = Path(repo_root)
    deps: Dict[str, str] = {}

    def add(name: str) -> None:
        deps.setdefault(name.lower(), name)

    package = _load_json(root / "package.json") if (root / "package.json").is_file() else {}
    for section in ("dependencies", "devDependencies", "peerDependencies"):
        for name in package.get(section, {}) or {}:
            add(name)

    for rel in _paths_with_suffix(files, ".csproj"):
        for match in re.finditer(r'<PackageReference\s+Include="([^"]+)"', _read_text(root / rel) or "", re.IGNORECASE):
            add(match.group(1))

    for name in _python_dependencies(root):
        add(name)

    if (root / "go.mod").is_file():
        text = _read_text(root / "go.mod") or ""
        block = False
        for line in text.splitlines():
            stripped = line.strip()
            if stripped.startswith("require ("):
                block = True
                continue
            if block and stripped.startswith(")"):
                block = False
                continue
            match = re.match(r"(?:require\s+)?(\S+)\s+v\S+", stripped)
            if match and (block or stripped.startswith("require ")):
                add(match.group(1))

    if (root / "Cargo.toml").is_file():
        cargo = _load_toml(root / "Cargo.toml")
        for section in ("dependencies", "dev-dependencies", "build-dependencies"):
            for name in cargo.get(section, {}) or {}:
                add(name)

    return sorted(deps.values(), key=str.lower)
