"""Tests for pull request impact analysis."""

import pytest

from repolens.models import (
    CachedAnalysis,
    DependencyGraph,
    EdgeRelationship,
    FileInfo,
    GraphEdge,
    GraphNode,
    NodeType,
    RepositoryOverview,
    Symbol,
    SymbolKind,
)
from repolens.pr_impact import PrChangedFile, PrImpactAnalyzer


@pytest.fixture
def cached() -> CachedAnalysis:
    files = [
        FileInfo("src/core.py", "Python", 100, 10),
        FileInfo("src/app.py", "Python", 100, 10),
        FileInfo("src/cli.py", "Python", 100, 10),
        FileInfo("web/main.ts", "TypeScript", 100, 10),
    ]
    symbols = [
        Symbol("Engine", SymbolKind.CLASS, "src/core.py", 1),
        Symbol("run", SymbolKind.METHOD, "src/core.py", 2, "Engine"),
        Symbol("main", SymbolKind.FUNCTION, "src/app.py", 1),
        Symbol("render", SymbolKind.FUNCTION, "web/main.ts", 1),
    ]
    graph = DependencyGraph(
        nodes=[
            GraphNode("src/core.py", "core.py", NodeType.FILE, "src/core.py"),
            GraphNode("module:src/core", "src/core", NodeType.MODULE, "src/core.py"),
            GraphNode("module:src/app", "src/app", NodeType.MODULE, "src/app.py"),
            GraphNode("module:src/cli", "src/cli", NodeType.MODULE, "src/cli.py"),
            GraphNode("class:src/core.Engine", "Engine", NodeType.CLASS, "src/core.py"),
            GraphNode("type:Base", "Base", NodeType.CLASS),
        ],
        edges=[
            GraphEdge("folder:src", "src/core.py", EdgeRelationship.CONTAINS),
            GraphEdge("module:src/core", "class:src/core.Engine", EdgeRelationship.CONTAINS),
            GraphEdge("class:src/core.Engine", "type:Base", EdgeRelationship.INHERITS),
            GraphEdge("module:src/app", "module:src/core", EdgeRelationship.IMPORTS),
            GraphEdge("module:src/cli", "module:src/core", EdgeRelationship.IMPORTS),
            GraphEdge("module:src/cli", "module:src/app", EdgeRelationship.IMPORTS),
        ],
    )
    return CachedAnalysis(files, symbols, graph, RepositoryOverview(name="demo"))


class TestPrImpactAnalyzer:

    def test_totals_and_file_details(self, cached):
        changes = [
            PrChangedFile("src/core.py", "modified", 10, 2),
            PrChangedFile("docs/new.md", "added", 5, 0),
        ]
        report = PrImpactAnalyzer().analyze(42, changes, cached)
        assert report.pr_number == 42
        assert report.total_files_changed == 2
        assert (report.total_additions, report.total_deletions) == (15, 2)
        core, docs = report.changed_files
        assert (core.language, core.symbol_count) == ("Python", 2)
        assert (docs.language, docs.symbol_count) == (None, 0)
        assert report.languages_touched == ["Python"]

    def test_affected_symbols_and_edges(self, cached):
        report = PrImpactAnalyzer().analyze(1, [PrChangedFile("src/core.py")], cached)
        assert [(s.name, s.parent_symbol) for s in report.affected_symbols] == [("Engine", None), ("run", "Engine")]
        sides = {(e.source, e.target): e.impact_side for e in report.affected_edges}
        assert sides == {
            ("folder:src", "src/core.py"): "target",
            ("module:src/core", "class:src/core.Engine"): "source",
            ("class:src/core.Engine", "type:Base"): "source",
            ("module:src/app", "module:src/core"): "target",
            ("module:src/cli", "module:src/core"): "target",
        }

    def test_downstream_files_are_importers(self, cached):
        report = PrImpactAnalyzer().analyze(1, [PrChangedFile("src/core.py")], cached)
        assert report.downstream_files == ["src/app.py", "src/cli.py"]

    def test_changed_importers_are_not_downstream(self, cached):
        changes = [PrChangedFile("src/core.py"), PrChangedFile("SRC/App.py")]
        report = PrImpactAnalyzer().analyze(1, changes, cached)
        assert report.downstream_files == ["src/cli.py"]

    def test_rename_uses_previous_path(self, cached):
        change = PrChangedFile("src/engine.py", "renamed", 1, 1, previous_file_path="src\\core.py")
        report = PrImpactAnalyzer().analyze(7, [change], cached)
        assert report.changed_files[0].symbol_count == 0
        assert [s.name for s in report.affected_symbols] == ["Engine", "run"]
        assert report.downstream_files == ["src/app.py", "src/cli.py"]

    def test_unknown_files(self, cached):
        report = PrImpactAnalyzer().analyze(3, [PrChangedFile("nothing/here.rs", "removed")], cached)
        assert report.affected_symbols == []
        assert report.affected_edges == []
        assert report.downstream_files == []
        assert report.languages_touched == []

    def test_to_dict(self, cached):
        data = PrImpactAnalyzer().analyze(5, [PrChangedFile("web/main.ts")], cached).to_dict()
        assert data["pr_number"] == 5
        assert data["changed_files"][0]["language"] == "TypeScript"
        assert data["affected_symbols"][0]["kind"] == "Function"

    def test_sample_repository(self, analyzer, sample_repo_path):
        cached = CachedAnalysis.from_result(analyzer.analyze_full(sample_repo_path))
        report = PrImpactAnalyzer().analyze(9, [PrChangedFile("service/parser/parser.go")], cached)
        assert report.downstream_files == ["service/api.go"]
        assert report.languages_touched == ["Go"]


class TestPrChangedFile:

    def test_from_dict_defaults(self):
        change = PrChangedFile.from_dict({"file_path": "a.py"})
        assert (change.status, change.additions, change.deletions, change.previous_file_path) == (
            "modified", 0, 0, None,
        )

    def test_from_dict_full(self):
        change = PrChangedFile.from_dict({
            "file_path": "b.py", "status": "renamed", "additions": "3", "deletions": 1,
            "previous_file_path": "a.py",
        })
        assert change == PrChangedFile("b.py", "renamed", 3, 1, "a.py")
