"""Integration tests for CLI commands."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from repolens import __version__
from repolens.cli import app


runner = CliRunner()


@pytest.fixture
def analyzed(sample_repo_path: Path, repolens_home: Path) -> str:
    """Analyze the sample repository and make it current."""
    result = runner.invoke(app, ["analyze", str(sample_repo_path), "--name", "sample"])
    assert result.exit_code == 0, result.stdout
    return "sample"


class TestGlobalOptions:

    def test_version(self):
        """--version prints the package version."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"RepoLens v{__version__}" in result.stdout


class TestAnalyzeCommand:
    """Tests for 'repolens analyze'."""

    def test_analyze_repository(self, sample_repo_path: Path, repolens_home: Path):
        """Analyzing prints totals and selects the repository."""
        result = runner.invoke(app, ["analyze", str(sample_repo_path), "--name", "sample"])

        assert result.exit_code == 0
        assert "Analyzed 'sample'" in result.stdout
        assert "Files: 14" in result.stdout
        assert "Edges:" in result.stdout
        assert (repolens_home / "cache" / "sample.json").exists()

        current = runner.invoke(app, ["current"])
        assert current.stdout.strip() == "sample"

    def test_default_id_from_directory(self, sample_repo_path: Path, repolens_home: Path):
        """Without --name the directory name is the id."""
        result = runner.invoke(app, ["analyze", str(sample_repo_path)])

        assert result.exit_code == 0
        assert "Analyzed 'sample_repo'" in result.stdout

    def test_default_id_from_url(self, sample_repo_path: Path, repolens_home: Path):
        """A URL yields an owner_repo id."""
        result = runner.invoke(
            app, ["analyze", str(sample_repo_path), "--url", "https://github.com/acme/widgets.git"]
        )

        assert result.exit_code == 0
        assert "Analyzed 'acme_widgets'" in result.stdout

    def test_incremental(self, analyzed: str, sample_repo_path: Path):
        """A repeated incremental analysis succeeds with the same totals."""
        result = runner.invoke(app, ["analyze", str(sample_repo_path), "--name", analyzed, "--incremental"])

        assert result.exit_code == 0
        assert "Files: 14" in result.stdout

    def test_analyze_nonexistent_path(self, repolens_home: Path):
        """A missing directory is rejected."""
        result = runner.invoke(app, ["analyze", "/nonexistent/path"])

        assert result.exit_code != 0


class TestOverviewCommand:
    """Tests for 'repolens overview'."""

    def test_overview(self, analyzed: str):
        result = runner.invoke(app, ["overview"])

        assert result.exit_code == 0
        assert "Languages" in result.stdout
        assert "Python" in result.stdout
        assert "Complexity:" in result.stdout

    def test_overview_json(self, analyzed: str):
        result = runner.invoke(app, ["overview", analyzed, "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["name"] == "sample_repo"
        assert data["total_files"] == 14

    def test_overview_unknown_repository(self, repolens_home: Path):
        result = runner.invoke(app, ["overview", "ghost"])

        assert result.exit_code == 1
        assert "ghost" in result.stdout

    def test_overview_without_selection(self, repolens_home: Path):
        """Commands that need a repository fail when none is selected."""
        result = runner.invoke(app, ["overview"])

        assert result.exit_code == 2


class TestSearchCommand:
    """Tests for 'repolens search' and 'repolens suggest'."""

    def test_search_with_results(self, analyzed: str):
        result = runner.invoke(app, ["search", "Parser", "--kinds", "Class"])

        assert result.exit_code == 0
        assert "[Class] Parser" in result.stdout
        assert "service/parser/parser.go:" in result.stdout
        assert "Showing 1 of 1 (skip=0)" in result.stdout

    def test_search_json(self, analyzed: str):
        result = runner.invoke(app, ["search", "repository", "--take", "2", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["take"] == 2
        assert len(data["results"]) <= 2
        assert "File" in data["available_kinds"]

    def test_search_no_results(self, analyzed: str):
        result = runner.invoke(app, ["search", "zzzznotfound"])

        assert result.exit_code == 0
        assert "No matches found." in result.stdout

    def test_suggest(self, analyzed: str):
        result = runner.invoke(app, ["suggest", "format"])

        assert result.exit_code == 0
        assert "formatDate  (Function) web/src/utils/format.ts" in result.stdout

    def test_suggest_nothing(self, analyzed: str):
        result = runner.invoke(app, ["suggest", "qqq"])

        assert result.exit_code == 0
        assert "No suggestions." in result.stdout

    def test_kinds(self, analyzed: str):
        result = runner.invoke(app, ["kinds"])

        assert result.exit_code == 0
        lines = result.stdout.split()
        assert "Class" in lines
        assert "File" in lines


class TestPrImpactCommand:
    """Tests for 'repolens pr-impact'."""

    def test_pr_impact(self, analyzed: str, temp_dir: Path):
        changes = temp_dir / "changes.json"
        changes.write_text(json.dumps(["service/parser/parser.go"]), encoding="utf-8")

        result = runner.invoke(app, ["pr-impact", str(changes), "--pr", "12"])

        assert result.exit_code == 0
        assert "PR #12" in result.stdout
        assert "Downstream files" in result.stdout
        assert "service/api.go" in result.stdout

    def test_pr_impact_json_with_files_object(self, analyzed: str, temp_dir: Path):
        changes = temp_dir / "changes.json"
        changes.write_text(json.dumps({"files": [
            {"file_path": "README.md", "status": "modified", "additions": 2, "deletions": 1},
        ]}), encoding="utf-8")

        result = runner.invoke(app, ["pr-impact", str(changes), "--pr", "3", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["pr_number"] == 3
        assert (data["total_additions"], data["total_deletions"]) == (2, 1)
        assert data["downstream_files"] == []

    def test_pr_impact_invalid_entry(self, analyzed: str, temp_dir: Path):
        changes = temp_dir / "changes.json"
        changes.write_text(json.dumps([{"status": "added"}]), encoding="utf-8")

        result = runner.invoke(app, ["pr-impact", str(changes), "--pr", "1"])

        assert result.exit_code == 2


class TestRepositoryCommands:
    """Tests for 'list', 'use', 'current' and 'delete'."""

    def test_list_empty(self, repolens_home: Path):
        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "No repositories analyzed yet." in result.stdout

    def test_list_marks_current(self, analyzed: str, sample_repo_path: Path):
        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert f"* sample  {sample_repo_path.resolve()}" in result.stdout

    def test_use(self, analyzed: str, sample_repo_path: Path):
        runner.invoke(app, ["analyze", str(sample_repo_path), "--name", "other"])

        result = runner.invoke(app, ["use", analyzed])

        assert result.exit_code == 0
        assert "Using repository 'sample'." in result.stdout
        assert runner.invoke(app, ["current"]).stdout.strip() == "sample"

    def test_use_unknown(self, repolens_home: Path):
        result = runner.invoke(app, ["use", "ghost"])

        assert result.exit_code != 0

    def test_current_without_selection(self, repolens_home: Path):
        result = runner.invoke(app, ["current"])

        assert result.exit_code == 0
        assert "No repository selected" in result.stdout

    def test_delete(self, analyzed: str, repolens_home: Path):
        result = runner.invoke(app, ["delete", analyzed])

        assert result.exit_code == 0
        assert "Deleted repository 'sample'." in result.stdout
        assert not (repolens_home / "cache" / "sample.json").exists()
        assert "No repository selected" in runner.invoke(app, ["current"]).stdout

    def test_delete_unknown(self, repolens_home: Path):
        result = runner.invoke(app, ["delete", "ghost"])

        assert result.exit_code != 0


class TestConfigCommands:
    """Tests for 'show-config' and 'set-config'."""

    def test_show_defaults(self, repolens_home: Path):
        result = runner.invoke(app, ["show-config"])

        assert result.exit_code == 0
        assert "[search]" in result.stdout
        assert "candidate_window = 500" in result.stdout

    def test_set_and_show(self, repolens_home: Path):
        result = runner.invoke(app, ["set-config", "search.candidate_window", "50"])

        assert result.exit_code == 0
        assert "search.candidate_window = 50" in result.stdout
        assert (repolens_home / "config.toml").exists()
        assert "candidate_window = 50" in runner.invoke(app, ["show-config"]).stdout

    def test_unknown_setting(self, repolens_home: Path):
        result = runner.invoke(app, ["set-config", "search.nope", "1"])

        assert result.exit_code == 2

    def test_invalid_value(self, repolens_home: Path):
        result = runner.invoke(app, ["set-config", "analysis.parse_workers", "many"])

        assert result.exit_code == 2
