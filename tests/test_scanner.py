"""Tests for the file inventory scanner."""

import hashlib

import pytest

from repolens.cancellation import AnalysisCancelled, CancellationToken
from repolens.scanner import RepositoryScanner, detect_language, is_code_language


SAMPLE_FILES = [
    "Dockerfile",
    "README.md",
    "app/__init__.py",
    "app/main.py",
    "app/models.py",
    "app/utils.py",
    "go.mod",
    "java/com/example/Greeter.java",
    "package.json",
    "requirements.txt",
    "service/api.go",
    "service/parser/parser.go",
    "web/src/index.ts",
    "web/src/utils/format.ts",
]


class TestDetectLanguage:

    @pytest.mark.parametrize("path,language", [
        ("src/app.py", "Python"),
        ("src/App.TSX", "TypeScript"),
        ("lib/x.h", "C"),
        ("Dockerfile", "Dockerfile"),
        ("build/Makefile", "Makefile"),
        ("go.mod", "Go Module"),
        ("analysis.R", "R"),
        ("notes.txt", "Text"),
        ("Project.csproj", "MSBuild"),
    ])
    def test_known(self, path, language):
        assert detect_language(path) == language

    def test_unknown(self):
        assert detect_language("image.png") is None
        assert detect_language("noext") is None

    def test_code_languages(self):
        assert is_code_language("Python")
        assert is_code_language("Elixir")
        assert not is_code_language("Markdown")
        assert not is_code_language("Go Module")


class TestRepositoryScanner:

    def test_sample_repo_inventory(self, sample_repo_path):
        files = RepositoryScanner().scan(sample_repo_path)
        assert [f.relative_path for f in files] == SAMPLE_FILES

    def test_line_count_and_hash(self, make_repo):
        root = make_repo({"a.py": "x = 1\ny = 2\n"})
        info = RepositoryScanner().scan(root)[0]
        assert info.language == "Python"
        assert info.line_count == 2
        assert info.size_bytes == len("x = 1\ny = 2\n")
        assert info.content_hash == hashlib.sha256(b"x = 1\ny = 2\n").hexdigest()

    def test_empty_file_has_no_hash(self, sample_repo_path):
        files = {f.relative_path: f for f in RepositoryScanner().scan(sample_repo_path)}
        empty = files["app/__init__.py"]
        assert empty.size_bytes == 0
        assert empty.line_count == 0
        assert empty.content_hash is None

    def test_large_files_are_not_read(self, make_repo):
        root = make_repo({"big.py": "a = 1\n" * 100})
        info = RepositoryScanner(max_line_count_bytes=10).scan(root)[0]
        assert info.size_bytes == 600
        assert info.line_count == 0
        assert info.content_hash is None

    def test_ignored_entries(self, make_repo):
        root = make_repo({
            "LICENSE": "MIT",
            "main.go": "package main\n",
            "logo.png": "not really",
            "node_modules/dep/index.js": "module.exports = 1;\n",
            ".github/workflows/ci.yml": "on: push\n",
            "bin/tool.sh": "echo hi\n",
        })
        files = RepositoryScanner().scan(root)
        assert [f.relative_path for f in files] == ["main.go"]

    def test_custom_ignored_dirs(self, make_repo):
        root = make_repo({"generated/a.py": "", "src/b.py": ""})
        files = RepositoryScanner(ignored_dirs={"generated"}).scan(root)
        assert [f.relative_path for f in files] == ["src/b.py"]

    def test_describe_single_file(self, sample_repo_path):
        info = RepositoryScanner().describe(sample_repo_path, "service/api.go")
        assert info.language == "Go"
        assert info.line_count > 0
        assert RepositoryScanner().describe(sample_repo_path, "missing.go") is None

    def test_cancellation(self, sample_repo_path):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(AnalysisCancelled):
            RepositoryScanner().scan(sample_repo_path, token=token)
