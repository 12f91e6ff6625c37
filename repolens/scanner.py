"""File inventory: which files a repository holds, in which language, how big."""

from __future__ import annotations

import hashlib
import logging
import posixpath
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional

from . import config
from .cancellation import CancellationToken, check
from .models import FileInfo
from .parser import COMMON_IGNORED_DIRS, walk_repository

logger = logging.getLogger(__name__)

IGNORED_FILES: FrozenSet[str] = frozenset({
    ".ds_store", "thumbs.db", ".gitignore", ".gitattributes",
    "license", "license.md", "license.txt",
})

EXTENSION_LANGUAGES: Dict[str, str] = {
    # .NET
    ".cs": "C#",
    ".csproj": "MSBuild",
    ".props": "MSBuild",
    ".targets": "MSBuild",
    ".sln": "Solution",
    ".slnx": "Solution",
    ".razor": "Razor",
    # JavaScript / TypeScript
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".mts": "TypeScript",
    ".cts": "TypeScript",
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    # Web
    ".html": "HTML",
    ".htm": "HTML",
    ".css": "CSS",
    ".scss": "SCSS",
    ".less": "LESS",
    # Data / config
    ".json": "JSON",
    ".xml": "XML",
    ".yaml": "YAML",
    ".yml": "YAML",
    ".toml": "TOML",
    ".ini": "INI",
    ".cfg": "INI",
    ".env": "Environment",
    # Docs
    ".md": "Markdown",
    ".rst": "reStructuredText",
    ".txt": "Text",
    # Code
    ".py": "Python",
    ".pyw": "Python",
    ".go": "Go",
    ".java": "Java",
    ".rs": "Rust",
    ".rb": "Ruby",
    ".rake": "Ruby",
    ".gemspec": "Ruby",
    ".php": "PHP",
    ".phtml": "PHP",
    ".sql": "SQL",
    ".sh": "Shell",
    ".bash": "Shell",
    ".ps1": "PowerShell",
    ".dockerfile": "Dockerfile",
    ".c": "C",
    ".h": "C",
    ".cpp": "C++",
    ".cc": "C++",
    ".cxx": "C++",
    ".c++": "C++",
    ".hpp": "C++",
    ".hh": "C++",
    ".hxx": "C++",
    ".swift": "Swift",
    ".scala": "Scala",
    ".sc": "Scala",
    ".kt": "Kotlin",
    ".kts": "Kotlin",
    ".dart": "Dart",
    ".lua": "Lua",
    ".pl": "Perl",
    ".pm": "Perl",
    ".t": "Perl",
    ".r": "R",
    ".rmd": "R",
    ".hs": "Haskell",
    ".lhs": "Haskell",
    ".ex": "Elixir",
    ".exs": "Elixir",
}

SPECIAL_FILENAMES: Dict[str, str] = {
    "dockerfile": "Dockerfile",
    "containerfile": "Dockerfile",
    "makefile": "Makefile",
    "gnumakefile": "Makefile",
    "cmakelists.txt": "CMake",
    "go.mod": "Go Module",
    "go.sum": "Go Module",
    "gemfile": "Ruby",
    "rakefile": "Ruby",
    "procfile": "Procfile",
    "jenkinsfile": "Groovy",
    "vagrantfile": "Ruby",
}

CODE_LANGUAGES: FrozenSet[str] = frozenset({
    "C#", "TypeScript", "JavaScript", "Python", "Go", "Java", "Rust", "Ruby",
    "PHP", "Razor", "SQL", "Shell", "PowerShell", "C", "C++", "Swift",
    "Scala", "Kotlin", "Dart", "Lua", "Perl", "R", "Haskell", "Elixir",
})


def detect_language(relative_path: str) -> Optional[str]:
    """Language label for *relative_path*, or ``None`` when it is not tracked."""
    name = posixpath.basename(relative_path).lower()
    special = SPECIAL_FILENAMES.get(name)
    if special:
        return special
    _, ext = posixpath.splitext(name)
    return EXTENSION_LANGUAGES.get(ext)


def is_code_language(language: str) -> bool:
    return language in CODE_LANGUAGES


class RepositoryScanner:
    """Walks a repository and describes every recognized file."""

    def __init__(
        self,
        ignored_dirs: Iterable[str] = COMMON_IGNORED_DIRS,
        max_line_count_bytes: Optional[int] = None,
    ) -> None:
        self.ignored_dirs = frozenset(ignored_dirs)
        self.max_line_count_bytes = max_line_count_bytes or config.MAX_LINE_COUNT_BYTES

    def scan(self, repo_root: Path, token: Optional[CancellationToken] = None) -> List[FileInfo]:
        root = Path(repo_root)
        logger.info("Scanning files in %s", root)
        files: List[FileInfo] = []
        for rel in walk_repository(root, self.ignored_dirs, token=token):
            check(token)
            info = self.describe(root, rel)
            if info is not None:
                files.append(info)
        logger.info(
            "Scan complete: %d files across %d languages",
            len(files), len({f.language for f in files}),
        )
        return files

    def describe(self, repo_root: Path, relative_path: str) -> Optional[FileInfo]:
        """FileInfo for one path, or ``None`` if the file is ignored or unreadable."""
        if posixpath.basename(relative_path).lower() in IGNORED_FILES:
            return None
        language = detect_language(relative_path)
        if language is None:
            return None
        path = Path(repo_root) / relative_path
        try:
            size = path.stat().st_size
        except OSError as exc:
            logger.warning("Could not stat %s: %s", relative_path, exc)
            return None

        line_count = 0
        content_hash = None
        if 0 < size <= self.max_line_count_bytes:
            try:
                data = path.read_bytes()
            except OSError as exc:
                logger.warning("Could not read %s: %s", relative_path, exc)
            else:
                line_count = len(data.splitlines())
                content_hash = hashlib.sha256(data).hexdigest()
        return FileInfo(
            relative_path=relative_path,
            language=language,
            size_bytes=size,
            line_count=line_count,
            content_hash=content_hash,
        )
