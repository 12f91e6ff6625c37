"""Pytest configuration and fixtures for RepoLens tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from repolens.analyzer import RepositoryAnalyzer
from repolens.parser import ParseResultCache
from repolens.profiles import create_default_parsers
from repolens.storage import AnalysisCache, RepositoryManager


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_repo_path() -> Path:
    """Get path to the multi-language sample repository."""
    return Path(__file__).parent / "fixtures" / "sample_repo"


@pytest.fixture
def sample_repo_copy(temp_dir: Path, sample_repo_path: Path) -> Path:
    """A writable copy of the sample repository."""
    target = temp_dir / "sample_repo"
    shutil.copytree(sample_repo_path, target)
    return target


@pytest.fixture
def repolens_home(temp_dir: Path, monkeypatch) -> Path:
    """Redirect every RepoLens storage path into a temporary home."""
    home = temp_dir / "home"
    cache_dir = home / "cache"
    state_file = home / "state.json"

    # Patch both config AND storage modules (storage imports at module load)
    monkeypatch.setenv("REPOLENS_HOME", str(home))
    monkeypatch.setattr("repolens.config.BASE_DIR", home)
    monkeypatch.setattr("repolens.config.CACHE_DIR", cache_dir)
    monkeypatch.setattr("repolens.config.STATE_FILE", state_file)
    monkeypatch.setattr("repolens.storage.CACHE_DIR", cache_dir)
    monkeypatch.setattr("repolens.storage.STATE_FILE", state_file)

    return home


@pytest.fixture
def temp_repository_manager(repolens_home: Path) -> RepositoryManager:
    """Create a RepositoryManager with temporary storage."""
    return RepositoryManager()


@pytest.fixture
def temp_analysis_cache(repolens_home: Path) -> AnalysisCache:
    """Create an AnalysisCache with temporary storage."""
    return AnalysisCache()


@pytest.fixture
def analyzer() -> RepositoryAnalyzer:
    """An analyzer with a private parse cache."""
    return RepositoryAnalyzer(parsers=create_default_parsers(ParseResultCache()))


@pytest.fixture
def make_repo(temp_dir: Path):
    """Factory writing ``{relative_path: text}`` into a fresh repository directory."""

    def _make(files: dict, name: str = "repo") -> Path:
        root = temp_dir / name
        root.mkdir(parents=True, exist_ok=True)
        for rel, text in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        return root

    return _make
