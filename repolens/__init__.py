"""RepoLens: heuristic repository analysis, search and PR impact."""

__version__ = "1.0.0"
