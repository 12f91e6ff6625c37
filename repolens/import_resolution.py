"""Heuristic mapping of import tokens onto repository file paths.

Each resolver turns the raw text of an import (``pkg.mod``, ``./util``,
``crate::a::b``, ``"x.h"``) into candidate relative paths following one
language convention, and matches them against every file in the
repository. Nothing here reads file contents; an unmatched import is an
external dependency and yields ``None``.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence


class PathIndex:
    """Case-insensitive lookup over the repository's relative file paths."""

    def __init__(self, paths: Iterable[str]) -> None:
        self._exact: Dict[str, str] = {}
        self._by_name: Dict[str, List[str]] = {}
        self._by_dir: Dict[str, List[str]] = {}
        for path in sorted(p.replace("\\", "/") for p in paths):
            lower = path.lower()
            if lower in self._exact:
                continue
            self._exact[lower] = path
            directory, _, name = lower.rpartition("/")
            self._by_name.setdefault(name, []).append(path)
            self._by_dir.setdefault(directory, []).append(path)

    def __len__(self) -> int:
        return len(self._exact)

    def __contains__(self, path: str) -> bool:
        return path.replace("\\", "/").lower() in self._exact

    def exact(self, candidate: str) -> Optional[str]:
        return self._exact.get(candidate.replace("\\", "/").lower())

    def suffix(self, candidate: str) -> Optional[str]:
        """Shortest path equal to *candidate* or ending in ``/candidate``."""
        lower = candidate.replace("\\", "/").lower().lstrip("/")
        if not lower:
            return None
        name = lower.rpartition("/")[2]
        matches = [
            p for p in self._by_name.get(name, [])
            if p.lower() == lower or p.lower().endswith("/" + lower)
        ]
        if not matches:
            return None
        return min(matches, key=lambda p: (len(p), p))

    def files_in_dir(self, directory: str) -> List[str]:
        return list(self._by_dir.get(directory.replace("\\", "/").lower().strip("/"), []))

    def dirs_with_suffix(self, directory: str) -> List[str]:
        """Directories equal to *directory* or ending in ``/directory``."""
        lower = directory.replace("\\", "/").lower().strip("/")
        return sorted(
            d for d in self._by_dir
            if d == lower or d.endswith("/" + lower)
        )

    def find(self, candidates: Iterable[str], allow_suffix: bool = True) -> Optional[str]:
        """Exact match over all *candidates* first, then suffix matches."""
        ordered = [c for c in candidates if c]
        for candidate in ordered:
            hit = self.exact(candidate)
            if hit:
                return hit
        if allow_suffix:
            for candidate in ordered:
                hit = self.suffix(candidate)
                if hit:
                    return hit
        return None


@dataclass
class ResolveContext:
    """What a resolver may know about the importing file."""

    file_path: str
    index: PathIndex
    go_module: Optional[str] = None

    @property
    def directory(self) -> str:
        return posixpath.dirname(self.file_path)

    @property
    def stem(self) -> str:
        return posixpath.splitext(posixpath.basename(self.file_path))[0]


Resolver = Callable[[str, ResolveContext], Optional[str]]


def normalize(path: str) -> Optional[str]:
    """Collapse ``.``/``..`` segments; ``None`` if the path escapes the root."""
    if not path:
        return None
    joined = posixpath.normpath(path.replace("\\", "/"))
    if joined == "." or joined.startswith("../") or joined == "..":
        return None
    return joined.lstrip("/")


def _with_extensions(base: str, extensions: Sequence[str], index_names: Sequence[str] = ()) -> List[str]:
    out = [base + ext for ext in extensions]
    out.extend(posixpath.join(base, name) for name in index_names)
    return out


def read_go_module(repo_root: Path) -> Optional[str]:
    """Module path declared by the root ``go.mod``, if any."""
    go_mod = repo_root / "go.mod"
    if not go_mod.is_file():
        return None
    try:
        text = go_mod.read_text(encoding="utf-8", errors="ignore")
    except OSError:
        return None
    match = re.search(r"^\s*module\s+(\S+)", text, re.MULTILINE)
    return match.group(1) if match else None


# ---------------------------------------------------------------------------
# Resolver factories
# ---------------------------------------------------------------------------

def dotted_module(extensions: Sequence[str], index_names: Sequence[str] = ()) -> Resolver:
    """``pkg.mod`` / ``.sibling`` / ``..parent.mod`` (Python style).

    Leading dots walk up from the importing file's directory. Absolute names
    are tried next to the importing file, then from the repository root,
    then as a path suffix.
    """

    def resolve(token: str, ctx: ResolveContext) -> Optional[str]:
        stripped = token.lstrip(".")
        dots = len(token) - len(stripped)
        rel = stripped.replace(".", "/")
        if dots:
            base = ctx.directory
            for _ in range(dots - 1):
                base = posixpath.dirname(base)
            if not rel:
                return ctx.index.find([posixpath.join(base, n) for n in index_names], allow_suffix=False)
            target = normalize(posixpath.join(base, rel))
            if target is None:
                return None
            return ctx.index.find(_with_extensions(target, extensions, index_names), allow_suffix=False)
        if not rel:
            return None
        local = normalize(posixpath.join(ctx.directory, rel))
        candidates: List[str] = []
        if local:
            candidates.extend(_with_extensions(local, extensions, index_names))
        candidates.extend(_with_extensions(rel, extensions, index_names))
        return ctx.index.find(candidates)

    return resolve


def package_path(
    extensions: Sequence[str],
    separator: str = ".",
    index_names: Sequence[str] = (),
    strip_prefixes: Sequence[str] = (),
) -> Resolver:
    """Separator-delimited names mapped to directories, matched by suffix.

    Covers Java/Kotlin/Scala packages, PHP namespaces, Perl and Haskell
    modules, and Lua requires. A trailing wildcard selects the first file
    of the matching directory.
    """

    def resolve(token: str, ctx: ResolveContext) -> Optional[str]:
        name = token.strip()
        for prefix in strip_prefixes:
            if name.startswith(prefix):
                name = name[len(prefix):]
        name = name.strip(separator)
        if not name:
            return None
        wildcard = name.endswith(separator + "*") or name == "*"
        if wildcard:
            directory = name[: -len(separator + "*")].replace(separator, "/")
            for dir_match in ctx.index.dirs_with_suffix(directory):
                files = [
                    f for f in ctx.index.files_in_dir(dir_match)
                    if any(f.endswith(ext) for ext in extensions)
                ]
                if files:
                    return files[0]
            return None
        rel = name.replace(separator, "/")
        return ctx.index.find(_with_extensions(rel, extensions, index_names))

    return resolve


def relative_path(
    extensions: Sequence[str] = ("",),
    index_names: Sequence[str] = (),
    bare_from_root: bool = False,
    suffix_fallback: bool = False,
    external_prefixes: Sequence[str] = (),
) -> Resolver:
    """Filesystem-style paths relative to the importing file.

    Bare names (no leading ``.`` or ``/``) are external unless
    *bare_from_root*, in which case they are tried against the importing
    directory and then the repository root.
    """

    def resolve(token: str, ctx: ResolveContext) -> Optional[str]:
        token = token.strip()
        if not token or any(token.startswith(p) for p in external_prefixes):
            return None
        candidates: List[str] = []
        if token.startswith("."):
            target = normalize(posixpath.join(ctx.directory, token))
            if target is None:
                return None
            candidates.extend(_with_extensions(target, extensions, index_names))
        elif token.startswith("/"):
            candidates.extend(_with_extensions(token.lstrip("/"), extensions, index_names))
        elif bare_from_root:
            local = normalize(posixpath.join(ctx.directory, token))
            if local:
                candidates.extend(_with_extensions(local, extensions, index_names))
            candidates.extend(_with_extensions(token, extensions, index_names))
        else:
            return None
        return ctx.index.find(candidates, allow_suffix=suffix_fallback)

    return resolve


def header_include() -> Resolver:
    """``#include "x.h"``: the including directory, the root, then any suffix."""

    def resolve(token: str, ctx: ResolveContext) -> Optional[str]:
        token = token.strip()
        if not token:
            return None
        local = normalize(posixpath.join(ctx.directory, token))
        candidates = [c for c in (local, normalize(token)) if c]
        hit = ctx.index.find(candidates, allow_suffix=False)
        if hit:
            return hit
        hit = ctx.index.suffix(token)
        if hit and hit.lower() != ctx.file_path.lower():
            return hit
        return None

    return resolve


def go_package() -> Resolver:
    """Import path to the first ``.go`` file of the package directory.

    The root ``go.mod`` module path is stripped when present; otherwise the
    import path is matched as a directory suffix.
    """

    def resolve(token: str, ctx: ResolveContext) -> Optional[str]:
        path = token.strip().strip('"')
        if not path:
            return None
        module = ctx.go_module
        dirs: List[str] = []
        if module and (path == module or path.startswith(module + "/")):
            dirs.append(path[len(module):].strip("/"))
        else:
            dirs.extend(ctx.index.dirs_with_suffix(path))
        for directory in dirs:
            files = [f for f in ctx.index.files_in_dir(directory) if f.endswith(".go")]
            non_test = [f for f in files if not f.endswith("_test.go")]
            if non_test or files:
                return (non_test or files)[0]
        return None

    return resolve


def rust_use() -> Resolver:
    """``crate::a::b::Item`` to ``a/b.rs`` or ``a/b/mod.rs`` (longest prefix first)."""

    def resolve(token: str, ctx: ResolveContext) -> Optional[str]:
        path = token.strip().rstrip(";")
        path = re.sub(r"::\{.*$", "", path)
        path = re.sub(r"\s+as\s+\w+$", "", path)
        segments = [s for s in path.split("::") if s and s != "*"]
        if not segments:
            return None
        base = ""
        head = segments[0]
        if head == "crate":
            segments = segments[1:]
        elif head == "self":
            base = ctx.directory
            segments = segments[1:]
        elif head == "super":
            base = ctx.directory
            while segments and segments[0] == "super":
                base = posixpath.dirname(base)
                segments = segments[1:]
        elif head in ("std", "core", "alloc"):
            return None
        for size in range(len(segments), 0, -1):
            rel = "/".join(segments[:size])
            if base:
                rel = posixpath.join(base, rel)
            hit = ctx.index.find([rel + ".rs", rel + "/mod.rs"])
            if hit and hit.lower() != ctx.file_path.lower():
                return hit
        return None

    return resolve


def rust_mod() -> Resolver:
    """``mod x;`` to ``x.rs`` or ``x/mod.rs`` beside (or below) the declaring file."""

    def resolve(token: str, ctx: ResolveContext) -> Optional[str]:
        name = token.strip()
        if not name:
            return None
        directory = ctx.directory
        candidates = [
            posixpath.join(directory, name + ".rs"),
            posixpath.join(directory, name, "mod.rs"),
        ]
        if ctx.stem not in ("mod", "lib", "main"):
            candidates.append(posixpath.join(directory, ctx.stem, name + ".rs"))
        return ctx.index.find([c.lstrip("/") for c in candidates], allow_suffix=False)

    return resolve


def snake_module(extensions: Sequence[str]) -> Resolver:
    """``MyApp.Accounts.User`` to ``my_app/accounts/user.ex`` (Elixir aliases)."""

    def resolve(token: str, ctx: ResolveContext) -> Optional[str]:
        parts = [p for p in token.strip().split(".") if p]
        if not parts:
            return None
        rel = "/".join(to_snake_case(p) for p in parts)
        hit = ctx.index.find(_with_extensions(rel, extensions))
        if hit is None and len(parts) > 1:
            hit = ctx.index.find(_with_extensions("/".join(to_snake_case(p) for p in parts[-2:]), extensions))
        return hit

    return resolve


def to_snake_case(name: str) -> str:
    step = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    step = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", step)
    return step.lower()


def first_of(*resolvers: Resolver) -> Resolver:
    """Try each resolver in turn."""

    def resolve(token: str, ctx: ResolveContext) -> Optional[str]:
        for resolver in resolvers:
            hit = resolver(token, ctx)
            if hit:
                return hit
        return None

    return resolve
