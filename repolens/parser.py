"""Profile-driven source extraction for many languages.

One line-oriented scanner handles every supported language. A
:class:`LanguageProfile` tells it how comments and strings look, how
scopes open and close (braces, indentation or ``end`` keywords), which
ordered regex rules recognize declarations, and how import tokens map to
repository files. The scanner never builds a syntax tree; lines it does not
recognize are skipped, so partial or malformed source degrades to fewer
symbols instead of an error.

Results are produced once per (repository, profile) and memoized in a
:class:`ParseResultCache`, so ``extract_symbols`` and ``build_dependencies``
share a single pass.
"""

from __future__ import annotations

import hashlib
import logging
import os
import posixpath
import re
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from re import Match, Pattern
from typing import Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from . import config
from .cancellation import CancellationToken, check
from .import_resolution import PathIndex, ResolveContext, Resolver, read_go_module
from .models import EdgeRelationship, GraphEdge, GraphNode, NodeType, Symbol, SymbolKind

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Repository walking
# ---------------------------------------------------------------------------

COMMON_IGNORED_DIRS: FrozenSet[str] = frozenset({
    ".git", "node_modules", "vendor", "build", "dist", "bin", "obj", "out",
    "packages", "TestResults", "coverage", "__pycache__", "wwwroot",
})


def walk_repository(
    repo_root: Path,
    ignored_dirs: Iterable[str] = COMMON_IGNORED_DIRS,
    token: Optional[CancellationToken] = None,
) -> List[str]:
    """Relative POSIX paths of every non-hidden file outside ignored directories.

    Directories that cannot be listed are logged and skipped.
    """
    ignored = set(ignored_dirs)
    root = Path(repo_root)
    found: List[str] = []

    def _on_error(exc: OSError) -> None:
        logger.warning("Skipping unreadable directory %s: %s", exc.filename, exc.strerror)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        check(token)
        dirnames[:] = sorted(d for d in dirnames if d not in ignored and not d.startswith("."))
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        for filename in sorted(filenames):
            if filename.startswith("."):
                continue
            found.append(filename if rel_dir == "." else f"{rel_dir}/{filename}")
    return sorted(found)


def module_path(relative_path: str) -> str:
    """Relative path without its extension, the logical key of a file's module."""
    root, _ = posixpath.splitext(relative_path)
    return root


# ---------------------------------------------------------------------------
# Profile description
# ---------------------------------------------------------------------------

class ScopeMode(str, Enum):
    BRACES = "braces"
    INDENT = "indent"
    END_KEYWORD = "end_keyword"
    NONE = "none"


class RuleAction(str, Enum):
    IMPORT = "import"
    NAMESPACE = "namespace"
    TYPE = "type"
    CALLABLE = "callable"
    MEMBER = "member"
    RELATION = "relation"
    SKIP = "skip"


@dataclass(frozen=True)
class Rule:
    """One pattern in a profile's ordered cascade.

    Named groups carry the extracted text: ``name`` (declared name),
    ``target`` (import token or relation target), ``bases`` and
    ``interfaces`` (comma separated type lists) and ``receiver`` (explicit
    owner of a method).
    """

    action: RuleAction
    pattern: Pattern[str]
    kind: Optional[SymbolKind] = None
    node_type: Optional[NodeType] = None
    node_prefix: Optional[str] = None
    emit_node: bool = True
    opens_scope: bool = True
    scope_only: bool = False
    requires_type: bool = False
    outside_type: bool = False
    top_level_only: bool = False
    split: Optional[Pattern[str]] = None
    resolver: Optional[Resolver] = None
    relation: EdgeRelationship = EdgeRelationship.INHERITS
    metadata: Mapping[str, str] = field(default_factory=dict)
    import_tokens: Optional[Callable[[Match[str]], List[str]]] = None
    import_name: Optional[Callable[[Match[str]], str]] = None


def rule(action: RuleAction, regex: str, **options) -> Rule:
    """Build a :class:`Rule`, compiling *regex* (and a string ``split``)."""
    split = options.pop("split", None)
    if isinstance(split, str):
        split = re.compile(split)
    return Rule(action=action, pattern=re.compile(regex), split=split, **options)


@dataclass(frozen=True)
class BlockSpec:
    """A grouped declaration such as Go's ``import ( ... )``.

    Lines between ``start`` and ``end`` are fed to ``item`` only.
    """

    start: Pattern[str]
    item: Rule
    end: Pattern[str]


@dataclass
class LanguageProfile:
    name: str
    extensions: Tuple[str, ...]
    rules: Sequence[Rule]
    scope_mode: ScopeMode = ScopeMode.BRACES
    line_comments: Tuple[str, ...] = ("//",)
    block_comments: Tuple[Tuple[str, str], ...] = (("/*", "*/"),)
    string_delimiters: Tuple[str, ...] = ('"', "'")
    # (opener, closer, backslash escapes) for literals that may span lines.
    multiline_strings: Tuple[Tuple[str, str, bool], ...] = ()
    resolver: Optional[Resolver] = None
    ignored_dirs: FrozenSet[str] = frozenset()
    filenames: Tuple[str, ...] = ()
    blocks: Sequence[BlockSpec] = ()
    namespace_node: bool = True
    namespace_is_container: bool = False
    block_open: Optional[Pattern[str]] = None
    block_close: Optional[Pattern[str]] = None
    ignored_bases: FrozenSet[str] = frozenset()
    classify_base: Optional[Callable[[str], EdgeRelationship]] = None
    sticky_types: bool = False
    unique_callables: bool = False

    def handles(self, relative_path: str) -> bool:
        name = posixpath.basename(relative_path)
        if name in self.filenames:
            return True
        lower = name.lower()
        return any(lower.endswith(ext) for ext in self.extensions)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class FileParseResult:
    symbols: List[Symbol] = field(default_factory=list)
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)


@dataclass
class ProfileResult:
    profile: str
    symbols: List[Symbol] = field(default_factory=list)
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    files_parsed: int = 0
    skipped_files: int = 0
    failed_files: int = 0

    def merge(self, part: FileParseResult, seen: Set[str]) -> None:
        self.symbols.extend(part.symbols)
        for node in part.nodes:
            if node.id not in seen:
                seen.add(node.id)
                self.nodes.append(node)
        self.edges.extend(part.edges)


# ---------------------------------------------------------------------------
# Parser contract
# ---------------------------------------------------------------------------

class LanguageParser(ABC):
    """Capability interface every language extractor implements."""

    @property
    @abstractmethod
    def supported_languages(self) -> Tuple[str, ...]:
        ...

    @abstractmethod
    def extract_symbols(
        self,
        repo_root: Path,
        token: Optional[CancellationToken] = None,
    ) -> List[Symbol]:
        """Symbols declared in every supported file under *repo_root*."""
        ...

    @abstractmethod
    def build_dependencies(
        self,
        repo_root: Path,
        token: Optional[CancellationToken] = None,
    ) -> Tuple[List[GraphNode], List[GraphEdge]]:
        """Module/type/function nodes and their edges for *repo_root*."""
        ...

    def supports_language(self, language: str) -> bool:
        return language in self.supported_languages


# ---------------------------------------------------------------------------
# Memoization
# ---------------------------------------------------------------------------

class ParseResultCache:
    """Thread-safe memo of profile results keyed by (repository path, profile).

    Each entry carries a fingerprint of the files it was computed from; a
    lookup with a different fingerprint re-parses. One lock per key means
    concurrent requests for the same repository parse once while other
    repositories proceed independently.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[Tuple[str, str], Tuple[str, ProfileResult]] = {}
        self._key_locks: Dict[Tuple[str, str], threading.Lock] = {}

    def key_lock(self, key: Tuple[str, str]) -> threading.Lock:
        with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def get(self, key: Tuple[str, str], fingerprint: str) -> Optional[ProfileResult]:
        with self._lock:
            entry = self._entries.get(key)
        if entry is not None and entry[0] == fingerprint:
            return entry[1]
        return None

    def put(self, key: Tuple[str, str], fingerprint: str, result: ProfileResult) -> None:
        with self._lock:
            self._entries[key] = (fingerprint, result)

    def invalidate(self, repo_root: Optional[Path] = None) -> None:
        """Drop entries and key locks for *repo_root*, or everything when ``None``."""
        with self._lock:
            if repo_root is None:
                self._entries.clear()
                self._key_locks.clear()
                return
            root = str(Path(repo_root).resolve())
            for key in [k for k in self._entries if k[0] == root]:
                del self._entries[key]
            for key in [k for k in self._key_locks if k[0] == root]:
                del self._key_locks[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


DEFAULT_CACHE = ParseResultCache()


# ---------------------------------------------------------------------------
# Scanner state
# ---------------------------------------------------------------------------

_TYPE = "type"
_CALLABLE = "callable"
_NAMESPACE = "namespace"


@dataclass
class _Scope:
    kind: str
    name: str
    level: int


@dataclass
class _FileState:
    relative_path: str
    module_id: str
    module_path: str
    block_end: Optional[str] = None
    string_end: Optional[Tuple[str, bool]] = None
    depth: int = 0
    stack: List[_Scope] = field(default_factory=list)
    pending: Optional[_Scope] = None
    namespace: Optional[str] = None
    active_block: Optional[BlockSpec] = None
    local_types: Dict[str, str] = field(default_factory=dict)
    callables: Set[str] = field(default_factory=set)
    relations: List[Tuple[str, str, EdgeRelationship]] = field(default_factory=list)


_GENERIC_ARGS = re.compile(r"<[^<>]*>|\[[^\[\]]*\]")
_IDENT = re.compile(r"[A-Za-z_$][\w$]*")
_BASE_SEPARATORS = re.compile(r"\s*(?:,|\+|\bwith\b)\s*")
_BASE_GROUPS = (
    ("bases", EdgeRelationship.INHERITS),
    ("interfaces", EdgeRelationship.IMPLEMENTS),
    ("mixins", EdgeRelationship.IMPLEMENTS),
)


def base_type_names(text: Optional[str]) -> List[str]:
    """Simple names from a comma separated type list.

    Generic arguments and qualifiers are dropped: ``a.B<T>, C`` -> ``B, C``.
    """
    if not text:
        return []
    cleaned = text
    while True:
        reduced = _GENERIC_ARGS.sub("", cleaned)
        if reduced == cleaned:
            break
        cleaned = reduced
    names: List[str] = []
    for part in _BASE_SEPARATORS.split(cleaned):
        part = part.strip()
        if not part or "=" in part:
            continue
        part = re.sub(r"^(?:(?:public|private|protected|internal|virtual|open|abstract)\s+)+", "", part)
        part = re.split(r"[\s(]", part, maxsplit=1)[0]
        segment = re.split(r"::|\.|\\", part)[-1]
        match = _IDENT.match(segment)
        if match:
            names.append(match.group(0))
    return names


# ---------------------------------------------------------------------------
# ProfileParser
# ---------------------------------------------------------------------------

class ProfileParser(LanguageParser):
    """Generic scanner driven by one :class:`LanguageProfile`."""

    def __init__(
        self,
        profile: LanguageProfile,
        cache: Optional[ParseResultCache] = None,
        workers: Optional[int] = None,
        max_file_bytes: Optional[int] = None,
    ) -> None:
        self.profile = profile
        self.cache = cache if cache is not None else DEFAULT_CACHE
        self.workers = max(1, workers or config.PARSE_WORKERS)
        self.max_file_bytes = max_file_bytes or config.MAX_PARSE_FILE_BYTES

    @property
    def supported_languages(self) -> Tuple[str, ...]:
        return (self.profile.name,)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract_symbols(
        self,
        repo_root: Path,
        token: Optional[CancellationToken] = None,
    ) -> List[Symbol]:
        return list(self.parse(repo_root, token=token).symbols)

    def build_dependencies(
        self,
        repo_root: Path,
        token: Optional[CancellationToken] = None,
    ) -> Tuple[List[GraphNode], List[GraphEdge]]:
        result = self.parse(repo_root, token=token)
        return list(result.nodes), list(result.edges)

    def discover(self, repo_root: Path, repo_files: Optional[Sequence[str]] = None) -> List[str]:
        """Candidate files for this profile, as sorted relative paths."""
        if repo_files is None:
            repo_files = walk_repository(repo_root)
        extra = self.profile.ignored_dirs
        out = []
        for rel in repo_files:
            if not self.profile.handles(rel):
                continue
            parts = rel.split("/")[:-1]
            if any(p in extra or p in COMMON_IGNORED_DIRS or p.startswith(".") for p in parts):
                continue
            out.append(rel)
        return sorted(out)

    def parse(
        self,
        repo_root: Path,
        token: Optional[CancellationToken] = None,
        repo_files: Optional[Sequence[str]] = None,
        content_hashes: Optional[Mapping[str, Optional[str]]] = None,
    ) -> ProfileResult:
        """Parse every candidate file once, reusing a fresh memoized result.

        *content_hashes* maps relative paths to known sha256 digests so the
        memo check need not re-read those files.
        """
        root = Path(repo_root).resolve()
        check(token)
        if repo_files is None:
            repo_files = walk_repository(root, token=token)
        candidates = self.discover(root, repo_files)
        fingerprint = self._fingerprint(root, candidates, repo_files, content_hashes)
        key = (str(root), self.profile.name)

        with self.cache.key_lock(key):
            cached = self.cache.get(key, fingerprint)
            if cached is not None:
                logger.debug("Reusing %s parse result for %s", self.profile.name, root)
                return cached
            result = self._parse_all(root, candidates, repo_files, token)
            self.cache.put(key, fingerprint, result)
        logger.info(
            "%s: %d files, %d symbols, %d nodes, %d edges (%d skipped, %d failed)",
            self.profile.name, result.files_parsed, len(result.symbols),
            len(result.nodes), len(result.edges), result.skipped_files, result.failed_files,
        )
        return result

    def parse_source(
        self,
        relative_path: str,
        text: str,
        index: Optional[PathIndex] = None,
        go_module: Optional[str] = None,
    ) -> FileParseResult:
        """Extract symbols, nodes and edges from one file's text."""
        index = index if index is not None else PathIndex([relative_path])
        return _FileScanner(self.profile, relative_path, index, go_module).run(text)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fingerprint(
        self,
        root: Path,
        candidates: Sequence[str],
        repo_files: Sequence[str],
        content_hashes: Optional[Mapping[str, Optional[str]]] = None,
    ) -> str:
        """Digest of candidate contents plus the repository file list.

        Known content hashes (from the scanner) are reused; other files are
        hashed here. Files too large to parse only contribute their size.
        """
        hashes = content_hashes or {}
        digest = hashlib.sha1()
        for rel in candidates:
            path = root / rel
            try:
                size = path.stat().st_size
                known = hashes.get(rel)
                if known:
                    marker = known.lower()
                elif size > self.max_file_bytes:
                    marker = f"size={size}"
                else:
                    marker = hashlib.sha256(path.read_bytes()).hexdigest()
            except OSError:
                marker = "missing"
            digest.update(f"{rel}:{marker}\n".encode("utf-8"))
        digest.update(b"--\n")
        for rel in repo_files:
            digest.update(rel.encode("utf-8") + b"\n")
        return digest.hexdigest()

    def _parse_all(
        self,
        root: Path,
        candidates: Sequence[str],
        repo_files: Sequence[str],
        token: Optional[CancellationToken],
    ) -> ProfileResult:
        result = ProfileResult(profile=self.profile.name)
        if not candidates:
            return result
        index = PathIndex(repo_files)
        go_module = read_go_module(root) if self.profile.name == "Go" else None

        def _one(rel: str) -> Tuple[str, Optional[FileParseResult]]:
            check(token)
            path = root / rel
            try:
                size = path.stat().st_size
                if size > self.max_file_bytes:
                    logger.debug("Skipping %s (%d bytes)", rel, size)
                    return "skipped", None
                text = path.read_bytes().decode("utf-8", errors="replace")
            except OSError as exc:
                logger.warning("Skipping unreadable file %s: %s", rel, exc)
                return "skipped", None
            try:
                return "ok", _FileScanner(self.profile, rel, index, go_module).run(text)
            except Exception as exc:  # one bad file must not sink the profile
                logger.warning("%s parser failed on %s: %s", self.profile.name, rel, exc)
                return "failed", None

        seen: Set[str] = set()
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            for status, part in pool.map(_one, candidates):
                if status == "skipped":
                    result.skipped_files += 1
                elif status == "failed":
                    result.failed_files += 1
                else:
                    result.files_parsed += 1
                    result.merge(part, seen)
        return result


class _FileScanner:
    """Single-use scanner for one file."""

    def __init__(
        self,
        profile: LanguageProfile,
        relative_path: str,
        index: PathIndex,
        go_module: Optional[str],
    ) -> None:
        self.profile = profile
        self.index = index
        mod_path = module_path(relative_path)
        self.state = _FileState(
            relative_path=relative_path,
            module_id=f"module:{mod_path}",
            module_path=mod_path,
        )
        self.ctx = ResolveContext(file_path=relative_path, index=index, go_module=go_module)
        self.out = FileParseResult()
        self._node_ids: Set[str] = set()

    # ------------------------------------------------------------------

    def run(self, text: str) -> FileParseResult:
        st = self.state
        self._add_node(GraphNode(
            id=st.module_id,
            name=posixpath.basename(st.module_path),
            type=NodeType.MODULE,
            file_path=st.relative_path,
            metadata={"language": self.profile.name},
        ))
        for lineno, raw in enumerate(text.splitlines(), start=1):
            code, bare = self._strip(raw)
            if not code.strip():
                continue
            self._scan_line(lineno, code, bare)
        self._flush_relations()
        return self.out

    def _scan_line(self, lineno: int, code: str, bare: str) -> None:
        st = self.state
        mode = self.profile.scope_mode

        if st.active_block is not None:
            if st.active_block.end.search(code):
                st.active_block = None
            else:
                self._apply(st.active_block.item, st.active_block.item.pattern.search(code), lineno, code)
            if mode is ScopeMode.BRACES:
                self._track_braces(bare)
            return
        for block in self.profile.blocks:
            start = block.start.search(code)
            if start and not block.end.search(code[start.end():]):
                st.active_block = block
                return

        if mode is ScopeMode.INDENT:
            indent = len(code.expandtabs(4)) - len(code.expandtabs(4).lstrip())
            while st.stack and st.stack[-1].level >= indent:
                st.stack.pop()
            st.depth = indent

        if st.pending is not None and mode is ScopeMode.BRACES and not bare.lstrip().startswith("{"):
            # Continuation lines of a multi-line declaration header.
            if ";" in bare or "}" in bare:
                st.pending = None

        for candidate in self.profile.rules:
            match = candidate.pattern.search(code)
            if match is None or not self._preconditions(candidate, code):
                continue
            self._apply(candidate, match, lineno, code)
            break

        if mode is ScopeMode.BRACES:
            self._track_braces(bare)
        elif mode is ScopeMode.END_KEYWORD:
            self._track_keywords(bare)
        elif mode is ScopeMode.NONE:
            st.pending = None

    # ------------------------------------------------------------------
    # Comments and strings
    # ------------------------------------------------------------------

    def _strip(self, line: str) -> Tuple[str, str]:
        """Remove comments; returns (code, code with string contents blanked)."""
        st = self.state
        profile = self.profile
        code: List[str] = []
        bare: List[str] = []
        i = 0
        n = len(line)
        while i < n:
            if st.string_end is not None:
                closer, escaped = st.string_end
                j = _find_closer(line, i, closer, escaped)
                if j < 0:
                    break
                i = j + len(closer)
                st.string_end = None
                code.append(closer)
                bare.append(closer)
                continue
            if st.block_end is not None:
                j = line.find(st.block_end, i)
                if j < 0:
                    break
                i = j + len(st.block_end)
                st.block_end = None
                code.append(" ")
                bare.append(" ")
                continue
            opened = False
            for opener, closer in profile.block_comments:
                if line.startswith(opener, i):
                    st.block_end = closer
                    i += len(opener)
                    opened = True
                    break
            if opened:
                continue
            if any(line.startswith(marker, i) for marker in profile.line_comments):
                break
            for opener, closer, escaped in profile.multiline_strings:
                if line.startswith(opener, i):
                    j = _find_closer(line, i + len(opener), closer, escaped)
                    if j < 0:
                        # Contents stay blank until the closing delimiter.
                        st.string_end = (closer, escaped)
                        code.append(opener)
                        bare.append(opener)
                        i = n
                    else:
                        end = j + len(closer)
                        code.append(line[i:end])
                        bare.append(opener + closer)
                        i = end
                    opened = True
                    break
            if opened:
                continue
            ch = line[i]
            if ch in profile.string_delimiters:
                j = i + 1
                while j < n and line[j] != ch:
                    j += 2 if line[j] == "\\" else 1
                end = min(j + 1, n)
                code.append(line[i:end])
                bare.append(ch + ch)
                i = end
                continue
            code.append(ch)
            bare.append(ch)
            i += 1
        return "".join(code), "".join(bare)

    # ------------------------------------------------------------------
    # Scope tracking
    # ------------------------------------------------------------------

    def _track_braces(self, bare: str) -> None:
        st = self.state
        for ch in bare:
            if ch == "{":
                if st.pending is not None and st.depth == st.pending.level:
                    st.stack.append(st.pending)
                    st.pending = None
                st.depth += 1
            elif ch == "}":
                st.depth = max(0, st.depth - 1)
                while st.stack and st.depth <= st.stack[-1].level:
                    st.stack.pop()
        if st.pending is not None and bare.rstrip().endswith(";"):
            st.pending = None

    def _track_keywords(self, bare: str) -> None:
        st = self.state
        opens = len(self.profile.block_open.findall(bare)) if self.profile.block_open else 0
        closes = len(self.profile.block_close.findall(bare)) if self.profile.block_close else 0
        new_depth = max(0, st.depth + opens - closes)
        if st.pending is not None and new_depth > st.pending.level:
            st.stack.append(st.pending)
        st.pending = None
        st.depth = new_depth
        while st.stack and st.depth <= st.stack[-1].level:
            st.stack.pop()

    def _open_scope(self, kind: str, name: str) -> None:
        st = self.state
        mode = self.profile.scope_mode
        if mode is ScopeMode.INDENT:
            st.stack.append(_Scope(kind, name, st.depth))
        elif mode in (ScopeMode.BRACES, ScopeMode.END_KEYWORD):
            st.pending = _Scope(kind, name, st.depth)
        elif self.profile.sticky_types and kind == _TYPE:
            # Declarations such as Perl's ``package`` last until the next one.
            st.stack = [_Scope(kind, name, 0)]

    def _innermost(self) -> Optional[_Scope]:
        return self.state.stack[-1] if self.state.stack else None

    def _owner(self) -> Optional[str]:
        """Name of the type (or container namespace) directly enclosing this line."""
        top = self._innermost()
        if top is None:
            return None
        if top.kind == _TYPE:
            return top.name
        if top.kind == _NAMESPACE and self.profile.namespace_is_container:
            return top.name
        return None

    def _enclosing_type(self) -> Optional[str]:
        for scope in reversed(self.state.stack):
            if scope.kind == _TYPE:
                return scope.name
            if scope.kind == _NAMESPACE and self.profile.namespace_is_container:
                return scope.name
        return None

    def _inside_callable(self) -> bool:
        top = self._innermost()
        return top is not None and top.kind == _CALLABLE

    def _preconditions(self, candidate: Rule, code: str) -> bool:
        if candidate.top_level_only and code[:1].isspace():
            return False
        owner = self._owner()
        if candidate.requires_type and owner is None:
            return False
        if candidate.outside_type and owner is not None:
            return False
        return True

    # ------------------------------------------------------------------
    # Rule actions
    # ------------------------------------------------------------------

    def _apply(self, candidate: Rule, match: Optional[Match[str]], lineno: int, code: str) -> None:
        if match is None:
            return
        action = candidate.action
        if action is RuleAction.SKIP:
            return
        if action is RuleAction.IMPORT:
            self._on_import(candidate, match, lineno)
        elif action is RuleAction.NAMESPACE:
            self._on_namespace(candidate, match, lineno)
        elif action is RuleAction.TYPE:
            self._on_type(candidate, match, lineno)
        elif action is RuleAction.CALLABLE:
            self._on_callable(candidate, match, lineno)
        elif action is RuleAction.MEMBER:
            self._on_member(candidate, match, lineno)
        elif action is RuleAction.RELATION:
            self._on_relation(candidate, match)

    def _names(self, candidate: Rule, match: Match[str], group: str = "name") -> List[str]:
        text = _group(match, group)
        if not text:
            return []
        if candidate.split is None:
            return [text.strip()]
        return [part.strip() for part in candidate.split.split(text) if part.strip()]

    def _on_import(self, candidate: Rule, match: Match[str], lineno: int) -> None:
        st = self.state
        target = _group(match, "target")
        tokens = candidate.import_tokens(match) if candidate.import_tokens else ([target] if target else [])
        name = candidate.import_name(match) if candidate.import_name else target
        if not name:
            return
        kind = candidate.kind or SymbolKind.IMPORT
        self.out.symbols.append(Symbol(name, kind, st.relative_path, lineno, self._owner()))

        resolver = candidate.resolver or self.profile.resolver
        if resolver is None:
            return
        linked: Set[str] = set()
        for tok in tokens:
            resolved = resolver(tok, self.ctx)
            if not resolved or resolved.lower() == st.relative_path.lower():
                continue
            target_id = f"module:{module_path(resolved)}"
            if target_id == st.module_id or target_id in linked:
                continue
            linked.add(target_id)
            self.out.edges.append(GraphEdge(st.module_id, target_id, EdgeRelationship.IMPORTS))

    def _on_namespace(self, candidate: Rule, match: Match[str], lineno: int) -> None:
        st = self.state
        name = _group(match, "name")
        if not name:
            return
        name = name.strip()
        st.namespace = name
        kind = candidate.kind or SymbolKind.NAMESPACE
        self.out.symbols.append(Symbol(name, kind, st.relative_path, lineno, self._owner()))
        if self.profile.namespace_node and candidate.emit_node:
            ns_id = f"ns:{name}"
            self._add_node(GraphNode(id=ns_id, name=name, type=NodeType.NAMESPACE))
            self.out.edges.append(GraphEdge(ns_id, st.module_id, EdgeRelationship.CONTAINS))
        if candidate.opens_scope:
            self._open_scope(_NAMESPACE, name)

    def _on_type(self, candidate: Rule, match: Match[str], lineno: int) -> None:
        st = self.state
        name = _group(match, "name")
        if not name:
            return
        if candidate.scope_only:
            for group, relation in _BASE_GROUPS:
                for base in base_type_names(_group(match, group)):
                    st.relations.append((name, base, relation))
            if candidate.opens_scope:
                self._open_scope(_TYPE, name)
            return

        kind = candidate.kind or SymbolKind.CLASS
        node_type = candidate.node_type or _NODE_FOR_KIND.get(kind, NodeType.CLASS)
        self.out.symbols.append(Symbol(name, kind, st.relative_path, lineno, self._enclosing_type()))
        if candidate.emit_node:
            prefix = candidate.node_prefix or _PREFIX_FOR_NODE[node_type]
            node_id = f"{prefix}:{st.module_path}.{name}"
            st.local_types.setdefault(name, node_id)
            self._add_node(GraphNode(
                id=node_id,
                name=name,
                type=node_type,
                file_path=st.relative_path,
                metadata=dict(candidate.metadata),
            ))
            self.out.edges.append(GraphEdge(st.module_id, node_id, EdgeRelationship.CONTAINS))
            for group, relation in _BASE_GROUPS:
                for base in base_type_names(_group(match, group)):
                    if base in self.profile.ignored_bases:
                        continue
                    if group == "bases" and self.profile.classify_base is not None:
                        relation = self.profile.classify_base(base)
                    self.out.edges.append(GraphEdge(node_id, f"type:{base}", relation))
        if candidate.opens_scope:
            self._open_scope(_TYPE, name)

    def _on_callable(self, candidate: Rule, match: Match[str], lineno: int) -> None:
        st = self.state
        name = _group(match, "name")
        if not name:
            return
        receiver = _group(match, "receiver")
        if self._inside_callable():
            if candidate.opens_scope:
                self._open_scope(_CALLABLE, name)
            return
        if self.profile.unique_callables:
            if name in st.callables:
                return
            st.callables.add(name)
        owner = receiver.strip() if receiver else self._owner()
        if owner:
            self.out.symbols.append(Symbol(name, candidate.kind or SymbolKind.METHOD, st.relative_path, lineno, owner))
        else:
            self.out.symbols.append(Symbol(name, SymbolKind.FUNCTION, st.relative_path, lineno))
            if candidate.emit_node:
                node_id = f"func:{st.module_path}.{name}"
                self._add_node(GraphNode(
                    id=node_id,
                    name=name,
                    type=NodeType.FUNCTION,
                    file_path=st.relative_path,
                    metadata=dict(candidate.metadata),
                ))
                self.out.edges.append(GraphEdge(st.module_id, node_id, EdgeRelationship.CONTAINS))
        if candidate.opens_scope:
            self._open_scope(_CALLABLE, name)

    def _on_member(self, candidate: Rule, match: Match[str], lineno: int) -> None:
        st = self.state
        if self._inside_callable():
            return
        owner = self._owner()
        kind = candidate.kind or (SymbolKind.PROPERTY if owner else SymbolKind.VARIABLE)
        for name in self._names(candidate, match):
            self.out.symbols.append(Symbol(name.lstrip(":@$"), kind, st.relative_path, lineno, owner))

    def _on_relation(self, candidate: Rule, match: Match[str]) -> None:
        subject = _group(match, "name") or self._owner() or self._enclosing_type()
        if not subject:
            return
        for base in base_type_names(_group(match, "target")):
            self.state.relations.append((subject.strip(), base, candidate.relation))

    def _flush_relations(self) -> None:
        st = self.state
        for subject, base, relation in st.relations:
            source = st.local_types.get(subject, f"type:{subject}")
            self.out.edges.append(GraphEdge(source, f"type:{base}", relation))
        st.relations.clear()

    def _add_node(self, node: GraphNode) -> None:
        if node.id in self._node_ids:
            return
        self._node_ids.add(node.id)
        self.out.nodes.append(node)


_NODE_FOR_KIND: Dict[SymbolKind, NodeType] = {
    SymbolKind.CLASS: NodeType.CLASS,
    SymbolKind.INTERFACE: NodeType.INTERFACE,
    SymbolKind.MODULE: NodeType.MODULE,
    SymbolKind.NAMESPACE: NodeType.NAMESPACE,
    SymbolKind.FUNCTION: NodeType.FUNCTION,
}

_PREFIX_FOR_NODE: Dict[NodeType, str] = {
    NodeType.CLASS: "class",
    NodeType.INTERFACE: "interface",
    NodeType.MODULE: "mod",
    NodeType.NAMESPACE: "ns",
    NodeType.FUNCTION: "func",
    NodeType.FILE: "file",
    NodeType.FOLDER: "folder",
    NodeType.REPOSITORY: "repo",
}


def _group(match: Match[str], name: str) -> Optional[str]:
    if name not in match.re.groupindex:
        return None
    return match.group(name)


def _find_closer(line: str, start: int, closer: str, escaped: bool) -> int:
    """Index of *closer* in *line* from *start*, or -1.

    Backslash escapes skip a character. Without them, a doubled one-character
    closer (C# ``""``) is literal text.
    """
    i = start
    while i < len(line):
        if escaped and line[i] == "\\":
            i += 2
            continue
        if line.startswith(closer, i):
            if not escaped and len(closer) == 1 and line.startswith(closer, i + 1):
                i += 2
                continue
            return i
        i += 1
    return -1
