"""Per-repository registry of search indexes."""

from __future__ import annotations

import logging
import posixpath
import threading
from collections import OrderedDict
from typing import List, Optional, Sequence

from . import config
from .models import FileInfo, IndexDocument, SearchPage, SearchResult, Suggestion, Symbol
from .search_index import SearchIndex

logger = logging.getLogger(__name__)

FILE_KIND = "File"


def build_documents(symbols: Sequence[Symbol], files: Sequence[FileInfo]) -> List[IndexDocument]:
    """One document per symbol, then one per file."""
    documents = [
        IndexDocument(
            file_path=sym.file_path,
            symbol=sym.name,
            content=sym.name,
            line=sym.line,
            kind=sym.kind.value,
        )
        for sym in symbols
    ]
    for info in files:
        stem = posixpath.splitext(posixpath.basename(info.relative_path))[0]
        documents.append(IndexDocument(
            file_path=info.relative_path,
            symbol=stem,
            content=info.relative_path,
            line=0,
            kind=FILE_KIND,
        ))
    return documents


class SearchEngine:
    """Holds one :class:`SearchIndex` per repository id.

    An index is built completely before it replaces the previous one, and the
    registry lock is held only to swap dictionary entries, so searches never
    see a partial index or wait on another repository's build. Unknown ids
    behave as empty indexes.
    """

    def __init__(self, max_indexes: Optional[int] = None) -> None:
        self.max_indexes = config.MAX_CACHED_INDEXES if max_indexes is None else max_indexes
        self._indexes: "OrderedDict[str, SearchIndex]" = OrderedDict()
        self._lock = threading.Lock()

    def build_index(self, repo_id: str, symbols: Sequence[Symbol], files: Sequence[FileInfo]) -> None:
        index = SearchIndex()
        index.add_documents(build_documents(symbols, files))
        with self._lock:
            self._indexes[repo_id] = index
            self._indexes.move_to_end(repo_id)
            while self.max_indexes and len(self._indexes) > self.max_indexes:
                evicted, _ = self._indexes.popitem(last=False)
                logger.debug("Evicted search index %s", evicted)
        logger.info("Search index for %s: %d documents", repo_id, len(index))

    def has_index(self, repo_id: str) -> bool:
        with self._lock:
            return repo_id in self._indexes

    def evict(self, repo_id: str) -> bool:
        with self._lock:
            return self._indexes.pop(repo_id, None) is not None

    def repository_ids(self) -> List[str]:
        with self._lock:
            return list(self._indexes)

    def search(self, repo_id: str, query: str, max_results: int = 20) -> List[SearchResult]:
        index = self._get(repo_id)
        return index.search(query, max_results) if index else []

    def search_page(
        self,
        repo_id: str,
        query: str,
        kinds: Optional[Sequence[str]] = None,
        skip: int = 0,
        take: int = 20,
    ) -> SearchPage:
        index = self._get(repo_id)
        if index is None:
            return SearchPage(query=query, total_results=0, skip=skip, take=take, available_kinds=[], results=[])
        return SearchPage(
            query=query,
            total_results=index.search_count(query, kinds),
            skip=skip,
            take=take,
            available_kinds=index.available_kinds(),
            results=index.search_page(query, kinds, skip, take),
        )

    def search_count(self, repo_id: str, query: str, kinds: Optional[Sequence[str]] = None) -> int:
        index = self._get(repo_id)
        return index.search_count(query, kinds) if index else 0

    def suggest(self, repo_id: str, prefix: str, max_results: int = 10) -> List[Suggestion]:
        index = self._get(repo_id)
        return index.suggest(prefix, max_results) if index else []

    def get_available_kinds(self, repo_id: str) -> List[str]:
        index = self._get(repo_id)
        return index.available_kinds() if index else []

    def _get(self, repo_id: str) -> Optional[SearchIndex]:
        with self._lock:
            index = self._indexes.get(repo_id)
            if index is not None:
                self._indexes.move_to_end(repo_id)
            return index
