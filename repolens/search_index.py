"""In-memory inverted index with BM25 scoring."""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from . import config
from .models import IndexDocument, SearchResult, Suggestion

SNIPPET_LENGTH = 200


def split_camel_case(word: str) -> List[str]:
    """``parseHTTPRequest`` -> ``parse``, ``HTTPRequest``: breaks before an
    upper-case letter that follows a non upper-case one."""
    parts: List[str] = []
    current = ""
    for i, ch in enumerate(word):
        if i > 0 and ch.isupper() and not word[i - 1].isupper() and current:
            parts.append(current)
            current = ""
        current += ch
    if current:
        parts.append(current)
    return parts


def tokenize(text: str) -> List[str]:
    """Distinct lower-case tokens of *text*, in first-seen order.

    Splits on anything that is not a letter or digit, adds camelCase parts
    and drops single characters.
    """
    words: List[str] = []
    current: List[str] = []
    for ch in text:
        if ch.isalnum():
            current.append(ch)
        elif current:
            words.append("".join(current))
            current = []
    if current:
        words.append("".join(current))

    seen: Set[str] = set()
    tokens: List[str] = []
    for word in words:
        for part in [word] + split_camel_case(word):
            lowered = part.lower()
            if len(lowered) > 1 and lowered not in seen:
                seen.add(lowered)
                tokens.append(lowered)
    return tokens


class SearchIndex:
    """Documents plus postings; append-only until published."""

    def __init__(
        self,
        k1: Optional[float] = None,
        b: Optional[float] = None,
        window: Optional[int] = None,
    ) -> None:
        self.k1 = config.BM25_K1 if k1 is None else k1
        self.b = config.BM25_B if b is None else b
        self.window = window or config.SEARCH_CANDIDATE_WINDOW
        self._documents: List[IndexDocument] = []
        self._lengths: List[int] = []
        self._postings: Dict[str, List[int]] = {}
        self._total_length = 0

    def __len__(self) -> int:
        return len(self._documents)

    def add_document(self, document: IndexDocument) -> None:
        content_tokens = tokenize(document.content)
        terms = set(content_tokens)
        terms.update(tokenize(document.symbol))
        doc_id = len(self._documents)
        self._documents.append(document)
        self._lengths.append(len(content_tokens))
        self._total_length += len(content_tokens)
        for term in terms:
            self._postings.setdefault(term, []).append(doc_id)

    def add_documents(self, documents: Iterable[IndexDocument]) -> None:
        for document in documents:
            self.add_document(document)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def search(self, query: str, max_results: int = 20) -> List[SearchResult]:
        return [self._result(doc_id, score) for doc_id, score in self._ranked(query)[:max(0, max_results)]]

    def search_page(
        self,
        query: str,
        kinds: Optional[Sequence[str]] = None,
        skip: int = 0,
        take: int = 20,
    ) -> List[SearchResult]:
        """Kind-filtered page over the top candidate window.

        The window is cut by score before the kind filter is applied, so a
        rare kind ranked below the window never appears.
        """
        window = self._filtered_window(query, kinds)
        start = max(0, skip)
        return [self._result(d, s) for d, s in window[start:start + max(0, take)]]

    def search_count(self, query: str, kinds: Optional[Sequence[str]] = None) -> int:
        return len(self._filtered_window(query, kinds))

    def suggest(self, prefix: str, max_results: int = 10) -> List[Suggestion]:
        """Symbol and file names starting with *prefix*, shortest first."""
        needle = prefix.strip().lower()
        if not needle:
            return []
        seen: Set[Tuple[str, str]] = set()
        found: List[Suggestion] = []
        for doc in self._documents:
            text = doc.symbol
            if not text or not text.lower().startswith(needle):
                continue
            key = (text, doc.kind)
            if key in seen:
                continue
            seen.add(key)
            found.append(Suggestion(text=text, kind=doc.kind, file_path=doc.file_path))
        found.sort(key=lambda s: (len(s.text), s.text.lower()))
        return found[:max(0, max_results)]

    def available_kinds(self) -> List[str]:
        return sorted({doc.kind for doc in self._documents})

    # ------------------------------------------------------------------

    def _ranked(self, query: str) -> List[Tuple[int, float]]:
        if not self._documents:
            return []
        query_terms = tokenize(query)
        if not query_terms:
            return []
        n_docs = len(self._documents)
        avg_length = (self._total_length / n_docs) or 1.0
        scores: Dict[int, float] = {}
        for term in query_terms:
            postings = self._postings.get(term)
            if not postings:
                continue
            df = len(postings)
            idf = math.log((n_docs - df + 0.5) / (df + 0.5) + 1.0)
            for doc_id in postings:
                # Tokens are distinct per document, so every posting has tf = 1.
                norm = self.k1 * (1 - self.b + self.b * self._lengths[doc_id] / avg_length)
                score = idf * (self.k1 + 1) / (1.0 + norm)
                symbol = self._documents[doc_id].symbol
                if symbol and term in symbol.lower():
                    score *= 2.0
                scores[doc_id] = scores.get(doc_id, 0.0) + score
        return sorted(scores.items(), key=lambda item: (-item[1], item[0]))

    def _filtered_window(self, query: str, kinds: Optional[Sequence[str]]) -> List[Tuple[int, float]]:
        window = self._ranked(query)[:self.window]
        wanted = {k.strip().lower() for k in kinds or () if k and k.strip()}
        if not wanted:
            return window
        return [(d, s) for d, s in window if self._documents[d].kind.lower() in wanted]

    def _result(self, doc_id: int, score: float) -> SearchResult:
        doc = self._documents[doc_id]
        snippet = doc.content if len(doc.content) <= SNIPPET_LENGTH else doc.content[:SNIPPET_LENGTH] + "..."
        return SearchResult(
            file_path=doc.file_path,
            symbol=doc.symbol,
            snippet=snippet,
            score=score,
            line=doc.line,
            kind=doc.kind,
        )
