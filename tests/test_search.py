"""Tests for tokenization, BM25 ranking and the per-repository engine."""

import math

import pytest

from repolens.models import FileInfo, IndexDocument, Symbol, SymbolKind
from repolens.search_engine import FILE_KIND, SearchEngine, build_documents
from repolens.search_index import SearchIndex, split_camel_case, tokenize


def doc(symbol: str, kind: str = "Class", content: str = None, path: str = "a.py", line: int = 1) -> IndexDocument:
    return IndexDocument(file_path=path, symbol=symbol, content=content or symbol, line=line, kind=kind)


def make_index(*documents, window=None) -> SearchIndex:
    index = SearchIndex(k1=1.2, b=0.75, window=window)
    index.add_documents(documents)
    return index


class TestTokenize:

    def test_camel_case_split(self):
        assert split_camel_case("parseHTTPRequest") == ["parse", "HTTPRequest"]
        assert split_camel_case("Parser") == ["Parser"]
        assert split_camel_case("") == []

    def test_tokens_are_distinct_and_lowercase(self):
        assert tokenize("getUserName") == ["getusername", "get", "user", "name"]
        assert tokenize("user User USER") == ["user"]

    def test_separators_and_single_characters(self):
        assert tokenize("a b_c x1") == ["x1"]
        assert tokenize("web/src/index.ts") == ["web", "src", "index", "ts"]
        assert tokenize("  ") == []


class TestScoring:

    def test_single_document_score(self):
        results = make_index(doc("Parser")).search("Parser")
        assert len(results) == 1
        assert results[0].score == pytest.approx(2 * math.log(4 / 3))

    def test_symbol_match_is_boosted(self):
        index = make_index(
            doc("Helper", content="parser helper"),
            doc("Parser", content="parser thing"),
        )
        results = index.search("parser")
        assert [r.symbol for r in results] == ["Parser", "Helper"]
        assert results[0].score == pytest.approx(2 * results[1].score)

    def test_ties_break_by_insertion_order(self):
        index = make_index(doc("Alpha", content="shared"), doc("Beta", content="shared"))
        assert [r.symbol for r in index.search("shared")] == ["Alpha", "Beta"]

    def test_shorter_documents_rank_higher(self):
        index = make_index(
            doc("Long", content="cache eviction policy manager service"),
            doc("Short", content="cache"),
        )
        assert [r.symbol for r in index.search("cache")] == ["Short", "Long"]

    def test_multiple_terms_accumulate(self):
        index = make_index(doc("UserRepository"), doc("UserService"), doc("OrderRepository"))
        assert index.search("user repository")[0].symbol == "UserRepository"

    def test_no_match_or_empty_query(self):
        index = make_index(doc("Parser"))
        assert index.search("zzz") == []
        assert index.search("") == []
        assert index.search("!!") == []
        assert SearchIndex().search("anything") == []

    def test_max_results(self):
        index = make_index(*[doc(f"Item{i}", content="item") for i in range(5)])
        assert len(index.search("item", max_results=3)) == 3
        assert index.search("item", max_results=0) == []

    def test_snippet_is_truncated(self):
        long_content = "word " * 100
        result = make_index(doc("Word", content=long_content)).search("word")[0]
        assert result.snippet == long_content[:200] + "..."


class TestPaging:

    @pytest.fixture
    def index(self):
        return make_index(
            doc("Parser", kind="Class"),
            doc("parse", kind="Method"),
            doc("parser", kind="File", content="src/parser.py", line=0),
            doc("ParserError", kind="Class"),
        )

    def test_kind_filter_is_case_insensitive(self, index):
        page = index.search_page("parser", kinds=["class"])
        assert {r.kind for r in page} == {"Class"}
        assert index.search_count("parser", kinds=["CLASS", " "]) == 2

    def test_skip_and_take(self, index):
        everything = index.search_page("parser", take=10)
        assert index.search_page("parser", skip=1, take=1) == everything[1:2]
        assert index.search_page("parser", skip=50) == []
        assert index.search_count("parser") == len(everything)

    def test_repeated_page_request_is_stable(self):
        index = make_index(*[
            doc(f"Widget{i}", kind="Class" if i % 3 else "Method", content=f"widget {'x' * (i % 4)}")
            for i in range(40)
        ])
        assert index.search_count("widget", kinds=["Class"]) > 20

        first = index.search_page("widget", kinds=["Class"], skip=10, take=10)
        second = index.search_page("widget", kinds=["Class"], skip=10, take=10)
        assert len(first) == 10
        assert first == second
        assert first == index.search_page("widget", kinds=["Class"], take=40)[10:20]

    def test_window_is_cut_before_kind_filter(self):
        index = make_index(
            doc("Widget", kind="Class"),
            doc("Widget", kind="Class"),
            doc("widget", kind="File", content="src/widget/long/path/widget_file.py"),
            window=2,
        )
        assert index.search_count("widget") == 2
        assert index.search_page("widget", kinds=["File"]) == []

    def test_available_kinds(self, index):
        assert index.available_kinds() == ["Class", "File", "Method"]


class TestSuggest:

    def test_prefix_shortest_first(self):
        index = make_index(doc("ParserError"), doc("Parser"), doc("parse", kind="Method"), doc("Other"))
        assert [s.text for s in index.suggest("par")] == ["parse", "Parser", "ParserError"]

    def test_deduplicates_text_and_kind(self):
        index = make_index(doc("Parser", path="a.py"), doc("Parser", path="b.py"), doc("Parser", kind="File"))
        suggestions = index.suggest("Parser")
        assert [(s.text, s.kind) for s in suggestions] == [("Parser", "Class"), ("Parser", "File")]
        assert suggestions[0].file_path == "a.py"

    def test_blank_prefix_and_limit(self):
        index = make_index(doc("Aa"), doc("Ab"), doc("Ac"))
        assert index.suggest("  ") == []
        assert len(index.suggest("a", max_results=2)) == 2


class TestSearchEngine:

    SYMBOLS = [
        Symbol("Parser", SymbolKind.CLASS, "service/parser/parser.go", 7),
        Symbol("Parse", SymbolKind.METHOD, "service/parser/parser.go", 11, "Parser"),
    ]
    FILES = [FileInfo("service/parser/parser.go", "Go", 300, 20)]

    def test_build_documents(self):
        documents = build_documents(self.SYMBOLS, self.FILES)
        assert [(d.symbol, d.kind, d.line) for d in documents] == [
            ("Parser", "Class", 7),
            ("Parse", "Method", 11),
            ("parser", FILE_KIND, 0),
        ]
        assert documents[-1].content == "service/parser/parser.go"

    def test_search_and_page(self):
        engine = SearchEngine(max_indexes=0)
        engine.build_index("repo", self.SYMBOLS, self.FILES)
        assert engine.has_index("repo")
        assert engine.search("repo", "parser", 1)[0].symbol == "Parser"
        page = engine.search_page("repo", "parser", ["Class"], 0, 10)
        assert page.total_results == 1
        assert page.available_kinds == ["Class", "File", "Method"]
        assert [r.symbol for r in page.results] == ["Parser"]
        assert engine.search_count("repo", "parse") == 1
        assert [s.text for s in engine.suggest("repo", "pars")] == ["Parse", "Parser", "parser"]

    def test_unknown_repository_is_empty(self):
        engine = SearchEngine()
        assert engine.search("missing", "x") == []
        assert engine.search_count("missing", "x") == 0
        assert engine.suggest("missing", "x") == []
        assert engine.get_available_kinds("missing") == []
        page = engine.search_page("missing", "x", None, 5, 10)
        assert (page.total_results, page.skip, page.take, page.results) == (0, 5, 10, [])

    def test_rebuild_replaces_index(self):
        engine = SearchEngine()
        engine.build_index("repo", self.SYMBOLS, [])
        engine.build_index("repo", [Symbol("Other", SymbolKind.CLASS, "o.py", 1)], [])
        assert engine.search("repo", "parser") == []
        assert engine.repository_ids() == ["repo"]

    def test_least_recently_used_is_evicted(self):
        engine = SearchEngine(max_indexes=2)
        engine.build_index("a", self.SYMBOLS, [])
        engine.build_index("b", self.SYMBOLS, [])
        engine.search("a", "parser")
        engine.build_index("c", self.SYMBOLS, [])
        assert engine.repository_ids() == ["a", "c"]
        assert not engine.has_index("b")

    def test_evict(self):
        engine = SearchEngine()
        engine.build_index("a", self.SYMBOLS, [])
        assert engine.evict("a")
        assert not engine.evict("a")
