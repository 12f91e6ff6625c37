"""Tests for the profile-driven extraction engine."""

import os
from pathlib import Path

import pytest

from repolens.cancellation import AnalysisCancelled, CancellationToken
from repolens.import_resolution import PathIndex, relative_path
from repolens.models import EdgeRelationship, NodeType, SymbolKind
from repolens.parser import (
    LanguageProfile,
    ParseResultCache,
    ProfileParser,
    RuleAction,
    base_type_names,
    module_path,
    rule,
    walk_repository,
)

TOY = LanguageProfile(
    name="Toy",
    extensions=(".toy",),
    resolver=relative_path((".toy",)),
    rules=[
        rule(RuleAction.IMPORT, r"^\s*use\s+(?P<target>\S+)"),
        rule(RuleAction.TYPE, r"^\s*class\s+(?P<name>\w+)(?:\s*:\s*(?P<bases>[^{;]+?))?\s*(?:\{|;|$)"),
        rule(RuleAction.CALLABLE, r"^\s*fn\s+(?P<name>\w+)"),
        rule(RuleAction.MEMBER, r"^\s*let\s+(?P<name>\w+)"),
    ],
)


def _parse(text: str, rel: str = "main.toy", files=()):
    parser = ProfileParser(TOY, cache=ParseResultCache())
    return parser.parse_source(rel, text, index=PathIndex([rel, *files]))


def _by_kind(result, kind: SymbolKind):
    return [s for s in result.symbols if s.kind is kind]


class TestScopeTracking:
    """Brace scopes decide whether a callable is a method or a function."""

    def test_methods_and_functions(self):
        result = _parse(
            "class A {\n"
            "  fn m() {\n"
            "  }\n"
            "}\n"
            "fn f() {\n"
            "}\n"
        )
        methods = _by_kind(result, SymbolKind.METHOD)
        functions = _by_kind(result, SymbolKind.FUNCTION)
        assert [(m.name, m.parent_symbol) for m in methods] == [("m", "A")]
        assert [f.name for f in functions] == ["f"]

    def test_forward_declaration_opens_no_scope(self):
        result = _parse("class Fwd;\nfn f() {\n}\n")
        assert [c.name for c in _by_kind(result, SymbolKind.CLASS)] == ["Fwd"]
        assert [f.name for f in _by_kind(result, SymbolKind.FUNCTION)] == ["f"]

    def test_braces_inside_strings_are_ignored(self):
        result = _parse(
            "class S {\n"
            '  fn a() { let x = "}"; }\n'
            "  fn b() {\n"
            "  }\n"
            "}\n"
        )
        methods = _by_kind(result, SymbolKind.METHOD)
        assert [(m.name, m.parent_symbol) for m in methods] == [("a", "S"), ("b", "S")]

    def test_comments_are_ignored(self):
        result = _parse(
            "// class Hidden {}\n"
            "/* class AlsoHidden {\n"
            "   } */\n"
            "class Shown {\n"
            "}\n"
        )
        assert [c.name for c in _by_kind(result, SymbolKind.CLASS)] == ["Shown"]

    def test_locals_inside_callables_are_not_members(self):
        result = _parse("class A {\n  let field\n  fn m() {\n    let local\n  }\n}\nlet top\n")
        props = _by_kind(result, SymbolKind.PROPERTY)
        variables = _by_kind(result, SymbolKind.VARIABLE)
        assert [(p.name, p.parent_symbol) for p in props] == [("field", "A")]
        assert [v.name for v in variables] == ["top"]

    def test_line_numbers_are_one_based(self):
        result = _parse("\n\nclass A {\n}\n")
        assert _by_kind(result, SymbolKind.CLASS)[0].line == 3

    def test_symbol_per_top_level_declaration(self):
        result = _parse("fn a() {\n}\nfn b() {\n}\nfn c() {\n}\n")
        assert [s.name for s in result.symbols] == ["a", "b", "c"]


class TestNodesAndEdges:
    """Graph output of a single file."""

    def test_module_node_and_contains_edges(self):
        result = _parse("class A {\n}\nfn f() {\n}\n", rel="src/main.toy")
        ids = [n.id for n in result.nodes]
        assert ids == ["module:src/main", "class:src/main.A", "func:src/main.f"]
        assert result.nodes[0].type is NodeType.MODULE
        assert result.nodes[0].file_path == "src/main.toy"
        contains = [(e.source, e.target) for e in result.edges if e.relationship is EdgeRelationship.CONTAINS]
        assert ("module:src/main", "class:src/main.A") in contains
        assert ("module:src/main", "func:src/main.f") in contains

    def test_duplicate_declarations_yield_one_node(self):
        result = _parse("class A {\n}\nclass A {\n}\n")
        assert len(_by_kind(result, SymbolKind.CLASS)) == 2
        assert [n.id for n in result.nodes].count("class:main.A") == 1

    def test_base_types_become_inherits_edges(self):
        result = _parse("class Child : Base, pkg.Other<T> {\n}\n")
        targets = [e.target for e in result.edges if e.relationship is EdgeRelationship.INHERITS]
        assert targets == ["type:Base", "type:Other"]

    def test_import_edges(self):
        result = _parse(
            "use ./b\nuse ./missing\nuse ./main\n",
            rel="main.toy",
            files=["b.toy"],
        )
        imports = [e for e in result.edges if e.relationship is EdgeRelationship.IMPORTS]
        assert [(e.source, e.target) for e in imports] == [("module:main", "module:b")]
        assert [s.name for s in _by_kind(result, SymbolKind.IMPORT)] == ["./b", "./missing", "./main"]

    def test_no_self_import(self):
        result = _parse("use ./main\n", rel="main.toy")
        assert not [e for e in result.edges if e.relationship is EdgeRelationship.IMPORTS]


class TestBaseTypeNames:
    """Simple names from declaration base lists."""

    def test_generics_and_qualifiers(self):
        assert base_type_names("a.B<T>, C") == ["B", "C"]

    def test_access_modifiers(self):
        assert base_type_names("public Foo, virtual Bar") == ["Foo", "Bar"]

    def test_with_separator(self):
        assert base_type_names("Base with Mixin") == ["Base", "Mixin"]

    def test_keyword_arguments_are_dropped(self):
        assert base_type_names("Base, metaclass=Meta") == ["Base"]

    def test_empty(self):
        assert base_type_names(None) == []
        assert base_type_names("") == []


class TestRepositoryParsing:
    """Whole-repository parsing, caching and failure accounting."""

    def test_walk_skips_hidden_and_ignored(self, make_repo):
        root = make_repo({
            "a.toy": "fn a() {\n}\n",
            "node_modules/dep/x.toy": "fn x() {\n}\n",
            ".hidden/y.toy": "fn y() {\n}\n",
            ".secret.toy": "",
            "sub/b.toy": "",
        })
        assert walk_repository(root) == ["a.toy", "sub/b.toy"]

    def test_module_path(self):
        assert module_path("src/a/b.ts") == "src/a/b"
        assert module_path("Makefile") == "Makefile"

    def test_parse_is_memoized(self, make_repo):
        root = make_repo({"a.toy": "fn a() {\n}\n"})
        parser = ProfileParser(TOY, cache=ParseResultCache())
        first = parser.parse(root)
        assert parser.parse(root) is first
        assert [s.name for s in first.symbols] == ["a"]

    def test_changed_file_is_reparsed(self, make_repo):
        root = make_repo({"a.toy": "fn a() {\n}\n"})
        parser = ProfileParser(TOY, cache=ParseResultCache())
        first = parser.parse(root)
        (root / "a.toy").write_text("fn a() {\n}\nfn second() {\n}\n", encoding="utf-8")
        second = parser.parse(root)
        assert second is not first
        assert [s.name for s in second.symbols] == ["a", "second"]

    def test_invalidate(self, make_repo):
        root = make_repo({"a.toy": "fn a() {\n}\n"})
        cache = ParseResultCache()
        parser = ProfileParser(TOY, cache=cache)
        parser.parse(root)
        assert len(cache) == 1
        cache.invalidate(root)
        assert len(cache) == 0

    def test_same_size_rewrite_keeping_mtime_is_reparsed(self, make_repo):
        root = make_repo({"a.toy": "fn aa() {\n}\n"})
        path = root / "a.toy"
        parser = ProfileParser(TOY, cache=ParseResultCache())
        parser.parse(root)
        before = path.stat()

        path.write_text("fn bb() {\n}\n", encoding="utf-8")
        os.utime(path, ns=(before.st_atime_ns, before.st_mtime_ns))

        assert [s.name for s in parser.parse(root).symbols] == ["bb"]

    def test_known_content_hashes_key_the_memo(self, make_repo):
        root = make_repo({"a.toy": "fn a() {\n}\n"})
        parser = ProfileParser(TOY, cache=ParseResultCache())
        first = parser.parse(root, content_hashes={"a.toy": "abc"})
        assert parser.parse(root, content_hashes={"a.toy": "ABC"}) is first
        assert parser.parse(root, content_hashes={"a.toy": "def"}) is not first

    def test_invalidate_releases_key_locks(self, make_repo):
        first = make_repo({"a.toy": "fn a() {\n}\n"}, name="first")
        second = make_repo({"b.toy": "fn b() {\n}\n"}, name="second")
        cache = ParseResultCache()
        parser = ProfileParser(TOY, cache=cache)
        parser.parse(first)
        parser.parse(second)

        cache.invalidate(first)
        assert list(cache._key_locks) == [(str(second.resolve()), "Toy")]
        cache.invalidate()
        assert cache._key_locks == {}

    def test_oversized_files_are_skipped(self, make_repo):
        root = make_repo({"big.toy": "fn big() {\n}\n" * 10, "small.toy": "fn s()\n"})
        parser = ProfileParser(TOY, cache=ParseResultCache(), max_file_bytes=20)
        result = parser.parse(root)
        assert result.skipped_files == 1
        assert result.files_parsed == 1
        assert [s.name for s in result.symbols] == ["s"]

    def test_failing_file_does_not_sink_profile(self, make_repo):
        def _explode(match):
            raise ValueError("bad import")

        profile = LanguageProfile(
            name="Boom",
            extensions=(".boom",),
            rules=[
                rule(RuleAction.IMPORT, r"^boom\s+(?P<target>\w+)", import_tokens=_explode),
                rule(RuleAction.CALLABLE, r"^fn\s+(?P<name>\w+)"),
            ],
        )
        root = make_repo({"a.boom": "boom x\n", "b.boom": "fn ok\n"})
        result = ProfileParser(profile, cache=ParseResultCache()).parse(root)
        assert result.failed_files == 1
        assert [s.name for s in result.symbols] == ["ok"]

    def test_cancellation(self, make_repo):
        root = make_repo({"a.toy": "fn a() {\n}\n"})
        token = CancellationToken()
        token.cancel()
        with pytest.raises(AnalysisCancelled):
            ProfileParser(TOY, cache=ParseResultCache()).parse(root, token=token)

    def test_extract_symbols_and_dependencies_share_a_pass(self, make_repo):
        root = make_repo({"a.toy": "use ./b\nclass A {\n}\n", "b.toy": "fn b() {\n}\n"})
        cache = ParseResultCache()
        parser = ProfileParser(TOY, cache=cache)
        symbols = parser.extract_symbols(root)
        nodes, edges = parser.build_dependencies(root)
        assert len(cache) == 1
        assert {s.name for s in symbols} == {"./b", "A", "b"}
        assert "module:a" in {n.id for n in nodes}
        assert any(e.relationship is EdgeRelationship.IMPORTS for e in edges)

    def test_empty_repository(self, temp_dir: Path):
        result = ProfileParser(TOY, cache=ParseResultCache()).parse(temp_dir)
        assert result.symbols == []
        assert result.files_parsed == 0
