"""Extraction profiles: one declarative table entry per supported language.

Rules are tried in order and the first match wins, so narrower patterns
(annotations, forward declarations, ``impl X for Y``) sit above the broad
ones they would otherwise be swallowed by.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence

from .import_resolution import (
    dotted_module,
    first_of,
    go_package,
    header_include,
    package_path,
    relative_path,
    rust_mod,
    rust_use,
    snake_module,
)
from .models import EdgeRelationship, SymbolKind
from .parser import (
    BlockSpec,
    LanguageParser,
    LanguageProfile,
    ParseResultCache,
    ProfileParser,
    RuleAction,
    ScopeMode,
    rule,
)

IMPORT = RuleAction.IMPORT
NAMESPACE = RuleAction.NAMESPACE
TYPE = RuleAction.TYPE
CALLABLE = RuleAction.CALLABLE
MEMBER = RuleAction.MEMBER
RELATION = RuleAction.RELATION
SKIP = RuleAction.SKIP


def _split_names(text: str) -> List[str]:
    names = []
    for part in text.strip().strip("()").split(","):
        part = re.sub(r"\s+as\s+\w+$", "", part.strip())
        if part and part != "*":
            names.append(part)
    return names


def _python_from_tokens(match) -> List[str]:
    module = match.group("target")
    if module.strip("."):
        return [module]
    # ``from . import a, b`` imports sibling modules.
    return [module + name for name in _split_names(match.group("names"))]


def _python_from_name(match) -> str:
    names = ", ".join(_split_names(match.group("names"))) or "*"
    return f"{match.group('target')}.{names}"


def _scala_import_tokens(match) -> List[str]:
    base = match.group("target").rstrip(".")
    selectors = match.group("selectors")
    if selectors is None:
        return [base]
    if selectors in ("_", "*"):
        return [base + ".*"]
    names = [re.split(r"\s*=>\s*", s)[0] for s in _split_names(selectors.strip("{}"))]
    return [f"{base}.{n}" for n in names if n not in ("_", "*")] or [base + ".*"]


def _csharp_base(name: str) -> EdgeRelationship:
    if re.match(r"I[A-Z]", name):
        return EdgeRelationship.IMPLEMENTS
    return EdgeRelationship.INHERITS


_ANNOTATION_LINE = r"^\s*@[\w.]+(?:\(.*\))?\s*$"


# ---------------------------------------------------------------------------
# Python
# ---------------------------------------------------------------------------

PYTHON = LanguageProfile(
    name="Python",
    extensions=(".py", ".pyw"),
    scope_mode=ScopeMode.INDENT,
    line_comments=("#",),
    block_comments=(('"""', '"""'), ("'''", "'''")),
    resolver=dotted_module((".py",), ("__init__.py",)),
    ignored_dirs=frozenset({"venv", "env", "site-packages", "__pycache__"}),
    ignored_bases=frozenset({"object", "ABC"}),
    rules=[
        rule(IMPORT, r"^\s*import\s+(?P<target>[\w.]+)"),
        rule(
            IMPORT,
            r"^\s*from\s+(?P<target>[\w.]+)\s+import\s+(?P<names>.+)",
            import_tokens=_python_from_tokens,
            import_name=_python_from_name,
        ),
        rule(TYPE, r"^\s*class\s+(?P<name>\w+)\s*(?:\((?P<bases>[^)]*)\)?)?\s*:?"),
        rule(CALLABLE, r"^\s*(?:async\s+)?def\s+(?P<name>\w+)\s*[\[(]"),
        rule(SKIP, r"^\s*@"),
        rule(
            MEMBER,
            r"^(?P<name>[A-Z_][A-Z0-9_]*)\s*(?::[^=]+)?=(?!=)",
            kind=SymbolKind.VARIABLE,
            top_level_only=True,
            outside_type=True,
        ),
    ],
)


# ---------------------------------------------------------------------------
# Go
# ---------------------------------------------------------------------------

_GO_IMPORT_ITEM = rule(IMPORT, r'^\s*(?:[\w.]+\s+)?"(?P<target>[^"]+)"')

GO = LanguageProfile(
    name="Go",
    extensions=(".go",),
    string_delimiters=('"', "'"),
    multiline_strings=(("`", "`", False),),
    resolver=go_package(),
    blocks=[
        BlockSpec(re.compile(r"^\s*import\s*\("), _GO_IMPORT_ITEM, re.compile(r"^\s*\)")),
        BlockSpec(
            re.compile(r"^\s*(?:const|var)\s*\("),
            rule(MEMBER, r"^\s*(?P<name>[A-Za-z_]\w*(?:\s*,\s*[A-Za-z_]\w*)*)\b", kind=SymbolKind.VARIABLE, split=r"\s*,\s*"),
            re.compile(r"^\s*\)"),
        ),
    ],
    rules=[
        rule(NAMESPACE, r"^\s*package\s+(?P<name>\w+)", opens_scope=False),
        rule(IMPORT, r'^\s*import\s+(?:[\w.]+\s+)?"(?P<target>[^"]+)"'),
        rule(TYPE, r"^\s*type\s+(?P<name>\w+)(?:\[[^\]]*\])?\s+struct\b", metadata={"goKind": "struct"}),
        rule(TYPE, r"^\s*type\s+(?P<name>\w+)(?:\[[^\]]*\])?\s+interface\b", kind=SymbolKind.INTERFACE),
        rule(TYPE, r"^\s*type\s+(?P<name>\w+)(?:\[[^\]]*\])?\s+=?\s*[\w.*\[\]]", emit_node=False, opens_scope=False),
        rule(CALLABLE, r"^\s*func\s+\(\s*(?:\w+\s+)?\*?(?P<receiver>\w+)(?:\[[^\]]*\])?\s*\)\s*(?P<name>\w+)"),
        rule(CALLABLE, r"^\s*func\s+(?P<name>\w+)"),
        rule(
            MEMBER,
            r"^\s*(?:const|var)\s+(?P<name>\w+(?:\s*,\s*\w+)*)",
            kind=SymbolKind.VARIABLE,
            split=r"\s*,\s*",
        ),
    ],
)


# ---------------------------------------------------------------------------
# Java
# ---------------------------------------------------------------------------

_JAVA_MODS = r"(?:(?:public|protected|private|static|final|abstract|sealed|non-sealed|strictfp)\s+)*"
_JAVA_METHOD_MODS = (
    r"(?:@\w+(?:\([^)]*\))?\s+)*"
    r"(?:(?:public|protected|private|static|final|abstract|synchronized|native|default|strictfp)\s+)*"
)
_JAVA_KEYWORDS = r"(?!(?:if|for|while|switch|catch|synchronized|return|new|throw|else|try|do)\b)"

JAVA = LanguageProfile(
    name="Java",
    extensions=(".java",),
    multiline_strings=(('"""', '"""', True),),
    resolver=package_path((".java",)),
    ignored_dirs=frozenset({"target", "out"}),
    rules=[
        rule(NAMESPACE, r"^\s*package\s+(?P<name>[\w.]+)\s*;", opens_scope=False),
        rule(IMPORT, r"^\s*import\s+(?:static\s+)?(?P<target>[\w.]+(?:\.\*)?)\s*;"),
        rule(SKIP, _ANNOTATION_LINE),
        rule(
            TYPE,
            rf"^\s*{_JAVA_MODS}@?interface\s+(?P<name>\w+)(?:\s*<[^{{]*?>)?"
            r"(?:\s+extends\s+(?P<bases>[^{]+?))?\s*(?:\{|$)",
            kind=SymbolKind.INTERFACE,
        ),
        rule(
            TYPE,
            rf"^\s*{_JAVA_MODS}(?:class|record)\s+(?P<name>\w+)(?:\s*<[^{{]*?>)?(?:\s*\([^)]*\))?"
            r"(?:\s+extends\s+(?P<bases>[\w.]+(?:\s*<[^{]*?>)?))?"
            r"(?:\s+implements\s+(?P<interfaces>[^{]+?))?(?:\s+permits\s+[^{]+?)?\s*(?:\{|$)",
        ),
        rule(
            TYPE,
            rf"^\s*{_JAVA_MODS}enum\s+(?P<name>\w+)(?:\s+implements\s+(?P<interfaces>[^{{]+?))?\s*(?:\{{|$)",
            metadata={"javaKind": "enum"},
        ),
        rule(
            CALLABLE,
            rf"^\s*{_JAVA_METHOD_MODS}(?:<[^>]+>\s+)?{_JAVA_KEYWORDS}"
            r"(?:[\w.$]+(?:\s*<[^()]*>)?(?:\[\])*\s+)?(?P<name>\w+)\s*\(",
            requires_type=True,
        ),
        rule(
            MEMBER,
            r"^\s*(?:@\w+\s+)*(?:(?:public|protected|private|static|final|transient|volatile)\s+)*"
            rf"{_JAVA_KEYWORDS}[\w.$]+(?:\s*<[^;()]*>)?(?:\[\])*\s+(?P<name>\w+)\s*(?:=[^;]*)?;",
            requires_type=True,
        ),
    ],
)


# ---------------------------------------------------------------------------
# C#
# ---------------------------------------------------------------------------

_CS_MODS = (
    r"(?:(?:public|private|protected|internal|static|sealed|abstract|partial|readonly|unsafe|new|"
    r"virtual|override|async|extern|file|required|ref)\s+)*"
)
_CS_KEYWORDS = r"(?!(?:if|for|foreach|while|switch|catch|using|lock|return|new|base|this|else|throw|await)\b)"

CSHARP = LanguageProfile(
    name="C#",
    extensions=(".cs",),
    multiline_strings=(('@"', '"', False), ('@$"', '"', False)),
    classify_base=_csharp_base,
    rules=[
        rule(NAMESPACE, r"^\s*namespace\s+(?P<name>[\w.]+)"),
        rule(IMPORT, r"^\s*(?:global\s+)?using\s+(?:static\s+)?(?P<target>[\w.]+)\s*;"),
        rule(SKIP, r"^\s*\[[\w.]+(?:\(.*\))?\]\s*$"),
        rule(
            TYPE,
            rf"^\s*{_CS_MODS}interface\s+(?P<name>\w+)(?:\s*<[^>]*>)?"
            r"(?:\s*:\s*(?P<bases>[^{]+?))?\s*(?:where\b.*)?(?:\{|$)",
            kind=SymbolKind.INTERFACE,
        ),
        rule(
            TYPE,
            rf"^\s*{_CS_MODS}(?:class|struct|record(?:\s+(?:class|struct))?)\s+(?P<name>\w+)(?:\s*<[^>]*>)?"
            r"(?:\s*\([^)]*\))?(?:\s*:\s*(?P<bases>[^{;]+?))?\s*(?:where\b.*)?(?:\{|;|$)",
        ),
        rule(TYPE, rf"^\s*{_CS_MODS}enum\s+(?P<name>\w+)", metadata={"csKind": "enum"}),
        rule(
            CALLABLE,
            rf"^\s*(?:\[[^\]]*\]\s*)*{_CS_MODS}(?:[\w.?<>\[\],]+(?:\s*<[^()]*>)?\s+)?{_CS_KEYWORDS}"
            r"(?P<name>\w+)\s*(?:<[^()]*>)?\s*\(",
            requires_type=True,
        ),
        rule(
            MEMBER,
            rf"^\s*{_CS_MODS}(?:const\s+)?{_CS_KEYWORDS}[\w.?<>\[\],]+\s+(?P<name>\w+)\s*"
            r"(?:\{\s*(?:get|set|init)|=>|=(?!=)|;)",
            requires_type=True,
        ),
    ],
)


# ---------------------------------------------------------------------------
# JavaScript / TypeScript
# ---------------------------------------------------------------------------

_JS_EXTENSIONS = ("", ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".d.ts")
_JS_INDEX = ("index.ts", "index.tsx", "index.js", "index.jsx", "index.mjs")
_JS_MEMBER_MODS = r"(?:(?:public|private|protected|static|readonly|declare|abstract|override|async|get|set|accessor)\s+)*"

JAVASCRIPT = LanguageProfile(
    name="JavaScript/TypeScript",
    extensions=(".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".mts", ".cts"),
    string_delimiters=('"', "'"),
    multiline_strings=(("`", "`", True),),
    resolver=relative_path(_JS_EXTENSIONS, _JS_INDEX),
    ignored_dirs=frozenset({"bower_components", ".next", "jspm_packages"}),
    rules=[
        rule(IMPORT, r"""^\s*import\s+(?:type\s+)?(?:[\w*{}\s,$]+?\s+from\s+)?['"](?P<target>[^'"]+)['"]"""),
        rule(IMPORT, r"""^\s*export\s+(?:type\s+)?(?:\*|\{[^}]*\})(?:\s+as\s+\w+)?\s+from\s+['"](?P<target>[^'"]+)['"]"""),
        rule(IMPORT, r"""^\s*(?:(?:const|let|var)\s+[\w{}\s,:$]+=\s*)?require\(\s*['"](?P<target>[^'"]+)['"]\s*\)"""),
        rule(SKIP, _ANNOTATION_LINE),
        rule(
            TYPE,
            r"^\s*(?:export\s+)?(?:default\s+)?(?:declare\s+)?interface\s+(?P<name>[\w$]+)(?:\s*<[^{]*?>)?"
            r"(?:\s+extends\s+(?P<bases>[^{]+?))?\s*(?:\{|$)",
            kind=SymbolKind.INTERFACE,
        ),
        rule(
            TYPE,
            r"^\s*(?:export\s+)?(?:default\s+)?(?:declare\s+)?(?:abstract\s+)?class\s+(?P<name>[\w$]+)(?:\s*<[^{]*?>)?"
            r"(?:\s+extends\s+(?P<bases>[\w$.]+(?:\s*<[^{]*?>)?))?(?:\s+implements\s+(?P<interfaces>[^{]+?))?\s*(?:\{|$)",
        ),
        rule(TYPE, r"^\s*(?:export\s+)?(?:declare\s+)?(?:const\s+)?enum\s+(?P<name>[\w$]+)", metadata={"tsKind": "enum"}),
        rule(
            TYPE,
            r"^\s*(?:export\s+)?(?:declare\s+)?type\s+(?P<name>[\w$]+)(?:\s*<[^=]*>)?\s*=",
            emit_node=False,
            opens_scope=False,
        ),
        rule(
            CALLABLE,
            r"^\s*(?:export\s+)?(?:default\s+)?(?:declare\s+)?(?:async\s+)?function\s*\*?\s*(?P<name>[\w$]+)\s*[<(]",
        ),
        rule(
            CALLABLE,
            r"^\s*(?:export\s+)?(?:const|let|var)\s+(?P<name>[\w$]+)\s*(?::[^=]+)?=\s*(?:async\s+)?"
            r"(?:function\b|(?:\([^)]*\)|[\w$]+)\s*(?::\s*[^=]+)?=>)",
            outside_type=True,
        ),
        rule(
            CALLABLE,
            rf"^\s*{_JS_MEMBER_MODS}(?P<name>#?[\w$]+)\s*(?::[^=]+)?=\s*(?:async\s+)?(?:\([^)]*\)|[\w$]+)\s*(?::\s*[^=]+)?=>",
            requires_type=True,
        ),
        rule(
            CALLABLE,
            rf"^\s*{_JS_MEMBER_MODS}\*?(?!(?:if|for|while|switch|catch|return|function|new|await)\b)"
            r"(?P<name>#?[\w$]+)\s*[?!]?\s*(?:<[^>(]*>)?\s*\(",
            requires_type=True,
        ),
        rule(
            MEMBER,
            rf"^\s*{_JS_MEMBER_MODS}(?P<name>#?[\w$]+)\s*[?!]?\s*(?::\s*[^=;]+)?(?:=.*)?;?\s*$",
            requires_type=True,
        ),
        rule(
            MEMBER,
            r"^(?:export\s+)?(?:const|let|var)\s+(?P<name>[\w$]+)\s*(?::[^=]+)?=",
            top_level_only=True,
            outside_type=True,
        ),
    ],
)


# ---------------------------------------------------------------------------
# Rust
# ---------------------------------------------------------------------------

_RS_VIS = r"(?:pub(?:\([^)]*\))?\s+)?"

RUST = LanguageProfile(
    name="Rust",
    extensions=(".rs",),
    string_delimiters=('"',),
    resolver=rust_use(),
    ignored_dirs=frozenset({"target"}),
    rules=[
        rule(SKIP, r"^\s*#!?\["),
        rule(IMPORT, rf"^\s*{_RS_VIS}use\s+(?P<target>[\w:]+(?:::\{{[^}}]*\}}?|::\*)?)"),
        rule(IMPORT, rf"^\s*{_RS_VIS}mod\s+(?P<target>\w+)\s*;", kind=SymbolKind.MODULE, resolver=rust_mod()),
        rule(TYPE, rf"^\s*{_RS_VIS}mod\s+(?P<name>\w+)\s*\{{?", kind=SymbolKind.MODULE, opens_scope=False),
        rule(
            TYPE,
            rf"^\s*{_RS_VIS}(?:unsafe\s+)?trait\s+(?P<name>\w+)(?:<[^>]*>)?(?:\s*:\s*(?P<bases>[^{{]+?))?\s*(?:where\b.*)?(?:\{{|$)",
            kind=SymbolKind.INTERFACE,
        ),
        rule(TYPE, rf"^\s*{_RS_VIS}struct\s+(?P<name>\w+)", metadata={"rustKind": "struct"}),
        rule(TYPE, rf"^\s*{_RS_VIS}enum\s+(?P<name>\w+)", metadata={"rustKind": "enum"}),
        rule(TYPE, rf"^\s*{_RS_VIS}union\s+(?P<name>\w+)", metadata={"rustKind": "union"}),
        rule(
            TYPE,
            r"^\s*(?:unsafe\s+)?impl(?:\s*<[^>]*>)?\s+!?(?P<interfaces>[\w:]+(?:<[^>]*>)?)\s+for\s+(?:[\w:]+::)?(?P<name>\w+)",
            scope_only=True,
        ),
        rule(TYPE, r"^\s*(?:unsafe\s+)?impl(?:\s*<[^>]*>)?\s+(?:[\w:]+::)?(?P<name>\w+)", scope_only=True),
        rule(
            TYPE,
            rf"^\s*{_RS_VIS}type\s+(?P<name>\w+)(?:<[^>]*>)?\s*=",
            emit_node=False,
            opens_scope=False,
        ),
        rule(
            CALLABLE,
            rf"^\s*{_RS_VIS}(?:(?:const|async|unsafe|default|extern(?:\s+\"[^\"]*\")?)\s+)*fn\s+(?P<name>\w+)",
        ),
        rule(CALLABLE, r"^\s*macro_rules!\s*(?P<name>\w+)", emit_node=False),
        rule(MEMBER, rf"^\s*{_RS_VIS}(?:const|static)\s+(?:mut\s+)?(?P<name>\w+)\s*:", kind=SymbolKind.VARIABLE),
    ],
)


# ---------------------------------------------------------------------------
# C and C++
# ---------------------------------------------------------------------------

_C_NOT_STATEMENT = r"(?!\s*(?:return|else|if|while|for|switch|case|do|typedef|goto|sizeof|delete|new|using|friend)\b)"

_C_RULES = [
    rule(IMPORT, r'^\s*#\s*include\s*[<"](?P<target>[^>"]+)[>"]'),
    rule(MEMBER, r"^\s*#\s*define\s+(?P<name>\w+)", kind=SymbolKind.VARIABLE),
    rule(SKIP, r"^\s*#"),
    rule(TYPE, r"^\s*(?:typedef\s+)?struct\s+(?P<name>\w+)\s*(?:\{|$)", metadata={"cKind": "struct"}),
    rule(TYPE, r"^\s*(?:typedef\s+)?union\s+(?P<name>\w+)\s*(?:\{|$)", metadata={"cKind": "union"}),
    rule(TYPE, r"^\s*(?:typedef\s+)?enum\s+(?P<name>\w+)\s*(?:\{|$)", metadata={"cKind": "enum"}),
    rule(
        TYPE,
        r"^\s*typedef\s+(?!struct\b|enum\b|union\b)[\w\s\*]+?\b(?P<name>\w+)\s*;",
        emit_node=False,
        opens_scope=False,
    ),
    rule(
        CALLABLE,
        rf"^{_C_NOT_STATEMENT}(?:(?:static|inline|extern|const|unsigned|signed|volatile|struct|enum|long|short)\s+)*"
        r"\w+[\s\*]+(?P<name>\w+)\s*\([^;]*$",
        top_level_only=True,
    ),
]

C = LanguageProfile(
    name="C",
    extensions=(".c", ".h"),
    resolver=header_include(),
    rules=_C_RULES,
)

_CPP_SPECIFIERS = r"(?:(?:static|inline|virtual|explicit|constexpr|consteval|extern|const|unsigned|signed|friend|long|short)\s+)*"

CPP = LanguageProfile(
    name="C++",
    extensions=(".cpp", ".cc", ".cxx", ".c++", ".hpp", ".hh", ".hxx", ".ipp", ".tpp"),
    resolver=header_include(),
    rules=[
        rule(IMPORT, r'^\s*#\s*include\s*[<"](?P<target>[^>"]+)[>"]'),
        rule(MEMBER, r"^\s*#\s*define\s+(?P<name>\w+)", kind=SymbolKind.VARIABLE),
        rule(SKIP, r"^\s*#"),
        rule(SKIP, r"^\s*(?:public|private|protected)\s*:"),
        rule(SKIP, r"^\s*template\s*<[^{;]*>\s*$"),
        rule(NAMESPACE, r"^\s*(?:inline\s+)?namespace\s+(?P<name>[\w:]+)\s*(?:\{|$)"),
        rule(
            TYPE,
            r"^\s*(?:template\s*<[^>]*>\s*)?(?:class|struct)\s+(?:\w+\s+)?(?P<name>\w+)(?:\s+final)?"
            r"\s*(?::\s*(?P<bases>[^{;]+?))?\s*(?:\{|$)",
        ),
        rule(TYPE, r"^\s*enum(?:\s+class|\s+struct)?\s+(?P<name>\w+)(?:\s*:\s*[\w:]+)?\s*(?:\{|$)", metadata={"cppKind": "enum"}),
        rule(TYPE, r"^\s*union\s+(?P<name>\w+)\s*(?:\{|$)", metadata={"cppKind": "union"}),
        rule(
            TYPE,
            r"^\s*typedef\s+(?!struct\b|enum\b|union\b)[\w\s\*:<>,]+?\b(?P<name>\w+)\s*;",
            emit_node=False,
            opens_scope=False,
        ),
        rule(
            TYPE,
            r"^\s*using\s+(?P<name>\w+)\s*=",
            emit_node=False,
            opens_scope=False,
        ),
        rule(
            CALLABLE,
            rf"^{_C_NOT_STATEMENT}\s*{_CPP_SPECIFIERS}(?:[\w:<>,\*&]+\s+[\*&]*)?(?:\w+::)*(?P<receiver>\w+)::(?P<name>~?\w+)\s*\([^;]*$",
        ),
        rule(
            CALLABLE,
            rf"^{_C_NOT_STATEMENT}\s*(?:template\s*<[^>]*>\s*)?{_CPP_SPECIFIERS}[\w:<>,\*&]+(?:\s+|[\*&]+)\s*[\*&]?"
            r"(?P<name>~?\w+)\s*\([^;]*$",
        ),
        rule(
            CALLABLE,
            rf"^{_C_NOT_STATEMENT}\s*{_CPP_SPECIFIERS}[\w:<>,\*&]+(?:\s+|[\*&]+)\s*[\*&]?(?P<name>~?\w+)\s*\(.*\)\s*"
            r"(?:const\s*)?(?:noexcept\s*)?(?:override\s*)?(?:final\s*)?(?:=\s*(?:0|default|delete)\s*)?;",
            requires_type=True,
        ),
        rule(
            MEMBER,
            r"^\s*(?:(?:static|const|mutable|inline|constexpr)\s+)*[\w:<>,\*&]+\s+[\*&]?(?P<name>\w+)\s*(?:=[^;]*|\{[^}]*\})?;\s*$",
            requires_type=True,
        ),
    ],
)


# ---------------------------------------------------------------------------
# Ruby
# ---------------------------------------------------------------------------

RUBY = LanguageProfile(
    name="Ruby",
    extensions=(".rb", ".rake"),
    filenames=("Rakefile",),
    scope_mode=ScopeMode.END_KEYWORD,
    line_comments=("#",),
    block_comments=(("=begin", "=end"),),
    resolver=package_path((".rb", ""), separator="/"),
    namespace_is_container=True,
    block_open=re.compile(
        r"^\s*(?:class|module|def|if|unless|while|until|case|begin|for)\b"
        r"|=\s*(?:if|unless|case|begin)\b"
        r"|\bdo\b(?:\s*\|[^|]*\|)?\s*$"
    ),
    block_close=re.compile(r"(?<![.:\w])end\b"),
    rules=[
        rule(
            IMPORT,
            r"""^\s*require_relative\s*\(?\s*['"](?P<target>[^'"]+)['"]""",
            resolver=relative_path((".rb", ""), bare_from_root=True),
        ),
        rule(IMPORT, r"""^\s*(?:require|load)\s*\(?\s*['"](?P<target>[^'"]+)['"]"""),
        rule(NAMESPACE, r"^\s*module\s+(?:\w+::)*(?P<name>\w+)"),
        rule(SKIP, r"^\s*class\s*<<"),
        rule(TYPE, r"^\s*class\s+(?:\w+::)*(?P<name>\w+)(?:\s*<\s*(?P<bases>[\w:]+))?"),
        rule(
            RELATION,
            r"^\s*(?:include|extend|prepend)\s+(?P<target>[\w:]+(?:\s*,\s*[\w:]+)*)",
            relation=EdgeRelationship.IMPLEMENTS,
        ),
        rule(CALLABLE, r"^\s*def\s+(?:self\.)?(?P<name>[\w?!=]+|\[\]=?|[+\-*/<>=!~%&|^]+)"),
        rule(MEMBER, r"^\s*attr_(?:accessor|reader|writer)\s+(?P<name>.+)", kind=SymbolKind.PROPERTY, split=r"\s*,\s*"),
        rule(MEMBER, r"^\s*(?P<name>[A-Z][A-Z0-9_]*)\s*=(?!=)"),
    ],
)


# ---------------------------------------------------------------------------
# PHP
# ---------------------------------------------------------------------------

_PHP_VIS = r"(?:(?:public|private|protected|static|abstract|final|readonly)\s+)*"

PHP = LanguageProfile(
    name="PHP",
    extensions=(".php", ".phtml"),
    line_comments=("//", "#"),
    resolver=package_path((".php",), separator="\\"),
    rules=[
        rule(NAMESPACE, r"^\s*namespace\s+(?P<name>[\w\\]+)\s*[;{]"),
        rule(
            RELATION,
            r"^\s*use\s+(?P<target>[\w\\]+(?:\s*,\s*[\w\\]+)*)\s*[;{]",
            requires_type=True,
            relation=EdgeRelationship.IMPLEMENTS,
        ),
        rule(IMPORT, r"^\s*use\s+(?:function\s+|const\s+)?(?P<target>[\w\\]+)(?:\s+as\s+\w+)?\s*;"),
        rule(
            IMPORT,
            r"""^\s*(?:require|include)(?:_once)?\s*\(?\s*(?:__DIR__\s*\.\s*)?['"](?P<target>[^'"]+)['"]""",
            resolver=relative_path((".php", ""), bare_from_root=True, suffix_fallback=True),
        ),
        rule(
            TYPE,
            r"^\s*interface\s+(?P<name>\w+)(?:\s+extends\s+(?P<bases>[^{]+?))?\s*(?:\{|$)",
            kind=SymbolKind.INTERFACE,
        ),
        rule(TYPE, r"^\s*trait\s+(?P<name>\w+)", metadata={"phpKind": "trait"}),
        rule(
            TYPE,
            r"^\s*(?:(?:abstract|final|readonly)\s+)*class\s+(?P<name>\w+)(?:\s+extends\s+(?P<bases>[\w\\]+))?"
            r"(?:\s+implements\s+(?P<interfaces>[^{]+?))?\s*(?:\{|$)",
        ),
        rule(TYPE, r"^\s*enum\s+(?P<name>\w+)", metadata={"phpKind": "enum"}),
        rule(CALLABLE, rf"^\s*{_PHP_VIS}function\s+&?(?P<name>\w+)\s*\("),
        rule(
            MEMBER,
            r"^\s*(?:(?:public|private|protected|static|readonly|var)\s+)+(?:\??[\w\\|]+\s+)?\$(?P<name>\w+)",
            requires_type=True,
        ),
        rule(MEMBER, r"^\s*(?:(?:public|private|protected|final)\s+)*const\s+(?:\w+\s+)?(?P<name>[A-Z_][A-Z0-9_]*)\s*="),
        rule(MEMBER, r"""^\s*define\s*\(\s*['"](?P<name>\w+)['"]""", kind=SymbolKind.VARIABLE),
    ],
)


# ---------------------------------------------------------------------------
# Kotlin
# ---------------------------------------------------------------------------

_KT_MODS = (
    r"(?:(?:public|private|protected|internal|abstract|open|final|sealed|data|enum|inner|override|suspend|"
    r"inline|tailrec|operator|infix|external|expect|actual|annotation|value|lateinit|const)\s+)*"
)

KOTLIN = LanguageProfile(
    name="Kotlin",
    extensions=(".kt", ".kts"),
    block_comments=(("/*", "*/"), ('"""', '"""')),
    resolver=package_path((".kt", ".kts", ".java")),
    ignored_dirs=frozenset({"target", "out"}),
    rules=[
        rule(NAMESPACE, r"^\s*package\s+(?P<name>[\w.]+)", opens_scope=False),
        rule(IMPORT, r"^\s*import\s+(?P<target>[\w.]+(?:\.\*)?)"),
        rule(SKIP, _ANNOTATION_LINE),
        rule(
            TYPE,
            rf"^\s*{_KT_MODS}interface\s+(?P<name>\w+)(?:<[^>]*>)?(?:\s*:\s*(?P<bases>[^{{]+?))?\s*(?:\{{|$)",
            kind=SymbolKind.INTERFACE,
        ),
        rule(
            TYPE,
            rf"^\s*{_KT_MODS}class\s+(?P<name>\w+)(?:<[^>]*>)?"
            r"(?:\s*(?:(?:private|protected|internal|public)\s+)?(?:constructor\s*)?\([^)]*\)?)?"
            r"(?:\s*:\s*(?P<bases>[^{]+?))?\s*(?:\{|$)",
        ),
        rule(
            TYPE,
            rf"^\s*{_KT_MODS}(?:companion\s+)?object\s+(?P<name>\w+)(?:\s*:\s*(?P<bases>[^{{]+?))?\s*(?:\{{|$)",
            metadata={"kotlinKind": "object"},
        ),
        rule(TYPE, rf"^\s*{_KT_MODS}typealias\s+(?P<name>\w+)", emit_node=False, opens_scope=False),
        rule(CALLABLE, rf"^\s*{_KT_MODS}fun\s+(?:<[^>]*>\s*)?(?:[\w.<>?]+\.)?(?P<name>\w+)\s*\("),
        rule(MEMBER, rf"^\s*{_KT_MODS}(?:val|var)\s+(?P<name>\w+)"),
    ],
)


# ---------------------------------------------------------------------------
# Swift
# ---------------------------------------------------------------------------

_SWIFT_MODS = (
    r"(?:(?:public|private|fileprivate|internal|open|final|override|static|class|mutating|nonmutating|"
    r"dynamic|required|convenience|indirect|nonisolated|lazy|weak|unowned|@\w+(?:\([^)]*\))?)\s+)*"
)

SWIFT = LanguageProfile(
    name="Swift",
    extensions=(".swift",),
    block_comments=(("/*", "*/"), ('"""', '"""')),
    string_delimiters=('"',),
    rules=[
        rule(IMPORT, r"^\s*(?:@testable\s+)?import\s+(?:(?:class|struct|enum|protocol|func|var|let|typealias)\s+)?(?P<target>[\w.]+)"),
        rule(SKIP, _ANNOTATION_LINE),
        rule(
            TYPE,
            rf"^\s*{_SWIFT_MODS}protocol\s+(?P<name>\w+)(?:\s*:\s*(?P<bases>[^{{]+?))?\s*(?:where\b[^{{]*)?(?:\{{|$)",
            kind=SymbolKind.INTERFACE,
        ),
        rule(
            TYPE,
            rf"^\s*{_SWIFT_MODS}(?:class|struct|enum|actor)\s+(?!(?:func|var|let|subscript|init)\b)(?P<name>\w+)(?:<[^>]*>)?"
            r"(?:\s*:\s*(?P<bases>[^{]+?))?\s*(?:where\b[^{]*)?(?:\{|$)",
        ),
        rule(
            TYPE,
            rf"^\s*{_SWIFT_MODS}extension\s+(?:\w+\.)*(?P<name>\w+)(?:\s*:\s*(?P<interfaces>[^{{]+?))?\s*(?:where\b[^{{]*)?(?:\{{|$)",
            scope_only=True,
        ),
        rule(TYPE, rf"^\s*{_SWIFT_MODS}typealias\s+(?P<name>\w+)\s*=", emit_node=False, opens_scope=False),
        rule(CALLABLE, rf"^\s*{_SWIFT_MODS}func\s+(?P<name>\w+|[^\s(<]+)\s*[<(]"),
        rule(CALLABLE, rf"^\s*{_SWIFT_MODS}(?P<name>init)[?!]?\s*[<(]", requires_type=True),
        rule(MEMBER, rf"^\s*{_SWIFT_MODS}(?:var|let)\s+(?P<name>\w+)"),
    ],
)


# ---------------------------------------------------------------------------
# Scala
# ---------------------------------------------------------------------------

_SCALA_MODS = r"(?:(?:private|protected|final|sealed|abstract|implicit|override|lazy|case|open|inline|transparent)(?:\[[\w.]+\])?\s+)*"
_SCALA_WITH = r"(?:\s+with\s+(?P<interfaces>[^{]+?))?"

SCALA = LanguageProfile(
    name="Scala",
    extensions=(".scala", ".sc"),
    block_comments=(("/*", "*/"), ('"""', '"""')),
    resolver=package_path((".scala", ".sc")),
    ignored_dirs=frozenset({"target"}),
    rules=[
        rule(NAMESPACE, r"^\s*package\s+(?!object\b)(?P<name>[\w.]+)", opens_scope=False),
        rule(
            IMPORT,
            r"^\s*import\s+(?P<target>[\w.]+?)(?:\.(?P<selectors>\{[^}]*\}|_|\*))?\s*$",
            import_tokens=_scala_import_tokens,
        ),
        rule(SKIP, _ANNOTATION_LINE),
        rule(
            TYPE,
            rf"^\s*{_SCALA_MODS}trait\s+(?P<name>\w+)(?:\[[^\]]*\])?"
            r"(?:\s+extends\s+(?P<bases>[\w.]+(?:\[[^\]]*\])?)(?:\([^)]*\))?)?" + _SCALA_WITH + r"\s*(?:\{|$)",
            kind=SymbolKind.INTERFACE,
        ),
        rule(
            TYPE,
            rf"^\s*{_SCALA_MODS}class\s+(?P<name>\w+)(?:\[[^\]]*\])?(?:\s*(?:private\s+)?\([^)]*\)?)?"
            r"(?:\s+extends\s+(?P<bases>[\w.]+(?:\[[^\]]*\])?)(?:\([^)]*\))?)?" + _SCALA_WITH + r"\s*(?:\{|$)",
        ),
        rule(
            TYPE,
            rf"^\s*{_SCALA_MODS}object\s+(?P<name>\w+)"
            r"(?:\s+extends\s+(?P<bases>[\w.]+(?:\[[^\]]*\])?)(?:\([^)]*\))?)?" + _SCALA_WITH,
            metadata={"scalaKind": "object"},
        ),
        rule(TYPE, r"^\s*enum\s+(?P<name>\w+)", metadata={"scalaKind": "enum"}),
        rule(TYPE, rf"^\s*{_SCALA_MODS}type\s+(?P<name>\w+)", emit_node=False, opens_scope=False),
        rule(CALLABLE, rf"^\s*{_SCALA_MODS}def\s+(?P<name>\w+|[^\s\[(:]+)"),
        rule(MEMBER, rf"^\s*{_SCALA_MODS}(?:val|var)\s+(?P<name>\w+)"),
    ],
)


# ---------------------------------------------------------------------------
# Dart
# ---------------------------------------------------------------------------

_DART_KEYWORDS = r"(?!(?:if|for|while|switch|catch|return|else|new|await|throw|assert|super|this)\b)"

DART = LanguageProfile(
    name="Dart",
    extensions=(".dart",),
    block_comments=(("/*", "*/"), ("'''", "'''"), ('"""', '"""')),
    resolver=relative_path((".dart", ""), bare_from_root=True, external_prefixes=("dart:", "package:")),
    ignored_dirs=frozenset({".dart_tool"}),
    rules=[
        rule(SKIP, r"^\s*part\s+of\b"),
        rule(IMPORT, r"""^\s*(?:import|export|part)\s+['"](?P<target>[^'"]+)['"]"""),
        rule(NAMESPACE, r"^\s*library\s+(?P<name>[\w.]+)\s*;", opens_scope=False),
        rule(SKIP, _ANNOTATION_LINE),
        rule(
            TYPE,
            r"^\s*(?:base\s+)?mixin\s+(?P<name>\w+)(?:\s+on\s+(?P<bases>[^{]+?))?\s*(?:\{|$)",
            kind=SymbolKind.INTERFACE,
        ),
        rule(
            TYPE,
            r"^\s*(?:(?:abstract|base|final|interface|sealed|mixin)\s+)*class\s+(?P<name>\w+)(?:<[^{]*?>)?"
            r"(?:\s+extends\s+(?P<bases>[\w.]+(?:<[^{]*?>)?))?(?:\s+with\s+(?P<mixins>[^{]+?))?"
            r"(?:\s+implements\s+(?P<interfaces>[^{]+?))?\s*(?:\{|$)",
        ),
        rule(TYPE, r"^\s*enum\s+(?P<name>\w+)", metadata={"dartKind": "enum"}),
        rule(TYPE, r"^\s*extension\s+(?:\w+\s+)?on\s+(?P<name>\w+)", scope_only=True),
        rule(TYPE, r"^\s*typedef\s+(?P<name>\w+)", emit_node=False, opens_scope=False),
        rule(
            CALLABLE,
            rf"^\s*(?:(?:static|external|factory|abstract|const)\s+)*(?:[\w<>?,\[\]]+\s+)?(?:get\s+|set\s+)?{_DART_KEYWORDS}"
            r"(?P<name>\w+(?:\.\w+)?)\s*(?:<[^>(]*>)?\s*\(",
        ),
        rule(
            MEMBER,
            r"^\s*(?:(?:static|late|external|covariant)\s+)*(?:(?:final|const|var)\s+)?(?:[\w<>?,\[\]]+\s+)?"
            rf"{_DART_KEYWORDS}(?P<name>\w+)\s*(?:=(?!=|>)[^;]*;?|;)\s*$",
        ),
    ],
)


# ---------------------------------------------------------------------------
# Lua
# ---------------------------------------------------------------------------

LUA = LanguageProfile(
    name="Lua",
    extensions=(".lua",),
    scope_mode=ScopeMode.NONE,
    line_comments=("--",),
    block_comments=(("--[[", "]]"),),
    resolver=package_path((".lua",), index_names=("init.lua",)),
    rules=[
        rule(IMPORT, r"""(?:local\s+\w+\s*=\s*)?\brequire\s*\(?\s*['"](?P<target>[^'"]+)['"]"""),
        rule(NAMESPACE, r"""^\s*module\s*\(\s*['"](?P<name>[^'"]+)['"]""", opens_scope=False),
        rule(CALLABLE, r"^\s*function\s+(?P<receiver>\w+)[.:]+(?P<name>\w+)\s*\("),
        rule(CALLABLE, r"^\s*(?P<receiver>\w+)\.(?P<name>\w+)\s*=\s*function\s*\("),
        rule(CALLABLE, r"^(?:local\s+)?function\s+(?P<name>\w+)\s*\(", top_level_only=True),
        rule(CALLABLE, r"^local\s+(?P<name>\w+)\s*=\s*function\s*\(", top_level_only=True),
    ],
)


# ---------------------------------------------------------------------------
# Perl
# ---------------------------------------------------------------------------

PERL = LanguageProfile(
    name="Perl",
    extensions=(".pl", ".pm", ".t"),
    scope_mode=ScopeMode.NONE,
    sticky_types=True,
    line_comments=("#",),
    block_comments=(("=pod", "=cut"), ("=head1", "=cut"), ("=head2", "=cut"), ("=begin", "=cut")),
    resolver=package_path((".pm", ".pl"), separator="::"),
    rules=[
        rule(
            RELATION,
            r"""^\s*use\s+(?:parent|base)\s+(?:-norequire\s*,?\s*)?(?:qw\s*[(\[]\s*|['"])?(?P<target>[\w:]+(?:[\s,]+[\w:]+)*)""",
        ),
        rule(RELATION, r"@ISA\s*=\s*\(\s*['\"]?(?P<target>[\w:]+(?:['\"]?\s*,\s*['\"]?[\w:]+)*)"),
        rule(MEMBER, r"^\s*use\s+constant\s+(?P<name>\w+)\s*=>", kind=SymbolKind.VARIABLE),
        rule(SKIP, r"^\s*use\s+(?:strict|warnings|utf8|vars|feature|lib|constant|v?\d)"),
        rule(IMPORT, r"^\s*use\s+(?P<target>[\w:]+)"),
        rule(
            IMPORT,
            r"""^\s*require\s+['"]?(?P<target>[^'";\s]+)""",
            resolver=first_of(
                package_path((".pm", ".pl"), separator="::"),
                relative_path(("",), bare_from_root=True, suffix_fallback=True),
            ),
        ),
        rule(TYPE, r"^\s*package\s+(?P<name>[\w:]+)\s*[;{]", metadata={"perlKind": "package"}),
        rule(MEMBER, r"""^\s*has\s+['"]?(?P<name>\w+)""", kind=SymbolKind.PROPERTY),
        rule(CALLABLE, r"^\s*sub\s+(?P<name>\w+)"),
    ],
)


# ---------------------------------------------------------------------------
# R
# ---------------------------------------------------------------------------

R = LanguageProfile(
    name="R",
    extensions=(".r",),
    scope_mode=ScopeMode.NONE,
    line_comments=("#",),
    block_comments=(),
    resolver=relative_path(("",), bare_from_root=True, suffix_fallback=True),
    rules=[
        rule(IMPORT, r"""^\s*(?:library|require|requireNamespace)\s*\(\s*['"]?(?P<target>[\w.]+)['"]?""", resolver=None),
        rule(IMPORT, r"""^\s*source\s*\(\s*['"](?P<target>[^'"]+)['"]"""),
        rule(
            TYPE,
            r"""^\s*(?:\w+\s*(?:<-|=)\s*)?set(?:Ref)?Class\s*\(\s*['"](?P<name>\w+)['"](?:.*?contains\s*=\s*(?:c\(\s*)?['"](?P<bases>\w+)['"])?""",
        ),
        rule(
            TYPE,
            r"""^\s*\w+\s*(?:<-|=)\s*R6(?:::R6)?Class\s*\(\s*['"](?P<name>\w+)['"](?:.*?inherit\s*=\s*(?P<bases>\w+))?""",
            metadata={"rKind": "R6"},
        ),
        rule(CALLABLE, r"""^\s*setGeneric\s*\(\s*['"](?P<name>\w+)['"]"""),
        rule(CALLABLE, r"""^\s*setMethod\s*\(\s*['"](?P<name>\w+)['"]\s*,\s*(?:signature\s*\(\s*)?['"](?P<receiver>\w+)['"]"""),
        rule(CALLABLE, r"^(?P<name>[\w.]+)\s*(?:<-|=)\s*function\s*\(", top_level_only=True),
    ],
)


# ---------------------------------------------------------------------------
# Haskell
# ---------------------------------------------------------------------------

_HS_RESERVED = r"(?!(?:module|import|data|newtype|type|class|instance|where|let|in|if|then|else|case|of|do|deriving|infix[lr]?)\b)"

HASKELL = LanguageProfile(
    name="Haskell",
    extensions=(".hs", ".lhs"),
    scope_mode=ScopeMode.NONE,
    line_comments=("--",),
    block_comments=(("{-", "-}"),),
    string_delimiters=('"',),
    resolver=package_path((".hs", ".lhs")),
    ignored_dirs=frozenset({"dist-newstyle", ".stack-work"}),
    unique_callables=True,
    rules=[
        rule(NAMESPACE, r"^\s*module\s+(?P<name>[\w.]+)", opens_scope=False),
        rule(IMPORT, r"^\s*import\s+(?:qualified\s+)?(?P<target>[\w.]+)"),
        rule(TYPE, r"^\s*data\s+(?:family\s+)?(?P<name>\w+)", metadata={"hsKind": "data"}),
        rule(TYPE, r"^\s*newtype\s+(?P<name>\w+)", metadata={"hsKind": "newtype"}),
        rule(TYPE, r"^\s*type\s+(?:family\s+)?(?P<name>\w+)", emit_node=False),
        rule(TYPE, r"^\s*class\s+(?:.*=>\s*)?(?P<name>\w+)", kind=SymbolKind.INTERFACE),
        rule(
            RELATION,
            r"^\s*instance\s+(?:.*=>\s*)?(?P<target>\w+)\s+\(?(?P<name>\w+)",
            relation=EdgeRelationship.IMPLEMENTS,
        ),
        rule(CALLABLE, rf"^{_HS_RESERVED}(?P<name>[a-z_][\w']*)\s*::", top_level_only=True),
        rule(CALLABLE, rf"^{_HS_RESERVED}(?P<name>[a-z_][\w']*)\b[^=:]*?(?<![=<>/])=(?![=>])", top_level_only=True),
    ],
)


# ---------------------------------------------------------------------------
# Elixir
# ---------------------------------------------------------------------------

ELIXIR = LanguageProfile(
    name="Elixir",
    extensions=(".ex", ".exs"),
    scope_mode=ScopeMode.END_KEYWORD,
    line_comments=("#",),
    block_comments=(('"""', '"""'),),
    string_delimiters=('"',),
    resolver=snake_module((".ex", ".exs")),
    ignored_dirs=frozenset({"_build", "deps"}),
    block_open=re.compile(r"\bdo\b(?!:)|\bfn\b"),
    block_close=re.compile(r"(?<![.:\w])end\b"),
    rules=[
        rule(IMPORT, r"^\s*(?:alias|import|use|require)\s+(?P<target>[A-Z][\w.]*)"),
        rule(TYPE, r"^\s*defmodule\s+(?P<name>[\w.]+)", kind=SymbolKind.MODULE),
        rule(TYPE, r"^\s*defprotocol\s+(?P<name>[\w.]+)", kind=SymbolKind.INTERFACE),
        rule(
            RELATION,
            r"^\s*defimpl\s+(?P<target>[\w.]+)\s*,\s*for:\s*(?P<name>[\w.]+)",
            relation=EdgeRelationship.IMPLEMENTS,
        ),
        rule(RELATION, r"^\s*@behaviour\s+(?P<target>[\w.]+)", relation=EdgeRelationship.IMPLEMENTS),
        rule(CALLABLE, r"^\s*defmacrop?\s+(?P<name>\w+[?!]?)", kind=SymbolKind.FUNCTION, emit_node=False),
        rule(CALLABLE, r"^\s*defp?\s+(?P<name>\w+[?!]?)"),
        rule(SKIP, r"^\s*@\w+"),
    ],
)


# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_SQL_NAME = r"""(?:[\w"`\[\]]+\.)?["`\[]?(?P<name>\w+)["`\]]?"""

SQL = LanguageProfile(
    name="SQL",
    extensions=(".sql",),
    scope_mode=ScopeMode.NONE,
    line_comments=("--",),
    string_delimiters=("'",),
    rules=[
        rule(
            TYPE,
            r"(?i)^\s*CREATE\s+(?:OR\s+REPLACE\s+)?(?:(?:GLOBAL|LOCAL)\s+)?(?:TEMP(?:ORARY)?\s+)?(?:UNLOGGED\s+)?TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?"
            + _SQL_NAME,
            metadata={"sqlKind": "table"},
        ),
        rule(
            TYPE,
            r"(?i)^\s*CREATE\s+(?:OR\s+REPLACE\s+)?(?:MATERIALIZED\s+)?VIEW\s+(?:IF\s+NOT\s+EXISTS\s+)?" + _SQL_NAME,
            metadata={"sqlKind": "view"},
        ),
        rule(
            MEMBER,
            r"(?i)^\s*CREATE\s+(?:UNIQUE\s+)?(?:CLUSTERED\s+|NONCLUSTERED\s+)?INDEX\s+(?:CONCURRENTLY\s+)?(?:IF\s+NOT\s+EXISTS\s+)?"
            + _SQL_NAME,
            kind=SymbolKind.VARIABLE,
        ),
        rule(CALLABLE, r"(?i)^\s*CREATE\s+(?:OR\s+REPLACE\s+)?FUNCTION\s+" + _SQL_NAME),
        rule(
            CALLABLE,
            r"(?i)^\s*CREATE\s+(?:OR\s+(?:REPLACE|ALTER)\s+)?PROC(?:EDURE)?\s+" + _SQL_NAME,
            metadata={"sqlKind": "procedure"},
        ),
        rule(CALLABLE, r"(?i)^\s*CREATE\s+(?:OR\s+REPLACE\s+)?TRIGGER\s+" + _SQL_NAME, emit_node=False),
        rule(TYPE, r"(?i)^\s*CREATE\s+(?:OR\s+REPLACE\s+)?TYPE\s+" + _SQL_NAME, emit_node=False),
    ],
)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

DEFAULT_PROFILES: Sequence[LanguageProfile] = (
    CSHARP,
    JAVASCRIPT,
    PYTHON,
    JAVA,
    GO,
    RUST,
    C,
    CPP,
    RUBY,
    PHP,
    KOTLIN,
    SWIFT,
    SCALA,
    DART,
    LUA,
    PERL,
    R,
    HASKELL,
    ELIXIR,
    SQL,
)

_BY_NAME: Dict[str, LanguageProfile] = {p.name.lower(): p for p in DEFAULT_PROFILES}


def get_profile(name: str) -> Optional[LanguageProfile]:
    """Look up a default profile by (case-insensitive) name."""
    return _BY_NAME.get(name.lower())


def create_default_parsers(
    cache: Optional[ParseResultCache] = None,
    workers: Optional[int] = None,
) -> List[LanguageParser]:
    """One :class:`ProfileParser` per default profile, in registration order."""
    return [ProfileParser(profile, cache=cache, workers=workers) for profile in DEFAULT_PROFILES]
