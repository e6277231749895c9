"""Table and column references in Drizzle calls and SQL snippets.

``kind="table"`` references name a table explicitly and must resolve.
``kind="column"`` references are ``owner.name`` property chains that
only count when the owner turns out to be a table.
"""

from __future__ import annotations

import re

from planproof.analysis.schemas import RawReference
from planproof.analysis.text import code_regions, escape_names, line_at

DEFAULT_BINDER = "db"

SQL_KEYWORDS = frozenset(
    {
        "from", "where", "select", "insert", "into", "update", "delete",
        "set", "values", "join", "inner", "outer", "left", "right",
        "cross", "on", "and", "or", "not", "in", "is", "null", "as",
        "order", "by", "group", "having", "limit", "offset", "union",
        "all", "distinct", "create", "table", "alter", "drop", "index",
        "primary", "key", "foreign", "references", "constraint",
        "unique", "check", "default", "cascade", "restrict", "exists",
        "between", "like", "case", "when", "then", "else", "end", "asc",
        "desc", "true", "false", "count", "sum", "avg", "min", "max",
        "if", "returning", "with", "recursive",
    }
)

# Properties that are JS/ORM API surface rather than columns
JS_PROPS = frozenset(
    {
        "length", "prototype", "constructor", "name", "toString",
        "valueOf", "call", "apply", "bind", "map", "filter", "reduce",
        "forEach", "push", "pop", "shift", "unshift", "slice", "splice",
        "concat", "join", "indexOf", "includes", "find", "findFirst",
        "findMany", "findUnique", "create", "createMany", "values",
        "keys", "entries", "then", "catch", "finally", "log", "error",
        "warn", "info", "env", "resolve", "reject", "parse",
        "stringify", "from", "select", "insert", "update", "delete",
        "query", "table",
    }
)

# Objects that are never tables
JS_GLOBALS = frozenset(
    {
        "console", "Math", "JSON", "Date", "Array", "Object", "String",
        "Number", "Boolean", "Promise", "Map", "Set", "RegExp", "Error",
        "process", "require", "module", "exports", "global", "window",
        "document", "navigator", "fetch", "Response", "Request", "URL",
        "Buffer", "fs", "path", "os", "crypto", "http", "https",
        "import", "export", "const", "let", "var", "function", "class",
        "db", "prisma", "ctx", "req", "res", "app", "router", "next",
    }
)

_BINDER_RES = (
    re.compile(r"\b(\w+)\.select\([^)]*\)\s*\.from\s*\("),
    re.compile(r"\b(\w+)\.query\.\w+\.(?:findMany|findFirst)\b"),
)
_PROPERTY_RE = re.compile(r"\b(\w+)\.(\w+)\b")
_SQL_TABLE_RE = re.compile(
    r"\b(?:FROM|INTO|UPDATE|JOIN)\s+[\"'`]?(\w+)[\"'`]?(?![\w/.@-])",
    re.IGNORECASE,
)
_MODULE_LINE_RE = re.compile(r"^\s*(?:import|export)\b")


def detect_binders(text: str) -> list[str]:
    """Query-builder variables seen in the plan, default binder included."""
    names = dict.fromkeys([DEFAULT_BINDER])
    for pattern in _BINDER_RES:
        names.update(dict.fromkeys(m.group(1) for m in pattern.finditer(text)))
    return list(names)


def extract_sql_refs(plan_text: str) -> list[RawReference]:
    refs: dict[tuple[str, str | None], RawReference] = {}

    def add(ref: RawReference) -> None:
        refs.setdefault((ref.owner or "", ref.name), ref)

    binders = escape_names(detect_binders(plan_text))
    builder_re = re.compile(
        rf"\b(?:{binders})\.(?:select\([^)]*\)\s*\.from|insert|update|delete)"
        rf"\s*\(\s*(\w+)"
    )
    relational_re = re.compile(rf"\b(?:{binders})\.query\.(\w+)\.\w+")

    for pattern in (builder_re, relational_re):
        for m in pattern.finditer(plan_text):
            name = m.group(1)
            if name.lower() not in SQL_KEYWORDS:
                add(_table_ref(m.group(0), name, m.start()))

    for m in _PROPERTY_RE.finditer(plan_text):
        obj, prop = m.group(1), m.group(2)
        if obj in JS_GLOBALS or obj.lower() in SQL_KEYWORDS:
            continue
        if prop.lower() in SQL_KEYWORDS or prop in JS_PROPS:
            continue
        add(
            RawReference(
                raw=m.group(0),
                kind="column",
                offset=m.start(),
                owner=obj,
                name=prop,
            )
        )

    # SQL keywords only count inside code, and never on import lines
    code = code_regions(plan_text)
    for m in _SQL_TABLE_RE.finditer(code):
        name = m.group(1)
        if name.lower() in SQL_KEYWORDS:
            continue
        if _MODULE_LINE_RE.match(line_at(code, m.start())):
            continue
        add(_table_ref(m.group(0), name, -1))

    return list(refs.values())


def _table_ref(raw: str, name: str, offset: int) -> RawReference:
    return RawReference(raw=raw, kind="table", offset=offset, owner=name)
