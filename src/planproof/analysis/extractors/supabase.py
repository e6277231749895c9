"""supabase-js query references: ``.from()``, ``.select()``, filters, ``.rpc()``.

Column names only mean something relative to the table of the query
chain they sit in. Each column is attributed to the nearest preceding
``.from('table')`` inside the same chunk of text (no blank line in
between); without one the column is dropped rather than guessed.
"""

from __future__ import annotations

import re

from planproof.analysis.schemas import RawReference
from planproof.analysis.text import lookback_window, split_top_level
from planproof.constants import ANCHOR_LOOKBACK_CHARS

FILTER_METHODS: tuple[str, ...] = (
    "eq", "neq", "gt", "gte", "lt", "lte", "order", "is", "in", "like",
    "ilike", "match", "not", "filter",
)

_FROM_RE = re.compile(r"\.from\(\s*[\"'](\w+)[\"']\s*\)")
_SELECT_RE = re.compile(r"\.select\(\s*[\"']([^\"']+)[\"']\s*\)")
_FILTER_RE = re.compile(
    r"\.(" + "|".join(FILTER_METHODS) + r")\(\s*[\"'](\w+)[\"']"
)
_RPC_RE = re.compile(r"\.rpc\(\s*[\"'](\w+)[\"']\s*[,)]")
_EMBED_RE = re.compile(r"^(?:\w+:)?(\w+)(?:!\w+)?\((.+)\)$")
_ALIAS_RE = re.compile(r"^\w+:(\w+)$")
_IDENT_RE = re.compile(r"^\w+$")


def nearest_from(plan_text: str, position: int) -> str | None:
    """Table of the last ``.from('x')`` before ``position`` in its chunk."""
    window = lookback_window(plan_text, position, ANCHOR_LOOKBACK_CHARS)
    matches = _FROM_RE.findall(window)
    return matches[-1] if matches else None


def parse_select_columns(select: str, table: str) -> list[RawReference]:
    """Columns named in a PostgREST select string.

    Handles ``col``, ``alias:col``, ``*``, and embedded resources
    ``rel(col)`` / ``alias:rel!inner(col)``. Embedded resources are
    reported as ``embed`` references: they may be a relation alias
    rather than a table, so the validator drops them when unknown.
    """
    refs: list[RawReference] = []
    for part in (p.strip() for p in split_top_level(select)):
        if part in ("", "*"):
            continue
        embed = _EMBED_RE.match(part)
        if embed:
            relation = embed.group(1)
            refs.append(
                RawReference(
                    raw=f".select('...{relation}...')",
                    kind="embed",
                    owner=relation,
                )
            )
            for col in (c.strip() for c in embed.group(2).split(",")):
                name = col.rsplit(":", 1)[-1]
                if _IDENT_RE.match(name):
                    refs.append(
                        RawReference(
                            raw=f".select('...{relation}({name})...')",
                            kind="embed",
                            owner=relation,
                            name=name,
                        )
                    )
            continue
        alias = _ALIAS_RE.match(part)
        name = alias.group(1) if alias else part
        if _IDENT_RE.match(name):
            refs.append(
                RawReference(
                    raw=f".select('...{name}...')",
                    kind="column",
                    owner=table,
                    name=name,
                )
            )
    return refs


def extract_supabase_refs(plan_text: str) -> list[RawReference]:
    refs: dict[tuple[bool, str, str], RawReference] = {}

    def add(ref: RawReference) -> None:
        key = (ref.kind == "function", ref.owner or "", ref.name or "")
        refs.setdefault(key, ref)

    for m in _FROM_RE.finditer(plan_text):
        add(
            RawReference(
                raw=m.group(0), kind="table", offset=m.start(), owner=m.group(1)
            )
        )

    for m in _SELECT_RE.finditer(plan_text):
        table = nearest_from(plan_text, m.start())
        if table is None:
            continue
        for ref in parse_select_columns(m.group(1), table):
            ref.offset = m.start()
            add(ref)

    for m in _FILTER_RE.finditer(plan_text):
        table = nearest_from(plan_text, m.start())
        if table is None:
            continue
        add(
            RawReference(
                raw=m.group(0),
                kind="column",
                offset=m.start(),
                owner=table,
                name=m.group(2),
            )
        )

    for m in _RPC_RE.finditer(plan_text):
        add(
            RawReference(
                raw=m.group(0), kind="function", offset=m.start(), name=m.group(1)
            )
        )

    return list(refs.values())
