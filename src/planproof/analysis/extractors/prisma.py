"""Prisma Client references in plan code.

Client variables are not assumed to be called ``prisma``. A first scan
collects every ``<name>.<accessor>.<clientMethod>`` binder, and the
accessor pattern is compiled from the names actually observed.
"""

from __future__ import annotations

import re

from planproof.analysis.schemas import RawReference
from planproof.analysis.text import (
    brace_depth,
    code_regions,
    escape_names,
    top_level_keys,
)
from planproof.constants import ANCHOR_LOOKBACK_CHARS, PRISMA_CLIENT_METHODS

DEFAULT_CLIENT_NAME = "prisma"

_BINDER_RE = re.compile(
    r"(\w+)\.(\w+)\.(" + "|".join(PRISMA_CLIENT_METHODS) + r")\b"
)
_QUERY_BLOCK_RE = re.compile(r"(?:where|orderBy|select|by|data)\s*:\s*\{")
_INCLUDE_BLOCK_RE = re.compile(r"include\s*:\s*\{")

# Operators and aggregate keys that appear where field names would
_NON_FIELD_KEYS = frozenset(
    {
        "true", "false", "null", "undefined", "desc", "asc", "not",
        "in", "gte", "lte", "gt", "lt", "contains", "startsWith",
        "endsWith", "equals", "mode", "some", "every", "none",
        "_count", "_sum", "_avg", "_min", "_max",
    }
)


def detect_client_names(code: str) -> list[str]:
    """Variable names used as a Prisma client, default name last."""
    names = dict.fromkeys(m.group(1) for m in _BINDER_RE.finditer(code))
    names[DEFAULT_CLIENT_NAME] = None
    return list(names)


def extract_prisma_refs(plan_text: str) -> list[RawReference]:
    """Model, method, query-field and include references.

    ``owner`` is always the model accessor as written in the plan.
    """
    code = code_regions(plan_text)
    clients = escape_names(detect_client_names(code))
    accessor_re = re.compile(rf"\b(?:{clients})\.(\w+)\.(\w+)")
    anchor_re = re.compile(rf"\b(?:{clients})\.(\w+)\.")

    refs: dict[tuple[str, str, str | None], RawReference] = {}

    def add(ref: RawReference) -> None:
        refs.setdefault((ref.kind, ref.raw, ref.owner), ref)

    for m in accessor_re.finditer(code):
        raw = m.group(0)
        client = raw[: raw.index(".")]
        accessor, method = m.group(1), m.group(2)
        add(
            RawReference(
                raw=f"{client}.{accessor}",
                kind="model",
                offset=m.start(),
                owner=accessor,
            )
        )
        add(
            RawReference(
                raw=f".{method}",
                kind="method",
                offset=m.start(2),
                owner=accessor,
                name=method,
            )
        )

    for m in _QUERY_BLOCK_RE.finditer(code):
        accessor = _nearest_accessor(code, m.start(), anchor_re)
        if accessor is None:
            continue
        for key in top_level_keys(code, m.end()):
            if key in _NON_FIELD_KEYS:
                continue
            add(
                RawReference(
                    raw=key,
                    kind="field",
                    offset=m.end(),
                    owner=accessor,
                    name=key,
                )
            )

    for m in _INCLUDE_BLOCK_RE.finditer(code):
        accessor = _nearest_accessor(code, m.start(), anchor_re)
        if accessor is None:
            continue
        for key in top_level_keys(code, m.end()):
            if key == "_count":
                continue
            add(
                RawReference(
                    raw=f"include: {{ {key} }}",
                    kind="relation",
                    offset=m.end(),
                    owner=accessor,
                    name=key,
                )
            )

    return list(refs.values())


def _nearest_accessor(
    code: str, position: int, anchor_re: re.Pattern[str]
) -> str | None:
    """Accessor of the closest preceding ``client.accessor.`` call.

    Returns None when the block sits deeper than the call's own
    argument object, e.g. a ``select`` inside an ``include``.
    """
    preceding = code[max(0, position - ANCHOR_LOOKBACK_CHARS) : position]
    matches = list(anchor_re.finditer(preceding))
    if not matches:
        return None
    last = matches[-1]
    if brace_depth(preceding[last.end() :]) > 1:
        return None
    return last.group(1)
