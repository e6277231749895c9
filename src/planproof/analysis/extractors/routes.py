"""HTTP route references: ``fetch``, axios, ``VERB /path`` and backticked paths.

The same patterns feed both route checkers. Next.js App Router refs
are restricted to ``/api/``; Express/Fastify refs take any absolute
path that does not look like a file.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from planproof.analysis.schemas import RawReference
from planproof.constants import HTTP_METHODS

_METHODS = "|".join(HTTP_METHODS)
_TRAILING_PUNCT_RE = re.compile(r"[`'\")\],;.]+$")
_FILE_EXTENSION_RE = re.compile(r"\.\w{1,5}$")


def _patterns(path: str) -> list[tuple[re.Pattern[str], int, int | None]]:
    """``(pattern, path_group, method_group)`` triples for a path regex."""
    quoted = rf"[\"'`]({path}[^\"'`\s)]*)[\"'`]"
    return [
        (re.compile(rf"fetch\s*\(\s*{quoted}"), 1, None),
        (
            re.compile(
                rf"fetch\s*\(\s*{quoted}\s*,\s*\{{[^}}]*method\s*:\s*"
                rf"[\"'`]({_METHODS})[\"'`]",
                re.IGNORECASE,
            ),
            1,
            2,
        ),
        (
            re.compile(
                rf"axios\.(get|post|put|delete|patch)\s*\(\s*{quoted}",
                re.IGNORECASE,
            ),
            2,
            1,
        ),
        (re.compile(rf"\b({_METHODS})\s+({path}\S*)"), 2, 1),
    ]


_NEXT_PATTERNS = _patterns(r"/api/")
_NEXT_EXTRA = (
    (re.compile(r"`(/api/[^`\s]+)`"), 1, None),
    (re.compile(r"new\s+URL\s*\(\s*[\"'`](/api/[^\"'`\s)]+)[\"'`]"), 1, None),
)
_EXPRESS_PATTERNS = _patterns(r"/")
_EXPRESS_BACKTICK_RE = re.compile(r"`(/[a-z][^`\s]*)`", re.IGNORECASE)


def _normalize(url_path: str) -> str:
    return _TRAILING_PUNCT_RE.sub("", url_path).split("?")[0].rstrip("/") or "/"


def _collect(
    plan_text: str,
    patterns: list[tuple[re.Pattern[str], int, int | None]],
    accept: Callable[[str], bool],
) -> list[RawReference]:
    refs: dict[tuple[str, str], RawReference] = {}
    for pattern, path_group, method_group in patterns:
        for m in pattern.finditer(plan_text):
            url_path = _normalize(m.group(path_group))
            if not accept(url_path):
                continue
            method = m.group(method_group).upper() if method_group else None
            key = (method or "", url_path)
            if key in refs:
                continue
            refs[key] = RawReference(
                raw=f"{method} {url_path}" if method else url_path,
                kind="route",
                offset=m.start(),
                owner=url_path,
                method=method,
            )
    return list(refs.values())


def extract_api_route_refs(plan_text: str) -> list[RawReference]:
    """Next.js ``/api/...`` references, each with its HTTP method if stated."""
    return _collect(
        plan_text,
        [*_NEXT_PATTERNS, *_NEXT_EXTRA],
        lambda url: url.startswith("/api/"),
    )


def extract_express_route_refs(plan_text: str) -> list[RawReference]:
    """Any absolute URL path; backticked paths with a file extension are skipped."""
    refs = _collect(plan_text, _EXPRESS_PATTERNS, lambda url: url.startswith("/"))
    seen = {(r.method or "", r.owner) for r in refs}
    for m in _EXPRESS_BACKTICK_RE.finditer(plan_text):
        if _FILE_EXTENSION_RE.search(m.group(1)):
            continue
        url_path = _normalize(m.group(1))
        if ("", url_path) in seen:
            continue
        seen.add(("", url_path))
        refs.append(
            RawReference(
                raw=url_path, kind="route", offset=m.start(), owner=url_path
            )
        )
    return refs
