"""Module specifiers from ``import``/``export ... from``/``require()``."""

from __future__ import annotations

import re

from planproof.analysis.indexers.packages import parse_package_name
from planproof.analysis.schemas import RawReference
from planproof.constants import NODE_BUILTINS

_IMPORT_FROM_RE = re.compile(
    r"\b(?:import|export)\s+[^'\";]*?\bfrom\s+[\"']([^\"']+)[\"']"
)
_REQUIRE_RE = re.compile(r"\brequire\s*\(\s*[\"']([^\"']+)[\"']\s*\)")
_DYNAMIC_IMPORT_RE = re.compile(r"\bimport\s*\(\s*[\"']([^\"']+)[\"']\s*\)")

_LOCAL_PREFIXES = ("./", "../", "@/", "~/", "#", "node:")


def should_skip(source: str) -> bool:
    """Relative paths, local aliases and Node builtins are not packages."""
    if source.startswith(_LOCAL_PREFIXES):
        return True
    return source.split("/")[0] in NODE_BUILTINS


def extract_import_sources(plan_text: str) -> list[str]:
    """Every module specifier in the plan, first occurrence order."""
    sources: dict[str, None] = {}
    for pattern in (_IMPORT_FROM_RE, _REQUIRE_RE, _DYNAMIC_IMPORT_RE):
        for m in pattern.finditer(plan_text):
            source = m.group(1).strip()
            if source:
                sources[source] = None
    return list(sources)


def extract_import_refs(plan_text: str) -> list[RawReference]:
    """Third-party package specifiers, split into package and subpath."""
    refs: list[RawReference] = []
    for source in extract_import_sources(plan_text):
        if should_skip(source):
            continue
        package, subpath = parse_package_name(source)
        refs.append(
            RawReference(raw=source, kind="import", owner=package, name=subpath)
        )
    return refs
