"""Import bindings and ``binding.member`` accesses in the plan's code blocks."""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Literal

from pydantic import BaseModel

from planproof.analysis.extractors.imports import should_skip
from planproof.analysis.indexers.packages import parse_package_name
from planproof.analysis.schemas import RawReference
from planproof.analysis.text import code_blocks

ImportKind = Literal["default", "namespace", "named"]

# Members every JS value has; accessing them says nothing about the package
UNIVERSAL_MEMBERS = frozenset(
    {
        "toString", "valueOf", "constructor", "then", "catch", "finally",
        "message", "data", "name", "length", "prototype", "apply", "call",
        "bind", "hasOwnProperty", "isPrototypeOf", "propertyIsEnumerable",
        "toLocaleString",
    }
)

_ESM_RE = re.compile(r"\bimport\s+([^'\";]*?)\s+from\s+[\"']([^\"']+)[\"']")
_CJS_RE = re.compile(
    r"\b(?:const|let|var)\s+([\w{}\s,:*]+?)\s*=\s*require\s*\(\s*"
    r"[\"']([^\"']+)[\"']\s*\)"
)
_NAMESPACE_RE = re.compile(r"^\*\s+as\s+(\w+)$")
_DEFAULT_AND_NAMED_RE = re.compile(r"^(\w+)\s*,\s*\{([\s\S]*)\}$")
_DEFAULT_AND_NAMESPACE_RE = re.compile(r"^(\w+)\s*,\s*\*\s+as\s+(\w+)$")
_NAMED_RE = re.compile(r"^\{([\s\S]*)\}$")
_ALIAS_RE = re.compile(r"^(\w+)\s+as\s+(\w+)$")
_IDENT_RE = re.compile(r"^\w+$")
_MEMBER_RE = re.compile(r"\b(\w+)\.(\w+)\b")


class ImportBinding(BaseModel):
    """A local name bound by an import statement or ``require()``."""

    local_name: str
    package_name: str
    import_kind: ImportKind
    original_name: str | None = None

    @property
    def export_name(self) -> str:
        return self.original_name or self.local_name


AddBinding = Callable[[ImportBinding], None]


def _parse_named(inner: str, package: str, add: AddBinding) -> None:
    for part in (p.strip() for p in inner.split(",")):
        if not part or part.startswith("type "):
            continue
        alias = _ALIAS_RE.match(part)
        if alias:
            add(
                ImportBinding(
                    local_name=alias.group(2),
                    package_name=package,
                    import_kind="named",
                    original_name=alias.group(1),
                )
            )
        elif _IDENT_RE.match(part):
            add(
                ImportBinding(
                    local_name=part, package_name=package, import_kind="named"
                )
            )


def _parse_esm_specifiers(
    specifiers: str, package: str, add: AddBinding
) -> None:
    def bind(name: str, kind: ImportKind) -> None:
        add(ImportBinding(local_name=name, package_name=package, import_kind=kind))

    m = _NAMESPACE_RE.match(specifiers)
    if m:
        bind(m.group(1), "namespace")
        return
    m = _DEFAULT_AND_NAMED_RE.match(specifiers)
    if m:
        bind(m.group(1), "default")
        _parse_named(m.group(2), package, add)
        return
    m = _DEFAULT_AND_NAMESPACE_RE.match(specifiers)
    if m:
        bind(m.group(1), "default")
        bind(m.group(2), "namespace")
        return
    m = _NAMED_RE.match(specifiers)
    if m:
        _parse_named(m.group(1), package, add)
        return
    # import type X from ... binds nothing at runtime
    if not specifiers.startswith("type ") and _IDENT_RE.match(specifiers):
        bind(specifiers, "default")


def _parse_cjs_binding(binding: str, package: str, add: AddBinding) -> None:
    if not binding.startswith("{"):
        add(
            ImportBinding(
                local_name=binding, package_name=package, import_kind="default"
            )
        )
        return
    inner = binding[1 : binding.rfind("}")]
    for part in (p.strip() for p in inner.split(",")):
        if not part:
            continue
        original, colon, local = part.partition(":")
        if colon:
            add(
                ImportBinding(
                    local_name=local.strip(),
                    package_name=package,
                    import_kind="named",
                    original_name=original.strip(),
                )
            )
        else:
            add(
                ImportBinding(
                    local_name=part, package_name=package, import_kind="named"
                )
            )


def extract_import_bindings(plan_text: str) -> list[ImportBinding]:
    """ESM and CommonJS bindings to third-party packages.

    Only fenced code blocks are read: prose mentions of ``import`` are
    too loose to bind names.
    """
    text = "\n".join(code_blocks(plan_text))
    bindings: dict[tuple[str, str, str], ImportBinding] = {}

    def add(binding: ImportBinding) -> None:
        key = (binding.local_name, binding.package_name, binding.import_kind)
        bindings.setdefault(key, binding)

    for m in _ESM_RE.finditer(text):
        if not should_skip(m.group(2)):
            package, _ = parse_package_name(m.group(2))
            _parse_esm_specifiers(m.group(1).strip(), package, add)

    for m in _CJS_RE.finditer(text):
        if not should_skip(m.group(2)):
            package, _ = parse_package_name(m.group(2))
            _parse_cjs_binding(m.group(1).strip(), package, add)

    return list(bindings.values())


def extract_api_refs(
    plan_text: str, bindings: list[ImportBinding]
) -> list[RawReference]:
    """``binding.member`` accesses on imported names, first occurrence only."""
    text = "\n".join(code_blocks(plan_text))
    local_names = {b.local_name for b in bindings}
    refs: dict[str, RawReference] = {}
    for m in _MEMBER_RE.finditer(text):
        obj, member = m.group(1), m.group(2)
        if obj not in local_names or member in UNIVERSAL_MEMBERS:
            continue
        raw = f"{obj}.{member}"
        refs.setdefault(
            raw, RawReference(raw=raw, kind="member", owner=obj, name=member)
        )
    return list(refs.values())
