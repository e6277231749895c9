"""Installed package manifests and declaration-file export surfaces.

Two consumers share this module. The imports checker only needs to know
whether a package is installed and which subpaths its ``exports`` map
allows. The package API checker needs the names a package's ``.d.ts``
entrypoint exports, plus member lists for exported interfaces and
classes; those parses are memoized in a :class:`PackageApiCache`.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from planproof.analysis.file_tree import read_text
from planproof.analysis.indexers.types import (
    TypeMember,
    parse_class_members,
    parse_object_members,
)
from planproof.constants import DECLARATION_EXTENSIONS, PACKAGE_REEXPORT_MAX_DEPTH

logger = logging.getLogger(__name__)

_DECLARED_RE = re.compile(
    r"^export\s+(?:declare\s+)?(?:function|const|let|var|class|"
    r"abstract\s+class|interface|type|enum|namespace)\s+(\w+)",
    re.MULTILINE,
)
_EXPORT_LIST_RE = re.compile(r"^export\s*\{([^}]+)\}", re.MULTILINE)
_STAR_REEXPORT_RE = re.compile(
    r"^export\s+\*\s+from\s+[\"']([^\"']+)[\"']", re.MULTILINE
)
_STAR_AS_RE = re.compile(
    r"^export\s+\*\s+as\s+(\w+)\s+from\s+[\"']([^\"']+)[\"']", re.MULTILINE
)
_INTERFACE_RE = re.compile(
    r"^(?:export\s+(?:declare\s+)?)?interface\s+(\w+)(?:<[^{]*?>)?"
    r"(?:\s+extends\s+[\w\s,<>.]+)?\s*\{([\s\S]*?)^\}",
    re.MULTILINE,
)
_CLASS_RE = re.compile(
    r"^(?:export\s+(?:declare\s+)?)?(?:abstract\s+)?class\s+(\w+)"
    r"(?:\s+(?:extends|implements)[\s\S]*?)?\s*\{([\s\S]*?)^\}",
    re.MULTILINE,
)
_ALIAS_RE = re.compile(r"^(\w+)\s+as\s+(\w+)$")
_IDENT_RE = re.compile(r"^\w+$")
_JS_EXTENSION_RE = re.compile(r"\.(?:js|cjs|mjs|ts|cts|mts)$")


class PackageApi(BaseModel):
    """Exported names of one package, in declaration order."""

    exports: list[str] = Field(default_factory=lambda: list[str]())
    members_by_export: dict[str, dict[str, TypeMember]] = Field(
        default_factory=lambda: dict[str, dict[str, TypeMember]]()
    )

    def has_member(self, name: str) -> bool:
        """True when any exported interface or class declares ``name``."""
        return any(name in members for members in self.members_by_export.values())


class PackageApiCache:
    """Parsed :class:`PackageApi` per resolved entrypoint path.

    One cache is owned by each package API checker instance; tests pass
    a fresh one to keep runs independent.
    """

    def __init__(self) -> None:
        self._apis: dict[Path, PackageApi] = {}

    def get(self, entrypoint: Path) -> PackageApi | None:
        return self._apis.get(entrypoint.resolve())

    def put(self, entrypoint: Path, api: PackageApi) -> None:
        self._apis[entrypoint.resolve()] = api

    def clear(self) -> None:
        self._apis.clear()

    def __len__(self) -> int:
        return len(self._apis)


# ── Package names and manifests ─────────────────────────────


def parse_package_name(source: str) -> tuple[str, str | None]:
    """Split an import specifier into ``(package, subpath)``.

    ``@scope/name/sub/path`` gives ``("@scope/name", "sub/path")``.
    """
    parts = source.split("/")
    if source.startswith("@"):
        if len(parts) < 2:
            return source, None
        return "/".join(parts[:2]), "/".join(parts[2:]) or None
    return parts[0], "/".join(parts[1:]) or None


def read_manifest(package_dir: Path) -> dict[str, Any] | None:
    """Parse ``package.json``; None when missing or malformed."""
    content = read_text(package_dir / "package.json")
    if content is None:
        return None
    try:
        manifest = json.loads(content)
    except json.JSONDecodeError:
        logger.debug("Malformed package.json in %s", package_dir)
        return None
    return manifest if isinstance(manifest, dict) else None


def list_installed_packages(
    node_modules: Path, scope: str | None = None
) -> list[str]:
    """Top-level entries of ``node_modules`` (or of one ``@scope``)."""
    directory = node_modules / scope if scope else node_modules
    try:
        entries = sorted(p.name for p in directory.iterdir())
    except OSError:
        return []
    return [e for e in entries if not e.startswith(".")]


def flatten_export_subpaths(exports: Any) -> list[str]:
    """Subpath keys (``"."``, ``"./foo"``, ``"./foo/*"``) of an exports map.

    Condition keys (``import``, ``require``, ``types``...) are walked
    through; a bare string exports map exposes only the root.
    """
    if isinstance(exports, str):
        return ["."]
    subpaths: dict[str, None] = {}

    def walk(node: dict[str, Any]) -> None:
        for key, value in node.items():
            if key.startswith("."):
                subpaths[key] = None
            elif isinstance(value, dict):
                walk(value)

    if isinstance(exports, dict):
        walk(exports)
    return list(subpaths)


def read_package_exports(package_dir: Path) -> list[str] | None:
    """Allowed subpaths, or None for a legacy package without ``exports``."""
    manifest = read_manifest(package_dir)
    if manifest is None or "exports" not in manifest:
        return None
    return flatten_export_subpaths(manifest["exports"])


def match_subpath(subpath: str, patterns: list[str]) -> bool:
    requested = f"./{subpath}"
    if requested in patterns:
        return True
    for pattern in patterns:
        if "*" not in pattern:
            continue
        if pattern.endswith("/*") and requested.startswith(pattern[:-1]):
            return True
        regex = "^" + "[^/]+".join(re.escape(p) for p in pattern.split("*")) + "$"
        if re.match(regex, requested):
            return True
    return False


# ── Declaration entrypoints ──────────────────────────────────


def _existing(path: Path) -> Path | None:
    return path if path.is_file() else None


def _substitute_declaration(path: Path) -> Path | None:
    base = _JS_EXTENSION_RE.sub("", path.as_posix())
    for ext in DECLARATION_EXTENSIONS:
        candidate = Path(base + ext)
        if candidate.is_file():
            return candidate
    return None


def _types_from_condition(entry: Any, package_dir: Path) -> Path | None:
    if isinstance(entry, str):
        if entry.endswith(DECLARATION_EXTENSIONS):
            return _existing(package_dir / entry)
        return None
    if not isinstance(entry, dict):
        return None
    types = entry.get("types")
    if isinstance(types, str):
        found = _existing(package_dir / types)
        if found:
            return found
    for key, value in entry.items():
        if key != "types" and isinstance(value, dict):
            found = _types_from_condition(value, package_dir)
            if found:
                return found
    return None


def resolve_types_entrypoint(package_dir: Path) -> Path | None:
    """Locate the declaration file a type checker would load.

    Precedence: ``exports["."]`` conditions, ``types``, ``typings``,
    ``main`` with a declaration extension, ``index.d.ts`` and friends,
    then ``@types/<name>`` (``@types/scope__name`` for scoped packages).
    """
    manifest = read_manifest(package_dir)
    if manifest is None:
        return None

    exports = manifest.get("exports")
    if isinstance(exports, dict):
        root = exports.get(".", exports)
        found = _types_from_condition(root, package_dir)
        if found:
            return found

    for field in ("types", "typings"):
        value = manifest.get(field)
        if isinstance(value, str):
            found = _existing(package_dir / value)
            if found:
                return found

    main = manifest.get("main")
    if isinstance(main, str):
        found = _substitute_declaration(package_dir / main)
        if found:
            return found

    for ext in DECLARATION_EXTENSIONS:
        found = _existing(package_dir / f"index{ext}")
        if found:
            return found

    scope = package_dir.parent.name
    if scope.startswith("@"):
        types_name = f"{scope[1:]}__{package_dir.name}"
        node_modules = package_dir.parent.parent
    else:
        types_name = package_dir.name
        node_modules = package_dir.parent
    types_dir = node_modules / "@types" / types_name
    if types_dir != package_dir and types_dir.is_dir():
        return resolve_types_entrypoint(types_dir)
    return None


def find_node_modules_dir(start: Path) -> Path | None:
    """Nearest ``node_modules`` at or above ``start``."""
    for directory in (start, *start.parents):
        candidate = directory / "node_modules"
        if candidate.is_dir():
            return candidate
    return None


# ── Export parsing ───────────────────────────────────────────


def _export_list_names(inner: str) -> list[str]:
    names: list[str] = []
    for part in (p.strip() for p in inner.split(",")):
        if not part or part.startswith("type "):
            continue
        alias = _ALIAS_RE.match(part)
        if alias:
            names.append(alias.group(2))
        elif _IDENT_RE.match(part):
            names.append(part)
    return names


def _resolve_reexport(
    specifier: str, current_file: Path, package_dir: Path, cross_package: bool
) -> tuple[Path | None, bool]:
    """Declaration file behind a re-export, and whether it left the package."""
    if specifier.startswith("."):
        target = (current_file.parent / specifier).as_posix()
        base = re.sub(r"\.(?:js|cjs|mjs)$", "", target)
        for ext in DECLARATION_EXTENSIONS:
            if Path(base + ext).is_file():
                return Path(base + ext), False
        for ext in DECLARATION_EXTENSIONS:
            index = Path(base) / f"index{ext}"
            if index.is_file():
                return index, False
        return None, False
    if cross_package:
        return None, False
    node_modules = find_node_modules_dir(package_dir)
    if node_modules is None:
        return None, False
    name, _ = parse_package_name(specifier)
    dependency = node_modules / name
    if not dependency.is_dir():
        return None, False
    return resolve_types_entrypoint(dependency), True


def parse_exported_api(
    content: str,
    file_path: Path,
    package_dir: Path,
    depth: int = 0,
    *,
    cross_package: bool = False,
) -> PackageApi:
    """Collect exported names from a declaration file.

    ``export * from`` is followed up to :data:`PACKAGE_REEXPORT_MAX_DEPTH`
    files deep, and at most once into another package.
    """
    exports: dict[str, None] = {}
    members: dict[str, dict[str, TypeMember]] = {}

    for m in _DECLARED_RE.finditer(content):
        exports[m.group(1)] = None
    for m in _EXPORT_LIST_RE.finditer(content):
        exports.update(dict.fromkeys(_export_list_names(m.group(1))))

    if depth < PACKAGE_REEXPORT_MAX_DEPTH:
        for m in _STAR_REEXPORT_RE.finditer(content):
            target, hopped = _resolve_reexport(
                m.group(1), file_path, package_dir, cross_package
            )
            if target is None:
                continue
            sub_content = read_text(target)
            if sub_content is None:
                continue
            sub = parse_exported_api(
                sub_content,
                target,
                package_dir,
                depth + 1,
                cross_package=cross_package or hopped,
            )
            exports.update(dict.fromkeys(sub.exports))
            members.update(sub.members_by_export)
        for m in _STAR_AS_RE.finditer(content):
            exports[m.group(1)] = None

    for m in _INTERFACE_RE.finditer(content):
        if m.group(1) in exports:
            members[m.group(1)] = parse_object_members(m.group(2))
    for m in _CLASS_RE.finditer(content):
        if m.group(1) in exports:
            members[m.group(1)] = parse_class_members(m.group(2))

    return PackageApi(exports=list(exports), members_by_export=members)


def resolve_package_api(
    node_modules: Path, package_name: str, cache: PackageApiCache
) -> PackageApi | None:
    """Exported API of an installed package, memoized in ``cache``."""
    package_dir = node_modules / package_name
    if not package_dir.is_dir():
        return None
    entrypoint = resolve_types_entrypoint(package_dir)
    if entrypoint is None:
        logger.debug("No type declarations for %s", package_name)
        return None
    cached = cache.get(entrypoint)
    if cached is not None:
        return cached
    content = read_text(entrypoint)
    if content is None:
        return None
    api = parse_exported_api(content, entrypoint, package_dir)
    cache.put(entrypoint, api)
    logger.debug(
        "Parsed %s: %d exports from %s", package_name, len(api.exports), entrypoint
    )
    return api
