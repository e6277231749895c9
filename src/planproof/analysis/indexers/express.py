"""Express / Fastify routes registered with ``obj.<method>(path, ...)``.

Routes declared in a router file are prefixed with the path that
router is mounted on, when a ``app.use("/prefix", routerVar)`` call can
be traced back to that file through an import or ``require()``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, Field

from planproof.analysis.file_tree import FileTree, read_text
from planproof.analysis.indexers.packages import read_manifest
from planproof.constants import Framework

logger = logging.getLogger(__name__)

SOURCE_EXTENSIONS: tuple[str, ...] = (".ts", ".js", ".tsx", ".jsx")
_PROBE_SUFFIXES: tuple[str, ...] = (
    ".ts", ".js", ".tsx", ".jsx", "/index.ts", "/index.js",
)

_ROUTE_CALL_RE = re.compile(
    r"\b(\w+)\.(get|post|put|delete|patch|head|options|all)\s*\(\s*"
    r"[\"'`](/[^\"'`]*)[\"'`]",
    re.IGNORECASE,
)
_ROUTE_OBJECT_RE = re.compile(r"\b\w+\.route\s*\(\s*\{([^}]*)\}")
_ROUTE_OBJECT_METHOD_RE = re.compile(r"method\s*:\s*[\"'`](\w+)[\"'`]")
_ROUTE_OBJECT_URL_RE = re.compile(r"url\s*:\s*[\"'`](/[^\"'`]*)[\"'`]")
_MOUNT_RE = re.compile(
    r"\b\w+\.use\s*\(\s*[\"'`](/[^\"'`]*)[\"'`]\s*,\s*(\w+)\s*\)"
)


class ExpressRoute(BaseModel):
    method: str
    url_path: str
    file_path: str
    mount_prefix: str | None = None


class ExpressRouteIndex(BaseModel):
    framework: Framework = Framework.NONE
    routes: dict[str, list[ExpressRoute]] = Field(
        default_factory=lambda: dict[str, list[ExpressRoute]]()
    )

    def __len__(self) -> int:
        return len(self.routes)

    def methods_for(self, url_path: str) -> list[str]:
        return list(dict.fromkeys(r.method for r in self.routes.get(url_path, [])))


class _Mount(BaseModel):
    prefix: str
    router_var: str
    file_path: str


def detect_framework(project_dir: Path) -> Framework:
    """Express and/or Fastify from package.json dependencies."""
    manifest = read_manifest(project_dir)
    if manifest is None:
        return Framework.NONE
    deps: dict[str, object] = {}
    for field in ("dependencies", "devDependencies"):
        value = manifest.get(field)
        if isinstance(value, dict):
            deps.update(value)
    has_express = "express" in deps
    has_fastify = "fastify" in deps
    if has_express and has_fastify:
        return Framework.BOTH
    if has_express:
        return Framework.EXPRESS
    if has_fastify:
        return Framework.FASTIFY
    return Framework.NONE


def normalize_url_path(url_path: str) -> str:
    return re.sub(r"//+", "/", url_path).rstrip("/") or "/"


def extract_route_decls(content: str, file_path: str) -> list[ExpressRoute]:
    routes: list[ExpressRoute] = []
    for m in _ROUTE_CALL_RE.finditer(content):
        routes.append(
            ExpressRoute(
                method=m.group(2).upper(), url_path=m.group(3), file_path=file_path
            )
        )
    for m in _ROUTE_OBJECT_RE.finditer(content):
        method = _ROUTE_OBJECT_METHOD_RE.search(m.group(1))
        url = _ROUTE_OBJECT_URL_RE.search(m.group(1))
        if method and url:
            routes.append(
                ExpressRoute(
                    method=method.group(1).upper(),
                    url_path=url.group(1),
                    file_path=file_path,
                )
            )
    return routes


def resolve_router_import(
    content: str, router_var: str, file_path: str, tree: FileTree
) -> str | None:
    """File a router variable was imported or required from."""
    var = re.escape(router_var)
    patterns = (
        rf"import\s+(?:\{{[^}}]*\b{var}\b[^}}]*\}}|{var})\s+from\s+"
        rf"[\"'`]([^\"'`]+)[\"'`]",
        rf"(?:const|let|var)\s+{var}\s*=\s*require\s*\(\s*"
        rf"[\"'`]([^\"'`]+)[\"'`]",
    )
    for pattern in patterns:
        m = re.search(pattern, content)
        if m:
            return resolve_relative_path(m.group(1), file_path, tree)
    return None


def resolve_relative_path(
    specifier: str, from_file: str, tree: FileTree
) -> str | None:
    """Probe the tree for the file a relative specifier points at."""
    if not specifier.startswith("."):
        return None
    parts: list[str] = []
    for part in (PurePosixPath(from_file).parent / specifier).parts:
        if part == "..":
            if parts:
                parts.pop()
        elif part != ".":
            parts.append(part)
    target = "/".join(parts)
    if target in tree:
        return target
    base = target.removesuffix(".js")
    for candidate in (base, target):
        for suffix in _PROBE_SUFFIXES:
            if candidate + suffix in tree:
                return candidate + suffix
    return None


def build_express_route_index(
    project_dir: Path, tree: FileTree
) -> ExpressRouteIndex:
    index = ExpressRouteIndex(framework=detect_framework(project_dir))
    if index.framework == Framework.NONE:
        return index

    decls: list[ExpressRoute] = []
    mounts: list[_Mount] = []
    contents: dict[str, str] = {}
    for rel in tree.with_suffix(*SOURCE_EXTENSIONS):
        if rel.endswith(".d.ts"):
            continue
        content = read_text(project_dir / rel)
        if content is None:
            continue
        contents[rel] = content
        decls.extend(extract_route_decls(content, rel))
        mounts.extend(
            _Mount(prefix=m.group(1), router_var=m.group(2), file_path=rel)
            for m in _MOUNT_RE.finditer(content)
        )

    prefixes: dict[str, str] = {}
    for mount in mounts:
        router_file = resolve_router_import(
            contents[mount.file_path], mount.router_var, mount.file_path, tree
        )
        if router_file is not None:
            prefixes[router_file] = mount.prefix

    for decl in decls:
        prefix = prefixes.get(decl.file_path)
        if prefix:
            decl.mount_prefix = prefix
        decl.url_path = normalize_url_path((prefix or "") + decl.url_path)
        index.routes.setdefault(decl.url_path, []).append(decl)

    logger.debug(
        "Indexed %d %s routes (%d mounts)", len(index), index.framework, len(mounts)
    )
    return index


def _param_match(pattern: list[str], concrete: list[str]) -> bool:
    return len(pattern) == len(concrete) and all(
        p.startswith(":") or p == c for p, c in zip(pattern, concrete)
    )


def match_express_route(
    url_path: str, index: ExpressRouteIndex
) -> tuple[str, list[ExpressRoute]] | None:
    """Exact path, then ``:param`` in the route, then ``:param`` in the plan."""
    if url_path in index.routes:
        return url_path, index.routes[url_path]
    segments = [s for s in url_path.split("/") if s]
    candidates = [
        (path, [s for s in path.split("/") if s]) for path in index.routes
    ]
    for path, route_segments in candidates:
        if _param_match(route_segments, segments):
            return path, index.routes[path]
    for path, route_segments in candidates:
        if _param_match(segments, route_segments):
            return path, index.routes[path]
    return None
