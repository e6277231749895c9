"""Next.js App Router route handlers (``app/**/route.ts``)."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pydantic import BaseModel, Field

from planproof.analysis.file_tree import FileTree, read_text
from planproof.constants import HTTP_METHODS

logger = logging.getLogger(__name__)

_METHODS = "|".join(HTTP_METHODS)
_ROUTE_FILE_RE = re.compile(r"(?:^|/)app/(?:.*/)?route\.(?:ts|js|tsx|jsx)$")
_HANDLER_RE = re.compile(r"/?route\.(?:ts|js|tsx|jsx)$")
_GROUP_SEGMENT_RE = re.compile(r"^\([^)]+\)$")
_EXPORT_FUNCTION_RE = re.compile(
    rf"export\s+(?:async\s+)?function\s+({_METHODS})\b"
)
_EXPORT_CONST_RE = re.compile(rf"export\s+const\s+({_METHODS})\s*=")


class ApiRoute(BaseModel):
    url_path: str
    file_path: str
    methods: list[str] = Field(default_factory=lambda: list[str]())


class RouteIndex(BaseModel):
    """URL path to route handler, in scan order."""

    routes: dict[str, ApiRoute] = Field(
        default_factory=lambda: dict[str, ApiRoute]()
    )

    def __len__(self) -> int:
        return len(self.routes)


def file_path_to_url_path(file_path: str) -> str | None:
    """``src/app/api/(admin)/users/route.ts`` becomes ``/api/users``.

    The routing root is the first path segment named ``app``; route
    group segments in parentheses do not appear in the URL.
    """
    segments = file_path.split("/")
    if "app" not in segments:
        return None
    rest = "/".join(segments[segments.index("app") + 1 :])
    rest = _HANDLER_RE.sub("", rest)
    kept = [s for s in rest.split("/") if s and not _GROUP_SEGMENT_RE.match(s)]
    return "/" + "/".join(kept)


def parse_route_methods(content: str) -> list[str]:
    """Exported handler methods in canonical HTTP method order."""
    found = set(_EXPORT_FUNCTION_RE.findall(content))
    found.update(_EXPORT_CONST_RE.findall(content))
    return [m for m in HTTP_METHODS if m in found]


def build_route_index(project_dir: Path, tree: FileTree) -> RouteIndex:
    index = RouteIndex()
    for rel in tree:
        if not _ROUTE_FILE_RE.search(rel):
            continue
        url_path = file_path_to_url_path(rel)
        if url_path is None:
            continue
        content = read_text(project_dir / rel)
        methods = parse_route_methods(content) if content is not None else []
        index.routes[url_path] = ApiRoute(
            url_path=url_path, file_path=rel, methods=methods
        )
    logger.debug("Indexed %d App Router routes", len(index))
    return index


def _is_dynamic(segment: str) -> bool:
    return segment.startswith("[") and segment.endswith("]")


def _is_catch_all(segment: str) -> bool:
    return segment.startswith(("[...", "[[..."))


def _segments_match(route: list[str], url: list[str]) -> bool:
    return all(_is_dynamic(r) or r == u for r, u in zip(route, url))


def match_route(url_path: str, index: RouteIndex) -> ApiRoute | None:
    """Exact path first, then ``[param]`` and ``[...catchAll]`` segments."""
    exact = index.routes.get(url_path)
    if exact is not None:
        return exact
    segments = [s for s in url_path.split("/") if s]
    for route_path, route in index.routes.items():
        route_segments = [s for s in route_path.split("/") if s]
        if route_segments and _is_catch_all(route_segments[-1]):
            prefix = route_segments[:-1]
            if len(segments) >= len(prefix) and _segments_match(prefix, segments):
                return route
        if len(route_segments) == len(segments) and _segments_match(
            route_segments, segments
        ):
            return route
    return None
