"""Tests for Next.js App Router route indexing and checks."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from planproof.analysis.checkers.routes import RoutesChecker, suggest_route
from planproof.analysis.extractors.routes import extract_api_route_refs
from planproof.analysis.indexers.routes import (
    ApiRoute,
    RouteIndex,
    file_path_to_url_path,
    match_route,
    parse_route_methods,
)
from planproof.analysis.schemas import CheckOptions
from planproof.constants import HallucinationCategory

WriteTree = Callable[[dict[str, str]], Path]

_PLAN = """\
1. Call `DELETE /api/users/42` to remove a user.
2. Call POST /api/users/42 to update one.
3. Load the list with fetch('/api/user').
4. GET /api/users returns everything.
"""


@pytest.fixture
def project(write_tree: WriteTree) -> Path:
    return write_tree(
        {
            "app/api/users/route.ts": (
                "export async function GET() {}\n"
                "export async function POST() {}\n"
            ),
            "app/api/users/[id]/route.ts": (
                "export async function GET() {}\n"
                "export const DELETE = async () => {};\n"
            ),
            "app/api/(internal)/health/route.ts": "export function GET() {}\n",
        }
    )


class TestRouteIndex:
    def test_url_paths_drop_groups_and_handler(self) -> None:
        assert file_path_to_url_path("src/app/api/(admin)/users/route.ts") == (
            "/api/users"
        )
        assert file_path_to_url_path("app/route.ts") == "/"
        assert file_path_to_url_path("pages/api/users.ts") is None

    def test_methods_in_canonical_order(self) -> None:
        content = (
            "export const DELETE = handler;\n"
            "export async function GET(req: Request) {}\n"
        )
        assert parse_route_methods(content) == ["GET", "DELETE"]

    def test_dynamic_and_catch_all_segments(self) -> None:
        index = RouteIndex(
            routes={
                "/api/users/[id]": ApiRoute(
                    url_path="/api/users/[id]", file_path="a", methods=["GET"]
                ),
                "/docs/[...slug]": ApiRoute(
                    url_path="/docs/[...slug]", file_path="b", methods=["GET"]
                ),
            }
        )
        matched = match_route("/api/users/42", index)
        assert matched is not None
        assert matched.file_path == "a"
        matched = match_route("/docs/guides/setup", index)
        assert matched is not None
        assert matched.file_path == "b"
        assert match_route("/api/users", index) is None


class TestExtractRoutes:
    def test_refs_carry_methods(self) -> None:
        refs = extract_api_route_refs(_PLAN)
        assert [r.raw for r in refs] == [
            "/api/user",
            "DELETE /api/users/42",
            "POST /api/users/42",
            "GET /api/users",
        ]

    def test_fetch_with_method_option(self) -> None:
        refs = extract_api_route_refs(
            "fetch('/api/orders', { method: 'post' })"
        )
        assert any(r.method == "POST" and r.owner == "/api/orders" for r in refs)

    def test_non_api_paths_are_ignored(self) -> None:
        assert extract_api_route_refs("GET /health and `/dashboard`") == []


class TestRoutesChecker:
    def test_routes_and_methods(self, project: Path) -> None:
        checker = RoutesChecker()
        result = checker.run(_PLAN, project, CheckOptions())
        assert result.applicable
        assert result.checked == 4
        assert [(h.raw, h.category, h.suggestion) for h in result.hallucinations] == [
            ("/api/user", HallucinationCategory.ROUTE, "/api/users"),
            (
                "POST /api/users/42",
                HallucinationCategory.HTTP_METHOD,
                "valid methods: GET, DELETE",
            ),
        ]
        lines = checker.format_for_check_all(result)
        assert (
            "- `POST /api/users/42` — method not allowed "
            "(valid methods: GET, DELETE)"
        ) in lines

    def test_suggest_route_uses_last_segment(self) -> None:
        routes = ["/api/health", "/api/users"]
        assert suggest_route("/api/user", routes) == "/api/users"
        assert suggest_route("/api/orders", routes) is None

    def test_not_applicable_without_route_handlers(
        self, write_tree: WriteTree
    ) -> None:
        root = write_tree({"pages/index.tsx": "export default function P() {}"})
        result = RoutesChecker().run(_PLAN, root, CheckOptions())
        assert not result.applicable
