"""Next.js App Router API route checker."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel

from planproof.analysis.extractors.routes import extract_api_route_refs
from planproof.analysis.file_tree import scan_project_files
from planproof.analysis.indexers.routes import (
    RouteIndex,
    build_route_index,
    match_route,
)
from planproof.analysis.registry import code
from planproof.analysis.schemas import (
    CheckerResult,
    CheckOptions,
    RawReference,
    Reference,
    dedupe_references,
)
from planproof.analysis.suggest import format_suggestion, suggest
from planproof.constants import CheckerId, HallucinationCategory


class RouteAnalysis(BaseModel):
    route_index: RouteIndex
    references: list[Reference]


def _last_segment(url_path: str) -> str | None:
    segments = [s for s in url_path.split("/") if s]
    return segments[-1] if segments else None


def suggest_route(
    url_path: str, route_paths: Iterable[str], *, skip_params: bool = False
) -> str | None:
    """First indexed route whose last segment overlaps the requested one."""
    wanted = _last_segment(url_path)
    if wanted is None or (skip_params and wanted.startswith(":")):
        return None
    for route_path in route_paths:
        last = _last_segment(route_path)
        if last is None or (skip_params and last.startswith(":")):
            continue
        if suggest(wanted, [last]):
            return route_path
    return None


def methods_hint(methods: Iterable[str]) -> str:
    return f"valid methods: {', '.join(methods)}"


def validate_route_ref(ref: RawReference, index: RouteIndex) -> Reference:
    url_path = ref.owner or ""
    route = match_route(url_path, index)
    if route is None:
        return ref.resolve(
            False,
            HallucinationCategory.ROUTE,
            suggest_route(url_path, index.routes),
        )
    # A handler file with no recognised exports can't be judged
    if ref.method and route.methods and ref.method not in route.methods:
        return ref.resolve(
            False, HallucinationCategory.HTTP_METHOD, methods_hint(route.methods)
        )
    return ref.resolve(True)


def analyze_routes(plan_text: str, index: RouteIndex) -> list[Reference]:
    return dedupe_references(
        [validate_route_ref(r, index) for r in extract_api_route_refs(plan_text)]
    )


def route_issue_line(ref: Reference, *, missing_label: str) -> str:
    label = (
        missing_label
        if ref.category == HallucinationCategory.ROUTE
        else "method not allowed"
    )
    hint = f" ({format_suggestion(ref.suggestion)})" if ref.suggestion else ""
    return f"- {code(ref.raw)} — {label}{hint}"


class RoutesChecker:
    id = CheckerId.ROUTES
    display_name = "API Routes"
    experimental = False

    def run(
        self, plan_text: str, project_dir: Path, options: CheckOptions
    ) -> CheckerResult:
        tree = scan_project_files(
            project_dir, options.max_scan_depth, options.skip_directories
        )
        index = build_route_index(project_dir, tree)
        if not len(index):
            return CheckerResult.not_applicable(self.id)
        references = analyze_routes(plan_text, index)
        return CheckerResult.from_references(
            self.id,
            references,
            raw_analysis=RouteAnalysis(route_index=index, references=references),
        )

    def format_for_check_all(self, result: CheckerResult) -> list[str]:
        if not result.applicable:
            return []
        analysis: RouteAnalysis = result.raw_analysis
        lines = [
            "## API Routes",
            f"**{len(analysis.route_index)}** routes indexed, "
            f"**{result.checked}** refs — **{result.hallucinated}** hallucinated",
        ]
        lines.extend(
            route_issue_line(r, missing_label="not found")
            for r in analysis.references
            if r.hallucinated
        )
        if not result.hallucinated:
            lines.append("All route refs valid.")
        routes = ", ".join(
            f"{code(url)} [{','.join(route.methods)}]"
            for url, route in analysis.route_index.routes.items()
        )
        lines.append(f"**Routes:** {routes}")
        lines.append("")
        return lines

    def format_for_findings(self, result: CheckerResult) -> str | None:
        if not result.applicable or not result.hallucinated:
            return None
        analysis: RouteAnalysis = result.raw_analysis
        lines = [
            "### API Route Issues",
            "",
            f"Static analysis found {result.hallucinated} "
            "API route hallucination(s):",
            "",
        ]
        lines.extend(
            route_issue_line(r, missing_label="route not found")
            for r in analysis.references
            if r.hallucinated
        )
        return "\n".join(lines)
