"""Express / Fastify route checker."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from planproof.analysis.checkers.routes import (
    methods_hint,
    route_issue_line,
    suggest_route,
)
from planproof.analysis.extractors.routes import extract_express_route_refs
from planproof.analysis.file_tree import scan_project_files
from planproof.analysis.indexers.express import (
    ExpressRouteIndex,
    build_express_route_index,
    match_express_route,
)
from planproof.analysis.registry import code
from planproof.analysis.schemas import (
    CheckerResult,
    CheckOptions,
    RawReference,
    Reference,
    dedupe_references,
)
from planproof.constants import CheckerId, Framework, HallucinationCategory

_FRAMEWORK_LABELS = {
    Framework.EXPRESS: "Express",
    Framework.FASTIFY: "Fastify",
    Framework.BOTH: "Express/Fastify",
}


class ExpressRouteAnalysis(BaseModel):
    route_index: ExpressRouteIndex
    references: list[Reference]

    @property
    def framework_label(self) -> str:
        return _FRAMEWORK_LABELS.get(self.route_index.framework, "Express")


def validate_express_ref(
    ref: RawReference, index: ExpressRouteIndex
) -> Reference:
    url_path = ref.owner or ""
    matched = match_express_route(url_path, index)
    if matched is None:
        return ref.resolve(
            False,
            HallucinationCategory.ROUTE,
            suggest_route(url_path, index.routes, skip_params=True),
        )
    route_path, _ = matched
    methods = index.methods_for(route_path)
    if ref.method and ref.method not in methods and "ALL" not in methods:
        return ref.resolve(
            False, HallucinationCategory.HTTP_METHOD, methods_hint(methods)
        )
    return ref.resolve(True)


def analyze_express_routes(
    plan_text: str, index: ExpressRouteIndex
) -> list[Reference]:
    return dedupe_references(
        [validate_express_ref(r, index) for r in extract_express_route_refs(plan_text)]
    )


class ExpressRoutesChecker:
    id = CheckerId.EXPRESS_ROUTES
    display_name = "Express/Fastify Routes"
    experimental = False

    def run(
        self, plan_text: str, project_dir: Path, options: CheckOptions
    ) -> CheckerResult:
        tree = scan_project_files(
            project_dir, options.max_scan_depth, options.skip_directories
        )
        index = build_express_route_index(project_dir, tree)
        if not len(index):
            return CheckerResult.not_applicable(self.id)
        references = analyze_express_routes(plan_text, index)
        return CheckerResult.from_references(
            self.id,
            references,
            raw_analysis=ExpressRouteAnalysis(
                route_index=index, references=references
            ),
        )

    def format_for_check_all(self, result: CheckerResult) -> list[str]:
        if not result.applicable:
            return []
        analysis: ExpressRouteAnalysis = result.raw_analysis
        index = analysis.route_index
        label = analysis.framework_label.replace("/", " + ")
        lines = [
            f"## {label} Routes",
            f"**{len(index)}** routes indexed, **{result.checked}** refs — "
            f"**{result.hallucinated}** hallucinated",
        ]
        lines.extend(
            route_issue_line(r, missing_label="not found")
            for r in analysis.references
            if r.hallucinated
        )
        if not result.hallucinated:
            lines.append("All route refs valid.")
        entries = [
            f"{code(url)} [{','.join(index.methods_for(url))}] → "
            f"{code(routes[0].file_path)}"
            for url, routes in index.routes.items()
        ]
        lines.append(f"**Routes:** {', '.join(entries)}")
        lines.append("")
        return lines

    def format_for_findings(self, result: CheckerResult) -> str | None:
        if not result.applicable or not result.hallucinated:
            return None
        analysis: ExpressRouteAnalysis = result.raw_analysis
        label = analysis.framework_label
        lines = [
            f"### {label} Route Issues",
            "",
            f"Static analysis found {result.hallucinated} {label} "
            "route hallucination(s):",
            "",
        ]
        lines.extend(
            route_issue_line(r, missing_label="route not found")
            for r in analysis.references
            if r.hallucinated
        )
        return "\n".join(lines)
