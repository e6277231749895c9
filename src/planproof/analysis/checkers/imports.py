"""Package import checker: installed packages and exported subpaths."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from planproof.analysis.extractors.imports import extract_import_refs
from planproof.analysis.indexers.packages import (
    list_installed_packages,
    match_subpath,
    read_package_exports,
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

MAX_LISTED_SUBPATHS = 5


class ImportAnalysis(BaseModel):
    node_modules: Path
    references: list[Reference]


def suggest_package(name: str, node_modules: Path) -> str | None:
    """Closest installed package; scoped names only look inside their scope."""
    if name.startswith("@"):
        scope, _, bare = name.partition("/")
        entry = suggest(bare, list_installed_packages(node_modules, scope))
        return f"{scope}/{entry}" if entry else None
    installed = [e for e in list_installed_packages(node_modules) if e != name]
    return suggest(name, installed)


def validate_import_ref(ref: RawReference, node_modules: Path) -> Reference:
    package = ref.owner or ref.raw
    package_dir = node_modules / package
    if not (package_dir / "package.json").is_file():
        return ref.resolve(
            False,
            HallucinationCategory.PACKAGE_NOT_FOUND,
            suggest_package(package, node_modules),
        )
    if ref.name is None:
        return ref.resolve(True)
    # Legacy packages without an exports map can't be checked for subpaths
    subpaths = read_package_exports(package_dir)
    if subpaths is None or match_subpath(ref.name, subpaths):
        return ref.resolve(True)
    available = [s.removeprefix("./") for s in subpaths if s != "."]
    hint = (
        f"available: {', '.join(available[:MAX_LISTED_SUBPATHS])}"
        if available
        else None
    )
    return ref.resolve(False, HallucinationCategory.SUBPATH_NOT_EXPORTED, hint)


def analyze_imports(plan_text: str, node_modules: Path) -> list[Reference]:
    return dedupe_references(
        [validate_import_ref(r, node_modules) for r in extract_import_refs(plan_text)]
    )


def _issue_line(ref: Reference, *, installed_label: str) -> str:
    reason = (
        installed_label
        if ref.category == HallucinationCategory.PACKAGE_NOT_FOUND
        else "subpath not exported"
    )
    hint = f" ({format_suggestion(ref.suggestion)})" if ref.suggestion else ""
    return f"- {code(ref.raw)} — {reason}{hint}"


class ImportsChecker:
    id = CheckerId.IMPORTS
    display_name = "Imports"
    experimental = False

    def run(
        self, plan_text: str, project_dir: Path, options: CheckOptions
    ) -> CheckerResult:
        node_modules = project_dir / "node_modules"
        if not node_modules.is_dir():
            return CheckerResult.not_applicable(self.id)
        references = analyze_imports(plan_text, node_modules)
        return CheckerResult.from_references(
            self.id,
            references,
            raw_analysis=ImportAnalysis(
                node_modules=node_modules, references=references
            ),
        )

    def format_for_check_all(self, result: CheckerResult) -> list[str]:
        if not result.applicable:
            return []
        analysis: ImportAnalysis = result.raw_analysis
        lines = [
            "## Imports",
            f"**{result.checked}** checked — **{result.hallucinated}** hallucinated",
        ]
        lines.extend(
            _issue_line(r, installed_label="not installed")
            for r in analysis.references
            if r.hallucinated
        )
        if not result.hallucinated:
            lines.append("All imports valid.")
        lines.append("")
        return lines

    def format_for_findings(self, result: CheckerResult) -> str | None:
        if not result.applicable or not result.hallucinated:
            return None
        analysis: ImportAnalysis = result.raw_analysis
        lines = [
            "### Import Issues",
            "",
            f"Static analysis found {result.hallucinated} hallucinated import(s):",
            "",
        ]
        lines.extend(
            _issue_line(r, installed_label="package not found")
            for r in analysis.references
            if r.hallucinated
        )
        return "\n".join(lines)
