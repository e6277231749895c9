"""TypeScript type checker (experimental)."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from planproof.analysis.extractors.types import extract_type_refs
from planproof.analysis.file_tree import scan_project_files
from planproof.analysis.indexers.types import TypeIndex, build_type_index
from planproof.analysis.registry import code, findings_section
from planproof.analysis.schemas import (
    CheckerResult,
    CheckOptions,
    RawReference,
    Reference,
    dedupe_references,
)
from planproof.analysis.suggest import format_suggestion, suggest
from planproof.constants import CheckerId, HallucinationCategory

# Member lists at most this long are spelled out when nothing matches
MAX_LISTED_MEMBERS = 8


class TypeAnalysis(BaseModel):
    type_index: TypeIndex
    references: list[Reference]


def validate_type_ref(ref: RawReference, index: TypeIndex) -> Reference:
    owner = ref.owner or ""
    decl = index.get(owner)
    if decl is None:
        return ref.resolve(
            False,
            HallucinationCategory.TYPE,
            suggest(owner, index.declarations),
        )
    # Aliases and unions carry no member list to check against
    if ref.name is None or not decl.members or ref.name in decl.members:
        return ref.resolve(True)
    hint = suggest(ref.name, decl.members)
    if hint is None and len(decl.members) <= MAX_LISTED_MEMBERS:
        hint = f"valid members: {', '.join(decl.members)}"
    return ref.resolve(False, HallucinationCategory.MEMBER, hint)


def analyze_types(plan_text: str, index: TypeIndex) -> list[Reference]:
    return dedupe_references(
        [validate_type_ref(raw, index) for raw in extract_type_refs(plan_text)]
    )


class TypesChecker:
    id = CheckerId.TYPES
    display_name = "TypeScript Types"
    experimental = True

    def run(
        self, plan_text: str, project_dir: Path, options: CheckOptions
    ) -> CheckerResult:
        tree = scan_project_files(
            project_dir, options.max_scan_depth, options.skip_directories
        )
        index = build_type_index(project_dir, tree)
        if not len(index):
            return CheckerResult.not_applicable(self.id)
        references = analyze_types(plan_text, index)
        return CheckerResult.from_references(
            self.id,
            references,
            raw_analysis=TypeAnalysis(type_index=index, references=references),
        )

    def format_for_check_all(self, result: CheckerResult) -> list[str]:
        if not result.applicable:
            return []
        analysis: TypeAnalysis = result.raw_analysis
        lines = [
            "## TypeScript Types",
            f"**{len(analysis.type_index)}** declared types, "
            f"**{result.checked}** refs checked — "
            f"**{result.hallucinated}** hallucinated",
        ]
        for ref in analysis.references:
            if not ref.hallucinated:
                continue
            label = (
                "type not found"
                if ref.category == HallucinationCategory.TYPE
                else "member not found"
            )
            hint = (
                f" ({format_suggestion(ref.suggestion)})" if ref.suggestion else ""
            )
            lines.append(f"- {code(ref.raw)} — {label}{hint}")
            decl = analysis.type_index.get(ref.owner or "")
            if decl is not None:
                lines.append(f"  - Declared in {code(decl.source_file)}")
        if not result.hallucinated:
            lines.append("All type refs valid.")
        lines.append("")
        return lines

    def format_for_findings(self, result: CheckerResult) -> str | None:
        return findings_section(
            "Type Issues", "TypeScript type hallucination(s)", result
        )
