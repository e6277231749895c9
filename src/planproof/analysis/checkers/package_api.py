"""Package API checker (experimental): named imports and member access
against the export surface of installed packages' type declarations.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from planproof.analysis.extractors.packages import (
    ImportBinding,
    extract_api_refs,
    extract_import_bindings,
)
from planproof.analysis.indexers.packages import (
    PackageApi,
    PackageApiCache,
    resolve_package_api,
)
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

MAX_LISTED_EXPORTS = 20


class PackageApiAnalysis(BaseModel):
    apis: dict[str, PackageApi]
    bindings: list[ImportBinding]
    references: list[Reference]

    @property
    def checked_bindings(self) -> int:
        return sum(1 for r in self.references if r.kind == "named-import")

    @property
    def checked_members(self) -> int:
        return sum(1 for r in self.references if r.kind == "member")


def named_import_ref(binding: ImportBinding) -> RawReference:
    return RawReference(
        raw=f"import {{ {binding.export_name} }} from '{binding.package_name}'",
        kind="named-import",
        owner=binding.package_name,
        name=binding.export_name,
    )


def validate_named_import(ref: RawReference, api: PackageApi) -> Reference:
    name = ref.name or ""
    if name in api.exports:
        return ref.resolve(True)
    return ref.resolve(
        False, HallucinationCategory.NAMED_IMPORT, suggest(name, api.exports)
    )


def validate_member_access(
    ref: RawReference, binding: ImportBinding, api: PackageApi
) -> Reference:
    """Namespace and default bindings resolve against the flat export set;
    named bindings against the members of the imported interface or class.
    """
    member = ref.name or ""
    if binding.import_kind == "named":
        members = api.members_by_export.get(binding.export_name)
        # Functions and constants carry no member list to check against
        if not members or member in members:
            return ref.resolve(True)
        return ref.resolve(
            False, HallucinationCategory.MEMBER, suggest(member, members)
        )
    if member in api.exports or api.has_member(member):
        return ref.resolve(True)
    return ref.resolve(
        False, HallucinationCategory.MEMBER, suggest(member, api.exports)
    )


def analyze_package_api(
    plan_text: str,
    node_modules: Path,
    cache: PackageApiCache,
) -> PackageApiAnalysis:
    bindings = extract_import_bindings(plan_text)
    apis: dict[str, PackageApi] = {}
    for package in dict.fromkeys(b.package_name for b in bindings):
        api = resolve_package_api(node_modules, package, cache)
        if api is not None:
            apis[package] = api

    references: list[Reference] = []
    for binding in bindings:
        api = apis.get(binding.package_name)
        if api is not None and binding.import_kind == "named":
            references.append(validate_named_import(named_import_ref(binding), api))

    by_local: dict[str, ImportBinding] = {}
    for binding in bindings:
        by_local.setdefault(binding.local_name, binding)
    for raw in extract_api_refs(plan_text, bindings):
        binding = by_local[raw.owner or ""]
        api = apis.get(binding.package_name)
        if api is not None:
            references.append(validate_member_access(raw, binding, api))

    return PackageApiAnalysis(
        apis=apis,
        bindings=bindings,
        references=dedupe_references(references),
    )


class PackageApiChecker:
    id = CheckerId.PACKAGE_API
    display_name = "Package API"
    experimental = True

    def __init__(self, cache: PackageApiCache | None = None) -> None:
        self.cache = cache if cache is not None else PackageApiCache()

    def run(
        self, plan_text: str, project_dir: Path, options: CheckOptions
    ) -> CheckerResult:
        node_modules = project_dir / "node_modules"
        if not node_modules.is_dir():
            return CheckerResult.not_applicable(self.id)
        analysis = analyze_package_api(plan_text, node_modules, self.cache)
        if not analysis.apis:
            return CheckerResult.not_applicable(self.id)
        return CheckerResult.from_references(
            self.id, analysis.references, raw_analysis=analysis
        )

    def format_for_check_all(self, result: CheckerResult) -> list[str]:
        if not result.applicable:
            return []
        analysis: PackageApiAnalysis = result.raw_analysis
        lines = [
            "## Package API",
            f"**{analysis.checked_bindings}** named imports, "
            f"**{analysis.checked_members}** member accesses checked — "
            f"**{result.hallucinated}** hallucinated",
        ]
        for ref in analysis.references:
            if not ref.hallucinated:
                continue
            label = (
                "not exported"
                if ref.category == HallucinationCategory.NAMED_IMPORT
                else "member not found"
            )
            hint = (
                f" ({format_suggestion(ref.suggestion)})" if ref.suggestion else ""
            )
            lines.append(f"- {code(ref.raw)} — {label}{hint}")
            package = self._package_of(ref, analysis)
            api = analysis.apis.get(package) if package else None
            if api is not None:
                available = ", ".join(api.exports[:MAX_LISTED_EXPORTS])
                lines.append(f"  - Available exports: {available}")
        if not result.hallucinated:
            lines.append("All package API refs valid.")
        lines.append("")
        return lines

    def format_for_findings(self, result: CheckerResult) -> str | None:
        return findings_section(
            "Package API Issues", "package API hallucination(s)", result
        )

    @staticmethod
    def _package_of(ref: Reference, analysis: PackageApiAnalysis) -> str | None:
        if ref.kind == "named-import":
            return ref.owner
        for binding in analysis.bindings:
            if binding.local_name == ref.owner:
                return binding.package_name
        return None
