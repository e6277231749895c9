"""Supabase schema checker: tables, columns and RPC functions."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from planproof.analysis.extractors.supabase import extract_supabase_refs
from planproof.analysis.file_tree import scan_project_files
from planproof.analysis.indexers.supabase import (
    SupabaseSchema,
    load_supabase_schema,
)
from planproof.analysis.registry import code, code_list, findings_section
from planproof.analysis.schemas import (
    CheckerResult,
    CheckOptions,
    RawReference,
    Reference,
    dedupe_references,
)
from planproof.analysis.suggest import format_suggestion, suggest
from planproof.constants import CheckerId, HallucinationCategory


class SupabaseAnalysis(BaseModel):
    supabase_schema: SupabaseSchema
    references: list[Reference]


def validate_supabase_ref(
    ref: RawReference, schema: SupabaseSchema
) -> Reference | None:
    """Judge one reference.

    Columns whose table is unknown are dropped: the ``.from()`` call
    naming that table is already reported on its own.
    """
    if ref.kind == "function":
        name = ref.name or ""
        if name in schema.functions:
            return ref.resolve(True)
        return ref.resolve(
            False,
            HallucinationCategory.FUNCTION,
            suggest(name, schema.functions),
        )

    owner = ref.owner or ""
    table = schema.tables.get(owner)
    if table is None:
        if ref.kind == "table":
            return ref.resolve(
                False,
                HallucinationCategory.TABLE,
                suggest(owner, schema.tables),
            )
        return None
    if ref.name is None or ref.name in table.columns:
        return ref.resolve(True)
    return ref.resolve(
        False, HallucinationCategory.COLUMN, suggest(ref.name, table.columns)
    )


def analyze_supabase(
    plan_text: str, schema: SupabaseSchema
) -> list[Reference]:
    references: list[Reference] = []
    for raw in extract_supabase_refs(plan_text):
        ref = validate_supabase_ref(raw, schema)
        if ref is not None:
            references.append(ref)
    return dedupe_references(references)


class SupabaseSchemaChecker:
    id = CheckerId.SUPABASE_SCHEMA
    display_name = "Supabase Schema"
    experimental = False

    def run(
        self, plan_text: str, project_dir: Path, options: CheckOptions
    ) -> CheckerResult:
        tree = scan_project_files(
            project_dir, options.max_scan_depth, options.skip_directories
        )
        schema = load_supabase_schema(project_dir, tree)
        if schema is None or not schema.tables:
            return CheckerResult.not_applicable(self.id)
        references = analyze_supabase(plan_text, schema)
        return CheckerResult.from_references(
            self.id,
            references,
            raw_analysis=SupabaseAnalysis(
                supabase_schema=schema, references=references
            ),
        )

    def format_for_check_all(self, result: CheckerResult) -> list[str]:
        if not result.applicable:
            return []
        analysis: SupabaseAnalysis = result.raw_analysis
        schema = analysis.supabase_schema
        lines = [
            "## Supabase Schema",
            f"**{len(schema.tables)}** tables, "
            f"**{len(schema.functions)}** functions "
            f"(from {code(schema.types_file or '?')}), "
            f"**{result.checked}** refs — "
            f"**{result.hallucinated}** hallucinated",
        ]
        for ref in analysis.references:
            if ref.hallucinated:
                hint = (
                    f" ({format_suggestion(ref.suggestion)})"
                    if ref.suggestion
                    else ""
                )
                lines.append(f"- {code(ref.raw)} — {ref.category}{hint}")
        if not result.hallucinated:
            lines.append("All Supabase refs valid.")
        lines.append("")
        for table in schema.tables.values():
            lines.append(
                f"- {code(table.name)}: {code_list(list(table.columns))}"
            )
        if schema.functions:
            lines.append(f"**Functions:** {code_list(list(schema.functions))}")
        if schema.enums:
            enums = ", ".join(
                f"{name} ({' | '.join(values)})"
                for name, values in schema.enums.items()
            )
            lines.append(f"**Enums:** {enums}")
        lines.append("")
        return lines

    def format_for_findings(self, result: CheckerResult) -> str | None:
        return findings_section(
            "Supabase Schema Issues", "Supabase schema hallucination(s)", result
        )
