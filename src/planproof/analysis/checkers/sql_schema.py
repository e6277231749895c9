"""SQL / Drizzle schema checker."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from planproof.analysis.extractors.sql import extract_sql_refs
from planproof.analysis.file_tree import scan_project_files
from planproof.analysis.indexers.sql import SqlSchema, build_sql_schema
from planproof.analysis.registry import code, code_list
from planproof.analysis.schemas import (
    CheckerResult,
    CheckOptions,
    RawReference,
    Reference,
    dedupe_references,
)
from planproof.analysis.suggest import format_suggestion, suggest
from planproof.constants import CheckerId, HallucinationCategory


class SqlSchemaAnalysis(BaseModel):
    sql_schema: SqlSchema
    references: list[Reference]


def suggest_table(name: str, schema: SqlSchema) -> str | None:
    """SQL table names first, then Drizzle variable names."""
    return suggest(name, schema.tables) or suggest(
        name, schema.variable_to_table
    )


def validate_sql_ref(
    ref: RawReference, schema: SqlSchema
) -> Reference | None:
    """Judge one reference; property chains on non-tables are dropped."""
    owner = ref.owner or ""
    table = schema.resolve(owner)
    if table is None:
        if ref.kind == "column":
            return None
        return ref.resolve(
            False, HallucinationCategory.TABLE, suggest_table(owner, schema)
        )
    if ref.name is None:
        return ref.resolve(True)
    if ref.name in table.columns:
        return ref.resolve(True)
    return ref.resolve(
        False, HallucinationCategory.COLUMN, suggest(ref.name, table.columns)
    )


def analyze_sql_schema(plan_text: str, schema: SqlSchema) -> list[Reference]:
    references: list[Reference] = []
    for raw in extract_sql_refs(plan_text):
        ref = validate_sql_ref(raw, schema)
        if ref is not None:
            references.append(ref)
    return dedupe_references(references)


def _issue_line(ref: Reference) -> str:
    label = (
        "table not found"
        if ref.category == HallucinationCategory.TABLE
        else "column not found"
    )
    hint = f" ({format_suggestion(ref.suggestion)})" if ref.suggestion else ""
    return f"- {code(ref.raw)} — {label}{hint}"


class SqlSchemaChecker:
    id = CheckerId.SQL_SCHEMA
    display_name = "SQL/Drizzle Schema"
    experimental = False

    def run(
        self, plan_text: str, project_dir: Path, options: CheckOptions
    ) -> CheckerResult:
        tree = scan_project_files(
            project_dir, options.max_scan_depth, options.skip_directories
        )
        schema = build_sql_schema(project_dir, tree)
        if not schema.tables:
            return CheckerResult.not_applicable(self.id)
        references = analyze_sql_schema(plan_text, schema)
        return CheckerResult.from_references(
            self.id,
            references,
            raw_analysis=SqlSchemaAnalysis(
                sql_schema=schema, references=references
            ),
        )

    def format_for_check_all(self, result: CheckerResult) -> list[str]:
        if not result.applicable:
            return []
        analysis: SqlSchemaAnalysis = result.raw_analysis
        tables = analysis.sql_schema.tables
        lines = [
            "## SQL/Drizzle Schema",
            f"**{len(tables)}** tables, **{result.checked}** refs — "
            f"**{result.hallucinated}** hallucinated",
        ]
        lines.extend(_issue_line(r) for r in analysis.references if r.hallucinated)
        if not result.hallucinated:
            lines.append("All SQL refs valid.")
        lines.append("")
        for table in tables.values():
            var = f" (`{table.variable_name}`)" if table.variable_name else ""
            lines.append(
                f"- {code(table.name)}{var}: {code_list(list(table.columns))}"
            )
        lines.append("")
        return lines

    def format_for_findings(self, result: CheckerResult) -> str | None:
        if not result.applicable or not result.hallucinated:
            return None
        analysis: SqlSchemaAnalysis = result.raw_analysis
        lines = [
            "### SQL Schema Issues",
            "",
            f"Static analysis found {result.hallucinated} "
            "SQL/Drizzle schema hallucination(s):",
            "",
        ]
        lines.extend(_issue_line(r) for r in analysis.references if r.hallucinated)
        return "\n".join(lines)
