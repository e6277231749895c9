"""Prisma schema checker: models, client methods, fields and relations."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from planproof.analysis.extractors.prisma import extract_prisma_refs
from planproof.analysis.indexers.prisma import (
    PrismaModel,
    PrismaSchema,
    find_prisma_schema,
    load_prisma_schema,
)
from planproof.analysis.registry import (
    code,
    code_list,
    findings_section,
)
from planproof.analysis.schemas import (
    CheckerResult,
    CheckOptions,
    RawReference,
    Reference,
    dedupe_references,
)
from planproof.analysis.suggest import suggest
from planproof.constants import (
    PRISMA_CLIENT_METHODS,
    CheckerId,
    HallucinationCategory,
)


class SchemaAnalysis(BaseModel):
    schema_path: Path
    prisma_schema: PrismaSchema
    references: list[Reference]


def _context_model(
    accessor: str, schema: PrismaSchema
) -> PrismaModel | None:
    """Model behind an accessor, falling back to the suggested accessor.

    A misspelled accessor still gets its query fields checked against
    the model it most likely meant.
    """
    model = schema.model_for_accessor(accessor)
    if model is not None:
        return model
    suggested = suggest(accessor, schema.accessor_to_model)
    return schema.model_for_accessor(suggested) if suggested else None


def _relation_suggestion(name: str, model: PrismaModel) -> str | None:
    relations = [f.name for f in model.relation_fields]
    found = suggest(name, relations)
    if found:
        return found
    if relations:
        return f"valid relations: {', '.join(relations)}"
    return None


def validate_prisma_ref(
    ref: RawReference, schema: PrismaSchema
) -> Reference | None:
    """Judge one reference; None when its model cannot be attributed."""
    accessor = ref.owner or ""
    if ref.kind == "model":
        if accessor in schema.accessor_to_model:
            return ref.resolve(True)
        client = ref.raw.split(".", 1)[0]
        found = suggest(accessor, schema.accessor_to_model)
        return ref.resolve(
            False,
            HallucinationCategory.MODEL,
            f"{client}.{found}" if found else None,
        )

    if ref.kind == "method":
        return ref.resolve(
            ref.name in PRISMA_CLIENT_METHODS,
            HallucinationCategory.INVALID_METHOD,
        )

    model = _context_model(accessor, schema)
    if model is None:
        return None
    name = ref.name or ""

    if ref.kind == "field":
        if name in model.fields:
            return ref.resolve(True)
        return ref.resolve(
            False, HallucinationCategory.FIELD, suggest(name, model.fields)
        )

    field = model.fields.get(name)
    if field is None:
        return ref.resolve(
            False,
            HallucinationCategory.WRONG_RELATION,
            _relation_suggestion(name, model),
        )
    if not field.is_relation:
        return ref.resolve(
            False,
            HallucinationCategory.WRONG_RELATION,
            f"{name} is not a relation field",
        )
    return ref.resolve(True)


def analyze_schema(plan_text: str, schema: PrismaSchema) -> list[Reference]:
    references: list[Reference] = []
    for raw in extract_prisma_refs(plan_text):
        ref = validate_prisma_ref(raw, schema)
        if ref is not None:
            references.append(ref)
    return dedupe_references(references)


class SchemaChecker:
    id = CheckerId.SCHEMA
    display_name = "Prisma Schema"
    experimental = False

    def run(
        self, plan_text: str, project_dir: Path, options: CheckOptions
    ) -> CheckerResult:
        schema_path = find_prisma_schema(project_dir, options.schema_path)
        if schema_path is None:
            return CheckerResult.not_applicable(self.id)
        schema = load_prisma_schema(schema_path)
        if schema is None:
            return CheckerResult.not_applicable(self.id)
        references = analyze_schema(plan_text, schema)
        return CheckerResult.from_references(
            self.id,
            references,
            raw_analysis=SchemaAnalysis(
                schema_path=schema_path,
                prisma_schema=schema,
                references=references,
            ),
        )

    def format_for_check_all(self, result: CheckerResult) -> list[str]:
        if not result.applicable:
            return []
        analysis: SchemaAnalysis = result.raw_analysis
        schema = analysis.prisma_schema
        lines = [
            "## Prisma Schema",
            f"**{result.checked}** refs — "
            f"**{result.hallucinated}** hallucinated",
        ]
        for ref in analysis.references:
            if not ref.hallucinated:
                continue
            hint = f" → {code(ref.suggestion)}" if ref.suggestion else ""
            lines.append(f"- {code(ref.raw)} — {ref.category}{hint}")
            if ref.category == HallucinationCategory.MODEL:
                available = ", ".join(
                    f"{code(accessor)} ({model})"
                    for accessor, model in schema.accessor_to_model.items()
                )
                lines.append(f"  - Available models: {available}")
            elif ref.category == HallucinationCategory.FIELD:
                model = _context_model(ref.owner or "", schema)
                if model is not None:
                    lines.append(
                        f"  - Fields on {model.name}: "
                        f"{code_list(list(model.fields))}"
                    )
        if not result.hallucinated:
            lines.append("All schema refs valid.")
        lines.append("")
        enums = f" | Enums: {', '.join(schema.enums)}" if schema.enums else ""
        lines.append(f"**Schema:** {code_list(list(schema.models))}{enums}")
        lines.append("")
        return lines

    def format_for_findings(self, result: CheckerResult) -> str | None:
        return findings_section(
            "Schema Issues", "Prisma schema hallucination(s)", result
        )

