"""Report assembly: findings, JSON, text and markdown renderings.

Every renderer takes the ``CheckerRun`` list produced by the engine.
Finding ids are derived from content only, so the same project and
plan always produce the same ids.
"""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from planproof.analysis.engine import CheckerRun
from planproof.analysis.suggest import format_suggestion
from planproof.constants import (
    FINDING_SEVERITY,
    REPORT_SCHEMA_VERSION,
    HallucinationCategory,
)

FINDING_ID_LENGTH = 12

_CATEGORY_MESSAGES: dict[str, str] = {
    HallucinationCategory.PATH: "Path does not exist: {}",
    HallucinationCategory.MODEL: "Prisma model not found: {}",
    HallucinationCategory.FIELD: "Prisma field not found: {}",
    HallucinationCategory.INVALID_METHOD: "Invalid Prisma method: {}",
    HallucinationCategory.WRONG_RELATION: "Invalid relation: {}",
    HallucinationCategory.TABLE: "Table not found: {}",
    HallucinationCategory.COLUMN: "Column not found: {}",
    HallucinationCategory.FUNCTION: "Function not found: {}",
    HallucinationCategory.TYPE: "TypeScript type not found: {}",
    HallucinationCategory.MEMBER: "Member not found: {}",
    HallucinationCategory.ROUTE: "Route not found: {}",
    HallucinationCategory.HTTP_METHOD: "HTTP method not allowed: {}",
    HallucinationCategory.NAMED_IMPORT: "Named export not found: {}",
    HallucinationCategory.PACKAGE_NOT_FOUND: "Package not installed: {}",
    HallucinationCategory.SUBPATH_NOT_EXPORTED: "Subpath not exported: {}",
    HallucinationCategory.ENV_VAR: "Env variable not defined: {}",
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Finding(_CamelModel):
    finding_id: str
    checker: str
    severity: str = FINDING_SEVERITY
    category: str
    target: str
    message: str
    suggestion: str | None = None


class CheckerSummary(_CamelModel):
    checker: str
    display_name: str
    checked: int
    findings: int
    applicable: bool


def make_finding_id(checker: str, category: str, target: str) -> str:
    payload = f"{checker}:{category}:{target}"
    return hashlib.sha256(payload.encode()).hexdigest()[:FINDING_ID_LENGTH]


def message_for(category: str, target: str) -> str:
    template = _CATEGORY_MESSAGES.get(category, "Hallucinated reference: {}")
    return template.format(target)


def build_findings(runs: list[CheckerRun]) -> list[Finding]:
    """One finding per hallucination of every applicable checker."""
    findings: list[Finding] = []
    for checker, result in runs:
        if not result.applicable:
            continue
        for h in result.hallucinations:
            findings.append(
                Finding(
                    finding_id=make_finding_id(checker.id, h.category, h.raw),
                    checker=checker.id,
                    category=h.category,
                    target=h.raw,
                    message=message_for(h.category, h.raw),
                    suggestion=h.suggestion,
                )
            )
    return findings


def total_findings(runs: list[CheckerRun]) -> int:
    return sum(r.result.hallucinated for r in runs if r.result.applicable)


def exit_code_for(runs: list[CheckerRun]) -> int:
    """0 when no applicable checker found anything, 1 otherwise."""
    return 1 if total_findings(runs) else 0


def build_json_report(
    runs: list[CheckerRun],
    project_dir: Path,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Versioned machine-readable report (camelCase keys)."""
    timestamp = (now or datetime.now(UTC)).isoformat()
    summaries = [
        CheckerSummary(
            checker=checker.id,
            display_name=checker.display_name,
            checked=result.checked,
            findings=result.hallucinated,
            applicable=result.applicable,
        ).model_dump(by_alias=True)
        for checker, result in runs
    ]
    return {
        "schemaVersion": REPORT_SCHEMA_VERSION,
        "timestamp": timestamp,
        "projectDir": project_dir.name,
        "summary": {
            "totalChecked": sum(r.result.checked for r in runs),
            "totalFindings": total_findings(runs),
            "checkerResults": summaries,
        },
        "findings": [
            f.model_dump(by_alias=True, exclude_none=True)
            for f in build_findings(runs)
        ],
    }


def format_text_report(runs: list[CheckerRun]) -> str:
    """Compact CI-friendly table, one line per applicable checker."""
    lines = ["", "planproof verification report", ""]
    skipped: list[str] = []
    for checker, result in runs:
        if not result.applicable:
            skipped.append(checker.display_name)
            continue
        status = "✓" if result.hallucinated == 0 else "✗"
        count = f"{result.checked} checked"
        if result.hallucinated == 0:
            outcome = "pass"
        else:
            plural = "" if result.hallucinated == 1 else "s"
            outcome = f"{result.hallucinated} finding{plural}"
        lines.append(
            f"  {status} {checker.display_name:<26} {count:<14} {outcome}"
        )
        for h in result.hallucinations:
            detail = h.raw
            if h.suggestion:
                detail += f" ({format_suggestion(h.suggestion)})"
            lines.append(f"      {detail}")

    if skipped:
        lines.append("")
        lines.append(f"  Skipped: {', '.join(skipped)}")

    total = total_findings(runs)
    lines.append("")
    if total == 0:
        lines.append("  0 finding(s). All references verified.")
    else:
        lines.append(
            f"  {total} finding(s). Fix the hallucinated references above."
        )
    lines.append("")
    return "\n".join(lines)


def format_check_all(runs: list[CheckerRun], project_dir: Path) -> str:
    """Consolidated markdown report with each checker's ground truth."""
    applicable = [r for r in runs if r.result.applicable]
    checked = sum(r.result.checked for r in applicable)
    lines = [
        "# Static Analysis Report",
        "",
        f"**Project:** `{project_dir.name}` | **{checked}** references "
        f"checked across {len(applicable)} checker(s) — "
        f"**{total_findings(runs)}** hallucinated",
        "",
    ]
    for checker, result in applicable:
        lines.extend(checker.format_for_check_all(result))
    skipped = [r.checker.display_name for r in runs if not r.result.applicable]
    if skipped:
        lines.append(f"_Not applicable: {', '.join(skipped)}_")
    return "\n".join(lines).rstrip() + "\n"


def format_findings_context(runs: list[CheckerRun]) -> str:
    """Excerpt of verified problems for a downstream reviewer.

    Empty when no checker found anything.
    """
    sections = [
        section
        for checker, result in runs
        if result.applicable
        for section in [checker.format_for_findings(result)]
        if section
    ]
    if not sections:
        return ""
    header = [
        "## Static Analysis Findings",
        "",
        "The following references were verified against the project "
        "and do not exist.",
    ]
    return "\n\n".join(["\n".join(header), *sections]) + "\n"
