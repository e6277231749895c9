"""Environment variable checker."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from planproof.analysis.extractors.env import extract_env_refs
from planproof.analysis.indexers.env import EnvIndex, build_env_index
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


class EnvAnalysis(BaseModel):
    env_index: EnvIndex
    references: list[Reference]


def validate_env_ref(ref: RawReference, index: EnvIndex) -> Reference:
    name = ref.name or ref.raw
    if name in index:
        return ref.resolve(True)
    return ref.resolve(
        False, HallucinationCategory.ENV_VAR, suggest(name, index.variables)
    )


def analyze_env(plan_text: str, index: EnvIndex) -> list[Reference]:
    return dedupe_references(
        [validate_env_ref(r, index) for r in extract_env_refs(plan_text)]
    )


class EnvChecker:
    id = CheckerId.ENV
    display_name = "Env Variables"
    experimental = False

    def run(
        self, plan_text: str, project_dir: Path, options: CheckOptions
    ) -> CheckerResult:
        index = build_env_index(project_dir)
        if not index.files:
            return CheckerResult.not_applicable(self.id)
        references = analyze_env(plan_text, index)
        return CheckerResult.from_references(
            self.id,
            references,
            raw_analysis=EnvAnalysis(env_index=index, references=references),
        )

    def format_for_check_all(self, result: CheckerResult) -> list[str]:
        if not result.applicable:
            return []
        analysis: EnvAnalysis = result.raw_analysis
        lines = [
            "## Env Variables",
            f"**{result.checked}** checked — **{result.hallucinated}** hallucinated",
        ]
        for h in result.hallucinations:
            arrow = f" → {code(h.suggestion)}" if h.suggestion else ""
            lines.append(f"- {code(h.raw)}{arrow}")
        if result.hallucinated:
            defined = list(analysis.env_index.variables)
            lines.append(f"- Defined vars: {code_list(defined)}")
        else:
            lines.append("All env vars valid.")
        lines.append("")
        return lines

    def format_for_findings(self, result: CheckerResult) -> str | None:
        if not result.applicable or not result.hallucinated:
            return None
        analysis: EnvAnalysis = result.raw_analysis
        files = ", ".join(analysis.env_index.files)
        lines = [
            "### Environment Variable Issues",
            "",
            f"Static analysis found {result.hallucinated} env variable(s) "
            f"not defined in project env files ({files}):",
            "",
        ]
        for h in result.hallucinations:
            hint = f" ({format_suggestion(h.suggestion)})" if h.suggestion else ""
            lines.append(f"- {code(h.raw)} — not in env files{hint}")
        return "\n".join(lines)
