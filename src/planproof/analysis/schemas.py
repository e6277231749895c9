"""Pydantic models shared by every checker."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from planproof.constants import HallucinationCategory


class CheckOptions(BaseModel):
    """Per-run options handed to every checker."""

    schema_path: Path | None = None
    allowed_new_paths: list[str] = Field(default_factory=lambda: list[str]())
    include_experimental: bool = False
    max_scan_depth: int | None = None
    skip_directories: list[str] | None = None


class RawReference(BaseModel):
    """A candidate reference recovered from plan text.

    ``owner`` is the enclosing entity (model accessor, table, type,
    package binding, URL path) and ``name`` the thing addressed on it
    (field, column, member, subpath). Extraction fills these from text
    alone; nothing here says whether the reference is real.
    """

    raw: str
    kind: str
    offset: int = -1
    owner: str | None = None
    name: str | None = None
    method: str | None = None

    def resolve(
        self,
        valid: bool,
        category: HallucinationCategory | None = None,
        suggestion: str | None = None,
        *,
        intentional_new: bool = False,
    ) -> Reference:
        """Attach a validity judgement to this candidate."""
        return Reference(
            **self.model_dump(),
            valid=valid,
            category=None if valid else category,
            suggestion=None if valid else suggestion,
            intentional_new=intentional_new,
        )


class Reference(RawReference):
    """A validated reference."""

    valid: bool
    category: HallucinationCategory | None = None
    suggestion: str | None = None
    intentional_new: bool = False

    @property
    def hallucinated(self) -> bool:
        return not self.valid and not self.intentional_new

    @property
    def dedup_key(self) -> tuple[str, str, bool, str | None]:
        return (self.raw, self.kind, self.valid, self.category)


class Hallucination(BaseModel):
    """One invalid reference as reported by a checker."""

    raw: str
    category: HallucinationCategory
    suggestion: str | None = None


class CheckerResult(BaseModel):
    """Aggregate outcome of one checker run."""

    checker_id: str
    checked: int = 0
    hallucinated: int = 0
    hallucinations: list[Hallucination] = Field(
        default_factory=lambda: list[Hallucination]()
    )
    applicable: bool = False
    raw_analysis: Any = Field(default=None, exclude=True)

    @classmethod
    def not_applicable(cls, checker_id: str) -> CheckerResult:
        return cls(checker_id=checker_id, applicable=False)

    @classmethod
    def from_references(
        cls,
        checker_id: str,
        references: list[Reference],
        *,
        applicable: bool = True,
        raw_analysis: Any = None,
    ) -> CheckerResult:
        """Count references and collect the hallucinated ones."""
        hallucinations = [
            Hallucination(
                raw=ref.raw,
                category=ref.category,
                suggestion=ref.suggestion,
            )
            for ref in references
            if ref.hallucinated
        ]
        return cls(
            checker_id=checker_id,
            checked=len(references),
            hallucinated=len(hallucinations),
            hallucinations=hallucinations,
            applicable=applicable,
            raw_analysis=raw_analysis,
        )


def dedupe_references(references: list[Reference]) -> list[Reference]:
    """Drop references repeating the same evidence, keeping the first."""
    seen: set[tuple[str, str, bool, str | None]] = set()
    unique: list[Reference] = []
    for ref in references:
        key = ref.dedup_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(ref)
    return unique
