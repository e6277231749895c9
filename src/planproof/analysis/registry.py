"""Checker interface, registry and shared rendering helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from planproof.analysis.schemas import CheckerResult, CheckOptions
from planproof.analysis.suggest import format_suggestion
from planproof.errors import DuplicateCheckerError, UnknownCheckerError

logger = logging.getLogger(__name__)


class Checker(Protocol):
    """Interface every checker must satisfy.

    A checker bundles one domain's indexer, extractor and validator.
    ``run`` never raises for missing artifacts; it reports
    ``applicable=False`` instead.
    """

    id: str
    display_name: str
    experimental: bool

    def run(
        self,
        plan_text: str,
        project_dir: Path,
        options: CheckOptions,
    ) -> CheckerResult: ...

    def format_for_check_all(self, result: CheckerResult) -> list[str]:
        """Markdown lines for the consolidated multi-checker report."""
        ...

    def format_for_findings(self, result: CheckerResult) -> str | None:
        """LLM-context excerpt; None when there is nothing to report."""
        ...


class CheckerRegistry:
    """Ordered collection of checkers keyed by id."""

    def __init__(self) -> None:
        self._checkers: dict[str, Checker] = {}

    def register(self, checker: Checker) -> None:
        if checker.id in self._checkers:
            raise DuplicateCheckerError(checker.id)
        self._checkers[checker.id] = checker
        logger.debug("Registered checker %s", checker.id)

    def get(self, checker_id: str) -> Checker:
        try:
            return self._checkers[checker_id]
        except KeyError:
            raise UnknownCheckerError(checker_id) from None

    def all(self, include_experimental: bool = False) -> list[Checker]:
        """Checkers in registration order, experimental ones opt-in."""
        return [
            c
            for c in self._checkers.values()
            if include_experimental or not c.experimental
        ]

    def __contains__(self, checker_id: object) -> bool:
        return checker_id in self._checkers

    def __len__(self) -> int:
        return len(self._checkers)


# ── Rendering helpers ────────────────────────────────────────


def code(text: str) -> str:
    return f"`{text}`"


def code_list(items: list[str]) -> str:
    return ", ".join(code(i) for i in items)


def hallucination_lines(result: CheckerResult) -> list[str]:
    """One markdown bullet per hallucination, with its suggestion."""
    lines: list[str] = []
    for h in result.hallucinations:
        hint = f" ({format_suggestion(h.suggestion)})" if h.suggestion else ""
        lines.append(f"- {code(h.raw)} — {h.category}{hint}")
    return lines


def findings_section(
    title: str, noun: str, result: CheckerResult
) -> str | None:
    """Standard LLM-context excerpt shared by most checkers."""
    if not result.applicable or not result.hallucinations:
        return None
    lines = [
        f"### {title}",
        "",
        f"Static analysis found {len(result.hallucinations)} {noun}:",
        "",
        *hallucination_lines(result),
    ]
    return "\n".join(lines)
