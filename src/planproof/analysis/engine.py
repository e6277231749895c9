"""Run registered checkers against one plan and one project."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NamedTuple

from planproof.analysis.checkers import default_registry
from planproof.analysis.registry import Checker, CheckerRegistry
from planproof.analysis.schemas import CheckerResult, CheckOptions
from planproof.errors import PlanNotFoundError, ProjectNotFoundError

logger = logging.getLogger(__name__)


class CheckerRun(NamedTuple):
    """A checker paired with the result it produced."""

    checker: Checker
    result: CheckerResult


def resolve_project_dir(project_dir: str | Path) -> Path:
    path = Path(project_dir).expanduser().resolve()
    if not path.is_dir():
        raise ProjectNotFoundError(path)
    return path


def load_plan(plan_path: str | Path) -> str:
    path = Path(plan_path).expanduser().resolve()
    if not path.is_file():
        raise PlanNotFoundError(path)
    return path.read_text(encoding="utf-8", errors="replace")


def run_checker(
    checker: Checker,
    plan_text: str,
    project_dir: Path,
    options: CheckOptions,
) -> CheckerResult:
    """Run one checker; a failure degrades to an inapplicable result."""
    try:
        return checker.run(plan_text, project_dir, options)
    except Exception:  # noqa: BLE001
        logger.warning("Checker %s failed", checker.id, exc_info=True)
        return CheckerResult.not_applicable(checker.id)


def run_checks(
    plan_text: str,
    project_dir: Path,
    options: CheckOptions | None = None,
    registry: CheckerRegistry | None = None,
) -> list[CheckerRun]:
    """Run every enabled checker sequentially, in registry order.

    Each checker has independent error recovery: if one raises, it is
    reported as not applicable and the remaining checkers still run.
    """
    options = options or CheckOptions()
    registry = registry or default_registry()
    runs: list[CheckerRun] = []
    for checker in registry.all(options.include_experimental):
        result = run_checker(checker, plan_text, project_dir, options)
        logger.debug(
            "%s: applicable=%s checked=%d hallucinated=%d",
            checker.id,
            result.applicable,
            result.checked,
            result.hallucinated,
        )
        runs.append(CheckerRun(checker, result))
    return runs
