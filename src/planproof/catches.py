"""Catch log: one JSON line per tool call that found hallucinations."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from planproof.analysis.engine import CheckerRun

logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CatchFindings(_CamelModel):
    checked: int
    hallucinated: int
    items: list[str] = Field(default_factory=lambda: list[str]())


class CatchEntry(_CamelModel):
    timestamp: str
    tool: str
    # Directory name only, never the full path
    project_dir: str
    findings: dict[str, CatchFindings | None]
    total_checked: int
    total_hallucinated: int


def build_catch_entry(
    tool: str, runs: list[CheckerRun], project_dir: Path
) -> CatchEntry:
    """Summarise checker runs; inapplicable checkers are recorded as None."""
    findings: dict[str, CatchFindings | None] = {}
    for run in runs:
        result = run.result
        if not result.applicable:
            findings[str(run.checker.id)] = None
            continue
        findings[str(run.checker.id)] = CatchFindings(
            checked=result.checked,
            hallucinated=result.hallucinated,
            items=[h.raw for h in result.hallucinations],
        )
    return CatchEntry(
        timestamp=datetime.now(UTC).isoformat(),
        tool=tool,
        project_dir=project_dir.name,
        findings=findings,
        total_checked=sum(r.result.checked for r in runs),
        total_hallucinated=sum(r.result.hallucinated for r in runs),
    )


def log_catch(entry: CatchEntry, catches_file: Path) -> bool:
    """Append ``entry`` to the catch log.

    Entries without hallucinations are not written. A write failure is
    logged and never propagates to the caller.
    """
    if entry.total_hallucinated == 0:
        return False
    try:
        catches_file.parent.mkdir(parents=True, exist_ok=True)
        with open(catches_file, "a", encoding="utf-8") as f:
            f.write(entry.model_dump_json(by_alias=True) + "\n")
    except OSError:
        logger.warning("Could not write catch log %s", catches_file, exc_info=True)
        return False
    return True


def read_catches(catches_file: Path) -> list[CatchEntry]:
    """Read every entry in the catch log, skipping malformed lines."""
    try:
        content = catches_file.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    entries: list[CatchEntry] = []
    for line in content.splitlines():
        if not line.strip():
            continue
        try:
            entries.append(CatchEntry.model_validate_json(line))
        except ValidationError:
            logger.debug("Skipping malformed catch entry in %s", catches_file)
    return entries
