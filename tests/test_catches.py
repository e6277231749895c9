"""Tests for the catch log."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from planproof.analysis.engine import CheckerRun
from planproof.analysis.schemas import CheckerResult, CheckOptions, Hallucination
from planproof.catches import build_catch_entry, log_catch, read_catches
from planproof.constants import HallucinationCategory


class StubChecker:
    experimental = False
    display_name = "Stub"

    def __init__(self, checker_id: str) -> None:
        self.id = checker_id

    def run(
        self, plan_text: str, project_dir: Path, options: CheckOptions
    ) -> CheckerResult:
        return CheckerResult.not_applicable(self.id)

    def format_for_check_all(self, result: CheckerResult) -> list[str]:
        return []

    def format_for_findings(self, result: CheckerResult) -> str | None:
        return None


def _runs(hallucinated: bool = True) -> list[CheckerRun]:
    hallucinations = (
        [Hallucination(raw="src/indexx.ts", category=HallucinationCategory.PATH)]
        if hallucinated
        else []
    )
    return [
        CheckerRun(
            StubChecker("paths"),
            CheckerResult(
                checker_id="paths",
                checked=3,
                hallucinated=len(hallucinations),
                hallucinations=hallucinations,
                applicable=True,
            ),
        ),
        CheckerRun(StubChecker("env"), CheckerResult.not_applicable("env")),
    ]


class TestBuildCatchEntry:
    def test_summarises_runs(self, tmp_path: Path) -> None:
        entry = build_catch_entry("check_all", _runs(), tmp_path / "shop")
        assert entry.tool == "check_all"
        assert entry.project_dir == "shop"
        assert entry.total_checked == 3
        assert entry.total_hallucinated == 1
        paths = entry.findings["paths"]
        assert paths is not None
        assert paths.items == ["src/indexx.ts"]
        assert entry.findings["env"] is None


class TestLogCatch:
    def test_appends_json_lines(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "catches.jsonl"
        entry = build_catch_entry("check_paths", _runs(), tmp_path)
        assert log_catch(entry, log_file)
        assert log_catch(entry, log_file)
        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        data = json.loads(lines[0])
        assert data["totalHallucinated"] == 1
        assert data["projectDir"] == tmp_path.name

    def test_clean_runs_are_not_written(self, tmp_path: Path) -> None:
        log_file = tmp_path / "catches.jsonl"
        entry = build_catch_entry("check_all", _runs(hallucinated=False), tmp_path)
        assert not log_catch(entry, log_file)
        assert not log_file.exists()

    def test_write_failure_is_logged(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("", encoding="utf-8")
        entry = build_catch_entry("check_all", _runs(), tmp_path)
        assert not log_catch(entry, blocker / "catches.jsonl")
        assert "Could not write catch log" in caplog.text


class TestReadCatches:
    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert read_catches(tmp_path / "none.jsonl") == []

    def test_round_trip_skips_malformed_lines(self, tmp_path: Path) -> None:
        log_file = tmp_path / "catches.jsonl"
        entry = build_catch_entry("check_all", _runs(), tmp_path)
        log_catch(entry, log_file)
        with open(log_file, "a", encoding="utf-8") as f:
            f.write("{not json}\n\n")
        entries = read_catches(log_file)
        assert len(entries) == 1
        assert entries[0].model_dump() == entry.model_dump()
