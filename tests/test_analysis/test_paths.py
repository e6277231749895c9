"""Tests for file path extraction and classification."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from planproof.analysis.checkers.paths import (
    PathChecker,
    analyze_paths,
    find_closest_paths,
)
from planproof.analysis.extractors.paths import (
    extract_file_paths,
    has_create_signal,
    matches_allowed_new,
)
from planproof.analysis.file_tree import scan_project_files
from planproof.analysis.schemas import CheckOptions
from planproof.constants import HallucinationCategory

WriteTree = Callable[[dict[str, str]], Path]


class TestExtractFilePaths:
    def test_extracts_paths_with_directories(self) -> None:
        plan = "Edit `src/lib/db.ts` and ./src/app/page.tsx, then run tests."
        raws = [r.raw for r in extract_file_paths(plan)]
        assert raws == ["src/lib/db.ts", "src/app/page.tsx"]

    def test_skips_urls_versions_and_bare_names(self) -> None:
        plan = (
            "See https://example.com/docs/a.html, bump to 1.2.3, "
            "touch package.json and node_modules/x/index.js"
        )
        assert extract_file_paths(plan) == []

    def test_windows_separators_are_normalized(self) -> None:
        plan = r"Edit `src\lib\db.ts` and .\src\app\page.tsx next."
        raws = [r.raw for r in extract_file_paths(plan)]
        assert raws == ["src/lib/db.ts", "src/app/page.tsx"]

    def test_unique(self) -> None:
        plan = "`src/a.ts` then `src/a.ts` again"
        assert len(extract_file_paths(plan)) == 1


class TestCreateSignals:
    def test_create_verb(self) -> None:
        assert has_create_signal("src/new.ts", "Create `src/new.ts` for x")

    def test_parenthesised_marker(self) -> None:
        assert has_create_signal("src/new.ts", "- `src/new.ts` (new)")

    def test_new_files_section(self) -> None:
        plan = "## New files\n- src/new.ts\n\n## Changes\n- src/old.ts\n"
        assert has_create_signal("src/new.ts", plan)
        assert not has_create_signal("src/old.ts", plan)

    def test_allow_list_globs(self) -> None:
        assert matches_allowed_new("src/gen/a/b.ts", ["src/gen/**"])
        assert matches_allowed_new("src/gen/b.ts", ["src/gen/*.ts"])
        assert not matches_allowed_new("src/gen/a/b.ts", ["src/gen/*.ts"])


class TestAnalyzePaths:
    def test_existing_paths_never_hallucinated(
        self, write_tree: WriteTree
    ) -> None:
        root = write_tree({"src/lib/db.ts": "", "src/app/page.tsx": ""})
        tree = scan_project_files(root)
        plan = "Update `src/lib/db.ts` and `lib/db.ts` and `src/app/page.tsx`."
        analysis = analyze_paths(plan, tree)
        assert analysis.hallucinated_paths == []
        assert len(analysis.valid_paths) == 3

    def test_absent_path_hallucinated(self, write_tree: WriteTree) -> None:
        root = write_tree({"src/lib/db.ts": ""})
        tree = scan_project_files(root)
        analysis = analyze_paths("Update `src/lib/database.ts`.", tree)
        assert analysis.hallucinated_paths == ["src/lib/database.ts"]
        assert analysis.hallucination_rate == 1.0

    def test_allow_list_and_signal_are_intentional_new(
        self, write_tree: WriteTree
    ) -> None:
        root = write_tree({"src/a.ts": ""})
        tree = scan_project_files(root)
        plan = "Create `src/b.ts`. Also write `src/gen/c.ts`."
        analysis = analyze_paths(plan, tree, ["src/gen/**"])
        assert analysis.intentional_new_paths == ["src/b.ts", "src/gen/c.ts"]
        assert analysis.hallucinated_paths == []
        assert analysis.hallucination_rate == 0.0

    def test_closest_paths_prefer_same_name(
        self, write_tree: WriteTree
    ) -> None:
        root = write_tree(
            {"src/lib/db.ts": "", "src/other/readme.md": "", "db.ts": ""}
        )
        tree = scan_project_files(root)
        closest = find_closest_paths("src/utils/db.ts", tree)
        assert closest[0] == "src/lib/db.ts"


class TestPathChecker:
    def test_result_counts_and_findings(self, write_tree: WriteTree) -> None:
        root = write_tree({"src/a.ts": ""})
        checker = PathChecker()
        result = checker.run(
            "Edit `src/a.ts` and `src/missing.ts`.", root, CheckOptions()
        )
        assert result.applicable
        assert result.checked == 2
        assert result.hallucinated == 1
        assert result.hallucinations[0].category == HallucinationCategory.PATH
        section = checker.format_for_findings(result)
        assert section is not None
        assert "`src/missing.ts`" in section
        text = "\n".join(checker.format_for_check_all(result))
        assert "## File Paths" in text
        assert "Closest: `src/a.ts`" in text

    def test_clean_plan_has_no_findings_section(
        self, write_tree: WriteTree
    ) -> None:
        root = write_tree({"src/a.ts": ""})
        checker = PathChecker()
        result = checker.run("Edit `src/a.ts`.", root, CheckOptions())
        assert checker.format_for_findings(result) is None
