"""Tests for env file indexing and env variable checks."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from planproof.analysis.checkers.env import EnvChecker, analyze_env
from planproof.analysis.extractors.env import extract_env_refs, is_runtime_var
from planproof.analysis.indexers.env import build_env_index, parse_env_keys
from planproof.analysis.schemas import CheckOptions
from planproof.constants import HallucinationCategory

WriteTree = Callable[[dict[str, str]], Path]


class TestParseEnvKeys:
    def test_comments_blanks_and_export(self) -> None:
        content = "# comment\n\nDATABASE_URL=postgres://x\nexport API_KEY = k\n"
        assert parse_env_keys(content) == ["DATABASE_URL", "API_KEY"]

    def test_index_records_defining_files(self, write_tree: WriteTree) -> None:
        root = write_tree(
            {".env": "A=1\n", ".env.example": "A=\nB=\n", "src/.env": "C=1\n"}
        )
        index = build_env_index(root)
        assert index.files == [".env", ".env.example"]
        assert index.variables == {
            "A": [".env", ".env.example"],
            "B": [".env.example"],
        }


class TestExtractEnvRefs:
    def test_all_access_idioms(self) -> None:
        plan = (
            "process.env.A_KEY, process.env['B_KEY'], import.meta.env.C_KEY, "
            "os.environ['D_KEY'], os.environ.get('E_KEY'), os.getenv(\"F_KEY\"), "
            "Deno.env.get('G_KEY'), ENV['H_KEY'], ENV.fetch('I_KEY')"
        )
        names = sorted(r.name for r in extract_env_refs(plan))
        assert names == [f"{c}_KEY" for c in "ABCDEFGHI"]

    def test_runtime_vars_skipped(self) -> None:
        assert is_runtime_var("NODE_ENV")
        assert is_runtime_var("npm_package_version")
        plan = "process.env.NODE_ENV and process.env.PORT"
        assert extract_env_refs(plan) == []


class TestAnalyzeEnv:
    def test_missing_var_with_suggestion(self, write_tree: WriteTree) -> None:
        root = write_tree({".env": "STRIPE_SECRET_KEY=sk\n"})
        refs = analyze_env(
            "`process.env.STRIPE_SECRET` and `process.env.STRIPE_SECRET_KEY`",
            build_env_index(root),
        )
        [bad] = [r for r in refs if r.hallucinated]
        assert bad.raw == "STRIPE_SECRET"
        assert bad.category == HallucinationCategory.ENV_VAR
        assert bad.suggestion == "STRIPE_SECRET_KEY"


class TestEnvChecker:
    def test_not_applicable_without_env_files(
        self, write_tree: WriteTree
    ) -> None:
        root = write_tree({"src/a.ts": ""})
        result = EnvChecker().run("process.env.X_KEY", root, CheckOptions())
        assert not result.applicable

    def test_reports_defined_vars(self, write_tree: WriteTree) -> None:
        root = write_tree({".env.local": "DATABASE_URL=x\nREDIS_URL=y\n"})
        checker = EnvChecker()
        result = checker.run("process.env.SMTP_HOST", root, CheckOptions())
        assert result.hallucinated == 1
        text = "\n".join(checker.format_for_check_all(result))
        assert "Defined vars: `DATABASE_URL`, `REDIS_URL`" in text
        section = checker.format_for_findings(result)
        assert section is not None
        assert "(.env.local)" in section
