"""Tests for the MCP server."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from fastmcp import Client

from planproof.analysis.indexers.packages import PackageApiCache
from planproof.catches import read_catches
from planproof.constants import CheckerId
from planproof.mcp.server import configure, get_registry, mcp

WriteTree = Callable[[dict[str, str]], Path]

BROKEN_PLAN = "Edit `src/index.ts` and `src/indexx.ts`.\n"


@pytest.fixture(autouse=True)
def _fresh_registry() -> None:
    configure()


@pytest.fixture
def project(write_tree: WriteTree) -> Path:
    return write_tree(
        {
            "src/index.ts": "export const x = 1;\n",
            "src/utils.ts": "export const y = 2;\n",
        }
    )


class TestServerConfiguration:
    def test_registry_is_built_once(self) -> None:
        assert get_registry() is get_registry()

    def test_configure_resets_registry(self) -> None:
        before = get_registry()
        cache = PackageApiCache()
        configure(cache)
        after = get_registry()
        assert after is not before
        checker = after.get(CheckerId.PACKAGE_API)
        assert checker.cache is cache  # type: ignore[attr-defined]


class TestMcpTools:
    @pytest.mark.asyncio
    async def test_list_tools(self) -> None:
        async with Client(mcp) as client:
            tools = await client.list_tools()
            tool_names = {t.name for t in tools}
            expected = {
                "check_paths",
                "check_schema",
                "check_sql_schema",
                "check_supabase_schema",
                "check_imports",
                "check_env",
                "check_types",
                "check_routes",
                "check_express_routes",
                "check_package_api",
                "check_all",
            }
            assert expected == tool_names

    @pytest.mark.asyncio
    async def test_check_paths(self, project: Path) -> None:
        async with Client(mcp) as client:
            result = await client.call_tool(
                "check_paths",
                {"plan_text": BROKEN_PLAN, "project_dir": str(project)},
            )
            text = result.content[0].text  # type: ignore[union-attr]
            assert text.startswith("## File Paths")
            assert "- `src/indexx.ts` — **NOT FOUND**" in text

    @pytest.mark.asyncio
    async def test_check_paths_allowed_new(self, project: Path) -> None:
        async with Client(mcp) as client:
            result = await client.call_tool(
                "check_paths",
                {
                    "plan_text": BROKEN_PLAN,
                    "project_dir": str(project),
                    "allowed_new_paths": ["src/*"],
                },
            )
            text = result.content[0].text  # type: ignore[union-attr]
            assert "All paths valid." in text
            assert "New files planned: `src/indexx.ts`" in text

    @pytest.mark.asyncio
    async def test_not_applicable_message(self, project: Path) -> None:
        async with Client(mcp) as client:
            result = await client.call_tool(
                "check_env",
                {"plan_text": "Use process.env.API_KEY", "project_dir": str(project)},
            )
            text = result.content[0].text  # type: ignore[union-attr]
            assert text == "No .env files found in project."

    @pytest.mark.asyncio
    async def test_missing_project_dir(self, tmp_path: Path) -> None:
        async with Client(mcp) as client:
            result = await client.call_tool(
                "check_imports",
                {"plan_text": "x", "project_dir": str(tmp_path / "missing")},
            )
            text = result.content[0].text  # type: ignore[union-attr]
            assert text.startswith("Error: project directory not found")

    @pytest.mark.asyncio
    async def test_check_all(self, project: Path) -> None:
        async with Client(mcp) as client:
            result = await client.call_tool(
                "check_all",
                {"plan_text": BROKEN_PLAN, "project_dir": str(project)},
            )
            text = result.content[0].text  # type: ignore[union-attr]
            assert text.startswith("# Static Analysis Report")
            assert "## File Paths" in text
            assert "_Not applicable:" in text


class TestToolSettings:
    @pytest.mark.asyncio
    async def test_skip_directories_from_env(
        self, write_tree: WriteTree, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        root = write_tree(
            {
                "src/index.ts": "export const x = 1;\n",
                "generated/client.ts": "export const c = 1;\n",
            }
        )
        monkeypatch.setenv("PLANPROOF_SKIP_DIRECTORIES", "generated")
        async with Client(mcp) as client:
            result = await client.call_tool(
                "check_paths",
                {
                    "plan_text": "Edit `src/index.ts` and `generated/client.ts`.",
                    "project_dir": str(root),
                },
            )
            text = result.content[0].text  # type: ignore[union-attr]
            assert "- `generated/client.ts` — **NOT FOUND**" in text
            assert "`src/index.ts` — **NOT FOUND**" not in text

    @pytest.mark.asyncio
    async def test_max_scan_depth_from_env(
        self, write_tree: WriteTree, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        root = write_tree(
            {
                "src/index.ts": "export const x = 1;\n",
                "src/deep/nested/file.ts": "export const d = 1;\n",
            }
        )
        monkeypatch.setenv("PLANPROOF_MAX_SCAN_DEPTH", "1")
        async with Client(mcp) as client:
            result = await client.call_tool(
                "check_all",
                {
                    "plan_text": "Edit `src/index.ts` and `src/deep/nested/file.ts`.",
                    "project_dir": str(root),
                },
            )
            text = result.content[0].text  # type: ignore[union-attr]
            assert "- `src/deep/nested/file.ts` — **NOT FOUND**" in text
            assert "`src/index.ts` — **NOT FOUND**" not in text

    @pytest.mark.asyncio
    async def test_allowed_new_paths_merge_with_env(
        self, project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PLANPROOF_ALLOWED_NEW_PATHS", "src/indexx.ts")
        async with Client(mcp) as client:
            result = await client.call_tool(
                "check_all",
                {
                    "plan_text": BROKEN_PLAN + "Document it in `docs/new.md`.\n",
                    "project_dir": str(project),
                    "allowed_new_paths": ["docs/*"],
                },
            )
            text = result.content[0].text  # type: ignore[union-attr]
            assert "All paths valid." in text
            assert "`src/indexx.ts`" in text
            assert "`docs/new.md`" in text

    @pytest.mark.asyncio
    async def test_catch_log_when_enabled(
        self, project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        log_file = project / "logs" / "catches.jsonl"
        monkeypatch.setenv("PLANPROOF_LOG_CATCHES", "true")
        monkeypatch.setenv("PLANPROOF_CATCHES_FILE", str(log_file))
        async with Client(mcp) as client:
            await client.call_tool(
                "check_paths",
                {"plan_text": BROKEN_PLAN, "project_dir": str(project)},
            )
        entries = read_catches(log_file)
        assert len(entries) == 1
        assert entries[0].tool == "paths"
        paths = entries[0].findings["paths"]
        assert paths is not None
        assert paths.items == ["src/indexx.ts"]

    @pytest.mark.asyncio
    async def test_no_catch_log_by_default(
        self, project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        log_file = project / "catches.jsonl"
        monkeypatch.setenv("PLANPROOF_CATCHES_FILE", str(log_file))
        async with Client(mcp) as client:
            await client.call_tool(
                "check_all",
                {"plan_text": BROKEN_PLAN, "project_dir": str(project)},
            )
        assert not log_file.exists()
