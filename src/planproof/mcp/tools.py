"""MCP tool definitions: one tool per checker plus ``check_all``."""

# pyright: reportUnusedFunction=false
# All functions are registered via @mcp.tool decorator

from __future__ import annotations

import asyncio
from pathlib import Path

from fastmcp import FastMCP

from planproof.analysis.engine import (
    CheckerRun,
    resolve_project_dir,
    run_checker,
    run_checks,
)
from planproof.catches import build_catch_entry, log_catch
from planproof.config import Settings, build_check_options
from planproof.constants import CheckerId
from planproof.errors import PlanProofError

_NOT_APPLICABLE: dict[str, str] = {
    CheckerId.SCHEMA: (
        "No Prisma schema found. Pass schema_path or add prisma/schema.prisma."
    ),
    CheckerId.SQL_SCHEMA: "No Drizzle tables or SQL migrations found.",
    CheckerId.IMPORTS: "No node_modules directory found. Install dependencies.",
    CheckerId.ENV: "No .env files found in project.",
    CheckerId.TYPES: "No TypeScript type declarations found in project.",
    CheckerId.ROUTES: "No Next.js App Router route handlers found.",
    CheckerId.SUPABASE_SCHEMA: "No Supabase generated types file found.",
    CheckerId.EXPRESS_ROUTES: "No Express or Fastify routes found.",
    CheckerId.PACKAGE_API: (
        "No installed package declarations resolved for the plan's imports."
    ),
}


def register_tools(mcp: FastMCP) -> None:
    """Register all MCP tools."""

    @mcp.tool()
    async def check_paths(
        plan_text: str,
        project_dir: str,
        allowed_new_paths: list[str] | None = None,
    ) -> str:
        """Check file paths referenced in a plan against the project tree.

        Hallucinated paths are listed with the closest real paths.
        """
        return await _check_one(
            CheckerId.PATHS,
            plan_text,
            project_dir,
            allowed_new_paths=allowed_new_paths or [],
        )

    @mcp.tool()
    async def check_schema(
        plan_text: str,
        project_dir: str,
        schema_path: str = "",
    ) -> str:
        """Check Prisma models, fields, methods and relations in a plan."""
        return await _check_one(
            CheckerId.SCHEMA,
            plan_text,
            project_dir,
            schema_path=Path(schema_path) if schema_path else None,
        )

    @mcp.tool()
    async def check_sql_schema(plan_text: str, project_dir: str) -> str:
        """Check Drizzle tables and SQL migration tables and columns."""
        return await _check_one(CheckerId.SQL_SCHEMA, plan_text, project_dir)

    @mcp.tool()
    async def check_supabase_schema(plan_text: str, project_dir: str) -> str:
        """Check Supabase client tables, columns and RPC functions."""
        return await _check_one(
            CheckerId.SUPABASE_SCHEMA, plan_text, project_dir
        )

    @mcp.tool()
    async def check_imports(plan_text: str, project_dir: str) -> str:
        """Check imported packages and subpaths against node_modules."""
        return await _check_one(CheckerId.IMPORTS, plan_text, project_dir)

    @mcp.tool()
    async def check_env(plan_text: str, project_dir: str) -> str:
        """Check environment variables against the project's .env files."""
        return await _check_one(CheckerId.ENV, plan_text, project_dir)

    @mcp.tool()
    async def check_types(plan_text: str, project_dir: str) -> str:
        """Check TypeScript types and members declared in the project."""
        return await _check_one(CheckerId.TYPES, plan_text, project_dir)

    @mcp.tool()
    async def check_routes(plan_text: str, project_dir: str) -> str:
        """Check Next.js App Router API routes and HTTP methods."""
        return await _check_one(CheckerId.ROUTES, plan_text, project_dir)

    @mcp.tool()
    async def check_express_routes(plan_text: str, project_dir: str) -> str:
        """Check Express/Fastify routes and HTTP methods."""
        return await _check_one(
            CheckerId.EXPRESS_ROUTES, plan_text, project_dir
        )

    @mcp.tool()
    async def check_package_api(plan_text: str, project_dir: str) -> str:
        """Check named imports and member calls against package typings."""
        return await _check_one(CheckerId.PACKAGE_API, plan_text, project_dir)

    @mcp.tool()
    async def check_all(
        plan_text: str,
        project_dir: str,
        schema_path: str = "",
        allowed_new_paths: list[str] | None = None,
        include_experimental: bool = False,
    ) -> str:
        """Run every checker and return one consolidated report.

        Each section carries the ground truth it was checked against.
        """
        from planproof.mcp.server import get_registry
        from planproof.report import format_check_all

        try:
            root = resolve_project_dir(project_dir)
        except PlanProofError as exc:
            return f"Error: {exc}"
        settings = Settings()
        options = build_check_options(
            settings,
            schema_path=Path(schema_path) if schema_path else None,
            allowed_new_paths=allowed_new_paths or [],
            include_experimental=include_experimental,
        )
        runs = await asyncio.to_thread(
            run_checks, plan_text, root, options, get_registry()
        )
        _record_catch(settings, "check_all", runs, root)
        return format_check_all(runs, root)


async def _check_one(
    checker_id: str,
    plan_text: str,
    project_dir: str,
    *,
    schema_path: Path | None = None,
    allowed_new_paths: list[str] | None = None,
) -> str:
    """Run a single checker and render its section of the report."""
    from planproof.mcp.server import get_registry

    try:
        root = resolve_project_dir(project_dir)
    except PlanProofError as exc:
        return f"Error: {exc}"
    checker = get_registry().get(checker_id)
    settings = Settings()
    options = build_check_options(
        settings,
        schema_path=schema_path,
        allowed_new_paths=allowed_new_paths or [],
    )
    result = await asyncio.to_thread(
        run_checker, checker, plan_text, root, options
    )
    _record_catch(settings, checker_id, [CheckerRun(checker, result)], root)
    if not result.applicable:
        return _NOT_APPLICABLE.get(
            checker_id, f"{checker.display_name}: not applicable."
        )
    return "\n".join(checker.format_for_check_all(result)).rstrip()


def _record_catch(
    settings: Settings, tool: str, runs: list[CheckerRun], root: Path
) -> None:
    if settings.log_catches:
        log_catch(build_catch_entry(tool, runs, root), settings.catches_file)
