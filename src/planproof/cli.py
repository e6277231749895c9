"""CLI entry point: ``planproof check`` and ``planproof mcp``."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from planproof import __version__, report
from planproof.analysis.engine import load_plan, resolve_project_dir, run_checks
from planproof.analysis.schemas import CheckOptions
from planproof.config import Settings, build_check_options
from planproof.constants import OutputFormat
from planproof.errors import PlanProofError
from planproof.logging_config import setup_logging


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"planproof {__version__}")
        return

    settings = Settings()
    level = "DEBUG" if getattr(args, "verbose", False) else settings.log_level
    setup_logging(level)

    if args.command == "check":
        _run_check(args, settings)
    elif args.command == "mcp":
        _run_mcp(args)
    else:
        parser.print_help()


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="planproof",
        description=(
            "Verify an implementation plan against "
            "the real state of a project."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )

    sub = parser.add_subparsers(dest="command")

    check = sub.add_parser(
        "check",
        help="Check a plan for hallucinated references",
    )
    check.add_argument(
        "--plan",
        default=None,
        help="Path to the plan file (default: read stdin)",
    )
    check.add_argument(
        "--project",
        "-p",
        default=".",
        help="Project directory (default: current directory)",
    )
    check.add_argument(
        "--format",
        "-f",
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.TEXT.value,
        help="Report format (default: text)",
    )
    check.add_argument(
        "--schema",
        default=None,
        help="Path to the Prisma schema file",
    )
    check.add_argument(
        "--allow-new",
        action="append",
        default=[],
        metavar="GLOB",
        help="Glob of paths the plan may create (repeatable)",
    )
    check.add_argument(
        "--experimental",
        action="store_true",
        help="Also run experimental checkers",
    )
    check.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    mcp_parser = sub.add_parser(
        "mcp",
        help="Start MCP server",
    )
    mcp_parser.add_argument(
        "--transport",
        "-t",
        choices=["stdio", "sse"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    mcp_parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Bind address for SSE transport (default: 127.0.0.1)",
    )
    mcp_parser.add_argument(
        "--port",
        type=int,
        default=8001,
        help="Port for SSE transport (default: 8001)",
    )

    return parser


def _build_options(
    args: argparse.Namespace, settings: Settings
) -> CheckOptions:
    """CLI flags layered over settings."""
    return build_check_options(
        settings,
        schema_path=Path(args.schema).resolve() if args.schema else None,
        allowed_new_paths=args.allow_new,
        include_experimental=args.experimental,
    )


def _run_check(args: argparse.Namespace, settings: Settings) -> None:
    """Execute the check command."""
    try:
        plan_text = load_plan(args.plan) if args.plan else sys.stdin.read()
        project_dir = resolve_project_dir(args.project)
    except PlanProofError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    if not plan_text.strip():
        print("Error: no plan provided", file=sys.stderr)
        sys.exit(1)

    runs = run_checks(plan_text, project_dir, _build_options(args, settings))

    fmt = OutputFormat(args.format)
    if fmt == OutputFormat.JSON:
        print(json.dumps(report.build_json_report(runs, project_dir), indent=2))
    elif fmt == OutputFormat.MARKDOWN:
        print(report.format_check_all(runs, project_dir))
    elif fmt == OutputFormat.FINDINGS:
        print(report.format_findings_context(runs))
    else:
        print(report.format_text_report(runs))

    code = report.exit_code_for(runs)
    if code:
        sys.exit(code)


def _run_mcp(args: argparse.Namespace) -> None:
    """Start the MCP server."""
    from planproof.mcp import mcp

    if args.transport == "stdio":
        mcp.run(transport="stdio")
    else:
        mcp.run(transport="sse", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
