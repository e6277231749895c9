"""MCP server: FastMCP instance with configure helpers."""

from __future__ import annotations

from fastmcp import FastMCP

from planproof import __version__
from planproof.analysis.checkers import default_registry
from planproof.analysis.indexers.packages import PackageApiCache
from planproof.analysis.registry import CheckerRegistry
from planproof.mcp.tools import register_tools

mcp = FastMCP(
    name="planproof",
    version=__version__,
    instructions=(
        "Deterministic plan verification: checks file paths, schemas, "
        "imports, env variables, types and routes referenced in a plan "
        "against the real project"
    ),
)

_package_cache = PackageApiCache()
_registry: CheckerRegistry | None = None

register_tools(mcp)


def configure(cache: PackageApiCache | None = None) -> None:
    """Reset the checker registry, optionally with a new package cache.

    The package API cache lives as long as the server so repeated
    tool calls on the same project skip re-parsing declaration files.
    """
    global _package_cache, _registry  # noqa: PLW0603
    _package_cache = cache if cache is not None else PackageApiCache()
    _registry = None


def get_registry() -> CheckerRegistry:
    """Get the server's registry, building it on first use."""
    global _registry  # noqa: PLW0603
    if _registry is None:
        _registry = default_registry(_package_cache)
    return _registry
