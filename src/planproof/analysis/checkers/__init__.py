"""Per-domain checkers and the default registry."""

from planproof.analysis.checkers.env import EnvChecker
from planproof.analysis.checkers.express_routes import ExpressRoutesChecker
from planproof.analysis.checkers.imports import ImportsChecker
from planproof.analysis.checkers.package_api import PackageApiChecker
from planproof.analysis.checkers.paths import PathChecker
from planproof.analysis.checkers.routes import RoutesChecker
from planproof.analysis.checkers.schema import SchemaChecker
from planproof.analysis.checkers.sql_schema import SqlSchemaChecker
from planproof.analysis.checkers.supabase_schema import SupabaseSchemaChecker
from planproof.analysis.checkers.types import TypesChecker
from planproof.analysis.indexers.packages import PackageApiCache
from planproof.analysis.registry import CheckerRegistry


def register_checkers(
    registry: CheckerRegistry, cache: PackageApiCache | None = None
) -> None:
    """Register every built-in checker in report order."""
    registry.register(PathChecker())
    registry.register(SchemaChecker())
    registry.register(SqlSchemaChecker())
    registry.register(ImportsChecker())
    registry.register(EnvChecker())
    registry.register(TypesChecker())
    registry.register(RoutesChecker())
    registry.register(SupabaseSchemaChecker())
    registry.register(ExpressRoutesChecker())
    registry.register(PackageApiChecker(cache))


def default_registry(cache: PackageApiCache | None = None) -> CheckerRegistry:
    registry = CheckerRegistry()
    register_checkers(registry, cache)
    return registry


__all__ = [
    "EnvChecker",
    "ExpressRoutesChecker",
    "ImportsChecker",
    "PackageApiChecker",
    "PathChecker",
    "RoutesChecker",
    "SchemaChecker",
    "SqlSchemaChecker",
    "SupabaseSchemaChecker",
    "TypesChecker",
    "default_registry",
    "register_checkers",
]
