"""Shared constants, the single source of truth for cross-module values.

All magic strings and numbers that appear in 2+ files belong here.
StrEnum members are str-compatible, so downstream code (JSON output,
MCP tool text) works unchanged.
"""

from __future__ import annotations

from enum import StrEnum

# ── String Enums ─────────────────────────────────────────


class CheckerId(StrEnum):
    """Registered checker identifiers, in registry order."""

    PATHS = "paths"
    SCHEMA = "schema"
    SQL_SCHEMA = "sqlSchema"
    IMPORTS = "imports"
    ENV = "env"
    TYPES = "types"
    ROUTES = "routes"
    SUPABASE_SCHEMA = "supabaseSchema"
    EXPRESS_ROUTES = "expressRoutes"
    PACKAGE_API = "packageApi"


class HallucinationCategory(StrEnum):
    """Subcategory attached to an invalid reference."""

    PATH = "hallucinated-path"
    MODEL = "hallucinated-model"
    FIELD = "hallucinated-field"
    INVALID_METHOD = "invalid-method"
    WRONG_RELATION = "wrong-relation"
    TABLE = "hallucinated-table"
    COLUMN = "hallucinated-column"
    FUNCTION = "hallucinated-function"
    TYPE = "hallucinated-type"
    MEMBER = "hallucinated-member"
    ROUTE = "hallucinated-route"
    HTTP_METHOD = "hallucinated-method"
    NAMED_IMPORT = "hallucinated-named-import"
    PACKAGE_NOT_FOUND = "package-not-found"
    SUBPATH_NOT_EXPORTED = "subpath-not-exported"
    ENV_VAR = "not-in-env-files"


class OutputFormat(StrEnum):
    """CLI report formats."""

    TEXT = "text"
    JSON = "json"
    MARKDOWN = "markdown"
    FINDINGS = "findings"


class Framework(StrEnum):
    """Call-based HTTP router frameworks detected from package.json."""

    EXPRESS = "express"
    FASTIFY = "fastify"
    BOTH = "both"
    NONE = "none"


# ── File tree ────────────────────────────────────────────

DEFAULT_IGNORES: tuple[str, ...] = (
    "node_modules",
    ".git",
    "dist",
    "build",
    ".planproof",
    "__pycache__",
    ".next",
    ".venv",
    "venv",
)
DEFAULT_MAX_SCAN_DEPTH = 6

# ── Extraction ───────────────────────────────────────────

# Backward search window for nearest-anchor scoping
ANCHOR_LOOKBACK_CHARS = 500

# ── Routes ───────────────────────────────────────────────

HTTP_METHODS: tuple[str, ...] = (
    "GET",
    "POST",
    "PUT",
    "PATCH",
    "DELETE",
    "HEAD",
    "OPTIONS",
)

# ── Packages ─────────────────────────────────────────────

DECLARATION_EXTENSIONS: tuple[str, ...] = (".d.ts", ".d.cts", ".d.mts")
PACKAGE_REEXPORT_MAX_DEPTH = 3

NODE_BUILTINS: frozenset[str] = frozenset(
    {
        "assert", "buffer", "child_process", "cluster", "console",
        "constants", "crypto", "dgram", "dns", "domain", "events",
        "fs", "http", "http2", "https", "module", "net", "os", "path",
        "perf_hooks", "process", "punycode", "querystring", "readline",
        "repl", "stream", "string_decoder", "sys", "timers", "tls",
        "trace_events", "tty", "url", "util", "v8", "vm",
        "worker_threads", "zlib", "test",
    }
)

# ── Report ───────────────────────────────────────────────

REPORT_SCHEMA_VERSION = "1.0"
FINDING_SEVERITY = "error"

# ── ORM / query builders ─────────────────────────────────

# Delegate methods on a Prisma Client model accessor
PRISMA_CLIENT_METHODS: tuple[str, ...] = (
    "findMany",
    "findUnique",
    "findFirst",
    "findUniqueOrThrow",
    "findFirstOrThrow",
    "create",
    "createMany",
    "createManyAndReturn",
    "update",
    "updateMany",
    "upsert",
    "delete",
    "deleteMany",
    "count",
    "aggregate",
    "groupBy",
)

# Drizzle table-builder functions
DRIZZLE_TABLE_FUNCTIONS: tuple[str, ...] = (
    "pgTable",
    "mysqlTable",
    "sqliteTable",
)
