"""Supabase generated database types (``supabase gen types typescript``)."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pydantic import BaseModel, Field

from planproof.analysis.file_tree import FileTree, read_text
from planproof.analysis.text import balanced_slice

logger = logging.getLogger(__name__)

COMMON_TYPES_PATHS: tuple[str, ...] = (
    "lib/types/database.types.ts",
    "types/supabase.ts",
    "src/types/database.types.ts",
    "src/types/supabase.ts",
    "database.types.ts",
    "types/database.types.ts",
    "src/database.types.ts",
    "lib/database.types.ts",
    "src/lib/database.types.ts",
)

_DATABASE_TYPE_RE = re.compile(r"export\s+type\s+Database\s*=")
_TABLES_KEY_RE = re.compile(r"Tables:\s*\{")
_ENTRY_RE = re.compile(r"(\w+):\s*\{")
_FIELD_RE = re.compile(r"(\w+)\s*:\s*([^;\n]+)")
_RETURNS_RE = re.compile(r"Returns:\s*([^\n;}{]+)")
_ENUM_RE = re.compile(r"(\w+):\s*([^\n]+)")
_LITERAL_RE = re.compile(r"[\"']([^\"']+)[\"']")

_TABLE_SUBKEYS = frozenset({"Row", "Insert", "Update", "Relationships"})
_FUNCTION_SUBKEYS = frozenset({"Args", "Returns"})


class SupabaseTable(BaseModel):
    name: str
    columns: dict[str, str] = Field(default_factory=lambda: dict[str, str]())


class SupabaseFunction(BaseModel):
    name: str
    args: dict[str, str] = Field(default_factory=lambda: dict[str, str]())
    returns: str = "unknown"


class SupabaseSchema(BaseModel):
    types_file: str | None = None
    tables: dict[str, SupabaseTable] = Field(
        default_factory=lambda: dict[str, SupabaseTable]()
    )
    functions: dict[str, SupabaseFunction] = Field(
        default_factory=lambda: dict[str, SupabaseFunction]()
    )
    enums: dict[str, list[str]] = Field(
        default_factory=lambda: dict[str, list[str]]()
    )


def is_supabase_types(content: str) -> bool:
    return bool(
        _DATABASE_TYPE_RE.search(content) and _TABLES_KEY_RE.search(content)
    )


def find_supabase_types_file(project_dir: Path, tree: FileTree) -> str | None:
    """Conventional locations first, then every ``.ts`` file in the tree."""
    candidates = [p for p in COMMON_TYPES_PATHS if p in tree]
    candidates.extend(p for p in tree.with_suffix(".ts") if p not in candidates)
    for rel in candidates:
        content = read_text(project_dir / rel)
        if content is not None and is_supabase_types(content):
            return rel
    return None


def extract_section(content: str, name: str) -> str | None:
    """Body of the first ``Name: { ... }`` block."""
    m = re.search(rf"\b{name}:\s*\{{", content)
    if m is None:
        return None
    sliced = balanced_slice(content, m.end())
    return sliced[0] if sliced else None


def parse_field_list(section: str) -> dict[str, str]:
    return {m.group(1): m.group(2).strip() for m in _FIELD_RE.finditer(section)}


def _iter_blocks(
    section: str, skip: frozenset[str]
) -> list[tuple[str, str]]:
    """``name: { body }`` entries at the top of a section."""
    blocks: list[tuple[str, str]] = []
    pos = 0
    while True:
        m = _ENTRY_RE.search(section, pos)
        if m is None:
            return blocks
        pos = m.end()
        if m.group(1) in skip:
            continue
        sliced = balanced_slice(section, m.end(), strict=True)
        if sliced is None:
            continue
        blocks.append((m.group(1), sliced[0]))
        pos = sliced[1]


def parse_supabase_types(content: str) -> SupabaseSchema:
    schema = SupabaseSchema()

    tables = extract_section(content, "Tables")
    if tables:
        for name, block in _iter_blocks(tables, _TABLE_SUBKEYS):
            row = extract_section(block, "Row")
            if row is None:
                continue
            schema.tables[name] = SupabaseTable(
                name=name, columns=parse_field_list(row)
            )

    functions = extract_section(content, "Functions")
    if functions:
        for name, block in _iter_blocks(functions, _FUNCTION_SUBKEYS):
            args = extract_section(block, "Args")
            returns = _RETURNS_RE.search(block)
            schema.functions[name] = SupabaseFunction(
                name=name,
                args=parse_field_list(args) if args else {},
                returns=returns.group(1).strip() if returns else "unknown",
            )

    enums = extract_section(content, "Enums")
    if enums:
        for m in _ENUM_RE.finditer(enums):
            values = _LITERAL_RE.findall(m.group(2))
            if values:
                schema.enums[m.group(1)] = values

    return schema


def load_supabase_schema(project_dir: Path, tree: FileTree) -> SupabaseSchema | None:
    rel = find_supabase_types_file(project_dir, tree)
    if rel is None:
        return None
    content = read_text(project_dir / rel)
    if content is None:
        return None
    schema = parse_supabase_types(content)
    schema.types_file = rel
    logger.debug(
        "Parsed Supabase types %s: %d tables, %d functions",
        rel,
        len(schema.tables),
        len(schema.functions),
    )
    return schema
