"""Drizzle table builders and raw ``CREATE TABLE`` statements.

Two independent parsers feed one :class:`SqlSchema`. Builder-form
tables win on name collision since they also carry the exported
variable name.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from planproof.analysis.file_tree import FileTree, read_text
from planproof.analysis.text import (
    balanced_slice,
    iter_object_keys,
    split_top_level,
)
from planproof.constants import DRIZZLE_TABLE_FUNCTIONS

logger = logging.getLogger(__name__)

_TABLE_FNS = "|".join(DRIZZLE_TABLE_FUNCTIONS)
_DRIZZLE_TABLE_RE = re.compile(
    rf"export\s+const\s+(\w+)\s*=\s*(?:{_TABLE_FNS})\s*\(\s*[\"']([^\"']+)[\"']\s*,"
)
_DRIZZLE_CALL_RE = re.compile(rf"(?:{_TABLE_FNS})\s*\(")
_COLUMN_TYPE_RE = re.compile(r"\s*(\w+)\s*\(")

_CREATE_TABLE_RE = re.compile(
    r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?[\"'`]?(\w+)[\"'`]?\s*\(",
    re.IGNORECASE,
)
_CONSTRAINT_KEYWORDS = frozenset(
    {"primary", "foreign", "unique", "check", "constraint", "index"}
)
_SQL_COLUMN_RE = re.compile(r"^(\w+)\s+(\w+)")


class SqlTable(BaseModel):
    name: str
    variable_name: str | None = None
    columns: dict[str, str] = Field(default_factory=lambda: dict[str, str]())
    file_path: str
    source: Literal["drizzle", "sql"]


class SqlSchema(BaseModel):
    """Tables keyed by SQL name plus the Drizzle variable mapping."""

    tables: dict[str, SqlTable] = Field(
        default_factory=lambda: dict[str, SqlTable]()
    )
    variable_to_table: dict[str, str] = Field(
        default_factory=lambda: dict[str, str]()
    )

    def resolve(self, name: str) -> SqlTable | None:
        """Look a name up as a SQL table name, then as a variable."""
        table = self.tables.get(name)
        if table is not None:
            return table
        sql_name = self.variable_to_table.get(name)
        return self.tables.get(sql_name) if sql_name else None


def parse_drizzle_tables(content: str, file_path: str) -> list[SqlTable]:
    tables: list[SqlTable] = []
    for m in _DRIZZLE_TABLE_RE.finditer(content):
        tables.append(
            SqlTable(
                name=m.group(2),
                variable_name=m.group(1),
                columns=_drizzle_columns(content, m.end()),
                file_path=file_path,
                source="drizzle",
            )
        )
    return tables


def _drizzle_columns(content: str, start: int) -> dict[str, str]:
    """Columns of the object argument, including ``(t) => ({...})``."""
    i = start
    while i < len(content) and content[i] != "{":
        if content[i] == "(":
            arrow = content.find("=>", i)
            if arrow == -1:
                return {}
            i = arrow + 2
            while i < len(content) and (content[i].isspace() or content[i] == "("):
                i += 1
            break
        i += 1
    if i >= len(content) or content[i] != "{":
        return {}

    columns: dict[str, str] = {}
    for entry in iter_object_keys(content, i + 1):
        m = _COLUMN_TYPE_RE.match(content, entry.value_start, entry.value_end)
        columns[entry.key] = m.group(1) if m else "unknown"
    return columns


def parse_sql_tables(content: str, file_path: str) -> list[SqlTable]:
    tables: list[SqlTable] = []
    for m in _CREATE_TABLE_RE.finditer(content):
        sliced = balanced_slice(content, m.end(), "(")
        body = sliced[0] if sliced else ""
        tables.append(
            SqlTable(
                name=m.group(1),
                columns=_sql_columns(body),
                file_path=file_path,
                source="sql",
            )
        )
    return tables


def _sql_columns(body: str) -> dict[str, str]:
    columns: dict[str, str] = {}
    for part in split_top_level(body):
        cleaned = re.sub(r"[\"'`]", "", part.strip(), count=2)
        m = _SQL_COLUMN_RE.match(cleaned)
        if m is None or m.group(1).lower() in _CONSTRAINT_KEYWORDS:
            continue
        columns[m.group(1)] = m.group(2)
    return columns


def build_sql_schema(project_dir: Path, tree: FileTree) -> SqlSchema:
    """Scan builder-form ``.ts/.js`` files and ``.sql`` migrations."""
    schema = SqlSchema()
    sql_tables: list[SqlTable] = []

    for rel in tree:
        if rel.endswith((".ts", ".js")):
            content = read_text(project_dir / rel)
            if content is None or not _DRIZZLE_CALL_RE.search(content):
                continue
            for table in parse_drizzle_tables(content, rel):
                schema.tables[table.name] = table
                if table.variable_name:
                    schema.variable_to_table[table.variable_name] = table.name
        elif rel.endswith(".sql"):
            content = read_text(project_dir / rel)
            if content is None or not _CREATE_TABLE_RE.search(content):
                continue
            sql_tables.extend(parse_sql_tables(content, rel))

    for table in sql_tables:
        schema.tables.setdefault(table.name, table)

    logger.debug("Indexed %d SQL tables", len(schema.tables))
    return schema
