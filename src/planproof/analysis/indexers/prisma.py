"""Prisma schema parser: models, fields, relations and enums."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pydantic import BaseModel, Field

from planproof.analysis.file_tree import read_text

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_PATH = Path("prisma/schema.prisma")

_ENUM_RE = re.compile(r"^enum\s+(\w+)\s*\{", re.MULTILINE)
_MODEL_RE = re.compile(r"^model\s+(\w+)\s*\{([\s\S]*?)^\}", re.MULTILINE)
_FIELD_RE = re.compile(r"^(\w+)\s+(\w+)(\[\])?\??")
_BLOCK_KEYWORDS = frozenset({"model", "enum", "generator", "datasource"})


class PrismaField(BaseModel):
    name: str
    type: str
    is_list: bool = False
    is_relation: bool = False


class PrismaModel(BaseModel):
    name: str
    accessor: str
    fields: dict[str, PrismaField] = Field(
        default_factory=lambda: dict[str, PrismaField]()
    )

    @property
    def relation_fields(self) -> list[PrismaField]:
        return [f for f in self.fields.values() if f.is_relation]


class PrismaSchema(BaseModel):
    """Models keyed by name plus the accessor <-> model mapping."""

    models: dict[str, PrismaModel] = Field(
        default_factory=lambda: dict[str, PrismaModel]()
    )
    enums: list[str] = Field(default_factory=lambda: list[str]())
    accessor_to_model: dict[str, str] = Field(
        default_factory=lambda: dict[str, str]()
    )
    model_to_accessor: dict[str, str] = Field(
        default_factory=lambda: dict[str, str]()
    )

    def model_for_accessor(self, accessor: str) -> PrismaModel | None:
        name = self.accessor_to_model.get(accessor)
        return self.models.get(name) if name else None


def to_accessor(model_name: str) -> str:
    """Client accessor for a model: ``BlogPost`` -> ``blogPost``."""
    return model_name[:1].lower() + model_name[1:]


def parse_prisma_schema(content: str) -> PrismaSchema:
    """Parse schema text into a :class:`PrismaSchema`.

    Relation detection takes two passes: a field is relational when its
    type names a model seen earlier or carries ``@relation``; the second
    pass catches types naming models declared further down the file.
    """
    schema = PrismaSchema(enums=_ENUM_RE.findall(content))

    for m in _MODEL_RE.finditer(content):
        name, body = m.group(1), m.group(2)
        model = PrismaModel(name=name, accessor=to_accessor(name))
        for line in body.split("\n"):
            field = _parse_field_line(line.strip(), schema.models)
            if field is not None:
                model.fields[field.name] = field
        schema.models[name] = model
        schema.accessor_to_model[model.accessor] = name
        schema.model_to_accessor[name] = model.accessor

    for model in schema.models.values():
        for field in model.fields.values():
            if not field.is_relation and field.type in schema.models:
                field.is_relation = True

    return schema


def _parse_field_line(
    line: str, seen_models: dict[str, PrismaModel]
) -> PrismaField | None:
    if not line or line.startswith(("@@", "//")):
        return None
    m = _FIELD_RE.match(line)
    if m is None or m.group(1) in _BLOCK_KEYWORDS:
        return None
    field_type = m.group(2)
    return PrismaField(
        name=m.group(1),
        type=field_type,
        is_list=m.group(3) is not None,
        is_relation=field_type in seen_models or "@relation" in line,
    )


def find_prisma_schema(
    project_dir: Path, override: Path | None = None
) -> Path | None:
    """Explicit override first, then the conventional location."""
    if override is not None:
        path = override if override.is_absolute() else project_dir / override
        return path if path.is_file() else None
    candidate = project_dir / DEFAULT_SCHEMA_PATH
    return candidate if candidate.is_file() else None


def load_prisma_schema(path: Path) -> PrismaSchema | None:
    content = read_text(path)
    if content is None:
        return None
    schema = parse_prisma_schema(content)
    logger.debug(
        "Parsed %d Prisma models from %s", len(schema.models), path
    )
    return schema
