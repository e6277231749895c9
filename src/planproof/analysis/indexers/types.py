"""Project TypeScript declarations: interfaces, type aliases, enums, classes."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from planproof.analysis.file_tree import FileTree, read_text

logger = logging.getLogger(__name__)

MemberKind = Literal["property", "method", "enum-member"]
DeclarationKind = Literal["interface", "type", "enum", "class"]

_INTERFACE_RE = re.compile(
    r"^(?:export\s+)?interface\s+(\w+)(?:<[^{]*?>)?"
    r"(?:\s+extends\s+[\w\s,<>.]+)?\s*\{([\s\S]*?)^\}",
    re.MULTILINE,
)
_TYPE_OBJECT_RE = re.compile(
    r"^(?:export\s+)?type\s+(\w+)(?:<[^>]+>)?\s*=\s*\{([\s\S]*?)^\}",
    re.MULTILINE,
)
_TYPE_ALIAS_RE = re.compile(
    r"^(?:export\s+)?type\s+(\w+)(?:<[^>]+>)?\s*=[^{]", re.MULTILINE
)
_ENUM_RE = re.compile(
    r"^(?:export\s+)?(?:const\s+)?enum\s+(\w+)\s*\{([\s\S]*?)^\}",
    re.MULTILINE,
)
_CLASS_RE = re.compile(
    r"^(?:export\s+)?(?:abstract\s+)?class\s+(\w+)"
    r"(?:\s+(?:extends|implements)[\s\S]*?)?\s*\{([\s\S]*?)^\}",
    re.MULTILINE,
)

_OBJECT_METHOD_RE = re.compile(r"^(\w+)\??\s*[(<]")
_OBJECT_PROP_RE = re.compile(r"^(?:readonly\s+)?(\w+)\??\s*:")
_ENUM_MEMBER_RE = re.compile(r"^(\w+)(?:\s*=|\s*,|\s*$)")
_CLASS_MODIFIERS = (
    r"(?:(?:public|private|protected|static|abstract|async|override|readonly)\s+)*"
)
_CLASS_METHOD_RE = re.compile(rf"^{_CLASS_MODIFIERS}(\w+)\??\s*[(<]")
_CLASS_PROP_RE = re.compile(rf"^{_CLASS_MODIFIERS}(\w+)\??\s*[:=]")

KEYWORDS = frozenset(
    {
        "if", "else", "for", "while", "do", "switch", "case", "break",
        "continue", "return", "throw", "try", "catch", "finally", "new",
        "delete", "typeof", "void", "in", "of", "instanceof", "yield",
        "await", "import", "export", "default", "const", "let", "var",
        "function", "class", "extends", "super", "this", "constructor",
    }
)


class TypeMember(BaseModel):
    name: str
    kind: MemberKind


class TypeDeclaration(BaseModel):
    name: str
    kind: DeclarationKind
    members: dict[str, TypeMember] = Field(
        default_factory=lambda: dict[str, TypeMember]()
    )
    source_file: str = ""


class TypeIndex(BaseModel):
    """Declared type name to its declaration; last scanned file wins."""

    declarations: dict[str, TypeDeclaration] = Field(
        default_factory=lambda: dict[str, TypeDeclaration]()
    )

    def get(self, name: str) -> TypeDeclaration | None:
        return self.declarations.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.declarations

    def __len__(self) -> int:
        return len(self.declarations)


def _body_lines(body: str) -> Iterator[str]:
    for line in body.split("\n"):
        stripped = line.strip()
        if stripped and not stripped.startswith(("//", "/*")):
            yield stripped


def parse_object_members(body: str) -> dict[str, TypeMember]:
    """Members of an interface or object type literal body."""
    members: dict[str, TypeMember] = {}
    for line in _body_lines(body):
        m = _OBJECT_METHOD_RE.match(line)
        if m and m.group(1) not in KEYWORDS:
            members[m.group(1)] = TypeMember(name=m.group(1), kind="method")
            continue
        m = _OBJECT_PROP_RE.match(line)
        if m:
            members[m.group(1)] = TypeMember(name=m.group(1), kind="property")
    return members


def parse_enum_members(body: str) -> dict[str, TypeMember]:
    members: dict[str, TypeMember] = {}
    for line in _body_lines(body):
        m = _ENUM_MEMBER_RE.match(line)
        if m:
            members[m.group(1)] = TypeMember(name=m.group(1), kind="enum-member")
    return members


def parse_class_members(body: str) -> dict[str, TypeMember]:
    """Methods and properties of a class body; the constructor is skipped."""
    members: dict[str, TypeMember] = {}
    for line in _body_lines(body):
        m = _CLASS_METHOD_RE.match(line)
        if m and m.group(1) not in KEYWORDS:
            members[m.group(1)] = TypeMember(name=m.group(1), kind="method")
            continue
        m = _CLASS_PROP_RE.match(line)
        if m and m.group(1) not in KEYWORDS:
            members[m.group(1)] = TypeMember(name=m.group(1), kind="property")
    return members


def parse_type_declarations(
    content: str, source_file: str
) -> list[TypeDeclaration]:
    declarations: list[TypeDeclaration] = []

    def declare(
        name: str, kind: DeclarationKind, members: dict[str, TypeMember]
    ) -> None:
        declarations.append(
            TypeDeclaration(
                name=name, kind=kind, members=members, source_file=source_file
            )
        )

    for m in _INTERFACE_RE.finditer(content):
        declare(m.group(1), "interface", parse_object_members(m.group(2)))
    for m in _TYPE_OBJECT_RE.finditer(content):
        declare(m.group(1), "type", parse_object_members(m.group(2)))
    for m in _TYPE_ALIAS_RE.finditer(content):
        if not any(d.name == m.group(1) for d in declarations):
            declare(m.group(1), "type", {})
    for m in _ENUM_RE.finditer(content):
        declare(m.group(1), "enum", parse_enum_members(m.group(2)))
    for m in _CLASS_RE.finditer(content):
        declare(m.group(1), "class", parse_class_members(m.group(2)))
    return declarations


def build_type_index(project_dir: Path, tree: FileTree) -> TypeIndex:
    """Index every ``.ts``/``.tsx`` source file, skipping ``.d.ts``."""
    index = TypeIndex()
    for rel in tree.with_suffix(".ts", ".tsx"):
        if rel.endswith(".d.ts"):
            continue
        content = read_text(project_dir / rel)
        if content is None:
            continue
        for decl in parse_type_declarations(content, rel):
            index.declarations[decl.name] = decl
    logger.debug("Indexed %d type declarations", len(index))
    return index
