"""Tests for the TypeScript type indexer and (experimental) checker."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from planproof.analysis.checkers.types import TypesChecker, analyze_types
from planproof.analysis.extractors.types import (
    extract_type_refs,
    has_type_create_signal,
    is_pascal_case,
)
from planproof.analysis.file_tree import scan_project_files
from planproof.analysis.indexers.types import (
    TypeIndex,
    build_type_index,
    parse_type_declarations,
)
from planproof.analysis.schemas import CheckOptions
from planproof.constants import HallucinationCategory

WriteTree = Callable[[dict[str, str]], Path]

SOURCE = """\
export interface UserProfile<T = unknown> {
  id: string;
  displayName: string;
  getInitials(): string;
}

export enum Role {
  Admin = "admin",
  Member = "member",
}

export type UserId = string;

export class UserService {
  private cache = new Map();
  async findById(id: string) {}
  static create(): UserService {}
}
"""

PLAN = """\
```ts
function render(profile: UserProfile, role: Role): UserSettings {
  const avatar: UserProfile['avatarUrl'] = null;
  return UserService.findByEmail(profile.id);
}
```
"""


class TestParseTypeDeclarations:
    def test_kinds_and_members(self) -> None:
        decls = {d.name: d for d in parse_type_declarations(SOURCE, "a.ts")}
        assert decls["UserProfile"].kind == "interface"
        assert list(decls["UserProfile"].members) == [
            "id",
            "displayName",
            "getInitials",
        ]
        assert decls["UserProfile"].members["getInitials"].kind == "method"
        assert list(decls["Role"].members) == ["Admin", "Member"]
        assert decls["UserId"].members == {}
        assert list(decls["UserService"].members) == [
            "cache",
            "findById",
            "create",
        ]

    def test_declaration_files_skipped(self, write_tree: WriteTree) -> None:
        root = write_tree(
            {"src/a.ts": SOURCE, "src/env.d.ts": "export interface Env {\n}\n"}
        )
        index = build_type_index(root, scan_project_files(root))
        assert "UserProfile" in index
        assert "Env" not in index
        assert index.get("Role").source_file == "src/a.ts"


class TestExtractTypeRefs:
    def test_pascal_case_requires_lowercase(self) -> None:
        assert is_pascal_case("UserProfile")
        assert not is_pascal_case("URL")
        assert not is_pascal_case("userProfile")

    def test_builtins_and_prose_words_ignored(self) -> None:
        plan = "`const m: Map<string, Promise<Response>> = new Map()`"
        assert extract_type_refs(plan) == []

    def test_created_types_skipped(self) -> None:
        plan = "Create interface `AuditLog`.\n`const log: AuditLog = x`"
        assert has_type_create_signal("AuditLog", plan)
        assert extract_type_refs(plan) == []

    def test_reference_kinds(self) -> None:
        refs = {r.raw: r for r in extract_type_refs(PLAN)}
        assert refs["UserSettings"].kind == "type"
        assert refs["UserService.findByEmail"].kind == "member"
        assert refs["UserProfile['avatarUrl']"].name == "avatarUrl"


class TestAnalyzeTypes:
    def test_findings(self) -> None:
        index = TypeIndex(
            declarations={
                d.name: d for d in parse_type_declarations(SOURCE, "a.ts")
            }
        )
        refs = analyze_types(PLAN, index)
        hallucinated = {r.raw: r for r in refs if r.hallucinated}
        assert set(hallucinated) == {
            "UserSettings",
            "UserService.findByEmail",
            "UserProfile['avatarUrl']",
        }
        assert (
            hallucinated["UserSettings"].category == HallucinationCategory.TYPE
        )
        assert hallucinated["UserService.findByEmail"].suggestion == (
            "valid members: cache, findById, create"
        )


class TestTypesChecker:
    def test_experimental_flag(self) -> None:
        assert TypesChecker.experimental is True

    def test_not_applicable_without_declarations(
        self, write_tree: WriteTree
    ) -> None:
        root = write_tree({"src/a.ts": "export const a = 1;\n"})
        result = TypesChecker().run(PLAN, root, CheckOptions())
        assert not result.applicable

    def test_declared_in_context(self, write_tree: WriteTree) -> None:
        root = write_tree({"src/models.ts": SOURCE})
        checker = TypesChecker()
        result = checker.run(PLAN, root, CheckOptions())
        assert result.hallucinated == 3
        text = "\n".join(checker.format_for_check_all(result))
        assert "Declared in `src/models.ts`" in text
