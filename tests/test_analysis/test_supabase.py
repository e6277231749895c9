"""Tests for the Supabase types parser and schema checker."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from planproof.analysis.checkers.supabase_schema import (
    SupabaseSchemaChecker,
    analyze_supabase,
)
from planproof.analysis.extractors.supabase import (
    extract_supabase_refs,
    nearest_from,
    parse_select_columns,
)
from planproof.analysis.file_tree import scan_project_files
from planproof.analysis.indexers.supabase import (
    find_supabase_types_file,
    parse_supabase_types,
)
from planproof.analysis.schemas import CheckOptions
from planproof.constants import HallucinationCategory

WriteTree = Callable[[dict[str, str]], Path]

TYPES = """\
export type Json = string | number | null

export type Database = {
  public: {
    Tables: {
      profiles: {
        Row: {
          id: string
          username: string | null
        }
        Insert: {
          id: string
        }
        Update: {
          id?: string
        }
        Relationships: []
      }
    }
    Functions: {
      get_stats: {
        Args: { user_id: string }
        Returns: number
      }
    }
    Enums: {
      user_role: "admin" | "member"
    }
  }
}
"""

PLAN = """\
```ts
const { data } = await supabase
  .from('profiles')
  .select('id, username, avatar_url')
  .eq('id', userId)
await supabase.rpc('get_stat', { user_id })
```

```ts
await supabase.from('teams').select('*')
```
"""


class TestParseSupabaseTypes:
    def test_tables_functions_enums(self) -> None:
        schema = parse_supabase_types(TYPES)
        assert list(schema.tables) == ["profiles"]
        assert schema.tables["profiles"].columns == {
            "id": "string",
            "username": "string | null",
        }
        assert schema.functions["get_stats"].args == {"user_id": "string"}
        assert schema.functions["get_stats"].returns == "number"
        assert schema.enums == {"user_role": ["admin", "member"]}

    def test_types_file_found_outside_conventional_paths(
        self, write_tree: WriteTree
    ) -> None:
        root = write_tree({"src/gen/db.ts": TYPES, "src/a.ts": "export {}"})
        tree = scan_project_files(root)
        assert find_supabase_types_file(root, tree) == "src/gen/db.ts"


class TestExtractSupabaseRefs:
    def test_nearest_from_stops_at_blank_line(self) -> None:
        text = ".from('a')\n\n.select('x')"
        assert nearest_from(text, text.index(".select")) is None

    def test_nearest_from_takes_last(self) -> None:
        text = ".from('a').select('x')\n.from('b').select('y')"
        assert nearest_from(text, text.rindex(".select")) == "b"

    def test_select_aliases_and_embeds(self) -> None:
        refs = parse_select_columns("id, name:username, author:users(email)", "t")
        assert [(r.kind, r.owner, r.name) for r in refs] == [
            ("column", "t", "id"),
            ("column", "t", "username"),
            ("embed", "users", None),
            ("embed", "users", "email"),
        ]

    def test_rpc_refs(self) -> None:
        refs = extract_supabase_refs(PLAN)
        functions = [r.name for r in refs if r.kind == "function"]
        assert functions == ["get_stat"]


class TestAnalyzeSupabase:
    def test_findings(self) -> None:
        refs = analyze_supabase(PLAN, parse_supabase_types(TYPES))
        found = {
            (r.category, r.suggestion) for r in refs if r.hallucinated
        }
        assert found == {
            (HallucinationCategory.TABLE, None),
            (HallucinationCategory.COLUMN, None),
            (HallucinationCategory.FUNCTION, "get_stats"),
        }

    def test_unknown_embed_dropped(self) -> None:
        plan = "`supabase.from('profiles').select('id, owner(name)')`"
        refs = analyze_supabase(plan, parse_supabase_types(TYPES))
        assert not any(r.hallucinated for r in refs)


class TestSupabaseSchemaChecker:
    def test_not_applicable_without_types(self, write_tree: WriteTree) -> None:
        root = write_tree({"src/a.ts": "export {}"})
        result = SupabaseSchemaChecker().run(PLAN, root, CheckOptions())
        assert not result.applicable

    def test_check_all_lists_ground_truth(self, write_tree: WriteTree) -> None:
        root = write_tree({"types/supabase.ts": TYPES})
        checker = SupabaseSchemaChecker()
        result = checker.run(PLAN, root, CheckOptions())
        assert result.applicable
        assert result.hallucinated == 3
        text = "\n".join(checker.format_for_check_all(result))
        assert "- `profiles`: `id`, `username`" in text
        assert "**Functions:** `get_stats`" in text
        assert "user_role (admin | member)" in text
