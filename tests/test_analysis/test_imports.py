"""Tests for the package import checker."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from planproof.analysis.checkers.imports import (
    ImportsChecker,
    analyze_imports,
    suggest_package,
)
from planproof.analysis.extractors.imports import (
    extract_import_refs,
    extract_import_sources,
    should_skip,
)
from planproof.analysis.schemas import CheckOptions
from planproof.constants import HallucinationCategory

WriteTree = Callable[[dict[str, str]], Path]

_PLAN = """\
```ts
import { z } from 'zod';
import fs from 'node:fs';
import { helper } from './local';
import { db } from '@/lib/db';
import path from 'path';
const fp = require("lodash/fp");
const mod = await import('next/server');
```
"""


@pytest.fixture
def project(write_tree: WriteTree) -> Path:
    return write_tree(
        {
            "node_modules/zod/package.json": json.dumps({"name": "zod"}),
            "node_modules/lodash/package.json": json.dumps({"name": "lodash"}),
            "node_modules/next/package.json": json.dumps(
                {
                    "name": "next",
                    "exports": {".": "./index.js", "./server": "./server.js"},
                }
            ),
            "node_modules/@acme/ui-kit/package.json": json.dumps(
                {"name": "@acme/ui-kit"}
            ),
        }
    )


class TestExtractImports:
    def test_sources_in_pattern_order(self) -> None:
        assert extract_import_sources(_PLAN) == [
            "zod",
            "node:fs",
            "./local",
            "@/lib/db",
            "path",
            "lodash/fp",
            "next/server",
        ]

    def test_local_and_builtin_sources_are_skipped(self) -> None:
        refs = extract_import_refs(_PLAN)
        assert [(r.owner, r.name) for r in refs] == [
            ("zod", None),
            ("lodash", "fp"),
            ("next", "server"),
        ]

    def test_should_skip(self) -> None:
        assert should_skip("fs/promises")
        assert should_skip("~/utils")
        assert not should_skip("react")


class TestImportsChecker:
    def test_installed_packages_and_subpaths(self, project: Path) -> None:
        refs = analyze_imports(_PLAN, project / "node_modules")
        assert all(r.valid for r in refs)

    def test_missing_package_suggests_installed(self, project: Path) -> None:
        refs = analyze_imports("import x from 'zodd';", project / "node_modules")
        assert refs[0].category == HallucinationCategory.PACKAGE_NOT_FOUND
        assert refs[0].suggestion == "zod"

    def test_scoped_suggestion_stays_in_scope(self, project: Path) -> None:
        assert suggest_package("@acme/ui", project / "node_modules") == (
            "@acme/ui-kit"
        )

    def test_subpath_not_exported(self, project: Path) -> None:
        refs = analyze_imports(
            "import { useRouter } from 'next/router';", project / "node_modules"
        )
        assert refs[0].category == HallucinationCategory.SUBPATH_NOT_EXPORTED
        assert refs[0].suggestion == "available: server"

    def test_run_counts_and_renders(self, project: Path) -> None:
        plan = "import x from 'zodd';\nimport { z } from 'zod';"
        checker = ImportsChecker()
        result = checker.run(plan, project, CheckOptions())
        assert result.applicable
        assert result.checked == 2
        assert result.hallucinated == 1
        lines = checker.format_for_check_all(result)
        assert "- `zodd` — not installed (did you mean zod?)" in lines
        findings = checker.format_for_findings(result)
        assert findings is not None
        assert "package not found" in findings

    def test_not_applicable_without_node_modules(self, tmp_path: Path) -> None:
        result = ImportsChecker().run("import x from 'zod';", tmp_path, CheckOptions())
        assert not result.applicable
