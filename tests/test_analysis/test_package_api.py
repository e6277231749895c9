"""Tests for import bindings and the package API checker."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from planproof.analysis.checkers.package_api import PackageApiChecker
from planproof.analysis.extractors.packages import (
    extract_api_refs,
    extract_import_bindings,
)
from planproof.analysis.indexers.packages import PackageApiCache
from planproof.analysis.schemas import CheckOptions
from planproof.constants import HallucinationCategory

WriteTree = Callable[[dict[str, str]], Path]

_ZOD_DTS = """\
export declare function string(): ZodString;
export declare function object(shape: unknown): unknown;
export interface ZodString {
  email(): ZodString;
  min(n: number): ZodString;
}
"""

_PLAN = """\
Validate input with zod:

```ts
import * as z from 'zod';
import { ZodString, isEmail } from 'zod';

const schema = z.string();
z.isEmail();
```
"""


@pytest.fixture
def project(write_tree: WriteTree) -> Path:
    return write_tree(
        {
            "node_modules/zod/package.json": json.dumps(
                {"name": "zod", "types": "index.d.ts"}
            ),
            "node_modules/zod/index.d.ts": _ZOD_DTS,
        }
    )


class TestImportBindings:
    def test_esm_and_commonjs_forms(self) -> None:
        plan = """\
```ts
import * as z from 'zod';
import express, { Router as R } from 'express';
import type { Foo } from 'foo';
const { readFile } = require('fs-extra');
const axios = require('axios');
import { helper } from './local';
```
"""
        bindings = extract_import_bindings(plan)
        assert [(b.local_name, b.import_kind) for b in bindings] == [
            ("z", "namespace"),
            ("express", "default"),
            ("R", "named"),
            ("readFile", "named"),
            ("axios", "default"),
        ]
        assert bindings[2].export_name == "Router"

    def test_prose_imports_are_ignored(self) -> None:
        assert extract_import_bindings("Run import * as z from 'zod' first.") == []

    def test_member_accesses_skip_universal_members(self) -> None:
        plan = """\
```ts
const axios = require('axios');
axios.get('/x').then(r => r.data);
axios.toString();
other.call();
```
"""
        refs = extract_api_refs(plan, extract_import_bindings(plan))
        assert [r.raw for r in refs] == ["axios.get"]


class TestPackageApiChecker:
    def test_named_imports_and_members(self, project: Path) -> None:
        checker = PackageApiChecker(PackageApiCache())
        result = checker.run(_PLAN, project, CheckOptions())
        assert result.applicable
        assert result.checked == 4
        assert [(h.raw, h.category) for h in result.hallucinations] == [
            ("import { isEmail } from 'zod'", HallucinationCategory.NAMED_IMPORT),
            ("z.isEmail", HallucinationCategory.MEMBER),
        ]

    def test_named_binding_members_come_from_interface(
        self, project: Path
    ) -> None:
        plan = """\
```ts
import { ZodString } from 'zod';
ZodString.email();
ZodString.max();
```
"""
        result = PackageApiChecker().run(plan, project, CheckOptions())
        assert [h.raw for h in result.hallucinations] == ["ZodString.max"]

    def test_is_experimental(self) -> None:
        assert PackageApiChecker.experimental

    def test_cache_is_reused_across_runs(self, project: Path) -> None:
        cache = PackageApiCache()
        checker = PackageApiChecker(cache)
        checker.run(_PLAN, project, CheckOptions())
        checker.run(_PLAN, project, CheckOptions())
        assert len(cache) == 1

    def test_lists_available_exports(self, project: Path) -> None:
        checker = PackageApiChecker()
        lines = checker.format_for_check_all(
            checker.run(_PLAN, project, CheckOptions())
        )
        assert "  - Available exports: string, object, ZodString" in lines

    def test_not_applicable_without_resolvable_packages(
        self, write_tree: WriteTree
    ) -> None:
        root = write_tree({"node_modules/.keep": ""})
        result = PackageApiChecker().run(_PLAN, root, CheckOptions())
        assert not result.applicable
