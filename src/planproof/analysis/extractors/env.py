"""Environment variable reads across JS, Python, Deno and Ruby idioms."""

from __future__ import annotations

import re

from planproof.analysis.schemas import RawReference

RUNTIME_VARS = frozenset(
    {
        "NODE_ENV", "HOME", "PATH", "PWD", "USER", "SHELL", "LANG", "TERM",
        "CI", "PORT", "HOST", "HOSTNAME", "TZ", "EDITOR", "TMPDIR", "TEMP",
        "TMP",
    }
)

_NAME = r"([A-Za-z_][A-Za-z0-9_]*)"

ENV_ACCESS_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"process\.env\.{_NAME}"),
    re.compile(rf"process\.env\[[\"']{_NAME}[\"']\]"),
    re.compile(rf"import\.meta\.env\.{_NAME}"),
    re.compile(rf"os\.environ\[[\"']{_NAME}[\"']\]"),
    re.compile(rf"os\.environ\.get\(\s*[\"']{_NAME}[\"']"),
    re.compile(rf"os\.getenv\(\s*[\"']{_NAME}[\"']"),
    re.compile(rf"Deno\.env\.get\(\s*[\"']{_NAME}[\"']"),
    re.compile(rf"\bENV\[[\"']{_NAME}[\"']\]"),
    re.compile(rf"\bENV\.fetch\(\s*[\"']{_NAME}[\"']"),
)


def is_runtime_var(name: str) -> bool:
    """Variables the OS or package manager sets, never an env file."""
    return name in RUNTIME_VARS or name.startswith("npm_")


def extract_env_refs(plan_text: str) -> list[RawReference]:
    names: dict[str, RawReference] = {}
    for pattern in ENV_ACCESS_PATTERNS:
        for m in pattern.finditer(plan_text):
            name = m.group(1)
            if is_runtime_var(name):
                continue
            names.setdefault(
                name,
                RawReference(raw=name, kind="env", offset=m.start(), name=name),
            )
    return list(names.values())
