"""Variables defined in the project's ``.env*`` files."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pydantic import BaseModel, Field

from planproof.analysis.file_tree import read_text

logger = logging.getLogger(__name__)

ENV_FILE_NAMES: tuple[str, ...] = (
    ".env",
    ".env.example",
    ".env.local",
    ".env.development",
    ".env.production",
    ".env.test",
    ".env.staging",
)

_KEY_RE = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=")


class EnvIndex(BaseModel):
    """Defined variable name to the env files that define it."""

    files: list[str] = Field(default_factory=lambda: list[str]())
    variables: dict[str, list[str]] = Field(
        default_factory=lambda: dict[str, list[str]]()
    )

    def __contains__(self, name: object) -> bool:
        return name in self.variables


def parse_env_keys(content: str) -> list[str]:
    """``KEY=value`` names in file order; comments and blanks skipped."""
    keys: list[str] = []
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        m = _KEY_RE.match(stripped)
        if m:
            keys.append(m.group(1))
    return keys


def build_env_index(project_dir: Path) -> EnvIndex:
    """Read the well-known env files at the project root."""
    index = EnvIndex()
    for name in ENV_FILE_NAMES:
        path = project_dir / name
        if not path.is_file():
            continue
        index.files.append(name)
        content = read_text(path)
        if content is None:
            continue
        for key in parse_env_keys(content):
            index.variables.setdefault(key, []).append(name)
    logger.debug(
        "Found %d env vars in %s", len(index.variables), ", ".join(index.files)
    )
    return index
