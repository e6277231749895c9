"""File-tree index: the set of project-relative paths on disk."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

import pathspec

from planproof.constants import DEFAULT_IGNORES, DEFAULT_MAX_SCAN_DEPTH

logger = logging.getLogger(__name__)


class FileTree:
    """Ordered, read-only set of slash-separated relative paths.

    Iteration follows the sorted directory walk, which is the order the
    suggestion engine sees candidates in.
    """

    def __init__(self, root: Path, paths: Iterable[str]) -> None:
        self.root = root
        self._paths = list(dict.fromkeys(paths))
        self._lookup = set(self._paths)

    def __contains__(self, path: object) -> bool:
        return path in self._lookup

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def find_suffix(self, candidate: str) -> str | None:
        """Return the first indexed path ending in ``/`` + candidate."""
        suffix = "/" + candidate
        for path in self._paths:
            if path.endswith(suffix):
                return path
        return None

    def with_suffix(self, *extensions: str) -> list[str]:
        return [p for p in self._paths if p.endswith(extensions)]


def scan_project_files(
    root: Path,
    max_depth: int | None = None,
    skip_directories: Iterable[str] | None = None,
) -> FileTree:
    """Walk ``root`` and return every non-ignored file.

    * Skips dependency, VCS and build directories (:data:`DEFAULT_IGNORES`
      unless ``skip_directories`` is given).
    * Honours the project's ``.gitignore`` via pathspec.
    * Stops descending below ``max_depth`` directory levels.
    """
    depth_limit = DEFAULT_MAX_SCAN_DEPTH if max_depth is None else max_depth
    skip = set(DEFAULT_IGNORES if skip_directories is None else skip_directories)
    spec = load_gitignore(root)
    paths: list[str] = []
    _walk(root, root, 0, depth_limit, skip, spec, paths)
    logger.debug("Indexed %d files under %s", len(paths), root)
    return FileTree(root, paths)


def _walk(
    current: Path,
    root: Path,
    depth: int,
    max_depth: int,
    skip: set[str],
    spec: pathspec.PathSpec,
    out: list[str],
) -> None:
    if depth > max_depth:
        return
    try:
        entries = sorted(current.iterdir())
    except OSError:
        logger.debug("Cannot list %s", current)
        return
    for item in entries:
        rel = item.relative_to(root).as_posix()
        if item.is_dir():
            if item.name in skip or spec.match_file(rel + "/"):
                continue
            _walk(item, root, depth + 1, max_depth, skip, spec, out)
        elif item.is_file():
            if not spec.match_file(rel):
                out.append(rel)


def load_gitignore(root: Path) -> pathspec.PathSpec:
    """Load .gitignore patterns using pathspec."""
    gitignore = root / ".gitignore"
    if not gitignore.exists():
        return pathspec.PathSpec.from_lines("gitwildmatch", [])
    try:
        with open(gitignore, encoding="utf-8") as f:
            return pathspec.PathSpec.from_lines("gitwildmatch", f)
    except OSError:
        return pathspec.PathSpec.from_lines("gitwildmatch", [])


def read_text(path: Path) -> str | None:
    """Read a project file, returning None when it cannot be decoded."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.debug("Skipping unreadable file %s", path)
        return None
