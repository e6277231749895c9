"""File-path references and the plan-text signals around them."""

from __future__ import annotations

import re

from planproof.analysis.schemas import RawReference

_PATH_RE = re.compile(
    r"(?:^|[\s`\"'(,])([.\w/\\-]+\.\w{1,10})(?=[\s`\"'),;:\]|]|$)",
    re.MULTILINE | re.ASCII,
)
_VERSION_RE = re.compile(r"^\d+\.\d+")
_PROPERTY_CHAIN_RE = re.compile(
    r"^(?:this|self|error|result|config|options|req|res|ctx)\.",
    re.IGNORECASE,
)
_TYPE_REF_RE = re.compile(r"^[a-z]+\.[A-Z]\w*$")
_PLACEHOLDER_RE = re.compile(r"^[A-Z]{4,}")

_CREATE_VERBS = r"(?:create|add|new file|introduce)"
_NEW_FILES_HEADINGS = (
    re.compile(
        r"^#{1,4}\s*(?:new|files to create|files to add|created files)",
        re.IGNORECASE | re.MULTILINE,
    ),
    re.compile(
        r"\*\*(?:new|files to create|files to add|created files)\*\*",
        re.IGNORECASE,
    ),
)
_HEADING_RE = re.compile(r"^#{1,4}\s", re.MULTILINE)


def extract_file_paths(plan_text: str) -> list[RawReference]:
    """Return unique path-like tokens that look like real file references."""
    seen: dict[str, RawReference] = {}
    for m in _PATH_RE.finditer(plan_text):
        path = m.group(1).replace("\\", "/")
        if path.startswith("./"):
            path = path[2:]
        if path in seen or not _looks_like_file(path):
            continue
        seen[path] = RawReference(
            raw=path, kind="path", offset=m.start(1), name=path
        )
    return list(seen.values())


def _looks_like_file(path: str) -> bool:
    if "://" in path or _VERSION_RE.match(path):
        return False
    if path.startswith("node_modules/"):
        return False
    # Real file references include a directory
    if "/" not in path:
        return False
    if _PROPERTY_CHAIN_RE.match(path) or _TYPE_REF_RE.match(path):
        return False
    if path.startswith("..."):
        return False
    return not _PLACEHOLDER_RE.match(path.split("/")[0])


def has_create_signal(path: str, plan_text: str) -> bool:
    """True when the plan marks ``path`` as a file it is about to create."""
    escaped = re.escape(path)
    patterns = (
        rf"{_CREATE_VERBS}\s+`?{escaped}",
        rf"{escaped}[^\n]*\(\s*(?:create|new|add)",
        rf"\(\s*(?:create|new)[^\n]*{escaped}",
        rf"{escaped}[^)\n]{{0,20}}\((?:new|create)\)",
    )
    for pattern in patterns:
        if re.search(pattern, plan_text, re.IGNORECASE):
            return True
    return any(path in section for section in _new_file_sections(plan_text))


def _new_file_sections(plan_text: str) -> list[str]:
    """Text under every "New files" style heading, up to the next heading."""
    sections: list[str] = []
    for heading in _NEW_FILES_HEADINGS:
        m = heading.search(plan_text)
        if m is None:
            continue
        line_end = plan_text.find("\n", m.end())
        body_start = len(plan_text) if line_end == -1 else line_end
        nxt = _HEADING_RE.search(plan_text, body_start)
        end = len(plan_text) if nxt is None else nxt.start()
        sections.append(plan_text[m.start() : end])
    return sections


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate an allow-list glob: ``*`` one segment, ``**`` any depth."""
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("^" + "".join(parts) + "$")


def matches_allowed_new(path: str, patterns: list[str]) -> bool:
    return any(glob_to_regex(p).match(path) for p in patterns)
