"""Text primitives shared by the indexers and extractors.

Every parser in this package is pattern-based rather than a real
grammar. The balanced-delimiter slice and the shallow key tokenizer
below are the only places that count nesting depth.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import NamedTuple

_FENCED_BLOCK_RE = re.compile(r"```[\s\S]*?```")
_FENCED_BODY_RE = re.compile(r"```(?:\w*\n)?([\s\S]*?)```")
_INLINE_CODE_RE = re.compile(r"`([^`]+)`")

_PAIRS = {"{": "}", "(": ")", "[": "]"}


def code_regions(text: str) -> str:
    """Return fenced blocks and inline code spans joined by newlines.

    Fences are kept with their backticks. Inline spans are matched over
    the whole text, so a fenced block may contribute twice; extractors
    dedupe their own output.
    """
    regions = [m.group(0) for m in _FENCED_BLOCK_RE.finditer(text)]
    regions.extend(m.group(1) for m in _INLINE_CODE_RE.finditer(text))
    return "\n".join(regions)


def code_blocks(text: str) -> list[str]:
    """Return the bodies of fenced code blocks (language tag dropped)."""
    return [m.group(1) for m in _FENCED_BODY_RE.finditer(text)]


def balanced_slice(
    text: str,
    start: int,
    opener: str = "{",
    *,
    strict: bool = False,
) -> tuple[str, int] | None:
    """Slice the body of a delimiter pair whose opener precedes ``start``.

    ``start`` is the index just past the opening delimiter. Returns the
    body and the index just past the matching closer. When the text
    ends before the closer, returns None if ``strict`` else the rest of
    the text.
    """
    closer = _PAIRS[opener]
    depth = 1
    i = start
    while i < len(text):
        ch = text[i]
        if ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return text[start:i], i + 1
        i += 1
    if strict:
        return None
    return text[start:], len(text)


class ObjectKey(NamedTuple):
    """A key in an object literal and the span of its value."""

    key: str
    value_start: int
    value_end: int


def iter_object_keys(
    text: str, start: int, depth: int = 0
) -> Iterator[ObjectKey]:
    """Yield each key of an object literal body with its value span.

    ``start`` points just inside the opening brace. Only keys at the
    requested nesting ``depth`` (0 = the object itself) are yielded.
    ``text[value_start:value_end]`` is the raw value: it starts just
    past the colon and ends at the separating comma or the closing
    brace. Stops at the brace closing the object.
    """
    level = 0
    key = ""
    in_key = True
    pending: tuple[str, int] | None = None
    i = start
    while i < len(text):
        ch = text[i]
        if ch in "{[(":
            level += 1
            key = ""
            in_key = ch == "{" and level == depth
        elif ch in "}])":
            if level == depth and pending is not None:
                yield ObjectKey(pending[0], pending[1], i)
                pending = None
            if level == 0:
                return
            level -= 1
        elif level == depth:
            if ch == ":" and in_key and key:
                if pending is not None:
                    yield ObjectKey(pending[0], pending[1], i - len(key))
                pending = (key, i + 1)
                key = ""
                in_key = False
            elif ch == ",":
                if pending is not None:
                    yield ObjectKey(pending[0], pending[1], i)
                    pending = None
                key = ""
                in_key = True
            elif ch == "\n":
                key = ""
                in_key = True
            elif in_key and (ch.isalnum() or ch in "_$"):
                key += ch
            elif in_key and not ch.isspace():
                key = ""
        i += 1
    if pending is not None:
        yield ObjectKey(pending[0], pending[1], len(text))


def top_level_keys(text: str, start: int) -> list[str]:
    """Return the depth-0 keys of the object literal starting at ``start``."""
    return [entry.key for entry in iter_object_keys(text, start)]


def split_top_level(text: str, sep: str = ",") -> list[str]:
    """Split on ``sep`` while ignoring separators nested in brackets."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        if ch == sep and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    if current:
        parts.append("".join(current))
    return parts


def line_at(text: str, offset: int) -> str:
    """Return the full line containing ``offset``."""
    begin = text.rfind("\n", 0, offset) + 1
    end = text.find("\n", offset)
    return text[begin:] if end == -1 else text[begin:end]


def lookback_window(text: str, offset: int, size: int) -> str:
    """Return up to ``size`` chars before ``offset``, cut at a blank line."""
    window = text[max(0, offset - size) : offset]
    cut = window.rfind("\n\n")
    return window if cut == -1 else window[cut + 2 :]


def brace_depth(text: str) -> int:
    """Net count of unclosed curly braces in ``text``."""
    depth = 0
    for ch in text:
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
    return depth


def escape_names(names: list[str]) -> str:
    """Build a regex alternation from literal names."""
    return "|".join(re.escape(n) for n in names)
