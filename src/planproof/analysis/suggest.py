"""Correction suggestions for hallucinated names.

The rule is deliberately crude: the first candidate, in the index's
insertion order, where either name is a case-insensitive substring of
the other. There is no ranking. Indices are built from sorted scans,
so the answer is stable for a given project.
"""

from __future__ import annotations

from collections.abc import Iterable


def suggest(name: str, candidates: Iterable[str]) -> str | None:
    """Return the first candidate overlapping ``name``, or None."""
    lowered = name.lower()
    for candidate in candidates:
        other = candidate.lower()
        if lowered in other or other in lowered:
            return candidate
    return None


def format_suggestion(suggestion: str) -> str:
    """Render a suggestion for human-facing output.

    Bare names read as "did you mean X?"; hint sentences such as
    "valid methods: GET, POST" are shown as-is.
    """
    if " " in suggestion.strip() or ":" in suggestion:
        return suggestion
    return f"did you mean {suggestion}?"
