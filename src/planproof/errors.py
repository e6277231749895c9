"""Exception types raised at the package boundary.

Everything inside the checkers degrades into fewer findings; only
these exceptions surface to callers.
"""

from __future__ import annotations

from pathlib import Path


class PlanProofError(Exception):
    """Base class for planproof errors."""


class PlanNotFoundError(PlanProofError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"plan file not found: {path}")
        self.path = path


class ProjectNotFoundError(PlanProofError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"project directory not found: {path}")
        self.path = path


class DuplicateCheckerError(PlanProofError):
    def __init__(self, checker_id: str) -> None:
        super().__init__(f"checker already registered: {checker_id}")
        self.checker_id = checker_id


class UnknownCheckerError(PlanProofError):
    def __init__(self, checker_id: str) -> None:
        super().__init__(f"unknown checker: {checker_id}")
        self.checker_id = checker_id
