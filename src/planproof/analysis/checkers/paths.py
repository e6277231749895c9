"""File path checker: every referenced path must exist or be declared new."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from planproof.analysis.extractors.paths import (
    extract_file_paths,
    has_create_signal,
    matches_allowed_new,
)
from planproof.analysis.file_tree import FileTree, scan_project_files
from planproof.analysis.registry import code, code_list
from planproof.analysis.schemas import (
    CheckerResult,
    CheckOptions,
    RawReference,
    Reference,
)
from planproof.constants import CheckerId, HallucinationCategory


class PathAnalysis(BaseModel):
    """Classification of every path the plan mentions."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    tree: FileTree
    references: list[Reference] = Field(
        default_factory=lambda: list[Reference]()
    )

    @property
    def valid_paths(self) -> list[str]:
        return [r.raw for r in self.references if r.valid]

    @property
    def intentional_new_paths(self) -> list[str]:
        return [r.raw for r in self.references if r.intentional_new]

    @property
    def hallucinated_paths(self) -> list[str]:
        return [r.raw for r in self.references if r.hallucinated]

    @property
    def hallucination_rate(self) -> float:
        """Hallucinated share of paths that were supposed to exist."""
        denominator = len(self.references) - len(self.intentional_new_paths)
        if denominator <= 0:
            return 0.0
        return len(self.hallucinated_paths) / denominator


def classify_path(
    ref: RawReference,
    tree: FileTree,
    plan_text: str,
    allowed_new_paths: list[str],
) -> Reference:
    """Exact match, then suffix match, then allow-list or create signal."""
    path = ref.raw
    if path in tree or tree.find_suffix(path) is not None:
        return ref.resolve(True)
    if matches_allowed_new(path, allowed_new_paths) or has_create_signal(
        path, plan_text
    ):
        return ref.resolve(False, intentional_new=True)
    return ref.resolve(False, HallucinationCategory.PATH)


def analyze_paths(
    plan_text: str,
    tree: FileTree,
    allowed_new_paths: list[str] | None = None,
) -> PathAnalysis:
    allowed = allowed_new_paths or []
    references = [
        classify_path(ref, tree, plan_text, allowed)
        for ref in extract_file_paths(plan_text)
    ]
    return PathAnalysis(tree=tree, references=references)


def find_closest_paths(
    hallucinated: str, tree: FileTree, max_results: int = 5
) -> list[str]:
    """Rank real paths by filename, extension and directory overlap.

    Used as context in reports only; the correction shown next to a
    finding comes from the substring suggestion engine.
    """
    hal_parts = hallucinated.split("/")
    hal_name = hal_parts[-1].lower()
    hal_dirs = [p.lower() for p in hal_parts[:-1]]
    hal_ext = hal_name.rsplit(".", 1)[-1]

    scored: list[tuple[int, int, str]] = []
    for index, path in enumerate(tree):
        parts = path.split("/")
        name = parts[-1].lower()
        dirs = [p.lower() for p in parts[:-1]]
        score = 0
        if name == hal_name:
            score += 10
        elif name in hal_name or hal_name in name:
            score += 5
        if name.rsplit(".", 1)[-1] == hal_ext:
            score += 2
        score += 3 * sum(1 for d in hal_dirs if d in dirs)
        score -= abs(len(parts) - len(hal_parts))
        if score > 0:
            scored.append((-score, index, path))
    scored.sort()
    return [path for _, _, path in scored[:max_results]]


def directory_context(
    path: str, tree: FileTree, max_files: int = 15
) -> list[str]:
    """Real files living in the directory the path points into."""
    if "/" not in path:
        return []
    prefix = path.rsplit("/", 1)[0] + "/"
    matches: list[str] = []
    for candidate in tree:
        if candidate.startswith(prefix):
            matches.append(candidate)
            if len(matches) >= max_files:
                break
    return sorted(matches)


class PathChecker:
    id = CheckerId.PATHS
    display_name = "File Paths"
    experimental = False

    def run(
        self, plan_text: str, project_dir: Path, options: CheckOptions
    ) -> CheckerResult:
        tree = scan_project_files(
            project_dir, options.max_scan_depth, options.skip_directories
        )
        analysis = analyze_paths(plan_text, tree, options.allowed_new_paths)
        return CheckerResult.from_references(
            self.id, analysis.references, raw_analysis=analysis
        )

    def format_for_check_all(self, result: CheckerResult) -> list[str]:
        analysis: PathAnalysis = result.raw_analysis
        hallucinated = analysis.hallucinated_paths
        lines = [
            "## File Paths",
            f"**{len(analysis.references)}** paths checked — "
            f"**{len(hallucinated)}** hallucinated | "
            f"{len(analysis.tree)} files indexed",
        ]
        for path in hallucinated:
            lines.append(f"- {code(path)} — **NOT FOUND**")
            closest = find_closest_paths(path, analysis.tree)
            if closest:
                lines.append(f"  - Closest: {code_list(closest)}")
            siblings = directory_context(path, analysis.tree)
            if siblings:
                lines.append(f"  - In that directory: {code_list(siblings)}")
        if not hallucinated:
            lines.append("All paths valid.")
        if analysis.intentional_new_paths:
            lines.append(
                "New files planned: "
                f"{code_list(analysis.intentional_new_paths)}"
            )
        lines.append("")
        return lines

    def format_for_findings(self, result: CheckerResult) -> str | None:
        analysis: PathAnalysis | None = result.raw_analysis
        if analysis is None or not analysis.hallucinated_paths:
            return None
        lines = [
            "### File Path Issues",
            "",
            f"Static analysis found {len(analysis.hallucinated_paths)} "
            "file path(s) that do not exist in the project:",
            "",
        ]
        lines.extend(
            f"- {code(p)} — **NOT FOUND** in project tree"
            for p in analysis.hallucinated_paths
        )
        return "\n".join(lines)
