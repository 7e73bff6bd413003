"""PR complexity scoring engine.

Combines the seven heuristic dimensions into a single 1-10 score using a
weight per dimension, then adjusts the aggregate for refactorings (harder)
and mechanical changes (easier). The engine is a set of pure functions over
an immutable ScoringConfig; there is no shared engine instance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Iterable, Mapping

from pr_ranker.heuristics import (
    clamp_score,
    coverage_score,
    cross_cutting_score,
    deps_score,
    documentation_score,
    file_types_score,
    files_score,
    is_documentation_only,
    is_refactoring,
    lines_score,
    seems_mechanical,
)
from pr_ranker.pr_data import FilteredPR, PullRequest, ScoreBreakdown

logger = logging.getLogger("pr_ranker.scoring")

REFACTOR_MULTIPLIER = 1.15
MECHANICAL_MULTIPLIER = 0.6

# camelCase aliases accepted in config files and on the command line
_WEIGHT_ALIASES = {
    "fileTypes": "file_types",
    "crossCutting": "cross_cutting",
}


@dataclass(frozen=True)
class ScoringConfig:
    """Weight per scoring dimension.

    Weights are expected to sum to 1.0 but this is not enforced: other sums
    scale the weighted total, which is still clamped to [1, 10].
    """

    lines: float = 0.25
    files: float = 0.20
    file_types: float = 0.15
    deps: float = 0.15
    tests: float = 0.10
    docs: float = 0.05
    cross_cutting: float = 0.10

    @property
    def weight_sum(self) -> float:
        return sum(getattr(self, f.name) for f in fields(self))

    @classmethod
    def dimension_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_mapping(cls, weights: Mapping[str, float], base: "ScoringConfig | None" = None) -> "ScoringConfig":
        """Build a config from ``{dimension: weight}``, keeping ``base`` for the rest.

        Dimension names may be snake_case or camelCase.

        Raises:
            ValueError: On an unknown dimension name or a non-numeric weight.
        """
        base = base or cls()
        known = set(cls.dimension_names())
        values = {name: getattr(base, name) for name in known}
        for key, value in weights.items():
            name = _WEIGHT_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(
                    f"Unknown scoring dimension '{key}' "
                    f"(expected one of: {', '.join(sorted(known))})"
                )
            if isinstance(value, bool):
                raise ValueError(f"Weight for '{key}' must be a number, got {value!r}")
            try:
                values[name] = float(value)
            except (TypeError, ValueError):
                raise ValueError(f"Weight for '{key}' must be a number, got {value!r}") from None
        return cls(**values)


DEFAULT_SCORING_CONFIG = ScoringConfig()


def score_pr(pr: PullRequest, config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> tuple[int, ScoreBreakdown]:
    """Score a single PR.

    Args:
        pr: The pull request to score.
        config: Dimension weights.

    Returns:
        Tuple of (total score, breakdown). The breakdown holds the raw
        dimension scores; only the total reflects the refactoring and
        mechanical-change adjustments.
    """
    files = pr.files

    if is_documentation_only(files):
        logger.debug("PR #%s is documentation-only, scoring as trivial", pr.number)
        return 1, ScoreBreakdown.trivial()

    lines = lines_score(pr.additions, pr.deletions)
    file_count = files_score(files)
    file_types = file_types_score(files)
    deps = deps_score(files)
    tests = coverage_score(files)
    docs = documentation_score(files)
    cross_cutting = cross_cutting_score(files)

    weighted = (
        lines * config.lines
        + file_count * config.files
        + file_types * config.file_types
        + deps * config.deps
        + tests * config.tests
        + docs * config.docs
        + cross_cutting * config.cross_cutting
    )

    # Refactoring first, then mechanical: both may apply (x0.69 combined)
    if is_refactoring(files, pr.additions, pr.deletions):
        logger.debug("PR #%s looks like a refactoring, weighted %.2f x %s",
                     pr.number, weighted, REFACTOR_MULTIPLIER)
        weighted = min(10.0, weighted * REFACTOR_MULTIPLIER)
    if seems_mechanical(files):
        logger.debug("PR #%s looks mechanical, weighted %.2f x %s",
                     pr.number, weighted, MECHANICAL_MULTIPLIER)
        weighted = max(1.0, weighted * MECHANICAL_MULTIPLIER)

    total = clamp_score(weighted)

    breakdown = ScoreBreakdown(
        lines=lines,
        files=file_count,
        file_types=file_types,
        deps=deps,
        tests=tests,
        docs=docs,
        cross_cutting=cross_cutting,
        total=total,
    )
    return total, breakdown


def score_prs(prs: Iterable[PullRequest], config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> list[FilteredPR]:
    """Score PRs and return them hardest first.

    The sort is stable, so PRs with equal scores keep their input order.
    """
    scored = []
    for pr in prs:
        score, breakdown = score_pr(pr, config)
        scored.append(FilteredPR(pr=pr, score=score, score_breakdown=breakdown))
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored


def complexity_label(score: int) -> str:
    """Human-readable complexity label: Easy, Medium or Hard."""
    if score <= 3:
        return "Easy"
    if score <= 6:
        return "Medium"
    return "Hard"


def complexity_color(score: int) -> str:
    """Badge color for a score: green, yellow or red."""
    if score <= 3:
        return "green"
    if score <= 6:
        return "yellow"
    return "red"
