"""Per-dimension complexity heuristics.

Every ``*_score`` function maps PR-level signals to an integer in [1, 10],
higher meaning harder to review. The predicates at the bottom detect special
shapes of change (docs-only, refactoring, mechanical) that the scoring engine
treats differently. None of these functions raise for empty input.
"""

from __future__ import annotations

import math
from typing import Sequence

from pr_ranker.categories import CORE_LOGIC, area_of, categorize_file, get_category
from pr_ranker.pr_data import ChangedFile


LINES_THRESHOLDS = [10, 50, 100, 250, 500, 1000]
FILES_THRESHOLDS = [1, 3, 5, 10, 20, 50]
SIZE_SCORES = [1, 2, 3, 5, 7, 9, 10]
DEPS_THRESHOLDS = [0, 1, 2, 3]
DEPS_SCORES = [1, 3, 5, 7, 9]

REFACTOR_MIN_FILES = 5
MECHANICAL_MIN_FILES = 5
MECHANICAL_MAX_VARIATION = 0.3


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3)."""
    return math.floor(value + 0.5)


def clamp_score(value: float) -> int:
    """Round and clamp a raw score into [1, 10]."""
    return max(1, min(10, round_half_up(value)))


def threshold_score(value: float, thresholds: Sequence[float], scores: Sequence[int]) -> int:
    """Map a value onto a score via ascending thresholds.

    Returns ``scores[i]`` for the first ``i`` with ``value <= thresholds[i]``,
    or the last score when the value exceeds every threshold. ``scores`` has
    one more entry than ``thresholds``.
    """
    for i, threshold in enumerate(thresholds):
        if value <= threshold:
            return scores[i]
    return scores[-1]


def _count_matching(files: Sequence[ChangedFile], category_name: str) -> int:
    category = get_category(category_name)
    return sum(1 for f in files if category.matches(f.path))


def lines_score(additions: int, deletions: int) -> int:
    return threshold_score(additions + deletions, LINES_THRESHOLDS, SIZE_SCORES)


def files_score(files: Sequence[ChangedFile]) -> int:
    return threshold_score(len(files), FILES_THRESHOLDS, SIZE_SCORES)


def file_types_score(files: Sequence[ChangedFile]) -> int:
    """Average category weight scaled to 7, plus up to 3 for category diversity."""
    if not files:
        return 1

    categories = set()
    total_weight = 0.0
    for f in files:
        category = categorize_file(f.path)
        categories.add(category.name)
        total_weight += category.complexity_weight

    avg_weight = total_weight / len(files)
    diversity_bonus = min(len(categories) - 1, 3)
    return clamp_score(avg_weight * 7 + diversity_bonus)


def coverage_score(files: Sequence[ChangedFile]) -> int:
    """Lower when tests accompany core logic changes."""
    if not files:
        return 1

    test_count = _count_matching(files, "test")
    core_count = sum(1 for f in files if categorize_file(f.path).name == CORE_LOGIC)

    if core_count == 0:
        return 1
    if test_count == 0:
        return 8

    ratio = test_count / core_count
    if ratio >= 1:
        return 1
    if ratio >= 0.5:
        return 3
    if ratio >= 0.25:
        return 5
    return 7


def documentation_score(files: Sequence[ChangedFile]) -> int:
    if not files:
        return 1

    doc_ratio = _count_matching(files, "documentation") / len(files)
    if doc_ratio >= 0.9:
        return 1
    if doc_ratio >= 0.5:
        return 3
    if doc_ratio > 0:
        return 5
    return 6


def cross_cutting_score(files: Sequence[ChangedFile]) -> int:
    """Score the number of distinct top-level system areas touched."""
    areas = {area_of(f.path) for f in files}
    areas.discard(None)

    count = len(areas)
    if count <= 1:
        return 1
    if count <= 2:
        return 3
    if count <= 3:
        return 5
    if count <= 4:
        return 7
    return 9


def count_dependency_changes(files: Sequence[ChangedFile]) -> int:
    return _count_matching(files, "dependency")


def deps_score(files: Sequence[ChangedFile]) -> int:
    return threshold_score(count_dependency_changes(files), DEPS_THRESHOLDS, DEPS_SCORES)


# ---------------------------------------------------------------------------
# Change-shape predicates
# ---------------------------------------------------------------------------


def is_documentation_only(files: Sequence[ChangedFile]) -> bool:
    if not files:
        return False
    documentation = get_category("documentation")
    return all(documentation.matches(f.path) for f in files)


def is_refactoring(files: Sequence[ChangedFile], additions: int, deletions: int) -> bool:
    """Many files with a balanced add/delete ratio (30-70% deletions)."""
    if len(files) < REFACTOR_MIN_FILES:
        return False
    if additions == 0 and deletions == 0:
        return False
    ratio = deletions / (additions + deletions)
    return 0.3 <= ratio <= 0.7


def seems_mechanical(files: Sequence[ChangedFile]) -> bool:
    """Many files with near-identical change sizes (bulk rename, codemod).

    Uses the coefficient of variation (population stddev / mean) of per-file
    changed lines. No changed lines at all counts as mechanical.
    """
    if len(files) < MECHANICAL_MIN_FILES:
        return False

    changes = [f.additions + f.deletions for f in files]
    mean = sum(changes) / len(changes)
    if mean == 0:
        return True

    variance = sum((c - mean) ** 2 for c in changes) / len(changes)
    return math.sqrt(variance) / mean < MECHANICAL_MAX_VARIATION
