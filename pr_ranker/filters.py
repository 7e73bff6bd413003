"""PR filtering applied before scoring.

Decides which open PRs are triage candidates. Gates run in a fixed priority
order and the first one that triggers rejects the PR, so a rejected PR
carries exactly one reason.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

from pr_ranker.pr_data import PullRequest

logger = logging.getLogger("pr_ranker.filters")

DEFAULT_HOLD_LABELS: Tuple[str, ...] = ("hold", "on-hold", "do-not-merge", "wip", "blocked")
DEFAULT_SKIP_LABELS: Tuple[str, ...] = ("skip-review", "no-review", "auto-merge")

REASON_DRAFT = "draft"
REASON_APPROVED = "approved"
REASON_HOLD = "hold-label"
REASON_CONFLICTS = "conflicts"
REASON_ACTIVE_REVIEWS = "active-reviews"
REASON_SKIP_REVIEW = "skip-review"


@dataclass(frozen=True)
class FilterConfig:
    """Which gates are enabled, plus the label lists they match against.

    Labels are compared case-insensitively after trimming.
    """

    hold_labels: Tuple[str, ...] = DEFAULT_HOLD_LABELS
    skip_labels: Tuple[str, ...] = DEFAULT_SKIP_LABELS
    exclude_drafts: bool = True
    exclude_approved: bool = True
    exclude_hold: bool = True
    exclude_conflicts: bool = False       # author handles the rebase, review still useful
    exclude_active_reviews: bool = False  # PRs awaiting reviewers are the triage target
    exclude_skip_review: bool = True


DEFAULT_FILTER_CONFIG = FilterConfig()


@dataclass
class FilterResult:
    passes: bool
    reasons: List[str] = field(default_factory=list)


@dataclass
class FilterPartition:
    """Result of filter_prs: both sides keep the input order."""

    passed: List[PullRequest] = field(default_factory=list)
    filtered: List[PullRequest] = field(default_factory=list)
    reasons: Dict[int, str] = field(default_factory=dict)  # PR number -> reason


def _normalize_label(label: str) -> str:
    return label.lower().strip()


def has_approval(pr: PullRequest) -> bool:
    return any(r.state == "APPROVED" for r in pr.reviews)


def has_matching_label(pr: PullRequest, labels: Sequence[str]) -> bool:
    """True if any PR label equals one of ``labels`` (case-insensitive)."""
    if not labels:
        return False
    wanted = {_normalize_label(l) for l in labels}
    return any(_normalize_label(l.name) in wanted for l in pr.labels)


def has_conflicts(pr: PullRequest) -> bool:
    return pr.mergeable == "CONFLICTING"


def has_active_reviewers(pr: PullRequest) -> bool:
    return len(pr.review_requests) > 0


def filter_pr(pr: PullRequest, config: FilterConfig = DEFAULT_FILTER_CONFIG) -> FilterResult:
    """Check a single PR against the enabled gates.

    Gates are evaluated in priority order: draft, approved, hold label,
    conflicts, active reviews, skip label. Evaluation stops at the first
    gate that triggers.

    Returns:
        A FilterResult; ``reasons`` holds the triggering gate's reason when
        the PR is rejected and is empty when it passes.
    """
    gates = (
        (config.exclude_drafts, lambda: pr.is_draft, REASON_DRAFT),
        (config.exclude_approved, lambda: has_approval(pr), REASON_APPROVED),
        (config.exclude_hold, lambda: has_matching_label(pr, config.hold_labels), REASON_HOLD),
        (config.exclude_conflicts, lambda: has_conflicts(pr), REASON_CONFLICTS),
        (config.exclude_active_reviews, lambda: has_active_reviewers(pr), REASON_ACTIVE_REVIEWS),
        (config.exclude_skip_review, lambda: has_matching_label(pr, config.skip_labels), REASON_SKIP_REVIEW),
    )
    for enabled, check, reason in gates:
        if enabled and check():
            return FilterResult(passes=False, reasons=[reason])
    return FilterResult(passes=True, reasons=[])


def filter_prs(prs: Iterable[PullRequest], config: FilterConfig = DEFAULT_FILTER_CONFIG) -> FilterPartition:
    """Split PRs into those that pass the filters and those that don't."""
    partition = FilterPartition()
    for pr in prs:
        result = filter_pr(pr, config)
        if result.passes:
            partition.passed.append(pr)
        else:
            partition.filtered.append(pr)
            partition.reasons[pr.number] = result.reasons[0]
            logger.debug("Filtered PR #%s: %s", pr.number, result.reasons[0])
    return partition
