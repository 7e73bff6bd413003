"""Ranking pipeline: fetch open PRs, drop non-candidates, score, sort.

The filter runs before the scorer, so only PRs that are actually waiting for
triage get scored. Fetched PR lists can be memoized in a TTLCache keyed by
repository and limit.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from pr_ranker.cache import TTLCache
from pr_ranker.filters import DEFAULT_FILTER_CONFIG, FilterConfig, filter_prs
from pr_ranker.graphql_client import fetch_open_prs
from pr_ranker.pr_data import FilteredPR, PullRequest
from pr_ranker.scoring import DEFAULT_SCORING_CONFIG, ScoringConfig, score_prs

logger = logging.getLogger("pr_ranker.ranker")

DEFAULT_LIMIT = 50
MIN_LIMIT = 1
MAX_LIMIT = 1000
MAX_OWNER_REPO_LEN = 256

_NAME = r"[a-zA-Z0-9][a-zA-Z0-9._-]{0,99}"
_OWNER_REPO_RE = re.compile(rf"^({_NAME})/({_NAME})$")
_GITHUB_URL_RE = re.compile(rf"^https?://github\.com/({_NAME})/({_NAME})(?:/|$)")

Fetcher = Callable[[str, str, int], List[PullRequest]]


@dataclass
class RankResult:
    """Ranked PRs plus bookkeeping about what was dropped."""

    prs: List[FilteredPR]
    total: int                    # PRs fetched, before filtering
    filtered: int                 # PRs dropped by the filters
    reasons: Dict[int, str] = field(default_factory=dict)  # PR number -> filter reason
    dropped: List[PullRequest] = field(default_factory=list)
    owner: str = ""
    repo: str = ""
    fetched_at: str = ""          # ISO 8601, UTC


def parse_repo(text: str) -> Optional[tuple[str, str]]:
    """Parse ``owner/repo`` or a github.com URL into (owner, repo).

    Returns:
        The (owner, repo) tuple, or None if the input is not a valid
        repository reference.
    """
    trimmed = (text or "").strip()
    if not trimmed:
        return None
    match = _GITHUB_URL_RE.match(trimmed) or _OWNER_REPO_RE.match(trimmed)
    if not match:
        return None
    owner, repo = match.group(1), match.group(2)
    if len(owner) + len(repo) > MAX_OWNER_REPO_LEN:
        return None
    return owner, repo


def clamp_limit(value) -> int:
    """Coerce a requested PR count into [MIN_LIMIT, MAX_LIMIT]; junk -> default."""
    try:
        n = int(value)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    return max(MIN_LIMIT, min(MAX_LIMIT, n))


def pr_cache_key(owner: str, repo: str, limit: int) -> str:
    return f"prs:{owner}:{repo}:{limit}"


def load_prs(
    owner: str,
    repo: str,
    limit: int = DEFAULT_LIMIT,
    cache: Optional[TTLCache] = None,
    fetch: Fetcher = fetch_open_prs,
) -> list[PullRequest]:
    """Return the open PRs of a repository, from the cache when possible."""
    key = pr_cache_key(owner, repo, limit)
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached

    prs = fetch(owner, repo, limit)
    if cache is not None:
        cache.set(key, prs)
    return prs


def rank_prs(
    prs: Sequence[PullRequest],
    filter_config: FilterConfig = DEFAULT_FILTER_CONFIG,
    scoring_config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> RankResult:
    """Filter then score PRs; the result is sorted hardest first."""
    partition = filter_prs(prs, filter_config)
    scored = score_prs(partition.passed, scoring_config)
    logger.debug(
        "Ranked %d of %d PRs (%d filtered)",
        len(scored), len(prs), len(partition.filtered),
    )
    return RankResult(
        prs=scored,
        total=len(prs),
        filtered=len(partition.filtered),
        reasons=dict(partition.reasons),
        dropped=list(partition.filtered),
    )


def rank_repository(
    owner: str,
    repo: str,
    limit: int = DEFAULT_LIMIT,
    filter_config: FilterConfig = DEFAULT_FILTER_CONFIG,
    scoring_config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    cache: Optional[TTLCache] = None,
    fetch: Fetcher = fetch_open_prs,
) -> RankResult:
    """Fetch, filter and score the open PRs of ``owner/repo``.

    Raises:
        RuntimeError: Propagated from the data source (including
            RateLimitError and RepositoryNotFoundError).
    """
    prs = load_prs(owner, repo, limit, cache=cache, fetch=fetch)
    result = rank_prs(prs, filter_config, scoring_config)
    result.owner = owner
    result.repo = repo
    result.fetched_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
    return result
