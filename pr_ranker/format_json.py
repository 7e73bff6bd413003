"""JSON formatter for pr-ranker, for scripts and dashboards."""

from __future__ import annotations

import json

from pr_ranker.ranker import RankResult


def format_json(result: RankResult, indent: int = 2) -> str:
    """Serialize a ranking as ``{prs, total, filtered, owner, repo, fetchedAt}``.

    Each PR carries its GitHub fields plus ``score`` and ``scoreBreakdown``.
    """
    payload = {
        "prs": [scored.as_dict() for scored in result.prs],
        "total": result.total,
        "filtered": result.filtered,
        "owner": result.owner,
        "repo": result.repo,
        "fetchedAt": result.fetched_at,
    }
    return json.dumps(payload, indent=indent)
