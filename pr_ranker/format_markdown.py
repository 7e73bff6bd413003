"""Markdown formatter for pr-ranker."""

from __future__ import annotations

from pr_ranker.pr_data import FilteredPR
from pr_ranker.ranker import RankResult


def format_markdown(result: RankResult, show_filtered: bool = False, easiest_first: bool = False) -> str:
    """Render ranked PRs as a Markdown table.

    Args:
        result: Output of the ranking pipeline.
        show_filtered: Also list the PRs the filters dropped, with reasons.
        easiest_first: Reverse the ranking so the lowest scores come first.

    Returns:
        The full Markdown report as a single string.
    """
    lines: list[str] = []
    repo = f"{result.owner}/{result.repo}"

    lines.append(f"# Open PRs \u2014 `{repo}`")
    lines.append("")
    lines.append(
        f"{len(result.prs)} to review, {result.filtered} filtered "
        f"out of {result.total} open."
    )
    lines.append("")

    prs = list(reversed(result.prs)) if easiest_first else result.prs
    if prs:
        lines.append("| # | PR | Title | Author | Lines | Files | Score | Complexity |")
        lines.append("|---|---|---|---|---|---|---|---|")
        for rank, scored in enumerate(prs, start=1):
            lines.append(_render_row(rank, scored, repo))
    else:
        lines.append("_No PRs to review._")
    lines.append("")

    if show_filtered and result.dropped:
        lines.append("## Filtered")
        lines.append("")
        for pr in result.dropped:
            reason = result.reasons.get(pr.number, "")
            lines.append(f"- {_pr_link(repo, pr.number)} {_escape(pr.title)} \u2014 {reason}")
        lines.append("")

    return "\n".join(lines)


def _pr_link(repo: str, number: int) -> str:
    """Build a Markdown link to a GitHub PR."""
    return f"[#{number}](https://github.com/{repo}/pull/{number})"


def _escape(text: str) -> str:
    """Keep pipes in titles from breaking the table."""
    return text.replace("|", "\\|")


def _render_row(rank: int, scored: FilteredPR, repo: str) -> str:
    pr = scored.pr
    return (
        f"| {rank} | {_pr_link(repo, pr.number)} | {_escape(pr.title)} | {pr.author} "
        f"| +{pr.additions}/\u2212{pr.deletions} | {len(pr.files)} "
        f"| **{scored.score}** | {scored.complexity_label} |"
    )
