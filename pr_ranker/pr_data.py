"""Pull request data model, shared by the filters, the scorer and the renderers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


CHANGE_TYPES = ("added", "modified", "deleted", "renamed")
REVIEW_STATES = ("APPROVED", "CHANGES_REQUESTED", "COMMENTED", "PENDING", "DISMISSED")
MERGEABLE_STATES = ("MERGEABLE", "CONFLICTING", "UNKNOWN")


@dataclass(frozen=True)
class ChangedFile:
    """A single file touched by a PR."""
    path: str
    additions: int = 0
    deletions: int = 0
    change_type: str = "modified"   # one of CHANGE_TYPES


@dataclass(frozen=True)
class Label:
    name: str
    color: str = ""


@dataclass(frozen=True)
class Review:
    author: str
    state: str                      # one of REVIEW_STATES
    submitted_at: str = ""


@dataclass(frozen=True)
class PullRequest:
    """An open PR as returned by the data source. Read-only to the pipeline."""
    number: int
    title: str
    body: str = ""
    author: str = ""
    created_at: str = ""
    updated_at: str = ""
    is_draft: bool = False
    mergeable: str = "UNKNOWN"      # one of MERGEABLE_STATES
    head_ref: str = ""
    base_ref: str = ""
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    labels: Tuple[Label, ...] = ()
    reviews: Tuple[Review, ...] = ()
    files: Tuple[ChangedFile, ...] = ()
    review_requests: Tuple[str, ...] = ()   # logins of pending reviewers
    url: str = ""

    def as_dict(self) -> dict:
        """Serialize using the GitHub-style camelCase keys."""
        return {
            "number": self.number,
            "title": self.title,
            "body": self.body,
            "author": self.author,
            "url": self.url,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "isDraft": self.is_draft,
            "mergeable": self.mergeable,
            "headRefName": self.head_ref,
            "baseRefName": self.base_ref,
            "additions": self.additions,
            "deletions": self.deletions,
            "changedFiles": self.changed_files,
            "labels": [{"name": l.name, "color": l.color} for l in self.labels],
            "reviews": [
                {"author": r.author, "state": r.state, "submittedAt": r.submitted_at}
                for r in self.reviews
            ],
            "files": [
                {
                    "path": f.path,
                    "additions": f.additions,
                    "deletions": f.deletions,
                    "changeType": f.change_type,
                }
                for f in self.files
            ],
            "reviewRequests": list(self.review_requests),
        }


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-dimension complexity scores (each 1-10) plus the weighted total."""
    lines: int
    files: int
    file_types: int
    deps: int
    tests: int
    docs: int
    cross_cutting: int
    total: int

    @classmethod
    def trivial(cls) -> "ScoreBreakdown":
        return cls(
            lines=1, files=1, file_types=1, deps=1, tests=1, docs=1,
            cross_cutting=1, total=1,
        )

    def as_dict(self) -> dict:
        return {
            "lines": self.lines,
            "files": self.files,
            "fileTypes": self.file_types,
            "deps": self.deps,
            "tests": self.tests,
            "docs": self.docs,
            "crossCutting": self.cross_cutting,
            "total": self.total,
        }


@dataclass
class FilteredPR:
    """A PR that passed the filters, with its complexity score attached.

    PR attributes are readable directly (``scored.number``, ``scored.title``).
    """
    pr: PullRequest
    score: int
    score_breakdown: ScoreBreakdown

    def __getattr__(self, name):
        # Only reached for names not defined on FilteredPR itself.
        if name == "pr":
            raise AttributeError(name)
        return getattr(self.pr, name)

    @property
    def complexity_label(self) -> str:
        from pr_ranker.scoring import complexity_label
        return complexity_label(self.score)

    @property
    def complexity_color(self) -> str:
        from pr_ranker.scoring import complexity_color
        return complexity_color(self.score)

    def as_dict(self) -> dict:
        data = self.pr.as_dict()
        data["score"] = self.score
        data["scoreBreakdown"] = self.score_breakdown.as_dict()
        return data


# ---------------------------------------------------------------------------
# GraphQL node mapping
# ---------------------------------------------------------------------------


def _nodes(connection: Optional[dict]) -> list[dict]:
    """Return the non-null nodes of a GraphQL connection."""
    return [n for n in ((connection or {}).get("nodes") or []) if n is not None]


def pr_from_node(node: dict) -> PullRequest:
    """Build a PullRequest from a GraphQL ``PullRequest`` node.

    Args:
        node: One entry of ``repository.pullRequests.nodes`` (or a single
            ``repository.pullRequest``).

    Returns:
        A PullRequest. Null sub-nodes are skipped, missing author/body become
        empty strings and every file is reported as ``modified`` (the
        GraphQL ``files`` connection carries no change type).
    """
    files = tuple(
        ChangedFile(
            path=f.get("path", ""),
            additions=f.get("additions") or 0,
            deletions=f.get("deletions") or 0,
            change_type="modified",
        )
        for f in _nodes(node.get("files"))
    )
    reviews = tuple(
        Review(
            author=(r.get("author") or {}).get("login", ""),
            state=r.get("state", ""),
            submitted_at=r.get("submittedAt") or "",
        )
        for r in _nodes(node.get("reviews"))
    )
    labels = tuple(
        Label(name=l.get("name", ""), color=l.get("color", ""))
        for l in _nodes(node.get("labels"))
    )
    review_requests = []
    for req in _nodes(node.get("reviewRequests")):
        login = (req.get("requestedReviewer") or {}).get("login")
        if isinstance(login, str) and login:
            review_requests.append(login)

    return PullRequest(
        number=node.get("number", 0),
        title=node.get("title", ""),
        body=node.get("body") or "",
        author=(node.get("author") or {}).get("login", ""),
        created_at=node.get("createdAt", ""),
        updated_at=node.get("updatedAt", ""),
        is_draft=bool(node.get("isDraft", False)),
        mergeable=node.get("mergeable") or "UNKNOWN",
        head_ref=node.get("headRefName", ""),
        base_ref=node.get("baseRefName", ""),
        additions=node.get("additions") or 0,
        deletions=node.get("deletions") or 0,
        changed_files=node.get("changedFiles") or 0,
        labels=labels,
        reviews=reviews,
        files=files,
        review_requests=tuple(review_requests),
        url=node.get("url", ""),
    )
