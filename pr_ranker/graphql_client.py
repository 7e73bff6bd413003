"""GraphQL client for GitHub API via gh CLI.

Fetches open pull requests with the diff metadata the scorer needs (files,
labels, reviews, review requests). All queries are executed via
`gh api graphql`, so authentication is whatever `gh auth` has configured.
"""

import json
import logging
import subprocess
import sys
import time
from typing import Optional

from pr_ranker.pr_data import PullRequest, pr_from_node

logger = logging.getLogger("pr_ranker.graphql_client")

GH_TIMEOUT = 60  # seconds per gh invocation
PAGE_SIZE = 100  # GitHub GraphQL max per page


class RateLimitError(RuntimeError):
    """GitHub returned RATE_LIMITED."""


class RepositoryNotFoundError(RuntimeError):
    """The requested repository does not exist or is not visible."""


def _variable_flags(variables: dict) -> list[str]:
    """Build gh -f/-F flags. Strings go through -f, everything else is typed via -F."""
    flags: list[str] = []
    for key, value in variables.items():
        if value is None:
            continue
        if isinstance(value, str):
            flags.extend(["-f", f"{key}={value}"])
        else:
            flags.extend(["-F", f"{key}={json.dumps(value)}"])
    return flags


def graphql_query(query: str, variables: Optional[dict] = None) -> dict:
    """Execute a GraphQL query via gh api graphql and return the data dict.

    Args:
        query: The GraphQL query string.
        variables: Optional dict of variables to pass to the query. ``None``
            values are omitted so nullable variables default to null.

    Returns:
        The 'data' dict from the GraphQL response.

    Raises:
        RateLimitError: If every returned error is RATE_LIMITED.
        RepositoryNotFoundError: If GitHub cannot resolve the repository.
        RuntimeError: On other GraphQL errors, a gh failure or a timeout.
    """
    cmd = ["gh", "api", "graphql", "-f", f"query={query}"]
    if variables:
        cmd.extend(_variable_flags(variables))

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=True,
            timeout=GH_TIMEOUT,
        )
    except FileNotFoundError:
        print("Error: gh CLI is not installed.", file=sys.stderr)
        sys.exit(1)
    except subprocess.TimeoutExpired:
        raise RuntimeError(f"gh api graphql timed out after {GH_TIMEOUT}s") from None
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "")[:500]
        # gh exits non-zero when the response carries GraphQL errors
        lowered = stderr.lower()
        if "not found" in lowered or "could not resolve" in lowered:
            raise RepositoryNotFoundError(stderr.strip()) from e
        if "rate limit" in lowered:
            raise RateLimitError(stderr.strip()) from e
        raise RuntimeError(f"gh api graphql failed:\n{stderr}") from e

    response = json.loads(result.stdout)

    errors = response.get("errors")
    if errors:
        if all(err.get("type") == "RATE_LIMITED" for err in errors):
            raise RateLimitError(errors[0].get("message", "Rate limited"))
        messages = "; ".join(err.get("message", str(err)) for err in errors)
        lowered = messages.lower()
        if "not found" in lowered or "could not resolve" in lowered:
            raise RepositoryNotFoundError(messages)
        raise RuntimeError(f"GraphQL errors: {messages}")

    return response.get("data") or {}


def graphql_with_retry(
    query: str,
    variables: Optional[dict] = None,
    max_retries: int = 3,
) -> dict:
    """Execute a GraphQL query with retry on rate limiting.

    Retries with exponential backoff (1s, 2s, 4s) when the API returns
    RATE_LIMITED errors. Other errors propagate immediately.

    Raises:
        RateLimitError: After exhausting retries.
        RuntimeError: On non-rate-limit errors.
    """
    for attempt in range(max_retries):
        try:
            return graphql_query(query, variables)
        except RateLimitError:
            if attempt == max_retries - 1:
                raise RateLimitError(
                    "GraphQL rate limit exceeded after retries"
                ) from None
            wait = 2 ** attempt  # 1s, 2s, 4s
            logger.warning(
                "Rate limited, retrying in %ds (attempt %d/%d)",
                wait, attempt + 1, max_retries,
            )
            time.sleep(wait)
    raise RateLimitError("GraphQL rate limit exceeded after retries")


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

_PR_FIELDS = """\
      number
      title
      url
      author { login }
      createdAt
      updatedAt
      additions
      deletions
      changedFiles
      mergeable
      isDraft
      body
      headRefName
      baseRefName
      labels(first: 20) { nodes { name color } }
      reviews(first: 50) {
        nodes { state author { login } submittedAt }
      }
      reviewRequests(first: 20) {
        nodes { requestedReviewer { ... on User { login } } }
      }
      files(first: 100) {
        nodes { path additions deletions }
      }"""

OPEN_PRS_QUERY = f"""\
query OpenPRs($owner: String!, $repo: String!, $cursor: String) {{
  repository(owner: $owner, name: $repo) {{
    pullRequests(first: {PAGE_SIZE}, states: OPEN, after: $cursor) {{
      totalCount
      nodes {{
{_PR_FIELDS}
      }}
      pageInfo {{ hasNextPage endCursor }}
    }}
  }}
}}"""

SINGLE_PR_QUERY = f"""\
query SinglePR($owner: String!, $repo: String!, $number: Int!) {{
  repository(owner: $owner, name: $repo) {{
    pullRequest(number: $number) {{
{_PR_FIELDS}
    }}
  }}
}}"""


def parse_open_prs_response(data: dict) -> tuple[list[PullRequest], Optional[str]]:
    """Parse one page of the open PRs query.

    Returns:
        Tuple of (pull requests on this page, cursor of the next page or
        None when there is no next page).
    """
    repository = data.get("repository")
    if not repository:
        return [], None
    connection = repository.get("pullRequests") or {}
    prs = [pr_from_node(n) for n in (connection.get("nodes") or []) if n is not None]
    page_info = connection.get("pageInfo") or {}
    cursor = page_info.get("endCursor") if page_info.get("hasNextPage") else None
    return prs, cursor


def fetch_open_prs(owner: str, repo: str, limit: int = 50) -> list[PullRequest]:
    """Fetch up to ``limit`` open PRs of ``owner/repo``.

    Pages through the connection until ``limit`` PRs are collected or there
    are no more pages.
    """
    prs: list[PullRequest] = []
    cursor: Optional[str] = None
    while True:
        data = graphql_with_retry(
            OPEN_PRS_QUERY, {"owner": owner, "repo": repo, "cursor": cursor}
        )
        page, cursor = parse_open_prs_response(data)
        prs.extend(page)
        logger.debug("Fetched %d PRs from %s/%s (%d total)", len(page), owner, repo, len(prs))
        if len(prs) >= limit or not cursor:
            break
    return prs[:limit]


def fetch_pr(owner: str, repo: str, number: int) -> Optional[PullRequest]:
    """Fetch a single PR, or None when the repository returns no PR node.

    GitHub reports an unknown PR number as a resolve error, which surfaces
    as RepositoryNotFoundError.
    """
    data = graphql_with_retry(
        SINGLE_PR_QUERY, {"owner": owner, "repo": repo, "number": int(number)}
    )
    node = (data.get("repository") or {}).get("pullRequest")
    return pr_from_node(node) if node else None
