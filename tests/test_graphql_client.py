"""Unit tests for graphql_client.py.

Tests the gh invocation, error mapping, retry and pagination with mocked
subprocess calls.
Run with: python3 -m pytest tests/test_graphql_client.py -v
"""

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from pr_ranker.graphql_client import (
    OPEN_PRS_QUERY,
    SINGLE_PR_QUERY,
    RateLimitError,
    RepositoryNotFoundError,
    fetch_open_prs,
    fetch_pr,
    graphql_query,
    graphql_with_retry,
    parse_open_prs_response,
)


def _make_node(number, **overrides):
    node = {
        "number": number,
        "title": f"PR {number}",
        "url": f"https://github.com/acme/widgets/pull/{number}",
        "author": {"login": "alice"},
        "createdAt": "2026-10-01T10:00:00Z",
        "updatedAt": "2026-10-02T10:00:00Z",
        "additions": 10,
        "deletions": 2,
        "changedFiles": 1,
        "mergeable": "MERGEABLE",
        "isDraft": False,
        "body": "",
        "headRefName": f"feature-{number}",
        "baseRefName": "main",
        "labels": {"nodes": []},
        "reviews": {"nodes": []},
        "reviewRequests": {"nodes": []},
        "files": {"nodes": [{"path": "src/app.ts", "additions": 10, "deletions": 2}]},
    }
    node.update(overrides)
    return node


def _make_page(numbers, end_cursor=None):
    return {
        "repository": {
            "pullRequests": {
                "totalCount": len(numbers),
                "nodes": [_make_node(n) for n in numbers],
                "pageInfo": {
                    "hasNextPage": end_cursor is not None,
                    "endCursor": end_cursor,
                },
            }
        }
    }


def _gh_output(payload):
    return MagicMock(stdout=json.dumps(payload), returncode=0)


# ---------------------------------------------------------------------------
# graphql_query
# ---------------------------------------------------------------------------

class TestGraphqlQuery:
    """Tests for the graphql_query function."""

    @patch("pr_ranker.graphql_client.subprocess.run")
    def test_basic_query(self, mock_run):
        mock_run.return_value = _gh_output({"data": {"viewer": {"login": "testuser"}}})
        result = graphql_query("{ viewer { login } }")
        assert result == {"viewer": {"login": "testuser"}}
        mock_run.assert_called_once()
        cmd = mock_run.call_args[0][0]
        assert cmd[:3] == ["gh", "api", "graphql"]

    @patch("pr_ranker.graphql_client.subprocess.run")
    def test_string_variables_use_raw_fields(self, mock_run):
        mock_run.return_value = _gh_output({"data": {"repository": {}}})
        graphql_query(OPEN_PRS_QUERY, variables={"owner": "acme", "repo": "widgets"})
        cmd = mock_run.call_args[0][0]
        f_flags = [cmd[i + 1] for i, v in enumerate(cmd) if v == "-f"]
        assert "owner=acme" in f_flags
        assert "repo=widgets" in f_flags

    @patch("pr_ranker.graphql_client.subprocess.run")
    def test_int_variables_use_typed_fields(self, mock_run):
        mock_run.return_value = _gh_output({"data": {"repository": {}}})
        graphql_query(SINGLE_PR_QUERY, variables={"owner": "acme", "repo": "widgets", "number": 42})
        cmd = mock_run.call_args[0][0]
        typed = [cmd[i + 1] for i, v in enumerate(cmd) if v == "-F"]
        assert typed == ["number=42"]

    @patch("pr_ranker.graphql_client.subprocess.run")
    def test_none_variables_omitted(self, mock_run):
        mock_run.return_value = _gh_output({"data": {"repository": {}}})
        graphql_query(OPEN_PRS_QUERY, variables={"owner": "acme", "repo": "widgets", "cursor": None})
        cmd = mock_run.call_args[0][0]
        assert not any(arg.startswith("cursor=") for arg in cmd)

    @patch("pr_ranker.graphql_client.subprocess.run")
    def test_null_data_returns_empty_dict(self, mock_run):
        mock_run.return_value = _gh_output({"data": None})
        assert graphql_query("{ viewer { login } }") == {}

    @patch("pr_ranker.graphql_client.subprocess.run")
    def test_rate_limit_error_raises(self, mock_run):
        mock_run.return_value = _gh_output({
            "data": None,
            "errors": [{"type": "RATE_LIMITED", "message": "rate limited"}],
        })
        with pytest.raises(RateLimitError, match="rate limited"):
            graphql_query("{ viewer { login } }")

    @patch("pr_ranker.graphql_client.subprocess.run")
    def test_unresolved_repository_raises_not_found(self, mock_run):
        mock_run.return_value = _gh_output({
            "data": {"repository": None},
            "errors": [{
                "type": "NOT_FOUND",
                "message": "Could not resolve to a Repository with the name 'acme/nope'.",
            }],
        })
        with pytest.raises(RepositoryNotFoundError):
            graphql_query(OPEN_PRS_QUERY, {"owner": "acme", "repo": "nope"})

    @patch("pr_ranker.graphql_client.subprocess.run")
    def test_other_errors_raise_runtime(self, mock_run):
        mock_run.return_value = _gh_output({
            "data": None,
            "errors": [{"type": "INTERNAL", "message": "something broke"}],
        })
        with pytest.raises(RuntimeError, match="GraphQL errors: something broke"):
            graphql_query("{ viewer { login } }")

    @patch("pr_ranker.graphql_client.subprocess.run")
    def test_subprocess_failure_raises(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(1, "gh", stderr="auth required")
        with pytest.raises(RuntimeError, match="gh api graphql failed"):
            graphql_query("{ viewer { login } }")

    @patch("pr_ranker.graphql_client.subprocess.run")
    def test_subprocess_failure_for_missing_repository(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(
            1, "gh", stderr="GraphQL: Could not resolve to a Repository with the name 'acme/nope'."
        )
        with pytest.raises(RepositoryNotFoundError):
            graphql_query("{ viewer { login } }")

    @patch("pr_ranker.graphql_client.subprocess.run")
    def test_subprocess_failure_for_unknown_pr_number(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(
            1, "gh", stderr="gh: Could not resolve to a PullRequest with the number of 99999."
        )
        with pytest.raises(RepositoryNotFoundError):
            fetch_pr("acme", "widgets", 99999)

    @patch("pr_ranker.graphql_client.subprocess.run")
    def test_subprocess_failure_for_http_404(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(1, "gh", stderr="gh: Not Found (HTTP 404)")
        with pytest.raises(RepositoryNotFoundError):
            graphql_query("{ viewer { login } }")

    @patch("pr_ranker.graphql_client.subprocess.run")
    def test_subprocess_failure_for_rate_limit(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(
            1, "gh", stderr="GraphQL: API rate limit exceeded for user ID 1."
        )
        with pytest.raises(RateLimitError):
            graphql_query("{ viewer { login } }")

    @patch("pr_ranker.graphql_client.subprocess.run")
    def test_timeout_raises_runtime(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired("gh", 60)
        with pytest.raises(RuntimeError, match="timed out"):
            graphql_query("{ viewer { login } }")

    @patch("pr_ranker.graphql_client.subprocess.run")
    def test_missing_gh_exits(self, mock_run, capsys):
        mock_run.side_effect = FileNotFoundError("gh")
        with pytest.raises(SystemExit) as exc:
            graphql_query("{ viewer { login } }")
        assert exc.value.code == 1
        assert "gh CLI is not installed" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# graphql_with_retry
# ---------------------------------------------------------------------------

class TestGraphqlWithRetry:
    """Tests for the graphql_with_retry function."""

    @patch("pr_ranker.graphql_client.graphql_query")
    def test_success_no_retry(self, mock_query):
        mock_query.return_value = {"viewer": {"login": "testuser"}}
        result = graphql_with_retry("{ viewer { login } }")
        assert result == {"viewer": {"login": "testuser"}}
        assert mock_query.call_count == 1

    @patch("pr_ranker.graphql_client.time.sleep")
    @patch("pr_ranker.graphql_client.graphql_query")
    def test_retry_on_rate_limit(self, mock_query, mock_sleep):
        mock_query.side_effect = [
            RateLimitError("rate limited"),
            {"viewer": {"login": "testuser"}},
        ]
        result = graphql_with_retry("{ viewer { login } }")
        assert result == {"viewer": {"login": "testuser"}}
        assert mock_query.call_count == 2
        mock_sleep.assert_called_once_with(1)  # 2^0 = 1

    @patch("pr_ranker.graphql_client.time.sleep")
    @patch("pr_ranker.graphql_client.graphql_query")
    def test_max_retries_exceeded(self, mock_query, mock_sleep):
        mock_query.side_effect = RateLimitError("rate limited")
        with pytest.raises(RateLimitError, match="rate limit exceeded after retries"):
            graphql_with_retry("{ viewer { login } }", max_retries=3)
        assert mock_query.call_count == 3
        # Backoff: 2^0=1, 2^1=2 (third attempt raises immediately)
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1, 2]

    @patch("pr_ranker.graphql_client.graphql_query")
    def test_not_found_not_retried(self, mock_query):
        mock_query.side_effect = RepositoryNotFoundError("acme/nope")
        with pytest.raises(RepositoryNotFoundError):
            graphql_with_retry("{ viewer { login } }")
        assert mock_query.call_count == 1

    @patch("pr_ranker.graphql_client.graphql_query")
    def test_non_rate_limit_error_not_retried(self, mock_query):
        mock_query.side_effect = RuntimeError("boom")
        with pytest.raises(RuntimeError, match="boom"):
            graphql_with_retry("{ viewer { login } }")
        assert mock_query.call_count == 1


# ---------------------------------------------------------------------------
# parse_open_prs_response
# ---------------------------------------------------------------------------

class TestParseOpenPrsResponse:
    """Tests for parsing one page of open PRs."""

    def test_parse_page(self):
        prs, cursor = parse_open_prs_response(_make_page([1, 2], end_cursor="abc"))
        assert [p.number for p in prs] == [1, 2]
        assert cursor == "abc"
        assert prs[0].files[0].path == "src/app.ts"

    def test_last_page_has_no_cursor(self):
        _, cursor = parse_open_prs_response(_make_page([1]))
        assert cursor is None

    def test_null_repository(self):
        assert parse_open_prs_response({"repository": None}) == ([], None)

    def test_null_nodes_skipped(self):
        data = _make_page([1])
        data["repository"]["pullRequests"]["nodes"].append(None)
        prs, _ = parse_open_prs_response(data)
        assert len(prs) == 1


# ---------------------------------------------------------------------------
# fetch_open_prs / fetch_pr
# ---------------------------------------------------------------------------

class TestFetchOpenPrs:
    """Tests for paginated fetching."""

    @patch("pr_ranker.graphql_client.graphql_with_retry")
    def test_single_page(self, mock_query):
        mock_query.return_value = _make_page([1, 2, 3])
        prs = fetch_open_prs("acme", "widgets", limit=50)
        assert [p.number for p in prs] == [1, 2, 3]
        assert mock_query.call_count == 1
        variables = mock_query.call_args[0][1]
        assert variables == {"owner": "acme", "repo": "widgets", "cursor": None}

    @patch("pr_ranker.graphql_client.graphql_with_retry")
    def test_follows_cursor(self, mock_query):
        mock_query.side_effect = [
            _make_page([1, 2], end_cursor="c1"),
            _make_page([3, 4]),
        ]
        prs = fetch_open_prs("acme", "widgets", limit=50)
        assert [p.number for p in prs] == [1, 2, 3, 4]
        assert mock_query.call_args_list[1][0][1]["cursor"] == "c1"

    @patch("pr_ranker.graphql_client.graphql_with_retry")
    def test_stops_at_limit(self, mock_query):
        mock_query.return_value = _make_page([1, 2, 3, 4, 5], end_cursor="c1")
        prs = fetch_open_prs("acme", "widgets", limit=3)
        assert [p.number for p in prs] == [1, 2, 3]
        assert mock_query.call_count == 1

    @patch("pr_ranker.graphql_client.graphql_with_retry")
    def test_empty_repository(self, mock_query):
        mock_query.return_value = _make_page([])
        assert fetch_open_prs("acme", "widgets") == []


class TestFetchPr:
    """Tests for single-PR fetching."""

    @patch("pr_ranker.graphql_client.graphql_with_retry")
    def test_fetch(self, mock_query):
        mock_query.return_value = {"repository": {"pullRequest": _make_node(7)}}
        pr = fetch_pr("acme", "widgets", 7)
        assert pr.number == 7
        assert mock_query.call_args[0][1]["number"] == 7

    @patch("pr_ranker.graphql_client.graphql_with_retry")
    def test_missing_pr(self, mock_query):
        mock_query.return_value = {"repository": {"pullRequest": None}}
        assert fetch_pr("acme", "widgets", 7) is None
