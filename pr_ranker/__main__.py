#!/usr/bin/env python3
"""Rank the open PRs of a GitHub repository by review complexity.

Three-phase pipeline:
  Phase 1: Fetch open PRs via GraphQL (gh CLI), memoized in a TTL cache
  Phase 2: Drop PRs that are not triage candidates (drafts, approved, held...)
  Phase 3: Score the rest 1-10 and sort hardest first (or easiest first)
"""

import argparse
import sys
import time

from pr_ranker.cache import TTLCache
from pr_ranker.config import ConfigError, build_filter_config, check_weights, load_config
from pr_ranker.format_json import format_json
from pr_ranker.format_markdown import format_markdown
from pr_ranker.graphql_client import RateLimitError, RepositoryNotFoundError
from pr_ranker.log import configure_logging
from pr_ranker.ranker import MAX_LIMIT, MIN_LIMIT, clamp_limit, parse_repo, rank_repository
from pr_ranker.scoring import ScoringConfig


_FILTER_FLAGS = [
    ("exclude_drafts", "draft PRs"),
    ("exclude_approved", "PRs with an approving review"),
    ("exclude_hold", "PRs carrying a hold label"),
    ("exclude_conflicts", "PRs with merge conflicts"),
    ("exclude_active_reviews", "PRs with pending review requests"),
    ("exclude_skip_review", "PRs carrying a skip-review label"),
]


def parse_weight(text):
    """Parse a NAME=VALUE weight override."""
    name, sep, value = text.partition("=")
    if not sep or not name.strip():
        raise ValueError(f"Invalid weight '{text}', expected NAME=VALUE")
    try:
        return name.strip(), float(value)
    except ValueError:
        raise ValueError(f"Invalid weight '{text}': '{value}' is not a number") from None


def build_parser():
    parser = argparse.ArgumentParser(
        prog="pr-ranker",
        description="Rank open GitHub PRs by estimated review complexity",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Labels are comma-separated and matched case-insensitively. "
               "Command-line options override the config file.",
    )
    parser.add_argument("repo", nargs="?", default=None, help="owner/repo or GitHub URL (default: default_repo from config)")
    parser.add_argument("--limit", default=None, help=f"max open PRs to fetch, {MIN_LIMIT}-{MAX_LIMIT} (default: config or 50)")
    parser.add_argument("--config", dest="config_path", default=None, help="path to YAML config file (default: ~/.config/pr-ranker/config.yaml)")
    parser.add_argument("--hold-labels", dest="hold_labels", default=None, help="labels that put a PR on hold")
    parser.add_argument("--skip-labels", dest="skip_labels", default=None, help="labels that opt a PR out of review")
    for flag, what in _FILTER_FLAGS:
        parser.add_argument(
            "--" + flag.replace("_", "-"), dest=flag,
            action=argparse.BooleanOptionalAction, default=None,
            help=f"exclude {what}",
        )
    parser.add_argument(
        "--weight", dest="weights", action="append", default=[], metavar="NAME=VALUE",
        help="override a scoring weight, e.g. --weight lines=0.3 (repeatable)",
    )
    parser.add_argument("--format", dest="output_format", default="markdown", choices=["markdown", "json"], help="output format (default: %(default)s)")
    parser.add_argument("--easiest-first", dest="easiest_first", action="store_true", default=False, help="list lowest scores first (markdown only)")
    parser.add_argument("--show-filtered", dest="show_filtered", action="store_true", default=False, help="list filtered PRs with the reason (markdown only)")
    parser.add_argument("--watch", type=int, default=None, metavar="SECONDS", help="re-rank every SECONDS until interrupted; fetches are cached for cache_ttl")
    parser.add_argument("-v", "--verbose", action="store_true", default=False, help="debug logging to stderr")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    try:
        cfg = load_config(args.config_path)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    repo_arg = args.repo or cfg.default_repo
    if not repo_arg:
        print("Error: no repository given and no default_repo in config.", file=sys.stderr)
        sys.exit(1)
    parsed = parse_repo(repo_arg)
    if parsed is None:
        print(f"Error: Invalid repository '{repo_arg}'. Use owner/repo or a GitHub URL.", file=sys.stderr)
        sys.exit(1)
    owner, repo = parsed

    limit = clamp_limit(args.limit if args.limit is not None else cfg.limit)

    overrides = {
        "hold_labels": args.hold_labels,
        "skip_labels": args.skip_labels,
    }
    for flag, _ in _FILTER_FLAGS:
        value = getattr(args, flag)
        if value is not None:
            overrides[flag] = value
    filter_config = build_filter_config(overrides, base=cfg.filters)

    try:
        weights = dict(parse_weight(w) for w in args.weights)
        scoring_config = ScoringConfig.from_mapping(weights, base=cfg.weights)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    weight_warning = check_weights(scoring_config)
    if weight_warning:
        print(f"Warning: {weight_warning}", file=sys.stderr)

    if args.watch is not None and args.watch < 1:
        print("Error: --watch interval must be at least 1 second.", file=sys.stderr)
        sys.exit(1)

    cache = TTLCache(ttl=cfg.cache_ttl)

    while True:
        try:
            _run_once(args, owner, repo, limit, filter_config, scoring_config, cache)
            if args.watch is None:
                break
            time.sleep(args.watch)
        except KeyboardInterrupt:
            if args.watch is None:
                raise
            break


def _run_once(args, owner, repo, limit, filter_config, scoring_config, cache):
    """Rank the repository once and print the report."""
    try:
        result = rank_repository(
            owner, repo, limit,
            filter_config=filter_config,
            scoring_config=scoring_config,
            cache=cache,
        )
    except RepositoryNotFoundError:
        print(f"Error: Repository not found: {owner}/{repo}", file=sys.stderr)
        sys.exit(1)
    except RateLimitError:
        print("Error: GitHub rate limit exceeded. Try again later.", file=sys.stderr)
        sys.exit(1)
    except RuntimeError as e:
        print(f"Error: PR fetch failed: {e}", file=sys.stderr)
        sys.exit(1)

    if args.output_format == "json":
        print(format_json(result))
    else:
        print(format_markdown(
            result,
            show_filtered=args.show_filtered,
            easiest_first=args.easiest_first,
        ))


if __name__ == "__main__":
    main()
