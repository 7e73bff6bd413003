"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import logging
import os
import shutil

import pytest


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "requires_gh: mark test as requiring an authenticated gh CLI "
        "and PR_RANKER_LIVE_REPO set to a public owner/repo",
    )


def _gh_available() -> bool:
    """Check whether live GitHub tests can run."""
    if not os.environ.get("PR_RANKER_LIVE_REPO"):
        return False
    return shutil.which("gh") is not None


def pytest_collection_modifyitems(config, items):
    if _gh_available():
        return
    skip_gh = pytest.mark.skip(
        reason="No live GitHub access (need gh CLI and PR_RANKER_LIVE_REPO)",
    )
    for item in items:
        if "requires_gh" in item.keywords:
            item.add_marker(skip_gh)


@pytest.fixture(autouse=True)
def _restore_pr_ranker_logger():
    """main() installs a stderr handler; keep it from leaking across tests."""
    logger = logging.getLogger("pr_ranker")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]
