"""Logging setup for the pr-ranker CLI.

Library modules only create ``pr_ranker.*`` loggers; handlers are installed
here, with a filter that keeps GitHub tokens out of log output.
"""

import logging
import re

_SENSITIVE_PATTERNS = [
    (re.compile(r"gh[pousr]_[A-Za-z0-9_]{36,}"), "[REDACTED]"),
    (re.compile(r"github_pat_[A-Za-z0-9_]{22,}"), "[REDACTED]"),
    (re.compile(r"Bearer\s+\S+", re.IGNORECASE), "Bearer [REDACTED]"),
]


def redact(message: str) -> str:
    """Mask GitHub tokens and bearer credentials in a string."""
    for pattern, replacement in _SENSITIVE_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


class RedactingFilter(logging.Filter):
    """Rewrite each record's message with credentials masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(verbose: bool = False) -> None:
    """Send ``pr_ranker`` logs to stderr: DEBUG when verbose, WARNING otherwise."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
    handler.addFilter(RedactingFilter())

    logger = logging.getLogger("pr_ranker")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False
