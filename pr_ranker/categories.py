"""File categories and system-area patterns used by the complexity heuristics.

Both tables are ordered: the first matching entry wins. ``core_logic`` is the
fallback category and is never matched by pattern during categorization.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple


CORE_LOGIC = "core_logic"


@dataclass(frozen=True)
class FileCategory:
    """A semantic file category with its review-complexity weight (0-1)."""

    name: str
    patterns: Tuple[re.Pattern, ...]
    complexity_weight: float

    def matches(self, path: str) -> bool:
        return any(p.search(path) for p in self.patterns)


def _compile(*patterns: str) -> Tuple[re.Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


FILE_CATEGORIES: Tuple[FileCategory, ...] = (
    FileCategory(
        name="documentation",
        patterns=_compile(
            r"\.md$", r"\.txt$", r"\.rst$", r"CHANGELOG", r"LICENSE", r"NOTICE",
        ),
        complexity_weight=0.1,
    ),
    FileCategory(
        name="config",
        patterns=_compile(
            r"\.json$", r"\.ya?ml$", r"\.toml$", r"\.ini$", r"\.env",
            r"\.config\.", r"\.prettierrc", r"\.eslintrc", r"Makefile$",
            r"Dockerfile$",
        ),
        complexity_weight=0.3,
    ),
    FileCategory(
        name="test",
        patterns=_compile(
            r"\.test\.", r"\.spec\.", r"/__tests__/", r"/e2e/", r"\.stories\.",
        ),
        complexity_weight=0.4,
    ),
    FileCategory(
        name="generated",
        patterns=_compile(
            r"\.lock$", r"\.min\.", r"/dist/", r"/build/", r"\.d\.ts$",
        ),
        complexity_weight=0.1,
    ),
    FileCategory(
        name="dependency",
        patterns=_compile(
            r"package\.json$", r"go\.mod$", r"go\.sum$", r"requirements\.txt$",
            r"Cargo\.toml$",
        ),
        complexity_weight=0.5,
    ),
    FileCategory(
        name=CORE_LOGIC,
        patterns=_compile(
            r"\.tsx?$", r"\.jsx?$", r"\.go$", r"\.py$", r"\.rs$", r"\.java$",
        ),
        complexity_weight=1.0,
    ),
)

_BY_NAME = {c.name: c for c in FILE_CATEGORIES}

# Top-level directories that mark distinct system areas
CROSS_CUTTING_AREAS: Tuple[Tuple[str, re.Pattern], ...] = tuple(
    (area, re.compile(rf"^{area}/", re.IGNORECASE))
    for area in (
        "src", "lib", "api", "components", "hooks", "utils", "shared",
        "features", "app",
    )
)


def get_category(name: str) -> FileCategory:
    """Return the category called ``name``. Raises KeyError if unknown."""
    return _BY_NAME[name]


def categorize_file(path: str) -> FileCategory:
    """Resolve a changed file path to exactly one category.

    Categories are tried in declaration order; ``core_logic`` is returned when
    nothing else matches, so every path gets a category.
    """
    for category in FILE_CATEGORIES:
        if category.name == CORE_LOGIC:
            continue
        if category.matches(path):
            return category
    return _BY_NAME[CORE_LOGIC]


def area_of(path: str) -> Optional[str]:
    """Return the system area a path belongs to, or None."""
    for area, pattern in CROSS_CUTTING_AREAS:
        if pattern.search(path):
            return area
    return None
