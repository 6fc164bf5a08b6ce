"""
Path filtering for the file watcher.

A path is tracked when it has a supported source extension, sits outside
every excluded directory and matches the include globs (when any are given).
"""

import fnmatch
from pathlib import PurePosixPath
from typing import Iterable, List, Optional

# Build output, version control and dependency directories
DEFAULT_EXCLUDED_DIRS = frozenset({
    "node_modules",
    ".git",
    "dist",
    "build",
    ".next",
    "coverage",
    ".nyc_output",
    "tmp",
    "temp",
    "__pycache__",
    ".venv",
    "venv",
    ".mypy_cache",
    ".pytest_cache",
    ".tox",
    ".slopwatch",
})

SUPPORTED_EXTENSIONS = frozenset({
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".vue", ".svelte",
    ".css", ".scss", ".sass", ".less", ".styl",
    ".html", ".htm", ".md", ".json",
    ".py", ".rb", ".go", ".rs", ".java", ".c", ".cpp", ".cs", ".php", ".sh",
    ".yml", ".yaml", ".toml", ".env",
})


class PathFilter:
    """
    Decides which relative paths the watcher tracks.

    Usage:
        path_filter = PathFilter(include=["src/**"], exclude=["*.min.js"])
        path_filter.matches("src/app.ts")
    """

    def __init__(
        self,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
    ):
        self.include: List[str] = list(include or [])
        self.exclude: List[str] = list(exclude or [])

    def is_excluded_dir(self, name: str) -> bool:
        return name in DEFAULT_EXCLUDED_DIRS

    def matches(self, relative_path: str) -> bool:
        """Check whether a path (relative to the watched root) is tracked."""
        path = PurePosixPath(relative_path.replace("\\", "/"))

        if any(part in DEFAULT_EXCLUDED_DIRS for part in path.parts[:-1]):
            return False

        # ".env" has no suffix as far as pathlib is concerned
        extension = path.suffix.lower() or path.name.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            return False

        posix = path.as_posix()
        if any(_glob_match(posix, pattern) for pattern in self.exclude):
            return False
        if self.include and not any(_glob_match(posix, pattern) for pattern in self.include):
            return False
        return True


def _glob_match(path: str, pattern: str) -> bool:
    # fnmatch's '*' already crosses '/', so "src/**" and "**/*.css" both work
    if fnmatch.fnmatch(path, pattern):
        return True
    if pattern.startswith("**/"):
        return fnmatch.fnmatch(path, pattern[3:])
    return False


def is_supported_file(path: str) -> bool:
    """Extension-only check, used by the relatedness predicate."""
    pure = PurePosixPath(path.replace("\\", "/"))
    return (pure.suffix.lower() or pure.name.lower()) in SUPPORTED_EXTENSIONS
