"""
Line-level diff helpers.

Diffs are flattened to "+ <line>" / "- <line>" entries without hunk headers
or context lines; detectors only look at what was added or removed.
"""

import difflib
from typing import List, Sequence, Tuple


def diff_lines(old: Sequence[str], new: Sequence[str]) -> List[str]:
    """Flattened unified diff between two versions of a file."""
    entries = []
    for line in difflib.unified_diff(list(old), list(new), lineterm="", n=0):
        if line.startswith(("---", "+++", "@@")):
            continue
        if line.startswith("+"):
            entries.append(f"+ {line[1:]}")
        elif line.startswith("-"):
            entries.append(f"- {line[1:]}")
    return entries


def created_diff(lines: Sequence[str]) -> List[str]:
    return [f"+ {line}" for line in lines]


def deleted_diff(path: str) -> List[str]:
    return [f"- [File deleted: {path}]"]


def summarize(entries: Sequence[str]) -> Tuple[str, int, int]:
    """
    Join diff entries and count them.

    Returns:
        (diff_summary, lines_added, lines_removed)
    """
    added = sum(1 for entry in entries if entry.startswith("+"))
    removed = sum(1 for entry in entries if entry.startswith("-"))
    return "\n".join(entries), added, removed
