"""
File change events emitted by the watcher.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict


class ChangeKind(str, Enum):
    """Kind of file-system change."""
    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"


@dataclass(frozen=True)
class FileChangeEvent:
    """
    An immutable record of one debounced change to one file.

    Attributes:
        path: Path relative to the watched root (POSIX separators)
        kind: create, modify or delete
        diff_summary: Line diff of the change ("+ " / "- " prefixed lines)
        lines_added: Number of added lines in the diff
        lines_removed: Number of removed lines in the diff
        occurred_at: Epoch seconds when the change was observed
    """
    path: str
    kind: ChangeKind = ChangeKind.MODIFY
    diff_summary: str = ""
    lines_added: int = 0
    lines_removed: int = 0
    occurred_at: float = field(default_factory=time.time)
    id: str = field(default_factory=lambda: f"change_{uuid.uuid4().hex[:12]}")

    def __post_init__(self):
        object.__setattr__(self, "kind", ChangeKind(self.kind))

    @property
    def extension(self) -> str:
        return PurePath(self.path).suffix.lower()

    @property
    def added_lines(self):
        """Added lines of the diff with their '+' prefix stripped."""
        return [
            line[1:].strip()
            for line in self.diff_summary.splitlines()
            if line.startswith("+") and not line.startswith("+++")
        ]

    @property
    def removed_lines(self):
        """Removed lines of the diff with their '-' prefix stripped."""
        return [
            line[1:].strip()
            for line in self.diff_summary.splitlines()
            if line.startswith("-") and not line.startswith("---")
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "path": self.path,
            "kind": self.kind.value,
            "diff_summary": self.diff_summary,
            "lines_added": self.lines_added,
            "lines_removed": self.lines_removed,
            "occurred_at": self.occurred_at,
        }
