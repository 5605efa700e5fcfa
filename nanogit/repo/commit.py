"""Commit data structure."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from nanogit.repo.hash import compute_hash


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Commit:
    """
    An immutable snapshot in the repository history.

    Each commit points to zero (root), one, or two (merge) parents, forming
    a DAG. The file map records which blob holds each tracked file.

    Attributes:
        message: Human-readable description of the change.
        parents: Ordered parent commit IDs (first parent first).
        files: Mapping of working-tree filename to blob ID.
        timestamp: When this commit was created (timezone-aware).
        id: Content-addressable hash (computed automatically).
    """

    message: str
    parents: list[str] = field(default_factory=list)
    files: dict[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_now)

    # Content-addressable ID (computed after init)
    id: str = field(default="", init=False)

    def __post_init__(self) -> None:
        """Compute content-addressable ID after initialization."""
        if len(self.parents) > 2:
            raise ValueError("A commit has at most two parents")
        if not self.id:
            self.id = self.compute_id()

    def content(self) -> dict[str, Any]:
        """The fields that determine a commit's identity."""
        return {
            "message": self.message,
            "parents": list(self.parents),
            "files": dict(self.files),
            "timestamp": self.timestamp.isoformat(),
        }

    def compute_id(self) -> str:
        """Compute SHA256 hash of commit content."""
        return compute_hash(self.content())

    @property
    def parent_id(self) -> str | None:
        """First parent, or None for the root commit."""
        return self.parents[0] if self.parents else None

    @property
    def second_parent_id(self) -> str | None:
        return self.parents[1] if len(self.parents) > 1 else None

    @property
    def is_merge(self) -> bool:
        return len(self.parents) == 2

    def tracks(self, filename: str) -> bool:
        """Whether ``filename`` is part of this snapshot."""
        return filename in self.files

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = self.content()
        data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Commit":
        """Create from dictionary."""
        commit = cls(
            message=data["message"],
            parents=list(data.get("parents", [])),
            files=dict(data.get("files", {})),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )
        # Restore original ID if present
        if data.get("id"):
            commit.id = data["id"]
        return commit

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"{self.id[:7]} {self.message}"

    def __repr__(self) -> str:
        """Debug representation."""
        return f"Commit(id={self.id[:8]}..., parents={len(self.parents)}, files={len(self.files)})"
