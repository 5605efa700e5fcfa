"""
Object store - immutable content-addressed storage.

Blobs and commits are written once, named by the SHA256 hash of their
content, and never modified or deleted.
"""

import json
from pathlib import Path
from typing import Iterator, Literal

from loguru import logger

from nanogit.exceptions import (
    AmbiguousPrefixError,
    CorruptObjectError,
    MissingBlobError,
    ObjectNotFoundError,
)
from nanogit.repo.commit import Commit
from nanogit.repo.hash import compute_content_hash

ObjectKind = Literal["blob", "commit"]


class ObjectStore:
    """
    Content-addressable storage for blobs and commits.

    Blobs are stored as raw bytes under ``blobs/<id>``; commits as JSON
    documents under ``commits/<id>.json``. Naming every object by its hash
    gives:
    - Deduplication: identical content has the same ID
    - Integrity: any modification changes the hash
    - Append-only history: nothing is ever rewritten

    Attributes:
        blobs_dir: Directory for blob storage.
        commits_dir: Directory for commit storage.
    """

    def __init__(self, objects_dir: Path):
        self.objects_dir = objects_dir
        self.blobs_dir = objects_dir / "blobs"
        self.commits_dir = objects_dir / "commits"

        self.blobs_dir.mkdir(parents=True, exist_ok=True)
        self.commits_dir.mkdir(parents=True, exist_ok=True)

    # =========================================================================
    # Blob Operations
    # =========================================================================

    def put_blob(self, content: bytes) -> str:
        """
        Store blob content.

        If a blob with the same ID already exists, this is a no-op.

        Args:
            content: Raw file content.

        Returns:
            The blob ID.
        """
        blob_id = compute_content_hash(content)
        blob_file = self.blobs_dir / blob_id

        if not blob_file.exists():
            blob_file.write_bytes(content)
            logger.debug(f"Stored blob {blob_id[:8]} ({len(content)} bytes)")

        return blob_id

    def get_blob(self, blob_id: str) -> bytes:
        """
        Retrieve blob content by ID.

        Raises:
            ObjectNotFoundError: No blob with that ID is stored.
        """
        blob_file = self.blobs_dir / blob_id
        if not blob_file.is_file():
            raise ObjectNotFoundError(f"No blob with id {blob_id} exists.")
        return blob_file.read_bytes()

    def require_blob(self, blob_id: str, filename: str | None = None) -> bytes:
        """
        Retrieve a blob a commit or index entry refers to.

        Raises:
            MissingBlobError: The blob is not stored.
        """
        try:
            return self.get_blob(blob_id)
        except ObjectNotFoundError as e:
            owner = f" for {filename}" if filename else ""
            raise MissingBlobError(f"Blob {blob_id[:8]}{owner} is missing.") from e

    def has_blob(self, blob_id: str) -> bool:
        """Check if a blob exists."""
        return (self.blobs_dir / blob_id).is_file()

    # =========================================================================
    # Commit Operations
    # =========================================================================

    def put_commit(self, commit: Commit) -> str:
        """
        Store a commit.

        Args:
            commit: The commit to store.

        Returns:
            The commit ID.
        """
        commit_file = self.commits_dir / f"{commit.id}.json"

        if not commit_file.exists():
            commit_file.write_text(
                json.dumps(commit.to_dict(), indent=2, ensure_ascii=False),
                encoding="utf-8"
            )
            logger.debug(f"Stored commit {commit.id[:8]}: {commit.message}")

        return commit.id

    def get_commit(self, commit_id: str) -> Commit:
        """
        Retrieve a commit by ID.

        Raises:
            ObjectNotFoundError: No commit with that ID is stored.
            CorruptObjectError: The stored document is unreadable or its
                content no longer hashes to its name.
        """
        commit_file = self.commits_dir / f"{commit_id}.json"

        if not commit_file.is_file():
            raise ObjectNotFoundError()

        try:
            data = json.loads(commit_file.read_text(encoding="utf-8"))
            commit = Commit.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise CorruptObjectError(f"Commit {commit_id} is unreadable: {e}") from e

        if commit.compute_id() != commit_id:
            raise CorruptObjectError(f"Commit {commit_id} does not match its content hash.")

        return commit

    def has_commit(self, commit_id: str) -> bool:
        """Check if a commit exists."""
        return (self.commits_dir / f"{commit_id}.json").is_file()

    def list_commits(self) -> list[str]:
        """List all commit IDs in the store."""
        return sorted(f.stem for f in self.commits_dir.glob("*.json"))

    def iter_commits(self) -> Iterator[Commit]:
        """Iterate over all commits in the store."""
        for commit_id in self.list_commits():
            yield self.get_commit(commit_id)

    def count_commits(self) -> int:
        """Count total commits in the store."""
        return len(list(self.commits_dir.glob("*.json")))

    # =========================================================================
    # Lookup
    # =========================================================================

    def list_ids(self, kind: ObjectKind = "commit") -> list[str]:
        """List stored IDs of one object kind."""
        if kind == "blob":
            return sorted(f.name for f in self.blobs_dir.iterdir() if f.is_file())
        return self.list_commits()

    def resolve_prefix(self, prefix: str, kind: ObjectKind = "commit") -> str:
        """
        Resolve an abbreviated object ID.

        Args:
            prefix: Leading characters of an object ID.
            kind: Which kind of object to search.

        Returns:
            The single matching full ID.

        Raises:
            ObjectNotFoundError: No stored ID starts with ``prefix``.
            AmbiguousPrefixError: Two or more stored IDs start with ``prefix``.
        """
        if not prefix:
            raise ObjectNotFoundError()

        matches = [object_id for object_id in self.list_ids(kind) if object_id.startswith(prefix)]

        if not matches:
            raise ObjectNotFoundError()
        if len(matches) > 1:
            raise AmbiguousPrefixError(
                f"Prefix {prefix} is ambiguous ({len(matches)} matches); use a longer prefix."
            )
        return matches[0]
