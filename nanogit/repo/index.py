"""
Staging index - the snapshot the next commit will record.

The index maps every filename the next commit will track to a blob ID.
Right after a commit, checkout or reset it equals the current commit's file
map; ``add`` and ``rm`` move it away from that map. Content of newly staged
versions is held in the staged-content cache and only written to the object
store when a commit is made.
"""

import base64
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from nanogit.exceptions import (
    EmptyMessageError,
    FileNotFoundInTreeError,
    MissingBlobError,
    NoChangesError,
    NothingToRemoveError,
)
from nanogit.repo.commit import Commit
from nanogit.repo.hash import compute_content_hash
from nanogit.repo.store import ObjectStore
from nanogit.repo.worktree import WorkingTree
from nanogit.utils.helpers import read_json, write_json


class StagingIndex:
    """
    Mutable filename -> blob ID table plus the staged-content cache.

    Every mutating method leaves the in-memory state updated; callers
    persist it with ``save()`` once the whole operation has succeeded.
    """

    def __init__(self, index_file: Path, staged_file: Path):
        self.index_file = index_file
        self.staged_file = staged_file

        self.entries: dict[str, str] = {}
        self._staged: dict[str, bytes] = {}

        self._load()

    # =========================================================================
    # Persistence
    # =========================================================================

    def _load(self) -> None:
        """Load index and staged contents from disk."""
        self.entries = dict(read_json(self.index_file, default={}))
        staged = read_json(self.staged_file, default={})
        self._staged = {
            blob_id: base64.b64decode(encoded)
            for blob_id, encoded in staged.items()
        }

    def save(self) -> None:
        """Write index and staged contents to disk."""
        write_json(self.index_file, self.entries)
        write_json(self.staged_file, {
            blob_id: base64.b64encode(content).decode("ascii")
            for blob_id, content in self._staged.items()
        })

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def staged_contents(self) -> dict[str, bytes]:
        """A copy of the staged-content cache."""
        return dict(self._staged)

    def matches(self, commit: Commit) -> bool:
        """True when there is nothing to commit relative to ``commit``."""
        return self.entries == commit.files

    def is_staged(self, filename: str, head: Commit) -> bool:
        """Staged for addition: in the index with a version HEAD does not have."""
        return filename in self.entries and self.entries[filename] != head.files.get(filename)

    def is_removed(self, filename: str, head: Commit) -> bool:
        """Staged for removal: tracked by HEAD but gone from the index."""
        return filename in head.files and filename not in self.entries

    def staged_files(self, head: Commit) -> list[str]:
        return sorted(name for name in self.entries if self.is_staged(name, head))

    def removed_files(self, head: Commit) -> list[str]:
        return sorted(name for name in head.files if self.is_removed(name, head))

    def modified_not_staged(self, tree: WorkingTree, head: Commit) -> list[tuple[str, str]]:
        """
        Files whose working copy differs from what would be committed.

        A file is "modified" when it is staged but its working copy differs
        from the staged version, or tracked, unstaged, and changed on disk.
        It is "deleted" when it is staged but missing from the working tree,
        or tracked, not staged for removal, and missing.

        Returns:
            Sorted list of (filename, "modified" | "deleted").
        """
        present = set(tree.files())
        result = []

        for name in present:
            staged = self.is_staged(name, head)
            if staged and tree.blob_id(name) != self.entries[name]:
                result.append((name, "modified"))
            elif not staged and head.tracks(name) and tree.blob_id(name) != head.files[name]:
                result.append((name, "modified"))

        for name in self.staged_files(head):
            if name not in present:
                result.append((name, "deleted"))
        for name in head.files:
            if name not in present and not self.is_removed(name, head) and not self.is_staged(name, head):
                result.append((name, "deleted"))

        return sorted(result)

    def untracked_files(self, tree: WorkingTree, head: Commit) -> list[str]:
        """Files present in the working tree but neither staged nor tracked."""
        return sorted(
            name for name in tree.files()
            if not self.is_staged(name, head) and not head.tracks(name)
        )

    # =========================================================================
    # Mutations
    # =========================================================================

    def stage(self, tree: WorkingTree, filename: str, head: Commit) -> str:
        """
        Stage the working copy of a file.

        Staging a file back to the exact version HEAD tracks cancels any
        earlier staged edit.

        Args:
            tree: Working tree to read from.
            filename: File to stage.
            head: The current commit.

        Returns:
            The blob ID of the staged version.

        Raises:
            FileNotFoundInTreeError: The file is not in the working tree, or
                the name leaves it.
        """
        filename = tree.normalize(filename)
        if not tree.exists(filename):
            raise FileNotFoundInTreeError()

        content = tree.read(filename)
        blob_id = compute_content_hash(content)
        previous = self.entries.get(filename)

        if head.files.get(filename) == blob_id:
            self.entries[filename] = blob_id
            self._release(previous)
            logger.debug(f"Unstaged {filename}: matches HEAD")
        else:
            self.entries[filename] = blob_id
            self._staged[blob_id] = content
            self._release(previous)
            logger.debug(f"Staged {filename} as {blob_id[:8]}")

        return blob_id

    def stage_content(self, filename: str, content: bytes) -> str:
        """Stage content that did not come from the working tree (e.g. merge results)."""
        blob_id = compute_content_hash(content)
        self.entries[filename] = blob_id
        self._staged[blob_id] = content
        return blob_id

    def stage_blob(self, filename: str, blob_id: str) -> None:
        """Stage a version already present in the object store."""
        self.entries[filename] = blob_id

    def unstage(self, tree: WorkingTree, filename: str, head: Commit) -> None:
        """
        Remove a file from the next commit.

        An added-but-uncommitted file is simply unstaged. A file tracked by
        HEAD is staged for removal and deleted from the working tree.

        Raises:
            NothingToRemoveError: The file is neither staged nor tracked.
            FileNotFoundInTreeError: The name leaves the working tree.
        """
        filename = tree.normalize(filename)
        staged = self.is_staged(filename, head)
        tracked = head.tracks(filename)
        if not staged and not tracked:
            raise NothingToRemoveError()

        self.drop(filename)
        if tracked:
            tree.delete(filename)
        logger.debug(f"Removed {filename} from the index")

    def drop(self, filename: str) -> None:
        """Remove an entry and its cached content, if any."""
        self._release(self.entries.pop(filename, None))

    def _release(self, blob_id: str | None) -> None:
        """Forget cached content no index entry refers to any more."""
        if blob_id is not None and blob_id not in self.entries.values():
            self._staged.pop(blob_id, None)

    def reset(self, files: dict[str, str]) -> None:
        """Replace the index with a commit's file map and clear the cache."""
        self.entries = dict(files)
        self._staged = {}

    def commit(
        self,
        store: ObjectStore,
        message: str,
        parent: Commit,
        second_parent: str | None = None,
    ) -> Commit:
        """
        Record the index as a new commit.

        Blobs whose version differs from the parent's are durably written
        first; then the commit itself is stored. The staged-content cache is
        cleared and the index saved. Moving the branch is the caller's job.

        Args:
            store: Object store to write to.
            message: Commit message.
            parent: The current HEAD commit.
            second_parent: The merged-in commit ID, for merge commits.

        Returns:
            The stored commit.

        Raises:
            EmptyMessageError: The message is blank.
            NoChangesError: The index equals the parent's file map.
            MissingBlobError: A changed entry has no content anywhere.
        """
        if not message.strip():
            raise EmptyMessageError()
        if self.matches(parent) and second_parent is None:
            raise NoChangesError()

        pending = {}
        for filename, blob_id in self.entries.items():
            if parent.files.get(filename) == blob_id or store.has_blob(blob_id):
                continue
            if blob_id not in self._staged:
                raise MissingBlobError(f"No content for {filename} ({blob_id[:8]}).")
            pending[blob_id] = self._staged[blob_id]

        for content in pending.values():
            store.put_blob(content)

        parents = [parent.id] if second_parent is None else [parent.id, second_parent]
        commit = Commit(
            message=message,
            parents=parents,
            files=dict(self.entries),
            timestamp=datetime.now(timezone.utc),
        )
        store.put_commit(commit)

        self._staged = {}
        self.save()

        return commit
