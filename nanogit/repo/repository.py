"""
Repository - the main interface to a nanogit repository.

A ``Repository`` is the explicit context every command runs in: it loads
HEAD, the staging index, the staged-content cache and the remote registry
once when opened, and each operation persists what it changed before it
returns. Operations validate everything before their first write, so a
failing command leaves the repository as it found it.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from nanogit.config.schema import Config
from nanogit.exceptions import (
    AlreadyInitializedError,
    AlreadyOnBranchError,
    FileNotInCommitError,
    FoundNoCommitError,
    NoSuchBranchError,
    NotInitializedError,
)
from nanogit.repo.commit import Commit
from nanogit.repo.graph import CommitGraph
from nanogit.repo.index import StagingIndex
from nanogit.repo.layout import RepositoryLayout
from nanogit.repo.merge import MergeEngine, MergeResult
from nanogit.repo.refs import Branch, ReferenceStore
from nanogit.repo.remote import RemoteRegistry, RemoteSync
from nanogit.repo.store import ObjectStore
from nanogit.repo.worktree import WorkingTree
from nanogit.utils.helpers import ensure_dir

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


@dataclass
class StatusReport:
    """Everything ``status`` prints."""

    current_branch: str
    branches: list[str] = field(default_factory=list)
    staged: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    modified: list[tuple[str, str]] = field(default_factory=list)
    untracked: list[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not (self.staged or self.removed or self.modified or self.untracked)


def find_work_tree(start: Path, dir_name: str) -> Path | None:
    """Walk up from ``start`` to the directory holding a repository."""
    start = start.resolve()
    for candidate in (start, *start.parents):
        if RepositoryLayout(candidate / dir_name).is_repository():
            return candidate
    return None


class Repository:
    """
    A working tree plus its repository directory.

    Attributes:
        work_tree: Root of the versioned files.
        layout: Paths inside the repository directory.
        store: Blob and commit storage.
        refs: Branches and HEAD.
        graph: Ancestry queries.
        index: Staging index.
        tree: Working-tree synchronizer.
        remotes: Registered remotes.
    """

    def __init__(self, work_tree: Path, config: Config | None = None):
        self.config = config or Config()
        self.work_tree = work_tree
        self.layout = RepositoryLayout(work_tree / self.config.repository.dir_name)

        if not self.layout.is_repository():
            raise NotInitializedError()

        self.store = ObjectStore(self.layout.objects_dir)
        self.refs = ReferenceStore(self.layout.refs_dir, self.layout.head_file)
        self.graph = CommitGraph(self.store)
        self.index = StagingIndex(self.layout.index_file, self.layout.staged_file)
        self.tree = WorkingTree(work_tree, self.config.repository.dir_name)
        self.remotes = RemoteRegistry(self.layout.remotes_file)

        self._sync = RemoteSync(self.store, self.refs, self.graph, self.remotes)
        self._merger = MergeEngine(self.store, self.graph, self.refs, self.index, self.tree)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @classmethod
    def init(cls, work_tree: Path, config: Config | None = None) -> "Repository":
        """
        Create a repository in ``work_tree``.

        The new repository has one root commit (empty snapshot, epoch
        timestamp), a default branch pointing at it, and HEAD on that branch.

        Raises:
            AlreadyInitializedError: A repository directory already exists.
        """
        config = config or Config()
        layout = RepositoryLayout(work_tree / config.repository.dir_name)
        if layout.root.exists():
            raise AlreadyInitializedError()

        ensure_dir(layout.root)
        store = ObjectStore(layout.objects_dir)
        refs = ReferenceStore(layout.refs_dir, layout.head_file)

        initial = Commit(message=config.repository.initial_message, timestamp=EPOCH)
        store.put_commit(initial)
        refs.set(config.repository.default_branch, initial.id)
        refs.set_head(config.repository.default_branch)

        StagingIndex(layout.index_file, layout.staged_file).save()
        RemoteRegistry(layout.remotes_file).save()

        logger.info(f"Initialized empty repository in {layout.root}")
        return cls(work_tree, config)

    @classmethod
    def open(cls, start: Path | None = None, config: Config | None = None) -> "Repository":
        """
        Open the repository containing ``start`` (default: current directory).

        Raises:
            NotInitializedError: No repository found in ``start`` or above.
        """
        config = config or Config()
        work_tree = find_work_tree(start or Path.cwd(), config.repository.dir_name)
        if work_tree is None:
            raise NotInitializedError()
        return cls(work_tree, config)

    # =========================================================================
    # State
    # =========================================================================

    @property
    def current_branch(self) -> str:
        return self.refs.current_branch()

    def head_commit(self) -> Commit:
        """Get the commit HEAD points at."""
        return self.store.get_commit(self.refs.head_commit_id())

    def resolve_commit(self, prefix: str) -> Commit:
        """Look up a commit by (abbreviated) ID."""
        return self.store.get_commit(self.store.resolve_prefix(prefix))

    # =========================================================================
    # Staging and committing
    # =========================================================================

    def add(self, filename: str) -> str:
        """Stage a file. Returns the staged blob ID."""
        blob_id = self.index.stage(self.tree, filename, self.head_commit())
        self.index.save()
        return blob_id

    def rm(self, filename: str) -> None:
        """Unstage a file, deleting it from the working tree if it is tracked."""
        self.index.unstage(self.tree, filename, self.head_commit())
        self.index.save()

    def commit(self, message: str) -> Commit:
        """
        Commit the index on the current branch.

        Returns:
            The new commit.
        """
        commit = self.index.commit(self.store, message, self.head_commit())
        self.refs.set(self.current_branch, commit.id)
        logger.info(f"[{self.current_branch} {commit.id[:7]}] {message}")
        return commit

    # =========================================================================
    # History
    # =========================================================================

    def log(self) -> list[Commit]:
        """First-parent history of HEAD, newest first."""
        return self.graph.history(self.refs.head_commit_id())

    def global_log(self) -> list[Commit]:
        """Every commit ever made, in no particular order."""
        return list(self.store.iter_commits())

    def find(self, message: str) -> list[str]:
        """
        IDs of all commits with exactly this message.

        Raises:
            FoundNoCommitError: No commit has that message.
        """
        ids = [commit.id for commit in self.store.iter_commits() if commit.message == message]
        if not ids:
            raise FoundNoCommitError()
        return ids

    # =========================================================================
    # Checkout and reset
    # =========================================================================

    def checkout_file(self, filename: str, commit_prefix: str | None = None) -> None:
        """
        Restore one file from HEAD (or from the commit ``commit_prefix``
        names) into the working tree. The index is left alone.

        Raises:
            ObjectNotFoundError: No commit matches the prefix.
            AmbiguousPrefixError: Several commits match the prefix.
            FileNotInCommitError: The commit does not track the file.
            FileNotFoundInTreeError: The name leaves the working tree.
        """
        filename = self.tree.normalize(filename)
        commit = self.resolve_commit(commit_prefix) if commit_prefix else self.head_commit()
        if not commit.tracks(filename):
            raise FileNotInCommitError()
        self.tree.apply(self.store, {filename: commit.files[filename]}, [])

    def checkout_branch(self, name: str) -> None:
        """
        Switch to another branch, replacing the working tree with its
        snapshot and resetting the index to match.

        Raises:
            NoSuchBranchError: The branch does not exist.
            AlreadyOnBranchError: The branch is already checked out.
            UntrackedFileError: An untracked file would be overwritten.
        """
        if not self.refs.exists(name):
            raise NoSuchBranchError("No such branch exists.")
        if name == self.current_branch:
            raise AlreadyOnBranchError()

        target = self.store.get_commit(self.refs.get(name))
        self._restore(target)
        self.refs.set_head(name)

    def reset(self, commit_prefix: str) -> Commit:
        """
        Check out an arbitrary commit and move the current branch to it.

        Raises:
            ObjectNotFoundError: No commit matches the prefix.
            AmbiguousPrefixError: Several commits match the prefix.
            UntrackedFileError: An untracked file would be overwritten.
        """
        target = self.resolve_commit(commit_prefix)
        self._restore(target)
        self.refs.set(self.current_branch, target.id)
        return target

    def _restore(self, target: Commit) -> None:
        self.tree.restore(self.store, target, self.head_commit(), self.index.entries)
        self.index.reset(target.files)
        self.index.save()

    # =========================================================================
    # Branches
    # =========================================================================

    def branch(self, name: str) -> Branch:
        """Create a branch at HEAD."""
        return self.refs.create_branch(name)

    def rm_branch(self, name: str) -> None:
        """Delete a branch pointer."""
        self.refs.delete_branch(name)

    def merge(self, name: str) -> MergeResult:
        """Merge a branch into the current branch."""
        return self._merger.merge(name)

    # =========================================================================
    # Status
    # =========================================================================

    def status(self) -> StatusReport:
        """Collect branch, staging and working-tree state."""
        head = self.head_commit()
        return StatusReport(
            current_branch=self.current_branch,
            branches=[branch.name for branch in self.refs.list_branches()],
            staged=self.index.staged_files(head),
            removed=self.index.removed_files(head),
            modified=self.index.modified_not_staged(self.tree, head),
            untracked=self.index.untracked_files(self.tree, head),
        )

    # =========================================================================
    # Remotes
    # =========================================================================

    def add_remote(self, name: str, path: str) -> None:
        self.remotes.add(name, path)

    def rm_remote(self, name: str) -> None:
        self.remotes.remove(name)

    def push(self, remote_name: str, branch_name: str) -> int:
        """Push HEAD to a remote branch. Returns the number of commits copied."""
        return self._sync.push(remote_name, branch_name)

    def fetch(self, remote_name: str, branch_name: str) -> str:
        """Fetch a remote branch. Returns the remote-tracking branch name."""
        return self._sync.fetch(remote_name, branch_name)

    def pull(self, remote_name: str, branch_name: str) -> MergeResult:
        """Fetch a remote branch and merge it into the current branch."""
        tracking = self.fetch(remote_name, branch_name)
        return self.merge(tracking)
