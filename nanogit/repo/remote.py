"""
Remote sync - moving history between two repositories on one filesystem.

A remote is a name bound to the path of another repository directory.
Pushing copies the commits and blobs the peer lacks and moves the peer's
branch; fetching does the same in the other direction and records the
result in a remote-tracking branch ``<remote>/<branch>``.
"""

from pathlib import Path

from loguru import logger

from nanogit.exceptions import (
    NeedsPullError,
    NoSuchRemoteBranchError,
    NoSuchRemoteError,
    RemoteExistsError,
    RemoteNotFoundError,
)
from nanogit.repo.graph import CommitGraph
from nanogit.repo.layout import RepositoryLayout
from nanogit.repo.refs import ReferenceStore
from nanogit.repo.store import ObjectStore
from nanogit.utils.helpers import read_json, write_json


class RemoteRegistry:
    """Persistent remote name -> repository path table."""

    def __init__(self, remotes_file: Path):
        self.remotes_file = remotes_file
        self._remotes: dict[str, str] = dict(read_json(remotes_file, default={}))

    def save(self) -> None:
        write_json(self.remotes_file, self._remotes)

    def add(self, name: str, path: str) -> None:
        """
        Register a remote.

        Raises:
            RemoteExistsError: The name is already registered.
        """
        if name in self._remotes:
            raise RemoteExistsError()
        self._remotes[name] = str(Path(path))
        self.save()
        logger.info(f"Added remote {name} -> {path}")

    def remove(self, name: str) -> None:
        """
        Unregister a remote.

        Raises:
            NoSuchRemoteError: The name is not registered.
        """
        if name not in self._remotes:
            raise NoSuchRemoteError()
        del self._remotes[name]
        self.save()
        logger.info(f"Removed remote {name}")

    def get(self, name: str) -> str | None:
        return self._remotes.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._remotes


class Peer:
    """The object store and references of another repository directory."""

    def __init__(self, root: Path):
        layout = RepositoryLayout(root)
        self.root = root
        self.store = ObjectStore(layout.objects_dir)
        self.refs = ReferenceStore(layout.refs_dir, layout.head_file)
        self.graph = CommitGraph(self.store)


def copy_history(source: ObjectStore, dest: ObjectStore, commit_ids: set[str]) -> int:
    """
    Copy commits and the blobs they reference from one store to another.

    Objects already present in ``dest`` are skipped.

    Returns:
        Number of commits copied.

    Raises:
        MissingBlobError: A commit refers to a blob ``source`` lacks.
    """
    copied = 0
    for commit_id in sorted(commit_ids):
        if dest.has_commit(commit_id):
            continue
        commit = source.get_commit(commit_id)
        for filename, blob_id in commit.files.items():
            if not dest.has_blob(blob_id):
                dest.put_blob(source.require_blob(blob_id, filename))
        dest.put_commit(commit)
        copied += 1
    return copied


class RemoteSync:
    """Push and fetch between the local repository and registered remotes."""

    def __init__(
        self,
        store: ObjectStore,
        refs: ReferenceStore,
        graph: CommitGraph,
        registry: RemoteRegistry,
    ):
        self.store = store
        self.refs = refs
        self.graph = graph
        self.registry = registry

    def open_peer(self, remote_name: str) -> Peer:
        """
        Open a registered remote.

        Raises:
            RemoteNotFoundError: The remote is unknown or its directory is
                not a repository.
        """
        path = self.registry.get(remote_name)
        if path is None or not RepositoryLayout(Path(path)).is_repository():
            raise RemoteNotFoundError()
        return Peer(Path(path))

    def push(self, remote_name: str, branch_name: str) -> int:
        """
        Push the current HEAD commit to ``branch_name`` on a remote.

        The remote branch must be an ancestor of local HEAD; if it does not
        exist yet it is created.

        Returns:
            Number of commits copied.

        Raises:
            RemoteNotFoundError: The remote cannot be opened.
            NeedsPullError: The remote branch has commits HEAD lacks.
            BranchExistsError: The branch name collides with a remote branch path.
        """
        peer = self.open_peer(remote_name)
        head_id = self.refs.head_commit_id()
        local_history = self.graph.ancestors(head_id)

        remote_tip = peer.refs.get(branch_name) if peer.refs.exists(branch_name) else None
        if remote_tip == head_id:
            logger.info(f"{remote_name}/{branch_name} is already up to date")
            return 0
        if remote_tip is not None and remote_tip not in local_history:
            logger.warning(f"Rejected push to {remote_name}/{branch_name}: remote has diverged")
            raise NeedsPullError()

        peer.refs.check_available(branch_name)
        missing = local_history
        if remote_tip is not None:
            missing = local_history - peer.graph.ancestors(remote_tip)

        copied = copy_history(self.store, peer.store, missing)
        peer.refs.set(branch_name, head_id)
        logger.info(f"Pushed {copied} commit(s) to {remote_name}/{branch_name}")
        return copied

    def fetch(self, remote_name: str, branch_name: str) -> str:
        """
        Fetch ``branch_name`` from a remote into ``<remote>/<branch>``.

        The working tree and the current branch are not touched.

        Returns:
            Name of the remote-tracking branch.

        Raises:
            RemoteNotFoundError: The remote cannot be opened.
            NoSuchRemoteBranchError: The remote has no such branch.
            BranchExistsError: ``<remote>/<branch>`` collides with a local branch.
        """
        peer = self.open_peer(remote_name)
        if not peer.refs.exists(branch_name):
            raise NoSuchRemoteBranchError()

        tracking = f"{remote_name}/{branch_name}"
        self.refs.check_available(tracking)

        remote_tip = peer.refs.get(branch_name)
        copied = copy_history(peer.store, self.store, peer.graph.ancestors(remote_tip))
        self.refs.set(tracking, remote_tip)
        logger.info(f"Fetched {copied} commit(s) into {tracking}")
        return tracking
