"""
Commit graph - read-only traversal over stored commits.

Commits form a DAG through their parent links. Merge commits give a commit
two parents, so the same ancestor can be reached along several paths; every
walk here keeps a visited set.
"""

from collections import deque

from loguru import logger

from nanogit.repo.commit import Commit
from nanogit.repo.store import ObjectStore


class CommitGraph:
    """Ancestry queries over the commits in an object store."""

    def __init__(self, store: ObjectStore):
        self.store = store

    def ancestors(self, commit_id: str) -> set[str]:
        """
        Get every commit reachable from ``commit_id``, including itself.

        Args:
            commit_id: Starting commit ID.

        Returns:
            Set of commit IDs.
        """
        return set(self._depths(commit_id))

    def history(self, commit_id: str) -> list[Commit]:
        """
        Get the first-parent history leading to a commit.

        Args:
            commit_id: Starting commit ID.

        Returns:
            List of commits from newest to oldest.
        """
        history = []
        current_id: str | None = commit_id

        while current_id:
            commit = self.store.get_commit(current_id)
            history.append(commit)
            current_id = commit.parent_id

        return history

    def is_ancestor(self, ancestor_id: str, descendant_id: str) -> bool:
        """Whether ``ancestor_id`` is reachable from ``descendant_id``."""
        return ancestor_id in self.ancestors(descendant_id)

    def split_point(self, tip_a: str, tip_b: str) -> Commit | None:
        """
        Find the lowest common ancestor of two commits.

        Every commit reachable from each tip is labelled with its minimum
        BFS distance from that tip. The common ancestor with the smallest sum
        of the two distances is the split point. Ties go to the smallest ID.

        Args:
            tip_a: First tip commit ID.
            tip_b: Second tip commit ID.

        Returns:
            The split-point commit, or None if the tips share no ancestor.
        """
        depths_a = self._depths(tip_a)
        depths_b = self._depths(tip_b)

        common = depths_a.keys() & depths_b.keys()
        if not common:
            logger.debug(f"No common ancestor for {tip_a[:8]} and {tip_b[:8]}")
            return None

        best = min(common, key=lambda cid: (depths_a[cid] + depths_b[cid], cid))
        logger.debug(f"Split point of {tip_a[:8]} and {tip_b[:8]} is {best[:8]}")
        return self.store.get_commit(best)

    def _depths(self, commit_id: str) -> dict[str, int]:
        """Minimum BFS depth of every commit reachable from ``commit_id``."""
        depths = {commit_id: 0}
        queue = deque([commit_id])

        while queue:
            current_id = queue.popleft()
            commit = self.store.get_commit(current_id)
            for parent_id in commit.parents:
                if parent_id not in depths:
                    depths[parent_id] = depths[current_id] + 1
                    queue.append(parent_id)

        return depths
