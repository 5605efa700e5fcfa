"""
Merge engine - three-way merges between branches.

A merge runs a fixed sequence of checks, finds the split point of the two
branch tips, and ends in one of three outcomes: nothing to do, a
fast-forward, or a merge commit (possibly with conflicts). Merging works on
whole files: each filename is classified by comparing the blob IDs it has
at the split point, in HEAD and in the merged-in branch.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from loguru import logger

from nanogit.exceptions import (
    MergeWithSelfError,
    NoCommonAncestorError,
    NoSuchBranchError,
    UncommittedChangesError,
)
from nanogit.repo.commit import Commit
from nanogit.repo.graph import CommitGraph
from nanogit.repo.hash import compute_content_hash
from nanogit.repo.index import StagingIndex
from nanogit.repo.refs import ReferenceStore
from nanogit.repo.store import ObjectStore
from nanogit.repo.worktree import WorkingTree

MergeOutcome = Literal["up_to_date", "fast_forward", "merged"]

CONFLICT_HEAD = b"<<<<<<< HEAD\n"
CONFLICT_SEPARATOR = b"=======\n"
CONFLICT_END = b">>>>>>>\n"


class MergeAction(Enum):
    """What happens to one file in a three-way merge."""

    KEEP = "keep"
    TAKE_TARGET = "take_target"
    DELETE = "delete"
    CONFLICT = "conflict"


def classify(base: str | None, ours: str | None, theirs: str | None) -> MergeAction:
    """
    Classify one file from its blob IDs at the split point, in HEAD and in
    the merged-in branch. ``None`` means the file is absent.

    - unchanged on both sides, the same change on both, deleted on both: KEEP
    - changed only in the merged-in branch: TAKE_TARGET (or DELETE if it
      was deleted there)
    - changed only in HEAD: KEEP
    - anything else: CONFLICT
    """
    if ours == theirs:
        return MergeAction.KEEP
    if ours == base:
        return MergeAction.TAKE_TARGET if theirs is not None else MergeAction.DELETE
    if theirs == base:
        return MergeAction.KEEP
    return MergeAction.CONFLICT


def conflict_content(ours: bytes | None, theirs: bytes | None) -> bytes:
    """Both versions of a conflicted file between conflict markers."""
    return CONFLICT_HEAD + (ours or b"") + CONFLICT_SEPARATOR + (theirs or b"") + CONFLICT_END


@dataclass
class MergePlan:
    """
    Every change a three-way merge will make, computed before any write.

    Attributes:
        writes: Filename -> blob ID to write and stage.
        deletes: Filenames to delete and unstage.
        contents: Blob ID -> content for conflict blobs not yet stored.
        conflicts: Conflicted filenames.
    """

    writes: dict[str, str] = field(default_factory=dict)
    deletes: list[str] = field(default_factory=list)
    contents: dict[str, bytes] = field(default_factory=dict)
    conflicts: list[str] = field(default_factory=list)

    @property
    def touched(self) -> list[str]:
        return list(self.writes) + self.deletes


@dataclass
class MergeResult:
    """How a merge ended."""

    outcome: MergeOutcome
    commit: Commit | None = None
    conflicts: list[str] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def describe(self) -> str:
        """User-facing summary line."""
        if self.outcome == "up_to_date":
            return "Given branch is an ancestor of the current branch."
        if self.outcome == "fast_forward":
            return "Current branch fast-forwarded."
        if self.has_conflicts:
            return "Encountered a merge conflict."
        return f"Merged into {self.commit.id[:7]}." if self.commit else "Merged."


class MergeEngine:
    """
    Merges one branch into the current branch.

    Collaborates with the object store, commit graph, references, staging
    index and working tree of a single repository.
    """

    def __init__(
        self,
        store: ObjectStore,
        graph: CommitGraph,
        refs: ReferenceStore,
        index: StagingIndex,
        tree: WorkingTree,
    ):
        self.store = store
        self.graph = graph
        self.refs = refs
        self.index = index
        self.tree = tree

    def merge(self, target_name: str) -> MergeResult:
        """
        Merge ``target_name`` into the current branch.

        Args:
            target_name: Branch to merge from (may be remote-tracking).

        Returns:
            The merge result.

        Raises:
            NoSuchBranchError: The target branch does not exist.
            MergeWithSelfError: The target is the current branch.
            UncommittedChangesError: The index differs from HEAD.
            NoCommonAncestorError: The branches share no history.
            UntrackedFileError: The merge would overwrite an untracked file.
        """
        current_name = self.refs.current_branch()

        if not self.refs.exists(target_name):
            raise NoSuchBranchError()
        if target_name == current_name:
            raise MergeWithSelfError()

        head = self.store.get_commit(self.refs.get(current_name))
        if not self.index.matches(head):
            raise UncommittedChangesError()

        target = self.store.get_commit(self.refs.get(target_name))
        split = self.graph.split_point(head.id, target.id)

        if split is None:
            raise NoCommonAncestorError()
        if split.id == target.id:
            logger.info(f"{target_name} is already merged into {current_name}")
            return MergeResult(outcome="up_to_date")
        if split.id == head.id:
            return self._fast_forward(current_name, head, target)

        plan = self.plan(split, head, target)
        self.tree.check_untracked(plan.touched, head, self.index.entries)

        self.tree.apply(self.store, plan.writes, plan.deletes, plan.contents)
        for filename in plan.deletes:
            self.index.drop(filename)
        for filename, blob_id in plan.writes.items():
            if blob_id in plan.contents:
                self.index.stage_content(filename, plan.contents[blob_id])
            else:
                self.index.stage_blob(filename, blob_id)

        commit = self.index.commit(
            self.store,
            f"Merged {target_name} into {current_name}.",
            head,
            second_parent=target.id,
        )
        self.refs.set(current_name, commit.id)

        if plan.conflicts:
            logger.warning(f"Merge of {target_name} left conflicts in: {', '.join(plan.conflicts)}")
        else:
            logger.info(f"Merged {target_name} into {current_name} as {commit.id[:8]}")

        return MergeResult(outcome="merged", commit=commit, conflicts=plan.conflicts)

    def plan(self, split: Commit, head: Commit, target: Commit) -> MergePlan:
        """
        Classify every file appearing in any of the three commits.

        Reads conflicting blobs from the store but writes nothing.
        """
        plan = MergePlan()
        filenames = set(split.files) | set(head.files) | set(target.files)

        for filename in sorted(filenames):
            base = split.files.get(filename)
            ours = head.files.get(filename)
            theirs = target.files.get(filename)
            action = classify(base, ours, theirs)

            if action is MergeAction.TAKE_TARGET:
                plan.writes[filename] = theirs
            elif action is MergeAction.DELETE:
                plan.deletes.append(filename)
            elif action is MergeAction.CONFLICT:
                content = conflict_content(
                    self.store.require_blob(ours, filename) if ours else None,
                    self.store.require_blob(theirs, filename) if theirs else None,
                )
                blob_id = compute_content_hash(content)
                plan.writes[filename] = blob_id
                plan.contents[blob_id] = content
                plan.conflicts.append(filename)

        return plan

    def _fast_forward(self, current_name: str, head: Commit, target: Commit) -> MergeResult:
        """Move the current branch to ``target`` without a merge commit."""
        self.tree.restore(self.store, target, head, self.index.entries)
        self.refs.set(current_name, target.id)
        self.index.reset(target.files)
        self.index.save()
        logger.info(f"Fast-forwarded {current_name} to {target.id[:8]}")
        return MergeResult(outcome="fast_forward", commit=target)
