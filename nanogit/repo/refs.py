"""
Reference store - named, mutable pointers into the commit graph.

Each branch is a file under ``refs/`` whose content is a commit ID. A
remote-tracking branch such as ``origin/master`` nests as
``refs/origin/master``. HEAD is a file holding the current branch name.
"""

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from nanogit.exceptions import (
    BranchExistsError,
    CannotRemoveCurrentError,
    NoSuchBranchError,
)
from nanogit.utils.helpers import ensure_dir, prune_empty_dirs


@dataclass(frozen=True)
class Branch:
    """A branch name and the commit it points at."""

    name: str
    commit_id: str

    @property
    def is_remote_tracking(self) -> bool:
        return "/" in self.name

    def __str__(self) -> str:
        return f"{self.name} -> {self.commit_id[:8]}"


class ReferenceStore:
    """
    Manages branches and HEAD.

    Provides operations for:
    - Branch creation, lookup, update and deletion
    - Reading and moving HEAD
    - Listing branches (including remote-tracking ones)
    """

    def __init__(self, refs_dir: Path, head_file: Path):
        self.refs_dir = refs_dir
        self.head_file = head_file

        ensure_dir(self.refs_dir)

    # =========================================================================
    # Branches
    # =========================================================================

    def _ref_file(self, name: str) -> Path:
        parts = [p for p in name.split("/") if p]
        if not parts or any(p in (".", "..") for p in parts):
            raise NoSuchBranchError(f"Invalid branch name: {name!r}")
        return self.refs_dir.joinpath(*parts)

    def exists(self, name: str) -> bool:
        """Check whether a branch exists."""
        try:
            return self._ref_file(name).is_file()
        except NoSuchBranchError:
            return False

    def get(self, name: str) -> str:
        """
        Get the commit ID a branch points at.

        Raises:
            NoSuchBranchError: The branch does not exist.
        """
        if not self.exists(name):
            raise NoSuchBranchError()
        return self._ref_file(name).read_text(encoding="utf-8").strip()

    def check_available(self, name: str) -> None:
        """
        Make sure a branch file can live at ``name``.

        ``origin`` and ``origin/master`` cannot both exist: one needs
        ``refs/origin`` to be a file, the other a directory.

        Raises:
            BranchExistsError: An existing branch occupies part of the path,
                or other branches are nested under ``name``.
        """
        ref_file = self._ref_file(name)
        if ref_file.is_dir():
            raise BranchExistsError(f"Branches already exist under {name}/.")

        parent = ref_file.parent
        while parent != self.refs_dir:
            if parent.is_file():
                taken = parent.relative_to(self.refs_dir).as_posix()
                raise BranchExistsError(f"A branch named {taken} already exists.")
            parent = parent.parent

    def set(self, name: str, commit_id: str) -> None:
        """
        Point a branch (creating it if needed) at a commit.

        Raises:
            BranchExistsError: The name collides with an existing branch path.
        """
        self.check_available(name)
        ref_file = self._ref_file(name)
        ensure_dir(ref_file.parent)
        ref_file.write_text(commit_id, encoding="utf-8")
        logger.info(f"Branch {name} -> {commit_id[:8]}")

    def create_branch(self, name: str) -> Branch:
        """
        Create a new branch at the current HEAD commit.

        Raises:
            BranchExistsError: A branch with that name already exists.
        """
        if self.exists(name):
            raise BranchExistsError()
        self.check_available(name)

        branch = Branch(name=name, commit_id=self.head_commit_id())
        self.set(branch.name, branch.commit_id)
        return branch

    def delete_branch(self, name: str) -> None:
        """
        Delete a branch. Commits are never deleted.

        Raises:
            NoSuchBranchError: The branch does not exist.
            CannotRemoveCurrentError: The branch is checked out.
        """
        if not self.exists(name):
            raise NoSuchBranchError()
        if name == self.current_branch():
            raise CannotRemoveCurrentError()

        ref_file = self._ref_file(name)
        ref_file.unlink()
        prune_empty_dirs(ref_file, self.refs_dir)
        logger.info(f"Deleted branch {name}")

    def list_branches(self) -> list[Branch]:
        """List all branches, sorted by name."""
        branches = []
        for ref_file in self.refs_dir.rglob("*"):
            if ref_file.is_file():
                name = ref_file.relative_to(self.refs_dir).as_posix()
                branches.append(Branch(name=name, commit_id=ref_file.read_text(encoding="utf-8").strip()))
        return sorted(branches, key=lambda b: b.name)

    # =========================================================================
    # HEAD
    # =========================================================================

    def current_branch(self) -> str:
        """Get the name of the current branch."""
        return self.head_file.read_text(encoding="utf-8").strip()

    def set_head(self, name: str) -> None:
        """Point HEAD at a branch. The branch must already exist."""
        assert self.exists(name), f"HEAD must name an existing branch, got {name!r}"
        self.head_file.write_text(name, encoding="utf-8")
        logger.info(f"HEAD -> {name}")

    def head_commit_id(self) -> str:
        """HEAD -> branch name -> commit ID."""
        return self.get(self.current_branch())
