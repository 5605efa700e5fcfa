"""
Core of the nanogit version-control system.

This package provides a small git-like repository model:
- Content-addressed blob and commit storage (SHA256 hashing)
- A commit graph with ancestry and split-point queries
- Named branches, remote-tracking branches and HEAD
- A staging index and a working-tree synchronizer
- Three-way whole-file merges
- Push, fetch and pull between repositories on one filesystem
"""

from nanogit.repo.commit import Commit
from nanogit.repo.graph import CommitGraph
from nanogit.repo.index import StagingIndex
from nanogit.repo.merge import MergeEngine, MergeResult
from nanogit.repo.refs import Branch, ReferenceStore
from nanogit.repo.remote import RemoteRegistry, RemoteSync
from nanogit.repo.repository import Repository, StatusReport
from nanogit.repo.store import ObjectStore
from nanogit.repo.worktree import WorkingTree

__all__ = [
    "Commit",
    "CommitGraph",
    "StagingIndex",
    "MergeEngine",
    "MergeResult",
    "Branch",
    "ReferenceStore",
    "RemoteRegistry",
    "RemoteSync",
    "Repository",
    "StatusReport",
    "ObjectStore",
    "WorkingTree",
]
