"""Tests for push, fetch and pull between repositories."""

import pytest

from nanogit.config.schema import Config
from nanogit.exceptions import (
    BranchExistsError,
    MissingBlobError,
    NeedsPullError,
    NoSuchRemoteBranchError,
    NoSuchRemoteError,
    RemoteExistsError,
    RemoteNotFoundError,
)
from nanogit.repo import Repository


@pytest.fixture
def peer(tmp_path) -> Repository:
    """A second repository registered as ``origin``."""
    path = tmp_path / "peer"
    path.mkdir()
    return Repository.init(path, Config())


@pytest.fixture
def origin(repo, peer):
    repo.add_remote("origin", str(peer.layout.root))
    return peer


def commit_in(repo: Repository, name: str, content: str, message: str):
    (repo.work_tree / name).write_text(content, encoding="utf-8")
    repo.add(name)
    return repo.commit(message)


class TestRegistry:
    """Test remote bookkeeping."""

    def test_add_and_remove(self, repo, tmp_path):
        repo.add_remote("origin", str(tmp_path / "elsewhere" / ".nanogit"))
        assert "origin" in repo.remotes
        repo.rm_remote("origin")
        assert "origin" not in repo.remotes

    def test_add_duplicate(self, repo, tmp_path):
        repo.add_remote("origin", str(tmp_path))
        with pytest.raises(RemoteExistsError, match="A remote with that name already exists."):
            repo.add_remote("origin", str(tmp_path))

    def test_remove_unknown(self, repo):
        with pytest.raises(NoSuchRemoteError, match="A remote with that name does not exist."):
            repo.rm_remote("origin")

    def test_persisted(self, repo, tmp_path):
        """Remotes survive reopening the repository."""
        repo.add_remote("origin", str(tmp_path / "x"))
        reopened = Repository(repo.work_tree)
        assert reopened.remotes.get("origin") == str(tmp_path / "x")


class TestPush:
    """Test pushing."""

    def test_push_to_fresh_peer(self, repo, origin):
        """Repositories share the initial commit, so a first push fast-forwards."""
        tip = commit_in(repo, "a.txt", "x", "first")

        copied = repo.push("origin", "master")

        assert copied == 1
        assert origin.refs.get("master") == tip.id
        assert origin.store.get_blob(tip.files["a.txt"]) == b"x"

    def test_push_creates_missing_branch(self, repo, origin):
        tip = commit_in(repo, "a.txt", "x", "first")
        repo.push("origin", "feature")
        assert origin.refs.get("feature") == tip.id
        assert origin.current_branch == "master"

    def test_push_up_to_date(self, repo, origin):
        commit_in(repo, "a.txt", "x", "first")
        repo.push("origin", "master")
        assert repo.push("origin", "master") == 0

    def test_push_rejected_when_remote_ahead(self, repo, origin):
        """A remote branch with commits HEAD lacks is not overwritten."""
        remote_tip = commit_in(origin, "b.txt", "theirs", "remote work")
        commit_in(repo, "a.txt", "ours", "local work")
        commits_before = origin.store.count_commits()

        with pytest.raises(NeedsPullError, match="Please pull down remote changes before pushing."):
            repo.push("origin", "master")

        assert origin.refs.get("master") == remote_tip.id
        assert origin.store.count_commits() == commits_before

    def test_unknown_remote(self, repo):
        with pytest.raises(RemoteNotFoundError, match="Remote directory not found."):
            repo.push("origin", "master")

    def test_missing_remote_directory(self, repo, tmp_path):
        repo.add_remote("origin", str(tmp_path / "missing" / ".nanogit"))
        with pytest.raises(RemoteNotFoundError):
            repo.push("origin", "master")


class TestFetch:
    """Test fetching and pulling."""

    def test_fetch_creates_tracking_branch(self, repo, origin, work_tree):
        """Fetched history lands in origin/master; the working tree is untouched."""
        remote_tip = commit_in(origin, "b.txt", "theirs", "remote work")

        tracking = repo.fetch("origin", "master")

        assert tracking == "origin/master"
        assert repo.refs.get("origin/master") == remote_tip.id
        assert repo.store.get_commit(remote_tip.id).message == "remote work"
        assert not (work_tree / "b.txt").exists()
        assert repo.current_branch == "master"

    def test_fetch_missing_branch(self, repo, origin):
        with pytest.raises(NoSuchRemoteBranchError, match="That remote does not have that branch."):
            repo.fetch("origin", "nope")

    def test_pull_fast_forwards(self, repo, origin, work_tree):
        remote_tip = commit_in(origin, "b.txt", "theirs", "remote work")

        result = repo.pull("origin", "master")

        assert result.outcome == "fast_forward"
        assert repo.head_commit().id == remote_tip.id
        assert (work_tree / "b.txt").read_text() == "theirs"

    def test_pull_then_push(self, repo, origin):
        """After pulling diverged work, the merge commit can be pushed."""
        commit_in(origin, "b.txt", "theirs", "remote work")
        commit_in(repo, "a.txt", "ours", "local work")

        result = repo.pull("origin", "master")
        assert result.outcome == "merged"
        assert not result.has_conflicts

        repo.push("origin", "master")
        assert origin.refs.get("master") == result.commit.id
        assert set(origin.store.get_commit(result.commit.id).files) == {"a.txt", "b.txt"}


class TestNameCollisions:
    """Test remote-tracking names that clash with local branches."""

    def test_fetch_blocked_by_local_branch(self, repo, origin):
        """A local branch named like the remote stops fetch before any copy."""
        commit_in(origin, "b.txt", "theirs", "remote work")
        repo.branch("origin")
        commits_before = repo.store.count_commits()

        with pytest.raises(BranchExistsError):
            repo.fetch("origin", "master")

        assert repo.store.count_commits() == commits_before
        assert repo.refs.exists("origin")

    def test_push_blocked_by_remote_branch(self, repo, origin):
        """A peer branch occupying the path stops push before any copy."""
        origin.branch("feature")
        commit_in(repo, "a.txt", "x", "first")
        commits_before = origin.store.count_commits()

        with pytest.raises(BranchExistsError):
            repo.push("origin", "feature/login")

        assert origin.store.count_commits() == commits_before


class TestMissingObjects:
    """Test damaged history during transfer."""

    def test_fetch_with_missing_blob(self, repo, origin):
        """A remote commit whose blob is gone is an integrity failure."""
        remote_tip = commit_in(origin, "b.txt", "theirs", "remote work")
        (origin.store.blobs_dir / remote_tip.files["b.txt"]).unlink()

        with pytest.raises(MissingBlobError):
            repo.fetch("origin", "master")

        assert not repo.refs.exists("origin/master")


class TestPullConflict:
    """Test pull ending in a conflicted merge."""

    def test_pull_conflict(self, repo, origin, work_tree):
        shared = commit_in(repo, "a.txt", "base\n", "shared")
        repo.push("origin", "master")
        origin.reset(shared.id)
        commit_in(origin, "a.txt", "theirs\n", "remote edit")
        local = commit_in(repo, "a.txt", "ours\n", "local edit")

        result = repo.pull("origin", "master")

        assert result.conflicts == ["a.txt"]
        assert result.commit.parents == [local.id, origin.refs.get("master")]
        assert result.commit.message == "Merged origin/master into master."
        assert (work_tree / "a.txt").read_text() == (
            "<<<<<<< HEAD\nours\n=======\ntheirs\n>>>>>>>\n"
        )
