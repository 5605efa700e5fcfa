"""Tests for the working-tree synchronizer."""

import pytest

from nanogit.exceptions import FileNotFoundInTreeError, MissingBlobError, UntrackedFileError
from nanogit.repo import Commit


class TestFiles:
    """Test scanning the working tree."""

    def test_lists_nested_files(self, repo, write_file):
        """Files in subdirectories use POSIX relative names."""
        write_file("a.txt", "1")
        write_file("docs/guide/intro.md", "2")
        assert repo.tree.files() == ["a.txt", "docs/guide/intro.md"]

    def test_skips_repository_directory(self, repo):
        """The repository's own files are never listed."""
        assert repo.tree.files() == []
        assert repo.layout.root.is_dir()

    def test_delete_prunes_empty_directories(self, repo, write_file, work_tree):
        write_file("docs/a.txt", "1")
        repo.tree.delete("docs/a.txt")
        assert not (work_tree / "docs").exists()


class TestApply:
    """Test validated write/delete passes."""

    def test_missing_blob_aborts_before_writing(self, repo, write_file, read_file):
        """A missing blob stops the whole pass; nothing is deleted."""
        write_file("keep.txt", "safe")
        good = repo.store.put_blob(b"new")

        with pytest.raises(MissingBlobError):
            repo.tree.apply(repo.store, {"a.txt": good, "b.txt": "0" * 64}, ["keep.txt"])

        assert read_file("keep.txt") == "safe"
        assert not repo.tree.exists("a.txt")

    def test_uses_supplied_contents(self, repo, read_file):
        """Content not yet in the store can be passed in."""
        repo.tree.apply(repo.store, {"a.txt": "pending"}, [], {"pending": b"conflict"})
        assert read_file("a.txt") == "conflict"


class TestRestore:
    """Test materializing whole snapshots."""

    def test_restore_replaces_tracked_files(self, repo, commit_file, write_file, read_file):
        """Tracked files absent from the target are deleted; untracked ones stay."""
        first = commit_file("a.txt", "one")
        commit_file("b.txt", "two")
        write_file("notes.txt", "mine")

        repo.tree.restore(repo.store, first, repo.head_commit(), repo.index.entries)

        assert repo.tree.files() == ["a.txt", "notes.txt"]
        assert read_file("notes.txt") == "mine"

    def test_untracked_file_in_the_way(self, repo, write_file, read_file):
        """Overwriting an untracked file aborts before any change."""
        blob_id = repo.store.put_blob(b"theirs")
        target = Commit(message="target", files={"a.txt": blob_id, "b.txt": blob_id})
        repo.store.put_commit(target)
        write_file("b.txt", "mine")

        with pytest.raises(UntrackedFileError, match="untracked file in the way"):
            repo.tree.restore(repo.store, target, repo.head_commit(), repo.index.entries)

        assert not repo.tree.exists("a.txt")
        assert read_file("b.txt") == "mine"

    def test_staged_file_may_be_overwritten(self, repo, write_file, read_file):
        """A staged file is not untracked."""
        blob_id = repo.store.put_blob(b"theirs")
        target = Commit(message="target", files={"a.txt": blob_id})
        repo.store.put_commit(target)
        write_file("a.txt", "mine")
        repo.add("a.txt")

        repo.tree.restore(repo.store, target, repo.head_commit(), repo.index.entries)
        assert read_file("a.txt") == "theirs"


class TestConfinement:
    """Test that every path stays inside the working tree."""

    @pytest.mark.parametrize("name", ["../x.txt", "/etc/passwd", ".nanogit/HEAD", "a/../../x", ".", ""])
    def test_rejected_names(self, repo, name):
        with pytest.raises(FileNotFoundInTreeError):
            repo.tree.normalize(name)

    def test_symlink_out_of_tree(self, repo, work_tree, tmp_path):
        """A symlinked directory does not lead outside the working tree."""
        outside = tmp_path / "outside"
        outside.mkdir()
        (work_tree / "link").symlink_to(outside, target_is_directory=True)

        with pytest.raises(FileNotFoundInTreeError):
            repo.tree.normalize("link/secret.txt")

    def test_apply_rejects_before_writing(self, repo, tmp_path, read_file, write_file):
        """A commit naming a path outside the tree changes nothing."""
        write_file("keep.txt", "safe")
        blob_id = repo.store.put_blob(b"escaped")

        with pytest.raises(FileNotFoundInTreeError):
            repo.tree.apply(repo.store, {"a.txt": blob_id, "../escaped.txt": blob_id}, ["keep.txt"])

        assert read_file("keep.txt") == "safe"
        assert not (tmp_path / "escaped.txt").exists()
        assert not repo.tree.exists("a.txt")
