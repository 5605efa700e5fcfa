"""Tests for the nanogit command line."""

import pytest
from loguru import logger
from typer.testing import CliRunner

from nanogit import __version__
from nanogit.cli.commands import CheckoutBranch, CheckoutFile, app, parse_checkout
from nanogit.exceptions import IncorrectOperandsError

runner = CliRunner()


@pytest.fixture(autouse=True)
def in_work_tree(work_tree, monkeypatch):
    """Run every command from inside the working tree."""
    monkeypatch.chdir(work_tree)
    yield
    logger.remove()


def run(*args: str):
    result = runner.invoke(app, list(args))
    assert result.exit_code == 0, result.output
    return result


def head_id() -> str:
    return run("log").stdout.splitlines()[1].split()[1]


class TestParseCheckout:
    """Test checkout operand parsing."""

    def test_file_from_head(self):
        assert parse_checkout(["--", "a.txt"]) == CheckoutFile("a.txt")

    def test_file_from_commit(self):
        assert parse_checkout(["abc123", "--", "a.txt"]) == CheckoutFile("a.txt", "abc123")

    def test_branch(self):
        assert parse_checkout(["feature"]) == CheckoutBranch("feature")

    @pytest.mark.parametrize("args", [[], ["--"], ["a", "b"], ["a", "++", "b"], ["a", "--", "b", "c"]])
    def test_incorrect_operands(self, args):
        with pytest.raises(IncorrectOperandsError):
            parse_checkout(args)


class TestCommands:
    """Test commands end to end."""

    def test_version(self):
        result = run("--version")
        assert f"nanogit v{__version__}" in result.stdout

    def test_outside_repository(self):
        result = run("status")
        assert "Not in an initialized nanogit directory." in result.stdout

    def test_commit_and_log(self, work_tree):
        run("init")
        (work_tree / "a.txt").write_text("x")
        run("add", "a.txt")
        run("commit", "first")

        lines = run("log").stdout.splitlines()
        assert lines[0] == "==="
        assert lines[1].startswith("commit ")
        assert lines[2].startswith("Date: ")
        assert lines[3] == "first"
        assert lines[4] == ""
        assert "initial commit" in lines

    def test_checkout_file_with_separator(self, work_tree):
        """checkout -- a.txt and checkout <id> -- a.txt restore the file."""
        run("init")
        (work_tree / "a.txt").write_text("x")
        run("add", "a.txt")
        run("commit", "first")
        first = head_id()
        (work_tree / "a.txt").write_text("y")
        run("add", "a.txt")
        run("commit", "second")

        (work_tree / "a.txt").write_text("scribbled")
        run("checkout", "--", "a.txt")
        assert (work_tree / "a.txt").read_text() == "y"

        run("checkout", first[:8], "--", "a.txt")
        assert (work_tree / "a.txt").read_text() == "x"

    def test_checkout_branch_and_status(self, work_tree):
        run("init")
        run("branch", "other")
        run("checkout", "other")

        output = run("status").stdout
        assert output.startswith("=== Branches ===\nmaster\n*other\n\n=== Staged Files ===\n")
        assert "=== Modifications Not Staged For Commit ===" in output
        assert output.endswith("=== Untracked Files ===\n\n")

    def test_incorrect_operands(self):
        run("init")
        assert "Incorrect operands." in run("checkout", "a", "b").stdout

    def test_user_errors_exit_cleanly(self):
        run("init")
        result = run("commit", "nothing staged")
        assert "No changes added to the commit." in result.stdout

    def test_find_and_global_log(self, work_tree):
        run("init")
        (work_tree / "a.txt").write_text("x")
        run("add", "a.txt")
        run("commit", "needle")

        found = run("find", "needle").stdout.split()
        assert found == [head_id()]
        assert "needle" in run("global-log").stdout
        assert "Found no commit with that message." in run("find", "hay").stdout

    def test_merge_conflict_message(self, work_tree):
        run("init")
        (work_tree / "a.txt").write_text("x\n")
        run("add", "a.txt")
        run("commit", "first")
        run("branch", "b")
        (work_tree / "a.txt").write_text("y\n")
        run("add", "a.txt")
        run("commit", "master edit")
        run("checkout", "b")
        (work_tree / "a.txt").write_text("z\n")
        run("add", "a.txt")
        run("commit", "b edit")
        run("checkout", "master")

        assert "Encountered a merge conflict." in run("merge", "b").stdout
        assert "Merge: " in run("log").stdout

    def test_corrupt_object_exits_with_error(self, work_tree):
        """Integrity failures are fatal."""
        run("init")
        for commit_file in (work_tree / ".nanogit" / "objects" / "commits").iterdir():
            commit_file.write_text("{broken")

        result = runner.invoke(app, ["log"])
        assert result.exit_code == 1

    def test_remote_round_trip(self, work_tree, tmp_path, monkeypatch):
        """push from one repository, pull into another."""
        peer = tmp_path / "peer"
        peer.mkdir()
        monkeypatch.chdir(peer)
        run("init")

        monkeypatch.chdir(work_tree)
        run("init")
        (work_tree / "a.txt").write_text("shared")
        run("add", "a.txt")
        run("commit", "to share")
        run("add-remote", "origin", str(peer / ".nanogit"))
        run("push", "origin", "master")

        monkeypatch.chdir(peer)
        run("add-remote", "origin", str(work_tree / ".nanogit"))
        run("pull", "origin", "master")
        assert (peer / "a.txt").read_text() == "shared"
        assert "origin/master" in run("status").stdout
