"""Shared fixtures for nanogit tests."""

from pathlib import Path

import pytest

from nanogit.config.schema import Config
from nanogit.repo import ObjectStore, Repository


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep user config and NANOGIT_* variables out of every test."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for name in ("NANOGIT_REPOSITORY__DIR_NAME", "NANOGIT_REPOSITORY__DEFAULT_BRANCH",
                 "NANOGIT_LOG__LEVEL", "NANOGIT_LOG__DATE_FORMAT"):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def work_tree(tmp_path) -> Path:
    """An empty directory to version."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def repo(work_tree) -> Repository:
    """A freshly initialized repository."""
    return Repository.init(work_tree, Config())


@pytest.fixture
def store(tmp_path) -> ObjectStore:
    """A standalone object store."""
    return ObjectStore(tmp_path / "objects")


@pytest.fixture
def write_file(work_tree):
    """Write a text file into the working tree."""
    def _write(name: str, content: str) -> Path:
        path = work_tree / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def read_file(work_tree):
    """Read a text file from the working tree."""
    def _read(name: str) -> str:
        return (work_tree / name).read_text(encoding="utf-8")
    return _read


@pytest.fixture
def commit_file(repo, write_file):
    """Write, stage and commit one file; returns the new commit."""
    def _commit(name: str, content: str, message: str | None = None):
        write_file(name, content)
        repo.add(name)
        return repo.commit(message or f"set {name} to {content!r}")
    return _commit
