"""On-disk layout of a repository directory."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RepositoryLayout:
    """
    Paths inside a repository directory (``.nanogit``).

    .nanogit/
      HEAD                 current branch name
      refs/                one file per branch, content = commit ID
      objects/blobs/       raw blob content named by hash
      objects/commits/     commit JSON named by hash
      index.json           filename -> blob ID
      staged.json          blob ID -> staged content (base64)
      remotes.json         remote name -> repository directory path
    """

    root: Path

    @property
    def head_file(self) -> Path:
        return self.root / "HEAD"

    @property
    def refs_dir(self) -> Path:
        return self.root / "refs"

    @property
    def objects_dir(self) -> Path:
        return self.root / "objects"

    @property
    def index_file(self) -> Path:
        return self.root / "index.json"

    @property
    def staged_file(self) -> Path:
        return self.root / "staged.json"

    @property
    def remotes_file(self) -> Path:
        return self.root / "remotes.json"

    def is_repository(self) -> bool:
        """Whether ``root`` holds an initialized repository."""
        return self.head_file.is_file() and self.refs_dir.is_dir() and self.objects_dir.is_dir()
