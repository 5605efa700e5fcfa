"""
Working-tree synchronizer.

Reads and writes the user's files and materializes commit snapshots onto
disk. Nothing is written until every affected file has passed the
untracked-overwrite check and every blob it needs has been read.
"""

import posixpath
from collections.abc import Iterable, Mapping
from pathlib import Path

from loguru import logger

from nanogit.exceptions import FileNotFoundInTreeError, UntrackedFileError
from nanogit.repo.commit import Commit
from nanogit.repo.hash import compute_content_hash
from nanogit.repo.store import ObjectStore
from nanogit.utils.helpers import ensure_dir, prune_empty_dirs


class WorkingTree:
    """
    The directory a repository versions.

    Filenames are POSIX paths relative to the root. The repository's own
    directory is never listed, read or written.
    """

    def __init__(self, root: Path, repo_dir_name: str):
        self.root = root
        self.repo_dir_name = repo_dir_name

    def normalize(self, filename: str) -> str:
        """
        Canonical name of a working-tree file (``./a//b.txt`` -> ``a/b.txt``).

        Raises:
            FileNotFoundInTreeError: The name points outside the working
                tree or into the repository directory.
        """
        name = posixpath.normpath(filename.replace("\\", "/"))
        first = name.split("/")[0]
        if posixpath.isabs(name) or name == "." or first in ("..", self.repo_dir_name):
            raise FileNotFoundInTreeError()

        # symlinked directories may still lead out
        root = self.root.resolve()
        resolved = (root / name).resolve()
        if not resolved.is_relative_to(root):
            raise FileNotFoundInTreeError()
        if resolved.relative_to(root).parts[:1] in ((), (self.repo_dir_name,)):
            raise FileNotFoundInTreeError()
        return name

    def path(self, filename: str) -> Path:
        return self.root / self.normalize(filename)

    def files(self) -> list[str]:
        """All files in the working tree, sorted."""
        names = []
        for path in self.root.rglob("*"):
            rel = path.relative_to(self.root)
            if rel.parts[0] == self.repo_dir_name or not path.is_file():
                continue
            names.append(rel.as_posix())
        return sorted(names)

    def exists(self, filename: str) -> bool:
        return self.path(filename).is_file()

    def read(self, filename: str) -> bytes:
        return self.path(filename).read_bytes()

    def blob_id(self, filename: str) -> str:
        """Blob ID the file's current content would have."""
        return compute_content_hash(self.read(filename))

    def write(self, filename: str, content: bytes) -> None:
        path = self.path(filename)
        ensure_dir(path.parent)
        path.write_bytes(content)

    def delete(self, filename: str) -> None:
        path = self.path(filename)
        if path.is_file():
            path.unlink()
            prune_empty_dirs(path, self.root)

    # =========================================================================
    # Snapshot synchronization
    # =========================================================================

    def check_untracked(
        self,
        filenames: Iterable[str],
        head: Commit,
        index: Mapping[str, str],
    ) -> None:
        """
        Refuse to touch files nanogit does not know about.

        Args:
            filenames: Every file the pending operation would write or delete.
            head: The current commit.
            index: The current index entries.

        Raises:
            UntrackedFileError: One of the files exists on disk but is
                neither tracked by ``head`` nor in the index.
        """
        for filename in filenames:
            if self.exists(filename) and not head.tracks(filename) and filename not in index:
                logger.warning(f"Untracked file in the way: {filename}")
                raise UntrackedFileError()

    def apply(
        self,
        store: ObjectStore,
        writes: Mapping[str, str],
        deletes: Iterable[str],
        contents: Mapping[str, bytes] | None = None,
    ) -> None:
        """
        Write and delete files in one validated pass.

        Args:
            store: Object store holding the blobs to write.
            writes: Filename -> blob ID for every file to write.
            deletes: Filenames to delete.
            contents: Blob ID -> content for blobs not yet in the store.

        Raises:
            MissingBlobError: A blob is neither stored nor in ``contents``.
            FileNotFoundInTreeError: A filename leaves the working tree.
        """
        contents = contents or {}
        for filename in [*writes, *deletes]:
            self.normalize(filename)

        loaded = {}
        for filename, blob_id in writes.items():
            if blob_id in contents:
                loaded[filename] = contents[blob_id]
                continue
            loaded[filename] = store.require_blob(blob_id, filename)

        for filename in deletes:
            self.delete(filename)
        for filename, content in loaded.items():
            self.write(filename, content)

    def restore(
        self,
        store: ObjectStore,
        target: Commit,
        head: Commit,
        index: Mapping[str, str],
    ) -> None:
        """
        Make the working tree match a commit's snapshot.

        Files tracked by ``head`` or staged in ``index`` that ``target`` does
        not have are deleted; every file in ``target`` is written. Untracked
        files are left alone unless ``target`` would overwrite one, which
        aborts the whole operation before anything changes.

        Args:
            store: Object store to read blobs from.
            target: The commit to materialize.
            head: The commit currently checked out.
            index: The current index entries.

        Raises:
            UntrackedFileError: ``target`` would overwrite an untracked file.
        """
        deletes = sorted((set(head.files) | set(index)) - set(target.files))
        self.check_untracked(list(target.files) + deletes, head, index)
        self.apply(store, target.files, deletes)
        logger.debug(f"Restored {len(target.files)} file(s) from {target.id[:8]}")
