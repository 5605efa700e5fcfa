"""Shared exception types for nanogit."""


class NanogitError(Exception):
    """Base exception for all nanogit errors."""

    message = "nanogit error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


# =========================================================================
# User errors: reported, clean exit, nothing mutated
# =========================================================================


class UserError(NanogitError):
    """A command was used incorrectly; nothing was changed."""


class NotInitializedError(UserError):
    message = "Not in an initialized nanogit directory."


class AlreadyInitializedError(UserError):
    message = "A nanogit version-control system already exists in the current directory."


class IncorrectOperandsError(UserError):
    message = "Incorrect operands."


class FileNotFoundInTreeError(UserError):
    message = "File does not exist."


class FileNotInCommitError(UserError):
    message = "File does not exist in that commit."


class EmptyMessageError(UserError):
    message = "Please enter a commit message."


class NoChangesError(UserError):
    message = "No changes added to the commit."


class NothingToRemoveError(UserError):
    message = "No reason to remove the file."


class ObjectNotFoundError(UserError):
    message = "No commit with that id exists."


class AmbiguousPrefixError(UserError):
    message = "Ambiguous commit id prefix; use a longer prefix."


class FoundNoCommitError(UserError):
    message = "Found no commit with that message."


class BranchExistsError(UserError):
    message = "A branch with that name already exists."


class NoSuchBranchError(UserError):
    message = "A branch with that name does not exist."


class CannotRemoveCurrentError(UserError):
    message = "Cannot remove the current branch."


class AlreadyOnBranchError(UserError):
    message = "No need to checkout the current branch."


class MergeWithSelfError(UserError):
    message = "Cannot merge a branch with itself."


class UncommittedChangesError(UserError):
    message = "You have uncommitted changes."


class NoCommonAncestorError(UserError):
    message = "The branches share no common ancestor."


class RemoteExistsError(UserError):
    message = "A remote with that name already exists."


class NoSuchRemoteError(UserError):
    message = "A remote with that name does not exist."


class RemoteNotFoundError(UserError):
    message = "Remote directory not found."


class NoSuchRemoteBranchError(UserError):
    message = "That remote does not have that branch."


class NeedsPullError(UserError):
    message = "Please pull down remote changes before pushing."


# =========================================================================
# Safety aborts: detected before any write
# =========================================================================


class SafetyAbort(NanogitError):
    """An operation would destroy work that nanogit does not track."""


class UntrackedFileError(SafetyAbort):
    message = "There is an untracked file in the way; delete it, or add and commit it first."


# =========================================================================
# Integrity failures: fatal
# =========================================================================


class IntegrityError(NanogitError):
    """The repository's stored data is damaged."""


class CorruptObjectError(IntegrityError):
    message = "A stored object is corrupted or unreadable."


class MissingBlobError(IntegrityError):
    message = "A tracked file refers to a blob that is not stored."
