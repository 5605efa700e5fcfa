"""
Text rendering for log and status output.

Provides the plain-text formats printed by ``log``, ``global-log`` and
``status``.
"""

from typing import TYPE_CHECKING

from nanogit.repo.commit import Commit

if TYPE_CHECKING:
    from nanogit.repo.repository import StatusReport

DEFAULT_DATE_FORMAT = "%a %b %d %H:%M:%S %Y %z"


def format_commit(commit: Commit, date_format: str = DEFAULT_DATE_FORMAT) -> str:
    """
    Format one commit for ``log``.

    Args:
        commit: The commit to format.
        date_format: strftime format for the commit date (local time).

    Returns:
        Formatted entry, ending with a blank line.
    """
    lines = ["===", f"commit {commit.id}"]

    if commit.is_merge:
        lines.append(f"Merge: {commit.parents[0][:7]} {commit.parents[1][:7]}")

    lines.append(f"Date: {commit.timestamp.astimezone().strftime(date_format)}")
    lines.append(commit.message)
    lines.append("")

    return "\n".join(lines) + "\n"


def format_commit_log(commits: list[Commit], date_format: str = DEFAULT_DATE_FORMAT) -> str:
    """Format a sequence of commits, in the order given."""
    return "".join(format_commit(commit, date_format) for commit in commits)


def format_status(report: "StatusReport") -> str:
    """
    Format a status report.

    Each section lists its entries sorted, followed by a blank line. The
    current branch is marked with ``*``.
    """
    sections = [
        ("Branches", [
            f"*{name}" if name == report.current_branch else name
            for name in report.branches
        ]),
        ("Staged Files", report.staged),
        ("Removed Files", report.removed),
        ("Modifications Not Staged For Commit", [
            f"{name} ({kind})" for name, kind in report.modified
        ]),
        ("Untracked Files", report.untracked),
    ]

    lines = []
    for title, entries in sections:
        lines.append(f"=== {title} ===")
        lines.extend(entries)
        lines.append("")

    return "\n".join(lines) + "\n"
