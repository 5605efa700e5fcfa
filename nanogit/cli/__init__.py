"""CLI module for nanogit."""

from nanogit.cli.commands import app

__all__ = ["app"]
