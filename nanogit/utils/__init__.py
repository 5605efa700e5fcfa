"""Utility functions for nanogit."""

from nanogit.utils.helpers import ensure_dir

__all__ = ["ensure_dir"]
