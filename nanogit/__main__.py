"""Entry point for ``python -m nanogit``."""

from nanogit.cli.commands import app

if __name__ == "__main__":
    app()
