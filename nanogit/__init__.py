"""nanogit - a lightweight local version-control engine."""

__version__ = "0.1.0"
__logo__ = "🌱"
