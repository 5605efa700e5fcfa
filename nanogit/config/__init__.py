"""Configuration module for nanogit."""

from nanogit.config.loader import load_config, get_config_path
from nanogit.config.schema import Config

__all__ = ["Config", "load_config", "get_config_path"]
