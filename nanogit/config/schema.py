"""Configuration schema using Pydantic."""

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RepositoryConfig(BaseModel):
    """Repository layout and defaults."""
    dir_name: str = ".nanogit"
    default_branch: str = "master"
    initial_message: str = "initial commit"

    @field_validator("dir_name")
    @classmethod
    def validate_dir_name(cls, v: str) -> str:
        """The repository directory must be a single path component."""
        if not v or "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError("dir_name must be a plain directory name")
        return v

    @field_validator("default_branch")
    @classmethod
    def validate_default_branch(cls, v: str) -> str:
        """Branch names cannot be empty or contain the remote separator."""
        if not v or "/" in v:
            raise ValueError("default_branch must be a non-empty name without '/'")
        return v


class LogConfig(BaseModel):
    """Logging and log-rendering configuration."""
    level: str = "WARNING"
    date_format: str = "%a %b %d %H:%M:%S %Y %z"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate the loguru level name."""
        level = v.upper()
        if level not in ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


class Config(BaseSettings):
    """Root configuration for nanogit."""
    model_config = SettingsConfigDict(
        env_prefix="NANOGIT_",
        env_nested_delimiter="__",
    )

    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    log: LogConfig = Field(default_factory=LogConfig)
