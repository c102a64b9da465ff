"""Configuration management for schema-lens.

This module provides a pydantic-based configuration system that loads settings
from environment variables and builds the coordinator and executor they
describe.
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from schema_lens.coordinator.coordinator import DEFAULT_MAX_ROWS, BuildCoordinator
from schema_lens.coordinator.executor import (
    OffloadExecutor,
    ProcessOffloadExecutor,
    ThreadOffloadExecutor,
)


class Config(BaseSettings):
    """Configuration settings for schema-lens.

    This class uses pydantic-settings to automatically load configuration
    from environment variables. All settings can be overridden by setting
    the corresponding environment variable.

    Environment Variables:
        SCHEMA_LENS_MAX_ROWS: Rows built synchronously before the full build
            is delegated (default 20)
        SCHEMA_LENS_MERGE_ALL_OF: Merge allOf combiners in the full build
            (default true)
        SCHEMA_LENS_EXECUTOR: Where delegated builds run, 'thread' or 'process'
        SCHEMA_LENS_MAX_WORKERS: Worker count of the executor pool

    Example:
        >>> config = Config()
        >>> coordinator = config.get_coordinator()
        >>> tree = coordinator.build(schema)
    """

    model_config = SettingsConfigDict(
        env_prefix="SCHEMA_LENS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    max_rows: int = Field(
        default=DEFAULT_MAX_ROWS,
        ge=0,
        description="Row threshold for the synchronous pre-render",
    )

    merge_all_of: bool = Field(
        default=True,
        description="Merge allOf combiners in the delegated full build",
    )

    executor: Literal["thread", "process"] = Field(
        default="thread",
        description="Pool type running delegated full builds",
    )

    max_workers: int = Field(
        default=1,
        ge=1,
        description="Number of workers in the executor pool",
    )

    def get_executor(self) -> OffloadExecutor:
        """Create the offload executor described by this configuration.

        Returns:
            A thread- or process-backed executor.
        """
        if self.executor == "process":
            return ProcessOffloadExecutor(max_workers=self.max_workers)
        return ThreadOffloadExecutor(max_workers=self.max_workers)

    def get_coordinator(self, executor: Optional[OffloadExecutor] = None) -> BuildCoordinator:
        """Create a BuildCoordinator using this configuration.

        Args:
            executor: Executor to delegate full builds to. A new one is
                created from this configuration when omitted.
        """
        return BuildCoordinator(
            executor=executor if executor is not None else self.get_executor(),
            max_rows=self.max_rows,
            merge_all_of=self.merge_all_of,
        )

    def __repr__(self) -> str:
        """Return a string representation of the configuration.

        Returns:
            String representation of the config.
        """
        return (
            f"Config("
            f"max_rows={self.max_rows!r}, "
            f"merge_all_of={self.merge_all_of!r}, "
            f"executor={self.executor!r}, "
            f"max_workers={self.max_workers!r}"
            f")"
        )


def load_config() -> Config:
    """Load configuration from environment variables.

    This is a convenience function that creates and returns a Config instance.

    Returns:
        A Config instance with settings loaded from environment.

    Example:
        >>> config = load_config()
        >>> coordinator = config.get_coordinator()
    """
    return Config()
