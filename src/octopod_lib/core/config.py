# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Configuration system for octopod.

This module defines dataclasses representing the static, site-wide settings
of octopod: environment variable names, timeouts, polling intervals, the
command lines used to drive Grid Engine, and defaults of the FTP and local
adaptors.

The `Config` class loads user configuration from a TOML file (if available)
and provides a globally accessible `CFG` instance. Per-scheduler and
per-filesystem options are handled separately by `octopod_lib.properties`.
"""

import os
import tomllib
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Self


@dataclass
class EnvironmentVariables:
    """Environment variable names used by octopod."""

    # Enables octopod debug mode.
    debug_mode: str = "OCTOPOD_DEBUG"
    # Explicit path to the octopod config file.
    config: str = "OCTOPOD_CONFIG"


@dataclass
class TimeoutSettings:
    """Timeout settings in seconds."""

    # Timeout for establishing an SSH connection.
    ssh: int = 60
    # Maximal time a single backend command may run.
    command: int = 300


@dataclass
class PollingSettings:
    """Settings for the job polling loops."""

    # Interval (in seconds) between successive job status checks.
    wait_interval: float = 1.0


@dataclass
class GridEngineOptions:
    """Command lines used to drive Grid Engine."""

    # Submits a job script read from standard input or from a file.
    submit: str = "qsub"
    # Deletes a job.
    cancel: str = "qdel"
    # Batched status of all jobs in XML.
    status: str = "qstat -xml"
    # Batched status of all cluster queues in XML.
    queue_status: str = "qstat -xml -g c"
    # Accounting information about a finished job.
    accounting: str = "qacct -j"
    # Shell used for generated job scripts.
    shell: str = "/bin/sh"


@dataclass
class FtpOptions:
    """Options associated with the FTP adaptor."""

    # Port used when the location does not specify one.
    default_port: int = 21
    # Socket timeout in seconds.
    timeout: int = 60
    # Number of attempts when connecting to a server.
    connect_tries: int = 3
    # Wait time (in seconds) between connection attempts.
    connect_wait: float = 5.0


@dataclass
class LocalOptions:
    """Options associated with the local adaptor."""

    # Shell running the command lines of local jobs.
    shell: str = "/bin/sh"
    # Time (in seconds) between SIGTERM and SIGKILL when cancelling a job.
    sigterm_to_sigkill: int = 5


@dataclass
class DateFormats:
    """Date and time format strings."""

    # Standard date format used by octopod.
    standard: str = "%Y-%m-%d %H:%M:%S"


@dataclass
class Config:
    """Main configuration for octopod."""

    env_vars: EnvironmentVariables = field(default_factory=EnvironmentVariables)
    timeouts: TimeoutSettings = field(default_factory=TimeoutSettings)
    polling: PollingSettings = field(default_factory=PollingSettings)
    gridengine: GridEngineOptions = field(default_factory=GridEngineOptions)
    ftp: FtpOptions = field(default_factory=FtpOptions)
    local: LocalOptions = field(default_factory=LocalOptions)
    date_formats: DateFormats = field(default_factory=DateFormats)

    @classmethod
    def load(cls, config_path: Path | None = None) -> Self:
        """
        Load configuration from TOML file or use defaults.

        Args:
            config_path: Explicit path to config file. If None, searches standard locations.

        Returns:
            Config instance with loaded or default values.
        """
        if config_path is None:
            config_path = Config._get_config_path()

        try:
            if config_path and config_path.exists():
                with config_path.open("rb") as f:
                    config_data = tomllib.load(f)
                return _dict_to_dataclass(cls, config_data)
        except Exception as e:
            raise ValueError(
                f"Could not read octopod config '{config_path}': {e}."
            ) from e

        # no config found - use defaults
        return cls()

    @staticmethod
    def _get_config_path() -> Path | None:
        """
        Search for config file in standard locations (XDG compliant).
        Returns the first existing config file, or None.
        """
        config_locations: list[Path | None] = [
            # 1. Explicit environment variable (highest priority)
            Path(env_path)
            if (env_path := os.getenv(EnvironmentVariables.config))
            else None,
            # 2. Current working directory (for development/override)
            Path.cwd() / "octopod_config.toml",
            # 3. XDG config home (standard user config location)
            Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
            / "octopod"
            / "config.toml",
        ]

        for path in config_locations:
            if path and path.is_file():
                return path

        return None


def _dict_to_dataclass(cls, data: dict[str, Any]):
    """
    Recursively convert a dictionary to a dataclass instance.
    Handles nested dataclasses properly.
    """
    if not is_dataclass(cls):
        return data

    field_values = {}
    for field_info in fields(cls):
        field_name = field_info.name
        field_type = field_info.type

        if field_name in data:
            value = data[field_name]
            if is_dataclass(field_type) and isinstance(value, dict):
                field_values[field_name] = _dict_to_dataclass(field_type, value)
            else:
                field_values[field_name] = value

    return cls(**field_values)


# Global configuration for octopod.
CFG = Config.load()
