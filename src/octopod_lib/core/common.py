# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
General utility functions for the octopod library.

This module provides helpers for YAML output, duration formatting and
the construction of shell command lines.
"""

import shlex
from datetime import timedelta
from functools import lru_cache

import yaml

from .logger import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def load_yaml_dumper() -> type[yaml.Dumper]:
    """Return the fastest available YAML dumper (CDumper if possible)."""
    try:
        from yaml import CDumper as Dumper  # type: ignore[attr-defined]

        logger.debug("Loaded YAML CDumper.")
    except ImportError:
        from yaml import Dumper

        logger.debug("Loaded default YAML dumper.")
    return Dumper


def format_duration_hhmmss(td: timedelta) -> str:
    """
    Format a timedelta as HH:MM:SS. Hours are not wrapped into days.

    Args:
        td (timedelta): The duration to format.

    Returns:
        str: The formatted duration, e.g. '25:03:00'.
    """
    total_seconds = int(td.total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)

    return f"{hours:02}:{minutes:02}:{seconds:02}"


def join_command(command: list[str]) -> str:
    """
    Join a command and its arguments into a single, safely quoted shell string.
    """
    return shlex.join(command)


def split_command(command: str) -> list[str]:
    """
    Split a shell command line into a list of arguments.
    """
    return shlex.split(command)
