# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from enum import Enum
from typing import Self

from octopod_lib.core.logger import get_logger

logger = get_logger(__name__)


class JobState(Enum):
    """
    State of a job as reported by a backend.
    """

    PENDING = 1
    RUNNING = 2
    DONE = 3
    FAILED = 4
    KILLED = 5
    ERROR = 6
    UNKNOWN = 7

    def __str__(self) -> str:
        """
        Return the lowercase string representation of the enum variant.

        Returns:
            str: The name of the state in lowercase.
        """
        return self.name.lower()

    def isTerminal(self) -> bool:
        """Return True if a job in this state will never change state again."""
        return self in {JobState.DONE, JobState.FAILED, JobState.KILLED, JobState.ERROR}

    @classmethod
    def fromStr(cls, s: str) -> Self:
        """
        Convert a string to the corresponding JobState enum variant.

        Args:
            s (str): String representation of the state (case-insensitive).

        Returns:
            JobState: Corresponding enum variant. Returns UNKNOWN if no match is found.
        """
        try:
            return cls[s.upper()]
        except KeyError:
            return cls.UNKNOWN

    @classmethod
    def fromCode(cls, code: str) -> Self:
        """
        Convert a Grid Engine state code (e.g. 'r', 'qw', 'Eqw', 'dr') to a JobState.

        Error states take precedence over all other flags; a job marked
        for deletion is reported as killed.

        Args:
            code (str): State code reported by qstat.

        Returns:
            JobState: Corresponding enum variant. Returns UNKNOWN for unrecognized codes.
        """
        if not code:
            return cls.UNKNOWN

        if "E" in code:
            return cls.ERROR
        if "d" in code:
            return cls.KILLED
        if "r" in code or "t" in code:
            return cls.RUNNING
        if any(flag in code for flag in "qwhsST"):
            return cls.PENDING

        logger.debug(f"Unknown Grid Engine state code '{code}'.")
        return cls.UNKNOWN
