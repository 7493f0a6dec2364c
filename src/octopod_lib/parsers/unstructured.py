# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Parsing of free-text, line-oriented command output.

A `TextParser` is configured with three families of regular expressions:

- success patterns, which must contain a named group `id`,
- failure patterns, which may contain a named group `message`
  (the whole line is used otherwise),
- ignore patterns for lines that are known to carry no information.

Lines matching none of them are reported as `LineMatch.UNKNOWN` and skipped.
If no success or failure token is found in the whole output, the output
is considered unparseable.
"""

import re
from collections.abc import Iterable
from enum import Enum

from octopod_lib.core.error import BackendError, ParseError
from octopod_lib.core.logger import get_logger

logger = get_logger(__name__)


class LineMatch(Enum):
    """
    Classification of a single line of output.
    """

    SUCCESS = 1
    FAILURE = 2
    IGNORE = 3
    UNKNOWN = 4

    def __str__(self) -> str:
        return self.name.lower()


class TextParser:
    """
    Classifier of output lines extracting either an identifier or an error message.

    Args:
        success (Iterable[str]): Patterns of success lines. Each must define a group `id`.
        failure (Iterable[str]): Patterns of failure lines.
        ignore (Iterable[str]): Patterns of lines to ignore.
        adaptor_name (str | None): Name of the adaptor to report in errors.

    Raises:
        ValueError: If a success pattern does not define the group `id`.
    """

    def __init__(
        self,
        success: Iterable[str],
        failure: Iterable[str] = (),
        ignore: Iterable[str] = (),
        adaptor_name: str | None = None,
    ):
        self._success = [re.compile(p) for p in success]
        self._failure = [re.compile(p) for p in failure]
        self._ignore = [re.compile(p) for p in ignore]
        self._adaptor_name = adaptor_name

        for pattern in self._success:
            if "id" not in pattern.groupindex:
                raise ValueError(
                    f"Success pattern '{pattern.pattern}' does not define a group 'id'."
                )

    def classify(self, line: str) -> LineMatch:
        """
        Return the classification of a single line.
        """
        return self._match(line)[0]

    def parse(self, stdout: str, stderr: str = "") -> str:
        """
        Extract the identifier from the output of a command.

        Standard output is scanned before standard error. A failure token
        anywhere in the output takes precedence over success tokens.

        Args:
            stdout (str): Standard output of the command.
            stderr (str): Standard error output of the command.

        Returns:
            str: The identifier of the first success token.

        Raises:
            BackendError: If a failure token is found.
            ParseError: If neither a success nor a failure token is found.
        """
        identifier = None
        for line in stdout.splitlines() + stderr.splitlines():
            match, value = self._match(line)

            if match == LineMatch.FAILURE:
                raise BackendError(value, self._adaptor_name)

            if match == LineMatch.SUCCESS and identifier is None:
                identifier = value
            elif match == LineMatch.UNKNOWN:
                logger.debug(f"Skipping unrecognized line '{line}'.")

        if identifier is None:
            raise ParseError(
                f"Could not find a recognizable token in the output.\nstdout:\n{stdout}\nstderr:\n{stderr}",
                self._adaptor_name,
            )

        return identifier

    def _match(self, line: str) -> tuple[LineMatch, str | None]:
        line = line.strip()
        if not line:
            return LineMatch.IGNORE, None

        for pattern in self._failure:
            if m := pattern.search(line):
                message = m.groupdict().get("message") or line
                return LineMatch.FAILURE, message.strip()

        for pattern in self._success:
            if m := pattern.search(line):
                return LineMatch.SUCCESS, m.group("id")

        for pattern in self._ignore:
            if pattern.search(line):
                return LineMatch.IGNORE, None

        return LineMatch.UNKNOWN, None


def parse_key_value_lines(text: str, separator_prefix: str = "===") -> dict[str, str]:
    """
    Parse lines of the form `key   value` into a dictionary.

    The key is the first whitespace-delimited word; the value is the rest of
    the line with surrounding whitespace removed. Empty lines, lines without
    a value and lines starting with `separator_prefix` are skipped. Later
    occurrences of a key override earlier ones.

    Returns:
        dict[str, str]: Dictionary mapping keys to values.
    """
    result: dict[str, str] = {}

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(separator_prefix):
            continue

        parts = line.split(None, 1)
        if len(parts) != 2:
            continue

        result[parts[0]] = parts[1].strip()

    return result
