# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass, field
from typing import Self
from urllib.parse import urlsplit

from octopod_lib.files.pathname import Pathname

from .error import LocationError
from .logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Location:
    """
    A parsed resource location of the form `scheme://[user@]host[:port][/path]`.

    Attributes:
        scheme (str): Lowercase scheme selecting the adaptor.
        user (str | None): User name, if present.
        host (str | None): Host name, if present. `None` means the local machine.
        port (int | None): Port number, if present.
        path (Pathname): Path component. A trailing separator is not significant.
    """

    scheme: str
    user: str | None = None
    host: str | None = None
    port: int | None = None
    path: Pathname = field(default_factory=Pathname)

    @classmethod
    def parse(cls, location: str, adaptor_name: str | None = None) -> Self:
        """
        Parse and validate a location string.

        Args:
            location (str): The location to parse.
            adaptor_name (str | None): Name of the adaptor to report in errors.

        Returns:
            Location: The parsed location.

        Raises:
            LocationError: If the location has no scheme, carries a fragment,
                           or contains an invalid port.
        """
        try:
            parts = urlsplit(location)
        except ValueError as e:
            raise LocationError(
                f"Malformed location '{location}': {e}.", adaptor_name
            ) from e

        if not parts.scheme:
            raise LocationError(
                f"Location '{location}' does not specify a scheme.", adaptor_name
            )

        if parts.fragment or location.endswith("#"):
            raise LocationError(
                f"Location '{location}' must not contain a fragment.", adaptor_name
            )

        try:
            port = parts.port
        except ValueError as e:
            raise LocationError(
                f"Location '{location}' contains an invalid port.", adaptor_name
            ) from e

        parsed = cls(
            scheme=parts.scheme.lower(),
            user=parts.username or None,
            host=parts.hostname or None,
            port=port,
            path=Pathname(parts.path),
        )
        logger.debug(f"Parsed location '{location}' as {parsed}.")
        return parsed

    def isLocal(self) -> bool:
        """Return True if the location does not name a host."""
        return self.host is None

    def getUserHost(self) -> str | None:
        """Return `user@host`, `host` or None for a local location."""
        if self.host is None:
            return None

        return f"{self.user}@{self.host}" if self.user else self.host

    def __str__(self) -> str:
        authority = self.getUserHost() or ""
        if self.port is not None:
            authority += f":{self.port}"

        path = self.path.getAbsolutePath() if not self.path.isEmpty() else ""
        return f"{self.scheme}://{authority}{path}"
