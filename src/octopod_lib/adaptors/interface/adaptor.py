# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from abc import ABC
from collections.abc import Mapping
from typing import TYPE_CHECKING

from octopod_lib.core.logger import get_logger
from octopod_lib.properties import Level, Properties, PropertyDescription

if TYPE_CHECKING:
    from .files import FilesInterface
    from .jobs import JobsInterface

logger = get_logger(__name__)


class Adaptor(ABC):
    """
    Abstract base class for backend integrations.

    An adaptor serves one family of backends, selected by URI scheme, and
    exposes up to two capabilities: job operations (`jobs`) and file
    operations (`files`). A capability the adaptor does not have is
    reported as None.

    Concrete adaptors describe themselves through the class attributes below.
    """

    NAME: str = ""
    DESCRIPTION: str = ""
    SCHEMES: tuple[str, ...] = ()
    PROPERTIES: tuple[PropertyDescription, ...] = ()

    # reject configuration keys the adaptor does not recognize
    STRICT: bool = False
    SUPPORTS_INTERACTIVE: bool = False
    SUPPORTS_DETACHED: bool = True
    LOCAL_STANDARD_STREAMS: bool = False

    @property
    def name(self) -> str:
        return self.NAME

    @property
    def description(self) -> str:
        return self.DESCRIPTION

    @property
    def schemes(self) -> tuple[str, ...]:
        return self.SCHEMES

    @property
    def supportedProperties(self) -> tuple[PropertyDescription, ...]:
        return self.PROPERTIES

    @property
    def strict(self) -> bool:
        return self.STRICT

    @property
    def supportsInteractive(self) -> bool:
        return self.SUPPORTS_INTERACTIVE

    @property
    def supportsDetached(self) -> bool:
        return self.SUPPORTS_DETACHED

    @property
    def localStandardStreams(self) -> bool:
        return self.LOCAL_STANDARD_STREAMS

    def supports(self, scheme: str) -> bool:
        """Return True if the adaptor handles locations with the given scheme (case-insensitive)."""
        return scheme.lower() in self.SCHEMES

    def jobs(self) -> "JobsInterface | None":
        """Return the job capability of the adaptor, or None if it has none."""
        return None

    def files(self) -> "FilesInterface | None":
        """Return the file capability of the adaptor, or None if it has none."""
        return None

    def end(self) -> None:
        """
        Release every resource held by the adaptor.

        The default implementation ends the jobs and files capabilities.
        """
        for capability in (self.jobs(), self.files()):
            if capability is not None:
                capability.end()

    def createProperties(
        self,
        defaults: Mapping[str, str] | None,
        overrides: Mapping[str, str] | None,
        level: Level,
    ) -> Properties:
        """
        Build the configuration of a new scheduler or filesystem.

        Engine-wide `defaults` are applied leniently: keys of another level are
        skipped. Explicit `overrides` are validated according to `strict`.

        Args:
            defaults (Mapping[str, str] | None): Engine-wide values for this adaptor.
            overrides (Mapping[str, str] | None): Values provided with the call.
            level (Level): Level of the configured entity.

        Returns:
            Properties: The merged configuration. Overrides take precedence.

        Raises:
            ConfigurationError: If an override is not valid for this adaptor.
        """
        lenient = Properties(
            self.PROPERTIES, defaults, level, strict=False, adaptor_name=self.NAME
        )
        return Properties.merge(
            self.PROPERTIES,
            lenient,
            overrides,
            level=level,
            strict=self.STRICT,
            adaptor_name=self.NAME,
        )

    def __str__(self) -> str:
        return self.NAME

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.NAME!r}, schemes={self.SCHEMES!r})"
