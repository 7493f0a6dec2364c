# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import threading
from collections.abc import Mapping
from typing import Self

from octopod_lib.adaptors import Adaptor, default_adaptors
from octopod_lib.core.error import AlreadyClosedError, ConfigurationError, NotFoundError
from octopod_lib.core.logger import get_logger
from octopod_lib.core.repeater import Repeater
from octopod_lib.credentials import Credential, combine_credentials
from octopod_lib.properties import Level, Properties

from .files import FilesEngine
from .jobs import JobsEngine

logger = get_logger(__name__)


class Engine:
    """
    Entry point of octopod: dispatches job and file operations to adaptors.

    The engine owns an explicit, ordered list of adaptors. Locations are
    routed to the first adaptor supporting their scheme; handles created by
    an adaptor are routed back to it by name.

    The engine also keeps a default credential and default configuration
    that apply to every scheduler and filesystem created through it, unless
    overridden by the call.

    Args:
        properties (Mapping[str, str] | None): Default configuration. Keys must
            be prefixed with the name of an adaptor (e.g. `gridengine.ssh.timeout`).
        credential (Credential | None): Default credential.
        adaptors (list[Adaptor] | None): Adaptors in lookup order. Defaults to
            all bundled adaptors.

    Raises:
        ConfigurationError: If a default property does not belong to any adaptor.
    """

    def __init__(
        self,
        properties: Mapping[str, str] | None = None,
        credential: Credential | None = None,
        adaptors: list[Adaptor] | None = None,
    ):
        # read-only after construction
        self._adaptors: tuple[Adaptor, ...] = tuple(
            adaptors if adaptors is not None else default_adaptors()
        )

        self._properties_lock = threading.Lock()
        self._credential_lock = threading.Lock()
        self._end_lock = threading.Lock()

        self._properties: dict[str, str] = {}
        self._credential = credential
        self._ended = False

        self.setDefaultProperties(properties)

        self._jobs = JobsEngine(self)
        self._files = FilesEngine(self)

        logger.debug(
            f"Created engine with adaptors: {', '.join(str(a) for a in self._adaptors)}."
        )

    def adaptorFor(self, scheme: str) -> Adaptor:
        """
        Return the first adaptor supporting `scheme`.

        Raises:
            NotFoundError: If no adaptor supports the scheme.
        """
        for adaptor in self._adaptors:
            if adaptor.supports(scheme):
                return adaptor

        raise NotFoundError(f"No adaptor for scheme '{scheme}'.")

    def adaptorByName(self, name: str) -> Adaptor:
        """
        Return the adaptor named `name`.

        Raises:
            NotFoundError: If there is no such adaptor.
        """
        for adaptor in self._adaptors:
            if adaptor.name == name:
                return adaptor

        raise NotFoundError(f"Unknown adaptor name '{name}'.")

    def getAdaptorInfos(self) -> list[Adaptor]:
        return list(self._adaptors)

    def getDefaultCredential(self) -> Credential | None:
        with self._credential_lock:
            return self._credential

    def setDefaultCredential(self, credential: Credential | None) -> None:
        with self._credential_lock:
            self._credential = credential

    def getDefaultProperties(self) -> dict[str, str]:
        """Return a copy of the default configuration."""
        with self._properties_lock:
            return dict(self._properties)

    def setDefaultProperties(self, properties: Mapping[str, str] | None) -> None:
        """
        Replace the default configuration.

        Raises:
            ConfigurationError: If a key does not belong to any adaptor.
        """
        properties = dict(properties or {})
        names = {adaptor.name for adaptor in self._adaptors}
        for key in properties:
            if key.split(".", 1)[0] not in names:
                raise ConfigurationError(f"Property '{key}' does not belong to any adaptor.")

        with self._properties_lock:
            self._properties = properties

    def getCombinedProperties(
        self,
        adaptor: Adaptor,
        overrides: Mapping[str, str] | None,
        level: Level,
    ) -> Properties:
        """
        Merge the defaults of `adaptor` with `overrides`, without changing the defaults.

        Raises:
            ConfigurationError: If `overrides` are not valid for the adaptor.
        """
        prefix = f"{adaptor.name}."
        defaults = {
            k: v for k, v in self.getDefaultProperties().items() if k.startswith(prefix)
        }
        return adaptor.createProperties(defaults, overrides, level)

    def getCombinedCredential(self, credential: Credential | None) -> Credential:
        """Return `credential` if set, the default credential otherwise."""
        return combine_credentials(self.getDefaultCredential(), credential)

    def jobs(self) -> JobsEngine:
        return self._jobs

    def files(self) -> FilesEngine:
        return self._files

    def isEnded(self) -> bool:
        with self._end_lock:
            return self._ended

    def checkOpen(self) -> None:
        """
        Raises:
            AlreadyClosedError: If the engine has been ended.
        """
        if self.isEnded():
            raise AlreadyClosedError("The engine has been ended.")

    def end(self) -> None:
        """
        Shut down all adaptors. Calling `end` again has no effect.

        A failing adaptor is logged and does not prevent the others from
        being shut down.
        """
        with self._end_lock:
            if self._ended:
                logger.debug("Engine already ended.")
                return
            self._ended = True

        repeater = Repeater(self._adaptors, lambda adaptor: adaptor.end())
        repeater.onException(Exception, _log_adaptor_end_failure)
        repeater.run()
        logger.debug("Engine ended.")

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.end()


def _log_adaptor_end_failure(exception: BaseException, repeater: Repeater) -> None:
    adaptor = repeater.items[repeater.current_iteration]
    logger.warning(f"Could not end adaptor '{adaptor}': {exception}")
