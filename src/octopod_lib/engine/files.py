# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from collections.abc import Mapping
from typing import TYPE_CHECKING

from octopod_lib.adaptors.interface import FilesInterface
from octopod_lib.core.error import LocationError, NotFoundError
from octopod_lib.core.location import Location
from octopod_lib.core.logger import get_logger
from octopod_lib.credentials import Credential
from octopod_lib.files import FileAttributes, FilePath, FileSystem, Pathname
from octopod_lib.properties import Level

if TYPE_CHECKING:
    from .engine import Engine

logger = get_logger(__name__)


class FilesEngine:
    """
    File operations of an engine.

    Filesystems are created by the adaptor matching the scheme of their
    location; every later operation is routed to the adaptor that created
    the filesystem.
    """

    def __init__(self, engine: "Engine"):
        self._engine = engine

    def newFileSystem(
        self,
        location: str,
        credential: Credential | None = None,
        properties: Mapping[str, str] | None = None,
    ) -> FileSystem:
        """
        Open the filesystem at `location`.

        Raises:
            LocationError: If the location is malformed or its scheme is not
                supported by an adaptor with file support.
            ConfigurationError: If the configuration is invalid.
            TransportError: If the storage cannot be reached.
        """
        self._engine.checkOpen()

        parsed = Location.parse(location)
        try:
            adaptor = self._engine.adaptorFor(parsed.scheme)
        except NotFoundError as e:
            raise LocationError(f"Scheme '{parsed.scheme}' is not supported.") from e

        files = adaptor.files()
        if files is None:
            raise LocationError(
                f"Adaptor does not support files, cannot use '{location}'.",
                adaptor.name,
            )

        filesystem = files.newFileSystem(
            location,
            self._engine.getCombinedCredential(credential),
            self._engine.getCombinedProperties(adaptor, properties, Level.FILESYSTEM),
        )
        logger.debug(f"Opened filesystem '{filesystem.unique_id}' for '{location}'.")
        return filesystem

    def close(self, filesystem: FileSystem) -> None:
        """
        Raises:
            AlreadyClosedError: If the filesystem has already been closed.
        """
        self._interface(filesystem).close(filesystem)
        logger.debug(f"Closed filesystem '{filesystem.unique_id}'.")

    def isOpen(self, filesystem: FileSystem) -> bool:
        return self._interface(filesystem).isOpen(filesystem)

    def newPath(self, filesystem: FileSystem, pathname: Pathname | str) -> FilePath:
        return self._interface(filesystem).newPath(filesystem, pathname)

    def createDirectory(self, path: FilePath) -> None:
        self._interface(path.filesystem).createDirectory(path)

    def createDirectories(self, path: FilePath) -> None:
        self._interface(path.filesystem).createDirectories(path)

    def createFile(self, path: FilePath) -> None:
        self._interface(path.filesystem).createFile(path)

    def delete(self, path: FilePath) -> None:
        self._interface(path.filesystem).delete(path)

    def exists(self, path: FilePath) -> bool:
        return self._interface(path.filesystem).exists(path)

    def getAttributes(self, path: FilePath) -> FileAttributes:
        return self._interface(path.filesystem).getAttributes(path)

    def listDirectory(self, path: FilePath) -> list[FilePath]:
        return self._interface(path.filesystem).listDirectory(path)

    def readAllBytes(self, path: FilePath) -> bytes:
        return self._interface(path.filesystem).readAllBytes(path)

    def write(self, path: FilePath, data: bytes, append: bool = False) -> None:
        self._interface(path.filesystem).write(path, data, append)

    def _interface(self, filesystem: FileSystem) -> FilesInterface:
        self._engine.checkOpen()
        files = self._engine.adaptorByName(filesystem.adaptor_name).files()
        if files is None:
            raise NotFoundError(
                "Adaptor does not support files.", filesystem.adaptor_name
            )
        return files
