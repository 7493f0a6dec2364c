# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from datetime import datetime
from pathlib import Path

from octopod_lib.adaptors.interface import FilesInterface, HandleRegistry
from octopod_lib.core.error import (
    BackendError,
    LocationError,
    NotFoundError,
)
from octopod_lib.core.location import Location
from octopod_lib.core.logger import get_logger
from octopod_lib.credentials import Credential
from octopod_lib.files import FileAttributes, FilePath, FileSystem, Pathname
from octopod_lib.properties import Properties

from .jobs import ADAPTOR_NAME

logger = get_logger(__name__)


class LocalFiles(FilesInterface):
    """
    Implementation of FilesInterface for the local disk.

    The entry path of a local filesystem is the path given in its location,
    or the current working directory if the location has none.
    """

    def __init__(self):
        self._filesystems: HandleRegistry[Path] = HandleRegistry(ADAPTOR_NAME)

    def newFileSystem(
        self, location: str, credential: Credential, properties: Properties
    ) -> FileSystem:
        parsed = Location.parse(location, ADAPTOR_NAME)
        if parsed.host not in (None, "localhost"):
            raise LocationError(
                f"Location '{location}' does not refer to the local machine.",
                ADAPTOR_NAME,
            )

        entry = (
            parsed.path if not parsed.path.isEmpty() else Pathname(str(Path.cwd()))
        )
        if not Path(entry.getAbsolutePath()).is_dir():
            raise NotFoundError(
                f"Directory '{entry.getAbsolutePath()}' does not exist.", ADAPTOR_NAME
            )

        unique_id = self._filesystems.add(Path(entry.getAbsolutePath()))
        return FileSystem(
            adaptor_name=ADAPTOR_NAME,
            unique_id=unique_id,
            scheme=parsed.scheme,
            location=location,
            entry_path=entry,
            credential=credential,
            properties=properties,
        )

    def close(self, filesystem: FileSystem) -> None:
        self._filesystems.remove(filesystem.unique_id)

    def isOpen(self, filesystem: FileSystem) -> bool:
        return filesystem.unique_id in self._filesystems

    def createDirectory(self, path: FilePath) -> None:
        target = self._resolve(path)
        try:
            target.mkdir()
        except FileNotFoundError as e:
            raise NotFoundError(
                f"Parent directory of '{path}' does not exist.", ADAPTOR_NAME
            ) from e
        except OSError as e:
            raise BackendError(
                f"Could not create directory '{path}': {e}.", ADAPTOR_NAME
            ) from e

    def createFile(self, path: FilePath) -> None:
        target = self._resolve(path)
        try:
            target.touch(exist_ok=False)
        except FileNotFoundError as e:
            raise NotFoundError(
                f"Parent directory of '{path}' does not exist.", ADAPTOR_NAME
            ) from e
        except OSError as e:
            raise BackendError(f"Could not create file '{path}': {e}.", ADAPTOR_NAME) from e

    def delete(self, path: FilePath) -> None:
        target = self._resolve(path)
        try:
            if target.is_dir() and not target.is_symlink():
                target.rmdir()
            else:
                target.unlink()
        except FileNotFoundError as e:
            raise NotFoundError(f"'{path}' does not exist.", ADAPTOR_NAME) from e
        except OSError as e:
            raise BackendError(f"Could not delete '{path}': {e}.", ADAPTOR_NAME) from e

    def getAttributes(self, path: FilePath) -> FileAttributes:
        target = self._resolve(path)
        try:
            stat = target.stat()
        except FileNotFoundError as e:
            raise NotFoundError(f"'{path}' does not exist.", ADAPTOR_NAME) from e
        except OSError as e:
            raise BackendError(
                f"Could not get attributes of '{path}': {e}.", ADAPTOR_NAME
            ) from e

        return FileAttributes(
            is_directory=target.is_dir(),
            is_regular_file=target.is_file(),
            size=stat.st_size,
            modified=datetime.fromtimestamp(stat.st_mtime),
        )

    def listDirectory(self, path: FilePath) -> list[FilePath]:
        target = self._resolve(path)
        try:
            names = sorted(entry.name for entry in target.iterdir())
        except FileNotFoundError as e:
            raise NotFoundError(f"'{path}' does not exist.", ADAPTOR_NAME) from e
        except OSError as e:
            raise BackendError(f"Could not list '{path}': {e}.", ADAPTOR_NAME) from e

        return [path.resolve(name) for name in names]

    def readAllBytes(self, path: FilePath) -> bytes:
        target = self._resolve(path)
        try:
            return target.read_bytes()
        except FileNotFoundError as e:
            raise NotFoundError(f"'{path}' does not exist.", ADAPTOR_NAME) from e
        except OSError as e:
            raise BackendError(f"Could not read '{path}': {e}.", ADAPTOR_NAME) from e

    def write(self, path: FilePath, data: bytes, append: bool = False) -> None:
        target = self._resolve(path)
        try:
            with target.open("ab" if append else "wb") as f:
                f.write(data)
        except FileNotFoundError as e:
            raise NotFoundError(
                f"Parent directory of '{path}' does not exist.", ADAPTOR_NAME
            ) from e
        except OSError as e:
            raise BackendError(f"Could not write '{path}': {e}.", ADAPTOR_NAME) from e

    def end(self) -> None:
        # nothing to release apart from the registry entries
        self._filesystems.removeAll()

    def _resolve(self, path: FilePath) -> Path:
        """
        Return the local path of `path`, checking that its filesystem is open.

        Raises:
            AlreadyClosedError: If the filesystem has been closed.
        """
        self._filesystems.get(path.filesystem.unique_id)
        return Path(path.getAbsolutePath())
