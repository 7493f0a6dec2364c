# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from abc import ABC, abstractmethod

from octopod_lib.core.error import BackendError, NotFoundError
from octopod_lib.core.logger import get_logger
from octopod_lib.credentials import Credential
from octopod_lib.files import FileAttributes, FilePath, FileSystem, Pathname
from octopod_lib.properties import Properties

logger = get_logger(__name__)


class FilesInterface(ABC):
    """
    File capability of an adaptor.

    Paths passed to the operations are `FilePath`s whose filesystem was
    created by the same adaptor.

    All methods should raise an `OctopodError` subclass when encountering an error.
    """

    @abstractmethod
    def newFileSystem(
        self, location: str, credential: Credential, properties: Properties
    ) -> FileSystem:
        """
        Open a connection to the storage at `location` and register it.

        Raises:
            LocationError: If the location is not valid for this adaptor.
            TransportError: If the storage cannot be reached.
        """

    @abstractmethod
    def close(self, filesystem: FileSystem) -> None:
        """
        Close the filesystem.

        Raises:
            AlreadyClosedError: If the filesystem has already been closed.
        """

    @abstractmethod
    def isOpen(self, filesystem: FileSystem) -> bool:
        pass

    @abstractmethod
    def createDirectory(self, path: FilePath) -> None:
        """
        Create a single directory. Its parent must exist.

        Raises:
            BackendError: If the entry already exists or cannot be created.
        """

    @abstractmethod
    def createFile(self, path: FilePath) -> None:
        """
        Create an empty file.

        Raises:
            BackendError: If the entry already exists or cannot be created.
        """

    @abstractmethod
    def delete(self, path: FilePath) -> None:
        """
        Delete a file or an empty directory.

        Raises:
            NotFoundError: If the entry does not exist.
        """

    @abstractmethod
    def getAttributes(self, path: FilePath) -> FileAttributes:
        """
        Raises:
            NotFoundError: If the entry does not exist.
        """

    @abstractmethod
    def listDirectory(self, path: FilePath) -> list[FilePath]:
        """
        Return the entries of a directory.

        Raises:
            NotFoundError: If the directory does not exist.
        """

    @abstractmethod
    def readAllBytes(self, path: FilePath) -> bytes:
        pass

    @abstractmethod
    def write(self, path: FilePath, data: bytes, append: bool = False) -> None:
        """Write `data` into a file, creating it if needed."""

    @abstractmethod
    def end(self) -> None:
        """Close all filesystems of the adaptor. Failures are logged, not raised."""

    def newPath(self, filesystem: FileSystem, pathname: Pathname | str) -> FilePath:
        """
        Return the address of `pathname` on `filesystem`.

        A string not starting with a separator is resolved against the entry
        path of the filesystem. A `Pathname` is always taken as absolute.
        """
        if isinstance(pathname, str):
            absolute = pathname.startswith("/")
            pathname = Pathname(pathname)
            if not absolute:
                pathname = filesystem.entry_path.resolve(pathname)
        return FilePath(filesystem, pathname)

    def exists(self, path: FilePath) -> bool:
        try:
            self.getAttributes(path)
        except NotFoundError:
            return False
        return True

    def createDirectories(self, path: FilePath) -> None:
        """
        Create a directory together with all missing parents.

        Existing directories along the path are left untouched.
        """
        for prefix in path.pathname:
            current = FilePath(path.filesystem, prefix)
            if self.exists(current):
                if not self.getAttributes(current).is_directory:
                    raise BackendError(
                        f"'{current}' exists and is not a directory.",
                        path.filesystem.adaptor_name,
                    )
                continue
            self.createDirectory(current)
