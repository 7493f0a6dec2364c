# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass, field
from datetime import datetime

from octopod_lib.credentials import Credential
from octopod_lib.properties import Properties

from .pathname import Pathname


@dataclass(frozen=True, eq=False)
class FileSystem:
    """
    Handle identifying one open connection to a storage backend.

    The handle is immutable. The live connection it refers to is kept by the
    adaptor and looked up by `unique_id`; once the filesystem is closed, the
    handle can no longer be used.

    Two handles are equal if they were issued by the same adaptor under the same id.
    """

    adaptor_name: str
    unique_id: str
    scheme: str
    location: str
    entry_path: Pathname
    credential: Credential | None = None
    properties: Properties = field(default_factory=Properties)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileSystem):
            return NotImplemented
        return (self.adaptor_name, self.unique_id) == (
            other.adaptor_name,
            other.unique_id,
        )

    def __hash__(self) -> int:
        return hash((self.adaptor_name, self.unique_id))


@dataclass(frozen=True)
class FilePath:
    """
    The address of an entry on a FileSystem.
    """

    filesystem: FileSystem
    pathname: Pathname

    def getAbsolutePath(self) -> str:
        return self.pathname.getAbsolutePath()

    def getParent(self) -> "FilePath":
        return FilePath(self.filesystem, self.pathname.getParent())

    def resolve(self, other: Pathname | str) -> "FilePath":
        return FilePath(self.filesystem, self.pathname.resolve(other))

    def __str__(self) -> str:
        return f"{self.filesystem.location}:{self.pathname.getAbsolutePath()}"


@dataclass(frozen=True)
class FileAttributes:
    """
    Attributes of a single filesystem entry.

    Attributes:
        is_directory (bool): Whether the entry is a directory.
        is_regular_file (bool): Whether the entry is a regular file.
        size (int): Size of the entry in bytes.
        modified (datetime | None): Time of the last modification, if known.
    """

    is_directory: bool
    is_regular_file: bool
    size: int = 0
    modified: datetime | None = None
