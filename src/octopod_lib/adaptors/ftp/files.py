# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
File operations on FTP servers.

Each filesystem owns one control connection. `ftplib.FTP` is not safe for
concurrent use, so every operation on a filesystem holds its lock.
"""

import ftplib
import io
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from ftplib import FTP

from octopod_lib.adaptors.interface import FilesInterface, HandleRegistry
from octopod_lib.core.config import CFG
from octopod_lib.core.error import (
    BackendError,
    LocationError,
    NotFoundError,
    OctopodError,
    TransportError,
)
from octopod_lib.core.location import Location
from octopod_lib.core.logger import get_logger
from octopod_lib.core.repeater import Repeater
from octopod_lib.core.retryer import Retryer
from octopod_lib.credentials import Credential, DefaultCredential, PasswordCredential
from octopod_lib.files import FileAttributes, FilePath, FileSystem, Pathname
from octopod_lib.properties import Level, Properties, PropertyDescription

logger = get_logger(__name__)

ADAPTOR_NAME = "ftp"
TIMEOUT_PROPERTY = "ftp.timeout"
PASSIVE_PROPERTY = "ftp.passive"

PROPERTIES = (
    PropertyDescription(
        TIMEOUT_PROPERTY,
        Level.FILESYSTEM,
        str(CFG.ftp.timeout),
        "Socket timeout in seconds.",
        int,
    ),
    PropertyDescription(
        PASSIVE_PROPERTY,
        Level.FILESYSTEM,
        "true",
        "Use passive mode for data transfers.",
        bool,
    ),
)

# FTP reply code for 'file unavailable'
_FILE_UNAVAILABLE = "550"


@dataclass
class FileSystemInfo:
    """
    Live connection of one FTP filesystem.
    """

    ftp: FTP
    lock: threading.Lock = field(default_factory=threading.Lock)


class FtpFiles(FilesInterface):
    """
    Implementation of FilesInterface for FTP servers.
    """

    def __init__(self):
        self._filesystems: HandleRegistry[FileSystemInfo] = HandleRegistry(
            ADAPTOR_NAME
        )

    def newFileSystem(
        self, location: str, credential: Credential, properties: Properties
    ) -> FileSystem:
        parsed = Location.parse(location, ADAPTOR_NAME)
        if parsed.host is None:
            raise LocationError(
                f"Location '{location}' does not specify a host.", ADAPTOR_NAME
            )

        ftp = self._connect(parsed, properties)
        try:
            self._login(ftp, parsed, credential)
            ftp.set_pasv(properties.getBoolean(PASSIVE_PROPERTY))
            entry = Pathname(ftp.pwd())
            if not parsed.path.isEmpty():
                ftp.cwd(parsed.path.getAbsolutePath())
                entry = parsed.path
        except (ftplib.Error, OSError, EOFError) as e:
            ftp.close()
            raise _translate(e, f"open '{location}'") from e
        except OctopodError:
            ftp.close()
            raise

        unique_id = self._filesystems.add(FileSystemInfo(ftp))
        logger.info(f"Connected to FTP server '{parsed.host}'.")
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
        _disconnect(self._filesystems.remove(filesystem.unique_id))

    def isOpen(self, filesystem: FileSystem) -> bool:
        return filesystem.unique_id in self._filesystems

    def createDirectory(self, path: FilePath) -> None:
        with self._client(path) as ftp:
            self._run(ftp.mkd, path, "create directory")

    def createFile(self, path: FilePath) -> None:
        if self.exists(path):
            raise BackendError(f"'{path}' already exists.", ADAPTOR_NAME)

        with self._client(path) as ftp:
            self._run(
                ftp.storbinary,
                path,
                "create file",
                f"STOR {path.getAbsolutePath()}",
                io.BytesIO(b""),
            )

    def delete(self, path: FilePath) -> None:
        attributes = self.getAttributes(path)
        with self._client(path) as ftp:
            if attributes.is_directory:
                self._run(ftp.rmd, path, "delete directory")
            else:
                self._run(ftp.delete, path, "delete file")

    def getAttributes(self, path: FilePath) -> FileAttributes:
        with self._client(path) as ftp:
            if self._isDirectory(ftp, path):
                return FileAttributes(is_directory=True, is_regular_file=False)

            try:
                ftp.voidcmd("TYPE I")
                size = ftp.size(path.getAbsolutePath())
            except (ftplib.Error, OSError, EOFError) as e:
                raise _translate(e, f"get attributes of '{path}'") from e

            return FileAttributes(
                is_directory=False,
                is_regular_file=True,
                size=size or 0,
                modified=_modification_time(ftp, path),
            )

    def listDirectory(self, path: FilePath) -> list[FilePath]:
        if not self.getAttributes(path).is_directory:
            raise BackendError(f"'{path}' is not a directory.", ADAPTOR_NAME)

        with self._client(path) as ftp:
            try:
                entries = ftp.nlst(path.getAbsolutePath())
            except ftplib.error_perm as e:
                # some servers answer 550 for an empty directory
                if str(e).startswith(_FILE_UNAVAILABLE):
                    return []
                raise _translate(e, f"list '{path}'") from e
            except (ftplib.Error, OSError, EOFError) as e:
                raise _translate(e, f"list '{path}'") from e

        # servers return either bare names or full paths
        names = {Pathname(entry).getFileNameAsString() for entry in entries}
        names -= {None, ".", ".."}
        return [path.resolve(name) for name in sorted(names)]

    def readAllBytes(self, path: FilePath) -> bytes:
        chunks: list[bytes] = []
        with self._client(path) as ftp:
            self._run(
                ftp.retrbinary,
                path,
                "read",
                f"RETR {path.getAbsolutePath()}",
                chunks.append,
            )
        return b"".join(chunks)

    def write(self, path: FilePath, data: bytes, append: bool = False) -> None:
        command = "APPE" if append else "STOR"
        with self._client(path) as ftp:
            self._run(
                ftp.storbinary,
                path,
                "write",
                f"{command} {path.getAbsolutePath()}",
                io.BytesIO(data),
            )

    def end(self) -> None:
        repeater = Repeater(self._filesystems.removeAll(), _disconnect)
        repeater.onException(OSError, _log_end_failure)
        repeater.run()

    def _connect(self, location: Location, properties: Properties) -> FTP:
        """
        Open the control connection, retrying on network errors.

        Raises:
            TransportError: If the server cannot be reached.
        """
        ftp = FTP(timeout=properties.getInteger(TIMEOUT_PROPERTY))
        port = location.port or CFG.ftp.default_port
        try:
            Retryer(
                ftp.connect,
                location.host,
                port,
                max_tries=CFG.ftp.connect_tries,
                wait_seconds=CFG.ftp.connect_wait,
                retry_on=(OSError, EOFError),
            ).run()
        except (ftplib.Error, OSError, EOFError) as e:
            raise TransportError(
                f"Could not connect to '{location.host}:{port}': {e}.", ADAPTOR_NAME
            ) from e

        return ftp

    def _login(self, ftp: FTP, location: Location, credential: Credential) -> None:
        if isinstance(credential, PasswordCredential):
            user, password = credential.username, credential.password
        elif isinstance(credential, DefaultCredential):
            user, password = location.user or credential.username or "anonymous", ""
        else:
            raise TransportError(
                f"Credential of type '{type(credential).__name__}' is not supported.",
                ADAPTOR_NAME,
            )

        try:
            ftp.login(user, password)
        except ftplib.error_perm as e:
            raise TransportError(
                f"Login to '{location.host}' as '{user}' failed: {e}.", ADAPTOR_NAME
            ) from e

    @contextmanager
    def _client(self, path: FilePath) -> Iterator[FTP]:
        """
        Yield the FTP client of the filesystem of `path` while holding its lock.

        Raises:
            AlreadyClosedError: If the filesystem has been closed.
        """
        info = self._filesystems.get(path.filesystem.unique_id)
        with info.lock:
            yield info.ftp

    def _run(self, method, path: FilePath, action: str, *args):
        """
        Call an ftplib method and translate its errors.

        Without `args`, the method is called with the absolute path only.
        """
        try:
            return method(*(args or (path.getAbsolutePath(),)))
        except (ftplib.Error, OSError, EOFError) as e:
            raise _translate(e, f"{action} '{path}'") from e

    def _isDirectory(self, ftp: FTP, path: FilePath) -> bool:
        """
        Check whether `path` is a directory by trying to enter it.
        """
        try:
            original = ftp.pwd()
            try:
                ftp.cwd(path.getAbsolutePath())
            except ftplib.error_perm:
                return False
            ftp.cwd(original)
            return True
        except (ftplib.Error, OSError, EOFError) as e:
            raise _translate(e, f"inspect '{path}'") from e


def _translate(error: BaseException, action: str) -> OctopodError:
    """
    Map an ftplib error to the matching octopod error.
    """
    if isinstance(error, ftplib.error_perm):
        if str(error).startswith(_FILE_UNAVAILABLE):
            return NotFoundError(f"Could not {action}: {error}.", ADAPTOR_NAME)
        return BackendError(f"Could not {action}: {error}.", ADAPTOR_NAME)

    return TransportError(f"Could not {action}: {error}.", ADAPTOR_NAME)


def _modification_time(ftp: FTP, path: FilePath) -> datetime | None:
    try:
        # e.g. '213 20250131120000'
        reply = ftp.voidcmd(f"MDTM {path.getAbsolutePath()}")
        return datetime.strptime(reply.split()[1][:14], "%Y%m%d%H%M%S")
    except (ftplib.Error, IndexError, ValueError) as e:
        logger.debug(f"Modification time of '{path}' is not available: {e}")
        return None


def _disconnect(info: FileSystemInfo) -> None:
    """Close the connection politely, falling back to closing the socket."""
    with info.lock:
        try:
            info.ftp.quit()
        except (ftplib.Error, OSError, EOFError) as e:
            logger.debug(f"Could not quit the FTP session cleanly: {e}")
        finally:
            info.ftp.close()


def _log_end_failure(exception: BaseException, repeater: Repeater) -> None:
    logger.warning(
        f"Could not close FTP filesystem {repeater.current_iteration}: {exception}"
    )
