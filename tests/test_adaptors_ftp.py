# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import ftplib
from datetime import datetime
from unittest.mock import call, patch

import pytest

from octopod_lib.adaptors.ftp import FtpAdaptor
from octopod_lib.adaptors.ftp.files import PASSIVE_PROPERTY, TIMEOUT_PROPERTY
from octopod_lib.core.error import (
    AlreadyClosedError,
    BackendError,
    ConfigurationError,
    LocationError,
    NotFoundError,
    TransportError,
)
from octopod_lib.credentials import DefaultCredential, PasswordCredential
from octopod_lib.files import Pathname
from octopod_lib.properties import Level

DIRECTORIES = {"/home/alice", "/home/alice/data"}


def _cwd(path):
    if path not in DIRECTORIES:
        raise ftplib.error_perm(f"550 {path}: No such file or directory")
    return "250 OK"


def _voidcmd(command):
    if command.startswith("MDTM"):
        return "213 20250131120000"
    return "200 Type set to I"


@pytest.fixture
def ftp():
    with patch("octopod_lib.adaptors.ftp.files.FTP") as cls:
        instance = cls.return_value
        instance.pwd.return_value = "/home/alice"
        instance.cwd.side_effect = _cwd
        instance.voidcmd.side_effect = _voidcmd
        instance.size.return_value = 12
        instance.cls = cls
        yield instance


@pytest.fixture
def adaptor():
    ftp_adaptor = FtpAdaptor()
    yield ftp_adaptor
    ftp_adaptor.end()


def _open(adaptor, location="ftp://server", credential=None, overrides=None):
    properties = adaptor.createProperties(None, overrides, Level.FILESYSTEM)
    return adaptor.files().newFileSystem(
        location, credential or DefaultCredential(), properties
    )


def test_new_filesystem_anonymous_login(adaptor, ftp):
    filesystem = _open(adaptor)

    ftp.cls.assert_called_once_with(timeout=60)
    ftp.connect.assert_called_once_with("server", 21)
    ftp.login.assert_called_once_with("anonymous", "")
    ftp.set_pasv.assert_called_once_with(True)
    assert filesystem.entry_path == Pathname("/home/alice")
    assert filesystem.adaptor_name == "ftp"
    assert adaptor.files().isOpen(filesystem)


def test_new_filesystem_password_login_and_path(adaptor, ftp):
    filesystem = _open(
        adaptor,
        "ftp://server:2121/home/alice/data",
        PasswordCredential("alice", "secret"),
        {TIMEOUT_PROPERTY: "5", PASSIVE_PROPERTY: "false"},
    )

    ftp.cls.assert_called_once_with(timeout=5)
    ftp.connect.assert_called_once_with("server", 2121)
    ftp.login.assert_called_once_with("alice", "secret")
    ftp.set_pasv.assert_called_once_with(False)
    assert filesystem.entry_path == Pathname("/home/alice/data")


def test_new_filesystem_user_from_location(adaptor, ftp):
    _open(adaptor, "ftp://bob@server")

    ftp.login.assert_called_once_with("bob", "")


def test_new_filesystem_location_user_wins_over_credential(adaptor, ftp):
    _open(adaptor, "ftp://bob@server", DefaultCredential("carol"))

    ftp.login.assert_called_once_with("bob", "")


def test_new_filesystem_user_from_credential(adaptor, ftp):
    _open(adaptor, "ftp://server", DefaultCredential("carol"))

    ftp.login.assert_called_once_with("carol", "")


def test_new_filesystem_without_host_raises(adaptor, ftp):
    with pytest.raises(LocationError):
        _open(adaptor, "ftp:///data")

    ftp.connect.assert_not_called()


def test_new_filesystem_unknown_property_raises(adaptor, ftp):
    with pytest.raises(ConfigurationError):
        _open(adaptor, overrides={"ftp.bogus": "1"})

    ftp.connect.assert_not_called()


def test_new_filesystem_connection_failure_retries(adaptor, ftp):
    ftp.connect.side_effect = ConnectionRefusedError("refused")

    with patch("octopod_lib.core.retryer.sleep"):
        with pytest.raises(TransportError, match="Could not connect"):
            _open(adaptor)

    assert ftp.connect.call_count == 3


def test_new_filesystem_login_failure_closes_connection(adaptor, ftp):
    ftp.login.side_effect = ftplib.error_perm("530 Login incorrect.")

    with pytest.raises(TransportError, match="Login"):
        _open(adaptor, credential=PasswordCredential("alice", "wrong"))

    ftp.close.assert_called_once()


def test_new_filesystem_missing_path_raises_not_found(adaptor, ftp):
    with pytest.raises(NotFoundError):
        _open(adaptor, "ftp://server/nowhere")

    ftp.close.assert_called_once()


def test_get_attributes_of_directory(adaptor, ftp):
    filesystem = _open(adaptor)
    files = adaptor.files()

    attributes = files.getAttributes(files.newPath(filesystem, "data"))

    assert attributes.is_directory
    assert not attributes.is_regular_file
    assert ftp.cwd.call_args_list[-2:] == [call("/home/alice/data"), call("/home/alice")]


def test_get_attributes_of_file(adaptor, ftp):
    filesystem = _open(adaptor)
    files = adaptor.files()

    attributes = files.getAttributes(files.newPath(filesystem, "data/result.txt"))

    assert attributes.is_regular_file
    assert attributes.size == 12
    assert attributes.modified == datetime(2025, 1, 31, 12, 0, 0)
    ftp.size.assert_called_once_with("/home/alice/data/result.txt")


def test_get_attributes_of_missing_entry_raises(adaptor, ftp):
    ftp.size.side_effect = ftplib.error_perm("550 Could not get file size.")
    filesystem = _open(adaptor)
    files = adaptor.files()
    path = files.newPath(filesystem, "missing")

    with pytest.raises(NotFoundError):
        files.getAttributes(path)
    assert not files.exists(path)


def test_list_directory(adaptor, ftp):
    ftp.nlst.return_value = [
        "/home/alice/data/b.txt",
        "a.txt",
        ".",
        "..",
    ]
    filesystem = _open(adaptor)
    files = adaptor.files()
    directory = files.newPath(filesystem, "data")

    entries = files.listDirectory(directory)

    assert [e.getAbsolutePath() for e in entries] == [
        "/home/alice/data/a.txt",
        "/home/alice/data/b.txt",
    ]


def test_list_empty_directory_answering_550(adaptor, ftp):
    ftp.nlst.side_effect = ftplib.error_perm("550 No files found")
    filesystem = _open(adaptor)
    files = adaptor.files()

    assert files.listDirectory(files.newPath(filesystem, "data")) == []


def test_list_directory_of_file_raises(adaptor, ftp):
    filesystem = _open(adaptor)
    files = adaptor.files()

    with pytest.raises(BackendError, match="not a directory"):
        files.listDirectory(files.newPath(filesystem, "data/file.txt"))


def test_read_and_write(adaptor, ftp):
    def retrbinary(command, callback):
        assert command == "RETR /home/alice/out.txt"
        callback(b"hello ")
        callback(b"world")

    ftp.retrbinary.side_effect = retrbinary
    filesystem = _open(adaptor)
    files = adaptor.files()
    path = files.newPath(filesystem, "out.txt")

    assert files.readAllBytes(path) == b"hello world"

    files.write(path, b"data")
    files.write(path, b"more", append=True)

    commands = [c.args[0] for c in ftp.storbinary.call_args_list]
    assert commands == ["STOR /home/alice/out.txt", "APPE /home/alice/out.txt"]
    assert ftp.storbinary.call_args_list[1].args[1].getvalue() == b"more"


def test_create_directory_and_file(adaptor, ftp):
    ftp.size.side_effect = ftplib.error_perm("550 No such file")
    filesystem = _open(adaptor)
    files = adaptor.files()

    files.createDirectory(files.newPath(filesystem, "new"))
    files.createFile(files.newPath(filesystem, "empty.txt"))

    ftp.mkd.assert_called_once_with("/home/alice/new")
    assert ftp.storbinary.call_args.args[0] == "STOR /home/alice/empty.txt"


def test_create_existing_file_raises(adaptor, ftp):
    filesystem = _open(adaptor)
    files = adaptor.files()

    with pytest.raises(BackendError, match="already exists"):
        files.createFile(files.newPath(filesystem, "existing.txt"))


def test_delete(adaptor, ftp):
    filesystem = _open(adaptor)
    files = adaptor.files()

    files.delete(files.newPath(filesystem, "data"))
    files.delete(files.newPath(filesystem, "data/result.txt"))

    ftp.rmd.assert_called_once_with("/home/alice/data")
    ftp.delete.assert_called_once_with("/home/alice/data/result.txt")


def test_permission_denied_raises_backend_error(adaptor, ftp):
    ftp.mkd.side_effect = ftplib.error_perm("553 Permission denied")
    filesystem = _open(adaptor)
    files = adaptor.files()

    with pytest.raises(BackendError, match="Permission denied"):
        files.createDirectory(files.newPath(filesystem, "/etc/new"))


def test_broken_connection_raises_transport_error(adaptor, ftp):
    ftp.mkd.side_effect = EOFError()
    filesystem = _open(adaptor)
    files = adaptor.files()

    with pytest.raises(TransportError):
        files.createDirectory(files.newPath(filesystem, "new"))


def test_close_filesystem(adaptor, ftp):
    filesystem = _open(adaptor)
    files = adaptor.files()
    path = files.newPath(filesystem, "data")

    files.close(filesystem)

    ftp.quit.assert_called_once()
    ftp.close.assert_called_once()
    with pytest.raises(AlreadyClosedError):
        files.getAttributes(path)


def test_end_closes_everything_even_if_quit_fails(ftp):
    ftp.quit.side_effect = OSError("connection reset")
    ftp_adaptor = FtpAdaptor()
    first = _open(ftp_adaptor)
    second = _open(ftp_adaptor)

    ftp_adaptor.end()

    assert ftp.close.call_count == 2
    assert not ftp_adaptor.files().isOpen(first)
    assert not ftp_adaptor.files().isOpen(second)
