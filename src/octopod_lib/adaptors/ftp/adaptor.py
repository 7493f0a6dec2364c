# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from octopod_lib.adaptors.interface import Adaptor

from .files import ADAPTOR_NAME, PROPERTIES, FtpFiles


class FtpAdaptor(Adaptor):
    """
    Adaptor for files on FTP servers. Jobs are not supported.
    """

    NAME = ADAPTOR_NAME
    DESCRIPTION = "Accesses files on FTP servers."
    SCHEMES = ("ftp",)
    PROPERTIES = PROPERTIES
    STRICT = True
    SUPPORTS_DETACHED = False

    def __init__(self):
        self._files = FtpFiles()

    def files(self) -> FtpFiles:
        return self._files
