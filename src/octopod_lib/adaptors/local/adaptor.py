# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from octopod_lib.adaptors.interface import Adaptor
from octopod_lib.core.config import CFG
from octopod_lib.properties import Level, PropertyDescription

from .files import LocalFiles
from .jobs import ADAPTOR_NAME, SHELL_PROPERTY, LocalJobs


class LocalAdaptor(Adaptor):
    """
    Adaptor for the local machine: files on the local disk and jobs run as
    child processes of the current process.
    """

    NAME = ADAPTOR_NAME
    DESCRIPTION = "Runs jobs as local processes and accesses the local disk."
    SCHEMES = ("local", "file")
    PROPERTIES = (
        PropertyDescription(
            SHELL_PROPERTY,
            Level.SCHEDULER,
            CFG.local.shell,
            "Shell used to run the command lines of jobs.",
            str,
        ),
    )
    SUPPORTS_INTERACTIVE = False
    # jobs are terminated when their scheduler is closed
    SUPPORTS_DETACHED = False
    LOCAL_STANDARD_STREAMS = True

    def __init__(self):
        self._jobs = LocalJobs()
        self._files = LocalFiles()

    def jobs(self) -> LocalJobs:
        return self._jobs

    def files(self) -> LocalFiles:
        return self._files
