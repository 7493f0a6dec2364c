# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from octopod_lib.adaptors.interface import Adaptor

from .common import ADAPTOR_NAME, PROPERTIES, SCHEMES
from .jobs import GridEngineJobs


class GridEngineAdaptor(Adaptor):
    """
    Adaptor for Grid Engine (SGE, OGS, Son of Grid Engine) installations.

    Jobs are submitted with qsub and observed with qstat and qacct, either
    on the local machine or on a remote host reached through ssh.
    Files are not supported; use the ftp adaptor or a shared filesystem.
    """

    NAME = ADAPTOR_NAME
    DESCRIPTION = "Submits jobs to a Grid Engine installation, locally or over ssh."
    SCHEMES = SCHEMES
    PROPERTIES = PROPERTIES
    STRICT = True
    SUPPORTS_INTERACTIVE = False
    SUPPORTS_DETACHED = True
    LOCAL_STANDARD_STREAMS = False

    def __init__(self):
        self._jobs = GridEngineJobs()

    def jobs(self) -> GridEngineJobs:
        return self._jobs
