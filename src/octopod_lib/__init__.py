# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
octopod: uniform access to batch schedulers and file stores.

A single `Engine` submits, polls and cancels jobs and manipulates files
across heterogeneous backends (local processes, Grid Engine reached
directly or through ssh, FTP servers) through one API. Each backend is
served by an adaptor selected by the scheme of the location.
"""

from .core.error import (
    AlreadyClosedError,
    BackendError,
    ConfigurationError,
    InvalidJobDescriptionError,
    LocationError,
    NotFoundError,
    OctopodError,
    ParseError,
    TransportError,
)
from .credentials import DefaultCredential, PasswordCredential
from .engine import Engine
from .files import FilePath, FileSystem, Pathname
from .jobs import Job, JobDescription, JobState, JobStatus, QueueStatus, Scheduler

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "AlreadyClosedError",
    "BackendError",
    "ConfigurationError",
    "DefaultCredential",
    "Engine",
    "FilePath",
    "FileSystem",
    "InvalidJobDescriptionError",
    "Job",
    "JobDescription",
    "JobState",
    "JobStatus",
    "LocationError",
    "NotFoundError",
    "OctopodError",
    "ParseError",
    "PasswordCredential",
    "Pathname",
    "QueueStatus",
    "Scheduler",
    "TransportError",
]
