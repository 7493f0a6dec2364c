# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from .adaptor import GridEngineAdaptor
from .connection import SchedulerConnection
from .jobs import GridEngineJobs

__all__ = [
    "GridEngineAdaptor",
    "GridEngineJobs",
    "SchedulerConnection",
]
