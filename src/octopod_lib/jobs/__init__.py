# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Schedulers, jobs and the snapshots describing their state.
"""

from .job import Job, JobDescription, JobStatus, QueueStatus
from .scheduler import Scheduler
from .states import JobState

__all__ = [
    "Job",
    "JobDescription",
    "JobState",
    "JobStatus",
    "QueueStatus",
    "Scheduler",
]
