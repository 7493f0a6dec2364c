# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass, field

import yaml

from octopod_lib.core.common import load_yaml_dumper
from octopod_lib.core.error import OctopodError

from .scheduler import Scheduler
from .states import JobState

Dumper: type[yaml.Dumper] = load_yaml_dumper()


@dataclass(frozen=True)
class JobDescription:
    """
    Everything needed to submit a job.

    Attributes:
        executable (str | None): Program to run.
        arguments (list[str]): Arguments of the program.
        environment (dict[str, str]): Environment variables exported to the job.
        working_directory (str | None): Directory in which the job is started.
        stdin (str | None): File to read standard input from.
        stdout (str | None): File to write standard output to.
        stderr (str | None): File to write standard error to.
        queue_name (str | None): Target queue. The default queue of the scheduler if not set.
        max_time (int): Maximal run time in minutes. Zero or negative means unlimited.
        node_count (int): Number of nodes requested.
        processes_per_node (int): Number of processes per node.
        interactive (bool): Whether the standard streams of the job should be
            connected to the caller.
        job_options (dict[str, str]): Adaptor-specific options.
    """

    executable: str | None = None
    arguments: list[str] = field(default_factory=list)
    environment: dict[str, str] = field(default_factory=dict)
    working_directory: str | None = None
    stdin: str | None = None
    stdout: str | None = None
    stderr: str | None = None
    queue_name: str | None = None
    max_time: int = 15
    node_count: int = 1
    processes_per_node: int = 1
    interactive: bool = False
    job_options: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, eq=False)
class Job:
    """
    A job submitted to a scheduler.

    Two jobs are equal if they were submitted to the same scheduler under the same identifier.
    """

    scheduler: Scheduler
    identifier: str
    description: JobDescription | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Job):
            return NotImplemented
        return (self.scheduler, self.identifier) == (
            other.scheduler,
            other.identifier,
        )

    def __hash__(self) -> int:
        return hash((self.scheduler, self.identifier))

    def __str__(self) -> str:
        return f"{self.identifier}@{self.scheduler.location}"


@dataclass(frozen=True)
class JobStatus:
    """
    Snapshot of the state of a job at the moment it was queried.

    A status is never cached; query the scheduler again for fresh information.

    Attributes:
        job (Job): The job the status belongs to.
        state (JobState): State of the job.
        exit_code (int | None): Exit code of the job, if it is done and the code is known.
        failure (OctopodError | None): Error that terminated the job or prevented
            its status from being determined.
        done (bool): Whether the job has finished.
        info (dict[str, str]): Raw information reported by the backend.
    """

    job: Job
    state: JobState
    exit_code: int | None = None
    failure: OctopodError | None = None
    done: bool = False
    info: dict[str, str] = field(default_factory=dict)

    def isRunning(self) -> bool:
        return self.state == JobState.RUNNING

    def hasFailure(self) -> bool:
        return self.failure is not None

    def isOutcomeKnown(self) -> bool:
        """
        Return False if the job is done, but neither its exit code nor a failure is known.

        This happens when the job disappeared from the scheduler and no
        accounting information could be obtained for it.
        """
        return not self.done or self.exit_code is not None or self.failure is not None

    def toYaml(self) -> str:
        """
        Return the status as a YAML document.
        """
        data = {
            "job": self.job.identifier,
            "scheduler": self.job.scheduler.location,
            "state": str(self.state),
            "done": self.done,
            "exit_code": self.exit_code,
            "failure": str(self.failure) if self.failure else None,
            "info": dict(self.info),
        }
        return yaml.dump(data, default_flow_style=False, sort_keys=False, Dumper=Dumper)


@dataclass(frozen=True)
class QueueStatus:
    """
    Snapshot of the state of a queue at the moment it was queried.

    Attributes:
        scheduler (Scheduler): The scheduler owning the queue.
        queue_name (str): Name of the queue.
        failure (OctopodError | None): Error that prevented the status from being determined.
        info (dict[str, str]): Raw information reported by the backend.
    """

    scheduler: Scheduler
    queue_name: str
    failure: OctopodError | None = None
    info: dict[str, str] = field(default_factory=dict)

    def hasFailure(self) -> bool:
        return self.failure is not None

    def toYaml(self) -> str:
        data = {
            "queue": self.queue_name,
            "scheduler": self.scheduler.location,
            "failure": str(self.failure) if self.failure else None,
            "info": dict(self.info),
        }
        return yaml.dump(data, default_flow_style=False, sort_keys=False, Dumper=Dumper)
