# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Jobs running as processes on the local machine.

A local scheduler has two queues: jobs in `single` run one after another,
jobs in `multi` all start immediately. Queued jobs are started lazily,
whenever the scheduler is asked about its jobs or a job is submitted.
"""

import os
import shlex
import subprocess
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO

from octopod_lib.adaptors.interface import HandleRegistry, JobsInterface
from octopod_lib.core.config import CFG
from octopod_lib.core.error import (
    BackendError,
    InvalidJobDescriptionError,
    LocationError,
    NotFoundError,
    OctopodError,
)
from octopod_lib.core.location import Location
from octopod_lib.core.logger import get_logger
from octopod_lib.core.repeater import Repeater
from octopod_lib.credentials import Credential
from octopod_lib.jobs import (
    Job,
    JobDescription,
    JobState,
    JobStatus,
    QueueStatus,
    Scheduler,
)
from octopod_lib.properties import Properties

logger = get_logger(__name__)

ADAPTOR_NAME = "local"
SHELL_PROPERTY = "local.shell"

SINGLE_QUEUE = "single"
MULTI_QUEUE = "multi"
QUEUE_NAMES = (SINGLE_QUEUE, MULTI_QUEUE)


@dataclass
class LocalProcess:
    """
    A job of a local scheduler together with the process executing it.
    """

    job: Job
    queue: str
    process: subprocess.Popen | None = None
    started: float | None = None
    starting: bool = False
    cancelled: bool = False
    timed_out: bool = False
    start_error: str | None = None

    def isFinished(self) -> bool:
        if self.cancelled:
            return True
        return self.process is not None and self.process.poll() is not None

    def toStatus(self) -> JobStatus:
        if self.process is None:
            if self.start_error is not None:
                return JobStatus(
                    self.job,
                    JobState.FAILED,
                    failure=BackendError(self.start_error, ADAPTOR_NAME),
                    done=True,
                )
            if self.cancelled:
                return JobStatus(
                    self.job,
                    JobState.KILLED,
                    failure=BackendError("Job was cancelled.", ADAPTOR_NAME),
                    done=True,
                )
            return JobStatus(self.job, JobState.PENDING, info={"queue": self.queue})

        exit_code = self.process.poll()
        info = {"queue": self.queue, "pid": str(self.process.pid)}
        if exit_code is None:
            return JobStatus(self.job, JobState.RUNNING, info=info)

        if self.cancelled or self.timed_out:
            reason = "exceeded its maximal run time" if self.timed_out else "was cancelled"
            return JobStatus(
                self.job,
                JobState.KILLED,
                exit_code=exit_code,
                failure=BackendError(f"Job {reason}.", ADAPTOR_NAME),
                done=True,
                info=info,
            )

        return JobStatus(
            self.job, JobState.DONE, exit_code=exit_code, done=True, info=info
        )


@dataclass
class LocalSchedulerState:
    """
    Live state of one local scheduler.

    Finished jobs are kept in `processes` until the scheduler is closed, so their
    final status can still be queried. The lock guards `processes` and `counter`
    and is never held while a process is being spawned.
    """

    shell: str
    processes: dict[str, LocalProcess] = field(default_factory=dict)
    counter: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock)


class LocalJobs(JobsInterface):
    """
    Implementation of JobsInterface running jobs as local processes.
    """

    ADAPTOR_NAME = ADAPTOR_NAME

    def __init__(self):
        self._schedulers: HandleRegistry[LocalSchedulerState] = HandleRegistry(
            ADAPTOR_NAME
        )

    def newScheduler(
        self, location: str, credential: Credential, properties: Properties
    ) -> Scheduler:
        parsed = Location.parse(location, ADAPTOR_NAME)
        if parsed.host not in (None, "localhost"):
            raise LocationError(
                f"Location '{location}' does not refer to the local machine.",
                ADAPTOR_NAME,
            )
        if not parsed.path.isEmpty():
            raise LocationError(
                f"Location '{location}' must not contain a path.", ADAPTOR_NAME
            )

        state = LocalSchedulerState(shell=properties.getProperty(SHELL_PROPERTY))
        unique_id = self._schedulers.add(state)

        return Scheduler(
            adaptor_name=ADAPTOR_NAME,
            unique_id=unique_id,
            location=location,
            queue_names=QUEUE_NAMES,
            credential=credential,
            properties=properties,
            local_standard_streams=True,
            detached_jobs=False,
        )

    def close(self, scheduler: Scheduler) -> None:
        state = self._schedulers.remove(scheduler.unique_id)
        self._terminateAll(state)

    def isOpen(self, scheduler: Scheduler) -> bool:
        return scheduler.unique_id in self._schedulers

    def getQueueNames(self, scheduler: Scheduler) -> list[str]:
        self._state(scheduler)
        return list(QUEUE_NAMES)

    def getDefaultQueueName(self, scheduler: Scheduler) -> str:
        self._state(scheduler)
        return SINGLE_QUEUE

    def submitJob(self, scheduler: Scheduler, description: JobDescription) -> Job:
        state = self._state(scheduler)
        queue = self._checkDescription(description)

        with state.lock:
            job_id = str(state.counter)
            state.counter += 1
            job = Job(scheduler, job_id, description)
            state.processes[job_id] = LocalProcess(job, queue)

        logger.debug(f"Queued local job '{job_id}' in queue '{queue}'.")
        self._update(state)
        return job

    def cancelJob(self, job: Job) -> None:
        state = self._state(job.scheduler)
        local = self._process(state, job)

        with state.lock:
            if local.isFinished():
                logger.debug(f"Job '{job}' already finished, nothing to cancel.")
                return
            local.cancelled = True

        if local.process is not None:
            _terminate(local.process)

    def getJobStatuses(self, jobs: list[Job]) -> list[JobStatus]:
        statuses = []
        for job in jobs:
            try:
                state = self._state(job.scheduler)
                self._update(state)
                statuses.append(self._process(state, job).toStatus())
            except OctopodError as e:
                statuses.append(self._failedStatus(job, e))

        return statuses

    def getJobs(self, scheduler: Scheduler, queues: list[str]) -> list[Job]:
        state = self._state(scheduler)
        for queue in queues:
            if queue not in QUEUE_NAMES:
                raise NotFoundError(f"Queue '{queue}' does not exist.", ADAPTOR_NAME)

        with state.lock:
            return [
                local.job
                for local in state.processes.values()
                if not queues or local.queue in queues
            ]

    def getQueueStatuses(
        self, scheduler: Scheduler, queues: list[str]
    ) -> list[QueueStatus]:
        state = self._state(scheduler)
        self._update(state)

        statuses = []
        for queue in queues or list(QUEUE_NAMES):
            if queue not in QUEUE_NAMES:
                statuses.append(
                    QueueStatus(
                        scheduler,
                        queue,
                        failure=NotFoundError(
                            f"Queue '{queue}' does not exist.", ADAPTOR_NAME
                        ),
                    )
                )
                continue

            with state.lock:
                counts = {"pending": 0, "running": 0}
                for local in state.processes.values():
                    if local.queue == queue and not local.isFinished():
                        key = "pending" if local.process is None else "running"
                        counts[key] += 1

            statuses.append(
                QueueStatus(scheduler, queue, info={k: str(v) for k, v in counts.items()})
            )

        return statuses

    def end(self) -> None:
        repeater = Repeater(self._schedulers.removeAll(), self._terminateAll)
        repeater.onException(OctopodError, _log_end_failure)
        repeater.onException(OSError, _log_end_failure)
        repeater.run()

    def _state(self, scheduler: Scheduler) -> LocalSchedulerState:
        return self._schedulers.get(scheduler.unique_id)

    def _process(self, state: LocalSchedulerState, job: Job) -> LocalProcess:
        with state.lock:
            try:
                return state.processes[job.identifier]
            except KeyError:
                pass

        raise NotFoundError(f"Job '{job.identifier}' does not exist.", ADAPTOR_NAME)

    def _checkDescription(self, description: JobDescription) -> str:
        """
        Check that the job can run locally and return its queue.

        Raises:
            InvalidJobDescriptionError: If it cannot.
        """
        if description.interactive:
            raise InvalidJobDescriptionError(
                "Interactive jobs are not supported.", ADAPTOR_NAME
            )
        if not description.executable:
            raise InvalidJobDescriptionError(
                "Job description does not specify an executable.", ADAPTOR_NAME
            )
        if description.node_count != 1:
            raise InvalidJobDescriptionError(
                "Local jobs can only run on a single node.", ADAPTOR_NAME
            )
        if description.job_options:
            raise InvalidJobDescriptionError(
                f"Unknown job options: {', '.join(description.job_options)}.",
                ADAPTOR_NAME,
            )

        queue = description.queue_name or SINGLE_QUEUE
        if queue not in QUEUE_NAMES:
            raise InvalidJobDescriptionError(
                f"Queue '{queue}' does not exist. Available queues: {', '.join(QUEUE_NAMES)}.",
                ADAPTOR_NAME,
            )
        return queue

    def _update(self, state: LocalSchedulerState) -> None:
        """
        Enforce maximal run times and start queued jobs that may run now.
        """
        to_start: list[LocalProcess] = []
        with state.lock:
            now = time.monotonic()
            single_busy = False
            for local in state.processes.values():
                if local.starting and local.queue == SINGLE_QUEUE:
                    single_busy = True
                if local.process is None or local.isFinished():
                    continue

                max_time = local.job.description.max_time
                if max_time > 0 and now - local.started > max_time * 60:
                    logger.info(f"Job '{local.job}' exceeded its maximal run time.")
                    local.timed_out = True
                    local.process.kill()
                elif local.queue == SINGLE_QUEUE:
                    single_busy = True

            for local in state.processes.values():
                if local.process is not None or local.starting or local.cancelled:
                    continue
                if local.queue == SINGLE_QUEUE:
                    if single_busy:
                        continue
                    single_busy = True
                local.starting = True
                to_start.append(local)

        for local in to_start:
            self._start(state, local)

    def _start(self, state: LocalSchedulerState, local: LocalProcess) -> None:
        description = local.job.description
        workdir = Path(description.working_directory or Path.cwd())
        command = shlex.join([description.executable, *description.arguments])

        streams: list[IO] = []
        try:
            stdin = _open(workdir, description.stdin, "rb", streams)
            stdout = _open(workdir, description.stdout, "wb", streams)
            stderr = _open(workdir, description.stderr, "wb", streams)

            process = subprocess.Popen(
                [state.shell, "-c", command],
                cwd=workdir,
                env={**os.environ, **description.environment},
                stdin=stdin,
                stdout=stdout,
                stderr=stderr,
            )
        except OSError as e:
            logger.warning(f"Could not start local job '{local.job}': {e}")
            with state.lock:
                local.start_error = f"Could not start job: {e}."
                local.cancelled = True
                local.starting = False
            return
        finally:
            for stream in streams:
                stream.close()

        with state.lock:
            local.process = process
            local.started = time.monotonic()
            local.starting = False
            # cancelled while the process was being spawned
            cancelled = local.cancelled

        logger.debug(f"Started local job '{local.job}': {command}")
        if cancelled:
            _terminate(process)

    def _terminateAll(self, state: LocalSchedulerState) -> None:
        with state.lock:
            running = [
                local.process
                for local in state.processes.values()
                if local.process is not None and local.process.poll() is None
            ]
            for local in state.processes.values():
                local.cancelled = local.cancelled or not local.isFinished()

        for process in running:
            _terminate(process)


def _open(workdir: Path, name: str | None, mode: str, streams: list[IO]):
    if name is None:
        return subprocess.DEVNULL

    stream = open(workdir / name, mode)
    streams.append(stream)
    return stream


def _terminate(process: subprocess.Popen) -> None:
    """Send SIGTERM and, if the process does not exit in time, SIGKILL."""
    process.terminate()
    try:
        process.wait(timeout=CFG.local.sigterm_to_sigkill)
    except subprocess.TimeoutExpired:
        logger.debug(f"Process {process.pid} ignored SIGTERM, killing it.")
        process.kill()
        process.wait()


def _log_end_failure(exception: BaseException, repeater: Repeater) -> None:
    logger.warning(
        f"Could not close local scheduler {repeater.current_iteration}: {exception}"
    )
