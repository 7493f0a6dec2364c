# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from collections.abc import Mapping
from typing import TYPE_CHECKING

from octopod_lib.adaptors.interface import JobsInterface
from octopod_lib.core.error import LocationError, NotFoundError, OctopodError
from octopod_lib.core.location import Location
from octopod_lib.core.logger import get_logger
from octopod_lib.credentials import Credential
from octopod_lib.jobs import (
    Job,
    JobDescription,
    JobState,
    JobStatus,
    QueueStatus,
    Scheduler,
)
from octopod_lib.properties import Level

if TYPE_CHECKING:
    from .engine import Engine

logger = get_logger(__name__)


class JobsEngine:
    """
    Job operations of an engine.

    Schedulers are created by the adaptor matching the scheme of their
    location; every later operation is routed to the adaptor that created
    the scheduler.
    """

    def __init__(self, engine: "Engine"):
        self._engine = engine

    def newScheduler(
        self,
        location: str,
        credential: Credential | None = None,
        properties: Mapping[str, str] | None = None,
    ) -> Scheduler:
        """
        Create a scheduler for `location`.

        Args:
            location (str): Location of the scheduler, e.g. `ge://headnode` or `local://`.
            credential (Credential | None): Credential to use instead of the default one.
            properties (Mapping[str, str] | None): Configuration overriding the defaults.

        Returns:
            Scheduler: Handle of the new scheduler.

        Raises:
            LocationError: If the location is malformed or its scheme is not
                supported by an adaptor with job support.
            ConfigurationError: If the configuration is invalid.
            TransportError: If the scheduler cannot be reached.
        """
        self._engine.checkOpen()

        parsed = Location.parse(location)
        try:
            adaptor = self._engine.adaptorFor(parsed.scheme)
        except NotFoundError as e:
            raise LocationError(f"Scheme '{parsed.scheme}' is not supported.") from e

        jobs = adaptor.jobs()
        if jobs is None:
            raise LocationError(
                f"Adaptor does not support jobs, cannot use '{location}'.", adaptor.name
            )

        scheduler = jobs.newScheduler(
            location,
            self._engine.getCombinedCredential(credential),
            self._engine.getCombinedProperties(adaptor, properties, Level.SCHEDULER),
        )
        logger.debug(f"Created scheduler '{scheduler.unique_id}' for '{location}'.")
        return scheduler

    def close(self, scheduler: Scheduler) -> None:
        """
        Raises:
            AlreadyClosedError: If the scheduler has already been closed.
        """
        self._interface(scheduler).close(scheduler)
        logger.debug(f"Closed scheduler '{scheduler.unique_id}'.")

    def isOpen(self, scheduler: Scheduler) -> bool:
        return self._interface(scheduler).isOpen(scheduler)

    def getQueueNames(self, scheduler: Scheduler) -> list[str]:
        return self._interface(scheduler).getQueueNames(scheduler)

    def getDefaultQueueName(self, scheduler: Scheduler) -> str | None:
        return self._interface(scheduler).getDefaultQueueName(scheduler)

    def submitJob(self, scheduler: Scheduler, description: JobDescription) -> Job:
        return self._interface(scheduler).submitJob(scheduler, description)

    def cancelJob(self, job: Job) -> None:
        self._interface(job.scheduler).cancelJob(job)

    def getJobStatus(self, job: Job) -> JobStatus:
        return self._interface(job.scheduler).getJobStatus(job)

    def getJobStatuses(self, *jobs: Job) -> list[JobStatus]:
        """
        Return the status of every job, in the order given.

        Jobs are queried in one batch per adaptor. Errors are never raised;
        they are stored in the `failure` of the affected statuses.

        Raises:
            AlreadyClosedError: If the engine has been ended.
        """
        self._engine.checkOpen()

        by_adaptor: dict[str, list[Job]] = {}
        for job in jobs:
            by_adaptor.setdefault(job.scheduler.adaptor_name, []).append(job)

        statuses: dict[Job, JobStatus] = {}
        for adaptor_name, adaptor_jobs in by_adaptor.items():
            try:
                results = self._interfaceByName(adaptor_name).getJobStatuses(
                    adaptor_jobs
                )
            except OctopodError as e:
                results = [
                    JobStatus(job, JobState.UNKNOWN, failure=e) for job in adaptor_jobs
                ]

            statuses.update(zip(adaptor_jobs, results))

        return [statuses[job] for job in jobs]

    def getJobs(self, scheduler: Scheduler, *queues: str) -> list[Job]:
        return self._interface(scheduler).getJobs(scheduler, list(queues))

    def getQueueStatus(self, scheduler: Scheduler, queue: str) -> QueueStatus:
        return self._interface(scheduler).getQueueStatus(scheduler, queue)

    def getQueueStatuses(self, scheduler: Scheduler, *queues: str) -> list[QueueStatus]:
        return self._interface(scheduler).getQueueStatuses(scheduler, list(queues))

    def waitUntilDone(self, job: Job, timeout: float) -> JobStatus:
        """
        Block until `job` is done or `timeout` seconds have passed.

        The job keeps running if the timeout expires; check `JobStatus.done`.
        """
        return self._interface(job.scheduler).waitUntilDone(job, timeout)

    def waitUntilRunning(self, job: Job, timeout: float) -> JobStatus:
        return self._interface(job.scheduler).waitUntilRunning(job, timeout)

    def _interface(self, scheduler: Scheduler) -> JobsInterface:
        return self._interfaceByName(scheduler.adaptor_name)

    def _interfaceByName(self, name: str) -> JobsInterface:
        self._engine.checkOpen()
        jobs = self._engine.adaptorByName(name).jobs()
        if jobs is None:
            raise NotFoundError("Adaptor does not support jobs.", name)
        return jobs
