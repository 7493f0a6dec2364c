# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import time
from abc import ABC, abstractmethod

from octopod_lib.core.config import CFG
from octopod_lib.core.error import NotFoundError, OctopodError
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
from octopod_lib.properties import Properties

logger = get_logger(__name__)


class JobsInterface(ABC):
    """
    Job capability of an adaptor.

    Concrete adaptors implement the abstract methods; the waiting helpers and
    the reconciliation policy have default implementations built on top of them.

    All methods should raise an `OctopodError` subclass when encountering an error.
    """

    ADAPTOR_NAME: str = ""

    @abstractmethod
    def newScheduler(
        self, location: str, credential: Credential, properties: Properties
    ) -> Scheduler:
        """
        Open a connection to the scheduler at `location` and register it.

        Args:
            location (str): Location of the scheduler.
            credential (Credential): Credential used to connect.
            properties (Properties): Validated scheduler-level configuration.

        Returns:
            Scheduler: Handle of the new scheduler.

        Raises:
            LocationError: If the location is not valid for this adaptor.
            TransportError: If the scheduler cannot be reached.
        """

    @abstractmethod
    def close(self, scheduler: Scheduler) -> None:
        """
        Close the scheduler.

        Raises:
            AlreadyClosedError: If the scheduler has already been closed.
        """

    @abstractmethod
    def isOpen(self, scheduler: Scheduler) -> bool:
        pass

    @abstractmethod
    def getQueueNames(self, scheduler: Scheduler) -> list[str]:
        pass

    @abstractmethod
    def getDefaultQueueName(self, scheduler: Scheduler) -> str | None:
        """Return the queue used when a job description names none, or None if the backend decides."""

    @abstractmethod
    def submitJob(self, scheduler: Scheduler, description: JobDescription) -> Job:
        """
        Submit a job.

        Raises:
            InvalidJobDescriptionError: If the adaptor cannot run the described job.
            BackendError: If the backend refuses the job.
        """

    @abstractmethod
    def cancelJob(self, job: Job) -> None:
        pass

    @abstractmethod
    def getJobStatuses(self, jobs: list[Job]) -> list[JobStatus]:
        """
        Return the status of each job, in the order of `jobs`.

        Errors concerning a single job are stored in the `failure` of its
        status and never raised.
        """

    @abstractmethod
    def getJobs(self, scheduler: Scheduler, queues: list[str]) -> list[Job]:
        """
        Return the jobs known to the scheduler in the given queues (all queues if empty).

        Raises:
            NotFoundError: If one of the queues does not exist.
        """

    @abstractmethod
    def getQueueStatuses(
        self, scheduler: Scheduler, queues: list[str]
    ) -> list[QueueStatus]:
        """
        Return the status of the given queues (all queues if empty).

        Errors concerning a single queue are stored in its status.
        """

    @abstractmethod
    def end(self) -> None:
        """Close all schedulers of the adaptor. Failures are logged, not raised."""

    def getJobStatus(self, job: Job) -> JobStatus:
        """
        Return the status of a single job.

        Raises:
            OctopodError: The failure captured in the status, if the status
                could not be determined at all.
        """
        status = self.getJobStatuses([job])[0]
        if (
            not status.done
            and status.state == JobState.UNKNOWN
            and status.failure is not None
        ):
            raise status.failure
        return status

    def getQueueStatus(self, scheduler: Scheduler, queue: str) -> QueueStatus:
        """
        Return the status of a single queue.

        Raises:
            NotFoundError: If the queue does not exist.
        """
        status = self.getQueueStatuses(scheduler, [queue])[0]
        if isinstance(status.failure, NotFoundError):
            raise status.failure
        return status

    def reconcileMissingJob(self, scheduler: Scheduler, job: Job) -> JobStatus:
        """
        Determine the outcome of a job that is no longer reported by the scheduler.

        The default policy cannot know what happened to the job, so the job
        is reported as done with an unknown outcome. Adaptors with access to
        historical data override this.
        """
        logger.debug(f"Job '{job}' disappeared from the scheduler, outcome unknown.")
        return JobStatus(job, JobState.UNKNOWN, done=True)

    def waitUntilDone(self, job: Job, timeout: float) -> JobStatus:
        """
        Poll the status of `job` until it is done or `timeout` expires.

        The job is not cancelled when the timeout expires.

        Args:
            job (Job): The job to wait for.
            timeout (float): Maximal time to wait in seconds. Zero or negative
                means a single poll.

        Returns:
            JobStatus: The last status obtained. Not done if the timeout expired.
        """
        return self._waitUntil(job, timeout, lambda status: status.done)

    def waitUntilRunning(self, job: Job, timeout: float) -> JobStatus:
        """
        Poll the status of `job` until it runs, is done, or `timeout` expires.
        """
        return self._waitUntil(
            job, timeout, lambda status: status.done or status.isRunning()
        )

    def _waitUntil(self, job: Job, timeout: float, condition) -> JobStatus:
        deadline = time.monotonic() + max(timeout, 0)

        while True:
            status = self.getJobStatus(job)
            if condition(status):
                return status

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.debug(f"Timed out while waiting for job '{job}'.")
                return status

            time.sleep(min(CFG.polling.wait_interval, remaining))

    def _failedStatus(self, job: Job, error: OctopodError) -> JobStatus:
        return JobStatus(job, JobState.UNKNOWN, failure=error)
