# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from octopod_lib.adaptors.interface import HandleRegistry, JobsInterface
from octopod_lib.core.error import (
    InvalidJobDescriptionError,
    NotFoundError,
    OctopodError,
)
from octopod_lib.core.logger import get_logger
from octopod_lib.core.repeater import Repeater
from octopod_lib.credentials import Credential
from octopod_lib.jobs import (
    Job,
    JobDescription,
    JobStatus,
    QueueStatus,
    Scheduler,
)
from octopod_lib.properties import Properties

from .common import (
    ACCOUNTING_PROPERTY,
    ADAPTOR_NAME,
    JOB_SCRIPT_OPTION,
    check_job_description,
    generate_job_script,
    status_from_accounting_info,
    status_from_live_info,
)
from .connection import SchedulerConnection

logger = get_logger(__name__)


class GridEngineJobs(JobsInterface):
    """
    Implementation of JobsInterface for Grid Engine.

    Each scheduler is backed by a `SchedulerConnection` stored in the
    registry of the adaptor.
    """

    ADAPTOR_NAME = ADAPTOR_NAME

    def __init__(self):
        self._connections: HandleRegistry[SchedulerConnection] = HandleRegistry(
            ADAPTOR_NAME
        )

    def newScheduler(
        self, location: str, credential: Credential, properties: Properties
    ) -> Scheduler:
        connection = SchedulerConnection(location, credential, properties)
        unique_id = self._connections.add(connection)

        logger.info(f"Connected to Grid Engine at '{connection.location}'.")
        return Scheduler(
            adaptor_name=ADAPTOR_NAME,
            unique_id=unique_id,
            location=location,
            queue_names=connection.queueNames,
            credential=credential,
            properties=properties,
            local_standard_streams=False,
            detached_jobs=True,
        )

    def close(self, scheduler: Scheduler) -> None:
        self._connections.remove(scheduler.unique_id).close()

    def isOpen(self, scheduler: Scheduler) -> bool:
        return scheduler.unique_id in self._connections

    def getQueueNames(self, scheduler: Scheduler) -> list[str]:
        return list(self._connection(scheduler).queueNames)

    def getDefaultQueueName(self, scheduler: Scheduler) -> str | None:
        # Grid Engine picks the queue itself
        self._connection(scheduler)
        return None

    def submitJob(self, scheduler: Scheduler, description: JobDescription) -> Job:
        connection = self._connection(scheduler)
        check_job_description(description)

        if (
            description.queue_name
            and description.queue_name not in connection.queueNames
        ):
            raise InvalidJobDescriptionError(
                f"Queue '{description.queue_name}' does not exist. Available queues: {', '.join(connection.queueNames)}.",
                ADAPTOR_NAME,
            )

        if script := description.job_options.get(JOB_SCRIPT_OPTION):
            job_id = connection.submitJobFile(script)
        else:
            job_id = connection.submitJob(generate_job_script(description))

        return Job(scheduler, job_id, description)

    def cancelJob(self, job: Job) -> None:
        self._connection(job.scheduler).cancelJob(job.identifier)

    def getJobStatuses(self, jobs: list[Job]) -> list[JobStatus]:
        statuses: dict[Job, JobStatus] = {}

        # one qstat per scheduler
        by_scheduler: dict[Scheduler, list[Job]] = {}
        for job in jobs:
            by_scheduler.setdefault(job.scheduler, []).append(job)

        for scheduler, scheduler_jobs in by_scheduler.items():
            try:
                live = self._connection(scheduler).getJobStatus()
            except OctopodError as e:
                logger.debug(f"Could not get job statuses from '{scheduler.location}': {e}")
                for job in scheduler_jobs:
                    statuses[job] = self._failedStatus(job, e)
                continue

            for job in scheduler_jobs:
                if job.identifier in live:
                    statuses[job] = status_from_live_info(job, live[job.identifier])
                    continue

                try:
                    statuses[job] = self.reconcileMissingJob(scheduler, job)
                except OctopodError as e:
                    statuses[job] = self._failedStatus(job, e)

        return [statuses[job] for job in jobs]

    def reconcileMissingJob(self, scheduler: Scheduler, job: Job) -> JobStatus:
        """
        Look up the outcome of a job that left the scheduler in the accounting data.

        Falls back to the default policy if accounting is disabled for the
        scheduler or holds no data for the job.
        """
        if not scheduler.properties.getBoolean(ACCOUNTING_PROPERTY):
            return super().reconcileMissingJob(scheduler, job)

        connection = self._connection(scheduler)
        try:
            info = connection.getJobAccountingInfo(job.identifier)
        except NotFoundError:
            logger.debug(f"No accounting data for job '{job}'.")
            return super().reconcileMissingJob(scheduler, job)

        return status_from_accounting_info(job, info)

    def getJobs(self, scheduler: Scheduler, queues: list[str]) -> list[Job]:
        connection = self._connection(scheduler)
        for queue in queues:
            if queue not in connection.queueNames:
                raise NotFoundError(f"Queue '{queue}' does not exist.", ADAPTOR_NAME)

        jobs = []
        for job_id, info in connection.getJobStatus().items():
            # running jobs report 'queue@host', pending jobs no queue at all
            queue = info.get("queue_name", "").split("@")[0]
            if not queues or queue in queues:
                jobs.append(Job(scheduler, job_id))

        return jobs

    def getQueueStatuses(
        self, scheduler: Scheduler, queues: list[str]
    ) -> list[QueueStatus]:
        infos = self._connection(scheduler).getQueueStatus()

        statuses = []
        for queue in queues or list(infos):
            if queue in infos:
                statuses.append(QueueStatus(scheduler, queue, info=infos[queue]))
            else:
                statuses.append(
                    QueueStatus(
                        scheduler,
                        queue,
                        failure=NotFoundError(
                            f"Queue '{queue}' does not exist.", ADAPTOR_NAME
                        ),
                    )
                )

        return statuses

    def end(self) -> None:
        connections = self._connections.removeAll()
        repeater = Repeater(connections, lambda connection: connection.close())
        repeater.onException(OctopodError, _log_close_failure)
        repeater.run()

    def _connection(self, scheduler: Scheduler) -> SchedulerConnection:
        return self._connections.get(scheduler.unique_id)


def _log_close_failure(exception: BaseException, repeater: Repeater) -> None:
    logger.warning(
        f"Could not close scheduler connection {repeater.current_iteration}: {exception}"
    )
