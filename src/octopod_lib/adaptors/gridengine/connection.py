# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
A single logical channel to a Grid Engine installation.

Commands run locally if the location names no host, and through `ssh`
otherwise. Every command is a separate process; nothing is kept open
between commands.
"""

from octopod_lib.core.common import join_command, split_command
from octopod_lib.core.config import CFG
from octopod_lib.core.error import (
    AlreadyClosedError,
    BackendError,
    ConfigurationError,
    LocationError,
)
from octopod_lib.core.location import Location
from octopod_lib.core.logger import get_logger
from octopod_lib.core.process import CommandResult, RunningCommand, run_command
from octopod_lib.credentials import Credential, DefaultCredential, PasswordCredential
from octopod_lib.properties import Properties

from .common import (
    ADAPTOR_NAME,
    COMMAND_TIMEOUT_PROPERTY,
    PROPERTIES,
    SCHEMES,
    SSH_TIMEOUT_PROPERTY,
    check_cancel_result,
    check_submit_result,
    parse_accounting_info,
    parse_job_infos,
    parse_queue_infos,
)

logger = get_logger(__name__)


class SchedulerConnection:
    """
    Driver of the Grid Engine command-line tools for one scheduler.

    The location is validated before any process is started. On construction,
    the queues of the installation are queried once; their names are kept
    for the lifetime of the connection.

    Args:
        location (str): Location of the scheduler, e.g. `ge://user@headnode`.
        credential (Credential | None): Credential used to connect. Only the
            ssh agent and keys of the current user are supported.
        properties (Properties | None): Validated scheduler-level configuration.

    Raises:
        LocationError: If the location is invalid.
        ConfigurationError: If the credential cannot be used.
        TransportError: If the installation cannot be reached.
        ParseError: If the queue listing cannot be understood.
    """

    def __init__(
        self,
        location: str,
        credential: Credential | None = None,
        properties: Properties | None = None,
    ):
        self._location = self.checkLocation(location)
        self._properties = (
            properties if properties is not None else Properties(PROPERTIES)
        )
        self._user_host = self._resolveUserHost(credential)
        self._closed = False

        self._queue_names = tuple(self.getQueueStatus())
        logger.debug(f"Queues of '{self._location}': {self._queue_names}.")

    @staticmethod
    def checkLocation(location: str) -> Location:
        """
        Parse `location` and check that it can address a Grid Engine installation.

        Raises:
            LocationError: If the location carries a fragment or a path, or its
                scheme is not a Grid Engine scheme.
        """
        parsed = Location.parse(location, ADAPTOR_NAME)
        if parsed.scheme not in SCHEMES:
            raise LocationError(
                f"Scheme '{parsed.scheme}' is not supported, use one of {SCHEMES}.",
                ADAPTOR_NAME,
            )
        if not parsed.path.isEmpty():
            raise LocationError(
                f"Location '{location}' must not contain a path.", ADAPTOR_NAME
            )
        return parsed

    @property
    def location(self) -> Location:
        return self._location

    @property
    def queueNames(self) -> tuple[str, ...]:
        return self._queue_names

    def isClosed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """
        Release the connection. Never raises.

        Each command uses its own process, so there is nothing to tear down
        apart from marking the connection as closed.
        """
        if self._closed:
            logger.debug(f"Connection to '{self._location}' already closed.")
            return

        self._closed = True
        logger.debug(f"Closed connection to '{self._location}'.")

    def runCommand(self, command: list[str], stdin: str | None = None) -> RunningCommand:
        """
        Start `command` on the Grid Engine host.

        Args:
            command (list[str]): The command and its arguments.
            stdin (str | None): Input for the command.

        Returns:
            RunningCommand: The running command.

        Raises:
            AlreadyClosedError: If the connection has been closed.
            TransportError: If the command cannot be started.
        """
        if self._closed:
            raise AlreadyClosedError(
                f"Connection to '{self._location}' is closed.", ADAPTOR_NAME
            )

        return run_command(self._wrap(command), stdin, ADAPTOR_NAME)

    def execute(self, command: list[str], stdin: str | None = None) -> CommandResult:
        """Run `command` and wait for it to finish."""
        timeout = self._properties.getInteger(COMMAND_TIMEOUT_PROPERTY)
        return self.runCommand(command, stdin).communicate(timeout)

    def submitJob(self, script: str) -> str:
        """
        Submit a job script passed on the standard input of qsub.

        Returns:
            str: Id of the submitted job.

        Raises:
            BackendError: If qsub refused the job.
            ParseError: If the job id cannot be found in the output of qsub.
        """
        result = self.execute(split_command(CFG.gridengine.submit), stdin=script)
        job_id = check_submit_result(result)
        logger.info(f"Submitted job '{job_id}' to '{self._location}'.")
        return job_id

    def submitJobFile(self, path: str) -> str:
        """
        Submit a job script that already exists on the Grid Engine host.

        Returns:
            str: Id of the submitted job.
        """
        result = self.execute(split_command(CFG.gridengine.submit) + [path])
        job_id = check_submit_result(result)
        logger.info(f"Submitted job script '{path}' as job '{job_id}'.")
        return job_id

    def cancelJob(self, job_id: str) -> None:
        """
        Delete a job.

        Raises:
            BackendError: If qdel refused to delete the job.
            ParseError: If the output of qdel cannot be understood.
        """
        result = self.execute(split_command(CFG.gridengine.cancel) + [job_id])
        check_cancel_result(job_id, result)

    def getQueueStatus(self) -> dict[str, dict[str, str]]:
        """
        Return the attributes of all queues, keyed by queue name.
        """
        result = self.execute(split_command(CFG.gridengine.queue_status))
        self._checkExitCode(result, "get the status of queues")
        return parse_queue_infos(result.stdout)

    def getJobStatus(self) -> dict[str, dict[str, str]]:
        """
        Return the attributes of all jobs known to the scheduler, keyed by job id.

        All jobs are reported by a single invocation of qstat.
        """
        result = self.execute(split_command(CFG.gridengine.status))
        self._checkExitCode(result, "get the status of jobs")
        return parse_job_infos(result.stdout)

    def getJobAccountingInfo(self, job_id: str) -> dict[str, str]:
        """
        Return the accounting data of a finished job.

        Raises:
            NotFoundError: If there are no accounting data for the job.
        """
        result = self.execute(split_command(CFG.gridengine.accounting) + [job_id])
        return parse_accounting_info(job_id, result)

    def _checkExitCode(self, result: CommandResult, action: str) -> None:
        if result.exit_code != 0:
            raise BackendError(
                f"Could not {action} on '{self._location}': {result.stderr.strip()}",
                ADAPTOR_NAME,
            )

    def _resolveUserHost(self, credential: Credential | None) -> str | None:
        if self._location.isLocal():
            return None

        # ssh runs with password authentication disabled
        if isinstance(credential, PasswordCredential):
            raise ConfigurationError(
                "Password credentials are not supported, use the ssh agent instead.",
                ADAPTOR_NAME,
            )

        user = self._location.user
        if isinstance(credential, DefaultCredential) and credential.username:
            user = user or credential.username

        return f"{user}@{self._location.host}" if user else self._location.host

    def _wrap(self, command: list[str]) -> list[str]:
        """
        Wrap `command` in an ssh invocation if the scheduler is remote.
        """
        if self._user_host is None:
            return command

        wrapped = [
            "ssh",
            "-o PasswordAuthentication=no",
            f"-o ConnectTimeout={self._properties.getInteger(SSH_TIMEOUT_PROPERTY)}",
        ]
        if self._location.port is not None:
            wrapped += ["-p", str(self._location.port)]

        return wrapped + [self._user_host, join_command(command)]
