# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
The Grid Engine command protocol: the output format expected from each
command and the translation of job descriptions into job scripts.

| command               | output        | parser                      |
|-----------------------|---------------|-----------------------------|
| `qstat -xml -g c`     | XML           | `parse_queue_infos`         |
| `qstat -xml`          | XML           | `parse_job_infos`           |
| `qsub`                | text          | `check_submit_result`       |
| `qdel <id>`           | text          | `check_cancel_result`       |
| `qacct -j <id>`       | key-value     | `parse_accounting_info`     |
"""

import shlex
from datetime import timedelta

from octopod_lib.core.common import format_duration_hhmmss
from octopod_lib.core.config import CFG
from octopod_lib.core.error import (
    BackendError,
    InvalidJobDescriptionError,
    NotFoundError,
    ParseError,
)
from octopod_lib.core.logger import get_logger
from octopod_lib.core.process import CommandResult
from octopod_lib.jobs import Job, JobDescription, JobState, JobStatus
from octopod_lib.parsers import TextParser, parse_entities, parse_key_value_lines
from octopod_lib.properties import Level, PropertyDescription

logger = get_logger(__name__)

ADAPTOR_NAME = "gridengine"
SCHEMES = ("ge", "sge")

SSH_TIMEOUT_PROPERTY = "gridengine.ssh.timeout"
COMMAND_TIMEOUT_PROPERTY = "gridengine.command.timeout"
ACCOUNTING_PROPERTY = "gridengine.accounting"

PROPERTIES = (
    PropertyDescription(
        SSH_TIMEOUT_PROPERTY,
        Level.SCHEDULER,
        str(CFG.timeouts.ssh),
        "Timeout in seconds for establishing the ssh connection to a remote scheduler.",
        int,
    ),
    PropertyDescription(
        COMMAND_TIMEOUT_PROPERTY,
        Level.SCHEDULER,
        str(CFG.timeouts.command),
        "Maximal run time in seconds of a single Grid Engine command.",
        int,
    ),
    PropertyDescription(
        ACCOUNTING_PROPERTY,
        Level.SCHEDULER,
        "true",
        "Use qacct to determine the outcome of jobs that left the scheduler.",
        bool,
    ),
)

# job options understood by the adaptor
JOB_SCRIPT_OPTION = "gridengine.job.script"
PARALLEL_ENVIRONMENT_OPTION = "gridengine.parallel.environment"
JOB_OPTIONS = (JOB_SCRIPT_OPTION, PARALLEL_ENVIRONMENT_OPTION)

# name of the job as shown by qstat
JOB_NAME = "octopod"

_SUBMIT_PARSER = TextParser(
    success=[r"^Your job(?:-array)? (?P<id>\d+)"],
    failure=[
        r"^Unable to run job:?\s*(?P<message>.*)$",
        r"^qsub: (?P<message>.*)$",
    ],
    ignore=[r"^warning:"],
    adaptor_name=ADAPTOR_NAME,
)

_CANCEL_PARSER = TextParser(
    success=[
        r"has registered the job(?:-array)? (?P<id>\d+) for deletion",
        r"has deleted job(?:-array)? (?P<id>\d+)",
    ],
    failure=[
        r"(?P<message>.*(?:not allowed|necessary privileges|permission denied).*)",
    ],
    adaptor_name=ADAPTOR_NAME,
)


def parse_queue_infos(text: str) -> dict[str, dict[str, str]]:
    """
    Parse the output of `qstat -xml -g c` into a mapping from queue name to queue attributes.

    Raises:
        ParseError: If the output is not a valid cluster queue summary.
    """
    return parse_entities(
        text, "job_info", "cluster_queue_summary", "name", adaptor_name=ADAPTOR_NAME
    )


def parse_job_infos(text: str) -> dict[str, dict[str, str]]:
    """
    Parse the output of `qstat -xml` into a mapping from job id to job attributes.

    Both running (`queue_info`) and pending (`job_info`) jobs are reported.

    Raises:
        ParseError: If the output is not a valid job listing.
    """
    return parse_entities(
        text, "job_info", "job_list", "JB_job_number", adaptor_name=ADAPTOR_NAME
    )


def check_submit_result(result: CommandResult) -> str:
    """
    Extract the id of a submitted job from the output of `qsub`.

    Raises:
        BackendError: If qsub refused the job.
        ParseError: If no job id could be found in the output.
    """
    return _SUBMIT_PARSER.parse(result.stdout, result.stderr)


def check_cancel_result(job_id: str, result: CommandResult) -> None:
    """
    Check the output of `qdel`.

    Cancelling a job that no longer exists is not an error: the job has
    already left the system.

    Raises:
        BackendError: If qdel refused to delete the job.
        ParseError: If the output could not be understood.
    """
    output = f"{result.stdout}\n{result.stderr}"
    if "does not exist" in output:
        logger.info(f"Job '{job_id}' does not exist any more, nothing to cancel.")
        return

    deleted = _CANCEL_PARSER.parse(result.stdout, result.stderr)
    if deleted != job_id:
        logger.warning(
            f"Requested deletion of job '{job_id}' but qdel reported job '{deleted}'."
        )


def parse_accounting_info(job_id: str, result: CommandResult) -> dict[str, str]:
    """
    Parse the output of `qacct -j <job_id>`.

    Raises:
        NotFoundError: If the accounting data do not contain the job.
        BackendError: If qacct failed for any other reason.
        ParseError: If the output contains no accounting data.
    """
    if "not found" in result.stderr:
        raise NotFoundError(
            f"No accounting data for job '{job_id}'.", ADAPTOR_NAME
        )

    if result.exit_code != 0:
        raise BackendError(
            f"Could not get accounting data for job '{job_id}': {result.stderr.strip()}",
            ADAPTOR_NAME,
        )

    info = parse_key_value_lines(result.stdout)
    if not info:
        raise ParseError(
            f"Could not parse accounting data for job '{job_id}'.\nstdout:\n{result.stdout}\nstderr:\n{result.stderr}",
            ADAPTOR_NAME,
        )

    return info


def status_from_live_info(job: Job, info: dict[str, str]) -> JobStatus:
    """
    Build the status of a job reported by `qstat`.

    A job in an error state will not run without intervention and is
    reported as done with a failure.
    """
    code = info.get("state", "")
    state = JobState.fromCode(code)

    if state == JobState.ERROR:
        return JobStatus(
            job,
            state,
            failure=BackendError(
                f"Job '{job.identifier}' is in error state '{code}'.", ADAPTOR_NAME
            ),
            done=True,
            info=info,
        )

    return JobStatus(job, state, info=info)


def status_from_accounting_info(job: Job, info: dict[str, str]) -> JobStatus:
    """
    Build the status of a finished job from the output of `qacct`.

    The `failed` field is non-zero if Grid Engine itself could not run the
    job; `exit_status` is the exit code of the job script.
    """
    try:
        # e.g. '0' or '100 : assumedly after job'
        failed = int(info["failed"].split()[0])
        exit_code = int(info["exit_status"].split()[0])
    except (KeyError, IndexError, ValueError):
        return JobStatus(
            job,
            JobState.UNKNOWN,
            failure=ParseError(
                f"Accounting data of job '{job.identifier}' do not contain a valid outcome.",
                ADAPTOR_NAME,
            ),
            done=True,
            info=info,
        )

    if failed != 0:
        return JobStatus(
            job,
            JobState.FAILED,
            exit_code=exit_code,
            failure=BackendError(
                f"Job '{job.identifier}' failed: {info['failed']}.", ADAPTOR_NAME
            ),
            done=True,
            info=info,
        )

    return JobStatus(job, JobState.DONE, exit_code=exit_code, done=True, info=info)


def generate_job_script(description: JobDescription) -> str:
    """
    Translate a job description into a Grid Engine job script.

    Args:
        description (JobDescription): The job to run.

    Returns:
        str: The body of the job script, to be passed to qsub on standard input.

    Raises:
        InvalidJobDescriptionError: If the description cannot be expressed
            as a Grid Engine batch job.
    """
    check_job_description(description)

    lines = [
        f"#!{CFG.gridengine.shell}",
        f"#$ -S {CFG.gridengine.shell}",
        f"#$ -N {JOB_NAME}",
    ]

    if description.queue_name:
        lines.append(f"#$ -q {description.queue_name}")

    if description.max_time > 0:
        walltime = format_duration_hhmmss(timedelta(minutes=description.max_time))
        lines.append(f"#$ -l h_rt={walltime}")

    slots = description.node_count * description.processes_per_node
    if slots > 1:
        environment = description.job_options[PARALLEL_ENVIRONMENT_OPTION]
        lines.append(f"#$ -pe {environment} {slots}")

    if description.working_directory:
        lines.append(f"#$ -wd {description.working_directory}")
    else:
        lines.append("#$ -cwd")

    if description.stdin:
        lines.append(f"#$ -i {description.stdin}")
    lines.append(f"#$ -o {description.stdout or '/dev/null'}")
    lines.append(f"#$ -e {description.stderr or '/dev/null'}")

    lines.append("")
    for key, value in description.environment.items():
        lines.append(f"export {key}={shlex.quote(value)}")

    lines.append(shlex.join([description.executable, *description.arguments]))
    return "\n".join(lines) + "\n"


def check_job_description(description: JobDescription) -> None:
    """
    Check that a job description can be submitted to Grid Engine.

    Raises:
        InvalidJobDescriptionError: If it cannot.
    """

    def invalid(message: str) -> InvalidJobDescriptionError:
        return InvalidJobDescriptionError(message, ADAPTOR_NAME)

    if description.interactive:
        raise invalid("Interactive jobs are not supported.")

    for key in description.job_options:
        if key not in JOB_OPTIONS:
            raise invalid(f"Unknown job option '{key}'.")

    if JOB_SCRIPT_OPTION in description.job_options:
        # the script is used as is, the rest of the description is ignored
        return

    if not description.executable:
        raise invalid("Job description does not specify an executable.")

    if description.node_count < 1 or description.processes_per_node < 1:
        raise invalid("Node count and processes per node must be positive.")

    if (
        description.node_count * description.processes_per_node > 1
        and PARALLEL_ENVIRONMENT_OPTION not in description.job_options
    ):
        raise invalid(
            f"Parallel jobs require the job option '{PARALLEL_ENVIRONMENT_OPTION}'."
        )

    for key in description.environment:
        if not key.isidentifier():
            raise invalid(f"Invalid environment variable name '{key}'.")
