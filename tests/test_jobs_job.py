# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import pytest
import yaml

from octopod_lib.core.error import BackendError
from octopod_lib.jobs import (
    Job,
    JobDescription,
    JobState,
    JobStatus,
    QueueStatus,
    Scheduler,
)


@pytest.fixture
def scheduler():
    return Scheduler(
        adaptor_name="gridengine",
        unique_id="gridengine-0",
        location="ge://headnode",
        queue_names=("all.q", "long.q"),
    )


def test_job_description_defaults():
    description = JobDescription()

    assert description.executable is None
    assert description.arguments == []
    assert description.environment == {}
    assert description.max_time == 15
    assert description.node_count == 1
    assert description.processes_per_node == 1
    assert description.interactive is False
    assert description.job_options == {}


def test_scheduler_equality_uses_adaptor_and_id(scheduler):
    same = Scheduler("gridengine", "gridengine-0", "ge://elsewhere")
    other_id = Scheduler("gridengine", "gridengine-1", "ge://headnode")
    other_adaptor = Scheduler("local", "gridengine-0", "ge://headnode")

    assert scheduler == same
    assert hash(scheduler) == hash(same)
    assert scheduler != other_id
    assert scheduler != other_adaptor


def test_job_equality_ignores_description(scheduler):
    first = Job(scheduler, "42", JobDescription(executable="/bin/true"))
    second = Job(scheduler, "42")

    assert first == second
    assert len({first, second}) == 1
    assert first != Job(scheduler, "43")
    assert str(first) == "42@ge://headnode"


def test_job_status_flags(scheduler):
    job = Job(scheduler, "42")

    running = JobStatus(job, JobState.RUNNING)
    assert running.isRunning()
    assert not running.hasFailure()
    assert running.isOutcomeKnown()

    failed = JobStatus(
        job, JobState.FAILED, failure=BackendError("killed by signal"), done=True
    )
    assert not failed.isRunning()
    assert failed.hasFailure()
    assert failed.isOutcomeKnown()

    finished = JobStatus(job, JobState.DONE, exit_code=0, done=True)
    assert finished.isOutcomeKnown()


def test_job_status_unknown_outcome(scheduler):
    status = JobStatus(Job(scheduler, "42"), JobState.UNKNOWN, done=True)

    assert not status.isOutcomeKnown()


def test_job_status_to_yaml(scheduler):
    status = JobStatus(
        Job(scheduler, "42"),
        JobState.FAILED,
        exit_code=None,
        failure=BackendError("job failed", "gridengine"),
        done=True,
        info={"failed": "100"},
    )

    assert yaml.safe_load(status.toYaml()) == {
        "job": "42",
        "scheduler": "ge://headnode",
        "state": "failed",
        "done": True,
        "exit_code": None,
        "failure": "gridengine adaptor: job failed",
        "info": {"failed": "100"},
    }


def test_queue_status_to_yaml(scheduler):
    status = QueueStatus(scheduler, "all.q", info={"used": "3", "total": "16"})

    assert not status.hasFailure()
    assert yaml.safe_load(status.toYaml()) == {
        "queue": "all.q",
        "scheduler": "ge://headnode",
        "failure": None,
        "info": {"used": "3", "total": "16"},
    }
