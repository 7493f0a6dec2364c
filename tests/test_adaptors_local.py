# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import subprocess
from unittest.mock import patch

import pytest

from octopod_lib.adaptors.local import LocalAdaptor
from octopod_lib.adaptors.local.jobs import LocalProcess
from octopod_lib.core.error import (
    AlreadyClosedError,
    BackendError,
    InvalidJobDescriptionError,
    LocationError,
    NotFoundError,
)
from octopod_lib.credentials import DefaultCredential
from octopod_lib.files import Pathname
from octopod_lib.jobs import Job, JobDescription, JobState
from octopod_lib.properties import Level


@pytest.fixture
def adaptor():
    local = LocalAdaptor()
    yield local
    local.end()


@pytest.fixture
def scheduler(adaptor):
    properties = adaptor.createProperties(None, None, Level.SCHEDULER)
    return adaptor.jobs().newScheduler("local://", DefaultCredential(), properties)


@pytest.fixture
def filesystem(adaptor, tmp_path):
    properties = adaptor.createProperties(None, None, Level.FILESYSTEM)
    return adaptor.files().newFileSystem(
        f"file://{tmp_path}", DefaultCredential(), properties
    )


def test_adaptor_metadata(adaptor):
    assert adaptor.name == "local"
    assert adaptor.supports("FILE")
    assert adaptor.supports("local")
    assert not adaptor.supports("ftp")
    assert not adaptor.supportsDetached
    assert adaptor.localStandardStreams
    assert not adaptor.strict


def test_new_scheduler(adaptor, scheduler):
    assert scheduler.adaptor_name == "local"
    assert scheduler.queue_names == ("single", "multi")
    assert scheduler.local_standard_streams
    assert not scheduler.detached_jobs
    assert adaptor.jobs().getDefaultQueueName(scheduler) == "single"


@pytest.mark.parametrize("location", ["local://remotehost", "local:///some/path"])
def test_new_scheduler_rejects_remote_or_path(adaptor, location):
    properties = adaptor.createProperties(None, None, Level.SCHEDULER)

    with pytest.raises(LocationError):
        adaptor.jobs().newScheduler(location, DefaultCredential(), properties)


def test_job_writes_stdout_file(adaptor, scheduler, tmp_path):
    description = JobDescription(
        executable="/bin/echo",
        arguments=["hello from", "octopod"],
        working_directory=str(tmp_path),
        stdout="out.txt",
    )

    job = adaptor.jobs().submitJob(scheduler, description)
    status = adaptor.jobs().waitUntilDone(job, timeout=30)

    assert job.identifier == "0"
    assert status.state is JobState.DONE
    assert status.done
    assert status.exit_code == 0
    assert (tmp_path / "out.txt").read_text() == "hello from octopod\n"


def test_job_environment_and_stdin(adaptor, scheduler, tmp_path):
    (tmp_path / "in.txt").write_text("from stdin\n")
    description = JobDescription(
        executable="/bin/sh",
        arguments=["-c", 'cat; echo "$GREETING"; exit 4'],
        environment={"GREETING": "hi there"},
        working_directory=str(tmp_path),
        stdin="in.txt",
        stdout="out.txt",
        queue_name="multi",
    )

    job = adaptor.jobs().submitJob(scheduler, description)
    status = adaptor.jobs().waitUntilDone(job, timeout=30)

    assert status.state is JobState.DONE
    assert status.exit_code == 4
    assert (tmp_path / "out.txt").read_text() == "from stdin\nhi there\n"


def test_single_queue_runs_one_job_at_a_time(adaptor, scheduler):
    jobs = adaptor.jobs()
    description = JobDescription(executable="sleep", arguments=["30"])

    first = jobs.submitJob(scheduler, description)
    second = jobs.submitJob(scheduler, description)

    assert jobs.getJobStatus(first).state is JobState.RUNNING
    assert jobs.getJobStatus(second).state is JobState.PENDING

    jobs.cancelJob(first)
    cancelled = jobs.getJobStatus(first)
    assert cancelled.state is JobState.KILLED
    assert cancelled.done
    assert isinstance(cancelled.failure, BackendError)

    assert jobs.waitUntilRunning(second, timeout=10).state is JobState.RUNNING


def test_multi_queue_runs_jobs_concurrently(adaptor, scheduler):
    jobs = adaptor.jobs()
    description = JobDescription(
        executable="sleep", arguments=["30"], queue_name="multi"
    )

    first = jobs.submitJob(scheduler, description)
    second = jobs.submitJob(scheduler, description)

    assert [s.state for s in jobs.getJobStatuses([first, second])] == [
        JobState.RUNNING,
        JobState.RUNNING,
    ]

    [queue] = jobs.getQueueStatuses(scheduler, ["multi"])
    assert queue.info == {"pending": "0", "running": "2"}


def test_cancel_pending_job(adaptor, scheduler):
    jobs = adaptor.jobs()
    description = JobDescription(executable="sleep", arguments=["30"])

    jobs.submitJob(scheduler, description)
    pending = jobs.submitJob(scheduler, description)
    jobs.cancelJob(pending)

    status = jobs.getJobStatus(pending)
    assert status.state is JobState.KILLED
    assert status.done
    assert status.exit_code is None


def test_job_that_cannot_start_fails(adaptor, scheduler, tmp_path):
    description = JobDescription(
        executable="/bin/true", working_directory=str(tmp_path / "missing")
    )

    job = adaptor.jobs().submitJob(scheduler, description)
    status = adaptor.jobs().getJobStatus(job)

    assert status.state is JobState.FAILED
    assert status.done
    assert isinstance(status.failure, BackendError)


def test_close_scheduler_terminates_jobs(adaptor, scheduler):
    jobs = adaptor.jobs()
    job = jobs.submitJob(scheduler, JobDescription(executable="sleep", arguments=["30"]))
    jobs.getJobStatus(job)

    jobs.close(scheduler)

    assert not jobs.isOpen(scheduler)
    [status] = jobs.getJobStatuses([job])
    assert isinstance(status.failure, AlreadyClosedError)


@pytest.mark.parametrize(
    "description",
    [
        JobDescription(executable="a", interactive=True),
        JobDescription(),
        JobDescription(executable="a", node_count=2),
        JobDescription(executable="a", job_options={"x": "y"}),
        JobDescription(executable="a", queue_name="bogus"),
    ],
)
def test_submit_invalid_description_raises(adaptor, scheduler, description):
    with pytest.raises(InvalidJobDescriptionError):
        adaptor.jobs().submitJob(scheduler, description)


def test_get_jobs_and_unknown_queue(adaptor, scheduler):
    jobs = adaptor.jobs()
    job = jobs.submitJob(
        scheduler, JobDescription(executable="/bin/true", queue_name="multi")
    )

    assert jobs.getJobs(scheduler, []) == [job]
    assert jobs.getJobs(scheduler, ["single"]) == []
    with pytest.raises(NotFoundError):
        jobs.getJobs(scheduler, ["bogus"])

    [missing] = jobs.getQueueStatuses(scheduler, ["bogus"])
    assert isinstance(missing.failure, NotFoundError)


def test_unknown_job_status_is_captured(adaptor, scheduler):
    [status] = adaptor.jobs().getJobStatuses([Job(scheduler, "99")])

    assert status.state is JobState.UNKNOWN
    assert isinstance(status.failure, NotFoundError)


def test_process_is_spawned_without_holding_scheduler_lock(adaptor, scheduler):
    jobs = adaptor.jobs()
    state = jobs._schedulers.get(scheduler.unique_id)
    real_popen = subprocess.Popen
    lock_held = []

    def spawn(*args, **kwargs):
        lock_held.append(state.lock.locked())
        return real_popen(*args, **kwargs)

    with patch("octopod_lib.adaptors.local.jobs.subprocess.Popen", side_effect=spawn):
        job = jobs.submitJob(scheduler, JobDescription(executable="/bin/true"))

    assert lock_held == [False]
    assert jobs.waitUntilDone(job, timeout=30).state is JobState.DONE


def test_job_cancelled_while_spawning_is_killed(adaptor, scheduler):
    jobs = adaptor.jobs()
    real_popen = subprocess.Popen

    def spawn(*args, **kwargs):
        jobs.cancelJob(Job(scheduler, "0"))
        return real_popen(*args, **kwargs)

    with patch("octopod_lib.adaptors.local.jobs.subprocess.Popen", side_effect=spawn):
        job = jobs.submitJob(
            scheduler, JobDescription(executable="sleep", arguments=["30"])
        )

    status = jobs.getJobStatus(job)
    assert status.state is JobState.KILLED
    assert status.done
    assert status.exit_code is not None


def test_finished_jobs_stay_queryable(adaptor, scheduler):
    jobs = adaptor.jobs()
    first = jobs.submitJob(scheduler, JobDescription(executable="/bin/true"))
    jobs.waitUntilDone(first, timeout=30)
    second = jobs.submitJob(scheduler, JobDescription(executable="/bin/true"))
    jobs.waitUntilDone(second, timeout=30)

    assert jobs.getJobs(scheduler, []) == [first, second]
    assert jobs.getJobStatus(first).state is JobState.DONE


def test_local_process_pending_status(scheduler):
    local = LocalProcess(Job(scheduler, "0"), "single")

    assert local.toStatus().state is JobState.PENDING
    assert not local.isFinished()


def test_file_operations(adaptor, filesystem, tmp_path):
    files = adaptor.files()

    assert filesystem.entry_path == Pathname(str(tmp_path))

    directory = files.newPath(filesystem, "data")
    files.createDirectory(directory)
    assert (tmp_path / "data").is_dir()

    target = directory.resolve("result.txt")
    files.createFile(target)
    with pytest.raises(BackendError):
        files.createFile(target)

    files.write(target, b"first\n")
    files.write(target, b"second\n", append=True)
    assert files.readAllBytes(target) == b"first\nsecond\n"

    attributes = files.getAttributes(target)
    assert attributes.is_regular_file
    assert not attributes.is_directory
    assert attributes.size == 13
    assert attributes.modified is not None

    assert files.listDirectory(directory) == [target]

    files.delete(target)
    files.delete(directory)
    assert not files.exists(directory)


def test_create_directories(adaptor, filesystem, tmp_path):
    files = adaptor.files()
    nested = files.newPath(filesystem, "a/b/c")

    files.createDirectories(nested)
    files.createDirectories(nested)

    assert (tmp_path / "a" / "b" / "c").is_dir()


def test_create_directories_through_file_raises(adaptor, filesystem, tmp_path):
    (tmp_path / "a").write_text("not a directory")

    with pytest.raises(BackendError, match="not a directory"):
        adaptor.files().createDirectories(adaptor.files().newPath(filesystem, "a/b"))


def test_missing_entries_raise_not_found(adaptor, filesystem):
    files = adaptor.files()
    missing = files.newPath(filesystem, "missing")

    for operation in (files.getAttributes, files.readAllBytes, files.delete, files.listDirectory):
        with pytest.raises(NotFoundError):
            operation(missing)

    with pytest.raises(NotFoundError):
        files.createDirectory(missing.resolve("child"))


def test_new_filesystem_missing_directory_raises(adaptor, tmp_path):
    with pytest.raises(NotFoundError):
        adaptor.files().newFileSystem(
            f"file://{tmp_path}/missing", DefaultCredential(), None
        )


def test_closed_filesystem_raises(adaptor, filesystem):
    files = adaptor.files()
    path = files.newPath(filesystem, "x")
    files.close(filesystem)

    assert not files.isOpen(filesystem)
    with pytest.raises(AlreadyClosedError):
        files.getAttributes(path)
    with pytest.raises(AlreadyClosedError):
        files.close(filesystem)
