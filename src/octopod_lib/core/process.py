# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Execution of backend commands as external processes.

Each command runs in its own process. Input for the process is written by a
dedicated `StreamForwarder` thread through a pipe that the thread closes once
the input is exhausted, so that the caller can drain standard output and
standard error at the same time without deadlocking on full pipe buffers.
"""

import os
import subprocess
import threading
from dataclasses import dataclass
from typing import BinaryIO

from .config import CFG
from .error import TransportError
from .logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """
    Captured outcome of a finished command.

    Attributes:
        exit_code (int): Exit code of the process.
        stdout (str): Everything the process wrote to standard output.
        stderr (str): Everything the process wrote to standard error.
    """

    exit_code: int
    stdout: str
    stderr: str


class StreamForwarder(threading.Thread):
    """
    Copy bytes from `data` into `sink` on a separate thread and close `sink` afterwards.

    Errors are not raised on the forwarding thread; they are stored in `error`
    and can be inspected after `join`.
    """

    CHUNK_SIZE = 64 * 1024

    def __init__(self, data: bytes, sink: BinaryIO, name: str = "stream-forwarder"):
        super().__init__(name=name, daemon=True)
        self._data = data
        self._sink = sink
        self.error: OSError | None = None

    def run(self) -> None:
        try:
            for offset in range(0, len(self._data), self.CHUNK_SIZE):
                self._sink.write(self._data[offset : offset + self.CHUNK_SIZE])
            self._sink.flush()
        except OSError as e:
            # the process exited without reading all of its input
            logger.debug(f"Could not forward input to process: {e}.")
            self.error = e
        finally:
            try:
                self._sink.close()
            except OSError as e:
                logger.debug(f"Could not close process input: {e}.")


class RunningCommand:
    """
    A spawned command together with the thread feeding its input.
    """

    def __init__(
        self,
        command: list[str],
        process: subprocess.Popen,
        forwarder: StreamForwarder | None,
        adaptor_name: str | None = None,
    ):
        self.command = command
        self.process = process
        self._forwarder = forwarder
        self._adaptor_name = adaptor_name

    def communicate(self, timeout: float | None = None) -> CommandResult:
        """
        Read standard output and standard error until the process exits.

        Args:
            timeout (float | None): Maximal time to wait in seconds.
                Defaults to `CFG.timeouts.command`.

        Returns:
            CommandResult: Exit code and decoded output of the process.

        Raises:
            TransportError: If the process does not finish in time.
        """
        timeout = CFG.timeouts.command if timeout is None else timeout
        try:
            stdout, stderr = self.process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired as e:
            self.process.kill()
            self.process.communicate()
            raise TransportError(
                f"Command '{' '.join(self.command)}' timed out after {timeout} seconds.",
                self._adaptor_name,
            ) from e
        finally:
            if self._forwarder is not None:
                self._forwarder.join()

        result = CommandResult(
            exit_code=self.process.returncode,
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
        )
        logger.debug(
            f"Command '{' '.join(self.command)}' finished with exit code {result.exit_code}."
        )
        return result


def run_command(
    command: list[str], stdin: str | None = None, adaptor_name: str | None = None
) -> RunningCommand:
    """
    Spawn `command` and start forwarding `stdin` to it.

    Args:
        command (list[str]): The command and its arguments.
        stdin (str | None): Input for the process. If None, the process reads from /dev/null.
        adaptor_name (str | None): Name of the adaptor to report in errors.

    Returns:
        RunningCommand: Handle of the running process. Call `communicate` to collect its output.

    Raises:
        TransportError: If the process cannot be spawned.
    """
    logger.debug(f"Running command '{' '.join(command)}'.")

    read_fd, write_fd = os.pipe() if stdin is not None else (None, None)
    try:
        process = subprocess.Popen(
            command,
            stdin=read_fd if read_fd is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as e:
        if write_fd is not None:
            os.close(write_fd)
        raise TransportError(
            f"Could not execute command '{' '.join(command)}': {e}.", adaptor_name
        ) from e
    finally:
        # the child owns the read end now
        if read_fd is not None:
            os.close(read_fd)

    forwarder = None
    if write_fd is not None:
        forwarder = StreamForwarder(stdin.encode(), os.fdopen(write_fd, "wb"))
        forwarder.start()

    return RunningCommand(command, process, forwarder, adaptor_name)
