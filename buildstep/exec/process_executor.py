"""
Process executor module for driving a started process to completion.

Both output pipes are drained on their own threads while the calling thread
writes stdin and waits for exit, so a child blocked on a full pipe can never
deadlock against us. Output is either streamed live to the console or
buffered and returned in the ProcessResult.
"""

import logging
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import AbstractSet, Dict, List, Optional, Union

from .stream_drainer import StreamDrainer
from ..console import Console


logger = logging.getLogger(__name__)


class ProcessOption(str, Enum):
    """Options for ProcessExecutor.execute()."""
    STREAM_STDOUT_LIVE = "stream_stdout_live"
    STREAM_STDERR_LIVE = "stream_stderr_live"
    # Do not forward buffered output to the console, even if the process fails
    SILENT = "silent"


@dataclass(frozen=True)
class ProcessResult:
    """
    Outcome of a process run.

    stdout/stderr are set only for streams that were buffered; a stream that
    was streamed live has nothing to return.
    """
    exit_code: int
    stdout: Optional[str] = None
    stderr: Optional[str] = None


def spawn_process(
    command: List[str],
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Dict[str, str]] = None,
    pipe_stdin: bool = False,
) -> subprocess.Popen:
    """
    Start a process with both output pipes attached.

    Args:
        command: Argv array (no shell)
        cwd: Working directory
        env: Complete child environment (not merged with os.environ)
        pipe_stdin: Attach a stdin pipe; otherwise stdin reads from /dev/null

    Returns:
        The running process

    Raises:
        OSError: If the executable or working directory cannot be used
    """
    return subprocess.Popen(
        command,
        cwd=str(cwd) if cwd is not None else None,
        env=env,
        stdin=subprocess.PIPE if pipe_stdin else subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )


class ProcessExecutor:
    """
    Executes a process and blocks until it is finished.

    Holds no per-call state, so one instance can serve many steps running
    in parallel.
    """

    def __init__(self, console: Console):
        """
        Initialize process executor.

        Args:
            console: Real output sinks used for live streaming and for
                dumping buffered output of failed processes
        """
        if console is None:
            raise ValueError("ProcessExecutor requires a console")
        self.console = console

    def execute(
        self,
        process: subprocess.Popen,
        options: AbstractSet[ProcessOption] = frozenset(),
        stdin: Optional[str] = None,
    ) -> ProcessResult:
        """
        Drive a started process to completion.

        With STREAM_STDOUT_LIVE / STREAM_STDERR_LIVE the corresponding stream
        is written to the console as it is produced; otherwise it is buffered
        and returned in the result.

        Args:
            process: Process started with stdout/stderr pipes
            options: ProcessOption flags
            stdin: Text to write to the process's stdin before closing it

        Returns:
            ProcessResult; exit code 1 with no output if the interaction was
            interrupted by an I/O failure
        """
        stream_stdout = ProcessOption.STREAM_STDOUT_LIVE in options
        stream_stderr = ProcessOption.STREAM_STDERR_LIVE in options

        stdout_drainer = StreamDrainer(
            process.stdout,
            sink=self.console.write_stdout if stream_stdout else None,
            name="stdout",
        )
        stderr_drainer = StreamDrainer(
            process.stderr,
            sink=self.console.write_stderr if stream_stderr else None,
            name="stderr",
        )

        # Drainers must be running before anything below can block
        stdout_drainer.start()
        stderr_drainer.start()

        try:
            if stdin is not None:
                logger.debug(f"Writing {len(stdin)} characters to stdin of pid {process.pid}")
                with process.stdin:
                    process.stdin.write(stdin.encode('utf-8'))

            process.wait()
            stdout_drainer.join()
            stderr_drainer.join()

        except OSError as e:
            # The process was killed from outside or stopped reading its
            # input; neither is exceptional for the caller.
            logger.debug(f"Interaction with pid {process.pid} interrupted: {e}")
            return ProcessResult(exit_code=1)

        finally:
            process.kill()
            process.wait()

        stdout_text = stdout_drainer.get_text()
        stderr_text = stderr_drainer.get_text()
        exit_code = process.returncode

        # A failure is always shown unless the caller explicitly asked for quiet
        if exit_code != 0 and ProcessOption.SILENT not in options:
            if stdout_text is not None:
                self.console.write_stdout(stdout_text)
            if stderr_text is not None:
                self.console.write_stderr(stderr_text)

        logger.debug(
            f"Process {process.pid} exited with {exit_code} "
            f"(stdout output: {stdout_drainer.has_output}, stderr output: {stderr_drainer.has_output})"
        )

        return ProcessResult(exit_code=exit_code, stdout=stdout_text, stderr=stderr_text)

    def launch_and_execute(
        self,
        command: List[str],
        options: AbstractSet[ProcessOption] = frozenset(),
        stdin: Optional[str] = None,
        cwd: Optional[Union[str, Path]] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> ProcessResult:
        """
        Convenience wrapper: spawn the command, then execute() it.

        Raises:
            OSError: If the process cannot be started
        """
        process = spawn_process(command, cwd=cwd, env=env, pipe_stdin=stdin is not None)
        return self.execute(process, options, stdin)
