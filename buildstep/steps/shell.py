"""
Shell step: a Step backed by running a native command.

The command line is assembled once and cached. The child gets exactly the
context environment plus the step's overrides, runs in the step's working
directory (or the project root), and is driven to completion by the
context's ProcessExecutor. Captured output and timing are kept on the step
for the caller to inspect afterwards.
"""

import logging
import shlex
import threading
import time
import traceback
from abc import abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Union

from .base import Step
from ..console import ConsoleEvent
from ..context import ExecutionContext
from ..exceptions import InvariantViolationError
from ..exec.process_executor import ProcessOption, spawn_process
from ..verbosity import Verbosity


logger = logging.getLogger(__name__)


def never(verbosity: Verbosity) -> bool:
    return False


def standard_or_above(verbosity: Verbosity) -> bool:
    return verbosity.should_print_output()


@dataclass(frozen=True)
class OutputPolicy:
    """
    Decides what happens to a shell step's output.

    Attributes:
        print_stdout: Whether captured stdout is posted as an info event
        print_stderr: Whether captured stderr is posted as a severe event
        flush_progress_live: Stream stdout/stderr to the console while the
            command runs instead of buffering them
    """
    print_stdout: Callable[[Verbosity], bool] = never
    print_stderr: Callable[[Verbosity], bool] = standard_or_above
    flush_progress_live: bool = False

    @classmethod
    def from_flags(
        cls,
        print_stdout: Optional[bool] = None,
        print_stderr: Optional[bool] = None,
        stream_output: bool = False,
    ) -> "OutputPolicy":
        """Build a policy from plain booleans; None keeps the default."""
        def pick(flag: Optional[bool], default: Callable[[Verbosity], bool]) -> Callable[[Verbosity], bool]:
            if flag is None:
                return default
            return standard_or_above if flag else never

        return cls(
            print_stdout=pick(print_stdout, never),
            print_stderr=pick(print_stderr, standard_or_above),
            flush_progress_live=stream_output,
        )


class ShellStep(Step):
    """
    Base class for steps that run a shell command.

    Subclasses implement assemble_command(). Output handling can be tuned
    either by passing an OutputPolicy or by overriding the should_* hooks.
    A ShellStep instance is meant to be executed once.
    """

    def __init__(
        self,
        working_directory: Optional[Union[str, Path]] = None,
        policy: Optional[OutputPolicy] = None,
    ):
        """
        Initialize shell step.

        Args:
            working_directory: Directory to run in (default: project root)
            policy: Output policy (default: buffer output, echo stderr at
                standard verbosity)
        """
        self.working_directory = Path(working_directory) if working_directory is not None else None
        self.policy = policy or OutputPolicy()

        self._command: Optional[List[str]] = None
        self._command_lock = threading.Lock()
        self._stdout: Optional[str] = None
        self._stderr: Optional[str] = None
        self._start_time: Optional[float] = None
        self._end_time: Optional[float] = None

    # -- extension points -------------------------------------------------

    @abstractmethod
    def assemble_command(self, context: ExecutionContext) -> List[str]:
        """
        Build the argv for this step.

        Implementations must not have observable side effects; the result is
        cached by get_shell_command().
        """

    def environment_overrides(self, context: ExecutionContext) -> Dict[str, str]:
        """Environment variables to add on top of the context environment."""
        return {}

    def get_stdin(self) -> Optional[str]:
        """Text to feed to the command's stdin, if any."""
        return None

    def should_print_stdout(self, verbosity: Verbosity) -> bool:
        return self.policy.print_stdout(verbosity)

    def should_print_stderr(self, verbosity: Verbosity) -> bool:
        return self.policy.print_stderr(verbosity)

    def should_flush_progress_live(self) -> bool:
        return self.policy.flush_progress_live

    # -- command and environment ------------------------------------------

    def get_shell_command(self, context: ExecutionContext) -> List[str]:
        """
        Return the argv for this step. Idempotent.

        assemble_command() is called at most once per instance.
        """
        with self._command_lock:
            if self._command is None:
                self._command = list(self.assemble_command(context))
            return list(self._command)

    def build_environment(self, context: ExecutionContext) -> Dict[str, str]:
        """Context environment overlaid with this step's overrides."""
        environment = dict(context.environment)
        environment.update(self.environment_overrides(context))
        return environment

    def resolve_working_directory(self, context: ExecutionContext) -> Path:
        if self.working_directory is not None:
            return self.working_directory
        return context.project_root

    # -- execution ----------------------------------------------------------

    def execute(self, context: ExecutionContext) -> int:
        command = self.get_shell_command(context)
        environment = self.build_environment(context)
        cwd = self.resolve_working_directory(context)
        stdin = self.get_stdin()

        logger.debug(f"Running in {cwd}: {command}")

        self._start_time = time.monotonic()
        try:
            process = spawn_process(command, cwd=cwd, env=environment, pipe_stdin=stdin is not None)
            exit_code = self.interact_with_process(context, process, stdin)
        except (OSError, ValueError):
            # ValueError: Popen rejects argv or env values it cannot pass, e.g. NUL bytes
            traceback.print_exc(file=context.stderr)
            exit_code = 1
        finally:
            self._end_time = time.monotonic()

        return exit_code

    def interact_with_process(self, context: ExecutionContext, process, stdin: Optional[str] = None) -> int:
        """Hand the started process to the executor and record its output."""
        options: Set[ProcessOption] = set()
        if self.should_flush_progress_live():
            options.add(ProcessOption.STREAM_STDOUT_LIVE)
            options.add(ProcessOption.STREAM_STDERR_LIVE)
        if context.verbosity == Verbosity.SILENT:
            options.add(ProcessOption.SILENT)

        result = context.process_executor.execute(process, frozenset(options), stdin)
        self._stdout = result.stdout
        self._stderr = result.stderr

        verbosity = context.verbosity
        if self._stdout and self.should_print_stdout(verbosity):
            context.post_event(ConsoleEvent.info("%s", self._stdout))
        if self._stderr and self.should_print_stderr(verbosity):
            context.post_event(ConsoleEvent.severe("%s", self._stderr))

        return result.exit_code

    # -- results --------------------------------------------------------------

    @property
    def start_time(self) -> Optional[float]:
        return self._start_time

    @property
    def end_time(self) -> Optional[float]:
        return self._end_time

    def get_duration(self) -> int:
        """
        Wall time of the last execution in milliseconds.

        Raises:
            InvariantViolationError: If the step has not finished executing
        """
        if self._start_time is None or self._end_time is None:
            raise InvariantViolationError(
                f"Duration of '{self.get_short_name()}' is unavailable: execute() has not completed"
            )
        return int((self._end_time - self._start_time) * 1000)

    def get_stdout(self) -> str:
        """
        Captured stdout of the command.

        Raises:
            InvariantViolationError: If stdout was streamed live or the step never ran
        """
        if self._stdout is None:
            raise InvariantViolationError(
                "stdout was not captured: output must not be streamed live "
                "and execute() must have been invoked"
            )
        return self._stdout

    def get_stderr(self) -> str:
        """
        Captured stderr of the command.

        Raises:
            InvariantViolationError: If stderr was streamed live or the step never ran
        """
        if self._stderr is None:
            raise InvariantViolationError(
                "stderr was not captured: output must not be streamed live "
                "and execute() must have been invoked"
            )
        return self._stderr

    # -- description ------------------------------------------------------------

    def get_description(self, context: ExecutionContext) -> str:
        """
        Render the command the way a user would type it in a shell.

        Environment overrides come first as KEY=value, then the command, with
        values quoted where needed. A working-directory override wraps the
        whole thing in a subshell that only runs the command if cd succeeds.
        """
        env_tokens = [
            f"{key}={shlex.quote(value)}"
            for key, value in self.environment_overrides(context).items()
        ]
        cmd_tokens = [shlex.quote(arg) for arg in self.get_shell_command(context)]
        shell_command = " ".join(env_tokens + cmd_tokens)

        if self.working_directory is None:
            return shell_command
        return f"(cd {shlex.quote(str(self.working_directory))} && {shell_command})"
