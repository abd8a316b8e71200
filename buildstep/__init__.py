"""
buildstep: the subprocess-execution core of a build tool.

Steps describe build actions; shell steps run them as native processes
through a ProcessExecutor that drains stdout and stderr concurrently.
"""

from .console import Ansi, Console, ConsoleEvent
from .context import ExecutionContext
from .exceptions import InvariantViolationError, StepFileValidationError, ValidationError
from .exec import ProcessExecutor, ProcessOption, ProcessResult, StreamDrainer
from .steps import CommandStep, OutputPolicy, ShellStep, Step
from .verbosity import Verbosity

__version__ = "0.1.0"

__all__ = [
    "Ansi",
    "Console",
    "ConsoleEvent",
    "ExecutionContext",
    "InvariantViolationError",
    "StepFileValidationError",
    "ValidationError",
    "ProcessExecutor",
    "ProcessOption",
    "ProcessResult",
    "StreamDrainer",
    "CommandStep",
    "OutputPolicy",
    "ShellStep",
    "Step",
    "Verbosity",
]
