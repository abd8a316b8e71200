"""Execution context handed to every step."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional, TextIO, Union

from .console import Console, ConsoleEvent, log_console_event
from .exec.process_executor import ProcessExecutor
from .verbosity import Verbosity


EventSink = Callable[[ConsoleEvent], None]


@dataclass
class ExecutionContext:
    """
    Everything a step may consult while it runs.

    Attributes:
        project_root: Default working directory for steps
        console: Real output sinks
        process_executor: Shared executor used by shell steps
        verbosity: How much the run should print
        environment: Complete environment for child processes
        event_sink: Receives ConsoleEvents posted by steps
    """
    project_root: Path
    console: Console
    process_executor: ProcessExecutor
    verbosity: Verbosity = Verbosity.STANDARD_INFORMATION
    environment: Dict[str, str] = field(default_factory=dict)
    event_sink: EventSink = log_console_event

    @classmethod
    def create(
        cls,
        project_root: Union[str, Path],
        verbosity: Verbosity = Verbosity.STANDARD_INFORMATION,
        environment: Optional[Dict[str, str]] = None,
        console: Optional[Console] = None,
        event_sink: Optional[EventSink] = None,
    ) -> "ExecutionContext":
        """
        Build a context with defaults for anything not supplied.

        The environment defaults to a copy of the current process environment
        and the console to the system streams.
        """
        console = console or Console.from_system()
        return cls(
            project_root=Path(project_root).resolve(),
            console=console,
            process_executor=ProcessExecutor(console),
            verbosity=verbosity,
            environment=dict(os.environ) if environment is None else dict(environment),
            event_sink=event_sink or log_console_event,
        )

    @property
    def stdout(self) -> TextIO:
        return self.console.stdout

    @property
    def stderr(self) -> TextIO:
        return self.console.stderr

    def post_event(self, event: ConsoleEvent) -> None:
        self.event_sink(event)
