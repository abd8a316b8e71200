"""Concrete shell step whose command, environment and policy are plain data."""

import shlex
from pathlib import Path
from typing import Dict, List, Optional, Union

from .shell import OutputPolicy, ShellStep
from ..context import ExecutionContext


class CommandStep(ShellStep):
    """
    Shell step configured entirely at construction.

    Used for steps declared in a step file, and anywhere a caller already
    knows the exact command to run.
    """

    def __init__(
        self,
        name: str,
        command: Union[str, List[str]],
        env: Optional[Dict[str, str]] = None,
        working_directory: Optional[Union[str, Path]] = None,
        stdin: Optional[str] = None,
        policy: Optional[OutputPolicy] = None,
    ):
        """
        Initialize command step.

        Args:
            name: Short name of the step
            command: Argv array, or a string parsed with shlex (never run through a shell)
            env: Environment variables to add on top of the context environment
            working_directory: Directory to run in (default: project root)
            stdin: Text to feed to the command's stdin
            policy: Output policy
        """
        super().__init__(working_directory=working_directory, policy=policy)
        if isinstance(command, str):
            argv = shlex.split(command)
        elif isinstance(command, list):
            argv = list(command)
        else:
            raise ValueError(f"Invalid command type: {type(command)}. Expected str or list.")
        if not argv:
            raise ValueError(f"Step '{name}' has an empty command")

        self.name = name
        self.argv = argv
        self.env = dict(env or {})
        self.stdin = stdin

    def assemble_command(self, context: ExecutionContext) -> List[str]:
        return list(self.argv)

    def environment_overrides(self, context: ExecutionContext) -> Dict[str, str]:
        return dict(self.env)

    def get_stdin(self) -> Optional[str]:
        return self.stdin

    def get_short_name(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"CommandStep(name={self.name!r}, argv={self.argv!r})"
