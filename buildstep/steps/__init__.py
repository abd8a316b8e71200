"""Step contract and shell-backed step implementations."""

from .base import Step
from .shell import OutputPolicy, ShellStep
from .command import CommandStep

__all__ = [
    "Step",
    "ShellStep",
    "OutputPolicy",
    "CommandStep",
]
