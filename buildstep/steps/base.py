"""The Step contract held by whatever schedules build work."""

from abc import ABC, abstractmethod

from ..context import ExecutionContext


class Step(ABC):
    """A single unit of build work."""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> int:
        """
        Run the step.

        Returns:
            Process-style exit code, 0 on success. Ordinary command failures
            are reported through the exit code, not raised.
        """

    @abstractmethod
    def get_description(self, context: ExecutionContext) -> str:
        """Human-readable rendering of what the step runs. Must not have side effects."""

    @abstractmethod
    def get_short_name(self) -> str:
        """Stable short identifier for logs."""
