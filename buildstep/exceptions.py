"""Buildstep exceptions."""

from typing import List
from dataclasses import dataclass


@dataclass
class ValidationError:
    """Single validation error."""
    message: str
    path: str = ""
    exit_code: int = 2


class StepFileValidationError(Exception):
    """Raised when a step file fails validation.

    This exception is raised by the loader when validation errors occur,
    allowing the CLI to catch it and map to appropriate exit codes.
    """

    def __init__(self, errors: List[ValidationError]):
        self.errors = errors
        self.exit_code = 2

        messages = []
        for error in errors:
            if error.path:
                messages.append(f"Validation error at {error.path}: {error.message}")
            else:
                messages.append(f"Validation error: {error.message}")

        super().__init__("\n".join(messages))


class InvariantViolationError(RuntimeError):
    """Raised when a step is queried in a state it cannot answer from.

    Signals programmer misuse (e.g. reading a duration before the step ran,
    or reading stdout that was streamed live). Never caught inside buildstep.
    """
