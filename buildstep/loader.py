"""Step file loader and strict validation."""

import re
import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional, Set
import yaml

from buildstep.exceptions import ValidationError, StepFileValidationError
from buildstep.steps.command import CommandStep
from buildstep.steps.shell import OutputPolicy


ENV_NAME_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


class StepFileLoader:
    """Loads and validates step file YAML."""

    SUPPORTED_VERSIONS = {"1"}
    TOP_LEVEL_FIELDS = {'version', 'name', 'env', 'steps'}
    STEP_FIELDS = {
        'name', 'command', 'env', 'cwd', 'stdin',
        'print_stdout', 'print_stderr', 'stream_output',
    }
    BOOLEAN_FIELDS = ('print_stdout', 'print_stderr', 'stream_output')

    def __init__(self, project_root: Path):
        """Initialize loader with the project root that step cwds resolve against."""
        self.project_root = project_root.resolve()
        self.errors: List[ValidationError] = []

    def load(self, step_file: Path) -> Dict[str, Any]:
        """Load and validate a step file."""
        self.errors = []
        try:
            with open(step_file, 'r') as f:
                document = yaml.safe_load(f)
        except yaml.YAMLError as e:
            self._add_error(f"Failed to parse step file: {e}")
            self._raise_validation_errors()

        if document is None or not isinstance(document, dict):
            self._add_error("Step file must be a YAML object/dictionary")
            self._raise_validation_errors()

        version = document.get('version')
        if version is None:
            self._add_error("'version' field is required", "version")
        elif str(version) not in self.SUPPORTED_VERSIONS:
            self._add_error(f"Unsupported version '{version}'. Supported: {sorted(self.SUPPORTED_VERSIONS)}", "version")

        for key in document.keys():
            if key not in self.TOP_LEVEL_FIELDS:
                self._add_error(f"Unknown field '{key}'", str(key))

        if 'name' in document and not isinstance(document['name'], str):
            self._add_error("'name' must be a string", "name")

        if 'env' in document:
            self._validate_env(document['env'], "env")

        steps = document.get('steps')
        if not steps:
            self._add_error("'steps' field is required and must not be empty", "steps")
        elif not isinstance(steps, list):
            self._add_error("'steps' must be a list", "steps")
        else:
            self._validate_steps(steps)

        if self.errors:
            self._raise_validation_errors()

        return document

    def build_steps(self, document: Dict[str, Any]) -> List[CommandStep]:
        """
        Turn a validated step file into CommandSteps, in file order.

        Args:
            document: Result of load()

        Returns:
            One CommandStep per entry in 'steps'
        """
        steps = []
        for entry in document['steps']:
            cwd: Optional[Path] = None
            if entry.get('cwd'):
                cwd = self.project_root / entry['cwd']

            policy = OutputPolicy.from_flags(
                print_stdout=entry.get('print_stdout'),
                print_stderr=entry.get('print_stderr'),
                stream_output=bool(entry.get('stream_output', False)),
            )

            steps.append(CommandStep(
                name=entry['name'],
                command=entry['command'],
                env={str(k): str(v) for k, v in (entry.get('env') or {}).items()},
                working_directory=cwd,
                stdin=entry.get('stdin'),
                policy=policy,
            ))
        return steps

    def _validate_steps(self, steps: List[Any]):
        """Validate each step entry."""
        seen: Set[str] = set()

        for i, step in enumerate(steps):
            where = f"steps[{i}]"
            if not isinstance(step, dict):
                self._add_error("Step must be a dictionary", where)
                continue

            name = step.get('name')
            if not name or not isinstance(name, str):
                self._add_error("'name' is required and must be a string", where)
            else:
                where = f"steps[{i}] ({name})"
                if name in seen:
                    self._add_error(f"Duplicate step name '{name}'", where)
                seen.add(name)

            for key in step.keys():
                if key not in self.STEP_FIELDS:
                    self._add_error(f"Unknown field '{key}'", where)

            self._validate_command(step.get('command'), where)

            if 'env' in step:
                self._validate_env(step['env'], f"{where}.env")

            if 'cwd' in step:
                cwd = step['cwd']
                if not isinstance(cwd, str):
                    self._add_error("'cwd' must be a string", where)
                else:
                    self._validate_path_safety(cwd, f"{where}.cwd")

            if 'stdin' in step and not isinstance(step['stdin'], str):
                self._add_error("'stdin' must be a string", where)

            for flag in self.BOOLEAN_FIELDS:
                if flag in step and not isinstance(step[flag], bool):
                    self._add_error(f"'{flag}' must be a boolean", where)

    def _validate_command(self, command: Any, where: str):
        """Validate a step command: a non-empty string or list of strings."""
        if command is None:
            self._add_error("'command' is required", where)
        elif isinstance(command, str):
            if not command.strip():
                self._add_error("'command' must not be empty", where)
            else:
                try:
                    shlex.split(command)
                except ValueError as e:
                    self._add_error(f"'command' cannot be parsed: {e}", where)
        elif isinstance(command, list):
            if not command:
                self._add_error("'command' must not be empty", where)
            elif not all(isinstance(arg, str) for arg in command):
                self._add_error("'command' list entries must be strings", where)
        else:
            self._add_error("'command' must be a string or a list of strings", where)

    def _validate_env(self, env: Any, where: str):
        """Validate an environment mapping."""
        if not isinstance(env, dict):
            self._add_error("'env' must be a dictionary", where)
            return

        for key, value in env.items():
            if not isinstance(key, str) or not ENV_NAME_PATTERN.match(key):
                self._add_error(f"Invalid environment variable name '{key}'", where)
            if isinstance(value, (dict, list)) or value is None:
                self._add_error(f"Environment variable '{key}' must be a scalar value", where)

    def _validate_path_safety(self, path: str, where: str):
        """Keep step working directories inside the project root."""
        if Path(path).is_absolute():
            self._add_error("absolute paths not allowed", where)

        if '..' in Path(path).parts:
            self._add_error("parent directory traversal ('..') not allowed", where)

    def _add_error(self, message: str, path: str = "", exit_code: int = 2):
        """Add validation error."""
        self.errors.append(ValidationError(message, path, exit_code))

    def _raise_validation_errors(self):
        """Raise StepFileValidationError with accumulated errors."""
        raise StepFileValidationError(self.errors)
