"""
Verbosity levels shared by steps and the process executor.

Levels are ordered from quietest to loudest; the predicates below compare
against that ordering.
"""

from enum import IntEnum


class Verbosity(IntEnum):
    """How much a run should print, from quietest to loudest."""
    SILENT = 0
    STANDARD_INFORMATION = 1
    BINARY_OUTPUTS = 2
    COMMANDS = 3
    COMMANDS_AND_SPECIAL_OUTPUT = 4
    COMMANDS_AND_OUTPUT = 5
    ALL = 6

    @classmethod
    def parse(cls, name: str) -> "Verbosity":
        """
        Parse a verbosity name as written on the command line or in a step file.

        Args:
            name: Case-insensitive level name, or one of the aliases
                'standard' / 'quiet'

        Returns:
            Matching Verbosity

        Raises:
            ValueError: If the name is not a known level
        """
        key = name.strip().upper().replace('-', '_')
        key = _ALIASES.get(key, key)
        try:
            return cls[key]
        except KeyError:
            choices = ', '.join(level.name.lower() for level in cls)
            raise ValueError(f"Unknown verbosity '{name}'. Expected one of: {choices}") from None

    def should_print_standard_information(self) -> bool:
        return self >= Verbosity.STANDARD_INFORMATION

    def should_print_output(self) -> bool:
        return self >= Verbosity.STANDARD_INFORMATION

    def should_print_binary_run_information(self) -> bool:
        return self >= Verbosity.BINARY_OUTPUTS

    def should_print_command(self) -> bool:
        return self >= Verbosity.COMMANDS

    def should_use_verbosity_flag_if_available(self) -> bool:
        return self == Verbosity.ALL


_ALIASES = {
    'QUIET': 'SILENT',
    'STANDARD': 'STANDARD_INFORMATION',
}
