"""Tests for configurable command steps and output policy flags."""

import pytest

from buildstep.steps import CommandStep, OutputPolicy
from buildstep.steps.shell import never, standard_or_above
from buildstep.verbosity import Verbosity

from conftest import python_command


class TestCommandStep:
    """Test CommandStep construction and execution."""

    def test_string_command_is_split_without_a_shell(self, context):
        step = CommandStep("greet", 'echo "hello world"')

        assert step.get_shell_command(context) == ["echo", "hello world"]

    def test_list_command_is_copied(self, context):
        argv = ["echo", "a"]
        step = CommandStep("echo", argv)
        argv.append("b")

        assert step.get_shell_command(context) == ["echo", "a"]

    def test_empty_command_rejected(self):
        with pytest.raises(ValueError):
            CommandStep("empty", "   ")

    def test_invalid_command_type_rejected(self):
        with pytest.raises(ValueError):
            CommandStep("bad", 42)

    def test_short_name_and_overrides(self, context):
        step = CommandStep("build", ["make"], env={"CC": "clang"}, stdin="input")

        assert step.get_short_name() == "build"
        assert step.environment_overrides(context) == {"CC": "clang"}
        assert step.get_stdin() == "input"

    def test_description_includes_env_and_cwd(self, context):
        step = CommandStep("build", ["make", "all"], env={"CFLAGS": "-O2 -g"}, working_directory="/src")

        assert step.get_description(context) == "(cd /src && CFLAGS='-O2 -g' make all)"

    def test_executes_with_stdin(self, context):
        step = CommandStep(
            "cat",
            python_command("import sys; sys.stdout.write(sys.stdin.read())"),
            stdin="piped",
        )

        assert step.execute(context) == 0
        assert step.get_stdout() == "piped"


class TestOutputPolicyFlags:
    """Test OutputPolicy.from_flags."""

    def test_defaults(self):
        policy = OutputPolicy.from_flags()

        assert policy == OutputPolicy()
        assert policy.print_stdout is never
        assert policy.print_stderr is standard_or_above
        assert policy.flush_progress_live is False

    def test_print_stdout_follows_verbosity(self):
        policy = OutputPolicy.from_flags(print_stdout=True)

        assert policy.print_stdout(Verbosity.STANDARD_INFORMATION) is True
        assert policy.print_stdout(Verbosity.SILENT) is False

    def test_print_stderr_disabled(self):
        policy = OutputPolicy.from_flags(print_stderr=False)

        assert policy.print_stderr(Verbosity.ALL) is False

    def test_stream_output(self):
        assert OutputPolicy.from_flags(stream_output=True).flush_progress_live is True
