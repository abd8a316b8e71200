"""
Tests for the run command of the CLI.
"""

import shlex
import sys

import pytest
import yaml

from buildstep.cli.main import create_parser, main


def write_step_file(directory, steps, **extra):
    document = {"version": "1", "steps": steps}
    document.update(extra)
    path = directory / "steps.yaml"
    path.write_text(yaml.safe_dump(document))
    return path


def python_step(name, source, **fields):
    step = {"name": name, "command": [sys.executable, "-c", source]}
    step.update(fields)
    return step


class TestRunCommand:
    """Test `buildstep run`."""

    def test_all_steps_succeed(self, tmp_path):
        marker = tmp_path / "marker.txt"
        path = write_step_file(tmp_path, [
            python_step("first", "open('marker.txt', 'w').write('1')"),
            python_step("second", "import sys; sys.exit(0 if open('marker.txt').read() == '1' else 9)"),
        ])

        assert main(["run", str(path), "--project-root", str(tmp_path)]) == 0
        assert marker.read_text() == "1"

    def test_first_failure_stops_the_run(self, tmp_path):
        path = write_step_file(tmp_path, [
            python_step("fails", "import sys; sys.exit(3)"),
            python_step("never", "open('ran.txt', 'w').write('x')"),
        ])

        assert main(["run", str(path), "--project-root", str(tmp_path)]) == 3
        assert not (tmp_path / "ran.txt").exists()

    def test_continue_on_error_runs_remaining_steps(self, tmp_path):
        path = write_step_file(tmp_path, [
            python_step("fails", "import sys; sys.exit(4)"),
            python_step("also_fails", "import sys; sys.exit(5)"),
            python_step("runs", "open('ran.txt', 'w').write('x')"),
        ])

        exit_code = main(["run", str(path), "--project-root", str(tmp_path), "--on-error", "continue"])

        assert exit_code == 4
        assert (tmp_path / "ran.txt").exists()

    def test_env_sources_are_layered(self, tmp_path):
        path = write_step_file(
            tmp_path,
            [python_step(
                "check",
                "import os, sys; sys.exit(0 if (os.environ['FILE_VAR'], os.environ['CLI_VAR'], os.environ['STEP_VAR']) == ('f', 'c', 's') else 7)",
                env={"STEP_VAR": "s"},
            )],
            env={"FILE_VAR": "f", "CLI_VAR": "overridden"},
        )

        assert main(["run", str(path), "--project-root", str(tmp_path), "--env", "CLI_VAR=c"]) == 0

    def test_step_cwd_is_relative_to_project_root(self, tmp_path):
        (tmp_path / "build").mkdir()
        path = write_step_file(tmp_path, [
            python_step("in_build", "open('here.txt', 'w').write('x')", cwd="build"),
        ])

        assert main(["run", str(path), "--project-root", str(tmp_path)]) == 0
        assert (tmp_path / "build" / "here.txt").exists()

    def test_dry_run_prints_descriptions(self, tmp_path, capsys):
        path = write_step_file(tmp_path, [
            {"name": "greet", "command": ["echo", "hi there"], "env": {"X": "1"}, "cwd": "sub"},
            {"name": "never", "command": ["false"]},
        ])

        assert main(["run", str(path), "--project-root", str(tmp_path), "--dry-run"]) == 0

        out = capsys.readouterr().out.splitlines()
        assert out == [
            f"(cd {shlex.quote(str(tmp_path.resolve() / 'sub'))} && X=1 echo 'hi there')",
            "false",
        ]

    def test_validation_error_exits_2(self, tmp_path):
        path = write_step_file(tmp_path, [{"name": "bad"}])

        assert main(["run", str(path), "--project-root", str(tmp_path)]) == 2

    def test_missing_step_file_exits_1(self, tmp_path):
        assert main(["run", str(tmp_path / "nope.yaml")]) == 1

    def test_missing_project_root_exits_1(self, tmp_path):
        path = write_step_file(tmp_path, [python_step("ok", "pass")])

        assert main(["run", str(path), "--project-root", str(tmp_path / "missing")]) == 1

    def test_malformed_env_argument_exits_2(self, tmp_path):
        path = write_step_file(tmp_path, [python_step("ok", "pass")])

        assert main(["run", str(path), "--project-root", str(tmp_path), "--env", "NOVALUE"]) == 2

    def test_failed_step_output_is_shown(self, tmp_path, capsys):
        path = write_step_file(tmp_path, [
            python_step("loud", "import sys; print('diagnostic'); sys.exit(1)"),
        ])

        assert main(["run", str(path), "--project-root", str(tmp_path)]) == 1
        assert "diagnostic" in capsys.readouterr().out

    def test_silent_failed_step_prints_nothing(self, tmp_path, capsys):
        path = write_step_file(tmp_path, [
            python_step("quiet", "import sys; print('diagnostic'); sys.exit(1)"),
        ])

        assert main(["run", str(path), "--project-root", str(tmp_path), "--verbosity", "silent"]) == 1
        assert "diagnostic" not in capsys.readouterr().out


class TestParser:
    """Test argument parsing."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_run_defaults(self):
        args = create_parser().parse_args(["run", "steps.yaml"])

        assert args.verbosity == "standard_information"
        assert args.on_error == "stop"
        assert args.dry_run is False

    def test_unknown_verbosity_rejected(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["run", "steps.yaml", "--verbosity", "chatty"])
