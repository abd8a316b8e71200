"""Run command implementation."""

import logging
import os
from argparse import Namespace
from pathlib import Path
from typing import Dict, List

from buildstep.console import Console
from buildstep.context import ExecutionContext
from buildstep.exceptions import StepFileValidationError
from buildstep.loader import StepFileLoader
from buildstep.steps.command import CommandStep
from buildstep.verbosity import Verbosity


logger = logging.getLogger(__name__)


def parse_env(args: Namespace) -> Dict[str, str]:
    """Parse --env KEY=VALUE arguments."""
    env = {}
    for item in args.env or []:
        if '=' not in item:
            raise ValueError(f"Invalid env format: {item}. Expected KEY=VALUE")
        key, value = item.split('=', 1)
        env[key] = value
    return env


def process_exit_status(exit_code: int) -> int:
    """Map a Popen return code to a CLI exit status."""
    if exit_code < 0:
        # Killed by signal N: report it the way a shell would
        return 128 - exit_code
    return exit_code


def execute_steps(steps: List[CommandStep], context: ExecutionContext, on_error: str = 'stop') -> int:
    """
    Execute steps in order.

    Args:
        steps: Steps to run
        context: Shared execution context
        on_error: 'stop' to halt at the first failure, 'continue' to run the rest

    Returns:
        0 if every step succeeded, else the exit status of the first failure
    """
    first_failure = 0

    for step in steps:
        name = step.get_short_name()
        logger.info(f"Running step '{name}': {step.get_description(context)}")

        exit_code = step.execute(context)
        logger.debug(f"Step '{name}' finished in {step.get_duration()} ms with exit code {exit_code}")

        if exit_code != 0:
            logger.error(f"Step '{name}' failed with exit code {exit_code}")
            if not first_failure:
                first_failure = process_exit_status(exit_code)
            if on_error == 'stop':
                break

    return first_failure


def run_steps(args: Namespace) -> int:
    """Run the steps of a step file."""
    log_level = getattr(logging, args.log_level.upper())
    if args.debug:
        log_level = logging.DEBUG

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        project_root = Path(args.project_root or Path.cwd()).resolve()
        if not project_root.is_dir():
            logger.error(f"Project root is not a directory: {project_root}")
            return 1

        step_file = Path(args.step_file).resolve()
        if not step_file.exists():
            logger.error(f"Step file not found: {step_file}")
            return 1

        logger.info(f"Loading step file: {step_file}")
        loader = StepFileLoader(project_root)
        try:
            document = loader.load(step_file)
        except StepFileValidationError as e:
            for error in e.errors:
                location = f" ({error.path})" if error.path else ""
                logger.error(f"Validation error{location}: {error.message}")
            return e.exit_code

        environment = dict(os.environ)
        environment.update({str(k): str(v) for k, v in (document.get('env') or {}).items()})
        environment.update(parse_env(args))

        console = Console.from_system()
        context = ExecutionContext.create(
            project_root=project_root,
            verbosity=Verbosity.parse(args.verbosity),
            environment=environment,
            console=console,
        )
        steps = loader.build_steps(document)

        if args.dry_run:
            for step in steps:
                console.write_stdout(f"{step.get_description(context)}\n")
            logger.info(f"[DRY RUN] {len(steps)} step(s) validated")
            return 0

        return execute_steps(steps, context, on_error=args.on_error)

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Validation error: {e}")
        return 2
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1
