"""Main CLI entry point for buildstep."""

import argparse
import sys
from typing import Optional

from .commands import run_steps
from ..verbosity import Verbosity


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the buildstep CLI."""
    parser = argparse.ArgumentParser(
        prog='buildstep',
        description='Run build steps as fully observed native processes'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    run_parser = subparsers.add_parser('run', help='Run the steps of a step file')
    run_parser.add_argument(
        'step_file',
        type=str,
        help='Path to step file YAML'
    )
    run_parser.add_argument(
        '--project-root',
        type=str,
        help='Default working directory for steps (default: current directory)'
    )
    run_parser.add_argument(
        '--verbosity',
        choices=[level.name.lower() for level in Verbosity],
        default='standard_information',
        help='How much step output to print'
    )
    run_parser.add_argument(
        '--env',
        action='append',
        metavar='KEY=VALUE',
        help='Extra environment variables for all steps (can be specified multiple times)'
    )
    run_parser.add_argument(
        '--on-error',
        choices=['stop', 'continue'],
        default='stop',
        help='Whether to keep running steps after one fails'
    )
    run_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Validate and print step descriptions without running them'
    )
    run_parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    run_parser.add_argument(
        '--log-level',
        choices=['debug', 'info', 'warn', 'error'],
        default='info',
        help='Set log level'
    )

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'run':
        return run_steps(parsed_args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
