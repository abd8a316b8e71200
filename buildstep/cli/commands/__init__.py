"""CLI command handlers."""

from .run import run_steps

__all__ = ['run_steps']
