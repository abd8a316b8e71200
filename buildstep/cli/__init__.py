"""Command-line interface for buildstep."""

from .main import main

__all__ = ['main']
