"""Shared fixtures for buildstep tests."""

import io
import os
import sys
from typing import List

import pytest

from buildstep.console import Console, ConsoleEvent
from buildstep.context import ExecutionContext
from buildstep.verbosity import Verbosity


def python_command(source: str) -> List[str]:
    """Argv that runs a Python snippet with the interpreter running the tests."""
    return [sys.executable, "-c", source]


@pytest.fixture
def console():
    """Console writing into in-memory buffers."""
    return Console(stdout=io.StringIO(), stderr=io.StringIO())


@pytest.fixture
def events():
    """Collected console events."""
    collected: List[ConsoleEvent] = []
    return collected


@pytest.fixture
def context(tmp_path, console, events):
    """Execution context rooted at a temporary project directory."""
    return ExecutionContext.create(
        project_root=tmp_path,
        verbosity=Verbosity.STANDARD_INFORMATION,
        environment=dict(os.environ),
        console=console,
        event_sink=events.append,
    )
