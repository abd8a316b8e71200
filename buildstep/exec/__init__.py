"""
Execution module for buildstep.
Handles process spawning, pipe draining, and result collection.
"""

from .stream_drainer import StreamDrainer
from .process_executor import ProcessExecutor, ProcessOption, ProcessResult, spawn_process

__all__ = [
    "StreamDrainer",
    "ProcessExecutor",
    "ProcessOption",
    "ProcessResult",
    "spawn_process",
]
