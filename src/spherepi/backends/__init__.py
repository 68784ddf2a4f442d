"""
Execution backends for replicate passes.

CPU Backends
    :class:`SequentialBackend` — Replicates one after another
    :class:`ThreadBackend` — One thread per replicate
    :class:`ProcessBackend` — One process per replicate

Utilities
    :func:`worker_sample` — Top-level worker for process pools

Protocol
    :class:`ExecutionBackend` — Interface for custom backends
"""

from .base import ExecutionBackend, worker_sample
from .parallel import ProcessBackend, ThreadBackend
from .sequential import SequentialBackend

__all__ = [
    "ExecutionBackend",
    "SequentialBackend",
    "ThreadBackend",
    "ProcessBackend",
    "worker_sample",
]
