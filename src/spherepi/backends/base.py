r"""
Base protocol and worker helpers for execution backends.

This module provides:

Protocol
    :class:`ExecutionBackend` — Interface for driving a list of replicates

Functions
    :func:`worker_sample` — Top-level worker for process-based parallelism
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterator, Protocol, Sequence

from ..seeding import make_generator
from ..sims.sphere import estimate_sphere_volume

if TYPE_CHECKING:
    from ..simulation import Replicate

__all__ = [
    "ExecutionBackend",
    "worker_sample",
]


def worker_sample(
    state: dict[str, Any],
    n_points: int,
    block_size: int,
) -> tuple[float, float, dict[str, Any]]:
    r"""
    Run one replicate in a **separate worker process**.

    Parameters
    ----------
    state : dict
        Generator state of the replicate at launch time.
    n_points : int
        Point budget.
    block_size : int
        Points per vectorised block.

    Returns
    -------
    tuple
        ``(estimate, elapsed, final_state)``. The final state lets the parent
        keep its replicate positioned exactly where a local run would leave it.
    """
    rng = make_generator(state)
    estimate, elapsed = estimate_sphere_volume(rng, n_points, block_size)
    return estimate, elapsed, rng.bit_generator.state


class ExecutionBackend(Protocol):
    r"""
    Protocol for the strategies that drive a pass over seeded replicates.

    Implementations run every replicate once with the same point budget and
    yield them back **in replicate-index order** as their results become
    available, so the caller can aggregate in insertion order.
    """

    def run(
        self,
        replicates: Sequence["Replicate"],
        n_points: int,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> Iterator["Replicate"]:
        r"""
        Run all replicates and yield each one once it has completed.

        Parameters
        ----------
        replicates : sequence of Replicate
            Seeded replicates, in index order.
        n_points : int
            Point budget per replicate.
        progress_callback : callable or None
            Optional callback ``f(completed, total)``.
        """
