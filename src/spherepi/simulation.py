r"""
Replicate runner.

A :class:`Replicate` owns one private :class:`numpy.random.Generator` and the
result of its latest run. It can run in the calling thread (:meth:`Replicate.run_sync`)
or be handed to a :mod:`concurrent.futures` executor (:meth:`Replicate.run_async`)
and collected later with :meth:`Replicate.join`.

Example
-------
>>> from spherepi.seeding import MemoryStateStore, generate_states
>>> rep = Replicate(0, MemoryStateStore(generate_states(1)))
>>> rep.seed()
>>> rep.run_async(10_000)  # doctest: +ELLIPSIS
<Future ...>
>>> est = rep.join()
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Optional

import numpy as np

from .backends.base import worker_sample
from .config import DEFAULT_BLOCK_SIZE
from .exceptions import NoPendingRun, ReplicateError
from .seeding import StateStore, make_generator
from .sims.sphere import estimate_sphere_volume

logger = logging.getLogger(__name__)

__all__ = ["Replicate"]


class Replicate:
    r"""
    One independent Monte Carlo experiment producing a single volume estimate.

    Parameters
    ----------
    index : int
        Slot index of the replicate inside its experiment.
    store : StateStore
        Provider of deterministic generator states.
    block_size : int, default ``1_000_000``
        Forwarded to :func:`~spherepi.sims.sphere.estimate_sphere_volume`.

    Attributes
    ----------
    rng : numpy.random.Generator or None
        Private generator, ``None`` until :meth:`seed` is called.
    estimate : float or None
        Estimate of the latest completed run.
    elapsed : float or None
        Sampling time of the latest completed run, in seconds.

    Notes
    -----
    Nothing here is shared between replicates. A pending thread run advances
    :attr:`rng` from the worker thread; the owner must not touch the replicate
    until :meth:`join` returns, which the pending checks enforce.
    """

    def __init__(self, index: int, store: StateStore, block_size: int = DEFAULT_BLOCK_SIZE):
        self.index = index
        self.store = store
        self.block_size = block_size
        self.rng: Optional[np.random.Generator] = None
        self.sequence_index: Optional[int] = None
        self.estimate: Optional[float] = None
        self.elapsed: Optional[float] = None
        self._future: Optional[Future] = None
        self._remote = False
        self._own_executor: Optional[ThreadPoolExecutor] = None

    def __repr__(self) -> str:
        return (
            f"Replicate(index={self.index}, sequence_index={self.sequence_index}, "
            f"estimate={self.estimate}, pending={self.pending})"
        )

    @property
    def pending(self) -> bool:
        """True between :meth:`run_async` and :meth:`join`."""
        return self._future is not None

    def seed(self, sequence_index: Optional[int] = None) -> None:
        r"""
        Install the generator state stored for ``sequence_index``.

        Any previous generator and result are discarded.

        Parameters
        ----------
        sequence_index : int, optional
            Index passed to the state store. Defaults to :attr:`index`.

        Raises
        ------
        SeedUnavailable
            If the store has no usable state for the index.
        ReplicateError
            If a run is still pending.
        """
        if self.pending:
            raise ReplicateError(f"replicate {self.index} cannot be reseeded while a run is pending")
        seq = self.index if sequence_index is None else sequence_index
        state = self.store.load(seq)
        self.rng = make_generator(state, seq)
        self.sequence_index = seq
        self.estimate = None
        self.elapsed = None
        logger.debug("Replicate %d seeded from sequence %d", self.index, seq)

    def _check_runnable(self) -> np.random.Generator:
        if self.pending:
            raise ReplicateError(f"replicate {self.index} already has a pending run")
        if self.rng is None:
            raise ReplicateError(f"replicate {self.index} has not been seeded")
        return self.rng

    def run_sync(self, n_points: int) -> float:
        """Sample ``n_points`` in the calling thread and return the estimate."""
        rng = self._check_runnable()
        self.estimate, self.elapsed = estimate_sphere_volume(rng, n_points, self.block_size)
        logger.debug("Replicate %d: %.08f in %.2f sec", self.index, self.estimate, self.elapsed)
        return self.estimate

    def run_async(self, n_points: int, executor: Optional[Executor] = None) -> Future:
        r"""
        Launch sampling without blocking and return its future.

        Parameters
        ----------
        n_points : int
            Point budget of the run.
        executor : concurrent.futures.Executor, optional
            Pool to submit to. With a :class:`~concurrent.futures.ProcessPoolExecutor`
            the generator state travels to the worker process and the advanced
            state is installed back by :meth:`join`. Without an executor a private
            single-thread pool is used.

        Returns
        -------
        concurrent.futures.Future
        """
        rng = self._check_runnable()
        if executor is None:
            self._own_executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix=f"replicate-{self.index}"
            )
            executor = self._own_executor

        if isinstance(executor, ProcessPoolExecutor):
            self._remote = True
            self._future = executor.submit(worker_sample, rng.bit_generator.state, n_points, self.block_size)
        else:
            self._remote = False
            self._future = executor.submit(estimate_sphere_volume, rng, n_points, self.block_size)
        return self._future

    def join(self) -> float:
        r"""
        Wait for the pending run and return its estimate.

        Raises
        ------
        NoPendingRun
            If :meth:`run_async` was not called since the last join.
        """
        if self._future is None:
            raise NoPendingRun(f"replicate {self.index} has no pending run to join")
        future, self._future = self._future, None
        try:
            result = future.result()
        finally:
            self._release_executor()

        if self._remote:
            self.estimate, self.elapsed, state = result
            self.rng = make_generator(state, self.index if self.sequence_index is None else self.sequence_index)
        else:
            self.estimate, self.elapsed = result
        logger.debug("Replicate %d: %.08f in %.2f sec", self.index, self.estimate, self.elapsed)
        return self.estimate

    def cancel(self) -> bool:
        r"""
        Cancel a pending run and clear the pending flag.

        A run that has already started cannot be stopped and keeps advancing
        the generator, so the generator is dropped and the replicate must be
        reseeded before its next run.

        Returns
        -------
        bool
            True if the run had not started and was cancelled.
        """
        if self._future is None:
            return False
        cancelled = self._future.cancel()
        self._future = None
        if not cancelled:
            self.rng = None
        self._release_executor()
        return cancelled

    def _release_executor(self) -> None:
        if self._own_executor is not None:
            self._own_executor.shutdown(wait=False)
            self._own_executor = None
