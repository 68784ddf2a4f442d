r"""

spherepi.core
=============

Replicated sphere-volume experiments with a reproducibility check.

This module provides:

* :class:`~spherepi.core.ExperimentResult` – estimates of one pass plus running moments.
* :class:`~spherepi.core.ReproducibilityCheck` – bit-level verdict for one replicate.
* :class:`~spherepi.core.SequentialResult` – all verdicts of the sequential pass.
* :class:`~spherepi.core.ExperimentReport` – everything :meth:`SphereExperiment.run` produces.
* :class:`~spherepi.core.SphereExperiment` – the orchestrator.

Passes
------

An experiment runs every replicate twice from the same stored generator
states: once concurrently (thread or process backend, one worker per
replicate) and once sequentially. Since each replicate consumes its own
stream identically in both passes, the estimates must match bit for bit.

Confidence intervals
--------------------

The concurrent pass is summarised as

.. math::

   \bar{X} \pm t_{0.995,\,R-1}\,\frac{s}{\sqrt{R}}

with the banded table of :mod:`spherepi.utils`.
"""

from __future__ import annotations

import logging
import time
import warnings
from dataclasses import dataclass, field
from typing import Callable, Optional

from .backends import ExecutionBackend, ProcessBackend, SequentialBackend, ThreadBackend
from .config import ExperimentConfig
from .exceptions import InsufficientReplicates, ReproducibilityMismatch
from .seeding import MemoryStateStore, StateStore, generate_states
from .simulation import Replicate
from .stats_engine import ConfidenceReport, summarize
from .utils import bits_equal, is_windows_platform

logger = logging.getLogger(__name__)

# Handler lives on the package logger; every spherepi.* logger propagates to it.
_pkg_logger = logging.getLogger(__package__)  # pragma: no cover
if not _pkg_logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    _pkg_logger.addHandler(handler)
    _pkg_logger.setLevel(logging.INFO)

__all__ = [
    "ExperimentResult",
    "ReproducibilityCheck",
    "SequentialResult",
    "ExperimentReport",
    "SphereExperiment",
]


@dataclass
class ExperimentResult:
    r"""
    Per-replicate estimates of one pass, in replicate-index order.

    Attributes
    ----------
    estimates : list of float
        One estimate per replicate.
    elapsed : list of float
        Sampling time per replicate, in seconds.
    wall_time : float
        Wall-clock duration of the whole pass.
    backend : str
        Backend that produced the pass.

    Notes
    -----
    :attr:`mean` and :attr:`variance` come from running sums kept by
    :meth:`record`, i.e. :math:`\bar X = \sum x / R` and
    :math:`\sigma^2 = \sum x^2 / R - \bar X^2`.
    """

    estimates: list[float] = field(default_factory=list)
    elapsed: list[float] = field(default_factory=list)
    wall_time: float = 0.0
    backend: str = ""
    _sum: float = field(default=0.0, repr=False)
    _sum_sq: float = field(default=0.0, repr=False)

    def record(self, estimate: float, elapsed: float) -> None:
        """Append one replicate's result and update the running sums."""
        self.estimates.append(estimate)
        self.elapsed.append(elapsed)
        self._sum += estimate
        self._sum_sq += estimate * estimate

    @property
    def n(self) -> int:
        return len(self.estimates)

    @property
    def mean(self) -> float:
        if not self.estimates:
            return float("nan")
        return self._sum / self.n

    @property
    def variance(self) -> float:
        """Population variance: mean of squares minus square of mean."""
        if not self.estimates:
            return float("nan")
        m = self.mean
        return self._sum_sq / self.n - m * m


@dataclass(frozen=True)
class ReproducibilityCheck:
    """Concurrent and sequential estimates of one replicate, compared bitwise."""

    index: int
    concurrent: float
    sequential: float
    elapsed: float = 0.0

    @property
    def matched(self) -> bool:
        return bits_equal(self.concurrent, self.sequential)

    def to_warning(self) -> ReproducibilityMismatch:
        return ReproducibilityMismatch(self.index, self.concurrent, self.sequential)


@dataclass
class SequentialResult:
    """Verdicts of the sequential pass."""

    checks: list[ReproducibilityCheck] = field(default_factory=list)
    wall_time: float = 0.0

    @property
    def elapsed(self) -> list[float]:
        return [c.elapsed for c in self.checks]

    @property
    def total_elapsed(self) -> float:
        """Sum of the per-replicate sampling times."""
        total = 0.0
        for c in self.checks:
            total += c.elapsed
        return total

    @property
    def mismatches(self) -> list[ReproducibilityCheck]:
        return [c for c in self.checks if not c.matched]

    @property
    def all_matched(self) -> bool:
        return not self.mismatches


@dataclass
class ExperimentReport:
    """
    Outcome of :meth:`SphereExperiment.run`.

    ``confidence`` is ``None`` when the concurrent pass could not be summarised
    (a single replicate); ``summary_error`` then holds the reason.
    """

    config: ExperimentConfig
    concurrent: ExperimentResult
    sequential: SequentialResult
    confidence: Optional[ConfidenceReport] = None
    summary_error: Optional[InsufficientReplicates] = None


class SphereExperiment:
    r"""
    Orchestrator of a replicated unit-sphere experiment.

    Parameters
    ----------
    config : ExperimentConfig, optional
        Experiment settings. Defaults to ``ExperimentConfig()``.
    store : StateStore, optional
        Provider of one deterministic generator state per replicate index.
        Defaults to an in-memory store filled by
        :func:`~spherepi.seeding.generate_states`.

    Examples
    --------
    >>> exp = SphereExperiment(ExperimentConfig(replicate_count=4, points_per_replicate=10_000))
    >>> report = exp.run()  # doctest: +SKIP
    >>> report.sequential.all_matched  # doctest: +SKIP
    True
    """

    def __init__(self, config: Optional[ExperimentConfig] = None, store: Optional[StateStore] = None):
        self.config = config or ExperimentConfig()
        if store is None:
            store = MemoryStateStore(generate_states(self.config.replicate_count))
        self.store = store
        self.replicates = [
            Replicate(i, store, block_size=self.config.block_size)
            for i in range(self.config.replicate_count)
        ]

    def seed_all(self) -> None:
        """Seed every replicate from its own sequence index, in order."""
        for rep in self.replicates:
            rep.seed(rep.index)

    def _resolve_backend_type(self) -> str:
        r"""
        Resolve ``config.backend`` for the concurrent pass.

        ``"auto"`` maps to ``"process"`` on Windows, where threads tend to
        serialise, and to ``"thread"`` elsewhere.
        """
        backend = self.config.backend
        if backend == "auto":
            on_windows = is_windows_platform()
            backend = "process" if on_windows else "thread"
            if on_windows:
                logger.info("Backend 'auto' resolved to 'process' on Windows platform.")
        return backend

    def _create_backend(self, backend: str) -> ExecutionBackend:
        if backend == "sequential":
            return SequentialBackend()
        if backend == "thread":
            return ThreadBackend(n_workers=self.config.workers)
        return ProcessBackend(n_workers=self.config.workers)

    def run_concurrent(self, progress_callback: Callable[[int, int], None] | None = None) -> ExperimentResult:
        r"""
        Seed all replicates, launch them together and join them in index order.

        Seeding happens before any sampling starts, so its cost is not part of
        the measured sampling times.

        Returns
        -------
        ExperimentResult
        """
        self.seed_all()
        backend = self._resolve_backend_type()
        n_points = self.config.points_per_replicate
        logger.info(
            "Computing %d replicates in parallel using %s backend with %d workers...",
            len(self.replicates), backend, self.config.workers,
        )

        result = ExperimentResult(backend=backend)
        t0 = time.perf_counter()
        for rep in self._create_backend(backend).run(self.replicates, n_points, progress_callback):
            result.record(rep.estimate, rep.elapsed)
        result.wall_time = time.perf_counter() - t0
        logger.info("Concurrent pass finished in %.2f sec", result.wall_time)
        return result

    def run_sequential(
        self,
        reference: ExperimentResult,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> SequentialResult:
        r"""
        Reseed all replicates, rerun them one by one and compare bit patterns.

        Parameters
        ----------
        reference : ExperimentResult
            Result of the concurrent pass to compare against.

        Returns
        -------
        SequentialResult

        Warns
        -----
        ReproducibilityMismatch
            Once per replicate whose estimate differs at the bit level.
        """
        if reference.n != len(self.replicates):
            raise ValueError(
                f"reference holds {reference.n} estimates, expected {len(self.replicates)}"
            )
        self.seed_all()
        logger.info("Computing %d replicates sequentially...", len(self.replicates))

        out = SequentialResult()
        t0 = time.perf_counter()
        backend = SequentialBackend()
        for rep in backend.run(self.replicates, self.config.points_per_replicate, progress_callback):
            check = ReproducibilityCheck(
                index=rep.index,
                concurrent=reference.estimates[rep.index],
                sequential=rep.estimate,
                elapsed=rep.elapsed,
            )
            if not check.matched:
                mismatch = check.to_warning()
                logger.warning("%s", mismatch)
                warnings.warn(mismatch, stacklevel=2)
            out.checks.append(check)
        out.wall_time = time.perf_counter() - t0
        logger.info("Sequential time: %.2f sec", out.total_elapsed)
        return out

    def summarize(self, result: ExperimentResult) -> ConfidenceReport:
        """Confidence summary of a pass using the configured critical values."""
        return summarize(
            result.mean,
            result.variance,
            result.n,
            method=self.config.ci_method,
            confidence=self.config.confidence,
        )

    def run(self, progress_callback: Callable[[int, int], None] | None = None) -> ExperimentReport:
        r"""
        Concurrent pass, sequential check, then the confidence summary.

        The reproducibility check always runs. With a single replicate the
        summary is undefined: the report then carries ``confidence=None`` and
        the :class:`~spherepi.exceptions.InsufficientReplicates` error in
        ``summary_error``.

        Raises
        ------
        SeedUnavailable
            If any replicate cannot be seeded.
        """
        concurrent = self.run_concurrent(progress_callback)
        sequential = self.run_sequential(concurrent, progress_callback)
        report = ExperimentReport(config=self.config, concurrent=concurrent, sequential=sequential)
        try:
            report.confidence = self.summarize(concurrent)
        except InsufficientReplicates as e:
            logger.error("No confidence summary: %s", e)
            report.summary_error = e
        return report
