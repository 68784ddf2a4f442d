r"""
Experiment configuration.

:class:`ExperimentConfig` gathers the few knobs an experiment has. It is passed
to :class:`~spherepi.core.SphereExperiment` at construction so tests can use
tiny point budgets without touching module constants.

Examples
--------
>>> cfg = ExperimentConfig(replicate_count=4, points_per_replicate=10_000)
>>> cfg.with_overrides(backend="sequential").backend
'sequential'
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .utils import TABLE_CONFIDENCE

__all__ = [
    "ExperimentConfig",
    "DEFAULT_REPLICATES",
    "DEFAULT_POINTS",
    "DEFAULT_BLOCK_SIZE",
    "DIMENSION",
]

DEFAULT_REPLICATES = 10
DEFAULT_POINTS = 1_000_000_000
DEFAULT_BLOCK_SIZE = 1_000_000
DIMENSION = 3

_VALID_BACKENDS = ("auto", "sequential", "thread", "process")
_VALID_CI_METHODS = ("table", "exact")


@dataclass(frozen=True)
class ExperimentConfig:
    r"""
    Immutable settings for a replicated sphere-volume experiment.

    Attributes
    ----------
    replicate_count : int, default 10
        Number of independent replicates :math:`R`.
    points_per_replicate : int, default 1_000_000_000
        Points drawn by each replicate.
    dimension : int, default 3
        Sampling dimension. Only 3 is supported.
    block_size : int, default 1_000_000
        Points drawn per vectorised block. Does not change the draw sequence,
        only peak memory.
    backend : {"auto", "sequential", "thread", "process"}, default "auto"
        Backend of the concurrent pass. ``"auto"`` picks processes on Windows and
        threads elsewhere. ``"sequential"`` turns the concurrent pass into a plain
        loop, which is mainly useful for debugging.
    n_workers : int, optional
        Pool size. Defaults to one worker per replicate.
    ci_method : {"table", "exact"}, default "table"
        How the Student-:math:`t` critical value is obtained.
    confidence : float, default 0.99
        Confidence level of the interval. ``"table"`` requires 0.99.
    """

    replicate_count: int = DEFAULT_REPLICATES
    points_per_replicate: int = DEFAULT_POINTS
    dimension: int = DIMENSION
    block_size: int = DEFAULT_BLOCK_SIZE
    backend: str = "auto"
    n_workers: Optional[int] = None
    ci_method: str = "table"
    confidence: float = 0.99

    def __post_init__(self) -> None:
        if self.replicate_count < 1:
            raise ValueError("replicate_count must be >= 1")
        if self.points_per_replicate < 0:
            raise ValueError("points_per_replicate must be non-negative")
        if self.dimension != DIMENSION:
            raise ValueError(f"dimension is fixed at {DIMENSION}, got {self.dimension}")
        if self.block_size <= 0:
            raise ValueError("block_size must be positive")
        if self.backend not in _VALID_BACKENDS:
            raise ValueError(f"backend must be one of {_VALID_BACKENDS}, got '{self.backend}'")
        if self.n_workers is not None and self.n_workers <= 0:
            raise ValueError("n_workers must be positive")
        if self.ci_method not in _VALID_CI_METHODS:
            raise ValueError(f"ci_method must be one of {_VALID_CI_METHODS}, got '{self.ci_method}'")
        if not 0.0 < self.confidence < 1.0:
            raise ValueError("confidence must be in (0,1)")
        if self.ci_method == "table" and self.confidence != TABLE_CONFIDENCE:
            raise ValueError(
                f"ci_method='table' is tabulated for confidence={TABLE_CONFIDENCE} only, "
                f"got {self.confidence}; use ci_method='exact'"
            )

    def with_overrides(self, **changes) -> "ExperimentConfig":
        """Return a copy with selected fields replaced (validated again)."""
        return replace(self, **changes)

    @property
    def workers(self) -> int:
        """Effective pool size for the parallel backends."""
        return self.n_workers if self.n_workers is not None else self.replicate_count
