"""Exception and warning types raised by :mod:`spherepi`."""

from __future__ import annotations

from .utils import format_bits

__all__ = [
    "SpherePiError",
    "SeedUnavailable",
    "ReplicateError",
    "NoPendingRun",
    "InsufficientReplicates",
    "ReproducibilityMismatch",
]


class SpherePiError(Exception):
    """Base class for every error raised by the package."""


class SeedUnavailable(SpherePiError, LookupError):
    """
    The state store cannot supply a generator state for a sequence index.

    Fatal for the pass: a replicate without its deterministic state cannot take
    part in the reproducibility check.
    """

    def __init__(self, index: int, reason: str = ""):
        self.index = index
        self.reason = reason
        msg = f"no generator state available for sequence index {index}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class ReplicateError(SpherePiError, RuntimeError):
    """A replicate was driven in an order its run contract does not allow."""


class NoPendingRun(ReplicateError):
    """``join()`` was called on a replicate with no asynchronous run in flight."""


class InsufficientReplicates(SpherePiError, ValueError):
    """Confidence statistics need at least two replicates."""


class ReproducibilityMismatch(SpherePiError, UserWarning):
    """
    A replicate gave different bits in the concurrent and sequential passes.

    Issued through :func:`warnings.warn`, never raised by the orchestrator.
    Both values are rendered with their bit patterns since they may print
    identically in decimal.
    """

    def __init__(self, index: int, concurrent: float, sequential: float):
        self.index = index
        self.concurrent = concurrent
        self.sequential = sequential
        super().__init__(
            f"replicate {index}: reproducibility issue {sequential:.08f} ({format_bits(sequential)}) "
            f"vs {concurrent:.08f} ({format_bits(concurrent)})"
        )
