r"""
Sequential execution backend.

Runs replicates one after another on the calling thread. This is the
reference pass of the reproducibility check.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Iterator, Sequence

if TYPE_CHECKING:
    from ..simulation import Replicate

__all__ = ["SequentialBackend"]


class SequentialBackend:
    r"""
    Sequential (single-threaded) execution backend.

    Examples
    --------
    >>> backend = SequentialBackend()
    >>> for rep in backend.run(replicates, n_points=1_000):  # doctest: +SKIP
    ...     print(rep.estimate)
    """

    def run(
        self,
        replicates: Sequence["Replicate"],
        n_points: int,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> Iterator["Replicate"]:
        total = len(replicates)
        for i, rep in enumerate(replicates):
            rep.run_sync(n_points)
            if progress_callback:
                progress_callback(i + 1, total)
            yield rep
