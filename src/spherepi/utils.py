r"""
Critical values, bit-level float helpers and small partitioning utilities.

This module provides:

Constants
    :data:`STUDENT_T_99` — two-sided 99% Student-:math:`t` critical values

Functions
    :func:`student_index` — banded lookup of :data:`STUDENT_T_99` by replicate count
    :func:`critical_value` — critical value for a replicate count (table or exact)
    :func:`t_crit` / :func:`z_crit` — exact quantiles via :mod:`scipy.stats`
    :func:`float_bits` / :func:`bits_equal` — IEEE-754 bit pattern comparison
    :func:`make_blocks` — chunking helper for block-wise sampling
    :func:`is_windows_platform` — platform detection for backend selection
"""

from __future__ import annotations

import sys

import numpy as np
from scipy.stats import norm
from scipy.stats import t as student_t

__all__ = [
    "STUDENT_T_99",
    "TABLE_CONFIDENCE",
    "student_index",
    "critical_value",
    "t_crit",
    "z_crit",
    "float_bits",
    "bits_equal",
    "format_bits",
    "make_blocks",
    "is_windows_platform",
]

TABLE_CONFIDENCE = 0.99

# Indexed by degrees of freedom 0..30, then df = 40, 50, 60, 80, 100, 120 and infinity.
STUDENT_T_99 = (
    float("inf"), 63.66, 9.925, 5.841, 4.604, 4.032, 3.707, 3.499, 3.355, 3.25,
    3.169, 3.106, 3.055, 3.012, 2.977, 2.947, 2.921, 2.898, 2.878, 2.861,
    2.845, 2.831, 2.819, 2.807, 2.797, 2.787, 2.779, 2.771, 2.763, 2.756,
    2.75,
    2.704, 2.678, 2.66, 2.639, 2.626, 2.617,
    2.576,
)


def student_index(replicate_count: int) -> int:
    r"""
    Map a replicate count :math:`R` onto an index of :data:`STUDENT_T_99`.

    Up to 30 replicates the table is read at the degrees of freedom
    :math:`R - 1`. Beyond that the bands are applied to :math:`R` itself and
    floored, never interpolated:

    ========== ====================
    ``R``      index
    ========== ====================
    1 .. 30    ``R - 1``
    31 .. 60   ``27 + R // 10``
    61 .. 139  ``30 + R // 20``
    >= 140     ``37`` (normal limit)
    ========== ====================

    Parameters
    ----------
    replicate_count : int
        Number of replicates, at least 1.

    Returns
    -------
    int

    Examples
    --------
    >>> student_index(10), student_index(31), student_index(45), student_index(139), student_index(140)
    (9, 30, 31, 36, 37)
    """
    if replicate_count < 1:
        raise ValueError("replicate_count must be >= 1")
    if replicate_count <= 30:
        return replicate_count - 1
    if replicate_count <= 60:
        return 27 + replicate_count // 10
    if replicate_count < 140:
        return 30 + replicate_count // 20
    return len(STUDENT_T_99) - 1


def t_crit(confidence: float, dof: int) -> float:
    r"""
    Two-sided Student-:math:`t` critical value :math:`t_{1-\alpha/2,\,\nu}`.

    Parameters
    ----------
    confidence : float
        Confidence level in :math:`(0, 1)`.
    dof : int
        Degrees of freedom :math:`\nu \ge 1`.

    Returns
    -------
    float
    """
    if not 0.0 < confidence < 1.0:
        raise ValueError("confidence must be in (0,1)")
    if dof < 1:
        raise ValueError("dof must be >= 1")
    return float(student_t.ppf(0.5 + confidence / 2.0, dof))


def z_crit(confidence: float) -> float:
    r"""Two-sided normal critical value :math:`z_{1-\alpha/2}`."""
    if not 0.0 < confidence < 1.0:
        raise ValueError("confidence must be in (0,1)")
    return float(norm.ppf(0.5 + confidence / 2.0))


def critical_value(
    replicate_count: int,
    method: str = "table",
    confidence: float = TABLE_CONFIDENCE,
) -> float:
    r"""
    Critical value used to turn a standard error into a confidence radius.

    Parameters
    ----------
    replicate_count : int
        Number of replicates :math:`R`; degrees of freedom are :math:`R - 1`.
        The table lookup follows :func:`student_index`.
    method : {"table", "exact"}, default ``"table"``
        ``"table"`` reads the banded :data:`STUDENT_T_99` table and only supports
        99% confidence. ``"exact"`` evaluates the quantile with :mod:`scipy`.
    confidence : float, default ``0.99``
        Confidence level.

    Returns
    -------
    float
    """
    dof = replicate_count - 1
    if method == "table":
        if confidence != TABLE_CONFIDENCE:
            raise ValueError(
                f"table critical values are tabulated for confidence={TABLE_CONFIDENCE} only, "
                f"got {confidence}; use method='exact'"
            )
        return STUDENT_T_99[student_index(replicate_count)]
    if method == "exact":
        return t_crit(confidence, dof)
    raise ValueError(f"method must be one of 'table', 'exact', got '{method}'")


def float_bits(value: float) -> int:
    """Return the IEEE-754 binary64 bit pattern of ``value`` as an unsigned int."""
    return int(np.float64(value).view(np.uint64))


def bits_equal(a: float, b: float) -> bool:
    r"""
    Exact equality of the underlying bit patterns.

    Unlike ``a == b`` this tells ``0.0`` from ``-0.0`` and treats identical NaN
    payloads as equal. No tolerance is applied.
    """
    return float_bits(a) == float_bits(b)


def format_bits(value: float) -> str:
    """Hex rendering of :func:`float_bits`, e.g. ``0x400921fb54442d18``."""
    return f"0x{float_bits(value):016x}"


def make_blocks(n: int, block_size: int = 1_000_000) -> list[tuple[int, int]]:
    r"""
    Partition an integer range :math:`[0, n)` into half-open blocks :math:`(i, j)`.

    Examples
    --------
    >>> make_blocks(5, block_size=2)
    [(0, 2), (2, 4), (4, 5)]
    """
    blocks = []
    i = 0
    while i < n:
        j = min(i + block_size, n)
        blocks.append((i, j))
        i = j
    return blocks


def is_windows_platform() -> bool:
    """Return True when running on a Windows platform."""
    return sys.platform.startswith("win") or (sys.platform == "cli")
