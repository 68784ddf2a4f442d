r"""
spherepi.stats_engine
=====================
Confidence statistics for a set of replicate estimates.

This module defines:

- :class:`ConfidenceReport`: frozen summary of one experiment.
- :func:`summarize`: turn a mean, a population variance and a replicate count
  into a :class:`ConfidenceReport`.
- :func:`location_percent`: how centred the known true value is in the interval.

The reference value is the volume of the unit ball, :math:`4\pi/3`.

See Also
--------
spherepi.utils.critical_value
    Banded Student-:math:`t` lookup (or exact quantile) used for the radius.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from .exceptions import InsufficientReplicates
from .utils import TABLE_CONFIDENCE, critical_value

logger = logging.getLogger(__name__)

__all__ = [
    "REFERENCE_VOLUME",
    "ConfidenceReport",
    "summarize",
    "location_percent",
]

REFERENCE_VOLUME = 4.0 * math.pi / 3.0


@dataclass(frozen=True)
class ConfidenceReport:
    r"""
    Confidence summary of a replicated experiment.

    Attributes
    ----------
    replicate_count : int
        Number of replicates :math:`R`.
    mean : float
        Mean of the replicate estimates :math:`\bar X`.
    variance : float
        Population variance :math:`\overline{X^2} - \bar X^2`.
    unbiased_variance : float
        :math:`s^2 = R \sigma^2 / (R - 1)`.
    standard_error : float
        :math:`s / \sqrt{R}`.
    critical_value : float
        Student-:math:`t` critical value selected for :math:`R` replicates.
    confidence_radius : float
        Half-width of the interval, ``standard_error * critical_value``.
    error : float
        :math:`4\pi/3 - \bar X`.
    location_percent : float
        100 at the centre of the interval, 0 on its bounds, negative outside.
    confidence : float
        Confidence level of the interval.
    """

    replicate_count: int
    mean: float
    variance: float
    unbiased_variance: float
    standard_error: float
    critical_value: float
    confidence_radius: float
    error: float
    location_percent: float
    confidence: float = TABLE_CONFIDENCE

    @property
    def interval(self) -> tuple[float, float]:
        """``(mean - radius, mean + radius)``."""
        return self.mean - self.confidence_radius, self.mean + self.confidence_radius

    @property
    def std_dev(self) -> float:
        """Square root of the population variance."""
        return float(np.sqrt(self.variance))

    @property
    def relative_error_percent(self) -> float:
        r"""Absolute error relative to :math:`4\pi/3`, in percent."""
        return 100.0 * self.error / REFERENCE_VOLUME

    @property
    def pi_estimate(self) -> float:
        r""":math:`\pi` implied by the mean volume, :math:`3\bar X / 4`."""
        return 3.0 * self.mean / 4.0

    @property
    def contains_reference(self) -> bool:
        r"""Whether :math:`4\pi/3` lies inside the closed interval."""
        low, high = self.interval
        return low <= REFERENCE_VOLUME <= high


def location_percent(error: float, radius: float) -> float:
    r"""
    Position of the true value inside the confidence interval.

    .. math::
       L = \frac{100\,(e + r)}{r}, \qquad L \leftarrow 200 - L \text{ if } L > 100,

    which folds both sides onto one scale: 100 is the exact centre, 0 is a
    bound, negative values are outside the interval.

    Parameters
    ----------
    error : float
        Reference value minus the mean.
    radius : float
        Confidence radius, non-negative.

    Returns
    -------
    float
        For ``radius == 0`` the result is ``100.0`` when ``error == 0`` and
        ``-inf`` otherwise.

    Examples
    --------
    >>> location_percent(0.0, 0.5)
    100.0
    >>> location_percent(0.25, 0.5)
    50.0
    >>> location_percent(-0.75, 0.5)
    -50.0
    """
    if radius == 0.0:
        if error == 0.0:
            return 100.0
        logger.warning("Confidence radius is zero; the reference value lies outside the interval.")
        return -math.inf
    loc = (error + radius) * 100.0 / radius
    if loc > 100.0:
        loc = 200.0 - loc
    return loc


def summarize(
    mean: float,
    variance: float,
    replicate_count: int,
    *,
    method: str = "table",
    confidence: float = TABLE_CONFIDENCE,
) -> ConfidenceReport:
    r"""
    Build the confidence summary of an experiment.

    Parameters
    ----------
    mean : float
        Mean of the replicate estimates.
    variance : float
        Population variance (mean of squares minus square of mean). Small
        negative values from cancellation are clamped to zero.
    replicate_count : int
        Number of replicates :math:`R`.
    method : {"table", "exact"}, default ``"table"``
        Critical value source, see :func:`spherepi.utils.critical_value`.
    confidence : float, default ``0.99``
        Confidence level.

    Returns
    -------
    ConfidenceReport

    Raises
    ------
    InsufficientReplicates
        If ``replicate_count <= 1``.

    Examples
    --------
    >>> rep = summarize(4.18879, 1e-6, 10)
    >>> rep.critical_value
    3.25
    """
    if replicate_count <= 1:
        raise InsufficientReplicates(
            f"confidence statistics need at least 2 replicates, got {replicate_count}"
        )
    variance = max(float(variance), 0.0)

    ub_variance = replicate_count * variance / (replicate_count - 1)
    se = float(np.sqrt(ub_variance / replicate_count))
    crit = critical_value(replicate_count, method=method, confidence=confidence)
    radius = se * crit
    error = REFERENCE_VOLUME - mean

    return ConfidenceReport(
        replicate_count=replicate_count,
        mean=float(mean),
        variance=variance,
        unbiased_variance=ub_variance,
        standard_error=se,
        critical_value=crit,
        confidence_radius=radius,
        error=error,
        location_percent=location_percent(error, radius),
        confidence=confidence,
    )
