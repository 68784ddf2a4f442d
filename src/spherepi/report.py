r"""
Plain-text console report.

Every function returns a string; printing is left to the caller.

Example
-------
>>> print(format_sequential_time(12.5))
Sequential time: 12.50 sec
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .utils import format_bits

if TYPE_CHECKING:
    from .core import ExperimentReport, ExperimentResult, ReproducibilityCheck, SequentialResult
    from .stats_engine import ConfidenceReport

__all__ = [
    "format_estimate",
    "format_summary",
    "format_check",
    "format_sequential_time",
    "format_concurrent_pass",
    "format_sequential_pass",
    "format_report",
]


def format_estimate(estimate: float, elapsed: float) -> str:
    """One replicate: value, its bit pattern and the sampling time."""
    return f"estimation: {estimate:.08f} ({format_bits(estimate)}) in ({elapsed:4.02f} sec)"


def format_summary(report: "ConfidenceReport") -> str:
    """Summary block of a :class:`~spherepi.stats_engine.ConfidenceReport`."""
    low, high = report.interval
    lines = [
        f"Results for {report.replicate_count} replicates:",
        f"\t- Mean :                         \t{report.mean:.10f}",
        f"\t- Variance :                     \t{report.variance:.10f}",
        f"\t- Unbiased variance :            \t{report.unbiased_variance:.10f}",
        f"\t- Standard deviation :           \t{report.std_dev:.10f}",
        f"\t- Absolute error : 4π/3 - mean : \t{report.error:.10f}",
        f"\t- Relative error : Err / 4π/3 :  \t{report.relative_error_percent:.10f} %",
        f"\t- Standard error :               \t{report.standard_error:.10f}",
        f"\t- Confidence interval :          \t[ {low:.10f} ; {high:.10f} ]",
        f"\t- 4π/3 location in interval :    \t{report.location_percent:.10f} %",
        f"\t- Confidence radius :            \t{report.confidence_radius:.10f}",
    ]
    return "\n".join(lines)


def format_check(check: "ReproducibilityCheck") -> str:
    """Verdict line of the sequential pass."""
    if check.matched:
        return "reproducibility confirmed"
    return (
        f"reproducibility issue {check.sequential:.08f} ({format_bits(check.sequential)}) "
        f"vs {check.concurrent:.08f} ({format_bits(check.concurrent)})"
    )


def format_sequential_time(total: float) -> str:
    return f"Sequential time: {total:4.02f} sec"


def format_concurrent_pass(result: "ExperimentResult") -> str:
    lines = [f"running ({result.backend})..."]
    lines.extend(format_estimate(e, t) for e, t in zip(result.estimates, result.elapsed))
    return "\n".join(lines)


def format_sequential_pass(result: "SequentialResult") -> str:
    lines = ["running (sequential)..."]
    for check in result.checks:
        lines.append(format_estimate(check.sequential, check.elapsed))
        lines.append(format_check(check))
    lines.append(format_sequential_time(result.total_elapsed))
    return "\n".join(lines)


def format_report(report: "ExperimentReport") -> str:
    """Full console report: concurrent pass, its summary when there is one, then the sequential pass."""
    blocks = [format_concurrent_pass(report.concurrent)]
    if report.confidence is not None:
        blocks.append(format_summary(report.confidence))
    blocks.append(format_sequential_pass(report.sequential))
    return "\n\n".join(blocks)
