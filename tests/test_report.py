import pytest

from spherepi.config import ExperimentConfig
from spherepi.core import ExperimentReport, ExperimentResult, ReproducibilityCheck, SequentialResult
from spherepi.report import (
    format_check,
    format_concurrent_pass,
    format_estimate,
    format_report,
    format_sequential_pass,
    format_sequential_time,
    format_summary,
)
from spherepi.stats_engine import summarize


def test_format_estimate():
    line = format_estimate(4.0, 1.234)
    assert line == "estimation: 4.00000000 (0x4010000000000000) in (1.23 sec)"


def test_format_sequential_time():
    assert format_sequential_time(7.0) == "Sequential time: 7.00 sec"


def test_format_check_confirmed():
    assert format_check(ReproducibilityCheck(0, 4.0, 4.0)) == "reproducibility confirmed"


def test_format_check_issue_shows_both_bit_patterns():
    line = format_check(ReproducibilityCheck(0, 4.0, 2.0))
    assert line.startswith("reproducibility issue 2.00000000")
    assert "0x4000000000000000" in line
    assert "0x4010000000000000" in line


def test_format_summary_lines():
    text = format_summary(summarize(4.2, 0.0009, 10))
    lines = text.splitlines()
    assert lines[0] == "Results for 10 replicates:"
    assert len(lines) == 11
    assert "4π/3 location in interval" in text
    assert "[ 4.1675000000 ; 4.2325000000 ]" in text


@pytest.fixture
def concurrent():
    result = ExperimentResult(backend="thread")
    result.record(4.0, 0.5)
    result.record(4.25, 0.25)
    return result


def test_format_concurrent_pass(concurrent):
    lines = format_concurrent_pass(concurrent).splitlines()
    assert lines[0] == "running (thread)..."
    assert len(lines) == 3
    assert lines[2].startswith("estimation: 4.25000000")


def test_format_sequential_pass(concurrent):
    checks = [
        ReproducibilityCheck(i, e, e, t)
        for i, (e, t) in enumerate(zip(concurrent.estimates, concurrent.elapsed))
    ]
    lines = format_sequential_pass(SequentialResult(checks=checks)).splitlines()
    assert lines[0] == "running (sequential)..."
    assert lines.count("reproducibility confirmed") == 2
    assert lines[-1] == "Sequential time: 0.75 sec"


def _checks_for(result):
    return SequentialResult(
        checks=[
            ReproducibilityCheck(i, e, e, t)
            for i, (e, t) in enumerate(zip(result.estimates, result.elapsed))
        ]
    )


def test_format_report_orders_blocks(concurrent):
    """Concurrent pass, summary, then sequential pass"""
    report = ExperimentReport(
        config=ExperimentConfig(replicate_count=2, points_per_replicate=10),
        concurrent=concurrent,
        sequential=_checks_for(concurrent),
        confidence=summarize(concurrent.mean, concurrent.variance, concurrent.n),
    )
    text = format_report(report)
    assert text.index("running (thread)") < text.index("Results for 2 replicates:") < text.index(
        "running (sequential)"
    )


def test_format_report_without_summary(concurrent):
    """A report with no confidence summary still shows both passes"""
    report = ExperimentReport(
        config=ExperimentConfig(replicate_count=2, points_per_replicate=10),
        concurrent=concurrent,
        sequential=_checks_for(concurrent),
    )
    text = format_report(report)
    assert "Results for" not in text
    assert text.count("reproducibility confirmed") == 2
