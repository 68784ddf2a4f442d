import warnings

import numpy as np
import pytest

from spherepi import SphereExperiment
from spherepi.backends import ProcessBackend, SequentialBackend, ThreadBackend
from spherepi.config import ExperimentConfig
from spherepi.core import ExperimentResult, ReproducibilityCheck, SequentialResult
from spherepi.exceptions import InsufficientReplicates, ReproducibilityMismatch, SeedUnavailable
from spherepi.seeding import MemoryStateStore, generate_states, make_generator
from spherepi.sims import estimate_sphere_volume
from spherepi.utils import bits_equal


class TestExperimentResult:
    """Test running moments of a pass"""

    def test_empty(self):
        """An empty pass has no moments"""
        result = ExperimentResult()
        assert result.n == 0
        assert np.isnan(result.mean)
        assert np.isnan(result.variance)

    def test_mean_and_population_variance(self):
        """Running sums agree with numpy"""
        values = [4.1, 4.2, 4.25, 4.15, 4.3]
        result = ExperimentResult()
        for v in values:
            result.record(v, 0.1)
        assert result.estimates == values
        assert result.elapsed == [0.1] * 5
        assert result.mean == pytest.approx(np.mean(values), rel=1e-12)
        assert result.variance == pytest.approx(np.var(values), rel=1e-6)

    def test_constant_estimates_have_tiny_variance(self):
        """Identical estimates give zero variance"""
        result = ExperimentResult()
        for _ in range(4):
            result.record(8.0, 0.0)
        assert result.mean == 8.0
        assert result.variance == 0.0


class TestReproducibilityCheck:
    """Test bitwise verdicts"""

    def test_match(self):
        """Equal values match bitwise"""
        assert ReproducibilityCheck(0, 4.1, 4.1).matched

    def test_adjacent_values_mismatch(self):
        """Neighbouring floats differ and render their bits"""
        x = 4.18
        check = ReproducibilityCheck(3, x, float(np.nextafter(x, 0.0)))
        assert not check.matched
        warning = check.to_warning()
        assert isinstance(warning, ReproducibilityMismatch)
        assert warning.index == 3
        assert "0x" in str(warning)

    def test_sequential_result_totals(self):
        """Totals and mismatches are derived from the checks"""
        result = SequentialResult(
            checks=[ReproducibilityCheck(0, 1.0, 1.0, 0.5), ReproducibilityCheck(1, 2.0, -2.0, 0.25)]
        )
        assert result.total_elapsed == 0.75
        assert result.elapsed == [0.5, 0.25]
        assert not result.all_matched
        assert [c.index for c in result.mismatches] == [1]


class TestSphereExperiment:
    """Test the orchestrator"""

    def test_default_construction(self):
        """One replicate per slot over an in-memory store"""
        exp = SphereExperiment(ExperimentConfig(points_per_replicate=10))
        assert len(exp.replicates) == 10
        assert isinstance(exp.store, MemoryStateStore)
        assert [r.index for r in exp.replicates] == list(range(10))

    def test_concurrent_pass_matches_independent_sampling(self, small_config, store, states):
        """Each slot samples its own stored stream"""
        exp = SphereExperiment(small_config, store)
        result = exp.run_concurrent()
        assert result.n == small_config.replicate_count
        assert result.backend == "thread"
        for i, est in enumerate(result.estimates):
            expected, _ = estimate_sphere_volume(make_generator(states[i]), small_config.points_per_replicate)
            assert bits_equal(est, expected)
        assert result.mean == pytest.approx(np.mean(result.estimates))

    @pytest.mark.parametrize("backend", ["thread", "process", "sequential"])
    def test_cross_mode_reproducibility(self, small_config, store, backend):
        """Every backend agrees with the sequential pass bit for bit"""
        exp = SphereExperiment(small_config.with_overrides(backend=backend), store)
        concurrent = exp.run_concurrent()
        with warnings.catch_warnings():
            warnings.simplefilter("error", ReproducibilityMismatch)
            sequential = exp.run_sequential(concurrent)
        assert sequential.all_matched
        assert len(sequential.checks) == small_config.replicate_count
        for check, est in zip(sequential.checks, concurrent.estimates):
            assert bits_equal(check.sequential, est)

    def test_fewer_workers_than_replicates(self, small_config, store):
        """A smaller pool gives the same bits"""
        exp = SphereExperiment(small_config.with_overrides(n_workers=2), store)
        concurrent = exp.run_concurrent()
        assert exp.run_sequential(concurrent).all_matched

    def test_mismatch_is_reported_not_raised(self, small_config, store):
        """A differing replicate warns once and the pass completes"""
        exp = SphereExperiment(small_config, store)
        concurrent = exp.run_concurrent()
        tampered = ExperimentResult()
        for i, (est, t) in enumerate(zip(concurrent.estimates, concurrent.elapsed)):
            tampered.record(float(np.nextafter(est, 0.0)) if i == 2 else est, t)

        with pytest.warns(ReproducibilityMismatch) as record:
            sequential = exp.run_sequential(tampered)
        assert len(record) == 1
        assert record[0].message.index == 2
        assert [c.index for c in sequential.mismatches] == [2]
        assert sequential.checks[0].matched

    def test_total_elapsed_is_sum_of_replicates(self, small_config, store):
        """Sequential time adds up per-replicate times"""
        exp = SphereExperiment(small_config, store)
        sequential = exp.run_sequential(exp.run_concurrent())
        assert sequential.total_elapsed == pytest.approx(sum(sequential.elapsed))
        assert all(t >= 0.0 for t in sequential.elapsed)

    def test_reference_length_checked(self, small_config, store):
        """The reference must hold one estimate per replicate"""
        exp = SphereExperiment(small_config, store)
        short = ExperimentResult()
        short.record(4.0, 0.0)
        with pytest.raises(ValueError, match="expected 4"):
            exp.run_sequential(short)

    def test_seed_unavailable_aborts_pass(self, small_config):
        """A missing state stops the pass at its index"""
        exp = SphereExperiment(small_config, MemoryStateStore(generate_states(2, seed=1)))
        with pytest.raises(SeedUnavailable) as exc:
            exp.run_concurrent()
        assert exc.value.index == 2

    def test_run_builds_full_report(self, small_config, store):
        """run() returns both passes and the summary"""
        calls = []
        report = SphereExperiment(small_config, store).run(progress_callback=lambda c, t: calls.append((c, t)))
        assert report.config is small_config
        assert report.sequential.all_matched
        assert report.confidence.replicate_count == small_config.replicate_count
        assert report.confidence.mean == report.concurrent.mean
        assert report.confidence.critical_value == 5.841
        assert calls[-1] == (4, 4)

    def test_single_replicate_still_checks_reproducibility(self, store):
        """One replicate is verified bitwise but has no confidence summary"""
        cfg = ExperimentConfig(replicate_count=1, points_per_replicate=1_000, backend="thread")
        report = SphereExperiment(cfg, store).run()
        assert len(report.sequential.checks) == 1
        assert report.sequential.all_matched
        assert report.confidence is None
        assert isinstance(report.summary_error, InsufficientReplicates)

    def test_single_replicate_summary_raises(self, store):
        """Summarising one replicate is undefined"""
        cfg = ExperimentConfig(replicate_count=1, points_per_replicate=1_000, backend="thread")
        exp = SphereExperiment(cfg, store)
        with pytest.raises(InsufficientReplicates):
            exp.summarize(exp.run_concurrent())

    def test_exact_ci_method(self, small_config, store):
        """Exact quantiles allow other confidence levels"""
        cfg = small_config.with_overrides(ci_method="exact", confidence=0.95)
        exp = SphereExperiment(cfg, store)
        summary = exp.summarize(exp.run_concurrent())
        assert summary.critical_value == pytest.approx(3.1824, abs=1e-4)
        assert summary.confidence == 0.95

    def test_auto_backend_resolution(self, small_config, store, monkeypatch):
        """Processes on Windows, threads elsewhere"""
        exp = SphereExperiment(small_config.with_overrides(backend="auto"), store)
        monkeypatch.setattr("spherepi.core.is_windows_platform", lambda: False)
        assert exp._resolve_backend_type() == "thread"
        monkeypatch.setattr("spherepi.core.is_windows_platform", lambda: True)
        assert exp._resolve_backend_type() == "process"

    @pytest.mark.parametrize(
        ("name", "cls"),
        [("sequential", SequentialBackend), ("thread", ThreadBackend), ("process", ProcessBackend)],
    )
    def test_create_backend(self, small_config, store, name, cls):
        """Each backend name maps to its execution backend"""
        backend = SphereExperiment(small_config, store)._create_backend(name)
        assert isinstance(backend, cls)
        assert callable(backend.run)

    def test_zero_points(self, store):
        """Zero points give zero estimates and a zero radius"""
        cfg = ExperimentConfig(replicate_count=3, points_per_replicate=0, backend="thread")
        report = SphereExperiment(cfg, store).run()
        assert report.concurrent.estimates == [0.0, 0.0, 0.0]
        assert report.sequential.all_matched
        assert report.confidence.confidence_radius == 0.0


class TestExperimentConfig:
    """Test configuration validation"""

    def test_defaults(self):
        """Defaults describe the full-size experiment"""
        cfg = ExperimentConfig()
        assert cfg.replicate_count == 10
        assert cfg.points_per_replicate == 1_000_000_000
        assert cfg.dimension == 3
        assert cfg.workers == 10

    @pytest.mark.parametrize(
        ("kwargs", "message"),
        [
            ({"replicate_count": 0}, "replicate_count"),
            ({"points_per_replicate": -1}, "points_per_replicate"),
            ({"dimension": 2}, "dimension"),
            ({"block_size": 0}, "block_size"),
            ({"backend": "gpu"}, "backend"),
            ({"n_workers": 0}, "n_workers"),
            ({"ci_method": "z"}, "ci_method"),
            ({"confidence": 1.0}, "confidence"),
            ({"confidence": 0.95}, "ci_method='exact'"),
        ],
    )
    def test_validation_errors(self, kwargs, message):
        """Invalid settings are rejected at construction"""
        with pytest.raises(ValueError, match=message):
            ExperimentConfig(**kwargs)

    def test_with_overrides_is_a_copy(self):
        """Overrides leave the original untouched"""
        cfg = ExperimentConfig()
        other = cfg.with_overrides(replicate_count=3, n_workers=2)
        assert cfg.replicate_count == 10
        assert other.replicate_count == 3
        assert other.workers == 2

    def test_frozen(self):
        """Configs are immutable"""
        cfg = ExperimentConfig()
        with pytest.raises(AttributeError):
            cfg.replicate_count = 5
