from __future__ import annotations
import multiprocessing as mp
from spherepi import ExperimentConfig, SphereExperiment
from spherepi.report import format_report


def progress(completed: int, total: int):
    step = max(1, total // 10)
    if completed % step == 0 or completed == total:
        print(f"Progress: {completed}/{total} ({100 * completed / total:.0f}%)")


def main():
    # 10 replicates of 10 million points keeps the demo under a minute
    config = ExperimentConfig(replicate_count=10,
                              points_per_replicate=10_000_000,
                              backend="auto", )
    exp = SphereExperiment(config)
    report = exp.run(progress_callback=progress)

    print("\n" + "*" * 50)
    print(format_report(report))
    print("*" * 50 + "\n")

    conf = report.confidence
    print(f"π estimate: {conf.pi_estimate:.10f}")
    low, high = conf.interval
    print(f"4π/3 inside [{low:.6f}, {high:.6f}]: {conf.contains_reference}")
    if not report.sequential.all_matched:
        print(f"{len(report.sequential.mismatches)} replicate(s) failed the reproducibility check")


if __name__ == "__main__":

    try:
        mp.set_start_method("spawn", force=True)
    except RuntimeError:
        pass
    main()
