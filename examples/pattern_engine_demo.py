#!/usr/bin/env python3
"""
Pattern Engine Demo

Runs the analysis pipeline on three synthetic series:
- a golden ratio progression
- an XABCD swing structure with Gartley legs
- a noisy wave, analyzed twice to show the result cache
"""

import math
import sys
from pathlib import Path

# Add src to path to import fibscope modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fibscope import AnalysisConfig, AnalysisOrchestrator, PricePoint, ResultCache


def golden_series():
    return PricePoint.series([100.0 * (1.618 ** i) for i in range(6)])


def gartley_series():
    x, a = 100.0, 200.0
    b = a - 0.618 * (a - x)
    c = b + 0.382 * (a - b)
    d = c - 1.272 * (c - b)
    return PricePoint.series([110.0, x, a, b, c, d, 150.0], volumes=[900, 1000, 1800, 1200, 1400, 1300, 1500])


def wave_series(length: int = 240):
    values = [100.0 + 12.0 * math.sin(i * 0.35) + 0.2 * i for i in range(length)]
    volumes = [1000.0 + 200.0 * abs(math.cos(i * 0.35)) for i in range(length)]
    return PricePoint.series(values, volumes=volumes, start=1_700_000_000_000, step=60_000)


def show(title: str, result) -> None:
    print(f"\n📈 {title}")
    print("-" * 50)
    if not result.patterns:
        print("  No patterns found")
    for pattern in result.patterns:
        metrics = pattern.metadata.validation
        print(
            f"  {pattern.kind.display_name:<22} [{pattern.start_index:>3}-{pattern.end_index:<3}] "
            f"confidence={pattern.confidence:.3f} gaps={list(metrics.data_gaps) if metrics else []}"
        )
    print(
        f"  aggregate={result.confidence:.3f} elapsed={result.elapsed_ms:.2f}ms "
        f"accelerated={result.accelerated} cache_hit={result.cache_hit}"
    )


def main():
    """Main demo function."""

    print("\n🎯 fibscope Pattern Engine Demo")
    print("=" * 50)

    cache = ResultCache(max_entries=32, ttl_seconds=30.0)
    orchestrator = AnalysisOrchestrator(cache=cache)

    show("Golden ratio progression", orchestrator.analyze(golden_series()))
    show("Gartley swing structure", orchestrator.analyze(gartley_series()))

    wave = wave_series()
    config = AnalysisConfig(tolerance=0.05)
    show("Wave (first call)", orchestrator.analyze(wave, config))
    show("Wave (second call)", orchestrator.analyze(wave, config))

    print(f"\n🗄️  Cache stats: {cache.stats()}")
    print("\n🎉 Demo completed successfully!")


if __name__ == "__main__":
    main()
