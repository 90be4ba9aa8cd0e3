"""Radar snapshot demo.

Generates eight simulated devices, runs ten telemetry ticks and saves
the radar at ticks 0, 5 and 10 side by side.
"""

from __future__ import annotations

import matplotlib.pyplot as plt
import numpy as np

from ..simulation.engine import TelemetryEngine
from ..visualization.renderer import RadarRenderer


def main() -> None:
    engine = TelemetryEngine(count=8, rng=np.random.default_rng(7))
    renderer = RadarRenderer(engine)
    fig, axes = plt.subplots(1, 3, figsize=(18, 6))

    for ax, target in zip(axes, [0, 5, 10]):
        engine.run(target - engine.round_count)
        renderer.render_snapshot(ax=ax, show_labels=(target == 0))

    plt.tight_layout()
    plt.savefig("radar_snapshot.png", dpi=150)
    plt.show()


if __name__ == "__main__":
    main()
