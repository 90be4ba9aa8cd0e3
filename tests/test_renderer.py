"""Smoke tests for the matplotlib radar renderer."""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np

from esp32_radar.simulation.engine import TelemetryEngine
from esp32_radar.visualization.renderer import RadarRenderer


class TestRadarRenderer:
    def test_snapshot_draws_all_devices(self):
        engine = TelemetryEngine(6, rng=np.random.default_rng(3))
        ax = RadarRenderer(engine).render_snapshot(show_labels=True)
        # origin + devices
        assert len(ax.collections) == 2
        assert ax.collections[1].get_offsets().shape == (6, 2)
        assert len(ax.texts) == 6
        assert "Tick 0" in ax.get_title()
        plt.close("all")

    def test_animation_steps_engine(self):
        engine = TelemetryEngine(3, rng=np.random.default_rng(4))
        anim = RadarRenderer(engine).animate(3, interval_ms=10)
        anim._func(0)
        assert engine.round_count == 1
        plt.close("all")
