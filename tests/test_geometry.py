"""Tests for radar canvas coordinates."""

from __future__ import annotations

import math

import numpy as np
import pytest

from esp32_radar.core.geometry import radar_coordinates


class TestRadarCoordinates:
    def test_zero_distance_is_centre(self):
        xs, ys = radar_coordinates([0.0], [123])
        assert xs[0] == pytest.approx(300.0)
        assert ys[0] == pytest.approx(300.0)

    def test_max_distance_hits_padded_edge(self):
        xs, ys = radar_coordinates([20.0], [0])
        assert xs[0] == pytest.approx(560.0)
        assert ys[0] == pytest.approx(300.0)

    def test_quarter_turn_points_down(self):
        # Screen space: y grows downwards
        xs, ys = radar_coordinates([10.0], [90])
        assert xs[0] == pytest.approx(300.0)
        assert ys[0] == pytest.approx(430.0)

    def test_far_devices_pinned_to_edge(self):
        near_x, _ = radar_coordinates([20.0], [180])
        far_x, _ = radar_coordinates([500.0], [180])
        assert far_x[0] == pytest.approx(near_x[0])
        assert far_x[0] == pytest.approx(40.0)

    def test_negative_distance_is_not_plotted(self):
        xs, ys = radar_coordinates([-1.0, 5.0], [0, 0])
        assert math.isnan(xs[0]) and math.isnan(ys[0])
        assert np.isfinite(xs[1])

    def test_custom_geometry(self):
        xs, _ = radar_coordinates([5.0], [0], radius=100, max_distance=10, padding=0)
        assert xs[0] == pytest.approx(150.0)

    def test_empty_input(self):
        xs, ys = radar_coordinates([], [])
        assert len(xs) == 0 and len(ys) == 0
