"""Tests for the path-loss distance model."""

from __future__ import annotations

import numpy as np
import pytest

from esp32_radar.core.distance import (
    NO_ESTIMATE, RSSI_MAX, RSSI_MIN, TX_POWER, calculate_distance, clamp_rssi,
)


class TestCalculateDistance:
    def test_zero_reading_is_sentinel(self):
        assert calculate_distance(0) == -1.0
        assert calculate_distance(0) == NO_ESTIMATE

    def test_reference_power_uses_upper_branch(self):
        # ratio == 1.0 exactly, so the polynomial branch applies
        assert calculate_distance(TX_POWER) == pytest.approx(1.01076)

    def test_strong_signal_uses_power_ten_branch(self):
        assert calculate_distance(-30) == pytest.approx((30 / 59) ** 10)

    def test_weak_signal_uses_polynomial_branch(self):
        expected = 0.89976 * (84 / 59) ** 7.7095 + 0.111
        assert calculate_distance(-84) == pytest.approx(expected)

    def test_non_negative_over_valid_range(self):
        for rssi in range(RSSI_MIN, RSSI_MAX + 1):
            assert calculate_distance(rssi) >= 0

    def test_monotonic_as_signal_weakens(self):
        rng = np.random.default_rng(0)
        for _ in range(200):
            a, b = sorted(int(v) for v in rng.integers(RSSI_MIN, RSSI_MAX + 1, size=2))
            # a is the weaker (more negative) reading
            assert calculate_distance(a) >= calculate_distance(b)

    def test_monotonic_across_branch_boundary(self):
        assert calculate_distance(-59) >= calculate_distance(-58)

    def test_accepts_floats(self):
        assert calculate_distance(-59.0) == pytest.approx(1.01076)


class TestClamp:
    def test_within_range_unchanged(self):
        assert clamp_rssi(-70) == -70

    def test_clamps_low(self):
        assert clamp_rssi(-98) == -95

    def test_clamps_high(self):
        assert clamp_rssi(-27) == -30
