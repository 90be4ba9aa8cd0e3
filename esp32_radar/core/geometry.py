"""Polar-to-canvas mapping for the radar view."""

from __future__ import annotations

from typing import Sequence

import numpy as np

RADAR_RADIUS = 300.0  # canvas units; the canvas is 2 * radius square
MAX_DISTANCE_M = 20.0  # the outer ring
RING_PADDING = 40.0


def radar_coordinates(
    distances: Sequence[float] | np.ndarray,
    angles: Sequence[float] | np.ndarray,
    radius: float = RADAR_RADIUS,
    max_distance: float = MAX_DISTANCE_M,
    padding: float = RING_PADDING,
) -> tuple[np.ndarray, np.ndarray]:
    """Convert (distance, angle) pairs to radar canvas coordinates.

    Distances beyond *max_distance* are pinned to the outer ring.
    Angles are in degrees, measured clockwise from the positive x axis in
    screen space (y grows downwards).  Negative distances carry no
    estimate and map to ``nan``.

    Returns
    -------
    (xs, ys):
        Two float arrays with the same length as the inputs.
    """
    d = np.asarray(distances, dtype=float)
    theta = np.deg2rad(np.asarray(angles, dtype=float))
    r = np.minimum(d, max_distance) / max_distance * (radius - padding)
    r = np.where(d >= 0, r, np.nan)
    xs = radius + r * np.cos(theta)
    ys = radius + r * np.sin(theta)
    return xs, ys
