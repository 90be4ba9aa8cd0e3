"""Matplotlib rendering of the radar for static snapshots and animations."""

from __future__ import annotations

from typing import Any

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
from matplotlib.patches import Circle

from ..core.device import Device
from ..core.geometry import MAX_DISTANCE_M, RADAR_RADIUS, radar_coordinates
from ..simulation.engine import TelemetryEngine

ONLINE_COLOR = "#10b981"
OFFLINE_COLOR = "#ef4444"
ORIGIN_COLOR = "#3b82f6"
GRID_COLOR = "#334155"
BG_COLOR = "#0f172a"


class RadarRenderer:
    """Renders a snapshot or animation of the engine's device radar."""

    def __init__(self, engine: TelemetryEngine) -> None:
        self.engine = engine

    def _points(self, devices: tuple[Device, ...]) -> tuple[np.ndarray, np.ndarray, list[str]]:
        xs, ys = radar_coordinates(
            [d.distance for d in devices], [d.angle for d in devices]
        )
        colors = [ONLINE_COLOR if d.is_online else OFFLINE_COLOR for d in devices]
        return xs, ys, colors

    def _draw_grid(self, ax: Any) -> None:
        c = RADAR_RADIUS
        for frac, width in ((0.25, 1), (0.5, 1), (0.75, 1), (0.95, 2)):
            ax.add_patch(Circle((c, c), c * frac, fill=False,
                                edgecolor=GRID_COLOR, linewidth=width))
        ax.plot([c, c], [0, 2 * c], color=GRID_COLOR, linewidth=0.5)
        ax.plot([0, 2 * c], [c, c], color=GRID_COLOR, linewidth=0.5)
        ax.scatter([c], [c], c=ORIGIN_COLOR, s=60, zorder=3)
        ax.set_xlim(0, 2 * c)
        ax.set_ylim(2 * c, 0)  # screen orientation
        ax.set_aspect("equal")
        ax.set_facecolor(BG_COLOR)
        ax.set_xticks([])
        ax.set_yticks([])

    def render_snapshot(
        self,
        *,
        title: str | None = None,
        show_labels: bool = True,
        ax: Any = None,
    ) -> Any:
        """Draw the current snapshot onto *ax* (a new figure if omitted)."""
        if ax is None:
            _fig, ax = plt.subplots(1, 1, figsize=(8, 8))

        devices = self.engine.devices
        self._draw_grid(ax)
        xs, ys, colors = self._points(devices)
        ax.scatter(xs, ys, c=colors, s=90, edgecolors="white",
                   linewidths=0.5, zorder=4)

        if show_labels:
            for d, x, y in zip(devices, xs, ys):
                if not np.isfinite(x):
                    continue
                ax.annotate(
                    f"{d.name} ({d.rssi} dBm)", (x, y),
                    textcoords="offset points", xytext=(6, 6),
                    fontsize=7, color="#cbd5e1",
                )

        ax.set_title(title or f"Radar (edge = {MAX_DISTANCE_M:.0f} m) -- Tick {self.engine.round_count}")
        return ax

    def animate(self, num_rounds: int, *, interval_ms: int = 2000) -> FuncAnimation:
        """Animate *num_rounds* engine ticks."""
        fig, ax = plt.subplots(1, 1, figsize=(8, 8))
        self._draw_grid(ax)
        xs, ys, colors = self._points(self.engine.devices)
        sc = ax.scatter(xs, ys, c=colors, s=90, edgecolors="white",
                        linewidths=0.5, zorder=4)
        title_obj = ax.set_title("Radar -- Tick 0")

        def update(frame: int) -> Any:
            self.engine.step()
            xs, ys, colors = self._points(self.engine.devices)
            sc.set_offsets(np.column_stack([xs, ys]))
            sc.set_facecolor(colors)
            title_obj.set_text(f"Radar -- Tick {frame + 1}")
            return (sc, title_obj)

        return FuncAnimation(fig, update, frames=num_rounds,
                             interval=interval_ms, blit=False)
