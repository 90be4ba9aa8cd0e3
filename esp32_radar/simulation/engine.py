"""Telemetry engine: owns the current snapshot and advances it tick by tick."""

from __future__ import annotations

import re
import threading
from collections import deque
from typing import Callable

import numpy as np

from ..core.device import Device
from ..logger import get_logger
from .telemetry import generate_devices, now_ms, simulate_telemetry

log = get_logger("engine")

_VERSION_RE = re.compile(r"^v(\d+)\.(\d+)\.(\d+)$")

# Ten minutes at the 2 s tick
HISTORY_LIMIT = 300


def bump_firmware(version: str | None) -> str:
    """Return the next patch release, carrying into minor/major at 9."""
    m = _VERSION_RE.match(version or "")
    if m is None:
        return "v1.0.0"
    major, minor, patch = (int(g) for g in m.groups())
    patch += 1
    if patch > 9:
        patch = 0
        minor += 1
    if minor > 9:
        minor = 0
        major += 1
    return f"v{major}.{minor}.{patch}"


class TelemetryEngine:
    """Synchronous telemetry engine for the radar dashboard.

    The engine holds an immutable tuple of :class:`Device` snapshots.
    Each :meth:`step` replaces the tuple with the updater's output; out of
    band edits (analysis text, firmware pushes) go through :meth:`apply`,
    which swaps a single record and likewise publishes a new tuple.
    Both writes hold the same lock, so an edit made while a tick is in
    flight lands on the tick's output instead of being overwritten.

    Only the last *history_limit* rounds of signal history are kept.
    """

    def __init__(
        self,
        count: int = 8,
        rng: np.random.Generator | None = None,
        clock: Callable[[], int] | None = None,
        history_limit: int = HISTORY_LIMIT,
    ) -> None:
        self.rng = rng or np.random.default_rng()
        self.clock = clock or now_ms
        self.history_limit = history_limit
        self.devices: tuple[Device, ...] = ()
        self.round_count = 0
        # Per-round rssi by device id, starting with the initial snapshot
        self.history: deque[dict[str, int]] = deque(maxlen=history_limit)
        self._lock = threading.Lock()
        self.reset(count)

    def _record(self) -> None:
        self.history.append({d.id: d.rssi for d in self.devices})

    def reset(self, count: int | None = None) -> tuple[Device, ...]:
        """Start a new scan session with *count* freshly generated devices."""
        with self._lock:
            n = len(self.devices) if count is None else count
            self.devices = tuple(generate_devices(n, rng=self.rng, now=self.clock()))
            self.round_count = 0
            self.history = deque(maxlen=self.history_limit)
            self._record()
        log.info("Generated %d simulated devices", n)
        return self.devices

    def step(self) -> tuple[Device, ...]:
        """Execute one telemetry tick and return the new snapshot."""
        with self._lock:
            self.devices = tuple(
                simulate_telemetry(self.devices, rng=self.rng, now=self.clock())
            )
            self.round_count += 1
            self._record()
            snapshot = self.devices
        log.debug("Tick %d: %d devices", self.round_count, len(snapshot))
        return snapshot

    def run(self, num_rounds: int) -> list[dict[str, int]]:
        """Run *num_rounds* ticks. Returns the retained history."""
        for _ in range(num_rounds):
            self.step()
        return list(self.history)

    @property
    def first_round(self) -> int:
        """Round number of the oldest retained history entry."""
        return self.round_count - len(self.history) + 1

    def get(self, device_id: str | None) -> Device | None:
        for d in self.devices:
            if d.id == device_id:
                return d
        return None

    def apply(
        self, device_id: str, fn: Callable[[Device], Device]
    ) -> tuple[Device, ...]:
        """Replace the record *device_id* with ``fn(record)``.

        Raises ``KeyError`` if no such device exists.
        """
        with self._lock:
            if self.get(device_id) is None:
                raise KeyError(device_id)
            self.devices = tuple(
                fn(d) if d.id == device_id else d for d in self.devices
            )
            return self.devices

    def record_analysis(self, device_id: str, text: str) -> tuple[Device, ...]:
        return self.apply(device_id, lambda d: d.with_analysis(text))

    def update_firmware(
        self, device_id: str, version: str | None = None
    ) -> tuple[Device, ...]:
        """Push a firmware update; without *version* the patch is bumped."""
        def _push(d: Device) -> Device:
            return d.with_firmware(version or bump_firmware(d.firmware_version))

        snapshot = self.apply(device_id, _push)
        pushed = next(d for d in snapshot if d.id == device_id)
        log.info("Firmware for %s set to %s", device_id, pushed.firmware_version)
        return snapshot

    def rssi_series(self) -> dict[str, list[int]]:
        """Retained signal history per device id, oldest first."""
        series: dict[str, list[int]] = {d.id: [] for d in self.devices}
        for snap in list(self.history):
            for did, rssi in snap.items():
                if did in series:
                    series[did].append(rssi)
        return series
