"""Synthetic telemetry: initial device generation and per-tick updates.

Both entry points are pure functions of their inputs.  Randomness comes
from an injectable :class:`numpy.random.Generator` and the clock from an
injectable ``now`` (epoch milliseconds), so any tick can be replayed.
"""

from __future__ import annotations

import time
from dataclasses import replace
from typing import Sequence

import numpy as np

from ..core.device import ConnectionStatus, Device, DeviceType
from ..core.distance import calculate_distance, clamp_rssi

MOCK_MACS = (
    "A0:B7:65:FE:12:34",
    "24:6F:28:A1:B2:C3",
    "CC:50:E3:88:99:00",
    "84:CC:A8:11:22:33",
    "A4:CF:12:44:55:66",
    "30:AE:A4:77:88:99",
)

DEVICE_NAMES = (
    "Living Room Sensor",
    "Garage Door Opener",
    "Garden Cam 01",
    "Bedroom LED Strip",
    "Main Water Valve",
    "Weather Station",
)

POSSIBLE_PORTS = (80, 443, 8080, 1883, 21, 23)

NOISE_DBM = 3
DROP_THRESHOLD = -90  # below: link is lost
RECOVER_THRESHOLD = -85  # above: a lost link comes back


def now_ms() -> int:
    return int(time.time() * 1000)


def _randint(rng: np.random.Generator, low: int, high: int) -> int:
    """Uniform integer in the closed range [low, high]."""
    return int(rng.integers(low, high, endpoint=True))


def _pick(pool: Sequence[str], index: int) -> str | None:
    if not pool:
        return None
    return pool[index % len(pool)] or None


# ── Generation ───────────────────────────────────────────────────────


def generate_devices(
    count: int = 8,
    rng: np.random.Generator | None = None,
    now: int | None = None,
) -> list[Device]:
    """Create *count* synthetic devices for a new scan session."""
    rng = rng or np.random.default_rng()
    stamp = now if now is not None else now_ms()
    kinds = list(DeviceType)

    devices: list[Device] = []
    for i in range(count):
        kind = kinds[_randint(rng, 0, len(kinds) - 1)]
        angle = int(rng.integers(0, 360))
        rssi = _randint(rng, -90, -35)

        mac = _pick(MOCK_MACS, i) or (
            f"DE:AD:BE:EF:{_randint(rng, 10, 99)}:{_randint(rng, 10, 99)}"
        )
        name = _pick(DEVICE_NAMES, i) or f"ESP32-Device-{i}"
        status = (
            ConnectionStatus.CONNECTED
            if rng.random() > 0.3
            else ConnectionStatus.DISCONNECTED
        )
        ip = f"192.168.1.{_randint(rng, 100, 200)}"
        firmware = (
            f"v{_randint(rng, 1, 3)}.{_randint(rng, 0, 9)}.{_randint(rng, 0, 9)}"
        )
        ports = tuple(p for p in POSSIBLE_PORTS if rng.random() > 0.6)
        services = tuple(
            s for s in (
                "WiFi",
                "MQTT" if rng.random() > 0.5 else "HTTP",
                "BLE" if rng.random() > 0.8 else "",
            ) if s
        )
        battery = _randint(rng, 20, 100) if rng.random() > 0.5 else None

        devices.append(
            Device(
                id=f"dev-{i}-{stamp}",
                mac=mac,
                name=name,
                type=kind,
                rssi=rssi,
                distance=calculate_distance(rssi),
                angle=angle,
                status=status,
                last_seen=stamp,
                ip_address=ip,
                firmware_version=firmware,
                open_ports=ports,
                services=services,
                battery_level=battery,
            )
        )
    return devices


# ── Updates ──────────────────────────────────────────────────────────


def next_status(rssi: int, previous: ConnectionStatus) -> ConnectionStatus:
    """Connectivity after a tick, decided from the *previous* status."""
    if rssi < DROP_THRESHOLD:
        return ConnectionStatus.DISCONNECTED
    if rssi > RECOVER_THRESHOLD and previous is ConnectionStatus.DISCONNECTED:
        return ConnectionStatus.CONNECTED
    return previous


def tick_device(device: Device, noise: int, now: int) -> Device:
    """Apply one tick with a given *noise* offset (dBm) to *device*."""
    rssi = clamp_rssi(device.rssi + noise)
    return replace(
        device,
        rssi=rssi,
        distance=calculate_distance(rssi),
        last_seen=now,
        status=next_status(rssi, device.status),
    )


def simulate_telemetry(
    devices: Sequence[Device],
    rng: np.random.Generator | None = None,
    now: int | None = None,
) -> list[Device]:
    """Advance every device by one tick.

    The output has the same length, order and identifiers as *devices*.
    """
    rng = rng or np.random.default_rng()
    stamp = now if now is not None else now_ms()
    return [
        tick_device(d, _randint(rng, -NOISE_DBM, NOISE_DBM), stamp)
        for d in devices
    ]
