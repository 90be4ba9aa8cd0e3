"""Device snapshot model for the radar dashboard."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class DeviceType(str, Enum):
    UNKNOWN = "Unknown"
    SENSOR = "Sensor Node"
    CAMERA = "ESP32-CAM"
    CONTROLLER = "Relay Controller"
    DISPLAY = "Display/HMI"
    WEARABLE = "Wearable"


class ConnectionStatus(str, Enum):
    CONNECTED = "Connected"
    DISCONNECTED = "Disconnected"
    # Valid label, but no telemetry transition produces it.
    UNSTABLE = "Unstable"


@dataclass(frozen=True)
class Device:
    """An immutable snapshot of one simulated ESP32 device.

    Records are never edited in place: every tick, analysis result or
    firmware push produces a new instance via :func:`dataclasses.replace`.
    ``distance`` is derived from ``rssi``; a negative value means the
    reading gave no usable estimate.
    """

    id: str
    mac: str
    name: str
    type: DeviceType
    rssi: int  # dBm
    distance: float  # metres
    angle: int  # degrees, [0, 360)
    status: ConnectionStatus
    last_seen: int  # epoch milliseconds
    ip_address: str | None = None
    firmware_version: str | None = None
    open_ports: tuple[int, ...] = field(default_factory=tuple)
    services: tuple[str, ...] = field(default_factory=tuple)
    battery_level: int | None = None
    ai_analysis: str | None = None

    @property
    def is_online(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    @property
    def has_distance(self) -> bool:
        return self.distance >= 0

    def with_analysis(self, text: str) -> Device:
        return replace(self, ai_analysis=text)

    def with_firmware(self, version: str) -> Device:
        return replace(self, firmware_version=version)

    def to_dict(self) -> dict[str, Any]:
        """Plain-JSON view used by Dash tables and stores."""
        return {
            "id": self.id,
            "mac": self.mac,
            "name": self.name,
            "type": self.type.value,
            "rssi": self.rssi,
            "distance": self.distance,
            "angle": self.angle,
            "status": self.status.value,
            "last_seen": self.last_seen,
            "ip_address": self.ip_address,
            "firmware_version": self.firmware_version,
            "open_ports": list(self.open_ports),
            "services": list(self.services),
            "battery_level": self.battery_level,
            "ai_analysis": self.ai_analysis,
        }
