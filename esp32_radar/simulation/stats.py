"""Summary metrics and tabular views over a device snapshot."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import pandas as pd

from ..core.device import Device

HIGH_RISK_PORTS = 2  # more open ports than this marks a device high-risk

FRAME_COLUMNS = [
    "id", "name", "mac", "type", "rssi", "distance", "angle", "status",
    "ip_address", "firmware_version", "open_ports", "services",
    "battery_level", "last_seen",
]


@dataclass(frozen=True)
class RadarStats:
    total_devices: int
    online_count: int
    avg_signal: int
    high_risk_count: int
    threat_level: str  # "Low" | "Medium" | "High"


def signal_quality(rssi: int) -> str:
    if rssi > -60:
        return "strong"
    if rssi > -80:
        return "fair"
    return "weak"


def devices_frame(devices: Sequence[Device]) -> pd.DataFrame:
    """One row per device, enum fields as display labels."""
    if not devices:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    rows = [d.to_dict() for d in devices]
    return pd.DataFrame(rows)[FRAME_COLUMNS]


def _threat_level(high_risk: int, total: int) -> str:
    if high_risk == 0:
        return "Low"
    if 2 * high_risk >= total:
        return "High"
    return "Medium"


def compute_stats(devices: Sequence[Device]) -> RadarStats:
    df = devices_frame(devices)
    total = len(df)
    if total == 0:
        return RadarStats(0, 0, 0, 0, "Low")
    online = int((df["status"] == "Connected").sum())
    # Half-up rounding, so -70.5 dBm reads as -70
    avg = int(math.floor(float(df["rssi"].mean()) + 0.5))
    high_risk = int((df["open_ports"].map(len) > HIGH_RISK_PORTS).sum())
    return RadarStats(
        total_devices=total,
        online_count=online,
        avg_signal=avg,
        high_risk_count=high_risk,
        threat_level=_threat_level(high_risk, total),
    )
