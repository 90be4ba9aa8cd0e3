"""Log-distance path-loss approximation.

Maps a received signal strength (dBm) to an estimated distance in metres.
The curve is the empirical two-branch fit commonly used for BLE/WiFi
beacons, calibrated so that ``TX_POWER`` is the RSSI measured at 1 m.
"""

from __future__ import annotations

TX_POWER = -59  # RSSI at 1 metre

RSSI_MIN = -95
RSSI_MAX = -30

NO_ESTIMATE = -1.0


def calculate_distance(rssi: int | float) -> float:
    """Estimate the distance in metres for *rssi*.

    Returns :data:`NO_ESTIMATE` for a zero reading, which callers must
    treat as "unknown" rather than a physical distance.
    """
    if rssi == 0:
        return NO_ESTIMATE
    ratio = float(rssi) / TX_POWER
    if ratio < 1.0:
        return ratio ** 10
    return 0.89976 * ratio ** 7.7095 + 0.111


def clamp_rssi(rssi: int) -> int:
    return max(RSSI_MIN, min(RSSI_MAX, rssi))
