"""Gemini-backed "threat analysis" blurb for a single device.

The call never raises: a missing credential or any API failure is turned
into a fixed message so the dashboard can display it verbatim.
"""

from __future__ import annotations

from typing import Any

from google import genai

from ..config import DEFAULT_MODEL, Settings
from ..core.device import Device
from ..logger import get_logger

log = get_logger("analysis")

MISSING_KEY_MESSAGE = "AI Service Unavailable: Missing API Key."
EMPTY_RESPONSE_MESSAGE = "Analysis complete but no text returned."
API_ERROR_MESSAGE = "Failed to analyze device signature due to an API error."


def build_prompt(device: Device) -> str:
    ports = ", ".join(str(p) for p in device.open_ports) or "None detected"
    services = ", ".join(device.services)
    return (
        "Analyze the following metadata for an ESP32 IoT device detected "
        "on the network.\n"
        "Provide a concise technical assessment (max 3 sentences) covering:\n"
        "1. The likely real-world application of this device based on its "
        "type and name.\n"
        "2. Potential security risks given its open ports and services.\n"
        "3. An estimated power consumption profile if relevant.\n"
        "\n"
        "Device Data:\n"
        f"- Name: {device.name}\n"
        f"- Type: {device.type.value}\n"
        f"- Open Ports: {ports}\n"
        f"- Services: {services}\n"
        f"- Firmware: {device.firmware_version}\n"
        f"- Signal Strength: {device.rssi} dBm\n"
    )


def make_client(api_key: str | None = None) -> Any | None:
    """Return a Gemini client, or ``None`` when no key is configured."""
    key = api_key or Settings.from_env().api_key
    if not key:
        log.error("API_KEY is missing from environment variables.")
        return None
    return genai.Client(api_key=key)


async def analyze_device_signature(
    device: Device,
    api_key: str | None = None,
    client: Any | None = None,
    model: str = DEFAULT_MODEL,
) -> str:
    """Ask the model for a short assessment of *device*.

    Parameters
    ----------
    client:
        Anything exposing ``client.aio.models.generate_content``; built
        from *api_key* (or the environment) when omitted.
    """
    try:
        client = client or make_client(api_key)
        if client is None:
            return MISSING_KEY_MESSAGE
        response = await client.aio.models.generate_content(
            model=model,
            contents=build_prompt(device),
        )
    except Exception:
        log.exception("Gemini analysis failed for %s", device.id)
        return API_ERROR_MESSAGE

    return getattr(response, "text", None) or EMPTY_RESPONSE_MESSAGE
