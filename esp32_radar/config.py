"""Runtime settings, read from environment variables.

=====================  ====================  ==========================
Variable               Field                 Default
=====================  ====================  ==========================
``HOST``               ``host``              ``0.0.0.0``
``PORT``               ``port``              ``7860``
``DEBUG``              ``debug``             ``false``
``LOG_LEVEL``          ``log_level``         ``INFO``
``DEVICE_COUNT``       ``device_count``      ``8``
``TICK_INTERVAL_MS``   ``tick_interval_ms``  ``2000``
``API_KEY``            ``api_key``           unset
``GEMINI_API_KEY``     ``api_key``           fallback for ``API_KEY``
``GEMINI_MODEL``       ``model``             ``gemini-2.5-flash``
=====================  ====================  ==========================
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .logger import get_logger

log = get_logger("config")

DEFAULT_MODEL = "gemini-2.5-flash"

_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 7860
    debug: bool = False
    log_level: str = "INFO"
    device_count: int = 8
    tick_interval_ms: int = 2000
    api_key: str | None = None
    model: str = DEFAULT_MODEL

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        """Build settings from *env* (defaults to ``os.environ``).

        Malformed integers fall back to the field default with a warning.
        """
        env = os.environ if env is None else env
        defaults = cls()

        def _int(key: str, default: int) -> int:
            raw = env.get(key)
            if raw is None or raw == "":
                return default
            try:
                return int(raw)
            except ValueError:
                log.warning("Ignoring invalid %s=%r, using %d", key, raw, default)
                return default

        api_key = env.get("API_KEY") or env.get("GEMINI_API_KEY") or None
        return cls(
            host=env.get("HOST", defaults.host),
            port=_int("PORT", defaults.port),
            debug=env.get("DEBUG", "").strip().lower() in _TRUE,
            log_level=env.get("LOG_LEVEL", defaults.log_level).upper(),
            device_count=max(_int("DEVICE_COUNT", defaults.device_count), 0),
            tick_interval_ms=max(
                _int("TICK_INTERVAL_MS", defaults.tick_interval_ms), 100
            ),
            api_key=api_key,
            model=env.get("GEMINI_MODEL") or defaults.model,
        )
