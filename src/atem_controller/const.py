import os

from atem_controller import __version__

__all__ = [
    "ATEM_CONNECTION_TIMEOUT_MS",
    "ATEM_DEBUG",
    "ATEM_ENABLE_EXPORTER",
    "ATEM_HEARTBEAT_INTERVAL_MS",
    "ATEM_HOST",
    "ATEM_LOCAL_PORT",
    "ATEM_LOG_FORMAT",
    "ATEM_LOG_HUMAN_OUTPUT",
    "ATEM_LOG_JSON_FILE",
    "ATEM_LOG_NAME",
    "ATEM_METRICS_PORT",
    "ATEM_PORT",
    "ATEM_VERSION",
    "HISTORY_CAPACITY",
    "MAX_PACKET_SIZE",
    "TICK_INTERVAL_MS",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
ATEM_LOG_NAME: str = "atem_controller"
ATEM_VERSION: str = __version__


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Device addressing
ATEM_HOST: str | None = os.environ.get("ATEM_HOST") or None
ATEM_PORT: int = _int_from_env("ATEM_PORT", 9910)
ATEM_LOCAL_PORT: int = _int_from_env("ATEM_LOCAL_PORT", 9910)

# Protocol timing (milliseconds)
ATEM_CONNECTION_TIMEOUT_MS: int = _int_from_env("ATEM_CONNECTION_TIMEOUT_MS", 5000)
ATEM_HEARTBEAT_INTERVAL_MS: int = _int_from_env("ATEM_HEARTBEAT_INTERVAL_MS", 500)
TICK_INTERVAL_MS: int = 10

# Hardcoded by the device firmware
MAX_PACKET_SIZE: int = 1500
HISTORY_CAPACITY: int = 100

ATEM_DEBUG = os.environ.get("ATEM_DEBUG", "0").casefold() in YES_ANSWER
ATEM_LOG_FORMAT: str = os.environ.get("ATEM_LOG_FORMAT", "human").casefold()
ATEM_LOG_JSON_FILE: str | None = os.environ.get("ATEM_LOG_JSON_FILE") or None
ATEM_LOG_HUMAN_OUTPUT: str = os.environ.get("ATEM_LOG_HUMAN_OUTPUT", "stdout")

ATEM_ENABLE_EXPORTER: bool = os.environ.get("ATEM_ENABLE_EXPORTER", "0").casefold() in YES_ANSWER
ATEM_METRICS_PORT: int = _int_from_env("ATEM_METRICS_PORT", 9400)
