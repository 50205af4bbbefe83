"""ATEM switcher control over the UDP reliable-messaging protocol.

Public API:
- AtemSwitcher: per-connection engine (connect / tick / disconnect / commands)
- SwitcherCallbacks: application notification closures
- ConnectionState: connection state machine states
- DeviceState: program/preview/transition snapshot
"""

__version__ = "2.0.0"

from atem_controller.switcher import AtemSwitcher, DeviceState, SwitcherCallbacks
from atem_controller.transport.connection_manager import ConnectionState

__all__ = [
    "AtemSwitcher",
    "ConnectionState",
    "DeviceState",
    "SwitcherCallbacks",
    "__version__",
]
