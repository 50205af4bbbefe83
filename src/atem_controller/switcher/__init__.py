"""Switcher command layer - outbound command builders, state tracking and the client engine."""

from atem_controller.switcher.client import AtemSwitcher, ConnectionInfo, SwitcherCallbacks
from atem_controller.switcher.commands import OutgoingCommand
from atem_controller.switcher.state import DeviceState, StateTracker

__all__ = [
    "AtemSwitcher",
    "ConnectionInfo",
    "DeviceState",
    "OutgoingCommand",
    "StateTracker",
    "SwitcherCallbacks",
]
