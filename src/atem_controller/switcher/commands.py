"""Outbound switcher command builders.

Each builder returns an OutgoingCommand: a 4-character name plus exactly four
payload bytes. The connection layer wraps it into a 24-byte packet. New
command families (aux routing, keyers, media players, ...) are added here as
new builders; the codec and reliability layer do not change.

Payload layouts (``me`` = mix effect bank, 0 on single-ME switchers):

- CPvI / CPgI: me, 0, source (u16)
- DCut / DAut / FtbA: me, 0, 0, 0
- FtbC: mask (1 = rate), me, rate (frames), 0
- CTPs: me, 0, position (u16, 0..10000)
- CTPr: me, enabled, 0, 0
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from atem_controller.protocol.packet_types import (
    COMMAND_AUTO,
    COMMAND_CHANGE_PREVIEW_INPUT,
    COMMAND_CHANGE_PROGRAM_INPUT,
    COMMAND_CUT,
    COMMAND_FADE_TO_BLACK,
    COMMAND_FADE_TO_BLACK_RATE,
    COMMAND_PAYLOAD_LENGTH,
    COMMAND_PREVIEW_TRANSITION,
    COMMAND_TRANSITION_POSITION,
)

MAX_SOURCE_ID = 0xFFFF
MAX_ME_INDEX = 0xFF
MAX_FADE_RATE = 0xFF
MAX_TRANSITION_POSITION = 10000
FADE_TO_BLACK_RATE_MASK = 0x01

_ME_SOURCE = struct.Struct(">BxH")
_ME_ONLY = struct.Struct(">Bxxx")
_FADE_RATE = struct.Struct(">BBBx")
_ME_FLAG = struct.Struct(">BBxx")


@dataclass(frozen=True)
class OutgoingCommand:
    """A fixed-shape command ready to be sent.

    Attributes:
        name: 4-character ASCII command name
        payload: Exactly 4 payload bytes
    """

    name: str
    payload: bytes

    def __post_init__(self) -> None:
        if len(self.payload) != COMMAND_PAYLOAD_LENGTH:
            msg = f"{self.name} payload must be {COMMAND_PAYLOAD_LENGTH} bytes, got {len(self.payload)}"
            raise ValueError(msg)


def _check_range(label: str, value: int, maximum: int) -> None:
    if not 0 <= value <= maximum:
        msg = f"{label} must be between 0 and {maximum}, got {value}"
        raise ValueError(msg)


def change_preview_input(source: int, me: int = 0) -> OutgoingCommand:
    """Put ``source`` on preview."""
    _check_range("source", source, MAX_SOURCE_ID)
    _check_range("me", me, MAX_ME_INDEX)
    return OutgoingCommand(COMMAND_CHANGE_PREVIEW_INPUT, _ME_SOURCE.pack(me, source))


def change_program_input(source: int, me: int = 0) -> OutgoingCommand:
    """Put ``source`` on program (hard switch, no transition)."""
    _check_range("source", source, MAX_SOURCE_ID)
    _check_range("me", me, MAX_ME_INDEX)
    return OutgoingCommand(COMMAND_CHANGE_PROGRAM_INPUT, _ME_SOURCE.pack(me, source))


def cut(me: int = 0) -> OutgoingCommand:
    """Swap program and preview immediately."""
    _check_range("me", me, MAX_ME_INDEX)
    return OutgoingCommand(COMMAND_CUT, _ME_ONLY.pack(me))


def auto_transition(me: int = 0) -> OutgoingCommand:
    """Run the currently configured transition."""
    _check_range("me", me, MAX_ME_INDEX)
    return OutgoingCommand(COMMAND_AUTO, _ME_ONLY.pack(me))


def fade_to_black_toggle(me: int = 0) -> OutgoingCommand:
    _check_range("me", me, MAX_ME_INDEX)
    return OutgoingCommand(COMMAND_FADE_TO_BLACK, _ME_ONLY.pack(me))


def set_fade_to_black_rate(frames: int, me: int = 0) -> OutgoingCommand:
    """Set the fade-to-black duration in frames."""
    _check_range("frames", frames, MAX_FADE_RATE)
    _check_range("me", me, MAX_ME_INDEX)
    return OutgoingCommand(COMMAND_FADE_TO_BLACK_RATE, _FADE_RATE.pack(FADE_TO_BLACK_RATE_MASK, me, frames))


def set_transition_position(position: int, me: int = 0) -> OutgoingCommand:
    """Move the transition lever (0 = start, 10000 = complete)."""
    _check_range("position", position, MAX_TRANSITION_POSITION)
    _check_range("me", me, MAX_ME_INDEX)
    return OutgoingCommand(COMMAND_TRANSITION_POSITION, _ME_SOURCE.pack(me, position))


def set_preview_transition_enabled(enabled: bool, me: int = 0) -> OutgoingCommand:
    """Enable or disable transition preview on the preview output."""
    _check_range("me", me, MAX_ME_INDEX)
    return OutgoingCommand(COMMAND_PREVIEW_TRANSITION, _ME_FLAG.pack(me, 1 if enabled else 0))
