"""Device state projection from inbound broadcast commands.

The switcher is authoritative: local state only changes when the device
broadcasts it (PrgI / PrvI), never when we send a command.
"""

from __future__ import annotations

import dataclasses
import logging
import struct
from collections.abc import Callable
from dataclasses import dataclass

from atem_controller.metrics import registry
from atem_controller.protocol.packet_types import (
    COMMAND_PREVIEW_INPUT,
    COMMAND_PROGRAM_INPUT,
    CommandBlock,
)

logger = logging.getLogger(__name__)

# me (u8), padding, source (u16)
_INPUT_BROADCAST = struct.Struct(">BxH")

BlockHandler = Callable[[bytes], None]


@dataclass
class DeviceState:
    """Snapshot of the switcher state tracked by the engine."""

    program_input: int = 0
    preview_input: int = 0
    transition_in_progress: bool = False
    transition_position: int = 0


class StateTracker:
    """Applies decoded command blocks to a DeviceState.

    Field changes fire their specific callback immediately and set the dirty
    flag; the owner flushes the dirty flag once per tick into a single
    state-changed notification.
    """

    def __init__(
        self,
        device_label: str = "",
        on_program_changed: Callable[[int], None] | None = None,
        on_preview_changed: Callable[[int], None] | None = None,
    ) -> None:
        self.device_label = device_label
        self.on_program_changed = on_program_changed
        self.on_preview_changed = on_preview_changed
        self.state = DeviceState()
        self.dirty = False
        self._handlers: dict[str, BlockHandler] = {
            COMMAND_PROGRAM_INPUT: self._handle_program_input,
            COMMAND_PREVIEW_INPUT: self._handle_preview_input,
        }

    def register_handler(self, name: str, handler: BlockHandler) -> None:
        """Route inbound blocks named ``name`` to ``handler(payload)``."""
        self._handlers[name] = handler

    def apply(self, blocks: list[CommandBlock]) -> None:
        """Apply every block with a registered handler, in wire order."""
        for block in blocks:
            handler = self._handlers.get(block.name)
            if handler is None:
                logger.debug("Ignoring command %r (%d bytes)", block.name, len(block.payload))
                continue
            handler(block.payload)

    def take_dirty(self) -> bool:
        """Return whether anything changed since the last call, clearing the flag."""
        was_dirty = self.dirty
        self.dirty = False
        return was_dirty

    def snapshot(self) -> DeviceState:
        """Copy of the current state, safe to hand to callers."""
        return dataclasses.replace(self.state)

    def _decode_source(self, name: str, payload: bytes) -> int | None:
        if len(payload) < _INPUT_BROADCAST.size:
            logger.debug(
                "Ignoring short %s payload",
                name,
                extra={"payload_bytes": len(payload)},
            )
            return None
        _me, source = _INPUT_BROADCAST.unpack_from(payload)
        return source

    def _handle_program_input(self, payload: bytes) -> None:
        source = self._decode_source(COMMAND_PROGRAM_INPUT, payload)
        if source is None or source == self.state.program_input:
            return
        self.state.program_input = source
        self.dirty = True
        registry.record_state_change(self.device_label, "program_input")
        logger.info("Program input → %d", source)
        if self.on_program_changed is not None:
            self.on_program_changed(source)

    def _handle_preview_input(self, payload: bytes) -> None:
        source = self._decode_source(COMMAND_PREVIEW_INPUT, payload)
        if source is None or source == self.state.preview_input:
            return
        self.state.preview_input = source
        self.dirty = True
        registry.record_state_change(self.device_label, "preview_input")
        logger.info("Preview input → %d", source)
        if self.on_preview_changed is not None:
            self.on_preview_changed(source)
