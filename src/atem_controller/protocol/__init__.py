"""ATEM protocol package - header, command block and fixed packet codec.

This package implements the bit-exact wire format used between the controller
and the switcher. It has no knowledge of sessions, timers or sockets.

Public API:
- PacketFlag and layout constants
- Packet dataclasses (AtemHeader, AtemPacket, CommandBlock)
- Protocol encoder/decoder (AtemProtocol)
- Exceptions (AtemProtocolError, PacketDecodeError, CommandBlockError)
"""

from atem_controller.protocol.atem_protocol import AtemProtocol
from atem_controller.protocol.exceptions import (
    AtemProtocolError,
    CommandBlockError,
    PacketDecodeError,
)
from atem_controller.protocol.packet_types import (
    COMMAND_PACKET_LENGTH,
    HEADER_LENGTH,
    HELLO_PACKET_LENGTH,
    HELLO_SESSION_ID,
    AtemHeader,
    AtemPacket,
    CommandBlock,
    PacketFlag,
)

__all__ = [
    # Protocol encoder/decoder
    "AtemProtocol",
    # Layout constants
    "COMMAND_PACKET_LENGTH",
    "HEADER_LENGTH",
    "HELLO_PACKET_LENGTH",
    "HELLO_SESSION_ID",
    "PacketFlag",
    # Dataclasses
    "AtemHeader",
    "AtemPacket",
    "CommandBlock",
    # Exceptions
    "AtemProtocolError",
    "CommandBlockError",
    "PacketDecodeError",
]
