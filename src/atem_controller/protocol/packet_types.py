"""ATEM protocol packet constants and dataclass structures.

Every ATEM datagram starts with the same 12-byte header:

- Bytes 0-1: flags (top 5 bits) | total packet length (low 11 bits)
- Bytes 2-3: session ID
- Bytes 4-5: acknowledged packet ID (ACK replies)
- Bytes 6-7: retransmit-from packet ID (retransmit requests)
- Bytes 8-9: reserved (0x003A in the hello packet)
- Bytes 10-11: sender's packet ID

The body, when present, is a sequence of command blocks:

- Bytes 0-1: block length (includes this 8-byte sub-header)
- Bytes 2-3: reserved
- Bytes 4-7: 4-character ASCII command name
- Bytes 8+: payload (block length - 8 bytes)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntFlag


class PacketFlag(IntFlag):
    """Header flags (top 5 bits of the first header word)."""

    ACK_REQUEST = 0x01  # Sender wants an ACK for this packet
    NEW_SESSION_ID = 0x02  # Handshake: carries the device-assigned session ID
    IS_RETRANSMIT = 0x04  # Packet is a replay of an earlier one
    RETRANSMIT_REQUEST = 0x08  # Receiver asks for a replay from bytes 6-7 onward
    ACK_REPLY = 0x10  # Header-only acknowledgment


# Header layout
HEADER_LENGTH = 12
FLAGS_SHIFT = 11
LENGTH_MASK = 0x07FF
PACKET_ID_MODULUS = 0x10000

# Command block layout
BLOCK_HEADER_LENGTH = 8
COMMAND_NAME_LENGTH = 4
COMMAND_PAYLOAD_LENGTH = 4  # Every fixed outbound command carries 4 payload bytes
COMMAND_BLOCK_LENGTH = BLOCK_HEADER_LENGTH + COMMAND_PAYLOAD_LENGTH  # 12
COMMAND_PACKET_LENGTH = HEADER_LENGTH + COMMAND_BLOCK_LENGTH  # 24

# Handshake
HELLO_SESSION_ID = 0x53AB  # Placeholder until the device assigns one
HELLO_RESERVED = 0x003A
HELLO_PAYLOAD = bytes([0x01, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00])
HELLO_PACKET_LENGTH = HEADER_LENGTH + len(HELLO_PAYLOAD)  # 20

# Inbound broadcast command names
COMMAND_PROGRAM_INPUT = "PrgI"
COMMAND_PREVIEW_INPUT = "PrvI"

# Outbound command names
COMMAND_CHANGE_PREVIEW_INPUT = "CPvI"
COMMAND_CHANGE_PROGRAM_INPUT = "CPgI"
COMMAND_CUT = "DCut"
COMMAND_AUTO = "DAut"
COMMAND_FADE_TO_BLACK = "FtbA"
COMMAND_FADE_TO_BLACK_RATE = "FtbC"
COMMAND_TRANSITION_POSITION = "CTPs"
COMMAND_PREVIEW_TRANSITION = "CTPr"


@dataclass(frozen=True)
class AtemHeader:
    """Decoded 12-byte ATEM packet header.

    Attributes:
        flags: Combination of PacketFlag values
        length: Total packet length declared in the header (header + body)
        session_id: 16-bit session identifier
        ack_id: Acknowledged packet ID (bytes 4-5)
        retransmit_from_id: First packet ID the sender wants replayed (bytes 6-7)
        reserved: Bytes 8-9, unused outside the hello packet
        packet_id: Sender's own packet ID (bytes 10-11)

    """

    flags: PacketFlag
    length: int
    session_id: int
    ack_id: int = 0
    retransmit_from_id: int = 0
    reserved: int = 0
    packet_id: int = 0

    def has(self, flag: PacketFlag) -> bool:
        """Return True if ``flag`` is set in this header."""
        return bool(self.flags & flag)


@dataclass(frozen=True)
class CommandBlock:
    """One named sub-message from a packet body.

    Attributes:
        name: 4-character ASCII command tag (e.g. "PrgI")
        payload: Block payload (block length - 8 bytes)

    """

    name: str
    payload: bytes


@dataclass
class AtemPacket:
    """Decoded ATEM datagram.

    Attributes:
        header: Decoded 12-byte header
        body: Raw bytes after the header
        raw: Complete datagram as received
        length_mismatch: True when header length != datagram length
        commands: Command blocks parsed from the body

    """

    header: AtemHeader
    body: bytes
    raw: bytes
    length_mismatch: bool = False
    commands: list[CommandBlock] = field(default_factory=list)

    @property
    def has_body(self) -> bool:
        """True when the datagram carries bytes past the header."""
        return len(self.body) > 0
