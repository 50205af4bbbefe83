"""ATEM protocol encoder/decoder implementation.

This module implements header parsing, command block parsing, and the fixed
packet builders (hello, ACK, heartbeat, 24-byte command) used by the engine.
"""

from __future__ import annotations

import logging
import struct

from atem_controller.protocol.exceptions import CommandBlockError, PacketDecodeError
from atem_controller.protocol.packet_types import (
    BLOCK_HEADER_LENGTH,
    COMMAND_NAME_LENGTH,
    COMMAND_PACKET_LENGTH,
    COMMAND_PAYLOAD_LENGTH,
    FLAGS_SHIFT,
    HEADER_LENGTH,
    HELLO_PACKET_LENGTH,
    HELLO_PAYLOAD,
    HELLO_RESERVED,
    HELLO_SESSION_ID,
    LENGTH_MASK,
    AtemHeader,
    AtemPacket,
    CommandBlock,
    PacketFlag,
)

# word0, session, ack id, retransmit-from id, reserved, packet id
_HEADER_STRUCT = struct.Struct(">HHHHHH")
# block length, reserved, name
_BLOCK_HEADER_STRUCT = struct.Struct(">HH4s")

MAX_FLAGS_VALUE = 0x1F
MAX_UINT16 = 0xFFFF

logger = logging.getLogger(__name__)


class AtemProtocol:
    """ATEM protocol encoder/decoder.

    Provides static methods for encoding and decoding ATEM packets.
    All methods are stateless - no instance state maintained.
    """

    @staticmethod
    def parse_header(data: bytes) -> AtemHeader:
        """Parse the 12-byte header at the start of ``data``.

        Args:
            data: Datagram bytes (must be at least 12 bytes)

        Returns:
            Decoded AtemHeader

        Raises:
            PacketDecodeError: If data is too short to hold a header

        Example:
            >>> header = AtemProtocol.parse_header(bytes.fromhex("080c 8008 0000 0000 0000 0005"))
            >>> header.session_id == 0x8008
            True
            >>> header.packet_id
            5

        """
        if len(data) < HEADER_LENGTH:
            error_reason = "too_short"
            raise PacketDecodeError(error_reason, data)

        word0, session_id, ack_id, retransmit_from_id, reserved, packet_id = _HEADER_STRUCT.unpack_from(data)

        header = AtemHeader(
            flags=PacketFlag(word0 >> FLAGS_SHIFT),
            length=word0 & LENGTH_MASK,
            session_id=session_id,
            ack_id=ack_id,
            retransmit_from_id=retransmit_from_id,
            reserved=reserved,
            packet_id=packet_id,
        )

        logger.debug(
            "Parsed header: flags=0x%02x, length=%d, session=0x%04x, packet_id=%d",
            int(header.flags),
            header.length,
            header.session_id,
            header.packet_id,
        )

        return header

    @staticmethod
    def encode_header(header: AtemHeader) -> bytes:
        """Encode a 12-byte header.

        Args:
            header: Header to encode

        Returns:
            12-byte header

        Raises:
            ValueError: If flags, length or any 16-bit field is out of range

        Example:
            >>> raw = AtemProtocol.encode_header(
            ...     AtemHeader(flags=PacketFlag.ACK_REPLY, length=12, session_id=0x8008, ack_id=3)
            ... )
            >>> raw.hex(" ")
            '80 0c 80 08 00 03 00 00 00 00 00 00'

        """
        flags = int(header.flags)
        if not 0 <= flags <= MAX_FLAGS_VALUE:
            msg = f"flags out of range: {flags:#x}"
            raise ValueError(msg)
        if not 0 <= header.length <= LENGTH_MASK:
            msg = f"length out of range: {header.length}"
            raise ValueError(msg)
        fields = (
            header.session_id,
            header.ack_id,
            header.retransmit_from_id,
            header.reserved,
            header.packet_id,
        )
        if any(not 0 <= value <= MAX_UINT16 for value in fields):
            msg = f"16-bit header field out of range: {fields}"
            raise ValueError(msg)

        return _HEADER_STRUCT.pack((flags << FLAGS_SHIFT) | header.length, *fields)

    @staticmethod
    def parse_command_blocks(body: bytes) -> list[CommandBlock]:
        """Split a packet body into command blocks.

        Parsing stops at the first block whose length is below 8 or runs past
        the end of the body. Blocks already parsed are kept; the rest of the
        body is discarded without raising.

        Args:
            body: Packet bytes after the 12-byte header

        Returns:
            Command blocks in wire order

        """
        blocks: list[CommandBlock] = []
        offset = 0
        body_length = len(body)

        while offset + BLOCK_HEADER_LENGTH <= body_length:
            block_length, _reserved, raw_name = _BLOCK_HEADER_STRUCT.unpack_from(body, offset)

            if block_length < BLOCK_HEADER_LENGTH:
                logger.debug(
                    "Command block length below header size, stopping",
                    extra={"offset": offset, "block_length": block_length},
                )
                break
            if offset + block_length > body_length:
                logger.debug(
                    "Command block overruns body, stopping",
                    extra={
                        "offset": offset,
                        "block_length": block_length,
                        "remaining": body_length - offset,
                    },
                )
                break

            payload = body[offset + BLOCK_HEADER_LENGTH : offset + block_length]
            blocks.append(CommandBlock(name=raw_name.decode("latin-1"), payload=payload))
            offset += block_length

        return blocks

    @staticmethod
    def decode_packet(data: bytes) -> AtemPacket:
        """Decode a complete ATEM datagram.

        Steps:
        1. Parse the 12-byte header (raises on short input)
        2. Compare declared length with actual length (warn only, device is authoritative)
        3. Parse command blocks from the body

        Args:
            data: Complete datagram bytes

        Returns:
            AtemPacket with header, body and parsed command blocks

        Raises:
            PacketDecodeError: If the datagram is shorter than the header

        """
        header = AtemProtocol.parse_header(data)

        length_mismatch = header.length != len(data)
        if length_mismatch:
            logger.warning(
                "Packet length mismatch: header says %d, received %d",
                header.length,
                len(data),
                extra={"session_id": f"0x{header.session_id:04x}", "packet_id": header.packet_id},
            )

        body = bytes(data[HEADER_LENGTH:])
        commands = AtemProtocol.parse_command_blocks(body) if body else []

        return AtemPacket(
            header=header,
            body=body,
            raw=bytes(data),
            length_mismatch=length_mismatch,
            commands=commands,
        )

    @staticmethod
    def encode_command_block(name: str, payload: bytes) -> bytes:
        """Encode one command block (length, reserved, name, payload).

        Args:
            name: 4-character ASCII command name
            payload: Block payload

        Returns:
            Encoded block of ``8 + len(payload)`` bytes

        Raises:
            CommandBlockError: If name is not exactly 4 ASCII characters

        """
        try:
            raw_name = name.encode("ascii")
        except UnicodeEncodeError as e:
            error_reason = "invalid_name"
            raise CommandBlockError(error_reason, name) from e
        if len(raw_name) != COMMAND_NAME_LENGTH:
            error_reason = "invalid_name"
            raise CommandBlockError(error_reason, name)

        return _BLOCK_HEADER_STRUCT.pack(BLOCK_HEADER_LENGTH + len(payload), 0, raw_name) + payload

    @staticmethod
    def encode_hello() -> bytes:
        """Encode the fixed 20-byte handshake packet.

        Returns:
            ``10 14 53 ab 00 00 00 00 00 3a 00 00 01 00 00 00 00 00 00 00``

        """
        header = AtemHeader(
            flags=PacketFlag.NEW_SESSION_ID,
            length=HELLO_PACKET_LENGTH,
            session_id=HELLO_SESSION_ID,
            reserved=HELLO_RESERVED,
        )
        return AtemProtocol.encode_header(header) + HELLO_PAYLOAD

    @staticmethod
    def encode_ack(session_id: int, ack_id: int) -> bytes:
        """Encode a 12-byte ACK reply for ``ack_id``."""
        header = AtemHeader(
            flags=PacketFlag.ACK_REPLY,
            length=HEADER_LENGTH,
            session_id=session_id,
            ack_id=ack_id,
        )
        return AtemProtocol.encode_header(header)

    @staticmethod
    def encode_heartbeat(session_id: int, packet_id: int) -> bytes:
        """Encode a 12-byte header-only packet that requests an ACK."""
        header = AtemHeader(
            flags=PacketFlag.ACK_REQUEST,
            length=HEADER_LENGTH,
            session_id=session_id,
            packet_id=packet_id,
        )
        return AtemProtocol.encode_header(header)

    @staticmethod
    def encode_command_packet(session_id: int, packet_id: int, name: str, payload: bytes) -> bytes:
        """Encode a 24-byte single-command packet.

        Args:
            session_id: Current session ID
            packet_id: Local packet ID for this packet
            name: 4-character command name (e.g. "CPvI")
            payload: Exactly 4 payload bytes

        Returns:
            24-byte packet: 12-byte header (ACK_REQUEST, length 24) + 12-byte block

        Raises:
            CommandBlockError: If name or payload size is invalid

        Example:
            >>> raw = AtemProtocol.encode_command_packet(0x8008, 1, "FtbA", bytes(4))
            >>> raw.hex()
            '081880080000000000000001000c00004674624100000000'

        """
        if len(payload) != COMMAND_PAYLOAD_LENGTH:
            error_reason = "invalid_payload_size"
            raise CommandBlockError(error_reason, name)

        block = AtemProtocol.encode_command_block(name, payload)
        header = AtemHeader(
            flags=PacketFlag.ACK_REQUEST,
            length=COMMAND_PACKET_LENGTH,
            session_id=session_id,
            packet_id=packet_id,
        )
        packet = AtemProtocol.encode_header(header) + block

        logger.debug(
            "Encoded command packet: %s id=%d %s",
            name,
            packet_id,
            packet.hex(" "),
        )

        return packet
