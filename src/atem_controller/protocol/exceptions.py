"""Custom exception types for ATEM protocol errors.

Codec functions raise these instead of returning partial results; the engine
catches them at the tick boundary, logs them and drops the offending datagram.
"""

from __future__ import annotations


class AtemProtocolError(Exception):
    """Base exception for all ATEM protocol errors.

    All protocol and transport exceptions inherit from this base class,
    enabling catch-all error handling when needed while maintaining
    specific exception types for detailed handling.
    """


class PacketDecodeError(AtemProtocolError):
    """Datagram cannot be decoded.

    Raised when a datagram is shorter than the 12-byte header.

    Attributes:
        reason: Specific failure reason (e.g., "too_short")
        data_preview: First 16 bytes of the datagram (keeps logs/tracebacks small)
    """

    def __init__(self, reason: str, data: bytes = b""):
        self.reason = reason
        self.data_preview = data[:16] if data else b""
        super().__init__(f"Packet decode failed: {reason}")


class CommandBlockError(AtemProtocolError):
    """Outgoing command block cannot be encoded.

    Raised when a command name is not exactly 4 ASCII characters or a fixed
    command payload has the wrong size.

    Attributes:
        reason: Specific failure reason (e.g., "invalid_name", "invalid_payload_size")
        name: Offending command name
    """

    def __init__(self, reason: str, name: str = ""):
        self.reason = reason
        self.name = name
        super().__init__(f"Command block encode failed: {reason} ({name!r})")
