"""Core dataclasses for the reliable transport layer.

This module defines the data structures used by the reliability layer and the
connection state machine for tracking sessions, sent packets and send results.
"""

from __future__ import annotations

from dataclasses import dataclass

from atem_controller.protocol.packet_types import HELLO_SESSION_ID


@dataclass
class SendResult:
    """Result of a reliable send or an outbound command.

    Attributes:
        success: Whether the packet left through the transport
        correlation_id: Correlation ID of the connection attempt (UUID v7)
        reason: Error reason if success=False (empty string if success=True)
        packet_id: Local packet ID the packet was stored under (None if never built)
    """

    success: bool
    correlation_id: str
    reason: str = ""
    packet_id: int | None = None


@dataclass(frozen=True)
class OutgoingPacketRecord:
    """Sent packet kept for retransmission.

    Attributes:
        packet_id: Local packet ID carried in bytes 10-11
        raw: Exact bytes that were sent
        sent_at_ms: Clock reading when the packet was first sent
    """

    packet_id: int
    raw: bytes
    sent_at_ms: int


@dataclass
class SessionContext:
    """Per-connection sequencing state.

    Attributes:
        session_id: Session ID (placeholder until the device assigns one)
        local_packet_id: Next packet ID to use for a non-ACK packet
        remote_packet_id: Latest packet ID seen from the device (wrap-aware)
        last_sent_ms: Clock reading of the last packet sent (any kind)
        last_received_ms: Clock reading of the last valid packet received
        last_acked_id: Most recent packet ID the device acknowledged
    """

    session_id: int = HELLO_SESSION_ID
    local_packet_id: int = 0
    remote_packet_id: int = 0
    last_sent_ms: int = 0
    last_received_ms: int = 0
    last_acked_id: int | None = None
