"""Reliability layer: sequencing, acknowledgment, heartbeat and retransmission.

The switcher drives reliability from its side: it ACKs our packets, and when
it notices a gap it asks us to replay everything from a given packet ID. This
layer keeps the bookkeeping needed to answer those requests:

- A local packet ID counter (16-bit, wraps) for every non-ACK packet we send
- The highest packet ID seen from the device
- A bounded, chronologically ordered history of sent packets
- Last-sent / last-received timestamps for heartbeat and timeout checks
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable

from atem_controller.metrics import registry
from atem_controller.protocol.atem_protocol import AtemProtocol
from atem_controller.protocol.packet_types import PACKET_ID_MODULUS, AtemHeader
from atem_controller.transport.interfaces import Address, Clock, Transport
from atem_controller.transport.retry_policy import TimeoutConfig
from atem_controller.transport.types import OutgoingPacketRecord, SendResult, SessionContext

logger = logging.getLogger(__name__)

# Packet IDs less than half the ID space ahead of a reference count as "at or after" it
_HALF_ID_SPACE = PACKET_ID_MODULUS // 2


def is_at_or_after(packet_id: int, reference_id: int) -> bool:
    """Wrap-aware ``packet_id >= reference_id`` for 16-bit packet IDs."""
    return (packet_id - reference_id) % PACKET_ID_MODULUS < _HALF_ID_SPACE


class ReliabilityLayer:
    """Per-connection sequencing, ACK, heartbeat and retransmit handling.

    Owned by a ConnectionManager. All methods are synchronous and
    non-blocking; timestamps come from the injected clock.
    """

    def __init__(
        self,
        transport: Transport,
        clock: Clock,
        destination: Address,
        timeout_config: TimeoutConfig | None = None,
    ) -> None:
        """Initialize reliability layer.

        Args:
            transport: Datagram transport to the device
            clock: Monotonic millisecond clock
            destination: (host, port) of the device
            timeout_config: Heartbeat interval and history capacity

        """
        self.transport: Transport = transport
        self.clock: Clock = clock
        self.destination: Address = destination
        self.timeout_config: TimeoutConfig = timeout_config or TimeoutConfig()
        self.device_label: str = f"{destination[0]}:{destination[1]}"
        self.correlation_id: str = ""

        self.session: SessionContext = SessionContext()
        self.history: deque[OutgoingPacketRecord] = deque(maxlen=self.timeout_config.history_capacity)

    def reset(self, correlation_id: str) -> None:
        """Start a fresh session: placeholder session ID, counters zeroed, history cleared."""
        self.correlation_id = correlation_id
        self.session = SessionContext()
        self.history.clear()
        registry.record_history_size(self.device_label, 0)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def _transmit(self, data: bytes, kind: str) -> bool:
        success = self.transport.send(data, self.destination)
        self.session.last_sent_ms = self.clock.now()
        registry.record_packet_sent(self.device_label, kind, "success" if success else "error")
        if success:
            logger.debug("→ Sent %s (%d bytes): %s", kind, len(data), data.hex(" "))
        else:
            logger.warning(
                "✗ Transport send failed for %s packet",
                kind,
                extra={"device": self.device_label, "bytes": len(data)},
            )
        return success

    def send_hello(self) -> bool:
        """Send the handshake packet.

        The hello is not stored for retransmission. Afterwards the local
        packet ID counter starts at 1.
        """
        success = self._transmit(AtemProtocol.encode_hello(), "hello")
        self.session.local_packet_id = 1
        return success

    def send_reliable(self, build: Callable[[int, int], bytes], kind: str) -> SendResult:
        """Build, store and send one packet under the next local packet ID.

        The packet is stored and its ID consumed even if the transport send
        fails, so a later retransmit request from the device can repair it.

        Args:
            build: Callable (session_id, packet_id) -> packet bytes
            kind: Packet kind for logs/metrics ("heartbeat", "command")

        Returns:
            SendResult carrying the packet ID used

        """
        packet_id = self.session.local_packet_id
        data = build(self.session.session_id, packet_id)

        self.history.append(OutgoingPacketRecord(packet_id=packet_id, raw=data, sent_at_ms=self.clock.now()))
        registry.record_history_size(self.device_label, len(self.history))

        success = self._transmit(data, kind)
        self.session.local_packet_id = (packet_id + 1) % PACKET_ID_MODULUS

        return SendResult(
            success=success,
            correlation_id=self.correlation_id,
            reason="" if success else "send_failed",
            packet_id=packet_id,
        )

    def send_command(self, name: str, payload: bytes) -> SendResult:
        """Send a 24-byte single-command packet."""
        return self.send_reliable(
            lambda session_id, packet_id: AtemProtocol.encode_command_packet(session_id, packet_id, name, payload),
            "command",
        )

    def send_heartbeat(self) -> SendResult:
        """Send a header-only ACK_REQUEST packet."""
        result = self.send_reliable(AtemProtocol.encode_heartbeat, "heartbeat")
        registry.record_heartbeat(self.device_label, "success" if result.success else "error")
        return result

    def heartbeat_due(self, now_ms: int) -> bool:
        """True when nothing has been sent for the heartbeat interval."""
        return now_ms - self.session.last_sent_ms >= self.timeout_config.heartbeat_interval_ms

    def send_ack(self, ack_id: int) -> bool:
        """Acknowledge device packet ``ack_id``. ACKs are never stored."""
        return self._transmit(AtemProtocol.encode_ack(self.session.session_id, ack_id), "ack")

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def mark_received(self, now_ms: int) -> None:
        """Stamp the time of the last valid packet from the device."""
        self.session.last_received_ms = now_ms

    def track_remote_id(self, packet_id: int) -> None:
        """Remember the latest packet ID seen from the device, across 16-bit wrap."""
        if is_at_or_after(packet_id, self.session.remote_packet_id):
            self.session.remote_packet_id = packet_id

    def adopt_session(self, session_id: int) -> None:
        """Switch to a device-assigned session ID."""
        if session_id != self.session.session_id:
            logger.info(
                "Session ID 0x%04x → 0x%04x",
                self.session.session_id,
                session_id,
                extra={"device": self.device_label},
            )
        self.session.session_id = session_id

    def record_ack(self, header: AtemHeader) -> None:
        """Note an ACK reply from the device."""
        self.session.last_acked_id = header.ack_id
        registry.record_ack_received(self.device_label)
        logger.debug("✓ Device acknowledged packet %d", header.ack_id)

    def handle_retransmit_request(self, header: AtemHeader) -> int:
        """Replay stored packets from ``header.retransmit_from_id`` onward.

        Packets are resent in original send order, then exactly one ACK is
        sent for the request's own packet ID, whether or not anything could be
        replayed.

        Returns:
            Number of packets replayed

        """
        from_id = header.retransmit_from_id
        replay = [record for record in self.history if is_at_or_after(record.packet_id, from_id)]

        for record in replay:
            _ = self._transmit(record.raw, "retransmit")

        if replay:
            registry.record_retransmit(self.device_label, len(replay))

        if not replay or replay[0].packet_id != from_id:
            outcome = "partial" if replay else "unavailable"
            logger.warning(
                "✗ Retransmit requested from packet %d, which is no longer stored",
                from_id,
                extra={
                    "device": self.device_label,
                    "replayed": len(replay),
                    **self.history_status(),
                },
            )
        else:
            outcome = "replayed"
            logger.info(
                "Retransmitted %d packets from %d",
                len(replay),
                from_id,
                extra={"device": self.device_label},
            )
        registry.record_retransmit_request(self.device_label, outcome)

        _ = self.send_ack(header.packet_id)
        return len(replay)

    def history_status(self) -> dict[str, int | None]:
        """Summary of the retransmission history for diagnostics."""
        return {
            "history_size": len(self.history),
            "history_capacity": self.timeout_config.history_capacity,
            "oldest_id": self.history[0].packet_id if self.history else None,
            "newest_id": self.history[-1].packet_id if self.history else None,
        }
