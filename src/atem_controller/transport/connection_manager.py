"""Connection management with state machine, handshake, and packet routing.

This module implements the ConnectionManager class which drives the hello /
session-assignment handshake, watches connection health, and routes every
inbound datagram: header-level events go to the ReliabilityLayer, command
blocks go to the registered command handler.

Everything runs inside ``tick()``; nothing here blocks or spawns threads.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

from atem_controller.correlation import correlation_context, generate_correlation_id
from atem_controller.metrics import registry
from atem_controller.protocol.atem_protocol import AtemProtocol
from atem_controller.protocol.exceptions import AtemProtocolError, PacketDecodeError
from atem_controller.protocol.packet_types import AtemPacket, CommandBlock, PacketFlag
from atem_controller.transport.exceptions import (
    AtemConnectionError,
    ConnectionTimeoutError,
    HandshakeError,
)
from atem_controller.transport.interfaces import Address, Clock, Transport
from atem_controller.transport.reliability import ReliabilityLayer
from atem_controller.transport.retry_policy import TimeoutConfig
from atem_controller.transport.types import SendResult

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection state enumeration."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class ConnectionManager:
    """Manages connection lifecycle, handshake, health and packet routing.

    State transitions:

    - DISCONNECTED → CONNECTING: ``connect()``
    - CONNECTING → CONNECTED: packet with NEW_SESSION_ID received
    - CONNECTING → ERROR: hello send failed, or handshake timeout
    - CONNECTED → ERROR: no packet received within the connection timeout
    - any → DISCONNECTED: ``disconnect()``
    - ERROR → CONNECTING: a fresh ``connect()``

    Every actual state change is reported once through ``state_handler``.
    """

    def __init__(
        self,
        transport: Transport,
        clock: Clock,
        destination: Address,
        timeout_config: TimeoutConfig | None = None,
        command_handler: Callable[[list[CommandBlock]], None] | None = None,
        state_handler: Callable[[ConnectionState], None] | None = None,
    ) -> None:
        """Initialize connection manager.

        Args:
            transport: Datagram transport to the device
            clock: Monotonic millisecond clock
            destination: (host, port) of the device
            timeout_config: Timeout configuration (defaults to TimeoutConfig() if None)
            command_handler: Receives the command blocks of each accepted packet
            state_handler: Receives every connection state change

        """
        self.transport: Transport = transport
        self.clock: Clock = clock
        self.destination: Address = destination
        self.timeout_config: TimeoutConfig = timeout_config or TimeoutConfig()
        self.command_handler: Callable[[list[CommandBlock]], None] | None = command_handler
        self.state_handler: Callable[[ConnectionState], None] | None = state_handler

        self.reliability: ReliabilityLayer = ReliabilityLayer(transport, clock, destination, self.timeout_config)
        self.state: ConnectionState = ConnectionState.DISCONNECTED
        self.correlation_id: str | None = None
        self.last_error: AtemProtocolError | None = None
        self._connect_started_ms: int = 0

        registry.record_connection_state(self.device_label, self.state.value)

    @property
    def device_label(self) -> str:
        """``host:port`` label used in logs and metrics."""
        return self.reliability.device_label

    @property
    def is_connected(self) -> bool:
        """True while the session is established."""
        return self.state == ConnectionState.CONNECTED

    def _set_state(self, new_state: ConnectionState) -> None:
        if new_state == self.state:
            return
        old_state = self.state
        self.state = new_state
        registry.record_connection_state(self.device_label, new_state.value)
        logger.info(
            "Connection state %s → %s",
            old_state.value,
            new_state.value,
            extra={"device": self.device_label},
        )
        if self.state_handler is not None:
            self.state_handler(new_state)

    def require_connected(self, operation: str) -> None:
        """Raise unless the session is established.

        Raises:
            AtemConnectionError: If state is not CONNECTED

        """
        if self.state != ConnectionState.CONNECTED:
            error_msg = f"Operation '{operation}' requires CONNECTED state"
            raise AtemConnectionError(error_msg, state=self.state.value)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> bool:
        """Start a handshake. Never blocks; completion is observed through ``tick()``.

        Returns:
            True if the hello packet was sent, False if the send failed (state ERROR)

        """
        self.correlation_id = generate_correlation_id()
        with correlation_context(self.correlation_id, auto_generate=False):
            logger.info(
                "→ Connecting to %s",
                self.device_label,
                extra={"timeout_ms": self.timeout_config.handshake_timeout_ms},
            )
            self.reliability.reset(self.correlation_id)
            self.last_error = None
            self._connect_started_ms = self.clock.now()
            self._set_state(ConnectionState.CONNECTING)

            if not self.reliability.send_hello():
                self.last_error = HandshakeError("send_failed")
                registry.record_handshake(self.device_label, "send_failed")
                logger.error("✗ Handshake failed: hello could not be sent", extra={"device": self.device_label})
                self._set_state(ConnectionState.ERROR)
                return False
            return True

    def disconnect(self) -> None:
        """Leave the session and release the transport."""
        with correlation_context(self.correlation_id, auto_generate=False):
            if self.state != ConnectionState.DISCONNECTED:
                logger.info("Disconnecting from %s", self.device_label)
                self._set_state(ConnectionState.DISCONNECTED)
            self.transport.close()

    def tick(self) -> None:
        """Run one processing pass.

        1. Read and fully process at most one pending datagram
        2. Send a heartbeat if one is due
        3. Check handshake / connection timeouts

        Does nothing while DISCONNECTED, so the transport stays released.
        """
        if self.state == ConnectionState.DISCONNECTED:
            return

        with correlation_context(self.correlation_id, auto_generate=False):
            data = self.transport.try_receive()
            if data is not None:
                self._process_datagram(data)

            now = self.clock.now()
            if self.state == ConnectionState.CONNECTED and self.reliability.heartbeat_due(now):
                _ = self.reliability.send_heartbeat()

            self._check_timeouts(now)

    def _check_timeouts(self, now: int) -> None:
        if self.state == ConnectionState.CONNECTING:
            elapsed = now - self._connect_started_ms
            if elapsed > self.timeout_config.handshake_timeout_ms:
                self.last_error = HandshakeError("timeout", elapsed)
                registry.record_handshake(self.device_label, "timeout")
                logger.error(
                    "✗ Handshake timed out after %dms",
                    elapsed,
                    extra={"device": self.device_label},
                )
                self._set_state(ConnectionState.ERROR)

        elif self.state == ConnectionState.CONNECTED:
            elapsed = now - self.reliability.session.last_received_ms
            if elapsed > self.timeout_config.connection_timeout_ms:
                self.last_error = ConnectionTimeoutError(elapsed, self.timeout_config.connection_timeout_ms)
                logger.error(
                    "✗ Connection lost: no packets for %dms",
                    elapsed,
                    extra={"device": self.device_label},
                )
                self._set_state(ConnectionState.ERROR)

    # ------------------------------------------------------------------
    # Inbound routing
    # ------------------------------------------------------------------

    def _process_datagram(self, data: bytes) -> None:
        try:
            packet = AtemProtocol.decode_packet(data)
        except PacketDecodeError as e:
            registry.record_decode_error(self.device_label, e.reason)
            registry.record_packet_recv(self.device_label, "dropped")
            logger.warning(
                "✗ Dropping undecodable datagram: %s",
                e.reason,
                extra={"bytes": len(data), "preview": e.data_preview.hex(" ")},
            )
            return

        if packet.length_mismatch:
            registry.record_decode_error(self.device_label, "length_mismatch")
        registry.record_packet_recv(self.device_label, "accepted")
        logger.debug("← Received %d bytes: %s", len(data), data.hex(" "))

        self.reliability.mark_received(self.clock.now())

        if self.state == ConnectionState.CONNECTING:
            self._handle_handshake_packet(packet)
        elif self.state == ConnectionState.CONNECTED:
            self._handle_session_packet(packet)
        else:
            logger.debug("Ignoring packet while %s", self.state.value)

    def _handle_handshake_packet(self, packet: AtemPacket) -> None:
        header = packet.header
        if not header.has(PacketFlag.NEW_SESSION_ID):
            logger.debug(
                "Ignoring packet without session assignment during handshake",
                extra={"flags": int(header.flags)},
            )
            return

        reliability = self.reliability
        reliability.adopt_session(header.session_id)
        reliability.track_remote_id(header.packet_id)
        reliability.session.last_sent_ms = self.clock.now()
        elapsed = self.clock.now() - self._connect_started_ms

        registry.record_handshake(self.device_label, "success")
        logger.info(
            "✓ Handshake complete in %dms, session 0x%04x",
            elapsed,
            header.session_id,
            extra={"device": self.device_label},
        )
        self._set_state(ConnectionState.CONNECTED)

        if header.packet_id > 0:
            _ = reliability.send_ack(header.packet_id)

    def _handle_session_packet(self, packet: AtemPacket) -> None:
        header = packet.header
        reliability = self.reliability

        if header.session_id != reliability.session.session_id:
            reliability.adopt_session(header.session_id)
        reliability.track_remote_id(header.packet_id)

        if header.has(PacketFlag.ACK_REPLY):
            reliability.record_ack(header)

        if header.has(PacketFlag.RETRANSMIT_REQUEST):
            _ = reliability.handle_retransmit_request(header)
            return

        if packet.has_body or header.has(PacketFlag.ACK_REQUEST):
            _ = reliability.send_ack(header.packet_id)

        if packet.commands and self.command_handler is not None:
            self.command_handler(packet.commands)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def send_command(self, name: str, payload: bytes) -> SendResult:
        """Send one fixed command packet through the reliability layer.

        Raises:
            AtemConnectionError: If state is not CONNECTED

        """
        self.require_connected(f"send {name}")
        with correlation_context(self.correlation_id, auto_generate=False):
            return self.reliability.send_command(name, payload)
