"""Scripted ATEM device on a loopback UDP socket, for integration tests."""

from __future__ import annotations

import logging
import socket

from atem_controller.protocol.atem_protocol import AtemProtocol
from atem_controller.protocol.packet_types import AtemHeader, PacketFlag
from tests.helpers.packets import broadcast, device_packet, handshake_reply, input_block

logger = logging.getLogger(__name__)

DEVICE_SESSION_ID = 0x8001
LOOPBACK = "127.0.0.1"


class MockAtemDevice:
    """Mock switcher: answers hello, ACKs reliable packets, sends broadcasts on demand."""

    def __init__(self, session_id: int = DEVICE_SESSION_ID, host: str = LOOPBACK, port: int = 0):
        """Initialize mock device.

        Args:
            session_id: Session ID assigned in the hello reply
            host: Host to bind to
            port: Port to bind to (0 = OS assigns)

        """
        self.session_id = session_id
        self.host = host
        self.port = port
        self.sock: socket.socket | None = None
        self.client: tuple[str, int] | None = None
        self.received: list[bytes] = []
        self.responsive = True
        self._next_packet_id = 1

    def start(self) -> None:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.bind((self.host, self.port))
        sock.setblocking(False)
        self.port = sock.getsockname()[1]
        self.sock = sock
        logger.info("Mock ATEM device listening on %s:%d", self.host, self.port)

    def stop(self) -> None:
        if self.sock is not None:
            self.sock.close()
            self.sock = None

    def _send(self, data: bytes) -> None:
        if self.sock is not None and self.client is not None:
            _ = self.sock.sendto(data, self.client)

    def _take_packet_id(self) -> int:
        packet_id = self._next_packet_id
        self._next_packet_id += 1
        return packet_id

    def poll(self) -> None:
        """Drain pending datagrams and answer them."""
        if self.sock is None:
            return
        while True:
            try:
                data, address = self.sock.recvfrom(2048)
            except BlockingIOError:
                return
            self.received.append(data)
            if not self.responsive:
                continue

            header = AtemProtocol.parse_header(data)
            if header.has(PacketFlag.NEW_SESSION_ID):
                self.client = address
                self._send(handshake_reply(self.session_id, packet_id=self._take_packet_id()))
            elif header.has(PacketFlag.ACK_REQUEST):
                self._send(device_packet(PacketFlag.ACK_REPLY, session_id=self.session_id, ack_id=header.packet_id))

    def send_inputs(self, program: int, preview: int) -> None:
        self._send(
            broadcast(
                input_block("PrgI", program),
                input_block("PrvI", preview),
                session_id=self.session_id,
                packet_id=self._take_packet_id(),
            )
        )

    def request_retransmit(self, from_id: int) -> int:
        packet_id = self._take_packet_id()
        self._send(
            device_packet(
                PacketFlag.RETRANSMIT_REQUEST,
                session_id=self.session_id,
                retransmit_from_id=from_id,
                packet_id=packet_id,
            )
        )
        return packet_id

    def headers(self) -> list[AtemHeader]:
        return [AtemProtocol.parse_header(data) for data in self.received]
