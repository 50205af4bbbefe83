"""Non-blocking UDP socket abstraction for a single switcher endpoint."""

from __future__ import annotations

import logging
import socket

from atem_controller.const import ATEM_LOCAL_PORT, MAX_PACKET_SIZE
from atem_controller.transport.interfaces import Address

logger = logging.getLogger(__name__)


class UDPConnection:
    """Non-blocking UDP datagram transport.

    The socket is bound lazily on first use. Datagrams from any address other
    than ``peer`` (when given) are discarded, so a stray sender on the same
    port cannot inject packets into the session. ``peer`` is resolved once when
    the socket opens; an unresolvable peer makes ``open()`` fail.
    """

    def __init__(
        self,
        local_port: int = ATEM_LOCAL_PORT,
        bind_host: str = "0.0.0.0",  # noqa: S104
        peer: Address | None = None,
        max_read_size: int = MAX_PACKET_SIZE,
    ):
        """
        Initialize UDP transport parameters.

        Args:
            local_port: Local port to bind (0 lets the OS choose)
            bind_host: Local interface to bind
            peer: Only accept datagrams from this (host, port)
            max_read_size: Maximum datagram size to read
        """
        self.local_port = local_port
        self.bind_host = bind_host
        self.peer = peer
        self.max_read_size = max_read_size
        self.sock: socket.socket | None = None
        self._peer_address: Address | None = None

    @property
    def is_open(self) -> bool:
        """True once the socket is bound and not yet closed."""
        return self.sock is not None

    def open(self) -> bool:
        """
        Create and bind the non-blocking socket.

        Returns:
            True if the socket is ready, False otherwise
        """
        if self.sock is not None:
            return True

        if self.peer is not None:
            peer_address = self._resolve(self.peer)
            if peer_address is None:
                return False
            self._peer_address = peer_address

        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.bind_host, self.local_port))
            sock.setblocking(False)
        except OSError as e:
            sock.close()
            logger.exception(
                "Failed to bind UDP socket on %s:%d",
                self.bind_host,
                self.local_port,
                extra={"host": self.bind_host, "port": self.local_port, "error": str(e)},
            )
            return False

        self.sock = sock
        bound_host, bound_port = sock.getsockname()[:2]
        logger.info(
            "UDP socket bound on %s:%d",
            bound_host,
            bound_port,
            extra={"host": bound_host, "port": bound_port},
        )
        return True

    @staticmethod
    def _resolve(address: Address) -> Address | None:
        host, port = address
        try:
            return (socket.gethostbyname(host), port)
        except OSError as e:
            logger.error(
                "Could not resolve switcher address %s",
                host,
                extra={"host": host, "port": port, "error": str(e)},
            )
            return None

    def send(self, data: bytes, destination: Address) -> bool:
        """
        Send one datagram.

        Args:
            data: Bytes to send
            destination: (host, port) of the device

        Returns:
            True if sent successfully, False otherwise
        """
        if not self.open() or self.sock is None:
            return False

        host, port = destination
        # Peer address is resolved once, in open()
        target = destination
        if self._peer_address is not None and destination == self.peer:
            target = self._peer_address
        try:
            sent = self.sock.sendto(data, target)
        except OSError as e:
            logger.warning(
                "Send to %s:%d failed",
                host,
                port,
                extra={"host": host, "port": port, "bytes": len(data), "error": str(e)},
            )
            return False

        if sent != len(data):
            logger.warning(
                "Short send to %s:%d (%d of %d bytes)",
                host,
                port,
                sent,
                len(data),
                extra={"host": host, "port": port, "bytes": len(data), "sent": sent},
            )
            return False
        return True

    def try_receive(self) -> bytes | None:
        """
        Read one pending datagram without blocking.

        Returns:
            Datagram bytes, or None when nothing is waiting or on error
        """
        if not self.open() or self.sock is None:
            return None

        try:
            data, address = self.sock.recvfrom(self.max_read_size)
        except BlockingIOError:
            return None
        except OSError as e:
            # Includes ICMP port-unreachable surfacing as ConnectionResetError
            logger.debug(
                "Receive failed",
                extra={"port": self.local_port, "error": str(e)},
            )
            return None

        if self._peer_address is not None and (address[0], address[1]) != self._peer_address:
            logger.debug(
                "Dropping datagram from unexpected sender %s:%d",
                address[0],
                address[1],
                extra={"bytes": len(data)},
            )
            return None
        return data

    def close(self) -> None:
        """Close the socket and clean up resources."""
        if self.sock is None:
            return
        try:
            self.sock.close()
        except OSError as e:
            logger.debug("Error closing UDP socket: %s", e)
        finally:
            self.sock = None
            logger.info("UDP socket closed", extra={"port": self.local_port})

    def __repr__(self) -> str:
        return f"UDPConnection(local_port={self.local_port}, peer={self.peer})"
