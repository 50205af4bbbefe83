"""Transport package - reliability layer, connection state machine and I/O adapters.

Public API:
- ConnectionManager / ConnectionState: handshake, health and packet routing
- ReliabilityLayer: packet IDs, ACKs, heartbeats, retransmission history
- UDPConnection / MonotonicClock: default Transport and Clock implementations
- TimeoutConfig / RetryPolicy: timing configuration and caller-side backoff
"""

from atem_controller.transport.clock import MonotonicClock
from atem_controller.transport.connection_manager import ConnectionManager, ConnectionState
from atem_controller.transport.exceptions import (
    AtemConnectionError,
    ConnectionTimeoutError,
    HandshakeError,
)
from atem_controller.transport.interfaces import Address, Clock, Transport
from atem_controller.transport.reliability import ReliabilityLayer
from atem_controller.transport.retry_policy import RetryPolicy, TimeoutConfig
from atem_controller.transport.socket_abstraction import UDPConnection
from atem_controller.transport.types import OutgoingPacketRecord, SendResult, SessionContext

__all__ = [
    "Address",
    "AtemConnectionError",
    "Clock",
    "ConnectionManager",
    "ConnectionState",
    "ConnectionTimeoutError",
    "HandshakeError",
    "MonotonicClock",
    "OutgoingPacketRecord",
    "ReliabilityLayer",
    "RetryPolicy",
    "SendResult",
    "SessionContext",
    "TimeoutConfig",
    "Transport",
    "UDPConnection",
]
