"""Custom exception types for connection-level errors.

This module extends the protocol exception hierarchy with the failures the
connection state machine can report. None of them escape ``tick()``: timeouts
are stored on the manager as ``last_error`` and the state moves to ERROR.
"""

from __future__ import annotations

from atem_controller.protocol.exceptions import AtemProtocolError


class AtemConnectionError(AtemProtocolError):
    """Connection state error (operation requires CONNECTED).

    Raised when:
    - A command is issued while not connected
    - A reliable send is attempted before the handshake completed

    Attributes:
        reason: Specific failure reason
        state: Connection state when error occurred
    """

    def __init__(self, reason: str, state: str = "unknown"):
        self.reason = reason
        self.state = state
        super().__init__(f"Connection error: {reason} (state: {state})")


class HandshakeError(AtemProtocolError):
    """Handshake failed (hello could not be sent, no session assigned in time).

    Attributes:
        reason: Specific failure reason ("send_failed", "timeout")
        elapsed_ms: Milliseconds spent in CONNECTING
    """

    def __init__(self, reason: str, elapsed_ms: int = 0):
        self.reason = reason
        self.elapsed_ms = elapsed_ms
        super().__init__(f"Handshake failed: {reason} after {elapsed_ms}ms")


class ConnectionTimeoutError(AtemProtocolError):
    """No packet received from the device within the connection timeout.

    Attributes:
        elapsed_ms: Milliseconds since the last received packet
        timeout_ms: Timeout value that was exceeded
    """

    def __init__(self, elapsed_ms: int, timeout_ms: int):
        self.reason = "timeout"
        self.elapsed_ms = elapsed_ms
        self.timeout_ms = timeout_ms
        super().__init__(f"Connection timed out: no packets for {elapsed_ms}ms (limit {timeout_ms}ms)")
