"""Collaborator interfaces consumed by the engine.

Uses structural subtyping (Protocol) enforced by mypy at type-check time - no
inheritance required. ``UDPConnection`` and ``MonotonicClock`` are the default
implementations; tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Protocol

Address = tuple[str, int]


class Transport(Protocol):
    """Datagram transport for a single device endpoint."""

    def send(self, data: bytes, destination: Address) -> bool:
        """Send one datagram.

        Args:
            data: Datagram bytes
            destination: (host, port) of the device

        Returns:
            True if the datagram was handed to the network, False on failure
        """
        ...

    def try_receive(self) -> bytes | None:
        """Return one pending datagram, or None if nothing is waiting. Never blocks."""
        ...

    def close(self) -> None:
        """Release the underlying resources."""
        ...


class Clock(Protocol):
    """Monotonic time source."""

    def now(self) -> int:
        """Current monotonic time in milliseconds."""
        ...
