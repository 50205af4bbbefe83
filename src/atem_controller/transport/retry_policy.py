"""Timeout configuration and reconnect backoff policy.

TimeoutConfig holds the timing constants the engine compares clock readings
against on every tick. RetryPolicy is for callers: the engine never reconnects
on its own, but the harness uses it to space out fresh connect() attempts.
"""

from __future__ import annotations

import random

from atem_controller.const import (
    ATEM_CONNECTION_TIMEOUT_MS,
    ATEM_HEARTBEAT_INTERVAL_MS,
    HISTORY_CAPACITY,
)


class TimeoutConfig:
    """Engine timing configuration.

    Defaults match the device firmware: 500ms heartbeat, 5s silence before the
    connection is declared dead, 100 packets of retransmission history.
    """

    def __init__(
        self,
        heartbeat_interval_ms: int = ATEM_HEARTBEAT_INTERVAL_MS,
        connection_timeout_ms: int = ATEM_CONNECTION_TIMEOUT_MS,
        handshake_timeout_ms: int | None = None,
        history_capacity: int = HISTORY_CAPACITY,
    ):
        """Initialize timeout configuration.

        Args:
            heartbeat_interval_ms: Idle time after which a heartbeat is sent
            connection_timeout_ms: Silence from the device that ends a CONNECTED session
            handshake_timeout_ms: Time allowed in CONNECTING (default: connection_timeout_ms)
            history_capacity: Number of sent packets kept for retransmission
        """
        if heartbeat_interval_ms <= 0:
            msg = f"heartbeat_interval_ms must be positive, got {heartbeat_interval_ms}"
            raise ValueError(msg)
        if connection_timeout_ms <= 0:
            msg = f"connection_timeout_ms must be positive, got {connection_timeout_ms}"
            raise ValueError(msg)
        if history_capacity <= 0:
            msg = f"history_capacity must be positive, got {history_capacity}"
            raise ValueError(msg)

        self.heartbeat_interval_ms = heartbeat_interval_ms
        self.connection_timeout_ms = connection_timeout_ms
        self.handshake_timeout_ms = (
            handshake_timeout_ms if handshake_timeout_ms is not None else connection_timeout_ms
        )
        self.history_capacity = history_capacity

    def __repr__(self) -> str:
        """String representation showing all timeouts."""
        return (
            f"TimeoutConfig(heartbeat={self.heartbeat_interval_ms}ms, "
            f"connection={self.connection_timeout_ms}ms, "
            f"handshake={self.handshake_timeout_ms}ms, "
            f"history={self.history_capacity})"
        )


class RetryPolicy:
    """Exponential backoff retry policy with jitter.

    Provides retry delay calculation using exponential backoff with random
    jitter so several controllers restarting together do not reconnect in
    lockstep.
    """

    def __init__(
        self,
        base_delay_seconds: float = 0.5,
        max_delay_seconds: float = 10.0,
        jitter_factor: float = 0.1,
    ):
        """Initialize retry policy.

        Args:
            base_delay_seconds: Base delay for first retry (default: 0.5s)
            max_delay_seconds: Maximum delay cap (default: 10.0s)
            jitter_factor: Jitter as fraction of delay (default: 0.1 = 10%)
        """
        self.base_delay_seconds = base_delay_seconds
        self.max_delay_seconds = max_delay_seconds
        self.jitter_factor = jitter_factor

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for retry attempt.

        Formula: min(base_delay * (2 ** attempt), max_delay) + jitter
        Jitter: random value between 0 and delay * jitter_factor

        Args:
            attempt: Retry attempt number (0-indexed, so attempt=0 is first retry)

        Returns:
            Delay in seconds
        """
        delay = self.base_delay_seconds * (2**attempt)
        delay = min(delay, self.max_delay_seconds)

        jitter = random.uniform(0, delay * self.jitter_factor)
        return delay + jitter

    def __repr__(self) -> str:
        """String representation of retry policy."""
        return (
            f"RetryPolicy(base_delay={self.base_delay_seconds}s, "
            f"max_delay={self.max_delay_seconds}s, "
            f"jitter_factor={self.jitter_factor})"
        )
