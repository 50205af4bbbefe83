"""
Correlation ID tracking for connection attempts.

Every connect() on an engine gets a fresh UUID v7 correlation ID. The engine
re-enters that ID on each tick, so all log lines emitted while processing one
connection attempt (handshake, heartbeats, retransmits, state changes) can be
grouped together.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from typing import cast

from uuid_extensions import uuid7

__all__ = [
    "correlation_context",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id",
    default=None,
)


def generate_correlation_id() -> str:
    """
    Generate a new correlation ID.

    Returns:
        New UUID v7 string (time-ordered, so IDs sort by connection attempt)
    """
    return str(cast(uuid.UUID, uuid7()))


def get_correlation_id() -> str | None:
    """
    Get current correlation ID from context.

    Returns:
        Current correlation ID or None if not set
    """
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """
    Set correlation ID in current context.

    Args:
        correlation_id: Correlation ID to set (or None to clear)
    """
    _ = _correlation_id.set(correlation_id)


@contextmanager
def correlation_context(
    correlation_id: str | None = None,
    auto_generate: bool = True,
) -> Generator[str | None]:
    """
    Context manager for correlation ID scope.

    Restores the previous correlation ID on exit.

    Args:
        correlation_id: Specific correlation ID to use (None to auto-generate)
        auto_generate: Generate new ID if correlation_id is None

    Yields:
        The correlation ID used in this context

    Example:
        with correlation_context(engine.correlation_id):
            engine.tick()  # Logs include the connection attempt's ID
    """
    previous_id = get_correlation_id()

    if correlation_id is None and auto_generate:
        correlation_id = generate_correlation_id()

    set_correlation_id(correlation_id)
    try:
        yield correlation_id
    finally:
        set_correlation_id(previous_id)
