"""Shared fixtures: an engine wired to an in-memory transport and a manual clock."""

from __future__ import annotations

import pytest

from atem_controller.switcher import AtemSwitcher, SwitcherCallbacks
from atem_controller.transport.retry_policy import TimeoutConfig
from tests.helpers.fakes import TEST_HOST, TEST_PORT, FakeClock, FakeTransport
from tests.helpers.packets import DEVICE_SESSION_ID, handshake_reply


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def timeout_config() -> TimeoutConfig:
    return TimeoutConfig(heartbeat_interval_ms=500, connection_timeout_ms=5000)


@pytest.fixture
def callbacks() -> SwitcherCallbacks:
    return SwitcherCallbacks()


@pytest.fixture
def switcher(
    transport: FakeTransport,
    clock: FakeClock,
    callbacks: SwitcherCallbacks,
    timeout_config: TimeoutConfig,
) -> AtemSwitcher:
    """Engine in DISCONNECTED state."""
    return AtemSwitcher(
        TEST_HOST,
        TEST_PORT,
        transport=transport,
        clock=clock,
        callbacks=callbacks,
        timeout_config=timeout_config,
    )


@pytest.fixture
def connected_switcher(switcher: AtemSwitcher, transport: FakeTransport) -> AtemSwitcher:
    """Engine that completed the handshake with session 0xBEEF; sent log cleared."""
    assert switcher.connect()
    transport.queue(handshake_reply(DEVICE_SESSION_ID, packet_id=1))
    switcher.tick()
    assert switcher.is_connected
    transport.clear()
    return switcher
