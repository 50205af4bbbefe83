"""Fixtures for integration tests: a scripted ATEM device on a loopback UDP socket."""

from __future__ import annotations

import time
from collections.abc import Callable, Generator

import pytest

from atem_controller.switcher import AtemSwitcher, SwitcherCallbacks
from atem_controller.transport import TimeoutConfig, UDPConnection
from tests.helpers.mock_device import LOOPBACK, MockAtemDevice


@pytest.fixture
def mock_device() -> Generator[MockAtemDevice]:
    device = MockAtemDevice()
    device.start()
    yield device
    device.stop()


@pytest.fixture
def device_callbacks() -> SwitcherCallbacks:
    return SwitcherCallbacks()


@pytest.fixture
def live_switcher(mock_device: MockAtemDevice, device_callbacks: SwitcherCallbacks) -> Generator[AtemSwitcher]:
    """Engine on a real UDP socket talking to the mock device."""
    transport = UDPConnection(local_port=0, bind_host=LOOPBACK, peer=(LOOPBACK, mock_device.port))
    switcher = AtemSwitcher(
        LOOPBACK,
        mock_device.port,
        transport=transport,
        callbacks=device_callbacks,
        timeout_config=TimeoutConfig(heartbeat_interval_ms=50, connection_timeout_ms=400),
    )
    yield switcher
    switcher.disconnect()


@pytest.fixture
def run_until(
    live_switcher: AtemSwitcher,
    mock_device: MockAtemDevice,
) -> Callable[[Callable[[], bool], float], bool]:
    """Tick the engine and the device until ``condition`` holds or ``timeout`` passes."""

    def _run(condition: Callable[[], bool], timeout: float = 2.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            live_switcher.tick()
            mock_device.poll()
            if condition():
                return True
            time.sleep(0.001)
        return False

    return _run
