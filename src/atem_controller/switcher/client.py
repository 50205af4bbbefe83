"""Per-connection switcher engine.

AtemSwitcher ties a ConnectionManager to a StateTracker and exposes the
application-facing API: connect / tick / disconnect, the outbound commands,
the tracked device state and the notification callbacks.

Usage:
    switcher = AtemSwitcher("192.168.1.240", callbacks=SwitcherCallbacks(
        on_program_input_changed=lambda source: print("program", source),
    ))
    switcher.connect()
    while running:
        switcher.tick()       # every ~10ms
    switcher.disconnect()
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from atem_controller.const import ATEM_PORT
from atem_controller.correlation import correlation_context
from atem_controller.metrics import registry
from atem_controller.protocol.packet_types import CommandBlock
from atem_controller.switcher import commands
from atem_controller.switcher.commands import OutgoingCommand
from atem_controller.switcher.state import DeviceState, StateTracker
from atem_controller.transport.clock import MonotonicClock
from atem_controller.transport.connection_manager import ConnectionManager, ConnectionState
from atem_controller.transport.exceptions import AtemConnectionError
from atem_controller.transport.interfaces import Clock, Transport
from atem_controller.transport.retry_policy import TimeoutConfig
from atem_controller.transport.socket_abstraction import UDPConnection
from atem_controller.transport.types import SendResult

logger = logging.getLogger(__name__)


@dataclass
class SwitcherCallbacks:
    """Application notification closures. All optional, all called from ``tick()``.

    Attributes:
        on_connection_state_changed: Every connection state change
        on_program_input_changed: Program source changed on the device
        on_preview_input_changed: Preview source changed on the device
        on_state_changed: At most once per tick when any tracked field changed
    """

    on_connection_state_changed: Callable[[ConnectionState], None] | None = None
    on_program_input_changed: Callable[[int], None] | None = None
    on_preview_input_changed: Callable[[int], None] | None = None
    on_state_changed: Callable[[], None] | None = None


@dataclass(frozen=True)
class ConnectionInfo:
    """Diagnostic snapshot of one connection."""

    state: ConnectionState
    host: str
    port: int
    session_id: int
    local_packet_id: int
    remote_packet_id: int
    program_input: int
    preview_input: int
    history_size: int
    correlation_id: str | None

    def __str__(self) -> str:
        return (
            f"state={self.state.value} device={self.host}:{self.port} "
            f"session=0x{self.session_id:04x} local_id={self.local_packet_id} "
            f"remote_id={self.remote_packet_id} program={self.program_input} "
            f"preview={self.preview_input} history={self.history_size}"
        )


class AtemSwitcher:
    """One controller connection to one ATEM switcher."""

    def __init__(
        self,
        host: str,
        port: int = ATEM_PORT,
        transport: Transport | None = None,
        clock: Clock | None = None,
        callbacks: SwitcherCallbacks | None = None,
        timeout_config: TimeoutConfig | None = None,
    ) -> None:
        """Initialize a switcher connection (nothing is sent until ``connect()``).

        Args:
            host: Switcher IP address or hostname
            port: Switcher UDP port
            transport: Datagram transport (defaults to a UDPConnection bound to the local ATEM port)
            clock: Monotonic millisecond clock (defaults to MonotonicClock)
            callbacks: Application notifications
            timeout_config: Heartbeat / timeout / history settings

        """
        self.host = host
        self.port = port
        self.callbacks = callbacks or SwitcherCallbacks()
        self.transport: Transport = transport or UDPConnection(peer=(host, port))
        self.clock: Clock = clock or MonotonicClock()

        self._manager = ConnectionManager(
            self.transport,
            self.clock,
            (host, port),
            timeout_config=timeout_config,
            command_handler=self._handle_commands,
            state_handler=self._handle_connection_state,
        )
        self._tracker = StateTracker(
            device_label=self._manager.device_label,
            on_program_changed=lambda source: self._notify(self.callbacks.on_program_input_changed, source),
            on_preview_changed=lambda source: self._notify(self.callbacks.on_preview_input_changed, source),
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def connection_state(self) -> ConnectionState:
        return self._manager.state

    @property
    def is_connected(self) -> bool:
        return self._manager.is_connected

    @property
    def session_id(self) -> int:
        return self._manager.reliability.session.session_id

    @property
    def state(self) -> DeviceState:
        """Copy of the tracked device state."""
        return self._tracker.snapshot()

    @property
    def last_error(self) -> Exception | None:
        """Why the connection last entered ERROR (None otherwise)."""
        return self._manager.last_error

    @property
    def state_tracker(self) -> StateTracker:
        """Inbound command dispatch, for registering extra block handlers."""
        return self._tracker

    def connection_info(self) -> ConnectionInfo:
        session = self._manager.reliability.session
        return ConnectionInfo(
            state=self._manager.state,
            host=self.host,
            port=self.port,
            session_id=session.session_id,
            local_packet_id=session.local_packet_id,
            remote_packet_id=session.remote_packet_id,
            program_input=self._tracker.state.program_input,
            preview_input=self._tracker.state.preview_input,
            history_size=len(self._manager.reliability.history),
            correlation_id=self._manager.correlation_id,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> bool:
        """Send the hello packet; the handshake completes during later ticks."""
        return self._manager.connect()

    def tick(self) -> None:
        """Process one datagram, heartbeat and timeouts, then flush state-changed."""
        start = time.perf_counter()
        self._manager.tick()
        if self._tracker.take_dirty():
            with correlation_context(self._manager.correlation_id, auto_generate=False):
                self._notify(self.callbacks.on_state_changed)
        registry.record_tick_duration(time.perf_counter() - start)

    def disconnect(self) -> None:
        self._manager.disconnect()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def send_command(self, command: OutgoingCommand) -> SendResult:
        """Send any fixed-shape command; rejected locally unless connected."""
        try:
            result = self._manager.send_command(command.name, command.payload)
        except AtemConnectionError as e:
            logger.warning(
                "✗ %s rejected: not connected",
                command.name,
                extra={"device": self._manager.device_label, "state": e.state},
            )
            registry.record_command(self._manager.device_label, command.name, "not_connected")
            return SendResult(
                success=False,
                correlation_id=self._manager.correlation_id or "",
                reason="not_connected",
            )

        registry.record_command(self._manager.device_label, command.name, "success" if result.success else "error")
        return result

    def change_preview_input(self, source: int, me: int = 0) -> SendResult:
        return self.send_command(commands.change_preview_input(source, me))

    def change_program_input(self, source: int, me: int = 0) -> SendResult:
        return self.send_command(commands.change_program_input(source, me))

    def cut(self, me: int = 0) -> SendResult:
        return self.send_command(commands.cut(me))

    def auto_transition(self, me: int = 0) -> SendResult:
        return self.send_command(commands.auto_transition(me))

    def fade_to_black_toggle(self, me: int = 0) -> SendResult:
        return self.send_command(commands.fade_to_black_toggle(me))

    def set_fade_to_black_rate(self, frames: int, me: int = 0) -> SendResult:
        return self.send_command(commands.set_fade_to_black_rate(frames, me))

    def set_transition_position(self, position: int, me: int = 0) -> SendResult:
        return self.send_command(commands.set_transition_position(position, me))

    def set_preview_transition_enabled(self, enabled: bool, me: int = 0) -> SendResult:
        return self.send_command(commands.set_preview_transition_enabled(enabled, me))

    # ------------------------------------------------------------------
    # Internal dispatch
    # ------------------------------------------------------------------

    def _handle_commands(self, blocks: list[CommandBlock]) -> None:
        self._tracker.apply(blocks)

    def _handle_connection_state(self, state: ConnectionState) -> None:
        self._notify(self.callbacks.on_connection_state_changed, state)

    def _notify(self, callback: Callable[..., None] | None, *args: object) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            # A failing application callback must not abort packet processing
            logger.exception(
                "Callback %s raised",
                getattr(callback, "__name__", repr(callback)),
                extra={"device": self._manager.device_label},
            )

    def __repr__(self) -> str:
        return f"AtemSwitcher({self.host}:{self.port}, state={self._manager.state.value})"
