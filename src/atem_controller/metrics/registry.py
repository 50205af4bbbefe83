"""Prometheus metrics registry for the ATEM protocol engine."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

CONNECTION_STATES: Final = ("disconnected", "connecting", "connected", "error")

# Packet metrics
atem_packets_sent_total: Final = Counter(  # type: ignore[assignment]
    "atem_packets_sent_total",
    "Total packets sent to the switcher",
    ["device", "kind", "outcome"],
)

atem_packets_received_total: Final = Counter(  # type: ignore[assignment]
    "atem_packets_received_total",
    "Total datagrams received from the switcher",
    ["device", "outcome"],
)

atem_decode_errors_total: Final = Counter(  # type: ignore[assignment]
    "atem_decode_errors_total",
    "Total datagrams dropped or flagged by the decoder",
    ["device", "reason"],
)

atem_acks_received_total: Final = Counter(  # type: ignore[assignment]
    "atem_acks_received_total",
    "Total ACK replies received from the switcher",
    ["device"],
)

# Reliability metrics
atem_retransmit_requests_total: Final = Counter(  # type: ignore[assignment]
    "atem_retransmit_requests_total",
    "Total retransmit requests from the switcher",
    ["device", "outcome"],
)

atem_packets_retransmitted_total: Final = Counter(  # type: ignore[assignment]
    "atem_packets_retransmitted_total",
    "Total stored packets replayed on request",
    ["device"],
)

atem_heartbeat_total: Final = Counter(  # type: ignore[assignment]
    "atem_heartbeat_total",
    "Total heartbeats sent",
    ["device", "outcome"],
)

atem_history_size: Final = Gauge(  # type: ignore[assignment]
    "atem_history_size",
    "Packets currently held for retransmission",
    ["device"],
)

# Connection metrics
atem_connection_state: Final = Gauge(  # type: ignore[assignment]
    "atem_connection_state",
    "Current connection state",
    ["device", "state"],
)

atem_handshake_total: Final = Counter(  # type: ignore[assignment]
    "atem_handshake_total",
    "Total handshake attempts by outcome",
    ["device", "outcome"],
)

# Command layer metrics
atem_commands_total: Final = Counter(  # type: ignore[assignment]
    "atem_commands_total",
    "Total outbound commands by name and outcome",
    ["device", "command", "outcome"],
)

atem_state_changes_total: Final = Counter(  # type: ignore[assignment]
    "atem_state_changes_total",
    "Total device state field changes decoded from broadcasts",
    ["device", "field"],
)

# Performance metrics
atem_tick_duration_seconds: Final = Histogram(  # type: ignore[assignment]
    "atem_tick_duration_seconds",
    "Duration of one engine tick in seconds",
    buckets=(0.0001, 0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1),
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int = 9400) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_packet_sent(device: str, kind: str, outcome: str) -> None:
    """Record a sent packet."""
    atem_packets_sent_total.labels(device=device, kind=kind, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_packet_recv(device: str, outcome: str) -> None:
    """Record a received datagram."""
    atem_packets_received_total.labels(device=device, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_decode_error(device: str, reason: str) -> None:
    """Record a decode error."""
    atem_decode_errors_total.labels(device=device, reason=reason).inc()  # type: ignore[no-untyped-call]


def record_ack_received(device: str) -> None:
    """Record an ACK reply received."""
    atem_acks_received_total.labels(device=device).inc()  # type: ignore[no-untyped-call]


def record_retransmit_request(device: str, outcome: str) -> None:
    """Record a retransmit request ("replayed", "partial" or "unavailable")."""
    atem_retransmit_requests_total.labels(device=device, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_retransmit(device: str, count: int = 1) -> None:
    """Record replayed packets."""
    atem_packets_retransmitted_total.labels(device=device).inc(count)  # type: ignore[no-untyped-call]


def record_heartbeat(device: str, outcome: str) -> None:
    """Record a heartbeat send."""
    atem_heartbeat_total.labels(device=device, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_history_size(device: str, size: int) -> None:
    """Record retransmission history size."""
    atem_history_size.labels(device=device).set(size)  # type: ignore[no-untyped-call]


def record_connection_state(device: str, state: str) -> None:
    """Record connection state change."""
    # Set gauge to 1 for current state, 0 for all others
    for s in CONNECTION_STATES:
        value = 1 if s == state else 0
        atem_connection_state.labels(device=device, state=s).set(value)  # type: ignore[no-untyped-call]


def record_handshake(device: str, outcome: str) -> None:
    """Record a handshake outcome."""
    atem_handshake_total.labels(device=device, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_command(device: str, command: str, outcome: str) -> None:
    """Record an outbound command."""
    atem_commands_total.labels(device=device, command=command, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_state_change(device: str, field: str) -> None:
    """Record a device state field change."""
    atem_state_changes_total.labels(device=device, field=field).inc()  # type: ignore[no-untyped-call]


def record_tick_duration(duration_seconds: float) -> None:
    """Record tick duration."""
    atem_tick_duration_seconds.observe(duration_seconds)  # type: ignore[no-untyped-call]
