"""Metrics module."""

from .registry import (
    record_command,
    record_connection_state,
    record_decode_error,
    record_handshake,
    record_heartbeat,
    record_packet_recv,
    record_packet_sent,
    record_retransmit,
    record_retransmit_request,
    start_metrics_server,
)

__all__ = [
    "record_command",
    "record_connection_state",
    "record_decode_error",
    "record_handshake",
    "record_heartbeat",
    "record_packet_recv",
    "record_packet_sent",
    "record_retransmit",
    "record_retransmit_request",
    "start_metrics_server",
]
