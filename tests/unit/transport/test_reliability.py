"""Unit tests for the reliability layer (sequencing, ACK, heartbeat, retransmit)."""

from __future__ import annotations

import pytest

from atem_controller.protocol.atem_protocol import AtemProtocol
from atem_controller.protocol.packet_types import AtemHeader, PacketFlag
from atem_controller.transport.reliability import ReliabilityLayer, is_at_or_after
from atem_controller.transport.retry_policy import TimeoutConfig
from tests.helpers.fakes import FakeClock, FakeTransport

# Test constants
DESTINATION = ("192.0.2.20", 9910)
SESSION_ID = 0xBEEF
HISTORY_CAPACITY = 100
REQUEST_PACKET_ID = 20


@pytest.fixture
def layer(transport: FakeTransport, clock: FakeClock) -> ReliabilityLayer:
    reliability = ReliabilityLayer(transport, clock, DESTINATION, TimeoutConfig(history_capacity=HISTORY_CAPACITY))
    reliability.reset("test-correlation")
    reliability.adopt_session(SESSION_ID)
    return reliability


def _retransmit_request(from_id: int, packet_id: int = REQUEST_PACKET_ID) -> AtemHeader:
    return AtemHeader(
        flags=PacketFlag.RETRANSMIT_REQUEST,
        length=12,
        session_id=SESSION_ID,
        retransmit_from_id=from_id,
        packet_id=packet_id,
    )


def _packet_id(data: bytes) -> int:
    return AtemProtocol.parse_header(data).packet_id


class TestIsAtOrAfter:
    """Tests for wrap-aware packet ID ordering."""

    @pytest.mark.parametrize(
        ("packet_id", "reference", "expected"),
        [
            (6, 6, True),
            (7, 6, True),
            (5, 6, False),
            (0, 65535, True),
            (3, 65530, True),
            (65530, 3, False),
        ],
    )
    def test_ordering(self, packet_id: int, reference: int, expected: bool) -> None:
        assert is_at_or_after(packet_id, reference) is expected


class TestSequencing:
    """Tests for local packet ID allocation."""

    def test_hello_not_stored_and_starts_ids_at_one(self, layer: ReliabilityLayer, transport: FakeTransport) -> None:
        assert layer.send_hello()

        assert transport.sent_bytes == [AtemProtocol.encode_hello()]
        assert len(layer.history) == 0
        assert layer.session.local_packet_id == 1

    def test_ids_increment_by_one(self, layer: ReliabilityLayer) -> None:
        _ = layer.send_hello()

        first = layer.send_command("DCut", bytes(4))
        second = layer.send_heartbeat()

        assert first.packet_id == 1
        assert second.packet_id == 2
        assert layer.session.local_packet_id == 3
        assert [record.packet_id for record in layer.history] == [1, 2]

    def test_ack_consumes_no_id(self, layer: ReliabilityLayer, transport: FakeTransport) -> None:
        _ = layer.send_hello()

        assert layer.send_ack(9)

        assert layer.session.local_packet_id == 1
        assert len(layer.history) == 0
        assert transport.sent_bytes[-1] == AtemProtocol.encode_ack(SESSION_ID, 9)

    def test_packet_id_wraps(self, layer: ReliabilityLayer) -> None:
        layer.session.local_packet_id = 0xFFFF

        result = layer.send_heartbeat()

        assert result.packet_id == 0xFFFF
        assert layer.session.local_packet_id == 0

    def test_failed_send_still_stored(self, layer: ReliabilityLayer, transport: FakeTransport) -> None:
        """A send failure keeps the packet for retransmission and consumes its ID."""
        _ = layer.send_hello()
        transport.send_ok = False

        result = layer.send_command("DAut", bytes(4))

        assert not result.success
        assert result.reason == "send_failed"
        assert result.packet_id == 1
        assert result.correlation_id == "test-correlation"
        assert layer.history[-1].packet_id == 1
        assert layer.session.local_packet_id == 2

    def test_history_evicts_oldest(self, layer: ReliabilityLayer) -> None:
        """The 101st stored packet pushes out the oldest one."""
        _ = layer.send_hello()

        for _ in range(HISTORY_CAPACITY + 1):
            _ = layer.send_heartbeat()

        assert len(layer.history) == HISTORY_CAPACITY
        assert layer.history[0].packet_id == 2
        assert layer.history[-1].packet_id == HISTORY_CAPACITY + 1
        assert layer.history_status() == {
            "history_size": HISTORY_CAPACITY,
            "history_capacity": HISTORY_CAPACITY,
            "oldest_id": 2,
            "newest_id": HISTORY_CAPACITY + 1,
        }

    def test_reset_clears_session(self, layer: ReliabilityLayer) -> None:
        _ = layer.send_hello()
        _ = layer.send_heartbeat()

        layer.reset("next")

        assert layer.session.session_id == 0x53AB
        assert layer.session.local_packet_id == 0
        assert len(layer.history) == 0
        assert layer.correlation_id == "next"


class TestHeartbeat:
    """Tests for heartbeat scheduling."""

    def test_due_after_interval(self, layer: ReliabilityLayer, clock: FakeClock) -> None:
        _ = layer.send_ack(1)

        clock.advance(499)
        assert not layer.heartbeat_due(clock.now())
        clock.advance(1)
        assert layer.heartbeat_due(clock.now())

    def test_any_send_postpones_heartbeat(self, layer: ReliabilityLayer, clock: FakeClock) -> None:
        _ = layer.send_ack(1)
        clock.advance(400)
        _ = layer.send_command("DCut", bytes(4))
        clock.advance(400)

        assert not layer.heartbeat_due(clock.now())

    def test_heartbeat_bytes(self, layer: ReliabilityLayer, transport: FakeTransport) -> None:
        layer.session.local_packet_id = 5

        _ = layer.send_heartbeat()

        assert transport.sent_bytes == [AtemProtocol.encode_heartbeat(SESSION_ID, 5)]


class TestInboundTracking:
    def test_remote_id_keeps_maximum(self, layer: ReliabilityLayer) -> None:
        layer.track_remote_id(7)
        layer.track_remote_id(3)

        assert layer.session.remote_packet_id == 7

    def test_remote_id_follows_wrap(self, layer: ReliabilityLayer) -> None:
        layer.track_remote_id(65535)
        layer.track_remote_id(0)
        layer.track_remote_id(5)

        assert layer.session.remote_packet_id == 5

    def test_remote_id_ignores_late_packet_across_wrap(self, layer: ReliabilityLayer) -> None:
        layer.track_remote_id(65535)
        layer.track_remote_id(2)
        layer.track_remote_id(65534)

        assert layer.session.remote_packet_id == 2

    def test_record_ack(self, layer: ReliabilityLayer) -> None:
        layer.record_ack(AtemHeader(flags=PacketFlag.ACK_REPLY, length=12, session_id=SESSION_ID, ack_id=4))

        assert layer.session.last_acked_id == 4

    def test_adopt_session(self, layer: ReliabilityLayer, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("INFO", logger="atem_controller"):
            layer.adopt_session(0x8001)

        assert layer.session.session_id == 0x8001
        assert "0xbeef → 0x8001" in caplog.text


class TestRetransmit:
    """Tests for answering device retransmit requests."""

    def test_replays_from_requested_id_then_acks(self, layer: ReliabilityLayer, transport: FakeTransport) -> None:
        """History 5..8, request from 6: resend 6, 7, 8 in order, then one ACK."""
        layer.session.local_packet_id = 5
        for _ in range(4):
            _ = layer.send_heartbeat()
        stored = {record.packet_id: record.raw for record in layer.history}
        transport.clear()

        replayed = layer.handle_retransmit_request(_retransmit_request(6))

        assert replayed == 3
        assert transport.sent_bytes == [
            stored[6],
            stored[7],
            stored[8],
            AtemProtocol.encode_ack(SESSION_ID, REQUEST_PACKET_ID),
        ]

    def test_replay_is_byte_identical(self, layer: ReliabilityLayer, transport: FakeTransport) -> None:
        _ = layer.send_hello()
        _ = layer.send_command("CPvI", b"\x00\x00\x00\x02")
        original = transport.sent_bytes[-1]
        transport.clear()

        _ = layer.handle_retransmit_request(_retransmit_request(1))

        assert transport.sent_bytes[0] == original

    def test_unknown_id_sends_only_ack(self, layer: ReliabilityLayer, transport: FakeTransport) -> None:
        """Nothing stored at or after the requested ID: no replay, still one ACK."""
        _ = layer.send_hello()
        _ = layer.send_heartbeat()
        transport.clear()

        replayed = layer.handle_retransmit_request(_retransmit_request(50))

        assert replayed == 0
        assert transport.sent_bytes == [AtemProtocol.encode_ack(SESSION_ID, REQUEST_PACKET_ID)]

    def test_evicted_id_replays_what_is_left(self, layer: ReliabilityLayer, transport: FakeTransport) -> None:
        _ = layer.send_hello()
        for _ in range(HISTORY_CAPACITY + 1):
            _ = layer.send_heartbeat()
        transport.clear()

        replayed = layer.handle_retransmit_request(_retransmit_request(1))

        assert replayed == HISTORY_CAPACITY
        assert _packet_id(transport.sent_bytes[0]) == 2
        assert transport.sent_bytes[-1] == AtemProtocol.encode_ack(SESSION_ID, REQUEST_PACKET_ID)

    def test_replay_across_wrap(self, layer: ReliabilityLayer, transport: FakeTransport) -> None:
        layer.session.local_packet_id = 0xFFFE
        for _ in range(3):
            _ = layer.send_heartbeat()
        transport.clear()

        _ = layer.handle_retransmit_request(_retransmit_request(0xFFFF))

        assert [_packet_id(data) for data in transport.sent_bytes[:-1]] == [0xFFFF, 0]

    def test_replay_does_not_touch_counter_or_history(self, layer: ReliabilityLayer) -> None:
        layer.session.local_packet_id = 5
        for _ in range(4):
            _ = layer.send_heartbeat()

        _ = layer.handle_retransmit_request(_retransmit_request(5))

        assert layer.session.local_packet_id == 9
        assert [record.packet_id for record in layer.history] == [5, 6, 7, 8]
