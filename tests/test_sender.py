"""
Unit tests for the Selective Repeat sender.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.arq.network import Endpoint
from src.arq.packet import Packet
from src.arq.sender import SRSender, SenderState, RetransmitPolicy
from src.layers.application_layer import MessageSource


def send_messages(sender, count, start=0):
    return [sender.output(MessageSource.make_message(start + i)) for i in range(count)]


def ack(acknum):
    return Packet.create_ack_packet(acknum)


def fire_timer(network, sender):
    network.expire(Endpoint.A)
    sender.timer_interrupt()


class TestSenderState:
    """Tests for SenderState."""

    def test_initial_state(self):
        state = SenderState(6, 12)

        assert state.window_count == 0
        assert state.next_seq_num == 0
        assert state.first_seq is None
        assert not state.contains(0)

    def test_invalid_sizes(self):
        with pytest.raises(ValueError):
            SenderState(7, 12)


class TestSenderOutput:
    """Tests for accepting application messages."""

    def test_first_message_starts_timer(self, sender, network):
        """The first outstanding packet starts the timer once."""
        assert sender.output(MessageSource.make_message(0))

        packets = network.packets_from(Endpoint.A)
        assert len(packets) == 1
        assert packets[0].seqnum == 0
        assert packets[0].payload == b'a' * 20
        assert not packets[0].is_corrupted()
        assert network.timer_calls == [('start', Endpoint.A, 16.0)]

    def test_sequence_numbers_increase(self, sender, network):
        send_messages(sender, 6)

        assert [p.seqnum for p in network.packets_from(Endpoint.A)] == [0, 1, 2, 3, 4, 5]
        assert sender.state.window_count == 6
        assert sender.state.next_seq_num == 6
        # Only one timer start for the whole burst
        assert len(network.timer_calls) == 1

    def test_full_window_drops_message(self, sender, network, stats):
        """A 7th message with a full window is counted and not sent."""
        assert all(send_messages(sender, 6))
        network.clear()

        assert not sender.output(MessageSource.make_message(6))

        assert stats.window_full == 1
        assert network.sent == []
        assert network.timer_calls == []
        assert sender.state.window_count == 6
        assert sender.state.next_seq_num == 6

    def test_sent_packet_is_a_copy(self, sender, network):
        """Mutating the packet in flight does not touch the window."""
        sender.output(MessageSource.make_message(0))
        in_flight = network.packets_from(Endpoint.A)[0]
        in_flight.payload = b'Z' * 20

        assert sender.state.buffer.first().packet.payload == b'a' * 20


class TestSenderInput:
    """Tests for processing acknowledgments."""

    def test_clean_run(self, sender, network, stats):
        """In-order ACKs slide the window one packet at a time."""
        send_messages(sender, 6)

        for seq in range(6):
            sender.input(ack(seq))
            assert sender.state.window_count == 5 - seq

        assert stats.new_acks == 6
        assert stats.total_acks_received == 6
        assert sender.is_idle
        assert Endpoint.A not in network.running

        # Window reopens with sequence numbers continuing
        assert all(send_messages(sender, 6, start=6))
        seqs = [p.seqnum for p in network.packets_from(Endpoint.A)]
        assert seqs[6:] == [6, 7, 8, 9, 10, 11]

    def test_timer_restarted_after_slide(self, sender, network):
        send_messages(sender, 3)
        sender.input(ack(0))

        assert network.timer_calls[-2:] == [('stop', Endpoint.A), ('start', Endpoint.A, 16.0)]
        assert Endpoint.A in network.running

    def test_timer_stopped_when_window_empties(self, sender, network):
        send_messages(sender, 1)
        sender.input(ack(0))

        assert network.timer_calls[-1] == ('stop', Endpoint.A)
        assert Endpoint.A not in network.running

    def test_out_of_order_ack_does_not_slide(self, sender, network, stats):
        send_messages(sender, 4)
        sender.input(ack(2))

        assert stats.new_acks == 1
        assert sender.state.window_count == 4
        assert sender.state.first_seq == 0
        # Timer untouched
        assert len(network.timer_calls) == 1

    def test_slide_over_acked_run(self, sender):
        """Acking the head slides past every already-acked packet."""
        send_messages(sender, 5)
        sender.input(ack(1))
        sender.input(ack(2))
        sender.input(ack(0))

        assert sender.state.first_seq == 3
        assert sender.state.window_count == 2

    def test_duplicate_ack_is_idempotent(self, sender, network, stats):
        send_messages(sender, 3)
        sender.input(ack(1))
        before = sender.get_window_state()
        calls = list(network.timer_calls)

        sender.input(ack(1))

        assert sender.get_window_state() == before
        assert network.timer_calls == calls
        assert stats.new_acks == 1
        assert stats.total_acks_received == 2

    def test_stale_ack_ignored(self, sender, stats):
        """An ACK for an already-slid packet changes nothing."""
        send_messages(sender, 2)
        sender.input(ack(0))
        sender.input(ack(0))

        assert stats.new_acks == 1
        assert sender.state.first_seq == 1

    def test_corrupted_ack_ignored(self, sender, network, stats):
        send_messages(sender, 2)
        corrupted = ack(0)
        corrupted.acknum = 999999

        sender.input(corrupted)

        assert stats.total_acks_received == 0
        assert stats.new_acks == 0
        assert sender.state.window_count == 2

    def test_nak_for_last_delivered_is_duplicate(self, sender, network, stats):
        """A NAK names a packet before the window; the timer still resends 3, 4 and 5."""
        send_messages(sender, 6)
        for seq in range(3):
            sender.input(ack(seq))
        network.clear()

        sender.input(ack(2))

        assert stats.new_acks == 3
        assert network.sent == []
        assert network.timer_calls == []

        fire_timer(network, sender)

        assert [p.seqnum for p in network.packets_from(Endpoint.A)] == [3, 4, 5]
        assert stats.packets_resent == 3


class TestSenderTimeout:
    """Tests for timeout-driven retransmission."""

    def test_lost_ack_resends_only_missing(self, sender, network, stats):
        """ACK for 2 is lost: only 2 is resent, window waits on it."""
        send_messages(sender, 6)
        for seq in (0, 1, 3, 4, 5):
            sender.input(ack(seq))

        assert sender.state.first_seq == 2
        assert sender.state.window_count == 4
        network.clear()

        fire_timer(network, sender)

        resent = network.packets_from(Endpoint.A)
        assert [p.seqnum for p in resent] == [2]
        assert stats.packets_resent == 1
        assert network.timer_calls == [('start', Endpoint.A, 16.0)]

        sender.input(ack(2))
        assert sender.is_idle
        assert Endpoint.A not in network.running

    def test_resend_all_unacked(self, sender, network, stats):
        send_messages(sender, 4)
        sender.input(ack(1))
        network.clear()

        fire_timer(network, sender)

        assert [p.seqnum for p in network.packets_from(Endpoint.A)] == [0, 2, 3]
        assert stats.packets_resent == 3

    def test_oldest_policy(self, network, stats, quiet_logger):
        sender = SRSender(network, 6, 12, 16.0, RetransmitPolicy.OLDEST, stats, quiet_logger)
        send_messages(sender, 4)
        network.clear()

        fire_timer(network, sender)

        assert [p.seqnum for p in network.packets_from(Endpoint.A)] == [0]
        assert stats.packets_resent == 1

    def test_acked_packet_never_resent(self, sender, network):
        send_messages(sender, 3)
        sender.input(ack(1))

        for _ in range(3):
            network.clear()
            fire_timer(network, sender)
            assert 1 not in [p.seqnum for p in network.packets_from(Endpoint.A)]

    def test_retransmission_is_identical(self, sender, network):
        send_messages(sender, 1)
        original = network.packets_from(Endpoint.A)[0]
        network.clear()

        fire_timer(network, sender)

        assert network.packets_from(Endpoint.A)[0] == original

    def test_timeout_with_empty_window(self, sender, network):
        """A spurious timeout with nothing outstanding sends nothing."""
        sender.timer_interrupt()

        assert network.sent == []
        assert network.timer_calls == []


class TestSequenceWraparound:
    """Tests across the end of the sequence space."""

    def test_window_across_wrap(self, sender, network):
        send_messages(sender, 6)
        for seq in range(6):
            sender.input(ack(seq))
        send_messages(sender, 6, start=6)
        for seq in range(6, 10):
            sender.input(ack(seq))

        send_messages(sender, 4, start=12)
        seqs = [p.seqnum for p in network.packets_from(Endpoint.A)][-4:]
        assert seqs == [0, 1, 2, 3]
        assert sender.state.first_seq == 10
        assert sender.state.contains(11)
        assert sender.state.contains(3)
        assert not sender.state.contains(4)

        sender.input(ack(0))
        assert sender.state.first_seq == 10
        sender.input(ack(10))
        sender.input(ack(11))
        assert sender.state.first_seq == 1

    def test_init_resets(self, sender):
        send_messages(sender, 3)
        sender.init()

        assert sender.is_idle
        assert sender.state.next_seq_num == 0

    def test_init_stops_running_timer(self, sender, network):
        """Re-initialising with packets outstanding leaves no timer behind."""
        send_messages(sender, 3)
        network.clear()

        sender.init()

        assert network.timer_calls == [('stop', Endpoint.A)]
        assert Endpoint.A not in network.running

        assert sender.output(MessageSource.make_message(0))
        assert network.timer_calls[-1] == ('start', Endpoint.A, 16.0)
        assert network.packets_from(Endpoint.A)[-1].seqnum == 0

    def test_init_when_idle_leaves_timer_alone(self, sender, network):
        sender.init()

        assert network.timer_calls == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
