"""
Unit tests for metrics collection, the application layer and logging.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.arq.packet import Message
from src.layers.application_layer import MessageSource, ApplicationSink, DataVerifier
from src.utils.logger import SimulationLogger, LogLevel
from src.utils.metrics import MetricsCollector, ProtocolStats


class TestProtocolStats:
    """Tests for ProtocolStats."""

    def test_reset(self):
        stats = ProtocolStats(window_full=2, new_acks=5, packets_resent=1)
        stats.reset()

        assert stats.as_dict() == {
            'window_full': 0,
            'total_acks_received': 0,
            'new_acks': 0,
            'packets_resent': 0,
            'packets_received': 0
        }


class TestMetricsCollector:
    """Tests for MetricsCollector."""

    def test_rates(self):
        metrics = MetricsCollector()
        for accepted in (True, True, True, False):
            metrics.record_message_generated(accepted)
        for _ in range(4):
            metrics.record_packet_sent(is_ack=False)
        for _ in range(4):
            metrics.record_packet_sent(is_ack=True)
        metrics.record_packet_lost()
        metrics.record_packet_corrupted()
        metrics.record_packet_corrupted()
        metrics.record_message_delivered(4.0)
        metrics.record_message_delivered(6.0)

        assert metrics.messages_accepted == 3
        assert metrics.total_packets_sent == 8
        assert metrics.calculate_delivery_ratio() == pytest.approx(2 / 3)
        assert metrics.calculate_retransmission_rate(1) == 0.25
        assert metrics.calculate_loss_rate() == 0.125
        assert metrics.calculate_corruption_rate() == 0.25

        latency = metrics.get_latency_statistics()
        assert latency['mean'] == 5.0
        assert latency['samples'] == 2

    def test_empty_collector(self):
        metrics = MetricsCollector()

        assert metrics.calculate_delivery_ratio() == 1.0
        assert metrics.calculate_retransmission_rate(0) == 0.0
        assert metrics.get_latency_statistics()['samples'] == 0

    def test_summary_merges_counters(self):
        metrics = MetricsCollector()
        metrics.start(0.0)
        metrics.finish(120.0)

        summary = metrics.get_summary(ProtocolStats(packets_resent=3))

        assert summary['total_time'] == 120.0
        assert summary['packets_resent'] == 3
        assert 'latency' in summary

    def test_csv_row_is_flat(self):
        row = MetricsCollector().to_csv_row()

        assert 'latency' not in row
        assert 'latency_mean' in row
        assert all(not isinstance(value, dict) for value in row.values())


class TestApplicationLayer:
    """Tests for the message source, sink and verifier."""

    def test_message_pattern(self):
        assert MessageSource.make_message(0).data == b'a' * 20
        assert MessageSource.make_message(25).data == b'z' * 20
        assert MessageSource.make_message(26).data == b'a' * 20

    def test_source_limit(self):
        source = MessageSource(2)

        assert source.next_message() is not None
        assert source.next_message() is not None
        assert source.exhausted
        assert source.next_message() is None

    def test_sink_latency(self):
        sink = ApplicationSink()
        sink.record_accepted(Message(b'a' * 20), 1.0)
        sink.record_accepted(Message(b'b' * 20), 2.0)

        assert sink.receive(b'a' * 20, 5.0) == 4.0
        assert sink.receive(b'c' * 20, 6.0) is None
        assert sink.out_of_order == 1

    def test_sink_keeps_matching_after_mismatch(self):
        """A wrong payload consumes its slot, so later deliveries still line up."""
        sink = ApplicationSink()
        for i, data in enumerate((b'a', b'b', b'c')):
            sink.record_accepted(Message(data * 20), float(i))

        assert sink.receive(b'x' * 20, 3.0) is None
        assert sink.receive(b'b' * 20, 5.0) == 4.0
        assert sink.receive(b'c' * 20, 6.0) == 4.0
        assert sink.out_of_order == 1
        assert not sink.expected

    def test_sink_delivery_beyond_accepted(self):
        sink = ApplicationSink()

        assert sink.receive(b'a' * 20, 1.0) is None
        assert sink.out_of_order == 1
        assert sink.delivered == [b'a' * 20]

    def test_verify_data(self):
        sent = [b'a' * 20, b'b' * 20]

        valid, details = DataVerifier.verify_data(sent, list(sent))
        assert valid
        assert details['first_mismatch'] is None

        valid, details = DataVerifier.verify_data(sent, [b'b' * 20, b'a' * 20])
        assert not valid
        assert details['first_mismatch'] == 0

        valid, details = DataVerifier.verify_data(sent, sent[:1])
        assert not valid
        assert not details['count_match']


class TestSimulationLogger:
    """Tests for trace levels."""

    @pytest.mark.parametrize("trace, level", [
        (0, LogLevel.WARNING), (1, LogLevel.INFO), (2, LogLevel.DEBUG), (3, LogLevel.DEBUG)
    ])
    def test_from_trace(self, trace, level):
        assert LogLevel.from_trace(trace) == level

    def test_quiet_by_default(self, capsys):
        logger = SimulationLogger(trace=0, use_colors=False)
        logger.info("hidden", "A")
        logger.internal("hidden")

        assert capsys.readouterr().out == ""

    def test_category_and_time(self, capsys):
        logger = SimulationLogger(name="SR", trace=1, use_colors=False)
        logger.set_sim_time(12.5)
        logger.info("Sending packet 3 to layer 3", "A")

        out = capsys.readouterr().out
        assert "[SR]" in out
        assert "[A]" in out
        assert "12.5000" in out
        assert "Sending packet 3" in out

    def test_internal_needs_trace_three(self, capsys):
        logger = SimulationLogger(trace=2, use_colors=False)
        logger.internal("detail")
        assert capsys.readouterr().out == ""

        logger.set_trace(3)
        logger.internal("detail")
        assert "[SIM] detail" in capsys.readouterr().out

    def test_log_file(self, tmp_path):
        path = tmp_path / "logs" / "run.log"
        logger = SimulationLogger(trace=1, log_file=str(path))
        logger.warning("careful")
        logger.close()

        text = path.read_text()
        assert "careful" in text
        assert "\033[" not in text
        assert logger.get_summary()['message_counts']['WARNING'] == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
