"""
Unit tests for the packet and message model.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import NOT_IN_USE, PAYLOAD_SIZE
from src.arq.packet import Packet, Message


class TestMessage:
    """Tests for Message class."""

    def test_exact_length(self):
        message = Message(b'a' * PAYLOAD_SIZE)
        assert message.data == b'a' * 20

    @pytest.mark.parametrize("length", [0, 19, 21])
    def test_wrong_length_rejected(self, length):
        """Messages must be exactly 20 bytes."""
        with pytest.raises(ValueError):
            Message(b'x' * length)

    def test_from_text_pads(self):
        """Short text is NUL padded."""
        message = Message.from_text("hello")
        assert message.data == b'hello' + b'\x00' * 15

    def test_from_text_truncates(self):
        message = Message.from_text("x" * 40)
        assert message.data == b'x' * 20


class TestPacket:
    """Tests for Packet class."""

    def test_data_packet_creation(self):
        """Test creating a data packet."""
        message = Message(b'b' * 20)
        packet = Packet.create_data_packet(5, message)

        assert packet.seqnum == 5
        assert packet.acknum == NOT_IN_USE
        assert packet.payload == message.data
        assert not packet.is_ack
        assert not packet.is_corrupted()

    def test_ack_packet_creation(self):
        """Test creating an ACK packet."""
        packet = Packet.create_ack_packet(7)

        assert packet.acknum == 7
        assert packet.seqnum == NOT_IN_USE
        assert packet.payload == bytes(20)
        assert packet.is_ack
        assert not packet.is_corrupted()

    def test_checksum_value(self):
        """Checksum is seqnum + acknum + the sum of payload bytes."""
        packet = Packet.create_data_packet(2, Message(b'a' * 20))
        assert packet.checksum == 2 + NOT_IN_USE + 97 * 20

        ack = Packet.create_ack_packet(4)
        assert ack.checksum == NOT_IN_USE + 4

    def test_payload_corruption_detected(self):
        packet = Packet.create_data_packet(1, Message(b'a' * 20))
        packet.payload = b'Z' + packet.payload[1:]
        assert packet.is_corrupted()

    def test_header_corruption_detected(self):
        packet = Packet.create_ack_packet(3)
        packet.acknum = 999999
        assert packet.is_corrupted()

        packet = Packet.create_data_packet(3, Message(b'a' * 20))
        packet.seqnum = 999999
        assert packet.is_corrupted()

    def test_copy_is_independent(self):
        packet = Packet.create_data_packet(1, Message(b'a' * 20))
        clone = packet.copy()
        clone.seqnum = 9

        assert packet.seqnum == 1
        assert clone == Packet(9, packet.acknum, packet.checksum, packet.payload)

    def test_serialization_deserialization(self):
        """Test packet serialization and deserialization."""
        original = Packet.create_data_packet(11, Message(b'q' * 20))

        serialized = original.serialize()
        deserialized = Packet.deserialize(serialized)

        assert len(serialized) == Packet.WIRE_SIZE == 32
        assert deserialized == original
        assert not deserialized.is_corrupted()

    def test_negative_fields_survive_wire(self):
        """NOT_IN_USE travels as a signed integer."""
        ack = Packet.create_ack_packet(0)
        assert Packet.deserialize(ack.serialize()).seqnum == NOT_IN_USE

    def test_deserialize_wrong_length(self):
        with pytest.raises(ValueError):
            Packet.deserialize(b'\x00' * 31)

    def test_bad_payload_length(self):
        with pytest.raises(ValueError):
            Packet(0, 0, 0, b'short')


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
