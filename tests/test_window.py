"""
Unit tests for sequence number arithmetic and the ring buffer.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import validate_window
from src.arq.window import in_window, seq_add, seq_offset
from src.utils.buffer import RingBuffer


class TestSequenceArithmetic:
    """Tests for cyclic sequence numbers."""

    def test_seq_add_wraps(self):
        assert seq_add(11, 1, 12) == 0
        assert seq_add(0, -1, 12) == 11
        assert seq_add(5, 3, 12) == 8

    def test_seq_offset(self):
        assert seq_offset(2, 10, 12) == 4
        assert seq_offset(10, 10, 12) == 0

    @pytest.mark.parametrize("seq, expected", [
        (3, True), (5, True), (8, True),
        (2, False), (9, False), (0, False)
    ])
    def test_in_window_plain(self, seq, expected):
        """Window [3, 8] without wraparound."""
        assert in_window(seq, 3, 6, 12) == expected

    @pytest.mark.parametrize("seq, expected", [
        (10, True), (11, True), (0, True), (3, True),
        (4, False), (9, False)
    ])
    def test_in_window_wrapped(self, seq, expected):
        """Window [10, 3] wraps past the end of the space."""
        assert in_window(seq, 10, 6, 12) == expected

    @pytest.mark.parametrize("seq", [-1, 12, 999999])
    def test_out_of_space_never_matches(self, seq):
        """NOT_IN_USE and mangled fields are outside every window."""
        assert not in_window(seq, 0, 6, 12)
        assert not in_window(seq, 10, 6, 12)

    def test_empty_window(self):
        assert not in_window(0, 0, 0, 12)


class TestValidateWindow:
    """Tests for window / sequence space validation."""

    def test_accepts_twice_window(self):
        validate_window(6, 12)
        validate_window(1, 2)

    @pytest.mark.parametrize("window, space", [(6, 11), (0, 12), (7, 12)])
    def test_rejects(self, window, space):
        with pytest.raises(ValueError):
            validate_window(window, space)


class TestRingBuffer:
    """Tests for RingBuffer class."""

    def test_append_and_index(self):
        buffer = RingBuffer(3)
        buffer.append('a')
        buffer.append('b')

        assert len(buffer) == 2
        assert buffer[0] == 'a'
        assert buffer.first() == 'a'
        assert buffer.last() == 'b'
        assert buffer.head == 0
        assert buffer.tail == 1

    def test_full_buffer_rejects(self):
        """Test buffer full detection."""
        buffer = RingBuffer(2)
        buffer.append(1)
        buffer.append(2)

        assert buffer.is_full
        with pytest.raises(OverflowError):
            buffer.append(3)

    def test_popleft_order(self):
        buffer = RingBuffer(3)
        for item in (1, 2, 3):
            buffer.append(item)

        assert buffer.popleft() == 1
        assert buffer.popleft() == 2
        assert list(buffer) == [3]

    def test_wraparound(self):
        """Indices wrap when the head advances past the end."""
        buffer = RingBuffer(3)
        for item in (1, 2, 3):
            buffer.append(item)
        buffer.popleft()
        buffer.popleft()
        buffer.append(4)
        buffer.append(5)

        assert list(buffer) == [3, 4, 5]
        assert buffer.head == 2
        assert buffer.tail == 1

    def test_empty_errors(self):
        buffer = RingBuffer(2)

        assert buffer.is_empty
        with pytest.raises(IndexError):
            buffer.popleft()
        with pytest.raises(IndexError):
            buffer[0]

    def test_clear(self):
        buffer = RingBuffer(2)
        buffer.append(1)
        buffer.popleft()
        buffer.append(2)
        buffer.clear()

        assert buffer.is_empty
        assert buffer.head == 0

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            RingBuffer(0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
