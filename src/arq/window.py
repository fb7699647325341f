"""
Sequence Number Arithmetic

Sequence numbers live in the cyclic group Z/seq_space. Both endpoints
validate incoming numbers with the same window-membership test.
"""


def seq_add(seq_num: int, offset: int, seq_space: int) -> int:
    """Advance a sequence number by offset, wrapping around."""
    return (seq_num + offset) % seq_space


def seq_offset(seq_num: int, start: int, seq_space: int) -> int:
    """Distance from start forward to seq_num."""
    return (seq_num - start) % seq_space


def in_window(seq_num: int, start: int, size: int, seq_space: int) -> bool:
    """
    Check whether seq_num lies in the cyclic window [start, start + size - 1].

    Equivalent to the two-branch test on the window edges
    (first <= last: first <= n <= last; first > last: n >= first or
    n <= last). Numbers outside [0, seq_space) never match, so a
    NOT_IN_USE or mangled header field is rejected.

    Args:
        seq_num: Sequence number to test
        start: First sequence number of the window
        size: Number of sequence numbers in the window
        seq_space: Size of the sequence number space

    Returns:
        True if seq_num is inside the window
    """
    if not 0 <= seq_num < seq_space or size <= 0:
        return False
    return seq_offset(seq_num, start, seq_space) < size
