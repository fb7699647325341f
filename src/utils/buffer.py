"""
Buffer Management

This module provides the fixed-capacity circular buffer the sender uses
to hold packets awaiting acknowledgment.
"""

from typing import Generic, Iterator, List, Optional, TypeVar

T = TypeVar('T')


class RingBuffer(Generic[T]):
    """
    Fixed-capacity FIFO over a circular array.

    Items are appended at the tail and removed from the head; positions
    are addressed relative to the head, so index 0 is the oldest item.

    Attributes:
        capacity: Maximum number of items
        head: Array index of the oldest item
        count: Number of items currently stored
    """

    def __init__(self, capacity: int):
        """
        Initialize ring buffer.

        Args:
            capacity: Maximum number of items
        """
        if capacity < 1:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._slots: List[Optional[T]] = [None] * capacity
        self.head = 0
        self.count = 0

    @property
    def tail(self) -> int:
        """Array index of the newest item (head - 1 when empty)."""
        return (self.head + self.count - 1) % self.capacity

    @property
    def is_full(self) -> bool:
        return self.count >= self.capacity

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    def append(self, item: T):
        """
        Store an item after the newest one.

        Raises:
            OverflowError: If the buffer is full
        """
        if self.is_full:
            raise OverflowError("Ring buffer is full")
        self._slots[(self.head + self.count) % self.capacity] = item
        self.count += 1

    def popleft(self) -> T:
        """
        Remove and return the oldest item.

        Raises:
            IndexError: If the buffer is empty
        """
        if self.is_empty:
            raise IndexError("pop from empty ring buffer")
        item = self._slots[self.head]
        self._slots[self.head] = None
        self.head = (self.head + 1) % self.capacity
        self.count -= 1
        return item

    def first(self) -> T:
        return self[0]

    def last(self) -> T:
        return self[self.count - 1]

    def clear(self):
        """Drop all items and rewind to slot 0."""
        self._slots = [None] * self.capacity
        self.head = 0
        self.count = 0

    def __getitem__(self, position: int) -> T:
        if not 0 <= position < self.count:
            raise IndexError(f"position {position} out of range for {self.count} items")
        return self._slots[(self.head + position) % self.capacity]

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[T]:
        for position in range(self.count):
            yield self._slots[(self.head + position) % self.capacity]

    def __repr__(self) -> str:
        return f"RingBuffer(capacity={self.capacity}, items={list(self)!r})"
