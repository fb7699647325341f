"""
Application Layer Implementation

This module implements the two application-layer endpoints of the
emulator: the message source feeding the sender and the sink that
collects and verifies what the receiver delivers.
"""

import hashlib
from collections import deque
from typing import Deque, List, Optional, Tuple

from config import PAYLOAD_SIZE
from src.arq.packet import Message


class MessageSource:
    """
    Generates the application messages handed to the sender.

    Message n is PAYLOAD_SIZE copies of the letter 'a' + n mod 26, so
    consecutive messages are distinguishable and the pattern repeats
    every 26 messages.
    """

    def __init__(self, limit: int):
        """
        Args:
            limit: Number of messages to generate
        """
        self.limit = limit
        self.generated = 0

    @staticmethod
    def make_message(index: int) -> Message:
        letter = ord('a') + index % 26
        return Message(bytes([letter]) * PAYLOAD_SIZE)

    @property
    def exhausted(self) -> bool:
        return self.generated >= self.limit

    def next_message(self) -> Optional[Message]:
        """Next message, or None once the limit is reached."""
        if self.exhausted:
            return None
        message = self.make_message(self.generated)
        self.generated += 1
        return message

    def reset(self):
        self.generated = 0


class ApplicationSink:
    """
    Receiving application.

    Tracks messages accepted by the sender, in order, with their
    acceptance time, and matches deliveries against them.

    Attributes:
        expected: Accepted messages not yet delivered, oldest first
        delivered: Payloads delivered so far
    """

    def __init__(self):
        self.expected: Deque[Tuple[bytes, float]] = deque()
        self.delivered: List[bytes] = []
        self.accepted: List[bytes] = []
        self.out_of_order = 0

    def record_accepted(self, message: Message, time: float):
        """Remember a message the sender put on the wire."""
        self.accepted.append(message.data)
        self.expected.append((message.data, time))

    def receive(self, payload: bytes, time: float) -> Optional[float]:
        """
        Record a delivered payload.

        Returns:
            Latency since acceptance, or None if the payload is not the
            next expected message
        """
        self.delivered.append(bytes(payload))
        if not self.expected:
            self.out_of_order += 1
            return None

        # A delivery always takes the place of the oldest pending message
        data, accepted_at = self.expected.popleft()
        if data != payload:
            self.out_of_order += 1
            return None
        return time - accepted_at

    def reset(self):
        self.__init__()


class DataVerifier:
    """Verifies the delivered stream against the accepted one."""

    @staticmethod
    def calculate_checksum(payloads: List[bytes]) -> str:
        """Calculate MD5 over a sequence of payloads."""
        return hashlib.md5(b''.join(payloads)).hexdigest()

    @staticmethod
    def verify_data(accepted: List[bytes], delivered: List[bytes]) -> Tuple[bool, dict]:
        """
        Check every accepted message was delivered exactly once, in order.

        Args:
            accepted: Messages accepted by the sender, in send order
            delivered: Payloads delivered to the receiving application

        Returns:
            Tuple of (valid, details)
        """
        details = {
            'accepted_count': len(accepted),
            'delivered_count': len(delivered),
            'count_match': len(accepted) == len(delivered),
            'accepted_checksum': DataVerifier.calculate_checksum(accepted),
            'delivered_checksum': DataVerifier.calculate_checksum(delivered),
            'first_mismatch': None
        }

        for i, (sent, got) in enumerate(zip(accepted, delivered)):
            if sent != got:
                details['first_mismatch'] = i
                break

        valid = (details['count_match'] and
                 details['accepted_checksum'] == details['delivered_checksum'])
        details['valid'] = valid
        return valid, details
