"""
Packet and Message Structures for Selective Repeat ARQ Protocol

This module defines the fixed-shape data types exchanged between the
application layer, the protocol endpoints and the network, together
with the checksum used to detect corruption in transit.
"""

import struct
from dataclasses import dataclass, field

from config import PAYLOAD_SIZE, NOT_IN_USE


def _check_payload(data: bytes) -> bytes:
    data = bytes(data)
    if len(data) != PAYLOAD_SIZE:
        raise ValueError(
            f"Payload must be exactly {PAYLOAD_SIZE} bytes, got {len(data)}"
        )
    return data


@dataclass(frozen=True)
class Message:
    """
    Application-layer message.

    Attributes:
        data: Exactly PAYLOAD_SIZE bytes, opaque to the protocol
    """
    data: bytes

    def __post_init__(self):
        object.__setattr__(self, 'data', _check_payload(self.data))

    @classmethod
    def from_text(cls, text: str) -> 'Message':
        """Build a message from text, padded with NULs or truncated."""
        raw = text.encode()[:PAYLOAD_SIZE]
        return cls(raw.ljust(PAYLOAD_SIZE, b'\x00'))


@dataclass
class Packet:
    """
    Transport Packet Structure.

    Wire Layout (32 bytes):
        - Sequence Number: 4 bytes (signed int)
        - ACK Number: 4 bytes (signed int)
        - Checksum: 4 bytes (signed int)
        - Payload: 20 bytes

    Data packets carry acknum == NOT_IN_USE, acknowledgments carry
    seqnum == NOT_IN_USE and a zero payload.

    Attributes:
        seqnum: Sequence number
        acknum: Acknowledgment number
        checksum: Stored checksum
        payload: Packet payload (PAYLOAD_SIZE bytes)
    """

    seqnum: int
    acknum: int
    checksum: int = 0
    payload: bytes = field(default=bytes(PAYLOAD_SIZE))

    WIRE_FORMAT = f'!iii{PAYLOAD_SIZE}s'
    WIRE_SIZE = struct.calcsize(WIRE_FORMAT)

    def __post_init__(self):
        self.payload = _check_payload(self.payload)

    def compute_checksum(self) -> int:
        """Sum of seqnum, acknum and every payload byte."""
        return self.seqnum + self.acknum + sum(self.payload)

    def is_corrupted(self) -> bool:
        """True if the stored checksum does not match the contents."""
        return self.checksum != self.compute_checksum()

    def seal(self) -> 'Packet':
        """Store the freshly computed checksum and return self."""
        self.checksum = self.compute_checksum()
        return self

    @property
    def is_ack(self) -> bool:
        return self.seqnum == NOT_IN_USE

    def copy(self) -> 'Packet':
        return Packet(self.seqnum, self.acknum, self.checksum, self.payload)

    def serialize(self) -> bytes:
        """
        Serialize the packet to bytes.

        Returns:
            WIRE_SIZE bytes in network byte order
        """
        return struct.pack(
            self.WIRE_FORMAT,
            self.seqnum,
            self.acknum,
            self.checksum,
            self.payload
        )

    @classmethod
    def deserialize(cls, data: bytes) -> 'Packet':
        """
        Deserialize bytes to a Packet object.

        The checksum is carried over verbatim; call is_corrupted() to
        validate it.

        Raises:
            ValueError: If data is not exactly WIRE_SIZE bytes
        """
        if len(data) != cls.WIRE_SIZE:
            raise ValueError(
                f"Packet must be {cls.WIRE_SIZE} bytes on the wire, got {len(data)}"
            )
        seqnum, acknum, checksum, payload = struct.unpack(cls.WIRE_FORMAT, data)
        return cls(seqnum=seqnum, acknum=acknum, checksum=checksum, payload=payload)

    @classmethod
    def create_data_packet(cls, seqnum: int, message: Message) -> 'Packet':
        """Create a sealed DATA packet carrying a message."""
        return cls(seqnum=seqnum, acknum=NOT_IN_USE, payload=message.data).seal()

    @classmethod
    def create_ack_packet(cls, acknum: int) -> 'Packet':
        """Create a sealed ACK packet. A NAK is an ACK of the last delivered packet."""
        return cls(seqnum=NOT_IN_USE, acknum=acknum).seal()

    def __repr__(self) -> str:
        return (f"Packet(seq={self.seqnum}, ack={self.acknum}, "
                f"checksum={self.checksum}, payload={self.payload!r})")
