"""
Selective Repeat ARQ Receiver

This module implements the receiver (B) side of the Selective Repeat ARQ
protocol: receive window management, out-of-order buffering, per-packet
acknowledgment and strictly in-order delivery to the application layer.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from config import WINDOW_SIZE, SEQ_SPACE, validate_window
from .packet import Packet, Message
from .network import Endpoint, NetworkLayer
from .window import in_window, seq_add, seq_offset
from src.utils.metrics import ProtocolStats
from src.utils.logger import SimulationLogger, get_logger


@dataclass
class ReceiverState:
    """
    Receive window state.

    Attributes:
        window_size: Number of sequence numbers accepted at once
        seq_space: Size of the sequence number space
        rcv_base: Oldest sequence number not yet delivered
        base_slot: Slot index holding rcv_base
        slots: One slot per window position, filled out of order
        received: Received flags indexed by sequence number
    """
    window_size: int = WINDOW_SIZE
    seq_space: int = SEQ_SPACE
    rcv_base: int = 0
    base_slot: int = 0
    slots: List[Optional[Packet]] = field(init=False)
    received: List[bool] = field(init=False)

    def __post_init__(self):
        validate_window(self.window_size, self.seq_space)
        self.slots = [None] * self.window_size
        self.received = [False] * self.seq_space

    @property
    def last_delivered(self) -> int:
        """Sequence number just before rcv_base."""
        return seq_add(self.rcv_base, -1, self.seq_space)

    def in_window(self, seq_num: int) -> bool:
        return in_window(seq_num, self.rcv_base, self.window_size, self.seq_space)

    def slot_index(self, seq_num: int) -> int:
        offset = seq_offset(seq_num, self.rcv_base, self.seq_space)
        return (self.base_slot + offset) % self.window_size

    def buffered(self) -> List[int]:
        """Sequence numbers held out of order, in window order."""
        return [
            seq_add(self.rcv_base, offset, self.seq_space)
            for offset in range(self.window_size)
            if self.received[seq_add(self.rcv_base, offset, self.seq_space)]
        ]


class SRReceiver:
    """
    Selective Repeat ARQ Receiver.

    Implements the receiver side of SR-ARQ with:
    - Receive window management
    - Out-of-order packet buffering
    - Individual ACK for every uncorrupted packet
    - NAK (re-ACK of the last delivered packet) for corrupted packets
    - In-order delivery to the application layer

    The receiver never originates data and runs no timer.

    Attributes:
        network: Services used to send ACKs and deliver payloads
        stats: Counters shared with the sender of the same link
        state: Receive window state
    """

    def __init__(
        self,
        network: NetworkLayer,
        window_size: int = WINDOW_SIZE,
        seq_space: int = SEQ_SPACE,
        stats: Optional[ProtocolStats] = None,
        logger: Optional[SimulationLogger] = None
    ):
        """
        Initialize SR receiver.

        Args:
            network: Network layer the receiver talks to
            window_size: Receive window size
            seq_space: Sequence number space, at least 2 * window_size
            stats: Counters record (a fresh one if None)
            logger: Logger (global logger if None)
        """
        validate_window(window_size, seq_space)
        self.network = network
        self.window_size = window_size
        self.seq_space = seq_space
        self.stats = stats if stats is not None else ProtocolStats()
        self.logger = logger or get_logger()

        self.init()

    def init(self):
        """Reset receiver to its initial state: rcv_base 0, nothing buffered."""
        self.state = ReceiverState(self.window_size, self.seq_space)

    def input(self, packet: Packet):
        """
        Process a data packet arriving from the network.

        Args:
            packet: DATA packet (possibly corrupted)
        """
        state = self.state

        if packet.is_corrupted():
            self.logger.info("Packet is corrupted, send NAK!", "B")
            self._send_ack(state.last_delivered)
            return

        self.logger.info(f"Packet {packet.seqnum} is correctly received, send ACK!", "B")
        self.stats.packets_received += 1

        if not state.in_window(packet.seqnum):
            # Already delivered; our earlier ACK was probably lost
            self.logger.debug(
                f"Packet {packet.seqnum} outside window starting at {state.rcv_base}, "
                f"re-acknowledging",
                "B"
            )
            self._send_ack(packet.seqnum)
            return

        if not state.received[packet.seqnum]:
            state.received[packet.seqnum] = True
            state.slots[state.slot_index(packet.seqnum)] = packet.copy()

        self._send_ack(packet.seqnum)
        self._deliver_in_order()

    def output(self, message: Message):
        """B does not send application data."""

    def timer_interrupt(self):
        """B runs no timer."""

    def _deliver_in_order(self):
        """Deliver buffered packets that are now in order."""
        state = self.state
        while state.received[state.rcv_base]:
            packet = state.slots[state.base_slot]
            self.network.deliver_payload(Endpoint.B, packet.payload)
            self.logger.debug(f"Delivered packet {state.rcv_base} to layer 5", "B")

            state.slots[state.base_slot] = None
            state.received[state.rcv_base] = False
            state.rcv_base = seq_add(state.rcv_base, 1, self.seq_space)
            state.base_slot = (state.base_slot + 1) % self.window_size

    def _send_ack(self, acknum: int):
        self.network.send_packet(Endpoint.B, Packet.create_ack_packet(acknum))

    @property
    def is_idle(self) -> bool:
        """True when no out-of-order packet is waiting for a gap to fill."""
        return not any(self.state.received)

    def get_window_state(self) -> dict:
        """Get current window state."""
        return {
            'rcv_base': self.state.rcv_base,
            'window_size': self.window_size,
            'buffered': self.state.buffered()
        }
