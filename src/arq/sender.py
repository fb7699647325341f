"""
Selective Repeat ARQ Sender

This module implements the sender (A) side of the Selective Repeat ARQ
protocol: sliding window management over a circular buffer,
per-packet acknowledgment tracking, and timeout-driven selective
retransmission.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from config import WINDOW_SIZE, SEQ_SPACE, RTT, validate_window
from .packet import Packet, Message
from .network import Endpoint, NetworkLayer
from .window import in_window, seq_add, seq_offset
from src.utils.buffer import RingBuffer
from src.utils.metrics import ProtocolStats
from src.utils.logger import SimulationLogger, get_logger


class RetransmitPolicy(Enum):
    """What the sender resends when its timer expires."""
    ALL = "all"        # every unacknowledged packet in the window
    OLDEST = "oldest"  # only the oldest unacknowledged packet


@dataclass
class WindowSlot:
    """Outstanding packet and whether it has been acknowledged."""
    packet: Packet
    acked: bool = False


@dataclass
class SenderState:
    """
    Send window state.

    Attributes:
        window_size: Maximum number of outstanding packets
        seq_space: Size of the sequence number space
        buffer: Outstanding packets, oldest first
        next_seq_num: Next sequence number to assign
    """
    window_size: int = WINDOW_SIZE
    seq_space: int = SEQ_SPACE
    buffer: RingBuffer = field(init=False)
    next_seq_num: int = 0

    def __post_init__(self):
        validate_window(self.window_size, self.seq_space)
        self.buffer = RingBuffer(self.window_size)

    @property
    def window_first(self) -> int:
        return self.buffer.head

    @property
    def window_last(self) -> int:
        return self.buffer.tail

    @property
    def window_count(self) -> int:
        return self.buffer.count

    @property
    def is_full(self) -> bool:
        return self.buffer.is_full

    @property
    def first_seq(self) -> Optional[int]:
        return None if self.buffer.is_empty else self.buffer.first().packet.seqnum

    @property
    def last_seq(self) -> Optional[int]:
        return None if self.buffer.is_empty else self.buffer.last().packet.seqnum

    def contains(self, seq_num: int) -> bool:
        """Check if seq_num is between the first and last outstanding packet."""
        if self.buffer.is_empty:
            return False
        return in_window(seq_num, self.first_seq, self.window_count, self.seq_space)

    def slot_for(self, seq_num: int) -> Optional[WindowSlot]:
        """Slot holding seq_num, or None if it is not outstanding."""
        if not self.contains(seq_num):
            return None
        return self.buffer[seq_offset(seq_num, self.first_seq, self.seq_space)]

    def unacked_slots(self):
        return [slot for slot in self.buffer if not slot.acked]


class SRSender:
    """
    Selective Repeat ARQ Sender.

    Implements the sender side of SR-ARQ with:
    - Sliding window over a circular buffer
    - Per-packet acknowledgment flags
    - A single logical timer, running while packets are outstanding
    - Selective retransmission of unacknowledged packets

    Attributes:
        network: Services used to send packets and drive the timer
        timeout: Timer increment in simulated time units
        policy: Retransmission policy applied on timeout
        stats: Counters shared with the receiver of the same link
        state: Send window state
    """

    def __init__(
        self,
        network: NetworkLayer,
        window_size: int = WINDOW_SIZE,
        seq_space: int = SEQ_SPACE,
        timeout: float = RTT,
        policy: RetransmitPolicy = RetransmitPolicy.ALL,
        stats: Optional[ProtocolStats] = None,
        logger: Optional[SimulationLogger] = None
    ):
        """
        Initialize SR sender.

        Args:
            network: Network layer the sender talks to
            window_size: Send window size
            seq_space: Sequence number space, at least 2 * window_size
            timeout: Retransmission timeout
            policy: Which packets to resend on timeout
            stats: Counters record (a fresh one if None)
            logger: Logger (global logger if None)
        """
        validate_window(window_size, seq_space)
        self.network = network
        self.window_size = window_size
        self.seq_space = seq_space
        self.timeout = timeout
        self.policy = policy
        self.stats = stats if stats is not None else ProtocolStats()
        self.logger = logger or get_logger()

        self.init()

    def init(self):
        """
        Reset sender to its initial state: seqnum 0, empty window.

        A timer left running for outstanding packets is stopped first.
        """
        state = getattr(self, 'state', None)
        if state is not None and state.window_count > 0:
            self.network.stop_timer(Endpoint.A)
        self.state = SenderState(self.window_size, self.seq_space)

    def output(self, message: Message) -> bool:
        """
        Accept a message from the application layer.

        A full window drops the message; there is no queueing.

        Args:
            message: Message to send

        Returns:
            True if the message was sent, False if it was dropped
        """
        state = self.state
        if state.is_full:
            self.logger.info("New message arrives, send window is full", "A")
            self.stats.window_full += 1
            return False

        self.logger.debug("New message arrives, send window is not full, send new message to layer3", "A")

        packet = Packet.create_data_packet(state.next_seq_num, message)
        state.buffer.append(WindowSlot(packet))

        self.logger.info(f"Sending packet {packet.seqnum} to layer 3", "A")
        self.network.send_packet(Endpoint.A, packet.copy())

        if state.window_count == 1:
            self.network.start_timer(Endpoint.A, self.timeout)

        state.next_seq_num = seq_add(state.next_seq_num, 1, self.seq_space)
        return True

    def input(self, packet: Packet):
        """
        Process an acknowledgment arriving from the network.

        Args:
            packet: ACK packet (possibly corrupted)
        """
        if packet.is_corrupted():
            self.logger.info("Corrupted ACK is received, do nothing!", "A")
            return

        self.logger.info(f"Uncorrupted ACK {packet.acknum} is received", "A")
        self.stats.total_acks_received += 1

        slot = self.state.slot_for(packet.acknum)
        if slot is None or slot.acked:
            self.logger.info("Duplicate ACK received, do nothing!", "A")
            return

        self.logger.info(f"ACK {packet.acknum} is not a duplicate", "A")
        self.stats.new_acks += 1
        slot.acked = True

        if packet.acknum == self.state.first_seq:
            self._slide_window()

    def timer_interrupt(self):
        """Retransmit unacknowledged packets after a timeout."""
        self.logger.info("Time out, resend packets!", "A")

        for slot in self.state.unacked_slots():
            self.logger.info(f"Resending packet {slot.packet.seqnum}", "A")
            self.network.send_packet(Endpoint.A, slot.packet.copy())
            self.stats.packets_resent += 1
            if self.policy is RetransmitPolicy.OLDEST:
                break

        if self.state.window_count > 0:
            self.network.start_timer(Endpoint.A, self.timeout)

    def _slide_window(self):
        """Drop acknowledged packets from the head of the window."""
        buffer = self.state.buffer
        while not buffer.is_empty and buffer.first().acked:
            buffer.popleft()

        self.logger.debug(
            f"Window slid: first={self.state.first_seq}, "
            f"count={self.state.window_count}, next={self.state.next_seq_num}",
            "A"
        )

        self.network.stop_timer(Endpoint.A)
        if self.state.window_count > 0:
            self.network.start_timer(Endpoint.A, self.timeout)

    @property
    def is_idle(self) -> bool:
        """True when nothing is awaiting acknowledgment."""
        return self.state.window_count == 0

    def get_window_state(self) -> dict:
        """Get current window state."""
        return {
            'first_seq': self.state.first_seq,
            'last_seq': self.state.last_seq,
            'window_first': self.state.window_first,
            'window_last': self.state.window_last,
            'window_count': self.state.window_count,
            'next_seq_num': self.state.next_seq_num,
            'outstanding': [(slot.packet.seqnum, slot.acked) for slot in self.state.buffer]
        }
