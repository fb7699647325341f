"""
Main Simulator - Event-Driven Network Emulator

This module implements the discrete-event engine that drives one
Selective Repeat link: it generates application messages for the
sender, carries packets over a lossy, corrupting but order-preserving
channel in both directions, runs the per-endpoint logical timers and
collects what the receiver delivers.
"""

from typing import Optional, Dict, List
from dataclasses import dataclass, field
from enum import Enum
import heapq
import time

import numpy as np

from config import (
    NUM_MESSAGES, LOSS_PROB, CORRUPT_PROB, MESSAGE_INTERVAL,
    WINDOW_SIZE, SEQ_SPACE, RTT, MAX_SIMULATION_TIME, DEFAULT_TRACE
)
from src.arq.packet import Packet
from src.arq.network import Endpoint, TimerError
from src.arq.sender import SRSender, RetransmitPolicy
from src.arq.receiver import SRReceiver
from src.channel import Channel, PacketFate, BernoulliChannel, GilbertElliottChannel
from src.layers.application_layer import MessageSource, ApplicationSink, DataVerifier
from src.utils.metrics import MetricsCollector, ProtocolStats
from src.utils.logger import SimulationLogger


class EventType(Enum):
    """Types of simulation events."""
    FROM_LAYER5 = 0       # Application hands a message to the sender
    FROM_LAYER3 = 1       # Packet arrives at an endpoint
    TIMER_INTERRUPT = 2   # Endpoint timer expires


@dataclass(order=True)
class SimEvent:
    """Simulation event, ordered by time then scheduling order."""
    time: float
    order: int
    event_type: EventType = field(compare=False)
    endpoint: Endpoint = field(compare=False)
    packet: Optional[Packet] = field(compare=False, default=None)


@dataclass
class SimulatorConfig:
    """Configuration for the simulator."""
    # Application parameters
    num_messages: int = NUM_MESSAGES
    message_interval: float = MESSAGE_INTERVAL

    # Channel parameters
    loss_prob: float = LOSS_PROB
    corrupt_prob: float = CORRUPT_PROB
    channel: str = "bernoulli"  # or "gilbert"

    # Protocol parameters
    window_size: int = WINDOW_SIZE
    seq_space: int = SEQ_SPACE
    timeout: float = RTT
    policy: RetransmitPolicy = RetransmitPolicy.ALL

    # Simulation parameters
    seed: int = 42
    max_time: float = MAX_SIMULATION_TIME
    trace: int = DEFAULT_TRACE
    use_colors: bool = True

    def create_channel(self, seed: int) -> Channel:
        """Build the channel model named by self.channel."""
        if self.channel == "bernoulli":
            return BernoulliChannel(self.loss_prob, self.corrupt_prob, seed=seed)
        if self.channel == "gilbert":
            return GilbertElliottChannel(seed=seed)
        raise ValueError(f"Unknown channel model: {self.channel!r}")


class Simulator:
    """
    Main Event-Driven Simulator.

    Implements the network layer services the protocol endpoints call
    (send_packet, deliver_payload, start_timer, stop_timer) and
    dispatches events to the endpoints one at a time in time order.
    A has the forward (data) channel, B the reverse (ACK) channel.
    """

    def __init__(self, config: SimulatorConfig):
        """Initialize simulator."""
        self.config = config

        # Create logger
        self.logger = SimulationLogger(
            name="SR",
            trace=config.trace,
            use_colors=config.use_colors
        )

        # Channel models per direction
        self.channels: Dict[Endpoint, Channel] = {
            Endpoint.A: config.create_channel(config.seed),
            Endpoint.B: config.create_channel(config.seed + 1000)
        }
        self.app_rng = np.random.default_rng(config.seed + 2000)

        # Protocol endpoints share one counters record
        self.stats = ProtocolStats()
        self.sender = SRSender(
            self,
            window_size=config.window_size,
            seq_space=config.seq_space,
            timeout=config.timeout,
            policy=config.policy,
            stats=self.stats,
            logger=self.logger
        )
        self.receiver = SRReceiver(
            self,
            window_size=config.window_size,
            seq_space=config.seq_space,
            stats=self.stats,
            logger=self.logger
        )

        # Application layer
        self.source = MessageSource(config.num_messages)
        self.sink = ApplicationSink()

        # Metrics
        self.metrics = MetricsCollector()

        # Simulation state
        self.current_time = 0.0
        self.event_queue: List[SimEvent] = []
        self._event_counter = 0
        self._timers: Dict[Endpoint, SimEvent] = {}
        self._last_arrival: Dict[Endpoint, float] = {Endpoint.A: 0.0, Endpoint.B: 0.0}
        self.timed_out = False

    # ------------------------------------------------------------------
    # Network layer services
    # ------------------------------------------------------------------

    def send_packet(self, endpoint: Endpoint, packet: Packet):
        """Hand a packet from endpoint to the channel toward its peer."""
        destination = Endpoint.B if endpoint == Endpoint.A else Endpoint.A
        channel = self.channels[endpoint]

        self.metrics.record_packet_sent(is_ack=(endpoint == Endpoint.B))
        received, fate = channel.transmit(packet)

        if fate is PacketFate.LOST:
            self.metrics.record_packet_lost()
            self.logger.internal("TOLAYER3: packet being lost")
            return
        if fate is PacketFate.CORRUPTED:
            self.metrics.record_packet_corrupted()
            self.logger.internal("TOLAYER3: packet being corrupted")

        # Never earlier than the last packet already in flight toward the peer
        last = max(self.current_time, self._last_arrival[destination])
        arrival = last + channel.draw_delay()
        self._last_arrival[destination] = arrival

        self.logger.internal(f"TOLAYER3: scheduling arrival on other side at {arrival:.4f}")
        self._schedule_event(arrival, EventType.FROM_LAYER3, destination, received)

    def deliver_payload(self, endpoint: Endpoint, payload: bytes):
        """Hand a payload delivered at endpoint to the receiving application."""
        latency = self.sink.receive(payload, self.current_time)
        self.metrics.record_message_delivered(latency)
        self.logger.internal(f"TOLAYER5: data received: {payload!r}")

    def start_timer(self, endpoint: Endpoint, increment: float):
        """
        Start the logical timer of endpoint.

        Raises:
            TimerError: If the timer is already running
        """
        if endpoint in self._timers:
            raise TimerError(f"Timer of {endpoint.name} is already started")
        self.logger.internal(f"START TIMER: starting timer at {self.current_time:.4f}")
        self._timers[endpoint] = self._schedule_event(
            self.current_time + increment, EventType.TIMER_INTERRUPT, endpoint
        )

    def stop_timer(self, endpoint: Endpoint):
        """
        Stop the logical timer of endpoint, removing its pending expiry.

        Raises:
            TimerError: If the timer is not running
        """
        event = self._timers.pop(endpoint, None)
        if event is None:
            raise TimerError(f"Timer of {endpoint.name} is not running")
        self.logger.internal(f"STOP TIMER: stopping timer at {self.current_time:.4f}")
        self.event_queue.remove(event)
        heapq.heapify(self.event_queue)

    def timer_running(self, endpoint: Endpoint) -> bool:
        return endpoint in self._timers

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    def _schedule_event(
        self,
        time: float,
        event_type: EventType,
        endpoint: Endpoint,
        packet: Optional[Packet] = None
    ) -> SimEvent:
        """Schedule an event."""
        event = SimEvent(time, self._event_counter, event_type, endpoint, packet)
        self._event_counter += 1
        heapq.heappush(self.event_queue, event)
        return event

    def _schedule_next_message(self):
        """Schedule the next application message, uniform inter-arrival."""
        if self.source.exhausted:
            return
        interval = 2 * self.config.message_interval * self.app_rng.random()
        self._schedule_event(self.current_time + interval, EventType.FROM_LAYER5, Endpoint.A)

    def _handle_message(self):
        """Application hands the next message to A."""
        message = self.source.next_message()
        self._schedule_next_message()

        self.logger.internal(f"MAINLOOP: data given to student: {message.data!r}")
        accepted = self.sender.output(message)
        self.metrics.record_message_generated(accepted)
        if accepted:
            self.sink.record_accepted(message, self.current_time)

    def _handle_packet_arrival(self, event: SimEvent):
        """Packet arrives at an endpoint."""
        if event.endpoint == Endpoint.A:
            self.sender.input(event.packet)
        else:
            self.receiver.input(event.packet)

    def _handle_timer(self, event: SimEvent):
        """Timer expires at an endpoint."""
        del self._timers[event.endpoint]
        if event.endpoint == Endpoint.A:
            self.sender.timer_interrupt()
        else:
            self.receiver.timer_interrupt()

    def is_complete(self) -> bool:
        """Check if every generated message is through and acknowledged."""
        return (self.source.exhausted and
                self.sender.is_idle and
                not self.sink.expected)

    def reset(self, seed: Optional[int] = None):
        """Reset simulator."""
        if seed is not None:
            self.config.seed = seed
        self.channels[Endpoint.A].reset(self.config.seed)
        self.channels[Endpoint.B].reset(self.config.seed + 1000)
        self.app_rng = np.random.default_rng(self.config.seed + 2000)

        self.stats.reset()
        self.sender.init()
        self.receiver.init()
        self.source.reset()
        self.sink.reset()
        self.metrics.reset()

        self.current_time = 0.0
        self.event_queue.clear()
        self._event_counter = 0
        self._timers.clear()
        self._last_arrival = {Endpoint.A: 0.0, Endpoint.B: 0.0}
        self.timed_out = False

    def run(self) -> Dict:
        """Run the simulation until all traffic drains or max_time passes."""
        self.reset()
        self.logger.set_sim_time(0.0)
        self.logger.simulation_start({
            'messages': self.config.num_messages,
            'loss': self.config.loss_prob,
            'corrupt': self.config.corrupt_prob,
            'window': self.config.window_size,
            'seq_space': self.config.seq_space
        })

        self.metrics.start(0.0)
        sim_start_real = time.time()

        self._schedule_next_message()

        while self.event_queue:
            event = heapq.heappop(self.event_queue)
            if event.time > self.config.max_time:
                # Left queued so a pending timer can still be stopped on reset
                heapq.heappush(self.event_queue, event)
                self.timed_out = True
                self.logger.warning(
                    f"Simulation time limit {self.config.max_time} reached", "SIM"
                )
                break

            self.current_time = event.time
            self.logger.set_sim_time(event.time)
            self.logger.internal(
                f"EVENT time: {event.time:.4f}, type: {event.event_type.name}, "
                f"entity: {event.endpoint.name}"
            )

            if event.event_type == EventType.FROM_LAYER5:
                self._handle_message()
            elif event.event_type == EventType.FROM_LAYER3:
                self._handle_packet_arrival(event)
            elif event.event_type == EventType.TIMER_INTERRUPT:
                self._handle_timer(event)

        self.metrics.finish(self.current_time)
        sim_end_real = time.time()

        valid, verify_details = DataVerifier.verify_data(
            self.sink.accepted,
            self.sink.delivered
        )
        if not valid and not self.timed_out:
            self.logger.error(
                f"Delivered stream does not match accepted messages "
                f"(accepted {verify_details['accepted_count']}, "
                f"delivered {verify_details['delivered_count']}, "
                f"first mismatch {verify_details['first_mismatch']})",
                "SIM"
            )

        metrics_summary = self.metrics.get_summary(self.stats)
        self.logger.simulation_end(metrics_summary)

        return {
            'config': {
                'num_messages': self.config.num_messages,
                'loss_prob': self.config.loss_prob,
                'corrupt_prob': self.config.corrupt_prob,
                'channel': self.config.channel,
                'window_size': self.config.window_size,
                'seq_space': self.config.seq_space,
                'timeout': self.config.timeout,
                'policy': self.config.policy.value,
                'seed': self.config.seed
            },
            'stats': self.stats.as_dict(),
            'metrics': metrics_summary,
            'channels': {
                'forward': self.channels[Endpoint.A].get_statistics(),
                'reverse': self.channels[Endpoint.B].get_statistics()
            },
            'verification': {'valid': valid, **verify_details},
            'real_time': sim_end_real - sim_start_real,
            'simulation_time': self.current_time,
            'complete': self.is_complete(),
            'timed_out': self.timed_out
        }
