"""
Main Simulator - Event-Driven Network Simulation

This module implements the discrete-event engine that connects the sending
application, the SR sender, both channel directions, the SR receiver and
the receiving application, and runs a complete transfer.
"""

from typing import Optional, Dict, List
from dataclasses import dataclass, field, asdict
from enum import Enum
import heapq
import itertools
import time

from config import (
    WINDOW_SIZE, SIMULATION_SEQ_SPACE, RETRANSMIT_TIMEOUT,
    NUM_MESSAGES, MESSAGE_INTERVAL,
    LOSS_PROBABILITY, CORRUPT_PROBABILITY,
    RNG_SEED_BASE, MAX_SIMULATION_TIME
)
from sr_arq.arq.packet import Packet
from sr_arq.arq.sender import SRSender
from sr_arq.arq.receiver import SRReceiver
from sr_arq.arq.timer import EndpointTimer, TimerEvent
from sr_arq.channel.emulator import UnreliableChannel
from sr_arq.layers.application_layer import MessageSource, DeliverySink, DataVerifier
from sr_arq.utils.metrics import MetricsCollector
from sr_arq.utils.logger import SimulationLogger, LogLevel


class EventType(Enum):
    """Types of simulation events."""
    MESSAGE_ARRIVAL = 0   # Application hands a message to the sender
    DATA_ARRIVAL = 1      # Data packet arrives at the receiver
    ACK_ARRIVAL = 2       # ACK arrives at the sender
    TIMER_INTERRUPT = 3   # Sender's alarm fires


@dataclass(order=True)
class SimEvent:
    """Simulation event. Equal times are processed in scheduling order."""
    time: float
    order: int
    event_type: EventType = field(compare=False)
    data: dict = field(compare=False, default_factory=dict)


@dataclass
class SimulatorConfig:
    """Configuration for the simulator."""
    # ARQ parameters
    window_size: int = WINDOW_SIZE
    seq_space: int = SIMULATION_SEQ_SPACE
    timeout: float = RETRANSMIT_TIMEOUT
    ack_stale_duplicates: bool = False

    # Application parameters
    num_messages: int = NUM_MESSAGES
    message_interval: float = MESSAGE_INTERVAL

    # Channel parameters
    loss_prob: float = LOSS_PROBABILITY
    corrupt_prob: float = CORRUPT_PROBABILITY

    # Simulation parameters
    seed: int = RNG_SEED_BASE
    max_time: float = MAX_SIMULATION_TIME
    log_level: int = LogLevel.WARNING
    log_file: Optional[str] = None


class Simulator:
    """
    Main Event-Driven Simulator.

    Uses one channel model per direction: forward (data, A to B) and
    reverse (ACKs, B to A). Only the sender owns a timer.
    """

    def __init__(self, config: SimulatorConfig):
        """Initialize simulator."""
        self.config = config

        self.logger = SimulationLogger(
            name="Sim",
            level=config.log_level,
            log_file=config.log_file
        )

        self.forward_channel = UnreliableChannel(
            loss_prob=config.loss_prob,
            corrupt_prob=config.corrupt_prob,
            seed=config.seed
        )
        self.reverse_channel = UnreliableChannel(
            loss_prob=config.loss_prob,
            corrupt_prob=config.corrupt_prob,
            seed=config.seed + 1000
        )

        self.source = MessageSource(
            interval=config.message_interval,
            count=config.num_messages,
            seed=config.seed + 2000
        )
        self.sink = DeliverySink()

        self.sender_timer = EndpointTimer(
            endpoint="A",
            clock=lambda: self.current_time,
            schedule=self._schedule_timer,
            logger=self.logger
        )

        self.sender = SRSender(
            transmit=self._to_receiver,
            timer=self.sender_timer,
            window_size=config.window_size,
            seq_space=config.seq_space,
            timeout=config.timeout,
            on_retransmit=lambda packet: self.metrics.record_retransmission(),
            logger=self.logger
        )

        self.receiver = SRReceiver(
            transmit=self._to_sender,
            deliver=self._to_application,
            window_size=config.window_size,
            seq_space=config.seq_space,
            ack_stale_duplicates=config.ack_stale_duplicates,
            logger=self.logger
        )

        self.metrics = MetricsCollector()

        # Simulation state
        self.current_time = 0.0
        self.event_queue: List[SimEvent] = []
        self._order = itertools.count()

        # Payloads accepted by the sender, in submission order
        self.accepted: List[bytes] = []

    def _schedule_event(self, time: float, event_type: EventType, data: dict = None):
        """Schedule an event."""
        event = SimEvent(time=time, order=next(self._order),
                         event_type=event_type, data=data or {})
        heapq.heappush(self.event_queue, event)

    def _schedule_timer(self, timer_event: TimerEvent):
        self._schedule_event(timer_event.expiry_time, EventType.TIMER_INTERRUPT,
                             {'timer_event': timer_event})

    def _to_receiver(self, packet: Packet):
        """Sender's transmit hook: forward channel."""
        self.metrics.record_data_sent()
        outcome = self.forward_channel.send(packet, self.current_time)
        if outcome.lost:
            self.metrics.record_packet_lost()
            self.logger.debug(f"Packet {packet.seqnum} lost", "CHANNEL")
            return
        if outcome.corrupted:
            self.metrics.record_packet_corrupted()
        self._schedule_event(outcome.arrival_time, EventType.DATA_ARRIVAL,
                             {'packet': outcome.packet})

    def _to_sender(self, packet: Packet):
        """Receiver's transmit hook: reverse channel."""
        self.metrics.record_ack_sent()
        outcome = self.reverse_channel.send(packet, self.current_time)
        if outcome.lost:
            self.metrics.record_packet_lost()
            self.logger.debug(f"ACK {packet.acknum} lost", "CHANNEL")
            return
        if outcome.corrupted:
            self.metrics.record_packet_corrupted()
        self._schedule_event(outcome.arrival_time, EventType.ACK_ARRIVAL,
                             {'packet': outcome.packet})

    def _to_application(self, payload: bytes):
        """Receiver's deliver hook."""
        self.sink.receive(payload, self.current_time)
        self.metrics.record_message_delivered(self.current_time)

    def _handle_message_arrival(self):
        message = self.source.next_message()
        if message is None:
            return
        if not self.source.exhausted:
            self._schedule_event(self.current_time + self.source.next_interval(),
                                 EventType.MESSAGE_ARRIVAL)

        self.metrics.record_message_generated()
        if self.sender.submit(message):
            self.accepted.append(message.data)
            self.metrics.record_message_accepted(self.current_time)
        else:
            self.metrics.record_window_full()

    def _handle_data_arrival(self, event_data: dict):
        self.receiver.on_packet(event_data['packet'])

    def _handle_ack_arrival(self, event_data: dict):
        self.metrics.record_ack_received()
        self.sender.on_ack(event_data['packet'])

    def _handle_timer_interrupt(self, event_data: dict):
        if self.sender_timer.expire(event_data['timer_event']):
            self.sender.on_timeout()

    def _is_complete(self) -> bool:
        """Check if every generated message was delivered or dropped."""
        return (self.source.exhausted and
                self.sink.count == len(self.accepted) and
                self.sender.is_idle())

    def run(self) -> Dict:
        """Run the simulation."""
        self.reset()

        self.logger.set_sim_time(0.0)
        self.logger.simulation_start({
            'window': self.config.window_size,
            'seqspace': self.config.seq_space,
            'loss': self.config.loss_prob,
            'corrupt': self.config.corrupt_prob,
            'messages': self.config.num_messages
        })

        self.metrics.start(0.0)
        sim_start_real = time.time()

        if self.config.num_messages > 0:
            self._schedule_event(self.source.next_interval(), EventType.MESSAGE_ARRIVAL)

        time_limit_reached = False
        while self.event_queue:
            event = heapq.heappop(self.event_queue)
            if event.time > self.config.max_time:
                self.logger.warning(
                    f"Simulation time limit {self.config.max_time} reached", "SIM"
                )
                time_limit_reached = True
                break

            self.current_time = event.time
            self.logger.set_sim_time(self.current_time)

            if event.event_type == EventType.MESSAGE_ARRIVAL:
                self._handle_message_arrival()
            elif event.event_type == EventType.DATA_ARRIVAL:
                self._handle_data_arrival(event.data)
            elif event.event_type == EventType.ACK_ARRIVAL:
                self._handle_ack_arrival(event.data)
            elif event.event_type == EventType.TIMER_INTERRUPT:
                self._handle_timer_interrupt(event.data)

        self.metrics.finish(self.current_time)
        sim_end_real = time.time()

        valid, verify_details = DataVerifier.verify_sequence(
            self.accepted, self.sink.payloads
        )

        metrics_summary = self.metrics.get_summary()
        self.logger.simulation_end(metrics_summary)

        return {
            'config': asdict(self.config),
            'metrics': metrics_summary,
            'sender': self.sender.get_statistics(),
            'receiver': self.receiver.get_statistics(),
            'forward_channel': self.forward_channel.get_statistics(),
            'reverse_channel': self.reverse_channel.get_statistics(),
            'verification': {'valid': valid, **verify_details},
            'real_time': sim_end_real - sim_start_real,
            'simulation_time': self.current_time,
            'time_limit_reached': time_limit_reached,
            'complete': self._is_complete()
        }

    def reset(self, seed: Optional[int] = None):
        """Reset simulator."""
        if seed is not None:
            self.config.seed = seed
        self.current_time = 0.0
        self.event_queue.clear()
        self._order = itertools.count()
        self.accepted = []

        self.sender.reset()
        self.sender_timer.reset()
        self.receiver.reset()
        self.forward_channel.reset(self.config.seed)
        self.reverse_channel.reset(self.config.seed + 1000)
        self.source.reset(self.config.seed + 2000)
        self.sink.reset()
        self.metrics.reset()


if __name__ == "__main__":
    print("=" * 60)
    print("SIMULATOR TEST")
    print("=" * 60)

    config = SimulatorConfig(
        num_messages=50,
        loss_prob=0.1,
        corrupt_prob=0.1,
        seq_space=2 * WINDOW_SIZE,
        ack_stale_duplicates=True,
        log_level=LogLevel.INFO
    )

    sim = Simulator(config)
    results = sim.run()

    print(f"\nComplete: {results['complete']}")
    print(f"Data valid: {results['verification']['valid']}")
    print(f"Simulation time: {results['simulation_time']:.2f}")
    print(f"Retransmissions: {results['metrics']['retransmissions']}")
