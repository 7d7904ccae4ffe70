"""
Endpoint Timer for Selective Repeat ARQ

This module provides the single pending-alarm slot each endpoint owns.
The sender emulates per-packet timers on top of this one alarm by
retransmitting every unacknowledged packet whenever it fires.
"""

from dataclasses import dataclass, field
from typing import Optional, Callable
from enum import Enum

from ..utils.logger import SimulationLogger, get_logger


class TimerState(Enum):
    """Timer state enumeration."""
    STOPPED = 0
    RUNNING = 1
    EXPIRED = 2


@dataclass(order=True)
class TimerEvent:
    """Alarm handed to the event scheduler."""
    expiry_time: float
    endpoint: str = field(compare=False)
    generation: int = field(compare=False)  # To invalidate stopped alarms


class EndpointTimer:
    """
    Single alarm slot for one endpoint.

    Starting schedules a TimerEvent through the scheduler callback.
    Stopping does not remove that event; the scheduler hands it back
    through expire(), which ignores it once the generation has moved on.

    Attributes:
        endpoint: Name of the owning endpoint ("A" or "B")
        state: Current timer state
        generation: Incremented on every start
    """

    def __init__(
        self,
        endpoint: str,
        clock: Callable[[], float],
        schedule: Callable[[TimerEvent], None],
        logger: Optional[SimulationLogger] = None
    ):
        """
        Initialize endpoint timer.

        Args:
            endpoint: Owning endpoint name
            clock: Returns the current simulation time
            schedule: Receives each alarm to deliver at its expiry time
            logger: Logger for misuse warnings (global logger if None)
        """
        self.endpoint = endpoint
        self.clock = clock
        self.schedule = schedule
        self.logger = logger or get_logger()

        self.state = TimerState.STOPPED
        self.generation = 0
        self.expiry_time: Optional[float] = None

        # Statistics
        self.total_started = 0
        self.total_stopped = 0
        self.total_expired = 0

    @property
    def is_running(self) -> bool:
        return self.state == TimerState.RUNNING

    def start(self, duration: float):
        """
        Arm the alarm.

        Starting a running timer is not a defined input; it is reported
        and ignored, leaving the pending alarm untouched.
        """
        if self.is_running:
            self.logger.warning(
                f"Attempt to start timer {self.endpoint} while already running",
                "TIMER"
            )
            return

        self.generation += 1
        self.state = TimerState.RUNNING
        self.expiry_time = self.clock() + duration
        self.total_started += 1

        self.schedule(TimerEvent(
            expiry_time=self.expiry_time,
            endpoint=self.endpoint,
            generation=self.generation
        ))

    def stop(self):
        """Cancel the pending alarm. Stopping an idle timer is a no-op."""
        if not self.is_running:
            return
        self.state = TimerState.STOPPED
        self.expiry_time = None
        self.total_stopped += 1

    def expire(self, event: TimerEvent) -> bool:
        """
        Deliver an alarm popped from the event queue.

        Returns:
            True if the alarm is current and the owner must handle it
        """
        if event.generation != self.generation or not self.is_running:
            return False

        self.state = TimerState.EXPIRED
        self.expiry_time = None
        self.total_expired += 1
        return True

    def reset(self):
        """Reset timer to initial state (generation keeps counting)."""
        self.state = TimerState.STOPPED
        self.expiry_time = None
        self.total_started = 0
        self.total_stopped = 0
        self.total_expired = 0

    def get_statistics(self) -> dict:
        """Get timer statistics."""
        return {
            'timers_started': self.total_started,
            'timers_stopped': self.total_stopped,
            'timeouts': self.total_expired
        }
