"""
Unit tests for the endpoint timer.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sr_arq.arq.timer import EndpointTimer, TimerState
from sr_arq.utils.logger import SimulationLogger, LogLevel


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduled():
    return []


@pytest.fixture
def timer(clock, scheduled):
    logger = SimulationLogger(level=LogLevel.OFF, use_colors=False)
    return EndpointTimer("A", clock, scheduled.append, logger=logger)


class TestEndpointTimer:
    """Tests for EndpointTimer."""

    def test_start_schedules_alarm(self, timer, clock, scheduled):
        clock.now = 5.0
        timer.start(16.0)

        assert timer.is_running
        assert len(scheduled) == 1
        assert scheduled[0].expiry_time == 21.0
        assert scheduled[0].endpoint == "A"

    def test_current_alarm_expires(self, timer, scheduled):
        timer.start(16.0)

        assert timer.expire(scheduled[0])
        assert timer.state == TimerState.EXPIRED
        assert not timer.is_running

    def test_stop_is_idempotent(self, timer):
        """Stopping an idle timer is a harmless no-op."""
        timer.stop()
        timer.stop()
        assert timer.state == TimerState.STOPPED

        timer.start(16.0)
        timer.stop()
        timer.stop()

        assert not timer.is_running
        assert timer.get_statistics()['timers_stopped'] == 1

    def test_stopped_alarm_is_ignored(self, timer, scheduled):
        timer.start(16.0)
        timer.stop()

        assert not timer.expire(scheduled[0])

    def test_stale_alarm_after_restart_is_ignored(self, timer, scheduled, clock):
        """An alarm from before a stop/start pair does not fire the new one."""
        timer.start(16.0)
        clock.now = 4.0
        timer.stop()
        timer.start(16.0)

        assert not timer.expire(scheduled[0])
        assert timer.is_running
        assert timer.expire(scheduled[1])

    def test_start_while_running_is_ignored(self, timer, scheduled):
        timer.start(16.0)
        timer.start(16.0)

        assert len(scheduled) == 1
        assert timer.get_statistics()['timers_started'] == 1

    def test_reset_invalidates_pending_alarm(self, timer, scheduled):
        timer.start(16.0)
        timer.reset()

        assert not timer.expire(scheduled[0])
        assert timer.get_statistics() == {
            'timers_started': 0, 'timers_stopped': 0, 'timeouts': 0
        }


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
