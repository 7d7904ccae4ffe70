"""
Simulation Logger

This module provides logging for the simulation: level-filtered, stamped
with simulated time, optionally colored and optionally mirrored to a file.
Protocol components log through the event helpers at the bottom of
SimulationLogger rather than formatting their own messages.
"""

from typing import Optional, TextIO
from datetime import datetime
from enum import IntEnum
import os

from config import DEFAULT_LOG_LEVEL


class LogLevel(IntEnum):
    """Log level enumeration. OFF suppresses every message."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    OFF = 4


class SimulationLogger:
    """
    Logger for simulation events.

    Attributes:
        name: Logger name, shown in every line
        level: Minimum level that is emitted
        sim_time: Simulated time stamped on each line (wall clock if None)
        message_counts: Emitted messages per level
    """

    COLORS = {
        LogLevel.DEBUG: '\033[36m',     # Cyan
        LogLevel.INFO: '\033[32m',      # Green
        LogLevel.WARNING: '\033[33m',   # Yellow
        LogLevel.ERROR: '\033[31m',     # Red
    }
    RESET = '\033[0m'

    def __init__(
        self,
        name: str = "Simulator",
        level: int = DEFAULT_LOG_LEVEL,
        log_file: Optional[str] = None,
        use_colors: bool = True
    ):
        """
        Initialize logger.

        Args:
            name: Logger name
            level: Minimum log level
            log_file: Optional file path; lines are written there uncolored
            use_colors: Use ANSI colors on the console
        """
        self.name = name
        self.level = level
        self.use_colors = use_colors

        self.file: Optional[TextIO] = None
        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            self.file = open(log_file, 'w')

        self.sim_time: Optional[float] = None
        self.message_counts = {level: 0 for level in LogLevel if level != LogLevel.OFF}

    def set_sim_time(self, time: float):
        """Set current simulation time for log messages."""
        self.sim_time = time

    def _stamp(self) -> str:
        if self.sim_time is not None:
            return f"[{self.sim_time:10.4f}]"
        return f"[{datetime.now().strftime('%H:%M:%S.%f')[:-3]}]"

    def _format(self, level: LogLevel, message: str, category: Optional[str], colored: bool) -> str:
        level_str = level.name.ljust(7)
        if colored:
            level_str = f"{self.COLORS[level]}{level_str}{self.RESET}"
        tag = f" [{category}]" if category else ""
        return f"{self._stamp()} {level_str} [{self.name}]{tag} {message}"

    def _log(self, level: LogLevel, message: str, category: Optional[str] = None):
        if level < self.level:
            return

        self.message_counts[level] += 1
        print(self._format(level, message, category, self.use_colors))

        if self.file:
            self.file.write(self._format(level, message, category, False) + '\n')
            self.file.flush()

    def debug(self, message: str, category: Optional[str] = None):
        self._log(LogLevel.DEBUG, message, category)

    def info(self, message: str, category: Optional[str] = None):
        self._log(LogLevel.INFO, message, category)

    def warning(self, message: str, category: Optional[str] = None):
        self._log(LogLevel.WARNING, message, category)

    def error(self, message: str, category: Optional[str] = None):
        self._log(LogLevel.ERROR, message, category)

    # Protocol events
    def packet_sent(self, seqnum: int, checksum: int):
        self.debug(f"Packet {seqnum} sent, checksum={checksum}", "TX")

    def packet_received(self, seqnum: int, valid: bool):
        status = "OK" if valid else "CORRUPTED"
        self.debug(f"Packet {seqnum} received, {status}", "RX")

    def ack_sent(self, ack_num: int):
        self.debug(f"ACK {ack_num} sent", "ACK")

    def ack_received(self, ack_num: int, valid: bool = True):
        status = "" if valid else " (corrupted)"
        self.debug(f"ACK {ack_num} received{status}", "ACK")

    def timeout(self, outstanding: int):
        self.info(f"Timeout, {outstanding} unacknowledged packet(s) outstanding", "TIMEOUT")

    def retransmit(self, seqnum: int):
        self.info(f"Retransmitting packet {seqnum}", "RETX")

    def window_full(self, base: int, next_seq: int):
        """A submission was dropped; logged as a warning."""
        self.warning(f"Window full (base={base}, next={next_seq}), message dropped", "WINDOW")

    def window_update(self, base: int, next_seq: int, size: int):
        self.debug(f"Window: base={base}, next={next_seq}, size={size}", "WINDOW")

    def delivered(self, seqnum: int, payload: bytes):
        self.debug(f"Delivered {seqnum}: {payload!r}", "DELIVER")

    def simulation_start(self, params: dict):
        param_str = ", ".join(f"{k}={v}" for k, v in params.items())
        self.info(f"Simulation started: {param_str}", "SIM")

    def simulation_end(self, metrics: dict):
        self.info(
            f"Simulation ended: delivered={metrics.get('messages_delivered', 0)}, "
            f"retransmissions={metrics.get('retransmissions', 0)}",
            "SIM"
        )

    def close(self):
        """Close log file if open."""
        if self.file:
            self.file.close()
            self.file = None

    def __del__(self):
        self.close()


# Global logger instance
_global_logger: Optional[SimulationLogger] = None


def get_logger() -> SimulationLogger:
    """Get global logger instance."""
    global _global_logger
    if _global_logger is None:
        _global_logger = SimulationLogger()
    return _global_logger


def set_logger(logger: SimulationLogger):
    """Set global logger instance."""
    global _global_logger
    _global_logger = logger
