"""
Configuration file for the Selective Repeat ARQ Simulator.
Contains the session constants shared by both endpoints and the
baseline parameters of the channel emulator and batch sweeps.
"""

import os

# =============================================================================
# PROTOCOL PARAMETERS
# =============================================================================

# Maximum number of buffered, unacknowledged packets
WINDOW_SIZE = 6

# Sequence number modulus (must be at least WINDOW_SIZE + 1)
SEQ_SPACE = 7

# Retransmission timeout (simulated time units)
RETRANSMIT_TIMEOUT = 16.0

# Sentinel for header fields that carry no value
NOT_IN_USE = -1

# Fixed payload length of every message and packet (bytes)
PAYLOAD_SIZE = 20

# Wire layout: seqnum, acknum, checksum (int32 each) + payload
PACKET_FORMAT = f'!iii{PAYLOAD_SIZE}s'

# =============================================================================
# CHANNEL EMULATOR PARAMETERS
# =============================================================================

# One-way delay = MIN_CHANNEL_DELAY + CHANNEL_DELAY_SPREAD * U(0, 1)
MIN_CHANNEL_DELAY = 1.0
CHANNEL_DELAY_SPREAD = 9.0

# Default loss and corruption probabilities
LOSS_PROBABILITY = 0.0
CORRUPT_PROBABILITY = 0.0

# Which field a corruption event hits
CORRUPT_PAYLOAD_FRACTION = 0.75    # first payload byte overwritten
CORRUPT_SEQNUM_FRACTION = 0.125    # seqnum overwritten, rest hit acknum
CORRUPT_PAYLOAD_BYTE = ord('Z')
CORRUPTED_FIELD_VALUE = 999999

# =============================================================================
# APPLICATION LAYER PARAMETERS
# =============================================================================

# Mean time between messages handed down by the sending application
MESSAGE_INTERVAL = 10.0

# Messages generated per simulation
NUM_MESSAGES = 20

# =============================================================================
# PARAMETER SWEEP CONFIGURATION
# =============================================================================

LOSS_PROBABILITIES = [0.0, 0.1, 0.2, 0.3]
CORRUPT_PROBABILITIES = [0.0, 0.1, 0.2, 0.3]

# Number of simulation runs per (loss, corruption) pair
RUNS_PER_CONFIGURATION = 5

# Messages per sweep run
SWEEP_NUM_MESSAGES = 200

# =============================================================================
# SIMULATION SETTINGS
# =============================================================================

# Default RNG seed base (actual seed = base + run offset)
RNG_SEED_BASE = 42

# Simulation time limit - failsafe against livelock under ack loss
MAX_SIMULATION_TIME = 100_000.0

# Logging verbosity levels
LOG_LEVEL_DEBUG = 0
LOG_LEVEL_INFO = 1
LOG_LEVEL_WARNING = 2
LOG_LEVEL_ERROR = 3

DEFAULT_LOG_LEVEL = LOG_LEVEL_INFO

# =============================================================================
# OUTPUT PATHS
# =============================================================================

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.path.join(BASE_DIR, "data")
OUTPUT_DIR = os.path.join(DATA_DIR, "output")
PLOTS_DIR = os.path.join(OUTPUT_DIR, "plots")

# Results CSV filename
RESULTS_CSV = os.path.join(OUTPUT_DIR, "results.csv")

# =============================================================================
# DERIVED PARAMETERS
# =============================================================================

def calculate_min_sequence_space(window_size):
    """Smallest sequence space the endpoints accept for a window size."""
    return window_size + 1


def calculate_safe_sequence_space(window_size):
    """
    Smallest sequence space that keeps a stale retransmission from
    aliasing a fresh sequence number at the receiver, even when every
    acknowledgment of a full window is lost.
    """
    return 2 * window_size


def calculate_mean_rtt():
    """Mean round-trip time of an idle channel (data + ack)."""
    return 2 * (MIN_CHANNEL_DELAY + CHANNEL_DELAY_SPREAD / 2)


def calculate_max_rtt(window_size):
    """
    Upper bound on the round-trip time when nothing is lost.

    Each direction queues at most window_size packets ahead of a new one,
    and every packet takes at most MIN_CHANNEL_DELAY + CHANNEL_DELAY_SPREAD.
    A timeout above this bound never fires on a clean channel; the default
    RETRANSMIT_TIMEOUT is below it, so bursts cause early retransmissions.
    """
    return 2 * window_size * (MIN_CHANNEL_DELAY + CHANNEL_DELAY_SPREAD)


# Sequence space used by the simulator, sweep and CLI. The endpoints accept
# anything from WINDOW_SIZE + 1, but early retransmissions alias below this.
SIMULATION_SEQ_SPACE = calculate_safe_sequence_space(WINDOW_SIZE)


# Print configuration summary
if __name__ == "__main__":
    print("=" * 60)
    print("SELECTIVE REPEAT ARQ SIMULATOR - CONFIGURATION")
    print("=" * 60)
    print(f"\nProtocol:")
    print(f"  Window Size: {WINDOW_SIZE}")
    print(f"  Sequence Space: {SEQ_SPACE}")
    print(f"  Simulation Sequence Space: {SIMULATION_SEQ_SPACE}")
    print(f"  Retransmit Timeout: {RETRANSMIT_TIMEOUT}")
    print(f"  Payload Size: {PAYLOAD_SIZE} bytes")

    print(f"\nChannel:")
    print(f"  Delay: {MIN_CHANNEL_DELAY} + {CHANNEL_DELAY_SPREAD} * U(0,1)")
    print(f"  Mean RTT: {calculate_mean_rtt():.1f}")
    print(f"  Max RTT (clean, full window): {calculate_max_rtt(WINDOW_SIZE):.1f}")
    print(f"  Loss: {LOSS_PROBABILITY}, Corruption: {CORRUPT_PROBABILITY}")

    print(f"\nParameter Sweep:")
    print(f"  Loss Probabilities: {LOSS_PROBABILITIES}")
    print(f"  Corruption Probabilities: {CORRUPT_PROBABILITIES}")
    print(f"  Runs per config: {RUNS_PER_CONFIGURATION}")
    print(f"  Total simulations: "
          f"{len(LOSS_PROBABILITIES) * len(CORRUPT_PROBABILITIES) * RUNS_PER_CONFIGURATION}")
