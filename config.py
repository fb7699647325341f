"""
Configuration file for the Selective Repeat ARQ Emulator.
Contains the protocol constants and the baseline emulator parameters.
"""

import os

# =============================================================================
# PROTOCOL PARAMETERS
# =============================================================================

# Maximum number of buffered, unacknowledged packets
WINDOW_SIZE = 6

# Sequence number space (must be at least 2 * WINDOW_SIZE for SR)
SEQ_SPACE = 12

# Retransmission timeout (simulated time units)
RTT = 16.0

# Fixed payload length of every message and packet (bytes)
PAYLOAD_SIZE = 20

# Value placed in header fields that are not being used
NOT_IN_USE = -1

# =============================================================================
# EMULATOR PARAMETERS
# =============================================================================

# Number of messages the application layer hands to the sender
NUM_MESSAGES = 100

# Per-packet loss / corruption probabilities
LOSS_PROB = 0.0
CORRUPT_PROB = 0.0

# Mean time between messages from the application layer
MESSAGE_INTERVAL = 10.0

# One-way delay = MIN_PROPAGATION_DELAY + U(0, PROPAGATION_JITTER)
MIN_PROPAGATION_DELAY = 1.0
PROPAGATION_JITTER = 9.0

# Value written into a header field when the channel corrupts it
CORRUPTED_FIELD_VALUE = 999999

# Simulation time limit - failsafe
MAX_SIMULATION_TIME = 1_000_000.0

# =============================================================================
# GILBERT-ELLIOTT BURST CHANNEL PARAMETERS
# =============================================================================

# Per-packet impairment probabilities in each state
GOOD_STATE_LOSS = 0.01
GOOD_STATE_CORRUPT = 0.01
BAD_STATE_LOSS = 0.3
BAD_STATE_CORRUPT = 0.3

# State transition probabilities (evaluated once per packet)
P_GOOD_TO_BAD = 0.05
P_BAD_TO_GOOD = 0.3

# =============================================================================
# PARAMETER SWEEP CONFIGURATION
# =============================================================================

LOSS_PROBS = [0.0, 0.1, 0.2, 0.3, 0.4]
CORRUPT_PROBS = [0.0, 0.1, 0.2, 0.3, 0.4]

# Number of simulation runs per (loss, corruption) pair
RUNS_PER_CONFIGURATION = 5

# Default RNG seed base (actual seed = base + run_id)
RNG_SEED_BASE = 42

# =============================================================================
# TRACE / LOG LEVELS
# =============================================================================

# Trace verbosity: 0 = silent, 1 = protocol events, 2 = protocol detail,
# 3 = emulator internals
DEFAULT_TRACE = 0

LOG_LEVEL_DEBUG = 0
LOG_LEVEL_INFO = 1
LOG_LEVEL_WARNING = 2
LOG_LEVEL_ERROR = 3

DEFAULT_LOG_LEVEL = LOG_LEVEL_WARNING

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

def validate_window(window_size, seq_space):
    """
    Check a window / sequence space pair.

    Selective Repeat needs seq_space >= 2 * window_size, otherwise a
    retransmitted old packet is indistinguishable from a new one after
    wraparound.
    """
    if window_size < 1:
        raise ValueError(f"Window size must be positive, got {window_size}")
    if seq_space < 2 * window_size:
        raise ValueError(
            f"Sequence space {seq_space} must be at least twice "
            f"the window size {window_size}"
        )


def calculate_mean_one_way_delay():
    """Mean one-way channel delay on an otherwise idle link."""
    return MIN_PROPAGATION_DELAY + PROPAGATION_JITTER / 2


def calculate_steady_state_probabilities():
    """
    Calculate steady-state probabilities for Good and Bad states.
    π_G = P(B→G) / (P(G→B) + P(B→G))
    π_B = P(G→B) / (P(G→B) + P(B→G))
    """
    sum_transitions = P_GOOD_TO_BAD + P_BAD_TO_GOOD
    pi_good = P_BAD_TO_GOOD / sum_transitions
    pi_bad = P_GOOD_TO_BAD / sum_transitions
    return pi_good, pi_bad


# Print configuration summary
if __name__ == "__main__":
    print("=" * 60)
    print("SELECTIVE REPEAT ARQ EMULATOR - CONFIGURATION")
    print("=" * 60)
    print(f"\nProtocol:")
    print(f"  Window Size: {WINDOW_SIZE}")
    print(f"  Sequence Space: {SEQ_SPACE}")
    print(f"  Timeout: {RTT}")
    print(f"  Payload Size: {PAYLOAD_SIZE} bytes")

    print(f"\nEmulator:")
    print(f"  Messages: {NUM_MESSAGES}")
    print(f"  Loss Probability: {LOSS_PROB}")
    print(f"  Corruption Probability: {CORRUPT_PROB}")
    print(f"  Mean Message Interval: {MESSAGE_INTERVAL}")
    print(f"  Mean One-way Delay: {calculate_mean_one_way_delay()}")

    pi_good, pi_bad = calculate_steady_state_probabilities()
    print(f"\nGilbert-Elliott Model:")
    print(f"  Steady-state P(Good): {pi_good:.4f}")
    print(f"  Steady-state P(Bad): {pi_bad:.4f}")

    print(f"\nParameter Sweep:")
    print(f"  Loss Probabilities: {LOSS_PROBS}")
    print(f"  Corruption Probabilities: {CORRUPT_PROBS}")
    print(f"  Runs per config: {RUNS_PER_CONFIGURATION}")
    print(f"  Total simulations: {len(LOSS_PROBS) * len(CORRUPT_PROBS) * RUNS_PER_CONFIGURATION}")
