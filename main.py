#!/usr/bin/env python3
"""
Selective Repeat ARQ Protocol Simulator - Main Entry Point

This is the main CLI interface for the ARQ protocol simulator.
It provides options for:
- Single simulation runs
- Loss x corruption parameter sweep
- Visualization generation

Usage:
    python main.py --single --loss 0.1 --corrupt 0.1
    python main.py --sweep --runs 10
    python main.py --visualize --csv results.csv
"""

import argparse
import os
import sys
import time

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import (
    WINDOW_SIZE, SIMULATION_SEQ_SPACE, RETRANSMIT_TIMEOUT, NUM_MESSAGES, MESSAGE_INTERVAL,
    LOSS_PROBABILITY, CORRUPT_PROBABILITY, RNG_SEED_BASE,
    RUNS_PER_CONFIGURATION, SWEEP_NUM_MESSAGES, RESULTS_CSV, PLOTS_DIR,
    calculate_safe_sequence_space
)


def run_single_simulation(args):
    """Run a single simulation with specified parameters."""
    from simulation.simulator import Simulator, SimulatorConfig
    from sr_arq.utils.logger import LogLevel

    config = SimulatorConfig(
        window_size=args.window,
        seq_space=args.seqspace,
        timeout=args.timeout,
        ack_stale_duplicates=args.ack_stale,
        num_messages=args.messages,
        message_interval=args.interval,
        loss_prob=args.loss,
        corrupt_prob=args.corrupt,
        seed=args.seed,
        log_level=LogLevel.DEBUG if args.verbose else LogLevel.WARNING,
        log_file=args.log_file
    )

    print("=" * 60)
    print("SELECTIVE REPEAT ARQ SIMULATOR")
    print("=" * 60)
    print(f"\nConfiguration:")
    print(f"  Window size: {config.window_size}")
    print(f"  Sequence space: {config.seq_space}")
    print(f"  Timeout: {config.timeout}")
    print(f"  Messages: {config.num_messages} (mean interval {config.message_interval})")
    print(f"  Loss / corruption: {config.loss_prob} / {config.corrupt_prob}")
    print(f"  Stale re-ACK: {config.ack_stale_duplicates}")
    print(f"  Seed: {config.seed}")

    print("\nRunning simulation...")

    sim = Simulator(config)
    start_time = time.time()
    results = sim.run()
    elapsed = time.time() - start_time

    print("\n" + "=" * 60)
    print("RESULTS")
    print("=" * 60)

    print(f"\nTransfer Status:")
    print(f"  Complete: {results['complete']}")
    print(f"  Data Valid: {results['verification']['valid']}")
    print(f"  Simulation Time: {results['simulation_time']:.2f}")
    print(f"  Real Time: {elapsed:.2f} s")

    metrics = results['metrics']
    print(f"\nPerformance Metrics:")
    print(f"  Throughput: {metrics['throughput']:.4f} messages/time unit")
    print(f"  Efficiency: {metrics['efficiency'] * 100:.2f}%")
    print(f"  Drop rate (window full): {metrics['drop_rate'] * 100:.2f}%")

    print(f"\nPacket Statistics:")
    print(f"  Messages accepted: {metrics['messages_accepted']}")
    print(f"  Messages delivered: {metrics['messages_delivered']}")
    print(f"  Data packets sent: {metrics['data_packets_sent']}")
    print(f"  Retransmissions: {metrics['retransmissions']}")
    print(f"  Packets lost: {metrics['packets_lost']}")
    print(f"  Packets corrupted: {metrics['packets_corrupted']}")

    if metrics['latency']['samples'] > 0:
        print(f"\nDelivery Latency:")
        print(f"  Mean: {metrics['latency']['mean']:.2f}")
        print(f"  Min: {metrics['latency']['min']:.2f}")
        print(f"  Max: {metrics['latency']['max']:.2f}")

    return results


def run_parameter_sweep(args):
    """Run the loss x corruption sweep."""
    from simulation.runner import BatchRunner

    print("=" * 60)
    print("PARAMETER SWEEP")
    print("=" * 60)

    if args.quick:
        loss_probs = [0.0, 0.2]
        corrupt_probs = [0.0, 0.2]
        runs = 2
        num_messages = 50
    else:
        loss_probs = None
        corrupt_probs = None
        runs = args.runs
        num_messages = args.messages if args.messages != NUM_MESSAGES else SWEEP_NUM_MESSAGES

    runner = BatchRunner(
        loss_probs=loss_probs,
        corrupt_probs=corrupt_probs,
        runs_per_config=runs,
        num_messages=num_messages,
        window_size=args.window,
        seq_space=args.seqspace,
        ack_stale_duplicates=args.ack_stale,
        output_file=args.output or RESULTS_CSV
    )

    print(f"\nConfiguration:")
    print(f"  Loss probabilities: {runner.loss_probs}")
    print(f"  Corruption probabilities: {runner.corrupt_probs}")
    print(f"  Runs per point: {runs}")
    print(f"  Total simulations: {runner.total_runs}")
    print(f"  Messages per run: {num_messages}")
    print(f"  Window / sequence space: {args.window} / {args.seqspace}")
    print(f"  Output: {runner.output_file}")

    print("\nStarting parameter sweep...")

    if args.parallel:
        results = runner.run_parallel(max_workers=args.workers)
    else:
        results = runner.run_sequential()

    runner.save_results()

    failed = [r for r in results if r.get('error')]
    if failed:
        print(f"\nWarning: {len(failed)} runs failed, first error: {failed[0]['error']}")

    invalid = [r for r in results if not r.get('error') and not r.get('data_valid')]
    if invalid:
        print(f"\nWarning: {len(invalid)} runs delivered an invalid stream "
              f"and are excluded from the aggregates")

    worst = runner.get_worst_configuration()

    print("\n" + "=" * 60)
    print("WORST OPERATING POINT")
    print("=" * 60)
    if 'error' in worst:
        print(f"  {worst['error']}")
    else:
        print(f"  Loss: {worst['loss_prob']}, Corruption: {worst['corrupt_prob']}")
        print(f"  Mean Efficiency: {worst['mean_efficiency'] * 100:.2f}%")
        print(f"  Mean Retransmissions: {worst['mean_retransmissions']:.1f}")
        print(f"  Completion Rate: {worst['completion_rate'] * 100:.0f}%")
        print(f"  Valid Rate: {worst['valid_rate'] * 100:.0f}%")

    return results


def generate_visualizations(args):
    """Generate visualization plots."""
    from visualization.heatmap import ReliabilityHeatmap

    print("=" * 60)
    print("GENERATING VISUALIZATIONS")
    print("=" * 60)

    csv_file = args.csv or RESULTS_CSV

    if not os.path.exists(csv_file):
        print(f"Error: Results file not found: {csv_file}")
        print("Run a parameter sweep first: python main.py --sweep")
        return

    heatmap = ReliabilityHeatmap(csv_file=csv_file)
    print(f"Loaded {len(heatmap.results)} results from {csv_file}")

    output_dir = args.output or PLOTS_DIR
    files = heatmap.plot_all(output_dir)

    print("\n" + "=" * 60)
    print("VISUALIZATIONS GENERATED")
    print("=" * 60)
    for path in files:
        print(f"  {path}")


def show_config(args):
    """Display current configuration."""
    print("=" * 60)
    print("SIMULATOR CONFIGURATION")
    print("=" * 60)

    import config as cfg

    print(f"\nProtocol:")
    print(f"  Window Size: {cfg.WINDOW_SIZE}")
    print(f"  Sequence Space: {cfg.SEQ_SPACE} "
          f"(min {cfg.calculate_min_sequence_space(cfg.WINDOW_SIZE)}, "
          f"safe {cfg.calculate_safe_sequence_space(cfg.WINDOW_SIZE)})")
    print(f"  Retransmit Timeout: {cfg.RETRANSMIT_TIMEOUT}")
    print(f"  Payload Size: {cfg.PAYLOAD_SIZE} bytes")
    print(f"  Packet Format: {cfg.PACKET_FORMAT}")

    print(f"\nChannel Emulator:")
    print(f"  Delay: {cfg.MIN_CHANNEL_DELAY} + {cfg.CHANNEL_DELAY_SPREAD} * U(0,1)")
    print(f"  Mean RTT: {cfg.calculate_mean_rtt():.1f}")
    print(f"  Loss: {cfg.LOSS_PROBABILITY}")
    print(f"  Corruption: {cfg.CORRUPT_PROBABILITY}")

    print(f"\nApplication:")
    print(f"  Messages: {cfg.NUM_MESSAGES}")
    print(f"  Mean Interval: {cfg.MESSAGE_INTERVAL}")

    print(f"\nParameter Sweep:")
    print(f"  Loss Probabilities: {cfg.LOSS_PROBABILITIES}")
    print(f"  Corruption Probabilities: {cfg.CORRUPT_PROBABILITIES}")
    print(f"  Runs per config: {cfg.RUNS_PER_CONFIGURATION}")
    print(f"  Messages per run: {cfg.SWEEP_NUM_MESSAGES}")
    print(f"  Total simulations: "
          f"{len(cfg.LOSS_PROBABILITIES) * len(cfg.CORRUPT_PROBABILITIES) * cfg.RUNS_PER_CONFIGURATION}")


def main():
    parser = argparse.ArgumentParser(
        description="Selective Repeat ARQ Protocol Simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Single simulation:
    python main.py --single --loss 0.2 --corrupt 0.2 --ack-stale

  Quick parameter sweep (for testing):
    python main.py --sweep --quick

  Parallel parameter sweep:
    python main.py --sweep --parallel --workers 4 --ack-stale

  Generate visualizations:
    python main.py --visualize

  Show configuration:
    python main.py --config
        """
    )

    # Mode selection
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument('--single', action='store_true',
                      help='Run single simulation')
    mode.add_argument('--sweep', action='store_true',
                      help='Run loss x corruption sweep')
    mode.add_argument('--visualize', action='store_true',
                      help='Generate visualizations')
    mode.add_argument('--config', action='store_true',
                      help='Show configuration')

    # Protocol options
    parser.add_argument('--window', '-w', type=int, default=WINDOW_SIZE,
                        help=f'Window size (default: {WINDOW_SIZE})')
    parser.add_argument('--seqspace', type=int, default=None,
                        help=f'Sequence space (default: twice the window, '
                             f'{SIMULATION_SEQ_SPACE} for window {WINDOW_SIZE})')
    parser.add_argument('--timeout', type=float, default=RETRANSMIT_TIMEOUT,
                        help=f'Retransmit timeout (default: {RETRANSMIT_TIMEOUT})')
    parser.add_argument('--ack-stale', action='store_true',
                        help='Receiver acknowledges stale duplicates by their own number')

    # Traffic and channel options
    parser.add_argument('--messages', '-n', type=int, default=NUM_MESSAGES,
                        help=f'Messages to generate (default: {NUM_MESSAGES})')
    parser.add_argument('--interval', type=float, default=MESSAGE_INTERVAL,
                        help=f'Mean message interval (default: {MESSAGE_INTERVAL})')
    parser.add_argument('--loss', type=float, default=LOSS_PROBABILITY,
                        help=f'Loss probability (default: {LOSS_PROBABILITY})')
    parser.add_argument('--corrupt', type=float, default=CORRUPT_PROBABILITY,
                        help=f'Corruption probability (default: {CORRUPT_PROBABILITY})')
    parser.add_argument('--seed', '-s', type=int, default=RNG_SEED_BASE,
                        help=f'Random seed (default: {RNG_SEED_BASE})')

    # Parameter sweep options
    parser.add_argument('--runs', '-r', type=int,
                        default=RUNS_PER_CONFIGURATION,
                        help=f'Runs per configuration (default: {RUNS_PER_CONFIGURATION})')
    parser.add_argument('--parallel', action='store_true',
                        help='Run simulations in parallel')
    parser.add_argument('--workers', type=int, default=None,
                        help='Number of parallel workers')
    parser.add_argument('--quick', action='store_true',
                        help='Quick test with reduced parameters')

    # Output options
    parser.add_argument('--output', '-o', type=str,
                        help='Output file (sweep) or directory (visualize)')
    parser.add_argument('--csv', type=str,
                        help='CSV file for visualization')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Verbose output')
    parser.add_argument('--log-file', type=str, default=None,
                        help='Also write the single-run log to this file')

    args = parser.parse_args()
    if args.seqspace is None:
        args.seqspace = calculate_safe_sequence_space(args.window)

    if args.single:
        run_single_simulation(args)
    elif args.sweep:
        run_parameter_sweep(args)
    elif args.visualize:
        generate_visualizations(args)
    elif args.config:
        show_config(args)


if __name__ == "__main__":
    main()
