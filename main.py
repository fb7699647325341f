#!/usr/bin/env python3
"""
Selective Repeat ARQ Emulator - Main Entry Point

This is the main CLI interface for the Selective Repeat emulator.
It provides options for:
- Single emulator runs
- Loss x corruption parameter sweep
- Visualization generation
- Configuration summary

Usage:
    python main.py --single --messages 50 --loss 0.2 --corrupt 0.2 --trace 2
    python main.py --sweep --runs 5 --parallel
    python main.py --visualize --csv results.csv
"""

import argparse
import os
import sys
import time

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import (
    NUM_MESSAGES, LOSS_PROB, CORRUPT_PROB, MESSAGE_INTERVAL,
    WINDOW_SIZE, SEQ_SPACE, RUNS_PER_CONFIGURATION, DEFAULT_TRACE,
    RESULTS_CSV, PLOTS_DIR
)


def run_single_simulation(args):
    """Run a single emulation with specified parameters."""
    from simulation.simulator import Simulator, SimulatorConfig
    from src.arq.sender import RetransmitPolicy

    config = SimulatorConfig(
        num_messages=args.messages,
        message_interval=args.interval,
        loss_prob=args.loss,
        corrupt_prob=args.corrupt,
        channel=args.channel,
        window_size=args.window,
        seq_space=args.seqspace,
        policy=RetransmitPolicy(args.policy),
        seed=args.seed,
        trace=args.trace
    )

    print("=" * 60)
    print("SELECTIVE REPEAT ARQ EMULATOR")
    print("=" * 60)
    print(f"\nConfiguration:")
    print(f"  Messages: {config.num_messages}")
    print(f"  Loss probability: {config.loss_prob}")
    print(f"  Corruption probability: {config.corrupt_prob}")
    print(f"  Mean message interval: {config.message_interval}")
    print(f"  Channel model: {config.channel}")
    print(f"  Window size: {config.window_size}")
    print(f"  Sequence space: {config.seq_space}")
    print(f"  Timeout: {config.timeout}")
    print(f"  Retransmission policy: {config.policy.value}")
    print(f"  Seed: {config.seed}")

    sim = Simulator(config)
    start_time = time.time()
    results = sim.run()
    elapsed = time.time() - start_time

    print("\n" + "=" * 60)
    print("RESULTS")
    print("=" * 60)
    print(f"\nSimulator terminated at time {results['simulation_time']:.4f}")
    print(f"  Complete: {results['complete']}")
    print(f"  Data Valid: {results['verification']['valid']}")
    print(f"  Real Time: {elapsed:.2f} s")

    stats = results['stats']
    print(f"\nProtocol Counters:")
    print(f"  Messages dropped on full window: {stats['window_full']}")
    print(f"  ACKs received by A: {stats['total_acks_received']}")
    print(f"  New ACKs: {stats['new_acks']}")
    print(f"  Packets resent: {stats['packets_resent']}")
    print(f"  Packets received by B: {stats['packets_received']}")

    metrics = results['metrics']
    print(f"\nTraffic:")
    print(f"  Messages generated: {metrics['messages_generated']}")
    print(f"  Messages accepted: {metrics['messages_accepted']}")
    print(f"  Messages delivered: {metrics['messages_delivered']}")
    print(f"  Data packets sent: {metrics['data_packets_sent']}")
    print(f"  ACK packets sent: {metrics['ack_packets_sent']}")
    print(f"  Packets lost: {metrics['packets_lost']}")
    print(f"  Packets corrupted: {metrics['packets_corrupted']}")
    print(f"  Retransmission rate: {metrics['retransmission_rate']:.4f}")

    if metrics['latency']['samples'] > 0:
        print(f"\nDelivery Latency:")
        print(f"  Mean: {metrics['latency']['mean']:.2f}")
        print(f"  Min: {metrics['latency']['min']:.2f}")
        print(f"  Max: {metrics['latency']['max']:.2f}")

    return results


def run_parameter_sweep(args):
    """Run loss x corruption parameter sweep."""
    from simulation.runner import BatchRunner
    from src.arq.sender import RetransmitPolicy

    runner = BatchRunner(
        runs_per_config=args.runs,
        num_messages=args.messages,
        policy=RetransmitPolicy(args.policy),
        window_size=args.window,
        seq_space=args.seqspace,
        channel=args.channel,
        message_interval=args.interval,
        output_file=args.output or RESULTS_CSV
    )

    print("=" * 60)
    print("PARAMETER SWEEP")
    print("=" * 60)
    print(f"\nConfiguration:")
    print(f"  Loss probabilities: {runner.loss_probs}")
    print(f"  Corruption probabilities: {runner.corrupt_probs}")
    print(f"  Runs per config: {runner.runs_per_config}")
    print(f"  Total simulations: {runner.total_runs}")
    print(f"  Messages per run: {runner.num_messages}")
    print(f"  Window size: {runner.window_size}, sequence space: {runner.seq_space}")
    print(f"  Channel: {runner.channel}, message interval: {runner.message_interval}")
    print(f"  Policy: {runner.policy.value}")
    print(f"  Output: {runner.output_file}")

    print("\nStarting parameter sweep...")

    if args.parallel:
        results = runner.run_parallel(max_workers=args.workers)
    else:
        results = runner.run_sequential()

    path = runner.save_results()
    print(f"Results saved to: {path}")

    invalid = [r for r in results if not r['data_valid']]
    if invalid:
        print(f"WARNING: {len(invalid)} runs delivered an invalid stream")

    costliest = runner.get_costliest_configuration()

    print("\n" + "=" * 60)
    print("COSTLIEST CONFIGURATION")
    print("=" * 60)
    print(f"  Loss probability: {costliest['loss_prob']}")
    print(f"  Corruption probability: {costliest['corrupt_prob']}")
    print(f"  Resent per delivered: {costliest['resent_mean']:.3f} "
          f"(std {costliest['resent_std']:.3f})")

    return results


def generate_visualizations(args):
    """Generate visualization plots."""
    from visualization.heatmap import RetransmissionHeatmap

    print("=" * 60)
    print("GENERATING VISUALIZATIONS")
    print("=" * 60)

    csv_file = args.csv or RESULTS_CSV

    if not os.path.exists(csv_file):
        print(f"Error: Results file not found: {csv_file}")
        print("Run a parameter sweep first: python main.py --sweep")
        return None

    heatmap = RetransmissionHeatmap(csv_file=csv_file)
    print(f"Loaded {len(heatmap.results)} results from {csv_file}")

    os.makedirs(PLOTS_DIR, exist_ok=True)

    resent_file = heatmap.plot(
        output_file=args.output or os.path.join(PLOTS_DIR, 'retransmission_heatmap.png')
    )
    latency_file = heatmap.plot(
        output_file=os.path.join(PLOTS_DIR, 'latency_heatmap.png'),
        title="Mean Delivery Latency",
        metric='latency_mean',
        cmap='viridis'
    )

    print(f"  Retransmissions: {resent_file}")
    print(f"  Latency: {latency_file}")
    return resent_file


def show_config(args):
    """Display current configuration."""
    import config as cfg

    print("=" * 60)
    print("EMULATOR CONFIGURATION")
    print("=" * 60)

    print(f"\nProtocol:")
    print(f"  Window Size: {cfg.WINDOW_SIZE}")
    print(f"  Sequence Space: {cfg.SEQ_SPACE}")
    print(f"  Timeout: {cfg.RTT}")
    print(f"  Payload Size: {cfg.PAYLOAD_SIZE} bytes")

    print(f"\nChannel:")
    print(f"  Mean One-way Delay: {cfg.calculate_mean_one_way_delay()}")
    print(f"  Gilbert-Elliott Good State: loss {cfg.GOOD_STATE_LOSS}, corrupt {cfg.GOOD_STATE_CORRUPT}")
    print(f"  Gilbert-Elliott Bad State: loss {cfg.BAD_STATE_LOSS}, corrupt {cfg.BAD_STATE_CORRUPT}")
    print(f"  P(Good→Bad): {cfg.P_GOOD_TO_BAD}")
    print(f"  P(Bad→Good): {cfg.P_BAD_TO_GOOD}")

    pi_good, pi_bad = cfg.calculate_steady_state_probabilities()
    print(f"  Steady-state P(Good): {pi_good:.4f}, P(Bad): {pi_bad:.4f}")

    print(f"\nParameter Sweep:")
    print(f"  Loss Probabilities: {cfg.LOSS_PROBS}")
    print(f"  Corruption Probabilities: {cfg.CORRUPT_PROBS}")
    print(f"  Runs per config: {cfg.RUNS_PER_CONFIGURATION}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Selective Repeat ARQ Emulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Single run with a lossy, corrupting channel:
    python main.py --single --messages 50 --loss 0.2 --corrupt 0.2

  Trace every protocol event:
    python main.py --single --trace 2

  Parameter sweep:
    python main.py --sweep --runs 5

  Parallel parameter sweep:
    python main.py --sweep --parallel --workers 4

  Generate visualizations:
    python main.py --visualize

  Show configuration:
    python main.py --config
        """
    )

    # Mode selection
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument('--single', action='store_true',
                      help='Run single emulation')
    mode.add_argument('--sweep', action='store_true',
                      help='Run loss x corruption parameter sweep')
    mode.add_argument('--visualize', action='store_true',
                      help='Generate visualizations')
    mode.add_argument('--config', action='store_true',
                      help='Show configuration')

    # Emulation options
    parser.add_argument('--messages', '-n', type=int, default=NUM_MESSAGES,
                        help=f'Number of messages to simulate (default: {NUM_MESSAGES})')
    parser.add_argument('--loss', type=float, default=LOSS_PROB,
                        help=f'Packet loss probability (default: {LOSS_PROB})')
    parser.add_argument('--corrupt', type=float, default=CORRUPT_PROB,
                        help=f'Packet corruption probability (default: {CORRUPT_PROB})')
    parser.add_argument('--interval', type=float, default=MESSAGE_INTERVAL,
                        help=f'Mean time between messages (default: {MESSAGE_INTERVAL})')
    parser.add_argument('--window', '-w', type=int, default=WINDOW_SIZE,
                        help=f'Window size (default: {WINDOW_SIZE})')
    parser.add_argument('--seqspace', type=int, default=SEQ_SPACE,
                        help=f'Sequence space (default: {SEQ_SPACE})')
    parser.add_argument('--policy', choices=['all', 'oldest'], default='all',
                        help='Packets resent on timeout (default: all)')
    parser.add_argument('--channel', choices=['bernoulli', 'gilbert'], default='bernoulli',
                        help='Channel model (default: bernoulli)')
    parser.add_argument('--trace', '-t', type=int, default=DEFAULT_TRACE,
                        help=f'Trace level 0-3 (default: {DEFAULT_TRACE})')
    parser.add_argument('--seed', '-s', type=int, default=42,
                        help='Random seed (default: 42)')

    # Parameter sweep options
    parser.add_argument('--runs', '-r', type=int,
                        default=RUNS_PER_CONFIGURATION,
                        help=f'Runs per configuration (default: {RUNS_PER_CONFIGURATION})')
    parser.add_argument('--parallel', action='store_true',
                        help='Run simulations in parallel')
    parser.add_argument('--workers', type=int, default=None,
                        help='Number of parallel workers')

    # Output options
    parser.add_argument('--output', '-o', type=str,
                        help='Output file path')
    parser.add_argument('--csv', type=str,
                        help='CSV file for visualization')

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    # Execute selected mode
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
