"""
Batch Runner for Parameter Sweep Simulations

This module implements the batch runner that executes the emulator over
the (loss probability x corruption probability) grid, several seeded
runs per grid point.
"""

import os
import csv
import time
import statistics
from typing import Optional, Callable, List, Dict
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor, as_completed
import multiprocessing

from tqdm import tqdm

from config import (
    LOSS_PROBS, CORRUPT_PROBS, RUNS_PER_CONFIGURATION,
    RNG_SEED_BASE, RESULTS_CSV, NUM_MESSAGES, WINDOW_SIZE, SEQ_SPACE,
    MESSAGE_INTERVAL
)
from simulation.simulator import Simulator, SimulatorConfig
from src.arq.sender import RetransmitPolicy


@dataclass
class RunConfig:
    """Configuration for a single simulation run."""
    loss_prob: float
    corrupt_prob: float
    run_id: int
    seed: int
    num_messages: int
    window_size: int = WINDOW_SIZE
    seq_space: int = SEQ_SPACE
    policy: str = RetransmitPolicy.ALL.value
    channel: str = "bernoulli"
    message_interval: float = MESSAGE_INTERVAL


def run_single_simulation(run_config: RunConfig) -> Dict:
    """
    Run a single simulation with given configuration.

    This function is designed to be called in a separate process.

    Args:
        run_config: Configuration for this run

    Returns:
        Dictionary with results
    """
    config = SimulatorConfig(
        num_messages=run_config.num_messages,
        message_interval=run_config.message_interval,
        loss_prob=run_config.loss_prob,
        corrupt_prob=run_config.corrupt_prob,
        channel=run_config.channel,
        window_size=run_config.window_size,
        seq_space=run_config.seq_space,
        policy=RetransmitPolicy(run_config.policy),
        seed=run_config.seed,
        trace=0,
        use_colors=False
    )

    results = Simulator(config).run()
    metrics = results['metrics']

    return {
        'loss_prob': run_config.loss_prob,
        'corrupt_prob': run_config.corrupt_prob,
        'run_id': run_config.run_id,
        'seed': run_config.seed,
        'window_size': run_config.window_size,
        'seq_space': run_config.seq_space,
        'channel': run_config.channel,
        'message_interval': run_config.message_interval,
        'policy': run_config.policy,
        'messages_generated': metrics['messages_generated'],
        'messages_accepted': metrics['messages_accepted'],
        'messages_delivered': metrics['messages_delivered'],
        'window_full': metrics['window_full'],
        'packets_resent': metrics['packets_resent'],
        'retransmission_rate': metrics['retransmission_rate'],
        'resent_per_delivered': (metrics['packets_resent'] / metrics['messages_delivered']
                                 if metrics['messages_delivered'] > 0 else 0.0),
        'latency_mean': metrics['latency']['mean'],
        'total_time': results['simulation_time'],
        'data_valid': results['verification']['valid'],
        'complete': results['complete']
    }


class BatchRunner:
    """
    Batch Runner for parameter sweep simulations.

    Executes all (loss, corruption) combinations with multiple runs each.

    Attributes:
        loss_probs: Loss probabilities to test
        corrupt_probs: Corruption probabilities to test
        runs_per_config: Number of runs per configuration
        num_messages: Messages generated per run
    """

    def __init__(
        self,
        loss_probs: Optional[List[float]] = None,
        corrupt_probs: Optional[List[float]] = None,
        runs_per_config: int = RUNS_PER_CONFIGURATION,
        num_messages: int = NUM_MESSAGES,
        policy: RetransmitPolicy = RetransmitPolicy.ALL,
        window_size: int = WINDOW_SIZE,
        seq_space: int = SEQ_SPACE,
        channel: str = "bernoulli",
        message_interval: float = MESSAGE_INTERVAL,
        output_file: str = RESULTS_CSV,
        on_progress: Optional[Callable[[int, int, dict], None]] = None,
        show_progress: bool = True
    ):
        """
        Initialize batch runner.

        Args:
            loss_probs: Loss probabilities (default from config)
            corrupt_probs: Corruption probabilities (default from config)
            runs_per_config: Number of runs per grid point
            num_messages: Messages generated per run
            policy: Retransmission policy of the sender
            window_size: Window size of both endpoints
            seq_space: Sequence number space
            channel: Channel model, "bernoulli" or "gilbert"
            message_interval: Mean time between application messages
            output_file: Path to output CSV file
            on_progress: Callback for progress updates
            show_progress: Show a tqdm progress bar
        """
        self.loss_probs = loss_probs if loss_probs is not None else LOSS_PROBS
        self.corrupt_probs = corrupt_probs if corrupt_probs is not None else CORRUPT_PROBS
        self.runs_per_config = runs_per_config
        self.num_messages = num_messages
        self.policy = policy
        self.window_size = window_size
        self.seq_space = seq_space
        self.channel = channel
        self.message_interval = message_interval
        self.output_file = output_file
        self.on_progress = on_progress
        self.show_progress = show_progress

        # Results storage
        self.results: List[Dict] = []

        # Progress tracking
        self.total_runs = (len(self.loss_probs) *
                           len(self.corrupt_probs) *
                           self.runs_per_config)
        self.completed_runs = 0
        self.start_time = 0.0

    def _generate_run_configs(self) -> List[RunConfig]:
        """Generate all run configurations."""
        configs = []

        for i, loss_prob in enumerate(self.loss_probs):
            for j, corrupt_prob in enumerate(self.corrupt_probs):
                for run_id in range(self.runs_per_config):
                    # Unique seed for each run
                    seed = (RNG_SEED_BASE +
                            i * 1000 +
                            j * 100 +
                            run_id * 10000)

                    configs.append(RunConfig(
                        loss_prob=loss_prob,
                        corrupt_prob=corrupt_prob,
                        run_id=run_id,
                        seed=seed,
                        num_messages=self.num_messages,
                        window_size=self.window_size,
                        seq_space=self.seq_space,
                        policy=self.policy.value,
                        channel=self.channel,
                        message_interval=self.message_interval
                    ))

        return configs

    def _record(self, result: Dict):
        self.results.append(result)
        self.completed_runs += 1
        if self.on_progress:
            self.on_progress(self.completed_runs, self.total_runs, result)

    def run_sequential(self) -> List[Dict]:
        """
        Run all simulations sequentially.

        Returns:
            List of result dictionaries
        """
        configs = self._generate_run_configs()
        self.results = []
        self.completed_runs = 0
        self.start_time = time.time()

        for config in tqdm(configs, desc="Simulations", disable=not self.show_progress):
            self._record(run_single_simulation(config))

        total_time = time.time() - self.start_time
        if self.show_progress:
            print(f"Completed {self.total_runs} simulations in {total_time:.1f}s")

        return self.results

    def run_parallel(self, max_workers: Optional[int] = None) -> List[Dict]:
        """
        Run simulations in parallel using multiprocessing.

        Args:
            max_workers: Number of parallel workers (default: CPU count)

        Returns:
            List of result dictionaries
        """
        if max_workers is None:
            max_workers = multiprocessing.cpu_count()

        configs = self._generate_run_configs()
        self.results = []
        self.completed_runs = 0
        self.start_time = time.time()

        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(run_single_simulation, config): config
                for config in configs
            }

            for future in tqdm(as_completed(futures), total=len(futures),
                               desc="Simulations", disable=not self.show_progress):
                self._record(future.result())

        total_time = time.time() - self.start_time
        if self.show_progress:
            print(f"Completed {self.total_runs} simulations in {total_time:.1f}s")

        return self.results

    def save_results(self, filepath: Optional[str] = None) -> Optional[str]:
        """
        Save results to CSV file.

        Args:
            filepath: Output file path (default: self.output_file)

        Returns:
            Path written, or None if there was nothing to save
        """
        filepath = filepath or self.output_file

        if not self.results:
            return None

        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)

        fieldnames = list(self.results[0].keys())

        with open(filepath, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(self.results)

        return filepath

    def get_aggregated_results(self) -> Dict:
        """
        Get aggregated results by (loss, corruption) pair.

        Returns:
            Dictionary with aggregated statistics
        """
        aggregated = {}

        for result in self.results:
            key = (result['loss_prob'], result['corrupt_prob'])
            if key not in aggregated:
                aggregated[key] = {
                    'loss_prob': result['loss_prob'],
                    'corrupt_prob': result['corrupt_prob'],
                    'resent_per_delivered': [],
                    'latencies': [],
                    'all_valid': True
                }

            aggregated[key]['resent_per_delivered'].append(result['resent_per_delivered'])
            if result['latency_mean'] > 0:
                aggregated[key]['latencies'].append(result['latency_mean'])
            aggregated[key]['all_valid'] &= bool(result['data_valid'])

        # Calculate statistics
        for data in aggregated.values():
            samples = data['resent_per_delivered']
            data['resent_mean'] = statistics.mean(samples)
            data['resent_std'] = statistics.stdev(samples) if len(samples) > 1 else 0.0
            if data['latencies']:
                data['latency_mean'] = statistics.mean(data['latencies'])

        return aggregated

    def get_costliest_configuration(self) -> Dict:
        """
        Find the grid point with the most retransmissions per delivered message.

        Returns:
            Dictionary with the costliest (loss, corruption) pair
        """
        aggregated = self.get_aggregated_results()

        if not aggregated:
            return {}

        worst = max(aggregated.values(), key=lambda d: d['resent_mean'])

        return {
            'loss_prob': worst['loss_prob'],
            'corrupt_prob': worst['corrupt_prob'],
            'resent_mean': worst['resent_mean'],
            'resent_std': worst['resent_std'],
            'all_valid': worst['all_valid']
        }
