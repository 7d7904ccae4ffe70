"""
Batch Runner for Parameter Sweep Simulations

This module runs the reliability sweep: every (loss, corruption)
probability pair, several seeded runs each.
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
    LOSS_PROBABILITIES, CORRUPT_PROBABILITIES, RUNS_PER_CONFIGURATION,
    RNG_SEED_BASE, RESULTS_CSV, SWEEP_NUM_MESSAGES,
    WINDOW_SIZE, SIMULATION_SEQ_SPACE
)
from simulation.simulator import Simulator, SimulatorConfig
from sr_arq.utils.logger import LogLevel


@dataclass
class RunConfig:
    """Configuration for a single simulation run."""
    loss_prob: float
    corrupt_prob: float
    run_id: int
    seed: int
    num_messages: int
    window_size: int = WINDOW_SIZE
    seq_space: int = SIMULATION_SEQ_SPACE
    ack_stale_duplicates: bool = False


def is_valid_row(result: Dict) -> bool:
    """True when a result row's delivered stream passed verification.

    Rows read back from CSV carry the flag as the string 'True' or 'False'.
    """
    valid = result.get('data_valid', False)
    if isinstance(valid, str):
        return valid == 'True'
    return bool(valid)


def run_single_simulation(run_config: RunConfig) -> Dict:
    """
    Run a single simulation with given configuration.

    This function is designed to be called in a separate process.

    Args:
        run_config: Configuration for this run

    Returns:
        Dictionary with results
    """
    try:
        config = SimulatorConfig(
            window_size=run_config.window_size,
            seq_space=run_config.seq_space,
            loss_prob=run_config.loss_prob,
            corrupt_prob=run_config.corrupt_prob,
            num_messages=run_config.num_messages,
            seed=run_config.seed,
            ack_stale_duplicates=run_config.ack_stale_duplicates,
            log_level=LogLevel.ERROR  # Minimal logging for batch runs
        )

        sim = Simulator(config)
        results = sim.run()

        metrics = results['metrics']

        return {
            'loss_prob': run_config.loss_prob,
            'corrupt_prob': run_config.corrupt_prob,
            'run_id': run_config.run_id,
            'seed': run_config.seed,
            'window_size': run_config.window_size,
            'seq_space': run_config.seq_space,
            'throughput': metrics['throughput'],
            'efficiency': metrics['efficiency'],
            'retransmissions': metrics['retransmissions'],
            'retransmission_rate': metrics['retransmission_rate'],
            'window_full_events': metrics['window_full_events'],
            'messages_delivered': metrics['messages_delivered'],
            'latency_mean': metrics['latency']['mean'],
            'latency_max': metrics['latency']['max'],
            'total_time': results['simulation_time'],
            'data_valid': results['verification']['valid'],
            'complete': results['complete'],
            'time_limit_reached': results['time_limit_reached'],
            'error': None
        }

    except Exception as e:
        return {
            'loss_prob': run_config.loss_prob,
            'corrupt_prob': run_config.corrupt_prob,
            'run_id': run_config.run_id,
            'seed': run_config.seed,
            'window_size': run_config.window_size,
            'seq_space': run_config.seq_space,
            'error': str(e)
        }


class BatchRunner:
    """
    Batch Runner for parameter sweep simulations.

    Executes all (loss, corruption) combinations with multiple runs each.

    Attributes:
        loss_probs: Loss probabilities to test
        corrupt_probs: Corruption probabilities to test
        runs_per_config: Number of runs per configuration
        num_messages: Messages per run
    """

    def __init__(
        self,
        loss_probs: List[float] = None,
        corrupt_probs: List[float] = None,
        runs_per_config: int = RUNS_PER_CONFIGURATION,
        num_messages: int = SWEEP_NUM_MESSAGES,
        window_size: int = WINDOW_SIZE,
        seq_space: int = SIMULATION_SEQ_SPACE,
        ack_stale_duplicates: bool = False,
        output_file: str = RESULTS_CSV,
        on_progress: Optional[Callable[[int, int, dict], None]] = None
    ):
        """
        Initialize batch runner.

        Args:
            loss_probs: Loss probabilities (default from config)
            corrupt_probs: Corruption probabilities (default from config)
            runs_per_config: Number of runs per (loss, corruption) pair
            num_messages: Messages generated per run
            window_size: Window size for every run
            seq_space: Sequence space for every run
            ack_stale_duplicates: Receiver stale re-ACK switch
            output_file: Path to output CSV file
            on_progress: Callback for progress updates
        """
        self.loss_probs = loss_probs if loss_probs is not None else LOSS_PROBABILITIES
        self.corrupt_probs = corrupt_probs if corrupt_probs is not None else CORRUPT_PROBABILITIES
        self.runs_per_config = runs_per_config
        self.num_messages = num_messages
        self.window_size = window_size
        self.seq_space = seq_space
        self.ack_stale_duplicates = ack_stale_duplicates
        self.output_file = output_file
        self.on_progress = on_progress

        self.results: List[Dict] = []

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
                            i * 100_000 +
                            j * 1_000 +
                            run_id * 10)

                    configs.append(RunConfig(
                        loss_prob=loss_prob,
                        corrupt_prob=corrupt_prob,
                        run_id=run_id,
                        seed=seed,
                        num_messages=self.num_messages,
                        window_size=self.window_size,
                        seq_space=self.seq_space,
                        ack_stale_duplicates=self.ack_stale_duplicates
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

        for config in tqdm(configs, desc="Simulations"):
            self._record(run_single_simulation(config))

        total_time = time.time() - self.start_time
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
                               desc="Simulations"):
                self._record(future.result())

        total_time = time.time() - self.start_time
        print(f"Completed {self.total_runs} simulations in {total_time:.1f}s")

        return self.results

    def save_results(self, filepath: Optional[str] = None):
        """
        Save results to CSV file.

        Args:
            filepath: Output file path (default: self.output_file)
        """
        filepath = filepath or self.output_file

        if not self.results:
            print("No results to save!")
            return

        out_dir = os.path.dirname(filepath)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)

        # Union of keys; failed runs carry fewer columns
        fieldnames: List[str] = []
        for result in self.results:
            for key in result:
                if key not in fieldnames:
                    fieldnames.append(key)

        with open(filepath, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(self.results)

        print(f"Results saved to: {filepath}")

    def get_aggregated_results(self) -> Dict:
        """
        Get aggregated results by (loss, corruption) pair.

        Runs whose delivered stream failed verification count towards the
        point's valid_rate but are left out of every other figure.

        Returns:
            Dictionary with aggregated statistics
        """
        aggregated = {}

        for result in self.results:
            if result.get('error'):
                continue

            key = (result['loss_prob'], result['corrupt_prob'])
            if key not in aggregated:
                aggregated[key] = {
                    'loss_prob': result['loss_prob'],
                    'corrupt_prob': result['corrupt_prob'],
                    'retransmissions': [],
                    'latencies': [],
                    'efficiencies': [],
                    'completed': [],
                    'valid': []
                }

            valid = is_valid_row(result)
            aggregated[key]['valid'].append(1.0 if valid else 0.0)
            if not valid:
                continue

            aggregated[key]['retransmissions'].append(result['retransmissions'])
            if result.get('latency_mean', 0) > 0:
                aggregated[key]['latencies'].append(result['latency_mean'])
            aggregated[key]['efficiencies'].append(result['efficiency'])
            aggregated[key]['completed'].append(1.0 if result['complete'] else 0.0)

        for data in aggregated.values():
            data['valid_rate'] = statistics.mean(data['valid'])
            if not data['efficiencies']:
                continue
            data['retx_mean'] = statistics.mean(data['retransmissions'])
            data['retx_std'] = (statistics.stdev(data['retransmissions'])
                                if len(data['retransmissions']) > 1 else 0)
            data['efficiency_mean'] = statistics.mean(data['efficiencies'])
            data['completion_rate'] = statistics.mean(data['completed'])
            if data['latencies']:
                data['latency_mean'] = statistics.mean(data['latencies'])

        return aggregated

    def get_worst_configuration(self) -> Dict:
        """
        Find the (loss, corruption) point with the lowest efficiency.

        Points where no run delivered a valid stream have no efficiency
        and rank below every other point.

        Returns:
            Dictionary with that point's aggregate figures
        """
        aggregated = self.get_aggregated_results()

        if not aggregated:
            return {'error': 'No results available'}

        worst_key = min(aggregated.keys(),
                        key=lambda k: aggregated[k].get('efficiency_mean', -1.0))
        worst = aggregated[worst_key]

        return {
            'loss_prob': worst_key[0],
            'corrupt_prob': worst_key[1],
            'mean_efficiency': worst.get('efficiency_mean', 0.0),
            'mean_retransmissions': worst.get('retx_mean', 0.0),
            'completion_rate': worst.get('completion_rate', 0.0),
            'valid_rate': worst['valid_rate'],
            'mean_latency': worst.get('latency_mean', 0)
        }
