"""
Tests for the batch runner and heatmap output.
"""

import pytest
import sys
import os
import csv

import numpy as np

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from simulation.runner import BatchRunner, RunConfig, run_single_simulation
from visualization.heatmap import ReliabilityHeatmap
from config import WINDOW_SIZE, calculate_safe_sequence_space


@pytest.fixture
def small_sweep(tmp_path):
    runner = BatchRunner(
        loss_probs=[0.0, 0.2],
        corrupt_probs=[0.0, 0.2],
        runs_per_config=2,
        num_messages=20,
        seq_space=12,
        ack_stale_duplicates=True,
        output_file=str(tmp_path / "results.csv")
    )
    runner.run_sequential()
    return runner


class TestRunSingleSimulation:
    """Tests for the per-process entry point."""

    def test_result_row(self):
        row = run_single_simulation(RunConfig(
            loss_prob=0.1, corrupt_prob=0.1, run_id=0, seed=5,
            num_messages=10, seq_space=12, ack_stale_duplicates=True
        ))

        assert row['error'] is None
        assert row['data_valid']
        assert row['messages_delivered'] > 0

    def test_error_captured(self):
        row = run_single_simulation(RunConfig(
            loss_prob=0.1, corrupt_prob=0.1, run_id=0, seed=5,
            num_messages=10, window_size=6, seq_space=6
        ))

        assert row['error']
        assert 'throughput' not in row


class TestBatchRunner:
    """Tests for BatchRunner."""

    def test_total_runs(self, small_sweep):
        assert small_sweep.total_runs == 8
        assert len(small_sweep.results) == 8

    def test_seeds_are_unique(self, small_sweep):
        seeds = [config.seed for config in small_sweep._generate_run_configs()]
        assert len(set(seeds)) == len(seeds)

    def test_save_results(self, small_sweep):
        small_sweep.save_results()

        with open(small_sweep.output_file, newline='') as f:
            rows = list(csv.DictReader(f))

        assert len(rows) == 8
        assert 'efficiency' in rows[0]

    def test_aggregation(self, small_sweep):
        aggregated = small_sweep.get_aggregated_results()

        assert set(aggregated) == {(0.0, 0.0), (0.0, 0.2), (0.2, 0.0), (0.2, 0.2)}
        assert aggregated[(0.0, 0.0)]['completion_rate'] == 1.0

    def test_worst_configuration(self, small_sweep):
        worst = small_sweep.get_worst_configuration()

        assert (worst['loss_prob'], worst['corrupt_prob']) != (0.0, 0.0)

    def test_invalid_runs_excluded_from_aggregates(self, small_sweep):
        clean = small_sweep.get_aggregated_results()[(0.0, 0.0)]
        bad = dict(small_sweep.results[0], run_id=99, efficiency=0.0,
                   retransmissions=10_000, data_valid=False)
        assert (bad['loss_prob'], bad['corrupt_prob']) == (0.0, 0.0)
        small_sweep.results.append(bad)

        point = small_sweep.get_aggregated_results()[(0.0, 0.0)]

        assert point['efficiency_mean'] == clean['efficiency_mean']
        assert point['retx_mean'] == clean['retx_mean']
        assert point['valid_rate'] == pytest.approx(2 / 3)
        assert clean['valid_rate'] == 1.0

    def test_point_with_no_valid_runs_ranks_worst(self, small_sweep):
        for row in small_sweep.results:
            if (row['loss_prob'], row['corrupt_prob']) == (0.0, 0.0):
                row['data_valid'] = 'False'

        worst = small_sweep.get_worst_configuration()

        assert (worst['loss_prob'], worst['corrupt_prob']) == (0.0, 0.0)
        assert worst['valid_rate'] == 0.0

    def test_defaults_use_twice_the_window(self, tmp_path):
        runner = BatchRunner(output_file=str(tmp_path / "r.csv"))
        config = RunConfig(loss_prob=0.0, corrupt_prob=0.0, run_id=0,
                           seed=1, num_messages=1)

        assert runner.seq_space == calculate_safe_sequence_space(WINDOW_SIZE)
        assert config.seq_space == calculate_safe_sequence_space(WINDOW_SIZE)

    def test_progress_callback(self, tmp_path):
        calls = []
        runner = BatchRunner(
            loss_probs=[0.0],
            corrupt_probs=[0.0],
            runs_per_config=2,
            num_messages=5,
            output_file=str(tmp_path / "r.csv"),
            on_progress=lambda done, total, result: calls.append((done, total))
        )
        runner.run_sequential()

        assert calls == [(1, 2), (2, 2)]


class TestReliabilityHeatmap:
    """Tests for ReliabilityHeatmap."""

    def test_matrix_shape(self, small_sweep):
        heatmap = ReliabilityHeatmap(results=small_sweep.results)
        matrix = heatmap.create_matrix('efficiency')

        assert matrix.shape == (2, 2)
        assert 0.0 < matrix[0, 0] <= 1.0

    def test_matrix_skips_invalid_runs(self, small_sweep):
        rows = [dict(r) for r in small_sweep.results]
        for row in rows:
            if (row['loss_prob'], row['corrupt_prob']) == (0.0, 0.0):
                row['data_valid'] = False

        matrix = ReliabilityHeatmap(results=rows).create_matrix('efficiency')

        assert np.isnan(matrix[0, 0])
        assert not np.isnan(matrix[1, 1])

    def test_plot_from_csv(self, small_sweep, tmp_path):
        small_sweep.save_results()
        heatmap = ReliabilityHeatmap(csv_file=small_sweep.output_file)

        path = heatmap.plot('retransmissions', output_file=str(tmp_path / "retx.png"))

        assert os.path.exists(path)

    def test_empty_results(self):
        with pytest.raises(ValueError):
            ReliabilityHeatmap(results=[]).plot()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
