"""
Reliability Heatmap Visualization

This module generates 2D heatmaps of a sweep metric as a function of
channel loss and corruption probability.
"""

import os
from typing import Dict, List, Optional, Tuple
import csv

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import seaborn as sns

from config import LOSS_PROBABILITIES, CORRUPT_PROBABILITIES, PLOTS_DIR
from simulation.runner import is_valid_row


METRIC_LABELS = {
    'efficiency': 'Efficiency (delivered / sent)',
    'throughput': 'Throughput (messages / time unit)',
    'retransmissions': 'Retransmissions',
    'retransmission_rate': 'Retransmissions per message',
    'latency_mean': 'Mean delivery latency',
    'window_full_events': 'Messages dropped on full window'
}


class ReliabilityHeatmap:
    """
    Generates 2D heatmaps of metric(loss, corruption).

    Rows are loss probabilities (largest at the top), columns are
    corruption probabilities.
    """

    def __init__(
        self,
        results: Optional[List[Dict]] = None,
        csv_file: Optional[str] = None
    ):
        """
        Initialize heatmap generator.

        Args:
            results: List of result dictionaries
            csv_file: Path to CSV file with results
        """
        if results:
            self.results = results
        elif csv_file:
            self.results = self._load_csv(csv_file)
        else:
            self.results = []

        if self.results:
            self.loss_probs = sorted(set(r['loss_prob'] for r in self.results))
            self.corrupt_probs = sorted(set(r['corrupt_prob'] for r in self.results))
        else:
            self.loss_probs = list(LOSS_PROBABILITIES)
            self.corrupt_probs = list(CORRUPT_PROBABILITIES)

    def _load_csv(self, filepath: str) -> List[Dict]:
        """Load results from CSV file."""
        results = []
        with open(filepath, 'r') as f:
            reader = csv.DictReader(f)
            for row in reader:
                # Convert numeric fields
                for key in row:
                    try:
                        if '.' in str(row[key]):
                            row[key] = float(row[key])
                        else:
                            row[key] = int(row[key])
                    except (ValueError, TypeError):
                        pass
                results.append(row)
        return results

    def create_matrix(self, metric: str = 'efficiency') -> np.ndarray:
        """
        Create matrix of mean metric values.

        Failed runs and runs that delivered an invalid stream are left
        out; cells with nothing left are NaN.

        Args:
            metric: Result key to average

        Returns:
            Matrix indexed [loss, corruption]
        """
        grouped: Dict[Tuple[float, float], List[float]] = {}
        for r in self.results:
            if r.get('error') or not is_valid_row(r):
                continue
            value = r.get(metric)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                grouped.setdefault((r['loss_prob'], r['corrupt_prob']), []).append(value)

        matrix = np.full((len(self.loss_probs), len(self.corrupt_probs)), np.nan)
        for i, loss in enumerate(self.loss_probs):
            for j, corrupt in enumerate(self.corrupt_probs):
                values = grouped.get((loss, corrupt))
                if values:
                    matrix[i, j] = np.mean(values)

        return matrix

    def plot(
        self,
        metric: str = 'efficiency',
        output_file: Optional[str] = None,
        title: Optional[str] = None,
        figsize: Tuple[int, int] = (10, 7),
        cmap: str = "viridis",
        show_values: bool = True
    ) -> str:
        """
        Generate and save heatmap.

        Args:
            metric: Result key to plot
            output_file: Output file path (auto-generated if None)
            title: Plot title
            figsize: Figure size (width, height)
            cmap: Colormap name
            show_values: Show values in cells

        Returns:
            Path to saved figure
        """
        if not self.results:
            raise ValueError("No results to plot")

        matrix = self.create_matrix(metric)

        # Larger loss at top
        matrix_display = np.flipud(matrix)
        loss_display = list(reversed(self.loss_probs))

        fig, ax = plt.subplots(figsize=figsize)

        sns.heatmap(
            matrix_display,
            annot=show_values,
            fmt='.3f',
            cmap=cmap,
            xticklabels=self.corrupt_probs,
            yticklabels=loss_display,
            ax=ax,
            cbar_kws={'label': METRIC_LABELS.get(metric, metric)}
        )

        ax.set_xlabel('Corruption Probability', fontsize=12)
        ax.set_ylabel('Loss Probability', fontsize=12)
        ax.set_title(title or f"{METRIC_LABELS.get(metric, metric)} vs Channel Impairment",
                     fontsize=14, fontweight='bold')

        plt.tight_layout()

        if output_file is None:
            os.makedirs(PLOTS_DIR, exist_ok=True)
            output_file = os.path.join(PLOTS_DIR, f'{metric}_heatmap.png')
        else:
            out_dir = os.path.dirname(output_file)
            if out_dir:
                os.makedirs(out_dir, exist_ok=True)

        plt.savefig(output_file, dpi=150, bbox_inches='tight')
        plt.close(fig)

        print(f"Heatmap saved to: {output_file}")
        return output_file

    def plot_all(self, output_dir: Optional[str] = None) -> List[str]:
        """
        Plot every known metric present in the results.

        Args:
            output_dir: Directory for the figures (default: PLOTS_DIR)

        Returns:
            Paths of saved figures
        """
        output_dir = output_dir or PLOTS_DIR
        os.makedirs(output_dir, exist_ok=True)

        paths = []
        for metric in METRIC_LABELS:
            if not any(metric in r for r in self.results):
                continue
            paths.append(self.plot(
                metric=metric,
                output_file=os.path.join(output_dir, f'{metric}_heatmap.png')
            ))
        return paths


if __name__ == "__main__":
    print("=" * 60)
    print("HEATMAP GENERATOR TEST")
    print("=" * 60)

    rng = np.random.default_rng(0)

    # Fake sweep: efficiency falls with both impairments
    test_results = []
    for loss in LOSS_PROBABILITIES:
        for corrupt in CORRUPT_PROBABILITIES:
            for run in range(3):
                efficiency = (1 - loss) * (1 - corrupt) + rng.normal(0, 0.02)
                test_results.append({
                    'loss_prob': loss,
                    'corrupt_prob': corrupt,
                    'run_id': run,
                    'efficiency': max(0.0, efficiency)
                })

    print(f"Generated {len(test_results)} test results")

    heatmap = ReliabilityHeatmap(results=test_results)
    output = heatmap.plot(title="Test Efficiency Heatmap")

    print(f"Test complete: {output}")
