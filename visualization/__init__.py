"""
Visualization package - Plotting and visualization tools.

Contains:
- Heatmaps of sweep metrics over loss and corruption probability
"""

from .heatmap import ReliabilityHeatmap

__all__ = [
    'ReliabilityHeatmap'
]
