"""
Visualization package - Plotting tools for sweep results.
"""

from .heatmap import RetransmissionHeatmap

__all__ = [
    'RetransmissionHeatmap'
]
