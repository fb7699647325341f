"""
Retransmission Heatmap Visualization

This module generates 2D heatmaps of the mean number of retransmissions
per delivered message as a function of loss and corruption probability.
"""

import os
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns

from config import PLOTS_DIR


class RetransmissionHeatmap:
    """
    Generates 2D heatmaps of retransmission cost(loss, corruption).

    Rows follow loss probability (highest at top), columns corruption
    probability.
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
            self.results = pd.DataFrame(results)
        elif csv_file:
            self.results = pd.read_csv(csv_file)
        else:
            self.results = pd.DataFrame()

    @property
    def loss_probs(self) -> List[float]:
        if self.results.empty:
            return []
        return sorted(self.results['loss_prob'].unique().tolist())

    @property
    def corrupt_probs(self) -> List[float]:
        if self.results.empty:
            return []
        return sorted(self.results['corrupt_prob'].unique().tolist())

    @staticmethod
    def _pivot(results: pd.DataFrame, metric: str) -> pd.DataFrame:
        """Mean of metric per (loss, corruption), highest loss first."""
        table = results.pivot_table(
            index='loss_prob', columns='corrupt_prob', values=metric, aggfunc='mean'
        )
        return table.sort_index(ascending=False)

    def create_matrix(self, metric: str = 'resent_per_delivered') -> np.ndarray:
        """
        Create matrix of mean metric values.

        Rows follow ascending loss probability, columns ascending
        corruption probability.
        """
        if self.results.empty:
            raise ValueError("No results to plot")
        return self._pivot(self.results, metric).sort_index().to_numpy()

    def plot(
        self,
        output_file: Optional[str] = None,
        title: str = "Retransmissions per Delivered Message",
        metric: str = 'resent_per_delivered',
        figsize: Tuple[int, int] = (10, 8),
        cmap: str = "magma_r",
        show_values: bool = True
    ) -> str:
        """
        Generate and save heatmap.

        Args:
            output_file: Output file path (auto-generated if None)
            title: Plot title
            metric: Result column to plot
            figsize: Figure size (width, height)
            cmap: Colormap name
            show_values: Show values in cells

        Returns:
            Path to saved figure
        """
        if self.results.empty:
            raise ValueError("No results to plot")

        table = self._pivot(self.results, metric)

        fig, ax = plt.subplots(figsize=figsize)
        sns.heatmap(
            table,
            annot=show_values,
            fmt='.2f',
            cmap=cmap,
            ax=ax,
            cbar_kws={'label': metric.replace('_', ' ')}
        )

        ax.set_xlabel('Corruption Probability', fontsize=12)
        ax.set_ylabel('Loss Probability', fontsize=12)
        ax.set_title(title, fontsize=14, fontweight='bold')

        fig.tight_layout()
        output_file = self._output_path(output_file, f'{metric}_heatmap.png')
        fig.savefig(output_file, dpi=150, bbox_inches='tight')
        plt.close(fig)

        return output_file

    def plot_comparison(
        self,
        other_results: List[Dict],
        output_file: Optional[str] = None,
        titles: Tuple[str, str] = ("Resend All", "Resend Oldest"),
        metric: str = 'resent_per_delivered'
    ) -> str:
        """
        Generate side-by-side heatmaps, e.g. for two retransmission policies.

        Both panels share one color scale.

        Args:
            other_results: Results to compare with
            output_file: Output file path
            titles: Titles for each subplot
            metric: Result column to plot

        Returns:
            Path to saved figure
        """
        if self.results.empty or not other_results:
            raise ValueError("No results to plot")

        tables = [self._pivot(self.results, metric),
                  self._pivot(pd.DataFrame(other_results), metric)]
        vmax = max(float(np.nanmax(t.to_numpy())) for t in tables)

        fig, axes = plt.subplots(1, 2, figsize=(16, 6))
        for ax, table, title in zip(axes, tables, titles):
            sns.heatmap(table, annot=True, fmt='.2f', cmap='magma_r',
                        vmin=0.0, vmax=vmax, ax=ax)
            ax.set_xlabel('Corruption Probability')
            ax.set_ylabel('Loss Probability')
            ax.set_title(title)

        fig.suptitle(metric.replace('_', ' ').title(), fontsize=14, fontweight='bold')
        fig.tight_layout()
        output_file = self._output_path(output_file, f'{metric}_comparison.png')
        fig.savefig(output_file, dpi=150, bbox_inches='tight')
        plt.close(fig)

        return output_file

    @staticmethod
    def _output_path(output_file: Optional[str], default_name: str) -> str:
        if output_file is None:
            os.makedirs(PLOTS_DIR, exist_ok=True)
            return os.path.join(PLOTS_DIR, default_name)
        directory = os.path.dirname(output_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        return output_file
