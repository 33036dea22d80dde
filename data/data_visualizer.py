#!/usr/bin/env python3
"""
Data Visualizer for the OASIS cognition regression analysis

This module provides exploratory plots and summary tables for the clean
visit table before any model is fitted.
"""

import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from typing import List, Optional
from pathlib import Path

from utils.logging_utils import logger
from utils.file_utils import ensure_dir_exists
from config.default_config import VISUALIZATION_SETTINGS


class DataVisualizer:
    """
    Handles exploratory visualization of the visit table.

    This class is responsible for:
    - Writing summary statistics
    - Scatter plots of the cognitive score against each covariate
    - Score distribution by socioeconomic-status group

    Parameters
    ----------
    results_dir : str or Path
        Directory to save results and visualizations.
    score_col : str
        Name of the cognitive score column.
    show_plots : bool
        Whether to also display figures interactively.
    """

    def __init__(
        self,
        results_dir: str = "results",
        score_col: str = "MMSE",
        show_plots: bool = False
    ):
        self.results_dir = Path(results_dir)
        self.score_col = score_col
        self.show_plots = show_plots
        self.dpi = VISUALIZATION_SETTINGS["plot_dpi"]
        sns.set_style(VISUALIZATION_SETTINGS["style"])

    def _finish(self, fig: plt.Figure, path: Path) -> Path:
        fig.tight_layout()
        fig.savefig(path, dpi=self.dpi, bbox_inches="tight")
        if self.show_plots:
            plt.show()
        plt.close(fig)
        logger.info(f"Saved plot to {path}")
        return path

    def generate_data_diagnostics(
        self,
        data: pd.DataFrame,
        covariates: List[str],
        group_col: Optional[str] = None,
        target_dir: Optional[Path] = None
    ) -> List[Path]:
        """
        Generate summary statistics and exploratory plots.

        Parameters
        ----------
        data : pd.DataFrame
            Clean table.
        covariates : list of str
            Columns to plot against the score.
        group_col : str, optional
            Categorical column for the grouped box plot.
        target_dir : Path, optional
            Output directory; defaults to results_dir / "data_diagnostics".

        Returns
        -------
        list of Path
            Files written.
        """
        target_dir = Path(target_dir) if target_dir is not None else self.results_dir / "data_diagnostics"
        ensure_dir_exists(target_dir)
        logger.info("Generating data diagnostics")

        written = []
        summary_path = target_dir / "summary_statistics.csv"
        data.describe().transpose().to_csv(summary_path)
        written.append(summary_path)
        logger.info(f"Saved summary statistics to {summary_path}")

        written.append(self.plot_score_scatter(data, covariates, target_dir / "score_vs_covariates.png"))

        if group_col is not None and group_col in data.columns:
            written.append(self.plot_score_by_group(data, group_col, target_dir / f"score_by_{group_col}.png"))

        return written

    def plot_score_scatter(self, data: pd.DataFrame, covariates: List[str], path: Path) -> Path:
        """Scatter the score against each covariate with a linear trend."""
        n_cols = min(3, len(covariates))
        n_rows = (len(covariates) + n_cols - 1) // n_cols
        fig, axes = plt.subplots(n_rows, n_cols, figsize=(5 * n_cols, 4 * n_rows), squeeze=False)

        for ax, covariate in zip(axes.flat, covariates):
            sns.regplot(
                x=data[covariate], y=data[self.score_col], ax=ax,
                scatter_kws={"alpha": 0.5, "s": 15}, line_kws={"color": "red"}
            )
            ax.set_xlabel(covariate)
            ax.set_ylabel(self.score_col)

        for ax in list(axes.flat)[len(covariates):]:
            ax.set_visible(False)

        fig.suptitle(f"{self.score_col} against covariates")
        return self._finish(fig, path)

    def plot_score_by_group(self, data: pd.DataFrame, group_col: str, path: Path) -> Path:
        """Box plot of the score per group level."""
        fig, ax = plt.subplots(figsize=VISUALIZATION_SETTINGS["figsize_medium"])
        sns.boxplot(x=data[group_col], y=data[self.score_col], color="lightsteelblue", ax=ax)
        sns.stripplot(x=data[group_col], y=data[self.score_col], color="black", size=3, alpha=0.4, ax=ax)
        ax.set_title(f"{self.score_col} by {group_col}")
        return self._finish(fig, path)
