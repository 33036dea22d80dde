"""
Visualization module for regression residuals.

This module provides the prediction and residual plots used to compare the
least-squares baseline with the Bayesian fits.
"""
from typing import Dict, Optional, Union
import numpy as np
import pandas as pd
from pathlib import Path
import matplotlib.pyplot as plt
import seaborn as sns
from scipy import stats

from utils.logging_utils import logger
from model.exceptions import VisualizationError
from model.constants import DEFAULT_FIGURE_SIZE, DEFAULT_DPI, DEFAULT_MAX_LAG


def residual_autocorrelation(residuals: Union[pd.Series, np.ndarray], max_lag: int = DEFAULT_MAX_LAG) -> np.ndarray:
    """
    Sample autocorrelation of a residual sequence at lags 0..max_lag.

    Rows are taken in their stored order (visits sorted by subject), so the
    statistic shows structure left in the residuals across adjacent visits.
    """
    values = np.asarray(residuals, dtype=float)
    n = len(values)
    max_lag = min(max_lag, n - 1)
    centered = values - values.mean()
    denom = float(centered @ centered)
    if denom == 0:
        return np.r_[1.0, np.zeros(max_lag)]
    return np.array([float(centered[: n - lag] @ centered[lag:]) / denom for lag in range(max_lag + 1)])


class ResidualVisualizer:
    """
    Visualization tools for model predictions and residuals.

    Responsibilities:
    - Observed vs predicted and residual vs fitted scatter plots
    - Normal QQ plots and residual autocorrelation
    - Comparing residuals of two models
    """

    def __init__(
        self,
        results_dir: Optional[Path] = None,
        show_plots: bool = False
    ):
        """
        Initialize the visualizer.

        Args:
            results_dir: Directory to save visualization outputs
            show_plots: Whether to also display figures interactively
        """
        self.results_dir = Path(results_dir) if results_dir is not None else None
        self.show_plots = show_plots

        if self.results_dir is not None:
            self.viz_dir = self.results_dir / "visualizations"
            self.viz_dir.mkdir(parents=True, exist_ok=True)
        else:
            self.viz_dir = None

        sns.set_style("whitegrid")

    def _finish(self, fig: plt.Figure, filename: str) -> Optional[Path]:
        output_path = None
        if self.viz_dir is not None:
            output_path = self.viz_dir / filename
            fig.savefig(output_path, dpi=DEFAULT_DPI, bbox_inches="tight")
            logger.info(f"Saved plot to {output_path}")
        else:
            logger.warning("No visualization directory specified")
        if self.show_plots:
            plt.show()
        plt.close(fig)
        return output_path

    def plot_observed_vs_predicted(
        self,
        observed: pd.Series,
        predicted: pd.Series,
        label: str = "model",
        filename: Optional[str] = None
    ) -> Optional[Path]:
        """
        Scatter of observed against predicted score with the identity line.

        Raises:
            VisualizationError: If plotting fails
        """
        filename = filename or f"{label}_observed_vs_predicted.png"
        try:
            fig, ax = plt.subplots(figsize=DEFAULT_FIGURE_SIZE)
            ax.scatter(predicted, observed, alpha=0.6, color="steelblue", edgecolor="white")
            lims = [
                min(np.min(predicted), np.min(observed)),
                max(np.max(predicted), np.max(observed)),
            ]
            ax.plot(lims, lims, color="red", linestyle="--", alpha=0.7, label="y = x")
            ax.set_xlabel("Predicted")
            ax.set_ylabel("Observed")
            ax.set_title(f"Observed vs Predicted ({label})")
            ax.legend()
        except Exception as e:
            raise VisualizationError(f"Observed vs predicted plotting failed: {str(e)}") from e
        return self._finish(fig, filename)

    def plot_residuals_vs_fitted(
        self,
        fitted: pd.Series,
        residuals: pd.Series,
        label: str = "model",
        filename: Optional[str] = None
    ) -> Optional[Path]:
        """
        Scatter of residuals against fitted values.

        Raises:
            VisualizationError: If plotting fails
        """
        filename = filename or f"{label}_residuals_vs_fitted.png"
        try:
            fig, ax = plt.subplots(figsize=DEFAULT_FIGURE_SIZE)
            sns.scatterplot(x=np.asarray(fitted), y=np.asarray(residuals), alpha=0.6, ax=ax)
            ax.axhline(0, color="red", linestyle="--", alpha=0.7)
            ax.set_xlabel("Fitted")
            ax.set_ylabel("Residual")
            ax.set_title(f"Residuals vs Fitted ({label})")
        except Exception as e:
            raise VisualizationError(f"Residual plotting failed: {str(e)}") from e
        return self._finish(fig, filename)

    def plot_qq(
        self,
        residuals: pd.Series,
        label: str = "model",
        filename: Optional[str] = None
    ) -> Optional[Path]:
        """
        Normal QQ plot of the residuals.

        Raises:
            VisualizationError: If plotting fails
        """
        filename = filename or f"{label}_qq.png"
        try:
            fig, ax = plt.subplots(figsize=DEFAULT_FIGURE_SIZE)
            stats.probplot(np.asarray(residuals, dtype=float), dist="norm", plot=ax)
            ax.set_title(f"Normal Q-Q Plot of Residuals ({label})")
        except Exception as e:
            raise VisualizationError(f"QQ plotting failed: {str(e)}") from e
        return self._finish(fig, filename)

    def plot_residual_autocorrelation(
        self,
        residuals: pd.Series,
        label: str = "model",
        max_lag: int = DEFAULT_MAX_LAG,
        filename: Optional[str] = None
    ) -> Optional[Path]:
        """
        Bar plot of residual autocorrelation by lag with approximate 95% bounds.

        Raises:
            VisualizationError: If plotting fails
        """
        filename = filename or f"{label}_residual_autocorrelation.png"
        try:
            acf = residual_autocorrelation(residuals, max_lag)
            bound = 1.96 / np.sqrt(len(residuals))

            fig, ax = plt.subplots(figsize=DEFAULT_FIGURE_SIZE)
            ax.bar(np.arange(len(acf)), acf, color="steelblue", width=0.6)
            ax.axhline(bound, color="red", linestyle="--", alpha=0.7)
            ax.axhline(-bound, color="red", linestyle="--", alpha=0.7)
            ax.axhline(0, color="black", linewidth=0.8)
            ax.set_xlabel("Lag")
            ax.set_ylabel("Autocorrelation")
            ax.set_title(f"Residual Autocorrelation ({label})")
        except Exception as e:
            raise VisualizationError(f"Residual autocorrelation plotting failed: {str(e)}") from e
        return self._finish(fig, filename)

    def plot_residual_comparison(
        self,
        ols_residuals: pd.Series,
        bayes_residuals: pd.Series,
        label: str = "bayes",
        filename: Optional[str] = None
    ) -> Optional[Path]:
        """
        Scatter of least-squares residuals against Bayesian residuals.

        Raises:
            VisualizationError: If plotting fails
        """
        filename = filename or f"ols_vs_{label}_residuals.png"
        try:
            fig, axes = plt.subplots(1, 2, figsize=(DEFAULT_FIGURE_SIZE[0] * 1.6, DEFAULT_FIGURE_SIZE[1]))

            ax = axes[0]
            ax.scatter(ols_residuals, bayes_residuals, alpha=0.6, color="steelblue", edgecolor="white")
            lims = [
                min(np.min(ols_residuals), np.min(bayes_residuals)),
                max(np.max(ols_residuals), np.max(bayes_residuals)),
            ]
            ax.plot(lims, lims, color="red", linestyle="--", alpha=0.7)
            ax.set_xlabel("OLS residual")
            ax.set_ylabel(f"Bayesian residual ({label})")
            ax.set_title("Residual Comparison")

            ax = axes[1]
            sns.histplot(np.asarray(ols_residuals), kde=True, color="grey", label="OLS", ax=ax, stat="density")
            sns.histplot(np.asarray(bayes_residuals), kde=True, color="steelblue", label=label, ax=ax, stat="density")
            ax.set_xlabel("Residual")
            ax.set_title("Residual Distributions")
            ax.legend()

            fig.tight_layout()
        except Exception as e:
            raise VisualizationError(f"Residual comparison plotting failed: {str(e)}") from e
        return self._finish(fig, filename)

    def plot_model_residuals(
        self,
        observed: pd.Series,
        predicted: pd.Series,
        label: str,
        max_lag: int = DEFAULT_MAX_LAG
    ) -> Dict[str, Optional[Path]]:
        """
        Produce the standard residual plots for one fitted model.

        Returns:
            Dictionary of plot name to saved path
        """
        residuals = observed - predicted
        return {
            "observed_vs_predicted": self.plot_observed_vs_predicted(observed, predicted, label),
            "residuals_vs_fitted": self.plot_residuals_vs_fitted(predicted, residuals, label),
            "qq": self.plot_qq(residuals, label),
            "autocorrelation": self.plot_residual_autocorrelation(residuals, label, max_lag),
        }

    @staticmethod
    def compare_residuals(ols: pd.Series, bayes: pd.Series) -> Dict[str, float]:
        """
        Numerical comparison of two residual vectors over the same rows.

        Returns:
            Dictionary with RMSE of each model, mean and max absolute
            difference, and the Pearson correlation between the residuals

        Raises:
            VisualizationError: If the vectors have different lengths
        """
        ols_values = np.asarray(ols, dtype=float)
        bayes_values = np.asarray(bayes, dtype=float)
        if ols_values.shape != bayes_values.shape:
            raise VisualizationError(
                f"Residual vectors differ in length: {len(ols_values)} vs {len(bayes_values)}"
            )

        diff = np.abs(ols_values - bayes_values)
        if ols_values.std() > 0 and bayes_values.std() > 0:
            correlation = float(stats.pearsonr(ols_values, bayes_values)[0])
        else:
            correlation = float("nan")

        return {
            "rmse_ols": float(np.sqrt(np.mean(ols_values ** 2))),
            "rmse_bayes": float(np.sqrt(np.mean(bayes_values ** 2))),
            "mean_abs_diff": float(diff.mean()),
            "max_abs_diff": float(diff.max()),
            "correlation": correlation,
        }
