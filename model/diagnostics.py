"""
Diagnostics module for the Bayesian regression models.

This module provides convergence checks for MCMC output: the scale-reduction
statistic (R-hat), effective sample size and within-chain autocorrelation.
"""
from typing import Dict, List, Optional, Any
from pathlib import Path

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import arviz as az

from utils.logging_utils import logger
from model.exceptions import ModelEvaluationError, VisualizationError
from model.constants import RHAT_THRESHOLD, MIN_EFFECTIVE_SAMPLE_SIZE, DEFAULT_MAX_LAG, DEFAULT_DPI


class BayesianDiagnostics:
    """
    Provides diagnostics for the Bayesian regression models.

    Responsibilities:
    - Computing convergence diagnostics
    - Autocorrelation by lag
    - Producing trace and autocorrelation plots
    """

    def __init__(
        self,
        results_dir: Optional[Path] = None,
        rhat_threshold: float = RHAT_THRESHOLD,
        min_ess: float = MIN_EFFECTIVE_SAMPLE_SIZE,
        show_plots: bool = False
    ):
        """
        Initialize the diagnostics component.

        Args:
            results_dir: Directory to save diagnostic tables and plots
            rhat_threshold: Largest R-hat accepted as converged
            min_ess: Smallest bulk effective sample size accepted as converged
            show_plots: Whether to also display figures interactively
        """
        self.rhat_threshold = rhat_threshold
        self.min_ess = min_ess
        self.show_plots = show_plots
        self.summary_table: Optional[pd.DataFrame] = None

        self.results_dir = Path(results_dir) if results_dir is not None else None
        if self.results_dir is not None:
            self.diagnostics_dir = self.results_dir / "diagnostics"
            self.diagnostics_dir.mkdir(parents=True, exist_ok=True)
        else:
            self.diagnostics_dir = None

    def compute_diagnostics(
        self,
        trace: az.InferenceData,
        var_names: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """
        Compute diagnostic metrics for the trace.

        Args:
            trace: ArviZ InferenceData object with posterior samples
            var_names: Parameters to include (all posterior variables if None)

        Returns:
            Dictionary of diagnostic metrics

        Raises:
            ModelEvaluationError: If computation fails
        """
        try:
            summary = az.summary(trace, var_names=var_names, round_to="none")
        except (KeyError, ValueError, TypeError) as e:
            raise ModelEvaluationError(f"Diagnostic computation failed: {str(e)}") from e

        self.summary_table = summary

        n_chains = int(trace.posterior.sizes["chain"])
        rhat_values = summary["r_hat"].to_numpy(dtype=float)
        rhat_available = n_chains > 1 and bool(np.isfinite(rhat_values).any())

        n_divergent = 0
        if "sample_stats" in trace.groups() and "diverging" in trace.sample_stats:
            n_divergent = int(trace.sample_stats["diverging"].sum().item())

        ess_bulk = summary["ess_bulk"].to_numpy(dtype=float)
        ess_tail = summary["ess_tail"].to_numpy(dtype=float)
        mcse_sd_ratios = summary["mcse_mean"] / summary["sd"]

        rhat_max = float(np.nanmax(rhat_values)) if rhat_available else float("nan")
        diagnostics = {
            "n_chains": n_chains,
            "n_draws": int(trace.posterior.sizes["draw"]),
            "n_parameters": len(summary),
            "rhat_max": rhat_max,
            "rhat_mean": float(np.nanmean(rhat_values)) if rhat_available else float("nan"),
            "ess_bulk_min": float(np.nanmin(ess_bulk)),
            "ess_bulk_mean": float(np.nanmean(ess_bulk)),
            "ess_tail_min": float(np.nanmin(ess_tail)),
            "mcse_sd_max": float(np.nanmax(mcse_sd_ratios)),
            "n_divergent": n_divergent,
            "converged": bool(
                rhat_available and rhat_max < self.rhat_threshold and n_divergent == 0
            ),
        }

        logger.info(
            f"Computed diagnostics: max Rhat = {diagnostics['rhat_max']:.3f}, "
            f"min ESS = {diagnostics['ess_bulk_min']:.1f}, "
            f"n_divergent = {diagnostics['n_divergent']}"
        )
        if not rhat_available:
            logger.warning("R-hat needs at least two chains; convergence cannot be assessed")

        if self.diagnostics_dir is not None:
            summary_path = self.diagnostics_dir / "summary.csv"
            summary.to_csv(summary_path)
            logger.info(f"Saved summary table to {summary_path}")

        return diagnostics

    def autocorrelation(
        self,
        trace: az.InferenceData,
        var_names: Optional[List[str]] = None,
        max_lag: int = DEFAULT_MAX_LAG
    ) -> pd.DataFrame:
        """
        Within-chain autocorrelation by lag, averaged over chains.

        Args:
            trace: ArviZ InferenceData object with posterior samples
            var_names: Parameters to include (all posterior variables if None)
            max_lag: Largest lag reported

        Returns:
            DataFrame indexed by lag (0..max_lag) with one column per scalar parameter
        """
        posterior = trace.posterior
        var_names = var_names or list(posterior.data_vars)
        n_draws = int(posterior.sizes["draw"])
        max_lag = min(max_lag, n_draws - 1)

        columns: Dict[str, np.ndarray] = {}
        for var in var_names:
            if var not in posterior:
                raise ModelEvaluationError(f"Variable '{var}' not found in posterior")
            da = posterior[var]
            extra_dims = [d for d in da.dims if d not in ("chain", "draw")]
            values = da.transpose("chain", "draw", *extra_dims).to_numpy()
            values = values.reshape(values.shape[0], values.shape[1], -1)

            if extra_dims:
                coord_values = [da.coords[d].to_numpy() for d in extra_dims]
                labels = [
                    f"{var}[{', '.join(str(v) for v in combo)}]"
                    for combo in np.array(np.meshgrid(*coord_values, indexing="ij")).reshape(len(extra_dims), -1).T
                ]
            else:
                labels = [var]

            for j, label in enumerate(labels):
                per_chain = [az.autocorr(values[c, :, j])[: max_lag + 1] for c in range(values.shape[0])]
                columns[label] = np.mean(per_chain, axis=0)

        result = pd.DataFrame(columns, index=pd.RangeIndex(max_lag + 1, name="lag"))
        return result

    def assess_convergence(self, diagnostics: Dict[str, Any]) -> bool:
        """
        Assess convergence of the MCMC chains.

        Args:
            diagnostics: Metrics returned by compute_diagnostics

        Returns:
            True if R-hat and divergences pass and the bulk ESS reaches min_ess
        """
        converged = bool(diagnostics["converged"] and diagnostics["ess_bulk_min"] >= self.min_ess)

        if converged:
            logger.info("MCMC chains have converged successfully")
        else:
            logger.warning(
                f"MCMC chains may not have converged properly "
                f"(Rhat threshold {self.rhat_threshold}, min ESS {self.min_ess})"
            )
        return converged

    def _save(self, fig: plt.Figure, filename: str) -> Optional[Path]:
        output_path = None
        if self.diagnostics_dir is not None:
            output_path = self.diagnostics_dir / filename
            fig.savefig(output_path, dpi=DEFAULT_DPI, bbox_inches="tight")
            logger.info(f"Saved diagnostic plot to {output_path}")
        if self.show_plots:
            plt.show()
        plt.close(fig)
        return output_path

    def plot_trace(
        self,
        trace: az.InferenceData,
        var_names: Optional[List[str]] = None,
        filename: str = "trace_plot.png"
    ) -> Optional[Path]:
        """
        Generate trace plots for model parameters.

        Returns:
            Path to the saved plot or None if no diagnostics directory is set
        """
        try:
            axes = az.plot_trace(trace, var_names=var_names, compact=True)
            fig = np.ravel(axes)[0].figure
            fig.tight_layout()
        except Exception as e:
            raise VisualizationError(f"Trace plotting failed: {str(e)}") from e
        return self._save(fig, filename)

    def plot_autocorr(
        self,
        trace: az.InferenceData,
        var_names: Optional[List[str]] = None,
        max_lag: int = DEFAULT_MAX_LAG,
        filename: str = "autocorrelation_plot.png"
    ) -> Optional[Path]:
        """
        Generate per-chain autocorrelation plots.

        Returns:
            Path to the saved plot or None if no diagnostics directory is set
        """
        try:
            axes = az.plot_autocorr(trace, var_names=var_names, max_lag=max_lag, combined=False)
            fig = np.ravel(axes)[0].figure
        except Exception as e:
            raise VisualizationError(f"Autocorrelation plotting failed: {str(e)}") from e
        return self._save(fig, filename)
