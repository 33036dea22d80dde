"""
Bayesian Model Implementation for the cognition regression analysis.

This module assembles the components from the bayesian/ directory and the
sampling and diagnostics modules into a complete BayesianRegressionModel.
It handles the interactions between the components and provides the same
interface as the least-squares baseline.
"""

from typing import Dict, Any, List, Optional, Union
import time
import pandas as pd
import numpy as np
from pathlib import Path

from utils.logging_utils import get_logger, log_step
from model.exceptions import ModelError, ModelEvaluationError
from model.base_model import BaseRegressionModel, RegressionData
from model.bayesian.model_builder import BayesianModelBuilder
from model.sampling import BayesianSampler
from model.diagnostics import BayesianDiagnostics
from model.constants import (
    FLAT_MODEL,
    HIERARCHICAL_MODEL,
    BAYESIAN_MODEL_KINDS,
    INTERCEPT,
    DEFAULT_DRAWS,
    DEFAULT_TUNE,
    DEFAULT_CHAINS,
    DEFAULT_CORES,
    DEFAULT_TARGET_ACCEPT,
    DEFAULT_STEP_METHOD,
    DEFAULT_RANDOM_SEED,
    RHAT_THRESHOLD,
    MIN_EFFECTIVE_SAMPLE_SIZE,
    DEFAULT_MAX_LAG,
)

logger = get_logger()


class BayesianRegressionModel(BaseRegressionModel):
    """
    Bayesian regression of the cognitive score, flat or hierarchical.

    This class orchestrates the lifecycle of one Bayesian model:
    1. Model building (BayesianModelBuilder)
    2. MCMC sampling (BayesianSampler)
    3. Diagnostics (BayesianDiagnostics)
    4. Posterior-mean point prediction and residuals
    """

    model_type = "bayesian"

    def __init__(
        self,
        kind: str = FLAT_MODEL,
        results_dir: Union[str, Path] = "results",
        model_name: Optional[str] = None,
        model_config: Optional[Dict[str, Any]] = None,
        n_draws: int = DEFAULT_DRAWS,
        n_tune: int = DEFAULT_TUNE,
        n_chains: int = DEFAULT_CHAINS,
        n_cores: int = DEFAULT_CORES,
        target_accept: float = DEFAULT_TARGET_ACCEPT,
        step_method: str = DEFAULT_STEP_METHOD,
        random_seed: Optional[int] = DEFAULT_RANDOM_SEED,
        create_plots: bool = True,
        show_plots: bool = False
    ):
        """
        Initialize the Bayesian regression model.

        Args:
            kind: "flat" or "hierarchical"
            results_dir: Directory to save results
            model_name: Name of the model (defaults to "<kind>_model")
            model_config: Prior hyperparameters and diagnostic settings
            n_draws: Number of posterior draws per chain after tuning
            n_tune: Number of tuning steps per chain
            n_chains: Number of MCMC chains
            n_cores: Number of processes used for the chains
            target_accept: Target acceptance rate for NUTS
            step_method: "nuts" or "metropolis"
            random_seed: Seed for reproducible draws
            create_plots: Whether to save trace and autocorrelation plots
            show_plots: Whether to also display figures interactively

        Raises:
            ModelError: If the kind is unknown or a component cannot be created
        """
        if kind not in BAYESIAN_MODEL_KINDS:
            raise ModelError(f"Unsupported Bayesian model kind: {kind}")

        super().__init__(
            results_dir=results_dir,
            model_name=model_name or f"{kind}_model",
            model_config=model_config
        )
        self.kind = kind
        self.create_plots = create_plots
        self.max_lag = self.model_config.get("max_lag", DEFAULT_MAX_LAG)

        self.model_builder = BayesianModelBuilder(model_config=self.model_config)
        self.sampler = BayesianSampler(
            n_draws=n_draws,
            n_tune=n_tune,
            n_chains=n_chains,
            n_cores=n_cores,
            target_accept=target_accept,
            step_method=step_method,
            random_seed=random_seed
        )
        self.diagnostics = BayesianDiagnostics(
            results_dir=self.results_dir,
            rhat_threshold=self.model_config.get("rhat_threshold", RHAT_THRESHOLD),
            min_ess=self.model_config.get("min_ess", MIN_EFFECTIVE_SAMPLE_SIZE),
            show_plots=show_plots
        )

        self.pymc_model = None
        self.trace = None
        self.diagnostic_results: Dict[str, Any] = {}
        self.autocorrelation_table: Optional[pd.DataFrame] = None
        self._posterior_means: Optional[Dict[str, Any]] = None

    @property
    def var_names(self) -> List[str]:
        return self.model_builder.var_names(self.kind)

    @log_step("Fitting Bayesian regression model")
    def fit(self, data: RegressionData) -> Dict[str, Any]:
        """
        Fit the Bayesian model to a prepared design.

        Args:
            data: Prepared regression design (with group_idx for the hierarchical kind)

        Returns:
            Dictionary with model results; ``success`` is False when a
            model-level step fails, with the error message attached
        """
        start_time = time.time()
        logger.info(f"Fitting {self.kind} model to {data.n_obs} rows, {data.n_covariates} covariates")

        try:
            self.pymc_model = self.model_builder.build_model(data, self.kind)
            self.trace = self.sampler.sample(self.pymc_model)
            self.data = data
            self.is_fitted = True
            self._posterior_means = None

            self.diagnostic_results = self.diagnostics.compute_diagnostics(self.trace, self.var_names)
            converged = self.diagnostics.assess_convergence(self.diagnostic_results)
            self.autocorrelation_table = self.diagnostics.autocorrelation(
                self.trace, self.var_names, self.max_lag
            )
            if self.create_plots:
                self.diagnostics.plot_trace(self.trace, self.var_names)
                self.diagnostics.plot_autocorr(self.trace, self.var_names, self.max_lag)

            means = self.posterior_means()
        except ModelError as e:
            self.is_fitted = False
            self.data = None
            self._posterior_means = None
            self.trace = None
            self.diagnostic_results = {}
            self.autocorrelation_table = None
            runtime = time.time() - start_time
            logger.error(f"{self.kind} model fitting failed after {runtime:.2f} seconds: {str(e)}")
            self.results = {
                "model_type": self.model_type,
                "kind": self.kind,
                "model_name": self.model_name,
                "success": False,
                "error_type": type(e).__name__,
                "error": str(e),
                "runtime": runtime,
            }
            return self.results

        runtime = time.time() - start_time
        logger.info(f"{self.kind} model fitting complete in {runtime:.2f} seconds")

        self.results = {
            "model_type": self.model_type,
            "kind": self.kind,
            "model_name": self.model_name,
            "success": True,
            "runtime": runtime,
            "n_obs": data.n_obs,
            "converged": converged,
            "coefficients": means["coefficients"],
            "tau": means["tau"],
            "sigma": means["sigma"],
            "group_intercepts": means["group_intercepts"],
            "diagnostics": self.diagnostic_results,
            "settings": self.sampler.get_summary(),
        }
        return self.results

    def _posterior_mean(self, var: str) -> np.ndarray:
        return self.trace.posterior[var].mean(dim=("chain", "draw")).to_numpy()

    def posterior_means(self) -> Dict[str, Any]:
        """
        Posterior means of the model parameters.

        Returns:
            Dictionary with:
            - coefficients: Series of the intercept followed by one entry per
              covariate (for the hierarchical kind the intercept is mu_alpha)
            - tau: observation precision
            - sigma: observation standard deviation
            - group_intercepts: Series indexed by group label (hierarchical only, else None)

        Raises:
            ModelEvaluationError: If the model has not been fitted
        """
        self._require_fitted()
        if self._posterior_means is not None:
            return self._posterior_means

        intercept_var = "mu_alpha" if self.kind == HIERARCHICAL_MODEL else INTERCEPT
        intercept = float(self._posterior_mean(intercept_var))
        beta = np.atleast_1d(self._posterior_mean("beta"))

        coefficients = pd.Series(
            np.concatenate([[intercept], beta]),
            index=self.data.coefficient_names,
            name=self.kind
        )

        group_intercepts = None
        if self.kind == HIERARCHICAL_MODEL:
            group_intercepts = pd.Series(
                self._posterior_mean("alpha"),
                index=pd.Index(self.data.group_labels, name=self.data.group_name),
                name="alpha"
            )

        self._posterior_means = {
            "coefficients": coefficients,
            "tau": float(self._posterior_mean("tau")),
            "sigma": float(self._posterior_mean("sigma")),
            "group_intercepts": group_intercepts,
        }
        return self._posterior_means

    @property
    def coefficients(self) -> pd.Series:
        return self.posterior_means()["coefficients"]

    def _group_positions(self, data: RegressionData) -> np.ndarray:
        if data.group_idx is None:
            raise ModelEvaluationError("Hierarchical prediction requires a grouped design")
        trained = {str(label): pos for pos, label in enumerate(self.data.group_labels)}
        try:
            lookup = np.array([trained[str(label)] for label in data.group_labels])
        except KeyError as e:
            raise ModelEvaluationError(f"Group level {e} was not seen during fitting") from e
        return lookup[data.group_idx]

    def predict(self, data: Optional[RegressionData] = None) -> pd.Series:
        """
        Posterior-mean point prediction of the score.

        Raises:
            ModelEvaluationError: If the model has not been fitted or the design does not match
        """
        self._require_fitted()
        data = data if data is not None else self.data
        if data.n_covariates != self.data.n_covariates:
            raise ModelEvaluationError(
                f"Design has {data.n_covariates} covariates, model expects {self.data.n_covariates}"
            )

        means = self.posterior_means()
        beta = means["coefficients"].to_numpy()[1:]
        if self.kind == HIERARCHICAL_MODEL:
            alpha = means["group_intercepts"].to_numpy()
            predicted = alpha[self._group_positions(data)] + data.X @ beta
        else:
            predicted = means["coefficients"].iloc[0] + data.X @ beta

        return pd.Series(predicted, index=data.index, name="predicted")

    def summary_table(self) -> pd.DataFrame:
        """Posterior summary (mean, sd, HDI, ESS, R-hat) of the model parameters."""
        self._require_fitted()
        if self.diagnostics.summary_table is None:
            self.diagnostics.compute_diagnostics(self.trace, self.var_names)
        return self.diagnostics.summary_table
