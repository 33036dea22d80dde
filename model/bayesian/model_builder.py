"""
Bayesian Model Builder for the cognition regression analysis.

This module creates the two PyMC regression models of the cognitive score:
a flat linear model and a hierarchical model with one intercept per level
of a grouping factor (socioeconomic status). Normal priors and likelihoods
are written in the precision (inverse-variance) parameterization.
"""

import logging
from typing import Dict, List, Optional, Any

import numpy as np
import pymc as pm

from model.base_model import RegressionData
from model.exceptions import ModelBuildError
from model.constants import (
    FLAT_MODEL,
    HIERARCHICAL_MODEL,
    INTERCEPT,
    DEFAULT_COEF_PRIOR_MEAN,
    DEFAULT_COEF_PRIOR_PRECISION,
    DEFAULT_PRECISION_PRIOR_ALPHA,
    DEFAULT_PRECISION_PRIOR_BETA,
)

logger = logging.getLogger(__name__)

# Free parameters summarized by the diagnostics, per model kind
MODEL_VAR_NAMES: Dict[str, List[str]] = {
    FLAT_MODEL: [INTERCEPT, "beta", "tau"],
    HIERARCHICAL_MODEL: ["mu_alpha", "tau_alpha", "alpha", "beta", "tau"],
}


class BayesianModelBuilder:
    """
    Builds PyMC model graphs for the score regressions.

    ASSUMPTIONS:
    - The score is normally distributed around a linear predictor
    - Error term is homoscedastic with precision tau
    - Group intercepts share a normal population distribution

    EDGE CASES:
    - Hierarchical models need a design with group_idx
    - A single group level makes the group precision unidentified; a warning is logged
    - Vague Gamma priors on precisions can slow NUTS adaptation on raw-scale covariates

    MODELING CHOICES:
    - Coefficients: N(coef_prior_mean, precision=coef_prior_precision)
    - Precisions: Gamma(precision_prior_alpha, precision_prior_beta)
    - Non-centered group intercepts: alpha = mu_alpha + alpha_raw / sqrt(tau_alpha)
    """

    def __init__(self, model_config: Optional[Dict[str, Any]] = None):
        """
        Initialize the model builder.

        Args:
            model_config: Prior hyperparameters; missing keys fall back to defaults
        """
        self.model_config = dict(model_config or {})

        self.coef_prior_mean = self.model_config.get("coef_prior_mean", DEFAULT_COEF_PRIOR_MEAN)
        self.coef_prior_precision = self.model_config.get("coef_prior_precision", DEFAULT_COEF_PRIOR_PRECISION)
        self.precision_prior_alpha = self.model_config.get("precision_prior_alpha", DEFAULT_PRECISION_PRIOR_ALPHA)
        self.precision_prior_beta = self.model_config.get("precision_prior_beta", DEFAULT_PRECISION_PRIOR_BETA)

        if self.coef_prior_precision <= 0:
            raise ModelBuildError(f"coef_prior_precision must be positive, got {self.coef_prior_precision}")
        if self.precision_prior_alpha <= 0 or self.precision_prior_beta <= 0:
            raise ModelBuildError("Gamma prior parameters on precisions must be positive")

    def build_model(self, data: RegressionData, kind: str = FLAT_MODEL) -> pm.Model:
        """
        Build the model of the requested kind.

        Args:
            data: Prepared regression design
            kind: "flat" or "hierarchical"

        Returns:
            PyMC model
        """
        if kind == FLAT_MODEL:
            return self.build_flat_model(data)
        elif kind == HIERARCHICAL_MODEL:
            return self.build_hierarchical_model(data)
        raise ModelBuildError(f"Unsupported Bayesian model kind: {kind}")

    def _coords(self, data: RegressionData) -> Dict[str, Any]:
        return {
            "covariate": list(data.covariate_names),
            "obs_id": np.arange(data.n_obs),
        }

    def _coefficient_priors(self):
        beta = pm.Normal(
            "beta",
            mu=self.coef_prior_mean,
            tau=self.coef_prior_precision,
            dims="covariate"
        )
        tau = pm.Gamma("tau", alpha=self.precision_prior_alpha, beta=self.precision_prior_beta)
        pm.Deterministic("sigma", 1.0 / pm.math.sqrt(tau))
        return beta, tau

    def build_flat_model(self, data: RegressionData) -> pm.Model:
        """
        Flat linear model: score ~ N(intercept + X.beta, precision=tau).

        Args:
            data: Prepared regression design

        Returns:
            PyMC model
        """
        logger.info(f"Building flat model with {data.n_obs} observations and {data.n_covariates} covariates")
        try:
            with pm.Model(coords=self._coords(data)) as model:
                intercept = pm.Normal(
                    INTERCEPT,
                    mu=self.coef_prior_mean,
                    tau=self.coef_prior_precision
                )
                beta, tau = self._coefficient_priors()

                mu = intercept + pm.math.dot(data.X, beta)
                pm.Normal("y_obs", mu=mu, tau=tau, observed=data.y, dims="obs_id")
        except Exception as e:
            logger.error(f"Error building flat model: {str(e)}")
            raise ModelBuildError(f"Error building flat model: {str(e)}") from e

        return model

    def build_hierarchical_model(self, data: RegressionData) -> pm.Model:
        """
        Hierarchical model with one intercept per group level.

        alpha[g] ~ N(mu_alpha, precision=tau_alpha), score ~ N(alpha[g] + X.beta, precision=tau).

        Args:
            data: Prepared regression design with group_idx

        Returns:
            PyMC model
        """
        if data.group_idx is None:
            raise ModelBuildError("Hierarchical model requires a grouped design (group_idx is missing)")
        if data.n_groups < 2:
            logger.warning(f"Only {data.n_groups} group level; group precision is not identified")

        logger.info(
            f"Building hierarchical model with {data.n_obs} observations, "
            f"{data.n_covariates} covariates and {data.n_groups} groups of '{data.group_name}'"
        )

        coords = self._coords(data)
        coords["group"] = [str(label) for label in data.group_labels]

        try:
            with pm.Model(coords=coords) as model:
                mu_alpha = pm.Normal(
                    "mu_alpha",
                    mu=self.coef_prior_mean,
                    tau=self.coef_prior_precision
                )
                tau_alpha = pm.Gamma(
                    "tau_alpha",
                    alpha=self.precision_prior_alpha,
                    beta=self.precision_prior_beta
                )
                # Non-centered parameterization
                alpha_raw = pm.Normal("alpha_raw", mu=0.0, sigma=1.0, dims="group")
                alpha = pm.Deterministic(
                    "alpha",
                    mu_alpha + alpha_raw / pm.math.sqrt(tau_alpha),
                    dims="group"
                )
                beta, tau = self._coefficient_priors()

                mu = alpha[data.group_idx] + pm.math.dot(data.X, beta)
                pm.Normal("y_obs", mu=mu, tau=tau, observed=data.y, dims="obs_id")
        except Exception as e:
            logger.error(f"Error building hierarchical model: {str(e)}")
            raise ModelBuildError(f"Error building hierarchical model: {str(e)}") from e

        return model

    @staticmethod
    def var_names(kind: str) -> List[str]:
        """Parameters reported by the diagnostics for a model kind."""
        if kind not in MODEL_VAR_NAMES:
            raise ModelBuildError(f"Unsupported Bayesian model kind: {kind}")
        return list(MODEL_VAR_NAMES[kind])
