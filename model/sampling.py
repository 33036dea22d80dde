"""
Bayesian model sampling component.

This module provides MCMC sampling from PyMC models. Multiple independent
chains are requested through the sampler call; no concurrency is managed here.
"""
from typing import Dict, Optional, Any

import arviz as az
import pymc as pm

from utils.logging_utils import logger, log_step
from model.exceptions import SamplingError
from model.constants import (
    DEFAULT_DRAWS,
    DEFAULT_TUNE,
    DEFAULT_CHAINS,
    DEFAULT_CORES,
    DEFAULT_TARGET_ACCEPT,
    DEFAULT_RANDOM_SEED,
    DEFAULT_STEP_METHOD,
    STEP_METHODS,
)


class BayesianSampler:
    """
    Handles MCMC sampling for the regression models.

    This component is responsible for:
    - Running the NUTS or Metropolis sampler
    - Keeping the trace and a summary of the sampling settings
    """

    def __init__(
        self,
        n_draws: int = DEFAULT_DRAWS,
        n_tune: int = DEFAULT_TUNE,
        n_chains: int = DEFAULT_CHAINS,
        n_cores: int = DEFAULT_CORES,
        target_accept: float = DEFAULT_TARGET_ACCEPT,
        step_method: str = DEFAULT_STEP_METHOD,
        random_seed: Optional[int] = DEFAULT_RANDOM_SEED,
        progressbar: bool = False
    ):
        """
        Initialize the sampler.

        Args:
            n_draws: Number of sampling draws per chain after tuning
            n_tune: Number of tuning steps per chain
            n_chains: Number of independent MCMC chains
            n_cores: Number of processes PyMC may use for the chains
            target_accept: Target acceptance rate for NUTS
            step_method: "nuts" or "metropolis"
            random_seed: Seed for reproducible draws
            progressbar: Whether PyMC shows its progress bar
        """
        if step_method not in STEP_METHODS:
            raise SamplingError(f"Unsupported step method: {step_method}", details=f"expected one of {STEP_METHODS}")

        self.n_draws = n_draws
        self.n_tune = n_tune
        self.n_chains = n_chains
        self.n_cores = n_cores
        self.target_accept = target_accept
        self.step_method = step_method
        self.random_seed = random_seed
        self.progressbar = progressbar

        self.trace: Optional[az.InferenceData] = None
        self.summary: Optional[Dict[str, Any]] = None

    @log_step("Running MCMC sampling")
    def sample(self, model: pm.Model) -> az.InferenceData:
        """
        Run MCMC sampling on the given PyMC model.

        Args:
            model: PyMC model

        Returns:
            ArviZ InferenceData with posterior and sample_stats groups

        Raises:
            SamplingError: If sampling fails
        """
        logger.info(
            f"Starting MCMC sampling with parameters: draws={self.n_draws}, tune={self.n_tune}, "
            f"chains={self.n_chains}, step={self.step_method}, target_accept={self.target_accept}"
        )

        try:
            with model:
                kwargs: Dict[str, Any] = {
                    "draws": self.n_draws,
                    "tune": self.n_tune,
                    "chains": self.n_chains,
                    "cores": self.n_cores,
                    "random_seed": self.random_seed,
                    "progressbar": self.progressbar,
                    "return_inferencedata": True,
                }
                if self.step_method == "metropolis":
                    kwargs["step"] = pm.Metropolis()
                else:
                    kwargs["target_accept"] = self.target_accept

                trace = pm.sample(**kwargs)
        except ValueError as e:
            raise SamplingError(f"Invalid parameter for MCMC sampling: {str(e)}") from e
        except RuntimeError as e:
            raise SamplingError(f"Runtime error during MCMC sampling: {str(e)}") from e
        except Exception as e:
            raise SamplingError(f"Unexpected error during MCMC sampling: {str(e)}") from e

        self.trace = trace
        self.summary = {
            "n_samples": self.n_draws * self.n_chains,
            "n_draws": self.n_draws,
            "n_tune": self.n_tune,
            "n_chains": self.n_chains,
            "step_method": self.step_method,
            "target_accept": self.target_accept,
            "random_seed": self.random_seed,
        }

        logger.info(f"Completed MCMC sampling with {self.summary['n_samples']} posterior samples")
        return trace

    def get_summary(self) -> Dict[str, Any]:
        """
        Get summary of the sampling settings.

        Raises:
            SamplingError: If sampling has not run
        """
        if self.summary is None:
            raise SamplingError("No sampling summary available. Run sampling first.")
        return dict(self.summary)
