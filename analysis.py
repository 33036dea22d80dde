#!/usr/bin/env python3
"""
OASIS Cognition Regression Analysis Functions Library

This module provides the analysis entry points used by main.py: the full
pipeline (least squares, flat and hierarchical Bayesian models, residual
comparison) and single-model runs, with console reporting of summaries
and convergence diagnostics.
"""
import contextlib
import warnings
from pathlib import Path
from typing import Dict, Optional, Any, Iterable, Union

from utils.logging_utils import get_logger, LoggingManager
from utils.decorators import timed
from config.config_manager import ConfigManager
from model.model_runner import ModelRunner
from model.linear_model import LinearRegressionModel
from model.bayesian_model import BayesianRegressionModel
from model.constants import MODEL_TYPES, LINEAR_MODEL

# Get logger for this module
logger = get_logger()


# Context manager for BLAS warnings instead of global suppression
@contextlib.contextmanager
def suppress_pytensor_warnings():
    """Context manager to temporarily suppress PyTensor BLAS warnings."""
    with warnings.catch_warnings():
        warnings.filterwarnings('ignore', category=UserWarning, module='pytensor.tensor.blas')
        yield


def report_model(model_type: str, runner: ModelRunner) -> None:
    """Log the summary of one fitted model and, for Bayesian models, its diagnostics."""
    results = runner.results.get(model_type, {})
    if not results.get("success"):
        logger.warning(f"No results to report for {model_type}: {results.get('error', 'not fitted')}")
        return

    model = runner.models[model_type]
    if isinstance(model, LinearRegressionModel):
        logger.info(f"\n{model.summary()}")
    elif isinstance(model, BayesianRegressionModel):
        LoggingManager.log_table(logger, f"{model_type} posterior summary", model.summary_table())
        LoggingManager.log_dict(logger, f"{model_type} convergence diagnostics", results["diagnostics"])
        if results.get("group_intercepts") is not None:
            LoggingManager.log_table(logger, f"{model_type} group intercepts", results["group_intercepts"])
        if model.autocorrelation_table is not None:
            lags = [lag for lag in (1, 5, 10, 20) if lag in model.autocorrelation_table.index]
            LoggingManager.log_table(
                logger, f"{model_type} autocorrelation at selected lags",
                model.autocorrelation_table.loc[lags].transpose()
            )
        if not results.get("converged"):
            logger.warning(f"{model_type} model: chains may not have converged or have too few effective samples")


@timed("Model analysis")
def run_models(
    config_manager: ConfigManager,
    model_types: Iterable[str],
    results_dir: Optional[Union[str, Path]] = None
) -> Dict[str, Any]:
    """
    Run the pipeline for the given model types and report each model.

    Args:
        config_manager: Configuration manager object
        model_types: Models to fit, in order
        results_dir: Directory to store results (configured one if None)

    Returns:
        Dictionary of results from ModelRunner.run

    Raises:
        RunnerError: If any step of the pipeline fails
    """
    runner = ModelRunner(config_manager=config_manager, results_dir=results_dir)
    LoggingManager.log_step_start(logger, "Cognition regression pipeline")
    with suppress_pytensor_warnings():
        results = runner.run(model_types)
    LoggingManager.log_step_end(logger, "Cognition regression pipeline")

    if runner.data_manager.covariate_scaling["standardized"]:
        logger.info("Continuous covariates were z-scored; their coefficients are per standard deviation")

    for model_type in results["models"]:
        report_model(model_type, runner)

    if results["residual_comparison"]:
        for model_type, metrics in results["residual_comparison"].items():
            LoggingManager.log_dict(logger, f"Residuals: linear vs {model_type}", metrics)

    logger.info(f"Results saved to {runner.results_dir}")
    return results


def run_full_analysis(
    config_manager: ConfigManager,
    results_dir: Optional[Union[str, Path]] = None
) -> Dict[str, Any]:
    """
    Run the complete analysis: least squares, flat and hierarchical models,
    then the residual comparison.

    Args:
        config_manager: Configuration manager object
        results_dir: Directory to store results

    Returns:
        Dictionary of results
    """
    logger.info("Starting full cognition regression analysis...")
    return run_models(config_manager, MODEL_TYPES, results_dir)


def run_single_model(
    config_manager: ConfigManager,
    model_type: str,
    results_dir: Optional[Union[str, Path]] = None
) -> Dict[str, Any]:
    """
    Fit one model. Bayesian runs also fit the least-squares baseline so the
    residual comparison is available.

    Args:
        config_manager: Configuration manager object
        model_type: "linear", "flat" or "hierarchical"
        results_dir: Directory to store results

    Returns:
        Dictionary of results
    """
    model_types = [LINEAR_MODEL] if model_type == LINEAR_MODEL else [LINEAR_MODEL, model_type]
    logger.info(f"Running {model_type} model analysis...")
    return run_models(config_manager, model_types, results_dir)
