#!/usr/bin/env python3
"""
Main entry point for the OASIS Cognition Regression Analysis.

This script provides a unified interface to the analysis functions:
1. Run the full analysis (least squares, flat and hierarchical Bayesian models)
2. Fit a single model (with the least-squares baseline for comparison)

Usage:
    oasis-analysis --run full          # Run full analysis
    oasis-analysis --run ols           # Least-squares baseline only
    oasis-analysis --run flat          # Flat Bayesian model
    oasis-analysis --run hierarchical  # SES-grouped Bayesian model
"""
import sys
import argparse
from pathlib import Path
from typing import List, Optional

from analysis import run_full_analysis, run_single_model
from utils.logging_utils import get_logger, LoggingManager, APP_LOGGER_NAME
from model.exceptions import AnalysisError
from model.constants import LINEAR_MODEL, FLAT_MODEL, HIERARCHICAL_MODEL, STEP_METHODS
from config.config_manager import ConfigManager

# Get logger for this module
logger = get_logger()

RUN_CHOICES = {
    "ols": LINEAR_MODEL,
    "flat": FLAT_MODEL,
    "hierarchical": HIERARCHICAL_MODEL,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the cognition regression analysis."""
    # Parse command line arguments first
    args = parse_arguments(argv)

    # Create configuration manager
    try:
        config_manager = setup_config(args)
    except AnalysisError as e:
        setup_logging(args.log_level or "INFO")
        logger.error(f"Configuration error: {str(e)}")
        return 1

    # Set up logging
    cfg = config_manager.app_config
    setup_logging(cfg.log_level, cfg.log_file if cfg.log_to_file else None)

    if not _validate_config(config_manager):
        return 1

    # Save configuration for reference
    results_config_path = Path(cfg.results_dir) / "config.json"
    config_manager.save_config(results_config_path)

    logger.info(f"Using data path: {cfg.data_path}")
    if cfg.data_column_mappings:
        logger.info(f"Column mappings: {cfg.data_column_mappings}")

    # Execute the requested operation
    try:
        if args.run == "full":
            results = run_full_analysis(config_manager)
        else:
            results = run_single_model(config_manager, RUN_CHOICES[args.run])
    except AnalysisError as e:
        LoggingManager.log_error(logger, f"Error running {args.run} analysis", e)
        logger.error("Analysis failed")
        return 1
    except Exception as e:
        LoggingManager.log_error(logger, f"Unexpected error running {args.run} analysis", e)
        logger.error("Analysis failed")
        return 1

    if not results.get("success"):
        logger.error(f"{args.run} analysis finished with failed models")
        return 1

    logger.info(f"{args.run} analysis completed successfully")
    return 0


def setup_config(args: argparse.Namespace) -> ConfigManager:
    """
    Set up configuration from file, environment and command line.

    Args:
        args: Command line arguments

    Returns:
        ConfigManager instance

    Raises:
        ConfigurationError: If the configuration file cannot be parsed
    """
    config_manager = ConfigManager(config_path=args.config)
    cfg = config_manager.app_config

    # Override with command line arguments
    if args.data_path:
        cfg.data_path = args.data_path
    if args.results_dir:
        cfg.results_dir = args.results_dir
    if args.log_level:
        cfg.log_level = args.log_level

    # MCMC sampling parameters
    if args.draws is not None:
        cfg.model_n_draws = args.draws
    if args.tune is not None:
        cfg.model_n_tune = args.tune
    if args.chains is not None:
        cfg.model_n_chains = args.chains
    if args.target_accept is not None:
        cfg.model_target_accept = args.target_accept
    if args.step_method:
        cfg.model_step_method = args.step_method
    if args.seed is not None:
        cfg.model_random_seed = args.seed

    if args.no_standardize:
        cfg.data_standardize = False
    if args.show_plots:
        cfg.show_plots = True
    if args.no_plots:
        cfg.create_plots = False

    return config_manager


def _validate_config(config_manager: ConfigManager) -> bool:
    """
    Validate configuration settings.

    Returns:
        True if configuration is valid, False otherwise
    """
    if config_manager.validate():
        return True
    logger.error("Invalid configuration. Please check your parameters.")
    return False


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description="OASIS Cognition Regression Analysis")

    # General options
    parser.add_argument("--config", type=str, help="Path to JSON configuration file")
    parser.add_argument("--results-dir", type=str, help="Directory to store results")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Log level")
    parser.add_argument("--run", choices=["full"] + list(RUN_CHOICES),
                        default="full", help="Operation to perform")

    # Data options
    parser.add_argument("--data-path", type=str, help="Path to data file")
    parser.add_argument("--no-standardize", action="store_true",
                        help="Fit on raw covariate scales instead of z-scores")

    # Model options
    parser.add_argument("--draws", type=int, help="Number of draws for MCMC sampling")
    parser.add_argument("--tune", type=int, help="Number of tuning steps for MCMC sampling")
    parser.add_argument("--chains", type=int, help="Number of chains for MCMC sampling")
    parser.add_argument("--target-accept", type=float, help="Target acceptance rate for NUTS")
    parser.add_argument("--step-method", choices=list(STEP_METHODS), help="MCMC step method")
    parser.add_argument("--seed", type=int, help="Random seed for sampling")

    # Output options
    parser.add_argument("--show-plots", action="store_true", help="Display plots interactively")
    parser.add_argument("--no-plots", action="store_true", help="Do not write plot files")

    return parser.parse_args(argv)


def setup_logging(log_level: str, log_file: Optional[str] = None) -> None:
    """
    Set up logging based on the specified log level.

    Args:
        log_level: Log level to set up
        log_file: Optional log file path
    """
    LoggingManager.setup_logging(
        logger_name=APP_LOGGER_NAME,
        log_level=log_level,
        log_file=log_file
    )


if __name__ == "__main__":
    sys.exit(main())
