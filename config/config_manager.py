"""
Configuration manager for the OASIS cognition regression analysis.

This module provides a centralized configuration management system with
a structured configuration class built on dataclasses.
"""
import json
import os
from typing import Dict, Any, Optional, List, Union
from pathlib import Path
from dataclasses import dataclass, asdict, field, fields

from utils.logging_utils import get_logger
from config.default_config import (
    DEFAULT_DATA_PATH,
    DEFAULT_RESULTS_DIR,
    DEFAULT_LOG_FILE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_FEMALE_LABEL,
    DEFAULT_MALE_LABEL,
    DEFAULT_GENDER_INDICATOR_COL,
    OASIS_COLUMNS,
)
from model.constants import (
    DEFAULT_COEF_PRIOR_MEAN,
    DEFAULT_COEF_PRIOR_PRECISION,
    DEFAULT_PRECISION_PRIOR_ALPHA,
    DEFAULT_PRECISION_PRIOR_BETA,
    DEFAULT_DRAWS,
    DEFAULT_TUNE,
    DEFAULT_CHAINS,
    DEFAULT_CORES,
    DEFAULT_TARGET_ACCEPT,
    DEFAULT_RANDOM_SEED,
    DEFAULT_STEP_METHOD,
    DEFAULT_MAX_LAG,
    RHAT_THRESHOLD,
    MIN_EFFECTIVE_SAMPLE_SIZE,
    STEP_METHODS,
)
from model.exceptions import ConfigurationError

logger = get_logger()


@dataclass
class AppConfig:
    """Unified application configuration parameters with prefixed attributes"""
    # App settings
    results_dir: str = DEFAULT_RESULTS_DIR
    create_plots: bool = True
    show_plots: bool = False
    log_level: str = DEFAULT_LOG_LEVEL
    log_to_file: bool = True
    log_file: str = DEFAULT_LOG_FILE

    # Model settings (with model_ prefix)
    model_coef_prior_mean: float = DEFAULT_COEF_PRIOR_MEAN
    model_coef_prior_precision: float = DEFAULT_COEF_PRIOR_PRECISION
    model_precision_prior_alpha: float = DEFAULT_PRECISION_PRIOR_ALPHA
    model_precision_prior_beta: float = DEFAULT_PRECISION_PRIOR_BETA
    model_n_draws: int = DEFAULT_DRAWS
    model_n_tune: int = DEFAULT_TUNE
    model_n_chains: int = DEFAULT_CHAINS
    model_n_cores: int = DEFAULT_CORES
    model_target_accept: float = DEFAULT_TARGET_ACCEPT
    model_step_method: str = DEFAULT_STEP_METHOD
    model_random_seed: int = DEFAULT_RANDOM_SEED
    model_rhat_threshold: float = RHAT_THRESHOLD
    model_min_ess: float = MIN_EFFECTIVE_SAMPLE_SIZE
    model_max_lag: int = DEFAULT_MAX_LAG

    # Data settings (with data_ prefix)
    data_path: str = DEFAULT_DATA_PATH
    data_subject_col: str = OASIS_COLUMNS["subject_col"]
    data_visit_col: str = OASIS_COLUMNS["visit_col"]
    data_gender_col: str = OASIS_COLUMNS["gender_col"]
    data_age_col: str = OASIS_COLUMNS["age_col"]
    data_education_col: str = OASIS_COLUMNS["education_col"]
    data_ses_col: str = OASIS_COLUMNS["ses_col"]
    data_score_col: str = OASIS_COLUMNS["score_col"]
    data_icv_col: str = OASIS_COLUMNS["icv_col"]
    data_brain_volume_col: str = OASIS_COLUMNS["brain_volume_col"]
    data_female_label: str = DEFAULT_FEMALE_LABEL
    data_male_label: str = DEFAULT_MALE_LABEL
    data_gender_indicator_col: str = DEFAULT_GENDER_INDICATOR_COL
    data_standardize: bool = True
    data_column_mappings: Dict[str, str] = field(default_factory=dict)

    @property
    def covariate_cols(self) -> List[str]:
        """Covariates of the flat models, in design-matrix order."""
        return [
            self.data_age_col, self.data_education_col, self.data_ses_col,
            self.data_icv_col, self.data_brain_volume_col, self.data_gender_indicator_col
        ]

    @property
    def hierarchical_covariate_cols(self) -> List[str]:
        """Covariates of the hierarchical model; SES enters as the grouping factor."""
        return [c for c in self.covariate_cols if c != self.data_ses_col]


class ConfigManager:
    """
    Unified configuration manager with a typed configuration object.
    """

    # Environment variable prefix for overrides
    ENV_PREFIX = "OASIS_"

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to a JSON configuration file.
        """
        self.app_config = AppConfig()

        if config_path:
            self.load_config(config_path)

        self._apply_env_overrides()

    @staticmethod
    def _field_names() -> Dict[str, Any]:
        return {f.name: f for f in fields(AppConfig)}

    def load_config(self, config_path: Union[str, Path]) -> None:
        """
        Load configuration from a JSON file.

        Keys may be given with or without their ``model_``/``data_`` prefix.

        Args:
            config_path: Path to a JSON configuration file.

        Raises:
            ConfigurationError: If the file cannot be parsed
        """
        config_path = Path(config_path)
        if not config_path.exists():
            logger.warning(f"Configuration file not found: {config_path}")
            return

        try:
            with open(config_path, 'r') as f:
                config_dict = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Error loading configuration from {config_path}", str(e)) from e

        app_fields = self._field_names()
        for key, value in config_dict.items():
            if key in app_fields:
                setattr(self.app_config, key, value)
            elif f"model_{key}" in app_fields:
                setattr(self.app_config, f"model_{key}", value)
            elif f"data_{key}" in app_fields:
                setattr(self.app_config, f"data_{key}", value)
            else:
                logger.warning(f"Ignoring unknown configuration key: {key}")

        logger.info(f"Loaded configuration from {config_path}")

    @staticmethod
    def _convert_env_value(raw: str, field_type: type) -> Any:
        if field_type == bool:
            return raw.lower() in ('true', 'yes', '1')
        if field_type == list:
            return raw.split(',')
        if field_type == dict:
            return json.loads(raw)
        return field_type(raw)

    def _apply_env_overrides(self) -> None:
        """Apply configuration overrides from environment variables."""
        for field_name in self._field_names():
            candidates = [f"{self.ENV_PREFIX}{field_name.upper()}"]
            if field_name.startswith(('model_', 'data_')):
                candidates.append(f"{self.ENV_PREFIX}{field_name.split('_', 1)[1].upper()}")

            for env_name in candidates:
                if env_name not in os.environ:
                    continue
                field_type = type(getattr(self.app_config, field_name))
                try:
                    value = self._convert_env_value(os.environ[env_name], field_type)
                except (ValueError, TypeError) as e:
                    logger.warning(f"Invalid env value for {field_name}: {str(e)}")
                    continue
                setattr(self.app_config, field_name, value)
                logger.debug(f"Applied env override {env_name} for {field_name}: {value}")
                break

    def to_dict(self) -> Dict[str, Any]:
        """Return the configuration as a plain dictionary."""
        return asdict(self.app_config)

    def save_config(self, filepath: Union[str, Path]) -> None:
        """
        Save the current configuration to a JSON file.

        Args:
            filepath: Path to save the configuration to.
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=4)

        logger.info(f"Saved configuration to {filepath}")

    def validate(self) -> bool:
        """
        Validate the current configuration and fix common issues.

        Returns:
            True if configuration is valid, False otherwise
        """
        cfg = self.app_config
        valid = True

        if not cfg.data_path:
            logger.warning(f"No data path specified. Using default '{DEFAULT_DATA_PATH}'.")
            cfg.data_path = DEFAULT_DATA_PATH

        if not Path(cfg.data_path).exists():
            logger.error(f"Data file not found: {cfg.data_path}")
            valid = False

        if not cfg.results_dir:
            logger.warning(f"No results directory specified. Using default '{DEFAULT_RESULTS_DIR}'.")
            cfg.results_dir = DEFAULT_RESULTS_DIR

        if cfg.model_step_method not in STEP_METHODS:
            logger.warning(f"Unsupported step method: {cfg.model_step_method}. Using default '{DEFAULT_STEP_METHOD}'.")
            cfg.model_step_method = DEFAULT_STEP_METHOD

        # Ensure minimum values for MCMC parameters
        if cfg.model_n_draws < 100:
            logger.warning(f"n_draws too small: {cfg.model_n_draws}. Setting to 100.")
            cfg.model_n_draws = 100

        if cfg.model_n_tune < 50:
            logger.warning(f"n_tune too small: {cfg.model_n_tune}. Setting to 50.")
            cfg.model_n_tune = 50

        if cfg.model_n_chains < 1:
            logger.warning(f"n_chains too small: {cfg.model_n_chains}. Setting to 1.")
            cfg.model_n_chains = 1
        elif cfg.model_n_chains < 2:
            logger.warning("R-hat needs at least two chains; convergence check will be skipped.")

        if not 0 < cfg.model_target_accept < 1:
            logger.warning(f"target_accept out of range: {cfg.model_target_accept}. Setting to {DEFAULT_TARGET_ACCEPT}.")
            cfg.model_target_accept = DEFAULT_TARGET_ACCEPT

        if cfg.data_female_label == cfg.data_male_label:
            logger.error("Female and male labels must differ")
            valid = False

        return valid
