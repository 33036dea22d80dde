#!/usr/bin/env python3
"""
Model Runner System for the OASIS cognition regression analysis.

This orchestration module provides the execution environment for the
regression models, handling the workflow from data loading to residual
comparison.

KEY COMPONENTS:
- ModelRunner: Main orchestration class for end-to-end execution
- ModelFactory: Creates model instances ("linear", "flat", "hierarchical")
- ModelDataManager: Handles data loading, cleaning and design construction
- ResultsManager: Manages saving of coefficient tables and summaries

EXECUTION FLOW:
1. Initialize with configuration (or use defaults)
2. Load, clean and describe the visit table
3. Fit the least-squares baseline
4. Fit the flat and hierarchical Bayesian models
5. Compare residuals and save outputs

ASSUMPTIONS:
- Data follows the OASIS longitudinal layout or can be mapped to it
- Models follow the BaseRegressionModel interface
- The whole table fits in memory

EDGE CASES:
- Data loading failures provide detailed error context
- A failed Bayesian fit is reported in its result and skipped in the comparison
"""
import time
from pathlib import Path
from typing import Dict, Optional, Any, List, Iterable, Union

import pandas as pd

from utils.logging_utils import get_logger, LoggingManager
from utils.decorators import log_errors, log_step, timed
from utils.file_utils import ensure_dir_exists, save_json
from config.config_manager import ConfigManager
from data.data_loader import DataLoader
from data.data_preprocessor import DataPreprocessor
from data.data_visualizer import DataVisualizer
from model.base_model import BaseRegressionModel, RegressionData
from model.linear_model import LinearRegressionModel
from model.bayesian_model import BayesianRegressionModel
from model.visualization import ResidualVisualizer
from model.constants import LINEAR_MODEL, FLAT_MODEL, HIERARCHICAL_MODEL, MODEL_TYPES
from model.exceptions import (
    AnalysisError, DataError, ModelBuildError, RunnerError, ResultsError
)

logger = get_logger()


class ModelDataManager:
    """Handles data loading, cleaning and design construction for models"""

    def __init__(self, config: Any):
        self.config = config
        self.preprocessor = DataPreprocessor.from_config(config)

    @log_step("Loading data")
    @log_errors(DataError, msg="Error loading data")
    def load_data(self) -> pd.DataFrame:
        """Load the visit table and clean it (drop missing rows, recode gender)"""
        loader = DataLoader.from_config(self.config)
        raw = loader.load_data()
        clean = self.preprocessor.preprocess(raw)
        LoggingManager.log_dataframe_info(logger, "clean data", clean)
        return clean

    def build_designs(self, data: pd.DataFrame) -> Dict[str, RegressionData]:
        """
        Build the regression designs for every model type.

        The linear and flat models share the full covariate set; the
        hierarchical model drops SES from the covariates and groups by it.
        """
        score_col = self.config.data_score_col
        flat_design = self.preprocessor.build_design(data, self.config.covariate_cols, score_col)
        grouped_design = self.preprocessor.build_design(
            data,
            self.config.hierarchical_covariate_cols,
            score_col,
            group_col=self.config.data_ses_col
        )
        return {
            LINEAR_MODEL: flat_design,
            FLAT_MODEL: flat_design,
            HIERARCHICAL_MODEL: grouped_design,
        }

    @property
    def covariate_scaling(self) -> Dict[str, Any]:
        """Whether covariates were z-scored, with the mean and std used per column"""
        return {
            "standardized": self.preprocessor.standardize_covariates,
            "columns": dict(self.preprocessor.scaling),
        }


class ModelFactory:
    """Creates model instances based on model type"""

    @log_errors(ModelBuildError, msg="Error creating model")
    def create_model(self, model_type: str, **kwargs) -> BaseRegressionModel:
        """
        Create a regression model of the specified type.

        Args:
            model_type: "linear", "flat" or "hierarchical"
            **kwargs: Additional parameters for the model

        Returns:
            Model instance

        Raises:
            ModelBuildError: If model type is not supported or initialization fails
        """
        logger.info(f"Creating {model_type} model")

        if model_type == LINEAR_MODEL:
            return self.create_linear_model(**kwargs)
        elif model_type in (FLAT_MODEL, HIERARCHICAL_MODEL):
            return self.create_bayesian_model(model_type, **kwargs)
        raise ModelBuildError(f"Unsupported model type: {model_type}", details=f"expected one of {MODEL_TYPES}")

    def create_bayesian_model(self, kind: str, **kwargs) -> BayesianRegressionModel:
        """
        Create a Bayesian regression model.

        Raises:
            ModelBuildError: If model initialization fails
        """
        try:
            return BayesianRegressionModel(kind=kind, **kwargs)
        except (AnalysisError, TypeError) as e:
            raise ModelBuildError(f"Failed to create {kind} model: {str(e)}") from e

    def create_linear_model(self, **kwargs) -> LinearRegressionModel:
        """
        Create the least-squares baseline.

        Raises:
            ModelBuildError: If model initialization fails
        """
        linear_params = {k: kwargs[k] for k in ("results_dir", "model_name", "model_config") if k in kwargs}
        try:
            return LinearRegressionModel(**linear_params)
        except (AnalysisError, TypeError) as e:
            raise ModelBuildError(f"Failed to create linear model: {str(e)}") from e


class ResultsManager:
    """Manages saving of model results"""

    @log_step("Saving results")
    @log_errors(ResultsError, msg="Error saving results")
    def save_results(
        self,
        results: Dict[str, Dict[str, Any]],
        comparison: Dict[str, Dict[str, float]],
        results_dir: Path,
        scaling: Optional[Dict[str, Any]] = None
    ) -> Path:
        """
        Save coefficient tables and a JSON summary.

        Args:
            results: Fit results by model type
            comparison: Residual comparison metrics by Bayesian model type
            results_dir: Output directory
            scaling: Covariate scaling behind the coefficients, recorded in the summary

        Returns:
            Path of the summary JSON
        """
        ensure_dir_exists(results_dir)

        coefficient_columns = {}
        for model_type, model_results in results.items():
            if not model_results.get("success"):
                continue
            coefficient_columns[model_type] = model_results["coefficients"]
            if "coefficient_table" in model_results:
                model_results["coefficient_table"].to_csv(results_dir / f"{model_type}_coefficients.csv")
            if model_results.get("group_intercepts") is not None:
                model_results["group_intercepts"].to_csv(results_dir / f"{model_type}_group_intercepts.csv")

        if coefficient_columns:
            # Hierarchical coefficients have no SES row; the outer join leaves NaN there
            coefficients = pd.concat(coefficient_columns, axis=1)
            coefficients.to_csv(results_dir / "coefficients.csv")

        summary = {
            model_type: {
                k: v for k, v in model_results.items()
                if k not in ("coefficient_table",)
            }
            for model_type, model_results in results.items()
        }
        summary["residual_comparison"] = comparison
        if scaling is not None:
            summary["covariate_scaling"] = scaling

        summary_path = results_dir / "summary.json"
        try:
            save_json(summary, summary_path)
        except (OSError, TypeError, ValueError) as e:
            raise ResultsError(f"Could not write {summary_path}", str(e)) from e

        logger.info(f"Saved results summary to {summary_path}")
        return summary_path


class ModelRunner:
    """Main runner class for the cognition regression analysis"""

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        results_dir: Optional[Union[str, Path]] = None
    ):
        """
        Initialize the model runner.

        Args:
            config_manager: Configuration manager instance; defaults are used if None
            results_dir: Directory to save results, overriding the configured one
        """
        self.config_manager = config_manager or ConfigManager()
        self.config = self.config_manager.app_config
        self.results_dir = Path(results_dir) if results_dir else Path(self.config.results_dir)
        ensure_dir_exists(self.results_dir)

        self.data_manager = ModelDataManager(self.config)
        self.model_factory = ModelFactory()
        self.results_manager = ResultsManager()
        self.residual_visualizer = ResidualVisualizer(
            results_dir=self.results_dir,
            show_plots=self.config.show_plots
        )

        self.data: Optional[pd.DataFrame] = None
        self.designs: Dict[str, RegressionData] = {}
        self.models: Dict[str, BaseRegressionModel] = {}
        self.results: Dict[str, Dict[str, Any]] = {}
        self.comparison: Dict[str, Dict[str, float]] = {}

        logger.info(f"ModelRunner initialized with results directory: {self.results_dir}")

    def _model_kwargs(self, model_type: str) -> Dict[str, Any]:
        cfg = self.config
        kwargs: Dict[str, Any] = {
            "results_dir": self.results_dir,
            "model_config": {
                "coef_prior_mean": cfg.model_coef_prior_mean,
                "coef_prior_precision": cfg.model_coef_prior_precision,
                "precision_prior_alpha": cfg.model_precision_prior_alpha,
                "precision_prior_beta": cfg.model_precision_prior_beta,
                "rhat_threshold": cfg.model_rhat_threshold,
                "min_ess": cfg.model_min_ess,
                "max_lag": cfg.model_max_lag,
            },
        }
        if model_type != LINEAR_MODEL:
            kwargs.update({
                "n_draws": cfg.model_n_draws,
                "n_tune": cfg.model_n_tune,
                "n_chains": cfg.model_n_chains,
                "n_cores": cfg.model_n_cores,
                "target_accept": cfg.model_target_accept,
                "step_method": cfg.model_step_method,
                "random_seed": cfg.model_random_seed,
                "create_plots": cfg.create_plots,
                "show_plots": cfg.show_plots,
            })
        return kwargs

    def prepare_data(self) -> Dict[str, RegressionData]:
        """Load and clean the data, write exploratory plots and build the designs"""
        self.data = self.data_manager.load_data()

        if self.config.create_plots:
            visualizer = DataVisualizer(
                results_dir=str(self.results_dir),
                score_col=self.config.data_score_col,
                show_plots=self.config.show_plots
            )
            visualizer.generate_data_diagnostics(
                self.data,
                self.config.covariate_cols,
                group_col=self.config.data_ses_col
            )

        self.designs = self.data_manager.build_designs(self.data)
        return self.designs

    def run_model(self, model_type: str) -> Dict[str, Any]:
        """
        Create and fit one model on its design.

        Args:
            model_type: "linear", "flat" or "hierarchical"

        Returns:
            Fit results of the model
        """
        if not self.designs:
            self.prepare_data()

        model = self.model_factory.create_model(model_type, **self._model_kwargs(model_type))
        design = self.designs[model_type]
        results = model.fit(design)

        self.models[model_type] = model
        self.results[model_type] = results

        if results.get("success"):
            LoggingManager.log_table(logger, f"{model_type} coefficients", results["coefficients"])
            if self.config.create_plots:
                self.residual_visualizer.plot_model_residuals(
                    design.observed(), model.predict(design), label=model_type,
                    max_lag=self.config.model_max_lag
                )
        else:
            logger.warning(f"{model_type} model did not fit: {results.get('error')}")

        return results

    def compare_models(self) -> Dict[str, Dict[str, float]]:
        """
        Compare least-squares residuals with each fitted Bayesian model.

        Returns:
            Comparison metrics by Bayesian model type
        """
        baseline = self.models.get(LINEAR_MODEL)
        if baseline is None or not baseline.is_fitted:
            logger.warning("No fitted least-squares baseline; skipping residual comparison")
            return {}

        ols_residuals = baseline.residuals()
        for model_type in (FLAT_MODEL, HIERARCHICAL_MODEL):
            model = self.models.get(model_type)
            if model is None or not model.is_fitted:
                continue
            bayes_residuals = model.residuals()
            metrics = self.residual_visualizer.compare_residuals(ols_residuals, bayes_residuals)
            self.comparison[model_type] = metrics
            LoggingManager.log_dict(logger, f"Residual comparison: linear vs {model_type}", metrics)
            if self.config.create_plots:
                self.residual_visualizer.plot_residual_comparison(ols_residuals, bayes_residuals, label=model_type)

        return self.comparison

    @timed("Model execution")
    @log_errors(RunnerError, msg="Error running models")
    def run(self, model_types: Iterable[str] = MODEL_TYPES) -> Dict[str, Any]:
        """
        Run the model pipeline and return results.

        Args:
            model_types: Models to fit, in order

        Returns:
            Dictionary with per-model results, the residual comparison and
            the path of the saved summary

        Raises:
            RunnerError: If any step of the pipeline fails
        """
        start_time = time.time()
        model_types: List[str] = list(model_types)
        unknown = [m for m in model_types if m not in MODEL_TYPES]
        if unknown:
            raise RunnerError(f"Unsupported model types: {unknown}")

        try:
            self.prepare_data()
            for model_type in model_types:
                self.run_model(model_type)
            comparison = self.compare_models()
            summary_path = self.results_manager.save_results(
                self.results, comparison, self.results_dir, scaling=self.data_manager.covariate_scaling
            )
        except AnalysisError as e:
            raise RunnerError(f"Analysis failed: {str(e)}") from e

        runtime = time.time() - start_time
        logger.info(f"Pipeline executed in {runtime:.2f} seconds")

        return {
            "models": self.results,
            "residual_comparison": comparison,
            "summary_path": summary_path,
            "runtime": runtime,
            "success": all(r.get("success", False) for r in self.results.values()),
        }
