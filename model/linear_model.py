"""
Linear Regression Model Implementation for the cognition regression analysis.

This module provides the classical least-squares baseline, following the same
interface as BayesianRegressionModel so residuals can be compared directly.
"""

from typing import Dict, Any, Optional, Union
import time
import numpy as np
import pandas as pd
from pathlib import Path
import statsmodels.api as sm

from utils.logging_utils import get_logger, log_step
from model.exceptions import ModelError, ModelEvaluationError
from model.base_model import BaseRegressionModel, RegressionData
from model.constants import LINEAR_MODEL

logger = get_logger()


class LinearRegressionModel(BaseRegressionModel):
    """
    Ordinary least squares of the cognitive score on the covariates.

    Fitted with statsmodels OLS; the coefficient table carries its standard
    errors, t statistics and p-values.
    """

    model_type = LINEAR_MODEL

    def __init__(
        self,
        results_dir: Union[str, Path] = "results",
        model_name: str = "ols_model",
        model_config: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            results_dir=results_dir,
            model_name=model_name,
            model_config=model_config
        )
        self.ols_results = None
        self.coefficient_table: Optional[pd.DataFrame] = None
        self.sigma: Optional[float] = None
        self.r_squared: Optional[float] = None

    @log_step("Fitting least-squares baseline")
    def fit(self, data: RegressionData) -> Dict[str, Any]:
        """
        Fit the OLS model.

        Args:
            data: Prepared regression design

        Returns:
            Dictionary with coefficient table and goodness-of-fit statistics

        Raises:
            ModelError: If the design cannot be fitted
        """
        start_time = time.time()
        n, k = data.n_obs, data.n_covariates
        dof = n - k - 1
        if dof <= 0:
            raise ModelError(f"Not enough observations ({n}) for {k} covariates plus intercept")

        try:
            ols = sm.OLS(data.y, sm.add_constant(data.X, has_constant="add")).fit()
        except (ValueError, np.linalg.LinAlgError) as e:
            raise ModelError(f"Least-squares fit failed: {str(e)}") from e

        self.ols_results = ols
        self.data = data
        self.is_fitted = True

        self.coefficient_table = pd.DataFrame(
            {
                "estimate": np.asarray(ols.params),
                "std_err": np.asarray(ols.bse),
                "t_value": np.asarray(ols.tvalues),
                "p_value": np.asarray(ols.pvalues),
            },
            index=data.coefficient_names
        )
        sigma2 = float(ols.scale)
        self.sigma = float(np.sqrt(sigma2))
        self.r_squared = float(ols.rsquared) if ols.centered_tss > 0 else float("nan")

        runtime = time.time() - start_time
        logger.info(f"OLS fit on {n} rows: R^2 = {self.r_squared:.4f}, residual SE = {self.sigma:.4f}")

        self.results = {
            "model_type": self.model_type,
            "model_name": self.model_name,
            "success": True,
            "runtime": runtime,
            "n_obs": n,
            "coefficients": self.coefficients,
            "coefficient_table": self.coefficient_table,
            "sigma": self.sigma,
            "tau": 1.0 / sigma2 if sigma2 > 0 else float("inf"),
            "r_squared": self.r_squared,
            "df_resid": dof,
        }
        return self.results

    @property
    def coefficients(self) -> pd.Series:
        self._require_fitted()
        return self.coefficient_table["estimate"].rename("ols")

    def predict(self, data: Optional[RegressionData] = None) -> pd.Series:
        """
        Predict the score for a design.

        Raises:
            ModelEvaluationError: If the model has not been fitted
        """
        self._require_fitted()
        data = data if data is not None else self.data
        if data.n_covariates != self.data.n_covariates:
            raise ModelEvaluationError(
                f"Design has {data.n_covariates} covariates, model expects {self.data.n_covariates}"
            )
        predicted = self.ols_results.predict(sm.add_constant(data.X, has_constant="add"))
        return pd.Series(np.asarray(predicted), index=data.index, name="predicted")

    def summary(self) -> str:
        """Return a printable summary in the style of a regression table."""
        self._require_fitted()
        table = self.coefficient_table.to_string(float_format=lambda v: f"{v:.4f}")
        return (
            f"OLS regression of {self.data.response_name} ({self.data.n_obs} observations)\n"
            f"{table}\n"
            f"Residual standard error: {self.sigma:.4f} on {self.results['df_resid']} degrees of freedom\n"
            f"R-squared: {self.r_squared:.4f}"
        )
