#!/usr/bin/env python3
"""
Base model module for the cognition regression analysis.
Defines the design-matrix container and the abstract base class for all
regression models (classical and Bayesian).
"""
import numpy as np
import pandas as pd
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Any, Optional, List, Union
from pathlib import Path

from utils.logging_utils import logger
from model.constants import INTERCEPT
from model.exceptions import DataPreparationError, ModelEvaluationError


@dataclass
class RegressionData:
    """
    Container for a prepared regression design.

    ASSUMPTIONS:
    - X has one row per visit and one column per covariate (no intercept column)
    - y is the cognitive score for the same rows, in the same order
    - group_idx, when present, holds 0-based contiguous indices into group_labels

    EDGE CASES:
    - Empty designs (n=0) are rejected at construction
    - Non-finite values in X or y are rejected at construction
    """
    X: np.ndarray
    y: np.ndarray
    covariate_names: List[str]
    response_name: str
    group_idx: Optional[np.ndarray] = None
    group_labels: Optional[List[Any]] = None
    group_name: Optional[str] = None
    index: Optional[pd.Index] = None

    def __post_init__(self):
        self.X = np.asarray(self.X, dtype=float)
        self.y = np.asarray(self.y, dtype=float)

        if self.X.ndim != 2:
            raise DataPreparationError(f"X must be 2-dimensional, got shape {self.X.shape}")
        if len(self.y) == 0:
            raise DataPreparationError("Cannot build a regression design from zero rows")
        if self.X.shape[0] != len(self.y):
            raise DataPreparationError(
                f"X has {self.X.shape[0]} rows but y has {len(self.y)}"
            )
        if self.X.shape[1] != len(self.covariate_names):
            raise DataPreparationError(
                f"X has {self.X.shape[1]} columns but {len(self.covariate_names)} covariate names"
            )
        if not (np.isfinite(self.X).all() and np.isfinite(self.y).all()):
            raise DataPreparationError("Design contains non-finite values")

        if self.group_idx is not None:
            self.group_idx = np.asarray(self.group_idx, dtype=int)
            if len(self.group_idx) != len(self.y):
                raise DataPreparationError("group_idx length does not match number of rows")
            if self.group_labels is None:
                raise DataPreparationError("group_labels are required with group_idx")
            if self.group_idx.min() < 0 or self.group_idx.max() >= len(self.group_labels):
                raise DataPreparationError("group_idx out of range of group_labels")

        if self.index is None:
            self.index = pd.RangeIndex(len(self.y))

    @property
    def n_obs(self) -> int:
        return len(self.y)

    @property
    def n_covariates(self) -> int:
        return self.X.shape[1]

    @property
    def n_groups(self) -> int:
        return len(self.group_labels) if self.group_labels is not None else 0

    @property
    def coefficient_names(self) -> List[str]:
        """Intercept followed by the covariates."""
        return [INTERCEPT] + list(self.covariate_names)

    def observed(self) -> pd.Series:
        """Observed response as a Series aligned with the source rows."""
        return pd.Series(self.y, index=self.index, name=self.response_name)


class BaseRegressionModel(ABC):
    """
    Abstract base class for cognition regression models.

    This class defines the interface that all models implement and provides
    the shared residual and result-storage logic.
    """

    model_type = "base"

    def __init__(
        self,
        results_dir: Union[str, Path] = "results",
        model_name: str = "base_model",
        model_config: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize the base regression model.

        Parameters
        ----------
        results_dir : str or Path
            Directory to save model results.
        model_name : str
            Name of the model for identification.
        model_config : dict, optional
            Configuration for model parameters.
        """
        self.model_name = model_name
        self.model_config = dict(model_config or {})

        self.results_dir = Path(results_dir) / model_name

        self.data: Optional[RegressionData] = None
        self.is_fitted = False
        self.results: Dict[str, Any] = {}

        logger.info(f"Initialized {model_name} model in {results_dir}")

    @abstractmethod
    def fit(self, data: RegressionData) -> Dict[str, Any]:
        """
        Fit the model to a prepared design.

        Parameters
        ----------
        data : RegressionData
            Prepared design matrix and response.

        Returns
        -------
        dict
            Fit results, including a ``success`` flag and the coefficient vector.
        """
        pass

    @abstractmethod
    def predict(self, data: Optional[RegressionData] = None) -> pd.Series:
        """
        Point prediction of the response.

        Parameters
        ----------
        data : RegressionData, optional
            Design to predict for. Defaults to the training design.
        """
        pass

    @property
    @abstractmethod
    def coefficients(self) -> pd.Series:
        """Point estimate of the coefficient vector, intercept first."""
        pass

    def _require_fitted(self) -> None:
        if not self.is_fitted:
            raise ModelEvaluationError(f"Model '{self.model_name}' has not been fitted")

    def residuals(self, data: Optional[RegressionData] = None) -> pd.Series:
        """
        Residuals: observed minus predicted, row by row.

        Parameters
        ----------
        data : RegressionData, optional
            Design to compute residuals for. Defaults to the training design.
        """
        self._require_fitted()
        data = data if data is not None else self.data
        predicted = self.predict(data)
        residuals = data.observed() - predicted
        residuals.name = "residual"
        return residuals
