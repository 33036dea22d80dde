#!/usr/bin/env python3
"""
Data Preprocessor for the OASIS cognition regression analysis

This module cleans the visit table (drop incomplete rows, recode gender),
optionally standardizes covariates and builds the RegressionData designs
consumed by the models.
"""

import numpy as np
import pandas as pd
from typing import Dict, List, Optional, Any

from utils.logging_utils import logger
from config.default_config import (
    OASIS_COLUMNS,
    DEFAULT_FEMALE_LABEL,
    DEFAULT_MALE_LABEL,
    DEFAULT_GENDER_INDICATOR_COL,
)
from model.base_model import RegressionData
from model.exceptions import DataValidationError, DataPreparationError


class DataPreprocessor:
    """
    Handles data cleaning and design construction.

    This class is responsible for:
    - Dropping rows with missing values (no imputation)
    - Replacing the two-level gender field with a 0/1 indicator
    - Z-scoring continuous covariates
    - Building flat and grouped regression designs

    Parameters
    ----------
    gender_col : str
        Name of the two-level categorical gender column.
    female_label, male_label : str
        Category values mapped to 0 and 1 respectively.
    gender_indicator_col : str
        Name of the derived numeric indicator column.
    standardize : bool
        Whether build_design z-scores continuous covariates.
    """

    def __init__(
        self,
        gender_col: str = OASIS_COLUMNS["gender_col"],
        female_label: str = DEFAULT_FEMALE_LABEL,
        male_label: str = DEFAULT_MALE_LABEL,
        gender_indicator_col: str = DEFAULT_GENDER_INDICATOR_COL,
        standardize: bool = True
    ):
        if female_label == male_label:
            raise DataValidationError("Female and male labels must differ")

        self.gender_col = gender_col
        self.female_label = female_label
        self.male_label = male_label
        self.gender_indicator_col = gender_indicator_col
        self.standardize_covariates = standardize

        # Column means and standard deviations used for z-scoring
        self.scaling: Dict[str, Dict[str, float]] = {}

    @classmethod
    def from_config(cls, config: Any) -> 'DataPreprocessor':
        """Create a preprocessor from an AppConfig."""
        return cls(
            gender_col=config.data_gender_col,
            female_label=config.data_female_label,
            male_label=config.data_male_label,
            gender_indicator_col=config.data_gender_indicator_col,
            standardize=config.data_standardize
        )

    def drop_missing(self, data: pd.DataFrame) -> pd.DataFrame:
        """
        Drop every row with a missing value in any column.

        Parameters
        ----------
        data : pd.DataFrame
            Table restricted to the retained columns.

        Returns
        -------
        pd.DataFrame
            Complete cases only.
        """
        cleaned = data.dropna()
        n_dropped = len(data) - len(cleaned)
        if n_dropped:
            na_counts = data.isna().sum()
            logger.info(
                f"Dropped {n_dropped} of {len(data)} rows with missing values "
                f"({dict(na_counts[na_counts > 0])})"
            )
        return cleaned

    def encode_gender(self, data: pd.DataFrame) -> pd.DataFrame:
        """
        Add the numeric gender indicator: female_label -> 0, male_label -> 1.

        Raises
        ------
        DataValidationError
            If the gender column holds any other value.
        """
        if self.gender_col not in data.columns:
            raise DataValidationError(f"Gender column '{self.gender_col}' not found")

        labels = data[self.gender_col].astype(str).str.strip()
        mapping = {self.female_label: 0, self.male_label: 1}
        unexpected = sorted(set(labels.unique()) - set(mapping))
        if unexpected:
            raise DataValidationError(
                f"Unexpected values in gender column '{self.gender_col}'",
                details=f"expected {list(mapping)}, found {unexpected}"
            )

        encoded = data.copy()
        encoded[self.gender_indicator_col] = labels.map(mapping).astype(int)
        logger.info(
            f"Encoded '{self.gender_col}' as '{self.gender_indicator_col}' "
            f"({self.female_label}=0: {int((encoded[self.gender_indicator_col] == 0).sum())}, "
            f"{self.male_label}=1: {int(encoded[self.gender_indicator_col].sum())})"
        )
        return encoded

    def preprocess(self, data: pd.DataFrame) -> pd.DataFrame:
        """
        Apply standard cleaning: drop incomplete rows, then recode gender.

        Parameters
        ----------
        data : pd.DataFrame
            Raw table from DataLoader.load_data.

        Returns
        -------
        pd.DataFrame
            Clean table with the gender indicator column added.
        """
        logger.info(f"Preprocessing data, initial shape: {data.shape}")
        cleaned = self.encode_gender(self.drop_missing(data))
        if cleaned.empty:
            raise DataPreparationError("No complete rows left after dropping missing values")
        logger.info(f"Preprocessing complete, final shape: {cleaned.shape}")
        return cleaned

    def standardize(self, data: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
        """
        Z-score the given columns, storing the scaling used.

        Constant columns are centered but not scaled.
        """
        scaled = data.copy()
        for col in columns:
            values = scaled[col].astype(float)
            mean = float(values.mean())
            std = float(values.std(ddof=0))
            if std == 0 or not np.isfinite(std):
                logger.warning(f"Column '{col}' is constant; centering without scaling")
                std = 1.0
            scaled[col] = (values - mean) / std
            self.scaling[col] = {"mean": mean, "std": std}
        return scaled

    def build_design(
        self,
        data: pd.DataFrame,
        covariates: List[str],
        response_col: str,
        group_col: Optional[str] = None
    ) -> RegressionData:
        """
        Build a regression design from a clean table.

        Parameters
        ----------
        data : pd.DataFrame
            Output of preprocess.
        covariates : list of str
            Covariate columns in design order. The gender indicator is never scaled.
        response_col : str
            Cognitive score column.
        group_col : str, optional
            Categorical column whose levels get their own intercept.

        Returns
        -------
        RegressionData

        Raises
        ------
        DataPreparationError
            If a column is missing or a covariate or the response is not numeric.
        """
        missing = [c for c in covariates + [response_col] if c not in data.columns]
        if group_col is not None and group_col not in data.columns:
            missing.append(group_col)
        if missing:
            raise DataPreparationError(f"Columns not available for design: {missing}")

        non_numeric = {}
        for col in covariates + [response_col]:
            if not pd.api.types.is_numeric_dtype(data[col]):
                coerced = pd.to_numeric(data[col], errors="coerce")
                non_numeric[col] = sorted(data.loc[coerced.isna(), col].astype(str).unique())[:5]
        if non_numeric:
            raise DataPreparationError(
                "Design columns must be numeric", details=f"non-numeric values: {non_numeric}"
            )

        frame = data
        if self.standardize_covariates:
            to_scale = [c for c in covariates if c != self.gender_indicator_col]
            frame = self.standardize(data, to_scale)

        group_idx = None
        group_labels = None
        if group_col is not None:
            categories = sorted(data[group_col].unique())
            codes = pd.Categorical(data[group_col], categories=categories).codes
            group_idx = np.asarray(codes, dtype=int)
            group_labels = list(categories)
            logger.info(f"Grouping by '{group_col}' with {len(group_labels)} levels: {group_labels}")

        return RegressionData(
            X=frame[covariates].to_numpy(dtype=float),
            y=data[response_col].to_numpy(dtype=float),
            covariate_names=list(covariates),
            response_name=response_col,
            group_idx=group_idx,
            group_labels=group_labels,
            group_name=group_col,
            index=data.index
        )
