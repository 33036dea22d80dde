#!/usr/bin/env python3
"""
Clinical Visit Data Loader for the OASIS cognition regression analysis.

This module provides a DataLoader class for the longitudinal MRI visit table
(one row per clinical visit) used to relate cognitive scores to demographic
and brain-volume covariates.

PURPOSE:
- Standardize the loading of the visit table across file formats (CSV, Parquet, Excel)
- Select the known column layout and nothing else
- Abstract data source quirks (column casing, renamed columns) away from modeling components

ASSUMPTIONS:
- The table follows the OASIS longitudinal layout (can be remapped with set_column_mapping)
- Data fits in memory

EDGE CASES:
- Missing required columns trigger explicit DataLoaderError exceptions
- Column casing mismatches are resolved automatically
- Missing values are NOT handled here; see DataPreprocessor.drop_missing
- Files with unsupported extensions raise DataLoaderError at construction
"""

import pandas as pd
from typing import Dict, List, Optional, Any
from pathlib import Path

from utils.logging_utils import logger
from config.default_config import OASIS_COLUMNS
from model.exceptions import DataError


class DataLoaderError(DataError):
    """Exception raised for errors in the data loading process."""
    pass


SUPPORTED_EXTENSIONS = ['.csv', '.parquet', '.xlsx', '.xls']


class DataLoader:
    """
    Data loader for the clinical visit table.

    Parameters
    ----------
    data_path : str
        Path to the data file. Supports CSV, Parquet, and Excel formats.
    subject_col, visit_col : str
        Identifier columns, retained for reference but never modeled.
    gender_col : str
        Two-level categorical gender column.
    age_col, education_col, ses_col, score_col, icv_col, brain_volume_col : str
        Demographic, clinical and anatomic columns used by the models.
    """

    def __init__(
        self,
        data_path: str,
        subject_col: Optional[str] = OASIS_COLUMNS["subject_col"],
        visit_col: Optional[str] = OASIS_COLUMNS["visit_col"],
        gender_col: str = OASIS_COLUMNS["gender_col"],
        age_col: str = OASIS_COLUMNS["age_col"],
        education_col: str = OASIS_COLUMNS["education_col"],
        ses_col: str = OASIS_COLUMNS["ses_col"],
        score_col: str = OASIS_COLUMNS["score_col"],
        icv_col: str = OASIS_COLUMNS["icv_col"],
        brain_volume_col: str = OASIS_COLUMNS["brain_volume_col"]
    ):
        """Initialize the DataLoader with configuration parameters."""
        self.data_path = Path(data_path)

        self.subject_col = subject_col
        self.visit_col = visit_col
        self.gender_col = gender_col
        self.score_col = score_col

        self.required_columns = [
            gender_col, age_col, education_col, ses_col,
            score_col, icv_col, brain_volume_col
        ]
        # Identifier columns are kept when present
        self.id_columns = [c for c in (subject_col, visit_col) if c]

        self.column_mapping: Dict[str, str] = {}

        if not self.data_path.exists():
            raise DataLoaderError(f"Data file not found: {self.data_path}")

        if self.data_path.suffix.lower() not in SUPPORTED_EXTENSIONS:
            raise DataLoaderError(f"Unsupported file format: {self.data_path.suffix}")

        logger.info(f"Initialized DataLoader with data path: {self.data_path}")

    @classmethod
    def from_config(cls, config: Any) -> 'DataLoader':
        """
        Create a loader from an AppConfig.

        Parameters
        ----------
        config : AppConfig
            Application configuration with data_ prefixed column fields.
        """
        loader = cls(
            data_path=config.data_path,
            subject_col=config.data_subject_col,
            visit_col=config.data_visit_col,
            gender_col=config.data_gender_col,
            age_col=config.data_age_col,
            education_col=config.data_education_col,
            ses_col=config.data_ses_col,
            score_col=config.data_score_col,
            icv_col=config.data_icv_col,
            brain_volume_col=config.data_brain_volume_col
        )
        if config.data_column_mappings:
            loader.set_column_mapping(config.data_column_mappings)
        return loader

    @property
    def retained_columns(self) -> List[str]:
        """Columns kept after loading, identifiers first."""
        return self.id_columns + self.required_columns

    def set_column_mapping(self, mapping: Dict[str, str]) -> None:
        """
        Set mapping from actual column names to expected column names.

        Parameters
        ----------
        mapping : Dict[str, str]
            Keys are the actual column names in the data,
            values are the expected column names used by the loader.

        Example
        -------
        loader.set_column_mapping({'Sex': 'M/F', 'Score': 'MMSE'})
        """
        self.column_mapping = dict(mapping)
        logger.info(f"Set column mapping: {mapping}")

    def _apply_column_mapping(self, data: pd.DataFrame) -> pd.DataFrame:
        """Rename columns according to the configured mapping."""
        rename_dict = {
            actual: expected for actual, expected in self.column_mapping.items()
            if actual in data.columns
        }
        if rename_dict:
            logger.info(f"Renaming columns: {rename_dict}")
            return data.rename(columns=rename_dict)
        return data

    def _apply_case_insensitive_mapping(self, data: pd.DataFrame) -> pd.DataFrame:
        """Rename columns that only differ in case or surrounding whitespace."""
        wanted = {c.lower(): c for c in self.retained_columns}
        rename_dict = {}
        for col in data.columns:
            key = str(col).strip().lower()
            if key in wanted and col != wanted[key]:
                rename_dict[col] = wanted[key]

        if rename_dict:
            logger.info(f"Found case-insensitive matches: {rename_dict}")
            return data.rename(columns=rename_dict)
        return data

    def _read_file(self) -> pd.DataFrame:
        file_ext = self.data_path.suffix.lower()
        if file_ext == '.csv':
            return pd.read_csv(self.data_path)
        elif file_ext == '.parquet':
            return pd.read_parquet(self.data_path)
        elif file_ext in ['.xlsx', '.xls']:
            return pd.read_excel(self.data_path)
        raise DataLoaderError(f"Unsupported file format: {file_ext}")

    def load_data(self) -> pd.DataFrame:
        """
        Load the visit table and select the retained columns.

        Returns
        -------
        pd.DataFrame
            Raw data restricted to the retained columns. Missing values are kept.

        Raises
        ------
        DataLoaderError
            If the file cannot be parsed or required columns are missing.
        """
        try:
            data = self._read_file()
        except DataLoaderError:
            raise
        except Exception as e:
            error_msg = f"Error loading data from {self.data_path}: {str(e)}"
            logger.error(error_msg)
            raise DataLoaderError(error_msg) from e

        data = self._apply_column_mapping(data)
        data = self._apply_case_insensitive_mapping(data)

        missing_cols = [col for col in self.required_columns if col not in data.columns]
        if missing_cols:
            raise DataLoaderError(
                f"Missing required columns: {missing_cols}",
                details=f"available columns: {list(data.columns)}"
            )

        missing_ids = [col for col in self.id_columns if col not in data.columns]
        if missing_ids:
            logger.warning(f"Identifier columns not found and skipped: {missing_ids}")
            self.id_columns = [c for c in self.id_columns if c not in missing_ids]

        data = data[self.retained_columns].copy()
        if data.empty:
            logger.warning(f"Loaded an empty table from {self.data_path}")

        logger.info(f"Loaded data with {len(data)} rows and {len(data.columns)} columns")
        return data
