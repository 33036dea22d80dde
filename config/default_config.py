#!/usr/bin/env python3
"""
Default configuration for the OASIS cognition regression analysis.
This module contains default values for the data layout, sampling and output settings.
"""
import os

# Data defaults
DEFAULT_DATA_PATH = "data/oasis_longitudinal.csv"

# Column layout of the OASIS longitudinal visit table
OASIS_COLUMNS = {
    "subject_col": "Subject ID",
    "visit_col": "Visit",
    "gender_col": "M/F",
    "age_col": "Age",
    "education_col": "EDUC",
    "ses_col": "SES",
    "score_col": "MMSE",
    "icv_col": "eTIV",
    "brain_volume_col": "nWBV",
}

# Two-level gender coding: female -> 0, male -> 1
DEFAULT_FEMALE_LABEL = "F"
DEFAULT_MALE_LABEL = "M"
DEFAULT_GENDER_INDICATOR_COL = "male"

# Results and output defaults
DEFAULT_RESULTS_DIR = "results"
DEFAULT_LOG_FILE = os.path.join("logs", "oasis_analysis.log")
DEFAULT_LOG_LEVEL = "INFO"

# Visualization settings
VISUALIZATION_SETTINGS = {
    "plot_dpi": 100,
    "figsize_medium": (10, 6),
    "style": "whitegrid",
}
