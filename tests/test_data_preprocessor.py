#!/usr/bin/env python3
"""
Tests for the DataPreprocessor class.
"""
import unittest
import os
import sys

import numpy as np
import pandas as pd

# Add the parent directory to sys.path so we can import from data
sys.path.insert(0, os.path.abspath(os.path.dirname(os.path.dirname(__file__))))
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from data.data_preprocessor import DataPreprocessor
from model.exceptions import DataValidationError, DataPreparationError
from fixtures import make_visits

COVARIATES = ["Age", "EDUC", "SES", "eTIV", "nWBV", "male"]


class TestDataPreprocessor(unittest.TestCase):
    """Tests for cleaning and design construction."""

    def setUp(self):
        self.raw = make_visits().drop(columns=["CDR"])
        self.preprocessor = DataPreprocessor()

    def test_no_missing_values_after_cleaning(self):
        clean = self.preprocessor.preprocess(self.raw)

        self.assertFalse(clean.isna().any().any())
        self.assertEqual(len(clean), len(self.raw) - 3)

    def test_gender_maps_one_category_to_zero_and_one_to_one(self):
        clean = self.preprocessor.preprocess(self.raw)

        self.assertEqual(set(clean["male"].unique()), {0, 1})
        self.assertTrue((clean.loc[clean["M/F"] == "F", "male"] == 0).all())
        self.assertTrue((clean.loc[clean["M/F"] == "M", "male"] == 1).all())

    def test_gender_labels_are_configurable(self):
        raw = self.raw.copy()
        raw["M/F"] = raw["M/F"].map({"F": "female", "M": "male"})
        preprocessor = DataPreprocessor(female_label="female", male_label="male", gender_indicator_col="is_male")
        clean = preprocessor.preprocess(raw)
        self.assertEqual(set(clean["is_male"].unique()), {0, 1})

    def test_unexpected_gender_level_raises(self):
        raw = self.raw.copy()
        raw.loc[0, "M/F"] = "X"
        with self.assertRaises(DataValidationError):
            self.preprocessor.encode_gender(raw)

    def test_equal_labels_rejected(self):
        with self.assertRaises(DataValidationError):
            DataPreprocessor(female_label="M", male_label="M")

    def test_all_rows_missing_raises(self):
        raw = self.raw.copy()
        raw["MMSE"] = np.nan
        with self.assertRaises(DataPreparationError):
            self.preprocessor.preprocess(raw)

    def test_standardize_stores_scaling(self):
        clean = self.preprocessor.preprocess(self.raw)
        scaled = self.preprocessor.standardize(clean, ["Age"])

        self.assertAlmostEqual(scaled["Age"].mean(), 0.0, places=10)
        self.assertAlmostEqual(scaled["Age"].std(ddof=0), 1.0, places=10)
        self.assertAlmostEqual(self.preprocessor.scaling["Age"]["mean"], clean["Age"].mean())

    def test_constant_column_is_centered(self):
        frame = pd.DataFrame({"c": [2.0, 2.0, 2.0]})
        scaled = self.preprocessor.standardize(frame, ["c"])
        self.assertTrue((scaled["c"] == 0.0).all())

    def test_build_design_flat(self):
        clean = self.preprocessor.preprocess(self.raw)
        design = self.preprocessor.build_design(clean, COVARIATES, "MMSE")

        self.assertEqual(design.X.shape, (len(clean), len(COVARIATES)))
        self.assertEqual(design.covariate_names, COVARIATES)
        self.assertIsNone(design.group_idx)
        np.testing.assert_array_equal(design.y, clean["MMSE"].to_numpy())
        # gender indicator stays 0/1
        np.testing.assert_array_equal(design.X[:, -1], clean["male"].to_numpy())

    def test_build_design_grouped(self):
        clean = self.preprocessor.preprocess(self.raw)
        covariates = [c for c in COVARIATES if c != "SES"]
        design = self.preprocessor.build_design(clean, covariates, "MMSE", group_col="SES")

        self.assertEqual(design.group_labels, sorted(clean["SES"].unique()))
        labels = np.asarray(design.group_labels)[design.group_idx]
        np.testing.assert_array_equal(labels, clean["SES"].to_numpy())

    def test_build_design_without_standardizing(self):
        clean = self.preprocessor.preprocess(self.raw)
        preprocessor = DataPreprocessor(standardize=False)
        design = preprocessor.build_design(clean, COVARIATES, "MMSE")
        np.testing.assert_array_equal(design.X[:, 0], clean["Age"].to_numpy())

    def test_build_design_missing_column_raises(self):
        clean = self.preprocessor.preprocess(self.raw)
        with self.assertRaises(DataPreparationError):
            self.preprocessor.build_design(clean, ["Age", "CDR"], "MMSE")

    def test_build_design_non_numeric_covariate_raises(self):
        clean = self.preprocessor.preprocess(self.raw)
        clean["Age"] = clean["Age"].astype(object)
        clean.loc[clean.index[0], "Age"] = "unknown"
        with self.assertRaises(DataPreparationError) as ctx:
            self.preprocessor.build_design(clean, COVARIATES, "MMSE")
        self.assertIn("unknown", str(ctx.exception))


if __name__ == '__main__':
    unittest.main()
