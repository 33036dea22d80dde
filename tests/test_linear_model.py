#!/usr/bin/env python3
"""
Tests for the least-squares baseline.
"""
import unittest
import tempfile
import os
import sys

import numpy as np

# Add the parent directory to sys.path so we can import from model
sys.path.insert(0, os.path.abspath(os.path.dirname(os.path.dirname(__file__))))
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from data.data_preprocessor import DataPreprocessor
from model.linear_model import LinearRegressionModel
from model.base_model import RegressionData
from model.exceptions import ModelError, ModelEvaluationError
from fixtures import make_visits

COVARIATES = ["Age", "EDUC", "SES", "eTIV", "nWBV", "male"]


class TestLinearRegressionModel(unittest.TestCase):
    """Tests for LinearRegressionModel."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        preprocessor = DataPreprocessor()
        clean = preprocessor.preprocess(make_visits(n_subjects=60))
        self.design = preprocessor.build_design(clean, COVARIATES, "MMSE")
        self.model = LinearRegressionModel(results_dir=self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_matches_numpy_least_squares(self):
        self.model.fit(self.design)

        design_matrix = np.column_stack([np.ones(self.design.n_obs), self.design.X])
        expected, *_ = np.linalg.lstsq(design_matrix, self.design.y, rcond=None)
        np.testing.assert_allclose(self.model.coefficients.to_numpy(), expected, rtol=1e-6, atol=1e-8)

    def test_coefficients_named_intercept_first(self):
        self.model.fit(self.design)
        self.assertEqual(list(self.model.coefficients.index), ["intercept"] + COVARIATES)
        self.assertEqual(len(self.model.coefficients), self.design.n_covariates + 1)

    def test_coefficient_table_statistics(self):
        results = self.model.fit(self.design)
        table = results["coefficient_table"]

        self.assertEqual(list(table.columns), ["estimate", "std_err", "t_value", "p_value"])
        self.assertTrue((table["std_err"] > 0).all())
        np.testing.assert_allclose(table["t_value"], table["estimate"] / table["std_err"])
        self.assertTrue(((table["p_value"] >= 0) & (table["p_value"] <= 1)).all())
        self.assertTrue(0 <= results["r_squared"] <= 1)
        self.assertEqual(results["df_resid"], self.design.n_obs - self.design.n_covariates - 1)

    def test_standard_errors_match_residual_variance(self):
        results = self.model.fit(self.design)

        design_matrix = np.column_stack([np.ones(self.design.n_obs), self.design.X])
        resid = self.design.y - design_matrix @ results["coefficient_table"]["estimate"].to_numpy()
        sigma2 = resid @ resid / results["df_resid"]
        expected = np.sqrt(np.diag(np.linalg.inv(design_matrix.T @ design_matrix)) * sigma2)

        np.testing.assert_allclose(results["coefficient_table"]["std_err"].to_numpy(), expected, rtol=1e-6)
        self.assertAlmostEqual(results["sigma"] ** 2, sigma2, places=8)

    def test_residuals_equal_observed_minus_predicted(self):
        self.model.fit(self.design)
        residuals = self.model.residuals()
        predicted = self.model.predict(self.design)

        np.testing.assert_array_equal(residuals.to_numpy(), self.design.y - predicted.to_numpy())
        self.assertTrue(residuals.index.equals(self.design.index))

    def test_predict_before_fit_raises(self):
        with self.assertRaises(ModelEvaluationError):
            self.model.predict(self.design)

    def test_predict_with_wrong_covariate_count_raises(self):
        self.model.fit(self.design)
        smaller = RegressionData(X=self.design.X[:, :2], y=self.design.y, covariate_names=COVARIATES[:2],
                                 response_name="MMSE")
        with self.assertRaises(ModelEvaluationError):
            self.model.predict(smaller)

    def test_too_few_observations_raises(self):
        tiny = RegressionData(X=self.design.X[:5], y=self.design.y[:5], covariate_names=COVARIATES,
                              response_name="MMSE")
        with self.assertRaises(ModelError):
            self.model.fit(tiny)

    def test_summary_mentions_response(self):
        self.model.fit(self.design)
        summary = self.model.summary()
        self.assertIn("MMSE", summary)
        self.assertIn("R-squared", summary)


if __name__ == '__main__':
    unittest.main()
