#!/usr/bin/env python3
"""
Tests for the Bayesian regression models.

These fit small synthetic designs with short chains; they check the shape
and consistency of the outputs, not posterior accuracy.
"""
import unittest
import tempfile
import os
import sys
from unittest.mock import patch

import numpy as np
import matplotlib
matplotlib.use("Agg")

# Add the parent directory to sys.path so we can import from model
sys.path.insert(0, os.path.abspath(os.path.dirname(os.path.dirname(__file__))))

from model.base_model import RegressionData
from model.bayesian_model import BayesianRegressionModel
from model.exceptions import ModelError, ModelEvaluationError, VisualizationError

SAMPLING = {"n_draws": 200, "n_tune": 200, "n_chains": 2, "n_cores": 1, "random_seed": 7}


def make_design(n=60, grouped=False, seed=3):
    rng = np.random.default_rng(seed)
    X = rng.normal(size=(n, 2))
    group_idx = np.arange(n) % 3
    offsets = np.array([-1.0, 0.0, 1.0])
    y = 25.0 + X @ np.array([1.5, -0.5]) + rng.normal(scale=0.7, size=n)
    kwargs = {}
    if grouped:
        y = y + offsets[group_idx]
        kwargs = {"group_idx": group_idx, "group_labels": [1.0, 2.0, 3.0], "group_name": "SES"}
    return RegressionData(X=X, y=y, covariate_names=["age", "educ"], response_name="score", **kwargs)


class TestFlatBayesianModel(unittest.TestCase):
    """Flat model fit, posterior means and residuals."""

    @classmethod
    def setUpClass(cls):
        cls.tmp = tempfile.TemporaryDirectory()
        cls.design = make_design()
        cls.model = BayesianRegressionModel(kind="flat", results_dir=cls.tmp.name, create_plots=False, **SAMPLING)
        cls.results = cls.model.fit(cls.design)

    @classmethod
    def tearDownClass(cls):
        cls.tmp.cleanup()

    def test_fit_succeeds(self):
        self.assertTrue(self.results["success"], self.results.get("error"))
        self.assertEqual(self.results["settings"]["n_chains"], 2)
        self.assertIn("rhat_max", self.results["diagnostics"])

    def test_posterior_mean_length_is_covariates_plus_one(self):
        coefficients = self.model.posterior_means()["coefficients"]
        self.assertEqual(len(coefficients), self.design.n_covariates + 1)
        self.assertEqual(list(coefficients.index), ["intercept", "age", "educ"])

    def test_posterior_means_include_precision(self):
        means = self.model.posterior_means()
        self.assertGreater(means["tau"], 0)
        self.assertIsNone(means["group_intercepts"])

    def test_residuals_equal_observed_minus_predicted(self):
        residuals = self.model.residuals(self.design)
        predicted = self.model.predict(self.design)
        np.testing.assert_array_equal(residuals.to_numpy(), self.design.y - predicted.to_numpy())

    def test_estimates_near_truth(self):
        coefficients = self.model.coefficients
        self.assertAlmostEqual(coefficients["intercept"], 25.0, delta=1.0)
        self.assertAlmostEqual(coefficients["age"], 1.5, delta=0.5)

    def test_autocorrelation_table(self):
        table = self.model.autocorrelation_table
        self.assertIn("tau", table.columns)
        self.assertIn("beta[age]", table.columns)
        np.testing.assert_allclose(table.loc[0].to_numpy(), 1.0)

    def test_summary_table(self):
        table = self.model.summary_table()
        self.assertIn("r_hat", table.columns)

    def test_convergence_uses_effective_sample_size(self):
        self.assertIsInstance(self.results["converged"], bool)
        if self.results["diagnostics"]["ess_bulk_min"] < self.model.diagnostics.min_ess:
            self.assertFalse(self.results["converged"])

    def test_min_ess_from_model_config(self):
        model = BayesianRegressionModel(kind="flat", results_dir=self.tmp.name, model_config={"min_ess": 50})
        self.assertEqual(model.diagnostics.min_ess, 50)


class TestHierarchicalBayesianModel(unittest.TestCase):
    """Hierarchical model with one intercept per group."""

    @classmethod
    def setUpClass(cls):
        cls.tmp = tempfile.TemporaryDirectory()
        cls.design = make_design(grouped=True)
        cls.model = BayesianRegressionModel(kind="hierarchical", results_dir=cls.tmp.name,
                                            create_plots=False, **SAMPLING)
        cls.results = cls.model.fit(cls.design)

    @classmethod
    def tearDownClass(cls):
        cls.tmp.cleanup()

    def test_fit_succeeds(self):
        self.assertTrue(self.results["success"], self.results.get("error"))

    def test_posterior_mean_length_is_covariates_plus_one(self):
        coefficients = self.model.posterior_means()["coefficients"]
        self.assertEqual(len(coefficients), self.design.n_covariates + 1)
        self.assertEqual(coefficients.index[0], "intercept")

    def test_group_intercepts(self):
        group_intercepts = self.model.posterior_means()["group_intercepts"]
        self.assertEqual(list(group_intercepts.index), [1.0, 2.0, 3.0])
        self.assertLess(group_intercepts.loc[1.0], group_intercepts.loc[3.0])

    def test_residuals_equal_observed_minus_predicted(self):
        residuals = self.model.residuals()
        predicted = self.model.predict()
        np.testing.assert_array_equal(residuals.to_numpy(), self.design.y - predicted.to_numpy())

    def test_predict_requires_groups(self):
        ungrouped = make_design()
        with self.assertRaises(ModelEvaluationError):
            self.model.predict(ungrouped)


class TestBayesianModelErrors(unittest.TestCase):
    """Failure paths that need no sampling."""

    def test_unknown_kind(self):
        with self.assertRaises(ModelError):
            BayesianRegressionModel(kind="pooled")

    def test_posterior_means_before_fit(self):
        with tempfile.TemporaryDirectory() as tmp:
            model = BayesianRegressionModel(kind="flat", results_dir=tmp)
            with self.assertRaises(ModelEvaluationError):
                model.posterior_means()

    def test_hierarchical_fit_without_groups_reports_failure(self):
        with tempfile.TemporaryDirectory() as tmp:
            model = BayesianRegressionModel(kind="hierarchical", results_dir=tmp, create_plots=False, **SAMPLING)
            results = model.fit(make_design())
            self.assertFalse(results["success"])
            self.assertEqual(results["error_type"], "ModelBuildError")
            self.assertFalse(model.is_fitted)

    def test_failure_after_sampling_leaves_model_unfitted(self):
        with tempfile.TemporaryDirectory() as tmp:
            model = BayesianRegressionModel(kind="flat", results_dir=tmp, create_plots=True, **SAMPLING)
            with patch.object(model.diagnostics, "plot_trace", side_effect=VisualizationError("no display")):
                results = model.fit(make_design())

            self.assertFalse(results["success"])
            self.assertEqual(results["error_type"], "VisualizationError")
            self.assertFalse(model.is_fitted)
            self.assertIsNone(model.trace)
            with self.assertRaises(ModelEvaluationError):
                model.residuals()


if __name__ == '__main__':
    unittest.main()
