#!/usr/bin/env python3
"""
Tests for the PyMC model builder.
"""
import unittest
import os
import sys

import numpy as np

# Add the parent directory to sys.path so we can import from model
sys.path.insert(0, os.path.abspath(os.path.dirname(os.path.dirname(__file__))))

from model.base_model import RegressionData
from model.bayesian.model_builder import BayesianModelBuilder, MODEL_VAR_NAMES
from model.exceptions import ModelBuildError


def make_design(n=30, k=3, n_groups=None, seed=1):
    rng = np.random.default_rng(seed)
    X = rng.normal(size=(n, k))
    y = 1.0 + X @ np.arange(1, k + 1) + rng.normal(scale=0.5, size=n)
    kwargs = {}
    if n_groups:
        kwargs = {
            "group_idx": np.arange(n) % n_groups,
            "group_labels": [float(g + 1) for g in range(n_groups)],
            "group_name": "SES",
        }
    return RegressionData(X=X, y=y, covariate_names=[f"x{i}" for i in range(k)], response_name="y", **kwargs)


class TestBayesianModelBuilder(unittest.TestCase):
    """Tests for BayesianModelBuilder."""

    def setUp(self):
        self.builder = BayesianModelBuilder()

    def test_flat_model_variables(self):
        model = self.builder.build_flat_model(make_design())

        for name in MODEL_VAR_NAMES["flat"] + ["sigma", "y_obs"]:
            self.assertIn(name, model.named_vars)
        self.assertEqual(list(model.coords["covariate"]), ["x0", "x1", "x2"])
        self.assertEqual(len(model.coords["obs_id"]), 30)

    def test_hierarchical_model_variables(self):
        model = self.builder.build_hierarchical_model(make_design(n_groups=4))

        for name in MODEL_VAR_NAMES["hierarchical"] + ["alpha_raw", "sigma", "y_obs"]:
            self.assertIn(name, model.named_vars)
        self.assertEqual(list(model.coords["group"]), ["1.0", "2.0", "3.0", "4.0"])
        self.assertNotIn("intercept", model.named_vars)

    def test_initial_point_shapes(self):
        model = self.builder.build_hierarchical_model(make_design(k=2, n_groups=3))
        point = model.initial_point()
        self.assertEqual(point["beta"].shape, (2,))
        self.assertEqual(point["alpha_raw"].shape, (3,))

    def test_build_model_dispatch(self):
        flat = self.builder.build_model(make_design(), "flat")
        self.assertIn("intercept", flat.named_vars)
        with self.assertRaises(ModelBuildError):
            self.builder.build_model(make_design(), "pooled")

    def test_hierarchical_requires_groups(self):
        with self.assertRaises(ModelBuildError):
            self.builder.build_hierarchical_model(make_design())

    def test_invalid_priors_rejected(self):
        with self.assertRaises(ModelBuildError):
            BayesianModelBuilder({"coef_prior_precision": 0})
        with self.assertRaises(ModelBuildError):
            BayesianModelBuilder({"precision_prior_alpha": -1.0})

    def test_var_names(self):
        self.assertEqual(BayesianModelBuilder.var_names("flat"), ["intercept", "beta", "tau"])
        with self.assertRaises(ModelBuildError):
            BayesianModelBuilder.var_names("linear")


if __name__ == '__main__':
    unittest.main()
