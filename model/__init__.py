"""
Model package for the OASIS cognition regression analysis.

This package provides the least-squares baseline, the flat and hierarchical
Bayesian regressions, MCMC diagnostics and residual visualization.
"""

# model_runner is not imported here: it depends on the data package, which
# itself imports from model.
from model.base_model import BaseRegressionModel, RegressionData
from model.exceptions import ModelError, DataError, ModelBuildError

from model.linear_model import LinearRegressionModel
from model.bayesian.model_builder import BayesianModelBuilder
from model.sampling import BayesianSampler
from model.diagnostics import BayesianDiagnostics
from model.visualization import ResidualVisualizer
from model.bayesian_model import BayesianRegressionModel

__all__ = [
    'BaseRegressionModel', 'RegressionData',
    'ModelError', 'DataError', 'ModelBuildError',
    'LinearRegressionModel', 'BayesianRegressionModel',
    'BayesianModelBuilder', 'BayesianSampler',
    'BayesianDiagnostics', 'ResidualVisualizer',
]
