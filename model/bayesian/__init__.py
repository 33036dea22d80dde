"""
Bayesian model components for the cognition regression analysis.

Components:
- model_builder.py: PyMC graphs for the flat and hierarchical models
- sampling, diagnostics and visualization are re-exported from the parent 'model' package
"""

from model.bayesian.model_builder import BayesianModelBuilder, MODEL_VAR_NAMES
from model.sampling import BayesianSampler
from model.diagnostics import BayesianDiagnostics
from model.visualization import ResidualVisualizer

__all__ = [
    'BayesianModelBuilder',
    'MODEL_VAR_NAMES',
    'BayesianSampler',
    'BayesianDiagnostics',
    'ResidualVisualizer',
]
